"""Switch API: run a dynamic switch over a batch of items."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, HTTPException

from components.errors import SwitchError
from components.operators import DATA_TYPE_OPERATORS
from components.switch import execute, resolve_output_labels
from logging_config import execution_id_var
from schemas.switch import (
    OperatorsResponse,
    SwitchErrorOut,
    SwitchExecuteRequest,
    SwitchExecuteResponse,
)
from services.execution import NodeExecutionContext

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/execute", response_model=SwitchExecuteResponse)
def execute_switch(payload: SwitchExecuteRequest):
    execution_id = uuid.uuid4().hex
    token = execution_id_var.set(execution_id)
    try:
        logger.info("Executing %s on %d items", payload.node_id, len(payload.items))
        ctx = NodeExecutionContext(
            payload.node_id,
            payload.parameters,
            payload.items,
            continue_on_fail=payload.continue_on_fail,
        )
        try:
            outputs = execute(ctx)
        except SwitchError as exc:
            logger.info("Switch %s failed on item %s: %s", payload.node_id, exc.item_index, exc.message)
            error = SwitchErrorOut(code=exc.code, message=exc.message, item_index=exc.item_index)
            raise HTTPException(status_code=422, detail=error.model_dump())

        labels = resolve_output_labels(len(outputs), ctx.get_node_parameter("outputLabels", 0, ""))
        return SwitchExecuteResponse(execution_id=execution_id, outputs=outputs, output_labels=labels)
    finally:
        execution_id_var.reset(token)


@router.get("/operators", response_model=OperatorsResponse)
def list_operators():
    return OperatorsResponse(
        operators={
            data_type.value: [operator.value for operator in operators]
            for data_type, operators in DATA_TYPE_OPERATORS.items()
        }
    )
