"""Root conftest: shared fixtures for all switch tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the code root is on sys.path
_code_dir = str(Path(__file__).resolve().parent)
if _code_dir not in sys.path:
    sys.path.insert(0, _code_dir)

import pytest


@pytest.fixture(autouse=True)
def _isolate_switch_dir(tmp_path, monkeypatch):
    """Point DYNAMIC_SWITCH_DIR to tmp_path so tests never touch the real config."""
    monkeypatch.setenv("DYNAMIC_SWITCH_DIR", str(tmp_path / "dynamic-switch"))


@pytest.fixture
def make_context():
    """Build a NodeExecutionContext from parameters and plain payload dicts."""
    from services.execution import NodeExecutionContext

    def _make(parameters: dict, payloads: list[dict] | None = None, continue_on_fail: bool = False):
        items = [{"json": payload} for payload in (payloads if payloads is not None else [{}])]
        return NodeExecutionContext("switch_1", parameters, items, continue_on_fail=continue_on_fail)

    return _make

