"""FastAPI application entry point."""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Ensure the code root is on sys.path for absolute imports
_code_dir = str(Path(__file__).resolve().parent)
if _code_dir not in sys.path:  # pragma: no cover
    sys.path.insert(0, _code_dir)

try:
    __version__ = (Path(__file__).resolve().parent.parent / "VERSION").read_text().strip()
except Exception:  # pragma: no cover
    __version__ = "0.0.0-dev"

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import api_router
from components import COMPONENT_REGISTRY
from config import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    from logging_config import setup_logging
    setup_logging("Server")

    import logging
    logger = logging.getLogger(__name__)
    logger.info(
        "Dynamic switch %s ready (components: %s)", __version__, ", ".join(sorted(COMPONENT_REGISTRY))
    )

    yield


app = FastAPI(title="Dynamic Switch API", version=__version__, lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.CORS_ALLOW_ALL_ORIGINS else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True, log_config=None)
