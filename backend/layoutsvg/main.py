"""FastAPI app factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from layoutsvg.config import Settings, settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(config: Settings) -> int:
    """Root handler plus the package log level; ``.env`` is read by Settings."""
    level = getattr(logging, config.layoutsvg_log_level.upper(), logging.DEBUG)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("layoutsvg").setLevel(level)
    return level


def create_app(config: Settings = settings) -> FastAPI:
    configure_logging(config)

    app = FastAPI(
        title="layoutsvg",
        description="Semantic-layout SVG generation: regions, anchors and layers resolved to markup",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from layoutsvg.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
