"""POST /api/generate -- design-document generation with layered fallback."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from layoutsvg.dependencies import get_orchestrator
from layoutsvg.engine.orchestrator import GenerationOrchestrator
from layoutsvg.models.requests import GenerationRequest
from layoutsvg.models.responses import GenerationResult

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerationResult)
async def generate(
    req: GenerationRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationResult:
    logger.info("Generate request: %r (%s)", req.prompt[:80], req.aspect_ratio)
    return await orchestrator.orchestrate(req)
