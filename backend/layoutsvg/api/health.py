"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from layoutsvg.engine.regions import ANCHOR_OFFSETS, RESERVED_REGIONS
from layoutsvg.models.responses import HealthResponse, RegionInfo, RegionsResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        regions_available=len(RESERVED_REGIONS),
    )


@router.get("/regions", response_model=RegionsResponse)
async def regions() -> RegionsResponse:
    return RegionsResponse(
        regions=[
            RegionInfo(name=name, x=b.x, y=b.y, width=b.width, height=b.height)
            for name, b in RESERVED_REGIONS.items()
        ],
        anchors=dict(ANCHOR_OFFSETS),
    )


@router.get("/prompts")
async def prompts() -> dict[str, str]:
    from layoutsvg.llm.prompts import get_all_templates

    return get_all_templates()
