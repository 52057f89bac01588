"""FastAPI dependency injection."""

from __future__ import annotations

from functools import lru_cache

from layoutsvg.config import settings
from layoutsvg.engine.config import GenerationConfig
from layoutsvg.engine.layers import LayerAnalyzer
from layoutsvg.engine.orchestrator import GenerationOrchestrator
from layoutsvg.llm.client import LangChainGenerator


def get_settings():
    return settings


@lru_cache(maxsize=1)
def get_orchestrator() -> GenerationOrchestrator:
    current = get_settings()
    analyzer = LayerAnalyzer(
        cache_size=current.layer_cache_size,
        merge_similarity_threshold=current.merge_similarity_threshold,
    )
    return GenerationOrchestrator(
        generate=LangChainGenerator(current),
        config=GenerationConfig.from_settings(current),
        analyzer=analyzer,
    )
