"""Generation orchestrator: primary attempt loop with a three-tier fallback.

The primary tier is a small state machine. One loop drives it; which state
follows which is decided by pure functions (``next_state``,
``state_after_failure``, ``backoff_seconds``) so the policy is testable
without running any step.

    IDLE -> BUILDING_PROMPT -> AWAITING_MODEL -> VALIDATING
         -> RESOLVING_LAYOUT -> AUTO_FITTING -> DONE
    any step --raises--> ERROR -> BUILDING_PROMPT (retry) | FALLBACK

A request never fails outright: when the primary tier is exhausted or skipped
the rule-based tier runs, and when that raises a fixed circle is returned.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Awaitable, Callable

from layoutsvg.engine.aspect import canvas_size, default_canvas
from layoutsvg.engine.config import GenerationConfig
from layoutsvg.engine.debug_overlay import DebugOptions, DebugOverlayBuilder
from layoutsvg.engine.fallback import RuleBasedGenerator, basic_geometric_markup
from layoutsvg.engine.interpreter import DocumentInterpreter
from layoutsvg.engine.layers import LayerAnalyzer
from layoutsvg.engine.quality import anchors_used, regions_used, score_layout
from layoutsvg.engine.validation import DocumentValidator, extract_json_payload
from layoutsvg.engine.viewport import fit_document
from layoutsvg.errors import ExternalCallFailure, ExternalCallTimeout, InvalidMarkup, LayoutEngineError
from layoutsvg.llm.prompts import Prompt, PromptBuilder
from layoutsvg.models.document import Document
from layoutsvg.models.requests import GenerationRequest, SizedRequest
from layoutsvg.models.responses import (
    GenerationMetadata,
    GenerationResult,
    LayerMetadata,
    PerformanceInfo,
)

logger = logging.getLogger(__name__)

GenerateFn = Callable[[Prompt], Awaitable[str]]
SleepFn = Callable[[float], Awaitable[None]]


class GenerationState(enum.Enum):
    IDLE = "idle"
    BUILDING_PROMPT = "building_prompt"
    AWAITING_MODEL = "awaiting_model"
    VALIDATING = "validating"
    RESOLVING_LAYOUT = "resolving_layout"
    AUTO_FITTING = "auto_fitting"
    DONE = "done"
    ERROR = "error"
    FALLBACK = "fallback"


TERMINAL_STATES = frozenset({GenerationState.DONE, GenerationState.FALLBACK})

_SUCCESS_TRANSITIONS = {
    GenerationState.IDLE: GenerationState.BUILDING_PROMPT,
    GenerationState.BUILDING_PROMPT: GenerationState.AWAITING_MODEL,
    GenerationState.AWAITING_MODEL: GenerationState.VALIDATING,
    GenerationState.VALIDATING: GenerationState.RESOLVING_LAYOUT,
    GenerationState.RESOLVING_LAYOUT: GenerationState.AUTO_FITTING,
    GenerationState.AUTO_FITTING: GenerationState.DONE,
}


def next_state(state: GenerationState) -> GenerationState:
    """State after ``state`` completed without raising."""
    try:
        return _SUCCESS_TRANSITIONS[state]
    except KeyError:
        raise ValueError(f"No successor for terminal or error state {state.value!r}") from None


def state_after_failure(attempt: int, max_retries: int) -> GenerationState:
    """Retry from the prompt while attempts remain, otherwise fall back."""
    if attempt < max_retries:
        return GenerationState.BUILDING_PROMPT
    return GenerationState.FALLBACK


def backoff_seconds(attempt: int, base_ms: int) -> float:
    """Linear backoff: the wait grows with the attempt that just failed."""
    return max(0, attempt) * base_ms / 1000


def fallback_reason_for(request: GenerationRequest) -> str | None:
    """Reason to skip the primary tier, or None to attempt it."""
    if request.model == "rule-based":
        return "Rule-based model requested"
    if not request.features.unified_generation:
        return "Unified generation disabled by feature flag"
    if request.ab_test_group == "traditional":
        return "A/B test group uses traditional generation"
    return None


@dataclass
class GenerationRun:
    """Mutable context threaded through one primary-tier run."""

    request: GenerationRequest
    width: int
    height: int
    attempt: int = 1
    state: GenerationState = GenerationState.IDLE
    prompt: Prompt | None = None
    raw_text: str = ""
    document: Document | None = None
    resolved: Document | None = None
    fitted: Document | None = None
    markup: str = ""
    coordinates_repaired: bool = False
    layout_quality: int = 0
    layers: list[LayerMetadata] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    history: list[GenerationState] = field(default_factory=list)
    external_call_ms: float = 0.0
    last_error: Exception | None = None


class GenerationOrchestrator:
    def __init__(
        self,
        generate: GenerateFn,
        config: GenerationConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
        validator: DocumentValidator | None = None,
        interpreter: DocumentInterpreter | None = None,
        analyzer: LayerAnalyzer | None = None,
        rule_based: RuleBasedGenerator | None = None,
        debug_builder: DebugOverlayBuilder | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.generate = generate
        self.config = config or GenerationConfig()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.analyzer = analyzer or LayerAnalyzer()
        self.validator = validator or DocumentValidator(self.analyzer)
        self.interpreter = interpreter or DocumentInterpreter()
        self.rule_based = rule_based or RuleBasedGenerator(self.interpreter)
        self.debug_builder = debug_builder or DebugOverlayBuilder(self.interpreter, self.analyzer)
        self.sleep = sleep

        self._handlers = {
            GenerationState.IDLE: self._start,
            GenerationState.BUILDING_PROMPT: self._build_prompt,
            GenerationState.AWAITING_MODEL: self._await_model,
            GenerationState.VALIDATING: self._validate,
            GenerationState.RESOLVING_LAYOUT: self._resolve_layout,
            GenerationState.AUTO_FITTING: self._auto_fit,
        }

    async def orchestrate(self, request: GenerationRequest) -> GenerationResult:
        start = perf_counter()
        width, height = canvas_size(request.aspect_ratio)

        reason = fallback_reason_for(request)
        if reason is not None:
            logger.info("Skipping unified generation: %s", reason)
            return self._fallback(request, width, height, reason, start, attempts=0)

        run = GenerationRun(request=request, width=width, height=height)
        await self._run(run)

        if run.state is GenerationState.FALLBACK:
            reason = f"Unified generation failed: {run.last_error}"
            result = self._fallback(request, width, height, reason, start, attempts=run.attempt)
            result.errors[:0] = run.errors
            return result

        return self._unified_result(run, start)

    async def _run(self, run: GenerationRun) -> None:
        """Drive ``run`` until it reaches DONE or FALLBACK."""
        while run.state not in TERMINAL_STATES:
            run.history.append(run.state)
            handler = self._handlers[run.state]
            try:
                await handler(run)
            except Exception as e:
                run.history.append(GenerationState.ERROR)
                run.last_error = e
                run.errors.append(f"Attempt {run.attempt} ({run.state.value}): {e}")
                logger.warning("Generation attempt %d failed in %s: %s", run.attempt, run.state.value, e)
                run.state = state_after_failure(run.attempt, self.config.max_retries)
                if run.state is GenerationState.BUILDING_PROMPT:
                    await self.sleep(backoff_seconds(run.attempt, self.config.retry_backoff_ms))
                    run.attempt += 1
                continue
            run.state = next_state(run.state)
        run.history.append(run.state)

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    async def _start(self, run: GenerationRun) -> None:
        logger.debug("Generating %r on %dx%d", run.request.prompt, run.width, run.height)

    async def _build_prompt(self, run: GenerationRun) -> None:
        run.prompt = self.prompt_builder.build_prompt(run.request, run.width, run.height)

    async def _await_model(self, run: GenerationRun) -> None:
        t0 = perf_counter()
        try:
            run.raw_text = await asyncio.wait_for(self.generate(run.prompt), timeout=self.config.timeout_s)
        except asyncio.TimeoutError as e:
            raise ExternalCallTimeout(self.config.timeout_s) from e
        except LayoutEngineError:
            raise
        except Exception as e:
            raise ExternalCallFailure(str(e)) from e
        finally:
            run.external_call_ms += (perf_counter() - t0) * 1000

    async def _validate(self, run: GenerationRun) -> None:
        raw = extract_json_payload(run.raw_text)
        canvas = default_canvas(run.request.aspect_ratio)
        outcome = self.validator.validate(raw, canvas)
        repaired = False
        if not outcome.ok:
            logger.info("Document failed validation, repairing: %s", outcome.errors)
            repair = self.validator.repair(raw)
            outcome = self.validator.validate(repair.data, canvas)
            repaired = repair.changed
            run.warnings.extend(repair.actions)
        outcome.raise_for_errors()

        run.warnings.extend(outcome.warnings)
        run.coordinates_repaired = repaired or outcome.sanitized
        run.document = outcome.document

    async def _resolve_layout(self, run: GenerationRun) -> None:
        run.resolved = self.interpreter.resolve_layout(run.document)

    async def _auto_fit(self, run: GenerationRun) -> None:
        fitted, fit = fit_document(run.resolved, self.config.autofit_padding)
        if fit.transform_applied:
            run.warnings.append(f"Content rescaled to fit the canvas: {fit.transform_applied}")
        run.fitted = fitted
        run.layout_quality = score_layout(fitted, self.config.quality)
        run.layers = self.analyzer.layer_metadata(fitted)
        run.markup = self.interpreter.to_markup(fitted)
        check = self.interpreter.validate(run.markup)
        if not check.valid:
            raise InvalidMarkup(check.errors)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _unified_result(self, run: GenerationRun, start: float) -> GenerationResult:
        document = run.fitted
        elapsed = (perf_counter() - start) * 1000
        metadata = GenerationMetadata(
            method="unified",
            fallback_used=False,
            layers=run.layers,
            layout_quality=run.layout_quality,
            coordinates_repaired=run.coordinates_repaired,
            regions_used=regions_used(document),
            anchors_used=anchors_used(document),
            canvas=(document.canvas.width, document.canvas.height),
            attempts=run.attempt,
            performance=PerformanceInfo(
                generation_time_ms=elapsed,
                external_call_time_ms=run.external_call_ms,
                processing_time_ms=max(0.0, elapsed - run.external_call_ms),
            ),
        )
        result = GenerationResult(
            success=True,
            markup=run.markup,
            metadata=metadata,
            errors=run.errors,
            warnings=run.warnings,
        )
        logger.info(
            "Unified generation done in %.1fms (attempts=%d quality=%d)",
            elapsed, run.attempt, metadata.layout_quality,
        )
        if run.request.debug or run.request.features.debug_mode:
            result.debug = self._debug(document, result)
        return result

    def _fallback(
        self,
        request: GenerationRequest,
        width: int,
        height: int,
        reason: str,
        start: float,
        attempts: int,
    ) -> GenerationResult:
        sized = SizedRequest(
            prompt=request.prompt,
            width=width,
            height=height,
            palette=request.palette,
            seed=request.seed,
        )
        try:
            generated = self.rule_based.generate(sized)
            metadata = GenerationMetadata(
                method="rule-based-fallback",
                fallback_used=True,
                fallback_reason=reason,
                canvas=(width, height),
                attempts=attempts,
            )
            document = generated.document
            if document is not None:
                document = self.interpreter.resolve_layout(document)
                metadata.layers = self.analyzer.layer_metadata(document)
                metadata.layout_quality = score_layout(document, self.config.quality)
                metadata.regions_used = regions_used(document)
                metadata.anchors_used = anchors_used(document)
        except Exception as e:
            logger.error("Rule-based generation failed: %s", e)
            elapsed = (perf_counter() - start) * 1000
            return GenerationResult(
                success=True,
                markup=basic_geometric_markup(width, height),
                metadata=GenerationMetadata(
                    method="basic-geometric",
                    fallback_used=True,
                    fallback_reason=f"{reason}, rule-based also failed: {e}",
                    canvas=(width, height),
                    attempts=attempts,
                    performance=PerformanceInfo(generation_time_ms=elapsed, processing_time_ms=elapsed),
                ),
                errors=[str(e)],
            )

        elapsed = (perf_counter() - start) * 1000
        metadata.performance = PerformanceInfo(generation_time_ms=elapsed, processing_time_ms=elapsed)
        logger.info("Fallback generation used: %s", reason)
        result = GenerationResult(
            success=True,
            markup=generated.markup,
            metadata=metadata,
            warnings=list(generated.warnings),
        )
        if document is not None and (request.debug or request.features.debug_mode):
            result.debug = self._debug(document, result)
        return result

    def _debug(self, document: Document, result: GenerationResult) -> dict | None:
        try:
            overlay = self.debug_builder.build(document, result, DebugOptions(show_performance=True))
        except Exception as e:
            logger.warning("Debug overlay failed: %s", e)
            return None
        return overlay.to_dict()
