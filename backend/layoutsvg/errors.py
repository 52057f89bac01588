"""Error taxonomy for layout resolution and generation.

Region and anchor errors are raised to the immediate caller. Schema and
structural errors are recovered by the orchestrator's repair step. Invalid
markup fails the generation attempt. Out-of-bounds and path-command
issues are collected into validation results. External call errors are
retried, then routed to the fallback chain.
"""

from __future__ import annotations


class LayoutEngineError(Exception):
    """Base class for all layout engine errors."""


class UnknownRegion(LayoutEngineError, LookupError):
    """Region name is neither reserved nor registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown region: {name!r}")


class UnknownAnchor(LayoutEngineError, LookupError):
    """Anchor name is not one of the nine anchor points."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown anchor: {name!r}")


class InvalidCustomRegion(LayoutEngineError, ValueError):
    """Custom region collides with a reserved name or has a bad box."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid custom region {name!r}: {reason}")


class StructuralValidationError(LayoutEngineError):
    """Duplicate ids or invalid region references in a layer list."""

    def __init__(self, errors: list[str], offending_ids: list[str] | None = None) -> None:
        self.errors = list(errors)
        self.offending_ids = list(offending_ids or [])
        super().__init__("; ".join(self.errors) or "Structural validation failed")


class SchemaValidationError(LayoutEngineError):
    """Generated text is not a well-formed design document."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Schema validation failed")


class OutOfBoundsCoordinate(LayoutEngineError):
    """A coordinate pair lies outside the canvas."""

    def __init__(self, path_id: str, x: float, y: float) -> None:
        self.path_id = path_id
        self.x = x
        self.y = y
        super().__init__(f"Path {path_id!r} has coordinate ({x}, {y}) outside the canvas")


class InvalidPathCommand(LayoutEngineError, ValueError):
    """Unknown command letter or wrong coordinate arity."""

    def __init__(self, message: str, path_id: str = "") -> None:
        self.path_id = path_id
        super().__init__(message)


class InvalidMarkup(LayoutEngineError):
    """Emitted markup failed its syntax check."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid markup")


class ExternalCallTimeout(LayoutEngineError):
    """The generative service did not answer in time."""

    def __init__(self, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        super().__init__(f"Generation timed out after {timeout_s:g}s")


class ExternalCallFailure(LayoutEngineError):
    """The generative service failed or is not configured."""
