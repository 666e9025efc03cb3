"""
Section Engine Exceptions
=========================

Error taxonomy for the field resolver and the generation orchestrator.

Graph-level errors (cycles, unknown lookups) propagate to the caller.
Driver-level errors are captured by the orchestrator and reported per driver.
"""

from typing import Iterable, List, Optional


class SectionEngineError(Exception):
    """Base class for all engine errors."""
    pass


class CycleDetected(SectionEngineError):
    """
    Raised when field templates reference each other in a loop.

    Example:
        >>> raise CycleDetected(["industry", "service"])
        CycleDetected: Circular field dependencies detected: industry, service
    """

    def __init__(self, fields: Iterable[str]):
        self.fields: List[str] = list(fields)
        super().__init__(
            f"Circular field dependencies detected: {', '.join(self.fields)}"
        )


class DuplicateFieldError(SectionEngineError):
    """Raised when a field key is declared twice in one catalog."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Field '{key}' already exists in catalog")


class UnknownFieldError(SectionEngineError, KeyError):
    """Raised when a field key is not present in the catalog."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Field '{key}' not found in catalog")

    def __str__(self) -> str:
        return self.args[0]


class UnknownOutputTypeError(SectionEngineError, KeyError):
    """Raised when an output type id is not registered."""

    def __init__(self, output_type: str):
        self.output_type = output_type
        super().__init__(f"Output type '{output_type}' not found in registry")

    def __str__(self) -> str:
        return self.args[0]


class MalformedOutputError(SectionEngineError):
    """Structured model output did not match the requested schema."""
    pass


class DriverGenerationFailed(SectionEngineError):
    """
    Failure scoped to a single section driver.

    Never propagates out of the orchestrator: it is turned into a
    DriverFailure record on that driver's result slot.
    """

    def __init__(self, driver_name: str, cause: Optional[BaseException] = None):
        self.driver_name = driver_name
        self.cause = cause
        reason = str(cause) if cause is not None and str(cause) else type(cause).__name__
        super().__init__(f"Driver '{driver_name}' failed: {reason}")


class MissingPromptTemplateError(SectionEngineError, ValueError):
    """Raised when an output type has no drivers and no prompt template to generate from."""

    def __init__(self, output_type: str):
        self.output_type = output_type
        super().__init__(f"Output type '{output_type}' has no drivers and no prompt template")
