"""
Application-layer exceptions.

These exceptions are used across the completion client, the planning
services and the HTTP layer.
"""

from typing import Optional


class CompletionError(Exception):
    """Base class for failures talking to the text-generation service."""

    pass


class ServiceUnavailable(CompletionError):
    """No credential or configuration for the text-generation service.

    Callers treat this as a signal to use their deterministic fallback;
    it is never surfaced to the athlete.
    """

    pass


class EmptyResponse(CompletionError):
    """The service answered without any content."""

    pass


class MalformedOutput(CompletionError):
    """The service's output could not be parsed after all retries.

    Carries the last parse error and the raw content that caused it.
    """

    def __init__(
        self,
        message: str,
        last_error: Optional[Exception] = None,
        raw_content: Optional[str] = None,
    ):
        super().__init__(message)
        self.last_error = last_error
        self.raw_content = raw_content


class PlanningError(Exception):
    """The planning pipeline could not produce a complete plan.

    The caller either gets a complete CompiledPlan or this error,
    never a partially populated plan.
    """

    pass


class PlanningTimeout(PlanningError):
    """The planning call exceeded its caller-supplied time budget."""

    pass
