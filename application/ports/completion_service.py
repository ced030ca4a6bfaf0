"""
Completion service port (interface).

This Protocol defines the contract every planning service relies on for
text generation. services.llm.client.CompletionClient is the production
implementation; tests substitute in-memory fakes.
"""

from typing import Dict, List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel

# {"role": "system" | "user" | "assistant", "content": "..."}
ChatMessage = Dict[str, str]

T = TypeVar("T", bound=BaseModel)


class CompletionService(Protocol):
    """Interface for a remote text-generation service."""

    def is_available(self) -> bool:
        """
        Report whether the service is configured.

        Must be cheap and side-effect free (no network call). Gates the
        choice between generated and deterministic behavior everywhere.
        """
        ...

    async def generate_structured(
        self,
        model: str,
        messages: List[ChatMessage],
        response_model: Type[T],
        schema_description: Optional[str] = None,
        options=None,
    ) -> T:
        """
        Generate JSON and validate it against ``response_model``.

        Args:
            model: Model identifier
            messages: Conversation so far (not mutated)
            response_model: Pydantic model the output must satisfy
            schema_description: Schema text used in corrective retries
            options: CompletionOptions (temperature, max_tokens, retries)

        Returns:
            Validated instance of ``response_model``

        Raises:
            ServiceUnavailable: No credential configured
            MalformedOutput: Output unparseable after retries
            EmptyResponse: No content returned
        """
        ...

    async def generate_text(
        self,
        model: str,
        messages: List[ChatMessage],
        options=None,
    ) -> str:
        """Generate free text."""
        ...

    @property
    def default_model(self) -> str:
        """Model used when a caller does not name one."""
        ...
