"""
OpenAI client wrapper for structured and free-text generation.

Provides the CompletionClient class used by every generation-backed
planning stage. The client is constructed once (usually from Settings)
and passed explicitly to the services that need it.

Retry policy lives here and nowhere else:
- A model that rejects JSON mode is retried once without it.
- Output that is not valid JSON, or does not match the response model,
  is fed back with a corrective instruction up to ``retries`` times.
- Authentication, permission and quota errors propagate immediately.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Type, TypeVar

from openai import AsyncOpenAI, BadRequestError
from pydantic import BaseModel, ValidationError

from application.exceptions import EmptyResponse, MalformedOutput, ServiceUnavailable
from application.ports import ChatMessage
from core.constants import PLACEHOLDER_API_KEYS

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

CORRECTIVE_PROMPT = """You returned invalid JSON ({error}).
Please respond ONLY with valid JSON matching this schema:
{schema}

No prose, no explanations, just JSON."""

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass
class CompletionOptions:
    """Per-call generation options."""

    temperature: float = 0.7
    max_tokens: int = 2000
    retries: int = 2


class CompletionClient:
    """
    Thin wrapper around the OpenAI chat completions API.

    Offers JSON generation validated against a pydantic model, plain text
    generation, and a cheap availability check that gates fallbacks.
    """

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_TIMEOUT_SECONDS = 60.0
    TEXT_MAX_TOKENS = 1000

    def __init__(
        self,
        api_key: Optional[str],
        default_model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the completion client.

        Args:
            api_key: OpenAI API key; None or a placeholder disables generation
            default_model: Model used when a caller does not name one
            base_url: Optional OpenAI-compatible endpoint
            timeout: Per-request timeout in seconds
            client: Pre-built AsyncOpenAI instance (mainly for tests)
        """
        self._api_key = (api_key or "").strip()
        self._default_model = default_model
        self._client = client

        if self._client is None and self.is_available():
            # SDK-level retries are disabled; this class owns the retry policy
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )

    @classmethod
    def from_settings(cls, settings) -> "CompletionClient":
        """Build a client from application Settings."""
        return cls(
            api_key=settings.openai_api_key,
            default_model=settings.planner_model,
            base_url=settings.openai_base_url,
            timeout=settings.completion_timeout_seconds,
        )

    @property
    def default_model(self) -> str:
        """Model used when a caller does not name one."""
        return self._default_model

    def is_available(self) -> bool:
        """True iff a usable API key is configured. Never touches the network."""
        return self._api_key not in PLACEHOLDER_API_KEYS

    async def generate_structured(
        self,
        model: str,
        messages: List[ChatMessage],
        response_model: Type[T],
        schema_description: Optional[str] = None,
        options: Optional[CompletionOptions] = None,
    ) -> T:
        """
        Generate JSON output validated against ``response_model``.

        Args:
            model: Model identifier
            messages: Conversation messages; the list is copied, never mutated
            response_model: Pydantic model describing the expected shape
            schema_description: Schema text for corrective retries
                (defaults to the model's JSON schema)
            options: Temperature, max tokens and parse retry count

        Returns:
            Validated response_model instance

        Raises:
            ServiceUnavailable: If no API key is configured
            MalformedOutput: If output cannot be parsed after all retries
            EmptyResponse: If the service returns no content
        """
        self._ensure_available()
        options = options or CompletionOptions()
        schema_text = schema_description or json.dumps(
            response_model.model_json_schema(), indent=2
        )

        conversation = [dict(message) for message in messages]
        use_json_mode = True
        parse_retries_used = 0

        while True:
            try:
                content = await self._call_llm(
                    model, conversation, options, json_mode=use_json_mode
                )
            except BadRequestError as e:
                if use_json_mode and self._is_response_format_error(e):
                    logger.warning(
                        f"Model {model} rejected JSON mode, retrying without it: {e}"
                    )
                    use_json_mode = False
                    continue
                raise

            try:
                return self._parse_response(content, response_model)
            except (json.JSONDecodeError, ValidationError) as e:
                if parse_retries_used >= options.retries:
                    raise MalformedOutput(
                        f"Failed to get valid JSON response after "
                        f"{parse_retries_used + 1} attempts: {e}",
                        last_error=e,
                        raw_content=content,
                    ) from e

                parse_retries_used += 1
                logger.warning(
                    f"JSON parse failed (attempt {parse_retries_used}/"
                    f"{options.retries + 1}), retrying with correction: {e}"
                )
                conversation.append({"role": "assistant", "content": content})
                conversation.append(
                    {
                        "role": "user",
                        "content": CORRECTIVE_PROMPT.format(
                            error=self._short_error(e), schema=schema_text
                        ),
                    }
                )

    async def generate_text(
        self,
        model: str,
        messages: List[ChatMessage],
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """
        Generate free text (no JSON mode, no parse retries).

        Raises:
            ServiceUnavailable: If no API key is configured
            EmptyResponse: If the service returns no content
        """
        self._ensure_available()
        options = options or CompletionOptions(max_tokens=self.TEXT_MAX_TOKENS)
        conversation = [dict(message) for message in messages]
        return await self._call_llm(model, conversation, options, json_mode=False)

    async def _call_llm(
        self,
        model: str,
        messages: List[ChatMessage],
        options: CompletionOptions,
        json_mode: bool,
    ) -> str:
        """
        Call the OpenAI API.

        Returns:
            Raw response content

        Raises:
            EmptyResponse: If the response has no content
            openai.APIError: Transport and API errors pass through
        """
        request = {
            "model": model,
            "messages": messages,
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        logger.debug(f"Calling {model} with {len(messages)} messages (json_mode={json_mode})")
        response = await self._client.chat.completions.create(**request)

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EmptyResponse("Empty response from completion service")

        return content

    def _parse_response(self, raw_response: str, response_model: Type[T]) -> T:
        """
        Parse and validate a raw response.

        Raises:
            json.JSONDecodeError: If the content is not JSON
            ValidationError: If the JSON does not match response_model
        """
        text = raw_response.strip()
        fenced = _CODE_FENCE.match(text)
        if fenced:
            text = fenced.group(1)

        data = json.loads(text)
        return response_model.model_validate(data)

    def _ensure_available(self) -> None:
        if not self.is_available() or self._client is None:
            raise ServiceUnavailable(
                "Completion service not available. Check OPENAI_API_KEY."
            )

    @staticmethod
    def _is_response_format_error(error: BadRequestError) -> bool:
        """Detect a rejection of the response_format parameter."""
        if getattr(error, "param", None) == "response_format":
            return True
        return "response_format" in str(error)

    @staticmethod
    def _short_error(error: Exception) -> str:
        first_line = str(error).splitlines()[0] if str(error) else type(error).__name__
        return first_line[:200]
