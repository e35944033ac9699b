import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from chatwidget.core.config import Settings
from chatwidget.core.errors import CompletionError, CompletionErrorKind

logger = logging.getLogger(__name__)


def classify_completion_error(error: Exception) -> CompletionErrorKind:
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return CompletionErrorKind.AUTH
    if isinstance(error, openai.RateLimitError):
        return CompletionErrorKind.RATE_LIMITED
    # Proxies and older gateways only report these in the message text
    text = str(error)
    if "API key" in text:
        return CompletionErrorKind.AUTH
    if "quota" in text:
        return CompletionErrorKind.RATE_LIMITED
    return CompletionErrorKind.GENERIC


class CompletionClient:
    """Thin wrapper over the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
        client=None,
    ):
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            temperature=settings.COMPLETION_TEMPERATURE,
            max_tokens=settings.COMPLETION_MAX_TOKENS,
        )

    def build_messages(self, system_prompt: str, message: str, history: Optional[str] = None) -> list[dict]:
        content = message
        if history:
            content = f"Recent conversation:\n{history}\n\n{message}"
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": content},
        ]

    async def generate(self, system_prompt: str, message: str, history: Optional[str] = None) -> str:
        """
        Generates a reply for `message` under `system_prompt`.

        Raises:
            CompletionError: with kind AUTH, RATE_LIMITED or GENERIC.
        """
        messages = self.build_messages(system_prompt, message, history)
        logger.info(f"Sending completion request to OpenAI ({self.model})")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            kind = classify_completion_error(e)
            logger.error(f"Completion error ({kind.value}): {str(e)}")
            raise CompletionError(kind, str(e)) from e

        text = response.choices[0].message.content if response.choices else None
        if not text:
            logger.error("Completion returned an empty reply")
            raise CompletionError(CompletionErrorKind.GENERIC, "empty completion")
        return text.strip()
