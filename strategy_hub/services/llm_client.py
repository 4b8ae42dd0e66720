# strategy_hub/services/llm_client.py
"""
Text-generation client for an OpenAI-compatible chat-completions endpoint
(Groq by default).
"""
from typing import Optional

import httpx

from ..utils.config import Settings
from ..utils.error_handler import ConfigurationError, UpstreamServiceError
from ..utils.logger import log_structured

DEFAULT_ERROR_MESSAGE = "Failed to generate strategy"


def extract_error_message(response: httpx.Response) -> str:
    """Best effort: the JSON body's error.message, else a generic message."""
    try:
        body = response.json()
    except ValueError:
        return DEFAULT_ERROR_MESSAGE
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            return error["message"]
    return DEFAULT_ERROR_MESSAGE


class TextGenerationClient:
    """Prompt in, text out. Returns the first choice's message content."""

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str,
        model: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextGenerationClient":
        return cls(
            api_key=settings.generation_api_key,
            api_url=settings.generation_api_url,
            model=settings.generation_model,
            timeout=settings.generation_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError("AI service not configured")

    def complete(self, system_prompt: str, user_prompt: str,
                 temperature: float = 0.7, max_tokens: int = 2000) -> str:
        self.ensure_configured()
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            response = self.client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = extract_error_message(e.response)
            log_structured("generation_upstream_error",
                           {"status": e.response.status_code, "message": message}, level="ERROR")
            raise UpstreamServiceError(message)
        except httpx.HTTPError as e:
            log_structured("generation_upstream_error", {"error": type(e).__name__}, level="ERROR")
            raise UpstreamServiceError(DEFAULT_ERROR_MESSAGE)

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError):
            return ""

    def close(self) -> None:
        self.client.close()
