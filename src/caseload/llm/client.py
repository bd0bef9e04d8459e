"""LLM client for Gemini (and other OpenAI-compatible providers).

Provides a unified interface for LLM interactions through the OpenAI SDK.
Gemini is reached through its OpenAI-compatible endpoint.

Model selection walks a list of candidate model names in order and moves
on only when the provider answers 404 for a model; any other failure stops
immediately and is mapped to a user-facing message.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog
from openai import APIConnectionError, APIStatusError, OpenAI

from caseload.config.app_config import AIConfig, load_app_config

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

Provider = Literal["gemini", "openai", "lmstudio"]

# Provider-specific defaults
PROVIDER_DEFAULTS: dict[Provider, dict[str, Any]] = {
    "gemini": {
        "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "api_key_env": "GEMINI_API_KEY",
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
    },
    "lmstudio": {
        "base_url": "http://localhost:1234/v1",
        "api_key": "lm-studio",
    },
}

# Alias models that resolve to whatever Google currently ships; skipped when
# building the candidate list because they are often unavailable on free keys
SKIPPED_MODEL_ALIASES = ("gemini-pro-latest", "gemini-flash-latest")

# Listed models that cannot serve text chat completions
NON_CHAT_MODEL_MARKERS = ("embedding", "tts", "image")

# User-facing messages for the final failure
MESSAGE_NO_MODELS = "No available Gemini models found. Please check your API key permissions."
MESSAGE_INVALID_KEY = "Invalid API key. Please check your API key in Settings."
MESSAGE_NO_PERMISSION = (
    "API key does not have permission. Please enable Gemini API in Google Cloud Console."
)

JSON_REPAIR_PROMPT = """Fix and return ONLY valid JSON from this text:
<<<
{invalid_output}
>>>

Reply with the corrected JSON only, no explanations and no markdown."""

# Patterns to sanitize from LLM output (thinking tags, etc.)
SANITIZE_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]


def sanitize_output(text: str) -> str:
    """Remove thinking/reasoning tags and surrounding whitespace."""
    result = text
    for pattern in SANITIZE_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: Provider = "gemini"
    base_url: str = PROVIDER_DEFAULTS["gemini"]["base_url"]
    models: list[str] = field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: int = 120
    api_key: str | None = None

    @classmethod
    def from_app_config(
        cls, ai: AIConfig | None = None, api_key: str | None = None
    ) -> LLMConfig:
        """Build client config from the application's AI settings.

        Args:
            ai: AI section of the app config (loaded when omitted)
            api_key: Key supplied by the caller; falls back to the
                provider's environment variable
        """
        if ai is None:
            ai = load_app_config().ai

        defaults = PROVIDER_DEFAULTS.get(ai.provider, {})  # type: ignore[call-overload]
        return cls(
            provider=ai.provider,  # type: ignore[arg-type]
            base_url=ai.base_url or defaults.get("base_url", ""),
            models=list(ai.fallback_models),
            temperature=ai.temperature,
            max_tokens=ai.max_tokens,
            timeout=ai.timeout,
            api_key=api_key or ai.get_api_key() or defaults.get("api_key"),
        )


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: Provider
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        """Get total token count."""
        return self.usage.get("total_tokens", 0)


class LLMError(Exception):
    """Error during LLM interaction.

    ``message`` is safe to show to the user; ``status_code`` is the
    provider's HTTP status when there was one.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LLMConnectionError(LLMError):
    """Error connecting to LLM server."""

    pass


class LLMResponseError(LLMError):
    """Error in LLM response (empty, or not the JSON we asked for)."""

    pass


class LLMModelNotFoundError(LLMError):
    """None of the candidate models exist for this key."""

    pass


class LLMAuthenticationError(LLMError):
    """API key rejected (401) or lacking permission (403)."""

    pass


def _status_code(error: Exception) -> int | None:
    """HTTP status of a provider error, also sniffing the message text."""
    if isinstance(error, APIStatusError):
        return error.status_code
    text = str(error)
    for code in (401, 403, 404):
        if str(code) in text:
            return code
    if "not found" in text.lower():
        return 404
    return None


def map_llm_error(error: Exception, action: str) -> LLMError:
    """Translate a provider exception into a user-facing LLMError.

    Args:
        error: Exception raised by the OpenAI SDK
        action: What was being attempted, e.g. "generate session plan"

    Returns:
        LLMError subclass carrying the user message
    """
    if isinstance(error, LLMError):
        return error
    if isinstance(error, APIConnectionError):
        return LLMConnectionError(f"Failed to {action}: could not reach the AI service")

    code = _status_code(error)
    if code == 404:
        return LLMModelNotFoundError(MESSAGE_NO_MODELS, status_code=404)
    if code == 401:
        return LLMAuthenticationError(MESSAGE_INVALID_KEY, status_code=401)
    if code == 403:
        return LLMAuthenticationError(MESSAGE_NO_PERMISSION, status_code=403)
    return LLMError(f"Failed to {action}: {error}", status_code=code)


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Unified client for LLM interactions.

    Supports Gemini, OpenAI and LM Studio via the OpenAI-compatible API.
    """

    def __init__(self, config: LLMConfig | None = None, api_key: str | None = None):
        """Initialize LLM client.

        Args:
            config: LLM configuration (built from app config if not provided)
            api_key: Override the configured API key
        """
        if config is None:
            config = LLMConfig.from_app_config(api_key=api_key)
        elif api_key:
            config.api_key = api_key

        self.config = config
        self._candidates: list[str] | None = None

        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
        )

        logger.info(
            "llm.client_initialized",
            provider=self.config.provider,
            base_url=self.config.base_url,
        )

    def candidate_models(self) -> list[str]:
        """Model names to try, in order.

        For Gemini the provider's model listing is used, minus the
        ``-latest`` aliases and the embedding, TTS and image models. When
        the listing fails or is empty, the configured fallback list is used.
        """
        if self._candidates is not None:
            return self._candidates

        candidates: list[str] = []
        if self.config.provider == "gemini":
            try:
                for model in self._client.models.list():
                    name = model.id.removeprefix("models/")
                    if "gemini" not in name:
                        continue
                    if any(alias in name for alias in SKIPPED_MODEL_ALIASES):
                        continue
                    if any(marker in name for marker in NON_CHAT_MODEL_MARKERS):
                        continue
                    candidates.append(name)
            except Exception as e:
                logger.warning("llm.model_listing_failed", error=str(e))

        if not candidates:
            candidates = list(self.config.models) or ["default"]

        self._candidates = candidates
        return candidates

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        action: str = "generate content",
    ) -> LLMResponse:
        """Send chat completion request, falling back across models on 404.

        Args:
            messages: List of messages in conversation
            temperature: Override default temperature
            max_tokens: Override default max tokens
            action: Short description used in error messages

        Returns:
            LLMResponse with content and metadata

        Raises:
            LLMModelNotFoundError: If every candidate model returned 404
            LLMAuthenticationError: If the key is invalid or lacks permission
            LLMConnectionError: If the server cannot be reached
            LLMResponseError: If the response is empty
            LLMError: For any other provider failure
        """
        if temperature is None:
            temperature = self.config.temperature
        if max_tokens is None:
            max_tokens = self.config.max_tokens

        last_error: Exception | None = None
        for model in self.candidate_models():
            start_time = time.time()
            try:
                response = self._client.chat.completions.create(
                    model=model,
                    messages=[m.to_dict() for m in messages],
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as e:
                last_error = e
                if _status_code(e) == 404:
                    logger.info("llm.model_not_found", model=model)
                    continue
                break

            latency_ms = int((time.time() - start_time) * 1000)
            if not response.choices:
                raise LLMResponseError(f"Failed to {action}: empty response from model")

            content = response.choices[0].message.content or ""
            usage = {}
            if response.usage:
                usage = {
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }

            logger.debug(
                "llm.response",
                provider=self.config.provider,
                model=model,
                tokens=usage.get("total_tokens", 0),
                latency_ms=latency_ms,
            )
            return LLMResponse(
                content=content,
                model=response.model or model,
                provider=self.config.provider,
                usage=usage,
                latency_ms=latency_ms,
            )

        error = map_llm_error(last_error or Exception("no models to try"), action)
        logger.warning("llm.request_failed", action=action, error=error.message)
        raise error

    def _try_parse_json(self, content: str) -> dict[str, Any] | None:
        """Try to parse JSON from content, with multiple extraction strategies.

        Tries:
        1. Direct parse
        2. Extract from ```json ... ``` blocks
        3. Extract first {...} object

        Returns parsed dict or None if all strategies fail.
        """
        content = sanitize_output(content)

        try:
            parsed = json.loads(content)
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            pass

        json_match = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
        if json_match:
            try:
                return json.loads(json_match.group(1).strip())
            except json.JSONDecodeError:
                pass

        start = content.find("{")
        end = content.rfind("}") + 1
        if start >= 0 and end > start:
            try:
                return json.loads(content[start:end])
            except json.JSONDecodeError:
                pass

        return None

    def chat_json(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_retries: int = 1,
        action: str = "generate content",
    ) -> dict[str, Any]:
        """Send chat request expecting a JSON object back.

        Uses robust parsing with one repair round-trip on failure.

        Raises:
            LLMResponseError: If response is not valid JSON after retries
        """
        response = self.chat(messages, temperature, max_tokens, action=action)
        parsed = self._try_parse_json(response.content)
        if parsed is not None:
            return parsed

        if max_retries > 0:
            logger.warning("llm.json_parse_failed_retrying", content=response.content[:100])
            repair_prompt = JSON_REPAIR_PROMPT.format(invalid_output=response.content[:1000])
            retry_response = self.chat(
                messages + [Message(role="user", content=repair_prompt)],
                temperature,
                max_tokens,
                action=action,
            )
            parsed = self._try_parse_json(retry_response.content)
            if parsed is not None:
                logger.info("llm.json_parse_recovered")
                return parsed

        raise LLMResponseError(f"Failed to {action}: the model did not return valid JSON")

    def simple_chat(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        action: str = "generate content",
    ) -> LLMResponse:
        """Single-turn chat with a system prompt and a user message."""
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]
        return self.chat(messages, temperature, max_tokens, action=action)

    def simple_json(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        action: str = "generate content",
    ) -> dict[str, Any]:
        """Single-turn chat expecting a JSON object."""
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]
        return self.chat_json(messages, temperature, max_tokens, action=action)
