"""Dual-backend LLM client for IncidentFusion.

Provides a backend-agnostic interface to the narrative/sentiment collaborator
that dispatches to either the Anthropic API or Ollama depending on
PipelineConfig.llm_backend.

Consumers receive an LLMClient at construction; never import anthropic or
ollama directly from agent code.

Rules:
- Always request JSON-only output; parse defensively (strip fences, take the
  first top-level object).
- Calls are single-shot. Transport failures raise CollaboratorUnavailable and
  retry policy belongs to the orchestrating layer.
- min_max_tokens: always set max_tokens >= 256 for structured extraction calls.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, Optional

from config.defaults import (
    LLM_DEFAULT_MAX_TOKENS,
    LLM_MIN_MAX_TOKENS,
    LLM_TEMPERATURE,
)
from incidentfusion.exceptions import CollaboratorUnavailable

if TYPE_CHECKING:
    from config.settings import PipelineConfig

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?")

JSON_ONLY_SUFFIX = (
    "\n\nReturn only valid JSON. Do not include any explanation or markdown fences."
)


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Extract the first top-level JSON object from a collaborator response.

    Strips markdown code fences, then decodes the object starting at the first
    '{'. Trailing prose after the object is ignored.

    Args:
        text: Raw LLM output string.

    Returns:
        Parsed dict, or None if no decodable object is present.
    """
    if not text:
        return None

    cleaned = _FENCE_RE.sub("", text)
    start = cleaned.find("{")
    if start == -1:
        return None
    try:
        parsed, _ = json.JSONDecoder().raw_decode(cleaned[start:])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class LLMClient:
    """Backend-agnostic LLM client.

    Dispatches to Anthropic or Ollama based on the configured backend.

    Args:
        backend: LLM backend name ("anthropic" or "ollama").
        anthropic_model: Anthropic model ID.
        ollama_model: Ollama model name.
        ollama_host: Ollama server URL.
        ollama_api_key: Ollama Cloud API key for Bearer token auth. Leave
            empty for local Ollama instances that do not require authentication.
        anthropic_api_key: Anthropic API key (from environment).
        min_max_tokens: Lower bound applied to every max_tokens request.
    """

    def __init__(
        self,
        backend: str = "ollama",
        anthropic_model: str = "claude-sonnet-4-6",
        ollama_model: str = "gemma3:27b",
        ollama_host: str = "http://localhost:11434",
        ollama_api_key: str = "",
        anthropic_api_key: Optional[str] = None,
        min_max_tokens: int = LLM_MIN_MAX_TOKENS,
    ) -> None:
        self.backend = backend.lower()
        self.anthropic_model = anthropic_model
        self.ollama_model = ollama_model
        self.ollama_host = ollama_host
        self.ollama_api_key = ollama_api_key
        self.anthropic_api_key = anthropic_api_key
        self.min_max_tokens = min_max_tokens
        self._anthropic_client: Optional[Any] = None
        self._ollama_client: Optional[Any] = None

    @classmethod
    def from_config(cls, config: "PipelineConfig") -> "LLMClient":
        """Build a client from a PipelineConfig."""
        return cls(
            backend=config.llm_backend,
            anthropic_model=config.anthropic_model,
            ollama_model=config.ollama_model,
            ollama_host=config.ollama_host,
            ollama_api_key=config.ollama_api_key,
            anthropic_api_key=config.anthropic_api_key,
            min_max_tokens=config.llm_min_max_tokens,
        )

    @property
    def model_name(self) -> str:
        return self.anthropic_model if self.backend == "anthropic" else self.ollama_model

    def _get_anthropic_client(self) -> Any:
        """Lazily initialize and return the Anthropic client."""
        if self._anthropic_client is None:
            try:
                import anthropic  # type: ignore[import]
            except ImportError:
                raise ImportError(
                    "anthropic package is required for the Anthropic backend. "
                    "Install with: pip install anthropic"
                )
            self._anthropic_client = anthropic.Anthropic(api_key=self.anthropic_api_key)
        return self._anthropic_client

    def _get_ollama_client(self) -> Any:
        """Lazily initialize and return the Ollama client.

        When ollama_api_key is set, passes an Authorization: Bearer header
        for Ollama Cloud authentication.
        """
        if self._ollama_client is None:
            try:
                import ollama  # type: ignore[import]
            except ImportError:
                raise ImportError(
                    "ollama package is required for the Ollama backend. "
                    "Install with: pip install ollama"
                )
            kwargs: dict = {"host": self.ollama_host}
            if self.ollama_api_key:
                kwargs["headers"] = {"Authorization": f"Bearer {self.ollama_api_key}"}
            self._ollama_client = ollama.Client(**kwargs)
        return self._ollama_client

    # ── Backend calls ──────────────────────────────────────────────────────────

    def _call_anthropic(
        self,
        system: str,
        content: Any,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Execute a call against the Anthropic Messages API.

        Args:
            system: System prompt string.
            content: User message content (string or list of content blocks).
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.

        Returns:
            Response text string.
        """
        client = self._get_anthropic_client()
        response = client.messages.create(
            model=self.anthropic_model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": content}],
        )
        if response.content and len(response.content) > 0:
            return response.content[0].text or ""
        return ""

    def _call_ollama(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
        images: Optional[list] = None,
    ) -> str:
        """Execute a call against the Ollama chat API.

        Args:
            system: System prompt string.
            prompt: User message/prompt string.
            max_tokens: Maximum tokens to generate (num_predict).
            temperature: Sampling temperature.
            images: Optional list of raw image bytes for vision models.

        Returns:
            Response text string.
        """
        client = self._get_ollama_client()
        user_message: Dict[str, Any] = {"role": "user", "content": prompt}
        if images:
            user_message["images"] = images
        response = client.chat(
            model=self.ollama_model,
            messages=[
                {"role": "system", "content": system},
                user_message,
            ],
            options={
                "num_predict": max_tokens,
                "temperature": temperature,
            },
        )
        if response and hasattr(response, "message") and response.message:
            return response.message.content or ""
        return ""

    def _dispatch(self, fn, *args) -> str:
        try:
            return fn(*args)
        except ImportError:
            raise
        except Exception as exc:
            logger.error("LLM call to %s backend failed: %s", self.backend, exc)
            raise CollaboratorUnavailable(
                f"{self.backend} backend call failed: {exc}"
            ) from exc

    # ── Public interface ───────────────────────────────────────────────────────

    def call(
        self,
        system: str,
        prompt: str,
        max_tokens: int = LLM_DEFAULT_MAX_TOKENS,
        temperature: float = LLM_TEMPERATURE,
    ) -> str:
        """Execute a single text LLM call.

        Args:
            system: System prompt string.
            prompt: User message/prompt string.
            max_tokens: Maximum tokens to generate (raised to min_max_tokens).
            temperature: Sampling temperature.

        Returns:
            Response text string (possibly empty).

        Raises:
            CollaboratorUnavailable: On any transport or API failure.
        """
        max_tokens = max(max_tokens, self.min_max_tokens)
        if self.backend == "anthropic":
            return self._dispatch(self._call_anthropic, system, prompt, max_tokens, temperature)
        return self._dispatch(self._call_ollama, system, prompt, max_tokens, temperature)

    def call_with_image(
        self,
        system: str,
        prompt: str,
        image_bytes: bytes,
        mime_type: str = "image/jpeg",
        max_tokens: int = LLM_DEFAULT_MAX_TOKENS,
        temperature: float = LLM_TEMPERATURE,
    ) -> str:
        """Execute a single vision call with one inline image.

        Args:
            system: System prompt string.
            prompt: Instruction text accompanying the image.
            image_bytes: Raw image content.
            mime_type: Image media type (e.g. "image/jpeg", "image/png").
            max_tokens: Maximum tokens to generate (raised to min_max_tokens).
            temperature: Sampling temperature.

        Returns:
            Response text string (possibly empty).

        Raises:
            CollaboratorUnavailable: On any transport or API failure.
        """
        max_tokens = max(max_tokens, self.min_max_tokens)
        if self.backend == "anthropic":
            content = [
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": mime_type,
                        "data": base64.b64encode(image_bytes).decode("ascii"),
                    },
                },
                {"type": "text", "text": prompt},
            ]
            return self._dispatch(self._call_anthropic, system, content, max_tokens, temperature)
        return self._dispatch(
            self._call_ollama, system, prompt, max_tokens, temperature, [image_bytes]
        )

    def call_json(
        self,
        system: str,
        prompt: str,
        max_tokens: int = LLM_DEFAULT_MAX_TOKENS,
        temperature: float = LLM_TEMPERATURE,
    ) -> Optional[Dict[str, Any]]:
        """Execute an LLM call and defensively parse a JSON object from the response.

        Appends a JSON-only instruction to the system prompt.

        Args:
            system: System prompt string.
            prompt: User message/prompt string.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.

        Returns:
            Parsed dict, or None on parse failure.

        Raises:
            CollaboratorUnavailable: On any transport or API failure.
        """
        raw = self.call(system.rstrip() + JSON_ONLY_SUFFIX, prompt, max_tokens, temperature)
        parsed = extract_json_object(raw)
        if parsed is None:
            logger.warning("LLM JSON parse failed. Raw response (first 200 chars): %.200s", raw)
        return parsed
