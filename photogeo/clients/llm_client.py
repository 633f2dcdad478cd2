"""Dual-backend multimodal LLM client for PhotoGeo.

Provides a backend-agnostic call_vision() interface that sends one image plus
a text prompt to either the Anthropic API or Ollama, depending on
LocatorConfig.llm_backend.

Analysis code calls this client; it never imports anthropic or ollama directly.

Rules:
- Structured calls request JSON-only output and parse it defensively
  (strip fences, find the object boundaries).
- Credentials are checked before any network call.
- No retries: one request per call, failures return None.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from photogeo.errors import AIAnalysisFailure

logger = logging.getLogger(__name__)

_JSON_ONLY_INSTRUCTION = (
    "Return only valid JSON. Do not include any explanation or markdown fences."
)


def _safe_parse_llm_json(text: str) -> Optional[Dict[str, Any]]:
    """Defensively parse LLM JSON output into an object.

    Strips markdown code fences, then searches for the outermost JSON object
    boundaries and parses only that portion.

    Args:
        text: Raw LLM output string.

    Returns:
        Parsed dict, or None on failure or when the payload is not an object.
    """
    if not text:
        return None

    text = re.sub(r"```(?:json)?\s*", "", text).strip().rstrip("`").strip()

    s = text.find("{")
    e = text.rfind("}")
    if s == -1 or e <= s:
        return None
    try:
        parsed = json.loads(text[s : e + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _is_ollama_cloud(host: str) -> bool:
    return "ollama.com" in (host or "").lower()


class LLMClient:
    """Backend-agnostic multimodal LLM client.

    Args:
        backend: LLM backend name ("anthropic" or "ollama").
        anthropic_model: Anthropic model ID (must accept image input).
        ollama_model: Ollama model name (must be a vision model).
        ollama_host: Ollama server URL.
        ollama_api_key: Ollama Cloud API key for Bearer token auth. Required when
            ollama_host points to Ollama Cloud (https://api.ollama.com). Leave
            empty for local Ollama instances.
        anthropic_api_key: Anthropic API key.
        temperature: Default sampling temperature.
        max_tokens: Default generation budget (floored at LLM_MIN_MAX_TOKENS).
    """

    def __init__(
        self,
        backend: str = "ollama",
        anthropic_model: str = "claude-sonnet-4-6",
        ollama_model: str = "gemma3:27b",
        ollama_host: str = "http://localhost:11434",
        ollama_api_key: str = "",
        anthropic_api_key: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 1024,
    ) -> None:
        self.backend = backend.lower()
        self.anthropic_model = anthropic_model
        self.ollama_model = ollama_model
        self.ollama_host = ollama_host
        self.ollama_api_key = ollama_api_key
        self.anthropic_api_key = anthropic_api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._anthropic_client: Optional[Any] = None
        self._ollama_client: Optional[Any] = None

    @classmethod
    def from_config(cls, config: Any) -> "LLMClient":
        """Build a client from a LocatorConfig, credentials included."""
        return cls(
            backend=config.llm_backend,
            anthropic_model=config.anthropic_model,
            ollama_model=config.ollama_model,
            ollama_host=config.ollama_host,
            ollama_api_key=config.ollama_api_key,
            anthropic_api_key=config.anthropic_api_key,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
        )

    @property
    def model_name(self) -> str:
        return self.anthropic_model if self.backend == "anthropic" else self.ollama_model

    # ── Credentials ───────────────────────────────────────────────────────────

    def missing_credential(self) -> Optional[str]:
        """Name of the environment variable the backend still needs, if any."""
        if self.backend == "anthropic" and not self.anthropic_api_key:
            return "ANTHROPIC_API_KEY"
        if self.backend == "ollama" and _is_ollama_cloud(self.ollama_host) and not self.ollama_api_key:
            return "OLLAMA_API_KEY"
        return None

    def require_credentials(self) -> None:
        """Raise before any network call when the backend lacks its credential.

        Raises:
            AIAnalysisFailure: The required API key is not configured.
        """
        missing = self.missing_credential()
        if missing:
            raise AIAnalysisFailure(
                f"{missing} is not set; it is required for the {self.backend} backend"
            )

    # ── Backend clients ───────────────────────────────────────────────────────

    def _get_anthropic_client(self) -> Any:
        """Lazily initialize and return the Anthropic client."""
        if self._anthropic_client is None:
            import anthropic

            self._anthropic_client = anthropic.Anthropic(api_key=self.anthropic_api_key)
        return self._anthropic_client

    def _get_ollama_client(self) -> Any:
        """Lazily initialize and return the Ollama client.

        When ollama_api_key is set, passes an Authorization: Bearer header
        for Ollama Cloud authentication.
        """
        if self._ollama_client is None:
            import ollama

            kwargs: dict = {"host": self.ollama_host}
            if self.ollama_api_key:
                kwargs["headers"] = {"Authorization": f"Bearer {self.ollama_api_key}"}
            self._ollama_client = ollama.Client(**kwargs)
        return self._ollama_client

    def _call_anthropic(
        self,
        system: str,
        prompt: str,
        image_b64: str,
        media_type: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Execute a single image + text call against the Anthropic Messages API."""
        client = self._get_anthropic_client()
        response = client.messages.create(
            model=self.anthropic_model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": media_type,
                                "data": image_b64,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        if response.content and len(response.content) > 0:
            return getattr(response.content[0], "text", "") or ""
        return ""

    def _call_ollama(
        self,
        system: str,
        prompt: str,
        image_b64: str,
        schema: Optional[Dict[str, Any]],
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Execute a single image + text call against the Ollama chat API.

        When a JSON schema is given it is passed as `format` so the model is
        constrained to the structured shape.
        """
        client = self._get_ollama_client()
        kwargs: Dict[str, Any] = {
            "model": self.ollama_model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt, "images": [image_b64]},
            ],
            "options": {"num_predict": max_tokens, "temperature": temperature},
        }
        if schema is not None:
            kwargs["format"] = schema
        response = client.chat(**kwargs)
        if response and hasattr(response, "message") and response.message:
            return response.message.content or ""
        return ""

    # ── Public interface ──────────────────────────────────────────────────────

    def call_vision(
        self,
        system: str,
        prompt: str,
        image_b64: str,
        media_type: str = "image/jpeg",
        schema: Optional[Dict[str, Any]] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Optional[str]:
        """Send one base64 image plus a prompt and return the raw text reply.

        Args:
            system: System prompt string.
            prompt: User prompt accompanying the image.
            image_b64: Base64-encoded image bytes.
            media_type: MIME type of the image (Anthropic needs it explicitly).
            schema: Optional JSON schema (used as Ollama's `format`).
            max_tokens: Generation budget (minimum: LLM_MIN_MAX_TOKENS).
            temperature: Sampling temperature.

        Returns:
            Response text, or None on a backend error or empty reply.
        """
        from config.defaults import LLM_MIN_MAX_TOKENS

        max_tokens = max(max_tokens or self.max_tokens, LLM_MIN_MAX_TOKENS)
        temperature = self.temperature if temperature is None else temperature

        try:
            if self.backend == "anthropic":
                result = self._call_anthropic(
                    system, prompt, image_b64, media_type, max_tokens, temperature
                )
            else:
                result = self._call_ollama(
                    system, prompt, image_b64, schema, max_tokens, temperature
                )
        except Exception as exc:
            logger.error("LLM vision call failed (%s/%s): %s", self.backend, self.model_name, exc)
            return None

        if not result or not result.strip():
            logger.error("LLM returned an empty response (%s/%s)", self.backend, self.model_name)
            return None
        return result

    def call_vision_json(
        self,
        system: str,
        prompt: str,
        image_b64: str,
        media_type: str = "image/jpeg",
        schema: Optional[Dict[str, Any]] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """Vision call that defensively parses a JSON object reply.

        Appends a JSON-only instruction to the system prompt and, for the
        Anthropic backend, the schema itself.

        Returns:
            Parsed dict, or None on call or parse failure.
        """
        json_system = system.rstrip() + "\n\n" + _JSON_ONLY_INSTRUCTION
        if schema is not None and self.backend == "anthropic":
            json_system += "\nThe JSON must match this schema:\n" + json.dumps(schema)

        raw = self.call_vision(
            json_system, prompt, image_b64, media_type, schema, max_tokens, temperature
        )
        if raw is None:
            return None
        parsed = _safe_parse_llm_json(raw)
        if parsed is None:
            logger.warning("LLM JSON parse failed. Raw response (first 200 chars): %.200s", raw)
        return parsed
