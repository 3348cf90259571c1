"""Dual-backend narrative client for DayFusion.

Implements NarrativeGenerator by prompting either the Anthropic API or an
Ollama server, depending on EngineConfig.llm_backend. Both SDKs are imported
lazily so the engine runs without them when narratives are not requested.

Rules:
- Always retry once on an empty response, doubling the token budget.
- Never raise from generate_narrative_text(): failures return None.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from config.defaults import (
    ANTHROPIC_MODEL,
    LLM_BACKEND,
    LLM_DEFAULT_MAX_TOKENS,
    LLM_MIN_MAX_TOKENS,
    LLM_TEMPERATURE,
    OLLAMA_HOST,
    OLLAMA_MODEL,
)
from config.settings import EngineConfig
from dayfusion.clients.base import NarrativeGenerator

logger = logging.getLogger(__name__)

NARRATIVE_SYSTEM_PROMPT = (
    "You write short, warm, first-person journal entries about someone's day. "
    "Use only the facts provided. Do not invent places, people or numbers. "
    "Write two or three short paragraphs of plain prose without headings or lists."
)

NARRATIVE_STYLES = {
    "journal": "Write in a reflective journal tone.",
    "concise": "Keep it to a few plain sentences.",
    "upbeat": "Keep the tone encouraging and positive.",
}


def build_narrative_prompt(prompt_context: Dict[str, Any], style: str = "journal") -> str:
    """Render a narrative context dict as a user prompt.

    Args:
        prompt_context: Output of build_narrative_context().
        style: Key of NARRATIVE_STYLES (unknown styles fall back to "journal").

    Returns:
        Prompt text.
    """
    lines = [f"Date: {prompt_context.get('date', 'unknown')}"]
    for key in ("activity_summary", "location_summary", "social_summary", "health_summary"):
        value = prompt_context.get(key)
        if value:
            lines.append(f"- {value}")
    correlations = prompt_context.get("key_correlations") or 0
    if correlations:
        lines.append(f"- {correlations} activities happened at recognised places")
    lines.append("")
    lines.append(NARRATIVE_STYLES.get(style, NARRATIVE_STYLES["journal"]))
    return "\n".join(lines)


class NarrativeClient(NarrativeGenerator):
    """Backend-agnostic narrative generator.

    Args:
        backend: "anthropic" or "ollama".
        anthropic_model: Anthropic model ID.
        ollama_model: Ollama model name.
        ollama_host: Ollama server URL.
        anthropic_api_key: Anthropic API key (from environment).
        temperature: Sampling temperature.
        max_tokens: Token budget for the first attempt.
        style: Narrative style key (see NARRATIVE_STYLES).
    """

    def __init__(
        self,
        backend: str = LLM_BACKEND,
        anthropic_model: str = ANTHROPIC_MODEL,
        ollama_model: str = OLLAMA_MODEL,
        ollama_host: str = OLLAMA_HOST,
        anthropic_api_key: Optional[str] = None,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_DEFAULT_MAX_TOKENS,
        style: str = "journal",
    ) -> None:
        self.backend = backend.lower()
        self.anthropic_model = anthropic_model
        self.ollama_model = ollama_model
        self.ollama_host = ollama_host
        self.anthropic_api_key = anthropic_api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.style = style
        self._anthropic_client: Optional[Any] = None
        self._ollama_client: Optional[Any] = None

    @classmethod
    def from_config(cls, config: EngineConfig, style: str = "journal") -> "NarrativeClient":
        return cls(
            backend=config.llm_backend,
            anthropic_model=config.anthropic_model,
            ollama_model=config.ollama_model,
            ollama_host=config.ollama_host,
            anthropic_api_key=config.anthropic_api_key,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
            style=style,
        )

    def _get_anthropic_client(self) -> Any:
        """Lazily initialize and return the Anthropic client."""
        if self._anthropic_client is None:
            try:
                import anthropic  # type: ignore[import]
            except ImportError as exc:
                raise ImportError(
                    "anthropic package is required for the Anthropic backend. "
                    "Install with: pip install 'dayfusion[llm]'"
                ) from exc
            self._anthropic_client = anthropic.Anthropic(api_key=self.anthropic_api_key)
        return self._anthropic_client

    def _get_ollama_client(self) -> Any:
        """Lazily initialize and return the Ollama client."""
        if self._ollama_client is None:
            try:
                import ollama  # type: ignore[import]
            except ImportError as exc:
                raise ImportError(
                    "ollama package is required for the Ollama backend. "
                    "Install with: pip install 'dayfusion[llm]'"
                ) from exc
            self._ollama_client = ollama.Client(host=self.ollama_host)
        return self._ollama_client

    def _call_anthropic(self, prompt: str, max_tokens: int) -> str:
        client = self._get_anthropic_client()
        response = client.messages.create(
            model=self.anthropic_model,
            max_tokens=max_tokens,
            temperature=self.temperature,
            system=NARRATIVE_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        if response.content:
            return response.content[0].text or ""
        return ""

    def _call_ollama(self, prompt: str, max_tokens: int) -> str:
        client = self._get_ollama_client()
        response = client.chat(
            model=self.ollama_model,
            messages=[
                {"role": "system", "content": NARRATIVE_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            options={"num_predict": max_tokens, "temperature": self.temperature},
        )
        if response and getattr(response, "message", None):
            return response.message.content or ""
        return ""

    def call(self, prompt: str) -> Optional[str]:
        """Execute a narrative call with one retry on an empty response.

        Args:
            prompt: User prompt text.

        Returns:
            Response text, or None if both attempts fail or return empty.
        """
        max_tokens = max(self.max_tokens, LLM_MIN_MAX_TOKENS)

        for attempt in range(2):
            try:
                if self.backend == "anthropic":
                    result = self._call_anthropic(prompt, max_tokens)
                else:
                    result = self._call_ollama(prompt, max_tokens)

                if result and result.strip():
                    return result.strip()

                if attempt == 0:
                    logger.warning(
                        "Narrative backend returned empty response — retrying with max_tokens=%d",
                        max_tokens * 2,
                    )
                    max_tokens *= 2

            except Exception as exc:
                if attempt == 0:
                    logger.warning("Narrative call failed (attempt 1): %s — retrying", exc)
                else:
                    logger.error("Narrative call failed (attempt 2): %s", exc)
                    return None

        logger.error("Narrative backend returned empty response after 2 attempts")
        return None

    def generate_narrative_text(self, prompt_context: Dict[str, Any]) -> Optional[str]:
        return self.call(build_narrative_prompt(prompt_context, self.style))
