"""
Provider-agnostic LLM client for classification and answer synthesis.

Supports Anthropic (default), OpenAI, and Google Gemini behind one
``generate`` call. Every call carries a bounded timeout; callers decide
what a failure means for them.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Optional

from .config import LLMConfig

logger = logging.getLogger("brain.common.llm_client")

# pip extra that provides each optional SDK
_EXTRAS = {"openai": "openai", "google": "google"}

# Gemini model objects kept, one per distinct system prompt
MAX_CACHED_GEMINI_MODELS = 4


def _build_anthropic(api_key: str, timeout: float):
    import anthropic
    return anthropic.Anthropic(api_key=api_key, timeout=timeout)


def _build_openai(api_key: str, timeout: float):
    from openai import OpenAI
    return OpenAI(api_key=api_key, timeout=timeout)


def _build_google(api_key: str, timeout: float):
    import google.generativeai as genai
    genai.configure(api_key=api_key)
    # Gemini binds the system prompt to the model object, built per prompt
    return genai


_BUILDERS = {
    "anthropic": _build_anthropic,
    "openai": _build_openai,
    "google": _build_google,
}


class LLMClient:
    """
    One text-generation interface over several providers.

    Usage:
        llm = LLMClient.from_config(config.llm)
        if llm.is_available:
            text = llm.generate("Classify: ...", system=PROMPT, max_tokens=256)
    """

    def __init__(
        self,
        provider: str = "anthropic",
        model: str = "",
        api_key: Optional[str] = None,
        timeout: float = 25.0,
    ) -> None:
        self.provider = (provider or "anthropic").lower()
        self.model = model
        self.timeout = timeout
        self._client: Any = None
        self._gemini_models: "OrderedDict[str, Any]" = OrderedDict()

        builder = _BUILDERS.get(self.provider)
        if builder is None:
            logger.warning("Unsupported LLM provider: %s", self.provider)
            return
        if not api_key:
            logger.info("%s API key not provided, LLM client unavailable", self.provider)
            return

        try:
            self._client = builder(api_key, timeout)
        except ImportError:
            extra = _EXTRAS.get(self.provider)
            hint = f" (pip install brain-capture[{extra}])" if extra else ""
            logger.warning("%s SDK not installed%s", self.provider, hint)
        except Exception as e:
            logger.warning("Failed to initialize %s client: %s", self.provider, e)

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMClient":
        provider = (config.provider or "anthropic").lower()
        api_key = getattr(config, f"{provider}_api_key", "")
        return cls(
            provider=provider,
            model=config.model,
            api_key=api_key,
            timeout=config.request_timeout,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 512,
        timeout: Optional[float] = None,
    ) -> str:
        """Return the model's text response, stripped.

        Raises:
            RuntimeError: client unavailable or the response carried no text.
            Any provider SDK exception (timeouts included) is propagated.
        """
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        handler = getattr(self, f"_generate_{self.provider}", None)
        if handler is None:
            raise RuntimeError(f"Unsupported LLM provider: {self.provider}")
        return handler(prompt, system, max_tokens, timeout or self.timeout)

    def _generate_anthropic(self, prompt, system, max_tokens, timeout) -> str:
        extra = {"system": system} if system else {}
        response = self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
            timeout=timeout,
            **extra,
        )
        blocks = response.content or []
        if not blocks or getattr(blocks[0], "type", "text") != "text":
            raise RuntimeError("Empty or non-text response from Anthropic API")
        return blocks[0].text.strip()

    def _generate_openai(self, prompt, system, max_tokens, timeout) -> str:
        turns = [{"role": "user", "content": prompt}]
        if system:
            turns.insert(0, {"role": "system", "content": system})
        completion = self._client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=turns,
            timeout=timeout,
        )
        return (completion.choices[0].message.content or "").strip()

    def _generate_google(self, prompt, system, max_tokens, timeout) -> str:
        key = system or ""
        gemini = self._gemini_models.get(key)
        if gemini is None:
            options = {"model_name": self.model}
            if system:
                options["system_instruction"] = system
            gemini = self._gemini_models[key] = self._client.GenerativeModel(**options)
            while len(self._gemini_models) > MAX_CACHED_GEMINI_MODELS:
                self._gemini_models.popitem(last=False)
        else:
            self._gemini_models.move_to_end(key)
        result = gemini.generate_content(
            prompt,
            generation_config={"max_output_tokens": max_tokens},
            request_options={"timeout": timeout},
        )
        return result.text.strip()
