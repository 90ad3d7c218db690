"""
LLM Client Module

The model collaborator: one prompt in, free-form text out. Blocked prompts and
empty replies are surfaced as ModelUnavailableError with the reported reason.

Backends:
- Ollama HTTP API (local)
- Any LangChain chat model (OpenAI by default)
"""

import asyncio
import logging
from typing import Any, Optional, Protocol

import requests
from langchain_core.language_models import BaseChatModel

from demystifier.config import Settings, settings as default_settings
from demystifier.exceptions import ModelUnavailableError

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    """Opaque generative model."""

    async def agenerate(self, prompt: str) -> str:
        """Return the model's raw text reply for a prompt."""


def _content_text(content: Any) -> str:
    """Flatten LangChain message content (str or list of parts) into text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


BLOCKING_FINISH_REASONS = {"SAFETY", "CONTENT_FILTER"}


def block_reason(metadata: dict) -> Optional[str]:
    """Block reason reported in chat response metadata, if any."""
    feedback = metadata.get("prompt_feedback") or {}
    reason = feedback.get("block_reason") if isinstance(feedback, dict) else None
    if reason:
        return str(reason)
    finish_reason = str(metadata.get("finish_reason") or "")
    if finish_reason.upper() in BLOCKING_FINISH_REASONS:
        return finish_reason
    return None


class ChatModelClient:
    """Adapts a LangChain chat model to the ModelClient interface."""

    def __init__(self, llm: BaseChatModel, model_name: str = "chat-model"):
        """
        Args:
            llm: The language model to use
            model_name: Name of the model being used (for logging)
        """
        self.llm = llm
        self.model_name = model_name

    async def agenerate(self, prompt: str) -> str:
        logger.info(f"Calling {self.model_name} ({len(prompt)} chars prompt)")
        message = await self.llm.ainvoke(prompt)

        metadata = getattr(message, "response_metadata", None) or {}
        reason = block_reason(metadata)
        if reason:
            logger.error(f"{self.model_name} blocked the prompt: {reason}")
            raise ModelUnavailableError(f"Model blocked the prompt: {reason}")

        text = _content_text(message.content)
        if not text.strip():
            logger.error(f"{self.model_name} response was empty: {metadata}")
            raise ModelUnavailableError("Model did not return a valid text response.")

        logger.debug(f"Raw {self.model_name} response: {text}")
        return text


class OllamaClient:
    """Calls the Ollama generate endpoint."""

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[int] = None,
    ):
        host = host or default_settings.ollama_host
        # Handle both full URL and host-only formats
        self.host = host if host.startswith('http') else f"http://{host}:11434"
        self.model = model or default_settings.ollama_model
        self.temperature = default_settings.llm_temperature if temperature is None else temperature
        self.max_tokens = default_settings.llm_max_tokens if max_tokens is None else max_tokens
        self.timeout = default_settings.llm_timeout if timeout is None else timeout

    def generate(self, prompt: str) -> str:
        """Blocking call to Ollama."""
        try:
            response = requests.post(
                f"{self.host}/api/generate",
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "stream": False,
                    "options": {
                        "temperature": self.temperature,
                        "num_predict": self.max_tokens,
                    },
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error calling Ollama: {e}")
            raise ModelUnavailableError(f"Ollama request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Ollama error: {response.status_code} {response.text[:200]}")
            raise ModelUnavailableError(f"Ollama returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Ollama returned a non-JSON reply: {response.text[:200]}")
            raise ModelUnavailableError("Ollama returned a non-JSON reply") from e

        text = data.get('response') or ''
        if not text.strip():
            reason = data.get('done_reason') or 'empty response'
            logger.error(f"Ollama returned no text ({reason})")
            raise ModelUnavailableError(f"Model did not return a valid text response ({reason}).")

        logger.debug(f"Raw Ollama response: {text}")
        return text

    async def agenerate(self, prompt: str) -> str:
        logger.info(f"Calling Ollama model {self.model} ({len(prompt)} chars prompt)")
        return await asyncio.to_thread(self.generate, prompt)


def build_model_client(settings: Optional[Settings] = None) -> ModelClient:
    """Create the configured model client (LLM_PROVIDER)."""
    settings = settings or default_settings

    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        llm = ChatOpenAI(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout,
        )
        return ChatModelClient(llm, model_name=settings.openai_model)

    return OllamaClient(
        host=settings.ollama_host,
        model=settings.ollama_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout,
    )
