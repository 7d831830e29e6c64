from abc import ABC, abstractmethod
import asyncio
import logging
import os

import google.generativeai as genai
from google.generativeai.types import HarmCategory, HarmBlockThreshold  # For safety settings
from openai import AsyncOpenAI, OpenAIError

from config import (
    COMPLETION_MAX_TOKENS,
    COMPLETION_TEMPERATURE,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
)

logger = logging.getLogger(__name__)


class LLMProviderError(Exception):
    """Raised when the completion provider fails or returns nothing usable."""


class LLMProvider(ABC):
    temperature = COMPLETION_TEMPERATURE
    max_tokens = COMPLETION_MAX_TOKENS

    @abstractmethod
    async def generate_content(self, prompt: str) -> str:
        """
        Send a single user-role prompt and return the raw completion text.
        Args:
            prompt: The fully rendered prompt
        Returns:
            Completion text exactly as the provider produced it
        Raises:
            LLMProviderError: on any provider-side failure
        """
        pass


class GeminiProvider(LLMProvider):
    def __init__(self) -> None:
        self.model_name = os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)

        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            logger.error("GEMINI_API_KEY environment variable not set.")
            raise ValueError("GEMINI_API_KEY environment variable not set.")

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(self.model_name)

        # Less restrictive than the defaults; transcripts often trip the filters
        # on borderline content and come back empty.
        self.safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
        }
        self.generation_config = {
            "temperature": self.temperature,
            "max_output_tokens": self.max_tokens,
        }

    def _generate_blocking(self, prompt: str) -> str:
        response = self.model.generate_content(
            prompt,
            generation_config=self.generation_config,
            safety_settings=self.safety_settings,
        )
        feedback = getattr(response, "prompt_feedback", None)
        if feedback and feedback.block_reason:
            raise LLMProviderError(
                f"Content generation blocked. Reason: {feedback.block_reason.name}"
            )
        return response.text

    async def generate_content(self, prompt: str) -> str:
        # The Gemini SDK is synchronous; keep it off the event loop.
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._generate_blocking, prompt)
        except LLMProviderError:
            raise
        except Exception as e:
            logger.error(f"Gemini completion error: {e}")
            raise LLMProviderError(f"Gemini completion failed: {e}") from e


class OpenAIProvider(LLMProvider):
    def __init__(self):
        self.api_key = os.getenv("OPENAI_API_KEY")
        self.base_url = os.getenv("OPENAI_BASE_URL")
        self.model_name = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)

        if not self.api_key:
            logger.error("OPENAI_API_KEY environment variable not set.")
            raise ValueError("OPENAI_API_KEY environment variable not set.")

        # Works against any OpenAI-compatible gateway through OPENAI_BASE_URL
        self.async_llm = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    async def generate_content(self, prompt: str) -> str:
        try:
            response = await self.async_llm.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI completion error: {e}")
            raise LLMProviderError(f"OpenAI completion failed: {e}") from e

        if not response.choices:
            raise LLMProviderError("OpenAI returned no choices")

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise LLMProviderError("OpenAI completion blocked (Content Filter).")
        return choice.message.content or ""

    async def close(self):
        await self.async_llm.close()


def get_llm_provider() -> LLMProvider:
    provider_name = os.getenv("LLM_PROVIDER", "openai").lower()
    logger.info(f"Initializing LLM provider: {provider_name}")
    if provider_name == "gemini":
        return GeminiProvider()
    elif provider_name == "openai":
        return OpenAIProvider()
    else:
        logger.error(f"Unsupported LLM provider: {provider_name}")
        raise ValueError(f"Unsupported LLM provider: {provider_name}")
