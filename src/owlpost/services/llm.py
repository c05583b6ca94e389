"""LLM service."""
from typing import Optional
from openai import OpenAI
from owlpost.core.config import settings
from owlpost.core.errors import LLMUnavailableError
from owlpost.core.logging import logger


class LLMService:
    """Service for LLM interactions against an OpenAI-compatible endpoint."""

    def __init__(self, base_url: Optional[str] = None, model_name: Optional[str] = None):
        self.base_url = base_url or settings.llm.base_url
        self.model_name = model_name or settings.llm.model_name
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        """Create the client on first use so importing never touches the network."""
        if self._client is None:
            self._client = OpenAI(
                base_url=self.base_url,
                api_key=settings.llm.api_key or "not-needed",
            )
            logger.info(f"LLM client initialized: {self.base_url}")
        return self._client

    def call(self, system_prompt: str, user_content: str) -> str:
        """Run a single non-streaming completion and return its text.

        Raises:
            LLMUnavailableError: transport, provider or empty-reply failure
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]

        try:
            resp = self.client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=settings.llm.temperature,
                max_tokens=settings.llm.max_tokens,
                stream=False,
            )
            content = resp.choices[0].message.content
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            raise LLMUnavailableError(f"LLM service unavailable: {e}") from e

        if not content:
            raise LLMUnavailableError("LLM returned an empty reply")
        return content

    def health_check(self) -> str:
        """Check LLM service health."""
        try:
            self.client.models.list()
            return "healthy"
        except Exception as e:
            logger.error(f"LLM health check failed: {e}")
            return f"unhealthy: {str(e)}"


# Singleton instance
llm_service = LLMService()
