"""Gemini model gateway.

Alternative to the Claude gateway, using Google Search grounding. Gemini's
search tool has no domain filter, so restrictions are written into the prompt.
"""

import logging
from typing import Any

from google import genai
from google.genai import errors, types
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.agents.base import MEDIA_INSTRUCTION, GatewayError, ModelResponse, SearchTools, unique_urls
from app.config import get_settings

logger = logging.getLogger(__name__)


class GeminiGateway:
    """Model gateway backed by the Gemini API."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> None:
        settings = get_settings()
        self.client = genai.Client(api_key=api_key or settings.gemini_api_key)
        self.model = model or settings.gemini_model
        self.max_tokens = max_tokens or settings.model_max_tokens

    def _scoped_prompt(self, prompt: str, tools: SearchTools) -> str:
        scope = []
        if tools.x_handles:
            handles = ", ".join(f"@{h}" for h in tools.x_handles)
            scope.append(f"Search X (x.com) posts only from these accounts: {handles}.")
            if tools.from_date:
                scope.append(
                    f"Only include posts published on or after {tools.from_date.isoformat()}."
                )
        if tools.allowed_domains:
            scope.append(
                "Only use sources from these domains: " + ", ".join(tools.allowed_domains) + "."
            )
        if tools.wants_media:
            scope.append(MEDIA_INSTRUCTION)
        if not scope:
            return prompt
        return prompt + "\n\n" + " ".join(scope)

    def _config(self, tools: SearchTools) -> types.GenerateContentConfig:
        search_tools = [types.Tool(google_search=types.GoogleSearch())] if tools.has_search else None
        return types.GenerateContentConfig(
            temperature=0.2,
            max_output_tokens=self.max_tokens,
            tools=search_tools,
        )

    @retry(
        retry=retry_if_exception_type(errors.ServerError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _call_gemini(self, prompt: str, config: types.GenerateContentConfig) -> Any:
        """Call Gemini API with retry logic."""
        return await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )

    def _citations(self, response: Any) -> list[str]:
        urls: list[str] = []
        for candidate in response.candidates or []:
            metadata = getattr(candidate, "grounding_metadata", None)
            for chunk in getattr(metadata, "grounding_chunks", None) or []:
                web = getattr(chunk, "web", None)
                if web is not None and web.uri:
                    urls.append(web.uri)
        return unique_urls(urls)

    async def generate(self, prompt: str, tools: SearchTools | None = None) -> ModelResponse:
        tools = tools or SearchTools()
        try:
            response = await self._call_gemini(
                self._scoped_prompt(prompt, tools), self._config(tools)
            )
        except errors.APIError as e:
            raise GatewayError(f"Gemini request failed: {e}") from e

        return ModelResponse(text=response.text or "", citations=self._citations(response))

    async def close(self) -> None:
        await self.client.aio.aclose()
