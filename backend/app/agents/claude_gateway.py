"""Claude model gateway - prompts Claude with its server-side web search tool."""

import logging
from typing import Any

import anthropic
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.agents.base import MEDIA_INSTRUCTION, GatewayError, ModelResponse, SearchTools, unique_urls
from app.config import get_settings

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = "web_search_20250305"
SOCIAL_DOMAIN = "x.com"

_RETRYABLE = (
    anthropic.APIConnectionError,
    anthropic.RateLimitError,
    anthropic.InternalServerError,
)


class ClaudeGateway:
    """
    Model gateway backed by Anthropic's Messages API.

    Social search is expressed as web search restricted to x.com with the
    allowed handles and start date spelled out in the prompt; news search
    passes the domains through the tool's `allowed_domains` filter.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        max_searches: int = 5,
    ) -> None:
        settings = get_settings()
        self.client = anthropic.AsyncAnthropic(api_key=api_key or settings.anthropic_api_key)
        self.model = model or settings.anthropic_model
        self.max_tokens = max_tokens or settings.model_max_tokens
        self.max_searches = max_searches

    def _tools(self, tools: SearchTools) -> list[dict[str, Any]]:
        if not tools.has_search:
            return []
        domains = [SOCIAL_DOMAIN] if tools.x_handles else []
        domains += [d for d in tools.allowed_domains if d not in domains]
        return [
            {
                "type": WEB_SEARCH_TOOL,
                "name": "web_search",
                "max_uses": self.max_searches,
                "allowed_domains": domains,
            }
        ]

    def _scoped_prompt(self, prompt: str, tools: SearchTools) -> str:
        scope = []
        if tools.x_handles:
            handles = ", ".join(f"@{h}" for h in tools.x_handles)
            scope.append(f"Only use X posts from these accounts: {handles}.")
            if tools.from_date:
                scope.append(
                    f"Only include posts published on or after {tools.from_date.isoformat()}."
                )
        if tools.wants_media:
            scope.append(MEDIA_INSTRUCTION)
        if not scope:
            return prompt
        return prompt + "\n\n" + " ".join(scope)

    @retry(
        retry=retry_if_exception_type(_RETRYABLE),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _call_claude(self, prompt: str, tools: list[dict[str, Any]]) -> Any:
        """Call Claude API with retry logic."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if tools:
            kwargs["tools"] = tools
        return await self.client.messages.create(**kwargs)

    async def generate(self, prompt: str, tools: SearchTools | None = None) -> ModelResponse:
        tools = tools or SearchTools()
        try:
            response = await self._call_claude(self._scoped_prompt(prompt, tools), self._tools(tools))
        except anthropic.APIError as e:
            raise GatewayError(f"Claude request failed: {e}") from e

        texts: list[str] = []
        citations: list[str] = []
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
                for citation in getattr(block, "citations", None) or []:
                    citations.append(getattr(citation, "url", "") or "")
            elif block.type == "web_search_tool_result" and isinstance(block.content, list):
                citations.extend(getattr(result, "url", "") or "" for result in block.content)

        return ModelResponse(text="".join(texts), citations=unique_urls(citations))

    async def close(self) -> None:
        await self.client.close()
