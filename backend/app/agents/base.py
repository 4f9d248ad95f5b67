"""Model gateway protocol shared by the Claude and Gemini agents."""

from dataclasses import dataclass, field
from datetime import date
from typing import Protocol


class GatewayError(Exception):
    """The hosted model could not produce a reply (timeout, quota, network, bad response)."""


MEDIA_INSTRUCTION = (
    "Analyze images and videos in the results using visual understanding. For each post "
    "with media, fill image_url, video_url, media_analysis and media_sentiment."
)


@dataclass
class SearchTools:
    """
    Tool capabilities granted to one model call.

    `x_handles` enables social search restricted to those accounts (posts on or
    after `from_date`); `allowed_domains` enables web search restricted to those
    domains. A call with neither runs without any search tool.
    `media_understanding` asks the model to analyse attached images and videos;
    it only applies to calls with a search tool.
    """

    x_handles: list[str] = field(default_factory=list)
    from_date: date | None = None
    allowed_domains: list[str] = field(default_factory=list)
    media_understanding: bool = True

    @property
    def has_search(self) -> bool:
        return bool(self.x_handles or self.allowed_domains)

    @property
    def wants_media(self) -> bool:
        return self.media_understanding and self.has_search


@dataclass
class ModelResponse:
    """Raw model output plus the source URLs it cited."""

    text: str
    citations: list[str] = field(default_factory=list)


class ModelGateway(Protocol):
    """Anything that can answer a prompt, optionally using search tools."""

    async def generate(self, prompt: str, tools: SearchTools | None = None) -> ModelResponse:
        """Send one prompt; raise GatewayError on failure."""
        ...

    async def close(self) -> None: ...


def unique_urls(urls: list[str]) -> list[str]:
    """Drop blanks and repeats, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for url in urls:
        if url and url not in seen:
            seen.add(url)
            result.append(url)
    return result
