"""Ingestion pipeline - fans out model searches, dedupes posts and saves a cycle."""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from app.agents.base import ModelGateway, SearchTools, unique_urls
from app.agents.response_parser import parse_radar_response
from app.config import Settings, get_settings
from app.constants.tracked_entities import (
    COMPANY_LABELS,
    GENERAL_NEWS_DOMAINS,
    TRACKED_ENTITIES,
    TrackedEntity,
)
from app.schemas.radar import Post, RadarPayload, SentimentOverviewData, TrendItem
from app.services.radar_store import RadarStore, utc_now

logger = logging.getLogger(__name__)

POSTS_SCHEMA = """Output structured JSON only:
{{
  "posts": [{{
    "title": "Headline",
    "image_url": "url or null",
    "video_url": "url or null",
    "media_analysis": "Description of visual content or null",
    "media_sentiment": "positive|negative|neutral or null",
    "url": "source url",
    "sentiment": "positive|negative|neutral",
    "company": "{companies}",
    "timestamp": "ISO timestamp",
    "snippet": "Brief summary"
  }}]
}}"""


@dataclass
class SearchCall:
    """One independent gateway request in the fan-out."""

    label: str
    prompt: str
    tools: SearchTools
    company: str | None = None  # None keeps the model's own label


@dataclass
class CallResult:
    posts: list[Post] = field(default_factory=list)
    citations: list[str] = field(default_factory=list)


@dataclass
class IngestionResult:
    """Everything one cycle gathered and how the save went."""

    posts: list[Post]
    trends: list[TrendItem]
    sentiment_overview: SentimentOverviewData
    citations: list[str]
    total_posts_collected: int
    new_articles_count: int
    deleted_count: int

    @property
    def trends_identified(self) -> int:
        return len(self.trends)

    @property
    def payload(self) -> RadarPayload:
        return RadarPayload(
            posts=self.posts, trends=self.trends, sentiment_overview=self.sentiment_overview
        )


def dedupe_posts(posts: Iterable[Post]) -> list[Post]:
    """Keep the first post seen for each URL; drop posts without one."""
    seen: set[str] = set()
    unique = []
    for post in posts:
        if not post.url or post.url in seen:
            continue
        seen.add(post.url)
        unique.append(post)
    return unique


def chunk(items: Sequence[str], size: int) -> list[list[str]]:
    """Split into consecutive groups of at most `size` items."""
    size = max(size, 1)
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class IngestionPipeline:
    """
    Runs one ingestion cycle.

    Every tracked entity gets a social search and a news search, general
    outlets get chunked news searches, and all of them run concurrently. A
    failing call only costs its own posts. After the join, one analysis call
    derives trends and the sentiment overview, then the store saves the batch.
    """

    SOCIAL_PROMPT = """Find the latest posts and updates about {name} on X published since {since}.
Focus on: {keywords}.

Extract key information and sentiment (positive/negative/neutral) for each post.

""" + POSTS_SCHEMA

    NEWS_PROMPT = """Find the latest news articles about {name} published since {since}.
Focus on: {keywords}.

Extract key information and sentiment (positive/negative/neutral) for each article.

""" + POSTS_SCHEMA

    GENERAL_NEWS_PROMPT = """Find the latest news published since {since} about any of: {names}.

Extract key information and sentiment (positive/negative/neutral), and label each article with the company it is about.

""" + POSTS_SCHEMA

    ANALYSIS_PROMPT = """Here are recent posts and articles, one per line as "[company] title (sentiment)":

{lines}

Identify up to {max_trends} trending topics ranked by importance and the overall sentiment across all of them.

Output structured JSON only:
{{
  "trends": [{{"name": "Topic name", "score": 0.85, "sentiment": "positive|negative|neutral"}}],
  "sentiment_overview": {{
    "overall": "positive|negative|neutral",
    "score": 0.75,
    "media_insights": "Summary of visual content trends"
  }}
}}"""

    def __init__(
        self,
        gateway: ModelGateway,
        store: RadarStore,
        *,
        entities: Sequence[TrackedEntity] = TRACKED_ENTITIES,
        general_domains: Sequence[str] = GENERAL_NEWS_DOMAINS,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.entities = list(entities)
        self.general_domains = list(general_domains)
        self.settings = settings or get_settings()
        self.clock = clock

    def build_calls(self, lookback: timedelta) -> list[SearchCall]:
        """Entity calls first (social, then news, per entity), then general-news chunks."""
        since = (self.clock() - lookback).date()
        max_domains = self.settings.max_domains_per_call
        calls: list[SearchCall] = []

        for entity in self.entities:
            fmt = {
                "name": entity.name,
                "keywords": entity.keywords or entity.name,
                "since": since.isoformat(),
                "companies": entity.name,
            }
            if entity.x_handles:
                calls.append(
                    SearchCall(
                        label=f"{entity.name}/social",
                        prompt=self.SOCIAL_PROMPT.format(**fmt),
                        tools=SearchTools(x_handles=list(entity.x_handles), from_date=since),
                        company=entity.name,
                    )
                )
            for i, domains in enumerate(chunk(entity.news_domains, max_domains)):
                calls.append(
                    SearchCall(
                        label=f"{entity.name}/news#{i}",
                        prompt=self.NEWS_PROMPT.format(**fmt),
                        tools=SearchTools(allowed_domains=domains, media_understanding=False),
                        company=entity.name,
                    )
                )

        names = ", ".join(entity.name for entity in self.entities)
        for i, domains in enumerate(chunk(self.general_domains, max_domains)):
            calls.append(
                SearchCall(
                    label=f"general#{i}",
                    prompt=self.GENERAL_NEWS_PROMPT.format(
                        names=names, since=since.isoformat(), companies="|".join(COMPANY_LABELS)
                    ),
                    tools=SearchTools(allowed_domains=domains, media_understanding=False),
                )
            )
        return calls

    async def _run_call(self, call: SearchCall) -> CallResult:
        """Run one call; any failure becomes an empty result."""
        try:
            response = await self.gateway.generate(call.prompt, call.tools)
        except Exception as e:
            logger.warning(f"Search call {call.label} failed: {e}")
            return CallResult()

        posts = parse_radar_response(response.text).posts
        for post in posts:
            if call.company is not None:
                post.company = call.company
            elif not post.company:
                post.company = "General"

        logger.info(f"Search call {call.label} returned {len(posts)} posts")
        return CallResult(posts=posts, citations=response.citations)

    async def collect(self, lookback: timedelta) -> tuple[list[Post], list[str]]:
        """Fan out every search call and concatenate results in call order."""
        calls = self.build_calls(lookback)
        results = await asyncio.gather(*(self._run_call(call) for call in calls))

        posts = [post for result in results for post in result.posts]
        citations = unique_urls([url for result in results for url in result.citations])
        return posts, citations

    async def analyze(self, posts: Sequence[Post]) -> tuple[list[TrendItem], SentimentOverviewData]:
        """Derive trends and an overall sentiment from the first N posts."""
        sample = posts[: self.settings.analysis_post_limit]
        if not sample:
            return [], SentimentOverviewData()

        lines = "\n".join(f"[{p.company}] {p.title} ({p.sentiment})" for p in sample)
        prompt = self.ANALYSIS_PROMPT.format(lines=lines, max_trends=self.settings.max_trends)
        try:
            response = await self.gateway.generate(prompt)
        except Exception as e:
            logger.warning(f"Trend analysis failed: {e}")
            return [], SentimentOverviewData()

        parsed = parse_radar_response(response.text)
        return parsed.trends[: self.settings.max_trends], parsed.sentiment_overview

    async def run_cycle(self, lookback: timedelta | None = None) -> IngestionResult:
        """Gather, dedupe, analyse and persist one cycle."""
        lookback = lookback or timedelta(days=self.settings.social_lookback_days)

        collected, citations = await self.collect(lookback)
        posts = dedupe_posts(collected)
        logger.info(f"Collected {len(collected)} posts, {len(posts)} unique")

        trends, sentiment_overview = await self.analyze(posts)
        saved = await self.store.save(posts, trends, sentiment_overview)

        return IngestionResult(
            posts=posts,
            trends=trends,
            sentiment_overview=sentiment_overview,
            citations=citations,
            total_posts_collected=len(collected),
            new_articles_count=saved.new_articles_count,
            deleted_count=saved.deleted_count,
        )


class IngestionRunner:
    """
    Runs a cycle with a gateway created for that cycle and closed after it.

    Provider setup errors (missing key, bad provider config) raise from
    `run_cycle` like any other cycle failure.
    """

    def __init__(
        self,
        gateway_factory: Callable[[], ModelGateway],
        store: RadarStore,
        *,
        settings: Settings | None = None,
    ) -> None:
        self.gateway_factory = gateway_factory
        self.store = store
        self.settings = settings or get_settings()

    async def run_cycle(self, lookback: timedelta | None = None) -> IngestionResult:
        gateway = self.gateway_factory()
        try:
            pipeline = IngestionPipeline(gateway, self.store, settings=self.settings)
            return await pipeline.run_cycle(lookback=lookback)
        finally:
            await gateway.close()
