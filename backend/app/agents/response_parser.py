"""Best-effort extraction of radar JSON from free-text model replies."""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from app.schemas.radar import Post, RadarPayload, SentimentOverviewData, TrendItem

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json[ \t]*\r?\n([\s\S]*?)\r?\n[ \t]*```", re.IGNORECASE)
_FENCED_BARE = re.compile(r"```[ \t]*\r?\n([\s\S]*?)\r?\n[ \t]*```")


def default_payload() -> RadarPayload:
    """Canonical empty result: no posts, no trends, neutral sentiment at 0.5."""
    return RadarPayload()


def _candidates(text: str) -> list[str]:
    """JSON candidates in priority order: ```json block, bare ``` block, whole text."""
    found = []
    for pattern in (_FENCED_JSON, _FENCED_BARE):
        match = pattern.search(text)
        if match:
            found.append(match.group(1))
    found.append(text)
    return found


def _items(raw: Any, model: type[Post] | type[TrendItem]) -> list[Any]:
    """Validate list entries one by one, dropping the ones that don't fit."""
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            items.append(model.model_validate(entry))
        except ValidationError as e:
            logger.debug(f"Dropping malformed {model.__name__}: {e}")
    return items


def _to_payload(data: dict[str, Any]) -> RadarPayload:
    overview_raw = data.get("sentiment_overview")
    try:
        overview = (
            SentimentOverviewData.model_validate(overview_raw)
            if isinstance(overview_raw, dict)
            else SentimentOverviewData()
        )
    except ValidationError:
        overview = SentimentOverviewData()

    return RadarPayload(
        posts=_items(data.get("posts"), Post),
        trends=_items(data.get("trends"), TrendItem),
        sentiment_overview=overview,
    )


def parse_radar_response(text: str | None) -> RadarPayload:
    """
    Parse a model reply into posts, trends and a sentiment overview.

    Tries a fenced ```json block first, then a bare ``` block, then the whole
    string. Never raises: anything unparseable yields the canonical default.
    """
    if not text or not text.strip():
        return default_payload()

    for candidate in _candidates(text):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return _to_payload(data)

    logger.warning(f"Failed to parse JSON from model response ({len(text)} chars)")
    return default_payload()
