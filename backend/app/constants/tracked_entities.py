"""Tracked companies/people and the outlets used to scope search calls."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TrackedEntity:
    """A tracked company or person and the sources that cover it."""

    name: str  # ground-truth `company` label for everything found for it
    x_handles: list[str] = field(default_factory=list)
    news_domains: list[str] = field(default_factory=list)
    keywords: str = ""


TRACKED_ENTITIES: list[TrackedEntity] = [
    TrackedEntity(
        name="Tesla",
        x_handles=["Tesla", "elonmusk", "Tesla_AI", "teslaenergy"],
        news_domains=["electrek.co", "teslarati.com", "insideevs.com", "reuters.com", "cnbc.com"],
        keywords="Tesla, Model Y, Cybertruck, FSD, Optimus, robotaxi, Megapack",
    ),
    TrackedEntity(
        name="SpaceX",
        x_handles=["SpaceX", "elonmusk"],
        news_domains=["spacenews.com", "space.com", "nasaspaceflight.com", "arstechnica.com"],
        keywords="SpaceX, Starship, Falcon 9, Dragon, launch",
    ),
    TrackedEntity(
        name="Starlink",
        x_handles=["Starlink", "SpaceX"],
        news_domains=["pcmag.com", "theverge.com", "spacenews.com", "reuters.com"],
        keywords="Starlink, satellite internet, direct to cell",
    ),
    TrackedEntity(
        name="xAI",
        x_handles=["xai", "grok", "elonmusk"],
        news_domains=["techcrunch.com", "theverge.com", "venturebeat.com", "theinformation.com"],
        keywords="xAI, Grok, Colossus, frontier model",
    ),
    TrackedEntity(
        name="Neuralink",
        x_handles=["neuralink", "elonmusk"],
        news_domains=["statnews.com", "technologyreview.com", "wired.com", "reuters.com"],
        keywords="Neuralink, brain-computer interface, N1 implant, Blindsight",
    ),
    TrackedEntity(
        name="Boring Company",
        x_handles=["boringcompany"],
        news_domains=["theverge.com", "reviewjournal.com", "electrek.co"],
        keywords="The Boring Company, Vegas Loop, tunnel, Prufrock",
    ),
]

# Outlets queried for general coverage; results keep the model's company label
GENERAL_NEWS_DOMAINS: list[str] = [
    "reuters.com",
    "bloomberg.com",
    "techcrunch.com",
    "theverge.com",
    "cnbc.com",
    "wsj.com",
    "ft.com",
    "apnews.com",
    "businessinsider.com",
    "wired.com",
]

# Labels the model may use for general-news results
COMPANY_LABELS: list[str] = [entity.name for entity in TRACKED_ENTITIES] + ["General"]
