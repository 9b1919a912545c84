"""Ranking heuristics for the trending and streaming-now categories."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import FrozenSet, List, Mapping, Optional, Sequence, Tuple

from marquee.models.media import ContentItem, MovieItem, WatchProviderSummary
from marquee.services.dates import days_since


@dataclass(frozen=True)
class StreamingPlatform:
    name: str
    provider_ids: FrozenSet[int]


# TMDB watch-provider ids per subscription platform.
STREAMING_PLATFORMS: Tuple[StreamingPlatform, ...] = (
    StreamingPlatform("Netflix", frozenset({8})),
    StreamingPlatform("Amazon Prime Video", frozenset({9, 119})),
    StreamingPlatform("Disney Plus", frozenset({337})),
    StreamingPlatform("Max", frozenset({1899, 384})),
    StreamingPlatform("Apple TV Plus", frozenset({350})),
    StreamingPlatform("Hulu", frozenset({15})),
    StreamingPlatform("Paramount Plus", frozenset({531})),
    StreamingPlatform("Peacock", frozenset({386, 387})),
)

# Production company name fragments of streaming studios.
STREAMING_STUDIO_FRAGMENTS = (
    "netflix",
    "amazon",
    "apple",
    "disney+",
    "hulu",
    "hbo",
    "max original",
    "paramount+",
    "peacock",
)

OTT_LOW_VOTE_COUNT = 50
OTT_RECENT_DAYS = 90

STREAMING_SCORE_MIN = 1
STREAMING_SCORE_MAX = 10
STREAMING_KEEP_SCORE = 6
STREAMING_FRESH_DAYS = 14

TRENDING_SCORE_MIN = 1
TRENDING_SCORE_MAX = 100


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def trending_score(item: ContentItem, rank: int, today: Optional[date] = None) -> int:
    """Score a trending item in [1, 100] from its rank, popularity, rating and age."""
    score = 100 - 5 * rank

    if item.popularity > 100:
        score += 10
    elif item.popularity > 50:
        score += 5

    if item.vote_average >= 8.0 and item.vote_count > 1000:
        score += 10
    elif item.vote_average >= 7.0 and item.vote_count > 500:
        score += 5

    age = days_since(item.primary_date, today)
    if age is not None:
        if age <= 30:
            score += 15
        elif age <= 90:
            score += 10
        elif age <= 180:
            score += 5

    return _clamp(score, TRENDING_SCORE_MIN, TRENDING_SCORE_MAX)


def _company_names(item: ContentItem) -> List[str]:
    companies = getattr(item, "production_companies", None) or []
    return [(c.get("name") or "").lower() for c in companies if isinstance(c, Mapping)]


def classify_ott(
    item: ContentItem,
    providers: Optional[WatchProviderSummary],
    days_since_release: Optional[int],
) -> List[str]:
    """Return the OTT-original signals the item satisfies (empty means none).

    Any single signal is enough to treat the title as a streaming original.
    """
    signals = []
    has_subscription = providers is not None and providers.has_subscription

    if item.vote_count < OTT_LOW_VOTE_COUNT:
        signals.append("low_vote_count")
    if has_subscription and not providers.has_transactional:
        signals.append("subscription_only")
    if any(
        fragment in name
        for name in _company_names(item)
        for fragment in STREAMING_STUDIO_FRAGMENTS
    ):
        signals.append("streaming_studio")
    if (
        has_subscription
        and days_since_release is not None
        and days_since_release <= OTT_RECENT_DAYS
    ):
        signals.append("recent_streaming_release")
    return signals


def recency_bonus(days: Optional[int]) -> int:
    if days is None:
        return 0
    if days <= 3:
        return 4
    if days <= 7:
        return 3
    if days <= 14:
        return 2
    if days <= 30:
        return 1
    return 0


def streaming_release_score(
    item: ContentItem,
    providers: Optional[WatchProviderSummary],
    days_since_release: Optional[int],
) -> int:
    """Score how likely a title was just released to streaming, in [1, 10]."""
    score = 5 + recency_bonus(days_since_release)

    if item.popularity > 100:
        score += 2
    elif item.popularity > 50:
        score += 1

    if item.vote_count > 500 and item.vote_average >= 7.0:
        score += 1

    if providers is not None and providers.has_subscription:
        score += 1
        if providers.subscription_platform_count > 1:
            score += 1

    return _clamp(score, STREAMING_SCORE_MIN, STREAMING_SCORE_MAX)


def keep_streaming_candidate(score: int, days_since_release: Optional[int]) -> bool:
    """Very fresh releases stay regardless of score."""
    if score >= STREAMING_KEEP_SCORE:
        return True
    return days_since_release is not None and days_since_release <= STREAMING_FRESH_DAYS


def recency_tier(days: Optional[int]) -> int:
    if days is None:
        return 4
    if days <= 3:
        return 0
    if days <= 7:
        return 1
    if days <= 14:
        return 2
    return 3


def streaming_sort_key(item: ContentItem) -> Tuple[int, int, int, int, float]:
    """Sort key: score desc, recency tier, days asc, date desc, popularity desc."""
    days = item.days_since_release
    released = item.primary_date
    return (
        -(item.streaming_release_score or 0),
        recency_tier(days),
        days if days is not None else 10**6,
        -(released.toordinal() if released else 0),
        -item.popularity,
    )


def primary_platform(
    providers: Optional[WatchProviderSummary],
    roster: Sequence[StreamingPlatform] = STREAMING_PLATFORMS,
) -> Optional[str]:
    """Name of the first roster platform found in the subscription list."""
    if providers is None:
        return None
    for entry in providers.streaming:
        for platform in roster:
            if entry.provider_id in platform.provider_ids:
                return platform.name
    return None


def estimated_added_date(
    item: MovieItem, score: int, today: Optional[date] = None
) -> Optional[date]:
    """Estimate when a title landed on streaming from its score band.

    TMDB does not expose the real date; this is the midpoint of the band
    (higher scores imply a more recent addition) and never precedes release.
    """
    today = today or date.today()
    if score >= 9:
        offset = 1
    elif score >= 7:
        offset = 5
    else:
        offset = 10

    estimate = today - timedelta(days=offset)
    released = item.primary_date
    if released is not None and released > estimate:
        estimate = min(released, today)
    return estimate
