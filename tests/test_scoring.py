from datetime import date

import pytest

from marquee.models.media import MovieItem, WatchProviderSummary
from marquee.services.scoring import (
    classify_ott,
    estimated_added_date,
    keep_streaming_candidate,
    primary_platform,
    streaming_release_score,
    streaming_sort_key,
    trending_score,
)

TODAY = date(2024, 6, 15)


def _providers(flatrate=(), rent=()):
    return WatchProviderSummary.from_tmdb(
        {
            "results": {
                "US": {
                    "flatrate": [{"provider_id": p} for p in flatrate],
                    "rent": [{"provider_id": p} for p in rent],
                }
            }
        },
        "US",
    )


def test_trending_score_is_bounded():
    hot = MovieItem(
        id=1,
        popularity=150,
        vote_average=8.5,
        vote_count=2000,
        release_date="2024-06-01",
    )
    cold = MovieItem(id=2)
    assert trending_score(hot, 1, TODAY) == 100
    assert trending_score(cold, 30, TODAY) == 1
    for rank in range(1, 60):
        assert 1 <= trending_score(hot, rank, TODAY) <= 100


def test_trending_score_components():
    item = MovieItem(id=1, popularity=60, release_date="2024-04-01")
    # 100 - 5*4 + 5 (popularity) + 10 (75 days old)
    assert trending_score(item, 4, TODAY) == 95


def test_provider_summary_missing_region():
    assert WatchProviderSummary.from_tmdb({"results": {"GB": {}}}, "US") is None
    assert WatchProviderSummary.from_tmdb(None, "US") is None


def test_classify_ott_signals():
    item = MovieItem(
        id=1,
        vote_count=10,
        production_companies=[{"name": "Netflix Animation"}],
    )
    signals = classify_ott(item, _providers(flatrate=[8]), 5)
    assert signals == [
        "low_vote_count",
        "subscription_only",
        "streaming_studio",
        "recent_streaming_release",
    ]


def test_classify_ott_theatrical_release_has_no_signals():
    item = MovieItem(
        id=1, vote_count=5000, production_companies=[{"name": "Universal Pictures"}]
    )
    assert classify_ott(item, _providers(rent=[2]), 40) == []
    assert classify_ott(item, None, 40) == []


def test_rent_alongside_subscription_is_not_subscription_only():
    item = MovieItem(id=1, vote_count=5000)
    signals = classify_ott(item, _providers(flatrate=[8], rent=[2]), 200)
    assert "subscription_only" not in signals


def test_streaming_release_score():
    popular = MovieItem(id=1, popularity=150, vote_count=600, vote_average=7.5)
    # 5 + 4 (fresh) + 2 + 1 + 1 + 1 -> clamped to 10
    assert streaming_release_score(popular, _providers(flatrate=[8, 337]), 1) == 10
    quiet = MovieItem(id=2)
    assert streaming_release_score(quiet, None, 60) == 5
    assert streaming_release_score(quiet, _providers(flatrate=[8]), 10) == 8


@pytest.mark.parametrize("popularity", [0, 60, 150])
@pytest.mark.parametrize(
    "vote_count,vote_average", [(0, 0.0), (600, 6.9), (600, 7.5), (5000, 9.8)]
)
@pytest.mark.parametrize("days", [None, 0, 5, 10, 20, 60])
@pytest.mark.parametrize("flatrate", [None, (), (8,), (8, 337)])
def test_streaming_release_score_stays_in_range(
    popularity, vote_count, vote_average, days, flatrate
):
    item = MovieItem(
        id=1, popularity=popularity, vote_count=vote_count, vote_average=vote_average
    )
    providers = None if flatrate is None else _providers(flatrate=flatrate)
    assert 1 <= streaming_release_score(item, providers, days) <= 10


@pytest.mark.parametrize(
    "score,days,kept",
    [(6, 30, True), (5, 14, True), (5, 15, False), (1, 0, True), (5, None, False)],
)
def test_keep_streaming_candidate(score, days, kept):
    assert keep_streaming_candidate(score, days) is kept


def _ranked(item_id, score, days, popularity=0.0):
    released = date.fromordinal(TODAY.toordinal() - days)
    return MovieItem(
        id=item_id,
        release_date=released.isoformat(),
        streaming_release_score=score,
        days_since_release=days,
        popularity=popularity,
    )


def test_streaming_sort_prefers_fresher_title_on_equal_score():
    a = _ranked(1, 8, 2)
    b = _ranked(2, 8, 10)
    assert sorted([b, a], key=streaming_sort_key) == [a, b]


def test_streaming_sort_orders_by_score_first():
    fresh_low = _ranked(1, 6, 1)
    older_high = _ranked(2, 9, 20)
    assert sorted([fresh_low, older_high], key=streaming_sort_key)[0].id == 2


def test_streaming_sort_uses_popularity_last():
    quiet = _ranked(1, 7, 5, popularity=10)
    loud = _ranked(2, 7, 5, popularity=90)
    assert [i.id for i in sorted([quiet, loud], key=streaming_sort_key)] == [2, 1]


def test_primary_platform():
    assert primary_platform(_providers(flatrate=[119])) == "Amazon Prime Video"
    assert primary_platform(_providers(flatrate=[99999])) is None
    assert primary_platform(None) is None


def test_estimated_added_date_never_precedes_release():
    item = MovieItem(id=1, release_date="2024-06-14")
    assert estimated_added_date(item, 6, TODAY) == date(2024, 6, 14)
    older = MovieItem(id=2, release_date="2024-05-01")
    assert estimated_added_date(older, 9, TODAY) == date(2024, 6, 14)
    assert estimated_added_date(older, 7, TODAY) == date(2024, 6, 10)
    assert estimated_added_date(older, 6, TODAY) == date(2024, 6, 5)
