from datetime import date

import pytest

from marquee.core.errors import CategoryFetchError, TMDBError, UnsupportedCategory
from marquee.services.category import CategoryService, merge_unique
from marquee.models.media import MovieItem, TVItem

TODAY = date(2024, 6, 15)


@pytest.fixture
def service(fake_client, settings):
    return CategoryService(fake_client, settings, today=lambda: TODAY)


def test_merge_unique_keeps_first_occurrence():
    first = MovieItem(id=550, popularity=1)
    dup = MovieItem(id=550, popularity=99)
    show = TVItem(id=550)
    merged = merge_unique([[first], [dup, show]])
    assert merged == [first, show]


# --- Simple categories ---


@pytest.mark.asyncio
async def test_mood_uses_mapped_params_and_endpoint(service, fake_client):
    fake_client.discover.return_value = {
        "page": 2,
        "total_pages": 9,
        "total_results": 170,
        "results": [{"id": 10, "title": "Love Actually"}],
    }

    envelope = await service.get_mood_content("rom-com-classics", page=2)

    media_type, params = fake_client.discover.call_args.args
    assert media_type == "movie"
    assert params["with_genres"] == "10749,35"
    assert params["page"] == 2
    assert envelope.category == "mood-rom-com-classics"
    assert envelope.data.total_pages == 9
    assert envelope.data.results[0].tagline == "A tagline"


@pytest.mark.asyncio
async def test_network_content_targets_tv(service, fake_client):
    fake_client.discover.return_value = {"results": [{"id": 1, "name": "Dark"}]}
    envelope = await service.get_network_content("netflix")

    assert fake_client.discover.call_args.args[0] == "tv"
    assert envelope.category == "network-netflix"
    assert isinstance(envelope.data.results[0], TVItem)


@pytest.mark.asyncio
async def test_genre_media_type_override(service, fake_client):
    fake_client.discover.return_value = {"results": []}
    envelope = await service.get_genre_content("comedy", media_type="tv")

    assert fake_client.discover.call_args.args[0] == "tv"
    assert envelope.media_type == "tv"
    assert envelope.category == "genre-comedy"


@pytest.mark.asyncio
async def test_unsupported_key_fails_before_any_fetch(service, fake_client):
    with pytest.raises(UnsupportedCategory) as excinfo:
        await service.get_mood_content("unknown")

    assert "unknown" in excinfo.value.message
    fake_client.discover.assert_not_called()


@pytest.mark.asyncio
async def test_provider_failure_is_wrapped(service, fake_client):
    cause = TMDBError("Invalid API key")
    fake_client.discover.side_effect = cause

    with pytest.raises(CategoryFetchError) as excinfo:
        await service.get_award_winners("oscar-winners")

    assert excinfo.value.category == "awards-oscar-winners"
    assert excinfo.value.cause is cause


@pytest.mark.asyncio
async def test_failed_tagline_lookup_leaves_empty_tagline(service, fake_client):
    fake_client.discover.return_value = {
        "results": [{"id": 1, "title": "A"}, {"id": 2, "title": "B", "tagline": "Kept"}]
    }
    fake_client.get_details.side_effect = TMDBError("down")

    envelope = await service.get_studio_content("pixar")

    assert [i.tagline for i in envelope.data.results] == ["", "Kept"]
    fake_client.get_details.assert_awaited_once()


# --- Trending ---


@pytest.mark.asyncio
async def test_trending_movies_dedupes_and_ranks(service, fake_client):
    pages = {
        1: {"results": [{"id": 550, "title": "Fight Club", "popularity": 50}]},
        2: {
            "results": [
                {"id": 550, "title": "Fight Club", "popularity": 99},
                {"id": 13, "title": "Forrest Gump", "popularity": 80},
            ]
        },
    }

    async def trending(media_type, window, page=1):
        assert (media_type, window) == ("movie", "week")
        return pages[page]

    fake_client.get_trending.side_effect = trending

    envelope = await service.get_trending_movies()
    results = envelope.data.results

    assert [i.id for i in results] == [13, 550]
    assert [i.id for i in results].count(550) == 1
    assert results[1].popularity == 50
    assert [i.trending_rank for i in results] == [1, 2]
    assert all(1 <= i.trending_score <= 100 for i in results)
    assert envelope.data.page == 1
    assert envelope.data.total_pages == 1
    assert envelope.data.total_results == 2


@pytest.mark.asyncio
async def test_trending_movies_ignores_failed_pages(service, fake_client):
    async def trending(media_type, window, page=1):
        if page == 2:
            raise TMDBError("boom")
        return {"results": [{"id": 1, "title": "Only", "popularity": 5}]}

    fake_client.get_trending.side_effect = trending

    envelope = await service.get_trending_movies()
    assert [i.id for i in envelope.data.results] == [1]


@pytest.mark.asyncio
async def test_trending_movies_all_pages_failing_raises(service, fake_client):
    fake_client.get_trending.side_effect = TMDBError("boom")
    with pytest.raises(CategoryFetchError) as excinfo:
        await service.get_trending_movies()
    assert excinfo.value.category == "trending-movies"


@pytest.mark.asyncio
async def test_hot_tv_shows_passes_page(service, fake_client):
    fake_client.get_trending.return_value = {"page": 3, "results": [{"id": 7}]}
    envelope = await service.get_hot_tv_shows(page=3)

    fake_client.get_trending.assert_awaited_once_with("tv", "day", page=3)
    assert envelope.category == "hot-tv-shows"
    assert envelope.data.results[0].media_type == "tv"


# --- Upcoming ---


@pytest.mark.asyncio
async def test_anticipated_keeps_today_and_future_only(service, fake_client):
    fake_client.get_upcoming.return_value = {
        "page": 1,
        "total_pages": 4,
        "results": [
            {"id": 1, "title": "Later", "release_date": "2024-07-01"},
            {"id": 2, "title": "Yesterday", "release_date": "2024-06-14"},
            {"id": 3, "title": "Today", "release_date": "2024-06-15"},
            {"id": 4, "title": "Blank", "release_date": ""},
            {"id": 5, "title": "Null", "release_date": None},
            {"id": 6, "title": "Garbage", "release_date": "soon"},
        ],
    }

    envelope = await service.get_anticipated_movies()
    results = envelope.data.results

    assert [i.id for i in results] == [3, 1]
    assert envelope.data.total_results == 2
    assert envelope.data.total_pages == 4
    assert results[0].is_upcoming is True
    assert results[0].days_until_release == 0
    assert results[0].release_date_formatted == "June 15, 2024"
    assert results[1].days_until_release == 16


@pytest.mark.asyncio
async def test_upcoming_tv_window(service, fake_client):
    fake_client.discover.return_value = {
        "results": [{"id": 9, "name": "Pilot", "first_air_date": "2024-07-04"}]
    }

    envelope = await service.get_upcoming_tv()

    media_type, params = fake_client.discover.call_args.args
    assert media_type == "tv"
    assert params["first_air_date.gte"] == "2024-06-15"
    assert params["first_air_date.lte"] == "2024-12-15"
    assert params["sort_by"] == "first_air_date.asc"
    assert envelope.data.results[0].first_air_date_formatted == "July 4, 2024"


@pytest.mark.asyncio
async def test_combined_upcoming_sorts_by_date(service, fake_client):
    fake_client.get_upcoming.return_value = {
        "total_results": 2,
        "total_pages": 1,
        "results": [
            {"id": 1, "title": "Movie Late", "release_date": "2024-08-01"},
            {"id": 2, "title": "Movie Undated"},
        ],
    }
    fake_client.discover.return_value = {
        "total_results": 1,
        "total_pages": 3,
        "results": [{"id": 3, "name": "Show Soon", "first_air_date": "2024-06-20"}],
    }

    envelope = await service.get_combined_upcoming(movie_page=1, tv_page=2)

    assert [(i.media_type, i.id) for i in envelope.data.results] == [
        ("tv", 3),
        ("movie", 1),
        ("movie", 2),
    ]
    assert envelope.data.total_results == 3
    assert envelope.data.total_pages == 3
    assert envelope.tv_page == 2
    assert envelope.category == "upcoming-combined"


@pytest.mark.asyncio
async def test_combined_upcoming_fails_when_either_side_fails(service, fake_client):
    fake_client.get_upcoming.return_value = {"results": []}
    fake_client.discover.side_effect = TMDBError("boom")

    with pytest.raises(CategoryFetchError) as excinfo:
        await service.get_combined_upcoming()
    assert excinfo.value.category == "upcoming-combined"


# --- Streaming now ---


def _streaming_details(tmdb_id, flatrate=(8,), companies=("Netflix",)):
    return {
        "id": tmdb_id,
        "tagline": f"Tagline {tmdb_id}",
        "production_companies": [{"name": name} for name in companies],
        "watch/providers": {
            "results": {
                "US": {
                    "flatrate": [
                        {"provider_id": p, "provider_name": "Netflix"} for p in flatrate
                    ]
                }
            }
        },
    }


@pytest.mark.asyncio
async def test_streaming_now_detects_and_orders(service, fake_client):
    candidates = [
        {"id": 2, "title": "B", "release_date": "2024-06-05", "vote_count": 5},
        {"id": 1, "title": "A", "release_date": "2024-06-13", "vote_count": 5},
        {"id": 3, "title": "Broken", "release_date": "2024-06-10", "vote_count": 5},
        {"id": 4, "title": "Theatrical", "release_date": "2024-05-26", "vote_count": 4000},
    ]
    fake_client.discover.return_value = {"results": candidates}

    async def details(media_type, tmdb_id, append_to_response=""):
        assert append_to_response == "watch/providers"
        if tmdb_id == 3:
            raise TMDBError("boom")
        if tmdb_id == 4:
            return {"id": 4, "production_companies": [], "watch/providers": {}}
        return _streaming_details(tmdb_id)

    fake_client.get_details.side_effect = details

    envelope = await service.get_streaming_now()
    results = envelope.data.results

    assert [i.id for i in results] == [1, 2]
    first = results[0]
    assert first.days_since_release == 2
    assert first.is_ott_original is True
    assert "streaming_studio" in first.ott_signals
    assert first.primary_streaming_platform == "Netflix"
    assert first.streaming_available is True
    assert first.streaming_added_date_estimated is True
    assert first.tagline == "Tagline 1"
    assert first.streaming_release_score >= results[1].streaming_release_score
    assert envelope.data.recently_added_count == 2
    assert envelope.category == "streaming-now"
    assert envelope.description

    params = fake_client.discover.call_args_list[0].args[1]
    assert params["with_watch_monetization_types"] == "flatrate"
    assert params["watch_region"] == "US"
    assert params["vote_count.gte"] == 0
    # 4 windows x 8 platforms
    assert fake_client.discover.await_count == 32


@pytest.mark.asyncio
async def test_streaming_now_queries_every_window_per_platform(service, fake_client):
    fake_client.discover.return_value = {"results": []}

    await service.get_streaming_now()

    windows = [
        (
            params["release_date.gte"],
            params["release_date.lte"],
            params["vote_count.gte"],
        )
        for _, params in (call.args for call in fake_client.discover.call_args_list)
    ]
    # Bounds are counted back from 2024-06-15
    expected = {
        ("2024-06-12", "2024-06-15", 0),
        ("2024-06-08", "2024-06-11", 1),
        ("2024-06-01", "2024-06-07", 3),
        ("2024-05-16", "2024-05-31", 5),
    }
    assert set(windows) == expected
    assert all(windows.count(window) == 8 for window in expected)
    assert len(windows) == 32


@pytest.mark.asyncio
async def test_streaming_now_respects_cap(fake_client, settings):
    settings = settings.model_copy(update={"streaming_max_results": 2})
    service = CategoryService(fake_client, settings, today=lambda: TODAY)
    fake_client.discover.return_value = {
        "results": [
            {"id": i, "title": f"T{i}", "release_date": "2024-06-12", "vote_count": 1}
            for i in range(1, 9)
        ]
    }

    async def details(media_type, tmdb_id, append_to_response=""):
        return _streaming_details(tmdb_id)

    fake_client.get_details.side_effect = details

    envelope = await service.get_streaming_now()
    assert len(envelope.data.results) == 2
    assert envelope.data.total_results == 2


@pytest.mark.asyncio
async def test_streaming_now_all_discovery_failing_raises(service, fake_client):
    fake_client.discover.side_effect = TMDBError("boom")
    with pytest.raises(CategoryFetchError):
        await service.get_streaming_now()
