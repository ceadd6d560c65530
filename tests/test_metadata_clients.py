from __future__ import annotations

import json

import httpx
import pytest

from trakt_addon.clients import OMDBClient, PosterCache, TMDBClient
from trakt_addon.services.posters import PLACEHOLDER_POSTER, PosterService

NOW = 1_700_000_000_000
WEEK_MS = 7 * 24 * 60 * 60 * 1000


@pytest.mark.asyncio
async def test_tmdb_uses_id_lookup_when_available() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"poster_path": "/heat.jpg"})

    client = TMDBClient(api_key="tmdb-key", transport=httpx.MockTransport(handler))

    poster = await client.find_poster({"title": "Heat", "ids": {"tmdb": 949}}, "movie")

    assert poster == "https://image.tmdb.org/t/p/w500/heat.jpg"
    assert seen[0].url.path == "/3/movie/949"
    assert seen[0].url.params["api_key"] == "tmdb-key"


@pytest.mark.asyncio
async def test_tmdb_searches_shows_by_title_and_year() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"results": [{"poster_path": "/wire.jpg"}]})

    client = TMDBClient(api_key="tmdb-key", transport=httpx.MockTransport(handler))

    poster = await client.find_poster({"title": "The Wire", "year": 2002, "ids": {}}, "series")

    assert poster == "https://image.tmdb.org/t/p/w500/wire.jpg"
    assert seen[0].url.path == "/3/search/tv"
    assert seen[0].url.params["query"] == "The Wire"
    assert seen[0].url.params["first_air_date_year"] == "2002"


@pytest.mark.asyncio
async def test_tmdb_without_results_returns_none() -> None:
    client = TMDBClient(
        api_key="tmdb-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"results": []})),
    )

    assert await client.find_poster({"title": "Nothing"}, "movie") is None


@pytest.mark.asyncio
async def test_tmdb_transport_error_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    client = TMDBClient(api_key="tmdb-key", transport=httpx.MockTransport(handler))

    assert await client.find_poster({"title": "Heat"}, "movie") is None


@pytest.mark.asyncio
async def test_omdb_ignores_missing_poster_marker() -> None:
    client = OMDBClient(
        api_key="omdb-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"Poster": "N/A"})),
    )

    assert await client.find_poster({"ids": {"imdb": "tt0113277"}}) is None


@pytest.mark.asyncio
async def test_poster_service_falls_back_to_omdb_then_placeholder(tmp_path) -> None:
    def tmdb_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    def omdb_handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("i") == "tt1":
            return httpx.Response(200, json={"Poster": "https://omdb.example/tt1.jpg"})
        return httpx.Response(200, json={"Response": "False"})

    service = PosterService(
        PosterCache(tmp_path / "poster_cache.json", clock=lambda: NOW),
        tmdb_client=TMDBClient(api_key="k", transport=httpx.MockTransport(tmdb_handler)),
        omdb_client=OMDBClient(api_key="k", transport=httpx.MockTransport(omdb_handler)),
    )

    found = await service.poster_for({"title": "A", "ids": {"imdb": "tt1"}}, "movie")
    missing = await service.poster_for({"title": "B", "ids": {"imdb": "tt2"}}, "movie")

    assert found == "https://omdb.example/tt1.jpg"
    assert missing == PLACEHOLDER_POSTER


def test_poster_cache_expires_entries_and_persists(tmp_path) -> None:
    clock_value = [NOW]
    cache = PosterCache(tmp_path / "poster_cache.json", clock=lambda: clock_value[0])

    key = PosterCache.cache_key({"ids": {"imdb": "tt1", "trakt": 5}}, "movie")
    assert key == "tt1-movie"
    cache.set(key, "https://poster/1.jpg")
    cache.flush()

    reloaded = PosterCache(tmp_path / "poster_cache.json", clock=lambda: clock_value[0])
    assert reloaded.get(key) == "https://poster/1.jpg"

    clock_value[0] = NOW + WEEK_MS
    assert reloaded.get(key) is None
    assert PosterCache.cache_key({"ids": {}}, "movie") is None


def test_poster_cache_flush_evicts_expired_entries(tmp_path) -> None:
    clock_value = [NOW]
    path = tmp_path / "poster_cache.json"
    cache = PosterCache(path, clock=lambda: clock_value[0])
    cache.set("tt1-movie", "https://poster/old.jpg")
    cache.flush()

    clock_value[0] = NOW + WEEK_MS
    cache.set("tt2-movie", "https://poster/new.jpg")
    cache.flush()

    assert len(cache) == 1
    assert set(json.loads(path.read_text(encoding="utf-8"))) == {"tt2-movie"}
    reloaded = PosterCache(path, clock=lambda: clock_value[0])
    assert reloaded.get("tt2-movie") == "https://poster/new.jpg"
    assert len(reloaded) == 1


def test_poster_cache_flush_rewrites_file_when_only_eviction_happened(tmp_path) -> None:
    clock_value = [NOW]
    path = tmp_path / "poster_cache.json"
    cache = PosterCache(path, clock=lambda: clock_value[0])
    cache.set("tt1-movie", "https://poster/old.jpg")
    cache.flush()

    clock_value[0] = NOW + WEEK_MS + 1
    cache.flush()

    assert json.loads(path.read_text(encoding="utf-8")) == {}
