import asyncio

import pytest

from adventure_story.core.errors import AIAgentError, ConfigError
from adventure_story.sources import (
    AniListFetcher,
    JikanFetcher,
    MangaDexFetcher,
    OpenRouterClient,
    WikiFetcher,
    wiki_name,
)
from conftest import DummyResponse

JIKAN = "https://api.jikan.moe/v4"
ANILIST = "https://graphql.anilist.co"
MANGADEX = "https://api.mangadex.org"
FANDOM = "https://{wiki}.fandom.com/api.php"


def test_jikan_anime_info_adds_character_names(upstream):
    upstream.add("/anime/21/characters", {"data": [
        {"character": {"mal_id": 40, "name": "Monkey D. Luffy"}, "role": "Main"},
        {"character": {"mal_id": 62, "name": ""}, "role": "Supporting"},
    ]})
    upstream.add("/anime/21", {"data": {
        "mal_id": 21, "title": "One Piece", "synopsis": "Pirates.", "genres": [{"name": "Action"}],
    }})
    upstream.add("/anime", {"data": [{"mal_id": 21, "title": "One Piece"}]})

    info = asyncio.run(JikanFetcher(JIKAN).get_anime_info("One Piece"))

    assert info["synopsis"] == "Pirates."
    assert info["genres"] == ["Action"]
    assert info["characters"] == ["Monkey D. Luffy"]
    assert upstream.calls[0]["params"]["q"] == "One Piece"


def test_jikan_anime_info_none_when_no_hits(upstream):
    upstream.add("/anime", {"data": []})
    assert asyncio.run(JikanFetcher(JIKAN).get_anime_info("Nope")) is None


def test_jikan_search_content_sorted_by_relevance(upstream):
    upstream.add("/anime", {"data": [
        {"mal_id": 1, "title": "Naruto Shippuden"},
        {"mal_id": 2, "title": "Naruto"},
    ]})

    results = asyncio.run(JikanFetcher(JIKAN).search_content("Naruto", "naruto"))

    assert [r["name"] for r in results] == ["Naruto", "Naruto Shippuden"]
    assert all(r["type"] == "anime" and r["source"] == "Naruto" for r in results)


def test_anilist_graphql_errors_mean_no_data(upstream):
    upstream.add("graphql", {"errors": [{"message": "Validation error"}]})
    assert asyncio.run(AniListFetcher(ANILIST).search_media("One Piece", "ANIME")) == []


def test_anilist_responses_are_memoized(upstream):
    upstream.add("graphql", {"data": {"Page": {"media": [{"id": 21, "title": {"romaji": "One Piece"}}]}}})
    fetcher = AniListFetcher(ANILIST)

    async def run():
        a = await fetcher.search_media("One Piece", "ANIME")
        b = await fetcher.search_media("One Piece", "ANIME")
        return a, b

    a, b = asyncio.run(run())
    assert a == b
    assert len(upstream.calls) == 1
    assert upstream.calls[0]["method"] == "POST"
    assert upstream.calls[0]["json"]["variables"] == {"search": "One Piece", "type": "ANIME"}


def test_anilist_character_info_prefers_character_from_source(upstream):
    hits = {"data": {"Page": {"characters": [
        {"id": 1, "name": {"full": "Luffy"}, "media": {"nodes": [{"title": {"romaji": "Other Show"}}]}},
        {"id": 40, "name": {"full": "Monkey D. Luffy", "native": "モンキー・D・ルフィ"},
         "media": {"nodes": [{"title": {"romaji": "ONE PIECE"}}]}},
    ]}}}
    detail = {"data": {"Character": {"id": 40, "description": "Captain", "age": "19", "gender": "Male"}}}

    def route(method, url, json=None, **kw):
        return DummyResponse(200, detail if "id" in json["variables"] else hits)

    upstream.add("graphql", route)

    info = asyncio.run(AniListFetcher(ANILIST).get_character_info("One Piece", "Luffy"))

    assert info["anilist_id"] == 40
    assert info["name_native"] == "モンキー・D・ルフィ"
    assert info["description"] == "Captain"
    assert info["gender"] == "Male"


def test_mangadex_search_params(upstream):
    upstream.add("/manga", {"data": [{"id": "abc", "attributes": {"title": {"en": "Berserk"}}}]})

    results = asyncio.run(MangaDexFetcher(MANGADEX).search_content("Berserk", "berserk", "manga"))

    params = upstream.calls[0]["params"]
    assert params["title"] == "berserk"
    assert "cover_art" in params["includes[]"]
    assert results[0]["name"] == "Berserk"
    assert results[0]["relevanceScore"] == 1.0


def test_mangadex_skips_non_manga_content_types(upstream):
    assert asyncio.run(MangaDexFetcher(MANGADEX).search_content("Berserk", "guts", "character")) == []
    assert upstream.calls == []


def test_mangadex_manga_by_id(upstream):
    upstream.add("/manga/abc", {"data": {"id": "abc", "type": "manga"}})
    upstream.add("/manga/zzz", DummyResponse(404))

    async def run():
        fetcher = MangaDexFetcher(MANGADEX)
        return await fetcher.get_manga_by_id("abc"), await fetcher.get_manga_by_id("zzz")

    found, missing = asyncio.run(run())
    assert found["id"] == "abc"
    assert missing is None
    assert upstream.calls[0]["params"]["includes[]"]


def test_mangadex_cover_url():
    manga = {"id": "abc", "relationships": [{"type": "cover_art", "attributes": {"fileName": "c.jpg"}}]}
    assert MangaDexFetcher.cover_url(manga) == "https://uploads.mangadex.org/covers/abc/c.jpg"
    assert MangaDexFetcher.cover_url({"id": "abc"}) is None


def test_wiki_name_mapping():
    assert wiki_name("One Piece") == "onepiece"
    assert wiki_name("  ATTACK ON TITAN ") == "shingekinokyojin"
    assert wiki_name("Unknown Show") is None


def test_wiki_missing_page_is_none(upstream):
    upstream.add("onepiece.fandom.com", {"query": {"pages": {"-1": {"title": "Nobody", "missing": ""}}}})

    assert asyncio.run(WikiFetcher(FANDOM).get_character_info("One Piece", "Nobody")) is None
    assert "onepiece.fandom.com" in upstream.calls[0]["url"]


def test_wiki_unmapped_story_raises_lookup_error(upstream):
    with pytest.raises(LookupError):
        asyncio.run(WikiFetcher(FANDOM).get_story_info("Unknown Show"))
    assert upstream.calls == []


def test_wiki_unmapped_character_is_none(upstream):
    assert asyncio.run(WikiFetcher(FANDOM).get_character_info("Unknown Show", "Someone")) is None


def test_wiki_search_scores_by_position_and_filters_type(upstream):
    upstream.add("fandom.com", {"query": {"search": [
        {"title": "Dressrosa Island", "snippet": "<span>A</span> kingdom"},
        {"title": "Monkey D. Luffy", "snippet": "Captain"},
    ]}})

    everything = asyncio.run(WikiFetcher(FANDOM).search_content("One Piece", "dressrosa"))
    assert [r["relevanceScore"] for r in everything] == [1.0, 0.95]
    assert everything[0]["description"] == "A kingdom"
    assert everything[0]["source"] == "onepiece"

    locations = asyncio.run(WikiFetcher(FANDOM).search_content("One Piece", "dressrosa", "location"))
    assert [r["name"] for r in locations] == ["Dressrosa Island"]


def test_openrouter_requires_api_key(upstream):
    client = OpenRouterClient("https://openrouter.ai/api/v1")
    assert not client.configured
    with pytest.raises(ConfigError):
        asyncio.run(client.chat([{"role": "user", "content": "hi"}]))
    assert upstream.calls == []


def test_openrouter_chat_returns_content(upstream):
    upstream.add("/chat/completions", {"choices": [{"message": {"content": "{\"result\": 1}"}}]})
    client = OpenRouterClient("https://openrouter.ai/api/v1", api_key="sk-test", model="m")

    text = asyncio.run(client.chat([{"role": "user", "content": "hi"}]))

    assert text == "{\"result\": 1}"
    call = upstream.calls[0]
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["json"]["model"] == "m"


def test_openrouter_empty_reply_is_an_error(upstream):
    upstream.add("/chat/completions", {"choices": []})
    client = OpenRouterClient("https://openrouter.ai/api/v1", api_key="sk-test")
    with pytest.raises(AIAgentError):
        asyncio.run(client.chat([{"role": "user", "content": "hi"}]))
