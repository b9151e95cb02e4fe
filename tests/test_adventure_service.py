import asyncio
from datetime import timedelta

import pytest

from adventure_story.core.cache import TTLCache
from adventure_story.core.errors import AdventureNotFoundError
from adventure_story.services.adventure import AdventureService, build_ai_context
from adventure_story.storage import MemoryAdventureStore, SQLiteAdventureStore, open_store
from adventure_story.storage.base import iso, utc_now


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryAdventureStore()
    else:
        s = SQLiteAdventureStore(str(tmp_path / "stories.db"))
    yield s
    s.close()


@pytest.fixture
def service(store):
    return AdventureService(store, TTLCache())


def test_set_and_get_state(service):
    async def run():
        await service.set_adventure_context("adv-1", "Naruto", "Chunin Exams", ["Naruto Uzumaki", "Sakura Haruno"],
                                            {"current_location": "Forest of Death"})
        return await service.get_adventure_state("adv-1")

    state = asyncio.run(run())

    ctx = state["context"]
    assert ctx["source_name"] == "Naruto"
    assert ctx["active_characters"] == ["Naruto Uzumaki", "Sakura Haruno"]
    assert ctx["story_state"]["current_location"] == "Forest of Death"
    assert ctx["story_state"]["player_choices"] == []
    assert state["recent_events"] == []
    facts = state["ai_context"]["important_facts"]
    assert "Current arc: Chunin Exams" in facts
    assert "Current location: Forest of Death" in facts


def test_unknown_adventure_state_is_none(service):
    assert asyncio.run(service.get_adventure_state("missing")) is None


def test_mutating_unknown_adventure_raises(service):
    with pytest.raises(AdventureNotFoundError):
        asyncio.run(service.add_player_choice("missing", "Run away"))


def test_created_at_survives_updates(service, store):
    async def run():
        await service.set_adventure_context("adv-1", "Naruto")
        first = store.get_context("adv-1")
        await service.set_adventure_context("adv-1", "Naruto", current_arc="Pain Assault")
        return first, store.get_context("adv-1")

    first, second = asyncio.run(run())
    assert second["created_at"] == first["created_at"]
    assert second["current_arc"] == "Pain Assault"


def test_player_choice_records_event_and_refreshes_state(service):
    async def run():
        await service.set_adventure_context("adv-1", "One Piece", active_characters=["Luffy"])
        before = await service.get_adventure_state("adv-1")
        entry = await service.add_player_choice("adv-1", "Fight Kaido", ["Wano is liberated"])
        after = await service.get_adventure_state("adv-1")
        return before, entry, after

    before, entry, after = asyncio.run(run())

    assert before["recent_events"] == []
    assert entry["choice"] == "Fight Kaido"
    assert entry["consequences"] == ["Wano is liberated"]
    assert after["context"]["story_state"]["player_choices"][0]["choice"] == "Fight Kaido"
    event = after["recent_events"][0]
    assert (event["type"], event["content"], event["characters"]) == ("choice", "Fight Kaido", ["Luffy"])
    assert "Recent player choices: Fight Kaido" in after["ai_context"]["important_facts"]


def test_relationships_and_plot_points(service):
    async def run():
        await service.set_adventure_context("adv-1", "Naruto")
        await service.update_character_relationship("adv-1", "Naruto", "Sasuke", "rival")
        await service.add_plot_point("adv-1", {"id": "p1", "description": "Find Sasuke", "status": "active",
                                               "importance": "high"})
        await service.update_plot_point_status("adv-1", "p1", "resolved")
        return await service.get_context("adv-1")

    ctx = asyncio.run(run())
    assert ctx["story_state"]["character_relationships"] == {"Naruto": {"Sasuke": "rival"}}
    assert ctx["story_state"]["plot_points"][0]["status"] == "resolved"


def test_unknown_plot_point_raises(service):
    async def run():
        await service.set_adventure_context("adv-1", "Naruto")
        await service.update_plot_point_status("adv-1", "nope", "resolved")

    with pytest.raises(LookupError):
        asyncio.run(run())


def test_concurrent_writes_last_write_wins(service, store):
    async def run():
        await asyncio.gather(
            service.set_adventure_context("adv-1", "Naruto", story_state={"world_state": {"writer": "a"}}),
            service.set_adventure_context("adv-1", "Naruto", story_state={"world_state": {"writer": "b"}}),
        )

    asyncio.run(run())

    persisted = store.get_context("adv-1")
    assert persisted["story_state"]["world_state"]["writer"] in ("a", "b")
    assert len(store.list_adventures()) == 1


def test_list_and_delete(service):
    async def run():
        await service.set_adventure_context("adv-1", "Naruto")
        await service.set_adventure_context("adv-2", "One Piece")
        listed = await service.list_adventures()
        deleted = await service.delete_adventure_context("adv-1")
        again = await service.delete_adventure_context("adv-1")
        state = await service.get_adventure_state("adv-1")
        return listed, deleted, again, state

    listed, deleted, again, state = asyncio.run(run())
    assert {a["adventureId"] for a in listed} == {"adv-1", "adv-2"}
    assert (deleted, again, state) == (True, False, None)


def test_recent_events_newest_first_and_limited(store):
    store.save_context({"adventure_id": "adv-1", "source_name": "Naruto", "current_arc": None,
                        "active_characters": [], "story_state": {}, "created_at": iso(utc_now()),
                        "updated_at": iso(utc_now())})
    base = utc_now()
    for i in range(12):
        store.add_event("adv-1", {"type": "dialogue", "content": f"line {i}", "characters": [],
                                  "timestamp": iso(base + timedelta(seconds=i))})

    events = store.recent_events("adv-1", limit=10)
    assert len(events) == 10
    assert events[0]["content"] == "line 11"
    assert events[-1]["content"] == "line 2"


def test_story_cache_expiry(store):
    store.cache_story_data("story_info:Naruto", "Naruto", {"name": "Naruto"}, ttl_hours=1)
    store.cache_story_data("story_info:Old", "Old", {"name": "Old"}, ttl_hours=-1)

    assert store.get_cached_story_data("story_info:Naruto") == {"name": "Naruto"}
    assert store.get_cached_story_data("story_info:Old") is None
    assert store.clean_expired_cache() == 1


def test_open_store_backends(tmp_path):
    assert isinstance(open_store("memory", "ignored"), MemoryAdventureStore)
    s = open_store("sqlite", str(tmp_path / "nested" / "db.sqlite"))
    assert isinstance(s, SQLiteAdventureStore)
    s.close()


def test_build_ai_context_lists_active_plot_points():
    ctx = {
        "current_arc": "Wano",
        "active_characters": ["Luffy", "Zoro"],
        "story_state": {
            "major_events": ["a", "b", "c", "d"],
            "plot_points": [{"description": "Defeat Kaido", "status": "active"},
                            {"description": "Find Ace", "status": "resolved"}],
        },
    }
    facts = build_ai_context(ctx)["important_facts"]
    assert "Active characters: Luffy, Zoro" in facts
    assert "Major events: b, c, d" in facts
    assert "Active plot points: Defeat Kaido" in facts
    assert "Current location: Unknown" in facts


def test_update_story_state_merges_keys(service):
    async def run():
        await service.set_adventure_context("adv-1", "Naruto", story_state={"world_state": {"season": "winter"}})
        await service.get_adventure_state("adv-1")
        await service.update_story_state("adv-1", {"current_location": "Valley of the End"})
        return await service.get_adventure_state("adv-1")

    state = asyncio.run(run())
    story_state = state["context"]["story_state"]
    assert story_state["current_location"] == "Valley of the End"
    assert story_state["world_state"] == {"season": "winter"}
    assert "Current location: Valley of the End" in state["ai_context"]["important_facts"]


def test_cached_context_reports_original_created_at(service, store):
    async def run():
        await service.set_adventure_context("adv-1", "Naruto")
        original = store.get_context("adv-1")["created_at"]
        await asyncio.sleep(0.01)
        returned = await service.set_adventure_context("adv-1", "Naruto", current_arc="Pain Assault")
        cached = await service.get_context("adv-1")
        return original, returned, cached

    original, returned, cached = asyncio.run(run())
    assert returned["created_at"] == original
    assert cached["created_at"] == original
    assert cached["current_arc"] == "Pain Assault"
