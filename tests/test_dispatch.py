import asyncio
import json

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND

from adventure_story.core.config import Settings
from adventure_story.services import Services
from adventure_story.tools.dispatch import CATALOG, CONTEXT_SET_MESSAGE, ToolDispatcher, required_message
from conftest import FakeSource


@pytest.fixture
def services():
    s = Services.from_settings(Settings(storage_backend="memory"))
    yield s
    s.close()


@pytest.fixture
def dispatcher(services):
    return ToolDispatcher(services)


def call(dispatcher, name, **arguments):
    return asyncio.run(dispatcher.call(name, arguments))


def text(result):
    return result["content"][0]["text"]


def test_catalog_has_every_tool_once():
    names = [t.name for t in CATALOG]
    assert len(names) == 24
    assert len(set(names)) == 24
    assert {"get_story_info", "record_player_choice", "ai_generate_roleplay_context", "cache_clear"} <= set(names)


def test_unknown_tool(dispatcher):
    with pytest.raises(McpError) as exc:
        call(dispatcher, "summon_dragon")
    assert exc.value.error.code == METHOD_NOT_FOUND
    assert exc.value.error.message == "Unknown tool: summon_dragon"


@pytest.mark.parametrize("name,arguments,message", [
    ("get_story_info", {}, "source_name is required"),
    ("get_story_info", {"source_name": ""}, "source_name is required"),
    ("get_character_data", {"character_name": "Luffy"}, "character_name and source_name are required"),
    ("validate_story_element", {"source_name": "Naruto", "element_type": None, "element_name": "Itachi"},
     "source_name, element_type, and element_name are required"),
])
def test_missing_required_arguments(dispatcher, services, name, arguments, message):
    services.story = FakeSource("story")
    services.characters = FakeSource("characters")

    with pytest.raises(McpError) as exc:
        call(dispatcher, name, **arguments)

    assert exc.value.error.code == INVALID_PARAMS
    assert exc.value.error.message == message
    assert services.story.calls == [] and services.characters.calls == []


def test_required_message_single():
    assert required_message(("adventure_id",)) == "adventure_id is required"


def test_result_is_pretty_json(dispatcher, services):
    services.story = FakeSource("story", get_story_info={"name": "Naruto", "japanese": "ナルト"})

    result = call(dispatcher, "get_story_info", source_name="Naruto", setting=None, unknown="ignored")

    assert result["content"][0]["type"] == "text"
    assert json.loads(text(result)) == {"name": "Naruto", "japanese": "ナルト"}
    assert "ナルト" in text(result)
    assert text(result).startswith("{\n  ")
    assert services.story.calls == [("get_story_info", ("Naruto", None, None), {})]


def test_handler_failure_is_internal_error(dispatcher, services):
    services.story = FakeSource("story", get_story_info=RuntimeError("upstream exploded"))

    with pytest.raises(McpError) as exc:
        call(dispatcher, "get_story_info", source_name="Naruto")

    assert exc.value.error.code == INTERNAL_ERROR
    assert exc.value.error.message == "Error executing tool get_story_info: upstream exploded"


def test_adventure_round_trip(dispatcher):
    result = call(dispatcher, "set_adventure_context", adventure_id="adv-1", source_name="One Piece",
                  active_characters=["Luffy"])
    assert text(result) == CONTEXT_SET_MESSAGE

    call(dispatcher, "record_player_choice", adventure_id="adv-1", choice="Set sail")
    state = json.loads(text(call(dispatcher, "get_adventure_state", adventure_id="adv-1")))
    assert state["context"]["story_state"]["player_choices"][0]["choice"] == "Set sail"

    listed = json.loads(text(call(dispatcher, "list_adventures")))
    assert [a["adventureId"] for a in listed] == ["adv-1"]


def test_recording_choice_for_unknown_adventure(dispatcher):
    with pytest.raises(McpError) as exc:
        call(dispatcher, "record_player_choice", adventure_id="ghost", choice="Hide")
    assert exc.value.error.code == INTERNAL_ERROR
    assert "Adventure context not found for ghost" in exc.value.error.message


def test_roleplay_context_falls_back_to_recorded_choices(dispatcher, services):
    services.ai = FakeSource("ai", generate_adventure_context=lambda data, choices, depth: {"choices": choices})
    call(dispatcher, "set_adventure_context", adventure_id="adv-1", source_name="One Piece")
    call(dispatcher, "record_player_choice", adventure_id="adv-1", choice="Set sail")

    out = json.loads(text(call(dispatcher, "ai_generate_roleplay_context", adventure_id="adv-1",
                               adventure_data={"scene": "harbor"})))

    assert [c["choice"] for c in out["choices"]] == ["Set sail"]


def test_cache_info_and_clear(dispatcher, services):
    services.cache.set("k", "v")

    info = json.loads(text(call(dispatcher, "cache_info")))
    assert info["keys"] == 1
    assert info["schemaVersion"] == "1.0.0"

    cleared = json.loads(text(call(dispatcher, "cache_clear")))
    assert cleared == {"schemaVersion": "1.0.0", "cleared": 1}
    assert len(services.cache) == 0


def test_health_ok(dispatcher):
    health = json.loads(text(call(dispatcher, "health")))
    assert health["ok"] is True
    assert health["ai"] is False
    assert health["sources"] == ["jikan", "anilist", "mangadex", "wiki"]


def test_health_degraded_when_storage_fails(dispatcher, services):
    services.adventure = FakeSource("adventure", list_adventures=OSError("disk gone"))

    health = json.loads(text(call(dispatcher, "health")))

    assert health["ok"] is False
    assert health["error"] == {"code": "UNAVAILABLE", "message": "disk gone", "source": "storage"}


def test_about_reports_limits(dispatcher):
    about = json.loads(text(call(dispatcher, "about")))

    assert about["name"] == "adventure-story-server"
    assert about["endpoints"]["jikan"] == "https://api.jikan.moe/v4"
    assert about["limits"]["timeoutSec"] == 15
    assert about["limits"]["rateLimits"]["jikan"]["delaySec"] == 1.0
    assert set(about["limits"]["rateLimits"]) == {"jikan", "anilist", "mangadex", "wiki", "openrouter"}
    assert len(about["tools"]) == 24
