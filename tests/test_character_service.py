import asyncio

import pytest

from adventure_story.services.characters import CharacterService, merge_character
from conftest import FakeSource

WIKI_LUFFY = {
    "aliases": ["Straw Hat Luffy"],
    "appearance": {"description": ""},
    "abilities": {"powers": ["Gear Fifth", "Haki"], "skills": ["Hand-to-hand combat"],
                  "weapons": [], "specialAbilities": ["Gomu Gomu no Mi"]},
    "relationships": {"allies": ["Roronoa Zoro"], "enemies": ["Kaido"], "family": ["Monkey D. Garp"]},
    "currentStatus": {"alive": True, "affiliation": "Straw Hat Pirates"},
    "quotes": ["I'm gonna be King of the Pirates!"],
    "images": ["wiki.png"],
}
JIKAN_LUFFY = {"description": "Captain of the Straw Hat Pirates.", "images": ["mal.jpg"]}
ANILIST_LUFFY = {"description": "AniList bio", "name_native": "モンキー・D・ルフィ", "images": ["al.png"],
                 "gender": "Male", "age": 19}


def make_service(wiki=WIKI_LUFFY, jikan=JIKAN_LUFFY, anilist=ANILIST_LUFFY):
    return CharacterService(
        FakeSource("wiki", get_character_info=wiki, search_characters=[]),
        FakeSource("jikan", get_character_info=jikan),
        FakeSource("anilist", get_character_info=anilist),
    )


def test_luffy_merge_takes_each_field_from_its_source():
    data = asyncio.run(make_service().get_character_data("Luffy", "One Piece"))

    assert data["abilities"]["powers"] == ["Gear Fifth", "Haki"]
    assert "モンキー・D・ルフィ" in data["aliases"]
    assert data["appearance"]["description"] == "Captain of the Straw Hat Pirates."
    assert data["appearance"]["species"] == "Male"
    assert data["appearance"]["age"] == "19"
    assert data["images"] == ["wiki.png", "mal.jpg", "al.png"]
    assert data["currentStatus"]["affiliation"] == "Straw Hat Pirates"


@pytest.mark.parametrize("failing", ["wiki", "jikan", "anilist"])
def test_luffy_merge_survives_any_one_source_failing(failing):
    sources = {"wiki": WIKI_LUFFY, "jikan": JIKAN_LUFFY, "anilist": ANILIST_LUFFY}
    sources[failing] = RuntimeError(f"{failing} down")

    data = asyncio.run(make_service(**sources).get_character_data("Luffy", "One Piece"))

    assert data["name"] == "Luffy"
    assert data["source"] == "One Piece"
    if failing != "wiki":
        assert data["abilities"]["powers"] == ["Gear Fifth", "Haki"]
    if failing != "anilist":
        assert "モンキー・D・ルフィ" in data["aliases"]
    if failing != "jikan":
        assert data["appearance"]["description"] == "Captain of the Straw Hat Pirates."


def test_all_sources_failing_gives_defaults():
    service = make_service(wiki=RuntimeError("x"), jikan=RuntimeError("y"), anilist=RuntimeError("z"))
    data = asyncio.run(service.get_character_data("Nobody", "One Piece"))

    assert data["aliases"] == []
    assert data["abilities"]["powers"] == []
    assert data["currentStatus"] == {"alive": True}
    assert data["appearance"]["description"] == ""


def test_aliases_are_deduplicated():
    anilist = dict(ANILIST_LUFFY, name_native="Straw Hat Luffy")
    data = merge_character("Luffy", "One Piece", WIKI_LUFFY, None, anilist)
    assert data["aliases"] == ["Straw Hat Luffy"]


@pytest.mark.parametrize("arc,enhanced", [
    ("Post-Timeskip", True),
    ("Summit WAR", True),
    ("Romance Dawn", False),
])
def test_arc_context_enhances_powers(arc, enhanced):
    data = merge_character("Luffy", "One Piece", WIKI_LUFFY, None, None, arc)

    assert data["currentStatus"]["arc"] == arc
    if enhanced:
        assert data["abilities"]["powers"] == [f"Gear Fifth (Enhanced during {arc})", f"Haki (Enhanced during {arc})"]
    else:
        assert data["abilities"]["powers"] == ["Gear Fifth", "Haki"]
    # the shared fixture is untouched
    assert WIKI_LUFFY["abilities"]["powers"] == ["Gear Fifth", "Haki"]


def test_relationships_and_abilities_views():
    service = make_service()

    async def run():
        rel = await service.get_character_relationships("Luffy", "One Piece")
        abilities = await service.get_character_abilities("Luffy", "One Piece")
        return rel, abilities

    rel, abilities = asyncio.run(run())
    assert rel == {"allies": ["Roronoa Zoro"], "enemies": ["Kaido"], "family": ["Monkey D. Garp"], "students": []}
    assert abilities["specialAbilities"] == ["Gomu Gomu no Mi"]


@pytest.mark.parametrize("ability,valid,confidence", [
    ("haki", True, 1.0),
    ("Gomu Gomu", True, 0.7),
    ("Rasengan", False, 0),
])
def test_validate_character_ability(ability, valid, confidence):
    result = asyncio.run(make_service().validate_character_ability("Luffy", "One Piece", ability))
    assert result["isValid"] is valid
    assert result["confidence"] == confidence


def test_search_characters_filters_on_carried_facts():
    hits = [
        {"name": "Roronoa Zoro", "score": 1.0, "basicInfo": {}},
        {"name": "Portgas D. Ace", "score": 0.9,
         "basicInfo": {"currentStatus": {"alive": False, "affiliation": "Whitebeard Pirates"}}},
        {"name": "Nami", "score": 0.8,
         "basicInfo": {"currentStatus": {"alive": True, "affiliation": "Straw Hat Pirates"}}},
    ]
    service = CharacterService(FakeSource("wiki", search_characters=hits), FakeSource("jikan"), FakeSource("anilist"))

    alive = asyncio.run(service.search_characters("One Piece", "pirate", {"status": "alive"}))
    assert [h["name"] for h in alive] == ["Roronoa Zoro", "Nami"]

    crew = asyncio.run(service.search_characters("One Piece", "pirate", {"affiliation": "Whitebeard Pirates"}))
    assert [h["name"] for h in crew] == ["Roronoa Zoro", "Portgas D. Ace"]


def test_sparse_wiki_sections_keep_default_fields():
    data = merge_character("Luffy", "One Piece", {"abilities": {"powers": ["Gum-Gum"]}}, None, None)

    assert data["abilities"] == {"powers": ["Gum-Gum"], "skills": [], "weapons": [], "specialAbilities": []}
    assert data["personality"] == {"traits": [], "description": ""}
    assert data["backstory"]["keyEvents"] == []
