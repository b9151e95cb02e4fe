from adventure_story.sources import wikitext

LUFFY = """{{Char Box
| name = Monkey D. Luffy
| alias = Straw Hat Luffy; Lucy
| status = Alive
| affiliation = [[Straw Hat Pirates]]
| dfname = Gomu Gomu no Mi
}}
== Appearance ==
Luffy is a slim young man with a [[Straw Hat]].

== Abilities and Powers ==
=== Haki ===
Strong.
=== Gear Fifth ===
Awakened.

== Relationships ==
=== Family ===
[[Monkey D. Garp]] and [[Monkey D. Dragon]].
=== Enemies ===
[[Kaido]]
=== Crew ===
[[Roronoa Zoro]]
"""

TIMELINE = """== Romance Dawn Arc ==
* '''Luffy sets sail''' in Episode 1 with [[Koby]]
* Luffy meets Zoro in Chapter 3
== Orange Town Arc ==
* Buggy appears
"""


def test_character_fields():
    info = wikitext.character_fields(LUFFY)

    assert info["aliases"] == ["Straw Hat Luffy", "Lucy"]
    assert info["abilities"]["powers"] == ["Haki", "Gear Fifth"]
    assert info["abilities"]["specialAbilities"] == ["Gomu Gomu no Mi"]
    assert info["relationships"]["family"] == ["Monkey D. Garp", "Monkey D. Dragon"]
    assert info["relationships"]["enemies"] == ["Kaido"]
    assert info["relationships"]["allies"] == ["Roronoa Zoro"]
    assert info["currentStatus"] == {"alive": True, "affiliation": "Straw Hat Pirates"}
    assert info["appearance"]["description"] == "Luffy is a slim young man with a Straw Hat."


def test_deceased_status():
    info = wikitext.character_fields("| status = Deceased\n")
    assert info["currentStatus"]["alive"] is False


def test_timeline_events_for_one_arc():
    events = wikitext.timeline_events(TIMELINE, "romance dawn")

    assert [e["event"] for e in events] == [
        "Luffy sets sail in Episode 1 with Koby",
        "Luffy meets Zoro in Chapter 3",
    ]
    first, second = events
    assert (first["episode"], first["significance"], first["characters"]) == (1, "major", ["Koby"])
    assert (second["chapter"], second["significance"]) == (3, "minor")
    assert first["arc"] == "Romance Dawn Arc"


def test_timeline_events_all_sections():
    assert len(wikitext.timeline_events(TIMELINE)) == 3


def test_story_arcs():
    arcs = wikitext.story_arcs(TIMELINE)
    assert [a["name"] for a in arcs] == ["Romance Dawn Arc", "Orange Town Arc"]
    assert arcs[1]["keyEvents"] == ["Buggy appears"]


def test_story_fields_defaults():
    info = wikitext.story_fields("Nothing structured here.")
    assert info["worldBuilding"]["setting"] == "Fantasy/Adventure"
    assert info["worldBuilding"]["timeType"] == "Alternative Timeline"
    assert info["mainCharacters"] == []


def test_location_classification():
    assert wikitext.location_type("Hidden Leaf Village") == "village"
    assert wikitext.location_type("Kingdom of Alabasta") == "country"
    assert wikitext.location_type("Marineford") == "other"
    assert wikitext.location_condition("Destroyed") == "destroyed"
    assert wikitext.location_condition("Active") == "thriving"
    assert wikitext.location_condition("") == "unknown"


def test_content_type_from_title():
    assert wikitext.content_type("List of Islands") == "location"
    assert wikitext.content_type("Summit War") == "event"
    assert wikitext.content_type("Monkey D. Luffy") == "other"


def test_links_skip_namespaces_and_duplicates():
    text = "[[File:x.png]] [[Zoro]] [[Zoro|the swordsman]] [[Nami#Past]]"
    assert wikitext.links(text) == ["Zoro", "Nami"]


def test_location_fields():
    content = """| type = Island
| status = Ruined
| region = [[Grand Line]]
== History ==
An ancient island.
== Notable residents ==
[[Nico Robin]]
"""
    info = wikitext.location_fields(content, "Ohara is an island in the West Blue.")
    assert info["type"] == "island"
    assert info["description"] == "Ohara is an island in the West Blue."
    assert info["currentStatus"]["condition"] == "destroyed"
    assert info["connections"]["parentLocation"] == "Grand Line"
    assert info["notableResidents"] == ["Nico Robin"]
    assert info["history"]["significance"] == "An ancient island."
