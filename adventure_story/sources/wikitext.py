# SPDX-License-Identifier: MIT
"""Naive regex extraction over raw MediaWiki markup."""

import re
from typing import Any, Dict, List, Optional

_INFOBOX_FIELD_RE = re.compile(r"^\s*\|\s*([\w ]+?)\s*=\s*(.*?)\s*$", re.M)
_SECTION_RE = re.compile(r"^==([^=].*?)==\s*$", re.M)
_SUBSECTION_RE = re.compile(r"^===+\s*(.+?)\s*===+\s*$", re.M)
_LINK_RE = re.compile(r"\[\[([^\[\]|]+)(?:\|([^\[\]]*))?\]\]")
_QUOTE_RE = re.compile(r"\{\{\s*Quote\s*\|([^|}]+)", re.I)
_TEMPLATE_RE = re.compile(r"\{\{[^{}]*\}\}")
_REF_RE = re.compile(r"<ref[^>/]*/>|<ref[^>]*>.*?</ref>", re.S)
_TAG_RE = re.compile(r"<[^>]+>")
_BULLET_RE = re.compile(r"^\*+\s*(.+)$", re.M)
_LIST_SPLIT_RE = re.compile(r"<br\s*/?>|;|,|\n", re.I)
_NUMBER_RE = {
    "episode": re.compile(r"\bEpisode\s+(\d+)", re.I),
    "chapter": re.compile(r"\bChapter\s+(\d+)", re.I),
}

CONTENT_TYPES = (
    ("character", ("character", "person")),
    ("location", ("location", "place", "island", "city")),
    ("ability", ("ability", "technique", "power")),
    ("organization", ("organization", "group", "crew")),
    ("item", ("item", "weapon", "tool")),
    ("event", ("event", "battle", "war")),
)

LOCATION_TYPES = (
    ("city", ("city", "town")),
    ("village", ("village",)),
    ("country", ("country", "nation", "kingdom")),
    ("island", ("island",)),
    ("building", ("building", "structure")),
    ("landmark", ("landmark", "monument")),
    ("dimension", ("dimension", "realm")),
)


def content_type(title: str) -> str:
    """Guess what a page is about from its title."""
    lower = (title or "").lower()
    for kind, words in CONTENT_TYPES:
        if any(w in lower for w in words):
            return kind
    return "other"


def location_type(hint: Optional[str]) -> str:
    lower = (hint or "").lower()
    for kind, words in LOCATION_TYPES:
        if any(w in lower for w in words):
            return kind
    return "other"


def location_condition(status: Optional[str]) -> str:
    lower = (status or "").lower()
    if "destroy" in lower or "ruin" in lower:
        return "destroyed"
    if "abandon" in lower:
        return "abandoned"
    if "declin" in lower:
        return "declining"
    if lower:
        return "thriving"
    return "unknown"


def plain(text: Optional[str]) -> str:
    """Strip links, templates, refs, tags and bold/italic quotes."""
    if not text:
        return ""
    text = _REF_RE.sub("", text)
    text = _LINK_RE.sub(lambda m: m.group(2) or m.group(1), text)
    # nested templates need a couple of passes
    for _ in range(3):
        text = _TEMPLATE_RE.sub("", text)
    text = _TAG_RE.sub("", text).replace("'''", "").replace("''", "")
    return re.sub(r"[ \t]+", " ", text).strip()


def infobox(content: str) -> Dict[str, str]:
    """`| key = value` lines, keys lowercased; first occurrence wins."""
    out: Dict[str, str] = {}
    for key, value in _INFOBOX_FIELD_RE.findall(content or ""):
        k = key.strip().lower()
        if k not in out and value:
            out[k] = value
    return out


def field(box: Dict[str, str], *keys: str) -> str:
    for k in keys:
        if box.get(k):
            return plain(box[k])
    return ""


def split_list(value: Optional[str]) -> List[str]:
    parts = (plain(p) for p in _LIST_SPLIT_RE.split(value or ""))
    return [p for p in parts if p]


def sections(content: str) -> Dict[str, str]:
    """Level-2 section bodies keyed by lowercased title (subsections included)."""
    out: Dict[str, str] = {}
    matches = list(_SECTION_RE.finditer(content or ""))
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(content)
        out.setdefault(m.group(1).strip().lower(), content[m.end():end].strip())
    return out


def section(secs: Dict[str, str], *names: str) -> str:
    """First section whose title contains any of `names`."""
    for name in names:
        for title, body in secs.items():
            if name in title:
                return body
    return ""


def subsections(body: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    matches = list(_SUBSECTION_RE.finditer(body or ""))
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(body)
        out.setdefault(m.group(1).strip(), body[m.end():end].strip())
    return out


def first_paragraph(body: str) -> str:
    for para in re.split(r"\n\s*\n", body or ""):
        para = para.strip()
        if para and not para.startswith(("=", "[[File:", "[[Image:", "{|", "*")):
            text = plain(para)
            if text:
                return text
    return ""


def links(text: str, limit: Optional[int] = None) -> List[str]:
    """Wiki link targets in order, deduplicated, namespaced links skipped."""
    seen: List[str] = []
    for target, _label in _LINK_RE.findall(text or ""):
        target = target.split("#")[0].strip()
        if target and ":" not in target and target not in seen:
            seen.append(target)
            if limit is not None and len(seen) >= limit:
                break
    return seen


def bullets(text: str) -> List[str]:
    items = (plain(b) for b in _BULLET_RE.findall(text or ""))
    return [b for b in items if b]


def quotes(content: str) -> List[str]:
    return [q for q in (plain(m) for m in _QUOTE_RE.findall(content or "")) if q]


def number_in(text: str, kind: str) -> Optional[int]:
    m = _NUMBER_RE[kind].search(text or "")
    return int(m.group(1)) if m else None


# ---------- Characters ----------

def character_fields(content: str) -> Dict[str, Any]:
    box = infobox(content)
    secs = sections(content)

    personality = section(secs, "personality")
    abilities = section(secs, "abilities", "powers")
    relationships = section(secs, "relationships")
    history = section(secs, "history", "background", "biography")

    powers = list(subsections(abilities)) or bullets(abilities)
    rel: Dict[str, List[str]] = {"allies": [], "enemies": [], "family": []}
    for title, body in subsections(relationships).items():
        lower = title.lower()
        if "famil" in lower:
            rel["family"] += links(body)
        elif "enem" in lower or "rival" in lower or "antagon" in lower:
            rel["enemies"] += links(body)
        else:
            rel["allies"] += links(body)
    mentor = field(box, "mentor", "teacher", "master")
    if mentor:
        rel["mentor"] = mentor

    status = field(box, "status").lower()
    current: Dict[str, Any] = {"alive": "deceased" not in status}
    for key, names in (("location", ("residence", "location")),
                       ("occupation", ("occupation", "occupations")),
                       ("affiliation", ("affiliation", "affiliations"))):
        value = field(box, *names)
        if value:
            current[key] = value

    appearance: Dict[str, Any] = {"description": first_paragraph(section(secs, "appearance"))}
    for key, names in (("height", ("height",)), ("age", ("age",)), ("species", ("species", "race"))):
        value = field(box, *names)
        if value:
            appearance[key] = value

    return {
        "aliases": [a for k in ("alias", "aliases", "epithet", "nickname", "rname", "ename")
                    for a in split_list(box.get(k))],
        "appearance": appearance,
        "personality": {"traits": bullets(personality), "description": first_paragraph(personality)},
        "abilities": {
            "powers": powers,
            "skills": bullets(section(secs, "skills")),
            "weapons": split_list(box.get("weapon") or box.get("weapons")),
            "specialAbilities": [a for k in ("devil fruit", "dfname", "quirk", "kekkei genkai", "nature type")
                                 for a in split_list(box.get(k))],
        },
        "relationships": rel,
        "backstory": {
            "origin": first_paragraph(history),
            "keyEvents": list(subsections(history)),
            "development": [],
        },
        "currentStatus": current,
        "quotes": quotes(content),
    }


# ---------- Locations ----------

def location_fields(content: str, extract: str = "") -> Dict[str, Any]:
    box = infobox(content)
    secs = sections(content)

    history = section(secs, "history")
    places = section(secs, "locations", "landmarks", "places of interest")
    residents = section(secs, "inhabitants", "residents", "notable")

    geography = {k: field(box, *names) for k, names in (
        ("region", ("region", "sea")), ("climate", ("climate",)),
        ("terrain", ("terrain",)), ("size", ("size", "area")),
    ) if field(box, *names)}

    status: Dict[str, Any] = {"condition": location_condition(field(box, "status", "condition"))}
    ruler = field(box, "ruler", "leader", "affiliation")
    if ruler:
        status["controlledBy"] = ruler

    parent = field(box, "region", "country", "location")
    connections: Dict[str, Any] = {
        "childLocations": links(places),
        "neighboringAreas": links(section(secs, "geography", "surroundings")),
        "accessMethods": bullets(section(secs, "access", "transport")),
    }
    if parent:
        connections["parentLocation"] = parent

    history_out: Dict[str, Any] = {
        "keyEvents": list(subsections(history)) or bullets(history),
        "significance": first_paragraph(history),
    }
    founded = field(box, "founded", "established")
    if founded:
        history_out["founded"] = founded

    return {
        "aliases": split_list(box.get("alias") or box.get("aliases") or box.get("ename")),
        "type": location_type(field(box, "type") or extract.split(".")[0]),
        "description": extract or first_paragraph(content),
        "geography": geography,
        "population": {k: v for k, v in (
            ("count", field(box, "population")),
            ("demographics", split_list(box.get("races") or box.get("species"))),
        ) if v},
        "features": {
            "landmarks": bullets(places) or links(places),
            "importantBuildings": links(section(secs, "buildings", "structures")),
            "naturalFeatures": bullets(section(secs, "geography", "nature")),
        },
        "history": history_out,
        "connections": connections,
        "currentStatus": status,
        "notableResidents": links(residents),
    }


# ---------- Story / timeline ----------

def story_fields(content: str) -> Dict[str, Any]:
    box = infobox(content)
    secs = sections(content)
    chars = section(secs, "characters")
    return {
        "plotSummary": first_paragraph(section(secs, "plot", "synopsis", "story")),
        "worldBuilding": {
            "setting": field(box, "setting") or "Fantasy/Adventure",
            "timeType": "Alternative Timeline",
            "powerSystem": first_paragraph(section(secs, "power", "magic", "abilities")),
            "importantLocations": links(section(secs, "setting", "world", "locations")),
            "mainOrganizations": links(section(secs, "organization", "factions")),
        },
        "mainCharacters": links(chars, 10) if chars else links(content, 10),
    }


def story_arcs(content: str) -> List[Dict[str, Any]]:
    """Every section or subsection whose title mentions an arc."""
    arcs = []
    bodies = dict(sections(content))
    for body in list(bodies.values()):
        bodies.update(subsections(body))
    for title, body in bodies.items():
        if "arc" not in title.lower() or title.lower() == "arcs":
            continue
        arc: Dict[str, Any] = {
            "name": title if title[:1].isupper() else title.title(),
            "description": first_paragraph(body),
            "keyEvents": bullets(body),
        }
        box = infobox(body)
        for key in ("episodes", "chapters"):
            if box.get(key):
                arc[key] = plain(box[key])
        arcs.append(arc)
    return arcs


def timeline_events(content: str, arc_name: Optional[str] = None) -> List[Dict[str, Any]]:
    """Bullet points become events tagged with the section they sit in."""
    wanted = (arc_name or "").lower()
    events = []
    for title, body in (sections(content) or {"": content}).items():
        if wanted and wanted not in title:
            continue
        for line in _BULLET_RE.findall(body):
            text = plain(line)
            if not text:
                continue
            events.append({
                "episode": number_in(line, "episode"),
                "chapter": number_in(line, "chapter"),
                "arc": title.title() if title else (arc_name or ""),
                "event": text,
                "characters": links(line),
                "location": "",
                "significance": "major" if "'''" in line else "minor",
                "consequences": [],
            })
    return events
