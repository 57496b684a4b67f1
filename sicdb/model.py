"""SafeInCloud database model and its XML representation."""

from __future__ import annotations

import dataclasses
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'

_ESCAPES = {
    '"': "&#34;", "'": "&#39;", "&": "&amp;", "<": "&lt;", ">": "&gt;",
    "\t": "&#x9;", "\n": "&#xA;", "\r": "&#xD;",
}
_OMIT_EMPTY = {"first_stamp", "autofill"}
_NOT_ATTRS = {"text", "fields"}


class DatabaseFormatError(ValueError):
    """Raised when XML cannot be read as a SafeInCloud database."""


def _escape(text: str) -> str:
    def convert(char: str) -> str:
        code = ord(char)
        valid = (code in (0x09, 0x0A, 0x0D) or 0x20 <= code <= 0xD7FF
                 or 0xE000 <= code <= 0xFFFD or 0x10000 <= code <= 0x10FFFF)
        return _ESCAPES.get(char, char if valid else "\ufffd")

    return "".join(map(convert, text))


def _local(name: str) -> str:
    return name.rpartition("}")[2]


def _chardata(element: ET.Element) -> str:
    return (element.text or "") + "".join(child.tail or "" for child in element)


def _children(element: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in element if _local(child.tag) == tag]


def _element(tag, attrs, text, depth, children=None) -> list[str]:
    indent = "\t" * depth
    parts = [tag, *(f'{key}="{_escape(value)}"' for key, value in attrs)]
    head = f"{indent}<{' '.join(parts)}>"
    if not children:
        return [f"{head}{_escape(text)}</{tag}>"]
    return [head, *(line for child in children for line in child), f"{indent}</{tag}>"]


def _render(tag: str, record, depth: int) -> list[str]:
    attrs = [
        (f.name, getattr(record, f.name))
        for f in dataclasses.fields(record)
        if f.name not in _NOT_ATTRS
        and (getattr(record, f.name) or f.name not in _OMIT_EMPTY)
    ]
    children = [_render("field", item, depth + 1) for item in getattr(record, "fields", [])]
    return _element(tag, attrs, getattr(record, "text", ""), depth, children)


def _parse(cls, element: ET.Element):
    found = {_local(key): value for key, value in element.attrib.items()}
    names = {f.name for f in dataclasses.fields(cls)}
    kwargs = {name: found[name] for name in names - _NOT_ATTRS if name in found}
    if "text" in names:
        kwargs["text"] = _chardata(element)
    if "fields" in names:
        kwargs["fields"] = [_parse(Field, child) for child in _children(element, "field")]
    return cls(**kwargs)


@dataclass
class Ghost:
    """Tombstone for a deleted card, kept so sync can propagate the deletion."""

    id: str = ""
    time_stamp: str = ""


@dataclass
class Label:
    """A user- or schema-defined tag that can be attached to cards."""

    type: str = ""
    time_stamp: str = ""
    id: str = ""
    name: str = ""


@dataclass
class Field:
    """A single labelled value within a card, such as a login or PIN."""

    hash: str = ""
    history: str = ""
    name: str = ""
    type: str = ""
    text: str = ""
    score: str = ""
    autofill: str = ""


@dataclass
class File:
    """A binary attachment stored inline as text."""

    name: str = ""
    text: str = ""


@dataclass
class Card:
    """A single entry; cards with ``template="true"`` define entry schemas."""

    id: str = ""
    symbol: str = ""
    template: str = ""
    type: str = ""
    website_icon: str = ""
    time_stamp: str = ""
    first_stamp: str = ""
    deleted: str = ""
    title: str = ""
    color: str = ""
    star: str = ""
    autofill: str = ""
    fields: list[Field] = field(default_factory=list)


@dataclass
class Database:
    """Root of a SafeInCloud database."""

    notes: list[str] = field(default_factory=list)
    label_ids: list[str] = field(default_factory=list)
    files: list[list[File]] = field(default_factory=list)
    ghosts: list[Ghost] = field(default_factory=list)
    labels: list[Label] = field(default_factory=list)
    cards: list[Card] = field(default_factory=list)


def marshal(db: Database) -> bytes:
    """Serialise a database to the tab-indented XML that encryption expects."""
    children = [
        *(_element("notes", [], note, 1) for note in db.notes),
        *(_element("label_id", [], ident, 1) for ident in db.label_ids),
        *(_render("file", item, 1) for group in db.files for item in group),
        *(_render("ghost", ghost, 1) for ghost in db.ghosts),
        *(_render("label", label, 1) for label in db.labels),
        *(_render("card", card, 1) for card in db.cards),
    ]
    lines = _element("database", [], "", 0, children)
    return (XML_HEADER + "\n".join(lines)).encode("utf-8")


def unmarshal(raw: bytes | str) -> Database:
    """Parse database XML; raises DatabaseFormatError when it is not valid."""
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise DatabaseFormatError(f"could not unmarshal xml: {exc}") from exc
    name = _local(root.tag)
    if name != "database":
        raise DatabaseFormatError(
            f"could not unmarshal xml: expected element type <database> but have <{name}>"
        )
    return Database(
        notes=[_chardata(child) for child in _children(root, "notes")],
        label_ids=[_chardata(child) for child in _children(root, "label_id")],
        files=[[_parse(File, child)] for child in _children(root, "file")],
        ghosts=[_parse(Ghost, child) for child in _children(root, "ghost")],
        labels=[_parse(Label, child) for child in _children(root, "label")],
        cards=[_parse(Card, child) for child in _children(root, "card")],
    )