"""Pure transforms over a ``PolicyDocument``.

Every function returns a document; unknown ids leave the input untouched so
stale UI callbacks (a double click racing a delete) are harmless.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, TypeVar

from src.models.identity import IdFactory, new_node_id
from src.models.policy import (
    PolicyDocument,
    RichContent,
    Section,
    Subsection,
    SubsectionBody,
    UseCaseBody,
    check_invariants,
)

T = TypeVar("T")

NEW_SUBSECTION_TITLE = "New Sub Section"
NEW_SUBSECTION_BODY = "<h2>New Section</h2><p>Enter your content here</p>"
# Three fixed sections precede user-added ones; the offset is kept as shipped.
# The count includes the section being added: a sixth section is numbered 4.
NEW_SECTION_NUMBER_OFFSET = 2


def array_move(items: Sequence[T], old_index: int, new_index: int) -> Tuple[T, ...]:
    """Remove the item at ``old_index`` and reinsert it at ``new_index`` of the shortened sequence."""

    moved: List[T] = list(items)
    moved.insert(new_index, moved.pop(old_index))
    return tuple(moved)


def _commit(
    document: PolicyDocument,
    sections: Tuple[Section, ...],
    now: Optional[datetime],
    **changes: object,
) -> PolicyDocument:
    if now is not None:
        changes["updated_at"] = now
    return check_invariants(replace(document, sections=sections, **changes))


def _replace_section(
    document: PolicyDocument,
    index: int,
    section: Section,
    now: Optional[datetime],
) -> PolicyDocument:
    sections = document.sections[:index] + (section,) + document.sections[index + 1 :]
    return _commit(document, sections, now)


def _default_subsection(id_factory: IdFactory) -> Subsection:
    return Subsection(id=id_factory(), title=NEW_SUBSECTION_TITLE, body=NEW_SUBSECTION_BODY)


# ---------------------------------------------------------------------- structure
def add_section(
    document: PolicyDocument,
    *,
    id_factory: IdFactory = new_node_id,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    number = len(document.sections) + 1 - NEW_SECTION_NUMBER_OFFSET
    section = Section(
        id=id_factory(),
        title=f"New Section - {number}",
        subsections=(_default_subsection(id_factory),),
    )
    return _commit(document, document.sections + (section,), now)


def add_subsection(
    document: PolicyDocument,
    section_id: str,
    *,
    id_factory: IdFactory = new_node_id,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    index = document.section_index(section_id)
    if index < 0:
        return document
    section = document.sections[index]
    updated = replace(section, subsections=section.subsections + (_default_subsection(id_factory),))
    return _replace_section(document, index, updated, now)


def delete_section(
    document: PolicyDocument,
    section_id: str,
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    if document.section_index(section_id) < 0:
        return document
    remaining = tuple(section for section in document.sections if section.id != section_id)
    return _commit(document, remaining, now)


def delete_subsection(
    document: PolicyDocument,
    section_id: str,
    subsection_id: str,
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    index = document.section_index(section_id)
    if index < 0:
        return document
    section = document.sections[index]
    if section.subsection_index(subsection_id) < 0:
        return document
    # Checked before filtering: the last subsection takes its section with it.
    if len(section.subsections) == 1:
        return delete_section(document, section_id, now=now)
    remaining = tuple(sub for sub in section.subsections if sub.id != subsection_id)
    return _replace_section(document, index, replace(section, subsections=remaining), now)


def move_section(
    document: PolicyDocument,
    from_id: str,
    to_id: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    if to_id is None or from_id == to_id:
        return document
    old_index = document.section_index(from_id)
    new_index = document.section_index(to_id)
    if old_index < 0 or new_index < 0:
        return document
    return _commit(document, array_move(document.sections, old_index, new_index), now)


def move_subsection(
    document: PolicyDocument,
    section_index: int,
    from_id: str,
    to_id: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    if to_id is None or from_id == to_id:
        return document
    if not 0 <= section_index < len(document.sections):
        return document
    section = document.sections[section_index]
    if not section.subsections:
        return document
    old_index = section.subsection_index(from_id)
    new_index = section.subsection_index(to_id)
    if old_index < 0 or new_index < 0:
        return document
    updated = replace(section, subsections=array_move(section.subsections, old_index, new_index))
    return _replace_section(document, section_index, updated, now)


# ---------------------------------------------------------------------- content
def edit_heading(
    document: PolicyDocument,
    heading: RichContent,
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    return _commit(document, document.sections, now, heading=heading)


def edit_section_body(
    document: PolicyDocument,
    section_id: str,
    subsections: Sequence[Subsection],
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    """Replace a section's ordered subsections wholesale; an empty body removes the section."""

    index = document.section_index(section_id)
    if index < 0:
        return document
    if not subsections:
        return delete_section(document, section_id, now=now)
    updated = replace(document.sections[index], subsections=tuple(subsections))
    return _replace_section(document, index, updated, now)


def edit_subsection_body(
    document: PolicyDocument,
    section_id: str,
    subsection_id: str,
    body: SubsectionBody,
    *,
    side: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    """Replace a subsection body, or one side of a Use Cases pair when ``side`` is given."""

    index = document.section_index(section_id)
    if index < 0:
        return document
    section = document.sections[index]
    position = section.subsection_index(subsection_id)
    if position < 0:
        return document
    subsection = section.subsections[position]

    if side is not None:
        if not isinstance(subsection.body, UseCaseBody) or not isinstance(body, str) or side not in (0, 1):
            return document
        body = subsection.body.with_side(side, body)

    subsections = list(section.subsections)
    subsections[position] = replace(subsection, body=body)
    return _replace_section(document, index, replace(section, subsections=tuple(subsections)), now)


def edit_section_title(
    document: PolicyDocument,
    section_id: str,
    title: str,
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    index = document.section_index(section_id)
    if index < 0:
        return document
    return _replace_section(document, index, replace(document.sections[index], title=title), now)


def edit_subsection_title(
    document: PolicyDocument,
    section_id: str,
    subsection_id: str,
    title: str,
    *,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    index = document.section_index(section_id)
    if index < 0:
        return document
    section = document.sections[index]
    position = section.subsection_index(subsection_id)
    if position < 0:
        return document
    subsections = list(section.subsections)
    subsections[position] = replace(subsections[position], title=title)
    return _replace_section(document, index, replace(section, subsections=tuple(subsections)), now)


__all__ = [
    "NEW_SECTION_NUMBER_OFFSET",
    "NEW_SUBSECTION_BODY",
    "NEW_SUBSECTION_TITLE",
    "add_section",
    "add_subsection",
    "array_move",
    "delete_section",
    "delete_subsection",
    "edit_heading",
    "edit_section_body",
    "edit_section_title",
    "edit_subsection_body",
    "edit_subsection_title",
    "move_section",
    "move_subsection",
]
