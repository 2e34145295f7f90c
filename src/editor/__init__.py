"""Policy tree core: normalization, mutations, drag reordering and the wire codec."""

from .mutations import (
    add_section,
    add_subsection,
    array_move,
    delete_section,
    delete_subsection,
    edit_heading,
    edit_section_body,
    edit_section_title,
    edit_subsection_body,
    edit_subsection_title,
    move_section,
    move_subsection,
)
from .normalizer import PolicyNormalizer, normalize
from .reorder import DragEndEvent, DragScope, ReorderOutcome, apply_drag
from .serialization import PayloadError, build_save_payload, deserialize_sections, serialize_sections

__all__ = [
    "DragEndEvent",
    "DragScope",
    "PayloadError",
    "PolicyNormalizer",
    "ReorderOutcome",
    "add_section",
    "add_subsection",
    "apply_drag",
    "array_move",
    "build_save_payload",
    "delete_section",
    "delete_subsection",
    "deserialize_sections",
    "edit_heading",
    "edit_section_body",
    "edit_section_title",
    "edit_subsection_body",
    "edit_subsection_title",
    "move_section",
    "move_subsection",
    "normalize",
    "serialize_sections",
]
