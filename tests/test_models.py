from dataclasses import replace
from enum import Enum

import pytest

from src.models.badges import BADGE_STYLES, badge_for, ensure_exhaustive
from src.models.identity import new_node_id
from src.models.policy import (
    InvariantViolation,
    OverallPolicy,
    Section,
    Subsection,
    UseCaseBody,
    check_invariants,
    set_invariant_checks,
)
from src.models.variants import GENERATED_RULES, SAVED_RULES, rules_for

from factories import make_document


def test_new_node_id_is_unique():
    ids = {new_node_id() for _ in range(100)}
    assert len(ids) == 100


def test_use_case_body_replaces_one_side():
    body = UseCaseBody(reasonable="<p>a</p>", unreasonable="<p>b</p>")

    assert body.with_side(0, "<p>x</p>").sides() == ("<p>x</p>", "<p>b</p>")
    assert body.with_side(1, "<p>y</p>").sides() == ("<p>a</p>", "<p>y</p>")
    with pytest.raises(IndexError):
        body.with_side(2, "<p>z</p>")


def test_document_lookup_helpers():
    document = make_document(2, 1)

    assert document.section_index("s1") == 1
    assert document.section_index("missing") == -1
    assert document.find_section("s0").title == "Section 0"
    assert document.find_section("missing") is None
    assert document.subsection_ids() == ["s0-0", "s0-1", "s1-0"]
    assert list(document.node_ids()) == ["s0", "s0-0", "s0-1", "s1", "s1-0"]


def test_check_invariants_rejects_duplicates_and_empty_sections():
    document = make_document(1, 1)
    duplicate = Section(id="s0", title="Again", subsections=(Subsection(id="x", title="X", body=""),))
    empty = Section(id="s9", title="Empty", subsections=())

    check_invariants(document)
    with pytest.raises(InvariantViolation):
        check_invariants(replace(document, sections=document.sections + (duplicate,)))
    with pytest.raises(InvariantViolation):
        check_invariants(replace(document, sections=document.sections + (empty,)))


def test_invariant_checks_can_be_disabled():
    document = make_document(1)
    empty = Section(id="s9", title="Empty", subsections=())
    broken = replace(document, sections=document.sections + (empty,))

    set_invariant_checks(False)
    try:
        assert check_invariants(broken) is broken
    finally:
        set_invariant_checks(True)


def test_badge_mapping_covers_every_overall_policy():
    assert set(BADGE_STYLES) == set(OverallPolicy)
    assert badge_for("Strictly prohibited") == "bg-red-400"
    with pytest.raises(ValueError):
        badge_for("Sometimes")


def test_ensure_exhaustive_reports_missing_members():
    class Color(Enum):
        RED = "red"
        BLUE = "blue"

    with pytest.raises(ValueError, match="blue"):
        ensure_exhaustive({Color.RED: "r"}, Color)


def test_variant_rules_differ_only_where_expected():
    assert rules_for("saved") is SAVED_RULES
    assert rules_for("generated") is GENERATED_RULES
    assert SAVED_RULES.wire.subsections == "children"
    assert GENERATED_RULES.wire.subsections == "subSections"
    assert GENERATED_RULES.always_include_additional_notes
    assert not SAVED_RULES.emit_legacy_assignment_duplicate

