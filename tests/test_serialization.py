import json
from datetime import datetime, timezone

import pytest

from src.editor.normalizer import normalize
from src.editor.serialization import (
    PayloadError,
    build_save_payload,
    deserialize_sections,
    detect_variant,
    document_from_record,
    document_to_record,
    dumps_save_payload,
    read_save_payload,
    serialize_sections,
)
from src.models.policy import PolicyVariant, UseCaseBody

from factories import make_document, with_use_cases


SAVED_PAYLOAD = [
    {
        "id": "a",
        "title": "Course Description",
        "children": [{"id": "a1", "title": "Introduction", "htmlContent": "<p>intro</p>"}],
    },
    {
        "id": "b",
        "title": "Generative AI Policy",
        "children": [
            {
                "id": "b1",
                "title": "Introduction",
                "htmlContent": "<p>policy</p>",
                "metadata": {"overallPolicy": "No restrictions"},
            },
            {"id": "b2", "title": "Use Cases", "htmlContent": ["<p>yes</p>", "<p>no</p>"]},
        ],
    },
]


def test_saved_payload_round_trips():
    sections = deserialize_sections(SAVED_PAYLOAD, PolicyVariant.SAVED)

    assert serialize_sections(sections, PolicyVariant.SAVED) == SAVED_PAYLOAD
    assert sections[1].subsections[1].body == UseCaseBody("<p>yes</p>", "<p>no</p>")


def test_generated_document_round_trips_with_its_own_keys(generation_payload):
    document = normalize(generation_payload)

    wire = serialize_sections(document.sections, PolicyVariant.GENERATED)

    assert set(wire[0]) == {"id", "sectionTitle", "subSections"}
    assert wire[1]["subSections"][0]["miscData"] == {"overallPolicy": "Allowed under conditions"}
    assert deserialize_sections(wire, PolicyVariant.GENERATED) == document.sections
    assert serialize_sections(deserialize_sections(wire, PolicyVariant.GENERATED), PolicyVariant.GENERATED) == wire


def test_save_payload_envelope():
    document = with_use_cases(make_document(1))

    payload = build_save_payload(document)

    assert set(payload) == {"policy"}
    assert payload["policy"]["heading"] == document.heading
    assert payload["policy"]["sections"][0]["children"][1]["htmlContent"] == ["<p>yes</p>", "<p>no</p>"]
    assert json.loads(dumps_save_payload(document)) == payload
    assert read_save_payload(payload)["sections"] == payload["policy"]["sections"]


def test_record_round_trip_restores_document():
    document = make_document(2, 1)

    restored = document_from_record(document.id, document_to_record(document))

    assert restored == document


def test_record_accepts_epoch_millisecond_timestamps():
    record = {"heading": "<h2>H</h2>", "sections": SAVED_PAYLOAD, "createdAt": "1700000000000", "updatedAt": None}

    document = document_from_record("p", record)

    assert document.created_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert document.updated_at == document.created_at
    assert document.variant is PolicyVariant.SAVED


@pytest.mark.parametrize(
    "payload",
    [
        {"sections": []},
        {"policy": {"heading": "", "sections": []}},
        {"policy": {"heading": "<h2>H</h2>", "sections": {}}},
    ],
)
def test_malformed_envelopes_are_rejected(payload):
    with pytest.raises(PayloadError):
        read_save_payload(payload)


def test_malformed_sections_are_rejected():
    with pytest.raises(PayloadError):
        deserialize_sections([{"id": "a", "title": "A"}], PolicyVariant.SAVED)
    with pytest.raises(PayloadError):
        deserialize_sections(
            [{"id": "a", "title": "A", "children": [{"id": "a1", "title": "T", "htmlContent": ["one"]}]}],
            PolicyVariant.SAVED,
        )
    with pytest.raises(PayloadError):
        document_from_record("p", {"heading": "h", "sections": [{"id": "a", "title": "A", "children": []}]})


@pytest.mark.parametrize(
    "metadata",
    [
        {"overallPolicy": None},
        {"overallPolicy": "No restrictions", "source": "import"},
    ],
)
def test_metadata_that_cannot_be_reencoded_is_rejected(metadata):
    payload = [{"id": "a", "title": "A", "children": [{"id": "a1", "title": "T", "htmlContent": "x", "metadata": metadata}]}]

    with pytest.raises(PayloadError):
        deserialize_sections(payload, PolicyVariant.SAVED)


def test_empty_metadata_round_trips():
    payload = [{"id": "a", "title": "A", "children": [{"id": "a1", "title": "T", "htmlContent": "x", "metadata": {}}]}]

    assert serialize_sections(deserialize_sections(payload, PolicyVariant.SAVED), PolicyVariant.SAVED) == payload


def test_variant_is_detected_from_section_keys(generation_payload):
    generated = serialize_sections(normalize(generation_payload).sections, PolicyVariant.GENERATED)

    assert detect_variant(generated) is PolicyVariant.GENERATED
    assert detect_variant(SAVED_PAYLOAD, default=PolicyVariant.GENERATED) is PolicyVariant.SAVED
    assert detect_variant([], default=PolicyVariant.GENERATED) is PolicyVariant.GENERATED
    assert detect_variant([{"id": "a"}]) is PolicyVariant.SAVED
