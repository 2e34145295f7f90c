from __future__ import annotations

import itertools

import pytest


@pytest.fixture
def id_sequence():
    counter = itertools.count(1)
    return lambda: f"node-{next(counter)}"


@pytest.fixture
def generation_payload():
    return {
        "courseNumber": "EDU 101",
        "courseTitle": "Learning & Technology",
        "instructor": "Jordan Lee",
        "email": "jlee@example.edu",
        "generatedAt": "2024-03-01T12:00:00+00:00",
        "courseDescription": "An introduction to learning technologies.",
        "overallPolicy": "Allowed under conditions",
        "overallPolicyText": "Generative AI may be used with attribution.",
        "useCases": {
            "reasonable": [{"label": "Brainstorming", "text": "Generating topic ideas."}],
            "unreasonable": [{"label": "Ghostwriting", "text": "Submitting AI text as your own."}],
        },
        "specificPoliciesForAssignments": "Final essays must be written without AI.",
        "ethicalGuidelines": ["Cite sources", "Cite sources", "Protect privacy"],
        "additionalGuidelines": "Ask when unsure.",
        "generativeAiToolDeclarations": ["Name the tool", "Describe the prompt"],
        "additionalGenerativeAiToolsDeclarations": "Attach transcripts.",
        "additionalNotes": "Policies may change mid-term.",
        "additionalPolicyText": "See the links below.",
        "campusWidePolicy": "https://example.edu/ai",
        "departmentWidePolicy": "",
        "academicIntegrityPolicy": "https://example.edu/integrity",
    }
