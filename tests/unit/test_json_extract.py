"""Unit tests for oracle response extraction."""

from __future__ import annotations

import pytest

from core.errors import MalformedJson, NoJsonFound
from llm.json_extract import extract_json


def test_plain_object():
    assert extract_json('{"a": 1}') == {"a": 1}


def test_fenced_and_prose_wrapped_text_give_same_object():
    fenced = '```json\n{"techStack": "Django", "hypotheses": []}\n```'
    prose = 'Here is the analysis:\n{"techStack": "Django", "hypotheses": []}\nHope that helps.'
    assert extract_json(fenced) == extract_json(prose)
    assert extract_json(fenced)["techStack"] == "Django"


def test_uppercase_fence_marker_is_stripped():
    assert extract_json('```JSON\n{"ok": true}\n```') == {"ok": True}


def test_nested_braces_use_outermost_object():
    text = 'noise {"outer": {"inner": [1, 2]}} trailing'
    assert extract_json(text) == {"outer": {"inner": [1, 2]}}


@pytest.mark.parametrize("text", ["", "no json here", "} backwards {", "only { opening"])
def test_no_object_raises_no_json_found(text):
    with pytest.raises(NoJsonFound):
        extract_json(text)


def test_unparseable_slice_raises_malformed_json():
    with pytest.raises(MalformedJson):
        extract_json("{not json}")
