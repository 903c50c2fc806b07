"""Tests for input format detection."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from phi_redactor import DataFormat, detect_format


@pytest.mark.parametrize("text,expected", [
    ('{"a": 1}', DataFormat.JSON),
    ("[1, 2, 3]", DataFormat.JSON),
    ('  \n {"a": "b"}  \n', DataFormat.JSON),
    ("<note>hi</note>", DataFormat.XML),
    ('<?xml version="1.0"?><a/>', DataFormat.XML),
    ("   <a>b</a>", DataFormat.XML),
    ("{not json", DataFormat.TEXT),
    ("[unclosed", DataFormat.TEXT),
    ("<no closing bracket", DataFormat.TEXT),
    ("plain text with <b>tags</b>", DataFormat.TEXT),
    ("", DataFormat.TEXT),
    ("42", DataFormat.TEXT),
])
def test_detect_format(text, expected):
    assert detect_format(text) is expected


def test_detection_is_shallow_for_xml():
    # well-formedness is checked when the XML path parses
    assert detect_format("<a><b></a>") is DataFormat.XML


def test_json_too_deep_to_decode_is_text():
    assert detect_format("[" * 100000) is DataFormat.TEXT
    assert detect_format("[" * 5000 + "1" + "]" * 5000) is DataFormat.TEXT
