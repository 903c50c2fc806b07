"""Input format detection.

Advisory only: the JSON and XML redaction paths re-parse on their own and
fall back to plain text when parsing fails.
"""

from __future__ import annotations
import json

from .types import DataFormat


def detect_format(text: str) -> DataFormat:
    trimmed = text.strip()

    if trimmed.startswith(("{", "[")):
        try:
            json.loads(trimmed)
            return DataFormat.JSON
        except (ValueError, RecursionError):
            pass

    # Shallow check; well-formedness is left to the XML parser
    if trimmed.startswith("<") and ">" in trimmed:
        return DataFormat.XML

    return DataFormat.TEXT
