"""Core types."""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import ValidationError


class PHICategory(str, Enum):
    DIRECT_IDENTIFIER = "DIRECT_IDENTIFIER"
    HEALTHCARE_ID = "HEALTHCARE_ID"
    TEMPORAL = "TEMPORAL"
    GEOGRAPHIC = "GEOGRAPHIC"
    CONTACT = "CONTACT"
    FINANCIAL = "FINANCIAL"
    BIOMETRIC = "BIOMETRIC"
    CLINICAL = "CLINICAL"

    @classmethod
    def parse(cls, value: str | PHICategory) -> PHICategory:
        """Accept an enum member or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        valid = ", ".join(c.value for c in cls)
        raise ValidationError(f"Unknown PHI category {value!r}; expected one of: {valid}")


class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """0 for HIGH, 2 for LOW; sorting ascending puts HIGH first."""
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValidationError(f"Unknown severity {value!r}; expected HIGH, MEDIUM or LOW")


_SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


class DataFormat(str, Enum):
    JSON = "JSON"
    XML = "XML"
    TEXT = "TEXT"


@dataclass(frozen=True, slots=True)
class Pattern:
    """A named detection rule."""
    name: str
    description: str
    category: PHICategory
    severity: Severity
    regex: re.Pattern
    replacement: str       # literal token used when format preservation is off

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Pattern:
        """Build a custom pattern from a JSON/YAML mapping."""
        if not isinstance(data, dict):
            raise ValidationError("Custom pattern must be an object")
        for key in ("name", "regex", "category", "severity", "replacement"):
            if not isinstance(data.get(key), str) or not data[key]:
                raise ValidationError(f"Custom pattern field {key!r} is required and must be a string")
        flags = re.IGNORECASE if data.get("ignore_case", data.get("ignoreCase", False)) else 0
        try:
            regex = re.compile(data["regex"], flags)
        except re.error as e:
            raise ValidationError(f"Custom pattern {data['name']!r} has an invalid regex: {e}") from e
        return cls(
            name=data["name"],
            description=data.get("description", data["name"]),
            category=PHICategory.parse(data["category"]),
            severity=Severity.parse(data["severity"]),
            regex=regex,
            replacement=data["replacement"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "severity": self.severity.value,
            "example_replacement": self.replacement,
        }


@dataclass(frozen=True, slots=True)
class PHIMatch:
    """A single detection.  Offsets are relative to the scanned fragment."""
    pattern: str
    category: PHICategory
    start: int
    length: int
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "category": self.category.value,
            "position": self.start,
            "length": self.length,
            "severity": self.severity.value,
        }


@dataclass(frozen=True, slots=True)
class RedactionOptions:
    """Per-call configuration."""
    preserve_format: bool = True
    mask_character: str = "*"
    encryption_key: str | None = None
    categories: frozenset[PHICategory] | None = None   # None/empty = all
    custom_patterns: tuple[Pattern, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.mask_character, str) or len(self.mask_character) != 1:
            raise ValidationError("maskCharacter must be a single character")
        if self.encryption_key is not None and not isinstance(self.encryption_key, str):
            raise ValidationError("encryptionKey must be a string")
        if self.categories is not None:
            object.__setattr__(
                self, "categories", frozenset(PHICategory.parse(c) for c in self.categories)
            )
        object.__setattr__(self, "custom_patterns", tuple(self.custom_patterns))

    def without_encryption(self) -> RedactionOptions:
        return RedactionOptions(
            preserve_format=self.preserve_format,
            mask_character=self.mask_character,
            encryption_key=None,
            categories=self.categories,
            custom_patterns=self.custom_patterns,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RedactionOptions:
        """Build options from the transport shape (camelCase or snake_case keys)."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError("options must be an object")

        def pick(camel: str, snake: str, default: Any) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        preserve = pick("preserveFormat", "preserve_format", True)
        if not isinstance(preserve, bool):
            raise ValidationError("preserveFormat must be a boolean")
        categories = pick("categories", "categories", None)
        if categories is not None and not isinstance(categories, (list, tuple, set, frozenset)):
            raise ValidationError("categories must be a list")
        custom = pick("customPatterns", "custom_patterns", None) or []
        if not isinstance(custom, (list, tuple)):
            raise ValidationError("customPatterns must be a list")
        return cls(
            preserve_format=preserve,
            mask_character=pick("maskCharacter", "mask_character", "*"),
            encryption_key=pick("encryptionKey", "encryption_key", None),
            categories=categories,
            custom_patterns=tuple(
                p if isinstance(p, Pattern) else Pattern.from_dict(p) for p in custom
            ),
        )


@dataclass(frozen=True, slots=True)
class RedactionResult:
    """Result of redacting one input."""
    original: str
    redacted: str                               # masked text, or an encrypted envelope
    matches: tuple[PHIMatch, ...] = ()
    encrypted: bool = False
    format: DataFormat = DataFormat.TEXT        # format actually used (TEXT after a fallback)

    def to_dict(self) -> dict[str, Any]:
        return {
            "redacted_data": self.redacted,
            "phi_detected": len(self.matches),
            "matches": [m.to_dict() for m in self.matches],
            "encrypted": self.encrypted,
            "format": self.format.value,
        }
