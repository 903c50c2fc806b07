"""Redactor — the main API.

Usage:
    from phi_redactor import Redactor, RedactionOptions

    redactor = Redactor()                 # stateless, safe to share across threads

    result = redactor.redact("SSN: 123-45-6789")
    print(result.redacted)                # "SSN: XXX-XX-XXXX"

    key = redactor.generate_key()
    sealed = redactor.redact('{"ssn": "123-45-6789"}', RedactionOptions(encryption_key=key))
    print(sealed.encrypted)               # True, sealed.redacted is an envelope

Input is classified as JSON, XML or plain text.  Structured input is
walked leaf by leaf and every string leaf goes through the same text
scan; input that fails to parse is redacted as plain text.
"""

from __future__ import annotations
import logging
from typing import Callable

from . import cipher
from .detector import detect_format
from .errors import ParseFailure, ValidationError
from .patterns import CATALOG, PatternCatalog
from .tree import Node, dump_json, dump_xml, parse_json, parse_xml, walk
from .types import (
    DataFormat, Pattern, PHICategory, PHIMatch, RedactionOptions, RedactionResult,
)

logger = logging.getLogger(__name__)


class Redactor:
    """Pattern-based PHI redactor for text, JSON and XML.

    Patterns run HIGH severity first.  Each pattern rewrites the text in
    place before the next one scans it, so an overlap between two rules is
    settled by which runs first, not by match length or specificity.
    """

    def __init__(
        self,
        catalog: PatternCatalog | None = None,
        *,
        cipher_algorithm: str = cipher.AES_256_GCM,
        json_indent: int | None = 2,
    ) -> None:
        if cipher_algorithm not in cipher.ALGORITHMS:
            raise ValidationError(f"Unsupported cipher algorithm {cipher_algorithm!r}")
        self.catalog = catalog if catalog is not None else CATALOG
        self.cipher_algorithm = cipher_algorithm
        self.json_indent = json_indent

    # ------------------------------------------------------------------
    # Redaction
    # ------------------------------------------------------------------

    def redact(self, text: str, options: RedactionOptions | None = None) -> RedactionResult:
        """Detect the input format and redact accordingly."""
        options = self._check(text, options)
        fmt = detect_format(text)
        logger.debug("Redacting %d chars, detected format %s", len(text), fmt.value)

        if fmt is DataFormat.JSON:
            return self._redact_json(text, options)
        if fmt is DataFormat.XML:
            return self._redact_xml(text, options)
        return self._redact_text(text, options)

    def redact_text(self, text: str, options: RedactionOptions | None = None) -> RedactionResult:
        return self._redact_text(text, self._check(text, options))

    def redact_json(self, text: str, options: RedactionOptions | None = None) -> RedactionResult:
        """Redact string values in a JSON document; keys and structure are kept."""
        return self._redact_json(text, self._check(text, options))

    def redact_xml(self, text: str, options: RedactionOptions | None = None) -> RedactionResult:
        """Redact text nodes and attribute values; element and attribute names are kept."""
        return self._redact_xml(text, self._check(text, options))

    def _check(self, text: str, options: RedactionOptions | None) -> RedactionOptions:
        # Runs before any scanning: a bad key means nothing is touched.
        if not isinstance(text, str):
            raise ValidationError("Data parameter is required and must be a string")
        options = options or RedactionOptions()
        if options.encryption_key is not None and not cipher.validate_key_strength(options.encryption_key):
            raise ValidationError(
                f"Invalid encryption key. Must be a {cipher.KEY_HEX_LENGTH}-character hex string."
            )
        return options

    def _redact_text(self, text: str, options: RedactionOptions) -> RedactionResult:
        redacted, matches = self._scan(text, self.applicable_patterns(options), options)
        return self._finish(text, redacted, matches, options, DataFormat.TEXT)

    def _redact_json(self, text: str, options: RedactionOptions) -> RedactionResult:
        return self._redact_tree(
            text, options, DataFormat.JSON, parse_json,
            lambda tree: dump_json(tree, indent=self.json_indent),
        )

    def _redact_xml(self, text: str, options: RedactionOptions) -> RedactionResult:
        declaration = text.lstrip().startswith("<?xml")
        return self._redact_tree(
            text, options, DataFormat.XML, parse_xml,
            lambda tree: dump_xml(tree, declaration=declaration),
        )

    def _redact_tree(
        self,
        text: str,
        options: RedactionOptions,
        fmt: DataFormat,
        parse: Callable[[str], Node],
        dump: Callable[[Node], str],
    ) -> RedactionResult:
        redact_leaf, matches = self._leaf_redactor(options)
        try:
            redacted = dump(walk(parse(text), redact_leaf))
        except (ParseFailure, RecursionError) as e:
            # a tree that parsed but is too deep to walk or serialise lands here too
            logger.debug("%s input not usable (%s); redacting as plain text", fmt.value, e)
            return self._redact_text(text, options)
        return self._finish(text, redacted, matches, options, fmt)

    def _leaf_redactor(
        self, options: RedactionOptions,
    ) -> tuple[Callable[[str], str], list[PHIMatch]]:
        """Build the per-leaf callback for a tree walk and the list it fills."""
        patterns = self.applicable_patterns(options)
        matches: list[PHIMatch] = []

        def redact_leaf(value: str) -> str:
            redacted, found = self._scan(value, patterns, options)
            matches.extend(found)
            return redacted

        return redact_leaf, matches

    def _finish(
        self,
        original: str,
        redacted: str,
        matches: list[PHIMatch],
        options: RedactionOptions,
        fmt: DataFormat,
    ) -> RedactionResult:
        encrypted = options.encryption_key is not None
        if encrypted:
            redacted = cipher.encrypt(redacted, options.encryption_key, algorithm=self.cipher_algorithm)
        logger.debug(
            "Redaction done: format=%s matches=%d encrypted=%s", fmt.value, len(matches), encrypted,
        )
        return RedactionResult(
            original=original,
            redacted=redacted,
            matches=tuple(matches),
            encrypted=encrypted,
            format=fmt,
        )

    # ------------------------------------------------------------------
    # Pattern application
    # ------------------------------------------------------------------

    def applicable_patterns(self, options: RedactionOptions) -> list[Pattern]:
        """Catalog filtered by category, plus custom patterns, HIGH first.

        The sort is stable, so catalog order holds within a severity.
        Custom patterns are never filtered by category.
        """
        patterns = list(self.catalog)
        if options.categories:
            patterns = [p for p in patterns if p.category in options.categories]
        patterns.extend(options.custom_patterns)
        return sorted(patterns, key=lambda p: p.severity.rank)

    @staticmethod
    def _scan(
        text: str, patterns: list[Pattern], options: RedactionOptions,
    ) -> tuple[str, list[PHIMatch]]:
        matches: list[PHIMatch] = []
        for pattern in patterns:
            pos = 0
            while pos <= len(text):
                m = pattern.regex.search(text, pos)
                if m is None:
                    break
                found = m.group()
                if not found:
                    pos = m.end() + 1
                    continue

                matches.append(PHIMatch(
                    pattern=pattern.name,
                    category=pattern.category,
                    start=m.start(),
                    length=len(found),
                    severity=pattern.severity,
                ))
                if options.preserve_format:
                    replacement = cipher.mask_data(found, options.mask_character)
                else:
                    replacement = pattern.replacement
                text = text[:m.start()] + replacement + text[m.end():]
                # Resume after the replacement so it is never rescanned by this pattern
                pos = m.start() + len(replacement)
        return text, matches

    # ------------------------------------------------------------------
    # Catalog and key utilities
    # ------------------------------------------------------------------

    def list_patterns(self, category: PHICategory | str | None = None) -> tuple[Pattern, ...]:
        if category is None:
            return self.catalog.all_patterns()
        return self.catalog.by_category(category)

    def pattern_count(self) -> int:
        return len(self.catalog)

    def generate_key(self) -> str:
        return cipher.generate_key()

    def validate_key(self, key: str) -> bool:
        return cipher.validate_key_strength(key)

    def clear_cache(self) -> dict:
        """No-op.  The engine keeps no state between calls; this only
        records that a clear was requested."""
        logger.info("Cache clear requested; engine holds no per-call state")
        return {"status": "cleared", "patterns": len(self.catalog)}
