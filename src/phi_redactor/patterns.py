"""Pattern catalog — regex rules for PHI.

The built-in set is versioned as a unit and never mutated at runtime.
Per-call extensions go through ``PatternCatalog.extend`` which returns a
new catalog, so concurrent redactions never share mutable state.

Ordering matters: the engine applies patterns HIGH severity first and,
within a severity, in catalog order.  Keyword-anchored identifiers
(``MRN: 12345678``) therefore sit before the bare numeric rules (SSN,
phone, ZIP) that would otherwise swallow their digits.
"""

from __future__ import annotations
import re
from typing import Iterable, Iterator

from .types import Pattern, PHICategory, Severity

_I = re.IGNORECASE

# Identifier values after a keyword: alphanumeric and containing at least
# one digit, so "prescription refilled" is not taken for an Rx number.
_ID = r"((?=[A-Z]*\d)[A-Z0-9]{{{lo},{hi}}})"


def _p(
    name: str,
    description: str,
    category: PHICategory,
    severity: Severity,
    regex: str,
    replacement: str,
    flags: int = 0,
) -> Pattern:
    return Pattern(
        name=name,
        description=description,
        category=category,
        severity=severity,
        regex=re.compile(regex, flags),
        replacement=replacement,
    )


_HIGH, _MEDIUM, _LOW = Severity.HIGH, Severity.MEDIUM, Severity.LOW
_C = PHICategory

PHI_PATTERNS: tuple[Pattern, ...] = (
    # ── HIGH: keyword-anchored healthcare identifiers ───────────────────

    # Medical Record Numbers: "MRN: 00123456", "medical record # 1234567"
    _p("MRN", "Medical Record Number", _C.HEALTHCARE_ID, _HIGH,
       r"\b(?:MRN|medical[\s-]?record[\s-]?(?:number|num|#))[\s:#]*(\d{6,12})\b",
       "MRN: [REDACTED]", _I),

    # Patient IDs: "Patient ID: A1234567", "PID 99887766"
    _p("PATIENT_ID", "Patient ID Number", _C.HEALTHCARE_ID, _HIGH,
       r"\b(?:patient[\s-]?id|pid|pt[\s-]?id)[\s:#]*" + _ID.format(lo=6, hi=12) + r"\b",
       "PATIENT_ID: [REDACTED]", _I),

    # National Provider Identifier, always 10 digits
    _p("NPI", "National Provider Identifier", _C.HEALTHCARE_ID, _HIGH,
       r"\bNPI[\s:#]*(\d{10})\b",
       "NPI: [REDACTED]", _I),

    # Insurance / member / policy numbers
    _p("INSURANCE_ID", "Insurance ID Numbers", _C.HEALTHCARE_ID, _HIGH,
       r"\b(?:insurance[\s-]?id|member[\s-]?id|policy[\s-]?(?:number|no|#))[\s:#.]*"
       + _ID.format(lo=6, hi=15) + r"\b",
       "INSURANCE_ID: [REDACTED]", _I),

    # Legacy Medicare HICN: SSN followed by a beneficiary code letter
    _p("MEDICARE", "Medicare Numbers (HICN)", _C.HEALTHCARE_ID, _HIGH,
       r"\b\d{3}-\d{2}-\d{4}[A-Z]\d?\b",
       "XXX-XX-XXXXX"),

    # Medicare Beneficiary Identifier (MBI), e.g. 1EG4-TE5-MK73.
    # Letters exclude S, L, O, I, B and Z.
    _p("MEDICARE_MBI", "Medicare Beneficiary Identifier", _C.HEALTHCARE_ID, _HIGH,
       r"\b[1-9][AC-HJKMNP-RT-Y][AC-HJKMNP-RT-Y0-9]\d-?"
       r"[AC-HJKMNP-RT-Y][AC-HJKMNP-RT-Y0-9]\d-?"
       r"[AC-HJKMNP-RT-Y]{2}\d{2}\b",
       "[MBI_REDACTED]"),

    # DEA registration numbers (prescribers)
    _p("DEA_NUMBER", "DEA Number for Prescribing", _C.HEALTHCARE_ID, _HIGH,
       r"\b[A-Z]{2}\d{7}\b",
       "[DEA_REDACTED]"),

    # Prescription numbers: "Rx# 4455667", "prescription: RX998877"
    _p("PRESCRIPTION_NUMBER", "Prescription Numbers", _C.HEALTHCARE_ID, _HIGH,
       r"\b(?:rx|prescription|script)[\s#:]*" + _ID.format(lo=6, hi=12) + r"\b",
       "RX: [REDACTED]", _I),

    # Lab result / specimen IDs
    _p("LAB_ID", "Laboratory Result IDs", _C.HEALTHCARE_ID, _HIGH,
       r"\b(?:lab[\s-]?id|specimen[\s-]?id|test[\s-]?id)[\s:#]*" + _ID.format(lo=6, hi=15) + r"\b",
       "LAB_ID: [REDACTED]", _I),

    # Pharmacy identifiers
    _p("PHARMACY_ID", "Pharmacy Identifiers", _C.HEALTHCARE_ID, _HIGH,
       r"\b(?:pharmacy|pharm)[\s-]?(?:id|number)[\s:#]*" + _ID.format(lo=6, hi=12) + r"\b",
       "PHARMACY_ID: [REDACTED]", _I),

    # Encounter, visit, admission and claim numbers
    _p("ENCOUNTER_ID", "Encounter / Visit / Claim Numbers", _C.HEALTHCARE_ID, _HIGH,
       r"\b(?:encounter|visit|admission|claim)[\s-]?(?:id|no|number|num|#)[\s:#.]*"
       + _ID.format(lo=6, hi=15) + r"\b",
       "ENCOUNTER_ID: [REDACTED]", _I),

    # ── HIGH: financial ─────────────────────────────────────────────────

    # Account numbers: "acct# 00112233", "account number 7788990011"
    _p("ACCOUNT_NUMBER", "Account Numbers", _C.FINANCIAL, _HIGH,
       r"\b(?:account|acct)(?:[\s-]?(?:number|num|no))?[\s#:.]*" + _ID.format(lo=6, hi=15) + r"\b",
       "ACCOUNT: [REDACTED]", _I),

    # Credit cards: 16 digits in groups of four, optional separators
    _p("CREDIT_CARD", "Credit Card Numbers", _C.FINANCIAL, _HIGH,
       r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b",
       "XXXX-XXXX-XXXX-XXXX"),

    # ── HIGH: biometric ─────────────────────────────────────────────────

    _p("BIOMETRIC_ID", "Biometric Identifiers (fingerprint, retina, voice print)",
       _C.BIOMETRIC, _HIGH,
       r"\b(?:fingerprint|retina|retinal|iris|voice[\s-]?print|face[\s-]?print|biometric)"
       r"(?:[\s-]?(?:id|scan|template|hash))?[\s:#]*"
       + _ID.format(lo=8, hi=64) + r"\b",
       "[BIOMETRIC_REDACTED]", _I),

    # ── HIGH: direct identifiers and contact details ────────────────────

    # Social Security Numbers, with or without hyphens
    _p("SSN", "Social Security Number", _C.DIRECT_IDENTIFIER, _HIGH,
       r"\b\d{3}-?\d{2}-?\d{4}\b",
       "XXX-XX-XXXX"),

    # Fax numbers; must precede PHONE
    _p("FAX", "Fax Numbers", _C.CONTACT, _HIGH,
       r"\bfax(?:[\s-]?(?:no|number|#))?[\s:#.]*(?:\+?1[-.\s]?)?"
       r"(?:\(\d{3}\)|\d{3})[-.\s]?\d{3}[-.\s]?\d{4}\b",
       "FAX: [REDACTED]", _I),

    # Phone numbers (NANP): 555-123-4567, (555) 123-4567, +1 555.123.4567
    _p("PHONE", "Phone Numbers", _C.CONTACT, _HIGH,
       r"(?:(?<!\w)\+?1[-.\s]?)?(?:\(\d{3}\)|\b\d{3})[-.\s]?\d{3}[-.\s]?\d{4}\b",
       "(XXX) XXX-XXXX"),

    _p("EMAIL", "Email Addresses", _C.CONTACT, _HIGH,
       r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
       "[EMAIL_REDACTED]"),

    # Names introduced by a title: "Patient John Doe", "Dr. Jane Smith"
    _p("PERSON_NAME", "Person Names", _C.DIRECT_IDENTIFIER, _HIGH,
       r"\b(?:patient|dr|doctor|mr|mrs|ms)(?:\.\s*|\s+)([A-Z][a-z]+\s+[A-Z][a-z]+)\b",
       "[NAME_REDACTED]", _I),

    # US street addresses: "123 Main Street", "42 Old Mill Rd"
    _p("ADDRESS", "Street Addresses", _C.GEOGRAPHIC, _HIGH,
       r"\b\d{1,6}\s+(?:[A-Za-z]+\s+){1,4}"
       r"(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|Boulevard|Blvd|Way|Court|Ct|Place|Pl)\b",
       "[ADDRESS_REDACTED]", _I),

    # ── MEDIUM ──────────────────────────────────────────────────────────

    # Dates: 01/15/1980, 1980-01-15, January 15, 1980
    _p("DATE", "Date Formats", _C.TEMPORAL, _MEDIUM,
       r"\b(?:\d{1,2}[/-]\d{1,2}[/-]\d{4}|\d{4}[/-]\d{1,2}[/-]\d{1,2}"
       r"|(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2},?\s+\d{4})\b",
       "[DATE_REDACTED]", _I),

    # Ages over 89 are identifying under Safe Harbor
    _p("AGE_OVER_89", "Ages over 89", _C.TEMPORAL, _MEDIUM,
       r"\b(?:aged?[\s:]*(?:9\d|1[01]\d)"
       r"|(?:9\d|1[01]\d)[\s-]*(?:years?|yrs?|y/o)(?:[\s-]*old)?)\b",
       "[AGE_REDACTED]", _I),

    _p("ZIP_CODE", "ZIP Codes", _C.GEOGRAPHIC, _MEDIUM,
       r"\b\d{5}(?:-\d{4})?\b",
       "XXXXX"),

    _p("IP_ADDRESS", "IP Addresses", _C.DIRECT_IDENTIFIER, _MEDIUM,
       r"\b(?:\d{1,3}\.){3}\d{1,3}\b",
       "XXX.XXX.XXX.XXX"),

    _p("URL", "Web URLs", _C.DIRECT_IDENTIFIER, _MEDIUM,
       r"https?://[^\s\"'<>]+",
       "[URL_REDACTED]", _I),

    # Vehicle Identification Numbers (no I, O or Q)
    _p("VIN", "Vehicle Identification Numbers", _C.DIRECT_IDENTIFIER, _MEDIUM,
       r"\b[A-HJ-NPR-Z0-9]{17}\b",
       "[VIN_REDACTED]"),

    # Driver's license, professional license and permit numbers
    _p("LICENSE_NUMBER", "License Numbers", _C.DIRECT_IDENTIFIER, _MEDIUM,
       r"\b(?:license|licence|permit)(?:[\s-]?(?:number|no))?[\s#:.]*" + _ID.format(lo=6, hi=12) + r"\b",
       "LICENSE: [REDACTED]", _I),

    # Device identifiers and serial numbers (implants, pumps, monitors)
    _p("DEVICE_ID", "Device Identifiers and Serial Numbers", _C.DIRECT_IDENTIFIER, _MEDIUM,
       r"\b(?:device|serial|implant)[\s-]?(?:id|no|number|sn|#)[\s:#.]*"
       r"((?=[A-Z-]*\d)[A-Z0-9][A-Z0-9-]{5,24})\b",
       "[DEVICE_ID_REDACTED]", _I),

    # ── LOW ─────────────────────────────────────────────────────────────

    # ICD-10 diagnosis codes when introduced as such: "Dx: E11.9"
    _p("ICD10_CODE", "ICD-10 Diagnosis Codes", _C.CLINICAL, _LOW,
       r"\b(?:ICD[-\s]?10(?:[-\s]?CM)?|diagnosis(?:\s+code)?|dx)[\s:#]*"
       r"([A-TV-Z]\d{2}(?:\.[A-Z0-9]{1,4})?)\b",
       "[DIAGNOSIS_REDACTED]", _I),
)


def _check_unique(patterns: Iterable[Pattern]) -> None:
    seen: set[str] = set()
    for p in patterns:
        if p.name in seen:
            raise ValueError(f"Duplicate built-in pattern name: {p.name}")
        seen.add(p.name)


_check_unique(PHI_PATTERNS)


class PatternCatalog:
    """Read-only, ordered collection of patterns."""

    __slots__ = ("_patterns",)

    def __init__(self, patterns: Iterable[Pattern]) -> None:
        self._patterns: tuple[Pattern, ...] = tuple(patterns)

    def all_patterns(self) -> tuple[Pattern, ...]:
        return self._patterns

    def by_category(self, category: PHICategory | str) -> tuple[Pattern, ...]:
        category = PHICategory.parse(category)
        return tuple(p for p in self._patterns if p.category is category)

    def by_min_severity(self, severity: Severity | str) -> tuple[Pattern, ...]:
        """Patterns at or above ``severity`` (HIGH > MEDIUM > LOW)."""
        severity = Severity.parse(severity)
        return tuple(p for p in self._patterns if p.severity.rank <= severity.rank)

    def get(self, name: str) -> Pattern | None:
        for p in self._patterns:
            if p.name == name:
                return p
        return None

    def extend(self, patterns: Iterable[Pattern]) -> PatternCatalog:
        """Return a new catalog with ``patterns`` appended.  Names may repeat."""
        return PatternCatalog(self._patterns + tuple(patterns))

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)


CATALOG = PatternCatalog(PHI_PATTERNS)


def all_patterns() -> tuple[Pattern, ...]:
    return CATALOG.all_patterns()


def by_category(category: PHICategory | str) -> tuple[Pattern, ...]:
    return CATALOG.by_category(category)


def by_min_severity(severity: Severity | str) -> tuple[Pattern, ...]:
    return CATALOG.by_min_severity(severity)
