"""Summaries and risk assessment over a list of matches."""

from __future__ import annotations
from typing import Any, Iterable

from .types import PHICategory, PHIMatch, Severity


def _categories(matches: Iterable[PHIMatch]) -> list[str]:
    # first-seen order
    return list(dict.fromkeys(m.category.value for m in matches))


def summarize(matches: Iterable[PHIMatch]) -> dict[str, Any]:
    matches = list(matches)
    return {
        "total_matches": len(matches),
        "high_severity": sum(1 for m in matches if m.severity is Severity.HIGH),
        "medium_severity": sum(1 for m in matches if m.severity is Severity.MEDIUM),
        "low_severity": sum(1 for m in matches if m.severity is Severity.LOW),
        "categories_detected": _categories(matches),
    }


def risk_level(matches: Iterable[PHIMatch]) -> Severity:
    """Worst severity present; LOW when nothing matched."""
    return min((m.severity for m in matches), key=lambda s: s.rank, default=Severity.LOW)


def recommendations(matches: Iterable[PHIMatch]) -> list[str]:
    matches = list(matches)
    if not matches:
        return ["Data appears to be PHI-free"]

    out = ["Redact all identified PHI before sharing or storing"]
    if any(m.severity is Severity.HIGH for m in matches):
        out.append("HIGH PRIORITY: Critical PHI detected that must be redacted immediately")
    categories = {m.category for m in matches}
    if PHICategory.DIRECT_IDENTIFIER in categories:
        out.append("Direct identifiers detected - these pose the highest privacy risk")
    if PHICategory.HEALTHCARE_ID in categories:
        out.append("Healthcare identifiers detected - ensure proper access controls")
    out.append("Consider encrypting redacted output in transit and at rest")
    return out


def assess_risk(matches: Iterable[PHIMatch]) -> dict[str, Any]:
    """Risk report for data that has been scanned but not necessarily shared."""
    matches = list(matches)
    summary = summarize(matches)
    return {
        "risk_level": risk_level(matches).value,
        "phi_detected": bool(matches),
        "total_phi_instances": summary["total_matches"],
        "risk_breakdown": {
            "high_risk_items": summary["high_severity"],
            "medium_risk_items": summary["medium_severity"],
            "low_risk_items": summary["low_severity"],
        },
        "categories_found": summary["categories_detected"],
        "recommendations": recommendations(matches),
        "compliance_status": "COMPLIANT" if not matches else "REQUIRES_REDACTION",
    }
