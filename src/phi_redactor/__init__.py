"""PHI Redactor — pattern-based PHI masking for text, JSON and XML."""

from .redactor import Redactor
from .patterns import CATALOG, PatternCatalog, all_patterns, by_category, by_min_severity
from .cipher import decrypt, encrypt, generate_key, hash_value, mask_data, validate_key_strength
from .detector import detect_format
from .config import build_options, create_redactor, load_config, load_from_yaml
from .report import assess_risk, summarize
from .errors import (
    PHIRedactorError, ValidationError, EncryptionError, DecryptionError, ParseFailure,
)
from .types import (
    DataFormat, Pattern, PHICategory, PHIMatch, RedactionOptions, RedactionResult, Severity,
)

__all__ = [
    "Redactor",
    "CATALOG", "PatternCatalog", "all_patterns", "by_category", "by_min_severity",
    "decrypt", "encrypt", "generate_key", "hash_value", "mask_data", "validate_key_strength",
    "detect_format",
    "build_options", "create_redactor", "load_config", "load_from_yaml",
    "assess_risk", "summarize",
    "PHIRedactorError", "ValidationError", "EncryptionError", "DecryptionError", "ParseFailure",
    "DataFormat", "Pattern", "PHICategory", "PHIMatch", "RedactionOptions", "RedactionResult",
    "Severity",
]
__version__ = "0.1.0"
