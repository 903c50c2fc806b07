"""YAML/dict config loader for phi-redactor.

Supports loading from a YAML file or a plain dict (for embedding in a
larger service config).

Example YAML:

    phi_redactor:
      preserve_format: true
      mask_character: "*"
      categories:              # omit for all categories
        - DIRECT_IDENTIFIER
        - HEALTHCARE_ID
      cipher: aes-256-gcm      # or aes-256-cbc
      encryption_key: null     # falls back to $PHI_REDACTOR_ENCRYPTION_KEY
      custom_patterns:
        - name: STUDY_ID
          regex: "STUDY-\\d{6}"
          category: HEALTHCARE_ID
          severity: HIGH
          replacement: "[STUDY_ID]"
      server:
        host: 127.0.0.1
        port: 18792
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any

from . import cipher
from .errors import ValidationError
from .redactor import Redactor
from .types import Pattern, PHICategory, RedactionOptions

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 18792
ENV_KEY = "PHI_REDACTOR_ENCRYPTION_KEY"


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "phi_redactor" key or flat
    if "phi_redactor" in data:
        data = data["phi_redactor"] or {}

    categories = data.get("categories")
    server = data.get("server") or {}
    algorithm = data.get("cipher", cipher.AES_256_GCM)
    preserve = data.get("preserve_format", True)
    if not isinstance(preserve, bool):
        raise ValidationError(f"preserve_format must be true or false, got {preserve!r}")
    if algorithm not in cipher.ALGORITHMS:
        raise ValidationError(f"Unsupported cipher {algorithm!r}")

    return {
        "preserve_format": preserve,
        "mask_character": data.get("mask_character", "*"),
        "categories": (
            [PHICategory.parse(c) for c in categories] if categories else None
        ),
        "encryption_key": data.get("encryption_key") or os.environ.get(ENV_KEY) or None,
        "cipher": algorithm,
        "custom_patterns": [Pattern.from_dict(p) for p in data.get("custom_patterns") or []],
        "host": server.get("host", DEFAULT_HOST),
        "port": int(server.get("port", os.environ.get("PHI_REDACTOR_PORT", DEFAULT_PORT))),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f))


def build_options(cfg: dict[str, Any], **overrides: Any) -> RedactionOptions:
    """RedactionOptions from a normalized config; ``None`` overrides are ignored."""
    values = {
        "preserve_format": cfg["preserve_format"],
        "mask_character": cfg["mask_character"],
        "encryption_key": cfg["encryption_key"],
        "categories": cfg["categories"],
        "custom_patterns": tuple(cfg["custom_patterns"]),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return RedactionOptions(**values)


def create_redactor(cfg: dict[str, Any] | None = None) -> Redactor:
    cfg = load_config(cfg) if cfg is None or "host" not in cfg else cfg
    return Redactor(cipher_algorithm=cfg["cipher"])
