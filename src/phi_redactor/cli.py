"""CLI interface for phi-redactor.

Usage:
    # Redact text, JSON or XML from stdin; prints the result with a summary
    echo 'Patient John Doe, SSN: 123-45-6789' | phi-redactor redact

    # Literal tokens instead of shape-preserving masks, encrypted output
    KEY=$(phi-redactor generate-key)
    cat record.json | phi-redactor --no-preserve-format --key "$KEY" redact

    # Decrypt an envelope
    phi-redactor --key "$KEY" decrypt < envelope.json

    # Risk assessment without returning redacted data
    cat note.txt | phi-redactor analyze

    phi-redactor patterns --category HEALTHCARE_ID
    phi-redactor validate-key 00ff...
    phi-redactor serve --port 18792
"""

from __future__ import annotations
import argparse
import json
import logging
import sys

from . import cipher
from .config import build_options, create_redactor, load_config, load_from_yaml
from .errors import PHIRedactorError, ValidationError
from .report import assess_risk, summarize
from .types import PHICategory, RedactionOptions


def _load_cfg(args: argparse.Namespace) -> dict:
    return load_from_yaml(args.config) if args.config else load_config({})


def _build_options(args: argparse.Namespace, cfg: dict) -> RedactionOptions:
    categories = None
    if args.categories:
        categories = [PHICategory.parse(c) for c in args.categories.split(",") if c.strip()]
    return build_options(
        cfg,
        preserve_format=False if args.no_preserve_format else None,
        mask_character=args.mask_char,
        encryption_key=args.key,
        categories=categories,
    )


def _dump(data: object) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_redact(args: argparse.Namespace) -> None:
    """Redact PHI from stdin and print the result as JSON."""
    cfg = _load_cfg(args)
    result = create_redactor(cfg).redact(sys.stdin.read(), _build_options(args, cfg))
    if args.raw:
        sys.stdout.write(result.redacted)
        sys.stdout.write("\n")
        return
    _dump({**result.to_dict(), "summary": summarize(result.matches)})


def cmd_analyze(args: argparse.Namespace) -> None:
    """Assess PHI risk of stdin."""
    cfg = _load_cfg(args)
    options = _build_options(args, cfg).without_encryption()
    result = create_redactor(cfg).redact(sys.stdin.read(), options)
    _dump(assess_risk(result.matches))


def cmd_decrypt(args: argparse.Namespace) -> None:
    """Decrypt an envelope from stdin."""
    if not args.key:
        raise ValidationError("--key is required for decrypt")
    sys.stdout.write(cipher.decrypt(sys.stdin.read().strip(), args.key))
    sys.stdout.write("\n")


def cmd_generate_key(args: argparse.Namespace) -> None:
    sys.stdout.write(cipher.generate_key() + "\n")


def cmd_validate_key(args: argparse.Namespace) -> None:
    valid = cipher.validate_key_strength(args.value)
    _dump({"valid": valid, "key_length": len(args.value), "expected_length": cipher.KEY_HEX_LENGTH})
    if not valid:
        sys.exit(1)


def cmd_patterns(args: argparse.Namespace) -> None:
    """List built-in patterns."""
    patterns = create_redactor(_load_cfg(args)).list_patterns(args.category)
    _dump([p.to_dict() for p in patterns])


def cmd_serve(args: argparse.Namespace) -> None:
    from . import server
    server.configure(_load_cfg(args))
    server.serve(host=args.host, port=args.port)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="phi-redactor",
        description="Pattern-based PHI redaction for text, JSON and XML",
    )
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--no-preserve-format", action="store_true",
                        help="Replace with literal tokens instead of shape-preserving masks")
    parser.add_argument("--mask-char", default=None, help="Mask character (default *)")
    parser.add_argument("--key", default=None, help="64-hex-char key; encrypts output / decrypts input")
    parser.add_argument("--categories", default="", help="Comma-separated PHI categories to apply")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    p_redact = sub.add_parser("redact", help="Redact stdin (text, JSON or XML)")
    p_redact.add_argument("--raw", action="store_true", help="Print only the redacted payload")
    sub.add_parser("analyze", help="PHI risk assessment of stdin")
    sub.add_parser("decrypt", help="Decrypt an envelope on stdin (needs --key)")
    sub.add_parser("generate-key", help="Print a new 256-bit key")
    p_validate = sub.add_parser("validate-key", help="Check a key's format")
    p_validate.add_argument("value")
    p_patterns = sub.add_parser("patterns", help="List detection patterns")
    p_patterns.add_argument("--category", default=None)
    p_serve = sub.add_parser("serve", help="Run the HTTP sidecar")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), stream=sys.stderr)

    cmds = {
        "redact": cmd_redact,
        "analyze": cmd_analyze,
        "decrypt": cmd_decrypt,
        "generate-key": cmd_generate_key,
        "validate-key": cmd_validate_key,
        "patterns": cmd_patterns,
        "serve": cmd_serve,
    }
    try:
        cmds[args.command](args)
    except PHIRedactorError as e:
        sys.stderr.write(f"Error: {e}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
