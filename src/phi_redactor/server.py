"""HTTP sidecar server for phi-redactor.

Runs as a lightweight stdlib HTTP server on localhost so a gateway can
call the engine over HTTP instead of spawning a process per request.

Endpoints:
    GET  /health          Health check
    GET  /patterns        List patterns (optional ?category=HEALTHCARE_ID)
    POST /redact          {"data": "...", "options": {...}}
    POST /analyze         {"data": "..."}  risk assessment, nothing returned redacted
    POST /generate-key    New 256-bit key
    POST /validate-key    {"key": "..."}
    POST /decrypt         {"data": "<envelope>", "key": "..."}
    POST /clear           No-op; the engine keeps no state

All endpoints expect/return JSON.  Engine errors map to 400 with the
error message; anything unexpected is logged and returned as 500.
"""

from __future__ import annotations
import json
import logging
import os
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Any
from urllib.parse import parse_qs, urlsplit

from . import cipher
from .config import build_options, create_redactor, load_config, load_from_yaml
from .errors import PHIRedactorError, ValidationError
from .redactor import Redactor
from .report import assess_risk, summarize
from .types import PHICategory, RedactionOptions

logger = logging.getLogger(__name__)

# Shared state (the redactor is stateless, the config is read-only)
_redactor: Redactor | None = None
_config: dict[str, Any] = load_config({})


def configure(cfg: dict[str, Any]) -> None:
    global _config, _redactor
    _config = cfg
    _redactor = None


def _get_redactor() -> Redactor:
    global _redactor
    if _redactor is None:
        _redactor = create_redactor(_config)
    return _redactor


def _require_str(body: dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{key!r} is required and must be a non-empty string")
    return value


def _options_from(body: dict[str, Any]) -> RedactionOptions:
    """Per-request options layered over the configured defaults."""
    raw = body.get("options") or {}
    if not isinstance(raw, dict):
        raise ValidationError("options must be an object")
    request = RedactionOptions.from_dict(raw)
    return build_options(
        _config,
        preserve_format=request.preserve_format if "preserveFormat" in raw or "preserve_format" in raw else None,
        mask_character=request.mask_character if "maskCharacter" in raw or "mask_character" in raw else None,
        encryption_key=request.encryption_key,
        categories=request.categories,
        custom_patterns=tuple(_config["custom_patterns"]) + request.custom_patterns,
    )


class PHIHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the PHI redactor sidecar."""

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        try:
            data = json.loads(body) if body else {}
        except ValueError as e:
            raise ValidationError(f"Request body is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        try:
            if url.path == "/health":
                self._respond(200, {"status": "ok", "patterns": _get_redactor().pattern_count()})
            elif url.path == "/patterns":
                category = parse_qs(url.query).get("category", [None])[0]
                self._respond(200, self._list_patterns(category))
            else:
                self._respond(404, {"error": "not found"})
        except PHIRedactorError as e:
            self._respond(400, {"error": str(e)})

    def do_POST(self) -> None:
        try:
            body = self._read_json()
            redactor = _get_redactor()

            if self.path == "/redact":
                data = _require_str(body, "data")
                result = redactor.redact(data, _options_from(body))
                self._respond(200, {**result.to_dict(), "summary": summarize(result.matches)})

            elif self.path == "/analyze":
                data = _require_str(body, "data")
                result = redactor.redact(data, _options_from(body).without_encryption())
                self._respond(200, assess_risk(result.matches))

            elif self.path == "/generate-key":
                self._respond(200, {
                    "encryption_key": redactor.generate_key(),
                    "key_strength": "256-bit AES",
                    "algorithm": redactor.cipher_algorithm,
                })

            elif self.path == "/validate-key":
                key = body.get("key")
                if not isinstance(key, str):
                    raise ValidationError("'key' is required and must be a string")
                self._respond(200, {
                    "valid": redactor.validate_key(key),
                    "key_length": len(key),
                    "expected_length": cipher.KEY_HEX_LENGTH,
                })

            elif self.path == "/decrypt":
                data = _require_str(body, "data")
                key = _require_str(body, "key")
                self._respond(200, {"data": cipher.decrypt(data, key)})

            elif self.path == "/clear":
                self._respond(200, redactor.clear_cache())

            else:
                self._respond(404, {"error": "not found"})

        except PHIRedactorError as e:
            self._respond(400, {"error": str(e)})
        except Exception as e:
            logger.exception("Unhandled error on %s", self.path)
            self._respond(500, {"error": str(e)})

    def _list_patterns(self, category: str | None) -> dict[str, Any]:
        patterns = _get_redactor().list_patterns(category)
        by_category: dict[str, list[dict]] = {}
        for p in patterns:
            by_category.setdefault(p.category.value, []).append(p.to_dict())
        return {
            "total_patterns": len(patterns),
            "filter_applied": category or "none",
            "patterns_by_category": by_category,
            "available_categories": [c.value for c in PHICategory],
        }


def make_server(host: str | None = None, port: int | None = None) -> HTTPServer:
    return HTTPServer(
        (host or _config["host"], _config["port"] if port is None else port),
        PHIHandler,
    )


def serve(host: str | None = None, port: int | None = None) -> None:
    """Start the PHI redactor HTTP sidecar."""
    server = make_server(host, port)
    bound_host, bound_port = server.server_address[:2]
    print(f"phi-redactor sidecar listening on http://{bound_host}:{bound_port}")
    print(f"  patterns: {_get_redactor().pattern_count()}")
    print(f"  cipher:   {_config['cipher']}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="PHI Redactor HTTP sidecar")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--config", default=os.environ.get("PHI_REDACTOR_CONFIG"))
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    if args.config:
        configure(load_from_yaml(args.config))
    serve(host=args.host, port=args.port)
