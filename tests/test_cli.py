"""Tests for the command-line interface."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import io
import json

import pytest

from phi_redactor.cli import main
from phi_redactor.cipher import decrypt, validate_key_strength


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("PHI_REDACTOR_ENCRYPTION_KEY", raising=False)
    monkeypatch.delenv("PHI_REDACTOR_PORT", raising=False)


@pytest.fixture
def stdin(monkeypatch):
    def feed(text):
        monkeypatch.setattr(sys, "stdin", io.StringIO(text))
    return feed


def run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


# ── redact / analyze ─────────────────────────────────────────────────

def test_redact_prints_result_and_summary(stdin, capsys):
    stdin("Patient John Doe, SSN: 123-45-6789")
    out = json.loads(run(capsys, "redact"))
    assert "123-45-6789" not in out["redacted_data"]
    assert out["phi_detected"] == 2
    assert out["format"] == "TEXT"
    assert out["encrypted"] is False
    assert out["summary"]["high_severity"] == 2


def test_redact_raw_tokens(stdin, capsys):
    stdin("SSN 123-45-6789")
    assert run(capsys, "--no-preserve-format", "redact", "--raw") == "SSN XXX-XX-XXXX\n"


def test_redact_mask_char(stdin, capsys):
    stdin("jane@example.com")
    assert run(capsys, "--mask-char", "#", "redact", "--raw") == "j##############m\n"


def test_redact_categories(stdin, capsys):
    stdin("SSN 123-45-6789 jane@example.com")
    out = run(capsys, "--categories", "CONTACT", "--no-preserve-format", "redact", "--raw")
    assert out == "SSN 123-45-6789 [EMAIL_REDACTED]\n"


def test_redact_json_input(stdin, capsys):
    stdin('{"ssn": "123-45-6789"}')
    out = json.loads(run(capsys, "redact"))
    assert out["format"] == "JSON"
    assert json.loads(out["redacted_data"]) == {"ssn": "XXX-XX-XXXX"}


def test_encrypt_then_decrypt(stdin, capsys):
    key = "ab" * 32
    stdin("SSN 123-45-6789")
    envelope = run(capsys, "--key", key, "redact", "--raw").strip()
    assert decrypt(envelope, key) == "SSN XXX-XX-XXXX"

    stdin(envelope + "\n")
    assert run(capsys, "--key", key, "decrypt") == "SSN XXX-XX-XXXX\n"


def test_invalid_key_exits(stdin, capsys):
    stdin("SSN 123-45-6789")
    with pytest.raises(SystemExit) as exc:
        main(["--key", "nope", "redact"])
    assert exc.value.code == 1
    captured = capsys.readouterr()
    assert "Invalid encryption key" in captured.err
    assert captured.out == ""


def test_analyze(stdin, capsys):
    stdin("SSN 123-45-6789")
    out = json.loads(run(capsys, "analyze"))
    assert out["risk_level"] == "HIGH"
    assert out["compliance_status"] == "REQUIRES_REDACTION"


def test_analyze_ignores_key(stdin, capsys):
    stdin("nothing here")
    out = json.loads(run(capsys, "--key", "ab" * 32, "analyze"))
    assert out["compliance_status"] == "COMPLIANT"


def test_config_file(stdin, capsys, tmp_path):
    path = tmp_path / "phi.yaml"
    path.write_text("preserve_format: false\n")
    stdin("SSN 123-45-6789")
    assert run(capsys, "--config", str(path), "redact", "--raw") == "SSN XXX-XX-XXXX\n"


# ── keys and patterns ────────────────────────────────────────────────

def test_decrypt_requires_key(stdin, capsys):
    stdin("{}")
    with pytest.raises(SystemExit) as exc:
        main(["decrypt"])
    assert exc.value.code == 1
    assert "--key is required" in capsys.readouterr().err


def test_generate_key(capsys):
    key = run(capsys, "generate-key").strip()
    assert validate_key_strength(key)


def test_validate_key(capsys):
    out = json.loads(run(capsys, "validate-key", "a" * 64))
    assert out == {"valid": True, "key_length": 64, "expected_length": 64}


def test_validate_key_invalid_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["validate-key", "xyz"])
    assert exc.value.code == 1
    assert json.loads(capsys.readouterr().out)["valid"] is False


def test_patterns(capsys):
    out = json.loads(run(capsys, "patterns"))
    assert "SSN" in {p["name"] for p in out}


def test_patterns_by_category(capsys):
    out = json.loads(run(capsys, "patterns", "--category", "clinical"))
    assert [p["name"] for p in out] == ["ICD10_CODE"]


def test_patterns_bad_category(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["patterns", "--category", "NOPE"])
    assert exc.value.code == 1
    assert "Unknown PHI category" in capsys.readouterr().err


def test_every_engine_command_uses_configured_cipher(stdin, capsys, tmp_path, monkeypatch):
    import phi_redactor.cli as cli

    path = tmp_path / "phi.yaml"
    path.write_text("cipher: aes-256-cbc\n")
    seen = []
    real = cli.create_redactor

    def spy(cfg):
        redactor = real(cfg)
        seen.append(redactor.cipher_algorithm)
        return redactor

    monkeypatch.setattr(cli, "create_redactor", spy)
    for argv in (["redact"], ["analyze"], ["patterns"]):
        stdin("SSN 123-45-6789")
        run(capsys, "--config", str(path), *argv)
    assert seen == ["aes-256-cbc"] * 3
