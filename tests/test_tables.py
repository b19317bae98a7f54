"""
goal: signature tables load from TOML, normalise their terms and reject
bad documents.
"""

from __future__ import annotations

import pytest

from lexis.core.tables import DEFAULT_TABLES, SignatureTables


def test_default_tables():
    assert [r.name for r in DEFAULT_TABLES.rules][0] == "PowerShell_Empire"
    assert len(DEFAULT_TABLES.rules) == 5
    assert "iex" in DEFAULT_TABLES.suspicious_keywords
    assert ".exe" in DEFAULT_TABLES.suspicious_extensions


def test_load_normalises_and_defaults(tmp_path):
    path = tmp_path / "tables.toml"
    path.write_text(
        'version = "corp-1"\n'
        'suspicious_keywords = ["EVIL-Thing", "evil-thing"]\n'
        'suspicious_extensions = ["xyz", ".XYZ"]\n'
        "\n"
        "[[rules]]\n"
        'name = "Corp_Rule"\n'
        'severity = "high"\n'
        'any_of = ["Corp-Backdoor"]\n',
        encoding="utf-8",
    )
    tables = SignatureTables.load(path)
    assert tables.version == "corp-1"
    assert tables.suspicious_keywords == ("evil-thing",)
    assert tables.suspicious_extensions == (".xyz",)
    assert tables.known_commands == DEFAULT_TABLES.known_commands
    assert tables.rules[0].any_of == ("corp-backdoor",)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        SignatureTables.load(tmp_path / "absent.toml")


def test_load_invalid_documents(tmp_path):
    broken = tmp_path / "broken.toml"
    broken.write_text("suspicious_keywords = [", encoding="utf-8")
    with pytest.raises(ValueError):
        SignatureTables.load(broken)

    nameless = tmp_path / "nameless.toml"
    nameless.write_text('[[rules]]\ndescription = "no name"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        SignatureTables.load(nameless)


def test_engine_uses_injected_tables(tmp_path, engine, quiet_logger):
    from lexis.core.engine import LexisEngine

    path = tmp_path / "tables.toml"
    path.write_text('suspicious_keywords = ["evil-thing"]\n', encoding="utf-8")
    custom = LexisEngine(logger=quiet_logger, tables=SignatureTables.load(path))

    assert custom.analyze("EVIL-THING; iex").features.suspicious_keywords == ("evil-thing",)
    assert "iex" in engine.analyze("EVIL-THING; iex").features.suspicious_keywords
