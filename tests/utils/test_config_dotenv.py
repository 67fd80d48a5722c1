import importlib
import sys
import builtins
import types
import logging
import os
from pathlib import Path

import pytest


def _reload_config():
    sys.modules.pop("linkaudit.config", None)
    return importlib.import_module("linkaudit.config")


def test_missing_dotenv_logs_warning(monkeypatch, caplog):
    orig_import = builtins.__import__

    def fake_import(name, globals=None, locals=None, fromlist=(), level=0):
        if name == "dotenv" or name.startswith("dotenv."):
            raise ImportError
        return orig_import(name, globals, locals, fromlist, level)

    monkeypatch.setattr(builtins, "__import__", fake_import)
    caplog.set_level(logging.WARNING)
    cfg = _reload_config()
    assert "python-dotenv not available" in caplog.text

    # environment fallback works
    monkeypatch.setenv("SITEMAP_URL", "https://example.com/s.xml")
    cfg = _reload_config()
    assert cfg.get_str_env("SITEMAP_URL", "unused") == "https://example.com/s.xml"


def test_dotenv_present_but_fails_to_load(monkeypatch, tmp_path):
    tmp_path.joinpath(".env").write_text("SITEMAP_URL=https://example.com/s.xml")
    monkeypatch.chdir(tmp_path)

    fake = types.SimpleNamespace(load_dotenv=lambda: False)
    monkeypatch.setitem(sys.modules, "dotenv", fake)
    with pytest.raises(RuntimeError):
        _reload_config()


def test_dotenv_loads_sets_variables(monkeypatch, tmp_path):
    tmp_path.joinpath(".env").write_text("SLACK_CHANNEL=#from-file")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SLACK_CHANNEL", raising=False)

    def fake_load():
        # emulate dotenv behavior: read .env and set os.environ
        p = Path(".env")
        for line in p.read_text().splitlines():
            if "=" in line:
                k, v = line.split("=", 1)
                os.environ[k] = v
        return True

    fake = types.SimpleNamespace(load_dotenv=fake_load)
    monkeypatch.setitem(sys.modules, "dotenv", fake)
    cfg = _reload_config()
    try:
        assert cfg.get_str_env("SLACK_CHANNEL", "#tech-alerts") == "#from-file"
    finally:
        os.environ.pop("SLACK_CHANNEL", None)


def test_typed_helpers_fall_back_on_invalid_values(monkeypatch):
    cfg = _reload_config()
    monkeypatch.setenv("MAX_CONCURRENT_CHECKS", "many")
    monkeypatch.setenv("REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("INCLUDE_RESOURCES", "yes")
    monkeypatch.setenv("HTTP_RETRIES", "")

    assert cfg.get_int_env("MAX_CONCURRENT_CHECKS", 10) == 10
    assert cfg.get_float_env("REQUEST_TIMEOUT", 10.0) == 2.5
    assert cfg.get_bool_env("INCLUDE_RESOURCES", False) is True
    assert cfg.get_optional_int_env("HTTP_RETRIES") is None


@pytest.mark.parametrize("raw,expected", [
    (None, True),
    ("", True),
    ("false", False),
    ("0", False),
    ("no", False),
    ("TRUE", True),
    ("whatever", True),
])
def test_parse_flag(raw, expected):
    cfg = _reload_config()
    assert cfg.parse_flag(raw, default=True) is expected
