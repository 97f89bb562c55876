from __future__ import annotations

from pathlib import Path

import pytest

from drishtifi.config import (
    BACKEND_GEMINI,
    BACKEND_OPENAI,
    DEFAULT_GEMINI_BASE_URL,
    build_generation_config,
    load_default_theme,
    load_timeout,
)

_ENV_NAMES = (
    "API_KEY",
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "GEMINI_BASE_URL",
    "DRISHTIFI_BACKEND",
    "DRISHTIFI_MODEL",
    "DRISHTIFI_TIMEOUT",
    "DRISHTIFI_THEME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_any_configuration(tmp_path: Path) -> None:
    cfg = build_generation_config(str(tmp_path))
    assert cfg.backend == BACKEND_GEMINI
    assert cfg.model_name == "gemini-2.5-flash"
    assert cfg.api_key is None
    assert cfg.timeout_seconds is None
    assert cfg.base_url == DEFAULT_GEMINI_BASE_URL


def test_dotenv_is_found_from_a_subdirectory(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("GEMINI_API_KEY=from-dotenv\nDRISHTIFI_TIMEOUT=30\n", encoding="utf-8")
    sub = tmp_path / "src"
    sub.mkdir()
    cfg = build_generation_config(str(sub))
    assert cfg.api_key == "from-dotenv"
    assert cfg.timeout_seconds == 30.0


def test_environment_wins_over_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("API_KEY=from-dotenv\n", encoding="utf-8")
    monkeypatch.setenv("API_KEY", "from-env")
    assert build_generation_config(str(tmp_path)).api_key == "from-env"


def test_openai_backend(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DRISHTIFI_BACKEND", "OpenAI")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("API_KEY", "gemini-key")
    cfg = build_generation_config(str(tmp_path))
    assert cfg.backend == BACKEND_OPENAI
    assert cfg.model_name == "gpt-4o-mini"
    assert cfg.api_key == "sk-test"
    assert cfg.base_url is None


def test_unknown_backend_falls_back_to_gemini(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DRISHTIFI_BACKEND", "claude")
    assert build_generation_config(str(tmp_path)).backend == BACKEND_GEMINI


@pytest.mark.parametrize("raw", ["abc", "0", "-5"])
def test_unusable_timeouts_are_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("DRISHTIFI_TIMEOUT", raw)
    assert load_timeout(str(tmp_path)) is None


def test_default_theme(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert load_default_theme(str(tmp_path)) == "light"
    monkeypatch.setenv("DRISHTIFI_THEME", "DARK")
    assert load_default_theme(str(tmp_path)) == "dark"
    monkeypatch.setenv("DRISHTIFI_THEME", "neon")
    assert load_default_theme(str(tmp_path)) == "light"
