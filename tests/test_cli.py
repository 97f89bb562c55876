from __future__ import annotations

from pathlib import Path

import pytest
import uvicorn
from starlette.applications import Starlette

from drishtifi.cli.main import build_parser, main


def test_serve_defaults() -> None:
    ns = build_parser().parse_args(["serve"])
    assert ns.host == "127.0.0.1"
    assert ns.port == 8001
    assert ns.log_level == "info"
    assert ns.allow_origins is None
    assert not ns.memory


def test_serve_runs_uvicorn_with_the_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "README.md").write_text("marker", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    seen = {}

    def fake_run(app, **kwargs):
        seen["app"] = app
        seen.update(kwargs)

    monkeypatch.setattr(uvicorn, "run", fake_run)
    code = main(["serve", "--memory", "--port", "9000", "--allow-origin", "*", "--log-level", "debug"])

    assert code == 0
    assert isinstance(seen["app"], Starlette)
    assert seen["port"] == 9000
    assert seen["log_level"] == "debug"
    assert not (tmp_path / "var").exists()


def test_unknown_log_level_is_rejected() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["serve", "--log-level", "loud"])


def test_reload_is_not_offered() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["serve", "--reload"])
