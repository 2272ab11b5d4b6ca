# tests/test_app.py

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jinja2 import TemplateNotFound

from tasklist.app import create_app, load_templates, main
from tasklist.config import Settings
from tasklist.utils.logger import setup_logging


def test_load_templates_requires_every_page(tmp_path: Path) -> None:
    (tmp_path / "base.html").write_text("{% block content %}{% endblock %}", encoding="utf-8")
    with pytest.raises(TemplateNotFound):
        load_templates(tmp_path)


def test_startup_aborts_without_templates(tmp_path: Path) -> None:
    settings = Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'tasks.db'}",
        TEMPLATES_DIR=tmp_path / "missing",
    )
    with pytest.raises(TemplateNotFound):
        with TestClient(create_app(settings)):
            pass


def test_lifespan_creates_database_file(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "tasks.db"
    settings = Settings(_env_file=None, DATABASE_URL=f"sqlite:///{db_path}")
    with TestClient(create_app(settings)) as client:
        assert client.get("/getTasks").status_code == 200
    assert db_path.exists()


def test_setup_logging_with_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "tasklist.log"
    settings = Settings(_env_file=None, LOG_FILE=log_file, LOG_LEVEL="WARNING")

    root = setup_logging(settings)
    try:
        assert root.level == logging.WARNING
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
        logging.getLogger("tasklist.test").warning("written to file")
        for handler in root.handlers:
            handler.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture()
def uvicorn_calls(monkeypatch) -> dict:
    """Capture uvicorn.run arguments; TASKLIST_* variables set by the runner are restored."""
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    for key in ("HOST", "PORT", "DEBUG"):
        monkeypatch.setenv(f"TASKLIST_{key}", "")
        monkeypatch.delenv(f"TASKLIST_{key}")
    monkeypatch.setattr("tasklist.app.uvicorn.run", fake_run)
    monkeypatch.setattr("tasklist.app.setup_logging", lambda settings: None)
    return calls


def test_main_passes_cli_options(uvicorn_calls: dict) -> None:
    main(["--host", "0.0.0.0", "--port", "9000"])

    served = uvicorn_calls["app"]
    assert isinstance(served, FastAPI)
    assert served.state.settings.HOST == "0.0.0.0"
    assert served.state.settings.PORT == 9000
    assert served.state.settings.DEBUG is False
    assert uvicorn_calls["host"] == "0.0.0.0"
    assert uvicorn_calls["port"] == 9000
    assert uvicorn_calls["reload"] is False


def test_dev_flag_reaches_app_settings(uvicorn_calls: dict) -> None:
    main(["--dev"])

    served = uvicorn_calls["app"]
    assert served.state.settings.DEBUG is True
    assert served.docs_url == "/api/docs"
    assert os.environ["TASKLIST_DEBUG"] == "True"


def test_reload_serves_import_string_with_env_overrides(uvicorn_calls: dict) -> None:
    main(["--reload", "--dev", "--port", "9100"])

    assert uvicorn_calls["app"] == "tasklist.app:app"
    assert uvicorn_calls["reload"] is True
    assert os.environ["TASKLIST_PORT"] == "9100"
    assert Settings(_env_file=None).DEBUG is True
