"""
Tests del lifespan: el sink de archivo de loguru se agrega al iniciar y se
quita al cerrar.
"""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from loguru import logger

from catalog_sync.core import events


class _ClosingService:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_lifespan_removes_file_sink_on_shutdown(monkeypatch, tmp_path) -> None:
    log_file = tmp_path / "catalog_sync.log"
    service = _ClosingService()
    monkeypatch.setattr(events.settings, "LOG_FILE", str(log_file))
    monkeypatch.setattr(events.settings, "LOG_LEVEL", "INFO")
    monkeypatch.setattr(events, "build_from_settings", lambda _settings: service)

    app = FastAPI()
    async with events.lifespan(app):
        assert app.state.catalog_service is service
        logger.info("mensaje durante la vida de la app")

    assert service.closed
    assert app.state.log_sink_id is None
    logger.info("mensaje despues del cierre")

    content = log_file.read_text(encoding="utf-8")
    assert "mensaje durante la vida de la app" in content
    assert "Aplicacion detenida" in content
    assert "mensaje despues del cierre" not in content


@pytest.mark.asyncio
async def test_repeated_lifespans_do_not_duplicate_lines(monkeypatch, tmp_path) -> None:
    log_file = tmp_path / "catalog_sync.log"
    monkeypatch.setattr(events.settings, "LOG_FILE", str(log_file))
    monkeypatch.setattr(events.settings, "LOG_LEVEL", "INFO")
    monkeypatch.setattr(events, "build_from_settings", lambda _settings: _ClosingService())

    for _ in range(2):
        async with events.lifespan(FastAPI()):
            pass
    async with events.lifespan(FastAPI()):
        logger.info("linea unica")

    content = log_file.read_text(encoding="utf-8")
    assert content.count("linea unica") == 1
