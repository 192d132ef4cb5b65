"""
Cliente HTTP minimo para descargar el feed de catalogo.

Requisitos cubiertos:
- requests (con Session reutilizable)
- rate-limit/backoff (429, 5xx)
- errores de red convertidos a FetchError
"""

from __future__ import annotations

import time
from typing import Optional

import requests
from loguru import logger

from catalog_sync.shared.exceptions import FetchError


class FeedClient:
    """
    Descarga el feed como bytes crudos.

    No parsea ni interpreta el contenido: eso se decide en document.py.
    """

    def __init__(
        self,
        url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: int = 60,
        max_retries: int = 3,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._session = session or requests.Session()

    def fetch_document(self) -> bytes:
        """
        GET del feed con backoff para 429/5xx.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial.
        - 5xx: exponencial.
        - 4xx (no 429): error inmediato (URL mal configurada).
        """
        for attempt in range(self._max_retries + 1):
            try:
                resp = self._session.get(self._url, timeout=self._timeout_s)
            except requests.RequestException as e:
                raise FetchError(f"Error descargando el feed: {e}", url=self._url) from e

            if 200 <= resp.status_code < 300:
                logger.info(f"Feed descargado: {len(resp.content)} bytes desde {self._url}")
                return resp.content

            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise FetchError(
                        f"Feed respondio {resp.status_code} tras {attempt} reintentos",
                        url=self._url,
                    )
                sleep_s = self._backoff(attempt, resp.headers.get("Retry-After"))
                logger.warning(
                    f"Feed respondio {resp.status_code}, reintento {attempt + 1}/{self._max_retries} en {sleep_s:.1f}s"
                )
                time.sleep(sleep_s)
                continue

            raise FetchError(
                f"Descarga del feed fallo {resp.status_code}",
                url=self._url,
            )

        raise FetchError("Descarga del feed sin respuesta", url=self._url)

    def _backoff(self, attempt: int, retry_after: Optional[str]) -> float:
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                return self._min_backoff_s
        base = min(self._max_backoff_s, self._min_backoff_s * (2**attempt))
        return base + (0.15 * base)
