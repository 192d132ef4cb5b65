"""
Tipos y utilidades puras para el pipeline feed -> Postgres.

Se mantienen libres de I/O para poder testearlos facilmente.

Coerciones lenientes (`as_text`, `as_integer`, `as_decimal`): nunca levantan
excepcion; vacio, ausente o malformado -> None. Si la columna es NOT NULL,
el error lo reporta la base y aborta el batch.

Coerciones estrictas (`require_*`): levantan ValueError con un mensaje claro.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional


INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def _parse_int32(raw: str) -> Optional[int]:
    if not _INTEGER_RE.fullmatch(raw):
        return None
    value = int(raw)
    if value < INT32_MIN or value > INT32_MAX:
        return None
    return value


def _parse_decimal(raw: str) -> Optional[Decimal]:
    # Solo digitos ASCII, punto y exponente: sin "_", espacios, NaN ni Infinity.
    if not _DECIMAL_RE.fullmatch(raw):
        return None
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


def as_text(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    return raw


def as_integer(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    return _parse_int32(raw)


def as_decimal(raw: Optional[str]) -> Optional[Decimal]:
    """Decimal con la precision completa del texto (sin redondeo)."""
    if not raw:
        return None
    return _parse_decimal(raw)


def as_boolean(raw: Optional[str]) -> bool:
    """'true' (sin importar mayusculas) -> True; cualquier otra cosa -> False."""
    return raw is not None and raw.lower() == "true"


def require_text(raw: Optional[str]) -> str:
    """Texto obligatorio; el texto vacio se acepta tal cual."""
    if raw is None:
        raise ValueError("valor ausente")
    return raw


def require_integer(raw: Optional[str]) -> int:
    if raw is None:
        raise ValueError("valor ausente")
    value = _parse_int32(raw)
    if value is None:
        raise ValueError(f"no es un entero valido: {raw!r}")
    return value


def require_decimal(raw: Optional[str]) -> Decimal:
    if raw is None:
        raise ValueError("valor ausente")
    value = _parse_decimal(raw)
    if value is None:
        raise ValueError(f"no es un decimal valido: {raw!r}")
    return value


def optional_integer_strict(raw: Optional[str]) -> Optional[int]:
    """Ausente -> None; presente pero malformado -> ValueError."""
    if raw is None:
        return None
    return require_integer(raw)


Transform = Callable[[Optional[str]], Any]

ATTRIBUTE = "attribute"
CHILD = "child"
TEXT = "text"


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de un valor del feed a una columna Postgres.

    - source: nombre del atributo o del elemento hijo en el feed
    - pg_column: nombre de la columna en Postgres
    - origin: ATTRIBUTE (atributo del nodo), CHILD (texto del primer hijo)
      o TEXT (texto del propio nodo)
    - transform: coercion aplicada al texto crudo
    - required: si True, un fallo del transform aborta la tabla
      (si es False, el transform debe ser leniente)
    """

    source: str
    pg_column: str
    origin: str = CHILD
    transform: Transform = as_text
    required: bool = False
