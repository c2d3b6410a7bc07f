# timestamps.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def parse_unixtime(value: Any) -> Optional[datetime]:
    """
    Segundos epoch (string numérica o número) -> datetime UTC.
    Se trabaja en milisegundos para no perder precisión.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        ms = int(round(float(str(value).strip()) * 1000))
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        logger.debug("parse_unixtime: valor no válido %r", value)
        return None


def parse_datetime_value(value: Any, dayfirst: bool = False) -> Optional[datetime]:
    """
    Parseo genérico con pandas. Los valores sin zona horaria se toman como UTC.
    Devuelve None si pandas no consigue un instante válido.
    """
    # Solo escalares: una lista / dict haría que pandas devolviera un índice
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (str, int, float, datetime)):
        logger.debug("parse_datetime_value: tipo no soportado %s", type(value))
        return None
    if isinstance(value, str) and not value.strip():
        return None

    try:
        p = pd.to_datetime(value, utc=True, errors="coerce", dayfirst=dayfirst)
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug("parse_datetime_value: error %s (value=%r)", e, value)
        return None

    if pd.isna(p):
        return None
    return p.to_pydatetime()
