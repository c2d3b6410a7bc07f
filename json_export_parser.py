# json_export_parser.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import config
from errors import InvalidExportShapeError
from models import NormalizedMessage, ParsedExport
from timestamps import parse_datetime_value, parse_unixtime

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


# ---------- VALIDACIÓN ---------------

def validate_telegram_json(data: Any) -> bool:
    return isinstance(data, dict) and isinstance(data.get("messages"), list)


# ---------- TEXTO ---------------

def extract_text_content(text: Any) -> str:
    """
    El campo "text" puede ser un string o una lista de fragmentos con formato
    (bold, link, ...). Se concatenan los textos en orden, sin estilos.
    """
    if isinstance(text, str):
        return text

    if isinstance(text, list):
        parts: List[str] = []
        for part in text:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("text"):
                parts.append(str(part["text"]))
        return "".join(parts)

    return ""


# ---------- TIMESTAMP ---------------

def resolve_timestamp(msg: Dict[str, Any]) -> Optional[datetime]:
    # 1) date_unixtime (segundos)
    unixtime = msg.get("date_unixtime")
    if unixtime not in (None, ""):
        dt = parse_unixtime(unixtime)
        if dt is not None:
            return dt

    # 2) date (ISO, sin zona -> UTC)
    return parse_datetime_value(msg.get("date"))


# ---------- PARSEO ---------------

def parse_telegram_json(data: Any) -> ParsedExport:
    """
    Recibe el JSON ya decodificado de un export de Telegram Desktop
    ({name, messages: [...]}) y devuelve un ParsedExport en orden de documento.
    """
    if not validate_telegram_json(data):
        raise InvalidExportShapeError()

    raw_messages: List[Any] = data["messages"]
    output: List[NormalizedMessage] = []
    skipped = 0

    for msg in raw_messages:
        if not isinstance(msg, dict):
            skipped += 1
            continue

        # Mensajes de servicio (joins, pins, ...)
        if msg.get("type") != "message":
            skipped += 1
            continue

        content = extract_text_content(msg.get("text")).strip()
        if not content:
            skipped += 1
            continue

        timestamp = resolve_timestamp(msg)
        if timestamp is None:
            logger.debug("[JSON] Mensaje sin fecha válida id=%r", msg.get("id"))
            skipped += 1
            continue

        sender = msg.get("from")

        output.append(
            NormalizedMessage(
                content=content,
                sender_name=str(sender) if sender else None,
                timestamp=timestamp,
            )
        )

    group_name = data.get("name") or config.DEFAULT_GROUP_NAME

    logger.info(
        "[JSON] Export '%s': %d mensajes válidos de %d (omitidos=%d)",
        group_name, len(output), len(raw_messages), skipped,
    )

    return ParsedExport(
        messages=tuple(output),
        group_name=group_name,
        total_items=len(raw_messages),
    )
