# format_sniffer.py
"""
Detección del formato de un export de Telegram Desktop.

Heurística simple (prefijo / substrings). Todo el que necesite saber si un
archivo es JSON o HTML pasa por sniff_export / detect_format, así los parsers no dependen
de cómo se decide.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

from errors import UnrecognizedFormatError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

FORMAT_JSON = "json"
FORMAT_HTML = "html"

HTML_MARKERS = ("<!DOCTYPE", "<html", '<div class="message')


def _decode_json_export(trimmed: str) -> Optional[Dict[str, Any]]:
    """El JSON decodificado si es un export con "messages" lista, si no None."""
    if not trimmed.startswith("{"):
        return None
    try:
        data = json.loads(trimmed)
    except (ValueError, RecursionError):
        # JSON roto o demasiado anidado: dejamos que lo intente la detección HTML
        return None
    if isinstance(data, dict) and isinstance(data.get("messages"), list):
        return data
    return None


def _looks_like_html_export(trimmed: str) -> bool:
    return any(marker in trimmed for marker in HTML_MARKERS)


def sniff_export(content: str) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Devuelve (formato, datos). Para JSON los datos son el dict ya
    decodificado, así el parser no vuelve a decodificar el archivo.
    Lanza UnrecognizedFormatError si no hay ninguna firma reconocible.
    """
    trimmed = (content or "").strip()

    data = _decode_json_export(trimmed)
    if data is not None:
        return FORMAT_JSON, data

    if _looks_like_html_export(trimmed):
        return FORMAT_HTML, None

    logger.info("[SNIFFER] Formato no reconocido (len=%d inicio=%r)", len(trimmed), trimmed[:40])
    raise UnrecognizedFormatError()


def detect_format(content: str) -> str:
    """Devuelve "json" o "html"."""
    fmt, _data = sniff_export(content)
    return fmt
