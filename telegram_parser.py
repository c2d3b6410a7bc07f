# telegram_parser.py
from __future__ import annotations

import logging
from typing import Optional

import config
from errors import PayloadTooLargeError
from format_sniffer import FORMAT_JSON, sniff_export
from html_export_parser import parse_telegram_html
from json_export_parser import parse_telegram_json
from models import ParsedExport

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def check_payload_size(content: str, limit: Optional[int] = None) -> None:
    limit = config.MAX_UPLOAD_BYTES if limit is None else limit
    size = len(content.encode("utf-8"))
    if size > limit:
        raise PayloadTooLargeError(size, limit)


def parse_export(content: str) -> ParsedExport:
    """
    Punto de entrada único: detecta el formato (JSON / HTML) y delega.
    Los errores de formato (ExportParseError) suben tal cual al llamador.
    """
    check_payload_size(content or "")

    fmt, data = sniff_export(content)
    logger.info("[PARSER] Formato detectado=%s len=%d", fmt, len(content))

    if fmt == FORMAT_JSON:
        return parse_telegram_json(data)

    return parse_telegram_html(content.strip())
