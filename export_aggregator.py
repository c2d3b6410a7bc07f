# export_aggregator.py
"""
Preview de exports partidos en varios archivos (messages.html,
messages2.html, ...). Cada archivo se parsea por separado y se combinan
conteos y rango de fechas antes de importar nada.
"""
from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

import config
import telegram_parser
from models import CombinedExportInfo, ExportInfo, NormalizedMessage, ParsedExport

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

EXPORT_PART_RE = re.compile(r"messages(\d*)\.html?$", re.IGNORECASE)
UNRANKED_FILE = 999


# ---------- ORDEN DE ARCHIVOS ---------------

def export_file_rank(name: str) -> int:
    m = EXPORT_PART_RE.search(name)
    if not m:
        return UNRANKED_FILE
    return int(m.group(1)) if m.group(1) else 0


def sort_export_files(names: Iterable[str]) -> List[str]:
    return sorted(names, key=export_file_rank)


# ---------- RANGO DE FECHAS ---------------

def _date_range(
    messages: Iterable[NormalizedMessage],
) -> Tuple[Optional[datetime], Optional[datetime]]:
    # Las fechas inventadas (HTML sin fecha) no cuentan para el rango
    stamps = [m.timestamp for m in messages if not m.timestamp_inferred]
    if not stamps:
        return None, None
    return min(stamps), max(stamps)


def export_info_from_parsed(parsed: ParsedExport) -> ExportInfo:
    start, end = _date_range(parsed.messages)
    return ExportInfo(
        group_name=parsed.group_name,
        total_messages=parsed.total_items,
        valid_messages=parsed.valid_messages,
        date_start=start,
        date_end=end,
    )


# ---------- COMBINACIÓN ---------------

def _parse_named(item: Tuple[str, str]) -> ParsedExport:
    name, content = item
    try:
        return telegram_parser.parse_export(content)
    except Exception:
        logger.warning("[AGGREGATOR] Falló el parseo de %s", name)
        raise


def combine_exports(
    files: Sequence[Tuple[str, str]],
    max_workers: Optional[int] = None,
) -> CombinedExportInfo:
    """
    files: lista ordenada de (nombre, contenido). El orden lo decide el
    llamador (ver sort_export_files). Si un archivo falla se aborta todo.
    """
    files = list(files)
    if not files:
        return CombinedExportInfo(
            group_name=config.DEFAULT_GROUP_NAME,
            total_messages=0,
            valid_messages=0,
            date_start=None,
            date_end=None,
            files=(),
        )

    workers = min(max_workers or config.MAX_WORKERS, len(files))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        # map conserva el orden de entrada y relanza la primera excepción
        exports = list(executor.map(_parse_named, files))

    total_messages = 0
    valid_messages = 0
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    for parsed in exports:
        info = export_info_from_parsed(parsed)
        total_messages += info.total_messages
        valid_messages += info.valid_messages
        if info.date_start is not None and (start is None or info.date_start < start):
            start = info.date_start
        if info.date_end is not None and (end is None or info.date_end > end):
            end = info.date_end

    logger.info(
        "[AGGREGATOR] %d archivos: %d mensajes válidos de %d",
        len(files), valid_messages, total_messages,
    )

    return CombinedExportInfo(
        group_name=exports[0].group_name,
        total_messages=total_messages,
        valid_messages=valid_messages,
        date_start=start,
        date_end=end,
        files=tuple(name for name, _ in files),
        exports=tuple(exports),
    )
