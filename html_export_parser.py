# html_export_parser.py
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

import config
from models import NormalizedMessage, ParsedExport
from timestamps import now_utc, parse_datetime_value

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Cada turno de conversación es <div class="message default clearfix [joined]">.
# Los "message service" (separadores de día, joins) no llevan "default".
MESSAGE_SELECTOR = "div.message.default"

GROUP_NAME_SELECTORS = (".page_header .content .text", "title", ".page_header")

# Bloques anidados cuyo contenido no es del mensaje en sí
NESTED_BLOCK_CLASSES = ("forwarded", "reply_to")

# "15.03.2024 14:30:00" / "15.03.2024 14:30" / "01.08.2017 05:46:52 UTC+10:00"
TITLE_DATETIME_RE = re.compile(
    r"(\d{1,2})\.(\d{1,2})\.(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?"
    r"(?:\s*UTC([+-])(\d{1,2})(?::?(\d{2}))?)?"
)


# ---------- TIMESTAMP ---------------

def _parse_title_explicit(title: str) -> Optional[datetime]:
    m = TITLE_DATETIME_RE.search(title)
    if not m:
        return None

    day, month, year, hour, minute = (int(g) for g in m.group(1, 2, 3, 4, 5))
    second = int(m.group(6) or 0)

    tz = timezone.utc
    if m.group(7):
        sign = 1 if m.group(7) == "+" else -1
        offset = timedelta(hours=int(m.group(8)), minutes=int(m.group(9) or 0))
        tz = timezone(sign * offset)

    try:
        dt = datetime(year, month, day, hour, minute, second, tzinfo=tz)
    except ValueError:
        return None
    return dt.astimezone(timezone.utc)


def parse_title_datetime(title: str) -> Optional[datetime]:
    """
    Convierte el atributo title de la fecha (DD.MM.YYYY HH:MM[:SS]) a UTC.

    El formato es día-primero; un parser genérico lo leería como mes-primero,
    así que primero se extraen los campos a mano. Si no encaja, último intento
    con pandas (dayfirst). None si nada da un instante válido.
    """
    if not title or not title.strip():
        return None

    dt = _parse_title_explicit(title)
    if dt is not None:
        return dt

    return parse_datetime_value(title.strip(), dayfirst=True)


# ---------- DOM HELPERS ---------------

def _inside_nested_block(node: Tag, root: Tag) -> bool:
    for parent in node.parents:
        if parent is root:
            return False
        classes = parent.get("class") or []
        if any(c in classes for c in NESTED_BLOCK_CLASSES):
            return True
    return False


def _own_element(root: Tag, selector: str, allow_nested: bool = True) -> Optional[Tag]:
    """
    Primer elemento que pertenece al propio mensaje (fuera de forwarded /
    reply_to). Si no hay y allow_nested, el primero que haya.
    """
    found = root.select(selector)
    for node in found:
        if not _inside_nested_block(node, root):
            return node
    if allow_nested and found:
        return found[0]
    return None


def _element_text(node: Tag) -> str:
    for br in node.find_all("br"):
        br.replace_with("\n")
    return node.get_text().strip()


def _extract_group_name(soup: BeautifulSoup) -> str:
    for selector in GROUP_NAME_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        name = node.get_text().strip()
        if name:
            return name
    return config.DEFAULT_GROUP_NAME


# ---------- PARSEO DE UN MENSAJE ---------------

def parse_message_element(
    element: Tag,
    last_sender: Optional[str],
    fallback_now: datetime,
) -> Tuple[Optional[str], Optional[NormalizedMessage]]:
    """
    Un paso del recorrido: recibe el último remitente visto y devuelve
    (remitente actualizado, mensaje o None si se descarta).

    Telegram omite from_name en mensajes consecutivos del mismo autor
    ("joined"), por eso el remitente se arrastra de un paso al siguiente.
    """
    from_el = _own_element(element, ".from_name", allow_nested=False)
    if from_el is not None:
        name = from_el.get_text().strip()
        if name:
            last_sender = name

    # Adjuntos / stickers usan el mismo wrapper pero sin .text
    text_el = _own_element(element, ".text")
    if text_el is None:
        return last_sender, None

    content = _element_text(text_el)
    if not content:
        return last_sender, None

    date_el = _own_element(element, ".date")
    title = date_el.get("title") if date_el is not None else None

    if not title:
        return last_sender, NormalizedMessage(
            content=content,
            sender_name=last_sender,
            timestamp=fallback_now,
            timestamp_inferred=True,
        )

    timestamp = parse_title_datetime(title)
    if timestamp is None:
        logger.debug("[HTML] Fecha no parseable title=%r id=%s", title, element.get("id"))
        return last_sender, None

    return last_sender, NormalizedMessage(
        content=content,
        sender_name=last_sender,
        timestamp=timestamp,
    )


# ---------- PARSEO DEL DOCUMENTO ---------------

def parse_telegram_html(html_content: str) -> ParsedExport:
    soup = BeautifulSoup(html_content, "html.parser")

    group_name = _extract_group_name(soup)
    elements = soup.select(MESSAGE_SELECTOR)
    fallback_now = now_utc()

    last_sender: Optional[str] = None
    output: List[NormalizedMessage] = []

    for element in elements:
        last_sender, message = parse_message_element(element, last_sender, fallback_now)
        if message is not None:
            output.append(message)

    inferred = sum(1 for m in output if m.timestamp_inferred)
    if inferred:
        logger.warning(
            "[HTML] Export '%s': %d mensajes sin fecha, se usó la hora actual",
            group_name, inferred,
        )

    logger.info(
        "[HTML] Export '%s': %d mensajes válidos de %d candidatos",
        group_name, len(output), len(elements),
    )

    return ParsedExport(
        messages=tuple(output),
        group_name=group_name,
        total_items=len(elements),
    )
