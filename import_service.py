# import_service.py
from __future__ import annotations

import logging
import threading
import weakref
from typing import Iterable, Optional, Sequence

from models import ImportResult, NormalizedMessage, ParsedExport

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Un lock por grupo: buscar-y-luego-insertar no es atómico en la base.
# Referencias débiles: el lock se libera cuando ningún import lo usa.
_group_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
_group_locks_guard = threading.Lock()


def _lock_for_group(group_id: str) -> threading.Lock:
    with _group_locks_guard:
        lock = _group_locks.get(group_id)
        if lock is None:
            lock = threading.Lock()
            _group_locks[group_id] = lock
        return lock


def import_messages(
    store,
    group_id: str,
    messages: Sequence[NormalizedMessage],
    group_name: Optional[str] = None,
) -> ImportResult:
    """
    Inserta los mensajes que no existan todavía en el grupo.

    Clave de duplicado: (group_id, timestamp, content). Dos mensajes
    distintos con el mismo texto en el mismo milisegundo se consideran
    el mismo; es una limitación conocida.

    store debe exponer find_message(group_id, timestamp, content) e
    insert_message(group_id, message) (ver db.MessageStore).
    """
    imported = 0
    skipped = 0

    with _lock_for_group(group_id):
        for msg in messages:
            if store.find_message(group_id, msg.timestamp, msg.content):
                skipped += 1
                continue

            store.insert_message(group_id, msg)
            imported += 1

    logger.info(
        "[IMPORT] group_id=%s imported=%d skipped=%d total=%d",
        group_id, imported, skipped, len(messages),
    )

    return ImportResult(
        imported=imported,
        skipped=skipped,
        total=len(messages),
        group_name=group_name,
    )


def import_exports(
    store,
    group_id: str,
    exports: Iterable[ParsedExport],
) -> ImportResult:
    """Importa varios ParsedExport en el orden dado y suma los contadores."""
    imported = 0
    skipped = 0
    total = 0
    group_name = None

    for parsed in exports:
        if group_name is None:
            group_name = parsed.group_name
        res = import_messages(store, group_id, parsed.messages, parsed.group_name)
        imported += res.imported
        skipped += res.skipped
        total += res.total

    return ImportResult(
        imported=imported,
        skipped=skipped,
        total=total,
        group_name=group_name,
    )
