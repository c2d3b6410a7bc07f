# db.py
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from google.cloud import secretmanager
from google.cloud.sql.connector import Connector

import config
from models import NormalizedMessage

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Re-exports / alias de config para que sea más legible
PROJECT_ID          = config.PROJECT_ID
PG_INSTANCE_CONN    = config.PG_INSTANCE_CONN_NAME
PG_DB_SECRET_NAME   = config.PG_DB_SECRET_NAME
PG_DB_NAME          = config.PG_DB_NAME

GROUPS_TABLE_FQN    = config.GROUPS_TABLE_FQN
MESSAGES_TABLE_FQN  = config.MESSAGES_TABLE_FQN

MESSAGE_COLS = ["id", "group_id", "content", "sender_name", "timestamp", "created_at"]
GROUP_COLS = ["id", "name", "description", "summarization_goal", "created_at", "message_count"]

_connector: Optional[Connector] = None


# ========= HELPERS GENERALES =========

def get_secret_text(secret_name: str) -> str:

    client = secretmanager.SecretManagerServiceClient()
    name = f"projects/{PROJECT_ID}/secrets/{secret_name}/versions/latest"
    resp = client.access_secret_version(request={"name": name})
    return resp.payload.data.decode("utf-8")


def get_pg_conn():
    """
    Retorna una conexión a Cloud SQL Postgres usando Cloud SQL Connector.
    Usa el secreto PG_DB_SECRET_NAME para obtener user/password/dbname.
    """
    global _connector
    if not PG_INSTANCE_CONN:
        raise RuntimeError("PG_INSTANCE_TELEGRAM no está configurado")

    if _connector is None:
        _connector = Connector()

    cred_json = json.loads(get_secret_text(PG_DB_SECRET_NAME))

    conn = _connector.connect(
        PG_INSTANCE_CONN,
        "pg8000",
        user=cred_json["user"],
        password=cred_json["password"],
        db=cred_json.get("dbname", PG_DB_NAME),
    )

    # Algunos drivers pueden no soportar autocommit
    try:
        conn.autocommit = True
    except AttributeError:
        pass

    return conn


def close_quietly(conn) -> None:
    try:
        conn.close()
    except Exception:
        logger.warning("[DB] Error cerrando conexión", exc_info=True)


# ========= GRUPOS =========

def get_group(conn, group_id: str) -> Optional[Dict[str, Any]]:
    sql = f"""
    SELECT id, name
    FROM {GROUPS_TABLE_FQN}
    WHERE id = %s
    """
    cur = conn.cursor()
    try:
        cur.execute(sql, (group_id,))
        row = cur.fetchone()
    finally:
        cur.close()

    return {"id": row[0], "name": row[1]} if row else None


def list_groups(conn) -> List[Dict[str, Any]]:
    """Grupos más recientes primero, con el número de mensajes de cada uno."""
    sql = f"""
    SELECT
      g.id,
      g.name,
      g.description,
      g.summarization_goal,
      g.created_at,
      COUNT(m.id)::BIGINT AS message_count
    FROM {GROUPS_TABLE_FQN} g
    LEFT JOIN {MESSAGES_TABLE_FQN} m ON m.group_id = g.id
    GROUP BY g.id, g.name, g.description, g.summarization_goal, g.created_at
    ORDER BY g.created_at DESC
    """
    cur = conn.cursor()
    try:
        cur.execute(sql)
        rows = cur.fetchall()
    finally:
        cur.close()

    groups = [dict(zip(GROUP_COLS, r)) for r in rows]

    logger.info("[DB] list_groups -> %d grupos", len(groups))
    return groups


def create_group(
    conn,
    name: str,
    description: Optional[str] = None,
    summarization_goal: Optional[str] = None,
) -> Dict[str, Any]:
    group_id = str(uuid.uuid4())
    goal = summarization_goal or config.DEFAULT_SUMMARIZATION_GOAL

    sql = f"""
    INSERT INTO {GROUPS_TABLE_FQN} (
      id,
      name,
      description,
      summarization_goal,
      created_at
    )
    VALUES (%s, %s, %s, %s, NOW())
    RETURNING created_at
    """
    cur = conn.cursor()
    try:
        cur.execute(sql, (group_id, name, description or None, goal))
        row = cur.fetchone()
    finally:
        cur.close()

    logger.info("[DB] create_group: id=%s name=%s", group_id, name)
    return {
        "id": group_id,
        "name": name,
        "description": description or None,
        "summarization_goal": goal,
        "created_at": row[0] if row else None,
    }


# ========= MENSAJES =========

def find_message(
    conn,
    group_id: str,
    timestamp: datetime,
    content: str,
) -> Optional[str]:
    """
    Busca un mensaje con la misma clave natural (grupo, timestamp, contenido).
    Devuelve su id o None.
    """
    sql = f"""
    SELECT id
    FROM {MESSAGES_TABLE_FQN}
    WHERE group_id  = %s
      AND timestamp = %s
      AND content   = %s
    LIMIT 1
    """
    cur = conn.cursor()
    try:
        cur.execute(sql, (group_id, timestamp, content))
        row = cur.fetchone()
    finally:
        cur.close()

    return str(row[0]) if row else None


def insert_message(
    conn,
    group_id: str,
    message: NormalizedMessage,
) -> str:
    message_id = str(uuid.uuid4())
    sql = f"""
    INSERT INTO {MESSAGES_TABLE_FQN} (
      id,
      group_id,
      content,
      sender_name,
      timestamp,
      created_at
    )
    VALUES (%s, %s, %s, %s, %s, NOW())
    """
    cur = conn.cursor()
    try:
        cur.execute(
            sql,
            (
                message_id,
                group_id,
                message.content,
                message.sender_name,
                message.timestamp,
            ),
        )
    finally:
        cur.close()

    return message_id


def fetch_messages(
    conn,
    group_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Dict[str, Any]]:

    base_sql = f"""
    SELECT {", ".join(MESSAGE_COLS)}
    FROM {MESSAGES_TABLE_FQN}
    WHERE group_id = %s
    """

    params: List[Any] = [group_id]
    if start is not None:
        base_sql += " AND timestamp >= %s"
        params.append(start)
    if end is not None:
        base_sql += " AND timestamp <= %s"
        params.append(end)

    base_sql += " ORDER BY timestamp ASC"

    cur = conn.cursor()
    try:
        cur.execute(base_sql, tuple(params))
        rows = cur.fetchall()
    finally:
        cur.close()

    messages = [dict(zip(MESSAGE_COLS, r)) for r in rows]

    logger.info(
        "[DB] fetch_messages: group_id=%s -> %d filas", group_id, len(messages)
    )
    return messages


def fetch_message_timestamps(
    conn,
    group_id: str,
    start: datetime,
    end: datetime,
) -> List[datetime]:
    sql = f"""
    SELECT timestamp
    FROM {MESSAGES_TABLE_FQN}
    WHERE group_id = %s
      AND timestamp >= %s
      AND timestamp <= %s
    """
    cur = conn.cursor()
    try:
        cur.execute(sql, (group_id, start, end))
        rows = cur.fetchall()
    finally:
        cur.close()

    return [r[0] for r in rows]


def delete_messages(conn, group_id: str) -> int:
    sql = f"DELETE FROM {MESSAGES_TABLE_FQN} WHERE group_id = %s"
    cur = conn.cursor()
    try:
        cur.execute(sql, (group_id,))
        deleted = cur.rowcount
    finally:
        cur.close()

    logger.info("[DB] delete_messages: group_id=%s -> %d filas", group_id, deleted)
    return deleted


# ========= STORE PARA EL IMPORT =========

class MessageStore:
    """Adaptador conexión -> interfaz find/insert que usa import_service."""

    def __init__(self, conn):
        self.conn = conn

    def find_message(self, group_id: str, timestamp: datetime, content: str) -> Optional[str]:
        return find_message(self.conn, group_id, timestamp, content)

    def insert_message(self, group_id: str, message: NormalizedMessage) -> str:
        return insert_message(self.conn, group_id, message)
