# config.py

from __future__ import annotations
import os

# --------- PROYECTO / GCP ---------

PROJECT_ID = os.getenv("PROJECT_ID", "data-323821")

# --------- POSTGRES (Cloud SQL) --------

# Nombre de la instancia de Cloud SQL (obligatorio al abrir conexión)
PG_INSTANCE_CONN_NAME = os.getenv("PG_INSTANCE_TELEGRAM")

# Secreto con user/password/dbname para PG
PG_DB_SECRET_NAME = os.getenv("PG_DB_SECRET_NAME", "PG_DB_SECRET_TELEGRAM")

PG_DB_NAME   = os.getenv("PG_DB_NAME", "telegram")
PG_DB_SCHEMA = os.getenv("PG_DB_SCHEMA", "telegram")
# Tablas principales

GROUPS_TABLE_FQN   = f"{PG_DB_SCHEMA}.groups"
MESSAGES_TABLE_FQN = f"{PG_DB_SCHEMA}.messages"

# --------- PARSEO DE EXPORTS ---------

DEFAULT_GROUP_NAME = os.getenv("DEFAULT_GROUP_NAME", "Unknown Group")

# Tamaño máximo de un archivo exportado (bytes, UTF-8)
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

# --------- CONCURRENCIA ---------
MAX_WORKERS = int(os.getenv("MAX_WORKERS", "8"))

# --------- ACTIVIDAD ---------

ACTIVITY_DEFAULT_DAYS = int(os.getenv("ACTIVITY_DEFAULT_DAYS", "30"))

# --------- GRUPOS ---------

DEFAULT_SUMMARIZATION_GOAL = os.getenv(
    "DEFAULT_SUMMARIZATION_GOAL", "Summarize the main topics and key discussions"
)
