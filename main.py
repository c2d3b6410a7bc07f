# main.py (telegram_ingesta, Cloud Functions HTTP)
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import functions_framework

import activity
import db
import export_aggregator
import import_service
from errors import EmptyExportError, ExportParseError
from timestamps import parse_datetime_value

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

JSON_HEADERS = {"Content-Type": "application/json"}


# =============== HELPERS GENERALES ===============

def json_response(payload: Any, status: int = 200):
    return (json.dumps(payload, default=str), status, JSON_HEADERS)


def error_response(message: str, status: int):
    return json_response({"error": message}, status)


def read_body(request) -> Dict[str, Any]:
    if not request.data:
        return {}
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def read_files(body: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    Acepta {"content": "..."} (un archivo) o {"files": [{"name", "content"}]}.
    Los archivos se ordenan messages.html, messages2.html, ... (orden estable:
    nombres repetidos se conservan en el orden recibido).
    Lanza EmptyExportError si alguna entrada no trae contenido.
    """
    files = body.get("files")
    if isinstance(files, list) and files:
        entries: List[Tuple[str, str]] = []
        for i, f in enumerate(files):
            name = str((f.get("name") if isinstance(f, dict) else None) or f"file{i + 1}")
            if not isinstance(f, dict) or not f.get("content"):
                raise EmptyExportError(name)
            entries.append((name, f["content"]))
        return sorted(entries, key=lambda e: export_aggregator.export_file_rank(e[0]))

    content = body.get("content")
    if content:
        return [(str(body.get("fileName") or "upload"), content)]
    return []


# =============== UPLOAD (parseo + import) ===============

@functions_framework.http
def telegram_upload(request):

    if request.method != "POST":
        return error_response("Method not allowed", 405)

    try:
        body = read_body(request)
        group_id = body.get("groupId")
        try:
            files = read_files(body)
        except ExportParseError as e:
            return error_response(str(e), 400)

        if not group_id or not files:
            return error_response("groupId and content are required", 400)

        logger.info("[MAIN] Upload group_id=%s archivos=%d", group_id, len(files))

        conn = db.get_pg_conn()
        try:
            # Grupo primero: no se parsea nada para un grupo inexistente
            if db.get_group(conn, group_id) is None:
                return error_response("Group not found", 404)

            try:
                combined = export_aggregator.combine_exports(files)
            except ExportParseError as e:
                return error_response(str(e), 400)

            if combined.valid_messages == 0:
                return error_response("No valid messages found in export", 400)

            store = db.MessageStore(conn)
            result = import_service.import_exports(store, group_id, combined.exports)
        finally:
            db.close_quietly(conn)

        return json_response({
            "success": True,
            "imported": result.imported,
            "skipped": result.skipped,
            "total": result.total,
            "groupName": result.group_name,
        })

    except Exception as e:
        logger.exception("[MAIN] Error en telegram_upload")
        return json_response({"status": "ERROR", "message": str(e)}, 500)


# =============== PREVIEW (sin import) ===============

@functions_framework.http
def telegram_preview(request):

    if request.method != "POST":
        return error_response("Method not allowed", 405)

    try:
        try:
            files = read_files(read_body(request))
            if not files:
                return error_response("files are required", 400)
            combined = export_aggregator.combine_exports(files)
        except ExportParseError as e:
            return error_response(str(e), 400)

        return json_response(combined.to_dict())

    except Exception as e:
        logger.exception("[MAIN] Error en telegram_preview")
        return json_response({"status": "ERROR", "message": str(e)}, 500)


# =============== GRUPOS (listar / crear) ===============

@functions_framework.http
def telegram_groups(request):

    if request.method not in ("GET", "POST"):
        return error_response("Method not allowed", 405)

    body = read_body(request) if request.method == "POST" else {}
    name = body.get("name")
    if request.method == "POST" and (not isinstance(name, str) or not name.strip()):
        return error_response("Name is required", 400)

    try:
        conn = db.get_pg_conn()
        try:
            if request.method == "GET":
                return json_response(db.list_groups(conn))

            group = db.create_group(
                conn,
                name.strip(),
                description=body.get("description") or None,
                summarization_goal=body.get("summarizationGoal") or None,
            )
        finally:
            db.close_quietly(conn)

        logger.info("[MAIN] Grupo creado id=%s", group["id"])
        return json_response(group, 201)

    except Exception as e:
        logger.exception("[MAIN] Error en telegram_groups")
        return json_response({"status": "ERROR", "message": str(e)}, 500)


# =============== MENSAJES (listar / borrar) ===============

def _parse_date_param(value: Optional[str]):
    if not value:
        return None
    dt = parse_datetime_value(value)
    if dt is None:
        raise ValueError(f"Invalid date: {value}")
    return dt


@functions_framework.http
def telegram_messages(request):

    if request.method not in ("GET", "DELETE"):
        return error_response("Method not allowed", 405)

    args = request.args or {}
    group_id = args.get("groupId")
    if not group_id:
        return error_response("groupId is required", 400)

    try:
        start = _parse_date_param(args.get("startDate"))
        end = _parse_date_param(args.get("endDate"))
    except ValueError as e:
        return error_response(str(e), 400)

    try:
        conn = db.get_pg_conn()
        try:
            if request.method == "DELETE":
                deleted = db.delete_messages(conn, group_id)
                return json_response({"success": True, "deleted": deleted})

            messages = db.fetch_messages(conn, group_id, start, end)
        finally:
            db.close_quietly(conn)

        return json_response(messages)

    except Exception as e:
        logger.exception("[MAIN] Error en telegram_messages")
        return json_response({"status": "ERROR", "message": str(e)}, 500)


# =============== ACTIVIDAD (heatmap) ===============

@functions_framework.http
def telegram_activity(request):

    if request.method != "GET":
        return error_response("Method not allowed", 405)

    args = request.args or {}
    group_id = args.get("groupId")
    if not group_id:
        return error_response("groupId is required", 400)

    try:
        days = int(args.get("days")) if args.get("days") else None
    except ValueError:
        return error_response("days must be an integer", 400)

    try:
        start, end = activity.activity_window(days)

        conn = db.get_pg_conn()
        try:
            if db.get_group(conn, group_id) is None:
                return error_response("Group not found", 404)
            timestamps = db.fetch_message_timestamps(conn, group_id, start, end)
        finally:
            db.close_quietly(conn)

        report = activity.build_activity_heatmap(timestamps, days=days, now=end)
        return json_response(report.to_dict())

    except Exception as e:
        logger.exception("[MAIN] Error en telegram_activity")
        return json_response({"status": "ERROR", "message": str(e)}, 500)
