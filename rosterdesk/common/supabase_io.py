# common/supabase_io.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from rosterdesk.common.context import SupabaseConfig
from rosterdesk.common.students import Student, validate_new_student

logger = logging.getLogger(__name__)

CONVERSATIONS_TABLE = "ai_conversations"
MESSAGES_TABLE = "ai_messages"
DEFAULT_TITLE = "New Conversation"


class SupabaseError(RuntimeError):
    pass


@lru_cache()
def _cached_client(url: str, key: str) -> Client:
    return create_client(url, key)


def get_client(cfg: SupabaseConfig) -> Client:
    url = (cfg.url or "").strip()
    key = (cfg.key or "").strip()
    if not url or not key:
        raise SupabaseError("Supabase URL and key are required (Connection tab).")
    return _cached_client(url, key)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_teacher(teacher_id: Optional[str]) -> str:
    if not teacher_id:
        raise SupabaseError("Unauthorized")
    return teacher_id


def _run(action: str, fn: Callable[[], Any]) -> Any:
    """Execute a query builder and turn library errors into SupabaseError."""
    try:
        res = fn()
    except APIError as e:
        logger.error("Failed to %s: %s", action, e.message)
        raise SupabaseError(f"Failed to {action}: {e.message}") from e
    except httpx.HTTPError as e:
        # connection refused, timeouts, dropped connections
        logger.error("Failed to %s: %s", action, e)
        raise SupabaseError(f"Failed to {action}: {e}") from e
    return res.data


def _first(rows: Any, action: str) -> Dict[str, Any]:
    if isinstance(rows, list):
        if not rows:
            raise SupabaseError(f"Failed to {action}: no row returned")
        return rows[0]
    return rows


# ---- students ----
def fetch_students(client: Client, teacher_id: Optional[str] = None,
                   table: str = "students") -> List[Student]:
    def q():
        query = client.table(table).select("*")
        if teacher_id:
            query = query.eq("teacher_id", teacher_id)
        return query.order("full_name").execute()

    rows = _run("get students", q) or []
    students = []
    for rec in rows:
        try:
            students.append(Student.from_record(rec))
        except ValueError:
            logger.warning("Skipping student row without id: %r", rec)
    logger.info("Fetched %d students", len(students))
    return students


def create_student(client: Client, teacher_id: str, full_name: str, school_year: str,
                   interests: str, learning_difficulties: Optional[str] = None,
                   table: str = "students") -> Student:
    row = validate_new_student(full_name, school_year, interests, learning_difficulties)
    row["teacher_id"] = _require_teacher(teacher_id)
    data = _run("create student", lambda: client.table(table).insert(row).execute())
    student = Student.from_record(_first(data, "create student"))
    logger.info("Created student %s in %s", student.id, student.school_year)
    return student


# ---- conversations ----
def create_conversation(client: Client, teacher_id: str, title: Optional[str] = None) -> Dict[str, Any]:
    now = _now()
    row = {
        "teacher_id": _require_teacher(teacher_id),
        "title": title or DEFAULT_TITLE,
        "created_at": now,
        "updated_at": now,
    }
    data = _run("create conversation", lambda: client.table(CONVERSATIONS_TABLE).insert(row).execute())
    return _first(data, "create conversation")


def list_conversations(client: Client, teacher_id: str) -> List[Dict[str, Any]]:
    teacher_id = _require_teacher(teacher_id)
    return _run("get conversations", lambda: (
        client.table(CONVERSATIONS_TABLE)
        .select("*")
        .eq("teacher_id", teacher_id)
        .order("updated_at", desc=True)
        .execute()
    )) or []


def get_conversation(client: Client, teacher_id: str, conversation_id: str) -> Optional[Dict[str, Any]]:
    teacher_id = _require_teacher(teacher_id)
    try:
        rows = _run("get conversation", lambda: (
            client.table(CONVERSATIONS_TABLE)
            .select("*")
            .eq("id", conversation_id)
            .eq("teacher_id", teacher_id)
            .limit(1)
            .execute()
        ))
    except SupabaseError:
        return None
    return rows[0] if rows else None


def update_conversation_title(client: Client, teacher_id: str, conversation_id: str,
                              title: str) -> Dict[str, Any]:
    # updated_at is left alone; it only moves when messages are added
    teacher_id = _require_teacher(teacher_id)
    data = _run("update conversation title", lambda: (
        client.table(CONVERSATIONS_TABLE)
        .update({"title": title})
        .eq("id", conversation_id)
        .eq("teacher_id", teacher_id)
        .execute()
    ))
    return _first(data, "update conversation title")


def delete_conversation(client: Client, teacher_id: str, conversation_id: str) -> bool:
    teacher_id = _require_teacher(teacher_id)
    _run("delete messages", lambda: (
        client.table(MESSAGES_TABLE).delete().eq("conversation_id", conversation_id).execute()
    ))
    _run("delete conversation", lambda: (
        client.table(CONVERSATIONS_TABLE)
        .delete()
        .eq("id", conversation_id)
        .eq("teacher_id", teacher_id)
        .execute()
    ))
    logger.info("Deleted conversation %s", conversation_id)
    return True


def add_message(client: Client, conversation_id: str, content: str, sender: str = "user") -> Dict[str, Any]:
    now = _now()
    row = {"conversation_id": conversation_id, "content": content, "sender": sender, "created_at": now}
    data = _run("create message", lambda: client.table(MESSAGES_TABLE).insert(row).execute())
    _run("touch conversation", lambda: (
        client.table(CONVERSATIONS_TABLE).update({"updated_at": now}).eq("id", conversation_id).execute()
    ))
    return _first(data, "create message")


def create_conversation_with_first_message(client: Client, teacher_id: str, message: str,
                                           title: Optional[str] = None) -> Dict[str, Any]:
    conversation = create_conversation(client, teacher_id, title)
    add_message(client, conversation["id"], message, sender="user")
    return conversation
