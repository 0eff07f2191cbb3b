"""
academia/services/activity_logger.py
Centralized activity logging service

Every create / update / delete in the other services calls record() before
committing. The entry is added to the same session, so it is committed in
the same transaction as the mutation it describes: a mutation that rolls
back leaves no log entry, and a committed mutation always has one.

Logs are append-only and read-only. No edits, no deletions.
"""
import json
import logging
import math
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academia.orm.activity_log import ActivityLog

logger = logging.getLogger(__name__)


class Action:
    """Action tags written to the log"""
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"

    CREATE_DEPARTMENT = "CREATE_DEPARTMENT"

    CREATE_COURSE = "CREATE_COURSE"
    UPDATE_COURSE = "UPDATE_COURSE"
    DELETE_COURSE = "DELETE_COURSE"

    CREATE_CLO = "CREATE_CLO"
    UPDATE_CLO = "UPDATE_CLO"
    DELETE_CLO = "DELETE_CLO"

    CREATE_FACULTY_COURSE_ASSIGNMENT = "CREATE_FACULTY_COURSE_ASSIGNMENT"
    DELETE_FACULTY_COURSE_ASSIGNMENT = "DELETE_FACULTY_COURSE_ASSIGNMENT"
    BULK_ASSIGN_COURSES_TO_FACULTY = "BULK_ASSIGN_COURSES_TO_FACULTY"
    BULK_ASSIGN_FACULTY_TO_COURSE = "BULK_ASSIGN_FACULTY_TO_COURSE"

    CREATE_CONTENT = "CREATE_CONTENT"
    UPDATE_CONTENT = "UPDATE_CONTENT"
    DELETE_CONTENT = "DELETE_CONTENT"
    ADD_CONTENT_QUESTION = "ADD_CONTENT_QUESTION"
    REMOVE_CONTENT_QUESTION = "REMOVE_CONTENT_QUESTION"


def _json_safe(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if metadata is None:
        return None
    return json.loads(json.dumps(metadata, default=str))


class ActivityLogger:
    """Append-only writer and reader for the activity log."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def record(self, actor_id: Optional[int], action: str, metadata: Optional[Dict[str, Any]] = None) -> ActivityLog:
        """
        Stage a log entry in the caller's transaction.

        Call this AFTER the mutation has been staged and BEFORE commit.
        """
        entry = ActivityLog(
            user_id=actor_id,
            action=action,
            details=_json_safe(metadata),
        )
        self.db.add(entry)
        logger.debug(f"Activity staged: {action} by {actor_id}")
        return entry

    async def list_by_user(self, user_id: int, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Newest-first page of one user's activity with pagination metadata"""
        page = max(page, 1)
        limit = max(limit, 1)

        total = (await self.db.execute(
            select(func.count(ActivityLog.id)).where(ActivityLog.user_id == user_id)
        )).scalar() or 0

        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        logs = result.scalars().all()

        return {
            "logs": [serialize_log(log) for log in logs],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }


def serialize_log(log: ActivityLog) -> Dict[str, Any]:
    return {
        "id": log.id,
        "user_id": log.user_id,
        "action": log.action,
        "metadata": log.details,
        "created_at": log.created_at.isoformat() if log.created_at else None,
    }
