"""
academia/orm/activity_log.py
Immutable activity log for accountability

Records who did what and when. Rows are append-only; the only change ever
made to one is clearing user_id when that user is deleted.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON

from academia.orm.base import Base


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    # Kept when the actor is later deleted
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    action = Column(String(64), nullable=False, index=True)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ActivityLog({self.action}, user={self.user_id})>"
