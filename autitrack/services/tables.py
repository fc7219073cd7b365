# relational schema: sqlalchemy orm tables
# users, clients, data_entries, sessions, client_notes, user_sessions

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, JSON, String, Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """same instant in UTC; naive values are taken to be UTC already"""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """timestamp stored as UTC and always read back timezone-aware.

    sqlite keeps no offset, so values are converted to UTC on the way in
    and tagged as UTC on the way out. naive input is taken to be UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return to_utc(value)

    def process_result_value(self, value, dialect):
        return to_utc(value)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role in ('practitioner','client')", name="ck_users_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    # "<derived key hex>.<salt hex>"
    password: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, default="client")
    name: Mapped[str] = mapped_column(String, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class Client(Base):
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_practitioner", "practitioner_id"),
        Index("idx_clients_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    practitioner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    date_of_birth: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    diagnosis: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    guardian_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    guardian_relation: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    guardian_phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    guardian_email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    treatment_plan: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    treatment_goals: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class DataEntry(Base):
    __tablename__ = "data_entries"
    __table_args__ = (
        CheckConstraint(
            "mood in ('great','good','okay','not-good','bad')", name="ck_data_entries_mood",
        ),
        CheckConstraint(
            "anxiety_level is null or anxiety_level between 1 and 5",
            name="ck_data_entries_anxiety",
        ),
        CheckConstraint(
            "sleep_quality is null or sleep_quality between 1 and 5",
            name="ck_data_entries_sleep",
        ),
        Index("idx_data_entries_client", "client_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    mood: Mapped[str] = mapped_column(String, nullable=False)
    anxiety_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sleep_quality: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    challenges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class Session(Base):
    """scheduled appointment between a practitioner and a client"""
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint(
            "status in ('pending','confirmed','completed','cancelled')",
            name="ck_sessions_status",
        ),
        Index("idx_sessions_client", "client_id"),
        Index("idx_sessions_practitioner", "practitioner_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    practitioner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class ClientNote(Base):
    __tablename__ = "client_notes"
    __table_args__ = (
        Index("idx_client_notes_client", "client_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    # [{"text": str, "date": iso timestamp}], newest first
    entries: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    last_updated: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class UserSession(Base):
    """server-side authentication session, keyed by the cookie value"""
    __tablename__ = "user_sessions"
    __table_args__ = (
        Index("idx_user_sessions_expires", "expires_at"),
    )

    sid: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
