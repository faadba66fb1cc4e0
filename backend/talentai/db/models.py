# backend/talentai/db/models.py
"""
SQLAlchemy ORM models.
- Candidate: one row per application attempt; five independent stage scores (0 = not
  evaluated or skipped) plus the cached aggregate.
- Subscription: recruiter plan record; read by the recruiter listing gate only.
- User: registered account (candidate or recruiter); email is unique, password is a bcrypt hash.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Float, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # profile
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    position: Mapped[str] = mapped_column(String(120), nullable=False)

    # per-stage scores
    resume_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upload_video_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    interview_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    video_interview_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # stored assets (optional)
    resume_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resume_analyzed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    video_analyzed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Candidate id={self.id} position={self.position!r} total={self.total_score}>"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    plan_key: Mapped[str] = mapped_column(String(32), nullable=False)
    billing_cycle: Mapped[str] = mapped_column(String(16), nullable=False, default="monthly")
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} user={self.user_id} plan={self.plan_key} status={self.status}>"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    user_type: Mapped[str] = mapped_column(String(16), nullable=False)
    company: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id} type={self.user_type}>"
