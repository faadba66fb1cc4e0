# backend/talentai/db/crud.py
"""
Tiny CRUD helpers for Candidate / Subscription / User rows.
Usage (with context manager):
    from .session import session_scope
    with session_scope(factory) as s:
        row = insert_candidate(s, payload)

Commit is handled by the caller (session_scope).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select, desc, asc
from sqlalchemy.orm import Session

from .models import Candidate, Subscription, User

SCORE_FIELDS = (
    "resume_score",
    "upload_video_score",
    "quiz_score",
    "interview_score",
    "video_interview_score",
)

CANDIDATE_FIELDS = (
    "id", "name", "email", "position",
    *SCORE_FIELDS, "total_score",
    "resume_url", "video_url",
    "created_at", "resume_analyzed_at", "video_analyzed_at",
)


def candidate_to_dict(row: Candidate) -> Dict[str, Any]:
    return {f: getattr(row, f) for f in CANDIDATE_FIELDS}


def subscription_to_dict(row: Subscription) -> Dict[str, Any]:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "plan_key": row.plan_key,
        "billing_cycle": row.billing_cycle,
        "amount": row.amount,
        "status": row.status,
        "start_date": row.start_date,
    }


USER_FIELDS = ("id", "name", "email", "password_hash", "user_type", "company", "created_at")


def user_to_dict(row: User) -> Dict[str, Any]:
    return {f: getattr(row, f) for f in USER_FIELDS}


# ----------------- Inserts -----------------

def insert_candidate(session: Session, payload: Dict[str, Any]) -> Candidate:
    row = Candidate(
        name=payload["name"],
        email=payload["email"],
        position=payload["position"],
        **{f: 0 for f in SCORE_FIELDS},
        total_score=0,
    )
    session.add(row)
    session.flush()  # assigns id
    return row


def insert_user(session: Session, payload: Dict[str, Any]) -> User:
    row = User(
        name=payload["name"],
        email=payload["email"],
        password_hash=payload["password_hash"],
        user_type=payload["user_type"],
        company=payload.get("company"),
    )
    session.add(row)
    session.flush()
    return row


def insert_subscription(session: Session, payload: Dict[str, Any]) -> Subscription:
    row = Subscription(
        user_id=int(payload["user_id"]),
        plan_key=str(payload["plan_key"]),
        billing_cycle=str(payload.get("billing_cycle") or "monthly"),
        amount=float(payload.get("amount") or 0.0),
        status="active",
    )
    session.add(row)
    session.flush()
    return row


# ----------------- Queries -----------------

def get_candidate_row(session: Session, candidate_id: int, for_update: bool = False) -> Optional[Candidate]:
    q = select(Candidate).where(Candidate.id == candidate_id).limit(1)
    if for_update:
        q = q.with_for_update()
    return session.execute(q).scalars().first()


def list_candidate_rows(session: Session, limit: Optional[int] = None) -> Iterable[Candidate]:
    q = select(Candidate).order_by(desc(Candidate.total_score), asc(Candidate.id))
    if limit is not None:
        q = q.limit(max(0, limit))
    return session.execute(q).scalars().all()


def get_active_subscription_row(session: Session, user_id: int) -> Optional[Subscription]:
    q = (
        select(Subscription)
        .where(Subscription.user_id == user_id, Subscription.status == "active")
        .order_by(desc(Subscription.id))
        .limit(1)
    )
    return session.execute(q).scalars().first()


def get_user_row(session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def get_user_row_by_email(session: Session, email: str) -> Optional[User]:
    q = select(User).where(User.email == email).limit(1)
    return session.execute(q).scalars().first()
