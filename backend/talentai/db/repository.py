# backend/talentai/db/repository.py
"""
Candidate/subscription/user store behind one small interface.

- InMemoryStore: process-local dicts guarded by a lock (default when DATABASE_URL is unset)
- SqlStore: SQLAlchemy rows via crud helpers, one transaction per write

Both keep `total_score` in sync on every stage-score write, and each write touches a
single score field atomically (last write wins).
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..core.errors import CandidateNotFound, ValidationFailed
from ..core.utils import now_utc
from ..pipeline.score import aggregate_score
from . import crud
from .crud import SCORE_FIELDS
from .session import session_scope

logger = logging.getLogger(__name__)

ASSET_FIELDS = {
    "resume": ("resume_url", "resume_analyzed_at"),
    "video": ("video_url", "video_analyzed_at"),
}


def score_field(stage: str) -> str:
    field = stage if stage.endswith("_score") else f"{stage}_score"
    if field not in SCORE_FIELDS:
        raise ValueError(f"unknown stage '{stage}'")
    return field


def _check_score(score: int) -> int:
    score = int(score)
    if not 0 <= score <= 100:
        raise ValidationFailed(f"score must be within 0-100, got {score}")
    return score


def _email_key(email: str) -> str:
    return (email or "").strip().lower()


class Store:
    """Persistence contract used by the pipeline and the API."""

    def create_candidate(self, profile: Dict[str, Any]) -> int:
        raise NotImplementedError

    def get_candidate(self, candidate_id: int) -> Dict[str, Any]:
        raise NotImplementedError

    def record_stage_score(self, candidate_id: int, stage: str, score: int) -> Dict[str, Any]:
        raise NotImplementedError

    def set_asset_url(self, candidate_id: int, kind: str, url: Optional[str]) -> None:
        raise NotImplementedError

    def list_candidates(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def create_subscription(self, data: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def active_subscription(self, user_id: int) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


# --- in-memory ---------------------------------------------------------------

class InMemoryStore(Store):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._candidates: Dict[int, Dict[str, Any]] = {}
        self._subscriptions: List[Dict[str, Any]] = []
        self._users: Dict[int, Dict[str, Any]] = {}
        self._candidate_ids = itertools.count(1)
        self._subscription_ids = itertools.count(1)
        self._user_ids = itertools.count(1)

    def create_candidate(self, profile: Dict[str, Any]) -> int:
        with self._lock:
            cid = next(self._candidate_ids)
            self._candidates[cid] = {
                "id": cid,
                "name": profile["name"],
                "email": profile["email"],
                "position": profile["position"],
                **{f: 0 for f in SCORE_FIELDS},
                "total_score": 0,
                "resume_url": None,
                "video_url": None,
                "created_at": now_utc(),
                "resume_analyzed_at": None,
                "video_analyzed_at": None,
            }
        return cid

    def _row(self, candidate_id: int) -> Dict[str, Any]:
        row = self._candidates.get(candidate_id)
        if row is None:
            raise CandidateNotFound(f"Candidate {candidate_id} not found")
        return row

    def get_candidate(self, candidate_id: int) -> Dict[str, Any]:
        with self._lock:
            return dict(self._row(candidate_id))

    def record_stage_score(self, candidate_id: int, stage: str, score: int) -> Dict[str, Any]:
        field, score = score_field(stage), _check_score(score)
        with self._lock:
            row = self._row(candidate_id)
            row[field] = score
            row["total_score"] = aggregate_score(row[f] for f in SCORE_FIELDS)
            return dict(row)

    def set_asset_url(self, candidate_id: int, kind: str, url: Optional[str]) -> None:
        url_field, at_field = ASSET_FIELDS[kind]
        with self._lock:
            row = self._row(candidate_id)
            row[url_field] = url
            row[at_field] = now_utc()

    def list_candidates(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._lock:
            rows = sorted(self._candidates.values(), key=lambda r: (-r["total_score"], r["id"]))
            rows = [dict(r) for r in rows]
        return rows if limit is None else rows[: max(0, limit)]

    def create_subscription(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            sub = {
                "id": next(self._subscription_ids),
                "user_id": int(data["user_id"]),
                "plan_key": str(data["plan_key"]),
                "billing_cycle": str(data.get("billing_cycle") or "monthly"),
                "amount": float(data.get("amount") or 0.0),
                "status": "active",
                "start_date": now_utc(),
            }
            self._subscriptions.append(sub)
            return dict(sub)

    def active_subscription(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            for sub in reversed(self._subscriptions):
                if sub["user_id"] == user_id and sub["status"] == "active":
                    return dict(sub)
        return None

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        email = _email_key(data["email"])
        with self._lock:
            if any(u["email"] == email for u in self._users.values()):
                raise ValidationFailed("Email already registered")
            uid = next(self._user_ids)
            self._users[uid] = {
                "id": uid,
                "name": data["name"],
                "email": email,
                "password_hash": data["password_hash"],
                "user_type": data["user_type"],
                "company": data.get("company"),
                "created_at": now_utc(),
            }
            return dict(self._users[uid])

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            user = self._users.get(user_id)
            return dict(user) if user is not None else None

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = _email_key(email)
        with self._lock:
            for user in self._users.values():
                if user["email"] == email:
                    return dict(user)
        return None


# --- SQL -----------------------------------------------------------------------

class SqlStore(Store):
    def __init__(self, factory: sessionmaker[Session]) -> None:
        self.factory = factory

    def create_candidate(self, profile: Dict[str, Any]) -> int:
        with session_scope(self.factory) as s:
            return crud.insert_candidate(s, profile).id

    def get_candidate(self, candidate_id: int) -> Dict[str, Any]:
        with session_scope(self.factory) as s:
            row = crud.get_candidate_row(s, candidate_id)
            if row is None:
                raise CandidateNotFound(f"Candidate {candidate_id} not found")
            return crud.candidate_to_dict(row)

    def record_stage_score(self, candidate_id: int, stage: str, score: int) -> Dict[str, Any]:
        field, score = score_field(stage), _check_score(score)
        with session_scope(self.factory) as s:
            row = crud.get_candidate_row(s, candidate_id, for_update=True)
            if row is None:
                raise CandidateNotFound(f"Candidate {candidate_id} not found")
            setattr(row, field, score)
            row.total_score = aggregate_score(getattr(row, f) for f in SCORE_FIELDS)
            s.flush()
            return crud.candidate_to_dict(row)

    def set_asset_url(self, candidate_id: int, kind: str, url: Optional[str]) -> None:
        url_field, at_field = ASSET_FIELDS[kind]
        with session_scope(self.factory) as s:
            row = crud.get_candidate_row(s, candidate_id, for_update=True)
            if row is None:
                raise CandidateNotFound(f"Candidate {candidate_id} not found")
            setattr(row, url_field, url)
            setattr(row, at_field, now_utc())

    def list_candidates(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with session_scope(self.factory) as s:
            return [crud.candidate_to_dict(r) for r in crud.list_candidate_rows(s, limit)]

    def create_subscription(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with session_scope(self.factory) as s:
            return crud.subscription_to_dict(crud.insert_subscription(s, data))

    def active_subscription(self, user_id: int) -> Optional[Dict[str, Any]]:
        with session_scope(self.factory) as s:
            row = crud.get_active_subscription_row(s, user_id)
            return crud.subscription_to_dict(row) if row is not None else None

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {**data, "email": _email_key(data["email"])}
        try:
            with session_scope(self.factory) as s:
                if crud.get_user_row_by_email(s, payload["email"]) is not None:
                    raise ValidationFailed("Email already registered")
                return crud.user_to_dict(crud.insert_user(s, payload))
        except IntegrityError as e:
            # lost a race on the unique email index
            raise ValidationFailed("Email already registered") from e

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        with session_scope(self.factory) as s:
            row = crud.get_user_row(s, user_id)
            return crud.user_to_dict(row) if row is not None else None

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with session_scope(self.factory) as s:
            row = crud.get_user_row_by_email(s, _email_key(email))
            return crud.user_to_dict(row) if row is not None else None


def build_store() -> Store:
    from .session import DB_ENABLED, SessionLocal, ensure_tables

    if DB_ENABLED and SessionLocal is not None:
        ensure_tables()
        logger.info("Using SQL candidate store")
        return SqlStore(SessionLocal)
    logger.warning("Using in-memory candidate store; data is lost on restart")
    return InMemoryStore()


__all__ = ["Store", "InMemoryStore", "SqlStore", "build_store", "score_field"]
