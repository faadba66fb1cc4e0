# backend/talentai/core/config.py
"""
Central config & environment helpers.
- Loads env (.env) early
- Exposes provider API keys / model names and convenience flags
- Holds DEFAULT_OPTIONS used by the pipeline stages
- Holds the position catalogue and subscription plans
"""

from __future__ import annotations

import os
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv

# Load .env once for the whole app
load_dotenv(override=False)

# --- API keys ---------------------------------------------------------------

def get_gemini_api_key() -> str:
    """
    Returns the Gemini API key (GEMINI_API_KEY, then GOOGLE_API_KEY / GOOGLE_GEMINI_API_KEY).
    Returns "" when missing; the provider decides whether that is fatal.
    """
    key = (
        os.getenv("GEMINI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
        or os.getenv("GOOGLE_GEMINI_API_KEY")
        or ""
    ).strip()
    if key:
        # Ensure downstream libs see the same key
        os.environ["GOOGLE_API_KEY"] = key
    return key


def get_openai_api_key() -> str:
    return (os.getenv("OPENAI_API_KEY") or "").strip()


def get_anthropic_api_key() -> str:
    return (os.getenv("ANTHROPIC_API_KEY") or "").strip()


# --- Provider selection -----------------------------------------------------

def get_ai_provider() -> str:
    return (os.getenv("AI_PROVIDER") or "gemini").strip().lower()


def get_default_ai_provider() -> str:
    return (os.getenv("DEFAULT_AI_PROVIDER") or "gemini").strip().lower()


MODEL_NAMES: Dict[str, str] = {
    "gemini": os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
    "openai": os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
    "claude": os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514"),
}


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


# --- Positions ---------------------------------------------------------------

BASE_POSITIONS: List[str] = [
    "Software Engineer",
    "Data Scientist",
    "Product Manager",
    "UI/UX Designer",
]


def get_positions() -> List[str]:
    """Base catalogue plus EXTRA_POSITIONS (comma separated)."""
    extra = [p.strip() for p in (os.getenv("EXTRA_POSITIONS") or "").split(",") if p.strip()]
    out = list(BASE_POSITIONS)
    for p in extra:
        if p not in out:
            out.append(p)
    return out


# --- Options (stage knobs) ----------------------------------------------------

DEFAULT_OPTIONS: Dict[str, Any] = {
    # AI
    "ai_timeout_seconds": _float_env("AI_TIMEOUT_SECONDS", 60.0),
    "temperature": 0.7,
    "max_output_tokens": 2048,

    # quiz
    "quiz_questions": 5,
    "quiz_default_position": "Software Engineer",

    # text interview (stub score range is inclusive)
    "interview_turns": 5,
    "interview_score_range": (80, 95),

    # resume heuristic
    "resume_fallback_ats": 75,
    "resume_fallback_project_hit": 80,
    "resume_fallback_project_miss": 60,
    "project_keywords": ["project", "built", "developed", "created", "implemented", "designed"],

    # video (fallback ranges inclusive)
    "video_max_bytes": 100 * 1024 * 1024,
    "video_timeout_seconds": _float_env("VIDEO_TIMEOUT_SECONDS", 30.0),
    "video_fallback_range": (85, 94),
    "video_subscore_range": (20, 24),

    # resume upload
    "resume_max_bytes": 10 * 1024 * 1024,
}

# --- Subscription plans -----------------------------------------------------

# candidate_limit None means unlimited
PLANS: Dict[str, Dict[str, Any]] = {
    "basic": {"name": "Basic", "price": 29, "candidate_limit": 10},
    "premium": {"name": "Premium", "price": 79, "candidate_limit": 50},
    "pro": {"name": "Pro", "price": 199, "candidate_limit": None},
}

BILLING_CYCLES = ("monthly", "yearly")


def plan_candidate_limit(plan_key: str) -> Optional[int]:
    plan = PLANS.get(plan_key)
    if plan is None:
        return 0
    return plan["candidate_limit"]


# --- Accounts ---------------------------------------------------------------

USER_TYPES = ("candidate", "recruiter")
MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))
JWT_ALGORITHM = "HS256"
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", str(7 * 24)))

_DEV_JWT_SECRET = "talentai-dev-secret-change-me"


def get_jwt_secret() -> str:
    """JWT_SECRET signs login tokens; the dev fallback is only fit for local runs."""
    return (os.getenv("JWT_SECRET") or "").strip() or _DEV_JWT_SECRET


# --- Misc -------------------------------------------------------------------

STORAGE_DIR = (os.getenv("STORAGE_DIR") or "").strip()
STORAGE_BASE_URL = (os.getenv("STORAGE_BASE_URL") or "/files").rstrip("/")
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()

__all__ = [
    "get_gemini_api_key",
    "get_openai_api_key",
    "get_anthropic_api_key",
    "get_ai_provider",
    "get_default_ai_provider",
    "get_positions",
    "plan_candidate_limit",
    "get_jwt_secret",
    "MODEL_NAMES",
    "BASE_POSITIONS",
    "DEFAULT_OPTIONS",
    "PLANS",
    "BILLING_CYCLES",
    "USER_TYPES",
    "MIN_PASSWORD_LENGTH",
    "BCRYPT_ROUNDS",
    "JWT_ALGORITHM",
    "TOKEN_TTL_HOURS",
    "STORAGE_DIR",
    "STORAGE_BASE_URL",
    "LOG_LEVEL",
]
