"""Request/response and stage-result models."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .core.config import USER_TYPES

DEFAULT_ATS_SCORE = 75


# Profile / candidate
class CandidateProfile(BaseModel):
    name: str
    email: EmailStr
    position: str

    @field_validator("name", "position")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def _email_lower(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class CandidateOut(BaseModel):
    id: int
    name: str
    email: str
    position: str
    resume_score: int = 0
    upload_video_score: int = 0
    quiz_score: int = 0
    interview_score: int = 0
    video_interview_score: int = 0
    total_score: int = 0
    resume_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: Optional[datetime] = None


# Quiz
class QuizQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: List[str]
    correct_answer: int = Field(alias="correctAnswer")

    @field_validator("options")
    @classmethod
    def _four_options(cls, v: List[str]) -> List[str]:
        if len(v) != 4:
            raise ValueError("exactly 4 options required")
        return [str(o) for o in v]

    @field_validator("correct_answer")
    @classmethod
    def _valid_index(cls, v: int) -> int:
        if not 0 <= v <= 3:
            raise ValueError("correctAnswer must be an index into options (0-3)")
        return v

    def public(self) -> Dict[str, object]:
        """Question as shown to the candidate (no answer key)."""
        return {"question": self.question, "options": list(self.options)}


class QuizSubmission(BaseModel):
    # question index → selected option index
    answers: Dict[int, int] = {}


class QuizGenerateIn(BaseModel):
    position: str
    num_questions: int = Field(default=5, ge=1, le=20)


# Resume
class ProjectItem(BaseModel):
    name: str = ""
    description: str = ""
    technologies: List[str] = []
    impact: Optional[str] = None


class ResumeAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ats_score: int = Field(default=DEFAULT_ATS_SCORE, alias="atsScore", ge=0, le=100)
    project_score: int = Field(default=0, alias="projectScore", ge=0, le=100)
    projects: List[ProjectItem] = []
    strengths: List[str] = []
    improvements: List[str] = []
    project_analysis: str = Field(default="", alias="projectAnalysis")
    fallback: bool = False

    @field_validator("ats_score", mode="before")
    @classmethod
    def _missing_ats(cls, v):
        # 0 and null both mean the model gave no score
        return DEFAULT_ATS_SCORE if v in (None, 0, "0", "") else v


# Video
class VideoSubScores(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    body_language: int = Field(alias="bodyLanguage")
    communication: int
    eye_contact: int = Field(alias="eyeContact")
    presentation: int


class VideoAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(ge=0, le=100)
    sub_scores: VideoSubScores = Field(alias="subScores")
    strengths: List[str] = []
    improvements: List[str] = []
    summary: str = ""
    fallback: bool = False


# Interview
class InterviewReply(BaseModel):
    message: str


# Accounts
class RegisterIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: EmailStr
    password: str
    user_type: str = Field(alias="userType")
    company: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def _email_lower(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("user_type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in USER_TYPES:
            raise ValueError(f"must be one of {', '.join(USER_TYPES)}")
        return v


class LoginIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    user_type: str
    company: Optional[str] = None
    created_at: Optional[datetime] = None


# Subscriptions
class SubscriptionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_key: str = Field(alias="planKey")
    billing_cycle: str = Field(default="monthly", alias="billingCycle")
    amount: float = 0.0


class SubscriptionOut(BaseModel):
    id: int
    user_id: int
    plan_key: str
    billing_cycle: str
    amount: float
    status: str
    start_date: Optional[datetime] = None


class SkipIn(BaseModel):
    stage: Optional[str] = None
