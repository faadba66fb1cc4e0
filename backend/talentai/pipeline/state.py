# backend/talentai/pipeline/state.py
"""
Pipeline state machine.

Stages run in a fixed order:
  profile → resume → upload_video → quiz → interview → video_interview → results

From every non-terminal stage exactly two moves exist: complete (the executor's score is
recorded) and skip (score 0, executor bypassed). Both advance by one. There is no way back
and no re-entry, so each stage is scored exactly once.

The state itself is a plain dict (PipelineState); the functions here are the only
transitions. Persisted scores live in the store, not here.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager, nullcontext
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, TypedDict

from ..core.config import DEFAULT_OPTIONS
from ..core.errors import StageBusy, StageOrderError
from .score import aggregate_score

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    PROFILE = "profile"
    RESUME = "resume"
    UPLOAD_VIDEO = "upload_video"
    QUIZ = "quiz"
    INTERVIEW = "interview"
    VIDEO_INTERVIEW = "video_interview"
    RESULTS = "results"


STAGE_ORDER: List[Stage] = [
    Stage.PROFILE,
    Stage.RESUME,
    Stage.UPLOAD_VIDEO,
    Stage.QUIZ,
    Stage.INTERVIEW,
    Stage.VIDEO_INTERVIEW,
    Stage.RESULTS,
]

# Stages that own a score field in the candidate record
SCORED_STAGES: List[Stage] = STAGE_ORDER[1:-1]


class PipelineState(TypedDict, total=False):
    run_id: str
    candidate_id: Optional[int]
    position: str
    stage: Stage
    busy: Optional[Stage]
    options: Dict[str, Any]
    # stage → score recorded by this pipeline (None = not reached yet)
    scores: Dict[str, Optional[int]]
    skipped: List[str]
    # stage → last result payload (ephemeral feedback)
    results: Dict[str, Any]
    # per-stage working data
    quiz: Dict[str, Any]
    interview: Dict[str, Any]
    audit: List[str]


def new_state(options: Optional[Dict[str, Any]] = None) -> PipelineState:
    opts = dict(DEFAULT_OPTIONS)
    opts.update(options or {})
    return {
        "run_id": uuid.uuid4().hex[:12],
        "candidate_id": None,
        "position": "",
        "stage": Stage.PROFILE,
        "busy": None,
        "options": opts,
        "scores": {s.value: None for s in SCORED_STAGES},
        "skipped": [],
        "results": {},
        "quiz": {"questions": [], "source": None},
        "interview": {"messages": [], "turns": 0, "complete": False},
        "audit": [],
    }


def next_stage(stage: Stage) -> Stage:
    if stage is Stage.RESULTS:
        raise StageOrderError("results is terminal")
    return STAGE_ORDER[STAGE_ORDER.index(stage) + 1]


def is_terminal(state: PipelineState) -> bool:
    return state["stage"] is Stage.RESULTS


def require_stage(state: PipelineState, stage: Stage) -> None:
    """Reject any action that does not target the current stage or races an in-flight one."""
    current = state["stage"]
    if current is Stage.RESULTS:
        raise StageOrderError("Pipeline already finished")
    if stage is not current:
        raise StageOrderError(f"Current stage is '{current.value}', not '{stage.value}'")
    if state.get("busy") is not None:
        raise StageBusy(f"A request for '{current.value}' is still in progress")


@contextmanager
def in_flight(state: PipelineState, stage: Stage, lock: Optional[threading.Lock] = None) -> Iterator[None]:
    """Mark `stage` busy for the duration of a slow call (AI / upload)."""
    with (lock or nullcontext()):
        require_stage(state, stage)
        state["busy"] = stage
    try:
        yield
    finally:
        state["busy"] = None


def _advance(state: PipelineState, stage: Stage, score: Optional[int], note: str) -> Stage:
    if stage in SCORED_STAGES:
        state["scores"][stage.value] = score
    state["stage"] = next_stage(stage)
    state["audit"].append(f"{stage.value}:{note}")
    logger.info("[%s] %s %s → %s", state["run_id"], stage.value, note, state["stage"].value)
    return state["stage"]


def complete_stage(state: PipelineState, stage: Stage, score: Optional[int] = None, result: Any = None) -> Stage:
    """Record the executor's score for `stage` and advance. Call while the stage is in flight or idle."""
    current = state["stage"]
    if current is Stage.RESULTS or stage is not current:
        raise StageOrderError(f"Cannot complete '{stage.value}' while at '{current.value}'")
    if stage in SCORED_STAGES:
        if score is None:
            raise ValueError(f"stage '{stage.value}' needs a score")
        score = int(score)
        if not 0 <= score <= 100:
            raise ValueError(f"score out of range: {score}")
    if result is not None:
        state["results"][stage.value] = result
    return _advance(state, stage, score, "completed")


def skip_stage(state: PipelineState, stage: Stage) -> Stage:
    require_stage(state, stage)
    if stage is Stage.PROFILE:
        raise StageOrderError("The profile stage cannot be skipped")
    state["skipped"].append(stage.value)
    return _advance(state, stage, 0, "skipped")


def snapshot(state: PipelineState) -> Dict[str, Any]:
    """JSON-friendly view of the pipeline for the API."""
    return {
        "run_id": state["run_id"],
        "candidate_id": state.get("candidate_id"),
        "position": state.get("position"),
        "stage": state["stage"].value,
        "busy": state["busy"].value if state.get("busy") else None,
        "completed": [
            s.value
            for s in SCORED_STAGES
            if state["scores"][s.value] is not None and s.value not in state["skipped"]
        ],
        "skipped": list(state["skipped"]),
        "scores": dict(state["scores"]),
        "total_score": aggregate_score(v or 0 for v in state["scores"].values()),
    }


__all__ = [
    "Stage",
    "STAGE_ORDER",
    "SCORED_STAGES",
    "PipelineState",
    "new_state",
    "next_stage",
    "is_terminal",
    "require_stage",
    "in_flight",
    "complete_stage",
    "skip_stage",
    "snapshot",
]
