# backend/talentai/pipeline/orchestrator.py
"""
Glue for the candidate assessment pipeline.

Stages (fixed order, see state.py):
  profile → resume → upload_video → quiz → interview → video_interview → results

Public entry:
  CandidatePipeline(store, gateway, storage, video_scorer, options)
    .start(profile)                      → candidate id (completes `profile`)
    .submit_resume(stream, name, type)   → resume analysis, score = atsScore
    .submit_video(stage, stream, ...)    → video analysis, score = total
    .load_quiz() / .submit_quiz(answers) → questions / graded result
    .start_interview() / .reply(text)    → transcript; auto-completes after the last turn
    .skip(stage=None)                    → score 0, advance
    .results()                           → aggregate + per-stage scores

This module *only* orchestrates: executors return results, the pipeline is the single
writer of the candidate's score fields.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..core.config import DEFAULT_OPTIONS, get_positions
from ..core.errors import CandidateNotFound, StageOrderError, ValidationFailed
from ..core.extract import extract_text_from_path
from ..core.llm import AIGateway
from ..core.storage import NullStorage
from ..core.utils import safe_filename, scoped_upload
from ..db.repository import Store
from ..schemas import CandidateProfile, QuizQuestion
from .interview import next_question, start_messages, stub_score
from .quiz import calculate_score, generate_questions, grade
from .resume import run_resume_analysis, validate_resume
from .score import build_results
from .state import (
    PipelineState,
    Stage,
    complete_stage,
    in_flight,
    is_terminal,
    new_state,
    require_stage,
    skip_stage,
    snapshot,
)
from .video import StubVideoScorer, VideoScorer, score_video, validate_video

logger = logging.getLogger(__name__)

VIDEO_STAGES = (Stage.UPLOAD_VIDEO, Stage.VIDEO_INTERVIEW)


def _merge_options(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Overlay user options on top of DEFAULT_OPTIONS (shallow)."""
    base = dict(DEFAULT_OPTIONS)
    if user:
        base.update(user)
    return base


def parse_stage(value: Union[str, Stage, None]) -> Optional[Stage]:
    if value is None or isinstance(value, Stage):
        return value
    try:
        return Stage(str(value).strip().lower().replace("-", "_"))
    except ValueError as e:
        raise ValidationFailed(f"Unknown stage '{value}'") from e


class CandidatePipeline:
    def __init__(
        self,
        store: Store,
        gateway: Optional[AIGateway] = None,
        storage: Any = None,
        video_scorer: Optional[VideoScorer] = None,
        options: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.storage = storage or NullStorage()
        self.video_scorer = video_scorer or StubVideoScorer()
        self.rng = rng or random.Random()
        self.state: PipelineState = new_state(_merge_options(options))
        self.lock = threading.Lock()

    # --- helpers -------------------------------------------------------------

    @property
    def options(self) -> Dict[str, Any]:
        return self.state["options"]

    @property
    def candidate_id(self) -> Optional[int]:
        return self.state.get("candidate_id")

    def _record(self, stage: Stage, score: int, result: Any = None) -> None:
        """Persist first, then advance, so a failed write leaves the stage open."""
        self.store.record_stage_score(self.candidate_id, stage.value, score)
        complete_stage(self.state, stage, score, result)

    def _asset_key(self, folder: str, filename: Optional[str]) -> str:
        return f"{folder}/{self.candidate_id}/{int(time.time() * 1000)}-{safe_filename(filename)}"

    def view(self) -> Dict[str, Any]:
        return snapshot(self.state)

    # --- profile ---------------------------------------------------------------

    def start(self, profile: Union[CandidateProfile, Mapping[str, Any]]) -> int:
        if not isinstance(profile, CandidateProfile):
            try:
                profile = CandidateProfile.model_validate(dict(profile))
            except ValidationError as e:
                raise ValidationFailed(f"Invalid profile: {e.errors()[0]['msg']}") from e
        if profile.position not in get_positions():
            raise ValidationFailed(f"Unknown position '{profile.position}'")
        with in_flight(self.state, Stage.PROFILE, self.lock):
            cid = self.store.create_candidate(profile.model_dump())
            self.state["candidate_id"] = cid
            self.state["position"] = profile.position
            complete_stage(self.state, Stage.PROFILE)
        logger.info("[%s] candidate %s started (%s)", self.state["run_id"], cid, profile.position)
        return cid

    # --- resume ----------------------------------------------------------------

    def submit_resume(
        self,
        source: BinaryIO,
        filename: Optional[str],
        content_type: Optional[str],
        size: Optional[int] = None,
    ) -> Dict[str, Any]:
        with in_flight(self.state, Stage.RESUME, self.lock):
            validate_resume(filename, content_type, size, self.options)
            with scoped_upload(source, suffix=Path(filename or "").suffix) as path:
                if size is None:
                    validate_resume(filename, content_type, path.stat().st_size, self.options)
                # ExtractionFailed is reported to the operator as-is
                text = extract_text_from_path(path, content_type, filename)
                url = self.storage.store(path, self._asset_key("resumes", filename))
            analysis = run_resume_analysis(text, self.state["position"], self.gateway, self.options)
            self.store.set_asset_url(self.candidate_id, "resume", url)
            self._record(Stage.RESUME, analysis["atsScore"], analysis)
        return {"success": True, "analysis": analysis, "resume_url": url}

    # --- video (upload + live) ---------------------------------------------------

    def submit_video(
        self,
        stage: Union[str, Stage],
        source: BinaryIO,
        filename: Optional[str],
        content_type: Optional[str],
        size: Optional[int] = None,
    ) -> Dict[str, Any]:
        stage = parse_stage(stage)
        if stage not in VIDEO_STAGES:
            raise ValidationFailed(f"'{getattr(stage, 'value', stage)}' is not a video stage")
        with in_flight(self.state, stage, self.lock):
            validate_video(filename, content_type, size, self.options)
            with scoped_upload(source, suffix=Path(filename or "").suffix) as path:
                if size is None:
                    validate_video(filename, content_type, path.stat().st_size, self.options)
                url = self.storage.store(path, self._asset_key("videos", filename))
                analysis = score_video(path, self.video_scorer, self.options, self.rng)
            if url is not None:
                self.store.set_asset_url(self.candidate_id, "video", url)
            self._record(stage, analysis["total"], analysis)
        return {"success": True, "analysis": analysis, "video_url": url}

    # --- quiz ------------------------------------------------------------------

    def _questions(self) -> List[QuizQuestion]:
        return self.state["quiz"]["questions"]

    def load_quiz(self) -> Dict[str, Any]:
        """Generate the question set once; later calls return the same questions."""
        if not self._questions():
            with in_flight(self.state, Stage.QUIZ, self.lock):
                questions, source = generate_questions(
                    self.state["position"], self.gateway, self.options["quiz_questions"]
                )
                self.state["quiz"] = {"questions": questions, "source": source}
        else:
            require_stage(self.state, Stage.QUIZ)
        return {
            "questions": [q.public() for q in self._questions()],
            "source": self.state["quiz"]["source"],
        }

    def submit_quiz(self, answers: Mapping[int, Optional[int]]) -> Dict[str, Any]:
        with in_flight(self.state, Stage.QUIZ, self.lock):
            questions = self._questions()
            if not questions:
                raise ValidationFailed("Quiz has not been generated yet")
            answers = {int(k): v for k, v in (answers or {}).items()}
            graded = grade(questions, answers)
            score = calculate_score(questions, answers)
            result = {
                "score": score,
                "correct": sum(1 for g in graded if g["correct"]),
                "total": len(questions),
                "graded": graded,
            }
            self._record(Stage.QUIZ, score, result)
        return result

    # --- text interview --------------------------------------------------------

    def _interview_view(self, **extra: Any) -> Dict[str, Any]:
        iv = self.state["interview"]
        out = {
            "messages": list(iv["messages"]),
            "turns": iv["turns"],
            "max_turns": self.options["interview_turns"],
            "complete": iv["complete"],
        }
        out.update(extra)
        return out

    def start_interview(self) -> Dict[str, Any]:
        with self.lock:
            require_stage(self.state, Stage.INTERVIEW)
            iv = self.state["interview"]
            if not iv["messages"]:
                iv["messages"] = start_messages(self.state["position"], self.options["interview_turns"])
        return self._interview_view()

    def reply(self, message: str) -> Dict[str, Any]:
        text = (message or "").strip()
        if not text:
            raise ValidationFailed("Reply must not be empty")
        max_turns = int(self.options["interview_turns"])
        with in_flight(self.state, Stage.INTERVIEW, self.lock):
            iv = self.state["interview"]
            if not iv["messages"]:
                raise ValidationFailed("Interview has not been started")
            iv["messages"].append({"role": "user", "content": text})
            iv["turns"] += 1
            question, source = next_question(
                iv["messages"], self.state["position"], iv["turns"], max_turns, self.gateway
            )
            iv["messages"].append({"role": "assistant", "content": question})
            if iv["turns"] < max_turns:
                return self._interview_view(source=source)
            score = stub_score(self.options["interview_score_range"], self.rng)
            iv["complete"] = True
            self._record(Stage.INTERVIEW, score, {"score": score, "turns": iv["turns"]})
            return self._interview_view(source=source, score=score)

    # --- skip / results ------------------------------------------------------------

    def skip(self, stage: Union[str, Stage, None] = None) -> Dict[str, Any]:
        with self.lock:
            target = parse_stage(stage) or self.state["stage"]
            require_stage(self.state, target)
            if target is Stage.PROFILE:
                raise StageOrderError("The profile stage cannot be skipped")
            self.store.record_stage_score(self.candidate_id, target.value, 0)
            skip_stage(self.state, target)
        return self.view()

    def results(self) -> Dict[str, Any]:
        if self.candidate_id is None:
            raise StageOrderError("No candidate profile yet")
        out = build_results(self.store.get_candidate(self.candidate_id))
        out["finished"] = is_terminal(self.state)
        out["skipped"] = list(self.state["skipped"])
        return out


class PipelineRegistry:
    """Live pipelines keyed by candidate id (process-local)."""

    def __init__(
        self,
        store: Store,
        gateway: Optional[AIGateway] = None,
        storage: Any = None,
        video_scorer: Optional[VideoScorer] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.storage = storage
        self.video_scorer = video_scorer
        self.options = options
        self._pipelines: Dict[int, CandidatePipeline] = {}
        self._lock = threading.Lock()

    def create(self, profile: Union[CandidateProfile, Mapping[str, Any]]) -> CandidatePipeline:
        pipeline = CandidatePipeline(
            self.store, self.gateway, self.storage, self.video_scorer, self.options
        )
        cid = pipeline.start(profile)
        with self._lock:
            self._pipelines[cid] = pipeline
        return pipeline

    def get(self, candidate_id: int) -> CandidatePipeline:
        with self._lock:
            pipeline = self._pipelines.get(candidate_id)
        if pipeline is None:
            raise CandidateNotFound(f"No active pipeline for candidate {candidate_id}")
        return pipeline


__all__ = ["CandidatePipeline", "PipelineRegistry", "parse_stage", "VIDEO_STAGES"]
