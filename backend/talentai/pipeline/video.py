# backend/talentai/pipeline/video.py
"""
Video stages (pre-recorded upload and live capture share this module).

- validate_video(): size cap + mp4/webm/mov/avi allowlist, before any work
- VideoScorer: score(path) -> {total, subScores, strengths, improvements, summary}
- StubVideoScorer: no real analysis; returns the fixed template
- score_video(): runs a scorer under a time limit; on failure or timeout returns a
  random fallback (total and sub-scores drawn from the configured ranges)
"""

from __future__ import annotations

import copy
import logging
import os
import random
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..core.config import DEFAULT_OPTIONS
from ..core.fallbacks import VIDEO_FALLBACK_IMPROVEMENTS, VIDEO_FALLBACK_STRENGTHS, VIDEO_TEMPLATE
from ..core.utils import check_upload
from ..schemas import VideoAnalysis

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".avi")
VIDEO_TYPES = ("video/mp4", "video/webm", "video/quicktime", "video/x-msvideo")

# a timed-out scorer call keeps its worker (and its copy of the video) until it returns
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="video-scorer")


def validate_video(
    filename: Optional[str],
    content_type: Optional[str],
    size: Optional[int],
    options: Optional[Dict[str, Any]] = None,
) -> None:
    opts = options or DEFAULT_OPTIONS
    check_upload(
        filename, content_type, size, VIDEO_EXTENSIONS, VIDEO_TYPES, opts["video_max_bytes"], label="video"
    )


class VideoScorer:
    def score(self, video_path: Path) -> Dict[str, Any]:
        raise NotImplementedError


class StubVideoScorer(VideoScorer):
    """Placeholder: does not look at the video at all."""

    def score(self, video_path: Path) -> Dict[str, Any]:
        return copy.deepcopy(VIDEO_TEMPLATE)


def fallback_analysis(options: Optional[Dict[str, Any]] = None, rng: Optional[random.Random] = None) -> Dict[str, Any]:
    opts = options or DEFAULT_OPTIONS
    rng = rng or random.Random()
    lo, hi = opts["video_fallback_range"]
    sub_lo, sub_hi = opts["video_subscore_range"]
    return {
        "total": rng.randint(lo, hi),
        "subScores": {
            "bodyLanguage": rng.randint(sub_lo, sub_hi),
            "communication": rng.randint(sub_lo, sub_hi),
            "eyeContact": rng.randint(sub_lo, sub_hi),
            "presentation": rng.randint(sub_lo, sub_hi),
        },
        "strengths": list(VIDEO_FALLBACK_STRENGTHS),
        "improvements": list(VIDEO_FALLBACK_IMPROVEMENTS),
        "summary": "Video analysis temporarily unavailable; provisional score assigned.",
        "fallback": True,
    }


def _scoring_copy(video_path: Path) -> Path:
    fd, name = tempfile.mkstemp(prefix="talentai_scoring_", suffix=video_path.suffix)
    os.close(fd)
    try:
        shutil.copyfile(video_path, name)
    except OSError:
        _discard(Path(name))
        raise
    return Path(name)


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def score_video(
    video_path: Path,
    scorer: VideoScorer,
    options: Optional[Dict[str, Any]] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Never raises: scorer errors, bad shapes and timeouts all end in the fallback.

    The scorer reads a private copy of `video_path`, removed once the scorer returns,
    so the caller may delete its upload as soon as this function does.
    """
    opts = options or DEFAULT_OPTIONS
    try:
        scoring_path = _scoring_copy(Path(video_path))
    except OSError as e:
        logger.error("Could not stage video for scoring: %s", e)
        return fallback_analysis(opts, rng)
    future = _executor.submit(scorer.score, scoring_path)
    future.add_done_callback(lambda _: _discard(scoring_path))
    try:
        raw = future.result(timeout=opts["video_timeout_seconds"])
        return VideoAnalysis.model_validate(raw).model_dump(by_alias=True)
    except FutureTimeout:
        future.cancel()
        logger.error("Video scoring timed out after %ss", opts["video_timeout_seconds"])
    except ValidationError as e:
        logger.error("Video scorer returned an unexpected shape: %s", e)
    except Exception as e:
        logger.error("Video analysis error: %s", e)
    return fallback_analysis(opts, rng)


__all__ = [
    "VIDEO_EXTENSIONS",
    "VIDEO_TYPES",
    "validate_video",
    "VideoScorer",
    "StubVideoScorer",
    "fallback_analysis",
    "score_video",
]
