# backend/talentai/pipeline/resume.py
"""
Resume analysis stage.

Entry:
    run_resume_analysis(resume_text, position, gateway, options) -> dict

AI analysis first; on AIUnavailable / MalformedAIOutput the keyword heuristic from the
fallback bank takes over. The heuristic path never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..core.config import DEFAULT_OPTIONS
from ..core.errors import AIUnavailable, MalformedAIOutput
from ..core.extract import EXTENSION_KINDS, MIME_KINDS
from ..core.fallbacks import resume_heuristic
from ..core.llm import AIGateway
from ..core.prompts import SYSTEM_PROMPTS, render
from ..core.utils import check_upload, clip, json_loose
from ..schemas import ResumeAnalysis

logger = logging.getLogger(__name__)

# keep prompts within a sane size for every provider
MAX_RESUME_CHARS = 24000


def validate_resume(
    filename: Optional[str],
    content_type: Optional[str],
    size: Optional[int],
    options: Optional[Dict[str, Any]] = None,
) -> None:
    opts = options or DEFAULT_OPTIONS
    check_upload(
        filename, content_type, size, EXTENSION_KINDS, MIME_KINDS, opts["resume_max_bytes"], label="resume"
    )


def parse_analysis(raw: str) -> Dict[str, Any]:
    """Validate the model's JSON into the analysis shape (camelCase keys)."""
    try:
        obj = json_loose(raw)
    except ValueError as e:
        raise MalformedAIOutput(f"resume analysis is not JSON: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedAIOutput("resume analysis is not a JSON object")
    try:
        analysis = ResumeAnalysis.model_validate(obj)
    except ValidationError as e:
        raise MalformedAIOutput(f"resume analysis has the wrong shape: {e}") from e
    return analysis.model_dump(by_alias=True)


def heuristic_analysis(resume_text: Optional[str], options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    opts = options or DEFAULT_OPTIONS
    return resume_heuristic(
        resume_text,
        opts["project_keywords"],
        ats_score=opts["resume_fallback_ats"],
        hit_score=opts["resume_fallback_project_hit"],
        miss_score=opts["resume_fallback_project_miss"],
    )


def run_resume_analysis(
    resume_text: str,
    position: str,
    gateway: Optional[AIGateway],
    options: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    opts = options or DEFAULT_OPTIONS
    if gateway is None:
        return heuristic_analysis(resume_text, opts)
    try:
        raw = gateway.generate(
            render("resume_analysis", position=position, resume_text=clip(resume_text, MAX_RESUME_CHARS)),
            SYSTEM_PROMPTS["resume_analysis"],
        )
        return parse_analysis(raw)
    except AIUnavailable as e:
        logger.warning("AI analysis error, using keyword heuristic: %s", e.message)
        return heuristic_analysis(resume_text, opts)


__all__ = ["validate_resume", "parse_analysis", "heuristic_analysis", "run_resume_analysis"]
