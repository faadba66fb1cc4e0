# backend/talentai/pipeline/score.py
"""
Aggregation for the results stage.

A score of 0 means "not evaluated" (skipped, or failed outright); those stages are
left out of the mean. Nothing scored at all → aggregate 0.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

# Result-card order
SCORE_LABELS: Dict[str, str] = {
    "resume_score": "Resume",
    "upload_video_score": "Video Upload",
    "quiz_score": "Quiz",
    "interview_score": "Interview",
    "video_interview_score": "Live Video",
}


def aggregate_score(scores: Iterable[int]) -> int:
    active = [int(s) for s in scores if int(s or 0) > 0]
    if not active:
        return 0
    # round-half-up, not Python's banker's rounding
    return int(sum(active) / len(active) + 0.5)


def verdict(total: int) -> str:
    if total >= 85:
        return "Excellent"
    if total >= 70:
        return "Good"
    return "Average"


def build_results(candidate: Mapping[str, Any]) -> Dict[str, Any]:
    """Results payload: the five stage scores, the aggregate and a one-word verdict."""
    scores = {field: int(candidate.get(field) or 0) for field in SCORE_LABELS}
    total = aggregate_score(scores.values())
    return {
        "scores": scores,
        "labels": dict(SCORE_LABELS),
        "evaluated_stages": sum(1 for s in scores.values() if s > 0),
        "total_score": total,
        "verdict": verdict(total),
    }


__all__ = ["SCORE_LABELS", "aggregate_score", "verdict", "build_results"]
