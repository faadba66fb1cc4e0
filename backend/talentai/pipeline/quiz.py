# backend/talentai/pipeline/quiz.py
"""
Quiz stage: question sourcing + deterministic grading.

generate_questions() asks the gateway for a strict JSON array of
{question, options[4], correctAnswer}; anything that fails or does not validate is
replaced by the position-keyed fallback bank.

calculate_score() = round(100 * correct / total); exact index match, no partial credit,
unanswered counts as wrong.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..core.errors import AIUnavailable, MalformedAIOutput
from ..core.fallbacks import fallback_questions
from ..core.llm import AIGateway
from ..core.prompts import SYSTEM_PROMPTS, render
from ..core.utils import json_loose
from ..schemas import QuizQuestion

logger = logging.getLogger(__name__)


def parse_questions(raw: str, expected: int) -> List[QuizQuestion]:
    try:
        items = json_loose(raw)
    except ValueError as e:
        raise MalformedAIOutput(f"quiz is not JSON: {e}") from e
    if isinstance(items, dict):
        # some models wrap the array: {"questions": [...]}
        items = items.get("questions")
    if not isinstance(items, list) or not items:
        raise MalformedAIOutput("quiz is not a non-empty JSON array")
    try:
        questions = [QuizQuestion.model_validate(q) for q in items]
    except ValidationError as e:
        raise MalformedAIOutput(f"quiz question has the wrong shape: {e}") from e
    return questions[:expected]


def generate_questions(
    position: str,
    gateway: Optional[AIGateway],
    num_questions: int = 5,
) -> Tuple[List[QuizQuestion], str]:
    """Returns (questions, source) where source is "ai" or "fallback"."""
    if gateway is not None:
        try:
            raw = gateway.generate(
                render("quiz_questions", num_questions=num_questions, position=position),
                SYSTEM_PROMPTS["quiz_questions"],
            )
            return parse_questions(raw, num_questions), "ai"
        except AIUnavailable as e:
            logger.warning("AI generation error, using fallback: %s", e.message)
    bank = [QuizQuestion.model_validate(q) for q in fallback_questions(position, num_questions)]
    return bank, "fallback"


def grade(questions: List[QuizQuestion], answers: Mapping[int, Optional[int]]) -> List[Dict[str, Any]]:
    out = []
    for idx, q in enumerate(questions):
        selected = answers.get(idx)
        out.append({
            "index": idx,
            "selected": selected,
            "correctAnswer": q.correct_answer,
            "correct": selected is not None and selected == q.correct_answer,
        })
    return out


def calculate_score(questions: List[QuizQuestion], answers: Mapping[int, Optional[int]]) -> int:
    if not questions:
        return 0
    correct = sum(1 for g in grade(questions, answers) if g["correct"])
    return int(100 * correct / len(questions) + 0.5)


__all__ = ["parse_questions", "generate_questions", "grade", "calculate_score"]
