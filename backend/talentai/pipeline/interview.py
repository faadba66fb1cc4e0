# backend/talentai/pipeline/interview.py
"""
Text interview stage.

- start_messages(): greeting + opening question (no AI call)
- next_question(): one gateway call per candidate reply, conditioned on the transcript;
  the reply that ends the interview gets the closing prompt
- on AIUnavailable the question comes from the static bank so the turn still counts
- stub_score(): the interview is not graded yet; a uniform draw from the configured range
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.errors import AIUnavailable
from ..core.fallbacks import fallback_interview_question, interview_greeting
from ..core.llm import AIGateway
from ..core.prompts import SYSTEM_PROMPTS, render

logger = logging.getLogger(__name__)

ROLE_NAMES = {"assistant": "Interviewer", "user": "Candidate"}


def start_messages(position: str, max_turns: int) -> List[Dict[str, str]]:
    return [{"role": "assistant", "content": interview_greeting(position, max_turns)}]


def format_transcript(messages: Sequence[Dict[str, str]]) -> str:
    lines = []
    for m in messages:
        who = ROLE_NAMES.get(m.get("role", ""), "Candidate")
        lines.append(f"{who}: {m.get('content', '')}")
    return "\n".join(lines)


def next_question(
    messages: Sequence[Dict[str, str]],
    position: str,
    turn: int,
    max_turns: int,
    gateway: Optional[AIGateway],
) -> Tuple[str, str]:
    """
    Produce the interviewer message after the candidate's `turn`-th answer (1-based).
    Returns (text, source) with source "ai" or "fallback".
    """
    closing = turn >= max_turns
    if gateway is not None:
        transcript = format_transcript(messages)
        if closing:
            prompt = render(
                "interview_closing", position=position, max_questions=max_turns, transcript=transcript
            )
        else:
            prompt = render(
                "interview_followup",
                position=position,
                question_number=turn + 1,
                max_questions=max_turns,
                transcript=transcript,
            )
        try:
            return gateway.generate(prompt, SYSTEM_PROMPTS["interview"]).strip(), "ai"
        except AIUnavailable as e:
            logger.warning("Interview generation failed, using question bank: %s", e.message)
    return fallback_interview_question(turn - 1, closing=closing), "fallback"


def stub_score(score_range: Tuple[int, int] = (80, 95), rng: Optional[random.Random] = None) -> int:
    lo, hi = score_range
    return (rng or random).randint(lo, hi)


__all__ = ["start_messages", "format_transcript", "next_question", "stub_score"]
