import json

import pytest

from talentai.core.errors import MalformedAIOutput
from talentai.core.fallbacks import FALLBACK_QUESTIONS
from talentai.pipeline.quiz import calculate_score, generate_questions, parse_questions
from talentai.schemas import QuizQuestion

from conftest import canned_gateway, failing_gateway


def _questions(n=5, correct=1):
    return [
        QuizQuestion(question=f"Q{i}", options=["a", "b", "c", "d"], correctAnswer=correct)
        for i in range(n)
    ]


def test_score_three_of_five_is_sixty():
    qs = _questions()
    assert calculate_score(qs, {0: 1, 1: 1, 2: 1, 3: 0, 4: 2}) == 60


def test_score_all_and_none():
    qs = _questions()
    assert calculate_score(qs, {i: 1 for i in range(5)}) == 100
    assert calculate_score(qs, {i: 3 for i in range(5)}) == 0


def test_unanswered_counts_as_wrong():
    qs = _questions(3)
    # 1/3 → 33.3 → 33
    assert calculate_score(qs, {0: 1}) == 33
    assert calculate_score(qs, {}) == 0


def test_empty_quiz_scores_zero():
    assert calculate_score([], {0: 1}) == 0


def test_failing_gateway_uses_position_bank():
    qs, source = generate_questions("Data Scientist", failing_gateway(), 5)
    assert source == "fallback"
    assert [q.question for q in qs] == [q["question"] for q in FALLBACK_QUESTIONS["Data Scientist"]]


def test_unknown_position_falls_back_to_software_engineer_bank():
    qs, _ = generate_questions("Product Manager", failing_gateway(), 3)
    assert len(qs) == 3
    assert qs[0].question == FALLBACK_QUESTIONS["Software Engineer"][0]["question"]


def test_ai_questions_are_used_when_valid():
    payload = [
        {"question": "What is 2+2?", "options": ["1", "2", "3", "4"], "correctAnswer": 3},
        {"question": "Capital of France?", "options": ["Paris", "Rome", "Oslo", "Bern"], "correctAnswer": 0},
    ]
    raw = "```json\n" + json.dumps(payload) + "\n```"
    qs, source = generate_questions("Software Engineer", canned_gateway(raw), 2)
    assert source == "ai"
    assert qs[0].correct_answer == 3
    assert qs[1].options[0] == "Paris"


def test_bad_shape_falls_back():
    raw = json.dumps([{"question": "Too few options", "options": ["a", "b"], "correctAnswer": 0}])
    qs, source = generate_questions("Software Engineer", canned_gateway(raw), 5)
    assert source == "fallback"
    assert len(qs) == 5


def test_parse_questions_rejects_prose():
    with pytest.raises(MalformedAIOutput):
        parse_questions("Sorry, I cannot help with that.", 5)


def test_parse_questions_accepts_wrapped_array():
    raw = json.dumps({"questions": [{"question": "q", "options": ["a", "b", "c", "d"], "correctAnswer": 2}]})
    assert parse_questions(raw, 5)[0].correct_answer == 2


def test_public_view_hides_answer():
    q = _questions(1)[0]
    assert "correctAnswer" not in q.public()
