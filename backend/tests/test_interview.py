import random

from talentai.core.fallbacks import INTERVIEW_CLOSING, INTERVIEW_QUESTIONS
from talentai.pipeline.interview import format_transcript, next_question, start_messages, stub_score

from conftest import canned_gateway, failing_gateway


def test_greeting_names_position_and_length():
    msgs = start_messages("Data Scientist", 5)
    assert msgs[0]["role"] == "assistant"
    assert "Data Scientist" in msgs[0]["content"]
    assert "5 questions" in msgs[0]["content"]


def test_transcript_labels_speakers():
    text = format_transcript([
        {"role": "assistant", "content": "Hi"},
        {"role": "user", "content": "Hello"},
    ])
    assert text == "Interviewer: Hi\nCandidate: Hello"


def test_followup_uses_transcript():
    gateway = canned_gateway("How did you test it?")
    msgs = start_messages("Software Engineer", 5) + [{"role": "user", "content": "I built a cache"}]
    question, source = next_question(msgs, "Software Engineer", 1, 5, gateway)
    assert (question, source) == ("How did you test it?", "ai")
    prompt, _ = gateway.providers["gemini"].calls[0]
    assert "I built a cache" in prompt
    assert "question 2 of 5" in prompt


def test_last_turn_asks_to_close():
    gateway = canned_gateway("Thanks! When can you start?")
    next_question([], "Software Engineer", 5, 5, gateway)
    prompt, _ = gateway.providers["gemini"].calls[0]
    assert "final question" in prompt


def test_reply_before_last_is_a_followup():
    gateway = canned_gateway("Tell me more.")
    next_question([], "Software Engineer", 4, 5, gateway)
    prompt, _ = gateway.providers["gemini"].calls[0]
    assert "question 5 of 5" in prompt
    assert "final question" not in prompt


def test_failure_uses_question_bank():
    question, source = next_question([], "Software Engineer", 1, 5, failing_gateway())
    assert source == "fallback"
    assert question == INTERVIEW_QUESTIONS[0]
    question, _ = next_question([], "Software Engineer", 4, 5, failing_gateway())
    assert question == INTERVIEW_QUESTIONS[3]
    question, _ = next_question([], "Software Engineer", 5, 5, failing_gateway())
    assert question == INTERVIEW_CLOSING


def test_stub_score_range_is_inclusive():
    rng = random.Random(3)
    scores = {stub_score((80, 95), rng) for _ in range(500)}
    assert min(scores) == 80
    assert max(scores) == 95
