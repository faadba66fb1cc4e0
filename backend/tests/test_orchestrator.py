import io
import json
from pathlib import Path

import pytest

from talentai.core.errors import (
    CandidateNotFound,
    ExtractionFailed,
    StageOrderError,
    UploadRejected,
    ValidationFailed,
)
from talentai.core.storage import LocalStorage
from talentai.pipeline.orchestrator import PipelineRegistry
from talentai.pipeline.state import Stage

from conftest import PROFILE, canned_gateway, pdf_bytes


def _finish_interview(pipeline):
    pipeline.start_interview()
    out = None
    for i in range(pipeline.options["interview_turns"]):
        out = pipeline.reply(f"answer {i}")
    return out


def test_start_creates_candidate(started, store):
    row = store.get_candidate(started.candidate_id)
    assert row["email"] == "ada@example.com"
    assert started.state["stage"] is Stage.RESUME


def test_unknown_position_is_rejected(make_pipeline):
    with pytest.raises(ValidationFailed):
        make_pipeline().start({**PROFILE, "position": "Astronaut"})


def test_invalid_profile_is_rejected(make_pipeline):
    with pytest.raises(ValidationFailed):
        make_pipeline().start({**PROFILE, "email": "nope"})


def test_internationalized_email_is_accepted(make_pipeline, store):
    pipeline = make_pipeline()
    pipeline.start({**PROFILE, "email": "José@Example.com"})
    assert store.get_candidate(pipeline.candidate_id)["email"] == "josé@example.com"


def test_resume_fallback_scores_75(started, store):
    out = started.submit_resume(io.BytesIO(b"I developed a tool"), "cv.txt", "text/plain")
    assert out["analysis"]["projectScore"] == 80
    assert store.get_candidate(started.candidate_id)["resume_score"] == 75
    assert store.get_candidate(started.candidate_id)["resume_analyzed_at"] is not None
    assert started.state["stage"] is Stage.UPLOAD_VIDEO


def test_resume_score_is_ats_score(make_pipeline, store):
    gateway = canned_gateway(json.dumps({"atsScore": 92, "projectScore": 70}))
    pipeline = make_pipeline(gateway)
    pipeline.start(PROFILE)
    pipeline.submit_resume(io.BytesIO(b"resume"), "cv.txt", "text/plain")
    assert store.get_candidate(pipeline.candidate_id)["resume_score"] == 92


def test_protected_resume_keeps_stage_open(started):
    with pytest.raises(ExtractionFailed) as err:
        started.submit_resume(io.BytesIO(pdf_bytes(password="s3cret")), "cv.pdf", "application/pdf")
    assert "corrupted or password-protected" in err.value.message
    assert started.state["stage"] is Stage.RESUME
    assert started.state["busy"] is None


def test_rejected_upload_does_no_work(started, store):
    with pytest.raises(UploadRejected):
        started.submit_resume(io.BytesIO(b"MZ"), "virus.exe", "application/x-msdownload")
    assert store.get_candidate(started.candidate_id)["resume_score"] == 0


def test_resume_temp_file_is_removed(started, monkeypatch):
    seen = []
    import talentai.pipeline.orchestrator as orch

    real = orch.extract_text_from_path

    def spy(path, *args, **kwargs):
        seen.append(Path(path))
        return real(path, *args, **kwargs)

    monkeypatch.setattr(orch, "extract_text_from_path", spy)
    started.submit_resume(io.BytesIO(b"built things"), "cv.txt", "text/plain")
    assert seen and not seen[0].exists()


def test_stored_resume_url(make_pipeline, store, tmp_path):
    pipeline = make_pipeline(storage=LocalStorage(str(tmp_path), "/files"))
    cid = pipeline.start(PROFILE)
    out = pipeline.submit_resume(io.BytesIO(b"text"), "my cv.txt", "text/plain")
    assert out["resume_url"].startswith(f"/files/resumes/{cid}/")
    assert store.get_candidate(cid)["resume_url"] == out["resume_url"]


def test_full_run_without_ai(started, store):
    started.submit_resume(io.BytesIO(b"no keywords here"), "cv.txt", "text/plain")
    started.submit_video(Stage.UPLOAD_VIDEO, io.BytesIO(b"\x00" * 64), "intro.mp4", "video/mp4")

    quiz = started.load_quiz()
    assert quiz["source"] == "fallback"
    assert all("correctAnswer" not in q for q in quiz["questions"])
    graded = started.submit_quiz({0: 1, 1: 1, 2: 1, 3: 0, 4: 0})
    assert graded["score"] == 60

    out = _finish_interview(started)
    assert out["complete"] is True
    assert 80 <= out["score"] <= 95

    started.submit_video("video_interview", io.BytesIO(b"\x00" * 64), "live.webm", "video/webm")

    row = store.get_candidate(started.candidate_id)
    assert row["resume_score"] == 75
    assert row["upload_video_score"] == 88
    assert row["quiz_score"] == 60
    assert row["video_interview_score"] == 88

    results = started.results()
    assert results["finished"] is True
    assert results["evaluated_stages"] == 5
    assert results["total_score"] == row["total_score"]


def test_skipping_everything_scores_zero(started, store):
    for _ in range(5):
        started.skip()
    row = store.get_candidate(started.candidate_id)
    assert row["total_score"] == 0
    assert started.results()["verdict"] == "Average"
    with pytest.raises(StageOrderError):
        started.skip()


def test_skip_named_stage_must_be_current(started):
    with pytest.raises(StageOrderError):
        started.skip("quiz")
    started.skip("resume")
    assert started.state["stage"] is Stage.UPLOAD_VIDEO


def test_stage_is_scored_once(started, store):
    started.submit_resume(io.BytesIO(b"built"), "cv.txt", "text/plain")
    with pytest.raises(StageOrderError):
        started.submit_resume(io.BytesIO(b"built"), "cv.txt", "text/plain")


def test_quiz_submit_before_load(started):
    started.skip()
    started.skip()
    with pytest.raises(ValidationFailed):
        started.submit_quiz({0: 1})


def test_quiz_questions_are_stable(started):
    started.skip()
    started.skip()
    first = started.load_quiz()
    assert started.load_quiz() == first


def test_interview_fallback_turn_still_counts(started):
    for _ in range(3):
        started.skip()
    started.start_interview()
    out = started.reply("I like distributed systems")
    assert out["turns"] == 1
    assert out["source"] == "fallback"
    assert out["messages"][-1]["role"] == "assistant"


def test_every_reply_gets_an_interviewer_message(make_pipeline, store):
    gateway = canned_gateway("q2", "q3", "q4", "q5", "Thanks, that's all from us.")
    pipeline = make_pipeline(gateway)
    pipeline.start(PROFILE)
    for _ in range(3):
        pipeline.skip()
    out = _finish_interview(pipeline)

    calls = gateway.providers["gemini"].calls
    assert len(calls) == 5
    assert ["final question" in prompt for prompt, _ in calls] == [False, False, False, False, True]
    assert out["complete"] is True
    assert out["messages"][-1] == {"role": "assistant", "content": "Thanks, that's all from us."}
    assert len(out["messages"]) == 11
    assert store.get_candidate(pipeline.candidate_id)["interview_score"] == out["score"]


def test_interview_requires_start_and_text(started):
    for _ in range(3):
        started.skip()
    with pytest.raises(ValidationFailed):
        started.reply("hello")
    started.start_interview()
    with pytest.raises(ValidationFailed):
        started.reply("   ")


def test_video_rejects_non_video_stage(started):
    with pytest.raises(ValidationFailed):
        started.submit_video("quiz", io.BytesIO(b"x"), "a.mp4", "video/mp4")


def test_registry_lookup(store):
    registry = PipelineRegistry(store)
    pipeline = registry.create(PROFILE)
    assert registry.get(pipeline.candidate_id) is pipeline
    with pytest.raises(CandidateNotFound):
        registry.get(999)
