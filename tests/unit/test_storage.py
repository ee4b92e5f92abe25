"""Tests for the SQLite schema and stores."""
from __future__ import annotations

import sqlite3
from datetime import datetime

import pytest

from interview.types import EvaluationReport, InterviewResponse, Question
from storage.ai_settings import AiSettingsStore
from storage.migrate import migrate
from storage.sqlite import get_conn


def _question(qid: str) -> Question:
    return Question(id=qid, text=f"Question {qid}?", category="general", expected_answer_hint="")


def _response(qid: str, answer: str = "An answer") -> InterviewResponse:
    return InterviewResponse(
        question_id=qid,
        question_text=f"Question {qid}?",
        answer_text=answer,
        analysis_text="Fine",
        score=7,
        answered_at=datetime(2024, 5, 1, 9, 30, 0),
    )


def _report(score: int = 77) -> EvaluationReport:
    return EvaluationReport(
        overall_assessment="Good",
        strengths=["a"],
        weaknesses=["b"],
        recommendations="Hire",
        technical_skills_score=70,
        communication_score=80,
        cultural_fit_score=75,
        suitability_rating="good",
        overall_score=score,
    )


def test_migrate_is_idempotent(tmp_db):
    migrate(tmp_db)
    migrate(tmp_db)
    with get_conn(tmp_db) as conn:
        tables = {row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"ai_settings", "jobs", "candidates", "applications", "interview_responses"} <= tables


def test_get_conn_rolls_back_on_error(tmp_db, stores):
    job = stores.jobs.create_job(title="Role", description="Desc")
    with pytest.raises(RuntimeError):
        with get_conn(tmp_db) as conn:
            conn.execute("UPDATE jobs SET title = 'Changed' WHERE job_id = ?", (job.job_id,))
            raise RuntimeError("boom")
    assert stores.jobs.get_job(job.job_id).title == "Role"


def test_question_compare_and_set(stores):
    job = stores.jobs.create_job(title="Role", description="Desc")
    assert stores.jobs.save_questions_if_empty(job.job_id, [_question("q1")]) is True
    assert stores.jobs.save_questions_if_empty(job.job_id, [_question("q2")]) is False
    assert [q.id for q in stores.jobs.get_job(job.job_id).interview_questions] == ["q1"]

    assert stores.jobs.replace_questions(job.job_id, [_question("q3"), _question("q4")]) is True
    assert [q.id for q in stores.jobs.get_job(job.job_id).interview_questions] == ["q3", "q4"]
    assert stores.jobs.replace_questions("missing", [_question("q5")]) is False


def test_unknown_records_return_none(stores):
    assert stores.jobs.get_job("nope") is None
    assert stores.candidates.get_candidate("nope") is None
    assert stores.applications.get_application("nope") is None


def test_duplicate_response_is_rejected(stores, seeded):
    app_id = seeded.application.application_id
    assert stores.applications.append_response(app_id, _response("q1", "first")) is True
    assert stores.applications.append_response(app_id, _response("q1", "second")) is False

    stored = stores.applications.get_application(app_id)
    assert len(stored.interview_responses) == 1
    assert stored.interview_responses[0].answer_text == "first"
    assert stored.interview_responses[0].answered_at == datetime(2024, 5, 1, 9, 30, 0)


def test_response_score_is_range_checked(tmp_db, seeded):
    with pytest.raises(sqlite3.IntegrityError):
        with get_conn(tmp_db) as conn:
            conn.execute(
                """
                INSERT INTO interview_responses (application_id, question_id, question_text, answer_text,
                                                 analysis_text, score, answered_at)
                VALUES (?, 'q9', 'Q', 'A', 'X', 11, '2024-01-01T00:00:00')
                """,
                (seeded.application.application_id,),
            )


def test_save_report_updates_score_status_and_history(stores, seeded):
    app_id = seeded.application.application_id
    stores.applications.save_report(
        app_id,
        _report(77),
        completed=True,
        status_change=("ai-interview-completed", "AI interview completed"),
    )
    stored = stores.applications.get_application(app_id)
    assert stored.interview_completed is True
    assert stored.interview_score == 77
    assert stored.evaluation_report == _report(77)
    assert stored.status == "ai-interview-completed"
    assert [change.status for change in stored.status_history] == ["ai-interview-completed"]

    stores.applications.save_report(app_id, _report(40), completed=False)
    stored = stores.applications.get_application(app_id)
    assert stored.interview_score == 40
    assert stored.interview_completed is True


def test_first_completion_is_a_compare_and_set(stores, seeded):
    app_id = seeded.application.application_id
    status = ("ai-interview-completed", "AI interview completed")

    assert stores.applications.save_report(
        app_id, _report(61), completed=True, status_change=status, first_completion_only=True
    ) is True
    assert stores.applications.save_report(
        app_id, _report(90), completed=True, status_change=status, first_completion_only=True
    ) is False

    stored = stores.applications.get_application(app_id)
    assert stored.interview_score == 61
    assert len(stored.status_history) == 1

    assert stores.applications.save_report(app_id, _report(70), completed=True, status_change=status) is False
    stored = stores.applications.get_application(app_id)
    assert stored.interview_score == 70
    assert len(stored.status_history) == 1


def test_completion_status_only_moves_from_pending(stores, seeded):
    app_id = seeded.application.application_id
    stores.applications.update_status(app_id, "rejected", "Withdrawn")
    stores.applications.save_report(
        app_id, _report(50), completed=True, status_change=("ai-interview-completed", "AI interview completed")
    )
    stored = stores.applications.get_application(app_id)
    assert stored.interview_completed is True
    assert stored.status == "rejected"


def test_replace_questions_refused_once_answered(stores, seeded):
    job_id = seeded.job.job_id
    stores.jobs.replace_questions(job_id, [_question("q1")])
    assert stores.jobs.has_answers(job_id) is False

    stores.applications.append_response(seeded.application.application_id, _response("q1"))
    assert stores.jobs.has_answers(job_id) is True
    assert stores.jobs.replace_questions(job_id, [_question("q2")]) is False
    assert [q.id for q in stores.jobs.get_job(job_id).interview_questions] == ["q1"]


def test_candidate_round_trip(stores, seeded):
    profile = stores.candidates.get_candidate(seeded.candidate.candidate_id)
    assert profile.full_name == "Ada Lovelace"
    assert profile.skills == ["Python", "SQL"]
    assert profile.experience_years == 6


def test_ai_settings_seed_and_update(tmp_db, monkeypatch):
    from config.settings import settings

    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "sk-seeded-key")
    store = AiSettingsStore(tmp_db)
    creds = store.get_credential_and_model()
    assert creds.api_key == "sk-seeded-key"
    assert creds.model_name == settings.DEFAULT_MODEL

    store.set_model_name("mistralai/mistral-large")
    store.update_ai_settings(api_key="sk-rotated")
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "sk-ignored")
    again = AiSettingsStore(tmp_db).get_credential_and_model()
    assert again.model_name == "mistralai/mistral-large"
    assert again.api_key == "sk-rotated"
