from __future__ import annotations  # Application storage (interview slice)

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple, Union
from uuid import uuid4

from interview.types import Application, EvaluationReport, InterviewResponse, StatusChange

from .migrate import migrate
from .sqlite import get_conn


class ApplicationStore:  # SQLite-backed application storage
    def __init__(self, path: Union[str, Path]) -> None:
        self._path = path
        migrate(self._path)

    def create_application(
        self,
        *,
        job_id: str,
        candidate_id: str,
        status: str = "pending",
        application_id: Optional[str] = None,
    ) -> Application:  # Persist a new application
        now = _now()
        application = Application(
            application_id=application_id or uuid4().hex,
            job_id=job_id,
            candidate_id=candidate_id,
            status=status,
            created_at=now,
        )
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO applications (application_id, job_id, candidate_id, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (application.application_id, job_id, candidate_id, status, now, now),
            )
        return application

    def get_application(self, application_id: str) -> Optional[Application]:
        with get_conn(self._path) as conn:
            row = conn.execute(
                """
                SELECT application_id, job_id, candidate_id, status, interview_completed, interview_score,
                       evaluation_report_json, created_at
                FROM applications WHERE application_id = ?
                """,
                (application_id,),
            ).fetchone()
            if row is None:
                return None
            responses = conn.execute(
                """
                SELECT question_id, question_text, answer_text, analysis_text, score, answered_at
                FROM interview_responses WHERE application_id = ? ORDER BY id
                """,
                (application_id,),
            ).fetchall()
            history = conn.execute(
                """
                SELECT status, reason, changed_at FROM application_status_history
                WHERE application_id = ? ORDER BY id
                """,
                (application_id,),
            ).fetchall()
        report = row["evaluation_report_json"]
        return Application(
            application_id=row["application_id"],
            job_id=row["job_id"],
            candidate_id=row["candidate_id"],
            status=row["status"],
            interview_completed=bool(row["interview_completed"]),
            interview_score=row["interview_score"],
            evaluation_report=EvaluationReport.model_validate_json(report) if report else None,
            interview_responses=[
                InterviewResponse(
                    question_id=item["question_id"],
                    question_text=item["question_text"],
                    answer_text=item["answer_text"],
                    analysis_text=item["analysis_text"],
                    score=item["score"],
                    answered_at=item["answered_at"],
                )
                for item in responses
            ],
            status_history=[
                StatusChange(status=item["status"], reason=item["reason"], changed_at=item["changed_at"])
                for item in history
            ],
            created_at=row["created_at"],
        )

    def append_response(self, application_id: str, response: InterviewResponse) -> bool:
        """Append one response; returns False when the question was already answered."""

        try:
            with get_conn(self._path) as conn:
                conn.execute(
                    """
                    INSERT INTO interview_responses (application_id, question_id, question_text, answer_text,
                                                     analysis_text, score, answered_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        application_id,
                        response.question_id,
                        response.question_text,
                        response.answer_text,
                        response.analysis_text,
                        response.score,
                        response.answered_at.isoformat(),
                    ),
                )
                conn.execute(
                    "UPDATE applications SET updated_at = ? WHERE application_id = ?",
                    (_now(), application_id),
                )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" not in str(exc):
                raise
            return False
        return True

    def save_report(
        self,
        application_id: str,
        report: EvaluationReport,
        *,
        completed: bool,
        status_change: Optional[Tuple[str, str]] = None,
        first_completion_only: bool = False,
    ) -> bool:
        """Replace the report and score, marking the interview completed when ``completed``.

        The completion flag is a compare-and-set on ``interview_completed = 0``;
        the return value says whether this call flipped it. ``status_change``
        applies only to that first completion and only from ``pending``. With
        ``first_completion_only`` a call that did not flip the flag writes
        nothing, so a concurrent finisher's report stands.
        """

        now = _now()
        with get_conn(self._path) as conn:
            first = False
            if completed:
                cur = conn.execute(
                    """
                    UPDATE applications SET interview_completed = 1
                    WHERE application_id = ? AND interview_completed = 0
                    """,
                    (application_id,),
                )
                first = cur.rowcount == 1
            if first_completion_only and not first:
                return False
            conn.execute(
                """
                UPDATE applications
                SET evaluation_report_json = ?, interview_score = ?, updated_at = ?
                WHERE application_id = ?
                """,
                (report.model_dump_json(), report.overall_score, now, application_id),
            )
            if first and status_change is not None:
                _set_status(conn, application_id, *status_change, now=now, expected="pending")
        return first

    def set_interview_score(self, application_id: str, score: int) -> None:  # Score without a report
        with get_conn(self._path) as conn:
            conn.execute(
                "UPDATE applications SET interview_score = ?, updated_at = ? WHERE application_id = ?",
                (score, _now(), application_id),
            )

    def update_status(self, application_id: str, status: str, reason: str) -> None:
        with get_conn(self._path) as conn:
            _set_status(conn, application_id, status, reason, now=_now())


def _set_status(
    conn: sqlite3.Connection,
    application_id: str,
    status: str,
    reason: str,
    *,
    now: str,
    expected: Optional[str] = None,
) -> None:
    if expected is None:
        conn.execute(
            "UPDATE applications SET status = ?, updated_at = ? WHERE application_id = ?",
            (status, now, application_id),
        )
    else:
        cur = conn.execute(
            "UPDATE applications SET status = ?, updated_at = ? WHERE application_id = ? AND status = ?",
            (status, now, application_id, expected),
        )
        if cur.rowcount != 1:
            return
    conn.execute(
        "INSERT INTO application_status_history (application_id, status, reason, changed_at) VALUES (?, ?, ?, ?)",
        (application_id, status, reason, now),
    )


def _now() -> str:
    return datetime.utcnow().isoformat(timespec="seconds")


__all__ = ["ApplicationStore"]
