from __future__ import annotations  # Job posting storage (interview slice)

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union
from uuid import uuid4

from interview.types import JobPosting, Question

from .migrate import migrate
from .sqlite import get_conn


class JobStore:  # SQLite-backed job storage
    def __init__(self, path: Union[str, Path]) -> None:
        self._path = path
        migrate(self._path)

    def create_job(
        self,
        *,
        title: str,
        description: str,
        ai_interview_enabled: bool = True,
        job_id: Optional[str] = None,
    ) -> JobPosting:  # Persist a new job with an empty question set
        job = JobPosting(
            job_id=job_id or uuid4().hex,
            title=title,
            description=description,
            ai_interview_enabled=ai_interview_enabled,
            created_at=datetime.utcnow().isoformat(timespec="seconds"),
        )
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO jobs (job_id, title, description, ai_interview_enabled, questions_json, created_at)
                VALUES (?, ?, ?, ?, '[]', ?)
                """,
                (job.job_id, job.title, job.description, int(job.ai_interview_enabled), job.created_at),
            )
        return job

    def get_job(self, job_id: str) -> Optional[JobPosting]:
        with get_conn(self._path) as conn:
            row = conn.execute(
                """
                SELECT job_id, title, description, ai_interview_enabled, questions_json, created_at
                FROM jobs WHERE job_id = ?
                """,
                (job_id,),
            ).fetchone()
        if row is None:
            return None
        return JobPosting(
            job_id=row["job_id"],
            title=row["title"],
            description=row["description"],
            ai_interview_enabled=bool(row["ai_interview_enabled"]),
            interview_questions=[Question.model_validate(item) for item in json.loads(row["questions_json"])],
            created_at=row["created_at"],
        )

    def save_questions_if_empty(self, job_id: str, questions: List[Question]) -> bool:
        """Compare-and-set: store ``questions`` only while the job still has none."""

        with get_conn(self._path) as conn:
            cur = conn.execute(
                """
                UPDATE jobs SET questions_json = ?, questions_generated_at = ?
                WHERE job_id = ? AND questions_json = '[]'
                """,
                (_dump(questions), datetime.utcnow().isoformat(timespec="seconds"), job_id),
            )
            return cur.rowcount == 1

    def replace_questions(self, job_id: str, questions: List[Question]) -> bool:  # Administrative regeneration
        """Replace the question set; refused once any application on the job has answers."""

        with get_conn(self._path) as conn:
            cur = conn.execute(
                """
                UPDATE jobs SET questions_json = ?, questions_generated_at = ?
                WHERE job_id = ?
                  AND NOT EXISTS (
                    SELECT 1 FROM interview_responses r
                    JOIN applications a ON a.application_id = r.application_id
                    WHERE a.job_id = jobs.job_id
                  )
                """,
                (_dump(questions), datetime.utcnow().isoformat(timespec="seconds"), job_id),
            )
            return cur.rowcount == 1

    def has_answers(self, job_id: str) -> bool:  # Any application on the job answered a question
        with get_conn(self._path) as conn:
            row = conn.execute(
                """
                SELECT 1 FROM interview_responses r
                JOIN applications a ON a.application_id = r.application_id
                WHERE a.job_id = ? LIMIT 1
                """,
                (job_id,),
            ).fetchone()
        return row is not None


def _dump(questions: List[Question]) -> str:
    return json.dumps([question.model_dump() for question in questions])


__all__ = ["JobStore"]
