"""SQLite schema migrations."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

from .sqlite import get_conn

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS ai_settings (
  id INTEGER PRIMARY KEY CHECK (id = 1),
  api_key TEXT NOT NULL DEFAULT '',
  model_name TEXT NOT NULL,
  site_url TEXT NOT NULL,
  site_name TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS jobs (
  job_id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  description TEXT NOT NULL,
  ai_interview_enabled INTEGER NOT NULL DEFAULT 1,
  questions_json TEXT NOT NULL DEFAULT '[]',
  questions_generated_at TEXT,
  created_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS candidates (
  candidate_id TEXT PRIMARY KEY,
  first_name TEXT NOT NULL,
  last_name TEXT NOT NULL,
  email TEXT NOT NULL DEFAULT '',
  experience_years REAL,
  skills_json TEXT NOT NULL DEFAULT '[]',
  location TEXT,
  created_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS applications (
  application_id TEXT PRIMARY KEY,
  job_id TEXT NOT NULL REFERENCES jobs(job_id),
  candidate_id TEXT NOT NULL REFERENCES candidates(candidate_id),
  status TEXT NOT NULL DEFAULT 'pending',
  interview_completed INTEGER NOT NULL DEFAULT 0,
  interview_score INTEGER CHECK (interview_score BETWEEN 0 AND 100),
  evaluation_report_json TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  UNIQUE (job_id, candidate_id)
);
""",
    """
CREATE TABLE IF NOT EXISTS application_status_history (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  application_id TEXT NOT NULL REFERENCES applications(application_id) ON DELETE CASCADE,
  status TEXT NOT NULL,
  reason TEXT,
  changed_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS interview_responses (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  application_id TEXT NOT NULL REFERENCES applications(application_id) ON DELETE CASCADE,
  question_id TEXT NOT NULL,
  question_text TEXT NOT NULL,
  answer_text TEXT NOT NULL,
  analysis_text TEXT NOT NULL,
  score INTEGER NOT NULL CHECK (score BETWEEN 0 AND 10),
  answered_at TEXT NOT NULL,
  UNIQUE (application_id, question_id)
);
""",
]


def migrate(db_path: Optional[Union[str, Path]] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    with get_conn(db_path) as conn:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)


if __name__ == "__main__":
    migrate()
