from __future__ import annotations  # Candidate profile storage

import json
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union
from uuid import uuid4

from interview.types import CandidateProfile

from .migrate import migrate
from .sqlite import get_conn


class CandidateStore:  # SQLite-backed candidate storage
    def __init__(self, path: Union[str, Path]) -> None:
        self._path = path
        migrate(self._path)

    def create_candidate(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str = "",
        experience_years: Optional[float] = None,
        skills: Iterable[str] = (),
        location: Optional[str] = None,
        candidate_id: Optional[str] = None,
    ) -> CandidateProfile:  # Persist a new candidate
        profile = CandidateProfile(
            candidate_id=candidate_id or uuid4().hex,
            first_name=first_name,
            last_name=last_name,
            email=email,
            experience_years=experience_years,
            skills=list(skills),
            location=location,
        )
        now = datetime.utcnow().isoformat(timespec="seconds")
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO candidates (candidate_id, first_name, last_name, email, experience_years,
                                        skills_json, location, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.candidate_id,
                    profile.first_name,
                    profile.last_name,
                    profile.email,
                    profile.experience_years,
                    json.dumps(profile.skills),
                    profile.location,
                    now,
                ),
            )
        return profile

    def get_candidate(self, candidate_id: str) -> Optional[CandidateProfile]:
        with get_conn(self._path) as conn:
            row = conn.execute(
                """
                SELECT candidate_id, first_name, last_name, email, experience_years, skills_json, location
                FROM candidates WHERE candidate_id = ?
                """,
                (candidate_id,),
            ).fetchone()
        if row is None:
            return None
        return CandidateProfile(
            candidate_id=row["candidate_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            experience_years=row["experience_years"],
            skills=json.loads(row["skills_json"]),
            location=row["location"],
        )


__all__ = ["CandidateStore"]
