"""YAML-driven interview policy: question counts, scoring thresholds, generation parameters."""
from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field

from config.settings import settings

logger = logging.getLogger(__name__)

QUESTION_GENERATION = "question_generation"
ANSWER_ANALYSIS = "answer_analysis"
EVALUATION_REPORT = "evaluation_report"

DEFAULT_POLICY_PATH = Path(__file__).resolve().parent / "interview.yaml"


class GenerationParams(BaseModel):
    """Sampling parameters and system preamble for one model call site."""

    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(ge=1)
    system_preamble: str


DEFAULT_GENERATION: Dict[str, GenerationParams] = {
    QUESTION_GENERATION: GenerationParams(
        temperature=0.7,
        max_tokens=2000,
        system_preamble="You are an expert HR interviewer who generates thoughtful, relevant interview questions.",
    ),
    ANSWER_ANALYSIS: GenerationParams(
        temperature=0.3,
        max_tokens=1000,
        system_preamble="You are an expert HR interviewer who provides fair, objective analysis of candidate responses.",
    ),
    EVALUATION_REPORT: GenerationParams(
        temperature=0.2,
        max_tokens=2000,
        system_preamble="You are an expert HR manager who provides thorough, fair, and actionable candidate evaluations.",
    ),
}


class InterviewPolicy(BaseModel):
    """Validated interview policy document."""

    version: int = 1
    default_question_count: int = Field(default=5, ge=1, le=20)
    max_question_count: int = Field(default=10, ge=1, le=20)
    passing_score: int = Field(default=70, ge=0, le=100)
    generation: Dict[str, GenerationParams] = Field(default_factory=lambda: dict(DEFAULT_GENERATION))

    def params_for(self, operation: str) -> GenerationParams:
        return self.generation.get(operation) or DEFAULT_GENERATION[operation]

    def clamp_question_count(self, requested: Optional[int]) -> int:
        if requested is None:
            requested = self.default_question_count
        return min(max(int(requested), 1), self.max_question_count)


def _load_yaml(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


class PolicyLoader:
    """Load the interview policy from YAML and reload it when the file changes."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or settings.INTERVIEW_POLICY_PATH or str(DEFAULT_POLICY_PATH)
        self._mtime = 0.0
        self._policy = InterviewPolicy()
        self.reload_if_changed(force=True)

    def reload_if_changed(self, force: bool = False) -> None:
        """Reload YAML configuration when the file timestamp changes."""

        try:
            stat = os.stat(self.path)
            if not force and stat.st_mtime <= self._mtime:
                return
            raw = _load_yaml(self.path)
            self._mtime = stat.st_mtime
        except FileNotFoundError:
            raw = {}
            self._mtime = time.time()

        generation = dict(DEFAULT_GENERATION)
        for name, values in (raw.pop("generation", None) or {}).items():
            merged = DEFAULT_GENERATION[name].model_dump() if name in DEFAULT_GENERATION else {}
            merged.update(values or {})
            generation[name] = GenerationParams.model_validate(merged)
        self._policy = InterviewPolicy.model_validate({**raw, "generation": generation})
        logger.debug("Interview policy loaded path=%s version=%s", self.path, self._policy.version)

    @property
    def policy(self) -> InterviewPolicy:
        self.reload_if_changed()
        return self._policy


_loader: Optional[PolicyLoader] = None


def policy_loader() -> PolicyLoader:
    global _loader
    if _loader is None:
        _loader = PolicyLoader()
    return _loader


def current_policy() -> InterviewPolicy:
    """Convenience wrapper returning the loader's current policy."""

    return policy_loader().policy


__all__ = [
    "ANSWER_ANALYSIS",
    "EVALUATION_REPORT",
    "QUESTION_GENERATION",
    "GenerationParams",
    "InterviewPolicy",
    "PolicyLoader",
    "current_policy",
    "policy_loader",
]
