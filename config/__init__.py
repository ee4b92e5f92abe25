"""Configuration package for the AI interview service."""
from .interview_policy import GenerationParams, InterviewPolicy, PolicyLoader, current_policy, policy_loader
from .settings import Settings, settings

__all__ = [
    "GenerationParams",
    "InterviewPolicy",
    "PolicyLoader",
    "current_policy",
    "policy_loader",
    "Settings",
    "settings",
]
