from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import (
    AiCredentials,
    ConfigProvider,
    HttpClient,
    HttpResponse,
    ModelGateway,
    key_prefix,
    looks_like_credential,
)

__all__ = [
    "AiCredentials",
    "ConfigProvider",
    "HttpClient",
    "HttpResponse",
    "ModelGateway",
    "key_prefix",
    "looks_like_credential",
]
