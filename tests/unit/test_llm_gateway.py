from __future__ import annotations

import httpx
import pytest

from interview.errors import UpstreamAuthError, UpstreamConfigError, UpstreamRequestError
from llm_gateway import AiCredentials, ModelGateway, key_prefix, looks_like_credential


class MemoryConfig:
    def __init__(self, api_key="sk-or-v1-abcdef0123456789abcdef", model_name="openai/gpt-4o-mini"):
        self.creds = AiCredentials(
            api_key=api_key,
            model_name=model_name,
            referer_url="https://hiring.example.com",
            site_name="Hiring Test",
        )
        self.model_updates = []

    def get_credential_and_model(self):
        return self.creds

    def set_model_name(self, name):
        self.model_updates.append(name)
        self.creds = self.creds.model_copy(update={"model_name": name})


def _gateway(config, client):
    return ModelGateway(
        config,
        client=client,
        base_url="https://llm.example.com/api/v1/",
        timeout_s=5.0,
        default_model="openai/gpt-4o",
    )


def test_complete_sends_chat_request(fake_http):
    config = MemoryConfig()
    client = fake_http()
    reply = _gateway(config, client).complete("Hello there", "Be brief.", temperature=0.3, max_tokens=50)

    assert reply == "hello"
    request = client.requests[0]
    assert request.url == "https://llm.example.com/api/v1/chat/completions"
    assert request.timeout == 5.0
    assert request.json["model"] == "openai/gpt-4o-mini"
    assert request.json["temperature"] == 0.3
    assert request.json["max_tokens"] == 50
    assert request.json["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "Hello there"},
    ]
    assert request.headers["Authorization"] == f"Bearer {config.creds.api_key}"
    assert request.headers["HTTP-Referer"] == "https://hiring.example.com"
    assert request.headers["X-Title"] == "Hiring Test"


def test_empty_preamble_sends_only_user_message(fake_http):
    client = fake_http()
    _gateway(MemoryConfig(), client).complete("Hi", "", temperature=0.0, max_tokens=10)
    assert client.requests[0].json["messages"] == [{"role": "user", "content": "Hi"}]


def test_missing_key_is_config_error_without_request(fake_http):
    client = fake_http()
    with pytest.raises(UpstreamConfigError):
        _gateway(MemoryConfig(api_key=""), client).complete("Hi", "", temperature=0.0, max_tokens=10)
    assert client.requests == []


def test_credential_shaped_model_is_reset_and_persisted(fake_http):
    key = "sk-or-v1-abcdef0123456789abcdef"
    config = MemoryConfig(api_key=key, model_name=key)
    client = fake_http()
    _gateway(config, client).complete("Hi", "", temperature=0.0, max_tokens=10)

    assert config.model_updates == ["openai/gpt-4o"]
    assert client.requests[0].json["model"] == "openai/gpt-4o"


def test_empty_model_uses_default(fake_http):
    client = fake_http()
    _gateway(MemoryConfig(model_name="  "), client).complete("Hi", "", temperature=0.0, max_tokens=10)
    assert client.requests[0].json["model"] == "openai/gpt-4o"


@pytest.mark.parametrize(
    "status, error",
    [
        (401, UpstreamAuthError),
        (403, UpstreamAuthError),
        (429, UpstreamRequestError),
        (500, UpstreamRequestError),
    ],
)
def test_error_statuses_are_classified(fake_http, fake_response, status, error):
    client = fake_http(response=fake_response(status_code=status, payload={"error": {"code": status}}))
    with pytest.raises(error):
        _gateway(MemoryConfig(), client).complete("Hi", "", temperature=0.0, max_tokens=10)


def test_timeout_is_request_error(fake_http):
    client = fake_http(error=httpx.ReadTimeout("slow"))
    with pytest.raises(UpstreamRequestError) as excinfo:
        _gateway(MemoryConfig(), client).complete("Hi", "", temperature=0.0, max_tokens=10)
    assert "timed out" in excinfo.value.message


def test_missing_content_is_request_error(fake_http, fake_response):
    client = fake_http(response=fake_response(payload={"choices": []}))
    with pytest.raises(UpstreamRequestError):
        _gateway(MemoryConfig(), client).complete("Hi", "", temperature=0.0, max_tokens=10)


def test_non_json_body_is_request_error(fake_http, fake_response):
    client = fake_http(response=fake_response(payload=ValueError("not json"), text="<html>"))
    with pytest.raises(UpstreamRequestError):
        _gateway(MemoryConfig(), client).complete("Hi", "", temperature=0.0, max_tokens=10)


def test_test_connection_never_raises(fake_http):
    ok = _gateway(MemoryConfig(), fake_http()).test_connection()
    assert ok == {"success": True, "response": "hello", "model": "openai/gpt-4o-mini"}

    failed = _gateway(MemoryConfig(api_key=""), fake_http()).test_connection()
    assert failed["success"] is False
    assert failed["error"] == "AI service is not configured. Please contact administrator."
    assert "sk-" not in str(failed)


def test_key_prefix_and_credential_detection():
    assert key_prefix("") == "none"
    assert key_prefix("sk-or-v1-abcdef0123") == "sk-or-v1-a..."
    assert looks_like_credential("sk-or-v1-abcdef0123456789")
    assert looks_like_credential("custom-model", api_key="custom-model")
    assert not looks_like_credential("openai/gpt-4o")
    assert not looks_like_credential("")
