from __future__ import annotations  # Chat-completion gateway for the interview pipeline

import logging
import re
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import httpx
from pydantic import BaseModel

from config.settings import settings
from interview.errors import UpstreamAuthError, UpstreamConfigError, UpstreamRequestError


logger = logging.getLogger(__name__)  # Module logger setup

KEY_PREFIX_CHARS = 10
_CREDENTIAL_SHAPE = re.compile(r"^sk-[A-Za-z0-9][A-Za-z0-9_\-]{15,}$")


class AiCredentials(BaseModel):  # Connection settings read fresh for every call
    api_key: str = ""
    model_name: str = ""
    referer_url: str = ""
    site_name: str = ""


class ConfigProvider(Protocol):  # Mutable configuration store consumed by the gateway
    def get_credential_and_model(self) -> AiCredentials: ...

    def set_model_name(self, name: str) -> None: ...


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


def key_prefix(api_key: str) -> str:  # Bounded credential prefix safe for diagnostics
    if not api_key:
        return "none"
    return api_key[:KEY_PREFIX_CHARS] + "..."


def looks_like_credential(model_name: str, api_key: str = "") -> bool:  # Detect key/model field confusion
    candidate = (model_name or "").strip()
    if not candidate:
        return False
    if api_key and candidate == api_key.strip():
        return True
    return bool(_CREDENTIAL_SHAPE.match(candidate))


class ModelGateway:  # Uniform call contract over a remote chat-completion API
    def __init__(
        self,
        config_provider: ConfigProvider,
        *,
        client: Optional[HttpClient] = None,
        base_url: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout_s: Optional[float] = None,
        default_model: Optional[str] = None,
    ) -> None:
        self._provider = config_provider
        self._client = client
        self._base_url = (base_url or settings.LLM_BASE_URL).rstrip("/")
        self._endpoint = endpoint or settings.LLM_ENDPOINT
        self._timeout_s = timeout_s if timeout_s is not None else settings.LLM_TIMEOUT_S
        self.default_model = default_model or settings.DEFAULT_MODEL

    def complete(self, prompt: str, system_preamble: str, temperature: float, max_tokens: int) -> str:
        creds, model = self._resolve()
        messages = []
        if system_preamble:
            messages.append({"role": "system", "content": system_preamble})
        messages.append({"role": "user", "content": prompt})
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.info(
            "LLM request start model=%s key=%s temperature=%.2f max_tokens=%d preview=%s",
            model,
            key_prefix(creds.api_key),
            temperature,
            max_tokens,
            _preview(prompt),
        )
        response, close_cb = self._send(payload, self._headers(creds))
        try:
            self._raise_for_status(response)
            try:
                data = response.json()
            except Exception as exc:  # noqa: BLE001
                logger.error("Invalid JSON payload from LLM: %s", exc)
                raise UpstreamRequestError("LLM payload was not JSON") from exc
            content = _extract_content(data)
        finally:
            _close_safely(close_cb)
        logger.info("LLM request done model=%s chars=%d", model, len(content))
        return content

    def test_connection(self) -> Dict[str, Any]:  # Admin connectivity check; never raises
        try:
            reply = self.complete(
                "Hello, please respond with 'AI connection successful'",
                "",
                temperature=0.0,
                max_tokens=10,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("AI connection test failed: %s", exc)
            error = getattr(exc, "public_message", "AI connection failed")
            return {"success": False, "error": error, "model": self._configured_model()}
        return {"success": True, "response": reply, "model": self._configured_model()}

    def _configured_model(self) -> str:
        try:
            creds = self._provider.get_credential_and_model()
        except Exception:  # noqa: BLE001
            return self.default_model
        if looks_like_credential(creds.model_name, creds.api_key):
            return self.default_model
        return creds.model_name or self.default_model

    def _resolve(self) -> Tuple[AiCredentials, str]:  # Load config, self-heal the model field
        creds = self._provider.get_credential_and_model()
        logger.debug(
            "AI settings loaded has_key=%s model=%s key=%s",
            bool(creds.api_key),
            creds.model_name if not looks_like_credential(creds.model_name, creds.api_key) else "<redacted>",
            key_prefix(creds.api_key),
        )
        if not creds.api_key:
            raise UpstreamConfigError("No API credential configured for the AI service")
        model = creds.model_name.strip()
        if looks_like_credential(model, creds.api_key):
            logger.warning(
                "Configured model name has the shape of a credential; resetting to %s",
                self.default_model,
            )
            self._provider.set_model_name(self.default_model)
            model = self.default_model
        return creds, model or self.default_model

    def _headers(self, creds: AiCredentials) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {creds.api_key}",
            "HTTP-Referer": creds.referer_url or settings.SITE_URL,
            "X-Title": creds.site_name or settings.SITE_NAME,
        }

    def _send(self, payload: Dict[str, Any], headers: Dict[str, str]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:
        url = f"{self._base_url}{self._endpoint}"
        try:
            return _post(url, payload, headers, self._timeout_s, self._client)
        except httpx.TimeoutException as exc:
            logger.error("LLM request timed out after %.1fs", self._timeout_s)
            raise UpstreamRequestError("LLM request timed out") from exc
        except Exception as exc:  # noqa: BLE001
            logger.error("LLM transport failure: %s", type(exc).__name__)
            raise UpstreamRequestError("LLM transport failed") from exc

    @staticmethod
    def _raise_for_status(response: HttpResponse) -> None:
        status = response.status_code
        if status in (401, 403):
            logger.error("LLM rejected credentials status=%s", status)
            raise UpstreamAuthError(f"LLM rejected credentials with status {status}")
        if status == 429:
            logger.error("LLM rate limited status=%s", status)
            raise UpstreamRequestError("LLM rate limited")
        if status >= 400:
            logger.error("LLM error status: %s", status)
            raise UpstreamRequestError(f"LLM returned status {status}")


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        return client.post(url, json=payload, headers=headers, timeout=timeout), None
    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers)
    except Exception:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _preview(text: str) -> str:  # First non-empty line, bounded, for logging
    for line in (text or "").splitlines():
        line = line.strip()
        if line:
            return line if len(line) <= 120 else line[:117] + "..."
    return ""


def _extract_content(data: Any) -> str:  # Extract message content from LLM response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        if isinstance(data.get("error"), dict):
            logger.error("LLM returned error body code=%s", data["error"].get("code"))
    raise UpstreamRequestError("LLM response missing content")
