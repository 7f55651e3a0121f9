"""
Chat-completion client for investigation narratives.

One attempt per call, no retries. Every failure is raised as a
NarrativeServiceError carrying an ErrorKind so callers can branch on it.
"""
import logging
from dataclasses import dataclass
from enum import Enum

import httpx

from backend.config import NarrativeServiceConfig

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    UNREACHABLE = "Unreachable"
    UNAUTHORIZED = "Unauthorized"
    EMPTY_RESPONSE = "EmptyResponse"
    UNKNOWN = "Unknown"


class NarrativeServiceError(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class Narrative:
    text: str
    model: str
    truncated: bool = False


def classify_error(exc: Exception) -> NarrativeServiceError:
    if isinstance(exc, NarrativeServiceError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return NarrativeServiceError(ErrorKind.UNREACHABLE, f"LLM service timed out: {exc}")
    if isinstance(exc, httpx.TransportError):
        return NarrativeServiceError(ErrorKind.UNREACHABLE, f"Cannot reach LLM service: {exc}")

    # mistralai raises SDKError (and subclasses) with the provider's HTTP status
    status = getattr(exc, "status_code", None)
    if status in (401, 403):
        return NarrativeServiceError(ErrorKind.UNAUTHORIZED, f"LLM service rejected credentials ({status})")
    if status in (502, 503, 504):
        return NarrativeServiceError(ErrorKind.UNREACHABLE, f"LLM service unavailable ({status})")
    return NarrativeServiceError(ErrorKind.UNKNOWN, f"LLM service error: {exc}")


def _content_text(content) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    # list of content chunks
    return "".join(getattr(chunk, "text", "") or "" for chunk in content)


class NarrativeClient:
    def __init__(self, config: NarrativeServiceConfig, client=None):
        self.config = config
        self._client = client

    @property
    def has_api_key(self) -> bool:
        return bool(self.config.api_key)

    def _get_client(self):
        if self._client is None:
            if not self.config.api_key:
                raise NarrativeServiceError(ErrorKind.UNAUTHORIZED, "MISTRAL_API_KEY missing in backend/.env")
            from mistralai import Mistral  # lazy import
            kwargs = {"api_key": self.config.api_key, "timeout_ms": int(self.config.timeout_s * 1000)}
            if self.config.server_url:
                kwargs["server_url"] = self.config.server_url
            self._client = Mistral(**kwargs)
        return self._client

    def generate(self, system_prompt: str, user_prompt: str) -> Narrative:
        client = self._get_client()
        try:
            resp = client.chat.complete(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except Exception as e:
            err = classify_error(e)
            logger.error(f"Narrative request failed [{err.kind.value}]: {err.message}")
            raise err from e

        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise NarrativeServiceError(ErrorKind.EMPTY_RESPONSE, "No response from AI model")
        choice = choices[0]
        text = _content_text(getattr(choice.message, "content", None)).strip()
        if not text:
            raise NarrativeServiceError(ErrorKind.EMPTY_RESPONSE, "No response from AI model")

        truncated = getattr(choice, "finish_reason", None) == "length"
        if truncated:
            logger.info("Narrative hit the max_tokens cap and was truncated")
        return Narrative(text=text, model=self.config.model, truncated=truncated)
