from __future__ import annotations

import logging
import os
from typing import Any

import requests

from dealmap.config import OracleConfig
from dealmap.domain.rules import UpstreamAuthError

BASE_URL = "https://api.anthropic.com"
API_VERSION = "2023-06-01"

logger = logging.getLogger(__name__)


class OracleError(RuntimeError):
    pass


class OracleAuthError(UpstreamAuthError):
    pass


class AnthropicClient:
    """Text-in, text-out completion over the Messages API."""

    def __init__(self, api_key: str, model: str, max_tokens: int = 3000) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.session = requests.Session()
        self.session.headers.update(
            {
                "x-api-key": api_key,
                "anthropic-version": API_VERSION,
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config: OracleConfig) -> AnthropicClient:
        api_key = os.environ.get(config.api_key_env)
        if not api_key:
            raise OracleAuthError(f"Missing API key. Set {config.api_key_env}.")
        return cls(api_key=api_key, model=config.model, max_tokens=config.max_tokens)

    def complete(self, prompt: str) -> str:
        data = self._request(
            "POST",
            "/v1/messages",
            json={
                "model": self.model,
                "max_tokens": self.max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        parts = [
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        ]
        if not parts:
            raise OracleError("AI response contained no text.")
        return "".join(parts)

    def _request(self, method: str, path: str, json: Any | None = None) -> dict[str, Any]:
        url = f"{BASE_URL}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=120)
        except requests.RequestException as exc:
            raise OracleError(f"AI request failed: {exc}") from exc
        if response.status_code in (401, 403):
            raise OracleAuthError("AI provider rejected the API key.")
        if response.status_code >= 400:
            logger.warning("Anthropic error %s: %s", response.status_code, response.text)
            raise OracleError(f"AI error {response.status_code}: {response.text}")
        return response.json()
