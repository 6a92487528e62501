"""HTTP transport configuration shared by the release and install layers."""

from __future__ import annotations

from dataclasses import dataclass

import requests

DEFAULT_USER_AGENT = "nvs"


@dataclass(frozen=True)
class HttpConfig:
    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    chunk_size: int = 256 * 1024
    token: str | None = None

    @property
    def timeout(self) -> tuple[float, float]:
        connect = max(float(self.connect_timeout_seconds), 1.0)
        read = max(float(self.timeout_seconds), 1.0)
        return connect, read


def build_session(config: HttpConfig | None = None) -> requests.Session:
    config = config or HttpConfig()
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent
    if config.token:
        session.headers["Authorization"] = f"Bearer {config.token}"
    return session


def error_body_snippet(response: requests.Response, max_chars: int = 200) -> str:
    body = response.text or ""
    compact = " ".join(body.split())
    return compact[:max_chars]
