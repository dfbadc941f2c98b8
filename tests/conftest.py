from __future__ import annotations

from typing import Any

import pytest
import requests

from obsidian_tmdb_notes.paths import Vault


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, body_error: bool = False):
        self.payload = payload
        self.status_code = status_code
        self.body_error = body_error

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if self.body_error:
            raise requests.JSONDecodeError("Expecting value", "<html>", 0)
        return self.payload


class FakeSession:
    """Stands in for ``requests.Session`` and records every GET."""

    def __init__(self, *responses: FakeResponse | Exception):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


MATRIX = {
    "id": 603,
    "title": "The Matrix",
    "release_date": "1999-03-31",
    "poster_path": "/x.jpg",
    "overview": "A hacker learns the truth about reality.",
    "genre_ids": [28, 878],
}


@pytest.fixture
def vault(tmp_path) -> Vault:
    root = tmp_path / "vault"
    root.mkdir()
    return Vault("vault", root)
