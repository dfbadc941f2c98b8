"""Regression tests for HTTP app construction."""

import threading

import anyio
from conftest import MATRIX, FakeResponse, FakeSession
from fastmcp import Client
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from obsidian_tmdb_notes.config import Configuration, Settings
from obsidian_tmdb_notes.paths import Vault
from obsidian_tmdb_notes.security import HEALTH_PATH, SECRET_HEADER, build_security_middleware
from obsidian_tmdb_notes.server import create_server
from obsidian_tmdb_notes.tmdb import TMDbClient


def _settings(tmp_path, secret="super-secret"):
    vault_root = tmp_path / "vault"
    vault_root.mkdir()
    return Settings(
        vault=Vault("vault", vault_root),
        host="127.0.0.1",
        port=0,
        shared_secret=secret,
        log_level="INFO",
        config_path=tmp_path / "config.json",
        defaults=Configuration(),
    )


def test_http_app_builds_with_security_middleware(tmp_path):
    server, security_middleware = create_server(_settings(tmp_path))

    app = server.http_app(middleware=security_middleware)

    assert app is not None
    assert len(security_middleware) == 2


def test_security_middleware_without_secret_is_cors_only():
    assert len(build_security_middleware(None)) == 1


def _guarded_app(secret):
    async def ok(request):
        return PlainTextResponse("ok")

    return Starlette(
        routes=[Route(HEALTH_PATH, ok), Route("/mcp", ok, methods=["GET", "POST"])],
        middleware=build_security_middleware(secret),
    )


def test_shared_secret_rejects_missing_or_wrong_header():
    client = TestClient(_guarded_app("s3cret"))

    missing = client.post("/mcp")
    assert missing.status_code == 401
    assert missing.json() == {"detail": "Unauthorized"}

    wrong = client.post("/mcp", headers={SECRET_HEADER: "nope"})
    assert wrong.status_code == 401

    right = client.post("/mcp", headers={SECRET_HEADER: "s3cret"})
    assert right.status_code == 200


def test_health_route_skips_secret_check():
    client = TestClient(_guarded_app("s3cret"))
    assert client.get(HEALTH_PATH).status_code == 200


class ThreadRecordingSession(FakeSession):
    def __init__(self, *responses):
        super().__init__(*responses)
        self.threads = []

    def get(self, url, **kwargs):
        self.threads.append(threading.current_thread())
        return super().get(url, **kwargs)


def test_search_tool_runs_off_the_event_loop_thread(tmp_path):
    session = ThreadRecordingSession(FakeResponse({"results": [MATRIX]}))
    server, _ = create_server(_settings(tmp_path, secret=None), TMDbClient(session=session))
    loop_threads = []

    async def call_search():
        loop_threads.append(threading.current_thread())
        async with Client(server) as client:
            await client.call_tool("search", {"query": "Matrix"})

    anyio.run(call_search)

    assert len(session.calls) == 1
    assert session.threads[0] is not loop_threads[0]
