"""FastMCP server exposing the TMDB search-to-note tools."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any, TypeVar, cast

from anyio import to_thread
from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import ConfigStore, Settings, load_settings
from .errors import EmptyResultError, TmdbNotesError
from .paths import Vault
from .security import HEALTH_PATH, build_security_middleware
from .tmdb import TMDbClient
from .view import SearchView

TToolFunc = TypeVar("TToolFunc", bound=Callable[..., Any])

logger = logging.getLogger(__name__)


def _mask(secret: str) -> str:
    if len(secret) <= 4:
        return "*" * len(secret)
    return "*" * (len(secret) - 4) + secret[-4:]


@dataclass(slots=True)
class NoteService:
    """Business logic behind the tools; every method returns a JSON-able dict."""

    vault: Vault
    store: ConfigStore
    client: TMDbClient = field(default_factory=TMDbClient)
    view: SearchView | None = None

    def open_search(self) -> dict[str, Any]:
        if self.view is not None and not self.view.closed:
            self.view.close()
        self.view = SearchView(self.client, self.vault, self.store.snapshot)
        return {"ok": True, "state": self.view.state.name.lower()}

    def _active_view(self) -> SearchView:
        if self.view is None or self.view.closed:
            self.open_search()
        return cast(SearchView, self.view)

    def search(self, query: str, media_type: str = "movie") -> dict[str, Any]:
        view = self._active_view()
        try:
            rows = view.submit(query, media_type)
        except EmptyResultError as exc:
            return {"ok": True, "results": [], "message": str(exc)}
        except TmdbNotesError as exc:
            return {"ok": False, "error": str(exc)}
        return {"ok": True, "results": rows}

    def select_result(self, index: int) -> dict[str, Any]:
        if self.view is None or self.view.closed:
            return {"ok": False, "error": "Nenhuma busca aberta."}
        try:
            path = self.view.select(index)
        except TmdbNotesError as exc:
            return {"ok": False, "error": str(exc)}
        return {"ok": True, "path": path, "message": f"Nota criada: {path}"}

    def close_search(self) -> dict[str, Any]:
        if self.view is not None:
            self.view.close()
        return {"ok": True}

    def get_settings(self) -> dict[str, Any]:
        settings = asdict(self.store.snapshot())
        settings["api_key"] = _mask(settings["api_key"])
        return {"ok": True, "settings": settings}

    def update_setting(self, name: str, value: str) -> dict[str, Any]:
        try:
            self.store.update(name, value)
        except TmdbNotesError as exc:
            return {"ok": False, "error": str(exc)}
        except OSError as exc:
            logger.error("Could not persist settings: %s", exc)
            return {"ok": False, "error": "Erro ao salvar as configurações."}
        return self.get_settings()


def create_server(
    settings: Settings | None = None, client: TMDbClient | None = None
) -> tuple[FastMCP, list[Middleware]]:
    """Create a configured :class:`FastMCP` instance and its security middleware."""

    settings = settings or load_settings()
    server = FastMCP(
        "TMDB Notes",
        instructions=(
            "Search movies and series on TMDB and save the chosen result as a note "
            "in the Obsidian vault. Call 'search', then 'select_result' with a row index."
        ),
    )

    security_middleware = build_security_middleware(settings.shared_secret)

    store = ConfigStore(settings.config_path, settings.defaults)
    store.load()
    service = NoteService(settings.vault, store, client or TMDbClient())

    def tool(*args: Any, **kwargs: Any) -> Callable[[TToolFunc], TToolFunc]:
        decorator = server.tool(*args, **kwargs)
        return cast(Callable[[TToolFunc], TToolFunc], decorator)

    @tool()
    async def open_search() -> dict[str, Any]:
        return service.open_search()

    @tool()
    async def search(query: str, media_type: str = "movie") -> dict[str, Any]:
        # The HTTP call blocks; keep it off the event loop.
        return await to_thread.run_sync(service.search, query, media_type)

    @tool()
    async def select_result(index: int) -> dict[str, Any]:
        return await to_thread.run_sync(service.select_result, index)

    @tool()
    async def close_search() -> dict[str, Any]:
        return service.close_search()

    @tool()
    async def get_settings() -> dict[str, Any]:
        return service.get_settings()

    @tool()
    async def update_setting(name: str, value: str) -> dict[str, Any]:
        return await to_thread.run_sync(service.update_setting, name, value)

    @server.custom_route(HEALTH_PATH, methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return cast(FastMCP, server), security_middleware


def main() -> None:
    """Run the FastMCP server."""

    settings = load_settings()
    server, security_middleware = create_server(settings)
    server.run(
        transport="http",
        host=settings.host,
        port=settings.port,
        middleware=security_middleware,
    )


if __name__ == "__main__":
    main()
