"""TMDB search client.

One call to :meth:`TMDbClient.search` issues exactly one GET to the
``/search/{movie|tv}`` endpoint. There is no retry and no pagination.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import requests

from .config import Configuration
from .errors import EmptyResultError, NetworkError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
UNKNOWN_YEAR = "Desconhecido"


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"

    @classmethod
    def parse(cls, value: str | MediaType) -> MediaType:
        if isinstance(value, MediaType):
            return value
        key = value.strip().lower()
        aliases = {"series": "tv", "serie": "tv", "série": "tv", "filme": "movie"}
        try:
            return cls(aliases.get(key, key))
        except ValueError:
            raise ValidationError(f"Tipo inválido: {value!r} (use 'movie' ou 'tv')") from None

    @property
    def label(self) -> str:
        return "Filme" if self is MediaType.MOVIE else "Série"

    @property
    def tag(self) -> str:
        return "filme" if self is MediaType.MOVIE else "série"


def _blank_to_none(value: Any) -> Any:
    return value if value not in ("", None) else None


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One item from a search response, normalised across movies and series."""

    id: int
    title: str
    release_date: str | None
    poster_path: str | None
    overview: str | None
    genre_ids: tuple[int, ...] = ()

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> SearchResult:
        return cls(
            id=int(raw["id"]),
            title=raw.get("title") or raw.get("name") or "",
            release_date=_blank_to_none(raw.get("release_date") or raw.get("first_air_date")),
            poster_path=_blank_to_none(raw.get("poster_path")),
            overview=_blank_to_none(raw.get("overview")),
            genre_ids=tuple(int(g) for g in raw.get("genre_ids") or ()),
        )

    @property
    def year(self) -> str:
        """Four-digit year from the release date, or the placeholder."""

        if self.release_date:
            year = self.release_date.split("-")[0]
            if year:
                return year
        return UNKNOWN_YEAR

    @property
    def poster_url(self) -> str | None:
        if not self.poster_path:
            return None
        return f"{IMAGE_BASE_URL}{self.poster_path}"

    def as_row(self, index: int) -> dict[str, Any]:
        """Render the item as one selectable list row."""

        return {
            "index": index,
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "poster_url": self.poster_url,
            "label": f"{self.title} ({self.year})",
        }


class TMDbClient:
    """The Movie Database search client."""

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self, session: requests.Session | None = None, timeout: float | None = None
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def search(
        self, query: str, media_type: MediaType | str, config: Configuration
    ) -> list[SearchResult]:
        """Search titles of *media_type* matching *query*.

        Raises :class:`ValidationError` for an empty query without touching the
        network, :class:`NetworkError` when the request or its body is
        unusable, and :class:`EmptyResultError` when nothing matched.
        """

        text = query.strip()
        if not text:
            raise ValidationError("Por favor, insira um nome.")
        kind = MediaType.parse(media_type)

        params = {
            "api_key": config.api_key,
            "query": text,
            "language": config.result_language,
        }
        try:
            response = self.session.get(
                f"{self.BASE_URL}/search/{kind.value}",
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("TMDB search for %r failed: %s", text, exc)
            raise NetworkError("Erro ao buscar dados.") from exc

        raw_results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(raw_results, list):
            logger.error("TMDB search for %r returned no results list: %r", text, data)
            raise NetworkError("Erro ao buscar dados.")

        try:
            results = [SearchResult.from_api(item) for item in raw_results]
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("TMDB search for %r returned a malformed item: %s", text, exc)
            raise NetworkError("Erro ao buscar dados.") from exc

        if not results:
            raise EmptyResultError("Nenhum resultado encontrado.")
        logger.info("TMDB search for %r (%s) returned %d results", text, kind.value, len(results))
        return results
