"""Turn a selected search result into a vault note."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .config import Configuration
from .paths import Vault, create_note_file, note_destination
from .tmdb import MediaType, SearchResult

logger = logging.getLogger(__name__)

NO_OVERVIEW = "Nenhuma descrição disponível."
INVALID_FILENAME_CHARS = re.compile(r'[/:*?"<>|]')

MOVIE_GENRES = MappingProxyType(
    {
        28: "Ação",
        12: "Aventura",
        16: "Animação",
        35: "Comédia",
        80: "Crime",
        99: "Documentário",
        18: "Drama",
        10751: "Família",
        14: "Fantasia",
        36: "História",
        27: "Terror",
        10402: "Música",
        9648: "Mistério",
        10749: "Romance",
        878: "Ficção Científica",
        10770: "Filme de TV",
        53: "Thriller",
        10752: "Guerra",
        37: "Ocidental",
    }
)

# Series results also carry these ids; the rest are shared with movies.
TV_GENRES = MappingProxyType(
    {
        10759: "Ação e Aventura",
        10762: "Kids",
        10763: "Notícias",
        10764: "Reality",
        10765: "Ficção Científica e Fantasia",
        10766: "Novela",
        10767: "Talk",
        10768: "Guerra e Política",
    }
)


def genre_name(genre_id: int) -> str | None:
    """Return the display name for *genre_id*, or ``None`` when it is not catalogued."""

    return MOVIE_GENRES.get(genre_id) or TV_GENRES.get(genre_id)


def sanitize(name: str) -> str:
    """Strip characters that cannot appear in a vault file name."""

    return INVALID_FILENAME_CHARS.sub("", name)


@dataclass(frozen=True, slots=True)
class NoteDocument:
    file_name: str
    front_matter: dict[str, Any] = field(default_factory=dict)
    body: str = ""


def build_note(item: SearchResult, media_type: MediaType | str) -> NoteDocument:
    """Map one search result onto the note template.

    Every field comes from *item*; unknown genre ids are dropped.
    """

    kind = MediaType.parse(media_type)
    year = item.year
    genres = [name for name in map(genre_name, item.genre_ids) if name is not None]
    front_matter: dict[str, Any] = {
        "titulo": item.title,
        "tipo": kind.label,
        "ano": year,
        "gênero": genres,
        "image": item.poster_url,
        "lançado": item.release_date,
        "assistido": False,
        "tags": [kind.tag],
    }
    body = f"# Resumo\n{item.overview or NO_OVERVIEW}"
    return NoteDocument(
        file_name=f"{sanitize(item.title)} ({year}).md",
        front_matter=front_matter,
        body=body,
    )


def render_note(document: NoteDocument) -> str:
    rendered = yaml.safe_dump(
        document.front_matter, sort_keys=False, allow_unicode=True, default_flow_style=False
    ).strip()
    return f"---\n{rendered}\n---\n\n{document.body}\n"


def create_note(
    item: SearchResult, media_type: MediaType | str, config: Configuration, vault: Vault
) -> tuple[str, Path]:
    """Write the note for *item* and return its vault-relative and absolute paths."""

    document = build_note(item, media_type)
    relative = note_destination(config.notes_folder, document.file_name)
    target = create_note_file(vault, relative, render_note(document))
    logger.info("Created note %s", target)
    return relative, target
