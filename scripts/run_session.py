#!/usr/bin/env python3
"""Interactive terminal session: search, cite and collect references."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from apai.citation.normalize import book_page_url
from apai.core.session import CitationSession, SessionState
from apai.core.settings import Settings, load_settings

logger = logging.getLogger("session")

HELP = """Commands:
  book <title>    search books by title
  pick <n>        cite book result n
  doi <doi|url>   cite a DOI
  topic <text>    AI-suggested citations for a topic
  save <n>        save displayed citation n to references
  refs            show references
  clear           clear references
  quit            exit"""


# ── Rendering ────────────────────────────────────────────────────────


def _show(state: SessionState, settings: Settings) -> None:
    for kind in ("books", "doi", "topic"):
        slot = state.slot(kind)
        if slot.message:
            print(slot.message)

    if state.books.results and not state.books.citation:
        print("Select a book:")
        for i, book in enumerate(state.books.results, 1):
            authors = f" by {', '.join(book.author_name)}" if book.author_name else ""
            print(f"  {i}. {book.title}{authors}")
            url = book_page_url(book, settings.services.book_page_base)
            if url:
                print(f"     {url}")

    for i, citation in enumerate(state.displayed(), 1):
        print(f"[{i}] {citation.citation_text}")
        if citation.doi_link:
            print(f"     {citation.doi_link}")


def _show_references(state: SessionState) -> None:
    refs = state.references.list()
    if not refs:
        print("No saved references.")
        return
    print("References")
    for text in refs:
        print(f"  {text}")


# ── Loop ─────────────────────────────────────────────────────────────


async def run_session(settings: Settings) -> None:
    """Read commands until EOF or ``quit``."""
    print(HELP)
    async with CitationSession(settings) as session:
        while True:
            try:
                line = await asyncio.to_thread(input, "apai> ")
            except EOFError:
                break
            command, _, arg = line.strip().partition(" ")
            arg = arg.strip()

            if command in ("quit", "exit"):
                break
            if command == "book":
                _show(await session.search_books(arg), settings)
            elif command == "doi":
                _show(await session.lookup_doi(arg), settings)
            elif command == "topic":
                _show(await session.cite_topic(arg), settings)
            elif command in ("pick", "save"):
                try:
                    index = int(arg) - 1
                    if command == "pick":
                        _show(session.select_book(index), settings)
                    else:
                        displayed = session.state.displayed()
                        if not 0 <= index < len(displayed):
                            raise ValueError(f"No displayed citation {arg}")
                        session.save(displayed[index].citation_text)
                        print("Saved.")
                except ValueError as exc:
                    print(exc)
            elif command == "refs":
                _show_references(session.state)
            elif command == "clear":
                session.clear_references()
                print("References cleared.")
            elif command:
                print(HELP)


# ── CLI ──────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(description="APA citation session")
    parser.add_argument("--settings", default=None, help="Path to settings YAML file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    settings = load_settings(args.settings) if args.settings else Settings()
    logger.debug("Settings: %s", settings.model_dump())
    asyncio.run(run_session(settings))


if __name__ == "__main__":
    main()
