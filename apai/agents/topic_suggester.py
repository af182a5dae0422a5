"""Local topic-citation suggestions using Ollama structured output."""

import asyncio
import logging

import ollama
from pydantic import BaseModel

from apai.core.errors import SourceUnavailable
from apai.core.settings import Settings
from apai.search.models import TopicItem

logger = logging.getLogger(__name__)

MODEL = "qwen3:8b"

# ── Structured Output Model ──────────────────────────────────────────


class TopicSuggestions(BaseModel):
    """Structured output from the suggestion model."""

    citations: list[TopicItem]


# ── Suggestion ───────────────────────────────────────────────────────


def suggest_topic_citations(topic: str, model: str = MODEL, count: int = 5) -> list[TopicItem]:
    """Ask a local model for real, citable sources on a topic."""
    user_prompt = f"""/no_think
Suggest {count} real, published sources a student could cite on this topic:

TOPIC: {topic}

For each source give the author(s) as they would appear in an APA reference,
the publication year, the title, and the publisher or journal. Only list works
you are confident exist.

Respond with JSON only: {{"citations": [{{"author": "...", "year": "...", "title": "...", "publisher": "..."}}]}}"""

    response = ollama.chat(
        model=model,
        messages=[
            {
                "role": "system",
                "content": (
                    "You are a research librarian who recommends citable "
                    "academic sources. Respond ONLY with the requested JSON."
                ),
            },
            {"role": "user", "content": user_prompt},
        ],
        format=TopicSuggestions.model_json_schema(),
        options={"temperature": 0},
        think=False,
    )

    raw = response.message.content
    return TopicSuggestions.model_validate_json(raw).citations[:count]


async def request_local_topic_citations(topic: str, settings: Settings | None = None) -> list[TopicItem]:
    """Async wrapper with the same failure contract as the topic service."""
    settings = settings or Settings()
    logger.info("Local topic request (%s): %s", settings.topic.model, topic)
    try:
        items = await asyncio.to_thread(
            suggest_topic_citations,
            topic,
            settings.topic.model,
            settings.topic.count,
        )
    except Exception as exc:
        raise SourceUnavailable("ollama", str(exc)) from exc
    logger.info("Local model suggested %d sources", len(items))
    return items
