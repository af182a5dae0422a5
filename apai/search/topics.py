"""Client for the AI cite-by-topic service."""

import logging

import httpx
from pydantic import ValidationError

from apai.core.errors import SourceUnavailable
from apai.core.settings import Settings
from apai.search.models import TopicItem

logger = logging.getLogger(__name__)

_SOURCE = "topic service"


async def request_topic_citations(
    client: httpx.AsyncClient,
    topic: str,
    settings: Settings | None = None,
) -> list[TopicItem]:
    """POST a topic and return the suggested sources in service order.

    Any failure of the call, or a body that is not a list, raises
    SourceUnavailable. Suggestions without a usable title are skipped.
    """
    settings = settings or Settings()
    logger.info("Topic request: %s", topic)

    try:
        resp = await client.post(
            f"{settings.services.topic_service_url}/cite-topic",
            json={"topic": topic},
            headers=settings.services.headers(),
            timeout=settings.services.request_timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise SourceUnavailable(_SOURCE, str(exc)) from exc

    if not isinstance(data, list):
        raise SourceUnavailable(_SOURCE, f"expected a list, got {type(data).__name__}")

    items: list[TopicItem] = []
    for entry in data:
        item = _parse_item(entry)
        if item:
            items.append(item)

    logger.info("Topic service suggested %d sources, kept %d", len(data), len(items))
    return items


def _parse_item(entry) -> TopicItem | None:
    """One suggestion as a TopicItem, or None if it has nothing citable."""
    if not isinstance(entry, dict):
        logger.warning("Skipping non-object suggestion: %r", entry)
        return None
    try:
        return TopicItem.model_validate(entry)
    except ValidationError as exc:
        logger.warning("Skipping malformed suggestion %r: %s", entry.get("title"), exc)
        return None
