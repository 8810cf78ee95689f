from __future__ import annotations

import logging

from thisorthat.sources.base import LOOKUP_ERRORS, NOT_FOUND, SourceResult
from thisorthat.utils.http import http_get_json

logger = logging.getLogger(__name__)

SEARCH_URL = "https://api.unsplash.com/search/photos"


def resolve(ctx, label: str, hint: str | None = None) -> SourceResult:
    access_key = ctx.config.get("UNSPLASH_ACCESS_KEY")
    if not access_key:
        logger.error("[unsplash] missing credentials")
        return NOT_FOUND

    try:
        data = http_get_json(
            SEARCH_URL,
            headers={"Authorization": f"Client-ID {access_key}"},
            params={"query": label, "per_page": 1},
        )
        results = data.get("results") or []
        if not results:
            logger.info("[unsplash] no images for %r", label)
            return NOT_FOUND

        photo = results[0]
        image = (photo.get("urls") or {}).get("regular")
        photo_id = photo.get("id")
    except LOOKUP_ERRORS as exc:
        logger.warning("[unsplash] search failed for %r: %s", label, exc)
        return NOT_FOUND

    if not image:
        return NOT_FOUND
    return SourceResult(image=image, external_id=photo_id)
