from __future__ import annotations

import logging
from urllib.parse import quote

from thisorthat.sources.base import LOOKUP_ERRORS, NOT_FOUND, SourceResult
from thisorthat.utils.http import http_get_json

logger = logging.getLogger(__name__)

SEARCH_URL = "https://api.logo.dev/search"
IMAGE_URL = "https://img.logo.dev/{domain}?token={token}&size={size}&retina=true&fallback=404"


def resolve(ctx, label: str, hint: str | None = None) -> SourceResult:
    publishable = ctx.config.get("LOGO_DEV_PUBLISHABLE_KEY")
    secret = ctx.config.get("LOGO_DEV_SECRET_KEY")
    if not publishable or not secret:
        logger.error("[logodev] missing credentials")
        return NOT_FOUND

    try:
        results = http_get_json(
            SEARCH_URL,
            headers={"Authorization": f"Bearer {secret}"},
            params={"q": label},
        )
        first = results[0] if isinstance(results, list) and results else None
        domain = (first or {}).get("domain")
    except LOOKUP_ERRORS as exc:
        logger.warning("[logodev] search failed for %r: %s", label, exc)
        return NOT_FOUND

    if not domain or not isinstance(domain, str):
        logger.info("[logodev] no results for %r", label)
        return NOT_FOUND

    url = IMAGE_URL.format(domain=quote(domain), token=publishable, size=ctx.image_size)
    return SourceResult(image=url, external_id=domain)
