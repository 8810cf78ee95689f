from __future__ import annotations

import logging
from typing import Optional

from thisorthat.sources.base import LOOKUP_ERRORS, NOT_FOUND, SourceResult
from thisorthat.utils.http import http_get_json, http_post_form

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
SEARCH_URL = "https://api.spotify.com/v1/search"


def fetch_access_token(client_id: str, client_secret: str) -> Optional[str]:
    """Client-credentials exchange. Returns None on any failure."""
    try:
        data = http_post_form(
            TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(client_id, client_secret),
        )
        if data.get("error"):
            logger.error("[spotify] token error: %s", data.get("error_description") or data["error"])
            return None
        return data.get("access_token")
    except LOOKUP_ERRORS as exc:
        logger.error("[spotify] token request failed: %s", exc)
        return None


def refresh_spotify_token(ctx) -> Optional[str]:
    client_id = ctx.config.get("SPOTIFY_CLIENT_ID")
    client_secret = ctx.config.get("SPOTIFY_CLIENT_SECRET")
    if not client_id or not client_secret:
        logger.warning("[spotify] missing client credentials, token not refreshed")
        return None
    token = fetch_access_token(client_id, client_secret)
    if token:
        ctx.spotify_token = token
        logger.info("[spotify] access token refreshed")
    return token


def resolve(ctx, label: str, hint: str | None = None, market: str = "US") -> SourceResult:
    token = ctx.spotify_token
    if not token:
        logger.error("[spotify] no access token available")
        return NOT_FOUND

    try:
        data = http_get_json(
            SEARCH_URL,
            headers={"Authorization": f"Bearer {token}"},
            params={"q": label, "type": "album", "market": market, "limit": 1},
        )
        items = (data.get("albums") or {}).get("items") or []
        album = items[0] if items else None
        if not album or not album.get("images"):
            logger.info("[spotify] no album artwork for %r", label)
            return NOT_FOUND

        artists = album.get("artists") or []
        # images are ordered largest first
        return SourceResult(
            image=album["images"][0].get("url"),
            external_id=album.get("id"),
            artist=artists[0].get("name") if artists else None,
        )
    except LOOKUP_ERRORS as exc:
        logger.warning("[spotify] search failed for %r: %s", label, exc)
        return NOT_FOUND
