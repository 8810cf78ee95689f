"""
Wikipedia lookup.

The page search usually returns a 60px thumbnail; asking for the same
file at 1024px is enough. Pages without a thumbnail fall back to the
page's image list, picking the file title that looks most like the query.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Mapping, Optional

from thisorthat.sources.base import LOOKUP_ERRORS, NOT_FOUND, SourceResult
from thisorthat.utils.http import USER_AGENT, http_get_json
from thisorthat.utils.image_processing import absolute_url

logger = logging.getLogger(__name__)

SEARCH_URL = "https://en.wikipedia.org/w/rest.php/v1/search/page"
API_URL = "https://en.wikipedia.org/w/api.php"
THUMB_SIZE = "1024px"

HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.5",
}

_ALNUM = re.compile(r"[a-z0-9]+")
_BONUS_TERMS = ("poster", "cover", "movie")


def score_title(query: str, title: str) -> int:
    raw = title.lower()
    if raw.endswith(".svg") or raw.endswith(".xml"):
        return -1

    words = _ALNUM.findall(query.lower())
    packed_query = "".join(words)
    packed_title = "".join(_ALNUM.findall(raw.replace("file:", "", 1)))

    word_matches = sum(1 for w in words if w in packed_title)
    char_matches = sum(1 for ch in packed_query if ch in packed_title)
    score = word_matches * 2 + char_matches
    if any(term in packed_title for term in _BONUS_TERMS):
        score += 5
    return score


def find_most_similar_image(query: str, images: Iterable[Mapping]) -> Optional[str]:
    """Best-scoring file title, or None. Vector files are never chosen."""
    best_title, best_score = None, -1
    for image in images or []:
        title = image.get("title")
        if not title:
            continue
        score = score_title(query, title)
        if score > best_score:
            best_title, best_score = title, score
    return best_title


def _page_image_titles(page_id) -> list:
    data = http_get_json(
        API_URL,
        headers=HEADERS,
        params={"action": "query", "format": "json", "prop": "images", "pageids": page_id},
    )
    pages = (data.get("query") or {}).get("pages") or {}
    return (pages.get(str(page_id)) or {}).get("images") or []


def _image_url_for_title(title: str) -> Optional[str]:
    data = http_get_json(
        API_URL,
        headers=HEADERS,
        params={"action": "query", "format": "json", "prop": "imageinfo", "titles": title, "iiprop": "url"},
    )
    pages = (data.get("query") or {}).get("pages") or {}
    for page in pages.values():
        info = page.get("imageinfo") or []
        if info and info[0].get("url"):
            return info[0]["url"]
    return None


def resolve(ctx, label: str, hint: str | None = None) -> SourceResult:
    query = f"{label} ({hint})" if hint else label
    try:
        data = http_get_json(SEARCH_URL, headers=HEADERS, params={"format": "json", "q": query})
        pages = data.get("pages") or []
        if not pages:
            logger.info("[wikipedia] no pages for %r", query)
            return NOT_FOUND

        page = pages[0]
        page_id = page.get("id")
        thumb = (page.get("thumbnail") or {}).get("url")
        image = thumb.replace("60px", THUMB_SIZE, 1) if thumb else None

        if not image and page_id:
            best = find_most_similar_image(query, _page_image_titles(page_id))
            logger.debug("[wikipedia] fallback title for %r: %s", query, best)
            if best and score_title(query, best) >= 0:
                image = _image_url_for_title(best)
    except LOOKUP_ERRORS as exc:
        logger.warning("[wikipedia] lookup failed for %r: %s", query, exc)
        return NOT_FOUND

    if not image or not isinstance(image, str):
        return NOT_FOUND
    if not image.startswith("http"):
        image = absolute_url(image) if image.startswith("//") else f"https:{image}"
    return SourceResult(image=image, external_id=str(page_id) if page_id else None)
