"""
Image providers and the router in front of them.

Every provider answers `resolve(ctx, label, hint) -> SourceResult` and
never raises; a miss is an empty result.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from thisorthat.sources import logodev, spotify, text, unsplash, wikipedia
from thisorthat.sources.base import NOT_FOUND, SourceResult

logger = logging.getLogger(__name__)


class Provider(str, enum.Enum):
    LOGODEV = "logodev"
    UNSPLASH = "unsplash"
    WIKIPEDIA = "wikipedia"
    SPOTIFY = "spotify"
    TEXT = "text"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["Provider"]:
        try:
            return cls((name or "").strip().lower())
        except ValueError:
            return None


_ADAPTERS = {
    Provider.LOGODEV: logodev,
    Provider.UNSPLASH: unsplash,
    Provider.WIKIPEDIA: wikipedia,
    Provider.SPOTIFY: spotify,
    Provider.TEXT: text,
}


def resolve_source(ctx, source, label: str, hint: Optional[str] = None) -> SourceResult:
    provider = source if isinstance(source, Provider) else Provider.parse(source)
    if provider is None:
        logger.warning("[sources] unknown source %r", source)
        return NOT_FOUND
    logger.info("[sources] getting image for %s on %s", label.upper(), provider.value.upper())
    return _ADAPTERS[provider].resolve(ctx, label, hint)


def get_url_for_source(ctx, source, label: str, hint: Optional[str] = None) -> Optional[str]:
    return resolve_source(ctx, source, label, hint).image


__all__ = ["Provider", "SourceResult", "NOT_FOUND", "get_url_for_source", "resolve_source"]
