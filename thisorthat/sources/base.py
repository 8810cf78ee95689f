from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

# transport failures, undecodable bodies and payloads of an unexpected shape
LOOKUP_ERRORS = (requests.RequestException, ValueError, AttributeError, TypeError, KeyError, IndexError)


@dataclass(frozen=True)
class SourceResult:
    image: Optional[str] = None
    external_id: Optional[str] = None
    artist: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.image)


NOT_FOUND = SourceResult()
