from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

TypeEntry = Dict[str, Any]

# Each category is served by exactly one image provider.
PAIR_TYPES: Dict[str, TypeEntry] = {
    "brand": {
        "source": "logodev",
        "value_length": {"min": 1, "max": 2},
        "prompt_supplement": "Use well-known consumer brands or companies with a recognizable logo.",
        "examples": {"option_1": "Coca-Cola", "option_2": "Pepsi"},
        "banned_examples": ["Coca-Cola vs Pepsi", "Apple vs Samsung", "Nike vs Adidas"],
    },
    "animal": {
        "source": "unsplash",
        "value_length": {"min": 1, "max": 2},
        "prompt_supplement": "Use common animals that photograph well.",
        "examples": {"option_1": "Cat", "option_2": "Dog"},
        "banned_examples": ["Cat vs Dog"],
    },
    "food": {
        "source": "unsplash",
        "value_length": {"min": 1, "max": 2},
        "prompt_supplement": "Use dishes, snacks or ingredients people have strong opinions about.",
        "examples": {"option_1": "Pizza", "option_2": "Burger"},
    },
    "person": {
        "source": "wikipedia",
        "value_length": {"min": 2, "max": 3},
        "prompt_supplement": "Use full names of famous people with a Wikipedia article and portrait.",
        "examples": {"option_1": "Albert Einstein", "option_2": "Isaac Newton"},
    },
    "movie": {
        "source": "wikipedia",
        "value_length": {"min": 1, "max": 5},
        "prompt_supplement": "Use exact titles of popular films with a Wikipedia article.",
        "examples": {"option_1": "The Matrix", "option_2": "Inception"},
    },
    "album": {
        "source": "spotify",
        "value_length": {"min": 1, "max": 5},
        "prompt_supplement": "Use exact titles of well-known music albums.",
        "examples": {"option_1": "Thriller", "option_2": "Abbey Road"},
    },
    "topic": {
        "source": "text",
        "value_length": {"min": 1, "max": 3},
        "prompt_supplement": "Use short everyday dilemmas or abstract concepts that need no picture.",
        "examples": {"option_1": "Early Bird", "option_2": "Night Owl"},
    },
}

WORD_RE = re.compile(r"\b[\w'-]+\b", re.UNICODE)


def valid_types() -> List[str]:
    return list(PAIR_TYPES.keys())


def valid_sources() -> List[str]:
    seen: List[str] = []
    for entry in PAIR_TYPES.values():
        if entry["source"] not in seen:
            seen.append(entry["source"])
    return seen


def get_type(name: Optional[str]) -> Optional[TypeEntry]:
    if not name:
        return None
    return PAIR_TYPES.get(name.strip().lower())


def source_for_type(name: str) -> Optional[str]:
    entry = get_type(name)
    return entry["source"] if entry else None


def word_count(value: str) -> int:
    return len(WORD_RE.findall(value or ""))


def fits_value_length(name: str, value: str) -> bool:
    entry = get_type(name)
    if not entry:
        return False
    bounds = entry["value_length"]
    return bounds["min"] <= word_count(value) <= bounds["max"]
