"""
Candidate pair generation.

The language model is only ever asked for labels. Which provider serves a
category is fixed by the taxonomy, so `source` in the model output is
advisory and gets overwritten.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from thisorthat.errors import BadInput, GeneratorUnavailable, ValidationFailure
from thisorthat.taxonomy import PAIR_TYPES, fits_value_length, get_type

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-2024-08-06"

PAIRS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "pairs": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string"},
                    "source": {"type": "string"},
                    "option_1": {"type": "string"},
                    "option_2": {"type": "string"},
                },
                "required": ["type", "source", "option_1", "option_2"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["pairs"],
    "additionalProperties": False,
}


class GeneratedPair(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    type: str = Field(min_length=1)
    source: str
    option_1: str = Field(min_length=1)
    option_2: str = Field(min_length=1)


class PairsResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pairs: List[GeneratedPair]


@dataclass
class CandidatePair:
    type: str
    source: str
    option_1_value: str
    option_2_value: str

    def to_row(self) -> Dict[str, str]:
        return {
            "type": self.type,
            "source": self.source,
            "option_1_value": self.option_1_value,
            "option_2_value": self.option_2_value,
        }


class OpenAIPairClient:
    """`complete(prompt, schema) -> dict` on top of chat completions with structured output."""

    def __init__(self, api_key: str, model: Optional[str] = None, temperature: float = 0.9, timeout: float = 60):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.temperature = temperature
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        if self._client is None:
            import openai

            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def complete(self, prompt: str, schema: Dict[str, Any]) -> Dict[str, Any]:
        import openai

        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "pairs", "schema": schema, "strict": True},
                },
                timeout=self.timeout,
            )
        except openai.OpenAIError as exc:
            raise GeneratorUnavailable(f"Pair generator request failed: {exc}") from exc

        content = resp.choices[0].message.content or ""
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise ValidationFailure("Pair generator returned non-JSON output", details=content[:500]) from exc


def _format_pair(pair) -> str:
    return f"- {pair.type} ({pair.source}): {pair.option_1_value} vs {pair.option_2_value}"


def _example_json(name: str, entry: Dict[str, Any]) -> str:
    return json.dumps(
        {
            "type": name,
            "source": entry["source"],
            "option_1": entry["examples"]["option_1"],
            "option_2": entry["examples"]["option_2"],
        },
        indent=2,
    )


_BANNED_WARNING = (
    "IMPORTANT: If you generate any of these banned examples, the system will reject your response. "
    "You must generate completely new and different pairs that are not similar to any of these banned examples."
)


def _scoped_prompt(category: str, entry: Dict[str, Any], count: int) -> str:
    bounds = entry["value_length"]
    prompt = f"""Generate a set of {count} pairs of type '{category}' with source '{entry['source']}' of two contrasting options each for a 'this or that' game.

IMPORTANT: Each pair MUST follow this EXACT format:
{{
  "type": "{category}",
  "source": "{entry['source']}",
  "option_1": "value1",
  "option_2": "value2"
}}

Rules:
- Option values must be {bounds['min']}-{bounds['max']} words each
- {entry['prompt_supplement']}

Here is an example pair for type '{category}':
{_example_json(category, entry)}"""
    banned = entry.get("banned_examples")
    if banned:
        lines = "\n".join(f"- {b}" for b in banned)
        prompt += (
            "\n\nCRITICAL: The following examples are STRICTLY PROHIBITED and MUST NOT be generated under any circumstances:\n"
            f"{lines}\n\n{_BANNED_WARNING}"
        )
    return prompt


def _unscoped_prompt(count: int) -> str:
    kinds = ", ".join(f"{name} (source: {entry['source']})" for name, entry in PAIR_TYPES.items())
    rules = []
    for name, entry in PAIR_TYPES.items():
        bounds = entry["value_length"]
        rule = (
            f"- {name}:\n"
            f"  * Source: {entry['source']}\n"
            f"  * Option values: {bounds['min']}-{bounds['max']} words each\n"
            f"  * {entry['prompt_supplement']}\n"
            f"  * Example:\n{_example_json(name, entry)}"
        )
        if entry.get("banned_examples"):
            banned = "\n".join(f"    - {b}" for b in entry["banned_examples"])
            rule += f"\n  * CRITICAL: The following examples are STRICTLY PROHIBITED and MUST NOT be generated:\n{banned}"
        rules.append(rule)

    prompt = f"""Generate a set of {count} pairs of two contrasting options each for a 'this or that' game. The pairs should be of various types: {kinds}.

IMPORTANT: Each pair MUST follow this EXACT format:
{{
  "type": "type_name",
  "source": "source_name",
  "option_1": "value1",
  "option_2": "value2"
}}

Rules for each type:
""" + "\n\n".join(rules)
    if any(entry.get("banned_examples") for entry in PAIR_TYPES.values()):
        prompt += f"\n\n{_BANNED_WARNING}"
    return prompt


def build_prompt(category: Optional[str], sample: Iterable, rejected: Iterable, count: int) -> str:
    entry = get_type(category) if category else None
    body = _scoped_prompt(category, entry, count) if entry else _unscoped_prompt(count)

    existing = "\n".join(_format_pair(p) for p in sample) or "(none yet)"
    prompt = (
        f"{body}\n\n"
        "Here are some example pairs from the database to help you understand the format "
        f"and avoid generating similar pairs:\n{existing}"
    )

    rejected = list(rejected)
    if rejected:
        dupes = "\n".join(_format_pair(p) for p in rejected)
        prompt += (
            "\n\nIMPORTANT: The following pairs were already in the database. "
            f"Please generate completely different pairs:\n{dupes}"
        )
    prompt += "\n\nNote: The system will automatically check for duplicates before saving any new pairs."
    return prompt


def parse_candidates(raw: Any, category: Optional[str]) -> List[CandidatePair]:
    try:
        parsed = PairsResponse.model_validate(raw)
    except ValidationError as exc:
        raise ValidationFailure(
            "Pair generator output does not match the expected schema",
            details=[e.get("msg") for e in exc.errors()],
        ) from exc

    scoped = category.strip().lower() if category and get_type(category) else None
    out: List[CandidatePair] = []
    for item in parsed.pairs:
        kind = scoped or item.type.lower()
        kind_entry = get_type(kind)
        if not kind_entry:
            logger.warning("[pairs] dropping candidate with unknown type %r: %s vs %s", item.type, item.option_1, item.option_2)
            continue
        if not (fits_value_length(kind, item.option_1) and fits_value_length(kind, item.option_2)):
            logger.warning("[pairs] dropping %s candidate outside word range: %s vs %s", kind, item.option_1, item.option_2)
            continue
        out.append(CandidatePair(kind, kind_entry["source"], item.option_1, item.option_2))
    return out


def generate_candidates(ctx, category: Optional[str], sample: Iterable, rejected: Iterable, count: int) -> List[CandidatePair]:
    if category and not get_type(category):
        raise BadInput(f"Unknown pair type: {category}")
    if ctx.generator is None:
        raise GeneratorUnavailable("No pair generator configured (OPENAI_API_KEY missing)")

    prompt = build_prompt(category, sample, rejected, count)
    raw = ctx.generator.complete(prompt, PAIRS_SCHEMA)
    candidates = parse_candidates(raw, category)
    logger.info("[pairs] generator returned %d usable candidates", len(candidates))
    return candidates
