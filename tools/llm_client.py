"""Generation response parsing utilities.

Responses pass three tiers: extract a JSON candidate from the free text,
parse it (repairing common mistakes on failure), and finally fall back to a
minimal safe record so a malformed response never halts the timeline.
"""

import json
import logging
import re
from typing import Iterable

from pydantic import ValidationError

from models.responses import YearResponse, fallback_year_response

logger = logging.getLogger(__name__)

# Precompiled regexes for JSON extraction and repair
_JSON_FENCE_RE = re.compile(r"```json\s*\n?(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)
_PLAIN_FENCE_RE = re.compile(r"```\s*\n?([\[{].*?)\n?\s*```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)(\w+)(\s*:)")

# Lenient decoder that allows control characters (raw newlines, tabs) inside
# JSON strings; LLMs frequently produce these instead of proper \n escapes.
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _try_loads(text: str):
    """Try parsing JSON, first strictly then leniently."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return _LENIENT_DECODER.decode(text)
    except json.JSONDecodeError:
        pass
    raise json.JSONDecodeError("", text, 0)


def _ensure_dict(result) -> dict:
    """Ensure the parsed JSON result is a dict.

    LLMs sometimes return a JSON array when a dict is expected.
    If we get a list, use the first dict element; otherwise wrap it.
    """
    if isinstance(result, dict):
        return result
    if isinstance(result, list):
        for item in result:
            if isinstance(item, dict):
                return item
        return {"items": result}
    return {"value": result}


def extract_json(text: str) -> str:
    """Pull the most likely JSON object out of free text.

    Order: a ```json fence, a plain fence whose body starts with { or [,
    the span from the first '{' to the last '}', else the trimmed text.
    """
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()

    match = _PLAIN_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]

    return text.strip()


def repair_json(text: str) -> str:
    """Apply mechanical repairs: drop trailing commas and quote bare keys."""
    repaired = _TRAILING_COMMA_RE.sub(r"\1", text)
    repaired = _BARE_KEY_RE.sub(r'\1"\2"\3', repaired)
    return repaired


def parse_json_response(text: str) -> dict:
    """Extract and parse JSON from response text, repairing it if needed.

    Always returns a dict; lists are normalized via _ensure_dict.

    Raises:
        ValueError: If no JSON object can be recovered.
    """
    candidate = extract_json(text or "")

    try:
        return _ensure_dict(_try_loads(candidate))
    except json.JSONDecodeError:
        pass

    try:
        result = _ensure_dict(_try_loads(repair_json(candidate)))
        logger.debug("Recovered malformed JSON after repair")
        return result
    except json.JSONDecodeError:
        pass

    raise ValueError(f"Failed to parse JSON from response: {(text or '')[:200]}...")


def parse_year_response(text: str) -> YearResponse:
    """Parse one character's year response, falling back on any failure."""
    try:
        data = parse_json_response(text)
        if "events" not in data:
            raise ValueError("response has no events field")
        return YearResponse.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.warning("Unrecoverable year response, using fallback: %s", str(e)[:200])
        return fallback_year_response()


def parse_batched_response(text: str, character_ids: Iterable[str]) -> dict[str, YearResponse]:
    """Parse a multi-character response keyed under ``characters``.

    Each character is validated on its own, so one malformed entry only
    costs that character its step. Missing characters receive the fallback.
    """
    character_ids = list(character_ids)
    try:
        data = parse_json_response(text)
    except ValueError as e:
        logger.warning("Unrecoverable batched response, using fallback for all: %s", str(e)[:200])
        return {cid: fallback_year_response() for cid in character_ids}

    characters = data.get("characters")
    if not isinstance(characters, dict):
        # A single-character response may come back unwrapped
        if len(character_ids) == 1 and "events" in data:
            characters = {character_ids[0]: data}
        else:
            characters = {}

    results: dict[str, YearResponse] = {}
    for cid in character_ids:
        entry = characters.get(cid)
        if not isinstance(entry, dict) or "events" not in entry:
            logger.warning("Batched response missing character %s, using fallback", cid)
            results[cid] = fallback_year_response()
            continue
        try:
            results[cid] = YearResponse.model_validate(entry)
        except ValidationError as e:
            logger.warning("Invalid entry for %s, using fallback: %s", cid, str(e)[:200])
            results[cid] = fallback_year_response()
    return results
