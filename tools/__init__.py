"""Tools package: Agent SDK client, response parsing, and text helpers."""

from tools.agent_sdk_client import AgentSDKClient, classify_error
from tools.llm_client import (
    extract_json,
    repair_json,
    parse_json_response,
    parse_year_response,
    parse_batched_response,
)
from tools.text_utils import (
    round_half_up,
    clamp,
    contains_any,
    matches_word,
    truncate,
    split_ability_name,
)

__all__ = [
    "AgentSDKClient",
    "classify_error",
    "extract_json",
    "repair_json",
    "parse_json_response",
    "parse_year_response",
    "parse_batched_response",
    "round_half_up",
    "clamp",
    "contains_any",
    "matches_word",
    "truncate",
    "split_ability_name",
]
