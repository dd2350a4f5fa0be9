"""Claude Agent SDK wrapper used as the generation service."""

import asyncio
import logging
import os
import shutil
from typing import Callable, Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
    CLINotFoundError,
)

from config.settings import Settings
from config.exceptions import (
    GenerationError,
    GenerationOverloadedError,
    GenerationRateLimitError,
    GenerationTimeoutError,
    MissingCredentialsError,
    ResponseParseError,
)
from models.enums import GenerationKind
from tools.llm_client import parse_json_response

logger = logging.getLogger(__name__)

# Allow launching Agent SDK even when running inside a Claude Code session.
# The SDK checks for this env var and refuses to start if set.
os.environ.pop("CLAUDECODE", None)

_RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "429", "too many requests")
_OVERLOAD_MARKERS = ("overloaded", "529", "503", "service unavailable")
_TIMEOUT_MARKERS = ("timed out", "timeout")


def classify_error(message: str) -> type[GenerationError]:
    """Map an SDK failure message onto the generation error taxonomy."""
    lowered = message.lower()
    if any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
        return GenerationRateLimitError
    if any(marker in lowered for marker in _OVERLOAD_MARKERS):
        return GenerationOverloadedError
    if any(marker in lowered for marker in _TIMEOUT_MARKERS):
        return GenerationTimeoutError
    return GenerationError


class AgentSDKClient:
    """Generation service backed by claude_agent_sdk.query().

    Each call names a GenerationKind which selects the model. Rate-limit and
    overload failures are retried with linear backoff; everything else
    propagates to the caller.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.total_calls = 0
        self.total_cost_usd = 0.0
        self.calls_by_kind: dict[str, int] = {kind.value: 0 for kind in GenerationKind}

    def model_for(self, kind: GenerationKind) -> str:
        if kind == GenerationKind.DETAIL:
            return self.settings.llm_model_detail
        if kind == GenerationKind.STRUCTURE:
            return self.settings.llm_model_structure
        return self.settings.llm_model_simulation

    def ensure_credentials(self) -> None:
        """Fail fast when neither an API key nor the Claude Code CLI is available.

        Raises:
            MissingCredentialsError: If no credential source is found.
        """
        if self.settings.anthropic_api_key or os.environ.get("ANTHROPIC_API_KEY"):
            return
        if shutil.which("claude"):
            return
        raise MissingCredentialsError(
            "No ANTHROPIC_API_KEY set and Claude Code CLI not found on PATH"
        )

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        on_event: Optional[Callable[[dict], None]] = None,
    ) -> str:
        """Send a single request and return the text result.

        Args:
            system_prompt: System message guiding the model's behavior.
            user_prompt: User message content.
            model: Model name override. Defaults to the simulation model.
            on_event: Optional callback fired with progress events:
                      {"type": "text", "text": str}  -> first text chunk
                      {"type": "result"}             -> final result ready

        Returns:
            The model's text response.

        Raises:
            GenerationError: Subclass chosen by classify_error().
            MissingCredentialsError: If the CLI cannot be started.
        """
        model = model or self.settings.llm_model_simulation
        self.total_calls += 1

        logger.debug("AgentSDK call: model=%s, prompt=%d chars", model, len(user_prompt))

        options_kwargs = {
            "system_prompt": system_prompt,
            "model": model,
            "max_turns": 1,
        }
        if self.settings.anthropic_api_key:
            options_kwargs["env"] = {"ANTHROPIC_API_KEY": self.settings.anthropic_api_key}

        result_text = ""
        error_text = ""
        text_fired = False
        try:
            # Do NOT return/break early from inside the async for loop: query()
            # uses anyio cancel scopes and must be exhausted in the same task.
            async for message in query(
                prompt=user_prompt,
                options=ClaudeAgentOptions(**options_kwargs),
            ):
                if isinstance(message, ResultMessage):
                    if message.is_error:
                        error_text = message.result or message.subtype or "error result"
                    else:
                        result_text = message.result or result_text
                    if message.total_cost_usd:
                        self.total_cost_usd += message.total_cost_usd
                    logger.debug(
                        "AgentSDK result: %d chars, cost=$%s",
                        len(result_text),
                        message.total_cost_usd,
                    )
                    if on_event:
                        on_event({"type": "result"})
                elif isinstance(message, AssistantMessage):
                    for block in message.content:
                        text = getattr(block, "text", None)
                        if text:
                            if on_event and not text_fired:
                                text_fired = True
                                on_event({"type": "text", "text": text})
                            if not result_text:
                                result_text += text
        except CLINotFoundError as e:
            raise MissingCredentialsError(f"Claude Code CLI not available: {e}") from e
        except Exception as e:
            error_cls = classify_error(str(e))
            raise error_cls(f"Agent SDK query failed: {e}") from e

        if error_text:
            error_cls = classify_error(error_text)
            raise error_cls(f"Agent SDK returned an error: {error_text}")

        if not result_text:
            logger.warning("AgentSDK returned no content")

        return result_text

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        kind: GenerationKind = GenerationKind.SIMULATION,
    ) -> str:
        """Run one generation call of the given kind with retry and backoff.

        Rate limits wait ``rate_limit_backoff_seconds * attempt``, overloads
        wait ``overload_backoff_seconds * attempt``. After the last attempt
        the error propagates.
        """
        model = self.model_for(kind)
        self.calls_by_kind[kind.value] = self.calls_by_kind.get(kind.value, 0) + 1
        max_attempts = self.settings.generation_max_retries

        for attempt in range(1, max_attempts + 1):
            try:
                return await self.chat(system_prompt, user_prompt, model=model)
            except GenerationRateLimitError:
                if attempt >= max_attempts:
                    raise
                delay = self.settings.rate_limit_backoff_seconds * attempt
                logger.warning(
                    "Rate limited (%s, attempt %d/%d), retrying in %.1fs",
                    kind.value, attempt, max_attempts, delay,
                )
            except GenerationOverloadedError:
                if attempt >= max_attempts:
                    raise
                delay = self.settings.overload_backoff_seconds * attempt
                logger.warning(
                    "Service overloaded (%s, attempt %d/%d), retrying in %.1fs",
                    kind.value, attempt, max_attempts, delay,
                )
            await asyncio.sleep(delay)

        raise GenerationError("Generation retries exhausted", {"kind": kind.value})

    async def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        kind: GenerationKind = GenerationKind.STRUCTURE,
    ) -> dict:
        """Generate and parse the response as a JSON object.

        Raises:
            ResponseParseError: If response cannot be parsed as JSON.
        """
        text = await self.generate(system_prompt, user_prompt, kind)
        try:
            return parse_json_response(text)
        except ValueError as e:
            raise ResponseParseError(str(e), raw_response=text) from e

    def get_usage_summary(self) -> dict:
        """Return call count and cost statistics."""
        return {
            "total_calls": self.total_calls,
            "calls_by_kind": dict(self.calls_by_kind),
            "total_cost_usd": round(self.total_cost_usd, 4),
        }
