"""Detail Agent: expands a single simulated event into a full prose scene."""

import logging
from typing import Optional, Sequence

from agents.base_agent import BaseAgent
from config.exceptions import ResponseParseError
from config.settings import Settings
from models.character import Seed
from models.enums import GenerationKind
from models.memory import Memory, NarrativeEvent
from models.profile import EmergentProfile, EmotionalState
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)


class DetailAgent(BaseAgent):
    """Turns an event summary into a scene using the high-quality model."""

    prompt_name = "detail"

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(llm_client, settings)

    async def expand_event(
        self,
        seed: Seed,
        profile: Optional[EmergentProfile],
        event: NarrativeEvent,
        recent_memories: Sequence[Memory] = (),
        emotional_state: Optional[EmotionalState] = None,
        related_names: Optional[dict[str, str]] = None,
    ) -> dict:
        """Expand one event.

        Args:
            seed: The character the event belongs to.
            profile: Current emergent profile, if one has been computed.
            event: The event to expand.
            recent_memories: Memories shown to the writer as background.
            emotional_state: Emotion at the time of the event.
            related_names: Display names keyed by character id.

        Returns:
            Dict with keys: content, atmosphere, inner_thought, char_count.
        """
        emotion = emotional_state or EmotionalState()
        if event.emotional_shift:
            emotion = EmotionalState(
                primary=str(event.emotional_shift.get("primary", emotion.primary)),
                intensity=int(event.emotional_shift.get("intensity", emotion.intensity) or 0),
                trigger=str(event.emotional_shift.get("trigger", "")),
            )

        names = related_names or {}
        related = ""
        if event.related_characters:
            related = "Characters involved: " + ", ".join(
                names.get(cid, cid) for cid in event.related_characters
            ) + "\n"

        name = profile.display_name if profile and profile.display_name else (seed.name or seed.codename)
        alias = f" ({profile.current_alias})" if profile and profile.current_alias else ""
        personality = ", ".join(t.trait for t in profile.personality[:3]) if profile else ""
        abilities = ", ".join(a.name for a in profile.abilities) if profile else ""

        request = self._section(
            "Scene Request",
            name=name,
            alias=alias,
            age=seed.age_in(event.year),
            emotion=emotion.primary,
            emotion_intensity=emotion.intensity,
            personality=personality or seed.temperament,
            abilities=abilities or "none",
            year=event.year,
            season=event.season.value,
            title=event.title,
            summary=event.summary,
            importance=event.importance.value,
            tags=", ".join(event.tags) or "none",
            related=related,
            memories="\n".join(f"- {m.content}" for m in list(recent_memories)[-5:]) or "(none)",
        )
        prompt = f"{request}\n\n[Output: JSON only]\n{self._section('Scene Output Format')}"

        logger.info(f"Expanding event {event.id} ({event.title})...")
        try:
            data = await self.llm.generate_json(self.system_prompt, prompt, GenerationKind.DETAIL)
        except ResponseParseError as e:
            # No JSON at all: treat the whole reply as the scene
            logger.warning(f"Scene for {event.id} was not JSON, using raw text")
            content = e.raw_response.strip()
            return {"content": content, "atmosphere": "", "inner_thought": "", "char_count": len(content)}

        content = str(data.get("content") or "").replace("\\n", "\n").strip()
        return {
            "content": content,
            "atmosphere": str(data.get("atmosphere") or ""),
            "inner_thought": str(data.get("innerThought") or data.get("inner_thought") or ""),
            "char_count": len(content),
        }
