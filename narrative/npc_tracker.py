"""NPC lifecycle tracking from generator-reported interactions."""

import logging
from typing import Optional, Sequence

from models.enums import NPCLifecycle
from models.memory import NarrativeEvent
from models.npc import NPC, NPCAppearance, NPCInteraction, NPCPool, NPCRelationship
from narrative.classifiers import classify_sentiment
from tools.text_utils import truncate

logger = logging.getLogger(__name__)

# Minimum appearances per lifecycle stage; core is manual only
LIFECYCLE_THRESHOLDS = (
    (NPCLifecycle.SIGNIFICANT, 4),
    (NPCLifecycle.RECURRING, 2),
    (NPCLifecycle.ENCOUNTER, 1),
)

NPC_KEYWORDS = (
    "mentor", "master", "elder", "sage", "hermit",
    "rival", "competitor",
    "ally", "companion", "friend", "brother", "sister",
    "enemy", "nemesis", "demon", "warlord", "cult leader",
    "guardian", "protector", "bodyguard",
    "messenger", "envoy", "shadow", "assassin", "tracker",
    "merchant", "apothecary", "blacksmith",
    "informant", "spy",
    "bandit", "swordsman", "warrior",
)


class NPCTracker:
    """Resolves interactions against the pool and advances NPC lifecycles.

    The tracker mutates the pool it is given. New NPCs get sequential ids
    ``npc-001``, ``npc-002`` ... taken from ``pool.next_id``.
    """

    def __init__(self, pool: NPCPool):
        self.pool = pool

    def process_interactions(
        self,
        interactions: Sequence[NPCInteraction],
        character_id: str,
        events: Sequence[NarrativeEvent],
    ) -> list[NPC]:
        """Apply one character's interactions for a step; returns touched NPCs.

        Each interaction is dated by the event it references, so multi-year
        steps record the year the meeting happened.
        """
        touched: list[NPC] = []
        for interaction in interactions:
            if not events:
                continue
            index = interaction.event_index
            event = events[index] if 0 <= index < len(events) else events[0]

            npc = self.match_existing(interaction.npc_alias, interaction.npc_name)
            if npc is not None:
                self._update(npc, interaction, character_id, event)
                touched.append(npc)
                continue

            if self.pool.is_full:
                logger.debug(f"NPC pool full, dropping '{interaction.npc_alias}'")
                continue
            if not interaction.is_new:
                logger.debug(f"NPC '{interaction.npc_alias}' reported as known but not found, creating")
            npc = self._create(interaction, character_id, event)
            self.pool.npcs.append(npc)
            touched.append(npc)
        return touched

    def match_existing(self, alias: str, name: Optional[str] = None) -> Optional[NPC]:
        """Find an NPC by exact name, then by alias equality or containment."""
        if name:
            for npc in self.pool.npcs:
                if npc.name == name:
                    return npc
        if alias:
            for npc in self.pool.npcs:
                if npc.alias and (npc.alias == alias or alias in npc.alias or npc.alias in alias):
                    return npc
        return None

    def detect_from_event(self, event: NarrativeEvent) -> list[dict]:
        """Keyword scan for NPC mentions the generator did not report.

        Returns ``[{"alias", "role"}]`` for keywords with no matching pool
        entry; the alias is the keyword with a little surrounding text.
        Results are diagnostic only and never create pool entries.
        """
        text = f"{event.title} {event.summary}"
        lowered = text.lower()
        detected: list[dict] = []
        for keyword in NPC_KEYWORDS:
            idx = lowered.find(keyword)
            if idx == -1:
                continue
            known = any(
                keyword in npc.alias.lower() or (npc.name and npc.name in text)
                for npc in self.pool.npcs
            )
            if known:
                continue
            alias = text[max(0, idx - 10):idx + len(keyword) + 10].strip()
            if not any(d["alias"] == alias for d in detected):
                detected.append({"alias": alias, "role": keyword})
        return detected

    def promote_to_core(self, npc_id: str) -> NPC:
        for npc in self.pool.npcs:
            if npc.id == npc_id:
                npc.lifecycle = NPCLifecycle.CORE
                logger.info(f"NPC {npc_id} promoted to core")
                return npc
        raise KeyError(f"Unknown NPC id: {npc_id}")

    def pool_summary(self, character_id: Optional[str] = None, limit: int = 10) -> str:
        """Prompt-ready summary of the most frequently seen NPCs."""
        active = sorted(
            (n for n in self.pool.npcs if n.lifecycle != NPCLifecycle.MENTION),
            key=lambda n: n.total_appearances,
            reverse=True,
        )[:limit]

        lines = []
        for npc in active:
            relation = npc.relationship_with(character_id) if character_id else None
            relation_text = f", {relation.relationship}" if relation else ""
            last_year = npc.last_seen_year if npc.appearances else "?"
            lines.append(
                f"- {npc.name or npc.alias} ({npc.role}): {truncate(npc.description)}"
                f"{relation_text}. Last seen: year {last_year}."
            )
        return "\n".join(lines)

    # --- Internals ---------------------------------------------------------

    def _create(self, interaction: NPCInteraction, character_id: str, event: NarrativeEvent) -> NPC:
        npc_id = f"npc-{self.pool.next_id:03d}"
        self.pool.next_id += 1
        return NPC(
            id=npc_id,
            lifecycle=NPCLifecycle.ENCOUNTER,
            role=interaction.role,
            name=interaction.npc_name,
            alias=interaction.npc_alias,
            description=interaction.interaction,
            appearances=[self._appearance(interaction, event)],
            first_seen_year=event.year,
            last_seen_year=event.year,
            total_appearances=1,
            related_characters=[NPCRelationship(
                character_id=character_id,
                relationship=interaction.interaction,
                sentiment=classify_sentiment(interaction.role),
            )],
        )

    def _update(
        self, npc: NPC, interaction: NPCInteraction, character_id: str, event: NarrativeEvent,
    ) -> None:
        npc.appearances.append(self._appearance(interaction, event))
        npc.total_appearances += 1
        npc.first_seen_year = min(npc.first_seen_year, event.year)
        npc.last_seen_year = max(npc.last_seen_year, event.year)
        if interaction.npc_name and not npc.name:
            npc.name = interaction.npc_name

        relation = npc.relationship_with(character_id)
        if relation is not None:
            relation.relationship = interaction.interaction
        else:
            npc.related_characters.append(NPCRelationship(
                character_id=character_id,
                relationship=interaction.interaction,
                sentiment=classify_sentiment(interaction.role),
            ))

        self._update_lifecycle(npc)

    @staticmethod
    def _appearance(interaction: NPCInteraction, event: NarrativeEvent) -> NPCAppearance:
        return NPCAppearance(
            year=event.year,
            season=event.season,
            event_id=event.id,
            role=interaction.role,
            interaction=interaction.interaction,
        )

    @staticmethod
    def _update_lifecycle(npc: NPC) -> None:
        if npc.lifecycle == NPCLifecycle.CORE:
            return
        for stage, minimum in LIFECYCLE_THRESHOLDS:
            if npc.total_appearances >= minimum:
                npc.lifecycle = stage
                return
