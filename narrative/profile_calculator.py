"""Emergent profile derivation from a character's memory stack."""

from typing import Optional, Sequence

from config.settings import Settings
from models.character import Seed
from models.enums import AbilityLevel, ImprintType
from models.memory import Memory
from models.profile import (
    Ability,
    Belief,
    CharacterState,
    CharacterStats,
    EmergentProfile,
    EmotionalState,
    PersonalityTrait,
    SpecialStat,
    TraitChange,
)
from narrative.classifiers import infer_status
from tools.text_utils import contains_any, matches_word, round_half_up, split_ability_name

OPPOSING_BELIEFS = (
    ("protect", "abandon"),
    ("trust", "distrust"),
    ("hope", "despair"),
    ("freedom", "bondage"),
    ("strength", "weakness"),
    ("love", "hate"),
    ("love", "hatred"),
    ("truth", "lie"),
    ("forgive", "revenge"),
    ("peace", "war"),
)

_NAME_PREFIX = "name:"
_ALIAS_PREFIX = "alias:"

# Temperament keyword -> stat bonuses
_TEMPERAMENT_BIASES = (
    (("quiet", "taciturn", "observant"), {"willpower": 2, "intellect": 1}),
    (("bright", "cheerful", "talkative"), {"social": 2}),
    (("charming", "charismatic"), {"social": 2, "intellect": 1}),
)

# Skill keyword -> stat, first match wins
_SKILL_STATS = (
    (("sword", "martial", "combat", "fight"), "combat"),
    (("medicine", "poison", "study", "scholar"), "intellect"),
    (("will", "endurance", "discipline", "training"), "willpower"),
    (("negotiation", "social", "persuasion"), "social"),
)

_STAT_CAP = 10


def sort_memories(memories: Sequence[Memory]) -> list[Memory]:
    """Order memories by (year, season); ties keep their insertion order."""
    return sorted(memories, key=lambda m: m.sort_key)


def beliefs_conflict(a: str, b: str) -> bool:
    for x, y in OPPOSING_BELIEFS:
        if (matches_word(a, x) and matches_word(b, y)) or (matches_word(a, y) and matches_word(b, x)):
            return True
    return False


class ProfileCalculator:
    """Derives EmergentProfile and CharacterState as pure functions of memories."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def compute(self, seed: Seed, memories: Sequence[Memory]) -> EmergentProfile:
        ordered = sort_memories(memories)
        beliefs = self._beliefs(ordered)
        return EmergentProfile(
            display_name=self._latest_prefixed_name(ordered, _NAME_PREFIX) or seed.codename,
            current_alias=self._latest_prefixed_name(ordered, _ALIAS_PREFIX),
            personality=self._personality(ordered),
            beliefs=beliefs,
            abilities=self._abilities(seed, ordered),
            speech_patterns=self._speech_patterns(ordered),
            inner_conflicts=self._inner_conflicts(beliefs, ordered),
            computed_at=ordered[-1].year if ordered else seed.birth_year,
        )

    def to_character_view(self, seed: Seed, memories: Sequence[Memory], year: int) -> CharacterState:
        """Flatten a profile into the view consumed by the presentation layer."""
        profile = self.compute(seed, memories)
        ordered = sort_memories(memories)
        age = seed.age_in(year)

        top_traits = [t.trait for t in profile.personality[:3]]
        abilities = [f"{a.name} ({a.level.value})" for a in profile.abilities] or [seed.latent_ability]
        motivation = profile.beliefs[0].content if profile.beliefs else "self-discovery"

        appearance = seed.innate_appearance
        for memory in ordered:
            for imprint in memory.imprints:
                if imprint.appearance_change:
                    appearance = imprint.appearance_change

        return CharacterState(
            id=seed.id,
            name=profile.display_name,
            alias=profile.current_alias,
            age=age,
            birth_year=seed.birth_year,
            status=infer_status(
                age,
                ordered[-self.settings.recent_memory_count:],
                self.settings.childhood_age_limit,
                self.settings.training_age_limit,
            ),
            stats=self.compute_stats(seed, ordered),
            emotional_state=self._emotional_state(ordered, year),
            background=seed.initial_condition,
            personality=", ".join(top_traits) or seed.temperament,
            motivation=motivation,
            abilities=abilities,
            weakness=seed.wound,
            color=seed.color,
            appearance=appearance,
        )

    @staticmethod
    def compute_stats(seed: Seed, memories: Sequence[Memory]) -> CharacterStats:
        stats = CharacterStats(special=SpecialStat(name=split_ability_name(seed.latent_ability)))

        for keywords, bonuses in _TEMPERAMENT_BIASES:
            if contains_any(seed.temperament, keywords):
                for stat, bonus in bonuses.items():
                    setattr(stats, stat, getattr(stats, stat) + bonus)

        for memory in memories:
            for imprint in memory.imprints:
                if imprint.type != ImprintType.SKILL:
                    continue
                delta = round_half_up(imprint.intensity * 0.05)
                for keywords, stat in _SKILL_STATS:
                    if contains_any(imprint.content, keywords):
                        setattr(stats, stat, min(_STAT_CAP, getattr(stats, stat) + delta))
                        break
                stats.special.value = min(_STAT_CAP, stats.special.value + round_half_up(delta * 0.5))

        return stats

    # --- Extraction --------------------------------------------------------

    @staticmethod
    def _personality(memories: Sequence[Memory]) -> list[PersonalityTrait]:
        traits: dict[str, PersonalityTrait] = {}
        for memory in memories:
            for imprint in memory.imprints:
                if imprint.type not in (ImprintType.INSIGHT, ImprintType.EMOTION):
                    continue
                existing = traits.get(imprint.content)
                if existing is None:
                    traits[imprint.content] = PersonalityTrait(
                        trait=imprint.content,
                        strength=min(100, imprint.intensity),
                        origin=imprint.source,
                        year_formed=memory.year,
                    )
                    continue
                change = round_half_up(imprint.intensity * 0.3)
                existing.strength = min(100, existing.strength + change)
                existing.history.append(TraitChange(year=memory.year, change=change, reason=imprint.source))
        return sorted(traits.values(), key=lambda t: t.strength, reverse=True)

    def _beliefs(self, memories: Sequence[Memory]) -> list[Belief]:
        beliefs: dict[str, Belief] = {}
        for memory in memories:
            for imprint in memory.imprints:
                if imprint.type != ImprintType.BELIEF:
                    continue
                existing = beliefs.get(imprint.content)
                if existing is None:
                    beliefs[imprint.content] = Belief(
                        content=imprint.content,
                        conviction=min(100, imprint.intensity),
                        formed_year=memory.year,
                    )
                else:
                    existing.conviction = min(100, existing.conviction + round_half_up(imprint.intensity * 0.2))

        threshold = self.settings.belief_challenge_threshold
        items = list(beliefs.values())
        for i, first in enumerate(items):
            for second in items[i + 1:]:
                if (
                    first.conviction > threshold
                    and second.conviction > threshold
                    and beliefs_conflict(first.content, second.content)
                ):
                    first.challenged = True
                    second.challenged = True
        return sorted(items, key=lambda b: b.conviction, reverse=True)

    @staticmethod
    def _abilities(seed: Seed, memories: Sequence[Memory]) -> list[Ability]:
        abilities: dict[str, Ability] = {}
        latent = split_ability_name(seed.latent_ability)
        if latent:
            abilities[latent] = Ability(
                name=latent, level=AbilityLevel.DISCOVERED, discovered_year=seed.birth_year,
            )

        for memory in memories:
            for imprint in memory.imprints:
                if imprint.type != ImprintType.SKILL:
                    continue
                milestone = f"{memory.year}: {imprint.source or memory.content}"
                existing = abilities.get(imprint.content)
                if existing is None:
                    abilities[imprint.content] = Ability(
                        name=imprint.content,
                        level=AbilityLevel.PRACTICING if imprint.intensity >= 60 else AbilityLevel.DISCOVERED,
                        discovered_year=memory.year,
                        milestones=[milestone],
                    )
                    continue
                existing.milestones.append(milestone)
                if existing.level == AbilityLevel.DISCOVERED and imprint.intensity >= 40:
                    existing.level = AbilityLevel.PRACTICING
                elif existing.level == AbilityLevel.PRACTICING and imprint.intensity >= 70:
                    existing.level = AbilityLevel.MASTERED
        return list(abilities.values())

    @staticmethod
    def _latest_prefixed_name(memories: Sequence[Memory], prefix: str) -> str:
        for memory in reversed(memories):
            for imprint in reversed(memory.imprints):
                if imprint.type == ImprintType.NAME and imprint.content.lower().startswith(prefix):
                    return imprint.content[len(prefix):].strip()
        return ""

    @staticmethod
    def _speech_patterns(memories: Sequence[Memory]) -> list[str]:
        patterns: list[str] = []
        for memory in memories:
            for imprint in memory.imprints:
                if imprint.type == ImprintType.SPEECH and imprint.content not in patterns:
                    patterns.append(imprint.content)
        return patterns

    @staticmethod
    def _inner_conflicts(beliefs: Sequence[Belief], memories: Sequence[Memory]) -> list[str]:
        conflicts = []
        challenged = [b for b in beliefs if b.challenged]
        for i in range(0, len(challenged) - 1, 2):
            conflicts.append(f'"{challenged[i].content}" vs "{challenged[i + 1].content}"')
        for memory in memories:
            for imprint in memory.imprints:
                if imprint.type == ImprintType.TRAUMA and imprint.intensity >= 60:
                    conflicts.append(f"Root wound: {imprint.content}")
        return conflicts

    @staticmethod
    def _emotional_state(memories: Sequence[Memory], year: int) -> EmotionalState:
        strongest = None
        for memory in memories:
            if memory.year not in (year, year - 1):
                continue
            for imprint in memory.imprints:
                if imprint.type == ImprintType.EMOTION and (
                    strongest is None or imprint.intensity > strongest.intensity
                ):
                    strongest = imprint
        if strongest is None:
            return EmotionalState()
        return EmotionalState(
            primary=strongest.content, intensity=strongest.intensity, trigger=strongest.source,
        )
