"""Pure heuristic classifiers shared by the grammar, profile and NPC layers.

Everything here is a plain function of its inputs so the state machines that
call them stay deterministic and easy to test.
"""

from typing import Iterable, Sequence

from models.enums import BeatType, CharacterStatus, ImprintType, Importance
from models.memory import Memory, NarrativeEvent
from tools.text_utils import contains_any, round_half_up

# ---------------------------------------------------------------------------
# Beat detection
# ---------------------------------------------------------------------------

TAG_TO_BEAT: dict[str, tuple[BeatType, ...]] = {
    "meeting": (BeatType.INCITING,),
    "discovery": (BeatType.INCITING,),
    "calling": (BeatType.INCITING,),
    "fate": (BeatType.INCITING,),
    "conflict": (BeatType.COMPLICATION,),
    "ordeal": (BeatType.COMPLICATION,),
    "betrayal": (BeatType.COMPLICATION, BeatType.REVERSAL),
    "loss": (BeatType.COMPLICATION, BeatType.CRISIS),
    "twist": (BeatType.REVERSAL,),
    "truth": (BeatType.REVERSAL,),
    "exposure": (BeatType.REVERSAL,),
    "change": (BeatType.REVERSAL,),
    "crisis": (BeatType.CRISIS,),
    "desperate": (BeatType.CRISIS,),
    "decision": (BeatType.CRISIS,),
    "duel": (BeatType.CLIMAX,),
    "battle": (BeatType.CLIMAX,),
    "final battle": (BeatType.CLIMAX,),
    "victory": (BeatType.CLIMAX, BeatType.RESOLUTION),
    "overcome": (BeatType.CLIMAX,),
    "resolve": (BeatType.RESOLUTION,),
    "reconciliation": (BeatType.RESOLUTION,),
    "return": (BeatType.RESOLUTION,),
    "realization": (BeatType.RESOLUTION,),
    "growth": (BeatType.RESOLUTION,),
    "death": (BeatType.CLIMAX, BeatType.CRISIS),
    "revenge": (BeatType.CLIMAX,),
    "salvation": (BeatType.RESOLUTION,),
    "corruption": (BeatType.COMPLICATION, BeatType.CRISIS),
    "temptation": (BeatType.COMPLICATION,),
    "atonement": (BeatType.RESOLUTION,),
}

IMPORTANCE_BEAT_AFFINITY: dict[Importance, tuple[BeatType, ...]] = {
    Importance.TURNING_POINT: (BeatType.INCITING, BeatType.CLIMAX, BeatType.REVERSAL),
    Importance.MAJOR: (BeatType.COMPLICATION, BeatType.CRISIS, BeatType.REVERSAL),
    Importance.MINOR: (BeatType.COMPLICATION,),
}

BEAT_TENSION: dict[BeatType, int] = {
    BeatType.INCITING: 10,
    BeatType.COMPLICATION: 8,
    BeatType.REVERSAL: 12,
    BeatType.CRISIS: 15,
    BeatType.CLIMAX: 20,
    BeatType.RESOLUTION: -15,
}

BEAT_LABELS: dict[BeatType, str] = {
    BeatType.INCITING: "Inciting incident (introduce a new element)",
    BeatType.COMPLICATION: "Complication (add an obstacle or conflict)",
    BeatType.REVERSAL: "Reversal (overturn expectations)",
    BeatType.CRISIS: "Crisis (peak tension, a moment of choice)",
    BeatType.CLIMAX: "Climax (decisive confrontation or trial)",
    BeatType.RESOLUTION: "Resolution (settle the conflict, a new order)",
}


def detect_beat_types(event: NarrativeEvent) -> list[BeatType]:
    """Infer which beat types an event satisfies.

    Precedence: tag table, then importance affinity (only when no tag
    matched), then a keyword scan of title and summary, else complication.
    The result keeps first-seen order without duplicates.
    """
    detected: list[BeatType] = []

    def add(types: Iterable[BeatType]) -> None:
        for beat_type in types:
            if beat_type not in detected:
                detected.append(beat_type)

    for tag in event.tags:
        mapped = TAG_TO_BEAT.get(tag.strip().lower())
        if mapped:
            add(mapped)

    if not detected:
        add(IMPORTANCE_BEAT_AFFINITY.get(event.importance, ()))

    text = f"{event.title} {event.summary}".lower()
    for keyword, types in TAG_TO_BEAT.items():
        if keyword in text:
            add(types)

    if not detected:
        detected.append(BeatType.COMPLICATION)
    return detected


def tension_delta(event: NarrativeEvent, beat_types: Sequence[BeatType]) -> int:
    """Tension change contributed by an event, scaled by its importance."""
    change = float(sum(BEAT_TENSION.get(t, 0) for t in beat_types))
    if event.importance == Importance.TURNING_POINT:
        change *= 1.5
    elif event.importance == Importance.MINOR:
        change *= 0.5
    return round_half_up(change)


# ---------------------------------------------------------------------------
# NPC sentiment
# ---------------------------------------------------------------------------

_SUPPORTIVE_ROLES = (
    "mentor", "master", "teacher", "ally", "companion", "friend",
    "guardian", "protector", "healer",
)
_HOSTILE_ROLES = ("enemy", "nemesis", "demon", "assassin", "tracker", "shadow")
_COMPETITIVE_ROLES = ("rival", "competitor")
_TRANSACTIONAL_ROLES = ("merchant", "apothecary", "informant", "spy")


def classify_sentiment(role: str) -> int:
    """Baseline sentiment (-100..100) an NPC role implies toward a character."""
    if contains_any(role, _SUPPORTIVE_ROLES):
        return 40
    if contains_any(role, _HOSTILE_ROLES):
        return -40
    if contains_any(role, _COMPETITIVE_ROLES):
        return -10
    if contains_any(role, _TRANSACTIONAL_ROLES):
        return 10
    return 0


# ---------------------------------------------------------------------------
# Life stage
# ---------------------------------------------------------------------------

_CONVERGENCE_TAGS = ("join", "alliance", "reunion")
_CONFLICT_TAGS = ("battle", "conflict", "confrontation")
_TRAINING_TAGS = ("training", "practice", "study")


def infer_status(
    age: int,
    recent_memories: Sequence[Memory],
    childhood_age_limit: int = 6,
    training_age_limit: int = 12,
) -> CharacterStatus:
    """Classify a character's life stage from age and the latest memories."""
    if age < childhood_age_limit:
        return CharacterStatus.CHILDHOOD

    tags = [tag for memory in recent_memories for tag in memory.tags]
    imprints = [imprint for memory in recent_memories for imprint in memory.imprints]

    if any(contains_any(tag, _CONVERGENCE_TAGS) for tag in tags):
        return CharacterStatus.CONVERGENCE
    if any(i.type == ImprintType.TRAUMA and i.intensity >= 70 for i in imprints):
        return CharacterStatus.TRANSFORMATION
    if any(contains_any(tag, _CONFLICT_TAGS) for tag in tags):
        return CharacterStatus.CONFLICT
    if age < 15 and any(contains_any(tag, _TRAINING_TAGS) for tag in tags):
        return CharacterStatus.TRAINING
    if age < training_age_limit:
        return CharacterStatus.TRAINING
    return CharacterStatus.WANDERING


# ---------------------------------------------------------------------------
# Placeholder events
# ---------------------------------------------------------------------------

_PLACEHOLDER_PATTERNS = ("peaceful", "quiet", "uneventful", "nothing special", "ordinary day")


def is_placeholder_event(event: NarrativeEvent) -> bool:
    """True for "nothing happened" filler events."""
    return contains_any(event.title, _PLACEHOLDER_PATTERNS) or contains_any(
        event.summary, _PLACEHOLDER_PATTERNS
    )
