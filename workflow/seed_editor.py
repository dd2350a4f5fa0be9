"""Seed editing between runs: replace, soft-edit or hard-reset a character."""

import logging
from dataclasses import replace
from typing import Optional

from config.exceptions import LockedFieldError, SeedEditError
from models.character import SOFT_EDIT_ALLOWED, SOFT_EDIT_LOCKED, Seed
from models.enums import SeedEditMode
from models.simulation import SeedEditLog, SimulationSession
from narrative.profile_calculator import ProfileCalculator

logger = logging.getLogger(__name__)

UNKNOWN_ENTITY = "unknown_entity"


def edit_seed(
    session: SimulationSession,
    character_id: str,
    new_seed: Seed,
    mode: SeedEditMode | str,
    rewind_to_age: Optional[int] = None,
    calculator: Optional[ProfileCalculator] = None,
) -> SeedEditLog:
    """Apply a seed edit to a session and record it in the edit log.

    Args:
        session: Session to modify in place.
        character_id: Character whose seed changes.
        new_seed: The requested seed. For soft edits only the allowed fields are read.
        mode: pre_simulation, soft_edit or hard_reset.
        rewind_to_age: Hard reset only; keep memories up to this age. None purges all.
        calculator: Profile calculator used to recompute profiles.

    Returns:
        The SeedEditLog entry appended to ``session.edit_logs``.

    Raises:
        SeedEditError: Unknown character, pre-simulation edit after simulation,
            or a seed id that does not match the character.
        LockedFieldError: A soft edit changes a locked field.
    """
    mode = SeedEditMode(mode)
    old_seed = session.seeds.get(character_id)
    if old_seed is None:
        raise SeedEditError(f"Unknown character: {character_id}", {"character_id": character_id})
    if new_seed.id and new_seed.id != character_id:
        raise SeedEditError(
            "Seed id cannot change", {"character_id": character_id, "new_id": new_seed.id},
        )

    log = SeedEditLog(character_id=character_id, mode=mode, previous_seed=old_seed)

    if mode == SeedEditMode.PRE_SIMULATION:
        if session.memories.get(character_id):
            raise SeedEditError(
                "Character already has memories; use soft_edit or hard_reset",
                {"character_id": character_id},
            )
        applied = replace(new_seed, id=character_id)

    elif mode == SeedEditMode.SOFT_EDIT:
        for field_name in SOFT_EDIT_LOCKED:
            if field_name == "id":
                continue
            if getattr(new_seed, field_name) != getattr(old_seed, field_name):
                raise LockedFieldError(field_name)
        applied = replace(old_seed, **{name: getattr(new_seed, name) for name in SOFT_EDIT_ALLOWED})

    else:
        applied = replace(new_seed, id=character_id)
        _hard_reset(session, old_seed, rewind_to_age, log)

    session.seeds[character_id] = applied
    log.new_seed = applied

    calculator = calculator or ProfileCalculator()
    for cid, seed in session.seeds.items():
        memories = session.memories.get(cid)
        if memories:
            session.profiles[cid] = calculator.compute(seed, memories)
        else:
            session.profiles.pop(cid, None)

    session.edit_logs.append(log)
    logger.info(
        "Seed edit (%s) for %s: %d memories deleted, %d NPCs deleted",
        mode.value, character_id, log.deleted_memory_count, len(log.deleted_npc_ids),
    )
    return log


def _hard_reset(
    session: SimulationSession,
    old_seed: Seed,
    rewind_to_age: Optional[int],
    log: SeedEditLog,
) -> None:
    cid = old_seed.id
    memories = session.memories.get(cid, [])
    log.rewind_to_age = rewind_to_age

    if rewind_to_age is not None:
        cutoff_year = old_seed.birth_year + rewind_to_age
        kept = [m for m in memories if m.year <= cutoff_year]
        removed = [m for m in memories if m.year > cutoff_year]
        session.events = [
            e for e in session.events if e.character_id != cid or e.year <= cutoff_year
        ]
    else:
        kept, removed = [], list(memories)
        session.events = [e for e in session.events if e.character_id != cid]

    session.memories[cid] = kept
    log.deleted_memory_count = len(removed)
    log.affected_memory_ids = [m.id for m in removed]

    # NPCs that only ever related to this character go with it
    orphaned = [
        npc.id for npc in session.npc_pool.npcs
        if len(npc.related_characters) == 1 and npc.related_characters[0].character_id == cid
    ]
    session.npc_pool.npcs = [npc for npc in session.npc_pool.npcs if npc.id not in orphaned]
    log.deleted_npc_ids = orphaned

    for other_id, other_memories in session.memories.items():
        if other_id == cid:
            continue
        session.memories[other_id] = [
            replace(m, content=m.content.replace(cid, UNKNOWN_ENTITY)) if cid in m.content else m
            for m in other_memories
        ]
