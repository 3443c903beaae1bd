"""Single-elimination bracket rules.

Same contract as the match rules: each function returns the next
BracketState, or the very same object when the call is not valid now.
"""
import copy
import random
import string
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from scoreboard.services.enums import BracketStatus, Side, SlotStatus
from .state import BYE_LABEL, ArchivedTournament, Athlete, BracketState, Slot, SlotRef


def bracket_size(entrants: int) -> int:
    """Smallest power of two that holds ``entrants``."""
    size = 1
    while size < entrants:
        size *= 2
    return size


def add_athlete(state: BracketState, name) -> BracketState:
    name = (name or '').strip() if isinstance(name, str) else ''
    if state.status is not BracketStatus.SETUP or not name:
        return state
    nxt = copy.deepcopy(state)
    nxt.roster.append(Athlete(id=uuid.uuid4().hex, name=name))
    return nxt


def remove_athlete(state: BracketState, athlete_id) -> BracketState:
    athlete_id = str(athlete_id)
    if state.status is not BracketStatus.SETUP or state.athlete(athlete_id) is None:
        return state
    nxt = copy.deepcopy(state)
    nxt.roster = [a for a in nxt.roster if a.id != athlete_id]
    return nxt


def _advance(rounds: List[List[Slot]], round_index: int, slot_index: int, winner: str) -> None:
    """Seat ``winner`` in the slot it feeds in the following round."""
    if round_index + 1 >= len(rounds):
        return
    target = rounds[round_index + 1][slot_index // 2]
    if slot_index % 2 == 0:
        target.player1 = winner
    else:
        target.player2 = winner


def generate_bracket(state: BracketState, rng: random.Random = None) -> BracketState:
    """Seed the roster at random into a single-elimination tree.

    Byes pad the field up to a power of two. They are spread across the
    first round: a slot becomes a bye while byes remain and either its
    index is odd or every real pairing has been placed. Bye winners are
    seated in round two straight away.
    """
    if state.status is not BracketStatus.SETUP or len(state.roster) < 2:
        return state
    rng = rng or random
    entrants = [a.id for a in state.roster]
    rng.shuffle(entrants)

    size = bracket_size(len(entrants))
    byes = size - len(entrants)
    pairings = (len(entrants) - byes) // 2

    first: List[Slot] = []
    cursor = 0
    byes_placed = 0
    pairings_placed = 0
    for i in range(size // 2):
        if byes_placed < byes and (i % 2 == 1 or pairings_placed >= pairings):
            athlete = entrants[cursor]
            cursor += 1
            first.append(Slot(
                id=f"R0B{byes_placed}",
                player1=athlete,
                winner=athlete,
                status=SlotStatus.DONE,
                score=BYE_LABEL,
            ))
            byes_placed += 1
        else:
            first.append(Slot(
                id=f"R0M{pairings_placed}",
                player1=entrants[cursor],
                player2=entrants[cursor + 1],
            ))
            cursor += 2
            pairings_placed += 1

    rounds = [first]
    slots = len(first)
    while slots > 1:
        slots //= 2
        index = len(rounds)
        rounds.append([Slot(id=f"R{index}M{i}") for i in range(slots)])

    for i, slot in enumerate(first):
        if slot.status is SlotStatus.DONE and slot.winner:
            _advance(rounds, 0, i, slot.winner)

    nxt = copy.deepcopy(state)
    nxt.rounds = rounds
    nxt.active_slot = None
    nxt.champion = None
    nxt.status = BracketStatus.BRACKET
    return nxt


def start_match(state: BracketState, round_index, slot_index) -> Tuple[BracketState, Optional[Tuple[str, str]]]:
    """Open a slot for play. Returns the new state and the (red, blue) names, or no pairing."""
    if state.status is not BracketStatus.BRACKET:
        return state, None
    try:
        ref = SlotRef(int(round_index), int(slot_index))
    except (TypeError, ValueError):
        return state, None
    slot = state.slot(ref)
    if slot is None or slot.status is SlotStatus.DONE or not slot.player1 or not slot.player2:
        return state, None
    red = state.athlete(slot.player1)
    blue = state.athlete(slot.player2)
    if red is None or blue is None:
        return state, None
    nxt = copy.deepcopy(state)
    nxt.active_slot = ref
    nxt.status = BracketStatus.MATCH_ACTIVE
    return nxt, (red.name, blue.name)


def _archive_id() -> str:
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=5))
    return f"{int(time.time() * 1000)}-{suffix}"


def resolve_match(state: BracketState, winner_side: Side, score_label: str, round_history=None) -> BracketState:
    """File the result of the active slot and move its winner on."""
    if state.active_slot is None or not isinstance(winner_side, Side):
        return state
    ref = state.active_slot
    slot = state.slot(ref)
    if slot is None:
        return state
    winner = slot.player1 if winner_side is Side.RED else slot.player2
    if winner is None:
        return state

    nxt = copy.deepcopy(state)
    done = nxt.slot(ref)
    done.winner = winner
    done.score = score_label
    done.round_history = list(round_history or [])
    done.status = SlotStatus.DONE
    _advance(nxt.rounds, ref.round_index, ref.slot_index, winner)
    nxt.active_slot = None

    if ref.round_index == len(nxt.rounds) - 1:
        nxt.status = BracketStatus.FINISHED
        nxt.champion = winner
        nxt.archive.insert(0, ArchivedTournament(
            id=_archive_id(),
            date=datetime.now(timezone.utc).isoformat(),
            champion=copy.deepcopy(nxt.athlete(winner)),
            competitors=copy.deepcopy(nxt.roster),
            rounds=copy.deepcopy(nxt.rounds),
        ))
    else:
        nxt.status = BracketStatus.BRACKET
    return nxt


def back_to_bracket(state: BracketState) -> BracketState:
    if state.status is not BracketStatus.MATCH_ACTIVE:
        return state
    nxt = copy.deepcopy(state)
    nxt.active_slot = None
    nxt.status = BracketStatus.BRACKET
    return nxt


def reset_tournament(state: BracketState) -> BracketState:
    """Discard the bracket; the roster and the archive stay."""
    if state.status is BracketStatus.SETUP and not state.rounds:
        return state
    nxt = copy.deepcopy(state)
    nxt.status = BracketStatus.SETUP
    nxt.rounds = []
    nxt.active_slot = None
    nxt.champion = None
    return nxt


def delete_tournament_history(state: BracketState, item_id) -> BracketState:
    item_id = str(item_id)
    if not any(t.id == item_id for t in state.archive):
        return state
    nxt = copy.deepcopy(state)
    nxt.archive = [t for t in nxt.archive if t.id != item_id]
    return nxt


def clear_all(state: BracketState) -> BracketState:
    """Forget everything: roster, bracket and archive."""
    if state == BracketState():
        return state
    return BracketState()
