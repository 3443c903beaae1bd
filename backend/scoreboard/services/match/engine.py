"""Match and round rules.

Every function takes a MatchState and returns the next one. A call that is
not valid for the current state returns the very same object, which is how
callers tell a rejected trigger from a transition. Accepted calls work on a
deep copy, so a state handed out earlier is never changed under its holder.
"""
import copy
import random
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from scoreboard.services.enums import MatchKind, MatchStatus, Side
from .state import ArchivedMatch, Competitors, MatchState, RoundResult, Tally, UndoSnapshot


UNDO_LIMIT = 20
FAULT_LIMIT = 5
POINT_GAP_LIMIT = 20
ROUNDS_TO_WIN = 2


def coerce_duration(value, fallback: int) -> int:
    """Round duration in whole seconds; unusable input keeps ``fallback``."""
    try:
        seconds = int(float(value))
    except (TypeError, ValueError, OverflowError):
        seconds = 0
    if seconds <= 0:
        seconds = int(fallback)
    return max(1, seconds)


def parse_kind(value) -> MatchKind:
    try:
        return MatchKind(value)
    except ValueError:
        return MatchKind.STANDALONE


def _archive_id() -> str:
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=5))
    return f"{int(time.time() * 1000)}-{suffix}"


def _push_undo(state: MatchState) -> None:
    state.undo_stack.append(UndoSnapshot(score=copy.deepcopy(state.score), faults=copy.deepcopy(state.faults)))
    del state.undo_stack[:-UNDO_LIMIT]


def _scoring_open(state: MatchState, require_running: bool) -> bool:
    if state.status is not MatchStatus.FIGHT:
        return False
    return not (require_running and state.is_paused)


def start_match(state: MatchState, red_name, blue_name, duration, kind=MatchKind.STANDALONE,
                default_red: str = 'Red', default_blue: str = 'Blue') -> MatchState:
    """Begin a fresh match: round 1, clean scores, clock paused at full time."""
    nxt = copy.deepcopy(state)
    seconds = coerce_duration(duration, state.round_duration_seconds)
    nxt.status = MatchStatus.FIGHT
    nxt.competitors = Competitors(
        red=(red_name or '').strip() or default_red,
        blue=(blue_name or '').strip() or default_blue,
    )
    nxt.current_round = 1
    nxt.round_duration_seconds = seconds
    nxt.time_left_seconds = seconds
    nxt.is_paused = True
    nxt.score = Tally()
    nxt.faults = Tally()
    nxt.rounds_won = Tally()
    nxt.round_history = []
    nxt.undo_stack = []
    nxt.match_id = uuid.uuid4().hex
    nxt.match_kind = parse_kind(kind)
    nxt.winner = None
    nxt.round_winner = None
    return nxt


def set_round_duration(state: MatchState, seconds) -> MatchState:
    if state.status is not MatchStatus.SETUP:
        return state
    value = coerce_duration(seconds, state.round_duration_seconds)
    if value == state.round_duration_seconds and value == state.time_left_seconds:
        return state
    nxt = copy.deepcopy(state)
    nxt.round_duration_seconds = value
    nxt.time_left_seconds = value
    return nxt


def tick(state: MatchState) -> MatchState:
    """One elapsed second of fight time. Reaching zero ends the round."""
    if state.status is not MatchStatus.FIGHT or state.is_paused:
        return state
    nxt = copy.deepcopy(state)
    if nxt.time_left_seconds > 1:
        nxt.time_left_seconds -= 1
        return nxt
    nxt.time_left_seconds = 0
    return end_round(nxt)


def toggle_pause(state: MatchState) -> MatchState:
    if state.status is not MatchStatus.FIGHT:
        return state
    nxt = copy.deepcopy(state)
    nxt.is_paused = not state.is_paused
    return nxt


def reset_timer(state: MatchState) -> MatchState:
    if state.status is not MatchStatus.FIGHT:
        return state
    nxt = copy.deepcopy(state)
    nxt.time_left_seconds = state.round_duration_seconds
    nxt.is_paused = True
    return nxt


def _apply_point_gap(state: MatchState) -> MatchState:
    if state.status is MatchStatus.FIGHT and abs(state.score.red - state.score.blue) >= POINT_GAP_LIMIT:
        return end_round(state)
    return state


def add_points(state: MatchState, side: Side, points, require_running: bool = False) -> MatchState:
    if not isinstance(side, Side) or not _scoring_open(state, require_running):
        return state
    if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
        return state
    nxt = copy.deepcopy(state)
    _push_undo(nxt)
    nxt.score.add(side, points)
    return _apply_point_gap(nxt)


def add_fault(state: MatchState, side: Side, require_running: bool = False) -> MatchState:
    """Record a penalty: one fault for ``side`` and one point for its opponent.

    The fifth fault disqualifies ``side`` for the round. That ends the round
    straight away and leaves nothing on the undo stack.
    """
    if not isinstance(side, Side) or not _scoring_open(state, require_running):
        return state
    if state.faults.get(side) + 1 >= FAULT_LIMIT:
        return end_round(state, forced_winner=side.opponent)
    nxt = copy.deepcopy(state)
    _push_undo(nxt)
    nxt.faults.add(side, 1)
    nxt.score.add(side.opponent, 1)
    return _apply_point_gap(nxt)


def end_round(state: MatchState, forced_winner: Optional[Side] = None) -> MatchState:
    if state.status not in (MatchStatus.FIGHT, MatchStatus.PICK_WINNER):
        return state
    if len(state.round_history) >= state.current_round:
        return state

    winner = forced_winner if isinstance(forced_winner, Side) else None
    if winner is None:
        if state.score.red > state.score.blue:
            winner = Side.RED
        elif state.score.blue > state.score.red:
            winner = Side.BLUE
        elif state.status is MatchStatus.PICK_WINNER:
            return state
        else:
            # Level scores: a referee has to pick the round winner
            nxt = copy.deepcopy(state)
            nxt.status = MatchStatus.PICK_WINNER
            nxt.is_paused = True
            return nxt

    nxt = copy.deepcopy(state)
    nxt.round_history.append(RoundResult(
        round_number=state.current_round,
        red_score=state.score.red,
        blue_score=state.score.blue,
        winner=winner,
    ))
    nxt.rounds_won.add(winner, 1)
    nxt.undo_stack = []
    nxt.is_paused = True
    nxt.round_winner = winner

    if nxt.rounds_won.get(winner) >= ROUNDS_TO_WIN:
        nxt.status = MatchStatus.MATCH_END
        nxt.winner = winner
        nxt.match_archive.insert(0, ArchivedMatch(
            id=_archive_id(),
            date=datetime.now(timezone.utc).isoformat(),
            red_name=nxt.competitors.red,
            blue_name=nxt.competitors.blue,
            winner=winner,
            final_score=f"{nxt.rounds_won.red}-{nxt.rounds_won.blue}",
            round_history=copy.deepcopy(nxt.round_history),
            match_kind=nxt.match_kind,
        ))
    else:
        nxt.status = MatchStatus.ROUND_END
    return nxt


def resolve_draw(state: MatchState, side: Side) -> MatchState:
    if state.status is not MatchStatus.PICK_WINNER or not isinstance(side, Side):
        return state
    return end_round(state, forced_winner=side)


def undo_last_action(state: MatchState) -> MatchState:
    if state.status is not MatchStatus.FIGHT or not state.undo_stack:
        return state
    nxt = copy.deepcopy(state)
    snapshot = nxt.undo_stack.pop()
    nxt.score = snapshot.score
    nxt.faults = snapshot.faults
    return nxt


def next_round(state: MatchState) -> MatchState:
    if state.status is not MatchStatus.ROUND_END:
        return state
    nxt = copy.deepcopy(state)
    nxt.current_round += 1
    nxt.score = Tally()
    nxt.faults = Tally()
    nxt.time_left_seconds = state.round_duration_seconds
    nxt.is_paused = True
    nxt.undo_stack = []
    nxt.round_winner = None
    nxt.status = MatchStatus.FIGHT
    return nxt


def reset_match(state: MatchState, default_red: str = 'Red', default_blue: str = 'Blue') -> MatchState:
    """Rematch with the same names, duration and kind."""
    if state.status is MatchStatus.SETUP:
        return state
    return start_match(
        state,
        state.competitors.red,
        state.competitors.blue,
        state.round_duration_seconds,
        state.match_kind,
        default_red=default_red,
        default_blue=default_blue,
    )


def new_match(state: MatchState) -> MatchState:
    """Drop the live match and go back to set-up. The archive is kept."""
    if state.status is MatchStatus.SETUP:
        return state
    nxt = copy.deepcopy(state)
    nxt.status = MatchStatus.SETUP
    nxt.current_round = 1
    nxt.time_left_seconds = state.round_duration_seconds
    nxt.is_paused = True
    nxt.score = Tally()
    nxt.faults = Tally()
    nxt.rounds_won = Tally()
    nxt.round_history = []
    nxt.undo_stack = []
    nxt.match_id = None
    nxt.match_kind = MatchKind.STANDALONE
    nxt.winner = None
    nxt.round_winner = None
    return nxt


def delete_history_item(state: MatchState, item_id) -> MatchState:
    item_id = str(item_id)
    if not any(m.id == item_id for m in state.match_archive):
        return state
    nxt = copy.deepcopy(state)
    nxt.match_archive = [m for m in nxt.match_archive if m.id != item_id]
    return nxt


def clear_history(state: MatchState) -> MatchState:
    if not state.match_archive:
        return state
    nxt = copy.deepcopy(state)
    nxt.match_archive = []
    return nxt
