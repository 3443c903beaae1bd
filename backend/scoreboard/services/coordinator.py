import threading
from typing import Dict, Optional

from flask import current_app

from scoreboard.services.bracket.session import BracketSession
from scoreboard.services.enums import MatchKind, MatchStatus
from scoreboard.services.match.session import MatchSession
from scoreboard.services.match.state import MatchState
from scoreboard.services.store import SnapshotStore


EXTENSION_KEY = 'scoreboard'


class Coordinator:
    """Wires the live match to the bracket.

    A tournament match is started from a bracket slot; when it reaches
    MATCH_END its result is handed to the bracket exactly once per
    ``match_id``. The last consumed id is persisted so a restart does not
    replay a hand-off.
    """

    STORE_KEY = 'coordinator'

    def __init__(self, app, store: SnapshotStore = None):
        self.app = app
        self.store = store or SnapshotStore(app)
        self.match = MatchSession(app, self.store)
        self.bracket = BracketSession(app, self.store)
        self.last_consumed_match_id: Optional[str] = None
        self._hydrate_lock = threading.Lock()
        self._handoff_lock = threading.Lock()
        self._hydrated = False
        self.match.subscribe(self._on_match_change)

    def hydrate(self) -> None:
        """Load saved state once, on first use."""
        with self._hydrate_lock:
            if self._hydrated:
                return
            # Each key loads on its own; a bad row falls back to defaults without skipping the rest
            self.bracket.hydrate()
            data = self.store.load(self.STORE_KEY) or {}
            consumed = data.get('last_consumed_match_id')
            self.last_consumed_match_id = consumed if isinstance(consumed, str) and consumed else None
            self.match.hydrate()
            self._hydrated = True
            # A match that finished just before a restart may still owe its result
            self._on_match_change(self.match.state)

    def shutdown(self) -> None:
        self.match.shutdown()

    def start_bracket_match(self, round_index, slot_index, duration=None) -> Optional[Dict[str, str]]:
        pairing = self.bracket.start_match(round_index, slot_index)
        if pairing is None:
            return None
        red, blue = pairing
        self.match.start_match(red, blue, duration, MatchKind.TOURNAMENT)
        return {'red': red, 'blue': blue}

    def abort_bracket_match(self) -> None:
        """Leave the active slot unplayed and drop the live tournament match."""
        before = self.bracket.state
        after = self.bracket.back_to_bracket()
        if after is not before and self.match.state.match_kind is MatchKind.TOURNAMENT:
            self.match.new_match()

    def clear_all_data(self) -> None:
        self.match.new_match()
        self.match.clear_history()
        self.bracket.clear_all()
        with self._handoff_lock:
            self.last_consumed_match_id = None
            self.store.save(self.STORE_KEY, {'last_consumed_match_id': None})
        self.app.logger.warning('[clear-data] match archive, roster and tournament archive cleared')

    def _on_match_change(self, state: MatchState) -> None:
        if state.status is not MatchStatus.MATCH_END or state.match_kind is not MatchKind.TOURNAMENT:
            return
        if state.winner is None:
            return
        with self._handoff_lock:
            if state.match_id == self.last_consumed_match_id:
                self.app.logger.info(f"[handoff-skip] match={state.match_id} already delivered")
                return
            self.last_consumed_match_id = state.match_id
            self.store.save(self.STORE_KEY, {'last_consumed_match_id': state.match_id})
            score_label = f"{state.rounds_won.red}-{state.rounds_won.blue}"
            self.app.logger.info(
                f"[handoff] match={state.match_id} winner={state.winner.value} score={score_label}"
            )
            self.bracket.resolve_match(
                state.winner,
                score_label,
                [r.to_dict() for r in state.round_history],
            )


def get_coordinator() -> Coordinator:
    coordinator = current_app.extensions[EXTENSION_KEY]
    coordinator.hydrate()
    return coordinator
