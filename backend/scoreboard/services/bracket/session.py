import threading
from typing import Optional, Tuple

from scoreboard.services.broadcast import broadcast_state
from scoreboard.services.enums import BracketStatus, Side
from . import engine
from .state import BracketState


class BracketSession:
    """The tournament currently on the mat. Applies triggers one at a time."""

    STORE_KEY = 'tournament'

    def __init__(self, app, store):
        self.app = app
        self.store = store
        self._state = BracketState()
        self._lock = threading.RLock()

    @property
    def state(self) -> BracketState:
        return self._state

    def hydrate(self) -> None:
        data = self.store.load(self.STORE_KEY)
        if data is None:
            return
        try:
            state = BracketState.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            self.app.logger.warning(f"[store-malformed] key={self.STORE_KEY} using defaults: {exc}")
            return
        with self._lock:
            self._state = state

    def add_athlete(self, name) -> BracketState:
        return self._apply(engine.add_athlete, name)

    def remove_athlete(self, athlete_id) -> BracketState:
        return self._apply(engine.remove_athlete, athlete_id)

    def generate_bracket(self) -> BracketState:
        state = self._apply(engine.generate_bracket)
        if state.status is BracketStatus.BRACKET and state.rounds:
            byes = sum(1 for slot in state.rounds[0] if slot.is_bye)
            self.app.logger.info(
                f"[bracket-generate] athletes={len(state.roster)} rounds={len(state.rounds)} byes={byes}"
            )
        return state

    def start_match(self, round_index, slot_index) -> Optional[Tuple[str, str]]:
        with self._lock:
            nxt, pairing = engine.start_match(self._state, round_index, slot_index)
            if pairing is not None:
                self._commit(nxt)
            return pairing

    def resolve_match(self, winner_side: Side, score_label: str, round_history=None) -> BracketState:
        with self._lock:
            ref = self._state.active_slot
            state = self._apply(engine.resolve_match, winner_side, score_label, round_history)
            if ref is not None and state.active_slot is None:
                self.app.logger.info(
                    f"[bracket-resolve] slot={ref.round_index}/{ref.slot_index} "
                    f"winner={winner_side.value} score={score_label}"
                )
                if state.status is BracketStatus.FINISHED:
                    champion = state.athlete(state.champion)
                    self.app.logger.info(f"[bracket-finish] champion={champion.name if champion else None!r}")
            return state

    def back_to_bracket(self) -> BracketState:
        return self._apply(engine.back_to_bracket)

    def reset_tournament(self) -> BracketState:
        return self._apply(engine.reset_tournament)

    def delete_tournament_history(self, item_id) -> BracketState:
        return self._apply(engine.delete_tournament_history, item_id)

    def clear_all(self) -> BracketState:
        return self._apply(engine.clear_all)

    def _apply(self, transition, *args, **kwargs) -> BracketState:
        with self._lock:
            prev = self._state
            nxt = transition(prev, *args, **kwargs)
            if nxt is not prev:
                self._commit(nxt)
            return nxt

    def _commit(self, nxt: BracketState) -> None:
        self._state = nxt
        self.store.save(self.STORE_KEY, nxt.to_dict())
        broadcast_state('tournament', nxt.to_view())
