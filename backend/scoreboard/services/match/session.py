import threading
from typing import Callable, List

from scoreboard.services.broadcast import broadcast_state
from scoreboard.services.enums import MatchKind, MatchStatus, Side
from . import engine
from .clock import Clock
from .state import MatchState


class MatchSession:
    """The one live match.

    Responsibilities:
    - Apply triggers (HTTP calls, clock ticks) one at a time
    - Arm the clock only while a round is running, cancel it otherwise
    - Save and broadcast every effective transition
    - Notify subscribers (the tournament coordinator) of each new state
    """

    STORE_KEY = 'match'

    def __init__(self, app, store, clock: Clock = None):
        self.app = app
        self.store = store
        cfg = app.config
        duration = engine.coerce_duration(cfg.get('DEFAULT_ROUND_DURATION_SEC', 60), 60)
        self._state = MatchState(
            round_duration_seconds=duration,
            time_left_seconds=duration,
        )
        self._lock = threading.RLock()
        self._listeners: List[Callable[[MatchState], None]] = []
        self.clock = clock or Clock(
            self._on_clock_tick,
            interval=float(cfg.get('TICK_INTERVAL_SEC', 1.0)),
            heartbeat=int(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
            logger=app.logger,
        )

    # ---------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------

    @property
    def state(self) -> MatchState:
        return self._state

    def subscribe(self, listener: Callable[[MatchState], None]) -> None:
        self._listeners.append(listener)

    def hydrate(self) -> None:
        data = self.store.load(self.STORE_KEY)
        if data is None:
            return
        try:
            state = MatchState.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            self.app.logger.warning(f"[store-malformed] key={self.STORE_KEY} using defaults: {exc}")
            return
        with self._lock:
            self._state = state
            self._sync_clock()

    def shutdown(self) -> None:
        self.clock.cancel()

    # ---------------------------------------------------------
    # Triggers
    # ---------------------------------------------------------

    def start_match(self, red_name, blue_name, duration=None, kind=MatchKind.STANDALONE) -> MatchState:
        if duration is None:
            duration = self._state.round_duration_seconds
        return self._apply(
            engine.start_match, red_name, blue_name, duration, kind,
            default_red=self.app.config.get('DEFAULT_RED_NAME', 'Red'),
            default_blue=self.app.config.get('DEFAULT_BLUE_NAME', 'Blue'),
        )

    def set_round_duration(self, seconds) -> MatchState:
        return self._apply(engine.set_round_duration, seconds)

    def tick(self) -> MatchState:
        return self._apply(engine.tick)

    def toggle_pause(self) -> MatchState:
        return self._apply(engine.toggle_pause)

    def reset_timer(self) -> MatchState:
        return self._apply(engine.reset_timer)

    def add_points(self, side: Side, points) -> MatchState:
        return self._apply(engine.add_points, side, points, require_running=self._require_running())

    def add_fault(self, side: Side) -> MatchState:
        return self._apply(engine.add_fault, side, require_running=self._require_running())

    def end_round(self, forced_winner: Side = None) -> MatchState:
        return self._apply(engine.end_round, forced_winner)

    def resolve_draw(self, side: Side) -> MatchState:
        return self._apply(engine.resolve_draw, side)

    def undo_last_action(self) -> MatchState:
        return self._apply(engine.undo_last_action)

    def next_round(self) -> MatchState:
        return self._apply(engine.next_round)

    def reset_match(self) -> MatchState:
        return self._apply(
            engine.reset_match,
            default_red=self.app.config.get('DEFAULT_RED_NAME', 'Red'),
            default_blue=self.app.config.get('DEFAULT_BLUE_NAME', 'Blue'),
        )

    def new_match(self) -> MatchState:
        return self._apply(engine.new_match)

    def delete_history_item(self, item_id) -> MatchState:
        return self._apply(engine.delete_history_item, item_id)

    def clear_history(self) -> MatchState:
        return self._apply(engine.clear_history)

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------

    def _require_running(self) -> bool:
        return bool(self.app.config.get('SCORING_REQUIRES_RUNNING_CLOCK', False))

    def _apply(self, transition, *args, **kwargs) -> MatchState:
        with self._lock:
            prev = self._state
            nxt = transition(prev, *args, **kwargs)
            if nxt is prev:
                return prev
            self._state = nxt
            if nxt.match_id != prev.match_id:
                # A superseded match must never be ticked again
                self.clock.cancel()
            self._log_transition(prev, nxt)
            self._sync_clock()
            self.store.save(self.STORE_KEY, nxt.to_dict())
            broadcast_state('match', nxt.to_dict())
            for listener in list(self._listeners):
                listener(nxt)
            return nxt

    def _on_clock_tick(self, generation: int) -> None:
        with self._lock:
            if not self.clock.is_current(generation):
                return
            self._apply(engine.tick)

    def _clock_enabled(self) -> bool:
        cfg = self.app.config
        return not cfg.get('TESTING') or bool(cfg.get('ENABLE_CLOCK_IN_TESTS'))

    def _sync_clock(self) -> None:
        state = self._state
        should_run = state.status is MatchStatus.FIGHT and not state.is_paused
        if should_run and self._clock_enabled():
            if not self.clock.running:
                generation = self.clock.start()
                self.app.logger.info(
                    f"[clock-arm] match={state.match_id} round={state.current_round} "
                    f"time_left={state.time_left_seconds}s generation={generation}"
                )
        elif self.clock.running:
            self.clock.cancel()
            self.app.logger.info(
                f"[clock-cancel] match={state.match_id} status={state.status.value} "
                f"time_left={state.time_left_seconds}s"
            )

    def _log_transition(self, prev: MatchState, nxt: MatchState) -> None:
        log = self.app.logger
        if nxt.match_id and nxt.match_id != prev.match_id:
            log.info(
                f"[match-start] match={nxt.match_id} kind={nxt.match_kind.value} red={nxt.competitors.red!r} "
                f"blue={nxt.competitors.blue!r} duration={nxt.round_duration_seconds}s"
            )
        if len(nxt.round_history) > len(prev.round_history) and nxt.match_id == prev.match_id:
            last = nxt.round_history[-1]
            log.info(
                f"[round-end] match={nxt.match_id} round={last.round_number} "
                f"score={last.red_score}-{last.blue_score} winner={last.winner.value}"
            )
        if nxt.status is MatchStatus.PICK_WINNER and prev.status is not MatchStatus.PICK_WINNER:
            log.info(f"[round-draw] match={nxt.match_id} round={nxt.current_round} awaiting referee decision")
        if nxt.status is MatchStatus.MATCH_END and prev.status is not MatchStatus.MATCH_END:
            log.info(
                f"[match-end] match={nxt.match_id} winner={nxt.winner.value} "
                f"rounds={nxt.rounds_won.red}-{nxt.rounds_won.blue}"
            )
