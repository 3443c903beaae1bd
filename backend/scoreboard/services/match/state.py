from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scoreboard.services.enums import MatchKind, MatchStatus, Side


DEFAULT_ROUND_DURATION = 60


@dataclass
class Tally:
    """A per-side integer counter (score, faults, rounds won)."""
    red: int = 0
    blue: int = 0

    def get(self, side: Side) -> int:
        return self.red if side is Side.RED else self.blue

    def add(self, side: Side, amount: int) -> None:
        if side is Side.RED:
            self.red += amount
        else:
            self.blue += amount

    def to_dict(self) -> Dict[str, int]:
        return {'red': self.red, 'blue': self.blue}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'Tally':
        return Tally(red=int(d.get('red', 0)), blue=int(d.get('blue', 0)))


@dataclass
class Competitors:
    red: str = 'Red'
    blue: str = 'Blue'

    def name_of(self, side: Side) -> str:
        return self.red if side is Side.RED else self.blue


@dataclass
class RoundResult:
    round_number: int
    red_score: int
    blue_score: int
    winner: Optional[Side] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round_number': self.round_number,
            'red_score': self.red_score,
            'blue_score': self.blue_score,
            'winner': self.winner.value if self.winner else None,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'RoundResult':
        winner = d.get('winner')
        return RoundResult(
            round_number=int(d['round_number']),
            red_score=int(d['red_score']),
            blue_score=int(d['blue_score']),
            winner=Side(winner) if winner else None,
        )


@dataclass
class UndoSnapshot:
    score: Tally
    faults: Tally

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score.to_dict(), 'faults': self.faults.to_dict()}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'UndoSnapshot':
        return UndoSnapshot(score=Tally.from_dict(d['score']), faults=Tally.from_dict(d['faults']))


@dataclass
class ArchivedMatch:
    """Summary filed once a match reaches MATCH_END. Never edited afterwards."""
    id: str
    date: str
    red_name: str
    blue_name: str
    winner: Side
    final_score: str
    round_history: List[RoundResult] = field(default_factory=list)
    match_kind: MatchKind = MatchKind.STANDALONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'red_name': self.red_name,
            'blue_name': self.blue_name,
            'winner': self.winner.value,
            'final_score': self.final_score,
            'round_history': [r.to_dict() for r in self.round_history],
            'match_kind': self.match_kind.value,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any], position: int = 0) -> 'ArchivedMatch':
        return ArchivedMatch(
            # Records written before ids existed get a stable, position-based id
            id=str(d.get('id') or f'legacy-{position}'),
            date=str(d.get('date', '')),
            red_name=str(d.get('red_name', '')),
            blue_name=str(d.get('blue_name', '')),
            winner=Side(d['winner']),
            final_score=str(d.get('final_score', '')),
            round_history=[RoundResult.from_dict(r) for r in d.get('round_history') or []],
            match_kind=MatchKind(d.get('match_kind') or MatchKind.STANDALONE.value),
        )


@dataclass
class MatchState:
    status: MatchStatus = MatchStatus.SETUP
    competitors: Competitors = field(default_factory=Competitors)
    current_round: int = 1
    round_duration_seconds: int = DEFAULT_ROUND_DURATION
    time_left_seconds: int = DEFAULT_ROUND_DURATION
    is_paused: bool = True
    score: Tally = field(default_factory=Tally)
    faults: Tally = field(default_factory=Tally)
    rounds_won: Tally = field(default_factory=Tally)
    round_history: List[RoundResult] = field(default_factory=list)
    undo_stack: List[UndoSnapshot] = field(default_factory=list)
    match_id: Optional[str] = None
    match_kind: MatchKind = MatchKind.STANDALONE
    winner: Optional[Side] = None
    round_winner: Optional[Side] = None
    match_archive: List[ArchivedMatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'competitors': {'red': self.competitors.red, 'blue': self.competitors.blue},
            'current_round': self.current_round,
            'round_duration_seconds': self.round_duration_seconds,
            'time_left_seconds': self.time_left_seconds,
            'is_paused': self.is_paused,
            'score': self.score.to_dict(),
            'faults': self.faults.to_dict(),
            'rounds_won': self.rounds_won.to_dict(),
            'round_history': [r.to_dict() for r in self.round_history],
            'undo_stack': [s.to_dict() for s in self.undo_stack],
            'match_id': self.match_id,
            'match_kind': self.match_kind.value,
            'winner': self.winner.value if self.winner else None,
            'round_winner': self.round_winner.value if self.round_winner else None,
            'match_archive': [m.to_dict() for m in self.match_archive],
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'MatchState':
        """Rebuild a state from its ``to_dict`` form.

        Raises KeyError/ValueError/TypeError on malformed input; callers that
        read persisted data treat that as "no saved state".
        """
        competitors = d.get('competitors') or {}
        duration = max(1, int(d.get('round_duration_seconds', DEFAULT_ROUND_DURATION)))
        time_left = min(duration, max(0, int(d.get('time_left_seconds', duration))))
        winner = d.get('winner')
        round_winner = d.get('round_winner')
        return MatchState(
            status=MatchStatus(d.get('status', MatchStatus.SETUP.value)),
            competitors=Competitors(
                red=str(competitors.get('red', 'Red')),
                blue=str(competitors.get('blue', 'Blue')),
            ),
            current_round=max(1, int(d.get('current_round', 1))),
            round_duration_seconds=duration,
            time_left_seconds=time_left,
            is_paused=bool(d.get('is_paused', True)),
            score=Tally.from_dict(d.get('score') or {}),
            faults=Tally.from_dict(d.get('faults') or {}),
            rounds_won=Tally.from_dict(d.get('rounds_won') or {}),
            round_history=[RoundResult.from_dict(r) for r in d.get('round_history') or []],
            undo_stack=[UndoSnapshot.from_dict(s) for s in d.get('undo_stack') or []],
            match_id=d.get('match_id'),
            match_kind=MatchKind(d.get('match_kind') or MatchKind.STANDALONE.value),
            winner=Side(winner) if winner else None,
            round_winner=Side(round_winner) if round_winner else None,
            match_archive=[
                ArchivedMatch.from_dict(m, position=i)
                for i, m in enumerate(d.get('match_archive') or [])
            ],
        )
