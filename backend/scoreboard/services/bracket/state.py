from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scoreboard.services.enums import BracketStatus, SlotStatus


BYE_LABEL = 'BYE'


@dataclass
class Athlete:
    id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name}

    @staticmethod
    def from_dict(d: Dict[str, Any], position: int = 0) -> 'Athlete':
        return Athlete(id=str(d.get('id') or f'legacy-{position}'), name=str(d['name']))


@dataclass
class SlotRef:
    round_index: int
    slot_index: int

    def to_dict(self) -> Dict[str, int]:
        return {'round_index': self.round_index, 'slot_index': self.slot_index}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'SlotRef':
        return SlotRef(round_index=int(d['round_index']), slot_index=int(d['slot_index']))


@dataclass
class Slot:
    """One pairing in the bracket. Players and winner are athlete ids."""
    id: str
    player1: Optional[str] = None
    player2: Optional[str] = None
    winner: Optional[str] = None
    status: SlotStatus = SlotStatus.PENDING
    score: Optional[str] = None
    round_history: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_bye(self) -> bool:
        return self.score == BYE_LABEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'player1': self.player1,
            'player2': self.player2,
            'winner': self.winner,
            'status': self.status.value,
            'score': self.score,
            'round_history': list(self.round_history),
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'Slot':
        return Slot(
            id=str(d['id']),
            player1=d.get('player1'),
            player2=d.get('player2'),
            winner=d.get('winner'),
            status=SlotStatus(d.get('status') or SlotStatus.PENDING.value),
            score=d.get('score'),
            round_history=list(d.get('round_history') or []),
        )


def _rounds_to_dict(rounds: List[List[Slot]]) -> List[List[Dict[str, Any]]]:
    return [[slot.to_dict() for slot in rnd] for rnd in rounds]


def _rounds_from_dict(raw) -> List[List[Slot]]:
    return [[Slot.from_dict(s) for s in rnd] for rnd in raw or []]


@dataclass
class ArchivedTournament:
    """A finished bracket, kept with its own competitor table."""
    id: str
    date: str
    champion: Athlete
    competitors: List[Athlete] = field(default_factory=list)
    rounds: List[List[Slot]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'champion': self.champion.to_dict(),
            'competitors': [a.to_dict() for a in self.competitors],
            'rounds': _rounds_to_dict(self.rounds),
        }

    @staticmethod
    def from_dict(d: Dict[str, Any], position: int = 0) -> 'ArchivedTournament':
        return ArchivedTournament(
            id=str(d.get('id') or f'legacy-{position}'),
            date=str(d.get('date', '')),
            champion=Athlete.from_dict(d['champion']),
            competitors=[Athlete.from_dict(a, position=i) for i, a in enumerate(d.get('competitors') or [])],
            rounds=_rounds_from_dict(d.get('rounds')),
        )


@dataclass
class BracketState:
    status: BracketStatus = BracketStatus.SETUP
    roster: List[Athlete] = field(default_factory=list)
    rounds: List[List[Slot]] = field(default_factory=list)
    active_slot: Optional[SlotRef] = None
    champion: Optional[str] = None
    archive: List[ArchivedTournament] = field(default_factory=list)

    def athlete(self, athlete_id: Optional[str]) -> Optional[Athlete]:
        if athlete_id is None:
            return None
        for a in self.roster:
            if a.id == athlete_id:
                return a
        return None

    def slot(self, ref: SlotRef) -> Optional[Slot]:
        if not (0 <= ref.round_index < len(self.rounds)):
            return None
        rnd = self.rounds[ref.round_index]
        if not (0 <= ref.slot_index < len(rnd)):
            return None
        return rnd[ref.slot_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'roster': [a.to_dict() for a in self.roster],
            'rounds': _rounds_to_dict(self.rounds),
            'active_slot': self.active_slot.to_dict() if self.active_slot else None,
            'champion': self.champion,
            'archive': [t.to_dict() for t in self.archive],
        }

    def to_view(self) -> Dict[str, Any]:
        """``to_dict`` plus resolved names, for displays."""
        view = self.to_dict()

        def name(athlete_id):
            a = self.athlete(athlete_id)
            return a.name if a else None

        for rnd in view['rounds']:
            for slot in rnd:
                slot['player1_name'] = name(slot['player1'])
                slot['player2_name'] = name(slot['player2'])
                slot['winner_name'] = name(slot['winner'])
        view['champion_name'] = name(self.champion)
        return view

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'BracketState':
        active = d.get('active_slot')
        return BracketState(
            status=BracketStatus(d.get('status') or BracketStatus.SETUP.value),
            roster=[Athlete.from_dict(a, position=i) for i, a in enumerate(d.get('roster') or [])],
            rounds=_rounds_from_dict(d.get('rounds')),
            active_slot=SlotRef.from_dict(active) if active else None,
            champion=d.get('champion'),
            archive=[ArchivedTournament.from_dict(t, position=i) for i, t in enumerate(d.get('archive') or [])],
        )
