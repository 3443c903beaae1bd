"""Closed value sets shared by the match and bracket engines.

Every enum is ``str``-valued so members serialize to JSON as their value
and compare equal to the plain strings clients send.
"""

from enum import Enum


class Side(str, Enum):
    RED = 'red'
    BLUE = 'blue'

    @property
    def opponent(self) -> 'Side':
        return Side.BLUE if self is Side.RED else Side.RED


class MatchStatus(str, Enum):
    SETUP = 'SETUP'
    FIGHT = 'FIGHT'
    ROUND_END = 'ROUND_END'
    PICK_WINNER = 'PICK_WINNER'
    MATCH_END = 'MATCH_END'


class MatchKind(str, Enum):
    STANDALONE = 'standalone'
    TOURNAMENT = 'tournament'


class BracketStatus(str, Enum):
    SETUP = 'SETUP'
    BRACKET = 'BRACKET'
    MATCH_ACTIVE = 'MATCH_ACTIVE'
    FINISHED = 'FINISHED'


class SlotStatus(str, Enum):
    PENDING = 'PENDING'
    DONE = 'DONE'


def parse_side(value):
    """Return the Side named by ``value`` or None when it names no side."""
    if isinstance(value, Side):
        return value
    try:
        return Side(str(value).strip().lower())
    except ValueError:
        return None
