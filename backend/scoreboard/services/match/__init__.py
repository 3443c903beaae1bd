from .session import MatchSession
from .state import MatchState

__all__ = ['MatchSession', 'MatchState']
