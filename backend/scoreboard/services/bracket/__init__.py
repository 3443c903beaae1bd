from .session import BracketSession
from .state import BracketState

__all__ = ['BracketSession', 'BracketState']
