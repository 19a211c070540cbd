"""
Session Module - Keeps track of live matches.

A match lives here from the moment two players are paired until it is
cleaned up after finishing:
- Created in the setup phase
- Replaced by the reducer's new value after each accepted action
- Readable after it finishes, for results and replays

Matches are in-memory only; persistence belongs to the caller.
"""

from .manager import MatchManager

__all__ = [
    "MatchManager",
]
