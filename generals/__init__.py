"""
Generals - Game of the Generals Rules Engine

An authoritative, deterministic engine for the Game of the Generals
(Salpakan). The engine provides:
- Setup validation and rank-based combat resolution
- A match state machine with fog of war
- Deterministic replay of recorded matches
- A thin service and HTTP layer for multiplayer clients
"""

__version__ = "0.1.0"
