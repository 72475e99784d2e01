"""Game domain services: roles, phase resolution and timers.

This package contains the game's state machine, which HTTP routes call
into, keeping transport concerns separated from core game mechanics.
"""

from .controller import PhaseController, get_controller
from .locks import GameLocks
from .state import GameState, LogEvent, Phase, Role, Winner
from .timers import PhaseTimers
