"""Game domain services: lobbies, question timers and scoring.

This package holds the game mechanics. Socket.IO handlers and HTTP routes
import from here, keeping transport concerns out of the lobby state machine.
"""

from dataclasses import dataclass

from .dispatcher import CommandDispatcher
from .registry import LobbyRegistry
from .scheduler import SocketIOScheduler, TimerHandle
from .scoring import ScoringPolicy
from .session import LobbySession


@dataclass
class TriviaServices:
    """Everything the app builds at startup, stored in ``app.extensions``."""

    catalog: object
    registry: LobbyRegistry
    dispatcher: CommandDispatcher

    def close(self) -> None:
        with self.dispatcher.lock:
            self.registry.close()


__all__ = [
    'CommandDispatcher',
    'LobbyRegistry',
    'LobbySession',
    'ScoringPolicy',
    'SocketIOScheduler',
    'TimerHandle',
    'TriviaServices',
]
