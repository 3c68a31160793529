import logging
import random
import string
from typing import Dict, List, Optional, Tuple

from trivia.errors import LobbyError, LobbyNotFound
from trivia.events import Emission, LobbyCreated
from trivia.models import GameSettings
from .scoring import ScoringPolicy
from .session import LobbySession, Publish


logger = logging.getLogger(__name__)

LOBBY_ID_ALPHABET = string.ascii_uppercase + string.digits


class LobbyRegistry:
    """All live lobbies of this process, keyed by lobby id.

    Also tracks which lobby each connection belongs to; a connection is a
    member of at most one lobby at a time.
    """

    def __init__(self, catalog, settings: GameSettings, scoring: ScoringPolicy, scheduler,
                 publish: Publish, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.settings = settings
        self._scoring = scoring
        self._scheduler = scheduler
        self._publish = publish
        self._rng = rng or random.Random()
        self._lobbies: Dict[str, LobbySession] = {}
        self._memberships: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._lobbies)

    def __contains__(self, lobby_id) -> bool:
        return lobby_id in self._lobbies

    def lobby_ids(self) -> List[str]:
        return list(self._lobbies)

    def generate_lobby_id(self) -> str:
        """Generate a lobby id not used by any live lobby."""
        while True:
            code = ''.join(self._rng.choices(LOBBY_ID_ALPHABET, k=self.settings.lobby_id_length))
            if code not in self._lobbies:
                return code

    def get(self, lobby_id: str) -> LobbySession:
        session = self._lobbies.get((lobby_id or '').upper())
        if session is None:
            raise LobbyNotFound()
        return session

    def find(self, lobby_id: str) -> Optional[LobbySession]:
        return self._lobbies.get((lobby_id or '').upper())

    def session_for(self, connection_id: str) -> Optional[LobbySession]:
        lobby_id = self._memberships.get(connection_id)
        return self._lobbies.get(lobby_id) if lobby_id else None

    def create(self, connection_id: str, player_name: Optional[str]) -> Tuple[LobbySession, List[Emission]]:
        emissions = self.leave(connection_id)
        session = LobbySession(
            self.generate_lobby_id(),
            self.catalog,
            self.settings,
            self._scoring,
            self._scheduler,
            self._publish,
            rng=self._rng,
        )
        host = session.add_host(connection_id, player_name)
        self._lobbies[session.id] = session
        self._memberships[connection_id] = session.id
        logger.info(f"[lobby-created] lobby={session.id} host={host.name} sid={connection_id}")
        emissions.append(Emission(to=(connection_id,), event=LobbyCreated(
            lobby_id=session.id,
            player_id=connection_id,
            players=[p.to_dict() for p in session.players],
            available_categories=self.catalog.categories(),
        )))
        return session, emissions

    def join(self, connection_id: str, lobby_id: str, player_name: Optional[str]) -> List[Emission]:
        session = self.get(lobby_id)
        if self._memberships.get(connection_id) == session.id:
            raise LobbyError('You are already in this lobby.')
        # Validate before leaving the current lobby so a refused join loses nothing
        session.ensure_joinable()
        emissions = self.leave(connection_id)
        emissions.extend(session.join(connection_id, player_name))
        self._memberships[connection_id] = session.id
        return emissions

    def leave(self, connection_id: str) -> List[Emission]:
        """Remove a connection from its lobby, deleting the lobby once empty."""
        lobby_id = self._memberships.pop(connection_id, None)
        session = self._lobbies.get(lobby_id) if lobby_id else None
        if session is None:
            return []
        emissions = session.remove_player(connection_id)
        if not session.players:
            self.remove(session.id)
        return emissions

    def remove(self, lobby_id: str) -> None:
        session = self._lobbies.pop(lobby_id, None)
        if session is None:
            return
        session.close()
        for connection_id in [c for c, lid in self._memberships.items() if lid == lobby_id]:
            del self._memberships[connection_id]
        logger.info(f"[lobby-deleted] lobby={lobby_id} live={len(self._lobbies)}")

    def close(self) -> None:
        for lobby_id in list(self._lobbies):
            self.remove(lobby_id)
