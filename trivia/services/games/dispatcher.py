import logging
import threading
from typing import Any, List

from trivia.errors import LobbyError
from trivia.events import (
    COMMANDS,
    Command,
    CreateLobby,
    Disconnect,
    Emission,
    JoinLobby,
    PlayAgain,
    SelectCategory,
    SkipToEnd,
    StartGame,
    SubmitAnswer,
    TogglePause,
    error_emission,
    parse_command,
)
from .registry import LobbyRegistry
from .session import Publish


logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Runs inbound commands to completion against the lobby registry.

    ``dispatch`` is pure with respect to the transport: it returns the
    emissions and delivers nothing. ``submit`` is the transport entry point;
    it holds the shared lock while dispatching and publishing.
    """

    def __init__(self, registry: LobbyRegistry, publish: Publish, lock=None):
        self.registry = registry
        self._publish = publish
        self.lock = lock or threading.RLock()
        self._handlers = {
            CreateLobby: self._create_lobby,
            JoinLobby: self._join_lobby,
            SelectCategory: self._select_category,
            StartGame: self._start_game,
            SubmitAnswer: self._submit_answer,
            TogglePause: self._toggle_pause,
            SkipToEnd: self._skip_to_end,
            PlayAgain: self._play_again,
            Disconnect: self._disconnect,
        }

    def dispatch(self, connection_id: str, command: Command) -> List[Emission]:
        handler = self._handlers[type(command)]
        try:
            return handler(connection_id, command)
        except LobbyError as exc:
            logger.info(f"[rejected] event={command.event} sid={connection_id} code={exc.code} reason={exc.message}")
            return [error_emission(connection_id, exc, command.error_event)] + exc.followups

    def submit(self, connection_id: str, event: str, data: Any = None) -> List[Emission]:
        """Parse a raw transport event, dispatch it and publish the result."""
        with self.lock:
            try:
                command = parse_command(event, data)
            except LobbyError as exc:
                logger.info(f"[bad-payload] event={event} sid={connection_id} reason={exc.message}")
                command_cls = COMMANDS.get(event)
                error_event = command_cls.error_event if command_cls else 'lobbyError'
                emissions = [error_emission(connection_id, exc, error_event)]
            else:
                emissions = self.dispatch(connection_id, command)
            if emissions:
                self._publish(emissions)
            return emissions

    def _create_lobby(self, connection_id, command: CreateLobby):
        _, emissions = self.registry.create(connection_id, command.player_name)
        return emissions

    def _join_lobby(self, connection_id, command: JoinLobby):
        return self.registry.join(connection_id, command.lobby_id, command.player_name)

    def _select_category(self, connection_id, command: SelectCategory):
        return self.registry.get(command.lobby_id).select_category(connection_id, command.category_key)

    def _start_game(self, connection_id, command: StartGame):
        return self.registry.get(command.lobby_id).start(connection_id, command.category_key)

    def _submit_answer(self, connection_id, command: SubmitAnswer):
        session = self.registry.get(command.lobby_id)
        return session.submit_answer(connection_id, command.question_index, command.answer)

    def _toggle_pause(self, connection_id, command: TogglePause):
        return self.registry.get(command.lobby_id).toggle_pause(connection_id)

    def _skip_to_end(self, connection_id, command: SkipToEnd):
        return self.registry.get(command.lobby_id).skip_to_end(connection_id)

    def _play_again(self, connection_id, command: PlayAgain):
        return self.registry.get(command.lobby_id).play_again(connection_id)

    def _disconnect(self, connection_id, command: Disconnect):
        return self.registry.leave(connection_id)
