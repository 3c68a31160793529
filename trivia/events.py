"""Typed inbound commands and outbound events exchanged with clients.

Inbound Socket.IO payloads are parsed into command objects before they reach a
lobby; lobbies answer with ``Emission`` records naming the recipients and the
outbound event. Wire names are camelCase to match the browser client.
"""

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from trivia.errors import InvalidPayload


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def _field(payload, *names):
    for name in names:
        if name in payload:
            return payload[name]
    return None


def _as_object(data, event):
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayload(f'{event} expects an object payload')
    return data


def _lobby_id(payload, event):
    lobby_id = _field(payload, 'lobbyId', 'lobby_id')
    if not isinstance(lobby_id, str) or not lobby_id.strip():
        raise InvalidPayload(f'{event} requires a lobbyId')
    return lobby_id.strip().upper()


def _optional_str(value, event, name):
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidPayload(f'{event}: {name} must be a string')
    return value.strip() or None


# ---- Inbound commands ----

@dataclass(frozen=True)
class Command:
    event: ClassVar[str] = ''
    # Outbound event used to report a LobbyError raised by this command
    error_event: ClassVar[str] = 'lobbyError'


@dataclass(frozen=True)
class CreateLobby(Command):
    event: ClassVar[str] = 'createLobby'
    player_name: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        if isinstance(data, dict):
            data = _field(data, 'playerName', 'player_name')
        return cls(player_name=_optional_str(data, cls.event, 'playerName'))


@dataclass(frozen=True)
class JoinLobby(Command):
    event: ClassVar[str] = 'joinLobby'
    lobby_id: str = ''
    player_name: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        payload = _as_object(data, cls.event)
        return cls(
            lobby_id=_lobby_id(payload, cls.event),
            player_name=_optional_str(_field(payload, 'playerName', 'player_name'), cls.event, 'playerName'),
        )


@dataclass(frozen=True)
class SelectCategory(Command):
    event: ClassVar[str] = 'hostSelectedCategory'
    lobby_id: str = ''
    category_key: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        payload = _as_object(data, cls.event)
        return cls(
            lobby_id=_lobby_id(payload, cls.event),
            category_key=_optional_str(_field(payload, 'categoryKey', 'category_key'), cls.event, 'categoryKey'),
        )


@dataclass(frozen=True)
class StartGame(Command):
    event: ClassVar[str] = 'startGame'
    error_event: ClassVar[str] = 'startGameError'
    lobby_id: str = ''
    category_key: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        payload = _as_object(data, cls.event)
        return cls(
            lobby_id=_lobby_id(payload, cls.event),
            category_key=_optional_str(_field(payload, 'categoryKey', 'category_key'), cls.event, 'categoryKey'),
        )


@dataclass(frozen=True)
class SubmitAnswer(Command):
    event: ClassVar[str] = 'submitAnswer'
    lobby_id: str = ''
    question_index: int = -1
    answer: str = ''

    @classmethod
    def from_payload(cls, data):
        payload = _as_object(data, cls.event)
        index = _field(payload, 'questionIndex', 'question_index')
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidPayload('submitAnswer requires an integer questionIndex')
        answer = _field(payload, 'answer', 'answerText')
        if not isinstance(answer, str):
            raise InvalidPayload('submitAnswer requires an answer')
        return cls(lobby_id=_lobby_id(payload, cls.event), question_index=index, answer=answer)


@dataclass(frozen=True)
class TogglePause(Command):
    event: ClassVar[str] = 'hostTogglePause'
    lobby_id: str = ''

    @classmethod
    def from_payload(cls, data):
        return cls(lobby_id=_lobby_id(_as_object(data, cls.event), cls.event))


@dataclass(frozen=True)
class SkipToEnd(Command):
    event: ClassVar[str] = 'hostSkipToEnd'
    lobby_id: str = ''

    @classmethod
    def from_payload(cls, data):
        return cls(lobby_id=_lobby_id(_as_object(data, cls.event), cls.event))


@dataclass(frozen=True)
class PlayAgain(Command):
    event: ClassVar[str] = 'playAgain'
    lobby_id: str = ''

    @classmethod
    def from_payload(cls, data):
        # The browser client sends the bare lobby id
        if isinstance(data, str):
            data = {'lobbyId': data}
        return cls(lobby_id=_lobby_id(_as_object(data, cls.event), cls.event))


@dataclass(frozen=True)
class Disconnect(Command):
    event: ClassVar[str] = 'disconnect'

    @classmethod
    def from_payload(cls, data=None):
        return cls()


COMMANDS = {
    cmd.event: cmd
    for cmd in (CreateLobby, JoinLobby, SelectCategory, StartGame, SubmitAnswer,
                TogglePause, SkipToEnd, PlayAgain, Disconnect)
}


def parse_command(event: str, data: Any) -> Command:
    try:
        command_cls = COMMANDS[event]
    except KeyError:
        raise InvalidPayload(f'Unknown event {event!r}') from None
    return command_cls.from_payload(data)


# ---- Outbound events ----

@dataclass(frozen=True)
class OutboundEvent:
    name: ClassVar[str] = ''
    # Fields left out of the payload when they are None
    optional: ClassVar[Tuple[str, ...]] = ()

    def to_payload(self) -> Dict[str, Any]:
        payload = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and f.name in self.optional:
                continue
            payload[_camel(f.name)] = value
        return payload


@dataclass(frozen=True)
class LobbyCreated(OutboundEvent):
    name: ClassVar[str] = 'lobbyCreated'
    lobby_id: str
    player_id: str
    players: List[dict]
    available_categories: List[str]


@dataclass(frozen=True)
class JoinedLobby(OutboundEvent):
    name: ClassVar[str] = 'joinedLobby'
    optional: ClassVar[Tuple[str, ...]] = ('remaining_time',)
    lobby_id: str
    player_id: str
    players: List[dict]
    game_state: str
    selected_category: Optional[str]
    is_paused: bool
    available_categories: List[str]
    remaining_time: Optional[float] = None


@dataclass(frozen=True)
class PlayerJoined(OutboundEvent):
    name: ClassVar[str] = 'playerJoined'
    players: List[dict]
    joined_player_id: str
    joined_player_name: str
    selected_category: Optional[str]


@dataclass(frozen=True)
class PlayerLeft(OutboundEvent):
    name: ClassVar[str] = 'playerLeft'
    players: List[dict]
    disconnected_player_name: str
    selected_category: Optional[str]


@dataclass(frozen=True)
class HostChanged(OutboundEvent):
    name: ClassVar[str] = 'hostChanged'
    new_host_id: str
    players: List[dict]
    available_categories: List[str]
    selected_category: Optional[str]


@dataclass(frozen=True)
class CategoryUpdatedByHost(OutboundEvent):
    name: ClassVar[str] = 'categoryUpdatedByHost'
    category_key: Optional[str]


@dataclass(frozen=True)
class ErrorEvent(OutboundEvent):
    """lobbyError / startGameError; the name is chosen per command."""

    event_name: str = 'lobbyError'
    message: str = ''
    code: str = 'LobbyError'

    @property
    def name(self):  # type: ignore[override]
        return self.event_name

    def to_payload(self):
        return {'message': self.message, 'code': self.code}


@dataclass(frozen=True)
class GameStarted(OutboundEvent):
    name: ClassVar[str] = 'gameStarted'
    lobby_id: str
    category: str
    players: List[dict]


@dataclass(frozen=True)
class NewQuestion(OutboundEvent):
    name: ClassVar[str] = 'newQuestion'
    question: str
    options: List[str]
    question_index: int
    total_questions: int
    time_limit: float
    category: Optional[str]


@dataclass(frozen=True)
class UpdateScores(OutboundEvent):
    name: ClassVar[str] = 'updateScores'
    players: List[dict]


@dataclass(frozen=True)
class TimerUpdate(OutboundEvent):
    name: ClassVar[str] = 'timerUpdate'
    seconds_left: int


@dataclass(frozen=True)
class AnswerResult(OutboundEvent):
    name: ClassVar[str] = 'answerResult'
    is_correct: bool
    correct_answer: str
    score: int
    streak: int
    points_earned: int


@dataclass(frozen=True)
class QuestionOver(OutboundEvent):
    name: ClassVar[str] = 'questionOver'
    correct_answer: str
    scores: List[dict]


@dataclass(frozen=True)
class GamePausedEvent(OutboundEvent):
    name: ClassVar[str] = 'gamePaused'
    remaining_time: float


@dataclass(frozen=True)
class GameResumed(OutboundEvent):
    name: ClassVar[str] = 'gameResumed'


@dataclass(frozen=True)
class GameOver(OutboundEvent):
    name: ClassVar[str] = 'gameOver'
    final_scores: List[dict]


@dataclass(frozen=True)
class LobbyResetForPlayAgain(OutboundEvent):
    name: ClassVar[str] = 'lobbyResetForPlayAgain'
    lobby_id: str
    players: List[dict]
    game_state: str
    available_categories: List[str]
    selected_category: Optional[str]


@dataclass(frozen=True)
class Emission:
    """One outbound event and the connections that should receive it."""

    to: Tuple[str, ...]
    event: OutboundEvent

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def payload(self) -> Dict[str, Any]:
        return self.event.to_payload()


def error_emission(connection_id: str, error, event_name: str = 'lobbyError') -> Emission:
    return Emission(
        to=(connection_id,),
        event=ErrorEvent(event_name=event_name, message=error.message, code=error.code),
    )
