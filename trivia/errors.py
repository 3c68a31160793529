"""Recoverable lobby errors.

Each error is reported to the connection that caused it as a named event and
never ends the session.
"""


class LobbyError(Exception):
    default_message = 'Request could not be processed.'

    def __init__(self, message=None, followups=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        # Emissions that must still go out alongside the error event
        self.followups = list(followups or [])

    @property
    def code(self):
        return type(self).__name__


class InvalidPayload(LobbyError):
    default_message = 'Malformed request.'


class LobbyNotFound(LobbyError):
    default_message = 'Lobby not found.'


class LobbyFull(LobbyError):
    default_message = 'This lobby is full.'


class GameAlreadyActiveOrFinished(LobbyError):
    default_message = 'The game in this lobby has already started.'


class PlayerNotInLobby(LobbyError):
    default_message = 'You are not a player in this lobby.'


class NotHost(LobbyError):
    default_message = 'Only the host can do that.'


class InvalidCategory(LobbyError):
    default_message = 'Please select a valid question category first.'


class EmptyCategory(LobbyError):
    default_message = 'No questions found in the selected category.'


class StaleOrDuplicateAnswer(LobbyError):
    default_message = 'This answer is no longer accepted.'


class GameNotActive(LobbyError):
    default_message = 'No game is running in this lobby.'


class GamePaused(LobbyError):
    default_message = 'The game is paused.'


class GameInProgress(LobbyError):
    default_message = 'Wait for the current game to finish.'


class NotPausable(LobbyError):
    default_message = 'The game cannot be paused right now.'


class NotResumable(LobbyError):
    default_message = 'The game is not paused.'
