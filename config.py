import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Question catalog (JSON: {"Category": [{"question", "options", "answer"}]})
    QUESTIONS_PATH = os.environ.get('QUESTIONS_PATH') or os.path.join(
        os.path.dirname(os.path.abspath(__file__)), 'questions.json'
    )
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Question lifecycle timers (seconds)
    QUESTION_TIME_LIMIT_SEC = int(os.environ.get('QUESTION_TIME_LIMIT_SEC', '15'))
    REVEAL_DURATION_SEC = int(os.environ.get('REVEAL_DURATION_SEC', '4'))
    # Lobby rules
    MAX_PLAYERS_PER_LOBBY = int(os.environ.get('MAX_PLAYERS_PER_LOBBY', '4'))
    LOBBY_ID_LENGTH = 6
    ALLOW_LATE_JOIN = _env_bool('ALLOW_LATE_JOIN', True)
    # Host must pick a category again after "play again" unless this is set
    KEEP_CATEGORY_ON_PLAY_AGAIN = _env_bool('KEEP_CATEGORY_ON_PLAY_AGAIN', False)
    # Scoring policy
    BASE_POINTS_CORRECT = int(os.environ.get('BASE_POINTS_CORRECT', '100'))
    TIME_BONUS_PER_SECOND = float(os.environ.get('TIME_BONUS_PER_SECOND', '5'))
    STREAK_BONUS = int(os.environ.get('STREAK_BONUS', '25'))
    # Allowed origins for the HTTP API and Socket.IO, comma separated (empty: local dev servers)
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '').split(',') if o.strip()]
