import threading

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config, scheduler=None):
    """Build the Flask app and the game services it serves.

    ``scheduler`` replaces the Socket.IO background-task scheduler; tests pass
    a manual clock here.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS') or allowed_origins
    CORS(flask_app, supports_credentials=True, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from trivia.main import main
    flask_app.register_blueprint(main)

    from trivia.api.lobbies import lobbies
    flask_app.register_blueprint(lobbies, url_prefix='/api')

    from trivia.catalog import QuestionCatalog
    from trivia.models import GameSettings
    from trivia.services.games import (
        CommandDispatcher,
        LobbyRegistry,
        ScoringPolicy,
        SocketIOScheduler,
        TriviaServices,
    )
    from trivia.socketio_events import make_publisher, register_socketio_handlers

    # Inbound handlers and timer callbacks share this lock: one event at a time
    lock = threading.RLock()
    if scheduler is None:
        scheduler = SocketIOScheduler(socketio, lock)
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    publish = make_publisher(namespace)

    catalog = QuestionCatalog.load(flask_app.config['QUESTIONS_PATH'])
    registry = LobbyRegistry(
        catalog,
        GameSettings.from_config(flask_app.config),
        ScoringPolicy.from_config(flask_app.config),
        scheduler,
        publish,
    )
    dispatcher = CommandDispatcher(registry, publish, lock)
    flask_app.extensions['trivia'] = TriviaServices(catalog=catalog, registry=registry, dispatcher=dispatcher)

    register_socketio_handlers(dispatcher, namespace=namespace)

    @click.command('check-questions')
    @click.option('--path', default=None, help='Question file to check (defaults to QUESTIONS_PATH).')
    def check_questions_command(path):
        """Loads a question file and lists its categories."""
        checked = QuestionCatalog.load(path or flask_app.config['QUESTIONS_PATH'])
        for key, count in checked.counts().items():
            click.echo(f'{key}: {count} questions')
        if not all(checked.counts().values()):
            click.echo('Warning: some categories have no usable questions.')

    flask_app.cli.add_command(check_questions_command)

    return flask_app
