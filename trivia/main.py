from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    services = current_app.extensions['trivia']
    with services.dispatcher.lock:
        live = len(services.registry)
    return jsonify({'message': 'Welcome to the trivia lobby server!', 'lobbies': live})
