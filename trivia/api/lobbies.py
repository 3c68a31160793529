from flask import Blueprint, current_app, jsonify

lobbies = Blueprint('lobbies', __name__)


@lobbies.route('/categories', methods=['GET'])
def list_categories():
    """
    Lists the question categories a host can pick, with question counts.
    """
    catalog = current_app.extensions['trivia'].catalog
    return jsonify({
        'categories': [{'key': key, 'questions': count} for key, count in catalog.counts().items()]
    })


@lobbies.route('/lobbies/<string:lobby_id>', methods=['GET'])
def get_lobby(lobby_id):
    """
    Returns the public state of a live lobby.
    """
    services = current_app.extensions['trivia']
    with services.dispatcher.lock:
        session = services.registry.find(lobby_id)
        if session is None:
            return jsonify({'error': 'Lobby not found'}), 404
        return jsonify(session.snapshot())
