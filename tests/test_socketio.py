from trivia import socketio


def _events(test_client, name):
    return [pkt['args'][0] for pkt in test_client.get_received('/') if pkt['name'] == name]


def _received(test_client):
    return test_client.get_received('/')


def _connect(flask_app):
    test_client = socketio.test_client(flask_app, namespace='/')
    test_client.get_received('/')  # flush 'connected'
    return test_client


def test_socket_connect(sio_client):
    if not sio_client.is_connected('/'):
        sio_client.connect(namespace='/')
    assert sio_client.is_connected('/')
    received = sio_client.get_received('/')
    assert any(pkt['name'] == 'connected' for pkt in received)


def test_create_lobby_over_socket(flask_app, sio_client):
    sio_client.get_received('/')
    sio_client.emit('createLobby', 'Hana', namespace='/')
    created = _events(sio_client, 'lobbyCreated')
    assert len(created) == 1
    assert len(created[0]['lobbyId']) == 6
    assert created[0]['players'][0]['name'] == 'Hana'
    assert created[0]['players'][0]['isHost'] is True


def test_errors_reach_the_sender_only(flask_app):
    host = _connect(flask_app)
    bystander = _connect(flask_app)
    host.emit('joinLobby', {'lobbyId': 'NOPE00', 'playerName': 'Hana'}, namespace='/')
    errors = _events(host, 'lobbyError')
    assert errors == [{'message': 'Lobby not found.', 'code': 'LobbyNotFound'}]
    assert _received(bystander) == []
    host.disconnect(namespace='/')
    bystander.disconnect(namespace='/')


def test_full_game_over_socket(flask_app, scheduler):
    host = _connect(flask_app)
    guest = _connect(flask_app)

    host.emit('createLobby', 'Hana', namespace='/')
    lobby_id = _events(host, 'lobbyCreated')[0]['lobbyId']
    guest.emit('joinLobby', {'lobbyId': lobby_id, 'playerName': 'Gus'}, namespace='/')
    assert _events(guest, 'joinedLobby')[0]['lobbyId'] == lobby_id
    assert _events(host, 'playerJoined')[0]['joinedPlayerName'] == 'Gus'

    host.emit('hostSelectedCategory', {'lobbyId': lobby_id, 'categoryKey': 'Science'}, namespace='/')
    assert _events(guest, 'categoryUpdatedByHost') == [{'categoryKey': 'Science'}]
    host.get_received('/')

    host.emit('startGame', {'lobbyId': lobby_id, 'categoryKey': 'Science'}, namespace='/')
    questions = _events(guest, 'newQuestion')
    assert questions[0]['totalQuestions'] == 2
    host.get_received('/')

    session = flask_app.extensions['trivia'].registry.get(lobby_id)
    for index in range(2):
        correct = session.questions[index].answer
        host.emit('submitAnswer', {'lobbyId': lobby_id, 'questionIndex': index, 'answer': correct}, namespace='/')
        guest.emit('submitAnswer', {'lobbyId': lobby_id, 'questionIndex': index, 'answer': 'wrong'}, namespace='/')
        host_packets = _received(host)
        assert [p['args'][0]['isCorrect'] for p in host_packets if p['name'] == 'answerResult'] == [True]
        assert any(p['name'] == 'questionOver' for p in host_packets)
        scheduler.advance(4)

    over = _events(guest, 'gameOver')
    assert [entry['name'] for entry in over[0]['finalScores']] == ['Hana', 'Gus']
    assert over[0]['finalScores'][1]['score'] == 0

    host.emit('playAgain', lobby_id, namespace='/')
    reset = _events(guest, 'lobbyResetForPlayAgain')
    assert reset[0]['gameState'] == 'waiting'
    assert reset[0]['selectedCategory'] is None
    host.disconnect(namespace='/')
    guest.disconnect(namespace='/')


def test_timer_updates_are_broadcast(flask_app, scheduler):
    host = _connect(flask_app)
    host.emit('createLobby', 'Hana', namespace='/')
    lobby_id = _events(host, 'lobbyCreated')[0]['lobbyId']
    host.emit('startGame', {'lobbyId': lobby_id, 'categoryKey': 'Geography'}, namespace='/')
    host.get_received('/')

    scheduler.advance(3)
    assert _events(host, 'timerUpdate') == [{'secondsLeft': 59}, {'secondsLeft': 58}, {'secondsLeft': 57}]

    host.emit('hostTogglePause', {'lobbyId': lobby_id}, namespace='/')
    assert _events(host, 'gamePaused') == [{'remainingTime': 57.0}]
    scheduler.advance(10)
    assert _events(host, 'timerUpdate') == []
    host.disconnect(namespace='/')


def test_host_disconnect_hands_over_host(flask_app):
    host = _connect(flask_app)
    guest = _connect(flask_app)
    host.emit('createLobby', 'Hana', namespace='/')
    lobby_id = _events(host, 'lobbyCreated')[0]['lobbyId']
    guest.emit('joinLobby', {'lobbyId': lobby_id, 'playerName': 'Gus'}, namespace='/')
    guest_id = _events(guest, 'joinedLobby')[0]['playerId']

    host.disconnect(namespace='/')
    packets = _received(guest)
    assert [p['name'] for p in packets] == ['playerLeft', 'hostChanged']
    assert packets[0]['args'][0]['disconnectedPlayerName'] == 'Hana'
    assert packets[1]['args'][0]['newHostId'] == guest_id
    guest.disconnect(namespace='/')
