from trivia.events import CreateLobby, JoinLobby, StartGame, SubmitAnswer


def test_create_and_join_through_dispatcher(dispatcher, registry):
    created = dispatcher.dispatch('host', CreateLobby(player_name='Hana'))
    lobby_id = created[0].payload['lobbyId']
    emissions = dispatcher.dispatch('guest', JoinLobby(lobby_id=lobby_id, player_name='Gus'))
    assert [e.name for e in emissions] == ['joinedLobby', 'playerJoined']
    assert len(registry.get(lobby_id).players) == 2


def test_domain_error_goes_back_to_sender(dispatcher):
    emissions = dispatcher.dispatch('guest', JoinLobby(lobby_id='ZZZZZZ', player_name='Gus'))
    assert len(emissions) == 1
    assert emissions[0].name == 'lobbyError'
    assert emissions[0].to == ('guest',)
    assert emissions[0].payload == {'message': 'Lobby not found.', 'code': 'LobbyNotFound'}


def test_start_errors_use_start_game_error(dispatcher):
    lobby_id = dispatcher.dispatch('host', CreateLobby(player_name='Hana'))[0].payload['lobbyId']
    dispatcher.dispatch('guest', JoinLobby(lobby_id=lobby_id, player_name='Gus'))
    emissions = dispatcher.dispatch('guest', StartGame(lobby_id=lobby_id, category_key='Geography'))
    assert emissions[0].name == 'startGameError'
    assert emissions[0].payload['code'] == 'NotHost'


def test_empty_category_error_carries_followup(dispatcher):
    lobby_id = dispatcher.dispatch('host', CreateLobby(player_name='Hana'))[0].payload['lobbyId']
    emissions = dispatcher.dispatch('host', StartGame(lobby_id=lobby_id, category_key='Empty'))
    assert [e.name for e in emissions] == ['startGameError', 'categoryUpdatedByHost']
    assert emissions[0].payload['code'] == 'EmptyCategory'


def test_submit_publishes_emissions(dispatcher, published):
    emissions = dispatcher.submit('host', 'createLobby', 'Hana')
    assert published == emissions
    assert published[0].name == 'lobbyCreated'


def test_malformed_payload_is_reported(dispatcher, published):
    dispatcher.submit('host', 'submitAnswer', {'lobbyId': 'ABCDEF', 'questionIndex': 'first', 'answer': 'x'})
    assert published[0].name == 'lobbyError'
    assert published[0].payload['code'] == 'InvalidPayload'


def test_malformed_start_uses_start_game_error(dispatcher, published):
    dispatcher.submit('host', 'startGame', 'not-an-object')
    assert published[0].name == 'startGameError'


def test_stale_answer_reported(dispatcher, registry):
    lobby_id = dispatcher.dispatch('host', CreateLobby(player_name='Hana'))[0].payload['lobbyId']
    dispatcher.dispatch('host', StartGame(lobby_id=lobby_id, category_key='Science'))
    emissions = dispatcher.dispatch('host', SubmitAnswer(lobby_id=lobby_id, question_index=5, answer='8'))
    assert emissions[0].payload['code'] == 'StaleOrDuplicateAnswer'


def test_disconnect_removes_player(dispatcher, registry):
    lobby_id = dispatcher.dispatch('host', CreateLobby(player_name='Hana'))[0].payload['lobbyId']
    dispatcher.submit('host', 'disconnect')
    assert lobby_id not in registry
