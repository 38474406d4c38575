from knowme.services.sessions.sql_repository import SqlAlchemySessionRepository


def _create_session(client, creator_id, name='Friday night'):
    res = client.post('/api/sessions', json={'name': name, 'creator_user_id': creator_id})
    assert res.status_code == 201
    return res.get_json()


def _create_question(client, session_id, creator_id, text, multiple=False):
    res = client.post(f'/api/sessions/{session_id}/questions', json={
        'text': text,
        'is_multiple_answer': multiple,
        'variants': {'A': 'Pizza', 'B': 'Sushi', 'C': 'Tacos'},
        'creator_user_id': creator_id,
    })
    assert res.status_code == 201
    question = res.get_json()
    question['ids'] = {v['label']: v['id'] for v in question['variants']}
    return question


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'KnowMe' in res.get_json()['message']


def test_add_user_and_login(client):
    res = client.post('/users/add', json={'username': 'dora', 'password': 'secret'})
    assert res.status_code == 201
    user = res.get_json()
    assert user['username'] == 'dora'

    assert client.post('/users/add', json={'username': 'dora', 'password': 'x'}).status_code == 400
    assert client.post('/login', json={'username': 'dora', 'password': 'wrong'}).status_code == 401

    res = client.post('/login', json={'username': 'dora', 'password': 'secret'})
    assert res.status_code == 200
    assert client.get('/me').get_json()['id'] == user['id']

    # logged in users create sessions without naming themselves
    res = client.post('/api/sessions', json={'name': 'Mine'})
    assert res.status_code == 201
    assert res.get_json()['players'] == [user['id']]

    assert client.get('/logout').status_code == 200
    assert client.get('/me').status_code == 401


def test_create_session_and_state(client, users):
    session = _create_session(client, users['alice'])
    assert session['status'] == 'created'
    assert session['players'] == [users['alice']]

    res = client.get(f"/api/sessions/{session['id']}")
    assert res.status_code == 200
    assert res.get_json()['name'] == 'Friday night'


def test_create_session_validation(client, users):
    res = client.post('/api/sessions', json={'name': 'x' * 101, 'creator_user_id': users['alice']})
    assert res.status_code == 400
    assert res.get_json()['errors'] == [
        {'code': 'name_too_long', 'message': 'Name cannot be longer than 100 characters'},
    ]

    assert client.post('/api/sessions', json={'creator_user_id': users['alice']}).status_code == 400
    assert client.post('/api/sessions', json={'name': 'No creator'}).status_code == 400
    assert client.post('/api/sessions', json={'name': 'Ghost', 'creator_user_id': 999}).status_code == 404


def test_unknown_session_is_404(client, users):
    assert client.get('/api/sessions/nope').status_code == 404
    res = client.post('/api/sessions/nope/players', json={'user_id': users['bob']})
    assert res.status_code == 404


def test_add_player_twice(client, users):
    session = _create_session(client, users['alice'])
    url = f"/api/sessions/{session['id']}/players"
    res = client.post(url, json={'user_id': users['bob']})
    assert res.status_code == 200
    assert res.get_json()['players'] == [users['alice'], users['bob']]

    res = client.post(url, json={'user_id': users['bob']})
    assert res.status_code == 400
    assert res.get_json()['errors'][0]['code'] == 'duplicate_player'


def test_start_requires_players_and_questions(client, users):
    session = _create_session(client, users['alice'])
    res = client.post(f"/api/sessions/{session['id']}/start")
    assert res.status_code == 400
    codes = [e['code'] for e in res.get_json()['errors']]
    assert codes == ['not_enough_players', 'not_enough_questions']


def test_question_validation_errors(client, users):
    session = _create_session(client, users['alice'])
    res = client.post(f"/api/sessions/{session['id']}/questions", json={
        'text': 'Q' * 101,
        'variants': {'A': 'Only'},
        'creator_user_id': users['alice'],
    })
    assert res.status_code == 400
    codes = [e['code'] for e in res.get_json()['errors']]
    assert codes == ['question_text_too_long', 'too_few_variants']

    res = client.post(f"/api/sessions/{session['id']}/questions", json={
        'text': 'Fine', 'variants': ['A', 'B'], 'creator_user_id': users['alice'],
    })
    assert res.status_code == 400


def test_full_game_flow(client, users):
    alice, bob, cara = users['alice'], users['bob'], users['cara']
    session = _create_session(client, alice)
    sid = session['id']
    for uid in (bob, cara):
        assert client.post(f'/api/sessions/{sid}/players', json={'user_id': uid}).status_code == 200

    food = _create_question(client, sid, alice, 'Favourite food?', multiple=True)
    drink = _create_question(client, sid, bob, 'Favourite dish tonight?')

    started = client.post(f'/api/sessions/{sid}/start')
    assert started.status_code == 200
    started = started.get_json()
    assert started['status'] == 'started'
    assert started['current_question_id'] == food['id']

    picks = {
        food['id']: {alice: ['A', 'B'], bob: ['C'], cara: ['A']},
        drink['id']: {alice: ['A'], bob: ['B'], cara: ['C']},
    }
    for question in (food, drink):
        ids = question['ids']
        for uid, labels in picks[question['id']].items():
            res = client.post(f'/api/sessions/{sid}/choices', json={
                'user_id': uid, 'selected_variant_ids': [ids[label] for label in labels]})
            assert res.status_code == 200

        # a second choice is refused
        res = client.post(f'/api/sessions/{sid}/choices', json={
            'user_id': alice, 'selected_variant_ids': [ids['C']]})
        assert res.status_code == 400
        assert res.get_json()['errors'][0]['code'] == 'duplicate_choice'

        res = client.get(f"/api/sessions/{sid}/questions/{question['id']}/results")
        assert res.status_code == 400

        # everybody guesses 'A' for everybody else
        for guesser in (alice, bob, cara):
            for target in (alice, bob, cara):
                if guesser == target:
                    continue
                res = client.post(f'/api/sessions/{sid}/guesses', json={
                    'guessing_user_id': guesser,
                    'choice_user_id': target,
                    'selected_variant_ids': [ids['A']],
                })
                assert res.status_code == 200

    state = client.get(f'/api/sessions/{sid}').get_json()
    assert state['status'] == 'ended'
    assert all(q['answered'] for q in state['questions'])

    res = client.get(f"/api/sessions/{sid}/questions/{food['id']}/results")
    assert res.status_code == 200
    results = {r['user_id']: r for r in res.get_json()}
    # food is multi-answer: A vs {A,B} -> 2, A vs {C} -> 1, A vs {A} -> 3
    assert results[alice]['total_score'] == 1 + 3
    assert results[bob]['total_score'] == 2 + 3
    assert results[cara]['total_score'] == 2 + 1
    assert len(results[alice]['guess_results']) == 2

    res = client.get(f"/api/sessions/{sid}/questions/{drink['id']}/results")
    results = {r['user_id']: r['total_score'] for r in res.get_json()}
    assert results == {alice: 0, bob: 1, cara: 1}


def test_guess_validation_over_http(client, users):
    alice, bob = users['alice'], users['bob']
    sid = _create_session(client, alice)['id']
    client.post(f'/api/sessions/{sid}/players', json={'user_id': bob})
    question = _create_question(client, sid, alice, 'One?')
    _create_question(client, sid, alice, 'Two?')
    client.post(f'/api/sessions/{sid}/start')

    res = client.post(f'/api/sessions/{sid}/guesses', json={
        'guessing_user_id': alice, 'choice_user_id': bob,
        'selected_variant_ids': [question['ids']['A']]})
    assert res.status_code == 400
    assert res.get_json()['errors'][0]['code'] == 'choice_missing'

    res = client.post(f'/api/sessions/{sid}/guesses', json={
        'guessing_user_id': alice, 'selected_variant_ids': []})
    assert res.status_code == 400

    res = client.post(f'/api/sessions/{sid}/choices', json={'user_id': bob})
    assert res.status_code == 400

    res = client.get(f'/api/sessions/{sid}/questions/nope/results')
    assert res.status_code == 404


def test_stale_write_is_409(client, users, monkeypatch):
    alice, bob = users['alice'], users['bob']
    sid = _create_session(client, alice)['id']

    load = SqlAlchemySessionRepository.get

    def load_stale(self, session_id):
        session = load(self, session_id)
        session.version -= 1
        return session

    monkeypatch.setattr(SqlAlchemySessionRepository, 'get', load_stale)
    res = client.post(f'/api/sessions/{sid}/players', json={'user_id': bob})
    assert res.status_code == 409
    assert res.get_json() == {'error': 'Session was modified by another request, reload and retry'}

    monkeypatch.undo()
    state = client.get(f'/api/sessions/{sid}').get_json()
    assert state['players'] == [alice]
    assert client.post(f'/api/sessions/{sid}/players', json={'user_id': bob}).status_code == 200
