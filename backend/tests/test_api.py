import json

from conftest import make_questions
from quizroom import get_engine


def _played_room(flask_app):
    engine = get_engine(flask_app)
    code = engine.create_room('host').result['code']
    engine.load_questions(code, 'host', make_questions(2))
    engine.join(code, 'sid-a', 'Alice')
    engine.join(code, 'sid-b', 'Bob')
    engine.start(code, 'host')
    engine.submit_answer(code, 'sid-b', 0)
    engine.reveal(code, 'host')
    return code


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health_counts_rooms(flask_app, client):
    assert client.get('/health').get_json() == {'status': 'ok', 'rooms': 0}
    get_engine(flask_app).create_room('host')
    assert client.get('/health').get_json()['rooms'] == 1


def test_room_state(flask_app, client):
    code = _played_room(flask_app)
    res = client.get(f'/api/rooms/{code.lower()}')
    assert res.status_code == 200
    state = res.get_json()
    assert state == {
        'code': code,
        'state': 'reveal',
        'currentIndex': 0,
        'questionsCount': 2,
        'leaderboard': [{'name': 'Bob', 'score': 1000}, {'name': 'Alice', 'score': 0}],
    }


def test_room_state_missing(client):
    res = client.get('/api/rooms/NOPE99')
    assert res.status_code == 404
    body = res.get_json()
    assert body['ok'] is False
    assert body['error'] == 'RoomNotFound'


def test_public_leaderboard_is_truncated(flask_app, client):
    engine = get_engine(flask_app)
    code = engine.create_room('host').result['code']
    for i in range(12):
        engine.join(code, f'sid-{i}', f'P{i}')
    engine.disconnect('host')
    state = client.get(f'/api/rooms/{code}').get_json()
    assert state['state'] == 'ended'
    assert len(state['leaderboard']) == 10
    full = client.get(f'/api/rooms/{code}/leaderboard').get_json()
    assert len(full['leaderboard']) == 12
    assert full['leaderboard'][0] == {'name': 'P0', 'score': 0}


def test_check_questions_command(flask_app, tmp_path):
    path = tmp_path / 'quiz.json'
    payload = {'questions': make_questions(2) + [{'text': 'bad', 'options': []}]}
    path.write_text(json.dumps(payload), encoding='utf-8')
    result = flask_app.test_cli_runner().invoke(args=['check-questions', str(path)])
    assert result.exit_code == 0
    assert ' 1. Question 1? (4 options, 1000 pts, 15s)' in result.output
    assert '2 usable, 1 skipped' in result.output


def test_check_questions_command_rejects_empty(flask_app, tmp_path):
    path = tmp_path / 'quiz.json'
    path.write_text('[]', encoding='utf-8')
    result = flask_app.test_cli_runner().invoke(args=['check-questions', str(path)])
    assert result.exit_code != 0
    assert 'No usable questions' in result.output


def test_check_questions_command_rejects_bad_json(flask_app, tmp_path):
    path = tmp_path / 'quiz.json'
    path.write_text('{nope', encoding='utf-8')
    result = flask_app.test_cli_runner().invoke(args=['check-questions', str(path)])
    assert result.exit_code != 0
    assert 'not valid JSON' in result.output
