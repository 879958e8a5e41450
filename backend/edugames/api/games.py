from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from edugames.services import assessments, catalog, saves, sessions


games = Blueprint('games', __name__)


def _body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@games.route('', methods=['GET'])
def list_games():
    return jsonify({'ok': True, 'games': catalog.list_games()})


@games.route('/<string:game_id>/save', methods=['GET'])
@login_required
def get_save(game_id):
    return jsonify({'ok': True, 'save': saves.get_save(current_user.user_id, game_id)})


@games.route('/<string:game_id>/save', methods=['PUT'])
@login_required
def put_save(game_id):
    data = _body()
    payload = data.get('save')
    if payload is None:
        payload = data.get('payload')
    saves.put_save(current_user.user_id, game_id, payload)
    return jsonify({'ok': True})


@games.route('/<string:game_id>/save', methods=['DELETE'])
@login_required
def delete_save(game_id):
    saves.delete_save(current_user.user_id, game_id)
    return jsonify({'ok': True})


@games.route('/<string:game_id>/tests/<string:test_type>', methods=['GET'])
@login_required
def get_test(game_id, test_type):
    view = assessments.get_test(current_user.user_id, game_id, test_type)
    return jsonify({'ok': True, **view})


@games.route('/<string:game_id>/tests/<string:test_type>/submit', methods=['POST'])
@login_required
def submit_test(game_id, test_type):
    data = _body()
    result = assessments.submit_test(current_user.user_id, game_id, test_type, data.get('answers'))
    return jsonify({'ok': True, **result})


@games.route('/<string:game_id>/session/start', methods=['POST'])
@login_required
def start_session(game_id):
    session_id = sessions.start(current_user.user_id, game_id)
    return jsonify({'ok': True, 'session_id': session_id})


@games.route('/<string:game_id>/session/<string:session_id>/finish', methods=['POST'])
@login_required
def finish_session(game_id, session_id):
    data = _body()
    result = sessions.finish(
        current_user.user_id,
        game_id,
        session_id,
        reason=data.get('reason'),
        summary=data.get('summary'),
        events=data.get('events'),
    )
    return jsonify({'ok': True, **result})
