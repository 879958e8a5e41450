from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from edugames.services import identity
from edugames.services.progression import compute_dashboard

main = Blueprint('main', __name__)


def _body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@main.route('/auth/start', methods=['POST'])
def auth_start():
    data = _body()
    result = identity.start_auth(data.get('phone'))
    body = {'ok': True}
    if 'debug_code' in result:
        body['debug_code'] = result['debug_code']
    return jsonify(body)


@main.route('/auth/verify', methods=['POST'])
def auth_verify():
    data = _body()
    result = identity.verify_auth(data.get('phone'), data.get('code'))
    return jsonify({'ok': True, 'token': result['token'], 'user': result['user']})


@main.route('/me', methods=['GET'])
@login_required
def me():
    profile = current_user.to_dict()
    profile['games'] = compute_dashboard(current_user.user_id)
    return jsonify({'ok': True, 'user': profile})


@main.route('/me', methods=['POST'])
@login_required
def set_name():
    data = _body()
    user = identity.set_name(current_user._get_current_object(), data.get('name'))
    return jsonify({'ok': True, 'user': user})
