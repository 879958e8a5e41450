from datetime import timedelta

import pytest

from conftest import FailingSender
from edugames import db
from edugames.models import AuthCode, GameStats, User, utcnow
from edugames.services import identity
from edugames.services.context import get_collaborators
from edugames.services.errors import AuthenticationError, UpstreamError, ValidationError


@pytest.mark.parametrize('raw', [
    '+79123456789',
    '+7 (912) 345-67-89',
    '89123456789',
    '79123456789',
    '9123456789',
    ' 8 912 345 67 89 ',
])
def test_normalize_phone_accepts_national_formats(raw):
    assert identity.normalize_phone(raw) == '+79123456789'


@pytest.mark.parametrize('raw', ['12345', '+1 212 555 0100', 'call me', '+7912345678', '84951234567', '+89123456789'])
def test_normalize_phone_rejects_other_numbers(raw):
    with pytest.raises(ValidationError) as exc:
        identity.normalize_phone(raw)
    assert exc.value.code == 'phone_invalid'


def test_start_stores_only_hash(app_ctx, sender):
    identity.start_auth('89123456789')
    record = db.session.get(AuthCode, '+79123456789')
    assert record.code_hash == identity.hash_code('1234')
    assert record.code_hash != '1234'
    assert sender.sent == [('+79123456789', '1234')]
    ttl = record.expires_at - utcnow()
    assert timedelta(minutes=9) < ttl <= timedelta(minutes=10)


def test_start_replaces_pending_code(app_ctx, sender):
    identity.start_auth('+79123456789')
    sender.code = '5678'
    identity.start_auth('+79123456789')
    assert AuthCode.query.count() == 1
    with pytest.raises(AuthenticationError):
        identity.verify_auth('+79123456789', '1234')
    assert identity.verify_auth('+79123456789', '5678')['token']


def test_failed_delivery_removes_pending_code(app_ctx):
    get_collaborators().code_sender = FailingSender()
    with pytest.raises(UpstreamError) as exc:
        identity.start_auth('+79123456789')
    assert exc.value.code == 'telegram_failed'
    assert exc.value.status == 500
    assert db.session.get(AuthCode, '+79123456789') is None


def test_failed_delivery_over_http(client, flask_app):
    flask_app.extensions['edugames'].code_sender = FailingSender()
    flask_app.config['DEBUG_OTP'] = True
    res = client.post('/api/auth/start', json={'phone': '+79123456789'})
    assert res.status_code == 500
    assert res.get_json() == {'ok': False, 'error': 'telegram_failed', 'debug_code': '1234'}


class CrashingSender(FailingSender):
    def send(self, phone, code):
        raise AttributeError("'list' object has no attribute 'get'")


def test_crashing_sender_leaves_no_pending_code(client, flask_app):
    flask_app.extensions['edugames'].code_sender = CrashingSender()
    res = client.post('/api/auth/start', json={'phone': '+79123456789'})
    assert res.status_code == 500
    assert res.get_json() == {'ok': False, 'error': 'telegram_failed'}
    with flask_app.app_context():
        assert db.session.get(AuthCode, '+79123456789') is None


def test_wrong_code_keeps_record_for_retry(app_ctx, sender):
    identity.start_auth('+79123456789')
    with pytest.raises(AuthenticationError) as exc:
        identity.verify_auth('+79123456789', '9999')
    assert exc.value.code == 'code_invalid'
    assert db.session.get(AuthCode, '+79123456789') is not None
    result = identity.verify_auth('+79123456789', '1234')
    assert result['user']['phone'] == '+79123456789'


def test_expired_code_is_consumed(app_ctx, sender):
    identity.start_auth('+79123456789')
    later = utcnow() + timedelta(minutes=11)
    with pytest.raises(AuthenticationError) as exc:
        identity.verify_auth('+79123456789', '1234', now=later)
    assert exc.value.code == 'code_expired'
    with pytest.raises(AuthenticationError) as exc:
        identity.verify_auth('+79123456789', '1234', now=later)
    assert exc.value.code == 'code_invalid'


def test_verify_creates_user_once(app_ctx, sender):
    identity.start_auth('+79123456789')
    first = identity.verify_auth('+79123456789', '1234')
    identity.start_auth('+79123456789')
    second = identity.verify_auth('+79123456789', '1234')
    assert first['user']['user_id'] == second['user']['user_id']
    assert User.query.count() == 1
    assert first['user']['name'] == ''


def test_token_round_trip(app_ctx, sender):
    identity.start_auth('+79123456789')
    result = identity.verify_auth('+79123456789', '1234')
    user = identity.user_for_token(result['token'])
    assert user.user_id == result['user']['user_id']
    assert identity.user_for_token(result['token'] + 'x') is None
    assert identity.user_for_token('') is None


def test_token_for_deleted_user(app_ctx, sender):
    identity.start_auth('+79123456789')
    result = identity.verify_auth('+79123456789', '1234')
    User.query.delete()
    db.session.commit()
    assert identity.user_for_token(result['token']) is None


def test_import_legacy_stats_keeps_best(app_ctx):
    identity.import_legacy_stats('+79123456789', 'parabola', 7)
    stats = identity.import_legacy_stats('+79123456789', 'parabola', 4)
    assert stats.best_stars == 7
    assert GameStats.query.count() == 1
