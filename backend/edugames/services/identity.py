import hashlib
import hmac
import re
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from edugames import db
from edugames.models import AuthCode, GameStats, User, utcnow
from .catalog import require_game
from .context import get_collaborators
from .delivery import DeliveryError
from .errors import AuthenticationError, UpstreamError, ValidationError

_PHONE_CHARS = re.compile(r'^\+?[\d\s()\-]+$')


def normalize_phone(raw) -> str:
    """Canonicalise a Russian mobile number to ``+7XXXXXXXXXX``.

    Accepts ``+7 912 345-67-89``, ``8 (912) 3456789``, ``79123456789`` and the
    bare ten-digit ``9123456789``. Anything else raises ``phone_invalid``.
    """
    text = str(raw or '').strip()
    if not text:
        raise ValidationError('phone_required')
    if not _PHONE_CHARS.match(text):
        raise ValidationError('phone_invalid')
    digits = re.sub(r'\D', '', text)
    if len(digits) == 11 and (digits[0] == '7' or (digits[0] == '8' and not text.startswith('+'))):
        digits = digits[1:]
    elif text.startswith('+'):
        raise ValidationError('phone_invalid')
    if len(digits) != 10 or digits[0] != '9':
        raise ValidationError('phone_invalid')
    return '+7' + digits


def hash_code(code: str) -> str:
    return hashlib.sha256(str(code).encode('utf-8')).hexdigest()


def start_auth(phone) -> dict:
    """Issue a one-time code for ``phone`` and hand it to the delivery channel.

    Any pending code for the phone is replaced. If delivery fails the new
    record is removed again before the error surfaces.
    """
    phone = normalize_phone(phone)
    sender = get_collaborators().code_sender
    code = sender.generate_code()
    ttl = int(current_app.config.get('AUTH_CODE_TTL_SEC', 600))

    record = db.session.get(AuthCode, phone)
    if record is None:
        record = AuthCode(phone=phone)
    record.code_hash = hash_code(code)
    record.expires_at = utcnow() + timedelta(seconds=ttl)
    record.created_at = utcnow()
    db.session.add(record)
    db.session.commit()

    debug = {'debug_code': code} if current_app.config.get('DEBUG_OTP') else {}
    try:
        sender.send(phone, code)
    except Exception as exc:
        if isinstance(exc, DeliveryError):
            current_app.logger.warning(f"[auth-start] delivery failed phone={phone} mode={sender.mode}: {exc}")
        else:
            current_app.logger.exception(f"[auth-start] sender crashed phone={phone} mode={sender.mode}")
        AuthCode.query.filter_by(phone=phone).delete()
        db.session.commit()
        raise UpstreamError(sender.failure_code, **debug) from exc

    current_app.logger.info(f"[auth-start] phone={phone} mode={sender.mode}")
    return {'phone': phone, **debug}


def verify_auth(phone, code, now: Optional[datetime] = None) -> dict:
    """Consume a one-time code; return ``{token, user}`` for the phone's user."""
    if not str(phone or '').strip() or not str(code or '').strip():
        raise ValidationError('phone_and_code_required')
    phone = normalize_phone(phone)
    code = str(code).strip()
    now = now or utcnow()

    record = db.session.get(AuthCode, phone)
    if record is None:
        raise AuthenticationError('code_invalid')
    if record.expires_at < now:
        db.session.delete(record)
        db.session.commit()
        current_app.logger.info(f"[auth-verify] expired phone={phone}")
        raise AuthenticationError('code_expired')
    if not hmac.compare_digest(record.code_hash, hash_code(code)):
        raise AuthenticationError('code_invalid')

    db.session.delete(record)
    user = get_or_create_user(phone)
    db.session.commit()

    token = get_collaborators().tokens.mint(user)
    current_app.logger.info(f"[auth-verify] user={user.user_id}")
    return {'token': token, 'user': user.to_dict()}


def get_or_create_user(phone: str) -> User:
    """Look up a user by canonical phone, adding one with an empty name if absent.

    The caller commits.
    """
    user = User.query.filter_by(phone=phone).first()
    if user is None:
        user = User(phone=phone, name='')
        db.session.add(user)
        db.session.flush()
    return user


def user_for_token(token: str) -> Optional[User]:
    user_id = get_collaborators().tokens.verify(token)
    if not user_id:
        return None
    return db.session.get(User, user_id)


def set_name(user: User, name) -> dict:
    name = str(name or '').strip()
    if not name:
        raise ValidationError('name_required')
    user.name = name[:128]
    db.session.add(user)
    db.session.commit()
    return user.to_dict()


def import_legacy_stats(phone, game_id: str, stars: int) -> GameStats:
    """Record pre-existing stars for a user; such users skip the entry test."""
    phone = normalize_phone(phone)
    require_game(game_id)
    stars = max(0, int(stars))
    user = get_or_create_user(phone)
    stats = db.session.get(GameStats, (user.user_id, game_id))
    if stats is None:
        stats = GameStats(user_id=user.user_id, game_id=game_id, last_stars=stars, best_stars=stars)
    else:
        stats.best_stars = max(stats.best_stars or 0, stars)
    stats.last_updated_at = utcnow()
    db.session.add(stats)
    db.session.commit()
    return stats
