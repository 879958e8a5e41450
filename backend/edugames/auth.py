import re

from edugames.services.identity import user_for_token

_BEARER = re.compile(r'^Bearer\s+(.+)$', re.IGNORECASE)


def bearer_token(request) -> str:
    match = _BEARER.match(request.headers.get('Authorization', '').strip())
    return match.group(1).strip() if match else ''


def load_user_from_request(request):
    """Flask-Login request loader: resolve ``Authorization: Bearer <token>`` to a User."""
    token = bearer_token(request)
    if not token:
        return None
    return user_for_token(token)
