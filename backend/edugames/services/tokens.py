from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer


class TokenMinter:
    """Signs and checks identity tokens carrying ``{user_id, phone, name}``."""

    salt = 'identity'

    def __init__(self, secret_key: str, max_age: int):
        if not secret_key:
            raise RuntimeError('SECRET_KEY is required to mint identity tokens')
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.salt)

    def mint(self, user) -> str:
        return self._serializer.dumps({
            'user_id': user.user_id,
            'phone': user.phone,
            'name': user.name or '',
        })

    def verify(self, token: str) -> Optional[str]:
        """Return the user id a token was minted for, or None."""
        if not token:
            return None
        try:
            # SignatureExpired is a BadSignature
            data = self._serializer.loads(token, max_age=self.max_age)
        except BadSignature:
            return None
        user_id = data.get('user_id') if isinstance(data, dict) else None
        if not isinstance(user_id, str) or not user_id:
            return None
        return user_id
