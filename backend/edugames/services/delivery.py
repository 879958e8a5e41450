import secrets
import threading

import httpx
from flask import current_app


class DeliveryError(Exception):
    pass


class MockCodeSender:
    """Logs the code instead of sending it; always issues the same code."""

    mode = 'mock'
    failure_code = 'otp_failed'

    def __init__(self, fixed_code: str = '0000'):
        self.fixed_code = fixed_code

    def generate_code(self) -> str:
        return self.fixed_code

    def send(self, phone: str, code: str) -> None:
        current_app.logger.info(f"[otp-mock] phone={phone} code={code}")


class TelegramCodeSender:
    """Delivers codes through the Telegram Gateway ``sendVerificationMessage`` call."""

    mode = 'telegram'
    failure_code = 'telegram_failed'

    def __init__(self, base_url: str, token: str, timeout: float = 10.0, transport=None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.transport = transport
        self._client = None
        self._lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = httpx.Client(
                        base_url=self.base_url,
                        timeout=self.timeout,
                        headers={'Authorization': f'Bearer {self.token}'},
                        transport=self.transport,
                    )
        return self._client

    def generate_code(self) -> str:
        return str(1000 + secrets.randbelow(9000))

    def send(self, phone: str, code: str) -> None:
        if not self.token:
            raise DeliveryError('TELEGRAM_GATEWAY_TOKEN is not set')
        try:
            response = self._get_client().post(
                '/sendVerificationMessage',
                json={'phone_number': phone, 'code': code, 'ttl': 600},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            raise DeliveryError(str(exc)) from exc
        if not isinstance(body, dict):
            raise DeliveryError(f"unexpected gateway reply: {body!r}")
        if not body.get('ok'):
            raise DeliveryError(body.get('error') or 'gateway rejected the message')


def build_code_sender(config):
    mode = (config.get('OTP_MODE') or 'mock').lower()
    if mode == 'mock':
        return MockCodeSender(config.get('OTP_MOCK_CODE', '0000'))
    if mode == 'telegram':
        return TelegramCodeSender(
            config.get('TELEGRAM_GATEWAY_URL', 'https://gatewayapi.telegram.org'),
            config.get('TELEGRAM_GATEWAY_TOKEN', ''),
            float(config.get('OTP_HTTP_TIMEOUT_SEC', 10)),
        )
    raise RuntimeError(f"Unknown OTP_MODE: {mode}")
