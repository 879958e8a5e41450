import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///edugames.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Identity tokens (seconds)
    TOKEN_MAX_AGE_SEC = int(os.environ.get('TOKEN_MAX_AGE_SEC', str(30 * 24 * 3600)))
    # One-time codes live for a fixed 10 minutes
    AUTH_CODE_TTL_SEC = 600
    # Code delivery: 'mock' logs a fixed code, 'telegram' uses the Telegram Gateway API
    OTP_MODE = os.environ.get('OTP_MODE', 'mock').lower()
    OTP_MOCK_CODE = os.environ.get('OTP_MOCK_CODE', '0000')
    DEBUG_OTP = os.environ.get('DEBUG_OTP', '0') == '1'
    TELEGRAM_GATEWAY_URL = os.environ.get('TELEGRAM_GATEWAY_URL', 'https://gatewayapi.telegram.org')
    TELEGRAM_GATEWAY_TOKEN = os.environ.get('TELEGRAM_GATEWAY_TOKEN', '')
    OTP_HTTP_TIMEOUT_SEC = float(os.environ.get('OTP_HTTP_TIMEOUT_SEC', '10'))
    # Raw telemetry archive. Unset disables archival (sessions record an empty raw_key)
    RAW_EVENTS_DIR = os.environ.get('RAW_EVENTS_DIR') or None
    RAW_EVENTS_PREFIX = os.environ.get('RAW_EVENTS_PREFIX', 'raw')
    MAX_SESSION_EVENTS = int(os.environ.get('MAX_SESSION_EVENTS', '4000'))
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
