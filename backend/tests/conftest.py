import os
import sys
import pytest

# Ensure the backend root (containing the `edugames` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from edugames import create_app, db
from edugames.models import GameStats, User, new_id
from edugames.services.context import get_collaborators
from edugames.services.delivery import DeliveryError
from edugames.services.raw_events import ArchiveError


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    OTP_MODE = 'mock'
    OTP_MOCK_CODE = '0000'
    DEBUG_OTP = False
    RAW_EVENTS_DIR = None
    MAX_SESSION_EVENTS = 5


class RecordingSender:
    mode = 'recording'
    failure_code = 'otp_failed'

    def __init__(self, code='1234'):
        self.code = code
        self.sent = []

    def generate_code(self):
        return self.code

    def send(self, phone, code):
        self.sent.append((phone, code))


class FailingSender(RecordingSender):
    failure_code = 'telegram_failed'

    def send(self, phone, code):
        raise DeliveryError('gateway unavailable')


class MemorySink:
    prefix = 'raw'

    def __init__(self, fail=False):
        self.fail = fail
        self.objects = {}

    def put(self, key, lines):
        if self.fail:
            raise ArchiveError('bucket unavailable')
        self.objects[key] = lines
        return f"mem://{key}"


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import edugames.models  # noqa: F401
        db.create_all()
    # Requests push their own app context so Flask-Login state stays per request
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sender(flask_app):
    recording = RecordingSender()
    flask_app.extensions["edugames"].code_sender = recording
    return recording


@pytest.fixture()
def sink(flask_app):
    memory = MemorySink()
    flask_app.extensions["edugames"].event_sink = memory
    return memory


@pytest.fixture()
def make_user(flask_app):
    """Create a user directly and return ``(user_id, auth headers)``."""
    counter = {'n': 0}

    def _make(name='', stats=None):
        counter['n'] += 1
        user_id = new_id()
        with flask_app.app_context():
            user = User(user_id=user_id, phone=f"+7900000{counter['n']:04d}", name=name)
            db.session.add(user)
            for game_id, stars in (stats or {}).items():
                db.session.add(GameStats(user_id=user_id, game_id=game_id, last_stars=stars, best_stars=stars))
            db.session.commit()
            token = get_collaborators().tokens.mint(user)
        return user_id, {'Authorization': f'Bearer {token}'}

    return _make


PARABOLA_ENTRY = {'q1': 'b', 'q2': 'c', 'q3': 'a', 'q4': ['b', 'c'], 'q5': 'c'}
PARABOLA_EXIT = {'q1': 'b', 'q2': 'a', 'q3': 'c', 'q4': ['a', 'b'], 'q5': 'b'}
