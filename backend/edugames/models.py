from edugames import db
from flask_login import UserMixin
from datetime import datetime, timezone
import json
import uuid


def utcnow():
    """Naive UTC timestamp, matching what SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return str(uuid.uuid4())


def _loads(raw, default=None):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        return default


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    user_id = db.Column(db.String(36), primary_key=True, default=new_id)
    phone = db.Column(db.String(32), unique=True, nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False, default='')
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def get_id(self):
        return self.user_id

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'phone': self.phone,
            'name': self.name or '',
        }


class AuthCode(db.Model):
    __tablename__ = 'auth_code'
    phone = db.Column(db.String(32), primary_key=True)
    code_hash = db.Column(db.String(64), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class GameStats(db.Model):
    __tablename__ = 'game_stats'
    user_id = db.Column(db.String(36), db.ForeignKey('user.user_id'), primary_key=True)
    game_id = db.Column(db.String(64), primary_key=True)
    last_stars = db.Column(db.Integer, nullable=False, default=0)
    best_stars = db.Column(db.Integer, nullable=False, default=0)
    last_updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'last_stars': self.last_stars,
            'best_stars': self.best_stars,
        }


class Save(db.Model):
    __tablename__ = 'save'
    user_id = db.Column(db.String(36), db.ForeignKey('user.user_id'), primary_key=True)
    game_id = db.Column(db.String(64), primary_key=True)
    payload_json = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def payload(self):
        return _loads(self.payload_json)

    def to_dict(self):
        return {
            'updated_at': self.updated_at.isoformat() + 'Z',
            'payload': self.payload,
        }


class PlaySession(db.Model):
    __tablename__ = 'play_session'
    session_id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('user.user_id'), nullable=False, index=True)
    game_id = db.Column(db.String(64), nullable=False)
    started_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    finished_at = db.Column(db.DateTime, nullable=True)
    reason = db.Column(db.String(64), nullable=False, default='')
    summary_json = db.Column(db.Text, nullable=False, default='{}')
    stars_total = db.Column(db.Integer, nullable=False, default=0)
    raw_key = db.Column(db.String(512), nullable=False, default='')

    @property
    def is_finished(self):
        return self.finished_at is not None

    @property
    def summary(self):
        return _loads(self.summary_json, {})


class TestResult(db.Model):
    __tablename__ = 'test_result'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'game_id', 'test_type', name='uq_test_result_attempt'),
    )
    # Keep pytest from collecting the model as a test class
    __test__ = False

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey('user.user_id'), nullable=False, index=True)
    game_id = db.Column(db.String(64), nullable=False)
    test_type = db.Column(db.String(8), nullable=False)  # entry, exit
    score = db.Column(db.Integer, nullable=False)
    max_score = db.Column(db.Integer, nullable=False)
    answers_json = db.Column(db.Text, nullable=False, default='{}')
    details_json = db.Column(db.Text, nullable=False, default='{}')
    taken_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'test_type': self.test_type,
            'score': self.score,
            'max_score': self.max_score,
            'answers': _loads(self.answers_json, {}),
            'details': _loads(self.details_json, {}),
            'taken_at': self.taken_at.isoformat() + 'Z',
        }
