import json
import math
from dataclasses import dataclass
from typing import List, Union

from flask import current_app

from edugames import db
from edugames.models import GameStats, PlaySession, new_id, utcnow
from .catalog import require_game
from .context import get_collaborators
from .errors import ConflictError, NotFoundError
from .progression import can_start_session
from .raw_events import ArchiveError, build_key, render_lines


@dataclass(frozen=True)
class ExplicitStars:
    total: float


@dataclass(frozen=True)
class LevelStars:
    levels: List[object]


@dataclass(frozen=True)
class NoStars:
    pass


StarsSummary = Union[ExplicitStars, LevelStars, NoStars]

# Star columns are 32-bit integers
STARS_LIMIT = 2 ** 31 - 1


def _is_number(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def parse_summary(summary) -> StarsSummary:
    """Classify a game-reported summary by how it carries stars."""
    if not isinstance(summary, dict):
        return NoStars()
    if _is_number(summary.get('stars_total')):
        return ExplicitStars(summary['stars_total'])
    if isinstance(summary.get('stars_by_level'), list):
        return LevelStars(summary['stars_by_level'])
    return NoStars()


def _level_value(value) -> float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if _is_number(value):
        return value
    if isinstance(value, str):
        try:
            parsed = float(value.strip() or 0)
        except ValueError:
            return 0
        return parsed if math.isfinite(parsed) else 0
    return 0


def stars_total(summary: StarsSummary) -> int:
    if isinstance(summary, ExplicitStars):
        return min(STARS_LIMIT, max(0, math.floor(summary.total)))
    if isinstance(summary, LevelStars):
        total = sum(_level_value(v) for v in summary.levels)
        if not math.isfinite(total):
            return 0
        return max(-STARS_LIMIT, min(STARS_LIMIT, math.floor(total)))
    return 0


def start(user_id: str, game_id: str) -> str:
    require_game(game_id)
    can_start_session(user_id, game_id)
    session = PlaySession(session_id=new_id(), user_id=user_id, game_id=game_id, started_at=utcnow())
    db.session.add(session)
    db.session.commit()
    current_app.logger.info(f"[session-start] session={session.session_id} user={user_id} game={game_id}")
    return session.session_id


def archive_events(game_id: str, user_id: str, session_id: str, events, summary) -> str:
    """Store raw events; return a reference, or '' when archival fails."""
    sink = get_collaborators().event_sink
    key = build_key(getattr(sink, 'prefix', 'raw'), game_id, user_id, session_id, utcnow())
    try:
        return sink.put(key, render_lines(game_id, user_id, session_id, events, summary))
    except ArchiveError as exc:
        current_app.logger.warning(f"[archive-failed] session={session_id}: {exc}")
        return ''


def record_stars(user_id: str, game_id: str, stars: int) -> GameStats:
    """Overwrite last_stars and raise best_stars to at least ``stars``. The caller commits."""
    stats = db.session.get(GameStats, (user_id, game_id))
    if stats is None:
        stats = GameStats(user_id=user_id, game_id=game_id, best_stars=0)
    stats.last_stars = stars
    stats.best_stars = max(int(stats.best_stars or 0), stars)
    stats.last_updated_at = utcnow()
    db.session.add(stats)
    return stats


def finish(user_id: str, game_id: str, session_id: str, reason=None, summary=None, events=None) -> dict:
    require_game(game_id)
    session = db.session.get(PlaySession, session_id)
    # Only the owner may finish, and only under the game it was started for
    if session is None or session.user_id != user_id or session.game_id != game_id:
        raise NotFoundError('session_not_found')
    if session.is_finished:
        raise ConflictError('session_already_finished')

    summary = summary if isinstance(summary, dict) else {}
    events = events if isinstance(events, list) else []
    limit = int(current_app.config.get('MAX_SESSION_EVENTS', 4000))
    events = events[:limit]
    reason = str(reason or 'exit')[:64]

    stars = stars_total(parse_summary(summary))
    raw_key = archive_events(game_id, user_id, session_id, events, summary)

    session.finished_at = utcnow()
    session.reason = reason
    session.summary_json = json.dumps(summary)
    session.stars_total = stars
    session.raw_key = raw_key
    db.session.add(session)
    stats = record_stars(user_id, game_id, stars)
    db.session.commit()

    current_app.logger.info(
        f"[session-finish] session={session_id} user={user_id} game={game_id} "
        f"reason={reason} stars={stars} best={stats.best_stars}"
    )
    return {'stars_total': stars, 'raw_key': raw_key}
