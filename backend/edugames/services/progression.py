"""Gating rules around gameplay and quizzes.

The entry test is required before a user's first recorded result for a game,
unless stats already exist for them (imported players are grandfathered).
The exit test unlocks once best stars reach half the game's maximum. Both
tests are single attempt.
"""
from typing import Optional

from edugames import db
from edugames.models import GameStats, Save, TestResult
from .catalog import GAMES, exit_threshold, max_stars
from .errors import ConflictError, GateError, ValidationError
from .quizzes import TEST_TYPES


def require_test_type(test_type: str) -> str:
    if test_type not in TEST_TYPES:
        raise ValidationError('unknown_test_type')
    return test_type


def get_stats(user_id: str, game_id: str) -> Optional[GameStats]:
    return db.session.get(GameStats, (user_id, game_id))


def get_result(user_id: str, game_id: str, test_type: str) -> Optional[TestResult]:
    return TestResult.query.filter_by(user_id=user_id, game_id=game_id, test_type=test_type).first()


def has_result(user_id: str, game_id: str, test_type: str) -> bool:
    return get_result(user_id, game_id, test_type) is not None


def best_stars(user_id: str, game_id: str) -> int:
    stats = get_stats(user_id, game_id)
    return int(stats.best_stars or 0) if stats else 0


def needs_entry_test(user_id: str, game_id: str) -> bool:
    if has_result(user_id, game_id, 'entry'):
        return False
    return get_stats(user_id, game_id) is None


def can_start_session(user_id: str, game_id: str) -> None:
    if needs_entry_test(user_id, game_id):
        raise GateError('entry_test_required')


def can_submit_entry_test(user_id: str, game_id: str) -> None:
    if has_result(user_id, game_id, 'entry'):
        raise ConflictError('test_already_done')


def can_submit_exit_test(user_id: str, game_id: str) -> None:
    if has_result(user_id, game_id, 'exit'):
        raise ConflictError('test_already_done')
    best = best_stars(user_id, game_id)
    required = exit_threshold(game_id)
    if best < required:
        raise GateError('exit_test_locked', best_stars=best, required_stars=required)


def can_submit_test(user_id: str, game_id: str, test_type: str) -> None:
    if require_test_type(test_type) == 'entry':
        can_submit_entry_test(user_id, game_id)
    else:
        can_submit_exit_test(user_id, game_id)


def compute_dashboard(user_id: str) -> list:
    """Per-game progress for the profile page, in catalog order."""
    stats = {s.game_id: s for s in GameStats.query.filter_by(user_id=user_id).all()}
    saves = {row.game_id for row in Save.query.filter_by(user_id=user_id).with_entities(Save.game_id).all()}
    results = {}
    for r in TestResult.query.filter_by(user_id=user_id).all():
        results[(r.game_id, r.test_type)] = r

    games = []
    for game in GAMES:
        st = stats.get(game.game_id)
        entry = results.get((game.game_id, 'entry'))
        exit_ = results.get((game.game_id, 'exit'))
        best = int(st.best_stars or 0) if st else 0
        threshold = exit_threshold(game.game_id)
        games.append({
            'game_id': game.game_id,
            'title': game.title,
            'last_stars': int(st.last_stars or 0) if st else 0,
            'best_stars': best,
            'has_save': game.game_id in saves,
            'max_stars': max_stars(game.game_id),
            'exit_threshold': threshold,
            'entry_test_done': entry is not None,
            'exit_test_done': exit_ is not None,
            'needs_entry_test': entry is None and st is None,
            'can_take_exit_test': exit_ is None and best >= threshold,
            'entry_score': entry.score if entry else None,
            'exit_score': exit_.score if exit_ else None,
        })
    return games
