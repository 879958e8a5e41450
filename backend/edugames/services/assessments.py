import json

from flask import current_app
from sqlalchemy.exc import IntegrityError

from edugames import db
from edugames.models import TestResult
from . import quizzes
from .catalog import exit_threshold, require_game
from .errors import ConflictError
from .progression import best_stars, can_submit_test, get_result, require_test_type


def get_test(user_id: str, game_id: str, test_type: str) -> dict:
    """Questions for a test not yet taken, or the stored result of the attempt."""
    require_game(game_id)
    require_test_type(test_type)
    view = {'test_type': test_type}
    if test_type == 'exit':
        best = best_stars(user_id, game_id)
        required = exit_threshold(game_id)
        view.update(best_stars=best, required_stars=required, locked=best < required)

    result = get_result(user_id, game_id, test_type)
    if result is not None:
        view.update(done=True, result=result.to_dict())
        return view

    view.update(
        done=False,
        questions=quizzes.get_questions(game_id, test_type),
        max_score=quizzes.max_score(game_id, test_type),
    )
    return view


def submit_test(user_id: str, game_id: str, test_type: str, answers) -> dict:
    require_game(game_id)
    can_submit_test(user_id, game_id, test_type)
    graded = quizzes.score(game_id, test_type, answers)

    row = TestResult(
        user_id=user_id,
        game_id=game_id,
        test_type=test_type,
        score=graded.score,
        max_score=graded.max_score,
        answers_json=json.dumps(graded.selections),
        details_json=json.dumps({'correct': graded.correct_map, 'points': graded.points}),
    )
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent submission got there first
        db.session.rollback()
        raise ConflictError('test_already_done')

    current_app.logger.info(
        f"[test-submit] user={user_id} game={game_id} type={test_type} score={graded.score}/{graded.max_score}"
    )
    return {
        'score': graded.score,
        'max_score': graded.max_score,
        'correct': graded.correct_map,
    }
