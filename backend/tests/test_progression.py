import pytest

from conftest import PARABOLA_ENTRY, PARABOLA_EXIT
from edugames.services import assessments, catalog, progression
from edugames.services.errors import ConflictError, GateError


def test_catalog_thresholds():
    assert catalog.max_stars('parabola') == 18
    assert catalog.exit_threshold('parabola') == 9
    assert catalog.max_stars('constructor') == 27
    assert catalog.exit_threshold('constructor') == 13
    assert catalog.max_stars('chemical_detective') == catalog.DEFAULT_MAX_STARS
    assert catalog.max_stars('not_listed') == 36
    assert catalog.exit_threshold('not_listed') == 18


def test_new_player_needs_entry_test(app_ctx, make_user):
    user_id, _ = make_user()
    assert progression.needs_entry_test(user_id, 'parabola')
    with pytest.raises(GateError) as exc:
        progression.can_start_session(user_id, 'parabola')
    assert exc.value.code == 'entry_test_required'


def test_entry_result_opens_sessions(app_ctx, make_user):
    user_id, _ = make_user()
    assessments.submit_test(user_id, 'parabola', 'entry', dict(PARABOLA_ENTRY, q1='a'))
    assert not progression.needs_entry_test(user_id, 'parabola')
    progression.can_start_session(user_id, 'parabola')
    # Other games stay gated
    assert progression.needs_entry_test(user_id, 'balancer')


def test_existing_stats_are_grandfathered(app_ctx, make_user):
    user_id, _ = make_user(stats={'balancer': 0})
    assert not progression.needs_entry_test(user_id, 'balancer')
    progression.can_start_session(user_id, 'balancer')
    # Entry test may still be taken once
    progression.can_submit_entry_test(user_id, 'balancer')


def test_exit_test_locked_below_threshold(app_ctx, make_user):
    user_id, _ = make_user(stats={'parabola': 8})
    with pytest.raises(GateError) as exc:
        progression.can_submit_exit_test(user_id, 'parabola')
    assert exc.value.code == 'exit_test_locked'
    assert exc.value.extra == {'best_stars': 8, 'required_stars': 9}


def test_exit_test_single_attempt(app_ctx, make_user):
    user_id, _ = make_user(stats={'parabola': 9})
    result = assessments.submit_test(user_id, 'parabola', 'exit', PARABOLA_EXIT)
    assert result['score'] == result['max_score'] == 10
    with pytest.raises(ConflictError) as exc:
        assessments.submit_test(user_id, 'parabola', 'exit', PARABOLA_EXIT)
    assert exc.value.code == 'test_already_done'


def test_already_done_wins_over_lock(app_ctx, make_user):
    user_id, _ = make_user(stats={'parabola': 9})
    assessments.submit_test(user_id, 'parabola', 'exit', PARABOLA_EXIT)
    with pytest.raises(ConflictError):
        progression.can_submit_exit_test(user_id, 'parabola')


def test_test_view_switches_to_result(app_ctx, make_user):
    user_id, _ = make_user()
    view = assessments.get_test(user_id, 'parabola', 'exit')
    assert view['done'] is False
    assert view['locked'] is True
    assert view['required_stars'] == 9

    assessments.submit_test(user_id, 'parabola', 'entry', PARABOLA_ENTRY)
    view = assessments.get_test(user_id, 'parabola', 'entry')
    assert view['done'] is True
    assert view['result']['answers']['q4'] == ['b', 'c']
    assert view['result']['details']['points']['q1'] == 2
    assert 'questions' not in view


def test_dashboard(app_ctx, make_user):
    user_id, _ = make_user(stats={'graph_master': 12})
    assessments.submit_test(user_id, 'parabola', 'entry', dict(PARABOLA_ENTRY, q2='a'))
    games = {g['game_id']: g for g in progression.compute_dashboard(user_id)}
    assert list(games) == [g.game_id for g in catalog.GAMES]

    parabola = games['parabola']
    assert parabola['entry_test_done'] is True
    assert parabola['entry_score'] == 8
    assert parabola['needs_entry_test'] is False
    assert parabola['can_take_exit_test'] is False
    assert parabola['exit_score'] is None

    graph = games['graph_master']
    assert graph['best_stars'] == 12
    assert graph['exit_threshold'] == 12
    assert graph['needs_entry_test'] is False
    assert graph['can_take_exit_test'] is True

    assert games['balancer']['needs_entry_test'] is True
    assert games['balancer']['has_save'] is False
