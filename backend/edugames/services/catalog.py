from typing import List, NamedTuple, Optional

from .errors import NotFoundError


DEFAULT_MAX_STARS = 36


class GameInfo(NamedTuple):
    game_id: str
    title: str
    max_stars: Optional[int] = None


GAMES: List[GameInfo] = [
    GameInfo('parabola', 'Parabola', 18),
    GameInfo('balancer', 'Balancer', 30),
    GameInfo('graph_master', 'Graph Master', 24),
    GameInfo('chemical_detective', 'Chemical Detective'),
    GameInfo('constructor', 'Constructor', 27),
]

_BY_ID = {g.game_id: g for g in GAMES}


def list_games():
    return [{'game_id': g.game_id, 'title': g.title} for g in GAMES]


def is_known_game(game_id: str) -> bool:
    return game_id in _BY_ID


def require_game(game_id: str) -> GameInfo:
    game = _BY_ID.get(game_id)
    if game is None:
        raise NotFoundError('unknown_game')
    return game


def max_stars(game_id: str) -> int:
    game = _BY_ID.get(game_id)
    if game is None or game.max_stars is None:
        return DEFAULT_MAX_STARS
    return game.max_stars


def exit_threshold(game_id: str) -> int:
    """Stars needed to unlock the exit test: half the maximum, rounded down."""
    return max_stars(game_id) // 2
