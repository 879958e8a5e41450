"""Question banks and quiz scoring.

Banks live as JSON files under ``edugames/data/quizzes/<game_id>.json`` with
an ``entry`` and an ``exit`` list. They are validated once on first load;
scoring itself is pure and never touches the database.
"""
import json
import os
import threading
from dataclasses import dataclass, field
from typing import Dict, List

from .errors import NotFoundError, ValidationError

TEST_TYPES = ('entry', 'exit')
POINTS_PER_QUESTION = 2

BANK_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', 'quizzes')

_banks: Dict[str, Dict[str, list]] = {}
_banks_lock = threading.Lock()


class BankError(ValueError):
    """A question bank file breaks an authoring rule."""


@dataclass
class ScoreResult:
    score: int
    max_score: int
    correct_map: Dict[str, List[str]]
    points: Dict[str, int] = field(default_factory=dict)
    selections: Dict[str, List[str]] = field(default_factory=dict)


def validate_bank(game_id: str, test_type: str, questions) -> list:
    where = f"{game_id}/{test_type}"
    if not isinstance(questions, list) or not questions:
        raise BankError(f"{where}: bank must be a non-empty list")
    seen = set()
    for q in questions:
        qid = str(q.get('id', ''))
        if not qid or qid in seen:
            raise BankError(f"{where}: missing or duplicate question id {qid!r}")
        seen.add(qid)
        option_ids = [str(o['id']) for o in q.get('options', [])]
        if len(set(option_ids)) != len(option_ids) or not option_ids:
            raise BankError(f"{where}/{qid}: options must be non-empty with unique ids")
        pick = q.get('pick')
        # A question never earns more than POINTS_PER_QUESTION
        if not isinstance(pick, int) or pick < 1 or pick > min(len(option_ids), POINTS_PER_QUESTION):
            raise BankError(f"{where}/{qid}: pick must be 1 or 2 and fit the options")
        correct = [str(c) for c in q.get('correct', [])]
        if not set(correct) <= set(option_ids):
            raise BankError(f"{where}/{qid}: correct ids must be option ids")
        if len(set(correct)) != pick:
            raise BankError(f"{where}/{qid}: expected {pick} correct ids, got {len(set(correct))}")
        if bool(q.get('multi')) != (pick > 1):
            raise BankError(f"{where}/{qid}: multi must be set exactly when pick > 1")
    return questions


def _load_all():
    banks = {}
    for name in sorted(os.listdir(BANK_DIR)):
        if not name.endswith('.json'):
            continue
        game_id = name[:-len('.json')]
        with open(os.path.join(BANK_DIR, name), encoding='utf-8') as fh:
            data = json.load(fh)
        banks[game_id] = {
            test_type: validate_bank(game_id, test_type, data[test_type])
            for test_type in TEST_TYPES if test_type in data
        }
    return banks


def get_banks():
    if not _banks:
        with _banks_lock:
            if not _banks:
                _banks.update(_load_all())
    return _banks


def get_bank(game_id: str, test_type: str) -> list:
    bank = get_banks().get(game_id, {}).get(test_type)
    if bank is None:
        raise NotFoundError('test_not_found')
    return bank


def get_questions(game_id: str, test_type: str) -> list:
    """The bank as shown to players: everything except the answer keys."""
    return [
        {
            'id': str(q['id']),
            'text': q['text'],
            'pick': q['pick'],
            'multi': bool(q.get('multi')),
            'options': [{'id': str(o['id']), 'text': o['text']} for o in q['options']],
        }
        for q in get_bank(game_id, test_type)
    ]


def max_score(game_id: str, test_type: str) -> int:
    return POINTS_PER_QUESTION * len(get_bank(game_id, test_type))


def _selection(raw) -> List[str]:
    if raw is None:
        values = []
    elif isinstance(raw, (list, tuple, set)):
        values = list(raw)
    else:
        values = [raw]
    selected = []
    for v in values:
        v = str(v)
        if v not in selected:
            selected.append(v)
    return selected


def score(game_id: str, test_type: str, answers) -> ScoreResult:
    """Check and grade ``answers`` (question id -> option id or list of ids).

    Single-pick questions are worth 2 points for the right option. Multi-pick
    questions earn 1 point per chosen option that is in the correct set.
    """
    bank = get_bank(game_id, test_type)
    if answers is None:
        answers = {}
    if not isinstance(answers, dict):
        raise ValidationError('answers_required')
    answers = {str(k): v for k, v in answers.items()}

    total = 0
    correct_map = {}
    points = {}
    selections = {}
    for q in bank:
        qid = str(q['id'])
        option_ids = {str(o['id']) for o in q['options']}
        correct = [str(c) for c in q['correct']]
        chosen = _selection(answers.get(qid))

        if any(c not in option_ids for c in chosen):
            raise ValidationError('invalid_option', question_id=qid)
        if len(chosen) != q['pick']:
            raise ValidationError('invalid_pick', question_id=qid, expected=q['pick'], got=len(chosen))

        if q['pick'] == 1:
            earned = POINTS_PER_QUESTION if chosen[0] == correct[0] else 0
        else:
            earned = sum(1 for c in chosen if c in correct)
        points[qid] = earned
        selections[qid] = chosen
        total += earned
        correct_map[qid] = correct

    return ScoreResult(
        score=total,
        max_score=POINTS_PER_QUESTION * len(bank),
        correct_map=correct_map,
        points=points,
        selections=selections,
    )
