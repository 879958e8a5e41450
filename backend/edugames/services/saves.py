import json
from typing import Optional

from edugames import db
from edugames.models import Save, utcnow
from .catalog import require_game
from .errors import ValidationError


def get_save(user_id: str, game_id: str) -> Optional[dict]:
    require_game(game_id)
    save = db.session.get(Save, (user_id, game_id))
    return save.to_dict() if save else None


def put_save(user_id: str, game_id: str, payload) -> None:
    require_game(game_id)
    if not isinstance(payload, dict):
        raise ValidationError('save_required')
    save = db.session.get(Save, (user_id, game_id))
    if save is None:
        save = Save(user_id=user_id, game_id=game_id)
    save.payload_json = json.dumps(payload)
    save.updated_at = utcnow()
    db.session.add(save)
    db.session.commit()


def delete_save(user_id: str, game_id: str) -> None:
    require_game(game_id)
    Save.query.filter_by(user_id=user_id, game_id=game_id).delete()
    db.session.commit()
