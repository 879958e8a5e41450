import json
import os
import time
from datetime import datetime
from typing import Iterable, List, Optional


class ArchiveError(Exception):
    pass


def build_key(prefix: str, game_id: str, user_id: str, session_id: str, when: datetime) -> str:
    dt = when.strftime('%Y-%m-%d')
    return f"{prefix}/game={game_id}/dt={dt}/user={user_id}/session={session_id}.jsonl"


def render_lines(game_id: str, user_id: str, session_id: str, events: Iterable, summary) -> List[str]:
    """One meta line, the events as given, then the summary."""
    now_ms = int(time.time() * 1000)
    lines = [json.dumps({
        'type': 'meta',
        't': now_ms,
        'game_id': game_id,
        'user_id': user_id,
        'session_id': session_id,
    })]
    for event in events:
        lines.append(json.dumps(event))
    lines.append(json.dumps({'type': 'summary', 't': now_ms, 'summary': summary or {}}))
    return lines


class LocalEventSink:
    """Writes ``.jsonl`` archives under a directory; references look like ``local://<key>``."""

    def __init__(self, root: str, prefix: str = 'raw'):
        self.root = os.path.abspath(root)
        self.prefix = prefix.rstrip('/') or 'raw'

    def put(self, key: str, lines: List[str]) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if not path.startswith(self.root + os.sep):
            raise ArchiveError(f"key escapes archive root: {key}")
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', encoding='utf-8') as fh:
                fh.write('\n'.join(lines) + '\n')
        except OSError as exc:
            raise ArchiveError(str(exc)) from exc
        return f"local://{key}"


class DisabledEventSink:
    prefix = 'raw'

    def put(self, key: str, lines: List[str]) -> str:
        raise ArchiveError('raw event archive is not configured')


def build_event_sink(config):
    root: Optional[str] = config.get('RAW_EVENTS_DIR')
    if not root:
        return DisabledEventSink()
    return LocalEventSink(root, config.get('RAW_EVENTS_PREFIX', 'raw'))
