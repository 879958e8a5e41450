from flask import current_app

from .delivery import build_code_sender
from .raw_events import build_event_sink
from .tokens import TokenMinter


class Collaborators:
    """Long-lived handles to everything outside the database.

    Built once by ``create_app`` and kept in ``app.extensions['edugames']``.
    Tests swap individual attributes for fakes.
    """

    def __init__(self, tokens, code_sender, event_sink):
        self.tokens = tokens
        self.code_sender = code_sender
        self.event_sink = event_sink

    @classmethod
    def from_config(cls, config):
        return cls(
            tokens=TokenMinter(config.get('SECRET_KEY'), int(config.get('TOKEN_MAX_AGE_SEC', 30 * 24 * 3600))),
            code_sender=build_code_sender(config),
            event_sink=build_event_sink(config),
        )


def get_collaborators() -> Collaborators:
    return current_app.extensions['edugames']
