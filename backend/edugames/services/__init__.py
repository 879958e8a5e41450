"""Platform domain services: catalog, identity, quizzes, progression, sessions.

Each module exposes one plain function per operation. Blueprints call these
and only deal with request parsing and the JSON envelope, keeping transport
concerns separated from the progression rules.
"""
