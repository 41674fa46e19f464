"""Top-level package for the 101 card game engine."""

from . import actions, cards, events, match, policy, rules, scoreboard, state

__all__ = [
    "actions",
    "cards",
    "events",
    "match",
    "policy",
    "rules",
    "scoreboard",
    "state",
]
