from . import config, events, pull, tags

__all__ = [
    "config",
    "events",
    "pull",
    "tags",
]
