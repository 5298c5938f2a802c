from enum import Enum


class PersistenceMode(str, Enum):
    """Which backend the goal store writes through to, fixed when the session initializes."""

    remote = "remote"
    local = "local"
