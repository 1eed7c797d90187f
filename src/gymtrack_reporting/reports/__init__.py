# Import all report modules so they register themselves.
from . import gym  # noqa: F401
from . import member  # noqa: F401
