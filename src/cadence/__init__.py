"""cadence: adaptive spaced-repetition scheduling and study-session regulation."""

from cadence.consts import VERSION

__version__ = VERSION
