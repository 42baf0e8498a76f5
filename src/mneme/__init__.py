"""mneme: spaced-repetition scheduling and review sessions."""

from mneme.consts import VERSION

__version__ = VERSION
