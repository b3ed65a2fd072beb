"""DeckOracle: study-session progression and progress analytics."""

from deckoracle.consts import VERSION

__version__ = VERSION
