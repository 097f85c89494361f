"""European 90-ball bingo: card generation, draw ledger, win detection and payouts."""

from .version import __version__

__all__ = ["__version__"]
