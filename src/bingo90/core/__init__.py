"""Core module for 90-ball card generation, draws, wins and payouts."""

from .builder import BuildParams, BuildResult, CardBuilder, generate_card, generate_cards, generate_series
from .constraints import ConstraintChecker, series_violations
from .detector import WinDetector
from .ledger import CalledNumberLedger
from .models import BingoCard, CardSeries, PayoutSet, PrizePool, WinKind, WinRecord
from .optimizer import RowBalancer
from .prizes import PrizeRules, allocate, split_sales
from .round import ClaimError, ClaimResult, GameRound, RoundStatus

__all__ = [
    "BingoCard",
    "BuildParams",
    "BuildResult",
    "CalledNumberLedger",
    "CardBuilder",
    "CardSeries",
    "ClaimError",
    "ClaimResult",
    "ConstraintChecker",
    "GameRound",
    "PayoutSet",
    "PrizePool",
    "PrizeRules",
    "RoundStatus",
    "RowBalancer",
    "WinDetector",
    "WinKind",
    "WinRecord",
    "allocate",
    "generate_card",
    "generate_cards",
    "generate_series",
    "series_violations",
    "split_sales",
]
