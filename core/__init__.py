"""Core two-seat card engine - 100% transport-agnostic."""

from core.cards import Card, Deck, Rank, Suit
from core.hand import Hand

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "Hand",
]
