"""Card and Deck classes - immutable card representations."""

from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum, auto
from random import Random
from typing import Iterator


class Suit(Enum):
    """Card suits."""

    SPADES = auto()
    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.SPADES: "♠",
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks with their point values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def points(self) -> int:
        """Return the point value (Ace = 11 before reduction, face cards = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10  # Face cards

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


MIN_CARD_VALUE = 1
MAX_CARD_VALUE = 11


@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable playing card.

    Abilities may overwrite the numeric value of a card. The overwritten card
    keeps its rank and suit for display, but it no longer counts as an ace.
    """

    rank: Rank
    suit: Suit
    value_override: int | None = None

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        if self.value_override is None:
            return f"Card({self.rank.name}, {self.suit.name})"
        return f"Card({self.rank.name}, {self.suit.name}, value={self.value_override})"

    @property
    def value(self) -> int:
        """Return the numeric value used for scoring."""
        if self.value_override is not None:
            return self.value_override
        return self.rank.points

    @property
    def is_ace(self) -> bool:
        """Check if this card is an unaltered Ace."""
        return self.rank.is_ace and self.value_override is None

    @property
    def is_altered(self) -> bool:
        """Check if an ability has overwritten this card's value."""
        return self.value_override is not None

    def with_value(self, value: int) -> "Card":
        """Return a copy of this card with its numeric value overwritten."""
        if not MIN_CARD_VALUE <= value <= MAX_CARD_VALUE:
            raise ValueError(
                f"Card value must be between {MIN_CARD_VALUE} and {MAX_CARD_VALUE}"
            )
        return replace(self, value_override=value)

    def to_dict(self) -> dict:
        """Serialize the card for a state snapshot."""
        return {
            "suit": str(self.suit),
            "rank": str(self.rank),
            "value": self.value,
            "altered": self.is_altered,
        }

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        rank_map = {str(rank): rank for rank in Rank}
        rank_map["T"] = Rank.TEN

        suit_map = {
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
        }

        if rank_str not in rank_map:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank_map[rank_str], suit_map[suit_str])


class Deck:
    """
    A standard 52-card deck.

    The top of the deck is the end of the list, so draws and peeks are O(1).
    """

    def __init__(self, rng: Random | None = None, cards: list[Card] | None = None) -> None:
        """
        Initialize a deck.

        Args:
            rng: Random number generator for shuffling
            cards: Explicit card order (last card is drawn first); a fresh
                ordered deck is built when omitted
        """
        self._rng = rng or Random()
        self._cards: list[Card] = []
        if cards is None:
            self.reset()
        else:
            self._cards = list(cards)

    @staticmethod
    def build() -> list[Card]:
        """Return every suit/rank combination in order."""
        return [Card(rank, suit) for suit in Suit for rank in Rank]

    def reset(self) -> None:
        """Reset deck to all 52 cards in order."""
        self._cards = self.build()

    def shuffle(self) -> None:
        """Shuffle the remaining cards in place."""
        self._rng.shuffle(self._cards)

    def rebuild(self) -> None:
        """Restore all 52 cards and shuffle them."""
        self.reset()
        self.shuffle()

    def draw(self) -> Card:
        """Draw a card from the top of the deck."""
        if not self._cards:
            raise IndexError("Cannot draw from empty deck")
        return self._cards.pop()

    def peek(self) -> Card | None:
        """Return the next card to be drawn without removing it."""
        if not self._cards:
            return None
        return self._cards[-1]

    def is_below(self, low_water_mark: int) -> bool:
        """Check if the deck has fallen below the reshuffle threshold."""
        return len(self._cards) < low_water_mark

    def histogram(self) -> dict[str, int]:
        """Count the remaining cards by rank symbol."""
        counts = Counter(str(card.rank) for card in self._cards)
        return {str(rank): counts[str(rank)] for rank in Rank if counts[str(rank)]}

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
