"""Hand evaluation."""

from dataclasses import dataclass, field
from typing import Iterator

from core.cards import Card

BUST_THRESHOLD = 21


@dataclass
class Hand:
    """An ordered, index-addressed hand owned by a single seat."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def has_index(self, index: int | None) -> bool:
        """Check if an index addresses a card in this hand."""
        return index is not None and 0 <= index < len(self.cards)

    def replace_card(self, index: int, card: Card) -> Card:
        """Put a card at an index and return the card it replaced."""
        previous = self.cards[index]
        self.cards[index] = card
        return previous

    @property
    def value(self) -> int:
        """
        Calculate the hand score.

        Every ace counts 11, then one ace at a time is corrected down to 1
        while the total is over 21.
        """
        total = 0
        aces = 0

        for card in self.cards:
            if card.is_ace:
                aces += 1
            total += card.value

        while total > BUST_THRESHOLD and aces > 0:
            total -= 10
            aces -= 1

        return total

    @property
    def is_soft(self) -> bool:
        """Check if the hand still counts an ace as 11."""
        if not any(card.is_ace for card in self.cards):
            return False
        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= BUST_THRESHOLD

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > BUST_THRESHOLD

    def to_list(self) -> list[dict]:
        """Serialize the cards for a state snapshot."""
        return [card.to_dict() for card in self.cards]

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        if self.is_busted:
            return f"{cards_str} (BUST)"
        return f"{cards_str} ({self.value})"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


def score(cards: list[Card]) -> int:
    """Score a list of cards."""
    return Hand(list(cards)).value


def compare_hands(first: Hand, second: Hand) -> int:
    """
    Compare two finished hands.

    Returns:
        1 if the first hand wins
        -1 if the second hand wins
        0 if the round is a draw (both busted or equal scores)
    """
    first_busted = first.is_busted
    second_busted = second.is_busted

    if first_busted and second_busted:
        return 0
    if first_busted:
        return -1
    if second_busted:
        return 1

    if first.value > second.value:
        return 1
    if second.value > first.value:
        return -1
    return 0
