"""Pytest fixtures for Whitejack tests."""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
import pytest_asyncio
from random import Random

from hypothesis import strategies as st

from core.cards import Card, Deck, Rank, Suit
from core.hand import Hand
from core.game import GameRules, WhitejackGame
from core.rooms import RoomManager
from core.wallet import InMemoryWalletStore


class FixedRandom(Random):
    """Random source whose randint always returns a fixed value."""

    def __init__(self, value: int, seed: int = 7) -> None:
        super().__init__(seed)
        self.value = value

    def randint(self, a: int, b: int) -> int:
        return max(a, min(b, self.value))


def stacked_deck(*codes: str, padding: int = 30) -> Deck:
    """
    Build a deck whose draws come out in the given order.

    Padding cards sit underneath so the deck stays above the low-water mark.
    """
    drawn = [Card.from_string(code) for code in codes]
    filler = [Card(Rank.TWO, Suit.CLUBS)] * padding
    return Deck(cards=filler + list(reversed(drawn)))


def hand_of(*codes: str) -> Hand:
    """Build a hand from card strings."""
    return Hand([Card.from_string(code) for code in codes])


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    d = Deck(rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def rules():
    """Default ruleset."""
    return GameRules()


@pytest.fixture
def game(rng):
    """A new engine with a shuffled deck."""
    return WhitejackGame(rng=rng)


@pytest.fixture
def started_game():
    """
    A dealt round with known hands.

    Seat A holds 10♠ 7♥ (17), seat B holds 9♦ 8♣ (17); the next draws are
    5♠, K♥, 4♦, Q♣.
    """
    deck = stacked_deck("10S", "7H", "9D", "8C", "5S", "KH", "4D", "QC")
    game = WhitejackGame(deck=deck, rng=Random(3))
    game.start_round()
    return game


@pytest.fixture
def wallet():
    """An in-memory wallet with the default starting balance."""
    return InMemoryWalletStore(starting_balance=1000)


@pytest.fixture
def manager(wallet):
    """A room manager that records every outbound event."""
    rooms = RoomManager(wallet, rules=GameRules(), rng=Random(11))
    rooms.sent = []
    rooms.subscribe(rooms.sent.append)
    return rooms


@pytest_asyncio.fixture
async def joined_room(manager):
    """A room with both seats filled and the first round dealt from a known deck."""
    room = await manager.create_room("alice")
    room.game = WhitejackGame(
        deck=stacked_deck("10S", "7H", "9D", "8C", "5S", "KH", "4D", "QC"),
        rng=Random(5),
    )
    await manager.join_room("bob", room.code)
    manager.sent.clear()
    return room


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=6):
    """Generate a random hand."""
    cards = draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
    return Hand(cards)
