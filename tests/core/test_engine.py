"""Tests for the round engine."""

import copy
from random import Random

import pytest

from core.errors import AlreadyStopped, NotReady, OutOfTurn
from core.game import EventType, GameRules, RoundPhase, Seat, WhitejackGame

from conftest import stacked_deck


def _game(*codes, padding=30, rules=None):
    game = WhitejackGame(rules=rules, deck=stacked_deck(*codes, padding=padding), rng=Random(1))
    game.start_round()
    return game


class TestGameInitialization:
    """Tests for a fresh engine."""

    def test_initial_phase(self, game):
        assert game.phase == RoundPhase.NOT_STARTED
        assert game.round_number == 0

    def test_snapshot_before_first_deal(self, game):
        """Both seats are present with empty hands before the first deal."""
        snapshot = game.snapshot(Seat.A)
        assert set(snapshot["players"]) == {"A", "B"}
        assert snapshot["players"]["A"]["hand"] == []
        assert snapshot["whoseTurn"] is None
        assert snapshot["started"] is False
        assert snapshot["winner"] is None
        assert snapshot["cardsRemaining"] == 52

    def test_actions_before_deal_are_not_ready(self, game):
        with pytest.raises(NotReady):
            game.draw(Seat.A)
        with pytest.raises(NotReady):
            game.stand(Seat.B)


class TestDeal:
    """Tests for dealing a round."""

    def test_deal_order(self, started_game):
        """Cards come off the deck A, A, B, B."""
        players = started_game.snapshot()["players"]
        assert [c["rank"] for c in players["A"]["hand"]] == ["10", "7"]
        assert [c["rank"] for c in players["B"]["hand"]] == ["9", "8"]

    def test_deal_state(self, started_game):
        snapshot = started_game.snapshot(Seat.A)
        assert started_game.phase == RoundPhase.IN_PROGRESS
        assert snapshot["whoseTurn"] == "A"
        assert snapshot["roundNumber"] == 1
        assert snapshot["started"] is True
        assert snapshot["over"] is False
        assert snapshot["cardsRemaining"] == 34
        full = started_game.snapshot()
        for seat in ("A", "B"):
            assert full["players"][seat]["score"] == 17
            assert full["players"][seat]["abilitiesRemaining"] == 6
            assert full["players"][seat]["stopped"] is False

    def test_start_round_twice_is_rejected(self, started_game):
        with pytest.raises(NotReady):
            started_game.start_round()

    def test_classic_rules_grant_no_abilities(self):
        game = _game("2S", "3S", "4S", "5S", rules=GameRules.classic())
        assert game.state.seats[Seat.A].abilities_remaining == 0


class TestTurns:
    """Tests for draw, stand and turn passing."""

    def test_out_of_turn_leaves_state_unchanged(self, started_game):
        before = copy.deepcopy(started_game.snapshot(Seat.B))
        with pytest.raises(OutOfTurn):
            started_game.draw(Seat.B)
        with pytest.raises(OutOfTurn):
            started_game.stand(Seat.B)
        assert started_game.snapshot(Seat.B) == before

    def test_stand_passes_turn(self, started_game):
        started_game.stand(Seat.A)
        assert started_game.state.seats[Seat.A].stopped
        assert started_game.state.current_turn == Seat.B

    def test_already_stopped(self, started_game):
        started_game.stand(Seat.A)
        before = copy.deepcopy(started_game.snapshot())
        with pytest.raises(AlreadyStopped):
            started_game.draw(Seat.A)
        assert started_game.snapshot() == before

    def test_draw_passes_turn(self):
        game = _game("10S", "2H", "9D", "8C", "3S")
        card = game.draw(Seat.A)
        assert str(card) == "3♠"
        assert game.state.seats[Seat.A].score == 15
        assert game.state.current_turn == Seat.B
        assert game.state.cards_remaining == 30

    def test_bust_forces_stop(self, started_game):
        """A draws 5♠ to 22: stopped and the turn goes to B."""
        seen = []
        started_game.subscribe(seen.append, EventType.SEAT_BUSTED)
        started_game.draw(Seat.A)
        seat_a = started_game.state.seats[Seat.A]
        assert seat_a.score == 22
        assert seat_a.is_busted
        assert seat_a.stopped
        assert started_game.state.current_turn == Seat.B
        assert [e.data["seat"] for e in seen] == ["A"]

    def test_turn_stays_when_opponent_stopped(self):
        game = _game("10S", "2H", "9D", "8C", "2S", "3S")
        game.stand(Seat.A)
        game.draw(Seat.B)
        assert game.state.seats[Seat.B].score == 19
        assert game.state.current_turn == Seat.B
        game.stand(Seat.B)
        assert game.phase == RoundPhase.ROUND_OVER


class TestRoundEnd:
    """Tests for winner resolution and rematches."""

    def test_winner_after_opponent_busts(self, started_game):
        started_game.stand(Seat.A)
        started_game.draw(Seat.B)  # 5♠, B busts at 22
        snapshot = started_game.snapshot()
        assert started_game.phase == RoundPhase.ROUND_OVER
        assert snapshot["over"] is True
        assert snapshot["winner"] == "A"
        assert snapshot["matchScore"] == {"A": 1, "B": 0}
        assert started_game.winner_seat == Seat.A

    def test_tie_is_draw(self, started_game):
        started_game.stand(Seat.A)
        started_game.stand(Seat.B)
        assert started_game.state.winner == "draw"
        assert started_game.winner_seat is None
        assert started_game.match_score == {Seat.A: 0, Seat.B: 0}

    def test_both_busted_is_draw(self):
        game = _game("10S", "7H", "9D", "8C", "KS", "KH")
        game.draw(Seat.A)
        game.draw(Seat.B)
        assert game.state.winner == "draw"

    def test_actions_after_round_end_are_not_ready(self, started_game):
        started_game.stand(Seat.A)
        started_game.stand(Seat.B)
        with pytest.raises(NotReady):
            started_game.draw(Seat.A)

    def test_rematch_before_round_end_is_not_ready(self, started_game):
        with pytest.raises(NotReady):
            started_game.request_rematch(Seat.A)

    def test_rematch_needs_both_seats(self, started_game):
        started_game.stand(Seat.A)
        started_game.draw(Seat.B)

        assert not started_game.rematch_would_start(Seat.A)
        assert started_game.request_rematch(Seat.A) is False
        assert started_game.phase == RoundPhase.ROUND_OVER
        assert started_game.snapshot()["players"]["A"]["rematchIntent"] is True

        assert started_game.rematch_would_start(Seat.B)
        assert started_game.request_rematch(Seat.B) is True
        assert started_game.phase == RoundPhase.IN_PROGRESS

    def test_rematch_replaces_state_and_alternates_first_turn(self, started_game):
        old_state = started_game.state
        started_game.stand(Seat.A)
        started_game.draw(Seat.B)
        started_game.request_rematch(Seat.A)
        started_game.request_rematch(Seat.B)

        state = started_game.state
        assert state is not old_state
        assert started_game.round_number == 2
        assert state.current_turn == Seat.B
        assert state.winner is None
        for seat_state in state.seats.values():
            assert len(seat_state.hand) == 2
            assert not seat_state.stopped
            assert not seat_state.rematch_intent
            assert seat_state.abilities_remaining == 6
        # Match score survives the new round
        assert started_game.match_score[Seat.A] == 1


class TestSnapshotViews:
    """Tests for per-seat snapshots."""

    def test_opponent_first_card_and_score_hidden(self, started_game):
        view = started_game.snapshot(Seat.A)
        opponent = view["players"]["B"]
        assert opponent["hand"][0] == {"hidden": True}
        assert opponent["hand"][1]["rank"] == "8"
        assert opponent["score"] is None
        # The viewer's own hand is fully visible
        assert [c["rank"] for c in view["players"]["A"]["hand"]] == ["10", "7"]
        assert view["players"]["A"]["score"] == 17

    def test_full_state_without_viewer(self, started_game):
        assert started_game.snapshot()["players"]["B"]["hand"][0]["rank"] == "9"

    def test_everything_revealed_when_round_over(self, started_game):
        started_game.stand(Seat.A)
        started_game.stand(Seat.B)
        view = started_game.snapshot(Seat.A)
        assert view["players"]["B"]["hand"][0]["rank"] == "9"
        assert view["players"]["B"]["score"] == 17

    def test_masking_does_not_touch_state(self, started_game):
        started_game.snapshot(Seat.A)
        assert str(started_game.state.seats[Seat.B].hand.cards[0]) == "9♦"


class TestReshuffle:
    """Tests for the low-water reshuffle."""

    def test_draw_below_low_water_reshuffles(self):
        game = _game("10S", "2H", "9D", "8C", padding=9)
        assert len(game.deck) == 9
        assert game.state.deck_reshuffled is False

        game.draw(Seat.A)
        assert game.state.deck_reshuffled is True
        assert game.state.cards_remaining == 51
        assert game.snapshot()["deckReshuffled"] is True

        game.acknowledge_reshuffle()
        assert game.snapshot()["deckReshuffled"] is False

    def test_reshuffle_event_emitted_once(self):
        game = _game("10S", "2H", "9D", "8C", padding=9)
        seen = []
        game.subscribe(seen.append, EventType.DECK_RESHUFFLED)
        game.draw(Seat.A)
        game.stand(Seat.B)
        assert len(seen) == 1
        assert seen[0].data["cards_remaining"] == 52

    def test_deal_below_low_water_reshuffles(self):
        game = WhitejackGame(deck=stacked_deck("2S", padding=8), rng=Random(2))
        game.start_round()
        assert game.state.deck_reshuffled is True
        assert len(game.deck) == 48

    def test_next_card_reshuffles_first(self):
        game = _game("10S", "2H", "9D", "8C", padding=9)
        card = game.next_card()
        assert game.state.deck_reshuffled is True
        assert len(game.deck) == 52
        assert game.draw(Seat.A) == card
