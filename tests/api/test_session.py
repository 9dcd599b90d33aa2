"""Tests for player tokens."""

from unittest.mock import patch
import time

from api.session import (
    SessionSigner,
    extract_player_id,
    get_session_signer,
    issue_player_token,
)


class TestSessionSigner:
    """Tests for SessionSigner class."""

    def test_sign_creates_token(self):
        """Test that sign creates a non-empty token."""
        signer = SessionSigner(secret_key="test-secret")

        token = signer.sign("player-123")

        assert token
        assert token != "player-123"

    def test_unsign_returns_original_id(self):
        signer = SessionSigner(secret_key="test-secret")

        token = signer.sign("player-456")

        assert signer.unsign(token, max_age=3600) == "player-456"

    def test_unsign_invalid_token_returns_none(self):
        signer = SessionSigner(secret_key="test-secret")

        assert signer.unsign("invalid-token-data", max_age=3600) is None

    def test_unsign_wrong_secret_returns_none(self):
        """Tokens signed with another key are refused."""
        token = SessionSigner(secret_key="secret-one").sign("player")

        assert SessionSigner(secret_key="secret-two").unsign(token, max_age=3600) is None

    def test_unsign_expired_token_returns_none(self):
        """Test that unsign returns None for expired tokens."""
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("player")

        original_time = time.time

        def mock_time():
            return original_time() + 7200  # 2 hours later

        with patch("time.time", mock_time):
            result = signer.unsign(token, max_age=3600)

        assert result is None


class TestModuleFunctions:
    """Tests for module-level token helpers."""

    def test_issue_player_token(self):
        player_id, token = issue_player_token()

        assert extract_player_id(token) == player_id

    def test_player_ids_are_unique(self):
        first, _ = issue_player_token()
        second, _ = issue_player_token()

        assert first != second

    def test_extract_player_id_invalid_returns_none(self):
        assert extract_player_id("not-a-token") is None

    def test_get_session_signer_returns_singleton(self):
        assert get_session_signer() is get_session_signer()
