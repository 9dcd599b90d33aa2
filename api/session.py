"""Player identity tokens signed with itsdangerous."""

from uuid import uuid4

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import config


class SessionSigner:
    """Sign and verify player IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the signer with a secret key."""
        self._secret_key = secret_key or config.security.secret_key
        self._serializer = URLSafeTimedSerializer(self._secret_key, salt="whitejack-player")

    def sign(self, player_id: str) -> str:
        """Create a signed token from a player ID."""
        return self._serializer.dumps(player_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract the player ID from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to token_max_age)

        Returns:
            The player ID if valid, None otherwise
        """
        max_age = max_age or config.security.token_max_age
        try:
            return self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None


# Global signer instance
_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def issue_player_token() -> tuple[str, str]:
    """
    Create a new player identity.

    Returns:
        The raw player ID and its signed token
    """
    player_id = str(uuid4())
    return player_id, get_session_signer().sign(player_id)


def extract_player_id(token: str) -> str | None:
    """
    Extract the raw player ID from a signed token.

    Args:
        token: The signed player token

    Returns:
        The player ID if valid, None otherwise
    """
    return get_session_signer().unsign(token)
