"""Password hashing service using bcrypt."""

from passlib.context import CryptContext

MIN_ROUNDS = 4
MAX_ROUNDS = 31


class PasswordService:
    """Hashes and compares passwords with passlib's bcrypt scheme.

    The work factor is fixed per instance; ``hash`` also accepts a
    per-call cost for callers that need a different one.
    """

    def __init__(self, rounds: int = 12):
        """Initialize the password service.

        Args:
            rounds: bcrypt work factor (default 12, higher = slower + more secure)
        """
        if not MIN_ROUNDS <= rounds <= MAX_ROUNDS:
            raise ValueError(f"bcrypt rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}")
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str, rounds: int | None = None) -> str:
        """Hash a password.

        Args:
            password: Plain text password
            rounds: Optional work factor overriding the instance default

        Returns:
            Bcrypt hash string (includes algorithm, rounds, salt, and hash)
        """
        if rounds is None:
            return self._context.hash(password)
        return self._context.handler("bcrypt").using(rounds=rounds).hash(password)

    def compare(self, password: str, digest: str | None) -> bool:
        """Check a password against a stored hash.

        Returns:
            True if password matches; False for a mismatch or a malformed hash
        """
        if not digest:
            return False
        try:
            return self._context.verify(password, digest)
        except ValueError:
            return False
