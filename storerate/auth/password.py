from typing import Optional, Sequence

from passlib.context import CryptContext


class PasswordHasher:
    """One-way adaptive password hashing backed by passlib.

    Each hash embeds its own random salt and round count, so ``verify`` only
    needs the stored record. A record passlib cannot parse verifies as False
    rather than raising.
    """

    def __init__(self, schemes: Sequence[str] = ("pbkdf2_sha256",), rounds: Optional[int] = None):
        kwargs = {}
        if rounds:
            kwargs = {f"{scheme}__default_rounds": rounds for scheme in schemes}
        self.context = CryptContext(schemes=list(schemes), deprecated="auto", **kwargs)
        # verified against when the account does not exist, so a login for an
        # unknown email costs the same as a wrong password
        self._dummy_hash = self.context.hash("storerate-dummy-password")

    def hash(self, plaintext: str) -> str:
        return self.context.hash(plaintext)

    def verify(self, plaintext: str, hashed: Optional[str]) -> bool:
        if not hashed:
            self.burn(plaintext)
            return False
        try:
            return self.context.verify(plaintext, hashed)
        except (ValueError, TypeError):
            self.burn(plaintext)
            return False

    def burn(self, plaintext: str) -> None:
        self.context.verify(plaintext, self._dummy_hash)
