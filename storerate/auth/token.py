from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt

from storerate.model.account import Role


@dataclass(frozen=True)
class Identity:
    account_id: int
    email: str
    role: Role
    issued_at: datetime
    expires_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-bound identity assertions (JWT).

    ``verify`` returns None for every kind of bad token, whether it is
    expired, forged, truncated or missing a claim.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _now,
    ):
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in
        self.clock = clock

    def issue(self, account_id: int, email: str, role: Role) -> str:
        issued_at = self.clock()
        expire = issued_at + self.expires_in
        to_encode = {
            "sub": str(account_id),
            "id": account_id,
            "email": email,
            "role": Role(role).value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(to_encode, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Identity]:
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
            return Identity(
                account_id=int(payload["id"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (JWTError, KeyError, TypeError, ValueError):
            return None
