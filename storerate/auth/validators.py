"""Field shape rules applied at the validation boundary.

Each validator returns an error message, or None when the value is fine.
"""
import re
from typing import Any, Dict, Iterable, Optional

from storerate.core.errors import ValidationError
from storerate.model.account import Role
from storerate.model.rating import MAX_SCORE, MIN_SCORE

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# RFC 5321 path limit, inside the 255-character email columns
MAX_EMAIL_LENGTH = 254
INTEGER_RE = re.compile(r"^[+-]?\d+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def name(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not 20 <= len(value.strip()) <= 60:
        return "Name must be between 20 and 60 characters"
    return None


def email(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
        return "Please enter a valid email address"
    if len(value.strip()) > MAX_EMAIL_LENGTH:
        return f"Email must not exceed {MAX_EMAIL_LENGTH} characters"
    return None


def password(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not 8 <= len(value) <= 16:
        return "Password must be 8-16 characters"
    if not any(ch.isupper() for ch in value):
        return "Password must contain at least one uppercase letter"
    if all(ch.isalnum() for ch in value):
        return "Password must contain at least one special character"
    return None


def address(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return "Address is required"
    if len(value) > 400:
        return "Address must not exceed 400 characters"
    return None


def role(value: Any) -> Optional[str]:
    if value not in {r.value for r in Role}:
        return "Role must be one of ADMIN, USER, OWNER"
    return None


VALIDATORS = {
    "name": name,
    "email": email,
    "password": password,
    "address": address,
    "role": role,
}


def validate_fields(data: Dict[str, Any], fields: Iterable[str]) -> None:
    """Run the named validators and raise one ValidationError listing every failure."""
    errors = {}
    for field in fields:
        error = VALIDATORS[field](data.get(field))
        if error:
            errors[field] = error
    if errors:
        raise ValidationError(errors=errors)


def parse_score(raw: Any) -> int:
    error = ValidationError(errors={"score": f"Rating must be between {MIN_SCORE} and {MAX_SCORE}"})
    if isinstance(raw, bool):
        raise error
    if isinstance(raw, int):
        score = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            raise error
        score = int(raw)
    elif isinstance(raw, str) and INTEGER_RE.match(raw.strip()):
        score = int(raw.strip())
    else:
        raise error
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise error
    return score
