"""Helpers for verifying signed access tokens."""

from jose import JWTError, jwt

from app.config import get_settings

ALGORITHM = "HS256"


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def recipient_id_from_token(token: str | None) -> int:
    """Return the user id carried in the ``sub`` claim of ``token``.

    Raises :class:`ValueError` for missing, invalid or expired tokens and for
    subjects that are not positive integers.
    """

    if not token:
        raise ValueError("Missing access token")
    subject = decode_access_token(token).get("sub")
    try:
        recipient_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise ValueError("Token subject is not a user id") from exc
    if recipient_id <= 0:
        raise ValueError("Token subject is not a user id")
    return recipient_id
