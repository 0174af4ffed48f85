"""
Naming service: connection codes, display names and avatars

Pure computation, no state transitions.
"""
import random
import string
from urllib.parse import quote

from sqlalchemy.orm import Session

from models import Participant


def generate_connection_code() -> str:
    """
    Random 6-letter uppercase code a participant uses to get back to their
    profile from another device.

    Examples: ABCDEF, XYZABC

    Notes:
    - uniqueness is not checked here (caller's job)
    - 26^6 = 308,915,776 combinations
    """
    return ''.join(random.choices(string.ascii_uppercase, k=6))


def unique_connection_code(db: Session) -> str:
    """Draw connection codes until one is unused."""
    code = generate_connection_code()
    while db.query(Participant).filter(Participant.connection_code == code).first():
        code = generate_connection_code()
    return code


def build_display_name(first_name: str, last_name: str) -> str:
    """
    "Alice" + "Martin" -> "Alice Martin"; either side may be empty.
    """
    return " ".join(part.strip() for part in (first_name, last_name) if part and part.strip())


def default_avatar(name: str) -> str:
    return f"https://picsum.photos/seed/{quote(name)}/200"
