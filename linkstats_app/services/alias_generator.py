"""
Random alias generation.
"""

import secrets
import string
from typing import Optional

from linkstats_app.config import settings

ALIAS_ALPHABET = string.ascii_letters + string.digits


class AliasGenerator:
    """
    Generates random alphanumeric aliases.

    62^8 (about 2.2e14) possible 8-character aliases make collisions rare,
    but not impossible: uniqueness is checked by the caller against the
    record store.
    """

    def __init__(self, length: Optional[int] = None, alphabet: str = ALIAS_ALPHABET):
        self.length = length or settings.alias_length
        self.alphabet = alphabet

    def generate(self) -> str:
        """Generate a random alias. Pure, no I/O."""
        return ''.join(secrets.choice(self.alphabet) for _ in range(self.length))
