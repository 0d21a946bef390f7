"""Short, reversible public IDs for stored records.

A record ID is written as a base-K numeral whose digits are the characters
of a configured alphabet. The alphabet only obscures sequential IDs; it is
not a secret.
"""

from __future__ import annotations

from .errors import ValidationError

# Generated once by shuffling [A-Za-z0-9_-]; changing it invalidates every
# short ID handed out so far.
DEFAULT_ALPHABET = "kJrMZwBbP-1AjW6HuEaxXeTVQU0dy8p29N7g4mYqDlGR_c5nCiIOtozhSsfKL3Fv"

# Largest ID a SQLite INTEGER PRIMARY KEY can hold.
MAX_ID = 2**63 - 1


class ShortIDCodec:
    """Encode and decode record IDs with a fixed alphabet."""

    def __init__(self, alphabet: str = DEFAULT_ALPHABET, max_id: int = MAX_ID):
        if len(alphabet) < 2:
            raise ValueError("Short ID alphabet needs at least two characters")
        if len(set(alphabet)) != len(alphabet):
            raise ValueError("Short ID alphabet contains duplicate characters")
        self.alphabet = alphabet
        self.base = len(alphabet)
        self.max_id = max_id
        self._index = {char: i for i, char in enumerate(alphabet)}

    def encode(self, id: int) -> str:
        if id < 0:
            raise ValidationError(f"cannot encode negative id {id}")
        if id > self.max_id:
            raise ValidationError(f"id {id} exceeds {self.max_id}")

        digits: list[str] = []
        while True:
            id, remainder = divmod(id, self.base)
            digits.append(self.alphabet[remainder])
            if id == 0:
                break
        return "".join(reversed(digits))

    def decode(self, short_id: str) -> int:
        """Return the record ID for ``short_id``.

        Raises:
            ValidationError: if the string is empty, contains a character
                outside the alphabet, or decodes past ``max_id``
        """
        if not short_id:
            raise ValidationError("empty short id")

        value = 0
        for char in short_id:
            index = self._index.get(char)
            if index is None:
                raise ValidationError(f"invalid character {char!r} in short id {short_id!r}")
            value = value * self.base + index
            if value > self.max_id:
                raise ValidationError(f"short id {short_id!r} overflows")
        return value


DEFAULT_CODEC = ShortIDCodec()


def encode(id: int) -> str:
    return DEFAULT_CODEC.encode(id)


def decode(short_id: str) -> int:
    return DEFAULT_CODEC.decode(short_id)
