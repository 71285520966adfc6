"""Password generator.

Generated values are drawn from printable ASCII (33-126) using the
``secrets`` CSPRNG, minus excluded character classes and literal characters.
"""
import enum
import string
import secrets
import logging
from collections.abc import Iterable

from .exceptions import EmptyAlphabet

logger = logging.getLogger("passcli.generator")

PRINTABLE = tuple(chr(c) for c in range(33, 127))


class CharClass(str, enum.Enum):
    """Character classes that can be excluded from generated values."""
    SYMBOL = "symbol"
    DIGIT = "digit"
    UPPER = "upper"
    LOWER = "lower"

    @property
    def chars(self) -> frozenset[str]:
        if self is CharClass.DIGIT:
            return frozenset(string.digits)
        if self is CharClass.UPPER:
            return frozenset(string.ascii_uppercase)
        if self is CharClass.LOWER:
            return frozenset(string.ascii_lowercase)
        return frozenset(string.punctuation)


ALL_CLASSES = frozenset(CharClass)


def alphabet(exclude: Iterable[CharClass] = (), disallow: str = "") -> list[str]:
    """Return the candidate characters left after exclusions."""
    excluded = set(disallow)
    for cls in exclude:
        excluded |= CharClass(cls).chars
    return [c for c in PRINTABLE if c not in excluded]


def generate(
    length: int,
    exclude: Iterable[CharClass] = (),
    disallow: str = ""
) -> str:
    """Generate a random credential value.

    Args:
        length: Exact number of characters.
        exclude: Character classes to leave out.
        disallow: Literal characters to leave out.

    Returns:
        The generated value.

    Raises:
        ValueError: If length is negative.
        EmptyAlphabet: If the exclusions leave no candidate characters.
    """
    if length < 0:
        raise ValueError(f"Password length must not be negative, got {length}")
    chars = alphabet(exclude, disallow)
    if not chars:
        raise EmptyAlphabet()
    logger.debug("Generating %d characters from %d candidates", length, len(chars))
    return "".join(secrets.choice(chars) for _ in range(length))
