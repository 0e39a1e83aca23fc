"""Sequential base-36 session ids."""

from dataclasses import dataclass

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass
class ShortIdGenerator:
    """Allocate monotonic ids like ``0001``, ``0002`` ... ``000a``."""

    width: int = 4
    counter: int = 0

    def next_id(self) -> str:
        """Return the next id; past ``zzzz`` ids simply grow longer."""
        self.counter += 1
        return to_base36(self.counter).rjust(self.width, "0")


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ALPHABET[remainder])
    return "".join(reversed(digits))
