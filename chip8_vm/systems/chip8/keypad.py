"""
CHIP-8 16-key input latch.

The host writes key states between steps; the interpreter only reads
them (EX9E, EXA1 and FX0A).
"""

from typing import List, Optional

from ...constants import NUM_KEYS
from .errors import KeyIndexError, InvalidArgumentError

class Keypad:
    """Sixteen boolean key states indexed 0x0-0xF."""

    def __init__(self):
        self.keys = [False] * NUM_KEYS

    def reset(self) -> None:
        self.keys = [False] * NUM_KEYS

    def set_key(self, index: int, pressed: bool) -> None:
        """
        Set a key state without validating the index.

        An out-of-range index is a host contract violation and raises
        KeyIndexError.
        """
        if not 0 <= index < NUM_KEYS:
            raise KeyIndexError(f"Key index out of range: {index}")
        self.keys[index] = bool(pressed)

    def set_key_checked(self, index: int, pressed: bool) -> None:
        """Set a key state, rejecting bad indices with InvalidArgumentError."""
        if not isinstance(index, int) or not 0 <= index < NUM_KEYS:
            raise InvalidArgumentError(f"Key index must be in 0..{NUM_KEYS - 1}, got {index!r}")
        self.keys[index] = bool(pressed)

    def is_pressed(self, index: int) -> bool:
        """
        Report whether a key is down.

        Raises:
            KeyIndexError: The register value does not name a key
        """
        if not 0 <= index < NUM_KEYS:
            raise KeyIndexError(f"Key index out of range: {index}")
        return self.keys[index]

    def first_pressed(self) -> Optional[int]:
        """Return the lowest pressed key index, or None if no key is down."""
        for index, pressed in enumerate(self.keys):
            if pressed:
                return index
        return None

    def snapshot(self) -> List[bool]:
        return list(self.keys)
