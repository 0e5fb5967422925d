"""
CHIP-8 delay and sound timers.

Both timers count down toward zero at a cadence supplied by the host
(conventionally 60 Hz). They are never advanced by instruction execution
and never reload on their own.
"""

import logging

logger = logging.getLogger("Chip8VM.Chip8.Timers")

class TimerUnit:
    """Two independent saturating 8-bit countdown timers."""

    def __init__(self):
        self.delay = 0
        self.sound = 0

    def reset(self) -> None:
        """Clear both timers."""
        self.delay = 0
        self.sound = 0

    def set_delay(self, value: int) -> None:
        self.delay = value & 0xFF

    def set_sound(self, value: int) -> bool:
        """
        Load the sound timer.

        Args:
            value: New timer value

        Returns:
            True if this started a tone (timer went from zero to non-zero)
        """
        was_silent = self.sound == 0
        self.sound = value & 0xFF
        return was_silent and self.sound > 0

    def tick(self) -> bool:
        """
        Decrement both timers by one, stopping at zero.

        Returns:
            True if the sound timer reached zero on this tick (tone end)
        """
        if self.delay > 0:
            self.delay -= 1

        tone_ended = False
        if self.sound > 0:
            tone_ended = self.sound == 1
            self.sound -= 1
            if tone_ended:
                logger.debug("Sound timer expired")

        return tone_ended

    @property
    def sound_active(self) -> bool:
        """Whether the host should currently be playing a tone."""
        return self.sound > 0

    def get_state(self) -> dict:
        return {"DT": self.delay, "ST": self.sound}
