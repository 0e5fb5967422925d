"""
CHIP-8 monochrome framebuffer.

The display is a 64x32 grid of on/off pixels. It is only changed by the
clear instruction (00E0) and the sprite draw instruction (DXYN), which
XORs 8-pixel-wide sprite rows onto the grid. Sprites wrap around both
screen edges, and a draw reports a collision when it turns any lit
pixel off.
"""

import logging
from typing import Dict, Any

import numpy as np

from ...common.interfaces import Display
from ...constants import SCREEN_WIDTH, SCREEN_HEIGHT

logger = logging.getLogger("Chip8VM.Chip8.Display")

class Chip8Display(Display):
    """
    Framebuffer stored as a (height, width) boolean numpy array.

    Pixel (x, y) lives at pixels[y, x]; flattening the array in C order
    gives the conventional index x + width * y.
    """

    def __init__(self, width: int = SCREEN_WIDTH, height: int = SCREEN_HEIGHT):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width), dtype=bool)
        self.draw_count = 0

        logger.debug(f"Display initialized ({width}x{height})")

    def clear(self) -> None:
        """Turn every pixel off."""
        self.pixels.fill(False)

    def reset(self) -> None:
        self.clear()
        self.draw_count = 0

    def draw_sprite(self, x: int, y: int, sprite: bytes) -> bool:
        """
        XOR a sprite onto the framebuffer.

        Each byte of the sprite is one row, most significant bit leftmost.
        Only set bits affect the screen. Coordinates wrap per pixel, so a
        sprite drawn at the right edge continues at column 0.

        Args:
            x: Column of the sprite's top-left corner
            y: Row of the sprite's top-left corner
            sprite: Sprite rows

        Returns:
            True if any lit pixel was turned off
        """
        self.draw_count += 1
        if not sprite:
            return False

        bits = np.unpackbits(np.frombuffer(bytes(sprite), dtype=np.uint8)).reshape(-1, 8).astype(bool)
        rows = (y + np.arange(bits.shape[0])) % self.height
        cols = (x + np.arange(8)) % self.width
        region = np.ix_(rows, cols)

        collision = bool(np.any(self.pixels[region] & bits))
        self.pixels[region] ^= bits
        return collision

    def get_pixel(self, x: int, y: int) -> bool:
        return bool(self.pixels[y % self.height, x % self.width])

    def get_frame_buffer(self) -> np.ndarray:
        """
        Get a read-only snapshot of the framebuffer.

        The snapshot owns its data; nothing done to it reaches the live
        pixels.

        Returns:
            (height, width) boolean array
        """
        frame = self.pixels.copy()
        frame.flags.writeable = False
        return frame

    def get_state(self) -> Dict[str, Any]:
        """
        Get the current display state.

        Returns:
            Dictionary with display state
        """
        return {
            "resolution": (self.width, self.height),
            "lit_pixels": int(np.count_nonzero(self.pixels)),
            "draw_count": self.draw_count,
        }
