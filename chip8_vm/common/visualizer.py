"""
Rendering sinks for the CHIP-8 framebuffer.
"""
import os
import numpy as np
import matplotlib.pyplot as plt
import logging
from typing import Optional
from .interfaces import System

logger = logging.getLogger("Chip8VM.Visualizer")

class FrameRenderer:
    """
    Turns a framebuffer into something a person can look at: text for a
    terminal, or a scaled PNG image.
    """

    def __init__(self, scale: int = 15, on_char: str = "#", off_char: str = ".",
                 dark_mode: bool = True):
        """
        Initialize the frame renderer.

        Args:
            scale: Pixel size in the PNG output
            on_char: Character for a lit pixel in text output
            off_char: Character for an unlit pixel in text output
            dark_mode: White pixels on black (False for black on white)
        """
        self.scale = max(1, scale)
        self.on_char = on_char
        self.off_char = off_char
        self.dark_mode = dark_mode

        logger.debug("Initialized frame renderer")

    def to_ascii(self, frame: np.ndarray) -> str:
        """
        Render a framebuffer as text, one line per row.

        Args:
            frame: (height, width) boolean array

        Returns:
            Multi-line string
        """
        return "\n".join(
            "".join(self.on_char if pixel else self.off_char for pixel in row)
            for row in frame
        )

    def to_image(self, frame: np.ndarray) -> np.ndarray:
        """
        Scale a framebuffer up to an 8-bit grayscale image.

        Args:
            frame: (height, width) boolean array

        Returns:
            (height*scale, width*scale) uint8 array
        """
        lit = np.asarray(frame, dtype=bool)
        if not self.dark_mode:
            lit = ~lit
        image = lit.astype(np.uint8) * 255
        return np.kron(image, np.ones((self.scale, self.scale), dtype=np.uint8))

    def save_png(self, frame: np.ndarray, filename: str) -> bool:
        """
        Save a framebuffer as a PNG image.

        Args:
            frame: (height, width) boolean array
            filename: Output filename

        Returns:
            True if successful, False otherwise
        """
        try:
            output_dir = os.path.dirname(filename)
            if output_dir and not os.path.exists(output_dir):
                os.makedirs(output_dir)

            plt.imsave(filename, self.to_image(frame), cmap="gray", vmin=0, vmax=255)

            logger.info(f"Saved frame to {filename}")
            return True

        except Exception as e:
            logger.error(f"Error saving frame: {e}")
            return False

    def render_system(self, system: System, filename: Optional[str] = None) -> str:
        """
        Render the current display of a system.

        Args:
            system: System exposing display()
            filename: Also save a PNG here if given

        Returns:
            Text rendering of the display
        """
        frame = system.display()
        if filename:
            self.save_png(frame, filename)
        return self.to_ascii(frame)
