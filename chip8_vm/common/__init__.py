"""
Common functionality shared across all system implementations.
"""
from .interfaces import CPU, Memory, Display, System
from .visualizer import FrameRenderer
