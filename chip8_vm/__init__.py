"""
CHIP-8 Virtual Machine

An interpreter core for the CHIP-8 instruction set: memory, registers,
stack, timers, a 64x32 monochrome framebuffer and a 16-key input latch,
advanced one instruction at a time by a host loop.
"""

__version__ = "0.1.0"
