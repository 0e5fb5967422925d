"""
Global constants for the CHIP-8 virtual machine.
"""

# Display constants
SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32

# Memory constants
RAM_SIZE = 4096
PROGRAM_START = 0x200  # Programs are loaded at decimal 512
MAX_PROGRAM_SIZE = RAM_SIZE - PROGRAM_START

# Register file
NUM_REGISTERS = 16
FLAG_REGISTER = 0xF

# Stack and input
STACK_SIZE = 16
NUM_KEYS = 16

# Font table (16 hex digit sprites, 8 pixels wide, 5 rows tall)
FONT_SPRITE_HEIGHT = 5
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
FONTSET_SIZE = len(FONTSET)

# Host timing defaults
DEFAULT_TICKS_PER_FRAME = 10
TIMER_HZ = 60

# Frame rendering
RENDER_MODES = ['ascii', 'png', 'none']
DEFAULT_SCALE = 15

# File extensions for program images
ROM_EXTENSIONS = ['.ch8', '.c8', '.rom', '.bin']
