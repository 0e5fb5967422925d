"""
Configuration data for supported virtual machines.
"""

from .constants import (
    SCREEN_WIDTH, SCREEN_HEIGHT, RAM_SIZE, PROGRAM_START, STACK_SIZE,
    NUM_KEYS, NUM_REGISTERS, DEFAULT_TICKS_PER_FRAME, TIMER_HZ
)

SYSTEM_CONFIGS = {
    "chip8": {
        "cpu_type": "CHIP-8",
        "memory_map": {
            "font": {"start": 0x000, "end": 0x04F},
            "reserved": {"start": 0x050, "end": 0x1FF},
            "program": {"start": PROGRAM_START, "end": RAM_SIZE - 1},
        },
        "registers": [
            "V0", "V1", "V2", "V3", "V4", "V5", "V6", "V7",
            "V8", "V9", "VA", "VB", "VC", "VD", "VE", "VF",
            "I", "PC", "SP", "DT", "ST"
        ],
        "num_registers": NUM_REGISTERS,
        "stack_depth": STACK_SIZE,
        "num_keys": NUM_KEYS,
        "resolution": (SCREEN_WIDTH, SCREEN_HEIGHT),
        "ticks_per_frame": DEFAULT_TICKS_PER_FRAME,
        "timer_hz": TIMER_HZ,
        # Host keyboard layout:
        #   1 2 3 4        1 2 3 C
        #   Q W E R   ->   4 5 6 D
        #   A S D F        7 8 9 E
        #   Z X C V        A 0 B F
        "keymap": {
            "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
            "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
            "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
            "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
        },
    },
}


def map_host_key(name: str, keymap=None):
    """
    Translate a host key name into a CHIP-8 key index.

    Args:
        name: Host key name (case-insensitive, e.g. 'q')
        keymap: Mapping to use (None for the default layout)

    Returns:
        Key index in 0..15, or None if the key is not mapped
    """
    if keymap is None:
        keymap = SYSTEM_CONFIGS["chip8"]["keymap"]
    return keymap.get(name.lower())
