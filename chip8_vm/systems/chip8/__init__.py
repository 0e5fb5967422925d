"""
CHIP-8 virtual machine components.

Besides the component classes this package exposes the machine operations
as plain functions, for hosts that prefer them to methods.
"""
# Import main classes for external use
from .cpu import Chip8CPU
from .memory import Chip8Memory
from .display import Chip8Display
from .keypad import Keypad
from .stack import CallStack
from .timers import TimerUnit
from .decoder import Op, Instruction, decode, disassemble
from .chip8_system import Chip8System
from .errors import (
    Chip8Error, Chip8Fault, UnknownOpcodeError, StackOverflowError,
    StackUnderflowError, MemoryAccessError, KeyIndexError,
    MachineHaltedError, InvalidArgumentError
)


def create(seed=None, config=None) -> Chip8System:
    """Create a machine with the font installed and PC at the program offset."""
    return Chip8System(config, seed=seed)

def reset(machine: Chip8System) -> None:
    machine.reset()

def load(machine: Chip8System, data: bytes) -> None:
    machine.load(data)

def step(machine: Chip8System) -> int:
    return machine.step()

def tick_timers(machine: Chip8System) -> bool:
    return machine.tick_timers()

def set_key(machine: Chip8System, index: int, pressed: bool) -> None:
    machine.set_key(index, pressed)

def display(machine: Chip8System):
    return machine.display()
