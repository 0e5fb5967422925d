"""
Exception types raised by the CHIP-8 interpreter.

Faults are fatal: they mean the program (or the host driving it) broke
the machine contract, and the interpreter refuses to keep executing with
inconsistent state. Invalid arguments are only raised by the checked
host-facing entry points and leave the machine untouched.
"""

from typing import Optional


class Chip8Error(Exception):
    """Base class for all CHIP-8 errors."""


class Chip8Fault(Chip8Error):
    """
    Fatal interpreter fault.

    Attributes:
        pc: Address of the faulting instruction (None if not known)
        opcode: Raw 16-bit opcode being executed (None if not known)
    """

    def __init__(self, message: str, pc: Optional[int] = None, opcode: Optional[int] = None):
        self.pc = pc
        self.opcode = opcode
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.pc is not None and self.opcode is not None:
            return f"{message} (opcode ${self.opcode:04X} at ${self.pc:03X})"
        return message


class UnknownOpcodeError(Chip8Fault):
    """The fetched word does not match any instruction pattern."""


class StackOverflowError(Chip8Fault):
    """CALL with all 16 stack slots in use."""


class StackUnderflowError(Chip8Fault):
    """RET with an empty stack."""


class MemoryAccessError(Chip8Fault):
    """Read or write outside the 4096-byte address space."""


class KeyIndexError(Chip8Fault):
    """Key index outside 0..15, from the unchecked setter or from VX in EX9E/EXA1."""


class MachineHaltedError(Chip8Fault):
    """Step requested after a fault, before the machine was reset."""


class InvalidArgumentError(Chip8Error, ValueError):
    """Rejected argument from one of the checked host entry points."""
