"""
CHIP-8 return-address stack.

The stack is separate from addressable memory: a fixed array of 16
return addresses and an explicit depth pointer. It is only touched by
the CALL and RET instructions.
"""

from ...constants import STACK_SIZE
from .errors import StackOverflowError, StackUnderflowError
from typing import List

class CallStack:
    """Fixed-depth return-address stack."""

    def __init__(self, depth: int = STACK_SIZE):
        self.depth = depth
        self.slots = [0] * depth
        self.sp = 0

    def reset(self) -> None:
        """Empty the stack."""
        self.slots = [0] * self.depth
        self.sp = 0

    def push(self, address: int) -> None:
        """
        Push a return address.

        Args:
            address: 16-bit return address

        Raises:
            StackOverflowError: All slots are already in use
        """
        if self.sp >= self.depth:
            raise StackOverflowError(f"Stack overflow: depth {self.depth} exceeded")
        self.slots[self.sp] = address & 0xFFFF
        self.sp += 1

    def pop(self) -> int:
        """
        Pop the most recent return address.

        Returns:
            16-bit return address

        Raises:
            StackUnderflowError: The stack is empty
        """
        if self.sp == 0:
            raise StackUnderflowError("Stack underflow: return with empty stack")
        self.sp -= 1
        return self.slots[self.sp]

    def __len__(self) -> int:
        return self.sp

    def snapshot(self) -> List[int]:
        """Return the live portion of the stack, oldest first."""
        return self.slots[:self.sp]
