"""
CHIP-8 CPU emulation.

The interpreter fetches a big-endian 16-bit word at PC, advances PC by
two, decodes the word into a tagged Instruction and dispatches it through
a handler table. Register arithmetic is 8-bit with wraparound; the flag
register VF receives carry, borrow, shifted-out bit and sprite collision
results. VF is always written after the destination register, so an
instruction that targets VF itself ends with the flag value.

The key wait instruction (FX0A) never blocks: with no key down it rewinds
PC so the same instruction is fetched again on the next step.
"""

from ...common.interfaces import CPU, Memory
from ...constants import NUM_REGISTERS, FLAG_REGISTER, PROGRAM_START, FONT_SPRITE_HEIGHT
from .decoder import Op, Instruction, decode
from .display import Chip8Display
from .keypad import Keypad
from .stack import CallStack
from .timers import TimerUnit
from .errors import Chip8Fault
import logging
from typing import Callable, Dict, Optional

import numpy as np

logger = logging.getLogger("Chip8VM.Chip8.CPU")

class Chip8CPU(CPU):
    """
    Emulates the CHIP-8 interpreter core.

    Owns the register file (V0-VF, I, PC) and the call stack, and is wired
    to the memory, display, keypad and timers it operates on. Randomness
    for CXNN comes from an injected numpy Generator.
    """

    def __init__(self,
                 display: Optional[Chip8Display] = None,
                 keypad: Optional[Keypad] = None,
                 timers: Optional[TimerUnit] = None,
                 rng: Optional[np.random.Generator] = None):
        # CPU registers
        self.V = [0] * NUM_REGISTERS  # General registers V0-VF
        self.I = 0x0000  # Index register
        self.PC = PROGRAM_START  # Program counter

        self.stack = CallStack()
        self.display = display or Chip8Display()
        self.keypad = keypad or Keypad()
        self.timers = timers or TimerUnit()
        self.rng = rng if rng is not None else np.random.default_rng()

        # Instructions executed since reset
        self.cycles = 0
        self.memory = None
        self.last_instruction: Optional[Instruction] = None

        self._build_instruction_table()

        logger.info("CHIP-8 CPU initialized")

    def _build_instruction_table(self):
        """Build the handler lookup table."""
        self.instructions: Dict[Op, Callable[[Instruction], None]] = {
            Op.NOP: self._nop,
            Op.CLS: self._cls,
            Op.RET: self._ret,
            Op.JP: self._jp,
            Op.CALL: self._call,
            Op.SE_VX_NN: self._se_vx_nn,
            Op.SNE_VX_NN: self._sne_vx_nn,
            Op.SE_VX_VY: self._se_vx_vy,
            Op.LD_VX_NN: self._ld_vx_nn,
            Op.ADD_VX_NN: self._add_vx_nn,
            Op.LD_VX_VY: self._ld_vx_vy,
            Op.OR: self._or,
            Op.AND: self._and,
            Op.XOR: self._xor,
            Op.ADD_VX_VY: self._add_vx_vy,
            Op.SUB: self._sub,
            Op.SHR: self._shr,
            Op.SUBN: self._subn,
            Op.SHL: self._shl,
            Op.SNE_VX_VY: self._sne_vx_vy,
            Op.LD_I: self._ld_i,
            Op.JP_V0: self._jp_v0,
            Op.RND: self._rnd,
            Op.DRW: self._drw,
            Op.SKP: self._skp,
            Op.SKNP: self._sknp,
            Op.LD_VX_DT: self._ld_vx_dt,
            Op.LD_VX_K: self._ld_vx_k,
            Op.LD_DT_VX: self._ld_dt_vx,
            Op.LD_ST_VX: self._ld_st_vx,
            Op.ADD_I_VX: self._add_i_vx,
            Op.LD_F_VX: self._ld_f_vx,
            Op.LD_B_VX: self._ld_b_vx,
            Op.LD_I_VX: self._ld_i_vx,
            Op.LD_VX_I: self._ld_vx_i,
        }

    def set_memory(self, memory: Memory) -> None:
        """
        Connect the CPU to a memory system.

        Args:
            memory: Memory implementation
        """
        self.memory = memory

    def reset(self) -> None:
        """Reset the CPU to its initial state."""
        self.V = [0] * NUM_REGISTERS
        self.I = 0x0000
        self.PC = PROGRAM_START
        self.stack.reset()
        self.cycles = 0
        self.last_instruction = None

        logger.info(f"CPU reset. PC set to ${self.PC:03X}")

    def fetch(self) -> int:
        """
        Read the big-endian opcode at PC and advance PC past it.

        Returns:
            16-bit opcode
        """
        opcode = self.memory.read_word(self.PC)
        self.PC = (self.PC + 2) & 0xFFFF
        return opcode

    def step(self) -> int:
        """
        Execute one instruction.

        On a fault PC is left pointing at the faulting instruction and the
        fault is re-raised with its address and opcode attached.

        Returns:
            The opcode that was executed
        """
        if not self.memory:
            raise RuntimeError("CPU has no memory attached")

        address = self.PC
        opcode = None
        try:
            opcode = self.fetch()
            instruction = decode(opcode)
            self.instructions[instruction.op](instruction)
        except Chip8Fault as fault:
            self.PC = address
            if fault.pc is None:
                fault.pc = address
            if fault.opcode is None:
                fault.opcode = opcode
            logger.error(f"CPU fault: {fault}")
            raise

        self.last_instruction = instruction
        self.cycles += 1
        return opcode

    def skip(self) -> None:
        """Skip the next instruction."""
        self.PC = (self.PC + 2) & 0xFFFF

    def get_state(self) -> dict:
        """
        Get the current CPU state.

        Returns:
            Dictionary with CPU state
        """
        state = {f"V{index:X}": value for index, value in enumerate(self.V)}
        state.update({
            "I": self.I,
            "PC": self.PC,
            "SP": self.stack.sp,
            "cycles": self.cycles,
        })
        return state

    # Instruction implementations

    def _nop(self, ins: Instruction) -> None:
        pass

    def _cls(self, ins: Instruction) -> None:
        self.display.clear()

    def _ret(self, ins: Instruction) -> None:
        self.PC = self.stack.pop()

    def _jp(self, ins: Instruction) -> None:
        self.PC = ins.nnn

    def _call(self, ins: Instruction) -> None:
        self.stack.push(self.PC)
        self.PC = ins.nnn

    def _se_vx_nn(self, ins: Instruction) -> None:
        if self.V[ins.x] == ins.nn:
            self.skip()

    def _sne_vx_nn(self, ins: Instruction) -> None:
        if self.V[ins.x] != ins.nn:
            self.skip()

    def _se_vx_vy(self, ins: Instruction) -> None:
        if self.V[ins.x] == self.V[ins.y]:
            self.skip()

    def _ld_vx_nn(self, ins: Instruction) -> None:
        self.V[ins.x] = ins.nn

    def _add_vx_nn(self, ins: Instruction) -> None:
        # No carry flag for the immediate form
        self.V[ins.x] = (self.V[ins.x] + ins.nn) & 0xFF

    def _ld_vx_vy(self, ins: Instruction) -> None:
        self.V[ins.x] = self.V[ins.y]

    def _or(self, ins: Instruction) -> None:
        self.V[ins.x] |= self.V[ins.y]

    def _and(self, ins: Instruction) -> None:
        self.V[ins.x] &= self.V[ins.y]

    def _xor(self, ins: Instruction) -> None:
        self.V[ins.x] ^= self.V[ins.y]

    def _add_vx_vy(self, ins: Instruction) -> None:
        total = self.V[ins.x] + self.V[ins.y]
        self.V[ins.x] = total & 0xFF
        self.V[FLAG_REGISTER] = 1 if total > 0xFF else 0

    def _sub(self, ins: Instruction) -> None:
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vx - vy) & 0xFF
        self.V[FLAG_REGISTER] = 0 if vx < vy else 1

    def _shr(self, ins: Instruction) -> None:
        lsb = self.V[ins.x] & 0x01
        self.V[ins.x] >>= 1
        self.V[FLAG_REGISTER] = lsb

    def _subn(self, ins: Instruction) -> None:
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vy - vx) & 0xFF
        self.V[FLAG_REGISTER] = 0 if vy < vx else 1

    def _shl(self, ins: Instruction) -> None:
        msb = (self.V[ins.x] >> 7) & 0x01
        self.V[ins.x] = (self.V[ins.x] << 1) & 0xFF
        self.V[FLAG_REGISTER] = msb

    def _sne_vx_vy(self, ins: Instruction) -> None:
        if self.V[ins.x] != self.V[ins.y]:
            self.skip()

    def _ld_i(self, ins: Instruction) -> None:
        self.I = ins.nnn

    def _jp_v0(self, ins: Instruction) -> None:
        self.PC = self.V[0] + ins.nnn

    def _rnd(self, ins: Instruction) -> None:
        self.V[ins.x] = int(self.rng.integers(0, 256)) & ins.nn

    def _drw(self, ins: Instruction) -> None:
        sprite = self.memory.read_block(self.I, ins.n)
        collision = self.display.draw_sprite(self.V[ins.x], self.V[ins.y], sprite)
        self.V[FLAG_REGISTER] = 1 if collision else 0

    def _skp(self, ins: Instruction) -> None:
        if self.keypad.is_pressed(self.V[ins.x]):
            self.skip()

    def _sknp(self, ins: Instruction) -> None:
        if not self.keypad.is_pressed(self.V[ins.x]):
            self.skip()

    def _ld_vx_dt(self, ins: Instruction) -> None:
        self.V[ins.x] = self.timers.delay

    def _ld_vx_k(self, ins: Instruction) -> None:
        key = self.keypad.first_pressed()
        if key is None:
            # Fetch this instruction again on the next step
            self.PC = (self.PC - 2) & 0xFFFF
        else:
            self.V[ins.x] = key

    def _ld_dt_vx(self, ins: Instruction) -> None:
        self.timers.set_delay(self.V[ins.x])

    def _ld_st_vx(self, ins: Instruction) -> None:
        self.timers.set_sound(self.V[ins.x])

    def _add_i_vx(self, ins: Instruction) -> None:
        self.I = (self.I + self.V[ins.x]) & 0xFFFF

    def _ld_f_vx(self, ins: Instruction) -> None:
        self.I = self.V[ins.x] * FONT_SPRITE_HEIGHT

    def _ld_b_vx(self, ins: Instruction) -> None:
        value = self.V[ins.x]
        self.memory.write_block(self.I, bytes([value // 100, (value // 10) % 10, value % 10]))

    def _ld_i_vx(self, ins: Instruction) -> None:
        self.memory.write_block(self.I, bytes(self.V[:ins.x + 1]))

    def _ld_vx_i(self, ins: Instruction) -> None:
        self.V[:ins.x + 1] = list(self.memory.read_block(self.I, ins.x + 1))
