"""
CHIP-8 instruction decoding.

A 16-bit opcode is split into four nibbles and matched against a closed
table of instruction patterns. Each pattern fixes some nibbles and leaves
the rest as operands; a word must match every fixed nibble exactly, so
for example 5XY1 or 8XY8 are unknown opcodes rather than aliases of 5XY0
or 8XY0. Decoding never looks at machine state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .errors import UnknownOpcodeError

class Op(Enum):
    """One tag per instruction pattern."""
    NOP = "0000"
    CLS = "00E0"
    RET = "00EE"
    JP = "1NNN"
    CALL = "2NNN"
    SE_VX_NN = "3XNN"
    SNE_VX_NN = "4XNN"
    SE_VX_VY = "5XY0"
    LD_VX_NN = "6XNN"
    ADD_VX_NN = "7XNN"
    LD_VX_VY = "8XY0"
    OR = "8XY1"
    AND = "8XY2"
    XOR = "8XY3"
    ADD_VX_VY = "8XY4"
    SUB = "8XY5"
    SHR = "8XY6"
    SUBN = "8XY7"
    SHL = "8XYE"
    SNE_VX_VY = "9XY0"
    LD_I = "ANNN"
    JP_V0 = "BNNN"
    RND = "CXNN"
    DRW = "DXYN"
    SKP = "EX9E"
    SKNP = "EXA1"
    LD_VX_DT = "FX07"
    LD_VX_K = "FX0A"
    LD_DT_VX = "FX15"
    LD_ST_VX = "FX18"
    ADD_I_VX = "FX1E"
    LD_F_VX = "FX29"
    LD_B_VX = "FX33"
    LD_I_VX = "FX55"
    LD_VX_I = "FX65"

    @property
    def pattern(self) -> str:
        return self.value

def _compile(pattern: str) -> Tuple[int, int]:
    """Turn a pattern such as '8XY4' into a (mask, value) pair."""
    mask = 0
    value = 0
    for ch in pattern:
        mask <<= 4
        value <<= 4
        if ch in "0123456789ABCDEF":
            mask |= 0xF
            value |= int(ch, 16)
    return mask, value

# Patterns grouped by high nibble so decode only scans one family
_PATTERNS: Dict[int, List[Tuple[int, int, Op]]] = {}
for _op in Op:
    _mask, _value = _compile(_op.pattern)
    _PATTERNS.setdefault(_value >> 12, []).append((_mask, _value, _op))

_MNEMONICS = {
    Op.NOP: "NOP",
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.JP: "JP 0x{nnn:03X}",
    Op.CALL: "CALL 0x{nnn:03X}",
    Op.SE_VX_NN: "SE V{x:X}, 0x{nn:02X}",
    Op.SNE_VX_NN: "SNE V{x:X}, 0x{nn:02X}",
    Op.SE_VX_VY: "SE V{x:X}, V{y:X}",
    Op.LD_VX_NN: "LD V{x:X}, 0x{nn:02X}",
    Op.ADD_VX_NN: "ADD V{x:X}, 0x{nn:02X}",
    Op.LD_VX_VY: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_VX_VY: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}",
    Op.SNE_VX_VY: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, 0x{nnn:03X}",
    Op.JP_V0: "JP V0, 0x{nnn:03X}",
    Op.RND: "RND V{x:X}, 0x{nn:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_VX_K: "LD V{x:X}, K",
    Op.LD_DT_VX: "LD DT, V{x:X}",
    Op.LD_ST_VX: "LD ST, V{x:X}",
    Op.ADD_I_VX: "ADD I, V{x:X}",
    Op.LD_F_VX: "LD F, V{x:X}",
    Op.LD_B_VX: "LD B, V{x:X}",
    Op.LD_I_VX: "LD [I], V{x:X}",
    Op.LD_VX_I: "LD V{x:X}, [I]",
}

@dataclass(frozen=True)
class Instruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    op: Op
    raw: int
    x: int    # Second nibble (VX register)
    y: int    # Third nibble (VY register)
    n: int    # Fourth nibble (4-bit immediate)
    nn: int   # Low byte (8-bit immediate)
    nnn: int  # Low 12 bits (address)

    def mnemonic(self) -> str:
        """Render the instruction in conventional assembly syntax."""
        return _MNEMONICS[self.op].format(x=self.x, y=self.y, n=self.n, nn=self.nn, nnn=self.nnn)

    def __str__(self) -> str:
        return f"{self.raw:04X}  {self.mnemonic()}"

def decode(opcode: int) -> Instruction:
    """
    Decode a 16-bit opcode.

    Args:
        opcode: Raw instruction word

    Returns:
        Decoded instruction

    Raises:
        UnknownOpcodeError: The word matches no instruction pattern
    """
    opcode &= 0xFFFF
    for mask, value, op in _PATTERNS.get(opcode >> 12, ()):
        if opcode & mask == value:
            return Instruction(
                op=op,
                raw=opcode,
                x=(opcode & 0x0F00) >> 8,
                y=(opcode & 0x00F0) >> 4,
                n=opcode & 0x000F,
                nn=opcode & 0x00FF,
                nnn=opcode & 0x0FFF,
            )
    raise UnknownOpcodeError(f"Unknown opcode: ${opcode:04X}", opcode=opcode)

def disassemble(data: bytes, origin: int = 0x200) -> List[str]:
    """
    Produce a linear listing of a program image.

    Words that do not decode are listed as raw data (DW); a trailing odd
    byte is listed as a single data byte (DB).

    Args:
        data: Program bytes
        origin: Address of the first byte

    Returns:
        One line per 16-bit word, plus one for a trailing odd byte
    """
    lines = []
    for offset in range(0, len(data) - 1, 2):
        word = (data[offset] << 8) | data[offset + 1]
        try:
            text = decode(word).mnemonic()
        except UnknownOpcodeError:
            text = f"DW 0x{word:04X}"
        lines.append(f"{origin + offset:03X}: {word:04X}  {text}")
    if len(data) % 2:
        offset = len(data) - 1
        lines.append(f"{origin + offset:03X}: {data[offset]:02X}    DB 0x{data[offset]:02X}")
    return lines
