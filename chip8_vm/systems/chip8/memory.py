"""
CHIP-8 memory system implementation.

The CHIP-8 memory map is flat:
- Font sprites (addresses 0x000-0x04F)
- Unused interpreter area (addresses 0x050-0x1FF)
- Program space (addresses 0x200-0xFFF)

Every access is bounds-checked; touching an address outside the 4 KiB
space raises MemoryAccessError instead of wrapping.
"""

from ...common.interfaces import Memory
from ...constants import RAM_SIZE, PROGRAM_START, FONTSET, FONTSET_SIZE
from .errors import MemoryAccessError
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger("Chip8VM.Chip8.Memory")

class Chip8Memory(Memory):
    """
    Emulates the 4 KiB CHIP-8 address space.

    The font table is written into the reserved prefix on construction and
    on every reset. Programs are copied in at PROGRAM_START.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the memory system.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.ram = bytearray(RAM_SIZE)
        self.rom_size = 0

        self.reset()

        logger.info("CHIP-8 memory system initialized")

    def reset(self) -> None:
        """Zero all memory and reinstall the font table."""
        self.ram[:] = bytes(RAM_SIZE)
        self.ram[:FONTSET_SIZE] = FONTSET
        self.rom_size = 0

    def read(self, address: int) -> int:
        """
        Read a byte from the specified address.

        Args:
            address: Memory address

        Returns:
            Byte value at address
        """
        if not 0 <= address < RAM_SIZE:
            raise MemoryAccessError(f"Read outside memory: ${address:X}")
        return self.ram[address]

    def write(self, address: int, value: int) -> None:
        """
        Write a byte to the specified address.

        Args:
            address: Memory address
            value: Byte value to write
        """
        if not 0 <= address < RAM_SIZE:
            raise MemoryAccessError(f"Write outside memory: ${address:X}")
        self.ram[address] = value & 0xFF

    def read_word(self, address: int) -> int:
        """
        Read a big-endian 16-bit word.

        Args:
            address: Address of the high byte

        Returns:
            16-bit value
        """
        return (self.read(address) << 8) | self.read(address + 1)

    def read_block(self, address: int, length: int) -> bytes:
        """
        Read a contiguous block of bytes.

        Args:
            address: Start address
            length: Number of bytes

        Returns:
            Copy of the requested bytes
        """
        self._check_range(address, length)
        return bytes(self.ram[address:address + length])

    def write_block(self, address: int, data: bytes) -> None:
        """
        Write a contiguous block of bytes.

        Args:
            address: Start address
            data: Bytes to write
        """
        self._check_range(address, len(data))
        self.ram[address:address + len(data)] = data

    def load_rom(self, rom_data: bytes) -> None:
        """
        Copy a program image into memory at PROGRAM_START.

        Whatever was previously at the program offset is overwritten. The
        caller is responsible for size; an image that would run past the
        end of memory raises MemoryAccessError.

        Args:
            rom_data: Raw program bytes
        """
        self.write_block(PROGRAM_START, bytes(rom_data))
        self.rom_size = len(rom_data)
        logger.debug(f"Loaded {self.rom_size} program bytes at ${PROGRAM_START:03X}")

    def _check_range(self, address: int, length: int) -> None:
        if address < 0 or address + length > RAM_SIZE:
            raise MemoryAccessError(
                f"Access ${address:X}-${address + length - 1:X} outside memory"
            )

    def get_state(self) -> Dict[str, Any]:
        """
        Get the current memory state.

        Returns:
            Dictionary with memory state
        """
        return {
            "size": RAM_SIZE,
            "rom_size": self.rom_size,
            "program_start": PROGRAM_START,
        }
