"""
CHIP-8 system implementation.

This module ties the CHIP-8 components (CPU, memory, display, keypad and
timers) into one machine. The host drives it with two independent
cadences: step() at whatever instruction rate it likes, and tick_timers()
at a fixed rate (conventionally 60 Hz). Between calls the host feeds key
events in through set_key() and reads the framebuffer from display().
"""

import logging
import os
from typing import Dict, Any, Optional

import numpy as np

from ...common.interfaces import System
from ...constants import MAX_PROGRAM_SIZE, DEFAULT_TICKS_PER_FRAME
from ...system_configs import SYSTEM_CONFIGS
from ...utils.event_manager import EventManager, EventType
from .cpu import Chip8CPU
from .memory import Chip8Memory
from .display import Chip8Display
from .keypad import Keypad
from .timers import TimerUnit
from .errors import Chip8Fault, MachineHaltedError, InvalidArgumentError

logger = logging.getLogger("Chip8VM.Chip8.System")

class Chip8System(System):
    """
    Complete CHIP-8 machine.

    Owns every piece of machine state exclusively; nothing is shared with
    other instances. A fault raised while stepping halts the machine until
    the next reset.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None,
                 event_manager: Optional[EventManager] = None):
        """
        Initialize the CHIP-8 system.

        Args:
            config: System configuration dictionary (None for defaults)
            seed: Seed for the random number source used by CXNN
            rng: Random generator to use instead of a seeded default
            event_manager: Bus for host notifications (None to create one)
        """
        self.config = config or SYSTEM_CONFIGS["chip8"]
        self.ticks_per_frame = self.config.get("ticks_per_frame", DEFAULT_TICKS_PER_FRAME)

        # Create and connect components
        self.memory = Chip8Memory(self.config)
        self.display_unit = Chip8Display()
        self.keypad = Keypad()
        self.timers = TimerUnit()
        self.cpu = Chip8CPU(
            display=self.display_unit,
            keypad=self.keypad,
            timers=self.timers,
            rng=rng if rng is not None else np.random.default_rng(seed),
        )
        self.cpu.set_memory(self.memory)

        self.events = event_manager or EventManager()
        self.state_recorder = None

        # System state
        self.frame_count = 0
        self.rom_name = ""
        self.fault: Optional[Chip8Fault] = None

        logger.info("CHIP-8 system initialized")

    @property
    def halted(self) -> bool:
        return self.fault is not None

    @property
    def cycle_count(self) -> int:
        return self.cpu.cycles

    def reset(self) -> None:
        """Reset the machine to its power-on state (program memory included)."""
        self.memory.reset()
        self.cpu.reset()
        self.display_unit.reset()
        self.keypad.reset()
        self.timers.reset()

        self.frame_count = 0
        self.rom_name = ""
        self.fault = None

        self.events.create_event(EventType.SYSTEM_RESET, "chip8")
        logger.info("System reset")

    def load(self, data: bytes) -> None:
        """
        Install a program image at the program offset.

        The caller must make sure the image fits; an oversized image
        raises MemoryAccessError.

        Args:
            data: Raw program bytes
        """
        self.memory.load_rom(data)
        self.events.create_event(EventType.ROM_LOADED, "chip8", {"size": len(data)})
        logger.info(f"Loaded program: {len(data)} bytes")

    def load_checked(self, data: bytes) -> None:
        """
        Install a program image after validating its size.

        Raises:
            InvalidArgumentError: The image is empty or does not fit in memory
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidArgumentError(f"Program must be bytes, got {type(data).__name__}")
        if len(data) > MAX_PROGRAM_SIZE:
            raise InvalidArgumentError(
                f"Program is {len(data)} bytes; at most {MAX_PROGRAM_SIZE} fit in memory"
            )
        self.load(bytes(data))

    def load_rom(self, rom_path: str) -> None:
        """
        Load a CHIP-8 program file.

        Args:
            rom_path: Path to ROM file
        """
        with open(rom_path, 'rb') as f:
            rom_data = f.read()

        self.load_checked(rom_data)
        self.rom_name = os.path.basename(rom_path)

        logger.info(f"Loaded ROM: {self.rom_name}")

    def step(self) -> int:
        """
        Execute exactly one instruction.

        Returns:
            The opcode executed

        Raises:
            Chip8Fault: The instruction faulted (the machine is now halted)
            MachineHaltedError: A previous fault has not been cleared by reset
        """
        if self.fault is not None:
            raise MachineHaltedError(f"Machine halted after fault: {self.fault}",
                                     pc=self.fault.pc, opcode=self.fault.opcode)

        was_sounding = self.timers.sound_active
        try:
            opcode = self.cpu.step()
        except Chip8Fault as fault:
            self.fault = fault
            self.events.create_event(EventType.FAULT, "chip8", {
                "error": fault.__class__.__name__,
                "message": str(fault),
                "pc": fault.pc,
                "opcode": fault.opcode,
            })
            raise

        if not was_sounding and self.timers.sound_active:
            self.events.create_event(EventType.SOUND_START, "chip8", {"ST": self.timers.sound})
        elif was_sounding and not self.timers.sound_active:
            # FX18 with zero silences a running tone
            self.events.create_event(EventType.SOUND_END, "chip8")

        if self.state_recorder is not None:
            self._record_state()

        return opcode

    def tick_timers(self) -> bool:
        """
        Count both timers down by one.

        Returns:
            True if the sound timer reached zero on this tick
        """
        tone_ended = self.timers.tick()
        if tone_ended:
            self.events.create_event(EventType.SOUND_END, "chip8")
        return tone_ended

    def set_key(self, index: int, pressed: bool) -> None:
        """
        Record a key state.

        Args:
            index: Key index 0..15 (validated by the caller)
            pressed: True for key down, False for key up
        """
        self.keypad.set_key(index, pressed)
        self.events.create_event(EventType.KEY_CHANGE, "chip8", {"key": index, "pressed": bool(pressed)})

    def set_key_checked(self, index: int, pressed: bool) -> None:
        """Record a key state, raising InvalidArgumentError for a bad index."""
        self.keypad.set_key_checked(index, pressed)
        self.events.create_event(EventType.KEY_CHANGE, "chip8", {"key": index, "pressed": bool(pressed)})

    def display(self) -> np.ndarray:
        """
        Get the framebuffer.

        Returns:
            Read-only (32, 64) boolean snapshot of the current frame
        """
        return self.display_unit.get_frame_buffer()

    def run_frame(self) -> Dict[str, Any]:
        """
        Run one host frame: ticks_per_frame steps, then one timer tick.

        Returns:
            System state at the end of the frame
        """
        for _ in range(self.ticks_per_frame):
            self.step()
        self.tick_timers()
        self.frame_count += 1

        return self.get_system_state()

    def register_state_recorder(self, recorder) -> None:
        """
        Record a state snapshot after every executed instruction.

        Args:
            recorder: StateRecorder instance (None to stop recording)
        """
        self.state_recorder = recorder

    def get_system_state(self) -> Dict[str, Any]:
        """
        Get the current system state.

        Returns:
            Dictionary with system state
        """
        return {
            "cycle_count": self.cpu.cycles,
            "frame_count": self.frame_count,
            "rom_name": self.rom_name,
            "halted": self.halted,
            "cpu_state": self.cpu.get_state(),
            "stack": self.cpu.stack.snapshot(),
            "timers": self.timers.get_state(),
            "keys": self.keypad.snapshot(),
            "memory_state": self.memory.get_state(),
            "display_state": self.display_unit.get_state(),
        }

    def _record_state(self) -> None:
        """Record the current register state for tracing."""
        instruction = self.cpu.last_instruction
        registers = self.cpu.get_state()
        registers.pop("cycles")
        registers.update(self.timers.get_state())

        self.state_recorder.record_state({
            "cycle": self.cpu.cycles,
            "opcode": instruction.raw if instruction else None,
            "instruction": instruction.mnemonic() if instruction else "",
            "registers": registers,
        })
