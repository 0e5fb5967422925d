"""
Tests for the CHIP-8 machine components.

This module covers the decoder, memory, call stack, timers, framebuffer
and keypad in isolation from the CPU.
"""
import unittest
import numpy as np
from chip8_vm.constants import FONTSET, PROGRAM_START, RAM_SIZE, MAX_PROGRAM_SIZE
from chip8_vm.systems.chip8.decoder import Op, decode, disassemble
from chip8_vm.systems.chip8.memory import Chip8Memory
from chip8_vm.systems.chip8.stack import CallStack
from chip8_vm.systems.chip8.timers import TimerUnit
from chip8_vm.systems.chip8.display import Chip8Display
from chip8_vm.systems.chip8.keypad import Keypad
from chip8_vm.systems.chip8.errors import (
    Chip8Fault, UnknownOpcodeError, StackOverflowError, StackUnderflowError,
    MemoryAccessError, KeyIndexError, InvalidArgumentError
)

class TestDecoder(unittest.TestCase):
    """Test cases for opcode decoding."""

    def test_operand_fields(self):
        """Test that every operand field is extracted."""
        ins = decode(0xD5A7)
        self.assertEqual(ins.op, Op.DRW)
        self.assertEqual((ins.x, ins.y, ins.n), (0x5, 0xA, 0x7))
        self.assertEqual(ins.nn, 0xA7)
        self.assertEqual(ins.nnn, 0x5A7)
        self.assertEqual(ins.raw, 0xD5A7)

    def test_fixed_patterns(self):
        """Test instructions identified by all four nibbles."""
        self.assertEqual(decode(0x0000).op, Op.NOP)
        self.assertEqual(decode(0x00E0).op, Op.CLS)
        self.assertEqual(decode(0x00EE).op, Op.RET)

    def test_arithmetic_family(self):
        """Test that the 8XY_ family is selected by its low nibble."""
        expected = {
            0x0: Op.LD_VX_VY, 0x1: Op.OR, 0x2: Op.AND, 0x3: Op.XOR,
            0x4: Op.ADD_VX_VY, 0x5: Op.SUB, 0x6: Op.SHR, 0x7: Op.SUBN,
            0xE: Op.SHL,
        }
        for low, op in expected.items():
            with self.subTest(low=low):
                self.assertEqual(decode(0x8120 | low).op, op)

    def test_misc_family(self):
        """Test the FX__ family."""
        expected = {
            0x07: Op.LD_VX_DT, 0x0A: Op.LD_VX_K, 0x15: Op.LD_DT_VX,
            0x18: Op.LD_ST_VX, 0x1E: Op.ADD_I_VX, 0x29: Op.LD_F_VX,
            0x33: Op.LD_B_VX, 0x55: Op.LD_I_VX, 0x65: Op.LD_VX_I,
        }
        for low, op in expected.items():
            with self.subTest(low=hex(low)):
                self.assertEqual(decode(0xF300 | low).op, op)

    def test_unmatched_nibbles_are_unknown(self):
        """Test that near misses of a pattern are not aliased to it."""
        for word in [0x0001, 0x00E1, 0x0FFF, 0x5AB1, 0x8AB8, 0x8ABF, 0x9AB1,
                     0xE19F, 0xE1A2, 0xF108, 0xF166]:
            with self.subTest(word=hex(word)):
                with self.assertRaises(UnknownOpcodeError) as ctx:
                    decode(word)
                self.assertEqual(ctx.exception.opcode, word)

    def test_every_word_decodes_or_faults(self):
        """Test that decoding is total over all 16-bit words."""
        known = 0
        for word in range(0x10000):
            try:
                ins = decode(word)
            except UnknownOpcodeError:
                continue
            known += 1
            self.assertEqual(ins.raw, word)
        # Families with free operands plus the three fixed words
        self.assertGreater(known, 0x8000)
        self.assertLess(known, 0x10000)

    def test_instruction_is_immutable(self):
        """Test that decoded instructions cannot be changed."""
        ins = decode(0x6A42)
        with self.assertRaises(AttributeError):
            ins.x = 3

    def test_mnemonics(self):
        """Test assembly rendering."""
        self.assertEqual(decode(0x8124).mnemonic(), "ADD V1, V2")
        self.assertEqual(decode(0x6A42).mnemonic(), "LD VA, 0x42")
        self.assertEqual(decode(0xA2F0).mnemonic(), "LD I, 0x2F0")
        self.assertEqual(decode(0xD015).mnemonic(), "DRW V0, V1, 5")
        self.assertEqual(decode(0xF355).mnemonic(), "LD [I], V3")
        self.assertEqual(str(decode(0x00E0)), "00E0  CLS")

    def test_disassemble(self):
        """Test a listing that mixes code and data."""
        lines = disassemble(bytes([0x60, 0x05, 0xFF, 0xFF, 0x12, 0x00]))
        self.assertEqual(lines, [
            "200: 6005  LD V0, 0x05",
            "202: FFFF  DW 0xFFFF",
            "204: 1200  JP 0x200",
        ])

    def test_disassemble_odd_length(self):
        """Test that a trailing single byte is listed as data."""
        lines = disassemble(bytes([0x60, 0x05, 0xAB]))
        self.assertEqual(lines, [
            "200: 6005  LD V0, 0x05",
            "202: AB    DB 0xAB",
        ])
        self.assertEqual(disassemble(bytes([0x12])), ["200: 12    DB 0x12"])
class TestMemory(unittest.TestCase):
    """Test cases for the address space."""

    def setUp(self):
        """Set up test fixtures."""
        self.memory = Chip8Memory()

    def test_font_installed(self):
        """Test that the font table sits at address 0."""
        self.assertEqual(len(FONTSET), 80)
        self.assertEqual(self.memory.read_block(0, 80), bytes(FONTSET))
        self.assertEqual(self.memory.read_block(80, 0x200 - 80), bytes(0x200 - 80))

    def test_font_glyph_shapes(self):
        """Test a couple of known glyphs."""
        self.assertEqual(self.memory.read_block(0, 5), bytes([0xF0, 0x90, 0x90, 0x90, 0xF0]))
        self.assertEqual(self.memory.read_block(5, 5), bytes([0x20, 0x60, 0x20, 0x20, 0x70]))
        self.assertEqual(self.memory.read_block(75, 5), bytes([0xF0, 0x80, 0xF0, 0x80, 0x80]))

    def test_load_rom_at_program_start(self):
        """Test that a program lands at 0x200."""
        self.memory.load_rom(bytes([0xAB, 0xCD, 0xEF]))
        self.assertEqual(self.memory.read_block(PROGRAM_START, 3), bytes([0xAB, 0xCD, 0xEF]))
        self.assertEqual(self.memory.read_word(PROGRAM_START), 0xABCD)
        self.assertEqual(self.memory.rom_size, 3)

    def test_load_largest_program(self):
        """Test that a program filling all of program space fits."""
        self.memory.load_rom(bytes([0x11]) * MAX_PROGRAM_SIZE)
        self.assertEqual(self.memory.read(RAM_SIZE - 1), 0x11)

    def test_load_oversized_program_faults(self):
        """Test that a program past the end of memory is refused whole."""
        with self.assertRaises(MemoryAccessError):
            self.memory.load_rom(bytes([0x11]) * (MAX_PROGRAM_SIZE + 1))
        self.assertEqual(self.memory.read(PROGRAM_START), 0)

    def test_out_of_range_access_faults(self):
        """Test bounds checks on every accessor."""
        with self.assertRaises(MemoryAccessError):
            self.memory.read(RAM_SIZE)
        with self.assertRaises(MemoryAccessError):
            self.memory.write(RAM_SIZE, 1)
        with self.assertRaises(MemoryAccessError):
            self.memory.read(-1)
        with self.assertRaises(MemoryAccessError):
            self.memory.read_word(RAM_SIZE - 1)
        with self.assertRaises(MemoryAccessError):
            self.memory.read_block(RAM_SIZE - 2, 3)
        with self.assertRaises(MemoryAccessError):
            self.memory.write_block(RAM_SIZE - 1, bytes(2))

    def test_reset_clears_program(self):
        """Test that reset wipes program space and restores the font."""
        self.memory.load_rom(bytes([1, 2, 3]))
        self.memory.write(0, 0)
        self.memory.reset()
        self.assertEqual(self.memory.read_block(PROGRAM_START, 3), bytes(3))
        self.assertEqual(self.memory.read(0), FONTSET[0])
        self.assertEqual(self.memory.rom_size, 0)

class TestCallStack(unittest.TestCase):
    """Test cases for the return-address stack."""

    def setUp(self):
        """Set up test fixtures."""
        self.stack = CallStack()

    def test_lifo_order(self):
        """Test that addresses come back in reverse order."""
        self.stack.push(0x202)
        self.stack.push(0x304)
        self.assertEqual(self.stack.snapshot(), [0x202, 0x304])
        self.assertEqual(self.stack.pop(), 0x304)
        self.assertEqual(self.stack.pop(), 0x202)
        self.assertEqual(len(self.stack), 0)

    def test_overflow(self):
        """Test that the 17th push faults and leaves the stack intact."""
        for i in range(16):
            self.stack.push(0x200 + 2 * i)
        with self.assertRaises(StackOverflowError):
            self.stack.push(0x300)
        self.assertEqual(self.stack.sp, 16)
        self.assertEqual(self.stack.pop(), 0x21E)

    def test_underflow(self):
        """Test that popping an empty stack faults."""
        with self.assertRaises(StackUnderflowError):
            self.stack.pop()
        self.assertEqual(self.stack.sp, 0)

class TestTimerUnit(unittest.TestCase):
    """Test cases for the delay and sound timers."""

    def setUp(self):
        """Set up test fixtures."""
        self.timers = TimerUnit()

    def test_tick_counts_down_and_saturates(self):
        """Test that both timers stop at zero."""
        self.timers.set_delay(2)
        self.timers.set_sound(1)
        self.assertTrue(self.timers.tick())
        self.assertFalse(self.timers.tick())
        self.assertFalse(self.timers.tick())
        self.assertEqual(self.timers.get_state(), {"DT": 0, "ST": 0})

    def test_tone_start(self):
        """Test that only a zero to non-zero load starts a tone."""
        self.assertTrue(self.timers.set_sound(3))
        self.assertTrue(self.timers.sound_active)
        self.assertFalse(self.timers.set_sound(5))
        self.timers.reset()
        self.assertFalse(self.timers.set_sound(0))
        self.assertFalse(self.timers.sound_active)

    def test_values_are_bytes(self):
        """Test that loads keep only the low byte."""
        self.timers.set_delay(0x1FF)
        self.assertEqual(self.timers.delay, 0xFF)

class TestDisplay(unittest.TestCase):
    """Test cases for the framebuffer."""

    def setUp(self):
        """Set up test fixtures."""
        self.display = Chip8Display()

    def test_shape(self):
        """Test the frame dimensions and initial contents."""
        frame = self.display.get_frame_buffer()
        self.assertEqual(frame.shape, (32, 64))
        self.assertEqual(frame.dtype, np.bool_)
        self.assertFalse(frame.any())

    def test_frame_buffer_is_read_only(self):
        """Test that callers cannot write through the returned frame."""
        frame = self.display.get_frame_buffer()
        with self.assertRaises(ValueError):
            frame[0, 0] = True
        self.assertFalse(self.display.get_pixel(0, 0))

    def test_frame_buffer_is_a_snapshot(self):
        """Test that a returned frame is detached from the live pixels."""
        frame = self.display.get_frame_buffer()
        self.display.draw_sprite(0, 0, bytes([0x80]))
        self.assertFalse(frame[0, 0])
        self.assertTrue(self.display.get_frame_buffer()[0, 0])

        # Re-enabling writes on the copy must not reach the display
        frame.flags.writeable = True
        frame[5, 5] = True
        self.assertFalse(self.display.get_pixel(5, 5))

    def test_draw_sets_bits_msb_first(self):
        """Test that the sprite's high bit is its leftmost pixel."""
        collision = self.display.draw_sprite(10, 4, bytes([0b10100000]))
        self.assertFalse(collision)
        self.assertTrue(self.display.get_pixel(10, 4))
        self.assertFalse(self.display.get_pixel(11, 4))
        self.assertTrue(self.display.get_pixel(12, 4))

    def test_clear_bits_do_not_touch_screen(self):
        """Test that zero sprite bits leave lit pixels alone."""
        self.display.draw_sprite(0, 0, bytes([0xFF]))
        collision = self.display.draw_sprite(0, 0, bytes([0x0F]))
        self.assertTrue(collision)
        self.assertEqual([self.display.get_pixel(x, 0) for x in range(8)],
                         [True] * 4 + [False] * 4)

    def test_wrap_both_axes(self):
        """Test a sprite drawn over the bottom-right corner."""
        self.display.draw_sprite(63, 31, bytes([0xC0, 0xC0]))
        for x, y in [(63, 31), (0, 31), (63, 0), (0, 0)]:
            self.assertTrue(self.display.get_pixel(x, y))
        self.assertEqual(self.display.get_state()["lit_pixels"], 4)

    def test_clear(self):
        """Test that clear turns every pixel off."""
        self.display.draw_sprite(0, 0, bytes([0xFF] * 15))
        self.display.clear()
        self.assertFalse(self.display.get_frame_buffer().any())

class TestKeypad(unittest.TestCase):
    """Test cases for the key latch."""

    def setUp(self):
        """Set up test fixtures."""
        self.keypad = Keypad()

    def test_press_and_release(self):
        """Test that key states latch until changed."""
        self.keypad.set_key(0xA, True)
        self.assertTrue(self.keypad.is_pressed(0xA))
        self.keypad.set_key(0xA, False)
        self.assertFalse(self.keypad.is_pressed(0xA))

    def test_lookup_out_of_range(self):
        """Test that a register value above 0xF does not alias another key."""
        self.keypad.set_key(0x3, True)
        with self.assertRaises(KeyIndexError):
            self.keypad.is_pressed(0x13)
        with self.assertRaises(KeyIndexError):
            self.keypad.is_pressed(0x10)

    def test_first_pressed(self):
        """Test that the lowest pressed index wins."""
        self.assertIsNone(self.keypad.first_pressed())
        self.keypad.set_key(0xC, True)
        self.keypad.set_key(0x4, True)
        self.assertEqual(self.keypad.first_pressed(), 0x4)

    def test_bad_index(self):
        """Test both flavours of index validation."""
        with self.assertRaises(KeyIndexError):
            self.keypad.set_key(16, True)
        with self.assertRaises(InvalidArgumentError):
            self.keypad.set_key_checked(16, True)
        with self.assertRaises(InvalidArgumentError):
            self.keypad.set_key_checked(-1, True)
        self.assertEqual(self.keypad.snapshot(), [False] * 16)

    def test_error_hierarchy(self):
        """Test that faults and argument errors are distinguishable."""
        self.assertTrue(issubclass(KeyIndexError, Chip8Fault))
        self.assertFalse(issubclass(InvalidArgumentError, Chip8Fault))
        self.assertTrue(issubclass(InvalidArgumentError, ValueError))

if __name__ == '__main__':
    unittest.main()
