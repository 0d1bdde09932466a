"""
Tests for the instruction decoder.
"""
import unittest

from chip8vm.decoder import decode, fetch
from chip8vm.exception import MemoryAccessException


class TestDecode(unittest.TestCase):

    def test_fields(self):
        instruction = decode(0xD123)
        self.assertEqual(instruction.operand, 0xD123)
        self.assertEqual(instruction.operation, 0xD)
        self.assertEqual(instruction.x, 0x1)
        self.assertEqual(instruction.y, 0x2)
        self.assertEqual(instruction.n, 0x3)
        self.assertEqual(instruction.nn, 0x23)
        self.assertEqual(instruction.nnn, 0x123)

    def test_extremes(self):
        self.assertEqual(tuple(decode(0x0000)), (0, 0, 0, 0, 0, 0, 0))
        self.assertEqual(tuple(decode(0xFFFF)), (0xFFFF, 0xF, 0xF, 0xF, 0xF, 0xFF, 0xFFF))


class TestFetch(unittest.TestCase):

    def test_big_endian(self):
        memory = bytearray(8)
        memory[2] = 0x6A
        memory[3] = 0x05
        self.assertEqual(fetch(memory, 2), 0x6A05)

    def test_last_word_in_memory(self):
        memory = bytearray(4)
        memory[2:4] = b'\x12\x34'
        self.assertEqual(fetch(memory, 2), 0x1234)

    def test_past_end_of_memory(self):
        with self.assertRaises(MemoryAccessException):
            fetch(bytearray(4), 3)


if __name__ == '__main__':
    unittest.main()
