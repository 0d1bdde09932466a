"""
Splits a 16-bit Chip 8 instruction word into the operand fields shared by
the whole opcode table.
"""
from collections import namedtuple

from chip8vm.exception import MemoryAccessException

# Masks for the fields of an instruction word
OPERATION_MASK = 0xF000
X_MASK = 0x0F00
Y_MASK = 0x00F0
N_MASK = 0x000F
NN_MASK = 0x00FF
NNN_MASK = 0x0FFF

# The layout of every operand is:
#
#    Bits:  15-12     11-8      7-4       3-0
#          operation    x         y         n
#                                 \-- nn --/
#                       \------- nnn ------/
Instruction = namedtuple('Instruction', ['operand', 'operation', 'x', 'y', 'n', 'nn', 'nnn'])


def decode(operand):
    """
    Decode the instruction word into its operand fields. Every 16-bit value
    decodes; whether the result means anything is up to the CPU.

    :param operand: the 16-bit instruction word
    :return: an Instruction with the decoded fields
    """
    return Instruction(
        operand=operand,
        operation=(operand & OPERATION_MASK) >> 12,
        x=(operand & X_MASK) >> 8,
        y=(operand & Y_MASK) >> 4,
        n=operand & N_MASK,
        nn=operand & NN_MASK,
        nnn=operand & NNN_MASK,
    )


def fetch(memory, address):
    """
    Read the big-endian instruction word stored at address and address + 1.

    :param memory: the memory to read from
    :param address: the address of the high byte
    :return: the 16-bit instruction word
    """
    if address < 0 or address + 1 >= len(memory):
        raise MemoryAccessException(address)
    return (memory[address] << 8) | memory[address + 1]
