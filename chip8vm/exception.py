class Chip8Exception(Exception):
    """
    Base class for all errors raised by the Chip 8 machine.
    """


class ImageTooLargeException(Chip8Exception):
    """
    A class to raise when a program image does not fit in memory.
    """
    def __init__(self, size, limit):
        Chip8Exception.__init__(
            self, "Program image of {} bytes exceeds the {} bytes available".format(size, limit))
        self.size = size
        self.limit = limit


class UnknownOpCodeException(Chip8Exception):
    """
    A class to raise unknown op code exceptions.
    """
    def __init__(self, op_code):
        Chip8Exception.__init__(self, "Unknown op-code: {:04X}".format(op_code))
        self.op_code = op_code


class StackOverflowException(Chip8Exception):
    """
    A class to raise when a subroutine call finds the stack full.
    """
    def __init__(self, address):
        Chip8Exception.__init__(self, "Stack overflow at {:04X}".format(address))
        self.address = address


class StackUnderflowException(Chip8Exception):
    """
    A class to raise when a return finds the stack empty.
    """
    def __init__(self, address):
        Chip8Exception.__init__(self, "Stack underflow at {:04X}".format(address))
        self.address = address


class MemoryAccessException(Chip8Exception):
    """
    A class to raise when an instruction reaches outside the address space.
    """
    def __init__(self, address):
        Chip8Exception.__init__(self, "Memory access out of range: {:04X}".format(address))
        self.address = address
