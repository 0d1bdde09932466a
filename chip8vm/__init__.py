from chip8vm.cpu import (
    CPU,
    CycleResult,
    STATUS_DECODE_FAILURE,
    STATUS_MEMORY_FAULT,
    STATUS_NORMAL,
    STATUS_STACK_FAULT,
)
from chip8vm.decoder import Instruction, decode
from chip8vm.display import Display
from chip8vm.exception import (
    Chip8Exception,
    ImageTooLargeException,
    MemoryAccessException,
    StackOverflowException,
    StackUnderflowException,
    UnknownOpCodeException,
)

__version__ = '1.0.0'
