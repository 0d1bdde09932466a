import logging
import random
from collections import namedtuple

from chip8vm.decoder import decode, fetch
from chip8vm.display import Display
from chip8vm.exception import (
    ImageTooLargeException,
    MemoryAccessException,
    StackOverflowException,
    StackUnderflowException,
    UnknownOpCodeException,
)

logger = logging.getLogger(__name__)

# The total amount of memory to allocate for the emulator
MAX_MEMORY = 4096

# Where the program counter should originally point, and where programs
# are loaded
PROGRAM_COUNTER_START = 0x200

# The largest program image that fits between PROGRAM_COUNTER_START and the
# end of memory
MAX_PROGRAM_SIZE = MAX_MEMORY - PROGRAM_COUNTER_START

# The total number of registers in the Chip 8 CPU
NUM_REGISTERS = 0x10

# The register used for carry, borrow, collision and overflow flags
FLAG_REGISTER = 0xF

# The number of logical keys on the keypad
NUM_KEYS = 0x10

# The smallest call stack the CPU will accept
MIN_STACK_SIZE = 16

# Sprites are always 8 pixels wide
SPRITE_WIDTH = 8

# The built-in hexadecimal font, 5 bytes per glyph, loaded at address 0
FONT_BYTES_PER_CHAR = 5
FONT_SET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]

# The possible outcomes of a single cycle
STATUS_NORMAL = 'normal'
STATUS_DECODE_FAILURE = 'decode-failure'
STATUS_STACK_FAULT = 'stack-fault'
STATUS_MEMORY_FAULT = 'memory-fault'

# What cpu_step reports back to the driving loop
CycleResult = namedtuple('CycleResult', ['status', 'operand', 'draw', 'tone', 'error'])

# C L A S S E S ###############################################################


class CPU(object):
    """
    A class to emulate a Chip 8 CPU. There are several good resources out on
    the web that describe the internals of the Chip 8 CPU. For example:

        http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
        http://michael.toren.net/mirrors/chip8/chip8def.htm

    To summarize these sources, the Chip 8 has:

        * 4096 bytes of memory, the font living at 0x000 - 0x04F
        * 16 x 8-bit general purpose registers (V0 - VF**)
        * 1 x 16-bit index register (I)
        * 1 x 16-bit stack pointer (SP)
        * 1 x 16-bit program counter (PC)
        * 1 x 8-bit delay timer (DT)
        * 1 x 8-bit sound timer (ST)
        * a 64 x 32 monochrome display and a 16 key keypad

    ** VF is a special register - it is used to store the overflow bit

    The CPU does no I/O of its own. Whatever drives it sets the key states,
    calls cpu_step at a fixed rate, and reads the display when the draw flag
    is set.
    """
    def __init__(self, display=None, wrap=False, stack_size=MIN_STACK_SIZE, rng=None,
                 tone_callback=None):
        """
        Initialize the Chip8 CPU.

        :param display: the framebuffer to draw on, a fresh 64 x 32 Display
            when not given
        :param wrap: whether sprites drawn past the right or bottom edge wrap
            around to the other side instead of being clipped
        :param stack_size: the number of return addresses the call stack holds
        :param rng: a random.Random used by the RAND instruction
        :param tone_callback: called with no arguments on the last audible
            cycle of the sound timer
        """
        if stack_size < MIN_STACK_SIZE:
            raise ValueError("Stack must hold at least {} frames".format(MIN_STACK_SIZE))

        # There are two timer registers, one for sound and one that is general
        # purpose known as the delay timer. Both count down once per cycle.
        self.cpu_timers = {
            'delay': 0,
            'sound': 0,
        }

        # Defines the general purpose, index, stack pointer and program
        # counter registers.
        self.cpu_registers = {
            'v': [0] * NUM_REGISTERS,
            'index': 0,
            'sp': 0,
            'pc': PROGRAM_COUNTER_START,
        }

        # The operation_lookup table is executed according to the most
        # significant nibble of the operand (e.g. operand 8nnn would call
        # self.cpu_execute_logical_instruction)
        self.cpu_operation_lookup = {
            0x0: self.cpu_clear_return,                  # see subfunctions below
            0x1: self.cpu_jump_to_address,               # 1nnn - JUMP nnn
            0x2: self.cpu_jump_to_subroutine,            # 2nnn - CALL nnn
            0x3: self.cpu_skip_if_reg_equal_val,         # 3snn - SKE  Vs, nn
            0x4: self.cpu_skip_if_reg_not_equal_val,     # 4snn - SKNE Vs, nn
            0x5: self.cpu_skip_if_reg_equal_reg,         # 5st0 - SKE  Vs, Vt
            0x6: self.cpu_move_value_to_reg,             # 6snn - LOAD Vs, nn
            0x7: self.cpu_add_value_to_reg,              # 7snn - ADD  Vs, nn
            0x8: self.cpu_execute_logical_instruction,   # see subfunctions below
            0x9: self.cpu_skip_if_reg_not_equal_reg,     # 9st0 - SKNE Vs, Vt
            0xA: self.cpu_load_index_reg_with_value,     # Annn - LOAD I, nnn
            0xB: self.cpu_jump_to_v0_plus_value,         # Bnnn - JUMP V0 + nnn
            0xC: self.cpu_generate_random_number,        # Ctnn - RAND Vt, nn
            0xD: self.cpu_draw_sprite,                   # Dstn - DRAW Vs, Vt, n
            0xE: self.cpu_keyboard_routines,             # see subfunctions below
            0xF: self.cpu_misc_routines,                 # see subfunctions below
        }

        # Operands starting with 0 are selected by their low byte
        self.cpu_clear_return_lookup = {
            0xE0: self.cpu_clear_screen,                 # 00E0 - CLS
            0xEE: self.cpu_return_from_subroutine,       # 00EE - RTS
        }

        # This set of operations is invoked when the operand loaded into the
        # CPU starts with 8 (e.g. operand 8st0 would call
        # self.cpu_move_reg_into_reg)
        self.cpu_logical_operation_lookup = {
            0x0: self.cpu_move_reg_into_reg,             # 8st0 - LOAD Vs, Vt
            0x1: self.cpu_logical_or,                    # 8st1 - OR   Vs, Vt
            0x2: self.cpu_logical_and,                   # 8st2 - AND  Vs, Vt
            0x3: self.cpu_exclusive_or,                  # 8st3 - XOR  Vs, Vt
            0x4: self.cpu_add_reg_to_reg,                # 8st4 - ADD  Vs, Vt
            0x5: self.cpu_subtract_reg_from_reg,         # 8st5 - SUB  Vs, Vt
            0x6: self.cpu_right_shift_reg,               # 8s06 - SHR  Vs
            0x7: self.cpu_subtract_reg_from_reg1,        # 8st7 - SUBN Vs, Vt
            0xE: self.cpu_left_shift_reg,                # 8s0E - SHL  Vs
        }

        # Operands starting with E are selected by their low byte
        self.cpu_keyboard_lookup = {
            0x9E: self.cpu_skip_if_key_pressed,          # Es9E - SKPR Vs
            0xA1: self.cpu_skip_if_key_not_pressed,      # EsA1 - SKUP Vs
        }

        # This set of operations is invoked when the operand loaded into the
        # CPU starts with F (e.g. operand Ft07 would call
        # self.cpu_move_delay_timer_into_reg)
        self.cpu_misc_routine_lookup = {
            0x07: self.cpu_move_delay_timer_into_reg,    # Ft07 - LOAD Vt, DELAY
            0x0A: self.cpu_wait_for_keypress,            # Ft0A - KEYD Vt
            0x15: self.cpu_move_reg_into_delay_timer,    # Fs15 - LOAD DELAY, Vs
            0x18: self.cpu_move_reg_into_sound_timer,    # Fs18 - LOAD SOUND, Vs
            0x1E: self.cpu_add_reg_into_index,           # Fs1E - ADD  I, Vs
            0x29: self.cpu_load_index_with_reg_sprite,   # Fs29 - LOAD I, Vs
            0x33: self.cpu_store_bcd_in_memory,          # Fs33 - BCD
            0x55: self.cpu_store_regs_in_memory,         # Fs55 - STOR [I], Vs
            0x65: self.cpu_read_regs_from_memory,        # Fs65 - LOAD Vs, [I]
        }
        self.cpu_operand = 0
        self.cpu_instruction = decode(0)
        self.cpu_draw_flag = False
        self.cpu_wrap = wrap
        self.cpu_stack = [0] * stack_size
        self.cpu_keys = [False] * NUM_KEYS
        self.cpu_display = display if display is not None else Display()
        self.cpu_rng = rng if rng is not None else random.Random()
        self.cpu_tone_callback = tone_callback
        self.cpu_memory = bytearray(MAX_MEMORY)
        self.cpu_memory[0:len(FONT_SET)] = bytes(FONT_SET)
        self.cpu_reset()

    def __str__(self):
        val = 'PC: {:4X}  OP: {:4X}\n'.format(
            self.cpu_registers['pc'], self.cpu_operand)
        for index in range(NUM_REGISTERS):
            val += 'V{:X}: {:2X}\n'.format(index, self.cpu_registers['v'][index])
        val += 'I: {:4X}\n'.format(self.cpu_registers['index'])
        val += 'SP: {:X}\n'.format(self.cpu_registers['sp'])
        val += 'DT: {:2X}  ST: {:2X}\n'.format(self.cpu_timers['delay'], self.cpu_timers['sound'])
        return val

    def cpu_step(self):
        """
        Run one full cycle: fetch the instruction at the program counter,
        execute it, then tick the timers. Decode failures, stack faults and
        memory faults are reported to the log and handed back to the caller
        rather than raised, so the driving loop decides whether to carry on.
        A faulting instruction changes nothing and the program counter stays
        on it.

        :return: a CycleResult describing the cycle. The operand is None
            when the instruction word itself could not be fetched.
        """
        self.cpu_draw_flag = False
        cpu_address = self.cpu_registers['pc']
        cpu_operand = None
        cpu_status = STATUS_NORMAL
        cpu_error = None

        try:
            cpu_operand = fetch(self.cpu_memory, cpu_address)
            self.cpu_execute_instruction(cpu_operand)
        except UnknownOpCodeException as error:
            logger.warning("%s at %04X", error, cpu_address)
            cpu_status = STATUS_DECODE_FAILURE
            cpu_error = error
        except (StackOverflowException, StackUnderflowException) as error:
            # Leave the program counter on the instruction that faulted
            self.cpu_registers['pc'] = cpu_address
            logger.error("%s", error)
            logger.debug("CPU state at fault:\n%s", self)
            cpu_status = STATUS_STACK_FAULT
            cpu_error = error
        except MemoryAccessException as error:
            self.cpu_registers['pc'] = cpu_address
            logger.error("%s at %04X", error, cpu_address)
            logger.debug("CPU state at fault:\n%s", self)
            cpu_status = STATUS_MEMORY_FAULT
            cpu_error = error

        cpu_tone = self.cpu_decrement_timers()
        return CycleResult(cpu_status, cpu_operand, self.cpu_draw_flag, cpu_tone, cpu_error)

    def cpu_execute_instruction(self, cpu_operand):
        """
        Execute a single instruction word. The program counter is advanced
        past the instruction before it runs, so jumps overwrite it and skips
        add another 2 to it.

        :param cpu_operand: the operand to execute
        :return: returns the operand executed
        """
        self.cpu_draw_flag = False
        self.cpu_operand = cpu_operand
        self.cpu_instruction = decode(cpu_operand)
        self.cpu_registers['pc'] += 2
        self.cpu_operation_lookup[self.cpu_instruction.operation]()
        return self.cpu_operand

    def cpu_clear_return(self):
        """
        Opcodes starting with a 0 are one of the following instructions:

            00E0 - Clear the display
            00EE - Return from subroutine

        Anything else (including the 0nnn machine code call) is unsupported.
        """
        self._cpu_dispatch(self.cpu_clear_return_lookup, self.cpu_instruction.nn)

    def cpu_execute_logical_instruction(self):
        """
        Execute the logical instruction based upon the current operand.
        """
        self._cpu_dispatch(self.cpu_logical_operation_lookup, self.cpu_instruction.n)

    def cpu_keyboard_routines(self):
        """
        Run the specified keyboard routine based upon the operand. These
        operations are:

            Es9E - SKPR Vs
            EsA1 - SKUP Vs
        """
        self._cpu_dispatch(self.cpu_keyboard_lookup, self.cpu_instruction.nn)

    def cpu_misc_routines(self):
        """
        Will execute one of the routines in cpu_misc_routine_lookup.
        """
        self._cpu_dispatch(self.cpu_misc_routine_lookup, self.cpu_instruction.nn)

    def _cpu_dispatch(self, cpu_lookup, cpu_key):
        try:
            cpu_routine = cpu_lookup[cpu_key]
        except KeyError:
            raise UnknownOpCodeException(self.cpu_operand)
        cpu_routine()

    def cpu_clear_screen(self):
        """
        00E0 - CLS

        Turn off every pixel on the display.
        """
        self.cpu_display.clear()
        self.cpu_draw_flag = True

    def cpu_return_from_subroutine(self):
        """
        00EE - RTS

        Pop the return address saved by the matching CALL into the program
        counter. Returning with an empty stack raises StackUnderflowException
        and leaves the stack untouched.
        """
        if self.cpu_registers['sp'] == 0:
            raise StackUnderflowException(self.cpu_registers['pc'] - 2)
        self.cpu_registers['sp'] -= 1
        self.cpu_registers['pc'] = self.cpu_stack[self.cpu_registers['sp']]

    def cpu_jump_to_address(self):
        """
        1nnn - JUMP nnn

        Jump to address. The address to jump to is calculated using the bits
        taken from the operand as follows:

           Bits:  15-12    11-8      7-4      3-0
                  unused  address  address  address
        """
        self.cpu_registers['pc'] = self.cpu_instruction.nnn

    def cpu_jump_to_subroutine(self):
        """
        2nnn - CALL nnn

        Jump to subroutine. Save the address of the instruction following
        the call on the stack, then jump. A full stack raises
        StackOverflowException without touching the stack.

           Bits:  15-12    11-8      7-4      3-0
                  unused  address  address  address
        """
        if self.cpu_registers['sp'] >= len(self.cpu_stack):
            raise StackOverflowException(self.cpu_registers['pc'] - 2)
        self.cpu_stack[self.cpu_registers['sp']] = self.cpu_registers['pc']
        self.cpu_registers['sp'] += 1
        self.cpu_registers['pc'] = self.cpu_instruction.nnn

    def cpu_skip_if_reg_equal_val(self):
        """
        3snn - SKE Vs, nn

        Skip if register contents equal to constant value. The calculation for
        the register and constant is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source  constant  constant

        The program counter is updated to skip the next instruction by
        advancing it by 2 bytes.
        """
        cpu_source = self.cpu_instruction.x
        if self.cpu_registers['v'][cpu_source] == self.cpu_instruction.nn:
            self.cpu_registers['pc'] += 2

    def cpu_skip_if_reg_not_equal_val(self):
        """
        4snn - SKNE Vs, nn

        Skip if register contents not equal to constant value.
        """
        cpu_source = self.cpu_instruction.x
        if self.cpu_registers['v'][cpu_source] != self.cpu_instruction.nn:
            self.cpu_registers['pc'] += 2

    def cpu_skip_if_reg_equal_reg(self):
        """
        5st0 - SKE Vs, Vt

        Skip if source register is equal to target register. The calculation
        for the registers to use is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source    target      0
        """
        cpu_source = self.cpu_instruction.x
        cpu_target = self.cpu_instruction.y
        if self.cpu_registers['v'][cpu_source] == self.cpu_registers['v'][cpu_target]:
            self.cpu_registers['pc'] += 2

    def cpu_move_value_to_reg(self):
        """
        6snn - LOAD Vs, nn

        Move the constant value into the specified register. The calculation
        for the registers is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    value     value
        """
        self.cpu_registers['v'][self.cpu_instruction.x] = self.cpu_instruction.nn

    def cpu_add_value_to_reg(self):
        """
        7snn - ADD Vs, nn

        Add the constant value to the specified register, wrapping at 256.
        The carry flag is left alone.
        """
        cpu_target = self.cpu_instruction.x
        temp = self.cpu_registers['v'][cpu_target] + self.cpu_instruction.nn
        self.cpu_registers['v'][cpu_target] = temp & 0xFF

    def cpu_move_reg_into_reg(self):
        """
        8st0 - LOAD Vs, Vt

        Move the value of the source register into the value of the target
        register. The calculation for the registers is performed on the
        operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      0
        """
        cpu_target = self.cpu_instruction.x
        cpu_source = self.cpu_instruction.y
        self.cpu_registers['v'][cpu_target] = self.cpu_registers['v'][cpu_source]

    def cpu_logical_or(self):
        """
        8ts1 - OR   Vs, Vt

        Perform a logical OR operation between the source and the target
        register, and store the result in the target register.
        """
        cpu_target = self.cpu_instruction.x
        cpu_source = self.cpu_instruction.y
        self.cpu_registers['v'][cpu_target] |= self.cpu_registers['v'][cpu_source]

    def cpu_logical_and(self):
        """
        8ts2 - AND  Vs, Vt
        """
        cpu_target = self.cpu_instruction.x
        cpu_source = self.cpu_instruction.y
        self.cpu_registers['v'][cpu_target] &= self.cpu_registers['v'][cpu_source]

    def cpu_exclusive_or(self):
        """
        8ts3 - XOR  Vs, Vt
        """
        cpu_target = self.cpu_instruction.x
        cpu_source = self.cpu_instruction.y
        self.cpu_registers['v'][cpu_target] ^= self.cpu_registers['v'][cpu_source]

    def cpu_add_reg_to_reg(self):
        """
        8ts4 - ADD  Vt, Vs

        Add the value in the source register to the value in the target
        register, and store the result in the target register. The register
        calculations are as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      4

        VF is set to 1 if the sum does not fit in 8 bits, 0 otherwise. The
        flag is written first, so when the target is VF the sum wins.
        """
        cpu_target = self.cpu_instruction.x
        cpu_source = self.cpu_instruction.y
        temp = self.cpu_registers['v'][cpu_target] + self.cpu_registers['v'][cpu_source]
        self.cpu_registers['v'][FLAG_REGISTER] = 1 if temp > 0xFF else 0
        self.cpu_registers['v'][cpu_target] = temp & 0xFF

    def cpu_subtract_reg_from_reg(self):
        """
        8ts5 - SUB  Vt, Vs

        Subtract the value in the source register from the value in the
        target register, and store the result in the target register. The
        register calculations are as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      5

        If a borrow is NOT generated, set a carry flag in register VF.
        """
        cpu_target_reg = self.cpu_registers['v'][self.cpu_instruction.x]
        cpu_source_reg = self.cpu_registers['v'][self.cpu_instruction.y]
        self.cpu_registers['v'][FLAG_REGISTER] = 1 if cpu_target_reg >= cpu_source_reg else 0
        self.cpu_registers['v'][self.cpu_instruction.x] = (cpu_target_reg - cpu_source_reg) & 0xFF

    def cpu_right_shift_reg(self):
        """
        8s06 - SHR  Vs

        Shift the bits in the specified register 1 bit to the right. Bit
        0 will be shifted into register vf. The register calculation is
        as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source      0         6
        """
        cpu_source = self.cpu_instruction.x
        cpu_value = self.cpu_registers['v'][cpu_source]
        self.cpu_registers['v'][FLAG_REGISTER] = cpu_value & 0x1
        self.cpu_registers['v'][cpu_source] = cpu_value >> 1

    def cpu_subtract_reg_from_reg1(self):
        """
        8ts7 - SUBN Vt, Vs

        Subtract the value in the target register from the value in the
        source register, and store the result in the target register.

        If a borrow is NOT generated, set a carry flag in register VF.
        """
        cpu_target_reg = self.cpu_registers['v'][self.cpu_instruction.x]
        cpu_source_reg = self.cpu_registers['v'][self.cpu_instruction.y]
        self.cpu_registers['v'][FLAG_REGISTER] = 1 if cpu_source_reg >= cpu_target_reg else 0
        self.cpu_registers['v'][self.cpu_instruction.x] = (cpu_source_reg - cpu_target_reg) & 0xFF

    def cpu_left_shift_reg(self):
        """
        8s0E - SHL  Vs

        Shift the bits in the specified register 1 bit to the left. Bit
        7 will be shifted into register vf. The register calculation is
        as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source      0         E
        """
        cpu_source = self.cpu_instruction.x
        cpu_value = self.cpu_registers['v'][cpu_source]
        self.cpu_registers['v'][FLAG_REGISTER] = (cpu_value & 0x80) >> 7
        self.cpu_registers['v'][cpu_source] = (cpu_value << 1) & 0xFF

    def cpu_skip_if_reg_not_equal_reg(self):
        """
        9st0 - SKNE Vs, Vt

        Skip if source register is not equal to target register. The
        calculation for the registers to use is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source    target    unused

        The program counter is updated to skip the next instruction by
        advancing it by 2 bytes.
        """
        cpu_source = self.cpu_instruction.x
        cpu_target = self.cpu_instruction.y
        if self.cpu_registers['v'][cpu_source] != self.cpu_registers['v'][cpu_target]:
            self.cpu_registers['pc'] += 2

    def cpu_load_index_reg_with_value(self):
        """
        Annn - LOAD I, nnn

        Load index register with constant value. The calculation for the
        constant value is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   constant  constant  constant
        """
        self.cpu_registers['index'] = self.cpu_instruction.nnn

    def cpu_jump_to_v0_plus_value(self):
        """
        Bnnn - JUMP V0 + nnn

        Load the program counter with the constant taken from the operand
        plus the value of register V0.
        """
        self.cpu_registers['pc'] = self.cpu_registers['v'][0] + self.cpu_instruction.nnn

    def cpu_generate_random_number(self):
        """
        Ctnn - RAND Vt, nn

        A random number between 0 and 255 is generated. The contents of it are
        then ANDed with the constant value passed in the operand. The result is
        stored in the target register. The register and constant values are
        calculated as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused    target    value    value
        """
        cpu_target = self.cpu_instruction.x
        self.cpu_registers['v'][cpu_target] = self.cpu_instruction.nn & self.cpu_rng.randint(0, 255)

    def cpu_draw_sprite(self):
        """
        Dxyn - DRAW x, y, num_bytes

        Draws the sprite pointed to in the index register at the specified
        x and y coordinates. Drawing is done via an XOR routine, meaning that
        if the target pixel is already turned on, and a pixel is set to be
        turned on at that same location via the draw, then the pixel is turned
        off. Each sprite is 8 bits (1 byte) wide. The num_bytes parameter sets
        how tall the sprite is. Consecutive bytes in the memory pointed to by
        the index register make up the rows of the sprite, the most
        significant bit being the leftmost pixel. For example, assume that
        the index register pointed to the following 7 bytes:

                       bit 7 6 5 4 3 2 1 0

           byte 0          0 1 1 1 1 1 0 0
           byte 1          0 1 0 0 0 0 0 0
           byte 2          0 1 0 0 0 0 0 0
           byte 3          0 1 1 1 1 1 0 0
           byte 4          0 1 0 0 0 0 0 0
           byte 5          0 1 0 0 0 0 0 0
           byte 6          0 1 1 1 1 1 0 0

        This would draw a character on the screen that looks like an 'E'. If
        a set bit lands on a pixel that is already on, VF is set to 1.

        Pixels that fall past the right or bottom edge of the display are
        clipped, unless the CPU was built with wrap=True, in which case they
        come back in on the opposite edge.

           Bits:  15-12     11-8      7-4       3-0
                  unused    x_source  y_source  num_bytes
        """
        cpu_x_pos = self.cpu_registers['v'][self.cpu_instruction.x]
        cpu_y_pos = self.cpu_registers['v'][self.cpu_instruction.y]
        cpu_num_bytes = self.cpu_instruction.n
        cpu_width = self.cpu_display.width
        cpu_height = self.cpu_display.height
        cpu_changed = False
        self.cpu_check_memory_range(self.cpu_registers['index'], cpu_num_bytes)
        self.cpu_registers['v'][FLAG_REGISTER] = 0

        for cpu_y_index in range(cpu_num_bytes):
            cpu_y_coord = cpu_y_pos + cpu_y_index
            if cpu_y_coord >= cpu_height:
                if not self.cpu_wrap:
                    continue
                cpu_y_coord %= cpu_height

            cpu_color_byte = self.cpu_read_memory(self.cpu_registers['index'] + cpu_y_index)

            for cpu_x_index in range(SPRITE_WIDTH):
                if not cpu_color_byte & (0x80 >> cpu_x_index):
                    continue

                cpu_x_coord = cpu_x_pos + cpu_x_index
                if cpu_x_coord >= cpu_width:
                    if not self.cpu_wrap:
                        continue
                    cpu_x_coord %= cpu_width

                if self.cpu_display.flip_pixel(cpu_x_coord, cpu_y_coord):
                    self.cpu_registers['v'][FLAG_REGISTER] = 1
                cpu_changed = True

        if cpu_changed:
            self.cpu_draw_flag = True

    def cpu_skip_if_key_pressed(self):
        """
        Es9E - SKPR Vs

        Skip the next instruction if the key numbered by the low nibble of
        the source register is down.
        """
        cpu_key_to_check = self.cpu_registers['v'][self.cpu_instruction.x] & 0xF
        if self.cpu_keys[cpu_key_to_check]:
            self.cpu_registers['pc'] += 2

    def cpu_skip_if_key_not_pressed(self):
        """
        EsA1 - SKUP Vs

        Skip the next instruction if the key numbered by the low nibble of
        the source register is up.
        """
        cpu_key_to_check = self.cpu_registers['v'][self.cpu_instruction.x] & 0xF
        if not self.cpu_keys[cpu_key_to_check]:
            self.cpu_registers['pc'] += 2

    def cpu_move_delay_timer_into_reg(self):
        """
        Ft07 - LOAD Vt, DELAY

        Move the value of the delay timer into the target register. The
        register calculation is as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused    target     0         7
        """
        self.cpu_registers['v'][self.cpu_instruction.x] = self.cpu_timers['delay']

    def cpu_wait_for_keypress(self):
        """
        Ft0A - KEYD Vt

        Wait until a key is down and move its number into the target
        register. Nothing blocks here: when no key is down the program
        counter is wound back so the same instruction runs again next
        cycle. When several keys are down the lowest numbered one wins.

           Bits:  15-12     11-8      7-4       3-0
                  unused    target     0         A
        """
        for cpu_keyval, cpu_pressed in enumerate(self.cpu_keys):
            if cpu_pressed:
                self.cpu_registers['v'][self.cpu_instruction.x] = cpu_keyval
                return
        self.cpu_registers['pc'] -= 2

    def cpu_move_reg_into_delay_timer(self):
        """
        Fs15 - LOAD DELAY, Vs

        Move the value stored in the specified source register into the delay
        timer.
        """
        self.cpu_timers['delay'] = self.cpu_registers['v'][self.cpu_instruction.x]

    def cpu_move_reg_into_sound_timer(self):
        """
        Fs18 - LOAD SOUND, Vs

        Move the value stored in the specified source register into the sound
        timer.
        """
        self.cpu_timers['sound'] = self.cpu_registers['v'][self.cpu_instruction.x]

    def cpu_add_reg_into_index(self):
        """
        Fs1E - ADD  I, Vs

        Add the value of the register into the index register value. VF is
        set to 1 when the result lies past the end of memory (0xFFF), 0
        otherwise. The register calculation is as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused    source     1         E
        """
        cpu_total = self.cpu_registers['index'] + self.cpu_registers['v'][self.cpu_instruction.x]
        self.cpu_registers['v'][FLAG_REGISTER] = 1 if cpu_total > 0x0FFF else 0
        self.cpu_registers['index'] = cpu_total & 0xFFFF

    def cpu_load_index_with_reg_sprite(self):
        """
        Fs29 - LOAD I, Vs

        Load the index with the sprite indicated in the source register. All
        sprites are 5 bytes long, so the location of the specified sprite
        is its index multiplied by 5. The register calculation is as
        follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused    source     2         9
        """
        cpu_source = self.cpu_instruction.x
        self.cpu_registers['index'] = self.cpu_registers['v'][cpu_source] * FONT_BYTES_PER_CHAR

    def cpu_store_bcd_in_memory(self):
        """
        Fs33 - BCD

        Take the value stored in source and place the digits in the following
        locations:

            hundreds   -> self.memory[index]
            tens       -> self.memory[index + 1]
            ones       -> self.memory[index + 2]

        For example, if the value is 123, then the following values will be
        placed at the specified locations:

             1 -> self.memory[index]
             2 -> self.memory[index + 1]
             3 -> self.memory[index + 2]
        """
        cpu_value = self.cpu_registers['v'][self.cpu_instruction.x]
        cpu_index = self.cpu_registers['index']
        self.cpu_check_memory_range(cpu_index, 3)
        self.cpu_write_memory(cpu_index, cpu_value // 100)
        self.cpu_write_memory(cpu_index + 1, (cpu_value // 10) % 10)
        self.cpu_write_memory(cpu_index + 2, cpu_value % 10)

    def cpu_store_regs_in_memory(self):
        """
        Fs55 - STOR [I], Vs

        Store registers V0 through Vs in the memory pointed to by the index
        register. The index register itself is not changed. The register
        calculation is as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused    source     5         5

        For example, to store all of the V registers, the operand would
        name register F.
        """
        cpu_source = self.cpu_instruction.x
        self.cpu_check_memory_range(self.cpu_registers['index'], cpu_source + 1)
        for cpu_counter in range(cpu_source + 1):
            self.cpu_write_memory(self.cpu_registers['index'] + cpu_counter,
                                  self.cpu_registers['v'][cpu_counter])

    def cpu_read_regs_from_memory(self):
        """
        Fs65 - LOAD Vs, [I]

        Read registers V0 through Vs from the memory pointed to by the index
        register. The index register itself is not changed.
        """
        cpu_source = self.cpu_instruction.x
        self.cpu_check_memory_range(self.cpu_registers['index'], cpu_source + 1)
        for cpu_counter in range(cpu_source + 1):
            self.cpu_registers['v'][cpu_counter] = \
                self.cpu_read_memory(self.cpu_registers['index'] + cpu_counter)

    def cpu_check_memory_range(self, cpu_address, cpu_count):
        """
        Make sure a block of memory lies wholly inside the address space, so
        an instruction can fail before it changes anything.

        :param cpu_address: the first address of the block
        :param cpu_count: the number of bytes in the block
        :raises MemoryAccessException: naming the first address that is out
            of range
        """
        if cpu_count <= 0:
            return
        if not 0 <= cpu_address < MAX_MEMORY:
            raise MemoryAccessException(cpu_address)
        if cpu_address + cpu_count > MAX_MEMORY:
            raise MemoryAccessException(MAX_MEMORY)

    def cpu_read_memory(self, cpu_address):
        """
        Read one byte of memory.

        :param cpu_address: the address to read
        :return: the byte stored there
        """
        if not 0 <= cpu_address < MAX_MEMORY:
            raise MemoryAccessException(cpu_address)
        return self.cpu_memory[cpu_address]

    def cpu_write_memory(self, cpu_address, cpu_value):
        """
        Write one byte of memory.

        :param cpu_address: the address to write
        :param cpu_value: the byte to store
        """
        if not 0 <= cpu_address < MAX_MEMORY:
            raise MemoryAccessException(cpu_address)
        self.cpu_memory[cpu_address] = cpu_value

    def cpu_reset(self):
        """
        Reset the CPU to its power-on state: blank out all registers, the
        stack, the display, the timers and the keys, reset the stack pointer
        and program counter to their starting values and clear the program
        area of memory. The font at the bottom of memory is kept.
        """
        self.cpu_registers['v'] = [0] * NUM_REGISTERS
        self.cpu_registers['pc'] = PROGRAM_COUNTER_START
        self.cpu_registers['sp'] = 0
        self.cpu_registers['index'] = 0
        self.cpu_timers['delay'] = 0
        self.cpu_timers['sound'] = 0
        for cpu_frame in range(len(self.cpu_stack)):
            self.cpu_stack[cpu_frame] = 0
        for cpu_key in range(NUM_KEYS):
            self.cpu_keys[cpu_key] = False
        self.cpu_memory[PROGRAM_COUNTER_START:] = bytes(MAX_PROGRAM_SIZE)
        self.cpu_display.clear()
        self.cpu_operand = 0
        self.cpu_instruction = decode(0)
        self.cpu_draw_flag = False

    def cpu_load_program(self, cpu_program):
        """
        Copy a program image into memory starting at PROGRAM_COUNTER_START.
        Memory past the end of the image is left as it was, so call
        cpu_reset first for a clean load.

        :param cpu_program: the bytes of the program image
        :raises ImageTooLargeException: if the image does not fit, in which
            case memory is not touched
        """
        if len(cpu_program) > MAX_PROGRAM_SIZE:
            raise ImageTooLargeException(len(cpu_program), MAX_PROGRAM_SIZE)
        cpu_end = PROGRAM_COUNTER_START + len(cpu_program)
        self.cpu_memory[PROGRAM_COUNTER_START:cpu_end] = bytes(cpu_program)
        logger.info("Loaded %d byte program at %04X", len(cpu_program), PROGRAM_COUNTER_START)

    def cpu_load_rom(self, filename):
        """
        Load the ROM indicated by the filename into memory.

        :param filename: the name of the file to load
        """
        with open(filename, 'rb') as cpu_rom_file:
            cpu_romdata = cpu_rom_file.read()
        self.cpu_load_program(cpu_romdata)

    def cpu_set_keys(self, cpu_key_states):
        """
        Replace the state of all 16 keys at once. The CPU treats the states
        as a snapshot for the next cycle.

        :param cpu_key_states: 16 booleans, True meaning the key is down
        """
        if len(cpu_key_states) != NUM_KEYS:
            raise ValueError("Expected {} key states, got {}".format(NUM_KEYS, len(cpu_key_states)))
        for cpu_key, cpu_pressed in enumerate(cpu_key_states):
            self.cpu_keys[cpu_key] = bool(cpu_pressed)

    def cpu_press_key(self, cpu_key):
        """
        Mark a single key as down.

        :param cpu_key: the key number, 0x0 - 0xF
        """
        self.cpu_keys[cpu_key] = True

    def cpu_release_key(self, cpu_key):
        """
        Mark a single key as up.

        :param cpu_key: the key number, 0x0 - 0xF
        """
        self.cpu_keys[cpu_key] = False

    def cpu_decrement_timers(self):
        """
        Decrement both the sound and delay timer, stopping at 0.

        :return: True when the sound timer just ran out (it held 1 before
            this tick), which is the moment the tone is signalled
        """
        if self.cpu_timers['delay'] != 0:
            self.cpu_timers['delay'] -= 1

        cpu_tone = False
        if self.cpu_timers['sound'] != 0:
            cpu_tone = self.cpu_timers['sound'] == 1
            self.cpu_timers['sound'] -= 1

        if cpu_tone:
            logger.debug("Sound timer expired")
            if self.cpu_tone_callback is not None:
                self.cpu_tone_callback()
        return cpu_tone
