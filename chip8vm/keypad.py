"""
Maps the physical keyboard onto the 16 logical Chip 8 keys.
"""
import pygame

# The keyboard layout for the Chip 8 assumes:
#
#   1 2 3 C
#   4 5 6 D
#   7 8 9 E
#   A 0 B F
#
# which lands on the left hand side of a QWERTY keyboard as:
#
#   1 2 3 4
#   Q W E R
#   A S D F
#   Z X C V
KEY_MAPPINGS = {
    0x0: pygame.K_x,
    0x1: pygame.K_1,
    0x2: pygame.K_2,
    0x3: pygame.K_3,
    0x4: pygame.K_q,
    0x5: pygame.K_w,
    0x6: pygame.K_e,
    0x7: pygame.K_a,
    0x8: pygame.K_s,
    0x9: pygame.K_d,
    0xA: pygame.K_z,
    0xB: pygame.K_c,
    0xC: pygame.K_4,
    0xD: pygame.K_r,
    0xE: pygame.K_f,
    0xF: pygame.K_v,
}


def read_keypad(keys_pressed):
    """
    Build the 16 key snapshot the CPU expects.

    :param keys_pressed: the sequence returned by pygame.key.get_pressed()
    :return: a list of 16 booleans, indexed by Chip 8 key number
    """
    return [bool(keys_pressed[KEY_MAPPINGS[keyval]]) for keyval in range(len(KEY_MAPPINGS))]
