import argparse
import logging
import sys

import pygame

from chip8vm.cpu import CPU, STATUS_MEMORY_FAULT, STATUS_STACK_FAULT
from chip8vm.display import Display
from chip8vm.exception import Chip8Exception
from chip8vm.keypad import read_keypad
from chip8vm.screen import Screen

logger = logging.getLogger(__name__)

# Cycles per second. The timers count down once per cycle, so this is also
# the timer frequency.
DEFAULT_RATE = 60
DEFAULT_SCALE = 10
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def beep():
    logger.info("BEEP!")


def screen_cpu_connector(args):
    """
    Runs the main emulator loop with the specified arguments.

    :param args: the parsed command-line arguments
    :return: the process exit status
    """
    framebuffer = Display()
    project_cpu = CPU(framebuffer, wrap=args.wrap, tone_callback=beep)
    try:
        project_cpu.cpu_load_rom(args.rom)
    except (IOError, Chip8Exception) as error:
        logger.error("Could not load %s: %s", args.rom, error)
        return 1

    pygame.init()
    project_screen = Screen(ratio=args.scale, screen_height=framebuffer.height,
                            screen_width=framebuffer.width)
    project_screen.init_display()
    clock = pygame.time.Clock()
    status = 0
    running = True

    try:
        while running:
            # Check for events
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False

            project_cpu.cpu_set_keys(read_keypad(pygame.key.get_pressed()))
            result = project_cpu.cpu_step()

            if result.draw:
                project_screen.render(framebuffer)

            if result.status in (STATUS_STACK_FAULT, STATUS_MEMORY_FAULT):
                logger.error("Halting: %s", result.error)
                status = 2
                running = False

            clock.tick(args.rate)
    finally:
        pygame.quit()
    return status


def build_parser():
    parser = argparse.ArgumentParser(
        description="Starts a simple Chip 8 emulator")
    parser.add_argument(
        "rom", help="the ROM file to load on startup")
    parser.add_argument(
        "-s", help="the scale factor to apply to the display "
                   "(default is {})".format(DEFAULT_SCALE),
        type=int, default=DEFAULT_SCALE, dest="scale")
    parser.add_argument(
        "-r", help="the number of cycles to run per second "
                   "(default is {})".format(DEFAULT_RATE),
        type=int, default=DEFAULT_RATE, dest="rate")
    parser.add_argument(
        "-w", help="wrap sprites drawn off the edge of the screen around "
                   "to the other side", action="store_true", dest="wrap")
    parser.add_argument(
        "-v", "--verbose", help="log debug diagnostics, including register "
                                "dumps on faults", action="store_true", dest="verbose")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format=LOG_FORMAT)
    return screen_cpu_connector(args)


if __name__ == "__main__":
    sys.exit(main())
