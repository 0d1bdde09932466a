"""
The monochrome framebuffer owned by the CPU. The renderer only ever reads
from it.
"""

# The size of the original Chip 8 screen in pixels
SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32

PIXEL_ON_CHAR = '#'
PIXEL_OFF_CHAR = '.'


class Display(object):
    """
    A fixed-size grid of single-bit pixels. Pixels are stored row by row in
    a single bytearray, so (x, y) lives at y * width + x. The grid is never
    resized after construction.
    """
    def __init__(self, width=SCREEN_WIDTH, height=SCREEN_HEIGHT):
        """
        :param width: the number of columns
        :param height: the number of rows
        """
        self.width = width
        self.height = height
        self.pixels = bytearray(width * height)

    def __str__(self):
        return '\n'.join(
            ''.join(PIXEL_ON_CHAR if pixel else PIXEL_OFF_CHAR for pixel in row)
            for row in self.rows())

    def clear(self):
        """
        Turns off all the pixels.
        """
        for position in range(len(self.pixels)):
            self.pixels[position] = 0

    def get_pixel(self, x_pos, y_pos):
        """
        Returns whether the pixel is on (1) or off (0).

        :param x_pos: the column, 0 being the leftmost
        :param y_pos: the row, 0 being the top
        :return: the pixel value
        """
        return self.pixels[self._offset(x_pos, y_pos)]

    def flip_pixel(self, x_pos, y_pos):
        """
        XOR the pixel with 1.

        :param x_pos: the column, 0 being the leftmost
        :param y_pos: the row, 0 being the top
        :return: the value the pixel held before it was flipped
        """
        offset = self._offset(x_pos, y_pos)
        previous = self.pixels[offset]
        self.pixels[offset] = previous ^ 1
        return previous

    def rows(self):
        """
        Yield every row of the display, top to bottom, as a tuple of pixel
        values.
        """
        for y_pos in range(self.height):
            start = y_pos * self.width
            yield tuple(self.pixels[start:start + self.width])

    def lit_count(self):
        """
        :return: the number of pixels that are on
        """
        return sum(self.pixels)

    def _offset(self, x_pos, y_pos):
        if not (0 <= x_pos < self.width and 0 <= y_pos < self.height):
            raise IndexError("Pixel ({}, {}) is off the display".format(x_pos, y_pos))
        return y_pos * self.width + x_pos
