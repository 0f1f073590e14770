"""
5x7 bitmap font used to bake text and callout numbers into the image.

Each glyph is seven rows of five cells; "#" marks a set cell. Glyphs are
stamped as solid scale x scale blocks with one empty column between
characters. Lowercase letters use the uppercase glyphs; any other character
without a glyph still advances the pen but draws nothing.
"""

from typing import Dict, Tuple

import numpy as np

from shotmark.editor.geometry import Pos, round_half_away

GLYPH_WIDTH = 5
GLYPH_HEIGHT = 7
GLYPH_SPACING = 1

_FONT_ROWS: Dict[str, Tuple[str, ...]] = {
    "0": (" ### ", "#   #", "#  ##", "# # #", "##  #", "#   #", " ### "),
    "1": ("  #  ", " ##  ", "  #  ", "  #  ", "  #  ", "  #  ", " ### "),
    "2": (" ### ", "#   #", "    #", "   # ", "  #  ", " #   ", "#####"),
    "3": ("#####", "   # ", "  #  ", "   # ", "    #", "#   #", " ### "),
    "4": ("   # ", "  ## ", " # # ", "#  # ", "#####", "   # ", "   # "),
    "5": ("#####", "#    ", "#### ", "    #", "    #", "#   #", " ### "),
    "6": ("  ## ", " #   ", "#    ", "#### ", "#   #", "#   #", " ### "),
    "7": ("#####", "    #", "   # ", "  #  ", " #   ", " #   ", " #   "),
    "8": (" ### ", "#   #", "#   #", " ### ", "#   #", "#   #", " ### "),
    "9": (" ### ", "#   #", "#   #", " ####", "    #", "   # ", " ##  "),
    "A": (" ### ", "#   #", "#   #", "#####", "#   #", "#   #", "#   #"),
    "B": ("#### ", "#   #", "#   #", "#### ", "#   #", "#   #", "#### "),
    "C": (" ### ", "#   #", "#    ", "#    ", "#    ", "#   #", " ### "),
    "D": ("###  ", "#  # ", "#   #", "#   #", "#   #", "#  # ", "###  "),
    "E": ("#####", "#    ", "#    ", "#### ", "#    ", "#    ", "#####"),
    "F": ("#####", "#    ", "#    ", "#### ", "#    ", "#    ", "#    "),
    "G": (" ### ", "#   #", "#    ", "# ###", "#   #", "#   #", " ####"),
    "H": ("#   #", "#   #", "#   #", "#####", "#   #", "#   #", "#   #"),
    "I": (" ### ", "  #  ", "  #  ", "  #  ", "  #  ", "  #  ", " ### "),
    "J": ("  ###", "   # ", "   # ", "   # ", "   # ", "#  # ", " ##  "),
    "K": ("#   #", "#  # ", "# #  ", "##   ", "# #  ", "#  # ", "#   #"),
    "L": ("#    ", "#    ", "#    ", "#    ", "#    ", "#    ", "#####"),
    "M": ("#   #", "## ##", "# # #", "# # #", "#   #", "#   #", "#   #"),
    "N": ("#   #", "#   #", "##  #", "# # #", "#  ##", "#   #", "#   #"),
    "O": (" ### ", "#   #", "#   #", "#   #", "#   #", "#   #", " ### "),
    "P": ("#### ", "#   #", "#   #", "#### ", "#    ", "#    ", "#    "),
    "Q": (" ### ", "#   #", "#   #", "#   #", "# # #", "#  # ", " ## #"),
    "R": ("#### ", "#   #", "#   #", "#### ", "# #  ", "#  # ", "#   #"),
    "S": (" ####", "#    ", "#    ", " ### ", "    #", "    #", "#### "),
    "T": ("#####", "  #  ", "  #  ", "  #  ", "  #  ", "  #  ", "  #  "),
    "U": ("#   #", "#   #", "#   #", "#   #", "#   #", "#   #", " ### "),
    "V": ("#   #", "#   #", "#   #", "#   #", "#   #", " # # ", "  #  "),
    "W": ("#   #", "#   #", "#   #", "# # #", "# # #", "# # #", " # # "),
    "X": ("#   #", "#   #", " # # ", "  #  ", " # # ", "#   #", "#   #"),
    "Y": ("#   #", "#   #", " # # ", "  #  ", "  #  ", "  #  ", "  #  "),
    "Z": ("#####", "    #", "   # ", "  #  ", " #   ", "#    ", "#####"),
    " ": ("     ",) * 7,
    ".": ("     ", "     ", "     ", "     ", "     ", " ##  ", " ##  "),
    ",": ("     ", "     ", "     ", "     ", " ##  ", "  #  ", " #   "),
    ":": ("     ", " ##  ", " ##  ", "     ", " ##  ", " ##  ", "     "),
    ";": ("     ", " ##  ", " ##  ", "     ", " ##  ", "  #  ", " #   "),
    "!": ("  #  ", "  #  ", "  #  ", "  #  ", "  #  ", "     ", "  #  "),
    "?": (" ### ", "#   #", "    #", "   # ", "  #  ", "     ", "  #  "),
    "-": ("     ", "     ", "     ", "#####", "     ", "     ", "     "),
    "+": ("     ", "  #  ", "  #  ", "#####", "  #  ", "  #  ", "     "),
    "=": ("     ", "     ", "#####", "     ", "#####", "     ", "     "),
    "/": ("     ", "    #", "   # ", "  #  ", " #   ", "#    ", "     "),
    "(": ("   # ", "  #  ", " #   ", " #   ", " #   ", "  #  ", "   # "),
    ")": (" #   ", "  #  ", "   # ", "   # ", "   # ", "  #  ", " #   "),
    "'": ("  #  ", "  #  ", " #   ", "     ", "     ", "     ", "     "),
    '"': (" # # ", " # # ", "     ", "     ", "     ", "     ", "     "),
    "#": (" # # ", " # # ", "#####", " # # ", "#####", " # # ", " # # "),
    "%": ("##   ", "##  #", "   # ", "  #  ", " #   ", "#  ##", "   ##"),
    "*": ("     ", "  #  ", "# # #", " ### ", "# # #", "  #  ", "     "),
    "_": ("     ", "     ", "     ", "     ", "     ", "     ", "#####"),
    "<": ("   # ", "  #  ", " #   ", "#    ", " #   ", "  #  ", "   # "),
    ">": (" #   ", "  #  ", "   # ", "    #", "   # ", "  #  ", " #   "),
}

# Glyph masks as boolean arrays of shape (7, 5)
GLYPHS: Dict[str, np.ndarray] = {
    ch: np.array([[cell == "#" for cell in row] for row in rows], dtype=bool)
    for ch, rows in _FONT_ROWS.items()
}


def glyph_for(ch: str):
    """Glyph mask for ch, or None when the font has no glyph for it."""
    glyph = GLYPHS.get(ch)
    if glyph is None and ch.islower():
        glyph = GLYPHS.get(ch.upper())
    return glyph


def text_bitmap_size(text: str, scale: int) -> Tuple[int, int]:
    """Pixel (width, height) of text drawn at scale; (0, 0) for empty text."""
    if not text:
        return 0, 0
    scale = max(int(scale), 1)
    advance = (GLYPH_WIDTH + GLYPH_SPACING) * scale
    return len(text) * advance - GLYPH_SPACING * scale, GLYPH_HEIGHT * scale


def circlecount_text_scale(bubble_radius: float, text: str) -> int:
    """Largest scale at which text fits across 1.6 x the bubble radius (at least 1)."""
    width, height = text_bitmap_size(text, 1)
    if width == 0:
        return 1
    limit = bubble_radius * 1.6
    return max(1, int(min(limit / width, limit / height)))


def draw_text_bitmap(img: np.ndarray, pos: Pos, text: str, color, scale: int) -> None:
    """
    Stamp text into img with its top-left corner at pos.

    Args:
        img: RGBA8 buffer of shape (height, width, 4).
        pos: Top-left corner in image pixels (rounded half away from zero).
        text: Characters to draw, left to right on one line.
        color: RGBA tuple written into every set cell.
        scale: Edge length of one glyph cell in pixels.
    """
    height, width = img.shape[:2]
    scale = max(int(scale), 1)
    value = np.asarray(color, dtype=np.uint8)
    pen_x = round_half_away(pos.x)
    top = round_half_away(pos.y)
    advance = (GLYPH_WIDTH + GLYPH_SPACING) * scale

    for ch in text:
        glyph = glyph_for(ch)
        if glyph is not None:
            cells = np.kron(glyph, np.ones((scale, scale), dtype=bool))
            x0 = max(pen_x, 0)
            y0 = max(top, 0)
            x1 = min(pen_x + cells.shape[1], width)
            y1 = min(top + cells.shape[0], height)
            if x0 < x1 and y0 < y1:
                mask = cells[y0 - top:y1 - top, x0 - pen_x:x1 - pen_x]
                img[y0:y1, x0:x1][mask] = value
        pen_x += advance
