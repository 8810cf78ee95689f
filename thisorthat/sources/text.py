"""
Text cards for topics that have no natural picture.

The label is uppercased, wrapped, sized to fill the card and justified
edge to edge on a random two-tone palette. Rendering happens at 2x and is
downsampled for smoother glyph edges.
"""

from __future__ import annotations

import base64
import colorsys
import io
import logging
import random
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from thisorthat.sources.base import NOT_FOUND, SourceResult

logger = logging.getLogger(__name__)

CARD_SIZE = 768
SCALE = 2
MAX_WIDTH_RATIO = 0.9
WRAP_FONT_SIZE = 160
MIN_FONT_SIZE = 48
MAX_FONT_SIZE = 200
VERTICAL_PADDING_RATIO = 0.25

# complementary, analogous, triadic, split-complementary
HUE_OFFSETS = (180, 30, 120, 150)

_FONT_BOLD_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
    "DejaVuSans-Bold.ttf",
]


def _load_font(size: int):
    for path in _FONT_BOLD_CANDIDATES:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size)


def _hsl_hex(hue: float, saturation: float, lightness: float) -> str:
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, lightness / 100.0, saturation / 100.0)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def generate_color_pair(dark_mode: bool = False, rng: Optional[random.Random] = None) -> Tuple[str, str]:
    """(background, text) hex colors from a random base hue and scheme."""
    rng = rng or random
    base_hue = rng.randrange(360)
    text_hue = (base_hue + rng.choice(HUE_OFFSETS)) % 360

    if dark_mode:
        bg = _hsl_hex(base_hue, rng.uniform(60, 90), rng.uniform(10, 20))
        fg = _hsl_hex(text_hue, rng.uniform(70, 90), rng.uniform(75, 90))
    else:
        bg = _hsl_hex(base_hue, rng.uniform(50, 80), rng.uniform(85, 95))
        fg = _hsl_hex(text_hue, rng.uniform(70, 90), rng.uniform(25, 40))
    return bg, fg


class _Measure:
    """Measures in card units while the font itself is SCALE times larger."""

    def __init__(self, draw: ImageDraw.ImageDraw, font_size: int):
        self.draw = draw
        self.font_size = font_size
        self.font = _load_font(font_size * SCALE)

    def width(self, text: str) -> float:
        return self.draw.textlength(text, font=self.font) / SCALE


def wrap_words(words: List[str], measure: _Measure, max_width: float) -> List[str]:
    if not words:
        return [""]
    lines: List[str] = []
    current = words[0]
    for word in words[1:]:
        if measure.width(f"{current} {word}") < max_width:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def layout_font_size(lines: List[str], draw: ImageDraw.ImageDraw, max_width: float) -> Tuple[_Measure, float]:
    available = CARD_SIZE - CARD_SIZE * VERTICAL_PADDING_RATIO
    line_height = available / max(len(lines) - 1, 1)
    size = min(MAX_FONT_SIZE, int(line_height * 0.8))
    while True:
        measure = _Measure(draw, size)
        fits = all(measure.width(line) <= max_width for line in lines)
        if fits or size <= MIN_FONT_SIZE:
            return measure, line_height
        size -= 2


def _justified_runs(line: str, measure: _Measure, max_width: float, margin: float):
    """Yield (x, text, anchor) placements for one line in card units."""
    words = line.split(" ")
    if len(words) == 1:
        word = words[0]
        if len(word) <= 1:
            yield CARD_SIZE / 2, word, "mm"
            return
        pieces = list(word)
    else:
        pieces = words

    widths = [measure.width(p) for p in pieces]
    gap = (max_width - sum(widths)) / (len(pieces) - 1)
    x = margin
    for piece, w in zip(pieces, widths):
        yield x, piece, "lm"
        x += w + gap


def render_text_card(text: str, rng: Optional[random.Random] = None) -> Image.Image:
    rng = rng or random
    dark_mode = rng.random() < 0.5
    background, foreground = generate_color_pair(dark_mode, rng)

    big = CARD_SIZE * SCALE
    canvas = Image.new("RGB", (big, big), background)
    draw = ImageDraw.Draw(canvas)

    text = " ".join(text.upper().split())
    max_width = CARD_SIZE * MAX_WIDTH_RATIO
    margin = (CARD_SIZE - max_width) / 2

    lines = wrap_words(text.split(" "), _Measure(draw, WRAP_FONT_SIZE), max_width)
    measure, line_height = layout_font_size(lines, draw, max_width)
    start_y = (CARD_SIZE - line_height * (len(lines) - 1)) / 2

    placements = []
    for index, line in enumerate(lines):
        y = start_y + index * line_height
        for x, piece, anchor in _justified_runs(line, measure, max_width, margin):
            placements.append(((x * SCALE, y * SCALE), piece, anchor))

    shadow = Image.new("L", (big, big), 0)
    shadow_draw = ImageDraw.Draw(shadow)
    offset = 2 * SCALE
    for (x, y), piece, anchor in placements:
        shadow_draw.text((x + offset, y + offset), piece, fill=26, font=measure.font, anchor=anchor)
    shadow = shadow.filter(ImageFilter.GaussianBlur(5 * SCALE))
    canvas.paste((0, 0, 0), (0, 0, big, big), shadow)

    for xy, piece, anchor in placements:
        draw.text(xy, piece, fill=foreground, font=measure.font, anchor=anchor)

    return canvas.resize((CARD_SIZE, CARD_SIZE), Image.LANCZOS)


def generate_text_image(text: str, rng: Optional[random.Random] = None) -> str:
    card = render_text_card(text, rng)
    out = io.BytesIO()
    card.save(out, format="PNG")
    return "data:image/png;base64," + base64.b64encode(out.getvalue()).decode("ascii")


def resolve(ctx, label: str, hint: str | None = None) -> SourceResult:
    try:
        return SourceResult(image=generate_text_image(label))
    except (OSError, ValueError) as exc:
        logger.error("[text] rendering failed for %r: %s", label, exc)
        return NOT_FOUND
