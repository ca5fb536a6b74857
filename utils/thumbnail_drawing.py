"""
Debate thumbnail generation using Pillow.

Renders a fixed 1280x720 "on air" card summarising a debate: topic title,
both sides, the latest crowd commentary and, once decided, the winner.
"""

import io
import time
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw, ImageFont

from domain.models.debate import Persona, PersonaTheme
from domain.models.topic import Topic
from services.commentary_pools import FALLBACK_CROWD_LINES

CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720
MARGIN = 40

BG_GRADIENT_START = "#0f172a"
BG_GRADIENT_END = "#111827"
TEXT_BLACK = "#000000"
TEXT_WHITE = "#ffffff"
TEXT_LIGHT = "#e5e7eb"
TEXT_FOOTER = "#a3a3a3"
SIDE_A_PANEL = (34, 197, 94, 204)  # green, 80%
SIDE_B_PANEL = (59, 130, 246, 217)  # blue, 85%
BANNER_GREEN = "#22c55e"

TAGLINE = "YOU’RE THE PUNDIT"
TITLE_FONT_SIZE = 56
TITLE_LINE_HEIGHT = 62
COMMENTARY_LINES = 3
WINNER_PREFIX = "Winner: "

_CACHED_FONTS: dict[tuple[int, bool], ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}


def _get_font(size: int = 16, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Get a cached font, falling back to Pillow's default if DejaVu is unavailable."""
    cache_key = (size, bold)
    if cache_key not in _CACHED_FONTS:
        font_name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
        try:
            font = ImageFont.truetype(f"/usr/share/fonts/truetype/dejavu/{font_name}", size)
        except OSError:
            try:
                # Windows
                font = ImageFont.truetype("arialbd.ttf" if bold else "arial.ttf", size)
            except OSError:
                font = ImageFont.load_default(size)
        _CACHED_FONTS[cache_key] = font
    return _CACHED_FONTS[cache_key]


def text_width(font: ImageFont.FreeTypeFont | ImageFont.ImageFont, text: str) -> int:
    """Rendered pixel width of ``text`` in ``font``."""
    bbox = font.getbbox(text)
    return int(bbox[2] - bbox[0])


def wrap_text(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont, max_width: int) -> list[str]:
    """
    Greedy word wrap measured with the drawing font.

    Words are added to the current line while the candidate line fits in
    ``max_width``; on overflow the line is committed and the overflowing
    word starts the next one. A word wider than ``max_width`` gets a line
    of its own.
    """
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if not current or text_width(font, candidate) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def winner_name_from_verdict(verdict_text: str) -> str:
    """``"Winner: X. Best moment: ..."`` -> ``"X"``."""
    return verdict_text.replace(WINNER_PREFIX, "", 1).split(".")[0]


def pad_commentary(crowd_lines: list[str], count: int = COMMENTARY_LINES) -> list[str]:
    """Most recent crowd lines, topped up with stock lines to exactly ``count``."""
    lines = list(crowd_lines[:count])
    lines.extend(FALLBACK_CROWD_LINES[: count - len(lines)])
    return lines


@dataclass(frozen=True)
class ThumbnailLayout:
    """Resolved text content of a thumbnail, before any pixels are drawn."""

    title_lines: list[str]
    side_labels: tuple[str, str]
    commentary_lines: list[str]
    winner_name: str | None
    footer: str
    theme: PersonaTheme


def build_thumbnail_layout(
    topic: Topic | None,
    persona: Persona,
    crowd_lines: list[str],
    verdict_text: str = "",
) -> ThumbnailLayout | None:
    """Work out what goes on the card. Returns None without a topic."""
    if topic is None:
        return None
    title_font = _get_font(TITLE_FONT_SIZE, bold=True)
    return ThumbnailLayout(
        title_lines=wrap_text(topic.title.upper(), title_font, CANVAS_WIDTH - 2 * MARGIN),
        side_labels=topic.sides,
        commentary_lines=pad_commentary(crowd_lines),
        winner_name=winner_name_from_verdict(verdict_text) if verdict_text else None,
        footer=f"Arena · {persona.display_name}",
        theme=persona.theme,
    )


def _draw_gradient_background(draw: ImageDraw.ImageDraw, width: int, height: int, start: str, end: str) -> None:
    """Draw a vertical gradient background."""
    start_rgb = ImageColor.getrgb(start)
    end_rgb = ImageColor.getrgb(end)
    for y in range(height):
        ratio = y / height
        color = tuple(int(s + (e - s) * ratio) for s, e in zip(start_rgb, end_rgb))
        draw.line([(0, y), (width, y)], fill=color)


def _composite_rotated(base: Image.Image, layer: Image.Image, degrees: float, pivot: tuple[float, float]) -> Image.Image:
    """
    Rotate ``layer`` about ``pivot`` and composite it over ``base``.

    Degrees follow the screen convention of a y-down canvas: negative
    values tilt the layer counter-clockwise.
    """
    rotated = layer.rotate(-degrees, resample=Image.Resampling.BICUBIC, center=pivot)
    return Image.alpha_composite(base, rotated)


def _new_layer() -> Image.Image:
    return Image.new("RGBA", (CANVAS_WIDTH, CANVAS_HEIGHT), (0, 0, 0, 0))


def render_thumbnail(layout: ThumbnailLayout) -> Image.Image:
    """Paint a resolved layout. Each step paints over the previous one."""
    width, height = CANVAS_WIDTH, CANVAS_HEIGHT
    img = Image.new("RGBA", (width, height), BG_GRADIENT_START)
    draw = ImageDraw.Draw(img)

    # 1. Background
    _draw_gradient_background(draw, width, height, BG_GRADIENT_START, BG_GRADIENT_END)

    # 2. ON AIR badge
    draw.rectangle([(MARGIN, MARGIN), (MARGIN + 130, MARGIN + 42)], fill=layout.theme.a)
    draw.text((78, 67), "ON AIR", fill=TEXT_BLACK, font=_get_font(20, bold=True), anchor="ls")

    # 3. Tagline badge, pivoted on its own top-left corner
    badge_origin = (width - 280, 60)
    badge = _new_layer()
    badge_draw = ImageDraw.Draw(badge)
    bx, by = badge_origin
    badge_draw.rectangle([(bx, by), (bx + 260, by + 50)], fill=layout.theme.accent)
    badge_draw.text((bx + 20, by + 32), TAGLINE, fill=TEXT_BLACK, font=_get_font(22, bold=True), anchor="ls")
    img = _composite_rotated(img, badge, -6, badge_origin)
    draw = ImageDraw.Draw(img)

    # 4. Title
    title_font = _get_font(TITLE_FONT_SIZE, bold=True)
    for i, line in enumerate(layout.title_lines):
        draw.text((MARGIN, 150 + i * TITLE_LINE_HEIGHT), line, fill=TEXT_WHITE, font=title_font, anchor="ls")

    # 5. Side panels
    panels = _new_layer()
    panels_draw = ImageDraw.Draw(panels)
    panels_draw.rectangle([(MARGIN, height - 220), (MARGIN + 520, height - 100)], fill=SIDE_A_PANEL)
    panels_draw.rectangle([(width - 560, height - 220), (width - 40, height - 100)], fill=SIDE_B_PANEL)
    img = Image.alpha_composite(img, panels)
    draw = ImageDraw.Draw(img)
    side_font = _get_font(34, bold=True)
    draw.text((60, height - 145), layout.side_labels[0], fill=TEXT_BLACK, font=side_font, anchor="ls")
    draw.text((width - 540, height - 145), layout.side_labels[1], fill=TEXT_BLACK, font=side_font, anchor="ls")

    # 6. Commentary bullets, most recent lowest
    chip_font = _get_font(20)
    for i, line in enumerate(layout.commentary_lines):
        draw.text((MARGIN, height - 260 - i * 26), f"• {line}", fill=TEXT_LIGHT, font=chip_font, anchor="ls")

    # 7. Winner banner
    if layout.winner_name is not None:
        cx, cy = width / 2, height - 40
        banner = _new_layer()
        banner_draw = ImageDraw.Draw(banner)
        banner_draw.rectangle([(cx - 360, cy - 48), (cx + 360, cy + 16)], fill=BANNER_GREEN)
        banner_draw.text(
            (cx, cy - 8),
            f"WINNER: {layout.winner_name}",
            fill=TEXT_BLACK,
            font=_get_font(30, bold=True),
            anchor="ms",
        )
        img = _composite_rotated(img, banner, -2, (cx, cy))
        draw = ImageDraw.Draw(img)

    # 8. Footer
    draw.text((MARGIN, height - 24), layout.footer, fill=TEXT_FOOTER, font=_get_font(16), anchor="ls")

    return img


def draw_thumbnail(
    topic: Topic | None,
    persona: Persona,
    crowd_lines: list[str],
    verdict_text: str = "",
) -> io.BytesIO | None:
    """
    Generate the debate thumbnail.

    Args:
        topic: Debated topic; without one nothing is drawn
        persona: Active persona (colours and footer)
        crowd_lines: Crowd log, most recent first
        verdict_text: Verdict text, empty until the debate is decided

    Returns:
        BytesIO containing the PNG image, or None when there is no topic
    """
    layout = build_thumbnail_layout(topic, persona, crowd_lines, verdict_text)
    if layout is None:
        return None
    img = render_thumbnail(layout).convert("RGB")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)
    return buffer


def thumbnail_filename(now_ms: int | None = None) -> str:
    """``arena-thumb-<epoch-millis>.png``"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"arena-thumb-{now_ms}.png"


def save_thumbnail(buffer: io.BytesIO, directory: str | Path, now_ms: int | None = None) -> Path:
    """Write a rendered thumbnail to ``directory`` under a timestamped name."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / thumbnail_filename(now_ms)
    path.write_bytes(buffer.getvalue())
    buffer.seek(0)
    return path
