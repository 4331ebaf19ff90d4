"""Frame renderer using Pillow — produces PNG snapshots of a focus map."""

from __future__ import annotations

import textwrap
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from .frame import Frame, LinkVisual, NodeVisual
from .layout import BackgroundLine, BackgroundText
from .viewport import PopupContent


# --- Font handling ---

def _load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font, falling back to default if none available."""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, max(1, size))
    return ImageFont.load_default()


def _load_bold_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a bold font, falling back to regular."""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, max(1, size))
    return _load_font(size)


# --- Color helpers ---

def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert hex color to RGB tuple. Supports both 3-char and 6-char hex."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = hex_color[0]*2 + hex_color[1]*2 + hex_color[2]*2
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def _hex_to_rgba(hex_color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
    """Convert hex color plus a 0–1 opacity to an RGBA tuple."""
    r, g, b = _hex_to_rgb(hex_color)
    return (r, g, b, int(round(max(0.0, min(1.0, opacity)) * 255)))


def _text_width(font: ImageFont.FreeTypeFont | ImageFont.ImageFont, text: str) -> float:
    bbox = font.getbbox(text)
    return bbox[2] - bbox[0]


def _wrap_text(text: str, font: ImageFont.FreeTypeFont, max_width: int) -> list[str]:
    """Word-wrap text to fit within max_width pixels."""
    words = text.split()
    lines = []
    current = ""

    for word in words:
        test = f"{current} {word}".strip() if current else word
        if _text_width(font, test) <= max_width:
            current = test
        else:
            if current:
                lines.append(current)
            # If single word is too long, force-wrap it
            if _text_width(font, word) > max_width:
                for chunk in textwrap.wrap(word, width=max(1, max_width // 8)):
                    lines.append(chunk)
                current = ""
            else:
                current = word

    if current:
        lines.append(current)

    return lines if lines else [""]


# --- Main renderer ---

class CanvasRenderer:
    """Renders a ``Frame`` to a PNG image."""

    POPUP_WIDTH = 260
    POPUP_PADDING = 12
    POPUP_LINE_HEIGHT = 18
    POPUP_MAX_LINES = 6

    def __init__(self, scale: float = 1.0):
        self.scale = scale
        self.font_popup_title = _load_bold_font(int(15 * scale))
        self.font_popup_body = _load_font(int(12 * scale))

    def render(self, frame: Frame, output_path: Optional[str] = None) -> bytes:
        """Render the frame to PNG bytes. Optionally save to file."""
        img_width = max(1, int(frame.width * self.scale))
        img_height = max(1, int(frame.height * self.scale))

        img = Image.new("RGBA", (img_width, img_height), _hex_to_rgba(frame.palette.background))
        draw = ImageDraw.Draw(img, "RGBA")

        # Background layer, then links behind nodes, labels on top
        for primitive in frame.background:
            if isinstance(primitive, BackgroundLine):
                self._draw_background_line(draw, frame, primitive)
            elif isinstance(primitive, BackgroundText):
                self._draw_background_text(draw, frame, primitive)

        for link in frame.links:
            self._draw_link(draw, frame, link)

        for node in frame.nodes:
            self._draw_node(draw, frame, node)

        if frame.popup is not None:
            self._draw_popup(draw, frame, frame.popup)

        buf = BytesIO()
        img.save(buf, format="PNG", optimize=True)
        png_bytes = buf.getvalue()

        if output_path:
            Path(output_path).write_bytes(png_bytes)

        return png_bytes

    # --- coordinate helpers ---

    def _to_image(self, frame: Frame, x: float, y: float) -> tuple[float, float]:
        t = frame.transform
        return ((x * t.k + t.tx) * self.scale, (y * t.k + t.ty) * self.scale)

    def _zoomed(self, frame: Frame, length: float) -> float:
        return length * frame.transform.k * self.scale

    # --- primitives ---

    def _draw_background_line(self, draw: ImageDraw.ImageDraw, frame: Frame, line: BackgroundLine):
        start = self._to_image(frame, line.x1, line.y1)
        end = self._to_image(frame, line.x2, line.y2)
        draw.line(
            [start, end],
            fill=_hex_to_rgba(line.stroke, line.stroke_opacity),
            width=max(1, int(self._zoomed(frame, line.stroke_width))),
        )

    def _draw_background_text(self, draw: ImageDraw.ImageDraw, frame: Frame, text: BackgroundText):
        font = _load_font(int(self._zoomed(frame, text.font_size)))
        x, y = self._to_image(frame, text.x, text.y)
        if text.anchor == "middle":
            x -= _text_width(font, text.text) / 2
        draw.text((x, y), text.text, fill=_hex_to_rgba(text.fill), font=font)

    def _draw_link(self, draw: ImageDraw.ImageDraw, frame: Frame, link: LinkVisual):
        start = self._to_image(frame, link.x1, link.y1)
        end = self._to_image(frame, link.x2, link.y2)
        width = link.stroke_width * (2 if link.highlighted else 1)
        draw.line(
            [start, end],
            fill=_hex_to_rgba(link.stroke, link.stroke_opacity),
            width=max(1, int(self._zoomed(frame, width))),
        )

    def _draw_node(self, draw: ImageDraw.ImageDraw, frame: Frame, node: NodeVisual):
        cx, cy = self._to_image(frame, node.x, node.y)

        if node.shape == "glyph" and node.glyph:
            font = _load_font(int(self._zoomed(frame, node.glyph_font_size)))
            gw = _text_width(font, node.glyph)
            gh = self._zoomed(frame, node.glyph_font_size)
            draw.text(
                (cx - gw / 2, cy - gh / 2),
                node.glyph,
                fill=_hex_to_rgba(node.fill, node.opacity),
                font=font,
            )
        else:
            r = self._zoomed(frame, node.radius)
            draw.ellipse(
                [cx - r, cy - r, cx + r, cy + r],
                fill=_hex_to_rgba(node.fill, node.opacity),
            )

        # Label below the node
        font = _load_font(int(self._zoomed(frame, node.label_font_size)))
        lw = _text_width(font, node.label)
        ly = cy + self._zoomed(frame, node.label_offset) - self._zoomed(frame, node.label_font_size)
        draw.text(
            (cx - lw / 2, ly),
            node.label,
            fill=_hex_to_rgba(node.label_color, node.opacity),
            font=font,
        )

    def _draw_popup(self, draw: ImageDraw.ImageDraw, frame: Frame, popup: PopupContent):
        """Draw the popup panel at its screen anchor (not zoomed)."""
        s = self.scale
        pad = self.POPUP_PADDING * s
        width = self.POPUP_WIDTH * s
        x, y = popup.anchor[0] * s, popup.anchor[1] * s

        body: list[str] = [popup.type] if popup.type else []
        if popup.description:
            body += _wrap_text(popup.description, self.font_popup_body, int(width - 2 * pad))
        if popup.order_tag:
            marker = "[x]" if popup.order_tag_active else "[ ]"
            body.append(f"{marker} {popup.order_tag}")
        body = body[: self.POPUP_MAX_LINES]

        height = 2 * pad + (1 + len(body)) * self.POPUP_LINE_HEIGHT * s
        draw.rounded_rectangle(
            [x, y, x + width, y + height],
            radius=int(8 * s),
            fill=_hex_to_rgba(frame.palette.button_bg, 0.95),
            outline=_hex_to_rgba(frame.palette.text),
            width=max(1, int(s)),
        )
        draw.text((x + pad, y + pad), popup.name, fill=_hex_to_rgba(frame.palette.text), font=self.font_popup_title)
        line_y = y + pad + self.POPUP_LINE_HEIGHT * s
        for line in body:
            draw.text((x + pad, line_y), line, fill=_hex_to_rgba(frame.palette.text), font=self.font_popup_body)
            line_y += self.POPUP_LINE_HEIGHT * s
