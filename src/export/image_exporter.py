"""Rasterize a rendered signboard view into a PNG download."""

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from src.ui.signboard import SignboardView
from src.ui.utils import DESCRIPTION_HEADING, FUN_FACT_HEADING

logger = logging.getLogger(__name__)

# Signboard palette
PAGE_BG = "#fcfaf5"
FRAME = "#3e2723"
BOARD_BG = "#ffffff"
HEADER_BG = "#2c5e2e"
HEADER_PILL = "#44714a"
DANGER_TEXT = "#ffeb3b"
TITLE_TEXT = "#111827"
SUBTLE_TEXT = "#9ca3af"
BODY_TEXT = "#374151"
DIVIDER = "#f3f4f6"
DESCRIPTION_BG = "#fdfdfd"
DESCRIPTION_BORDER = "#f3f4f6"
BAR_TRACK = "#f3f4f6"
BAR_FROM = (0x2C, 0x5E, 0x2E)
BAR_TO = (0x8B, 0xC3, 0x4A)
FUN_FACT_BG = "#fefce8"
FUN_FACT_HEADING_TEXT = "#ef6c00"

BOARD_WIDTH = 720
PAGE_PADDING = 24
FRAME_WIDTH = 10
CONTENT_PADDING = 40

# Searched in order when no font is configured
JAPANESE_FONT_CANDIDATES = (
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/google-noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/opentype/noto/NotoSansCJKjp-Regular.otf",
    "/usr/share/fonts/truetype/noto/NotoSansJP-Regular.ttf",
    "/usr/share/fonts/opentype/ipafont-gothic/ipagp.ttf",
    "/usr/share/fonts/truetype/fonts-japanese-gothic.ttf",
    "/usr/share/fonts/truetype/takao-gothic/TakaoPGothic.ttf",
    "/System/Library/Fonts/ヒラギノ角ゴシック W3.ttc",
    "/System/Library/Fonts/Hiragino Sans GB.ttc",
    "C:/Windows/Fonts/meiryo.ttc",
    "C:/Windows/Fonts/msgothic.ttc",
)
GLYPH_CHECK_CHAR = "体"
MISSING_GLYPH_CHAR = "\uffff"


class DownloadStore:
    """Holds exported files until the page collects them."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    def put(self, file_name: str, data: bytes) -> None:
        self._files[file_name] = data

    def pop(self, file_name: str) -> bytes | None:
        return self._files.pop(file_name, None)

    def __contains__(self, file_name: object) -> bool:
        return file_name in self._files

    def __len__(self) -> int:
        return len(self._files)


@dataclass
class _Fonts:
    pill: ImageFont.FreeTypeFont | ImageFont.ImageFont
    title: ImageFont.FreeTypeFont | ImageFont.ImageFont
    subtitle: ImageFont.FreeTypeFont | ImageFont.ImageFont
    body: ImageFont.FreeTypeFont | ImageFont.ImageFont
    small: ImageFont.FreeTypeFont | ImageFont.ImageFont


def wrap_text(
    draw: ImageDraw.ImageDraw,
    text: str,
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
    max_width: float,
) -> list[str]:
    """Wrap text by character so that each line fits within max_width.

    Japanese text has no spaces to break on, so lines are filled character
    by character. Empty input yields a single empty line.
    """
    lines: list[str] = []
    current = ""
    for char in text:
        candidate = current + char
        if current and draw.textlength(candidate, font=font) > max_width:
            lines.append(current)
            current = char
        else:
            current = candidate
    lines.append(current)
    return lines


def has_japanese_glyphs(font: ImageFont.FreeTypeFont | ImageFont.ImageFont) -> bool:
    """Whether the font draws a kanji differently from a missing glyph."""
    try:
        kanji = font.getmask(GLYPH_CHECK_CHAR)
        missing = font.getmask(MISSING_GLYPH_CHAR)
    except UnicodeEncodeError:
        # Bitmap fonts only encode Latin-1
        return False
    return (kanji.size, bytes(kanji)) != (missing.size, bytes(missing))


class SignboardImageExporter:
    """Draws a SignboardView with Pillow and stores the PNG for download."""

    def __init__(
        self,
        store: DownloadStore,
        font_path: str | None = None,
        scale: int = 2,
    ):
        """Initialize the exporter.

        Args:
            store: Destination for exported files.
            font_path: TrueType/OpenType font with Japanese glyphs. When not
                provided, common system CJK fonts are searched.
            scale: Pixel density multiplier.
        """
        self.store = store
        self.font_path = font_path
        self.scale = scale
        self._resolved_font_path: str | None = None

    async def export_as_image(self, view: SignboardView, suggested_file_name: str) -> bool:
        """Rasterize the view and place the PNG in the download store.

        Stat bars are drawn at the width they display right now.

        Args:
            view: The signboard view currently on screen.
            suggested_file_name: File name the download is stored under.

        Returns:
            True on success, False if the image could not be produced.
        """
        bar_widths = [indicator.displayed_value() for indicator in view.stats]
        loop = asyncio.get_running_loop()
        try:
            data = await loop.run_in_executor(None, self.render_png, view, bar_widths)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to rasterize signboard: {e}")
            return False
        except Exception:
            logger.exception("Unexpected error while rasterizing signboard")
            return False

        self.store.put(suggested_file_name, data)
        logger.info(f"Signboard exported: {suggested_file_name} ({len(data)} bytes)")
        return True

    def resolve_font_path(self) -> str:
        """Find a font that can draw Japanese text.

        The configured path is used when set. Otherwise the usual system
        CJK font locations are tried in order.

        Raises:
            OSError: If no usable Japanese font is available.
        """
        if self._resolved_font_path is not None:
            return self._resolved_font_path

        if self.font_path:
            if not has_japanese_glyphs(ImageFont.truetype(self.font_path, 16)):
                raise OSError(f"Font has no Japanese glyphs: {self.font_path}")
            self._resolved_font_path = self.font_path
            return self.font_path

        for candidate in JAPANESE_FONT_CANDIDATES:
            if not Path(candidate).is_file():
                continue
            try:
                font = ImageFont.truetype(candidate, 16)
            except OSError as e:
                logger.debug(f"Skipping unreadable font {candidate}: {e}")
                continue
            if has_japanese_glyphs(font):
                logger.info(f"Using export font: {candidate}")
                self._resolved_font_path = candidate
                return candidate

        raise OSError("No font with Japanese glyphs found; set EXPORT_FONT_PATH")

    def _font(self, size: int) -> ImageFont.FreeTypeFont:
        return ImageFont.truetype(self.resolve_font_path(), size * self.scale)

    def _load_fonts(self) -> _Fonts:
        return _Fonts(
            pill=self._font(12),
            title=self._font(40),
            subtitle=self._font(18),
            body=self._font(15),
            small=self._font(11),
        )

    def render_png(self, view: SignboardView, bar_widths: list[float]) -> bytes:
        """Draw the signboard and return PNG bytes.

        The content height is measured on a scratch canvas first so the
        final image fits the whole signboard.

        Raises:
            OSError: If no Japanese font can be loaded or the image cannot be encoded.
            ValueError: If the scale is not positive.
        """
        if self.scale <= 0:
            raise ValueError("scale must be positive")

        fonts = self._load_fonts()
        width = BOARD_WIDTH * self.scale

        scratch = Image.new("RGB", (width, 1), PAGE_BG)
        height = self._draw_board(ImageDraw.Draw(scratch), view, bar_widths, fonts, width)

        image = Image.new("RGB", (width, height), PAGE_BG)
        self._draw_board(ImageDraw.Draw(image), view, bar_widths, fonts, width)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def _draw_board(
        self,
        draw: ImageDraw.ImageDraw,
        view: SignboardView,
        bar_widths: list[float],
        fonts: _Fonts,
        width: int,
    ) -> int:
        """Draw every section top to bottom and return the total image height."""
        s = self.scale
        board_left = PAGE_PADDING * s
        board_right = width - PAGE_PADDING * s
        inner_left = board_left + FRAME_WIDTH * s
        inner_right = board_right - FRAME_WIDTH * s

        # Header band
        y = PAGE_PADDING * s + FRAME_WIDTH * s
        header_height = 64 * s
        draw.rectangle((inner_left, y, inner_right, y + header_height), fill=HEADER_BG)
        header_mid = y + header_height // 2
        pill_left = inner_left + 24 * s
        pill_width = draw.textlength(view.classification, font=fonts.pill) + 24 * s
        draw.rounded_rectangle(
            (pill_left, header_mid - 14 * s, pill_left + pill_width, header_mid + 14 * s),
            radius=4 * s,
            fill=HEADER_PILL,
        )
        draw.text(
            (pill_left + 12 * s, header_mid), view.classification, font=fonts.pill,
            fill="white", anchor="lm",
        )
        draw.text(
            (inner_right - 24 * s, header_mid), view.danger_caption, font=fonts.subtitle,
            fill=DANGER_TEXT, anchor="rm",
        )
        y += header_height
        body_top = y

        content_left = inner_left + CONTENT_PADDING * s
        content_right = inner_right - CONTENT_PADDING * s
        content_width = content_right - content_left
        y += CONTENT_PADDING * s

        # Title and scientific name
        title_lines = wrap_text(draw, view.user_name, fonts.title, content_width)
        subtitle_lines = wrap_text(draw, view.scientific_name, fonts.subtitle, content_width)

        # Keeper's description
        text_left = content_left + 24 * s
        text_width = content_width - 48 * s
        description_lines: list[str] = []
        for line in view.description_lines:
            description_lines.extend(wrap_text(draw, line, fonts.body, text_width))
        line_height = 26 * s
        fact_lines = wrap_text(draw, view.fun_fact, fonts.body, content_width - 48 * s)

        # White board behind the body, sized from the measured lines
        rows = (len(view.stats) + 1) // 2
        body_height = (
            CONTENT_PADDING * s
            + 50 * s * len(title_lines)
            + 26 * s * len(subtitle_lines)
            + 48 * s
            + 56 * s + line_height * len(description_lines) + 32 * s
            + rows * 52 * s + 16 * s
            + 64 * s + line_height * len(fact_lines)
            + CONTENT_PADDING * s
        )
        draw.rectangle((inner_left, body_top, inner_right, body_top + body_height), fill=BOARD_BG)

        for line in title_lines:
            draw.text((content_left, y), line, font=fonts.title, fill=TITLE_TEXT)
            y += 50 * s
        for line in subtitle_lines:
            draw.text((content_left, y), line, font=fonts.subtitle, fill=SUBTLE_TEXT)
            y += 26 * s
        y += 12 * s
        draw.rectangle((content_left, y, content_right, y + 4 * s), fill=DIVIDER)
        y += 36 * s

        box_top = y
        box_bottom = box_top + 56 * s + line_height * len(description_lines)
        draw.rounded_rectangle(
            (content_left, box_top, content_right, box_bottom),
            radius=16 * s,
            fill=DESCRIPTION_BG,
            outline=DESCRIPTION_BORDER,
            width=max(1, s),
        )
        heading_width = draw.textlength(DESCRIPTION_HEADING, font=fonts.small) + 32 * s
        draw.rounded_rectangle(
            (text_left, box_top - 14 * s, text_left + heading_width, box_top + 14 * s),
            radius=14 * s,
            fill=HEADER_BG,
        )
        draw.text(
            (text_left + 16 * s, box_top), DESCRIPTION_HEADING, font=fonts.small,
            fill="white", anchor="lm",
        )
        text_y = box_top + 28 * s
        for line in description_lines:
            draw.text((text_left, text_y), line, font=fonts.body, fill=BODY_TEXT)
            text_y += line_height
        y = box_bottom + 32 * s

        # Stats, two columns
        column_gap = 24 * s
        column_width = (content_width - column_gap) // 2
        for position, (indicator, bar_width) in enumerate(zip(view.stats, bar_widths)):
            column = position % 2
            row_top = y + (position // 2) * 52 * s
            left = content_left + column * (column_width + column_gap)
            right = left + column_width
            draw.text((left, row_top), indicator.label, font=fonts.small, fill=SUBTLE_TEXT)
            draw.text(
                (right, row_top), f"{indicator.target}%", font=fonts.small,
                fill=BODY_TEXT, anchor="ra",
            )
            bar_top = row_top + 22 * s
            bar_bottom = bar_top + 10 * s
            draw.rounded_rectangle((left, bar_top, right, bar_bottom), radius=5 * s, fill=BAR_TRACK)
            self._draw_gradient_bar(draw, left, bar_top, column_width, bar_bottom, bar_width)
        y += rows * 52 * s + 16 * s

        # Fun fact
        fact_top = y
        fact_bottom = fact_top + 64 * s + line_height * len(fact_lines)
        draw.rounded_rectangle(
            (content_left, fact_top, content_right, fact_bottom), radius=16 * s, fill=FUN_FACT_BG
        )
        draw.text(
            (text_left, fact_top + 20 * s), FUN_FACT_HEADING, font=fonts.subtitle,
            fill=FUN_FACT_HEADING_TEXT,
        )
        text_y = fact_top + 48 * s
        for line in fact_lines:
            draw.text((text_left, text_y), line, font=fonts.body, fill=BODY_TEXT)
            text_y += line_height
        y = fact_bottom + CONTENT_PADDING * s

        board_bottom = y + FRAME_WIDTH * s
        draw.rectangle(
            (board_left, PAGE_PADDING * s, board_right, board_bottom),
            outline=FRAME,
            width=FRAME_WIDTH * s,
        )
        return board_bottom + PAGE_PADDING * s

    @staticmethod
    def _draw_gradient_bar(
        draw: ImageDraw.ImageDraw,
        left: int,
        top: int,
        track_width: int,
        bottom: int,
        percent: float,
    ) -> None:
        fill_width = int(track_width * max(0.0, min(100.0, percent)) / 100)
        if fill_width <= 0:
            return
        for offset in range(fill_width):
            ratio = offset / max(1, track_width - 1)
            color = tuple(
                round(start + (end - start) * ratio) for start, end in zip(BAR_FROM, BAR_TO)
            )
            draw.line((left + offset, top, left + offset, bottom), fill=color)
