"""Receipt and report rendering: layout to raster, raster to 80mm document, dispatch."""

from __future__ import annotations

import asyncio
import copy
import io
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Callable

from PIL import Image, ImageDraw, ImageFont

from cafe_pos.config import (
    PRINTER_FONT_ENV,
    PRINTER_FONT_PATH,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
    RECEIPT_FONT_SIZE,
    RECEIPT_OUTPUT_DIR,
    RECEIPT_SCALE,
    RECEIPT_WIDTH_MM,
)
from cafe_pos.errors import RenderError
from cafe_pos.models import Order, Settings
from cafe_pos.pricing import format_money
from cafe_pos.report import ReportSummary, format_timestamp

logger = logging.getLogger(__name__)

_MM_PER_INCH = 25.4
_PADDING_PX = 8
_LINE_GAP_PX = 3
_RULE_DASH_PX = 4
_QTY_COLUMN_PX = 36
_TOTAL_COLUMN_PX = 72
_TITLE_FONT_DELTA = 6
_SMALL_FONT_DELTA = -2
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


class PrintOutcome(Enum):
    PRINTED = "printed"
    SAVED = "saved"
    FAILED = "failed"


@dataclass(frozen=True)
class PrintResult:
    outcome: PrintOutcome
    path: Path | None = None
    error: str | None = None


@dataclass(frozen=True)
class Raster:
    """Captured bitmap plus the logical width it was laid out at."""

    image: Image.Image
    logical_width: int
    scale: int


@dataclass(frozen=True)
class ReceiptDocument:
    """A single-page PDF sized for an 80mm roll."""

    pdf: bytes
    width_mm: float
    height_mm: float
    raster: Raster


PrinterFactory = Callable[[], object]


def resolve_printer_font_path() -> str | None:
    """
    Resolve a font path for receipt text.

    Resolution order:
    1. CAFE_POS_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(PRINTER_FONT_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate
    return None


def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    font_path = resolve_printer_font_path()
    if font_path is None:
        return ImageFont.load_default(size=size)
    return ImageFont.truetype(font_path, size)


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether the thermal printer driver is importable."""
    try:
        from escpos.printer import Usb  # noqa: F401
    except Exception as exc:
        return (False, f"Printer driver unavailable, receipts will be saved as PDF: {exc}")
    if resolve_printer_font_path() is None:
        return (True, f"Printer ready (built-in font; set {PRINTER_FONT_ENV} for a TTF)")
    return (True, "Printer ready")


class _Layout:
    """Stacks full-width line images drawn at a fixed scale."""

    def __init__(self, logical_width: int, scale: int) -> None:
        self.scale = scale
        self.width = logical_width * scale
        self.padding = _PADDING_PX * scale
        base = RECEIPT_FONT_SIZE * scale
        self.font = load_font(base)
        self.title_font = load_font(base + _TITLE_FONT_DELTA * scale)
        self.small_font = load_font(base + _SMALL_FONT_DELTA * scale)
        self._probe = ImageDraw.Draw(Image.new("L", (1, 1), color=255))
        self.blocks: list[Image.Image] = []

    def text_width(self, text: str, font: object) -> int:
        bbox = self._probe.textbbox((0, 0), text, font=font)
        return bbox[2] - bbox[0]

    def fit(self, text: str, font: object, max_width: int) -> str:
        if self.text_width(text, font) <= max_width:
            return text
        ellipsis = "..."
        trimmed = text
        while trimmed:
            candidate = f"{trimmed}{ellipsis}"
            if self.text_width(candidate, font) <= max_width:
                return candidate
            trimmed = trimmed[:-1]
        return ellipsis

    def row(self, cells: list[tuple[str, str, int, int]], font: object) -> None:
        """Draw one line of (text, align, x0, x1) cells."""
        bbox = self._probe.textbbox((0, 0), "Hg", font=font)
        text_height = bbox[3] - bbox[1]
        height = text_height + _LINE_GAP_PX * 2 * self.scale
        img = Image.new("L", (self.width, height), color=255)
        draw = ImageDraw.Draw(img)
        for text, align, x0, x1 in cells:
            text = self.fit(text, font, x1 - x0)
            width = self.text_width(text, font)
            if align == "center":
                x = x0 + (x1 - x0 - width) // 2
            elif align == "right":
                x = x1 - width
            else:
                x = x0
            # Offset by bbox top so descenders are not clipped.
            draw.text((x, (height - text_height) // 2 - bbox[1]), text, font=font, fill=0)
        self.blocks.append(img)

    def line(self, text: str, font: object | None = None, align: str = "left") -> None:
        self.row([(text, align, self.padding, self.width - self.padding)], font or self.font)

    def pair(self, left: str, right: str, font: object | None = None) -> None:
        inner = (self.padding, self.width - self.padding)
        self.row([(left, "left", *inner), (right, "right", *inner)], font or self.font)

    def rule(self) -> None:
        height = 6 * self.scale
        img = Image.new("L", (self.width, height), color=255)
        draw = ImageDraw.Draw(img)
        y = height // 2
        dash = _RULE_DASH_PX * self.scale
        for x in range(self.padding, self.width - self.padding, dash * 2):
            draw.line((x, y, min(x + dash, self.width - self.padding), y), fill=0, width=max(1, self.scale))
        self.blocks.append(img)

    def spacer(self, height_px: int) -> None:
        self.blocks.append(Image.new("L", (self.width, max(1, height_px * self.scale)), color=255))

    def render(self) -> Image.Image:
        total_height = sum(block.height for block in self.blocks)
        canvas = Image.new("L", (self.width, max(1, total_height)), color=255)
        y = 0
        for block in self.blocks:
            canvas.paste(block, (0, y))
            y += block.height
        return canvas


def _signed_money(value: Decimal) -> str:
    text = format_money(value)
    return text if text.startswith("-") else f"+{text}"


def render_receipt_image(order: Order, settings: Settings, scale: int = RECEIPT_SCALE) -> Image.Image:
    """Lay out the receipt and draw it into a grayscale bitmap."""
    layout = _Layout(settings.receipt_width, scale)
    left = layout.padding
    right = layout.width - layout.padding
    qty_x1 = right - _TOTAL_COLUMN_PX * scale
    qty_x0 = qty_x1 - _QTY_COLUMN_PX * scale

    layout.spacer(4)
    layout.line(settings.display_name, layout.title_font, align="center")
    if settings.header_message:
        layout.line(settings.header_message, align="center")
    layout.rule()
    layout.line(f"Order #: {order.number}")
    layout.line(f"Staff: {order.staff_name}")
    layout.line(f"Date: {format_timestamp(order.created_at)}")
    layout.rule()

    layout.row(
        [("Item", "left", left, qty_x0), ("Qty", "center", qty_x0, qty_x1), ("Total", "right", qty_x1, right)],
        layout.font,
    )
    layout.rule()
    for item in order.items:
        layout.row(
            [
                (item.product_name, "left", left, qty_x0),
                (str(item.quantity), "center", qty_x0, qty_x1),
                (format_money(item.total_price), "right", qty_x1, right),
            ],
            layout.font,
        )
        for addon in item.selected_addons:
            label = f"  + {addon.option_name} ({_signed_money(addon.price_adjustment)})"
            layout.row([(label, "left", left, qty_x0)], layout.small_font)

    layout.rule()
    layout.pair("Grand Total:", f"{format_money(order.total_amount)} {settings.currency_symbol}", layout.title_font)

    if settings.wifi_ssid:
        layout.rule()
        layout.line(f"Wi-Fi: {settings.wifi_ssid}", layout.small_font, align="center")
        if settings.wifi_password:
            layout.line(f"Password: {settings.wifi_password}", layout.small_font, align="center")
    if settings.footer_message:
        layout.rule()
        layout.line(settings.footer_message, layout.small_font, align="center")
    layout.spacer(8)
    return layout.render()


def render_report_image(summary: ReportSummary, settings: Settings, scale: int = RECEIPT_SCALE) -> Image.Image:
    """Lay out the daily sales summary with the receipt's look."""
    layout = _Layout(settings.receipt_width, scale)
    currency = settings.currency_symbol

    layout.spacer(4)
    layout.line(settings.display_name, layout.title_font, align="center")
    layout.line("Daily Sales Report", align="center")
    layout.line(datetime.now().strftime("%d/%m/%Y %H:%M"), layout.small_font, align="center")
    layout.rule()
    layout.pair("Total sales:", f"{format_money(summary.total_sales)} {currency}")
    layout.pair("Orders:", str(summary.total_orders))
    layout.rule()
    for row in summary.by_staff:
        layout.pair(f"{row.name} ({row.count})", f"{format_money(row.total)} {currency}")
    if not summary.by_staff:
        layout.line("No orders yet", align="center")
    layout.spacer(8)
    return layout.render()


async def capture(draw: Callable[[], Image.Image], logical_width: int, scale: int) -> Raster:
    """Render off the event loop and freeze the result."""
    try:
        image = await asyncio.to_thread(draw)
    except (OSError, ValueError) as exc:
        raise RenderError(f"Receipt capture failed: {exc}") from exc
    return Raster(image=image.copy(), logical_width=logical_width, scale=scale)


def document_height_mm(raster: Raster) -> float:
    """Physical height that keeps the raster's aspect ratio at 80mm wide."""
    mm_per_logical_px = RECEIPT_WIDTH_MM / raster.logical_width
    logical_height = raster.image.height / raster.scale
    return logical_height * mm_per_logical_px


def build_receipt_document(raster: Raster) -> ReceiptDocument:
    """Wrap the bitmap into a margin-free 80mm single-page PDF."""
    width_px, _ = raster.image.size
    dpi = width_px / (RECEIPT_WIDTH_MM / _MM_PER_INCH)
    buffer = io.BytesIO()
    try:
        raster.image.convert("RGB").save(buffer, format="PDF", resolution=dpi)
    except (OSError, ValueError) as exc:
        raise RenderError(f"Document assembly failed: {exc}") from exc
    return ReceiptDocument(
        pdf=buffer.getvalue(),
        width_mm=float(RECEIPT_WIDTH_MM),
        height_mm=document_height_mm(raster),
        raster=raster,
    )


def to_printer_raster(raster: Raster, width_px: int = PRINTER_WIDTH_PX) -> Image.Image:
    """Downsample to the printer's dot width as a 1-bit image."""
    image = raster.image
    height = max(1, round(image.height * width_px / image.width))
    return image.resize((width_px, height), Image.Resampling.LANCZOS).convert("1")


def open_usb_printer() -> object:
    from escpos.printer import Usb

    return Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)


def save_document(document: ReceiptDocument, name: str, output_dir: str | Path | None = None) -> Path:
    directory = Path(output_dir if output_dir is not None else RECEIPT_OUTPUT_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.pdf"
    path.write_bytes(document.pdf)
    return path


def dispatch_document(
    document: ReceiptDocument,
    name: str,
    printer_factory: PrinterFactory = open_usb_printer,
    output_dir: str | Path | None = None,
) -> PrintResult:
    """Send the document to the thermal printer, falling back to a saved PDF."""
    printer = None
    try:
        printer = printer_factory()
        printer.image(to_printer_raster(document.raster))
        printer.cut()
    except Exception as exc:
        logger.warning("print_unavailable name=%s error=%r; saving PDF", name, exc)
        try:
            path = save_document(document, name, output_dir)
        except OSError as save_exc:
            logger.error("print_failed name=%s error=%r", name, save_exc)
            return PrintResult(PrintOutcome.FAILED, error=f"{exc}; save failed: {save_exc}")
        logger.info("print_saved name=%s path=%s", name, path)
        return PrintResult(PrintOutcome.SAVED, path=path, error=str(exc))
    finally:
        close = getattr(printer, "close", None)
        if callable(close):
            try:
                close()
            except Exception as exc:
                logger.debug("printer_close_failed error=%r", exc)
    logger.info("print_done name=%s", name)
    return PrintResult(PrintOutcome.PRINTED)


async def _render_and_dispatch(
    draw: Callable[[], Image.Image],
    settings: Settings,
    name: str,
    printer_factory: PrinterFactory,
    output_dir: str | Path | None,
) -> PrintResult:
    try:
        raster = await capture(draw, settings.receipt_width, RECEIPT_SCALE)
        document = build_receipt_document(raster)
    except RenderError as exc:
        logger.error("render_failed name=%s error=%s", name, exc)
        return PrintResult(PrintOutcome.FAILED, error=str(exc))
    except Exception as exc:
        logger.exception("render_crashed name=%s", name)
        return PrintResult(PrintOutcome.FAILED, error=f"Receipt rendering failed: {exc!r}")
    return await asyncio.to_thread(dispatch_document, document, name, printer_factory, output_dir)


async def print_receipt(
    order: Order,
    settings: Settings,
    printer_factory: PrinterFactory = open_usb_printer,
    output_dir: str | Path | None = None,
) -> PrintResult:
    """Render and dispatch the receipt for one order. Never raises."""
    snapshot = copy.deepcopy(order)
    frozen_settings = copy.deepcopy(settings)
    return await _render_and_dispatch(
        lambda: render_receipt_image(snapshot, frozen_settings),
        frozen_settings,
        f"receipt-{snapshot.number}",
        printer_factory,
        output_dir,
    )


async def print_report(
    summary: ReportSummary,
    settings: Settings,
    printer_factory: PrinterFactory = open_usb_printer,
    output_dir: str | Path | None = None,
) -> PrintResult:
    """Render and dispatch the daily report. Never raises."""
    snapshot = copy.deepcopy(summary)
    frozen_settings = copy.deepcopy(settings)
    return await _render_and_dispatch(
        lambda: render_report_image(snapshot, frozen_settings),
        frozen_settings,
        f"report-{datetime.now().strftime('%Y%m%d-%H%M%S')}",
        printer_factory,
        output_dir,
    )
