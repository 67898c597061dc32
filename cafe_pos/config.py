"""Runtime configuration defaults for persistence, logging and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("CAFE_POS_DB_PATH", "data/cafe_pos.db")
DEBUG_LOG_PATH = "/tmp/cafe-pos-debug.log"

# Thermal printer values.
PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 576
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_FONT_ENV = "CAFE_POS_FONT_PATH"

# Receipt layout values.
RECEIPT_SCALE = 2
RECEIPT_WIDTH_MM = 80
RECEIPT_FONT_SIZE = 13
RECEIPT_OUTPUT_DIR = os.environ.get("CAFE_POS_RECEIPT_DIR", "data/receipts")

ACCESS_CODE_LENGTH = 4
