# backend/utils/pdf.py
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from config import settings
from models.inventory import InventoryItem
from utils.inventory_view import totals

logger = logging.getLogger(__name__)

# Fonts: DejaVu covers non-Latin item names when it is shipped, Helvetica otherwise
FONT_DIR = Path("assets/fonts")
FONT_REGULAR_PATH = FONT_DIR / "DejaVuSans.ttf"
FONT_REGULAR_NAME = "Helvetica"

# Page geometry in points, measured from the top-left corner
PAGE_WIDTH, PAGE_HEIGHT = A4
ICON_SIZE = 50
MARGIN = 20
TITLE_Y = ICON_SIZE + 40
DATE_Y = ICON_SIZE + 70
USER_Y = ICON_SIZE + 90
HEADER_Y = ICON_SIZE + 140
FIRST_ROW_Y = ICON_SIZE + 180
ROW_PITCH = 40
COLUMNS = (("Item Name", 20), ("Quantity", 200), ("Price", 350), ("Total", 450))
SUMMARY_X = 400
TOTAL_ITEMS_Y = 800
TOTAL_PRICE_Y = 820

DATE_FORMAT = "%d/%m/%Y %H:%M"


def ensure_downloads_dir() -> Path:
    path = Path(settings.DOWNLOADS_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path

def get_report_path(now: Optional[datetime] = None) -> Path:
    """Timestamped report file under the downloads directory."""
    now = now or datetime.now()
    millis = int(now.timestamp() * 1000)
    return ensure_downloads_dir() / f"EasyInventory_{millis}.pdf"

def format_money(value: float) -> str:
    return f"${value:.2f}"

_fonts_inited = False
def _init_fonts():
    global _fonts_inited, FONT_REGULAR_NAME
    if _fonts_inited:
        return
    _fonts_inited = True
    if not FONT_REGULAR_PATH.exists():
        return
    try:
        pdfmetrics.registerFont(TTFont("DejaVuSans", str(FONT_REGULAR_PATH)))
        FONT_REGULAR_NAME = "DejaVuSans"
    except Exception as e:
        logger.warning("Font init warning: %s", e)


def generate_inventory_report_pdf(
    items: List[InventoryItem],
    username: str,
    out_path: Path,
    generated_at: Optional[datetime] = None,
    icon_path: Optional[Path] = None,
) -> Path:
    """
    Draws the one-page inventory report:
    - app icon (top right), title, generation date and user
    - four column table, one row per item with a fixed pitch
    - item and price totals at a fixed spot near the bottom
    Rows running past the page edge are not moved to a new page.
    """
    _init_fonts()
    generated_at = generated_at or datetime.now()
    icon_path = Path(icon_path or settings.REPORT_ICON_PATH)

    c = canvas.Canvas(str(out_path), pagesize=A4)
    c.setTitle("Inventory Report")
    c.setAuthor(username)

    def draw_text(x, top_y, text, size):
        # Layout coordinates are top-down, ReportLab's are bottom-up
        c.setFont(FONT_REGULAR_NAME, size)
        c.drawString(x, PAGE_HEIGHT - top_y, "" if text is None else str(text))

    # --- 1. ICON ---
    icon_x = PAGE_WIDTH - ICON_SIZE - MARGIN
    icon_y = PAGE_HEIGHT - MARGIN - ICON_SIZE
    if icon_path.exists():
        try:
            c.drawImage(ImageReader(str(icon_path)), icon_x, icon_y,
                        width=ICON_SIZE, height=ICON_SIZE, mask="auto")
        except Exception as e:
            logger.warning("Report icon %s could not be drawn: %s", icon_path, e)
            _draw_icon_badge(c, icon_x, icon_y)
    else:
        _draw_icon_badge(c, icon_x, icon_y)

    # --- 2. HEADER ---
    draw_text(MARGIN, TITLE_Y, "Inventory Report", 24)
    draw_text(MARGIN, DATE_Y, f"Date: {generated_at.strftime(DATE_FORMAT)}", 14)
    draw_text(MARGIN, USER_Y, f"Generated by: {username}", 14)

    # --- 3. TABLE ---
    for label, x in COLUMNS:
        draw_text(x, HEADER_Y, label, 16)

    y = FIRST_ROW_Y
    for item in items:
        draw_text(20, y, item.name, 16)
        draw_text(200, y, f"{item.quantity}", 16)
        draw_text(350, y, format_money(item.price), 16)
        draw_text(450, y, format_money(item.line_total), 16)
        y += ROW_PITCH

    # --- 4. SUMMARY ---
    total_items, total_price = totals(items)
    draw_text(SUMMARY_X, TOTAL_ITEMS_Y, f"Total Items: {total_items}", 16)
    draw_text(SUMMARY_X, TOTAL_PRICE_Y, f"Total Price: {format_money(total_price)}", 16)

    c.showPage()
    c.save()
    logger.info("Inventory report written to %s (%d rows)", out_path, len(items))
    return out_path


def _draw_icon_badge(c, x, y):
    # Stand-in when no icon image is configured: a boxed "EI" monogram
    c.setFillColorRGB(0.18, 0.49, 0.2)
    c.roundRect(x, y, ICON_SIZE, ICON_SIZE, 8, fill=1, stroke=0)
    c.setFillColorRGB(1, 1, 1)
    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(x + ICON_SIZE / 2, y + ICON_SIZE / 2 - 7, "EI")
    c.setFillColorRGB(0, 0, 0)
