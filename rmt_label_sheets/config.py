"""
Shared configuration and constants.
"""

import dataclasses

# PIP3 modules
import PIL.Image


MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0

IDENTIFIER_PREFIX = "RMT"
SEQUENCE_WIDTH = 3

DEFAULT_PAGE_WIDTH = 210.0
DEFAULT_PAGE_HEIGHT = 297.0
ROWS = 9
COLUMNS = 7
DEFAULT_LABEL_WIDTH = 25.4
DEFAULT_LABEL_HEIGHT = 25.4
DEFAULT_H_GAP = 0.0
DEFAULT_V_GAP = 0.0

DEFAULT_SYMBOL_PERCENT = 70.0
DEFAULT_DPI = 300
DEFAULT_ERROR_CORRECTION = "M"
ERROR_CORRECTION_LEVELS = ("L", "M", "Q", "H")
DEFAULT_LOGO_ENABLED = True
DEFAULT_LOGO_SIZE_PERCENT = 20.0
DEFAULT_LOGO_PADDING = 2
DEFAULT_CONCURRENCY = 8
SYMBOL_BORDER_MODULES = 2

# rough share of the symbol that each level can lose and still decode
LOGO_WARNING_PERCENT = {
	"L": 7.0,
	"M": 15.0,
	"Q": 25.0,
	"H": 30.0,
}

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
DEFAULT_CAPTION_SIZE = 4.5
CAPTION_GAP = 0.6
PROGRESS_BAR_WIDTH = 20

DEFAULT_STORE_PATH = "rmt_sequences.json"
DEFAULT_SESSION_LOG_PATH = "rmt_print_sessions.jsonl"


@dataclasses.dataclass
class LayoutConfig:
	page_width: float = DEFAULT_PAGE_WIDTH
	page_height: float = DEFAULT_PAGE_HEIGHT
	rows: int = ROWS
	cols: int = COLUMNS
	label_width: float = DEFAULT_LABEL_WIDTH
	label_height: float = DEFAULT_LABEL_HEIGHT
	gap_horizontal: float = DEFAULT_H_GAP
	gap_vertical: float = DEFAULT_V_GAP
	auto_margins: bool = True
	margin_top: float = 0.0
	margin_left: float = 0.0


@dataclasses.dataclass
class CompositeConfig:
	symbol_pixel_size: int
	error_correction: str = DEFAULT_ERROR_CORRECTION
	logo_enabled: bool = DEFAULT_LOGO_ENABLED
	logo_image: PIL.Image.Image | None = None
	logo_size_percent: float = DEFAULT_LOGO_SIZE_PERCENT
	logo_padding_pixels: int = DEFAULT_LOGO_PADDING


@dataclasses.dataclass
class SheetConfig:
	symbol_percent: float = DEFAULT_SYMBOL_PERCENT
	show_caption: bool = True
	caption_size: float = DEFAULT_CAPTION_SIZE
	draw_outlines: bool = False
	calibration: bool = False


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimetres to points.

	Args:
		value: Millimetres value.

	Returns:
		Points value.
	"""
	return value / MM_PER_INCH * POINTS_PER_INCH


#============================================
def derive_symbol_pixel_size(
	label_width: float,
	symbol_percent: float = DEFAULT_SYMBOL_PERCENT,
	dpi: int = DEFAULT_DPI,
) -> int:
	"""
	Derive the symbol raster size from the printed symbol width.

	Args:
		label_width: Label width in millimetres.
		symbol_percent: Share of the label width used by the symbol.
		dpi: Print resolution.

	Returns:
		Pixel size of the square symbol raster.
	"""
	symbol_mm = label_width * symbol_percent / 100.0
	return max(1, int(round(symbol_mm / MM_PER_INCH * dpi)))
