"""
Sheet geometry: grid validation, margins, and label placement.
"""

# Standard Library
import dataclasses
import math
import typing

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.config
import rmt_label_sheets.errors


LayoutConfig = rls.config.LayoutConfig
ConfigurationError = rls.errors.ConfigurationError

GEOMETRY_EPSILON = 1e-9


@dataclasses.dataclass(frozen=True)
class Placement:
	item: typing.Any
	page_index: int
	slot: int
	row: int
	col: int
	x: float
	y: float
	width: float
	height: float


#============================================
def grid_size(config: LayoutConfig) -> tuple[float, float]:
	"""
	Compute the total grid width and height.

	Args:
		config: Layout configuration.

	Returns:
		Tuple of (width, height) in millimetres.
	"""
	width = config.cols * config.label_width + (config.cols - 1) * config.gap_horizontal
	height = config.rows * config.label_height + (config.rows - 1) * config.gap_vertical
	return (width, height)


#============================================
def validate_layout(config: LayoutConfig) -> None:
	"""
	Reject a grid that cannot fit on the page.

	Args:
		config: Layout configuration.
	"""
	for field in ("rows", "cols"):
		value = getattr(config, field)
		if isinstance(value, bool) or not isinstance(value, int) or value < 1:
			raise ConfigurationError(field, f"must be a positive integer, got {value!r}")
	for field in (
		"page_width", "page_height", "label_width", "label_height",
		"gap_horizontal", "gap_vertical", "margin_top", "margin_left",
	):
		value = getattr(config, field)
		if not math.isfinite(value):
			raise ConfigurationError(field, f"must be a finite number, got {value}")
	for field in ("page_width", "page_height", "label_width", "label_height"):
		value = getattr(config, field)
		if value <= 0:
			raise ConfigurationError(field, f"must be positive, got {value}")
	for field in ("gap_horizontal", "gap_vertical"):
		value = getattr(config, field)
		if value < 0:
			raise ConfigurationError(field, f"must not be negative, got {value}")

	width, height = grid_size(config)
	if width > config.page_width + GEOMETRY_EPSILON:
		raise ConfigurationError(
			"cols",
			f"grid width {width:.2f} exceeds page width {config.page_width:.2f}",
		)
	if height > config.page_height + GEOMETRY_EPSILON:
		raise ConfigurationError(
			"rows",
			f"grid height {height:.2f} exceeds page height {config.page_height:.2f}",
		)


#============================================
def compute_margins(config: LayoutConfig) -> tuple[float, float]:
	"""
	Compute the left and top margins.

	Args:
		config: Layout configuration.

	Returns:
		Tuple of (margin_left, margin_top).
	"""
	if not config.auto_margins:
		return (config.margin_left, config.margin_top)
	width, height = grid_size(config)
	margin_left = (config.page_width - width) / 2.0
	margin_top = (config.page_height - height) / 2.0
	return (margin_left, margin_top)


#============================================
def page_count(item_count: int, config: LayoutConfig) -> int:
	"""
	Number of sheets needed for item_count labels.
	"""
	per_page = config.rows * config.cols
	return (item_count + per_page - 1) // per_page


#============================================
def layout_pages(items: list, config: LayoutConfig) -> list[list[Placement]]:
	"""
	Place items row-major across as many pages as needed.

	Coordinates are millimetres from the top-left corner of the page.

	Args:
		items: Ordered items, usually RenderedItem entries.
		config: Layout configuration.

	Returns:
		Pages, each an ordered list of Placement entries.
	"""
	validate_layout(config)
	margin_left, margin_top = compute_margins(config)
	per_page = config.rows * config.cols

	pages: list[list[Placement]] = []
	for index, item in enumerate(items):
		page_index, slot = divmod(index, per_page)
		if slot == 0:
			pages.append([])
		row = slot // config.cols
		col = slot % config.cols
		x = margin_left + col * (config.label_width + config.gap_horizontal)
		y = margin_top + row * (config.label_height + config.gap_vertical)
		pages[page_index].append(
			Placement(
				item=item,
				page_index=page_index,
				slot=slot,
				row=row,
				col=col,
				x=x,
				y=y,
				width=config.label_width,
				height=config.label_height,
			)
		)
	return pages


#============================================
def iter_cells(config: LayoutConfig) -> typing.Iterator[tuple[int, int, float, float]]:
	"""
	Yield every grid cell on one page.

	Yields:
		Tuples of (row, col, x, y) in millimetres from the top-left.
	"""
	margin_left, margin_top = compute_margins(config)
	for row in range(config.rows):
		for col in range(config.cols):
			x = margin_left + col * (config.label_width + config.gap_horizontal)
			y = margin_top + row * (config.label_height + config.gap_vertical)
			yield (row, col, x, y)
