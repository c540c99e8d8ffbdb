"""
PDF page writing for laid out label sheets.
"""

# Standard Library
import io
import json
import pathlib

# PIP3 modules
import pypdf
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.config
import rmt_label_sheets.errors
import rmt_label_sheets.layout
import rmt_label_sheets.session_log


LayoutConfig = rls.config.LayoutConfig
CompositeConfig = rls.config.CompositeConfig
SheetConfig = rls.config.SheetConfig
Placement = rls.layout.Placement
PrintSession = rls.session_log.PrintSession
ConfigurationError = rls.errors.ConfigurationError

mm_to_points = rls.config.mm_to_points
DEFAULT_FONT_REGULAR = rls.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = rls.config.DEFAULT_FONT_BOLD
CAPTION_GAP = rls.config.CAPTION_GAP
PROGRESS_BAR_WIDTH = rls.config.PROGRESS_BAR_WIDTH
MIN_CAPTION_SIZE = 3.0


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def page_size_points(config: LayoutConfig) -> tuple[float, float]:
	return (mm_to_points(config.page_width), mm_to_points(config.page_height))


#============================================
def cell_origin_points(
	x: float,
	y: float,
	label_height: float,
	page_height_pt: float,
) -> tuple[float, float]:
	"""
	Convert a top-left millimetre position into a bottom-left PDF origin.

	Args:
		x: Cell x in millimetres from the left edge.
		y: Cell y in millimetres from the top edge.
		label_height: Label height in millimetres.
		page_height_pt: Page height in points.

	Returns:
		Tuple of (x, y) in points.
	"""
	cell_x = mm_to_points(x)
	cell_y = page_height_pt - mm_to_points(y + label_height)
	return (cell_x, cell_y)


#============================================
def fit_caption_size(text: str, font_name: str, font_size: float, max_width: float) -> float:
	"""
	Shrink a caption font size until the text fits the label width.
	"""
	width = reportlab.pdfbase.pdfmetrics.stringWidth(text, font_name, font_size)
	if width <= max_width or width <= 0:
		return font_size
	return max(MIN_CAPTION_SIZE, font_size * max_width / width)


#============================================
def draw_placement(
	pdf: reportlab.pdfgen.canvas.Canvas,
	placement: Placement,
	page_height_pt: float,
	sheet_config: SheetConfig,
) -> None:
	"""
	Draw one rendered item inside its label cell.

	Args:
		pdf: ReportLab canvas.
		placement: Placement holding a RenderedItem.
		page_height_pt: Page height in points.
		sheet_config: Sheet drawing options.
	"""
	cell_x, cell_y = cell_origin_points(placement.x, placement.y, placement.height, page_height_pt)
	cell_width = mm_to_points(placement.width)
	cell_height = mm_to_points(placement.height)
	symbol_size = min(cell_width, cell_height) * sheet_config.symbol_percent / 100.0

	item = placement.item
	caption = ""
	caption_size = 0.0
	block_height = symbol_size
	if sheet_config.show_caption:
		caption = item.identifier
		caption_size = fit_caption_size(caption, DEFAULT_FONT_BOLD, sheet_config.caption_size, cell_width)
		block_height += CAPTION_GAP + caption_size

	offset_y = max(0.0, (cell_height - block_height) / 2.0)
	symbol_x = cell_x + (cell_width - symbol_size) / 2.0
	symbol_y = cell_y + cell_height - offset_y - symbol_size
	pdf.drawImage(
		reportlab.lib.utils.ImageReader(item.raster),
		symbol_x,
		symbol_y,
		width=symbol_size,
		height=symbol_size,
		mask=None,
		preserveAspectRatio=False,
		anchor="sw",
	)
	if caption:
		pdf.setFillColorRGB(0.0, 0.0, 0.0)
		pdf.setFont(DEFAULT_FONT_BOLD, caption_size)
		text_y = symbol_y - CAPTION_GAP - caption_size
		pdf.drawCentredString(cell_x + cell_width / 2.0, text_y, caption)


#============================================
def draw_label_outlines(pdf: reportlab.pdfgen.canvas.Canvas, config: LayoutConfig) -> None:
	"""
	Draw label outlines on the current page.

	Args:
		pdf: ReportLab canvas.
		config: Layout configuration.
	"""
	_page_width, page_height = page_size_points(config)
	pdf.setLineWidth(0.3)
	pdf.setStrokeColorRGB(0.7, 0.7, 0.7)
	label_width = mm_to_points(config.label_width)
	label_height = mm_to_points(config.label_height)
	for _row, _col, x, y in rls.layout.iter_cells(config):
		cell_x, cell_y = cell_origin_points(x, y, config.label_height, page_height)
		pdf.rect(cell_x, cell_y, label_width, label_height, stroke=1, fill=0)


#============================================
def build_outline_overlay(config: LayoutConfig) -> pypdf.PageObject:
	"""
	Build a PDF overlay page with label outlines.

	Args:
		config: Layout configuration.

	Returns:
		PDF page object.
	"""
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=page_size_points(config))
	draw_label_outlines(pdf, config)
	pdf.save()
	buffer.seek(0)
	reader = pypdf.PdfReader(buffer)
	return reader.pages[0]


#============================================
def build_calibration_page(config: LayoutConfig) -> pypdf.PageObject:
	"""
	Build a calibration page with cell boxes, corner crosshairs and a 10 mm ruler.

	Args:
		config: Layout configuration.

	Returns:
		PDF page object.
	"""
	buffer = io.BytesIO()
	_page_width, page_height = page_size_points(config)
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=page_size_points(config))
	draw_label_outlines(pdf, config)

	pdf.setLineWidth(0.6)
	pdf.setStrokeColorRGB(0.0, 0.0, 0.0)
	pdf.setFillColorRGB(0.0, 0.0, 0.0)
	pdf.setFont(DEFAULT_FONT_REGULAR, 8)

	corners = {(0, 0), (0, config.cols - 1), (config.rows - 1, 0), (config.rows - 1, config.cols - 1)}
	label_width = mm_to_points(config.label_width)
	label_height = mm_to_points(config.label_height)
	for row, col, x, y in rls.layout.iter_cells(config):
		if (row, col) not in corners:
			continue
		cell_x, cell_y = cell_origin_points(x, y, config.label_height, page_height)
		center_x = cell_x + label_width / 2.0
		center_y = cell_y + label_height / 2.0
		size = 6.0
		pdf.line(center_x - size, center_y, center_x + size, center_y)
		pdf.line(center_x, center_y - size, center_x, center_y + size)

	margin_left, margin_top = rls.layout.compute_margins(config)
	ruler_x = mm_to_points(margin_left)
	ruler_y = page_height - mm_to_points(margin_top) + 6.0
	pdf.line(ruler_x, ruler_y, ruler_x + mm_to_points(10.0), ruler_y)
	pdf.drawString(ruler_x, ruler_y + 4.0, "10 mm")

	pdf.save()
	buffer.seek(0)
	reader = pypdf.PdfReader(buffer)
	return reader.pages[0]


#============================================
def write_pdf(
	pages: list[list[Placement]],
	output_path: pathlib.Path,
	layout_config: LayoutConfig,
	sheet_config: SheetConfig,
) -> int:
	"""
	Write laid out pages to a PDF file.

	Args:
		pages: Pages of placements holding RenderedItem entries.
		output_path: Output PDF path.
		layout_config: Layout configuration.
		sheet_config: Sheet drawing options.

	Returns:
		Number of pages written.
	"""
	if not pages:
		raise ConfigurationError("pages", "no label pages to write")

	buffer = io.BytesIO()
	page_size = page_size_points(layout_config)
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=page_size)
	for page in pages:
		for placement in page:
			draw_placement(pdf, placement, page_size[1], sheet_config)
		pdf.showPage()
	pdf.save()
	buffer.seek(0)

	reader = pypdf.PdfReader(buffer)
	writer = pypdf.PdfWriter()
	if sheet_config.calibration:
		writer.add_page(build_calibration_page(layout_config))

	outline_page = None
	if sheet_config.draw_outlines:
		outline_page = build_outline_overlay(layout_config)
	for page in reader.pages:
		if outline_page is not None:
			page.merge_page(outline_page)
		writer.add_page(page)

	output_path.parent.mkdir(parents=True, exist_ok=True)
	writer.write(str(output_path))
	return len(writer.pages)


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	session: PrintSession,
	layout_config: LayoutConfig,
	composite_config: CompositeConfig,
	sheet_config: SheetConfig,
) -> None:
	"""
	Write a manifest JSON file describing one printed batch.

	Args:
		manifest_path: Output path.
		session: Completed print session.
		layout_config: Layout configuration.
		composite_config: Composite configuration.
		sheet_config: Sheet drawing options.
	"""
	margin_left, margin_top = rls.layout.compute_margins(layout_config)
	data = {
		"session": rls.session_log.session_to_dict(session),
		"labels_per_page": layout_config.rows * layout_config.cols,
		"layout": {
			"page_width": layout_config.page_width,
			"page_height": layout_config.page_height,
			"rows": layout_config.rows,
			"cols": layout_config.cols,
			"label_width": layout_config.label_width,
			"label_height": layout_config.label_height,
			"gap_horizontal": layout_config.gap_horizontal,
			"gap_vertical": layout_config.gap_vertical,
			"auto_margins": layout_config.auto_margins,
			"margin_left": margin_left,
			"margin_top": margin_top,
		},
		"symbol": {
			"pixel_size": composite_config.symbol_pixel_size,
			"error_correction": composite_config.error_correction,
			"logo_enabled": composite_config.logo_enabled and composite_config.logo_image is not None,
			"logo_size_percent": composite_config.logo_size_percent,
			"logo_padding_pixels": composite_config.logo_padding_pixels,
		},
		"sheet": {
			"symbol_percent": sheet_config.symbol_percent,
			"show_caption": sheet_config.show_caption,
			"draw_outlines": sheet_config.draw_outlines,
			"calibration": sheet_config.calibration,
		},
	}
	manifest_path.parent.mkdir(parents=True, exist_ok=True)
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
