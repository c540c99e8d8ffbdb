"""
CLI entry points for allocating, rendering and printing RMT labels.
"""

# Standard Library
import argparse
import datetime
import pathlib
import sys
import time

# PIP3 modules
import PIL.Image

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.allocator
import rmt_label_sheets.compositor
import rmt_label_sheets.config
import rmt_label_sheets.errors
import rmt_label_sheets.identifiers
import rmt_label_sheets.layout
import rmt_label_sheets.pipeline
import rmt_label_sheets.render
import rmt_label_sheets.sequence_store
import rmt_label_sheets.session_log


LayoutConfig = rls.config.LayoutConfig
CompositeConfig = rls.config.CompositeConfig
SheetConfig = rls.config.SheetConfig
VariantKey = rls.identifiers.VariantKey
PrintSession = rls.session_log.PrintSession
RmtLabelError = rls.errors.RmtLabelError
ConfigurationError = rls.errors.ConfigurationError


#============================================
def build_layout_config(args: argparse.Namespace) -> LayoutConfig:
	"""
	Build layout config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		LayoutConfig.
	"""
	return LayoutConfig(
		page_width=args.page_width,
		page_height=args.page_height,
		rows=args.rows,
		cols=args.cols,
		label_width=args.label_width,
		label_height=args.label_height,
		gap_horizontal=args.gap_horizontal,
		gap_vertical=args.gap_vertical,
		auto_margins=args.auto_margins,
		margin_top=args.margin_top,
		margin_left=args.margin_left,
	)


#============================================
def load_logo(path: str | None) -> PIL.Image.Image | None:
	"""
	Load the logo image, if one was given.

	Args:
		path: Logo file path or None.

	Returns:
		Loaded PIL image or None.
	"""
	if path is None:
		return None
	try:
		image = PIL.Image.open(path)
		image.load()
	except OSError as error:
		raise ConfigurationError("logo", f"cannot load {path}: {error}") from error
	return image


#============================================
def build_composite_config(args: argparse.Namespace) -> CompositeConfig:
	"""
	Build composite config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		CompositeConfig.
	"""
	pixel_size = args.symbol_pixel_size
	if pixel_size is None:
		pixel_size = rls.config.derive_symbol_pixel_size(
			min(args.label_width, args.label_height),
			args.symbol_percent,
			args.dpi,
		)
	logo_image = None
	if args.logo_enabled:
		logo_image = load_logo(args.logo_path)
	return CompositeConfig(
		symbol_pixel_size=pixel_size,
		error_correction=args.error_correction,
		logo_enabled=args.logo_enabled,
		logo_image=logo_image,
		logo_size_percent=args.logo_size_percent,
		logo_padding_pixels=args.logo_padding,
	)


#============================================
def build_sheet_config(args: argparse.Namespace) -> SheetConfig:
	return SheetConfig(
		symbol_percent=args.symbol_percent,
		show_caption=args.show_caption,
		caption_size=args.caption_size,
		draw_outlines=args.draw_outlines,
		calibration=args.calibration,
	)


#============================================
def add_variant_arguments(parser: argparse.ArgumentParser) -> None:
	group = parser.add_argument_group("Variant")
	group.add_argument("-k", "--category", dest="category", required=True, help="Category key.")
	group.add_argument("-t", "--product", dest="product", required=True, help="Two letter product code.")
	group.add_argument("-z", "--size", dest="size", required=True, help="One letter size code.")


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Allocate RMT identifiers and print them as QR label sheets.")
	parser.add_argument(
		"-s", "--store", dest="store_path", default=rls.config.DEFAULT_STORE_PATH,
		help="Sequence store JSON path.",
	)
	parser.add_argument(
		"-L", "--session-log", dest="session_log_path", default=rls.config.DEFAULT_SESSION_LOG_PATH,
		help="Print session log path.",
	)
	subparsers = parser.add_subparsers(dest="command", required=True)

	generate = subparsers.add_parser("generate", help="Allocate identifiers and write a label PDF.")
	add_variant_arguments(generate)
	batch_group = generate.add_argument_group("Batch")
	batch_group.add_argument("-q", "--quantity", dest="quantity", type=int, required=True, help="Number of labels.")
	batch_group.add_argument("-p", "--period", dest="period", default=None, help="YYMM period, defaults to this month.")
	batch_group.add_argument("-f", "--start", dest="start", type=int, default=None, help="Explicit first sequence number.")
	batch_group.add_argument(
		"-j", "--concurrency", dest="concurrency", type=int, default=rls.config.DEFAULT_CONCURRENCY,
		help="Symbols rendered per window.",
	)

	output_group = generate.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")

	layout_group = generate.add_argument_group("Layout (millimetres)")
	layout_group.add_argument("--page-width", dest="page_width", type=float, default=rls.config.DEFAULT_PAGE_WIDTH)
	layout_group.add_argument("--page-height", dest="page_height", type=float, default=rls.config.DEFAULT_PAGE_HEIGHT)
	layout_group.add_argument("--rows", dest="rows", type=int, default=rls.config.ROWS)
	layout_group.add_argument("--cols", dest="cols", type=int, default=rls.config.COLUMNS)
	layout_group.add_argument("--label-width", dest="label_width", type=float, default=rls.config.DEFAULT_LABEL_WIDTH)
	layout_group.add_argument("--label-height", dest="label_height", type=float, default=rls.config.DEFAULT_LABEL_HEIGHT)
	layout_group.add_argument("--gap-horizontal", dest="gap_horizontal", type=float, default=rls.config.DEFAULT_H_GAP)
	layout_group.add_argument("--gap-vertical", dest="gap_vertical", type=float, default=rls.config.DEFAULT_V_GAP)
	layout_group.add_argument("-a", "--auto-margins", dest="auto_margins", action="store_true", help="Center the grid on the page.")
	layout_group.add_argument("-A", "--no-auto-margins", dest="auto_margins", action="store_false", help="Use explicit margins.")
	layout_group.add_argument("--margin-top", dest="margin_top", type=float, default=0.0)
	layout_group.add_argument("--margin-left", dest="margin_left", type=float, default=0.0)

	symbol_group = generate.add_argument_group("Symbol")
	symbol_group.add_argument(
		"-e", "--error-correction", dest="error_correction", default=rls.config.DEFAULT_ERROR_CORRECTION,
		choices=rls.config.ERROR_CORRECTION_LEVELS, help="QR error correction level.",
	)
	symbol_group.add_argument("--symbol-percent", dest="symbol_percent", type=float, default=rls.config.DEFAULT_SYMBOL_PERCENT)
	symbol_group.add_argument("--dpi", dest="dpi", type=int, default=rls.config.DEFAULT_DPI)
	symbol_group.add_argument("--symbol-pixels", dest="symbol_pixel_size", type=int, default=None, help="Override raster size.")
	symbol_group.add_argument("-i", "--logo", dest="logo_path", default=None, help="Logo image path.")
	symbol_group.add_argument("-g", "--with-logo", dest="logo_enabled", action="store_true", help="Composite the logo.")
	symbol_group.add_argument("-G", "--no-logo", dest="logo_enabled", action="store_false", help="Skip the logo.")
	symbol_group.add_argument("--logo-percent", dest="logo_size_percent", type=float, default=rls.config.DEFAULT_LOGO_SIZE_PERCENT)
	symbol_group.add_argument("--logo-padding", dest="logo_padding", type=int, default=rls.config.DEFAULT_LOGO_PADDING)

	sheet_group = generate.add_argument_group("Sheet")
	sheet_group.add_argument("-c", "--caption", dest="show_caption", action="store_true", help="Print the identifier under each code.")
	sheet_group.add_argument("-C", "--no-caption", dest="show_caption", action="store_false", help="Omit captions.")
	sheet_group.add_argument("--caption-size", dest="caption_size", type=float, default=rls.config.DEFAULT_CAPTION_SIZE)
	sheet_group.add_argument("-d", "--draw-outlines", dest="draw_outlines", action="store_true", help="Draw label outlines.")
	sheet_group.add_argument("-D", "--no-draw-outlines", dest="draw_outlines", action="store_false", help="Disable label outlines.")
	sheet_group.add_argument("-b", "--calibration", dest="calibration", action="store_true", help="Add a calibration page.")
	sheet_group.add_argument("-B", "--no-calibration", dest="calibration", action="store_false", help="Disable calibration page.")

	generate.set_defaults(
		auto_margins=True,
		logo_enabled=rls.config.DEFAULT_LOGO_ENABLED,
		show_caption=True,
		draw_outlines=False,
		calibration=False,
	)

	gaps = subparsers.add_parser("gaps", help="List unissued numbers below the last issued id.")
	add_variant_arguments(gaps)

	subparsers.add_parser("history", help="List printed batches.")

	args = parser.parse_args(argv)
	return args


#============================================
def build_variant_key(args: argparse.Namespace) -> VariantKey:
	return VariantKey(args.category, args.product.upper(), args.size.upper())


#============================================
def format_numbers(numbers: list[int]) -> str:
	"""
	Collapse sorted numbers into a compact range string like "3, 5-7".
	"""
	parts: list[str] = []
	for start, end in rls.sequence_store.merge_ranges([(number, number) for number in numbers]):
		if start == end:
			parts.append(str(start))
		else:
			parts.append(f"{start}-{end}")
	return ", ".join(parts)


#============================================
def run_generate(args: argparse.Namespace) -> None:
	"""
	Allocate identifiers, render symbols, and write the label PDF.

	Args:
		args: Parsed argparse namespace.
	"""
	variant_key = build_variant_key(args)
	period_tag = args.period or datetime.date.today().strftime("%y%m")
	output_path = pathlib.Path(args.output_path)

	print("RMT label pipeline")
	print(f"Variant: {variant_key.storage_key()}")
	print(f"Period: {period_tag}")
	print(f"Output PDF: {output_path}")

	layout_config = build_layout_config(args)
	rls.layout.validate_layout(layout_config)
	composite_config = build_composite_config(args)
	rls.compositor.validate_composite_config(composite_config)
	sheet_config = build_sheet_config(args)

	warning = rls.compositor.logo_coverage_warning(composite_config)
	if warning:
		print(f"Warning: {warning}")
	if composite_config.logo_enabled and composite_config.logo_image is None:
		print("Logo: none configured, printing plain symbols")

	store = rls.sequence_store.JsonSequenceStore(args.store_path)
	allocator = rls.allocator.IdentifierAllocator(store)

	start_time = time.perf_counter()
	started_at = datetime.datetime.now()
	identifiers = allocator.allocate(variant_key, period_tag, args.quantity, args.start)
	if not identifiers:
		print("Nothing to print.")
		return
	print(f"Identifiers allocated: {identifiers[0]} .. {identifiers[-1]} ({len(identifiers)})")

	render_start = time.perf_counter()

	def report(completed: int, total: int) -> None:
		rls.render.print_progress("Symbols", completed, total)

	items = rls.pipeline.render_batch(
		identifiers,
		composite_config,
		args.concurrency,
		on_progress=report,
	)
	print()
	render_end = time.perf_counter()

	layout_start = time.perf_counter()
	pages = rls.layout.layout_pages(items, layout_config)
	page_count = rls.render.write_pdf(pages, output_path, layout_config, sheet_config)
	layout_end = time.perf_counter()
	print(f"Pages written: {page_count}")

	session = PrintSession(
		identifiers=identifiers,
		started_at=started_at,
		completed_at=datetime.datetime.now(),
		page_count=page_count,
		variant=variant_key.storage_key(),
		period_tag=period_tag,
	)
	rls.session_log.PrintSessionLog(args.session_log_path).append(session)

	if args.manifest_path:
		manifest_path = pathlib.Path(args.manifest_path)
		rls.render.write_manifest(manifest_path, session, layout_config, composite_config, sheet_config)
		print(f"Manifest written: {manifest_path}")

	gaps = allocator.gap_report(variant_key)
	if gaps:
		print(f"Unissued numbers for {variant_key.storage_key()}: {format_numbers(gaps)}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: render={:.2f}s layout={:.2f}s total={:.2f}s".format(
			render_end - render_start,
			layout_end - layout_start,
			total_time,
		)
	)


#============================================
def run_gaps(args: argparse.Namespace) -> None:
	variant_key = build_variant_key(args)
	store = rls.sequence_store.JsonSequenceStore(args.store_path)
	allocator = rls.allocator.IdentifierAllocator(store)
	record = allocator.record_for(variant_key)
	gaps = allocator.gap_report(variant_key)
	print(f"Variant: {variant_key.storage_key()}")
	print(f"Last id: {record.last_id} (period {record.period_tag or '-'})")
	print(f"Next id: {record.last_id + 1}")
	if gaps:
		print(f"Unissued: {format_numbers(gaps)}")
	else:
		print("Unissued: none")


#============================================
def run_history(args: argparse.Namespace) -> None:
	sessions = rls.session_log.PrintSessionLog(args.session_log_path).load()
	print(f"Print sessions: {len(sessions)}")
	for session in sessions:
		first = session.identifiers[0] if session.identifiers else "-"
		last = session.identifiers[-1] if session.identifiers else "-"
		print(
			f"{session.completed_at.isoformat(timespec='seconds')}\t{session.count}\t"
			f"{session.page_count}p\t{first} .. {last}"
		)


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	commands = {
		"generate": run_generate,
		"gaps": run_gaps,
		"history": run_history,
	}
	try:
		commands[args.command](args)
	except RmtLabelError as error:
		print()
		print(f"Error: {error}", file=sys.stderr)
		raise SystemExit(1) from error
