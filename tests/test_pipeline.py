import threading
import time

import PIL.Image
import pytest

import rmt_label_sheets.config
import rmt_label_sheets.errors
import rmt_label_sheets.pipeline


CONFIG = rmt_label_sheets.config.CompositeConfig(symbol_pixel_size=21, logo_enabled=False)


#============================================
def build_identifiers(count: int) -> list[str]:
	return [f"RMT-REL-2501-{number:03d}" for number in range(1, count + 1)]


#============================================
def tagged_compose(text: str, config: rmt_label_sheets.config.CompositeConfig) -> PIL.Image.Image:
	"""
	Compose stand-in whose later items finish first.
	"""
	number = int(text.rsplit("-", 1)[1])
	time.sleep(0.002 * ((10 - number) % 5))
	image = PIL.Image.new("L", (config.symbol_pixel_size, config.symbol_pixel_size), number)
	image.info["source"] = text
	return image


#============================================
def test_render_preserves_order_with_variable_latency() -> None:
	"""
	Output order equals input order even when later items finish first.
	"""
	identifiers = build_identifiers(12)
	items = rmt_label_sheets.pipeline.render_batch(identifiers, CONFIG, 4, compose=tagged_compose)
	assert [item.identifier for item in items] == identifiers
	for number, item in enumerate(items, start=1):
		assert item.raster.getpixel((0, 0)) == number


#============================================
def test_progress_reported_per_window() -> None:
	"""
	Progress is monotonic, per window, and ends at the total.
	"""
	calls: list[tuple[int, int]] = []
	identifiers = build_identifiers(10)
	rmt_label_sheets.pipeline.render_batch(
		identifiers,
		CONFIG,
		4,
		on_progress=lambda completed, total: calls.append((completed, total)),
		compose=tagged_compose,
	)
	assert calls == [(4, 10), (8, 10), (10, 10)]


#============================================
def test_empty_batch() -> None:
	calls: list[tuple[int, int]] = []
	items = rmt_label_sheets.pipeline.render_batch(
		[], CONFIG, 3, on_progress=lambda completed, total: calls.append((completed, total)),
	)
	assert items == []
	assert calls == [(0, 0)]


#============================================
def test_real_compose_renders_symbols() -> None:
	"""
	The default compose function renders rasters of the configured size.
	"""
	identifiers = build_identifiers(3)
	items = rmt_label_sheets.pipeline.render_batch(identifiers, CONFIG, 2)
	assert [item.raster.size for item in items] == [(21, 21)] * 3


#============================================
def test_failure_aborts_batch() -> None:
	"""
	One failing item aborts the batch with CompositionFailure and no results.
	"""
	calls: list[tuple[int, int]] = []

	def failing_compose(text: str, config) -> PIL.Image.Image:
		if text.endswith("-006"):
			raise ValueError("bad raster")
		return tagged_compose(text, config)

	with pytest.raises(rmt_label_sheets.errors.CompositionFailure) as info:
		rmt_label_sheets.pipeline.render_batch(
			build_identifiers(9),
			CONFIG,
			4,
			on_progress=lambda completed, total: calls.append((completed, total)),
			compose=failing_compose,
		)
	assert info.value.identifier == "RMT-REL-2501-006"
	assert isinstance(info.value.cause, ValueError)
	assert calls == [(4, 9)]


#============================================
def test_encoding_error_wrapped_with_identifier() -> None:
	def encoding_failure(text: str, config) -> PIL.Image.Image:
		raise rmt_label_sheets.errors.EncodingError(text, ValueError("data too long"))

	with pytest.raises(rmt_label_sheets.errors.CompositionFailure) as info:
		rmt_label_sheets.pipeline.render_batch(build_identifiers(2), CONFIG, 2, compose=encoding_failure)
	assert info.value.identifier == "RMT-REL-2501-001"
	assert isinstance(info.value.cause, rmt_label_sheets.errors.EncodingError)


#============================================
def test_cancellation_stops_before_next_window() -> None:
	"""
	Setting the cancel event stops scheduling further windows.
	"""
	cancel = threading.Event()
	calls: list[tuple[int, int]] = []

	def on_progress(completed: int, total: int) -> None:
		calls.append((completed, total))
		cancel.set()

	with pytest.raises(rmt_label_sheets.errors.BatchCancelledError) as info:
		rmt_label_sheets.pipeline.render_batch(
			build_identifiers(9),
			CONFIG,
			3,
			on_progress=on_progress,
			cancel_event=cancel,
			compose=tagged_compose,
		)
	assert info.value.completed == 3
	assert info.value.total == 9
	assert calls == [(3, 9)]


#============================================
@pytest.mark.parametrize("limit", [0, -2, True])
def test_invalid_concurrency_limit(limit) -> None:
	with pytest.raises(rmt_label_sheets.errors.ConfigurationError):
		rmt_label_sheets.pipeline.render_batch(build_identifiers(2), CONFIG, limit)


#============================================
def test_iter_windows() -> None:
	windows = list(rmt_label_sheets.pipeline.iter_windows(7, 3))
	assert [list(window) for window in windows] == [[0, 1, 2], [3, 4, 5], [6]]
