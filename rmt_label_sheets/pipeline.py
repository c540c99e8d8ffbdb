"""
Batch rendering of identifiers into symbol rasters.
"""

# Standard Library
import concurrent.futures
import dataclasses
import threading
import typing

# PIP3 modules
import PIL.Image

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.compositor
import rmt_label_sheets.config
import rmt_label_sheets.errors


CompositeConfig = rls.config.CompositeConfig
ConfigurationError = rls.errors.ConfigurationError
CompositionFailure = rls.errors.CompositionFailure
BatchCancelledError = rls.errors.BatchCancelledError

ProgressCallback = typing.Callable[[int, int], None]
ComposeFunction = typing.Callable[[str, CompositeConfig], PIL.Image.Image]


@dataclasses.dataclass(frozen=True)
class RenderedItem:
	identifier: str
	raster: PIL.Image.Image


#============================================
def iter_windows(count: int, size: int) -> typing.Iterator[range]:
	"""
	Yield contiguous index windows.

	Args:
		count: Total item count.
		size: Window size.

	Yields:
		Index ranges covering 0..count-1 in order.
	"""
	for start in range(0, count, size):
		yield range(start, min(start + size, count))


#============================================
def render_batch(
	identifiers: list[str],
	config: CompositeConfig,
	concurrency_limit: int = rls.config.DEFAULT_CONCURRENCY,
	on_progress: ProgressCallback | None = None,
	cancel_event: threading.Event | None = None,
	compose: ComposeFunction = rls.compositor.compose_symbol,
) -> list[RenderedItem]:
	"""
	Render identifiers in concurrent windows, keeping input order.

	Args:
		identifiers: Ordered identifier strings.
		config: Composite configuration.
		concurrency_limit: Items rendered together in one window.
		on_progress: Called with (completed, total) after each window.
		cancel_event: When set, no further windows are scheduled.
		compose: Function rendering one identifier.

	Returns:
		RenderedItem list in the same order as identifiers.
	"""
	if isinstance(concurrency_limit, bool) or not isinstance(concurrency_limit, int) or concurrency_limit < 1:
		raise ConfigurationError("concurrency_limit", f"must be a positive integer, got {concurrency_limit!r}")

	total = len(identifiers)
	if total == 0:
		if on_progress is not None:
			on_progress(0, 0)
		return []

	results: list[PIL.Image.Image | None] = [None] * total
	completed = 0
	with concurrent.futures.ThreadPoolExecutor(max_workers=concurrency_limit) as executor:
		for window in iter_windows(total, concurrency_limit):
			if cancel_event is not None and cancel_event.is_set():
				raise BatchCancelledError(completed, total)
			futures = {
				executor.submit(compose, identifiers[index], config): index
				for index in window
			}
			failure: tuple[int, BaseException] | None = None
			for future in concurrent.futures.as_completed(futures):
				index = futures[future]
				try:
					results[index] = future.result()
				except Exception as error:
					if failure is None or index < failure[0]:
						failure = (index, error)
			if failure is not None:
				index, error = failure
				if isinstance(error, CompositionFailure):
					raise error
				raise CompositionFailure(identifiers[index], error) from error
			completed += len(window)
			if on_progress is not None:
				on_progress(completed, total)

	return [
		RenderedItem(identifier=identifier, raster=raster)
		for identifier, raster in zip(identifiers, results)
	]
