"""
Identifier allocation per product variant.
"""

# Standard Library
import threading

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.config
import rmt_label_sheets.errors
import rmt_label_sheets.identifiers
import rmt_label_sheets.sequence_store


InvalidRangeError = rls.errors.InvalidRangeError
StoreError = rls.errors.StoreError
VariantKey = rls.identifiers.VariantKey
SequenceRecord = rls.sequence_store.SequenceRecord
SequenceStore = rls.sequence_store.SequenceStore


class IdentifierAllocator:
	"""
	Hand out identifier strings and record which numbers were issued.

	Numbering is continuous per VariantKey; the period tag is only embedded
	in the identifier text and remembered on the record. Every allocation
	holds a per-variant lock for its whole read-check-write cycle.
	"""

	def __init__(
		self,
		store: SequenceStore,
		prefix: str = rls.config.IDENTIFIER_PREFIX,
		width: int = rls.config.SEQUENCE_WIDTH,
	) -> None:
		self.store = store
		self.prefix = prefix
		self.width = width
		self._locks: dict[VariantKey, threading.Lock] = {}
		self._locks_guard = threading.Lock()

	def _lock_for(self, variant_key: VariantKey) -> threading.Lock:
		with self._locks_guard:
			lock = self._locks.get(variant_key)
			if lock is None:
				lock = threading.Lock()
				self._locks[variant_key] = lock
			return lock

	def _load_record(self, variant_key: VariantKey) -> SequenceRecord:
		try:
			record = self.store.get(variant_key)
		except StoreError:
			raise
		except Exception as error:
			raise StoreError(f"Sequence store lookup failed for {variant_key}: {error}") from error
		if record is None:
			record = SequenceRecord(variant_key=variant_key)
		return record

	#============================================
	def allocate(
		self,
		variant_key: VariantKey,
		period_tag: str,
		quantity: int,
		explicit_start: int | None = None,
	) -> list[str]:
		"""
		Allocate a run of identifiers.

		Args:
			variant_key: Variant namespace.
			period_tag: YYMM period embedded in each identifier.
			quantity: Number of identifiers, 0 is a no-op.
			explicit_start: Optional first sequence number.

		Returns:
			Ordered identifier strings.
		"""
		if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
			raise InvalidRangeError(variant_key, [], f"Quantity must be a non-negative integer, got {quantity!r}")
		if quantity == 0:
			return []
		if explicit_start is not None and (
			isinstance(explicit_start, bool) or not isinstance(explicit_start, int) or explicit_start < 1
		):
			raise InvalidRangeError(variant_key, [], f"Start must be an integer of 1 or higher, got {explicit_start!r}")

		with self._lock_for(variant_key):
			record = self._load_record(variant_key)
			if explicit_start is None:
				start = record.last_id + 1
			else:
				start = explicit_start
			end = start + quantity - 1

			overlap = rls.sequence_store.overlapping_numbers(record.issued, start, end)
			if overlap:
				shown = ", ".join(str(number) for number in overlap[:10])
				if len(overlap) > 10:
					shown += ", ..."
				raise InvalidRangeError(
					variant_key,
					overlap,
					f"Numbers already issued for {variant_key.storage_key()}: {shown}",
				)

			identifiers = [
				rls.identifiers.format_identifier(
					variant_key.product_code,
					variant_key.size,
					period_tag,
					number,
					prefix=self.prefix,
					width=self.width,
				)
				for number in range(start, end + 1)
			]

			updated = SequenceRecord(
				variant_key=variant_key,
				last_id=max(record.last_id, end),
				period_tag=period_tag,
				issued=rls.sequence_store.merge_ranges(record.issued + [(start, end)]),
			)
			try:
				self.store.put(variant_key, updated)
			except StoreError:
				raise
			except Exception as error:
				raise StoreError(f"Sequence store update failed for {variant_key}: {error}") from error
		return identifiers

	#============================================
	def gap_report(self, variant_key: VariantKey) -> list[int]:
		"""
		List sequence numbers below the last issued id that were never issued.

		Args:
			variant_key: Variant namespace.

		Returns:
			Sorted missing sequence numbers.
		"""
		with self._lock_for(variant_key):
			record = self._load_record(variant_key)
		return rls.sequence_store.find_gaps(record.issued, record.last_id)

	#============================================
	def next_sequence(self, variant_key: VariantKey) -> int:
		"""
		Return the number the next automatic allocation would start at.
		"""
		with self._lock_for(variant_key):
			record = self._load_record(variant_key)
		return record.last_id + 1

	def record_for(self, variant_key: VariantKey) -> SequenceRecord:
		with self._lock_for(variant_key):
			return self._load_record(variant_key)
