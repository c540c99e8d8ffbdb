"""
Sequence records and their backing stores.
"""

# Standard Library
import dataclasses
import json
import os
import pathlib
import tempfile
import threading

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.errors
import rmt_label_sheets.identifiers


StoreError = rls.errors.StoreError
VariantKey = rls.identifiers.VariantKey


@dataclasses.dataclass
class SequenceRecord:
	variant_key: VariantKey
	last_id: int = 0
	period_tag: str = ""
	issued: list[tuple[int, int]] = dataclasses.field(default_factory=list)


#============================================
def merge_ranges(ranges: list[tuple[int, int]]) -> list[tuple[int, int]]:
	"""
	Sort and merge inclusive ranges, joining adjacent ones.

	Args:
		ranges: Inclusive (start, end) ranges.

	Returns:
		Sorted, non-overlapping ranges.
	"""
	merged: list[tuple[int, int]] = []
	for start, end in sorted(ranges):
		if merged and start <= merged[-1][1] + 1:
			prior_start, prior_end = merged[-1]
			merged[-1] = (prior_start, max(prior_end, end))
			continue
		merged.append((start, end))
	return merged


#============================================
def overlapping_numbers(
	ranges: list[tuple[int, int]],
	start: int,
	end: int,
) -> list[int]:
	"""
	List the numbers in [start, end] already covered by ranges.

	Args:
		ranges: Issued ranges.
		start: First requested number.
		end: Last requested number.

	Returns:
		Sorted overlapping numbers.
	"""
	overlap: list[int] = []
	for range_start, range_end in ranges:
		low = max(start, range_start)
		high = min(end, range_end)
		if low <= high:
			overlap.extend(range(low, high + 1))
	return sorted(overlap)


#============================================
def find_gaps(ranges: list[tuple[int, int]], last_id: int) -> list[int]:
	"""
	List numbers in [1, last_id] absent from the issued ranges.

	Args:
		ranges: Issued ranges.
		last_id: Highest issued number.

	Returns:
		Sorted missing numbers.
	"""
	gaps: list[int] = []
	expected = 1
	for start, end in merge_ranges(ranges):
		if start > last_id:
			break
		if start > expected:
			gaps.extend(range(expected, start))
		expected = max(expected, end + 1)
	if expected <= last_id:
		gaps.extend(range(expected, last_id + 1))
	return gaps


#============================================
def record_to_dict(record: SequenceRecord) -> dict:
	return {
		"category_key": record.variant_key.category_key,
		"product_code": record.variant_key.product_code,
		"size": record.variant_key.size,
		"last_id": record.last_id,
		"period_tag": record.period_tag,
		"issued": [[start, end] for start, end in record.issued],
	}


#============================================
def record_from_dict(data: dict) -> SequenceRecord:
	try:
		variant_key = VariantKey(
			str(data["category_key"]),
			str(data["product_code"]),
			str(data["size"]),
		)
		last_id = int(data["last_id"])
		issued = [(int(pair[0]), int(pair[1])) for pair in data.get("issued", [])]
	except (KeyError, TypeError, ValueError, IndexError) as error:
		raise StoreError(f"Corrupt sequence record: {error}") from error
	if last_id < 0:
		raise StoreError(f"Corrupt sequence record: negative last_id {last_id}")
	return SequenceRecord(
		variant_key=variant_key,
		last_id=last_id,
		period_tag=str(data.get("period_tag", "")),
		issued=merge_ranges(issued),
	)


class SequenceStore:
	"""
	Key-value store of sequence records keyed by VariantKey.
	"""

	def get(self, variant_key: VariantKey) -> SequenceRecord | None:
		raise NotImplementedError

	def put(self, variant_key: VariantKey, record: SequenceRecord) -> None:
		raise NotImplementedError

	def keys(self) -> list[VariantKey]:
		raise NotImplementedError


class MemorySequenceStore(SequenceStore):
	def __init__(self) -> None:
		self._records: dict[str, dict] = {}

	def get(self, variant_key: VariantKey) -> SequenceRecord | None:
		data = self._records.get(variant_key.storage_key())
		if data is None:
			return None
		return record_from_dict(data)

	def put(self, variant_key: VariantKey, record: SequenceRecord) -> None:
		self._records[variant_key.storage_key()] = record_to_dict(record)

	def keys(self) -> list[VariantKey]:
		return [
			rls.identifiers.variant_from_storage_key(key)
			for key in sorted(self._records)
		]


class JsonSequenceStore(SequenceStore):
	"""
	Sequence store backed by a single JSON document.

	Writes go to a temporary file in the same directory and are moved into
	place with os.replace, so a crash never leaves a half-written document.
	"""

	def __init__(self, path: pathlib.Path | str) -> None:
		self.path = pathlib.Path(path)
		self._io_lock = threading.Lock()

	def _load(self) -> dict[str, dict]:
		if not self.path.exists():
			return {}
		try:
			with self.path.open("r", encoding="utf-8") as handle:
				data = json.load(handle)
		except (OSError, json.JSONDecodeError) as error:
			raise StoreError(f"Cannot read sequence store {self.path}: {error}") from error
		if not isinstance(data, dict) or not isinstance(data.get("records", {}), dict):
			raise StoreError(f"Unexpected sequence store layout in {self.path}")
		return data.get("records", {})

	def _save(self, records: dict[str, dict]) -> None:
		directory = self.path.parent
		temp_name = None
		try:
			directory.mkdir(parents=True, exist_ok=True)
			handle, temp_name = tempfile.mkstemp(dir=directory, suffix=".tmp")
			with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
				json.dump({"records": records}, temp_file, indent=2, sort_keys=True)
			os.replace(temp_name, self.path)
		except (OSError, TypeError, ValueError) as error:
			raise StoreError(f"Cannot write sequence store {self.path}: {error}") from error
		finally:
			if temp_name is not None and os.path.exists(temp_name):
				os.unlink(temp_name)

	def get(self, variant_key: VariantKey) -> SequenceRecord | None:
		with self._io_lock:
			data = self._load().get(variant_key.storage_key())
		if data is None:
			return None
		return record_from_dict(data)

	def put(self, variant_key: VariantKey, record: SequenceRecord) -> None:
		with self._io_lock:
			records = self._load()
			records[variant_key.storage_key()] = record_to_dict(record)
			self._save(records)

	def keys(self) -> list[VariantKey]:
		with self._io_lock:
			records = self._load()
		return [rls.identifiers.variant_from_storage_key(key) for key in sorted(records)]
