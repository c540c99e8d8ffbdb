"""
Error types raised by the label pipeline.
"""


class RmtLabelError(Exception):
	"""
	Base class for all label pipeline errors.
	"""


class ConfigurationError(RmtLabelError):
	def __init__(self, field: str, message: str) -> None:
		self.field = field
		super().__init__(f"{field}: {message}")


class InvalidRangeError(RmtLabelError):
	def __init__(self, variant_key: object, numbers: list[int], message: str) -> None:
		self.variant_key = variant_key
		self.numbers = list(numbers)
		super().__init__(message)


class IdentifierFormatError(RmtLabelError):
	def __init__(self, text: str, message: str = "malformed identifier") -> None:
		self.text = text
		super().__init__(f"{message}: {text!r}")


class EncodingError(RmtLabelError):
	def __init__(self, identifier: str, cause: BaseException) -> None:
		self.identifier = identifier
		self.cause = cause
		super().__init__(f"Encoding failed for {identifier}: {cause}")


class CompositionFailure(RmtLabelError):
	def __init__(self, identifier: str, cause: BaseException) -> None:
		self.identifier = identifier
		self.cause = cause
		super().__init__(f"Composition failed for {identifier}: {cause}")


class StoreError(RmtLabelError):
	pass


class BatchCancelledError(RmtLabelError):
	def __init__(self, completed: int, total: int) -> None:
		self.completed = completed
		self.total = total
		super().__init__(f"Batch cancelled after {completed}/{total} items")
