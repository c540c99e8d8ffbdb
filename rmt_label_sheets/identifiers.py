"""
Identifier formatting and parsing.
"""

# Standard Library
import dataclasses
import re

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.config
import rmt_label_sheets.errors


IdentifierFormatError = rls.errors.IdentifierFormatError

IDENTIFIER_PREFIX = rls.config.IDENTIFIER_PREFIX
SEQUENCE_WIDTH = rls.config.SEQUENCE_WIDTH

PRODUCT_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")
SIZE_PATTERN = re.compile(r"^[A-Z]$")
PERIOD_PATTERN = re.compile(r"^[0-9]{4}$")


@dataclasses.dataclass(frozen=True)
class VariantKey:
	category_key: str
	product_code: str
	size: str

	def __post_init__(self) -> None:
		for value in (self.category_key, self.product_code, self.size):
			if not value or "|" in value:
				raise IdentifierFormatError(value, "variant key parts must be non-empty without '|'")

	def storage_key(self) -> str:
		return f"{self.category_key}|{self.product_code}|{self.size}"


#============================================
def variant_from_storage_key(value: str) -> VariantKey:
	"""
	Rebuild a VariantKey from its storage key.

	Args:
		value: String like "rings|RE|L".

	Returns:
		VariantKey.
	"""
	parts = value.split("|")
	if len(parts) != 3:
		raise IdentifierFormatError(value, "malformed variant key")
	return VariantKey(parts[0], parts[1], parts[2])


#============================================
def format_identifier(
	product_code: str,
	size: str,
	period_tag: str,
	sequence: int,
	prefix: str = IDENTIFIER_PREFIX,
	width: int = SEQUENCE_WIDTH,
) -> str:
	"""
	Format an identifier string.

	Args:
		product_code: Two letter product code.
		size: One letter size code.
		period_tag: Four digit YYMM period.
		sequence: Sequence number, 1 or higher.
		prefix: Identifier prefix.
		width: Zero padded width of the sequence.

	Returns:
		Identifier like "RMT-REL-2501-001".
	"""
	if not PRODUCT_CODE_PATTERN.match(product_code):
		raise IdentifierFormatError(product_code, "product code must be two uppercase letters")
	if not SIZE_PATTERN.match(size):
		raise IdentifierFormatError(size, "size must be one uppercase letter")
	if not PERIOD_PATTERN.match(period_tag):
		raise IdentifierFormatError(period_tag, "period must be four digits (YYMM)")
	if sequence < 1:
		raise IdentifierFormatError(str(sequence), "sequence must be 1 or higher")
	return f"{prefix}-{product_code}{size}-{period_tag}-{sequence:0{width}d}"


#============================================
def parse_identifier(
	text: str,
	prefix: str = IDENTIFIER_PREFIX,
	width: int = SEQUENCE_WIDTH,
) -> tuple[str, str, str, int]:
	"""
	Parse an identifier back into its parts.

	Args:
		text: Identifier text.
		prefix: Expected prefix.
		width: Minimum sequence width.

	Returns:
		Tuple of (product_code, size, period_tag, sequence).
	"""
	pattern = re.compile(
		"^" + re.escape(prefix) + r"-([A-Z]{2})([A-Z])-([0-9]{4})-([0-9]{" + str(width) + r",})$"
	)
	match = pattern.match(text.strip())
	if match is None:
		raise IdentifierFormatError(text)
	product_code, size, period_tag, sequence = match.groups()
	return (product_code, size, period_tag, int(sequence))
