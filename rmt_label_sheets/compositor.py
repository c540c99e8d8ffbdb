"""
Symbol encoding and logo compositing.
"""

# Standard Library
import typing

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import qrcode
import qrcode.constants

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.config
import rmt_label_sheets.errors


CompositeConfig = rls.config.CompositeConfig
ConfigurationError = rls.errors.ConfigurationError
EncodingError = rls.errors.EncodingError
CompositionFailure = rls.errors.CompositionFailure

ERROR_CORRECTION_LEVELS = rls.config.ERROR_CORRECTION_LEVELS
SYMBOL_BORDER_MODULES = rls.config.SYMBOL_BORDER_MODULES
LOGO_WARNING_PERCENT = rls.config.LOGO_WARNING_PERCENT

QR_ERROR_CORRECTION = {
	"L": qrcode.constants.ERROR_CORRECT_L,
	"M": qrcode.constants.ERROR_CORRECT_M,
	"Q": qrcode.constants.ERROR_CORRECT_Q,
	"H": qrcode.constants.ERROR_CORRECT_H,
}

Encoder = typing.Callable[[str, str, int], PIL.Image.Image]


#============================================
def encode_symbol(text: str, error_correction: str, pixel_size: int) -> PIL.Image.Image:
	"""
	Encode text as a square QR symbol raster.

	Each module gets a whole number of pixels; the leftover pixels become
	extra white quiet zone around the centered symbol.

	Args:
		text: Text to encode.
		error_correction: One of L, M, Q, H.
		pixel_size: Output edge length in pixels.

	Returns:
		RGB image of size (pixel_size, pixel_size).
	"""
	try:
		qr = qrcode.QRCode(
			version=None,
			error_correction=QR_ERROR_CORRECTION[error_correction],
			box_size=1,
			border=SYMBOL_BORDER_MODULES,
		)
		qr.add_data(text)
		qr.make(fit=True)
		modules = qr.modules_count + 2 * SYMBOL_BORDER_MODULES
		box_size = pixel_size // modules
		if box_size < 1:
			# too small for one pixel per module
			image = qr.make_image(fill_color="black", back_color="white").convert("RGB")
			return image.resize((pixel_size, pixel_size), PIL.Image.Resampling.NEAREST)
		qr.box_size = box_size
		symbol = qr.make_image(fill_color="black", back_color="white").convert("RGB")
		image = PIL.Image.new("RGB", (pixel_size, pixel_size), (255, 255, 255))
		offset = (pixel_size - symbol.size[0]) // 2
		image.paste(symbol, (offset, offset))
	except Exception as error:
		raise EncodingError(text, error) from error
	return image


#============================================
def validate_composite_config(config: CompositeConfig) -> None:
	"""
	Check composite settings before any rendering starts.

	Args:
		config: Composite configuration.
	"""
	if config.symbol_pixel_size < 1:
		raise ConfigurationError("symbol_pixel_size", f"must be positive, got {config.symbol_pixel_size}")
	if config.error_correction not in ERROR_CORRECTION_LEVELS:
		raise ConfigurationError(
			"error_correction",
			f"must be one of {', '.join(ERROR_CORRECTION_LEVELS)}, got {config.error_correction!r}",
		)
	if not 0.0 < config.logo_size_percent < 100.0:
		raise ConfigurationError("logo_size_percent", f"must be between 0 and 100, got {config.logo_size_percent}")
	if config.logo_padding_pixels < 0:
		raise ConfigurationError("logo_padding_pixels", f"must be 0 or more, got {config.logo_padding_pixels}")


#============================================
def logo_coverage_warning(config: CompositeConfig) -> str | None:
	"""
	Describe a logo that likely covers more than the error correction can absorb.

	Args:
		config: Composite configuration.

	Returns:
		Warning text, or None when the logo size looks safe.
	"""
	if not config.logo_enabled or config.logo_image is None:
		return None
	covered = config.logo_size_percent ** 2 / 100.0
	limit = LOGO_WARNING_PERCENT.get(config.error_correction, 0.0)
	if covered <= limit:
		return None
	return (
		f"Logo covers about {covered:.1f}% of the symbol, above the {limit:.0f}% "
		f"that level {config.error_correction} tolerates; scans may fail"
	)


#============================================
def compose_symbol(
	text: str,
	config: CompositeConfig,
	encoder: Encoder = encode_symbol,
) -> PIL.Image.Image:
	"""
	Render one identifier as a symbol with an optional centered logo.

	Args:
		text: Identifier text.
		config: Composite configuration.
		encoder: Symbol encoder taking (text, error_correction, pixel_size).

	Returns:
		Composited raster.
	"""
	base = encoder(text, config.error_correction, config.symbol_pixel_size)
	if not config.logo_enabled or config.logo_image is None:
		return base

	try:
		raster = base.convert("RGB")
		width, height = raster.size
		logo_size = max(1, int(round(width * config.logo_size_percent / 100.0)))
		x = (width - logo_size) // 2
		y = (height - logo_size) // 2

		padding = config.logo_padding_pixels
		if padding > 0:
			draw = PIL.ImageDraw.Draw(raster)
			draw.rectangle(
				(x - padding, y - padding, x + logo_size + padding - 1, y + logo_size + padding - 1),
				fill="white",
			)

		logo = config.logo_image.resize((logo_size, logo_size), PIL.Image.Resampling.LANCZOS)
		if logo.mode in ("RGBA", "LA") or (logo.mode == "P" and "transparency" in logo.info):
			logo = logo.convert("RGBA")
			raster.paste(logo, (x, y), logo)
		else:
			raster.paste(logo.convert("RGB"), (x, y))
	except Exception as error:
		raise CompositionFailure(text, error) from error
	return raster
