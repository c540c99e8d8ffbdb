import PIL.Image
import pytest
import qrcode
import qrcode.constants

import rmt_label_sheets.compositor
import rmt_label_sheets.config
import rmt_label_sheets.errors


PIXEL_SIZE = 100


#============================================
def checker_encoder(text: str, error_correction: str, pixel_size: int) -> PIL.Image.Image:
	"""
	Deterministic stand-in encoder drawing a black and white checkerboard.
	"""
	image = PIL.Image.new("RGB", (pixel_size, pixel_size), (255, 255, 255))
	for y in range(pixel_size):
		for x in range(pixel_size):
			if (x // 5 + y // 5) % 2 == 0:
				image.putpixel((x, y), (0, 0, 0))
	return image


#============================================
def build_config(**overrides) -> rmt_label_sheets.config.CompositeConfig:
	values = {"symbol_pixel_size": PIXEL_SIZE}
	values.update(overrides)
	return rmt_label_sheets.config.CompositeConfig(**values)


#============================================
def test_encode_symbol_size_and_mode() -> None:
	"""
	The QR encoder returns a square RGB raster of the requested size.
	"""
	image = rmt_label_sheets.compositor.encode_symbol("RMT-REL-2501-001", "M", 210)
	assert image.size == (210, 210)
	assert image.mode == "RGB"
	colors = {color for _count, color in image.getcolors(maxcolors=16)}
	assert (0, 0, 0) in colors
	assert (255, 255, 255) in colors


#============================================
def test_encode_symbol_bad_level() -> None:
	"""
	An unknown error correction level is an EncodingError.
	"""
	with pytest.raises(rmt_label_sheets.errors.EncodingError) as info:
		rmt_label_sheets.compositor.encode_symbol("RMT-REL-2501-001", "X", 50)
	assert info.value.identifier == "RMT-REL-2501-001"


#============================================
def test_logo_disabled_returns_encoder_output(red_logo: PIL.Image.Image) -> None:
	"""
	With the logo disabled the raster is identical to the encoder output.
	"""
	config = build_config(logo_enabled=False, logo_image=red_logo)
	composed = rmt_label_sheets.compositor.compose_symbol("RMT-REL-2501-001", config, checker_encoder)
	base = checker_encoder("RMT-REL-2501-001", "M", PIXEL_SIZE)
	assert composed.tobytes() == base.tobytes()


#============================================
def test_no_logo_image_returns_encoder_output() -> None:
	config = build_config(logo_enabled=True, logo_image=None)
	composed = rmt_label_sheets.compositor.compose_symbol("RMT-REL-2501-001", config)
	base = rmt_label_sheets.compositor.encode_symbol("RMT-REL-2501-001", "M", PIXEL_SIZE)
	assert composed.tobytes() == base.tobytes()


#============================================
def test_logo_centered_with_padding(red_logo: PIL.Image.Image) -> None:
	"""
	A 20 percent logo sits at the center with a white padding ring.
	"""
	config = build_config(logo_image=red_logo, logo_size_percent=20.0, logo_padding_pixels=2)
	composed = rmt_label_sheets.compositor.compose_symbol("RMT-REL-2501-001", config, checker_encoder)
	assert composed.size == (PIXEL_SIZE, PIXEL_SIZE)

	# logo spans 40..59 on both axes
	assert composed.getpixel((40, 40)) == (255, 0, 0)
	assert composed.getpixel((59, 59)) == (255, 0, 0)
	assert composed.getpixel((50, 50)) == (255, 0, 0)
	# padding ring spans 38..39 and 60..61
	assert composed.getpixel((38, 50)) == (255, 255, 255)
	assert composed.getpixel((61, 50)) == (255, 255, 255)
	assert composed.getpixel((50, 39)) == (255, 255, 255)
	# outside the ring the symbol is untouched
	base = checker_encoder("RMT-REL-2501-001", "M", PIXEL_SIZE)
	assert composed.getpixel((10, 10)) == base.getpixel((10, 10))
	assert composed.getpixel((37, 50)) == base.getpixel((37, 50))


#============================================
def test_logo_without_padding_keeps_surroundings(red_logo: PIL.Image.Image) -> None:
	config = build_config(logo_image=red_logo, logo_padding_pixels=0)
	composed = rmt_label_sheets.compositor.compose_symbol("RMT-REL-2501-001", config, checker_encoder)
	base = checker_encoder("RMT-REL-2501-001", "M", PIXEL_SIZE)
	assert composed.getpixel((39, 50)) == base.getpixel((39, 50))
	assert composed.getpixel((40, 50)) == (255, 0, 0)


#============================================
def test_compose_does_not_mutate_base(red_logo: PIL.Image.Image) -> None:
	"""
	Compositing works on a copy of the encoder output.
	"""
	base = checker_encoder("RMT-REL-2501-001", "M", PIXEL_SIZE)
	before = base.tobytes()

	def fixed_encoder(text: str, error_correction: str, pixel_size: int) -> PIL.Image.Image:
		return base

	config = build_config(logo_image=red_logo)
	rmt_label_sheets.compositor.compose_symbol("RMT-REL-2501-001", config, fixed_encoder)
	assert base.tobytes() == before


#============================================
def test_transparent_logo_uses_alpha() -> None:
	"""
	Transparent logo pixels show the padding background.
	"""
	logo = PIL.Image.new("RGBA", (20, 20), (0, 0, 255, 0))
	config = build_config(logo_image=logo, logo_padding_pixels=2)
	composed = rmt_label_sheets.compositor.compose_symbol("RMT-REL-2501-001", config, checker_encoder)
	assert composed.getpixel((50, 50)) == (255, 255, 255)


#============================================
def test_logo_failure_is_composition_failure() -> None:
	"""
	A broken logo raises CompositionFailure naming the identifier.
	"""
	class BrokenLogo:
		def resize(self, *args, **kwargs):
			raise OSError("truncated image")

	config = build_config(logo_image=BrokenLogo())
	with pytest.raises(rmt_label_sheets.errors.CompositionFailure) as info:
		rmt_label_sheets.compositor.compose_symbol("RMT-REL-2501-009", config, checker_encoder)
	assert info.value.identifier == "RMT-REL-2501-009"
	assert isinstance(info.value.cause, OSError)


#============================================
def test_validate_composite_config() -> None:
	"""
	Out of range composite settings raise ConfigurationError with the field name.
	"""
	validate = rmt_label_sheets.compositor.validate_composite_config
	validate(build_config())
	for field, value in (
		("logo_size_percent", 0.0),
		("logo_size_percent", 100.0),
		("logo_padding_pixels", -1),
		("error_correction", "Z"),
		("symbol_pixel_size", 0),
	):
		with pytest.raises(rmt_label_sheets.errors.ConfigurationError) as info:
			validate(build_config(**{field: value}))
		assert info.value.field == field


#============================================
def test_logo_coverage_warning(red_logo: PIL.Image.Image) -> None:
	"""
	Large logos on low error correction produce a warning.
	"""
	warning = rmt_label_sheets.compositor.logo_coverage_warning
	assert warning(build_config(logo_image=red_logo, logo_size_percent=20.0, error_correction="M")) is None
	assert warning(build_config(logo_image=red_logo, logo_size_percent=40.0, error_correction="L")) is not None
	assert warning(build_config(logo_image=None, logo_size_percent=40.0, error_correction="L")) is None


#============================================
def test_encode_symbol_modules_have_whole_pixel_width() -> None:
	"""
	Every module covers a square block of identical pixels.
	"""
	text = "RMT-REL-2501-001"
	pixel_size = 210
	reference = qrcode.QRCode(
		error_correction=qrcode.constants.ERROR_CORRECT_M,
		box_size=1,
		border=0,
	)
	reference.add_data(text)
	reference.make(fit=True)
	matrix = reference.get_matrix()
	count = len(matrix)
	border = rmt_label_sheets.config.SYMBOL_BORDER_MODULES
	box = pixel_size // (count + 2 * border)
	assert box >= 1
	start = (pixel_size - (count + 2 * border) * box) // 2 + border * box

	image = rmt_label_sheets.compositor.encode_symbol(text, "M", pixel_size)
	assert image.size == (pixel_size, pixel_size)
	for row in range(count):
		for col in range(count):
			expected = (0, 0, 0) if matrix[row][col] else (255, 255, 255)
			block = image.crop((
				start + col * box,
				start + row * box,
				start + (col + 1) * box,
				start + (row + 1) * box,
			))
			assert block.getcolors() == [(box * box, expected)], (row, col)
	assert image.getpixel((0, 0)) == (255, 255, 255)
	assert image.getpixel((pixel_size - 1, pixel_size - 1)) == (255, 255, 255)
