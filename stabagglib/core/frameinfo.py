#!/usr/bin/env python3

# Standard Library
from typing import NamedTuple

# local repo modules
from stabagglib.core.errors import ConfigurationError

#============================================

# pixel format: (planes, log2_chroma_w, log2_chroma_h, bytes_per_pixel)
PIXEL_FORMATS = {
	"gray8": (1, 0, 0, 1),
	"yuv420p": (3, 1, 1, 1),
	"yuv422p": (3, 1, 0, 1),
	"yuv444p": (3, 0, 0, 1),
	"yuv410p": (3, 2, 2, 1),
	"yuv411p": (3, 2, 0, 1),
	"yuv440p": (3, 0, 1, 1),
	"yuva420p": (4, 1, 1, 1),
	"rgb24": (0, 0, 0, 3),
	"bgr24": (0, 0, 0, 3),
	"rgba": (0, 0, 0, 4),
}

DEFAULT_PIXEL_FORMAT = "yuv420p"

#============================================

class FrameInfo(NamedTuple):
	width: int
	height: int
	pixel_format: str
	planes: int
	log2_chroma_w: int
	log2_chroma_h: int
	bytes_per_pixel: int

#============================================

def init_frame_info(width: int, height: int,
	pixel_format: str = DEFAULT_PIXEL_FORMAT) -> FrameInfo:
	"""
	Validate frame geometry and build a frame descriptor.

	Args:
		width: Frame width in pixels, positive.
		height: Frame height in pixels, positive.
		pixel_format: Pixel format tag from PIXEL_FORMATS.

	Returns:
		FrameInfo: Frame descriptor.
	"""
	layout = PIXEL_FORMATS.get(pixel_format)
	if layout is None:
		raise ConfigurationError(f"unknown pixel format: {pixel_format}")
	width = int(width)
	height = int(height)
	if width <= 0 or height <= 0:
		raise ConfigurationError(f"frame size must be positive: {width}x{height}")
	planes, log2_w, log2_h, bpp = layout
	return FrameInfo(width, height, pixel_format, planes, log2_w, log2_h, bpp)
