#!/usr/bin/env python3

"""
Global preprocessing of a complete transform sequence.

Runs camera path optimization, inversion, shift/angle clamps and zoom on
the whole aggregated sequence. The sequence length and the position of
every frame are preserved.
"""

# Standard Library
import math

# PIP3 modules
import numpy

# local repo modules
from stabagglib.core.config import TransformContext
from stabagglib.core.config import UNBOUNDED_ANGLE
from stabagglib.core.config import UNBOUNDED_SHIFT
from stabagglib.core.errors import PipelineError
from stabagglib.core.transforms import mult_transform
from stabagglib.motion.camerapath import optimize_camera_path

MAX_ZOOM_PERCENT = 60.0
# percentile trimmed from each side for the static optimal zoom
ZOOM_PERCENTILE = 1

#============================================

def clean_max_min_xy(records: list, percentile: int = ZOOM_PERCENTILE) -> tuple:
	"""
	Min and max of x and y with the outer percentile discarded.

	Args:
		records: TransformRecord list, not empty.
		percentile: Percent trimmed from each end.

	Returns:
		tuple: (min_x, max_x, min_y, max_y)
	"""
	count = len(records)
	cut = count * percentile // 100
	xs = sorted(r.x for r in records)
	ys = sorted(r.y for r in records)
	return xs[cut], xs[count - cut - 1], ys[cut], ys[count - cut - 1]

#============================================

def required_zoom(record, width: int, height: int) -> float:
	"""
	Zoom in percent that keeps the shifted and rotated frame covering the output.
	"""
	sin_a = abs(math.sin(record.alpha))
	cos_gap = 1.0 - math.cos(record.alpha)
	zx = 2.0 * (abs(record.x) + sin_a * height / 2.0 + cos_gap * width / 2.0) / width
	zy = 2.0 * (abs(record.y) + sin_a * width / 2.0 + cos_gap * height / 2.0) / height
	return 100.0 * max(zx, zy)

#============================================

def static_optimal_zoom(context: TransformContext, records: list) -> float:
	width = context.fi_src.width
	height = context.fi_src.height
	min_x, max_x, min_y, max_y = clean_max_min_xy(records)
	zx = 2.0 * max(max_x, abs(min_x)) / width
	zy = 2.0 * max(max_y, abs(min_y)) / height
	zoom = context.config.zoom + 100.0 * max(zx, zy)
	return float(numpy.clip(zoom, -MAX_ZOOM_PERCENT, MAX_ZOOM_PERCENT))

#============================================

def adaptive_zoom(context: TransformContext, records: list) -> list:
	"""
	Per-frame zoom that follows the required zoom, limited to zoom_speed percent per frame.
	"""
	width = context.fi_src.width
	height = context.fi_src.height
	speed = context.config.zoom_speed
	zooms = [required_zoom(r, width, height) for r in records]
	mean_zoom = sum(zooms) / len(zooms) + context.config.zoom
	result = list(records)
	req = mean_zoom
	for i in range(len(result)):
		req = max(req, zooms[i])
		result[i] = result[i]._replace(zoom=max(result[i].zoom, req))
		req = max(mean_zoom, req - speed)
	req = mean_zoom
	for i in range(len(result) - 1, -1, -1):
		req = max(req, zooms[i])
		result[i] = result[i]._replace(zoom=max(result[i].zoom, req))
		req = max(mean_zoom, req - speed)
	return result

#============================================

def preprocess_transforms(context: TransformContext, records: list) -> list:
	"""
	Apply the global preprocessing pass to an aggregated transform sequence.

	Args:
		context: Shared transform context with the effective configuration.
		records: Aggregated TransformRecord list.

	Returns:
		list: Preprocessed TransformRecord list of the same length.
	"""
	if len(records) == 0:
		raise PipelineError("preprocessing needs at least one transform")
	config = context.config
	result = list(records)
	if config.relative:
		result = optimize_camera_path(config, result)
	if config.invert:
		result = [mult_transform(r, -1.0) for r in result]
	if config.max_shift != UNBOUNDED_SHIFT:
		limit = float(config.max_shift)
		result = [r._replace(x=float(numpy.clip(r.x, -limit, limit)),
			y=float(numpy.clip(r.y, -limit, limit))) for r in result]
	if config.max_angle != UNBOUNDED_ANGLE:
		limit = float(config.max_angle)
		result = [r._replace(alpha=float(numpy.clip(r.alpha, -limit, limit))) for r in result]
	if config.opt_zoom == 1 and len(result) > 1:
		zoom = static_optimal_zoom(context, result)
		if zoom != 0:
			result = [r._replace(zoom=r.zoom + zoom) for r in result]
	elif config.opt_zoom == 2 and len(result) > 1:
		result = adaptive_zoom(context, result)
	elif config.zoom != 0:
		result = [r._replace(zoom=r.zoom + config.zoom) for r in result]
	if len(result) != len(records):
		raise PipelineError(f"preprocessing changed length {len(records)} -> {len(result)}")
	for index, record in enumerate(result):
		if not all(math.isfinite(v) for v in (record.x, record.y, record.alpha, record.zoom)):
			raise PipelineError(f"preprocessing produced a non-finite transform at frame {index}")
	return result
