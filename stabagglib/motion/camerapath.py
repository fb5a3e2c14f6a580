#!/usr/bin/env python3

"""
Camera path optimization: turn relative frame-to-frame transforms into
absolute corrections with the low-frequency (intended) camera motion removed.
"""

# PIP3 modules
import numpy
from scipy.ndimage import convolve1d

# local repo modules
from stabagglib.core.config import PreprocessConfig
from stabagglib.core.errors import PipelineError
from stabagglib.core.transforms import TransformRecord
from stabagglib.core.transforms import add_transforms
from stabagglib.core.transforms import mult_transform
from stabagglib.core.transforms import null_transform
from stabagglib.core.transforms import sub_transforms

#============================================

def gaussian_kernel(smoothing: int) -> numpy.ndarray:
	"""
	Gaussian kernel of width 2*smoothing+1 with sigma = smoothing/2.

	Args:
		smoothing: Half window size, positive.

	Returns:
		numpy.ndarray: Kernel weights (not normalized).
	"""
	mu = int(smoothing)
	sigma2 = (mu / 2.0) ** 2
	offsets = numpy.arange(-mu, mu + 1, dtype=numpy.float64)
	return numpy.exp(-(offsets ** 2) / sigma2)

#============================================

def integrate_records(records: list) -> list:
	"""
	Relative to absolute: running sum of the transforms, extra flags kept per frame.
	"""
	if len(records) == 0:
		return []
	result = [records[0]]
	current = records[0]
	for record in records[1:]:
		current = add_transforms(record, current)
		result.append(current._replace(extra=record.extra))
	return result

#============================================

def camera_path_gaussian(config: PreprocessConfig, records: list) -> list:
	"""
	Integrate the path and subtract its gaussian low-pass.

	Near the ends of the sequence the kernel is cut off and its weights are
	renormalized, so the first and last frames are averaged over a half window.

	Args:
		config: Effective preprocess configuration.
		records: Relative transforms.

	Returns:
		list: Absolute corrections, same length.
	"""
	count = len(records)
	x = numpy.array([r.x for r in records], dtype=numpy.float64)
	y = numpy.array([r.y for r in records], dtype=numpy.float64)
	alpha = numpy.array([r.alpha for r in records], dtype=numpy.float64)
	zoom = numpy.array([r.zoom for r in records], dtype=numpy.float64)
	path = numpy.stack([x, y, alpha], axis=1)
	if config.smooth_zoom:
		path = numpy.stack([x, y, alpha, zoom], axis=1)
	if config.relative:
		path = numpy.cumsum(path, axis=0)
	if config.smoothing > 0:
		kernel = gaussian_kernel(config.smoothing)
		weighted = convolve1d(path, kernel, axis=0, mode="constant", cval=0.0)
		weights = convolve1d(numpy.ones(count, dtype=numpy.float64), kernel,
			mode="constant", cval=0.0)
		path = path - weighted / weights[:, numpy.newaxis]
	result = []
	for index, record in enumerate(records):
		row = path[index]
		new_zoom = float(row[3]) if config.smooth_zoom else float(record.zoom)
		result.append(TransformRecord(float(row[0]), float(row[1]), float(row[2]),
			new_zoom, record.extra))
	return result

#============================================

def camera_path_avg(config: PreprocessConfig, records: list) -> list:
	"""
	Sliding-average low-pass with an exponential offset killer, then integrate.

	Args:
		config: Effective preprocess configuration.
		records: Relative transforms.

	Returns:
		list: Absolute corrections, same length.
	"""
	count = len(records)
	smoothing = int(config.smoothing)
	filtered = list(records)
	if smoothing > 0:
		window = smoothing * 2 + 1
		null = null_transform()
		tau = 1.0 / (3.0 * window)
		s_sum = null
		for i in range(smoothing):
			s_sum = add_transforms(s_sum, records[i] if i < count else null)
		avg2 = null
		filtered = []
		for i in range(count):
			old = records[i - smoothing - 1] if (i - smoothing - 1) >= 0 else null
			new = records[i + smoothing] if (i + smoothing) < count else null
			s_sum = sub_transforms(s_sum, old)
			s_sum = add_transforms(s_sum, new)
			avg = mult_transform(s_sum, 1.0 / window)
			current = sub_transforms(records[i], avg)
			avg2 = add_transforms(mult_transform(avg2, 1.0 - tau), mult_transform(current, tau))
			current = sub_transforms(current, avg2)
			filtered.append(current._replace(extra=records[i].extra))
	if config.relative:
		filtered = integrate_records(filtered)
	if not config.smooth_zoom:
		filtered = [f._replace(zoom=r.zoom) for f, r in zip(filtered, records)]
	return filtered

#============================================

def optimize_camera_path(config: PreprocessConfig, records: list) -> list:
	if config.cam_path_algo == "avg":
		return camera_path_avg(config, records)
	if config.cam_path_algo in ("gauss", "opt"):
		return camera_path_gaussian(config, records)
	raise PipelineError(f"unknown camera path algorithm: {config.cam_path_algo}")
