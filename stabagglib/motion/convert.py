#!/usr/bin/env python3

"""
Convert per-frame local motions into one rigid transform per frame.

The simple estimate takes a trimmed mean of the field displacements and a
trimmed mean of the per-field rotation around the field centroid. The
default estimate runs the simple one, drops fields whose residual is far
above the median residual, and estimates again from the remaining fields.
"""

# Standard Library
import math

# local repo modules
from stabagglib.core import utils
from stabagglib.core.config import TransformContext
from stabagglib.core.frameinfo import FrameInfo
from stabagglib.core.errors import PipelineError
from stabagglib.core.transforms import TransformRecord
from stabagglib.core.transforms import placeholder_transform

# the rotation estimate is unreliable below this many fields
MIN_FIELDS_FOR_ANGLE = 6
# rotation spread (rad) above which the angle estimate is dropped
MAX_ANGLE_SPREAD = 1.0
OUTLIER_FACTOR = 3.0
OUTLIER_MIN_PX = 1.0

#============================================

def calc_field_angle(vx: float, vy: float, fx: int, fy: int, size: int,
	center_x: int, center_y: int) -> float:
	"""
	Rotation of one field around the centroid, zero for fields too close to it.
	"""
	if abs(fx - center_x) + abs(fy - center_y) < size * 2:
		return 0.0
	a1 = math.atan2(fy - center_y, fx - center_x)
	a2 = math.atan2(fy - center_y + vy, fx - center_x + vx)
	diff = a2 - a1
	if diff > math.pi:
		return diff - 2 * math.pi
	if diff < -math.pi:
		return diff + 2 * math.pi
	return diff

#============================================

def simple_motions_to_transform(fi: FrameInfo, motions: list) -> TransformRecord:
	"""
	Estimate a transform from local motions with trimmed means.

	Args:
		fi: Source frame descriptor.
		motions: LocalMotion list for one frame.

	Returns:
		TransformRecord: Estimated transform, a placeholder when there are no motions.
	"""
	count = len(motions)
	if count == 0:
		return placeholder_transform()
	center_x = sum(m.fx for m in motions) // count
	center_y = sum(m.fy for m in motions) // count
	mean_vx, _, _ = utils.clean_mean([m.vx for m in motions])
	mean_vy, _, _ = utils.clean_mean([m.vy for m in motions])
	alpha = 0.0
	if count >= MIN_FIELDS_FOR_ANGLE:
		angles = []
		for m in motions:
			angles.append(calc_field_angle(m.vx - mean_vx, m.vy - mean_vy,
				m.fx, m.fy, m.size, center_x, center_y))
		mean_angle, min_angle, max_angle = utils.clean_mean(angles)
		alpha = -mean_angle if mean_angle != 0.0 else 0.0
		if max_angle - min_angle > MAX_ANGLE_SPREAD:
			alpha = 0.0
	# compensate for rotation around the field centroid instead of the frame center
	p_x = center_x - fi.width / 2
	p_y = center_y - fi.height / 2
	x = mean_vx + (math.cos(alpha) - 1) * p_x - math.sin(alpha) * p_y
	y = mean_vy + math.sin(alpha) * p_x + (math.cos(alpha) - 1) * p_y
	return TransformRecord(x, y, alpha, 0.0, 0)

#============================================

def motion_residual(fi: FrameInfo, transform: TransformRecord, motion) -> float:
	"""
	Distance between a measured field displacement and the one the transform predicts.
	"""
	cx = motion.fx - fi.width / 2
	cy = motion.fy - fi.height / 2
	cos_a = math.cos(-transform.alpha)
	sin_a = math.sin(-transform.alpha)
	pred_x = transform.x + (cos_a - 1) * cx - sin_a * cy
	pred_y = transform.y + sin_a * cx + (cos_a - 1) * cy
	return math.hypot(motion.vx - pred_x, motion.vy - pred_y)

#============================================

def motions_to_transform(fi: FrameInfo, motions: list) -> TransformRecord:
	estimate = simple_motions_to_transform(fi, motions)
	if len(motions) < MIN_FIELDS_FOR_ANGLE:
		return estimate
	residuals = [motion_residual(fi, estimate, m) for m in motions]
	limit = max(OUTLIER_MIN_PX, OUTLIER_FACTOR * utils.median(residuals))
	inliers = [m for m, r in zip(motions, residuals) if r <= limit]
	if len(inliers) == len(motions):
		return estimate
	# too many rejected fields means the frame itself is ambiguous
	if len(inliers) * 2 < len(motions):
		return estimate
	return simple_motions_to_transform(fi, inliers)

#============================================

def local_motions_to_transforms(context: TransformContext, many_motions: list) -> list:
	"""
	Convert a local motions container into a transform sequence.

	Args:
		context: Shared transform context.
		many_motions: One LocalMotion list per frame.

	Returns:
		list: TransformRecord list, one per frame, same order.
	"""
	if many_motions is None:
		raise PipelineError("local motion conversion got no motions container")
	fi = context.fi_src
	records = []
	for motions in many_motions:
		if context.config.simple_motion_calculation:
			records.append(simple_motions_to_transform(fi, motions))
		else:
			records.append(motions_to_transform(fi, motions))
	return records
