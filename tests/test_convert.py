#!/usr/bin/env python3

"""
Pytest coverage for local motion to transform conversion.
"""

# Standard Library
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
import segment_files

# local repo modules
from stabagglib.core.config import build_preprocess_config
from stabagglib.core.config import init_transform_context
from stabagglib.core.frameinfo import init_frame_info
from stabagglib.core.transforms import TransformRecord
from stabagglib.formats.localmotions import LocalMotion
from stabagglib.motion import convert

#============================================

def _frame_info():
	return init_frame_info(segment_files.FRAME_WIDTH, segment_files.FRAME_HEIGHT)

#============================================

def _motions(raw: list) -> list:
	return [LocalMotion(*item) for item in raw]

#============================================

def test_pure_translation_is_exact() -> None:
	fi = _frame_info()
	motions = _motions(segment_files.translation_frame(3, -2))
	assert convert.simple_motions_to_transform(fi, motions) == TransformRecord(3.0, -2.0, 0.0, 0.0, 0)
	assert convert.motions_to_transform(fi, motions) == TransformRecord(3.0, -2.0, 0.0, 0.0, 0)
	return

#============================================

def test_frame_without_motions_is_placeholder() -> None:
	fi = _frame_info()
	record = convert.motions_to_transform(fi, [])
	assert record == TransformRecord(0.0, 0.0, 0.0, 0.0, 1)
	assert not record.trusted
	return

#============================================

def test_rotation_estimate_has_opposite_sign() -> None:
	fi = _frame_info()
	theta = 0.05
	motions = _motions(segment_files.rotation_frame(theta))
	record = convert.simple_motions_to_transform(fi, motions)
	assert abs(record.alpha + theta) < 0.02
	assert abs(record.x) < 1.0
	assert abs(record.y) < 1.0
	return

#============================================

def test_outlier_fields_are_rejected() -> None:
	fi = _frame_info()
	raw = segment_files.translation_frame(2, 1)
	# four bad fields close to the centroid, more than the trimmed mean can drop
	for fx, fy in ((150, 110), (170, 110), (150, 130), (170, 130)):
		raw.append((30, 30, fx, fy, 32, 0.5, 1.0))
	motions = _motions(raw)
	simple = convert.simple_motions_to_transform(fi, motions)
	assert abs(simple.x - 2.0) > 1.0
	robust = convert.motions_to_transform(fi, motions)
	assert robust.x == 2.0
	assert robust.y == 1.0
	return

#============================================

def test_local_motions_to_transforms_keeps_frame_order() -> None:
	fi = _frame_info()
	context = init_transform_context(build_preprocess_config(), fi, fi)
	many = [
		_motions(segment_files.translation_frame(1, 0)),
		[],
		_motions(segment_files.translation_frame(0, 4)),
	]
	records = convert.local_motions_to_transforms(context, many)
	assert [(r.x, r.y, r.extra) for r in records] == [(1.0, 0.0, 0), (0.0, 0.0, 1), (0.0, 4.0, 0)]
	simple_context = init_transform_context(
		build_preprocess_config(overrides={"simple_motion_calculation": True}), fi, fi)
	assert convert.local_motions_to_transforms(simple_context, many) == records
	return
