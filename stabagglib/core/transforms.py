#!/usr/bin/env python3

"""
Per-frame transform records and the arithmetic the camera path code needs.

A record describes the correction for one frame: translation in pixels,
rotation in radians, zoom in percent, and an extra flag that is 0 for
records from genuine motion analysis and 1 for filled placeholders.
"""

# Standard Library
from typing import NamedTuple

# PIP3 modules
import numpy

#============================================

RECORD_DTYPE = numpy.dtype([
	("x", "<f8"),
	("y", "<f8"),
	("alpha", "<f8"),
	("zoom", "<f8"),
	("extra", "<i4"),
])

#============================================

class TransformRecord(NamedTuple):
	x: float = 0.0
	y: float = 0.0
	alpha: float = 0.0
	zoom: float = 0.0
	extra: int = 0

	@property
	def trusted(self) -> bool:
		return self.extra == 0

#============================================

def null_transform() -> TransformRecord:
	return TransformRecord()

#============================================

def placeholder_transform() -> TransformRecord:
	return TransformRecord(extra=1)

#============================================

def add_transforms(t1: TransformRecord, t2: TransformRecord) -> TransformRecord:
	extra = 1 if (t1.extra or t2.extra) else 0
	return TransformRecord(t1.x + t2.x, t1.y + t2.y, t1.alpha + t2.alpha,
		t1.zoom + t2.zoom, extra)

#============================================

def sub_transforms(t1: TransformRecord, t2: TransformRecord) -> TransformRecord:
	extra = 1 if (t1.extra or t2.extra) else 0
	return TransformRecord(t1.x - t2.x, t1.y - t2.y, t1.alpha - t2.alpha,
		t1.zoom - t2.zoom, extra)

#============================================

def mult_transform(t: TransformRecord, factor: float) -> TransformRecord:
	return TransformRecord(t.x * factor, t.y * factor, t.alpha * factor,
		t.zoom * factor, t.extra)

#============================================

def records_to_array(records: list) -> numpy.ndarray:
	"""
	Pack records into a structured numpy array.

	Args:
		records: TransformRecord list.

	Returns:
		numpy.ndarray: Array with RECORD_DTYPE, one row per record.
	"""
	array = numpy.zeros(len(records), dtype=RECORD_DTYPE)
	for index, record in enumerate(records):
		array[index] = (float(record.x), float(record.y), float(record.alpha),
			float(record.zoom), int(record.extra))
	return array

#============================================

def pack_records(records: list) -> bytes:
	"""
	Canonical little-endian byte image of a record list, used for byte-for-byte checks.
	"""
	return records_to_array(records).tobytes()
