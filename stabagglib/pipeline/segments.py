#!/usr/bin/env python3

"""
Segment discovery and per-segment decoding.

The file name order of the input directory is the only thing that decides
the frame order across segments, so it must be the same on every run.
"""

# Standard Library
import os
import stat
from typing import NamedTuple

# local repo modules
from stabagglib.core.config import TransformContext
from stabagglib.core.errors import ConfigurationError
from stabagglib.core.errors import FormatMismatch
from stabagglib.core.errors import ResourceError
from stabagglib.core.errors import SegmentDecodeError
from stabagglib.formats.localmotions import read_local_motions
from stabagglib.formats.oldtransforms import read_old_transforms
from stabagglib.motion.convert import local_motions_to_transforms

FORMAT_LOCAL_MOTIONS = "localmotions"
FORMAT_LEGACY = "legacy"

#============================================

class SegmentDescriptor(NamedTuple):
	name: str
	path: str

#============================================

def segment_sort_key(name: str) -> bytes:
	"""
	Byte-wise name order, independent of the locale.
	"""
	return os.fsencode(name)

#============================================

def is_regular_file(path: str) -> bool:
	try:
		mode = os.stat(path).st_mode
	except OSError:
		return False
	return stat.S_ISREG(mode)

#============================================

def list_segment_files(input_dir: str) -> list:
	"""
	List the regular files of the input directory in name order.

	Args:
		input_dir: Directory holding one file per segment.

	Returns:
		list: SegmentDescriptor list sorted by byte-wise file name.
	"""
	try:
		with os.scandir(input_dir) as entries:
			names = [entry.name for entry in entries]
	except OSError as exc:
		reason = exc.strerror or str(exc)
		raise ConfigurationError(f"cannot read input directory {input_dir}: {reason}") from exc
	segments = []
	for name in sorted(names, key=segment_sort_key):
		path = os.path.join(input_dir, name)
		if not is_regular_file(path):
			continue
		segments.append(SegmentDescriptor(name, path))
	return segments

#============================================

def read_segment(path: str, context: TransformContext) -> tuple:
	"""
	Decode one segment file into a transform sequence.

	The local motions format is tried first. Only a missing VID.STAB header
	falls back to the legacy transforms format; a broken local motions body
	is an error on its own.

	Args:
		path: Segment file path.
		context: Shared transform context.

	Returns:
		tuple: (records, source_format)
	"""
	try:
		handle = open(path, "r", encoding="utf-8", errors="replace")
	except OSError as exc:
		reason = exc.strerror or str(exc)
		raise ResourceError(f"cannot open segment {path}: {reason}") from exc
	with handle:
		try:
			many_motions = read_local_motions(handle, source=path)
		except FormatMismatch:
			many_motions = None
		if many_motions is not None:
			return local_motions_to_transforms(context, many_motions), FORMAT_LOCAL_MOTIONS
		handle.seek(0)
		try:
			records = read_old_transforms(handle, source=path)
		except SegmentDecodeError as exc:
			raise SegmentDecodeError(
				f"{path}: neither a VID.STAB local motions file nor a transforms file ({exc})"
			) from exc
	return records, FORMAT_LEGACY
