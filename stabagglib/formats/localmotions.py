#!/usr/bin/env python3

"""
Reader for the vid.stab ASCII local motions file.

Layout written by vidstabdetect (fileformat=ascii):

	VID.STAB 1
	#      accuracy = 15
	Frame 1 (List 0 [])
	Frame 2 (List 2 [(LM 3 -1 64 48 32 0.51 2.10),(LM 2 0 128 48 32 0.44 1.90)])

LM fields are v.x v.y f.x f.y f.size contrast match. Frames are numbered
from 1 and missing frame numbers are filled with empty motion lists.
"""

# Standard Library
import re
from typing import NamedTuple

# local repo modules
from stabagglib.core.errors import FormatMismatch
from stabagglib.core.errors import SegmentDecodeError

#============================================

FILE_FORMAT_VERSION = 1

HEADER_RE = re.compile(r"^VID\.STAB\s+(\S+)\s*$")
FRAME_RE = re.compile(r"^Frame\s+(-?\d+)\s+\(List\s+(\d+)\s+\[(.*)\]\)\s*$")
NUMBER = r"[-+]?(?:\d+\.?\d*(?:[eE][-+]?\d+)?|\.\d+(?:[eE][-+]?\d+)?|nan|inf)"
LM_RE = re.compile(
	r"\(LM\s+(-?\d+)\s+(-?\d+)\s+(-?\d+)\s+(-?\d+)\s+(-?\d+)\s+"
	rf"({NUMBER})\s+({NUMBER})\)"
)

#============================================

class LocalMotion(NamedTuple):
	vx: int
	vy: int
	fx: int
	fy: int
	size: int
	contrast: float
	match: float

#============================================

def parse_local_motion_list(text: str, expected: int, source: str, frame_num: int) -> list:
	"""
	Parse the bracket body of a 'List N [...]' entry.

	Args:
		text: Text between the brackets.
		expected: Declared motion count.
		source: File name for messages.
		frame_num: Frame number for messages.

	Returns:
		list: LocalMotion entries in file order.
	"""
	body = text.strip()
	motions = []
	position = 0
	while position < len(body):
		match = LM_RE.match(body, position)
		if match is None:
			raise SegmentDecodeError(f"{source}: frame {frame_num}: malformed local motion entry")
		fields = match.groups()
		motions.append(LocalMotion(
			int(fields[0]), int(fields[1]), int(fields[2]), int(fields[3]),
			int(fields[4]), float(fields[5]), float(fields[6]),
		))
		position = match.end()
		if position < len(body):
			if body[position] != ",":
				raise SegmentDecodeError(f"{source}: frame {frame_num}: expected ',' between entries")
			position += 1
	if len(motions) != expected:
		raise SegmentDecodeError(
			f"{source}: frame {frame_num}: declared {expected} local motions, found {len(motions)}"
		)
	return motions

#============================================

def read_local_motions(handle, source: str = "<stream>") -> list:
	"""
	Read a local motions file from an open text handle.

	Raises FormatMismatch when the first line is not a VID.STAB header so
	the caller can try another decoder. Anything wrong after a valid header
	is a SegmentDecodeError.

	Args:
		handle: Text file handle positioned at the start.
		source: File name for messages.

	Returns:
		list: One list of LocalMotion per frame, in frame order.
	"""
	first_line = handle.readline()
	header = HEADER_RE.match(first_line.strip())
	if header is None:
		raise FormatMismatch(f"{source}: no VID.STAB header")
	try:
		version = int(header.group(1))
	except ValueError as exc:
		raise SegmentDecodeError(f"{source}: bad VID.STAB version '{header.group(1)}'") from exc
	if version < 1:
		raise SegmentDecodeError(f"{source}: bad VID.STAB version {version}")
	if version > FILE_FORMAT_VERSION:
		raise SegmentDecodeError(f"{source}: VID.STAB file version {version} too new")
	frames = []
	last_frame = 0
	for line_number, raw_line in enumerate(handle, start=2):
		line = raw_line.strip()
		if line == "" or line.startswith("#"):
			continue
		match = FRAME_RE.match(line)
		if match is None:
			raise SegmentDecodeError(f"{source}: line {line_number}: expected 'Frame N (List ...)'")
		frame_num = int(match.group(1))
		if frame_num < 1:
			raise SegmentDecodeError(f"{source}: line {line_number}: frame numbers start at 1")
		if frame_num <= last_frame:
			raise SegmentDecodeError(
				f"{source}: line {line_number}: frame {frame_num} not after frame {last_frame}"
			)
		motions = parse_local_motion_list(match.group(3), int(match.group(2)), source, frame_num)
		# gaps become frames without motions
		while last_frame + 1 < frame_num:
			frames.append([])
			last_frame += 1
		frames.append(motions)
		last_frame = frame_num
	return frames
