#!/usr/bin/env python3

"""
The line-oriented vid.stab transforms format.

Each non-comment line is 'frame x y alpha zoom extra'. The older
five-field form 'frame x y alpha extra' has no zoom column. The frame
number is ignored on read, line order is frame order.
"""

# local repo modules
from stabagglib.core.errors import PipelineError
from stabagglib.core.errors import SegmentDecodeError
from stabagglib.core.transforms import TransformRecord

SERIALIZE_FORMAT_VERSION = 1

#============================================

def parse_transform_line(line: str) -> TransformRecord | None:
	parts = line.split()
	if len(parts) < 5:
		return None
	try:
		int(parts[0])
		x = float(parts[1])
		y = float(parts[2])
		alpha = float(parts[3])
		if len(parts) >= 6:
			zoom = float(parts[4])
			extra = int(parts[5])
		else:
			zoom = 0.0
			extra = int(parts[4])
	except ValueError:
		return None
	return TransformRecord(x, y, alpha, zoom, extra)

#============================================

def read_old_transforms(handle, source: str = "<stream>") -> list:
	"""
	Read transforms in the legacy format from an open text handle.

	Args:
		handle: Text file handle.
		source: File name for messages.

	Returns:
		list: TransformRecord list in file order.
	"""
	records = []
	for line_number, raw_line in enumerate(handle, start=1):
		line = raw_line.strip()
		if line == "" or line.startswith("#"):
			continue
		record = parse_transform_line(line)
		if record is None:
			raise SegmentDecodeError(f"{source}: line {line_number}: cannot parse transform line")
		records.append(record)
	if len(records) == 0:
		raise SegmentDecodeError(f"{source}: no transforms found")
	return records

#============================================

def serialize_transforms(records: list) -> bytes:
	"""
	Encode a transform sequence as legacy-format text.

	Floats are written with repr() so reading the buffer back gives the
	same values. Equal input always gives equal bytes.

	Args:
		records: TransformRecord list.

	Returns:
		bytes: Encoded buffer.
	"""
	if len(records) == 0:
		raise PipelineError("cannot serialize an empty transform sequence")
	lines = []
	lines.append(f"# stabagg transforms {SERIALIZE_FORMAT_VERSION}")
	lines.append(f"# frames = {len(records)}")
	lines.append("# frame x y alpha zoom extra")
	for index, record in enumerate(records, start=1):
		lines.append(
			f"{index} {float(record.x)!r} {float(record.y)!r} {float(record.alpha)!r} "
			f"{float(record.zoom)!r} {int(record.extra)}"
		)
	lines.append("")
	return "\n".join(lines).encode("ascii")
