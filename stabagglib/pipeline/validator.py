#!/usr/bin/env python3

"""
Optional consistency check between the aggregated sequence and an
independent decode of one reference segment.

A mismatch is only reported. It points at non-determinism or ordering
problems and never stops the run.
"""

# Standard Library
import os

# local repo modules
from stabagglib.core import utils
from stabagglib.core.config import TransformContext
from stabagglib.core.transforms import pack_records
from stabagglib.pipeline.aggregator import TransformAggregator
from stabagglib.pipeline.segments import read_segment

#============================================

def cross_check(aggregator: TransformAggregator, reference_path: str,
	context: TransformContext) -> dict:
	"""
	Decode the reference file again and compare it byte for byte.

	The comparison slice is the aggregated segment with the same file name,
	or the leading frames when the reference was not one of the segments.

	Args:
		aggregator: Aggregated transforms.
		reference_path: Reference segment file.
		context: Shared transform context.

	Returns:
		dict: {reference, segment, offset, length, same}
	"""
	reference_records, source_format = read_segment(reference_path, context)
	name = os.path.basename(reference_path)
	segment = aggregator.find_segment(name)
	offset = 0
	if segment is not None:
		offset = segment["offset"]
	aggregated = aggregator.slice(offset, len(reference_records))
	same = pack_records(aggregated) == pack_records(reference_records)
	if same:
		utils.log("same!")
	else:
		utils.log_warning("differs!")
	return {
		"reference": os.path.abspath(reference_path),
		"format": source_format,
		"segment": None if segment is None else segment["name"],
		"offset": offset,
		"length": len(reference_records),
		"same": bool(same),
	}
