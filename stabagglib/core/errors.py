#!/usr/bin/env python3

"""
Error categories for a stabagg run.

Every category is fatal for the run and maps to its own exit code.
FormatMismatch is not an error: it only tells the segment reader to try
the next decoder.
"""

#============================================

class AggregationError(RuntimeError):
	exit_code = 1

#============================================

class ConfigurationError(AggregationError):
	"""Unreadable input directory, bad frame geometry or bad settings."""
	exit_code = 3

#============================================

class SegmentDecodeError(AggregationError):
	"""A segment file matches neither supported format."""
	exit_code = 4

#============================================

class ResourceError(AggregationError):
	"""Allocation failure, or an output file that cannot be opened or fully written."""
	exit_code = 5

#============================================

class PipelineError(AggregationError):
	"""Conversion, preprocessing or serialization reported failure."""
	exit_code = 6

#============================================

class FormatMismatch(Exception):
	pass
