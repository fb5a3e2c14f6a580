#!/usr/bin/env python3

import sys

_QUIET_MODE = False

#============================================

def set_quiet_mode(quiet: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(quiet)
	return

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def log(message: str) -> None:
	"""
	Print a progress message to stderr unless quiet mode is on.
	"""
	if is_quiet_mode():
		return
	print(message, file=sys.stderr)
	return

#============================================

def log_warning(message: str) -> None:
	"""
	Print a non-fatal problem to stderr, also in quiet mode.
	"""
	print(message, file=sys.stderr)
	return

#============================================

def log_error(message: str) -> None:
	print(f"error: {message}", file=sys.stderr)
	return

#============================================

def median(values: list) -> float:
	if len(values) == 0:
		raise RuntimeError("median() requires at least one value")
	items = sorted(values)
	mid = len(items) // 2
	if len(items) % 2 == 1:
		return float(items[mid])
	return (float(items[mid - 1]) + float(items[mid])) / 2.0

#============================================

def clean_mean(values: list) -> tuple:
	"""
	Mean of the values with the lowest and highest fifth discarded.

	Args:
		values: Numeric values.

	Returns:
		tuple: (mean, min_kept, max_kept)
	"""
	if len(values) == 0:
		raise RuntimeError("clean_mean() requires at least one value")
	items = sorted(values)
	cut = len(items) // 5
	kept = items[cut:len(items) - cut]
	mean = sum(kept) / float(len(kept))
	return mean, kept[0], kept[-1]
