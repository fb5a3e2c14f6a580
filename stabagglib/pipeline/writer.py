#!/usr/bin/env python3

# Standard Library
import json
import os

# PIP3 modules
import yaml

# local repo modules
from stabagglib.core.errors import ResourceError
from stabagglib.formats.oldtransforms import serialize_transforms

#============================================

def write_artifact(output_path: str, buffer: bytes) -> int:
	"""
	Write an encoded buffer with a single write call.

	Args:
		output_path: Destination file path.
		buffer: Encoded transforms.

	Returns:
		int: Number of bytes written.
	"""
	try:
		handle = open(output_path, "wb")
	except OSError as exc:
		reason = exc.strerror or str(exc)
		raise ResourceError(f"cannot open output file {output_path}: {reason}") from exc
	try:
		with handle:
			written = handle.write(buffer)
			if written != len(buffer):
				raise ResourceError(
					f"short write to {output_path}: {written} of {len(buffer)} bytes"
				)
			handle.flush()
	except OSError as exc:
		reason = exc.strerror or str(exc)
		raise ResourceError(f"cannot write output file {output_path}: {reason}") from exc
	return written

#============================================

def write_transforms(output_path: str, records: list) -> int:
	buffer = serialize_transforms(records)
	return write_artifact(output_path, buffer)

#============================================

def write_report(report_path: str, report: dict) -> None:
	"""
	Write a run report sidecar file, JSON for a .json path and YAML otherwise.

	Args:
		report_path: Report path.
		report: Report mapping.
	"""
	if report_path.lower().endswith(".json"):
		text = json.dumps(report, sort_keys=True, indent=2, ensure_ascii=True) + "\n"
	else:
		text = yaml.safe_dump(report, sort_keys=True)
	try:
		os.makedirs(os.path.dirname(report_path) or ".", exist_ok=True)
		with open(report_path, "w", encoding="utf-8") as handle:
			handle.write(text)
	except OSError as exc:
		reason = exc.strerror or str(exc)
		raise ResourceError(f"cannot write report {report_path}: {reason}") from exc
	return
