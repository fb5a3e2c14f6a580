#!/usr/bin/env python3

"""
Pytest coverage for the local motions reader and the legacy transforms format.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
import segment_files

# local repo modules
from stabagglib.core.errors import FormatMismatch
from stabagglib.core.errors import PipelineError
from stabagglib.core.errors import SegmentDecodeError
from stabagglib.core.transforms import TransformRecord
from stabagglib.formats.localmotions import LocalMotion
from stabagglib.formats.localmotions import read_local_motions
from stabagglib.formats.oldtransforms import read_old_transforms
from stabagglib.formats.oldtransforms import serialize_transforms

#============================================

def test_local_motions_reads_frames_in_order() -> None:
	frames = [segment_files.translation_frame(1, 0), segment_files.translation_frame(-2, 3)]
	text = segment_files.local_motions_text(frames)
	result = read_local_motions(io.StringIO(text), source="seg.trf")
	assert len(result) == 2
	assert len(result[0]) == 12
	assert result[0][0] == LocalMotion(1, 0, 40, 40, 32, 0.5, 1.0)
	assert result[1][-1] == LocalMotion(-2, 3, 280, 200, 32, 0.5, 1.0)
	return

#============================================

def test_local_motions_empty_list_and_gap_fill() -> None:
	lines = []
	lines.append("VID.STAB 1")
	lines.append("Frame 1 (List 0 [])")
	lines.append("Frame 4 (List 1 [(LM 3 -1 64 48 32 0.510000 2.100000)])")
	lines.append("")
	result = read_local_motions(io.StringIO("\n".join(lines)))
	assert len(result) == 4
	assert result[0] == []
	assert result[1] == []
	assert result[2] == []
	assert result[3] == [LocalMotion(3, -1, 64, 48, 32, 0.51, 2.1)]
	return

#============================================

def test_local_motions_header_mismatch() -> None:
	with pytest.raises(FormatMismatch):
		read_local_motions(io.StringIO("0 1.0 0.0 0.0 0.0 0\n"))
	with pytest.raises(FormatMismatch):
		read_local_motions(io.StringIO(""))
	return

#============================================

def test_local_motions_version_too_new() -> None:
	with pytest.raises(SegmentDecodeError):
		read_local_motions(io.StringIO("VID.STAB 2\nFrame 1 (List 0 [])\n"))
	return

#============================================

def test_local_motions_malformed_body_is_error() -> None:
	bad_count = "VID.STAB 1\nFrame 1 (List 2 [(LM 1 0 40 40 32 0.5 1.0)])\n"
	with pytest.raises(SegmentDecodeError):
		read_local_motions(io.StringIO(bad_count))
	bad_line = "VID.STAB 1\nFrame 1 (List 0 [])\ngarbage\n"
	with pytest.raises(SegmentDecodeError):
		read_local_motions(io.StringIO(bad_line))
	backwards = "VID.STAB 1\nFrame 2 (List 0 [])\nFrame 1 (List 0 [])\n"
	with pytest.raises(SegmentDecodeError):
		read_local_motions(io.StringIO(backwards))
	return

#============================================

def test_old_transforms_six_and_five_fields() -> None:
	lines = []
	lines.append("# comment")
	lines.append("1 1.5 -2.0 0.01 0.5 0")
	lines.append("")
	lines.append("2 3.0 4.0 -0.02 1")
	text = "\n".join(lines) + "\n"
	records = read_old_transforms(io.StringIO(text))
	assert records == [
		TransformRecord(1.5, -2.0, 0.01, 0.5, 0),
		TransformRecord(3.0, 4.0, -0.02, 0.0, 1),
	]
	assert records[0].trusted
	assert not records[1].trusted
	return

#============================================

def test_old_transforms_rejects_bad_or_empty_input() -> None:
	with pytest.raises(SegmentDecodeError):
		read_old_transforms(io.StringIO("1 1.0 2.0\n"))
	with pytest.raises(SegmentDecodeError):
		read_old_transforms(io.StringIO("# only comments\n"))
	with pytest.raises(SegmentDecodeError):
		read_old_transforms(io.StringIO("Frame 1 (List 0 [])\n"))
	return

#============================================

def test_serialize_reads_back_exactly() -> None:
	records = [
		TransformRecord(0.1, -1.0 / 3.0, 1e-9, 2.5, 0),
		TransformRecord(-123.456789, 7.0, -0.25, 0.0, 1),
	]
	buffer = serialize_transforms(records)
	assert buffer == serialize_transforms(list(records))
	assert buffer.startswith(b"# stabagg transforms 1\n")
	assert read_old_transforms(io.StringIO(buffer.decode("ascii"))) == records
	return

#============================================

def test_serialize_empty_fails() -> None:
	with pytest.raises(PipelineError):
		serialize_transforms([])
	return
