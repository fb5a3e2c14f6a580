#!/usr/bin/env python3

"""
Pytest coverage for the stabagg command line, run as a subprocess.
"""

# Standard Library
import json
import os
import subprocess
import sys
import tempfile

# PIP3 modules
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
CLI_PATH = os.path.join(REPO_ROOT, "stabagg_cli.py")

TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
import segment_files

#============================================

def _run_cli(args: list) -> subprocess.CompletedProcess:
	cmd = [sys.executable, CLI_PATH] + [str(arg) for arg in args]
	return subprocess.run(cmd, cwd=REPO_ROOT, capture_output=True, text=True)

#============================================

def _make_segments(seg_dir: str) -> None:
	os.makedirs(seg_dir, exist_ok=True)
	segment_files.write_translation_segment(os.path.join(seg_dir, "seg_000.trf"), 1, 0, 12)
	segment_files.write_translation_segment(os.path.join(seg_dir, "seg_001.trf"), 0, 1, 12)
	segment_files.write_legacy_translation_segment(os.path.join(seg_dir, "seg_002.trf"), -1.0, 2.0, 6)
	return

#============================================

def _read_bytes(path: str) -> bytes:
	with open(path, "rb") as handle:
		return handle.read()

#============================================

def test_cli_output_is_deterministic() -> None:
	with tempfile.TemporaryDirectory(prefix="stabagg-cli-") as temp_dir:
		seg_dir = os.path.join(temp_dir, "segments")
		_make_segments(seg_dir)
		first = os.path.join(temp_dir, "first.trf")
		second = os.path.join(temp_dir, "second.trf")
		proc = _run_cli([seg_dir, first, 320, 240])
		assert proc.returncode == 0, proc.stderr
		assert "reading: seg_000.trf" in proc.stderr
		proc = _run_cli([seg_dir, second, 320, 240, "-q"])
		assert proc.returncode == 0, proc.stderr
		assert proc.stderr == ""
		first_bytes = _read_bytes(first)
		assert first_bytes == _read_bytes(second)
	frame_lines = [line for line in first_bytes.decode("ascii").splitlines()
		if line and not line.startswith("#")]
	assert len(frame_lines) == 30
	assert frame_lines[0].split()[0] == "1"
	assert frame_lines[-1].split()[0] == "30"
	return

#============================================

def test_cli_exit_codes() -> None:
	with tempfile.TemporaryDirectory(prefix="stabagg-cli-") as temp_dir:
		output = os.path.join(temp_dir, "out.trf")
		proc = _run_cli([os.path.join(temp_dir, "missing"), output, 320, 240])
		assert proc.returncode == 3
		assert "error:" in proc.stderr
		empty_dir = os.path.join(temp_dir, "empty")
		os.mkdir(empty_dir)
		assert _run_cli([empty_dir, output, 320, 240]).returncode == 3
		seg_dir = os.path.join(temp_dir, "segments")
		_make_segments(seg_dir)
		assert _run_cli([seg_dir, output, 0, 240]).returncode == 3
		proc = _run_cli([seg_dir, output, 321, 241, "-q"])
		assert proc.returncode == 0, proc.stderr
		os.remove(output)
		segment_files.write_text(os.path.join(seg_dir, "seg_003.trf"), "VID.STAB 1\nFrame 1 junk\n")
		proc = _run_cli([seg_dir, output, 320, 240])
		assert proc.returncode == 4
		assert not os.path.exists(output)
	return

#============================================

def test_cli_report_debug_and_default_config() -> None:
	with tempfile.TemporaryDirectory(prefix="stabagg-cli-") as temp_dir:
		seg_dir = os.path.join(temp_dir, "segments")
		_make_segments(seg_dir)
		output = os.path.join(temp_dir, "out.trf")
		report_path = os.path.join(temp_dir, "report.json")
		config_path = os.path.join(temp_dir, "stabagg.yaml")
		proc = _run_cli([seg_dir, output, 320, 240, "--debug", "--tripod",
			"--report", report_path, "-c", config_path,
			"--reference", os.path.join(seg_dir, "seg_001.trf")])
		assert proc.returncode == 0, proc.stderr
		assert "same!" in proc.stderr
		assert os.path.isfile(output)
		assert os.path.isfile(output + ".raw.trf")
		with open(config_path, "r", encoding="utf-8") as handle:
			config_data = yaml.safe_load(handle)
		with open(report_path, "r", encoding="utf-8") as handle:
			report = json.load(handle)
	assert config_data["stabagg"] == 1
	assert "preprocess" in config_data["settings"]
	assert report["result"]["pass"] is True
	assert report["frames"] == 30
	assert report["tripod"] is True
	assert report["config"]["relative"] is False
	assert report["config"]["store_transforms"] is True
	assert report["validation"]["offset"] == 12
	return

#============================================

def test_cli_quiet_still_prints_mismatch() -> None:
	with tempfile.TemporaryDirectory(prefix="stabagg-cli-") as temp_dir:
		seg_dir = os.path.join(temp_dir, "segments")
		_make_segments(seg_dir)
		output = os.path.join(temp_dir, "out.trf")
		proc = _run_cli([seg_dir, output, 320, 240, "-q",
			"--reference", os.path.join(seg_dir, "seg_001.trf")])
		assert proc.returncode == 0, proc.stderr
		assert proc.stderr == ""
		other = segment_files.write_translation_segment(
			os.path.join(temp_dir, "other.trf"), 4, 4, 3)
		proc = _run_cli([seg_dir, output, 320, 240, "-q", "--reference", other])
		assert proc.returncode == 0, proc.stderr
		assert "differs!" in proc.stderr
		assert "same!" not in proc.stderr
	return

#============================================

def test_cli_unwritable_report_keeps_error_category() -> None:
	with tempfile.TemporaryDirectory(prefix="stabagg-cli-") as temp_dir:
		seg_dir = os.path.join(temp_dir, "segments")
		_make_segments(seg_dir)
		output = os.path.join(temp_dir, "out.trf")
		# a plain file where the report directory should be
		blocker = segment_files.write_text(os.path.join(temp_dir, "blocker"), "x\n")
		report_path = os.path.join(blocker, "report.json")
		proc = _run_cli([seg_dir, output, 320, 240, "--report", report_path])
		assert proc.returncode == 5
		assert "cannot write report" in proc.stderr
		assert "Traceback" not in proc.stderr
		os.remove(output)
		segment_files.write_text(os.path.join(seg_dir, "seg_003.trf"), "garbage\n")
		proc = _run_cli([seg_dir, output, 320, 240, "--report", report_path])
		assert proc.returncode == 4
		assert "cannot write report" in proc.stderr
		assert "Traceback" not in proc.stderr
		assert not os.path.exists(output)
	return
