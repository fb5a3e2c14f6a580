#!/usr/bin/env python3

"""
detect_segments.py

Run vid.stab motion analysis over consecutive time chunks of one video and
write one local motions file per chunk, named so that byte-wise name order
is time order (segment_0000.trf, segment_0001.trf, ...).

The output directory is the input of stabagg_cli.py.
"""

# Standard Library
import argparse
import os
import shlex
import shutil
import subprocess
import sys

#============================================

def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.

	Returns:
		argparse.Namespace: Parsed CLI args.
	"""
	parser = argparse.ArgumentParser(
		description="Run vidstabdetect per time chunk and write one motions file per chunk."
	)
	parser.add_argument(
		"-i", "--input", dest="input_file", required=True,
		help="Input media file path."
	)
	parser.add_argument(
		"-o", "--output-dir", dest="output_dir", required=True,
		help="Directory for the per-segment motions files."
	)
	parser.add_argument(
		"-n", "--segments", dest="segments", type=int, default=4,
		help="Number of equal-length chunks."
	)
	parser.add_argument(
		"--shakiness", dest="shakiness", type=int, default=5,
		help="vidstabdetect shakiness (1..10)."
	)
	parser.add_argument(
		"--accuracy", dest="accuracy", type=int, default=15,
		help="vidstabdetect accuracy (1..15, >= shakiness)."
	)
	parser.add_argument(
		"--stepsize", dest="stepsize", type=int, default=6,
		help="vidstabdetect stepsize (1..32)."
	)
	parser.add_argument(
		"--mincontrast", dest="mincontrast", type=float, default=0.25,
		help="vidstabdetect mincontrast (0..1)."
	)
	return parser.parse_args()

#============================================

def run_tool(cmd: list) -> str:
	"""
	Run ffmpeg or ffprobe and return its stdout, failing loudly on a non-zero exit.
	"""
	showcmd = shlex.join(cmd)
	print(f"CMD: '{showcmd}'", file=sys.stderr)
	proc = subprocess.run(cmd, capture_output=True, text=True)
	if proc.returncode != 0:
		raise RuntimeError(f"{cmd[0]} exited {proc.returncode}: {(proc.stderr or '').strip()}")
	return proc.stdout

#============================================

def require_vidstab_tools() -> None:
	"""
	Check that ffmpeg and ffprobe are on PATH and ffmpeg has vidstabdetect.
	"""
	missing = [name for name in ("ffmpeg", "ffprobe") if shutil.which(name) is None]
	if missing:
		raise RuntimeError(f"missing tools: {', '.join(missing)}")
	if "vidstabdetect" not in run_tool(["ffmpeg", "-hide_banner", "-filters"]):
		raise RuntimeError("ffmpeg was built without the vidstabdetect filter")
	return

#============================================

def media_duration(input_file: str) -> float:
	text = run_tool([
		"ffprobe", "-v", "error", "-show_entries", "format=duration",
		"-of", "csv=p=0", input_file,
	]).strip()
	try:
		seconds = float(text)
	except ValueError as exc:
		raise RuntimeError(f"no duration for {input_file}: '{text}'") from exc
	if seconds <= 0:
		raise RuntimeError(f"{input_file} has no frames to analyze")
	return seconds

#============================================

# characters with a meaning inside an ffmpeg filter graph
FILTER_SPECIAL_CHARS = "\\:,'[]"

def escape_ffmpeg_filter_value(value: str) -> str:
	"""
	Backslash-escape filter graph syntax in an option value such as a file path.
	"""
	escaped = []
	for char in str(value):
		if char in FILTER_SPECIAL_CHARS:
			escaped.append("\\")
		escaped.append(char)
	return "".join(escaped)

#============================================

def chunk_ranges(duration: float, segments: int) -> list:
	"""
	Split a duration into equal consecutive (start, length) ranges.

	Args:
		duration: Total seconds.
		segments: Number of chunks.

	Returns:
		list: (start_seconds, duration_seconds) tuples in time order.
	"""
	if segments < 1:
		raise RuntimeError("--segments must be >= 1")
	length = duration / segments
	ranges = []
	for index in range(segments):
		start = index * length
		ranges.append((start, length))
	return ranges

#============================================

def segment_file_name(index: int) -> str:
	return f"segment_{index:04d}.trf"

#============================================

def run_vidstabdetect(input_file: str, trf_path: str, args: argparse.Namespace,
	start_seconds: float, duration_seconds: float) -> None:
	"""
	Run vidstabdetect over one time range.

	Args:
		input_file: Input media file.
		trf_path: Output motions file path.
		args: Parsed CLI args with detect settings.
		start_seconds: Range start.
		duration_seconds: Range length.
	"""
	cmd = ["ffmpeg", "-y", "-hide_banner", "-loglevel", "error"]
	cmd += ["-ss", f"{start_seconds}", "-t", f"{duration_seconds}"]
	cmd += ["-i", input_file, "-an", "-sn"]
	result_path = escape_ffmpeg_filter_value(trf_path)
	filter_text = (
		"vidstabdetect="
		"fileformat=ascii:"
		f"shakiness={args.shakiness}:"
		f"accuracy={args.accuracy}:"
		f"stepsize={args.stepsize}:"
		f"mincontrast={args.mincontrast}:"
		f"result={result_path}"
	)
	cmd += ["-vf", filter_text, "-f", "null", "-"]
	run_tool(cmd)
	if not os.path.isfile(trf_path):
		raise RuntimeError(f"vidstabdetect did not produce {trf_path}")
	return

#============================================

def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	if not os.path.isfile(args.input_file):
		raise RuntimeError(f"file not found: {args.input_file}")
	if args.shakiness < 1 or args.shakiness > 10:
		raise RuntimeError("shakiness must be 1..10")
	if args.accuracy < 1 or args.accuracy > 15 or args.accuracy < args.shakiness:
		raise RuntimeError("accuracy must be 1..15 and >= shakiness")
	require_vidstab_tools()
	duration = media_duration(args.input_file)
	os.makedirs(args.output_dir, exist_ok=True)
	for index, (start, length) in enumerate(chunk_ranges(duration, args.segments)):
		trf_path = os.path.join(args.output_dir, segment_file_name(index))
		print(f"Running vidstabdetect ({index + 1}/{args.segments}): {trf_path}", file=sys.stderr)
		run_vidstabdetect(args.input_file, trf_path, args, start, length)
	return

#============================================

if __name__ == "__main__":
	main()
