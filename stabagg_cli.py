#!/usr/bin/env python3

"""
Aggregate per-segment vid.stab motion files into one preprocessed transforms file.
"""

# Standard Library
import argparse
import os
import sys

# local repo modules
from stabagglib.core import utils
from stabagglib.core.config import default_config
from stabagglib.core.config import write_config_file
from stabagglib.core.errors import AggregationError
from stabagglib.core.errors import ConfigurationError
from stabagglib.pipeline.runner import AggregationRun

#============================================

def parse_args(argv: list = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.

	Returns:
		argparse.Namespace: Parsed CLI args.
	"""
	parser = argparse.ArgumentParser(
		description="Combine per-segment vid.stab motion files into one transforms file."
	)
	parser.add_argument('input_dir',
		help='directory with one motion or transforms file per segment')
	parser.add_argument('output_file',
		help='output transforms file')
	parser.add_argument('width', type=int,
		help='frame width in pixels')
	parser.add_argument('height', type=int,
		help='frame height in pixels')
	parser.add_argument('--tripod', dest='tripod', action='store_true',
		help='tripod mode: absolute transforms, no smoothing')
	parser.add_argument('-c', '--config', dest='config_file', default=None,
		help='optional config YAML (if missing, defaults are written and then read)')
	parser.add_argument('--reference', dest='reference_file', default=None,
		help='segment file to decode again and compare against the aggregate')
	parser.add_argument('--report', dest='report_file', default=None,
		help='write a run report (.json for JSON, YAML otherwise)')
	parser.add_argument('--debug', dest='debug', action='store_true',
		help='also write the aggregate before preprocessing to OUTPUT.raw.trf')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='only print errors')
	parser.set_defaults(tripod=False)
	parser.set_defaults(debug=False)
	parser.set_defaults(quiet=False)
	args = parser.parse_args(argv)
	return args

#============================================

def ensure_config_file(config_path: str) -> None:
	if os.path.exists(config_path):
		return
	try:
		write_config_file(config_path, default_config())
	except OSError as exc:
		reason = exc.strerror or str(exc)
		raise ConfigurationError(f"cannot write default config {config_path}: {reason}") from exc
	utils.log(f"Wrote default config: {config_path}")
	return

#============================================

def main(argv: list = None) -> None:
	args = parse_args(argv)
	utils.set_quiet_mode(args.quiet)
	try:
		if args.config_file is not None:
			ensure_config_file(args.config_file)
		run = AggregationRun(args.input_dir, args.output_file, args.width, args.height,
			tripod=args.tripod, debug=args.debug, config_file=args.config_file,
			reference_file=args.reference_file, report_file=args.report_file)
		run.run()
	except AggregationError as exc:
		utils.log_error(str(exc))
		sys.exit(exc.exit_code)
	return


if __name__ == '__main__':
	main()
