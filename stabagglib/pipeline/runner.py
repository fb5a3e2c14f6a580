#!/usr/bin/env python3

"""
Sequential aggregation pipeline:
enumerate -> read segments -> aggregate -> cross-check -> preprocess -> write.
"""

# Standard Library
import os

# local repo modules
from stabagglib.core import utils
from stabagglib.core.config import build_preprocess_config
from stabagglib.core.config import init_transform_context
from stabagglib.core.config import load_config
from stabagglib.core.config import normalize_overrides
from stabagglib.core.errors import AggregationError
from stabagglib.core.errors import ConfigurationError
from stabagglib.core.frameinfo import DEFAULT_PIXEL_FORMAT
from stabagglib.core.frameinfo import init_frame_info
from stabagglib.formats.oldtransforms import serialize_transforms
from stabagglib.motion.preprocess import preprocess_transforms
from stabagglib.pipeline.aggregator import TransformAggregator
from stabagglib.pipeline.segments import list_segment_files
from stabagglib.pipeline.segments import read_segment
from stabagglib.pipeline.validator import cross_check
from stabagglib.pipeline.writer import write_artifact
from stabagglib.pipeline.writer import write_report
from stabagglib.pipeline.writer import write_transforms

#============================================

def raw_transforms_path(output_file: str) -> str:
	return f"{output_file}.raw.trf"

#============================================

class AggregationRun():
	def __init__(self, input_dir: str, output_file: str, width: int, height: int,
		tripod: bool = False, debug: bool = False, config_file: str = None,
		reference_file: str = None, report_file: str = None):
		self.input_dir = input_dir
		self.output_file = output_file
		self.width = width
		self.height = height
		self.tripod = tripod
		self.debug = debug
		self.config_file = config_file
		self.reference_file = reference_file
		self.report_file = report_file
		self.context = None
		self.aggregator = TransformAggregator()
		self.report = {
			"stabagg": 1,
			"input_dir": os.path.abspath(input_dir),
			"output": os.path.abspath(output_file),
			"frame": {"width": width, "height": height, "pixel_format": DEFAULT_PIXEL_FORMAT},
			"config_path": None if config_file is None else os.path.abspath(config_file),
			"tripod": bool(tripod),
			"segments": [],
			"validation": None,
			"result": {"pass": False, "message": None},
		}

	#============================
	def setup(self) -> None:
		fi_src = init_frame_info(self.width, self.height, DEFAULT_PIXEL_FORMAT)
		fi_dest = init_frame_info(self.width, self.height, DEFAULT_PIXEL_FORMAT)
		overrides = None
		if self.config_file is not None:
			overrides = normalize_overrides(load_config(self.config_file), self.config_file)
		config = build_preprocess_config(tripod=self.tripod, debug=self.debug,
			overrides=overrides)
		self.context = init_transform_context(config, fi_src, fi_dest)
		self.report["config"] = self.context.config.to_dict()

	#============================
	def aggregate(self) -> None:
		segments = list_segment_files(self.input_dir)
		if len(segments) == 0:
			raise ConfigurationError(f"no segment files in {self.input_dir}")
		for segment in segments:
			records, source_format = read_segment(segment.path, self.context)
			utils.log(f"reading: {segment.name} ({source_format}, {len(records)} frames)")
			offset = len(self.aggregator)
			self.aggregator.append(segment.name, records)
			self.report["segments"].append({
				"name": segment.name,
				"format": source_format,
				"offset": offset,
				"frames": len(records),
			})
		self.report["frames"] = len(self.aggregator)

	#============================
	def validate(self) -> None:
		if self.reference_file is None:
			return
		self.report["validation"] = cross_check(self.aggregator, self.reference_file, self.context)

	#============================
	def finish(self) -> None:
		raw = self.aggregator.records
		if self.context.config.store_transforms:
			raw_path = raw_transforms_path(self.output_file)
			write_transforms(raw_path, raw)
			self.report["raw_transforms"] = os.path.abspath(raw_path)
		final = preprocess_transforms(self.context, raw)
		buffer = serialize_transforms(final)
		written = write_artifact(self.output_file, buffer)
		self.report["output_bytes"] = written
		utils.log(f"wrote {len(final)} transforms from {len(self.report['segments'])} segments: "
			f"{self.output_file}")

	#============================
	def run(self) -> dict:
		try:
			self.setup()
			self.aggregate()
			self.validate()
			self.finish()
		except AggregationError as exc:
			self.report["result"]["message"] = str(exc)
			if self.report_file is not None:
				# the run error keeps its category even if the report fails too
				try:
					write_report(self.report_file, self.report)
				except AggregationError as report_exc:
					utils.log_error(str(report_exc))
			raise
		self.report["result"]["pass"] = True
		self.report["result"]["message"] = "ok"
		if self.report_file is not None:
			write_report(self.report_file, self.report)
		return self.report
