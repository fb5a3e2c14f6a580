#!/usr/bin/env python3

"""
Preprocessing configuration and the shared transform context.

The configuration is built once, before any segment is read. Tripod mode
is a construction-time branch, never a later mutation.
"""

# Standard Library
import os
from typing import NamedTuple

# PIP3 modules
import yaml

# local repo modules
from stabagglib.core.errors import ConfigurationError
from stabagglib.core.frameinfo import FrameInfo

#============================================

TOOL_CONFIG_HEADER_KEY = "stabagg"
TOOL_CONFIG_HEADER_VALUE = 1

CROP_MODES = ("keep_border", "black")
INTERPOLATION_KINDS = ("zero", "linear", "bilinear", "bicubic")
CAM_PATH_ALGOS = ("opt", "gauss", "avg")
OPT_ZOOM_MODES = (0, 1, 2)

# unbounded sentinels for the shift and angle clamps
UNBOUNDED_SHIFT = -1
UNBOUNDED_ANGLE = -1.0

#============================================

class PreprocessConfig(NamedTuple):
	relative: bool = True
	smoothing: int = 15
	crop: str = "keep_border"
	invert: bool = False
	zoom: float = 0.0
	opt_zoom: int = 1
	zoom_speed: float = 0.25
	interpolation: str = "bilinear"
	max_shift: int = UNBOUNDED_SHIFT
	max_angle: float = UNBOUNDED_ANGLE
	simple_motion_calculation: bool = False
	store_transforms: bool = False
	smooth_zoom: bool = False
	cam_path_algo: str = "opt"

	def to_dict(self) -> dict:
		return dict(self._asdict())

#============================================

class TransformContext(NamedTuple):
	fi_src: FrameInfo
	fi_dest: FrameInfo
	config: PreprocessConfig

#============================================

def default_config() -> dict:
	"""
	Build the default config file mapping.

	Returns:
		dict: Default config.
	"""
	return {
		TOOL_CONFIG_HEADER_KEY: TOOL_CONFIG_HEADER_VALUE,
		"settings": {
			"preprocess": PreprocessConfig().to_dict(),
		},
	}

#============================================

def build_config_text(config: dict) -> str:
	"""
	Build YAML text for the config file.

	Args:
		config: Config dictionary.

	Returns:
		str: YAML content.
	"""
	settings = config.get("settings", {})
	preprocess = settings.get("preprocess", {})
	defaults = PreprocessConfig()
	lines = []
	lines.append(f"{TOOL_CONFIG_HEADER_KEY}: {TOOL_CONFIG_HEADER_VALUE}")
	lines.append("settings:")
	lines.append("  preprocess:")
	for key in PreprocessConfig._fields:
		value = preprocess.get(key, getattr(defaults, key))
		if isinstance(value, bool):
			text = "true" if value else "false"
		else:
			text = str(value)
		lines.append(f"    {key}: {text}")
	lines.append("")
	return "\n".join(lines)

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	text = build_config_text(config)
	os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
	with open(config_path, "w", encoding="utf-8") as handle:
		handle.write(text)
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config mapping.
	"""
	try:
		with open(config_path, "r", encoding="utf-8") as handle:
			data = yaml.safe_load(handle)
	except OSError as exc:
		raise ConfigurationError(f"cannot read config file {config_path}: {exc.strerror}") from exc
	except yaml.YAMLError as exc:
		raise ConfigurationError(f"config {config_path}: invalid yaml") from exc
	if not isinstance(data, dict):
		raise ConfigurationError(f"config {config_path}: file must be a mapping")
	if data.get(TOOL_CONFIG_HEADER_KEY) != TOOL_CONFIG_HEADER_VALUE:
		raise ConfigurationError(
			f"config {config_path}: must set {TOOL_CONFIG_HEADER_KEY}: {TOOL_CONFIG_HEADER_VALUE}"
		)
	return data

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise ConfigurationError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError:
			pass
	raise ConfigurationError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise ConfigurationError(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, str):
		try:
			value = float(value)
		except ValueError:
			pass
	# 3.0 is accepted, 2.7 is not truncated
	if isinstance(value, float) and value.is_integer():
		return int(value)
	raise ConfigurationError(f"config {config_path}: {key_path} must be an integer")

#============================================

def coerce_bool(value, config_path: str, key_path: str) -> bool:
	if isinstance(value, bool):
		return value
	if isinstance(value, int) and value in (0, 1):
		return bool(value)
	if isinstance(value, str) and value.strip().lower() in ("true", "false"):
		return value.strip().lower() == "true"
	raise ConfigurationError(f"config {config_path}: {key_path} must be true or false")

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if isinstance(value, str):
		return value
	raise ConfigurationError(f"config {config_path}: {key_path} must be a string")

#============================================

def normalize_overrides(config: dict, config_path: str) -> dict:
	"""
	Coerce and range-check the preprocess overrides of a config mapping.

	Args:
		config: Raw config mapping (as returned by load_config).
		config_path: Config file path, used in messages.

	Returns:
		dict: Validated overrides keyed by PreprocessConfig field.
	"""
	settings = config.get("settings") or {}
	if not isinstance(settings, dict):
		raise ConfigurationError(f"config {config_path}: settings must be a mapping")
	preprocess = settings.get("preprocess") or {}
	if not isinstance(preprocess, dict):
		raise ConfigurationError(f"config {config_path}: settings.preprocess must be a mapping")
	coercers = {
		"relative": coerce_bool,
		"smoothing": coerce_int,
		"crop": coerce_str,
		"invert": coerce_bool,
		"zoom": coerce_float,
		"opt_zoom": coerce_int,
		"zoom_speed": coerce_float,
		"interpolation": coerce_str,
		"max_shift": coerce_int,
		"max_angle": coerce_float,
		"simple_motion_calculation": coerce_bool,
		"store_transforms": coerce_bool,
		"smooth_zoom": coerce_bool,
		"cam_path_algo": coerce_str,
	}
	overrides = {}
	for key, value in preprocess.items():
		coercer = coercers.get(key)
		if coercer is None:
			raise ConfigurationError(f"config {config_path}: unknown key settings.preprocess.{key}")
		key_path = f"settings.preprocess.{key}"
		if value is None and key == "max_shift":
			overrides[key] = UNBOUNDED_SHIFT
			continue
		if value is None and key == "max_angle":
			overrides[key] = UNBOUNDED_ANGLE
			continue
		overrides[key] = coercer(value, config_path, key_path)
	return overrides

#============================================

def validate_preprocess_config(config: PreprocessConfig) -> None:
	if config.smoothing < 0:
		raise ConfigurationError("smoothing must be >= 0")
	if config.crop not in CROP_MODES:
		raise ConfigurationError("crop must be keep_border or black")
	if config.opt_zoom not in OPT_ZOOM_MODES:
		raise ConfigurationError("opt_zoom must be 0, 1, or 2")
	if config.zoom_speed <= 0:
		raise ConfigurationError("zoom_speed must be positive")
	if config.interpolation not in INTERPOLATION_KINDS:
		raise ConfigurationError("interpolation must be zero, linear, bilinear, or bicubic")
	if config.cam_path_algo not in CAM_PATH_ALGOS:
		raise ConfigurationError("cam_path_algo must be opt, gauss, or avg")
	if config.max_shift < 0 and config.max_shift != UNBOUNDED_SHIFT:
		raise ConfigurationError("max_shift must be >= 0 or -1 for unbounded")
	if config.max_angle < 0 and config.max_angle != UNBOUNDED_ANGLE:
		raise ConfigurationError("max_angle must be >= 0 or -1 for unbounded")
	return

#============================================

def build_preprocess_config(tripod: bool = False, debug: bool = False,
	overrides: dict | None = None) -> PreprocessConfig:
	"""
	Assemble the immutable preprocessing configuration for a run.

	Args:
		tripod: Tripod mode, forces absolute transforms without smoothing.
		debug: Store intermediate transforms.
		overrides: Validated overrides from normalize_overrides().

	Returns:
		PreprocessConfig: Configuration snapshot.
	"""
	values = PreprocessConfig().to_dict()
	if overrides:
		values.update(overrides)
	if debug:
		values["store_transforms"] = True
	if tripod:
		values["relative"] = False
		values["smoothing"] = 0
	config = PreprocessConfig(**values)
	validate_preprocess_config(config)
	return config

#============================================

def init_transform_context(config: PreprocessConfig, fi_src: FrameInfo,
	fi_dest: FrameInfo) -> TransformContext:
	"""
	Resolve the effective configuration against the frame geometry.

	Args:
		config: Requested configuration.
		fi_src: Source frame descriptor.
		fi_dest: Destination frame descriptor.

	Returns:
		TransformContext: Shared context for conversion and preprocessing.
	"""
	if fi_src.width != fi_dest.width or fi_src.height != fi_dest.height:
		raise ConfigurationError(
			f"source and destination frame size differ: "
			f"{fi_src.width}x{fi_src.height} vs {fi_dest.width}x{fi_dest.height}"
		)
	if fi_src.pixel_format != fi_dest.pixel_format:
		raise ConfigurationError("source and destination pixel formats differ")
	validate_preprocess_config(config)
	effective = config
	if effective.max_shift != UNBOUNDED_SHIFT:
		limit = min(fi_dest.width // 2, fi_dest.height // 2)
		effective = effective._replace(max_shift=min(effective.max_shift, limit))
	# the L1 optimizer has no solver here, so it runs as the gaussian kernel
	if effective.cam_path_algo == "opt":
		effective = effective._replace(cam_path_algo="gauss")
	return TransformContext(fi_src, fi_dest, effective)
