import os
from dataclasses import dataclass

import yaml

from digestlib import change_retriever
from digestlib import week_window


DEFAULT_BASE_URL = "https://models.github.ai/inference"
DEFAULT_MODEL = "openai/gpt-4.1-mini"
DEFAULT_SERVER_URL = "https://github.com"


#============================================
class ConfigError(RuntimeError):
	"""
	Raised when required configuration is missing or unusable.
	"""


#============================================
@dataclass(frozen=True)
class DigestConfig:
	api_key: str
	base_url: str = DEFAULT_BASE_URL
	model: str = DEFAULT_MODEL
	api_version: str = ""
	max_tokens: int = 2048
	temperature: float = 0.2
	llm_timeout_seconds: float = 120.0
	per_branch_limit: int = 200
	remote: str = "origin"
	fetch_remotes: bool = True
	excludes: tuple[str, ...] = change_retriever.DEFAULT_EXCLUDES
	chunk_max_chars: int = 80000
	timezone: str = week_window.DEFAULT_TIMEZONE
	repo: str = ""
	server_url: str = DEFAULT_SERVER_URL
	webhook_url: str = ""
	notify_timeout_seconds: float = 30.0


#============================================
def resolve_settings_path(path_text: str) -> str:
	"""
	Resolve settings path against cwd.
	"""
	if os.path.isabs(path_text):
		return path_text
	return os.path.abspath(path_text)


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings dict and return it with resolved path.
	"""
	resolved_path = resolve_settings_path(path_text)
	if not os.path.isfile(resolved_path):
		return {}, resolved_path
	with open(resolved_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle.read())
	if data is None:
		return {}, resolved_path
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {resolved_path}")
	return data, resolved_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict):
			return default_value
		if key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	"""
	Read a string setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, keys: list[str], default_value: int) -> int:
	"""
	Read an integer setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return int(value)
	except ValueError as error:
		raise RuntimeError(f"Invalid integer for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_float(settings: dict, keys: list[str], default_value: float) -> float:
	"""
	Read a float setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return float(value)
	except ValueError as error:
		raise RuntimeError(f"Invalid number for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_bool(settings: dict, keys: list[str], default_value: bool) -> bool:
	"""
	Read a boolean setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if isinstance(value, bool):
		return value
	if isinstance(value, str):
		text = value.strip().lower()
		if text in {"1", "true", "yes", "on"}:
			return True
		if text in {"0", "false", "no", "off"}:
			return False
		raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")
	if isinstance(value, int):
		return value != 0
	if value is None:
		return default_value
	raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")


#============================================
def get_setting_list(settings: dict, keys: list[str], default_value: tuple) -> tuple:
	"""
	Read a list of strings from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, None)
	if value is None:
		return tuple(default_value)
	if not isinstance(value, list):
		raise RuntimeError(f"Invalid list for setting path {'.'.join(keys)}: {value}")
	return tuple(str(item).strip() for item in value if str(item).strip())


#============================================
def overlay_environment(settings: dict, environ) -> dict:
	"""
	Return a copy of settings with environment variable overrides applied.
	"""
	overrides = {
		"OPENAI_API_KEY": ["llm", "api_key"],
		"OPENAI_BASE_URL": ["llm", "base_url"],
		"MODEL_NAME": ["llm", "model"],
		"OPENAI_API_VERSION": ["llm", "api_version"],
		"PER_BRANCH_LIMIT": ["git", "per_branch_limit"],
		"DIFF_CHUNK_MAX_CHARS": ["digest", "chunk_max_chars"],
		"TZ": ["digest", "timezone"],
		"REPO": ["digest", "repo"],
		"GITHUB_SERVER_URL": ["digest", "server_url"],
		"LARK_WEBHOOK_URL": ["notify", "webhook_url"],
	}
	merged = {}
	for section, values in settings.items():
		merged[section] = dict(values) if isinstance(values, dict) else values
	for env_name, keys in overrides.items():
		env_value = (environ.get(env_name, "") or "").strip()
		if not env_value:
			continue
		section, key = keys
		if not isinstance(merged.get(section), dict):
			merged[section] = {}
		merged[section][key] = env_value
	return merged


#============================================
def build_config(settings: dict, environ=None) -> DigestConfig:
	"""
	Build the immutable run configuration from YAML settings and environment.

	Environment variables win over YAML keys. This is the only place the
	environment is read.

	Args:
		settings: mapping loaded by load_settings.
		environ: environment mapping, defaults to os.environ.

	Returns:
		DigestConfig for one run.
	"""
	if environ is None:
		environ = os.environ
	merged = overlay_environment(settings, environ)
	api_key = get_setting_str(merged, ["llm", "api_key"], "")
	if not api_key:
		raise ConfigError(
			"Missing summarization credential. "
			+ "Set OPENAI_API_KEY or llm.api_key in settings.yaml."
		)
	chunk_max_chars = get_setting_int(merged, ["digest", "chunk_max_chars"], 80000)
	if chunk_max_chars < 1:
		raise ConfigError(f"digest.chunk_max_chars must be >= 1; got {chunk_max_chars}")
	config = DigestConfig(
		api_key=api_key,
		base_url=get_setting_str(merged, ["llm", "base_url"], DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
		model=get_setting_str(merged, ["llm", "model"], DEFAULT_MODEL) or DEFAULT_MODEL,
		api_version=get_setting_str(merged, ["llm", "api_version"], ""),
		max_tokens=get_setting_int(merged, ["llm", "max_tokens"], 2048),
		temperature=get_setting_float(merged, ["llm", "temperature"], 0.2),
		llm_timeout_seconds=get_setting_float(merged, ["llm", "timeout_seconds"], 120.0),
		per_branch_limit=get_setting_int(merged, ["git", "per_branch_limit"], 200),
		remote=get_setting_str(merged, ["git", "remote"], "origin") or "origin",
		fetch_remotes=get_setting_bool(merged, ["git", "fetch"], True),
		excludes=get_setting_list(merged, ["git", "excludes"], change_retriever.DEFAULT_EXCLUDES),
		chunk_max_chars=chunk_max_chars,
		timezone=get_setting_str(merged, ["digest", "timezone"], week_window.DEFAULT_TIMEZONE),
		repo=get_setting_str(merged, ["digest", "repo"], ""),
		server_url=get_setting_str(merged, ["digest", "server_url"], DEFAULT_SERVER_URL) or DEFAULT_SERVER_URL,
		webhook_url=get_setting_str(merged, ["notify", "webhook_url"], ""),
		notify_timeout_seconds=get_setting_float(merged, ["notify", "timeout_seconds"], 30.0),
	)
	return config
