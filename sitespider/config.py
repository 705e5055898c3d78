import os
import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

try:
	from dotenv import load_dotenv
except ImportError:
	logging.warning("python-dotenv not available; using environment variables only")
else:
	loaded = load_dotenv()
	if not loaded and Path(".env").exists():
		raise RuntimeError(".env file present but failed to load")

T = TypeVar("T")


def _raw_env(name: str) -> Optional[str]:
	# unset and empty are the same thing
	raw = os.getenv(name)
	return raw if raw else None


def _typed_env(name: str, default: T, cast: Callable[[str], T]) -> T:
	raw = _raw_env(name)
	if raw is None:
		return default
	try:
		return cast(raw)
	except ValueError:
		logging.exception("Invalid %s: %r", name, raw)
		return default


def get_str_env(name: str, default: str) -> str:
	return _raw_env(name) or default


def get_optional_str_env(name: str) -> Optional[str]:
	return _raw_env(name)


def get_int_env(name: str, default: int) -> int:
	return _typed_env(name, default, int)


def get_float_env(name: str, default: float) -> float:
	return _typed_env(name, default, float)


USER_AGENT = get_str_env("USER_AGENT", "SiteSpider/0.1")
DATABASE_URL = get_optional_str_env("DATABASE_URL")
