"""Configuration management for study-notes.

The config file is optional; every key has a default. Values present in
the TOML document are merged over the defaults and validated into frozen
dataclasses so the rest of the code never touches raw mappings.
"""

from __future__ import annotations

import copy
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from .core import workspace as workspace_mod

CONFIG_PATH_ENV = "STUDY_NOTES_CONFIG"
CONFIG_FILENAME = "study-notes.toml"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


class QuestionCountError(ValueError):
    """Raised when a requested question count is outside configured bounds."""


@dataclass(frozen=True)
class PathsConfig:
    data_home_override: Optional[Path]


@dataclass(frozen=True)
class IdentityConfig:
    user: Optional[str]


@dataclass(frozen=True)
class QuizConfig:
    default_questions: int
    min_questions: int
    max_questions: int

    def validate_count(self, requested: Optional[int]) -> int:
        """Return ``requested`` (or the default) if within bounds."""

        count = self.default_questions if requested is None else requested
        if not (self.min_questions <= count <= self.max_questions):
            raise QuestionCountError(
                f"Number of questions must be between {self.min_questions} "
                f"and {self.max_questions}; got {count}."
            )
        return count


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class Settings:
    paths: PathsConfig
    identity: IdentityConfig
    quiz: QuizConfig
    logging: LoggingConfig
    source: Optional[Path] = None


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string when set.")
    return value.strip()


def _build_paths(section: Mapping[str, Any]) -> PathsConfig:
    raw = _coerce_optional_string(
        section.get("data_home"), field="paths.data_home"
    )
    override = Path(raw).expanduser().absolute() if raw else None
    return PathsConfig(data_home_override=override)


def _build_identity(section: Mapping[str, Any]) -> IdentityConfig:
    user = _coerce_optional_string(section.get("user"), field="identity.user")
    return IdentityConfig(user=user)


def _build_quiz(section: Mapping[str, Any]) -> QuizConfig:
    minimum = _require_positive_int(
        section.get("min_questions"), field="quiz.min_questions"
    )
    maximum = _require_positive_int(
        section.get("max_questions"), field="quiz.max_questions"
    )
    default = _require_positive_int(
        section.get("default_questions"), field="quiz.default_questions"
    )
    if minimum > maximum:
        raise ConfigError(
            "quiz.min_questions must not exceed quiz.max_questions."
        )
    if not (minimum <= default <= maximum):
        raise ConfigError(
            "quiz.default_questions must lie between min_questions and "
            "max_questions."
        )
    return QuizConfig(
        default_questions=default,
        min_questions=minimum,
        max_questions=maximum,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = section.get("level")
    if not isinstance(level, str):
        raise ConfigError("'logging.level' must be a string.")
    level = level.strip().upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_settings(
    tree: Mapping[str, Any], source: Optional[Path]
) -> Settings:
    return Settings(
        paths=_build_paths(tree["paths"]),
        identity=_build_identity(tree["identity"]),
        quiz=_build_quiz(tree["quiz"]),
        logging=_build_logging(tree["logging"]),
        source=source,
    )


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace: Optional[Path] = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().absolute()
    env_override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if env_override:
        return Path(env_override).expanduser().absolute()
    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace)
    return layout.path_for("config") / CONFIG_FILENAME


def load_settings(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace: Optional[Path] = None,
) -> Settings:
    """Load settings, falling back to defaults when no file exists.

    An explicitly requested path that does not exist is an error; the
    implicit workspace location is allowed to be absent.
    """

    path = resolve_config_path(
        explicit_path=explicit_path, env=env, workspace=workspace
    )
    tree = default_tree()
    if not path.exists():
        if explicit_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return _build_settings(tree, None)
    _overlay(tree, _read_document(path))
    return _build_settings(tree, path)


def default_settings() -> Settings:
    return _build_settings(default_tree(), None)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template written by ``study-notes init``."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the config template, refusing to clobber unless asked."""

    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config_template(), encoding="utf-8")
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _read_document(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read config {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML {path}: {exc}") from exc


def _overlay(
    tree: MutableMapping[str, Any],
    document: Mapping[str, Any],
    prefix: str = "",
) -> None:
    # Only keys present in the defaults are accepted; tables recurse.
    for key, value in document.items():
        name = prefix + key
        if key not in tree:
            raise ConfigError(f"Unknown configuration key '{name}'.")
        if isinstance(tree[key], dict):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    f"Expected table for '{name}', found {type(value).__name__}."
                )
            _overlay(tree[key], value, prefix=name + ".")
        else:
            tree[key] = value


_DEFAULTS: Dict[str, Any] = {
    "paths": {
        "data_home": None,
    },
    "identity": {
        "user": None,
    },
    "quiz": {
        "default_questions": 5,
        "min_questions": 3,
        "max_questions": 20,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# study-notes configuration

[paths]
# Override the data directory (defaults to ~/.study-notes-data)
# data_home = "~/my-study-notes"

[identity]
# Local user identity; STUDY_NOTES_USER takes precedence when set
# user = "me"

[quiz]
# Questions generated when --num is not given
default_questions = 5
min_questions = 3
max_questions = 20

[logging]
level = "INFO"
verbose = false
"""
