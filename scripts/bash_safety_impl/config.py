"""Policy configuration: environment flags plus user and project JSON files."""

import json
from dataclasses import dataclass, field
from os import getenv
from pathlib import Path

from .models import AnalyzeOptions

USER_CONFIG_DIR = ".bash-safety"
PROJECT_CONFIG_NAME = ".bash-safety.json"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

_BOOL_KEYS = (
    "strict",
    "paranoid",
    "paranoid_rm",
    "paranoid_interpreters",
    "allow_tmpdir_var",
)


class ConfigError(Exception):
    """Raised when config file is invalid."""


@dataclass
class Settings:
    """Effective analyzer policy before it is bound to a working directory."""

    strict: bool = False
    paranoid_rm: bool = False
    paranoid_interpreters: bool = False
    allow_tmpdir_var: bool = True

    def merged_with(self, other: "Settings") -> "Settings":
        """Combine two sources; the more restrictive value always wins."""

        return Settings(
            strict=self.strict or other.strict,
            paranoid_rm=self.paranoid_rm or other.paranoid_rm,
            paranoid_interpreters=(
                self.paranoid_interpreters or other.paranoid_interpreters
            ),
            allow_tmpdir_var=self.allow_tmpdir_var and other.allow_tmpdir_var,
        )

    def to_options(self, cwd: str | None = None) -> AnalyzeOptions:
        return AnalyzeOptions(
            cwd=cwd,
            strict=self.strict,
            paranoid_rm=self.paranoid_rm,
            paranoid_interpreters=self.paranoid_interpreters,
            allow_tmpdir_var=self.allow_tmpdir_var,
        )


@dataclass
class ValidationResult:
    """Result of config file validation."""

    errors: list[str]
    settings: list[str] = field(default_factory=list)  # Empty if errors exist


def _env_truthy(name: str) -> bool:
    val = (getenv(name) or "").strip().lower()
    return val in _TRUTHY


def _env_falsy(name: str) -> bool:
    val = (getenv(name) or "").strip().lower()
    return val in _FALSY


def settings_from_env() -> Settings:
    paranoid = _env_truthy("BASH_SAFETY_PARANOID")
    return Settings(
        strict=_env_truthy("BASH_SAFETY_STRICT"),
        paranoid_rm=paranoid or _env_truthy("BASH_SAFETY_PARANOID_RM"),
        paranoid_interpreters=(
            paranoid or _env_truthy("BASH_SAFETY_PARANOID_INTERPRETERS")
        ),
        allow_tmpdir_var=not _env_falsy("BASH_SAFETY_ALLOW_TMPDIR_VAR"),
    )


def _validate_config(data: dict) -> Settings:
    """Validate config dict and return the settings it declares."""
    if "version" not in data:
        raise ConfigError("missing required field 'version'")

    version = data["version"]
    if not isinstance(version, int) or isinstance(version, bool):
        raise ConfigError("'version' must be an integer")
    if version != 1:
        raise ConfigError(f"unsupported version {version}, expected 1")

    errors: list[str] = []
    for key in sorted(data):
        if key != "version" and key not in _BOOL_KEYS:
            errors.append(f"unknown field '{key}'")
    for key in _BOOL_KEYS:
        if key in data and not isinstance(data[key], bool):
            errors.append(f"'{key}' must be a boolean")
    if errors:
        raise ConfigError("; ".join(errors))

    paranoid = data.get("paranoid", False)
    return Settings(
        strict=data.get("strict", False),
        paranoid_rm=paranoid or data.get("paranoid_rm", False),
        paranoid_interpreters=paranoid or data.get("paranoid_interpreters", False),
        allow_tmpdir_var=data.get("allow_tmpdir_var", True),
    )


def _read_config_data(path: Path) -> dict:
    """Read and parse a config file, raising ConfigError on any problem."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read file: {e}") from e

    if not content.strip():
        raise ConfigError("config file is empty")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("config must be a JSON object")
    return data


def _load_single_config(path: Path) -> Settings | None:
    """Load and validate a single config file.

    Returns None if file doesn't exist, is invalid, or has errors.
    """
    if not path.exists():
        return None
    try:
        return _validate_config(_read_config_data(path))
    except ConfigError:
        return None


def user_config_path() -> Path:
    return Path.home() / USER_CONFIG_DIR / "config.json"


def project_config_path(cwd: str) -> Path:
    return Path(cwd) / PROJECT_CONFIG_NAME


def load_settings(cwd: str | None = None) -> Settings:
    """Load effective settings from the environment and both config scopes.

    Sources:
    1. Environment: BASH_SAFETY_* flags
    2. User scope: ~/.bash-safety/config.json
    3. Project scope: .bash-safety.json in cwd

    The most restrictive value wins, so a project file cannot loosen policy
    set by the user. Invalid files are ignored.
    """
    settings = settings_from_env()

    user_settings = _load_single_config(user_config_path())
    if user_settings is not None:
        settings = settings.merged_with(user_settings)

    if cwd:
        project_settings = _load_single_config(project_config_path(cwd))
        if project_settings is not None:
            settings = settings.merged_with(project_settings)

    return settings


def _describe(settings: Settings) -> list[str]:
    defaults = Settings()
    return [
        f"{name}={value}"
        for name, value in vars(settings).items()
        if value != getattr(defaults, name)
    ]


def validate_config_file(path: str) -> ValidationResult:
    """Validate a config file and return errors or the non-default settings."""
    config_path = Path(path).expanduser()

    if not config_path.exists():
        return ValidationResult(errors=[f"file not found: {path}"])

    try:
        settings = _validate_config(_read_config_data(config_path))
    except ConfigError as e:
        return ValidationResult(errors=[str(e)])
    return ValidationResult(errors=[], settings=_describe(settings))
