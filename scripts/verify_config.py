#!/usr/bin/env python3
"""Check the user and project bash-safety config files and report their settings."""

import sys
from pathlib import Path

try:
    from scripts.bash_safety_impl.config import (
        PROJECT_CONFIG_NAME,
        ValidationResult,
        user_config_path,
        validate_config_file,
    )
except ImportError:  # When executed as a script from the scripts/ directory.
    from bash_safety_impl.config import (  # type: ignore[no-redef]
        PROJECT_CONFIG_NAME,
        ValidationResult,
        user_config_path,
        validate_config_file,
    )

_USER_CONFIG = user_config_path()
_PROJECT_CONFIG = Path(PROJECT_CONFIG_NAME)

_HEADER = "Bash Safety Config"
_SEPARATOR = "═" * len(_HEADER)


def _print_header() -> None:
    print(_HEADER)
    print(_SEPARATOR)


def _print_valid_config(scope: str, path: Path, result: ValidationResult) -> None:
    print(f"\n✓ {scope} config: {path}")
    if not result.settings:
        print("  Settings: (defaults)")
        return
    print("  Settings:")
    for setting in result.settings:
        print(f"    - {setting}")


def _print_invalid_config(scope: str, path: Path, errors: list[str]) -> None:
    print(f"\n✗ {scope} config: {path}", file=sys.stderr)
    print("  Errors:", file=sys.stderr)
    parts = [part for error in errors for part in error.split("; ")]
    for num, part in enumerate(parts, 1):
        print(f"    {num}. {part}", file=sys.stderr)


def main() -> int:
    """Validate whichever config files exist and print the results."""
    checked: list[tuple[str, Path, ValidationResult]] = []

    _print_header()

    if _USER_CONFIG.exists():
        checked.append(("User", _USER_CONFIG, validate_config_file(str(_USER_CONFIG))))
    if _PROJECT_CONFIG.exists():
        checked.append(
            (
                "Project",
                _PROJECT_CONFIG.resolve(),
                validate_config_file(str(_PROJECT_CONFIG)),
            )
        )

    if not checked:
        print("\nNo config files found. Using environment and built-in defaults.")
        return 0

    for scope, path, result in checked:
        if result.errors:
            _print_invalid_config(scope, path, result.errors)
        else:
            _print_valid_config(scope, path, result)

    if any(result.errors for _, _, result in checked):
        print("\nConfig validation failed.", file=sys.stderr)
        return 1

    print("\nAll configs valid.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
