#!/usr/bin/env python3
"""Claude Code PreToolUse hook that blocks destructive Bash commands."""

import sys

try:
    from scripts.bash_safety_impl.analyze import analyze_bash_command
    from scripts.bash_safety_impl.hook import main
    from scripts.bash_safety_impl.models import AnalyzeOptions, Blocked
except ImportError:  # When executed as a script from the scripts/ directory.
    from bash_safety_impl.analyze import analyze_bash_command  # type: ignore[no-redef]
    from bash_safety_impl.hook import main  # type: ignore[no-redef]
    from bash_safety_impl.models import (  # type: ignore[no-redef]
        AnalyzeOptions,
        Blocked,
    )

__all__ = ["AnalyzeOptions", "Blocked", "analyze_bash_command", "main"]


if __name__ == "__main__":
    sys.exit(main())
