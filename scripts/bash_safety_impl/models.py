"""Shared types and static rule tables for the bash safety analyzer."""

import re
from collections.abc import Callable
from dataclasses import dataclass

MAX_RECURSION_DEPTH = 5
MAX_STRIP_ITERATIONS = 20

SHELL_WRAPPERS = frozenset(
    {"bash", "sh", "zsh", "ksh", "dash", "fish", "csh", "tcsh"}
)

INTERPRETERS = frozenset({"python", "python2", "python3", "node", "ruby", "perl"})

# Commands that print or inspect their arguments but never execute them.
DISPLAY_COMMANDS = frozenset(
    {
        "echo",
        "printf",
        "cat",
        "less",
        "more",
        "head",
        "tail",
        "grep",
        "egrep",
        "fgrep",
        "rg",
        "ag",
        "man",
        "which",
        "whereis",
        "type",
        "help",
        "true",
        "false",
        "wc",
    }
)

DANGEROUS_PATTERNS = (
    re.compile(r"\brm\s+.*-[rR].*-f\b"),
    re.compile(r"\brm\s+.*-f.*-[rR]\b"),
    re.compile(r"\brm\s+-rf\b"),
    re.compile(r"\brm\s+-fr\b"),
    re.compile(r"\bgit\s+reset\s+--hard\b"),
    re.compile(r"\bgit\s+checkout\s+--\b"),
    re.compile(r"\bgit\s+clean\s+-f\b"),
    re.compile(r"\bfind\b.*\s-delete\b"),
    # Recursive deletion through interpreter standard libraries.
    re.compile(r"\brmtree\b"),
    re.compile(r"\bfs\s*\.\s*rm(?:Sync)?\s*\([^)]*recursive\s*:\s*true"),
    re.compile(r"\bFileUtils\s*\.\s*rm_rf?\b"),
)

PARANOID_INTERPRETERS_SUFFIX = (
    "\n\n(Paranoid mode: interpreter one-liners are blocked.)"
)


@dataclass(frozen=True)
class AnalyzeOptions:
    """Per-call analyzer policy.

    `cwd` anchors relative `rm` targets. `strict` blocks commands that cannot be
    split confidently. `paranoid_rm` blocks `rm -rf` even inside cwd, and
    `paranoid_interpreters` blocks every interpreter one-liner.
    `allow_tmpdir_var` trusts `$TMPDIR` targets as temp paths.
    """

    cwd: str | None = None
    strict: bool = False
    paranoid_rm: bool = False
    paranoid_interpreters: bool = False
    allow_tmpdir_var: bool = True


@dataclass(frozen=True)
class Blocked:
    """Verdict for a command that must not run."""

    reason: str
    segment: str


@dataclass(frozen=True)
class SegmentContext:
    """Everything the segment analyzer needs besides the tokens."""

    cwd: str | None
    cwd_unknown: bool
    paranoid_rm: bool
    paranoid_interpreters: bool
    allow_tmpdir_var: bool
    analyze_nested: Callable[[str], str | None]

    @property
    def cwd_for_rm(self) -> str | None:
        return None if self.cwd_unknown else self.cwd
