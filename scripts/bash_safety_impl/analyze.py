"""Top-level command analysis: split, dispatch each segment, recurse into nesting."""

import dataclasses

from .dangerous_text import _dangerous_in_text
from .models import MAX_RECURSION_DEPTH, AnalyzeOptions, Blocked, SegmentContext
from .segment import _analyze_segment, _segment_changes_cwd, _segment_overrides_tmpdir
from .shell import _extract_command_substitutions, _split_shell_commands

_REASON_STRICT_UNPARSEABLE = (
    "Command could not be safely analyzed (strict mode). Verify manually."
)


def analyze_bash_command(
    command: str, options: AnalyzeOptions | None = None
) -> Blocked | None:
    """Decide whether `command` may run.

    Returns None when nothing dangerous was found, or a `Blocked` verdict naming
    the reason and the offending segment. Never raises for any input string.
    """

    return _analyze_command(command, 0, options or AnalyzeOptions())


def _analyze_command(command: str, depth: int, options: AnalyzeOptions) -> Blocked | None:
    if depth >= MAX_RECURSION_DEPTH:
        # Anything nested deeper is not inspected, even in strict mode.
        return None

    segments = _split_shell_commands(command)
    if options.strict and segments == [[command]] and " " in command:
        return Blocked(_REASON_STRICT_UNPARSEABLE, command)

    cwd_unknown = False
    allow_tmpdir_var = options.allow_tmpdir_var

    def nested_options() -> AnalyzeOptions:
        # Nested command lines inherit what is known at this point of the line.
        return dataclasses.replace(
            options,
            cwd=None if cwd_unknown else options.cwd,
            allow_tmpdir_var=allow_tmpdir_var,
        )

    def analyze_nested(nested: str) -> str | None:
        blocked = _analyze_command(nested, depth + 1, nested_options())
        return blocked.reason if blocked else None

    for tokens in segments:
        segment_text = " ".join(tokens)

        if len(tokens) == 1 and " " in tokens[0]:
            reason = _dangerous_in_text(tokens[0])
        else:
            ctx = SegmentContext(
                cwd=options.cwd,
                cwd_unknown=cwd_unknown,
                paranoid_rm=options.paranoid_rm,
                paranoid_interpreters=options.paranoid_interpreters,
                allow_tmpdir_var=allow_tmpdir_var,
                analyze_nested=analyze_nested,
            )
            reason = _analyze_segment(tokens, ctx)
        if reason:
            return Blocked(reason, segment_text)

        if _segment_changes_cwd(tokens):
            cwd_unknown = True
        if allow_tmpdir_var and _segment_overrides_tmpdir(tokens):
            allow_tmpdir_var = False

    # Substitutions run as commands of their own, possibly after a `cd`.
    for body in _extract_command_substitutions(command):
        blocked = _analyze_command(body, depth + 1, nested_options())
        if blocked:
            return blocked

    return None
