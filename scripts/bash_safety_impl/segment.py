"""Per-segment dispatch for the bash safety analyzer."""

import dataclasses
import re

from .models import (
    DISPLAY_COMMANDS,
    PARANOID_INTERPRETERS_SUFFIX,
    SHELL_WRAPPERS,
    SegmentContext,
)
from .rules_find import _analyze_find
from .rules_git import _analyze_git
from .rules_parallel import _analyze_parallel
from .rules_rm import _analyze_rm_in_context, _is_home_directory, _rm_has_recursive_force
from .rules_xargs import _analyze_xargs
from .shell import (
    _is_env_assignment,
    _normalize_cmd_token,
    _strip_env_assignments_with_info,
    _strip_wrappers,
    _strip_wrappers_with_info,
)
from .wrappers import (
    _contains_dangerous_code,
    _extract_dash_c_arg,
    _extract_interpreter_code_arg,
    _is_interpreter,
    _tmpdir_overridden_to_non_temp,
)

_REASON_INTERPRETER_DANGEROUS = (
    "Detected potentially dangerous command in interpreter code."
)
_REASON_INTERPRETER_BLOCKED = "Interpreter one-liners are blocked in paranoid mode."
_REASON_RM_HOME_CWD = (
    "rm -rf in home directory is dangerous. Change to a project directory first."
)

_CWD_CHANGE_RE = re.compile(
    r"^\s*(?:\$\(\s*)?[({]*\s*(?:command\s+|builtin\s+)?(?:cd|pushd|popd)(?:\s|$)",
    re.IGNORECASE,
)

_LEADING_GROUPING = {"{", "(", "$("}

_DECLARATION_BUILTINS = {"export", "declare", "typeset", "readonly", "local"}


def _analyze_segment(tokens: list[str], ctx: SegmentContext) -> str | None:
    """Return a block reason for one tokenized segment, or None if it looks safe."""

    tokens, assignments = _strip_env_assignments_with_info(tokens)
    stripped, wrapper_assignments = _strip_wrappers_with_info(tokens)
    assignments.update(wrapper_assignments)
    if not stripped:
        return None

    if ctx.allow_tmpdir_var and _tmpdir_overridden_to_non_temp(assignments):
        ctx = dataclasses.replace(ctx, allow_tmpdir_var=False)

    head = _normalize_cmd_token(stripped[0])

    if head in SHELL_WRAPPERS:
        script = _extract_dash_c_arg(stripped)
        if script is not None:
            return ctx.analyze_nested(script)

    if _is_interpreter(head):
        code = _extract_interpreter_code_arg(stripped)
        if code is not None:
            if ctx.paranoid_interpreters:
                return _REASON_INTERPRETER_BLOCKED + PARANOID_INTERPRETERS_SUFFIX
            reason = ctx.analyze_nested(code)
            if reason:
                return reason
            if _contains_dangerous_code(code):
                return _REASON_INTERPRETER_DANGEROUS

    if head == "busybox" and len(stripped) > 1:
        return _analyze_segment(stripped[1:], ctx)

    if head == "git":
        return _analyze_git(stripped)

    if head == "rm":
        cwd = ctx.cwd_for_rm
        if cwd and _is_home_directory(cwd) and _rm_has_recursive_force(stripped):
            return _REASON_RM_HOME_CWD
        return _analyze_rm_in_context(stripped, ctx)

    if head == "find":
        return _analyze_find(stripped, ctx.analyze_nested)

    if head == "xargs":
        return _analyze_xargs(stripped, ctx)

    if head == "parallel":
        return _analyze_parallel(stripped, ctx)

    if head in DISPLAY_COMMANDS:
        return None
    return _scan_embedded_commands(stripped, ctx)


def _scan_embedded_commands(tokens: list[str], ctx: SegmentContext) -> str | None:
    # Unknown commands may still run their arguments (e.g. `watch rm -rf x`).
    for i in range(1, len(tokens)):
        cmd = _normalize_cmd_token(tokens[i])
        suffix = tokens[i + 1 :]
        reason = None
        if cmd == "rm":
            reason = _analyze_rm_in_context(["rm", *suffix], ctx)
        elif cmd == "git":
            reason = _analyze_git(["git", *suffix])
        elif cmd == "find":
            reason = _analyze_find(["find", *suffix], ctx.analyze_nested)
        if reason:
            return reason
    return None


def _strip_leading_grouping(tokens: list[str]) -> list[str]:
    i = 0
    while i < len(tokens) and tokens[i] in _LEADING_GROUPING:
        i += 1
    return tokens[i:]


def _segment_changes_cwd(tokens: list[str]) -> bool:
    """Return True if running this segment may change the working directory."""

    unwrapped = _strip_wrappers(_strip_leading_grouping(tokens))
    if unwrapped:
        head = unwrapped[0]
        if head == "builtin" and len(unwrapped) > 1:
            head = unwrapped[1]
        if head in {"cd", "pushd", "popd"}:
            return True

    return bool(_CWD_CHANGE_RE.match(" ".join(tokens)))


def _segment_overrides_tmpdir(tokens: list[str]) -> bool:
    """Return True if this segment points TMPDIR somewhere that is not a temp dir.

    Covers bare assignments (`TMPDIR=/x`), declaration builtins
    (`export TMPDIR=/x`) and `unset TMPDIR`.
    """

    if not tokens:
        return False

    if all(_is_env_assignment(t) for t in tokens):
        return _tmpdir_overridden_to_non_temp(_strip_env_assignments_with_info(tokens)[1])

    head = _normalize_cmd_token(tokens[0])
    args = [t for t in tokens[1:] if not t.startswith("-")]
    if head in _DECLARATION_BUILTINS:
        declared = _strip_env_assignments_with_info(
            [t for t in args if _is_env_assignment(t)]
        )[1]
        return _tmpdir_overridden_to_non_temp(declared)
    if head == "unset":
        return "TMPDIR" in args
    return False
