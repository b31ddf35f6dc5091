"""`find` rules for the bash safety analyzer."""

from collections.abc import Callable

from .models import SHELL_WRAPPERS
from .rules_git import _analyze_git
from .rules_rm import _rm_has_recursive_force
from .shell import _normalize_cmd_token, _strip_token_wrappers, _strip_wrappers
from .wrappers import _extract_dash_c_arg

_REASON_FIND_DELETE = (
    "find -delete permanently removes files. Use -print first to preview."
)
_REASON_FIND_EXEC_RM_RF = (
    "find -exec rm -rf is dangerous. Use explicit file list instead."
)

_EXEC_LIKE = {"-exec", "-execdir", "-ok", "-okdir"}

# Predicates and actions whose argument must not be read as a primary.
_CONSUMES_ONE = {
    "-name",
    "-iname",
    "-path",
    "-ipath",
    "-wholename",
    "-iwholename",
    "-regex",
    "-iregex",
    "-lname",
    "-ilname",
    "-type",
    "-xtype",
    "-perm",
    "-size",
    "-user",
    "-group",
    "-atime",
    "-ctime",
    "-mtime",
    "-amin",
    "-cmin",
    "-mmin",
    "-newer",
    "-samefile",
    "-printf",
    "-fprint",
    "-fprint0",
    "-fls",
    "-maxdepth",
    "-mindepth",
}

_CONSUMES_TWO = {"-fprintf"}


def _analyze_find(
    tokens: list[str],
    analyze_nested: Callable[[str], str | None] | None = None,
) -> str | None:
    if _find_has_delete(tokens[1:]):
        return _REASON_FIND_DELETE

    for exec_tokens in _find_exec_blocks(tokens[1:]):
        reason = _analyze_exec_block(exec_tokens, analyze_nested)
        if reason:
            return reason
    return None


def _find_has_delete(args: list[str]) -> bool:
    """Return True if `-delete` appears as a primary outside any exec block."""

    i = 0
    while i < len(args):
        tok = _strip_token_wrappers(args[i]).lower()

        if tok in _EXEC_LIKE:
            i = _exec_block_end(args, i + 1) + 1
            continue
        if tok in _CONSUMES_ONE:
            i += 2
            continue
        if tok in _CONSUMES_TWO:
            i += 3
            continue
        if tok == "-delete":
            return True
        i += 1
    return False


def _exec_block_end(args: list[str], start: int) -> int:
    i = start
    while i < len(args):
        if _strip_token_wrappers(args[i]) in {";", "+"}:
            return i
        i += 1
    return i


def _find_exec_blocks(args: list[str]) -> list[list[str]]:
    blocks: list[list[str]] = []
    i = 0
    while i < len(args):
        if _strip_token_wrappers(args[i]).lower() in _EXEC_LIKE:
            end = _exec_block_end(args, i + 1)
            blocks.append(args[i + 1 : end])
            i = end + 1
            continue
        i += 1
    return blocks


def _analyze_exec_block(
    exec_tokens: list[str],
    analyze_nested: Callable[[str], str | None] | None,
) -> str | None:
    exec_tokens = _strip_wrappers(exec_tokens)
    if not exec_tokens:
        return None

    head = _normalize_cmd_token(exec_tokens[0])
    if head == "busybox" and len(exec_tokens) > 1:
        exec_tokens = exec_tokens[1:]
        head = _normalize_cmd_token(exec_tokens[0])

    if head == "rm" and _rm_has_recursive_force(exec_tokens):
        return _REASON_FIND_EXEC_RM_RF
    if head == "git":
        return _analyze_git(["git", *exec_tokens[1:]])
    if head in SHELL_WRAPPERS and analyze_nested is not None:
        script = _extract_dash_c_arg(exec_tokens)
        if script is not None:
            return analyze_nested(script)
    return None
