"""`xargs` rules for the bash safety analyzer.

xargs always feeds its arguments from stdin, so the child command never sees
literal targets that could be checked statically.
"""

from .models import SHELL_WRAPPERS, SegmentContext
from .rules_find import _analyze_find
from .rules_git import _analyze_git
from .rules_rm import _analyze_rm_in_context, _rm_has_recursive_force
from .shell import _normalize_cmd_token, _strip_wrappers
from .wrappers import _extract_dash_c_arg

_REASON_XARGS_RM_RF = (
    "xargs rm -rf with dynamic input is dangerous. Use explicit file list instead."
)
_REASON_XARGS_SHELL = (
    "xargs with shell -c can execute arbitrary commands from dynamic input."
)

_XARGS_OPTS_WITH_VALUE = {
    "-a",
    "-d",
    "-E",
    "-L",
    "-l",
    "-n",
    "-P",
    "-R",
    "-S",
    "-s",
    "--arg-file",
    "--delimiter",
    "--eof",
    "--max-args",
    "--max-lines",
    "--max-procs",
    "--max-chars",
    "--process-slot-var",
}


def _analyze_xargs(tokens: list[str], ctx: SegmentContext) -> str | None:
    child, placeholders = _xargs_child_and_placeholders(tokens)
    child = _strip_wrappers(child)
    if not child:
        return None

    head = _normalize_cmd_token(child[0])
    if head == "busybox" and len(child) > 1:
        child = child[1:]
        head = _normalize_cmd_token(child[0])

    if head in SHELL_WRAPPERS:
        script = _extract_dash_c_arg(child)
        if script is None:
            # Input lines would be run as shell scripts.
            return _REASON_XARGS_SHELL
        if any(p and p in script for p in placeholders):
            return _REASON_XARGS_SHELL
        return ctx.analyze_nested(script)

    if head == "rm" and _rm_has_recursive_force(child):
        return _analyze_rm_in_context(child, ctx) or _REASON_XARGS_RM_RF

    if head == "find":
        return _analyze_find(child, ctx.analyze_nested)

    if head == "git":
        return _analyze_git(child)

    return None


def _xargs_child_and_placeholders(tokens: list[str]) -> tuple[list[str], set[str]]:
    """Split `xargs [options] cmd ...` into the child command and its replace strings."""

    placeholders: set[str] = set()
    i = 1
    while i < len(tokens):
        tok = tokens[i]

        if tok == "--":
            i += 1
            break
        if not tok.startswith("-") or tok == "-":
            break

        if tok in {"-I", "-J"}:
            if i + 1 < len(tokens):
                placeholders.add(tokens[i + 1])
            i += 2
            continue
        if tok.startswith(("-I", "-J")):
            placeholders.add(tok[2:])
            i += 1
            continue
        if tok == "-i" or tok in {"--replace", "--replace-str"}:
            # Replacement mode with the default `{}` token; no value consumed.
            placeholders.add("{}")
            i += 1
            continue
        if tok.startswith("-i"):
            placeholders.add(tok[2:])
            i += 1
            continue
        if tok.startswith("--replace="):
            placeholders.add(tok.split("=", 1)[1] or "{}")
            i += 1
            continue

        if tok in _XARGS_OPTS_WITH_VALUE:
            i += 2
            continue
        # --opt=value, attached short values, and unknown flags are one token.
        i += 1

    return tokens[i:], placeholders
