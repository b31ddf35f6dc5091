"""GNU `parallel` rules for the bash safety analyzer."""

import posixpath
import re

from .models import SHELL_WRAPPERS, SegmentContext
from .rules_find import _analyze_find
from .rules_git import _analyze_git
from .rules_rm import _analyze_rm_in_context, _rm_has_recursive_force
from .shell import _normalize_cmd_token, _strip_wrappers
from .wrappers import _extract_dash_c_arg

_REASON_PARALLEL_RM_RF = (
    "parallel rm -rf with dynamic input is dangerous. "
    "Use explicit file list instead."
)
_REASON_PARALLEL_SHELL = (
    "parallel with shell -c can execute arbitrary commands from dynamic input."
)

_PLACEHOLDER = re.compile(r"\{(?:\d+|\.|/|//|/\.|#)?\}")

_PARALLEL_OPTS_WITH_VALUE = {
    "-a",
    "-I",
    "-j",
    "-S",
    "--arg-file",
    "--colsep",
    "--jobs",
    "--joblog",
    "--replace",
    "--res",
    "--result",
    "--results",
    "--slf",
    "--sshlogin",
    "--sshloginfile",
    "--tagstring",
    "--tempdir",
    "--tmpdir",
    "--workdir",
}

_ARG_SEPARATORS = {":::", ":::+"}
_FILE_ARG_SEPARATORS = {"::::", "::::+"}


def _analyze_parallel(tokens: list[str], ctx: SegmentContext) -> str | None:
    parsed = _parallel_template_and_args(tokens)
    if parsed is None:
        return None
    template, args, args_dynamic, replace_strings = parsed
    placeholder = _placeholder_pattern(replace_strings)

    if not template:
        # `parallel ::: 'cmd1' 'cmd2'` runs each argument as a command.
        for arg in args:
            reason = ctx.analyze_nested(arg)
            if reason:
                return reason
        return None

    has_placeholder = any(placeholder.search(t) for t in template)

    child = _strip_wrappers(template)
    if not child:
        return None
    head = _normalize_cmd_token(child[0])
    if head == "busybox" and len(child) > 1:
        child = child[1:]
        head = _normalize_cmd_token(child[0])

    if head in SHELL_WRAPPERS:
        return _analyze_shell_child(
            child, args, args_dynamic, has_placeholder, placeholder, ctx
        )

    if head == "rm" and _rm_has_recursive_force(child):
        if not args or args_dynamic:
            return _REASON_PARALLEL_RM_RF
        for seq, arg in enumerate(args, start=1):
            if has_placeholder:
                expanded = [
                    _expand_placeholders(t, arg, seq, placeholder) for t in child
                ]
            else:
                expanded = [*child, arg]
            reason = _analyze_rm_in_context(expanded, ctx)
            if reason:
                return reason
        return None

    if head == "find":
        return _analyze_find(child, ctx.analyze_nested)

    if head == "git":
        return _analyze_git(child)

    return None


def _analyze_shell_child(
    child: list[str],
    args: list[str],
    args_dynamic: bool,
    has_placeholder: bool,
    placeholder: re.Pattern[str],
    ctx: SegmentContext,
) -> str | None:
    script = _extract_dash_c_arg(child)
    if script is None:
        # Without -c the inputs become script paths or stdin for the shell.
        if args or has_placeholder:
            return _REASON_PARALLEL_SHELL
        return None

    if placeholder.fullmatch(script.strip()):
        return _REASON_PARALLEL_SHELL

    if placeholder.search(script):
        if not args:
            return _REASON_PARALLEL_SHELL
        for seq, arg in enumerate(args, start=1):
            reason = ctx.analyze_nested(
                _expand_placeholders(script, arg, seq, placeholder)
            )
            if reason:
                return reason
        return None

    reason = ctx.analyze_nested(script)
    if reason:
        return reason
    if has_placeholder and args_dynamic:
        return _REASON_PARALLEL_SHELL
    return None


def _placeholder_pattern(replace_strings: set[str]) -> re.Pattern[str]:
    """Match the built-in placeholders plus any `-I`/`--replace` strings."""

    if not replace_strings:
        return _PLACEHOLDER
    custom = [re.escape(s) for s in sorted(replace_strings, key=len, reverse=True)]
    return re.compile("|".join([*custom, _PLACEHOLDER.pattern]))


def _expand_placeholders(
    text: str, arg: str, seq: int, placeholder: re.Pattern[str] = _PLACEHOLDER
) -> str:
    def replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "{.}":
            return posixpath.splitext(arg)[0]
        if token == "{/}":
            return posixpath.basename(arg)
        if token == "{//}":
            return posixpath.dirname(arg)
        if token == "{/.}":
            return posixpath.splitext(posixpath.basename(arg))[0]
        if token == "{#}":
            return str(seq)
        return arg

    return placeholder.sub(replace, text)


def _parallel_template_and_args(
    tokens: list[str],
) -> tuple[list[str], list[str], bool, set[str]] | None:
    """Return (template_tokens, args, args_dynamic, replace_strings) for GNU parallel.

    Arguments after every `:::` group are merged. Without `:::` the arguments
    come from stdin or files and are dynamic. `replace_strings` holds the
    custom placeholders set with `-I` or `--replace`.
    """

    replace_strings: set[str] = set()
    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok in _ARG_SEPARATORS or tok in _FILE_ARG_SEPARATORS:
            break
        if tok == "--":
            i += 1
            break
        if not tok.startswith("-") or tok == "-":
            break
        if tok in {"-I", "--replace"}:
            if i + 1 < len(tokens) and tokens[i + 1]:
                replace_strings.add(tokens[i + 1])
            i += 2
            continue
        if tok.startswith("-I") or tok.startswith("--replace="):
            value = tok[2:] if tok.startswith("-I") else tok.split("=", 1)[1]
            if value:
                replace_strings.add(value)
            i += 1
            continue
        if tok in _PARALLEL_OPTS_WITH_VALUE:
            i += 2
            continue
        # --opt=value, -j4 and flags without values.
        i += 1

    template: list[str] = []
    while i < len(tokens) and tokens[i] not in _ARG_SEPARATORS | _FILE_ARG_SEPARATORS:
        template.append(tokens[i])
        i += 1

    args: list[str] = []
    args_dynamic = i >= len(tokens)
    reading_files = False
    for tok in tokens[i:]:
        if tok in _FILE_ARG_SEPARATORS:
            # Arguments are read from the named files.
            args_dynamic = reading_files = True
            continue
        if tok in _ARG_SEPARATORS:
            reading_files = False
            continue
        if not reading_files:
            args.append(tok)

    if not template and args_dynamic and not args:
        return None
    return template, args, args_dynamic, replace_strings
