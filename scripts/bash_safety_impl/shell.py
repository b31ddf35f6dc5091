"""Shell splitting and tokenizing helpers for the bash safety analyzer."""

import posixpath
import shlex

from .models import MAX_STRIP_ITERATIONS

# Scanner contexts. The top level is represented by an empty stack.
_SQ = "single"
_DQ = "double"
_BT = "backtick"
_SUB = "substitution"
_PAREN = "paren"

_HEREDOC_WORD_STOP = set(" \t\n;&|<>()")

# A `#` starts a comment only at the beginning of a word.
_COMMENT_START_AFTER = set(" \t\n;&|(")


class _ScanResult:
    def __init__(self) -> None:
        self.parts: list[tuple[str, bool]] = []
        self.substitutions: list[str] = []


def _substitution_opener(command: str, i: int, in_double: bool) -> bool:
    if not command.startswith("(", i + 1):
        return False
    ch = command[i]
    if ch == "$":
        return True
    # Process substitution is literal text inside double quotes.
    return ch in {"<", ">"} and not in_double


def _read_heredoc_marker(command: str, i: int) -> tuple[int, str, bool] | None:
    """Parse `<<WORD` / `<<-WORD` starting at i; return (end, delimiter, strip_tabs)."""

    if not command.startswith("<<", i) or command.startswith("<<<", i):
        return None
    j = i + 2
    strip_tabs = False
    if j < len(command) and command[j] == "-":
        strip_tabs = True
        j += 1
    while j < len(command) and command[j] in " \t":
        j += 1

    word: list[str] = []
    quote: str | None = None
    while j < len(command):
        ch = command[j]
        if quote:
            if ch == quote:
                quote = None
            else:
                word.append(ch)
            j += 1
            continue
        if ch in {"'", '"'}:
            quote = ch
            j += 1
            continue
        if ch == "\\":
            j += 1
            continue
        if ch in _HEREDOC_WORD_STOP:
            break
        word.append(ch)
        j += 1

    if quote or not word:
        return None
    return j, "".join(word), strip_tabs


def _read_heredoc_body(
    command: str, start: int, delimiter: str, strip_tabs: bool
) -> tuple[int, str]:
    """Consume lines from `start` up to the delimiter line; return (end, body)."""

    body: list[str] = []
    pos = start
    while pos < len(command):
        nl = command.find("\n", pos)
        line_end = len(command) if nl == -1 else nl
        line = command[pos:line_end]
        pos = line_end + 1
        candidate = line.lstrip("\t") if strip_tabs else line
        if candidate == delimiter:
            break
        body.append(line)
    return min(pos, len(command)), "\n".join(body)


def _scan_command(command: str) -> _ScanResult | None:
    """Split `command` into raw segments and collect substitution bodies.

    Returns None when quoting or substitution nesting is unbalanced.
    """

    result = _ScanResult()
    buf: list[str] = []
    stack: list[str] = []
    sub_starts: list[int] = []
    pending_heredocs: list[tuple[str, bool]] = []

    def flush() -> None:
        part = "".join(buf).strip()
        if part:
            result.parts.append((part, False))
        buf.clear()

    def push_outer(kind: str, body_start: int) -> None:
        # Only outermost substitutions are recorded; nested ones are found when
        # the recorded body is analyzed in turn.
        if not any(ctx in {_SUB, _BT} for ctx in stack):
            sub_starts.append(body_start)
        else:
            sub_starts.append(-1)
        stack.append(kind)

    def pop_outer(end: int) -> None:
        stack.pop()
        start = sub_starts.pop()
        if start >= 0:
            body = command[start:end].strip()
            if body:
                result.substitutions.append(body)

    i = 0
    n = len(command)
    while i < n:
        ch = command[i]
        top = stack[-1] if stack else None

        if top == _SQ:
            if ch == "'":
                stack.pop()
            buf.append(ch)
            i += 1
            continue

        if ch == "\\":
            if i + 1 >= n:
                return None
            if command[i + 1] == "\n":
                # Line continuation.
                i += 2
                continue
            buf.append(command[i : i + 2])
            i += 2
            continue

        if top == _DQ:
            if ch == '"':
                stack.pop()
            elif ch == "`":
                push_outer(_BT, i + 1)
            elif _substitution_opener(command, i, True):
                push_outer(_SUB, i + 2)
                buf.append(command[i : i + 2])
                i += 2
                continue
            buf.append(ch)
            i += 1
            continue

        if top == _BT and ch == "`":
            pop_outer(i)
            buf.append(ch)
            i += 1
            continue

        if ch == "'":
            stack.append(_SQ)
            buf.append(ch)
            i += 1
            continue
        if ch == '"':
            stack.append(_DQ)
            buf.append(ch)
            i += 1
            continue
        if ch == "`":
            push_outer(_BT, i + 1)
            buf.append(ch)
            i += 1
            continue
        if _substitution_opener(command, i, False):
            push_outer(_SUB, i + 2)
            buf.append(command[i : i + 2])
            i += 2
            continue

        if top in {_SUB, _PAREN}:
            if ch == "(":
                stack.append(_PAREN)
            elif ch == ")":
                if top == _PAREN:
                    stack.pop()
                else:
                    pop_outer(i)
            buf.append(ch)
            i += 1
            continue

        if top == _BT:
            buf.append(ch)
            i += 1
            continue

        # Top level: operators split, heredoc markers are remembered.
        if ch == "#" and (i == 0 or command[i - 1] in _COMMENT_START_AFTER):
            nl = command.find("\n", i)
            i = n if nl == -1 else nl
            continue
        if command.startswith("<<<", i):
            buf.append("<<<")
            i += 3
            continue
        marker = _read_heredoc_marker(command, i)
        if marker is not None:
            end, delimiter, strip_tabs = marker
            pending_heredocs.append((delimiter, strip_tabs))
            buf.append(command[i:end])
            i = end
            continue

        if command.startswith(("&&", "||", "|&"), i):
            flush()
            i += 2
            continue
        if ch == "|" or ch == ";":
            flush()
            i += 1
            continue
        if ch == "&":
            prev = command[i - 1] if i > 0 else ""
            nxt = command[i + 1] if i + 1 < n else ""
            if prev in {">", "<"} or nxt == ">":
                buf.append(ch)
                i += 1
                continue
            flush()
            i += 1
            continue
        if ch == "\n":
            flush()
            i += 1
            for delimiter, strip_tabs in pending_heredocs:
                i, body = _read_heredoc_body(command, i, delimiter, strip_tabs)
                if body.strip():
                    result.parts.append((body, True))
            pending_heredocs = []
            continue

        buf.append(ch)
        i += 1

    if stack:
        return None
    flush()
    return result


def _shlex_split(segment: str) -> list[str] | None:
    try:
        return shlex.split(segment, posix=True)
    except ValueError:
        return None


def _split_shell_commands(command: str) -> list[list[str]]:
    """Split a command line into token lists, one per sequential segment.

    Heredoc bodies become their own single-token segment. When the command
    cannot be split confidently the whole input comes back as `[[command]]`.
    """

    scanned = _scan_command(command)
    if scanned is None:
        return [[command]]

    segments: list[list[str]] = []
    for text, is_heredoc_body in scanned.parts:
        if is_heredoc_body:
            segments.append([text])
            continue
        tokens = _shlex_split(text)
        if tokens is None:
            return [[command]]
        if tokens:
            segments.append(tokens)
    return segments


def _extract_command_substitutions(command: str) -> list[str]:
    """Return the bodies of `$(...)`, backtick and `<(...)`/`>(...)` substitutions.

    Only outermost substitutions outside single quotes are returned.
    """

    scanned = _scan_command(command)
    if scanned is None:
        return []
    return scanned.substitutions


def _is_env_assignment(tok: str) -> bool:
    if "=" not in tok:
        return False
    key = tok.split("=", 1)[0]
    if not key or not (key[0].isalpha() or key[0] == "_"):
        return False
    return all(ch.isalnum() or ch == "_" for ch in key[1:])


def _strip_env_assignments_with_info(
    tokens: list[str],
) -> tuple[list[str], dict[str, str]]:
    assignments: dict[str, str] = {}
    i = 0
    while i < len(tokens) and _is_env_assignment(tokens[i]):
        key, value = tokens[i].split("=", 1)
        assignments[key] = value
        i += 1
    return tokens[i:], assignments


def _skip_options(tokens: list[str], *, with_value: set[str]) -> int:
    """Return the index of the first token after a wrapper's own options."""

    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok == "--":
            return i + 1
        if not tok.startswith("-") or tok == "-":
            break
        if tok in with_value:
            i += 2
            continue
        i += 1
    return i


_SUDO_OPTS_WITH_VALUE = {
    "-u",
    "-g",
    "-C",
    "-D",
    "-h",
    "-p",
    "-r",
    "-t",
    "-T",
    "-U",
    "--user",
    "--group",
    "--chdir",
    "--host",
    "--prompt",
    "--role",
    "--type",
    "--other-user",
    "--command-timeout",
    "--close-from",
}

_DOAS_OPTS_WITH_VALUE = {"-u", "-C"}

_TIME_OPTS_WITH_VALUE = {"-f", "-o", "--format", "--output"}

_NICE_OPTS_WITH_VALUE = {"-n", "--adjustment"}

_TIMEOUT_OPTS_WITH_VALUE = {"-s", "-k", "--signal", "--kill-after"}

_EXEC_OPTS_WITH_VALUE = {"-a"}


def _strip_env_wrapper(tokens: list[str]) -> list[str]:
    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok == "--":
            i += 1
            break
        if tok in {"-u", "--unset", "-C", "--chdir", "-P", "-S", "--split-string"}:
            i += 2
            continue
        if tok.startswith(("--unset=", "--chdir=", "--split-string=")):
            i += 1
            continue
        if tok.startswith(("-u", "-C", "-P", "-S")) and len(tok) > 2:
            i += 1
            continue
        if tok.startswith("-") and tok != "-":
            i += 1
            continue
        break
    return tokens[i:]


def _strip_command_wrapper(tokens: list[str]) -> list[str]:
    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok == "--":
            i += 1
            break
        if tok.startswith("-") and tok != "-" and not tok.startswith("--"):
            chars = tok[1:]
            if chars and all(ch in {"p", "v", "V"} for ch in chars):
                i += 1
                continue
        break
    return tokens[i:]


def _strip_timeout_wrapper(tokens: list[str]) -> list[str]:
    i = _skip_options(tokens, with_value=_TIMEOUT_OPTS_WITH_VALUE)
    # The duration operand precedes the command.
    return tokens[i + 1 :] if i < len(tokens) else []


def _strip_wrappers_with_info(
    tokens: list[str],
) -> tuple[list[str], dict[str, str]]:
    """Strip leading no-op wrappers and assignments, collecting the assignments."""

    assignments: dict[str, str] = {}
    previous: list[str] | None = None
    iterations = 0
    while tokens and tokens != previous and iterations < MAX_STRIP_ITERATIONS:
        previous = tokens
        iterations += 1

        tokens, found = _strip_env_assignments_with_info(tokens)
        assignments.update(found)
        if not tokens:
            return tokens, assignments

        head = _get_basename(tokens[0]).lower()
        if head == "sudo":
            tokens = tokens[_skip_options(tokens, with_value=_SUDO_OPTS_WITH_VALUE) :]
        elif head == "doas":
            tokens = tokens[_skip_options(tokens, with_value=_DOAS_OPTS_WITH_VALUE) :]
        elif head == "env":
            tokens = _strip_env_wrapper(tokens)
        elif head == "command":
            tokens = _strip_command_wrapper(tokens)
        elif head == "time":
            tokens = tokens[_skip_options(tokens, with_value=_TIME_OPTS_WITH_VALUE) :]
        elif head == "nice":
            tokens = tokens[_skip_options(tokens, with_value=_NICE_OPTS_WITH_VALUE) :]
        elif head == "nohup":
            tokens = tokens[_skip_options(tokens, with_value=set()) :]
        elif head == "timeout":
            tokens = _strip_timeout_wrapper(tokens)
        elif head == "exec":
            tokens = tokens[_skip_options(tokens, with_value=_EXEC_OPTS_WITH_VALUE) :]
        else:
            break

    tokens, found = _strip_env_assignments_with_info(tokens)
    assignments.update(found)
    return tokens, assignments


def _strip_wrappers(tokens: list[str]) -> list[str]:
    return _strip_wrappers_with_info(tokens)[0]


def _get_basename(token: str) -> str:
    base = posixpath.basename(token)
    if base.lower().endswith(".exe"):
        base = base[:-4]
    return base


def _strip_token_wrappers(token: str) -> str:
    """Strip shell punctuation that can glue onto a command word.

    `;` is kept so callers can still recognize `-exec ... \\;` terminators.
    """

    tok = token.strip()
    while tok.startswith("$("):
        tok = tok[2:]
    tok = tok.lstrip("\\`({[")
    tok = tok.rstrip("`)}]")
    return tok


def _normalize_cmd_token(token: str) -> str:
    tok = _strip_token_wrappers(token)
    tok = tok.rstrip(";")
    return _get_basename(tok.lower())


def _short_opts(tokens: list[str]) -> set[str]:
    """Extract individual short option characters from tokens.

    Stops at `--` end-of-options marker to avoid treating positional
    arguments (e.g., filenames starting with `-`) as options.

    Also stops parsing a token at the first non-alpha character to avoid
    false positives from attached option values (e.g., `-C/path` should
    only contribute `C`, not `C`, `/`, `p`, `a`, `t`, `h`).
    """
    opts: set[str] = set()
    for tok in tokens:
        if tok == "--":
            break
        if tok.startswith("--") or not tok.startswith("-") or tok == "-":
            continue
        for ch in tok[1:]:
            if not ch.isalpha():
                break
            opts.add(ch)
    return opts
