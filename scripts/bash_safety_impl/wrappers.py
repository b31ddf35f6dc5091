"""Shell wrapper and interpreter one-liner helpers, plus TMPDIR override policy."""

import re
import tempfile

from .models import DANGEROUS_PATTERNS, INTERPRETERS
from .shell import _normalize_cmd_token

_PYTHON_VERSIONED = re.compile(r"^python\d+(?:\.\d+)?$")

_INTERPRETER_CODE_FLAGS = {
    "python": {"-c"},
    "node": {"-e", "--eval", "-p", "--print"},
    "ruby": {"-e"},
    "perl": {"-e", "-E"},
}

_TEMP_ROOTS = ("/tmp", "/var/tmp")


def _extract_dash_c_arg(tokens: list[str]) -> str | None:
    # Handles: <shell> -c 'cmd', <shell> -lc 'cmd', <shell> --norc -c 'cmd'
    for i in range(1, len(tokens)):
        tok = tokens[i]
        if tok == "--":
            return None
        if tok == "-c":
            return tokens[i + 1] if i + 1 < len(tokens) else None
        # Any short cluster carrying `c` (-lc, -euc, -xeuc) takes the script next.
        if tok.startswith("-") and not tok.startswith("--") and tok[1:].isalpha():
            if "c" in tok[1:]:
                return tokens[i + 1] if i + 1 < len(tokens) else None
    return None


def _interpreter_family(head: str) -> str | None:
    """Map a normalized command name to its interpreter family, if any."""

    if head in INTERPRETERS:
        return "python" if head.startswith("python") else head
    if _PYTHON_VERSIONED.match(head):
        return "python"
    return None


def _is_interpreter(head: str) -> bool:
    return _interpreter_family(head) is not None


def _extract_interpreter_code_arg(tokens: list[str]) -> str | None:
    # Handles: python -c 'code', node -e 'code', ruby -e 'code', perl -pe 'code'
    if not tokens:
        return None
    family = _interpreter_family(_normalize_cmd_token(tokens[0]))
    if family is None:
        return None

    flags = _INTERPRETER_CODE_FLAGS[family]
    for i in range(1, len(tokens)):
        tok = tokens[i]
        if tok == "--":
            return None
        if tok in flags:
            return tokens[i + 1] if i + 1 < len(tokens) else None
        if family == "node":
            for flag in ("--eval=", "--print="):
                if tok.startswith(flag):
                    return tok[len(flag) :]
        if family == "perl" and _is_perl_combined_code_flag(tok):
            return tokens[i + 1] if i + 1 < len(tokens) else None
    return None


def _is_perl_combined_code_flag(tok: str) -> bool:
    # -pe, -ne, -lne, -i.bak -pe style clusters ending with e/E.
    if not tok.startswith("-") or tok.startswith("--") or len(tok) < 3:
        return False
    return tok[1:].isalpha() and tok[-1] in {"e", "E"}


def _contains_dangerous_code(code: str) -> bool:
    return any(pattern.search(code) for pattern in DANGEROUS_PATTERNS)


def _is_temp_path(value: str) -> bool:
    roots = (*_TEMP_ROOTS, tempfile.gettempdir())
    for root in roots:
        base = root if root.endswith("/") else root + "/"
        if value == root or value.startswith(base):
            return True
    return False


def _tmpdir_overridden_to_non_temp(assignments: dict[str, str]) -> bool:
    """Return True when TMPDIR is reassigned somewhere that is not a temp dir.

    An empty value counts as an override: `$TMPDIR/foo` would expand to `/foo`.
    """

    if "TMPDIR" not in assignments:
        return False
    value = assignments["TMPDIR"]
    if value == "":
        return True
    return not _is_temp_path(value)
