"""Git subcommand rules for the bash safety analyzer."""

from .shell import _get_basename, _short_opts

_REASON_GIT_CHECKOUT_DOUBLE_DASH = (
    "git checkout -- discards uncommitted changes permanently. Use 'git stash' first."
)
_REASON_GIT_CHECKOUT_REF_DOUBLE_DASH = (
    "git checkout <ref> -- <path> overwrites working tree with ref version. "
    "Use 'git stash' first."
)
_REASON_GIT_CHECKOUT_PATHSPEC_FROM_FILE = (
    "git checkout --pathspec-from-file can overwrite multiple files. "
    "Use 'git stash' first."
)
_REASON_GIT_CHECKOUT_AMBIGUOUS = (
    "git checkout with multiple positional args may overwrite files. "
    "Use 'git switch' for branches or 'git restore' for files."
)
_REASON_GIT_RESTORE = (
    "git restore discards uncommitted changes. Use 'git stash' first, "
    "or use --staged to only unstage."
)
_REASON_GIT_RESTORE_WORKTREE = (
    "git restore --worktree explicitly discards working tree changes. "
    "Use 'git stash' first."
)
_REASON_GIT_RESET_HARD = (
    "git reset --hard destroys all uncommitted changes permanently. "
    "Use 'git stash' first."
)
_REASON_GIT_RESET_MERGE = (
    "git reset --merge can lose uncommitted changes. Use 'git stash' first."
)
_REASON_GIT_CLEAN_FORCE = (
    "git clean -f removes untracked files permanently. "
    "Use 'git clean -n' to preview first."
)
_REASON_GIT_PUSH_FORCE = (
    "git push --force destroys remote history. "
    "Use --force-with-lease for safer force push."
)
_REASON_GIT_BRANCH_DELETE_FORCE = (
    "git branch -D force-deletes without merge check. Use -d for safe delete."
)
_REASON_GIT_STASH_DROP = (
    "git stash drop permanently deletes stashed changes. "
    "Consider 'git stash list' first."
)
_REASON_GIT_STASH_CLEAR = "git stash clear deletes ALL stashed changes permanently."
_REASON_GIT_WORKTREE_REMOVE_FORCE = (
    "git worktree remove --force can delete uncommitted changes. "
    "Remove --force flag."
)

_GIT_GLOBAL_OPTS_WITH_VALUE = {
    "-c",
    "-C",
    "--exec-path",
    "--git-dir",
    "--namespace",
    "--super-prefix",
    "--work-tree",
    "--config-env",
}

_CHECKOUT_OPTS_WITH_VALUE = {
    "-b",
    "-B",
    "--orphan",
    "--conflict",
    "--pathspec-from-file",
    "-U",
    "--unified",
}

_CHECKOUT_OPTIONAL_VALUES = {
    "--recurse-submodules": {"checkout", "on-demand"},
    "--track": {"direct", "inherit"},
    "-t": {"direct", "inherit"},
}

_CHECKOUT_OPTS_NO_VALUE = {
    "-q",
    "--quiet",
    "-f",
    "--force",
    "-d",
    "--detach",
    "-m",
    "--merge",
    "-p",
    "--patch",
    "--ours",
    "--theirs",
    "--no-track",
    "--overwrite-ignore",
    "--no-overwrite-ignore",
    "--ignore-other-worktrees",
    "--ignore-skip-worktree-bits",
    "--overlay",
    "--no-overlay",
    "--progress",
    "--no-progress",
    "--guess",
    "--no-guess",
    "--pathspec-file-nul",
}


def _analyze_git(tokens: list[str]) -> str | None:
    sub, rest = _git_subcommand_and_rest(tokens)
    if not sub:
        return None

    handler = _SUBCOMMAND_RULES.get(sub.lower())
    if handler is None:
        return None
    return handler(rest)


def _git_subcommand_and_rest(tokens: list[str]) -> tuple[str | None, list[str]]:
    if not tokens or _get_basename(tokens[0]).lower() != "git":
        return None, []

    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok == "--":
            nxt = tokens[i + 1] if i + 1 < len(tokens) else ""
            if nxt and not nxt.startswith("-"):
                return nxt, tokens[i + 2 :]
            return None, []

        if not tok.startswith("-") or tok == "-":
            return tok, tokens[i + 1 :]

        # `-Crepo`, `-cname=value` and `--git-dir=path` are single tokens.
        if tok in _GIT_GLOBAL_OPTS_WITH_VALUE:
            i += 2
        else:
            i += 1

    return None, []


def _before_double_dash(rest: list[str]) -> list[str]:
    if "--" in rest:
        return rest[: rest.index("--")]
    return rest


def _checkout(rest: list[str]) -> str | None:
    for tok in rest:
        if tok in {"-b", "-B", "--orphan"}:
            return None
    for tok in rest:
        if tok == "--pathspec-from-file" or tok.startswith("--pathspec-from-file="):
            return _REASON_GIT_CHECKOUT_PATHSPEC_FROM_FILE

    if "--" in rest:
        if any(not t.startswith("-") for t in _before_double_dash(rest)):
            return _REASON_GIT_CHECKOUT_REF_DOUBLE_DASH
        return _REASON_GIT_CHECKOUT_DOUBLE_DASH

    # `git checkout <ref> <pathspec>` without `--` still overwrites files.
    if len(_checkout_positional_args(rest)) >= 2:
        return _REASON_GIT_CHECKOUT_AMBIGUOUS
    return None


def _checkout_positional_args(rest: list[str]) -> list[str]:
    """Return positional args for `git checkout`, ignoring options and their values."""

    positionals: list[str] = []
    i = 0
    while i < len(rest):
        tok = rest[i]
        if tok == "--":
            break

        # A lone '-' is a positional (previous branch).
        if tok == "-" or not tok.startswith("-"):
            positionals.append(tok)
            i += 1
            continue

        nxt = rest[i + 1] if i + 1 < len(rest) else None
        if tok in _CHECKOUT_OPTS_WITH_VALUE:
            i += 2
        elif tok.startswith("--") and "=" in tok:
            i += 1
        elif tok in _CHECKOUT_OPTIONAL_VALUES:
            i += 2 if nxt in _CHECKOUT_OPTIONAL_VALUES[tok] else 1
        elif tok.startswith("--") and tok not in _CHECKOUT_OPTS_NO_VALUE:
            # Unknown long options may take a value; never count it as a path.
            i += 2 if nxt is not None and not nxt.startswith("-") else 1
        else:
            i += 1

    return positionals


def _restore(rest: list[str]) -> str | None:
    has_staged = False
    for tok in rest:
        if tok in {"-h", "--help", "--version"}:
            return None
        # --worktree discards working tree changes even alongside --staged.
        if tok in {"-W", "--worktree"}:
            return _REASON_GIT_RESTORE_WORKTREE
        if tok in {"-S", "--staged"}:
            has_staged = True
    return None if has_staged else _REASON_GIT_RESTORE


def _reset(rest: list[str]) -> str | None:
    for tok in rest:
        if tok == "--hard":
            return _REASON_GIT_RESET_HARD
        if tok == "--merge":
            return _REASON_GIT_RESET_MERGE
    return None


def _clean(rest: list[str]) -> str | None:
    opts = _before_double_dash(rest)
    short = _short_opts(opts)
    if "--dry-run" in opts or "n" in short:
        return None
    if "--force" in opts or "f" in short:
        return _REASON_GIT_CLEAN_FORCE
    return None


def _push(rest: list[str]) -> str | None:
    opts = _before_double_dash(rest)
    if any(
        t == "--force-with-lease" or t.startswith("--force-with-lease=") for t in opts
    ):
        return None

    has_force = "--force" in opts or "f" in _short_opts(opts)
    # `git push origin +main` force-updates that ref.
    has_plus_refspec = any(t.startswith("+") and len(t) > 1 for t in rest)
    if has_force or has_plus_refspec:
        return _REASON_GIT_PUSH_FORCE
    return None


def _branch(rest: list[str]) -> str | None:
    if "D" in _short_opts(rest):
        return _REASON_GIT_BRANCH_DELETE_FORCE
    return None


def _stash(rest: list[str]) -> str | None:
    action = next((t.lower() for t in rest if not t.startswith("-")), None)
    if action == "drop":
        return _REASON_GIT_STASH_DROP
    if action == "clear":
        return _REASON_GIT_STASH_CLEAR
    return None


def _worktree(rest: list[str]) -> str | None:
    action = next((t.lower() for t in rest if not t.startswith("-")), None)
    if action != "remove":
        return None

    opts = _before_double_dash(rest)
    if "--force" in opts or "f" in _short_opts(opts):
        return _REASON_GIT_WORKTREE_REMOVE_FORCE
    return None


_SUBCOMMAND_RULES = {
    "checkout": _checkout,
    "restore": _restore,
    "reset": _reset,
    "clean": _clean,
    "push": _push,
    "branch": _branch,
    "stash": _stash,
    "worktree": _worktree,
}
