"""rm -rf target classification for the bash safety analyzer."""

import enum
import os
import posixpath
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .models import SegmentContext
from .shell import _short_opts

_REASON_RM_RF = (
    "rm -rf outside cwd is blocked. Use explicit paths within the current "
    "directory, or delete manually."
)
_REASON_RM_RF_ROOT_HOME = (
    "rm -rf targeting root or home directory is extremely dangerous and always "
    "blocked."
)
_PARANOID_SUFFIX = " (PARANOID_RM enabled)"

_ROOT_OR_HOME_TARGETS = frozenset(
    {
        "/",
        "/*",
        "~",
        "~/",
        "~/*",
        "$HOME",
        "$HOME/",
        "$HOME/*",
        "${HOME}",
        "${HOME}/",
        "${HOME}/*",
    }
)


class TargetClass(enum.Enum):
    ROOT_OR_HOME = "root_or_home_target"
    CWD_SELF = "cwd_self_target"
    TEMP = "temp_target"
    WITHIN_ANCHORED_CWD = "within_anchored_cwd"
    OUTSIDE_ANCHORED_CWD = "outside_anchored_cwd"


@dataclass(frozen=True)
class _RmContext:
    anchored_cwd: str | None
    resolved_cwd: str | None
    paranoid: bool
    trust_tmpdir_var: bool
    home_dir: str


def _rm_has_recursive_force(tokens: list[str]) -> bool:
    """Return True if the rm invocation is effectively `rm -rf`."""

    if not tokens:
        return False

    opts: list[str] = []
    for tok in tokens[1:]:
        if tok == "--":
            break
        opts.append(tok)

    opts_lower = [t.lower() for t in opts]
    short = _short_opts(opts)
    recursive = "--recursive" in opts_lower or "r" in short or "R" in short
    force = "--force" in opts_lower or "f" in short
    return recursive and force


def _analyze_rm(
    tokens: list[str],
    *,
    cwd: str | None = None,
    original_cwd: str | None = None,
    paranoid: bool = False,
    allow_tmpdir_var: bool = True,
) -> str | None:
    if not _rm_has_recursive_force(tokens):
        return None

    anchored_cwd = original_cwd or cwd
    ctx = _RmContext(
        anchored_cwd=anchored_cwd,
        resolved_cwd=cwd or anchored_cwd,
        paranoid=paranoid,
        trust_tmpdir_var=allow_tmpdir_var,
        home_dir=_home_dir(),
    )

    for target in _rm_targets(tokens):
        reason = _reason_for(_classify_target(target, ctx), ctx)
        if reason:
            return reason
    return None


def _rm_targets(tokens: list[str]) -> list[str]:
    targets: list[str] = []
    past_double_dash = False
    for tok in tokens[1:]:
        if not tok:
            continue
        if past_double_dash:
            targets.append(tok)
            continue
        if tok == "--":
            past_double_dash = True
            continue
        if not tok.startswith("-"):
            targets.append(tok)
    return targets


def _classify_target(target: str, ctx: _RmContext) -> TargetClass:
    if _is_root_or_home_target(target):
        return TargetClass.ROOT_OR_HOME

    anchored = ctx.anchored_cwd
    if anchored and _is_cwd_self_target(target, anchored):
        return TargetClass.CWD_SELF

    if _is_temp_target(target, ctx.trust_tmpdir_var):
        return TargetClass.TEMP

    if anchored:
        # A relative target can still land anywhere inside home.
        if _same_path(anchored, ctx.home_dir):
            return TargetClass.ROOT_OR_HOME
        if _is_target_within_cwd(target, anchored, ctx.resolved_cwd):
            return TargetClass.WITHIN_ANCHORED_CWD

    return TargetClass.OUTSIDE_ANCHORED_CWD


def _reason_for(classification: TargetClass, ctx: _RmContext) -> str | None:
    if classification is TargetClass.ROOT_OR_HOME:
        return _REASON_RM_RF_ROOT_HOME
    if classification is TargetClass.TEMP:
        return None
    if classification is TargetClass.WITHIN_ANCHORED_CWD:
        return _REASON_RM_RF + _PARANOID_SUFFIX if ctx.paranoid else None
    return _REASON_RM_RF


def _is_root_or_home_target(target: str) -> bool:
    return target.strip() in _ROOT_OR_HOME_TARGETS


def _is_under(path: str, base: str) -> bool:
    return path == base or path.startswith(base + "/")


def _is_temp_target(target: str, trust_tmpdir_var: bool) -> bool:
    normalized = target.strip()
    if ".." in normalized:
        return False

    if _is_under(normalized, "/tmp"):
        return True
    if _is_under(normalized, "/var/tmp"):
        return True
    if _is_under(normalized, tempfile.gettempdir()):
        return True

    if trust_tmpdir_var:
        if _is_under(normalized, "$TMPDIR"):
            return True
        if _is_under(normalized, "${TMPDIR}"):
            return True
    return False


def _is_cwd_self_target(target: str, cwd: str) -> bool:
    if target in {".", "./"}:
        return True

    resolved = os.path.join(cwd, target)
    try:
        return os.path.realpath(resolved, strict=True) == os.path.realpath(
            cwd, strict=True
        )
    except (OSError, ValueError):
        # Target (or cwd) does not exist; compare lexically instead.
        return posixpath.normpath(resolved) == posixpath.normpath(cwd)


def _is_target_within_cwd(
    target: str, original_cwd: str, effective_cwd: str | None = None
) -> bool:
    if target.startswith(("~", "$HOME", "${HOME}")):
        return False
    # Variables and command substitutions cannot be expanded statically.
    if "$" in target or "`" in target:
        return False

    base = posixpath.normpath(original_cwd)

    if target.startswith("/"):
        return posixpath.normpath(target).startswith(base + "/")

    if target.startswith("../"):
        return False

    resolved = posixpath.normpath(posixpath.join(effective_cwd or original_cwd, target))
    return _is_under(resolved, base)


def _same_path(a: str, b: str) -> bool:
    return posixpath.normpath(a) == posixpath.normpath(b)


def _home_dir() -> str:
    return os.environ.get("HOME") or str(Path.home())


def _is_home_directory(cwd: str) -> bool:
    return _same_path(cwd, _home_dir())


def _analyze_rm_in_context(tokens: list[str], ctx: SegmentContext) -> str | None:
    cwd = ctx.cwd_for_rm
    return _analyze_rm(
        tokens,
        cwd=cwd,
        original_cwd=cwd,
        paranoid=ctx.paranoid_rm,
        allow_tmpdir_var=ctx.allow_tmpdir_var,
    )
