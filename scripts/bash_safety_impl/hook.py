"""Bash command safety gate for Claude Code.

Blocks destructive commands that can lose uncommitted work or delete files.
This hook runs before Bash commands execute and can deny dangerous operations.

Exit behavior:
  - Exit 0 with JSON containing permissionDecision: "deny" = block command
  - Exit 0 with no output = allow command
"""

import json
import re
import sys
from datetime import datetime, timezone
from pathlib import Path

from .analyze import analyze_bash_command
from .config import USER_CONFIG_DIR, load_settings, settings_from_env
from .format import format_blocked_message, redact_secrets

_AUDIT_FIELD_MAX_LEN = 300

_REASON_INVALID_INPUT = "Invalid hook input."
_REASON_INVALID_STRUCTURE = "Invalid hook input structure."


def _deny(reason: str) -> None:
    output = {
        "hookSpecificOutput": {
            "hookEventName": "PreToolUse",
            "permissionDecision": "deny",
            "permissionDecisionReason": reason,
        }
    }
    print(json.dumps(output))


def _sanitize_session_id_for_filename(session_id: str) -> str | None:
    """Return a safe filename component derived from session_id."""

    raw = session_id.strip()
    if not raw:
        return None

    safe = re.sub(r"[^A-Za-z0-9_.-]+", "_", raw)
    safe = safe.strip("._-")[:128]
    if not safe or safe in {".", ".."}:
        return None
    return safe


def _audit_log_path(session_id: str) -> Path | None:
    safe_session_id = _sanitize_session_id_for_filename(session_id)
    if safe_session_id is None:
        return None
    return Path.home() / USER_CONFIG_DIR / "logs" / f"{safe_session_id}.jsonl"


def _write_audit_log(
    session_id: str,
    command: str,
    segment: str,
    reason: str,
    cwd: str | None,
) -> None:
    """Append an audit log entry for a denied command."""
    log_file = _audit_log_path(session_id)
    if log_file is None:
        return

    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "command": redact_secrets(command)[:_AUDIT_FIELD_MAX_LEN],
        "segment": redact_secrets(segment)[:_AUDIT_FIELD_MAX_LEN],
        "reason": reason,
        "cwd": cwd,
    }

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        with log_file.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError:
        # The verdict stands even when the log cannot be written.
        pass


def _invalid_input(reason: str, strict: bool) -> int:
    if strict:
        _deny(format_blocked_message(reason, footer=""))
    return 0


def main() -> int:
    strict = settings_from_env().strict
    try:
        input_data = json.load(sys.stdin)
    except json.JSONDecodeError:
        return _invalid_input(_REASON_INVALID_INPUT, strict)

    if not isinstance(input_data, dict):
        return _invalid_input(_REASON_INVALID_STRUCTURE, strict)

    if input_data.get("tool_name") != "Bash":
        return 0

    tool_input = input_data.get("tool_input")
    if not isinstance(tool_input, dict):
        return _invalid_input(_REASON_INVALID_STRUCTURE, strict)

    command = tool_input.get("command")
    if not isinstance(command, str) or not command.strip():
        return 0

    cwd_val = input_data.get("cwd")
    cwd = cwd_val.strip() if isinstance(cwd_val, str) else None
    if cwd == "":
        cwd = None

    settings = load_settings(cwd)
    blocked = analyze_bash_command(command, settings.to_options(cwd))
    if blocked is None:
        return 0

    session_id = input_data.get("session_id")
    if isinstance(session_id, str) and session_id:
        _write_audit_log(session_id, command, blocked.segment, blocked.reason, cwd)

    _deny(format_blocked_message(blocked.reason, command, blocked.segment))
    return 0
