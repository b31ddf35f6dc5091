"""Last-resort text heuristics for segments that could not be tokenized.

The splitter hands over heredoc bodies and unparseable input as a single
whitespace-containing token; these are scanned with plain regexes.
"""

import re

_TEXT_RULES: tuple[tuple[re.Pattern[str], str, bool, bool], ...] = (
    # (pattern, reason, skip for echo/rg text, case-sensitive)
    (
        re.compile(r"\bprivate-keys-v1\.d\b"),
        "Access to GPG private keys (private-keys-v1.d) is blocked.",
        False,
        False,
    ),
    (
        re.compile(r"/secret/gnupg(?:/|\b)"),
        "Access to the agent GNUPGHOME (secret/gnupg) is blocked.",
        False,
        False,
    ),
    (re.compile(r"/\.ssh(?:/|\b)"), "Access to ~/.ssh is blocked.", False, False),
    (re.compile(r"/\.aws(?:/|\b)"), "Access to ~/.aws is blocked.", False, False),
    (re.compile(r"/\.gnupg(?:/|\b)"), "Access to ~/.gnupg is blocked.", False, False),
    (
        re.compile(r"github-app\.private-key\.pem\b"),
        "Access to the GitHub App private key is blocked.",
        False,
        False,
    ),
    (
        re.compile(r"\brm\s+(?:-\S*r\S*\s+-\S*f|-\S*f\S*\s+-\S*r|-\S*rf|-\S*fr)\b"),
        "rm -rf is destructive. List files first, then delete individually.",
        False,
        False,
    ),
    (
        re.compile(r"\bgit\s+reset\s+--hard\b"),
        "git reset --hard destroys uncommitted changes. Use 'git stash' first.",
        False,
        False,
    ),
    (
        re.compile(r"\bgit\s+reset\s+--merge\b"),
        "git reset --merge can lose uncommitted changes.",
        False,
        False,
    ),
    (
        re.compile(r"\bgit\s+clean\s+(?:-\S*f|-f)\b"),
        "git clean -f removes untracked files permanently.",
        False,
        False,
    ),
    (
        re.compile(r"\bgit\s+push\s+[^|;]*(?:-f\b|--force\b)(?!-with-lease)"),
        "git push --force destroys remote history. Use --force-with-lease instead.",
        False,
        False,
    ),
    # -D and -d are different options, so this rule keeps the original case.
    (
        re.compile(r"\bgit\s+branch\s+-D\b"),
        "git branch -D force-deletes without merge check.",
        False,
        True,
    ),
    (
        re.compile(r"\bgit\s+stash\s+(?:drop|clear)\b"),
        "git stash drop/clear permanently deletes stashed changes.",
        False,
        False,
    ),
    (
        re.compile(r"\bgit\s+checkout\s+--\s"),
        "git checkout -- discards uncommitted changes permanently.",
        False,
        False,
    ),
    (
        re.compile(r"\bgit\s+restore\b(?!.*--(?:staged|help))"),
        "git restore (without --staged) discards uncommitted changes.",
        False,
        False,
    ),
    (
        re.compile(r"\bfind\b[^\n;|&]*\s-delete\b"),
        "find -delete permanently removes files.",
        True,
        False,
    ),
)


def _dangerous_in_text(text: str) -> str | None:
    lowered = text.lower()
    is_echo_or_rg = lowered.lstrip().startswith(("echo ", "rg "))

    for pattern, reason, skip_for_echo_rg, case_sensitive in _TEXT_RULES:
        if skip_for_echo_rg and is_echo_or_rg:
            continue
        if pattern.search(text if case_sensitive else lowered):
            return reason
    return None
