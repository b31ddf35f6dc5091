"""Tests for blocked-message formatting and secret redaction."""

from unittest import TestCase

from scripts.bash_safety_impl.format import format_blocked_message, redact_secrets


class RedactSecretsTests(TestCase):
    def test_secret_assignments(self) -> None:
        self.assertEqual(
            redact_secrets("GITHUB_TOKEN=abc123 git push"),
            "GITHUB_TOKEN=<redacted> git push",
        )
        self.assertEqual(redact_secrets("password=hunter2"), "password=<redacted>")

    def test_non_secret_assignment_kept(self) -> None:
        self.assertEqual(redact_secrets("DEBUG=1 make"), "DEBUG=1 make")

    def test_url_credentials(self) -> None:
        self.assertEqual(
            redact_secrets("git clone https://user:pw@example.com/r.git"),
            "git clone https://<redacted>:<redacted>@example.com/r.git",
        )

    def test_quoted_authorization_header(self) -> None:
        redacted = redact_secrets('curl -H "Authorization: Bearer abc123" x')
        self.assertNotIn("abc123", redacted)
        self.assertIn('"Authorization: <redacted>"', redacted)

    def test_bare_authorization_header(self) -> None:
        self.assertEqual(
            redact_secrets("curl -H Authorization: Bearer abc123 x"),
            "curl -H Authorization: <redacted> x",
        )

    def test_github_tokens(self) -> None:
        classic = "ghp_" + "a" * 36
        fine_grained = "github_pat_" + "B" * 30
        redacted = redact_secrets(f"echo {classic} {fine_grained}")
        self.assertEqual(redacted, "echo <redacted> <redacted>")


class FormatBlockedMessageTests(TestCase):
    def test_reason_only(self) -> None:
        self.assertEqual(
            format_blocked_message("Nope.", footer=""),
            "BLOCKED by Bash Safety\n\nReason: Nope.",
        )

    def test_default_footer(self) -> None:
        message = format_blocked_message("Nope.")
        self.assertTrue(message.startswith("BLOCKED by Bash Safety\n\nReason: Nope."))
        self.assertIn("ask the user for explicit permission", message)

    def test_command_and_segment(self) -> None:
        message = format_blocked_message(
            "Nope.", command="ls && rm -rf /", segment="rm -rf /", footer=""
        )
        self.assertEqual(
            message,
            "BLOCKED by Bash Safety\n\nReason: Nope.\n\n"
            "Command: ls && rm -rf /\n\nSegment: rm -rf /",
        )

    def test_segment_equal_to_command_omitted(self) -> None:
        message = format_blocked_message(
            "Nope.", command="rm -rf /", segment="rm -rf /", footer=""
        )
        self.assertNotIn("Segment:", message)

    def test_long_command_truncated(self) -> None:
        message = format_blocked_message(
            "Nope.", command="a" * 50, max_len=10, footer=""
        )
        self.assertIn("Command: aaaaaaaaaa...", message)
        self.assertNotIn("a" * 11, message)

    def test_excerpts_redacted_by_default(self) -> None:
        message = format_blocked_message(
            "Nope.", command="API_KEY=xyz git reset --hard"
        )
        self.assertNotIn("xyz", message)

    def test_custom_redactor(self) -> None:
        message = format_blocked_message(
            "Nope.", command="rm -rf /", redact=str.upper, footer=""
        )
        self.assertIn("Command: RM -RF /", message)
