"""Tests for bash-safety xargs and GNU parallel handling."""

from scripts.bash_safety_impl.rules_parallel import (
    _expand_placeholders,
    _parallel_template_and_args,
)
from scripts.bash_safety_impl.rules_xargs import _xargs_child_and_placeholders

from .bash_safety_test_base import BashSafetyTestCase


class XargsTests(BashSafetyTestCase):
    def test_xargs_rm_rf_blocked(self) -> None:
        self._assert_blocked("find . -name '*.log' | xargs rm -rf", "xargs rm -rf")

    def test_xargs_rm_rf_in_cwd_still_blocked(self) -> None:
        self._assert_blocked(
            "ls | xargs rm -rf", "dynamic input", cwd=str(self.tmpdir)
        )

    def test_xargs_rm_rf_visible_root_target_blocked(self) -> None:
        self._assert_blocked("echo x | xargs rm -rf /", "root or home")

    def test_xargs_replace_rm_rf_blocked(self) -> None:
        self._assert_blocked("ls | xargs -I{} rm -rf {}", "rm -rf")

    def test_xargs_delimiter_option_still_blocks_child_rm(self) -> None:
        self._assert_blocked("ls | xargs -d '\\n' rm -rf", "xargs rm -rf")

    def test_xargs_dash_i_does_not_consume_child_cmd(self) -> None:
        self._assert_blocked("ls | xargs -i rm -rf {}", "rm -rf")

    def test_xargs_attached_n_option_still_blocks_child_rm(self) -> None:
        self._assert_blocked("ls | xargs -n1 rm -rf", "xargs rm -rf")

    def test_xargs_long_opt_equals_still_blocks_child_rm(self) -> None:
        self._assert_blocked("ls | xargs --max-procs=4 rm -rf", "xargs rm -rf")

    def test_xargs_print0_rm_rf_blocked(self) -> None:
        self._assert_blocked("find . -print0 | xargs -0 rm -rf", "xargs rm -rf")

    def test_xargs_busybox_rm_rf_blocked(self) -> None:
        self._assert_blocked("ls | xargs busybox rm -rf", "xargs rm -rf")

    def test_xargs_sudo_rm_rf_blocked(self) -> None:
        self._assert_blocked("ls | xargs sudo rm -rf", "xargs rm -rf")

    def test_xargs_bash_without_script_blocked(self) -> None:
        self._assert_blocked("ls | xargs bash", "shell -c")

    def test_xargs_bash_c_placeholder_script_blocked(self) -> None:
        self._assert_blocked("ls | xargs -I{} bash -c '{}'", "shell -c")

    def test_xargs_custom_token_in_script_blocked(self) -> None:
        self._assert_blocked(
            "ls | xargs --replace=FILE sh -c 'echo FILE'", "shell -c"
        )

    def test_xargs_bash_c_script_analyzed_blocks(self) -> None:
        self._assert_blocked("ls | xargs sh -c 'git reset --hard'", "reset --hard")

    def test_xargs_bash_c_safe_script_allowed(self) -> None:
        self._assert_allowed("ls | xargs sh -c 'echo done'")

    def test_xargs_find_delete_blocked(self) -> None:
        self._assert_blocked("echo . | xargs find -delete", "find -delete")

    def test_xargs_git_reset_hard_blocked(self) -> None:
        self._assert_blocked("echo x | xargs git reset --hard", "reset --hard")

    def test_xargs_rm_without_force_allowed(self) -> None:
        self._assert_allowed("ls | xargs rm -r")

    def test_xargs_rm_double_dash_prevents_dash_rf_as_option_allowed(self) -> None:
        self._assert_allowed("ls | xargs rm -- -rf")

    def test_xargs_echo_allowed(self) -> None:
        self._assert_allowed("ls | xargs echo")

    def test_xargs_without_child_command_allowed(self) -> None:
        self._assert_allowed("ls | xargs")

    def test_xargs_only_options_without_child_command_allowed(self) -> None:
        self._assert_allowed("ls | xargs -n 1 -0")


class ParallelTests(BashSafetyTestCase):
    def test_parallel_stdin_mode_blocks_rm_rf(self) -> None:
        self._assert_blocked("ls | parallel rm -rf", "parallel rm -rf")

    def test_parallel_stdin_placeholder_rm_rf_blocked(self) -> None:
        self._assert_blocked("ls | parallel rm -rf {}", "parallel rm -rf")

    def test_parallel_rm_rf_expanded_args_blocked(self) -> None:
        self._assert_blocked("parallel rm -rf {} ::: /", "root or home")

    def test_parallel_rm_rf_args_without_placeholder_blocked(self) -> None:
        self._assert_blocked("parallel rm -rf ::: /etc", "rm -rf")

    def test_parallel_rm_rf_safe_args_allowed(self) -> None:
        self._assert_allowed("parallel rm -rf {} ::: /tmp/a /tmp/b")

    def test_parallel_rm_rf_relative_args_in_cwd_allowed(self) -> None:
        self._assert_allowed("parallel rm -rf ::: build dist", cwd=str(self.tmpdir))

    def test_parallel_rm_rf_second_arg_checked(self) -> None:
        self._assert_blocked(
            "parallel rm -rf ::: build /etc", "rm -rf", cwd=str(self.tmpdir)
        )

    def test_parallel_multiple_arg_groups_merged(self) -> None:
        self._assert_blocked("parallel rm -rf {} ::: /tmp/a ::: /etc", "rm -rf")

    def test_parallel_basename_placeholder_expanded(self) -> None:
        self._assert_allowed("parallel rm -rf /tmp/{/} ::: /etc/passwd")

    def test_parallel_file_args_are_dynamic(self) -> None:
        self._assert_blocked("parallel rm -rf {} :::: list.txt", "parallel rm -rf")

    def test_parallel_results_option_value_skipped(self) -> None:
        self._assert_blocked(
            "parallel --results out rm -rf {} ::: /etc", "rm -rf"
        )

    def test_parallel_jobs_attached_option(self) -> None:
        self._assert_blocked("parallel -j4 rm -rf {} ::: /etc", "rm -rf")

    def test_parallel_bash_c_placeholder_only_blocked(self) -> None:
        self._assert_blocked("parallel bash -c {} ::: 'echo hi'", "shell -c")

    def test_parallel_bash_c_placeholder_without_args_blocked(self) -> None:
        self._assert_blocked("ls | parallel bash -c 'echo {}'", "shell -c")

    def test_parallel_bash_c_expanded_args_blocked(self) -> None:
        self._assert_blocked(
            "parallel bash -c 'rm -rf {}' ::: /etc", "rm -rf"
        )

    def test_parallel_bash_c_expanded_safe_args_allowed(self) -> None:
        self._assert_allowed("parallel bash -c 'rm -rf {}' ::: /tmp/a")

    def test_parallel_bash_c_without_placeholder_analyzes_script(self) -> None:
        self._assert_blocked(
            "parallel bash -c 'git reset --hard' ::: a", "reset --hard"
        )

    def test_parallel_bash_c_dynamic_placeholder_in_template_blocked(self) -> None:
        self._assert_blocked("ls | parallel bash -c 'echo hi' {}", "shell -c")

    def test_parallel_bash_c_without_placeholder_allows_safe_script(self) -> None:
        self._assert_allowed("parallel bash -c 'echo hi' ::: a")

    def test_parallel_shell_without_c_and_args_blocked(self) -> None:
        self._assert_blocked("parallel bash ::: script.sh", "shell -c")

    def test_parallel_commands_mode_blocks_rm_rf(self) -> None:
        self._assert_blocked("parallel ::: 'echo ok' 'rm -rf /etc'", "rm -rf")

    def test_parallel_commands_mode_allows_safe_commands(self) -> None:
        self._assert_allowed("parallel ::: 'echo a' 'echo b'")

    def test_parallel_find_delete_blocked(self) -> None:
        self._assert_blocked("parallel find {} -delete ::: .", "find -delete")

    def test_parallel_git_reset_hard_blocked(self) -> None:
        self._assert_blocked("parallel git reset --hard ::: a", "reset --hard")

    def test_parallel_stdin_without_template_allowed(self) -> None:
        self._assert_allowed("ls | parallel")

    def test_parallel_echo_allowed(self) -> None:
        self._assert_allowed("parallel echo {} ::: a b c")

    def test_parallel_custom_replace_script_only_blocked(self) -> None:
        self._assert_blocked("parallel -I @@ bash -c @@ ::: 'rm -rf /'", "shell -c")

    def test_parallel_custom_replace_rm_rf_expanded(self) -> None:
        self._assert_blocked("parallel -I @@ rm -rf @@ ::: /", "root or home")
        self._assert_allowed("parallel -I @@ rm -rf @@ ::: /tmp/a")

    def test_parallel_long_replace_in_script_expanded(self) -> None:
        self._assert_blocked(
            "parallel --replace=X bash -c 'rm -rf X' ::: /etc", "rm -rf"
        )

    def test_parallel_attached_replace_in_script_expanded(self) -> None:
        self._assert_blocked("parallel -I%% sh -c 'rm -rf %%' ::: /", "root or home")


class CompositeParsingHelpersTests(BashSafetyTestCase):
    def test_xargs_child_after_options(self) -> None:
        self.assertEqual(
            _xargs_child_and_placeholders(["xargs", "-n", "1", "-0", "rm", "-rf"]),
            (["rm", "-rf"], set()),
        )

    def test_xargs_double_dash_starts_child(self) -> None:
        self.assertEqual(
            _xargs_child_and_placeholders(["xargs", "--", "-rf"]), (["-rf"], set())
        )

    def test_xargs_placeholders_collected(self) -> None:
        child, placeholders = _xargs_child_and_placeholders(
            ["xargs", "-I", "%", "-J@", "cp", "%", "dest"]
        )
        self.assertEqual(child, ["cp", "%", "dest"])
        self.assertEqual(placeholders, {"%", "@"})

    def test_xargs_empty_replace_defaults_to_braces(self) -> None:
        _, placeholders = _xargs_child_and_placeholders(["xargs", "--replace=", "rm"])
        self.assertEqual(placeholders, {"{}"})

    def test_parallel_template_and_args(self) -> None:
        self.assertEqual(
            _parallel_template_and_args(
                ["parallel", "-j", "2", "gzip", "{}", ":::", "a", "b"]
            ),
            (["gzip", "{}"], ["a", "b"], False, set()),
        )

    def test_parallel_without_marker_is_dynamic(self) -> None:
        self.assertEqual(
            _parallel_template_and_args(["parallel", "gzip"]),
            (["gzip"], [], True, set()),
        )

    def test_parallel_nothing_to_run(self) -> None:
        self.assertIsNone(_parallel_template_and_args(["parallel", "--bar"]))

    def test_expand_placeholders(self) -> None:
        self.assertEqual(
            _expand_placeholders("{} {.} {/} {//} {/.} {#} {1}", "dir/a.txt", 3),
            "dir/a.txt dir/a a.txt dir a 3 dir/a.txt",
        )

    def test_parallel_replace_strings_collected(self) -> None:
        self.assertEqual(
            _parallel_template_and_args(
                ["parallel", "-I", "@@", "--replace=X", "-I%", "echo", "@@", ":::", "a"]
            ),
            (["echo", "@@"], ["a"], False, {"@@", "X", "%"}),
        )
