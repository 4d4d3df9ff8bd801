"""Tests for system prompts."""

from nob.agent.prompts import build_system_prompt, describe_command_result


class TestBuildSystemPrompt:
    """Tests for build_system_prompt."""

    def test_context_included(self) -> None:
        prompt = build_system_prompt(cwd="/srv/app", os_info="Linux 6.1", shell="/bin/zsh")

        assert "Directory: /srv/app" in prompt
        assert "OS: Linux 6.1" in prompt
        assert "Shell: /bin/zsh" in prompt

    def test_describes_reply_format(self) -> None:
        prompt = build_system_prompt(cwd="/")
        for label in ("THOUGHT:", "COMMAND:", "STATUS:"):
            assert label in prompt
        assert "nob set-api-key" in prompt

    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv("SHELL", "/bin/fish")
        prompt = build_system_prompt()
        assert "Shell: /bin/fish" in prompt
        assert "Directory: " in prompt


class TestDescribeCommandResult:
    """Tests for describe_command_result."""

    def test_success(self) -> None:
        text = describe_command_result("ls", "a.txt\n", 0)
        assert text == "Command executed successfully:\n$ ls\na.txt\n"

    def test_failure(self) -> None:
        text = describe_command_result("make", "no rule", 2)
        assert text.startswith("Command failed (exit code 2):")
        assert "$ make" in text

    def test_no_output(self) -> None:
        assert describe_command_result("true", "", 0).endswith("(no output)")
