import os

import pytest
from click.testing import CliRunner
from unittest.mock import patch

from pmp import __version__
from pmp.cli import main


@pytest.fixture
def runner():
    return CliRunner()


def report_files(repo):
    output_dir = repo / "pmp_output"
    return sorted(os.listdir(output_dir)) if output_dir.exists() else []


class TestCli:
    def test_version(self, runner):
        result = runner.invoke(main, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        result = runner.invoke(main, ['--help'])
        assert result.exit_code == 0
        assert "--max-total-size" in result.output
        assert "--stdout" in result.output

    def test_writes_report_file(self, runner, sample_repo):
        result = runner.invoke(main, [str(sample_repo), '--no-cache', '--min-size', '0'])

        assert result.exit_code == 0, result.output
        files = report_files(sample_repo)
        assert len(files) == 1
        assert files[0].startswith("sample_repo_prompt_") and files[0].endswith(".txt")
        assert "ANALYSIS COMPLETE" in result.output
        assert "Files considered" in result.output

        content = (sample_repo / "pmp_output" / files[0]).read_text(encoding="utf-8")
        assert "File: src/main.py" in content
        assert "File: image.png" not in content

    def test_stdout(self, runner, sample_repo):
        result = runner.invoke(main, [str(sample_repo), '--no-cache', '--min-size', '0', '--stdout'])

        assert result.exit_code == 0, result.output
        assert "FILE CONTENTS:" in result.output
        assert "def helper():" in result.output
        assert report_files(sample_repo) == []

    def test_stdout_report_written_to_sys_stdout(self, runner, sample_repo):
        with patch('pmp.cli.click.get_text_stream') as get_text_stream:
            result = runner.invoke(main, [str(sample_repo), '--no-cache', '--min-size', '0', '--stdout'])

        assert result.exit_code == 0, result.output
        get_text_stream.assert_not_called()
        assert "File: src/main.py" in result.output

    def test_format_and_patterns(self, runner, sample_repo):
        result = runner.invoke(main, [
            str(sample_repo), '--no-cache', '--min-size', '0', '--stdout',
            '--format', 'json', '-i', '**/*.py', '-e', 'tests/',
        ])

        assert result.exit_code == 0, result.output
        assert '"project_name": "sample_repo"' in result.output
        assert '"path": "src/main.py"' in result.output
        assert '"path": "README.md"' not in result.output
        assert '"path": "tests/test_main.py"' not in result.output

    def test_output_dir_option(self, runner, sample_repo):
        result = runner.invoke(main, [str(sample_repo), '--no-cache', '-o', 'prompts', '-f', 'markdown'])

        assert result.exit_code == 0, result.output
        written = os.listdir(sample_repo / "prompts")
        assert len(written) == 1 and written[0].endswith(".md")

    def test_cache_file_from_environment(self, runner, sample_repo, cache_file):
        result = runner.invoke(main, [str(sample_repo), '--stdout'],
                               env={"PMP_CACHE_FILE": str(cache_file)})

        assert result.exit_code == 0, result.output
        assert cache_file.exists()

    def test_limits_reported(self, runner, sample_repo):
        result = runner.invoke(main, [str(sample_repo), '--no-cache', '--min-size', '0',
                                      '--max-files', '2', '--stdout'])

        assert result.exit_code == 0, result.output
        assert "Skipped by limits" in result.output
        assert "Reached max files limit (2), skipped 4 files" in result.output

    def test_invalid_size(self, runner, sample_repo):
        result = runner.invoke(main, [str(sample_repo), '--no-cache', '--max-size', 'huge'])

        assert result.exit_code == 1
        assert "Invalid size value" in result.output
        assert report_files(sample_repo) == []

    def test_invalid_format(self, runner, sample_repo):
        result = runner.invoke(main, [str(sample_repo), '--format', 'pdf'])
        assert result.exit_code == 2

    def test_missing_path(self, runner, temp_workspace):
        result = runner.invoke(main, [str(temp_workspace / "missing"), '--no-cache'])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_malformed_pmprc(self, runner, sample_repo):
        (sample_repo / ".pmprc").write_text("{broken")
        result = runner.invoke(main, [str(sample_repo), '--no-cache'])

        assert result.exit_code == 1
        assert ".pmprc" in result.output

    def test_keyboard_interrupt(self, runner, sample_repo):
        with patch('pmp.cli.ProjectAnalyzer.analyze', side_effect=KeyboardInterrupt):
            result = runner.invoke(main, [str(sample_repo), '--no-cache'])

        assert result.exit_code == 1
        assert "PROCESS TERMINATED BY USER" in result.output
