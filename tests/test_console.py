import io

from pmp.core.models import AnalysisResult, AnalysisStats, CollectionResult
from pmp.utils.console import DEFAULT_THEME, ConsoleManager


def make_result(warnings):
    return AnalysisResult(
        root_dir="/tmp/demo",
        project_name="demo",
        files=[],
        collection=CollectionResult(),
        stats=AnalysisStats(considered=3, file_count=2, failed=1),
        warnings=warnings,
    )


class TestConsoleManager:
    def test_default_theme(self):
        console = ConsoleManager(file=io.StringIO())
        assert console.theme_colors is DEFAULT_THEME

    def test_summary_counts(self):
        out = io.StringIO()
        ConsoleManager(file=out).print_summary(make_result([]))
        text = out.getvalue()
        assert "ANALYSIS COMPLETE" in text
        assert "Files considered" in text
        assert "warnings" not in text

    def test_summary_truncates_warnings(self):
        out = io.StringIO()
        warnings = [f"Failed to read f{i}.txt" for i in range(7)]
        ConsoleManager(file=out).print_summary(make_result(warnings))
        text = out.getvalue()
        assert "7 warnings" in text
        assert "f4.txt" in text
        assert "f5.txt" not in text
        assert "+2 more" in text

    def test_summary_shows_all_warnings_on_request(self):
        out = io.StringIO()
        warnings = [f"Failed to read f{i}.txt" for i in range(7)]
        ConsoleManager(file=out).print_summary(make_result(warnings), show_warnings=True)
        text = out.getvalue()
        assert "f6.txt" in text
        assert "more" not in text
