import warnings

import pathspec
import pytest
from unittest.mock import patch

from pmp.core.models import Config, ExclusionReason
from pmp.utils.file_filter import PathMatcher, compile_patterns, expand_braces, load_gitignore_patterns


class TestExpandBraces:
    def test_no_braces(self):
        assert expand_braces("src/*.py") == ["src/*.py"]

    def test_simple_alternation(self):
        assert expand_braces("src/*.{go,py}") == ["src/*.go", "src/*.py"]

    def test_multiple_groups(self):
        assert expand_braces("{a,b}/*.{x,y}") == ["a/*.x", "a/*.y", "b/*.x", "b/*.y"]

    def test_nested_groups(self):
        assert expand_braces("*.{c,h{pp,xx}}") == ["*.c", "*.hpp", "*.hxx"]

    def test_unbalanced_raises(self):
        with pytest.raises(ValueError):
            expand_braces("src/{a,b")
        with pytest.raises(ValueError):
            expand_braces("src/a}")


class TestCompilePatterns:
    def test_malformed_pattern_is_skipped_with_warning(self):
        spec, warnings = compile_patterns(["*.py", "src/{broken", "docs/"])
        assert len(warnings) == 1
        assert "src/{broken" in warnings[0]
        # Remaining patterns still work
        assert spec.match_file("main.py")
        assert spec.match_file("docs/guide.md")

    def test_blank_patterns_ignored(self):
        spec, warnings = compile_patterns(["", "   "])
        assert warnings == []
        assert not spec.match_file("anything.txt")

    def test_compiles_without_deprecation_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            spec, problems = compile_patterns(["*.py", "!setup.py", "build/"])
        assert isinstance(spec, pathspec.GitIgnoreSpec)
        assert problems == []
        assert spec.match_file("src/main.py")
        assert not spec.match_file("setup.py")
        assert spec.match_file("build/out.txt")


class TestPathMatcher:
    def test_no_patterns_includes_everything(self):
        matcher = PathMatcher()
        assert matcher.is_included("src/main.py")
        assert matcher.is_included("README.md")

    def test_include_patterns_restrict(self):
        matcher = PathMatcher(include_patterns=["*.py"])
        assert matcher.is_included("src/utils/helpers.py")
        assert not matcher.is_included("README.md")
        assert matcher.get_excluded_reason("README.md") == ExclusionReason.NOT_INCLUDED

    def test_double_star_spans_directories(self):
        matcher = PathMatcher(include_patterns=["src/**/*.py"])
        assert matcher.is_included("src/main.py")
        assert matcher.is_included("src/utils/helpers.py")
        assert not matcher.is_included("tests/test_main.py")

    def test_brace_alternation(self):
        matcher = PathMatcher(include_patterns=["*.{go,py}"])
        assert matcher.is_included("a.go")
        assert matcher.is_included("pkg/b.py")
        assert not matcher.is_included("c.rs")

    def test_exclude_wins_over_include(self):
        matcher = PathMatcher(include_patterns=["*.py"], exclude_patterns=["src/main.py"])
        assert not matcher.is_included("src/main.py")
        assert matcher.get_excluded_reason("src/main.py") == ExclusionReason.EXCLUDED_PATTERN
        assert matcher.is_included("src/other.py")

    def test_directory_exclusion(self):
        matcher = PathMatcher(exclude_patterns=["vendor/", "build/**"])
        assert matcher.is_excluded_dir("vendor")
        assert matcher.is_excluded_dir("build")
        assert not matcher.is_excluded_dir("src")
        # Files below an excluded directory are excluded too
        assert matcher.is_excluded("vendor/c.go")

    def test_windows_separators_normalized(self):
        matcher = PathMatcher(exclude_patterns=["docs/"])
        assert matcher.is_excluded("docs\\guide.md")

    def test_malformed_pattern_reported(self):
        matcher = PathMatcher(exclude_patterns=["{oops", "*.log"])
        assert len(matcher.warnings) == 1
        assert matcher.is_excluded("app.log")


class TestFromConfig:
    def test_default_excludes_always_active(self, temp_workspace):
        matcher = PathMatcher.from_config(Config(), str(temp_workspace))
        assert matcher.is_excluded_dir(".git")
        assert matcher.is_excluded_dir("node_modules")
        assert matcher.is_excluded("pkg/__pycache__/mod.cpython-312.pyc")

    def test_gitignore_patterns_loaded(self, temp_workspace):
        (temp_workspace / ".gitignore").write_text("# comment\n\n*.log\ngenerated/\n")
        matcher = PathMatcher.from_config(Config(), str(temp_workspace))
        assert matcher.is_excluded("server.log")
        assert matcher.is_excluded_dir("generated")

    def test_no_gitignore_disables_rules(self, temp_workspace):
        (temp_workspace / ".gitignore").write_text("*.log\n")
        matcher = PathMatcher.from_config(Config(no_gitignore=True), str(temp_workspace))
        assert not matcher.is_excluded("server.log")

    def test_unreadable_gitignore_is_advisory(self, temp_workspace):
        (temp_workspace / ".gitignore").write_text("*.log\n")
        with patch('pmp.utils.file_filter.load_gitignore_patterns', side_effect=PermissionError("denied")):
            matcher = PathMatcher.from_config(Config(), str(temp_workspace))
        assert any(".gitignore" in w for w in matcher.warnings)
        assert not matcher.is_excluded("server.log")

    def test_output_dir_inside_project_excluded(self, temp_workspace):
        matcher = PathMatcher.from_config(Config(output_dir="pmp_output"), str(temp_workspace))
        assert matcher.is_excluded_dir("pmp_output")
        assert matcher.is_excluded("pmp_output/app_prompt_20240101_000000.txt")
        assert not matcher.is_excluded_dir("src/pmp_output")

    def test_output_dir_outside_project_ignored(self, temp_workspace):
        project = temp_workspace / "project"
        project.mkdir()
        outside = temp_workspace / "reports"
        matcher = PathMatcher.from_config(Config(output_dir=str(outside)), str(project))
        assert not matcher.is_excluded_dir("reports")


class TestLoadGitignore:
    def test_missing_file(self, temp_workspace):
        assert load_gitignore_patterns(str(temp_workspace)) == []

    def test_comments_and_blanks_dropped(self, temp_workspace):
        (temp_workspace / ".gitignore").write_text("# top\n\nvendor/\n  *.tmp  \n")
        assert load_gitignore_patterns(str(temp_workspace)) == ["vendor/", "*.tmp"]
