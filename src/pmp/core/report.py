"""
Report writers for analysis results.

Reports are written incrementally to a text stream. Files that were
streamed during reading have no buffered content and are copied from disk
again chunk by chunk, so writing a report never loads a large file whole.
"""

import json
import logging
import os
from datetime import datetime
from typing import Iterator, Optional, TextIO

from ..utils.encodings import EncodingDetector
from ..utils.sizes import format_size
from .models import AnalysisResult, FileEntry
from .streaming import StreamProcessor

logger = logging.getLogger(__name__)

EXTENSIONS = {
    'txt': 'txt',
    'markdown': 'md',
    'xml': 'xml',
    'json': 'json',
}

SECTION_RULE = "-" * 53
FILE_RULE = "=" * 48


class ReportWriter:
    """Renders an AnalysisResult as txt, markdown, xml or json."""

    def __init__(self, output_format: str = 'txt',
                 streams: Optional[StreamProcessor] = None,
                 detector: Optional[EncodingDetector] = None):
        if output_format not in EXTENSIONS:
            raise ValueError(f"Unknown output format: {output_format}")
        self.output_format = output_format
        self.streams = streams or StreamProcessor()
        self.detector = detector or EncodingDetector()

    @property
    def extension(self) -> str:
        return EXTENSIONS[self.output_format]

    def output_path(self, output_dir: str, project_name: str, timestamp: Optional[str] = None) -> str:
        """``<output_dir>/<project>_prompt_<timestamp>.<ext>``"""
        timestamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        return os.path.join(output_dir, f"{project_name}_prompt_{timestamp}.{self.extension}")

    def write_file(self, result: AnalysisResult, output_dir: str, timestamp: Optional[str] = None) -> str:
        """
        Write the report into ``output_dir``.

        Returns:
            Path of the written report.

        Raises:
            OSError: If the directory cannot be created or the file written.
        """
        os.makedirs(output_dir, exist_ok=True)
        path = self.output_path(output_dir, result.project_name, timestamp)
        with open(path, 'w', encoding='utf-8') as f:
            self.write(result, f)
        logger.info(f"Report written to {path}")
        return path

    def write(self, result: AnalysisResult, out: TextIO) -> None:
        """Write the report to an open text stream."""
        writer = getattr(self, f"_write_{self.output_format}")
        writer(result, out)

    def iter_content(self, result: AnalysisResult, entry: FileEntry) -> Iterator[str]:
        """Yield a file's text, re-reading streamed files from disk."""
        if entry.content is not None:
            yield entry.content
            return
        full_path = os.path.join(result.root_dir, entry.path)
        try:
            yield from self.streams.iter_text(full_path, self.detector.incremental_decoder)
        except OSError as e:
            logger.warning(f"Could not re-read {entry.path} for the report: {e}")
            yield f"[error reading file: {e}]"

    def _summary_lines(self, result: AnalysisResult):
        stats = result.stats
        return [
            ("Project Name", result.project_name),
            ("Total Files", str(stats.file_count)),
            ("Total Size", format_size(stats.total_size)),
            ("Estimated Tokens", f"{stats.token_count:,}"),
            ("Characters", f"{stats.char_count:,}"),
            ("Processing Time", f"{stats.process_time:.2f}s"),
        ]

    def _write_txt(self, result: AnalysisResult, out: TextIO) -> None:
        out.write("PROJECT INFORMATION:\n")
        out.write(SECTION_RULE + "\n")
        for label, value in self._summary_lines(result):
            out.write(f"{label}: {value}\n")
        out.write("\nPROJECT STRUCTURE:\n")
        out.write(SECTION_RULE + "\n\n")
        out.write(result.file_tree_string + "\n")
        out.write("\nFILE CONTENTS:\n")
        out.write(SECTION_RULE + "\n")
        for entry in result.files:
            out.write(f"\n{FILE_RULE}\nFile: {entry.path}\n{FILE_RULE}\n")
            for text in self.iter_content(result, entry):
                out.write(text)
            out.write("\n")

    def _write_markdown(self, result: AnalysisResult, out: TextIO) -> None:
        out.write(f"# Project: {result.project_name}\n\n")
        for label, value in self._summary_lines(result)[1:]:
            out.write(f"- **{label}**: {value}\n")
        out.write("\n## Project Structure\n\n```text\n")
        out.write(result.file_tree_string + "\n```\n")
        out.write("\n## File Contents\n")
        for entry in result.files:
            out.write(f"\n### `{entry.path}`\n\n```{entry.language}\n")
            for text in self.iter_content(result, entry):
                out.write(text)
            out.write("\n```\n")

    def _escape_xml(self, text: str) -> str:
        """Escape special XML characters."""
        if not text:
            return ""
        return (text
                .replace("&", "&amp;")
                .replace("<", "&lt;")
                .replace(">", "&gt;")
                .replace('"', "&quot;")
                .replace("'", "&apos;"))

    def _write_xml(self, result: AnalysisResult, out: TextIO) -> None:
        stats = result.stats
        out.write('<?xml version="1.0" encoding="UTF-8"?>\n')
        out.write(f'<project name="{self._escape_xml(result.project_name)}">\n')
        out.write(f'  <statistics files="{stats.file_count}" size="{stats.total_size}" '
                  f'tokens="{stats.token_count}" chars="{stats.char_count}" '
                  f'time="{stats.process_time:.2f}"/>\n')
        out.write(f"  <structure>{self._escape_xml(result.file_tree_string)}</structure>\n")
        out.write("  <files>\n")
        for entry in result.files:
            out.write(f'    <file path="{self._escape_xml(entry.path)}" size="{entry.size}" '
                      f'language="{entry.language}" tokens="{entry.token_count}">')
            for text in self.iter_content(result, entry):
                out.write(self._escape_xml(text))
            out.write("</file>\n")
        out.write("  </files>\n")
        if result.has_warnings():
            out.write("  <warnings>\n")
            for warning in result.warnings:
                out.write(f"    <warning>{self._escape_xml(warning)}</warning>\n")
            out.write("  </warnings>\n")
        out.write("</project>\n")

    def _write_json(self, result: AnalysisResult, out: TextIO) -> None:
        # Written by hand so streamed file content can be emitted chunk by chunk
        stats = result.stats
        header = {
            "project_name": result.project_name,
            "statistics": {
                "file_count": stats.file_count,
                "total_size": stats.total_size,
                "token_count": stats.token_count,
                "char_count": stats.char_count,
                "process_time": round(stats.process_time, 3),
                "considered": stats.considered,
                "skipped_by_limits": stats.skipped_by_limits,
                "failed": stats.failed,
            },
            "structure": result.file_tree_string,
            "warnings": result.warnings,
        }
        out.write(json.dumps(header, indent=2)[:-2])
        out.write(',\n  "files": [')
        for i, entry in enumerate(result.files):
            out.write("," if i else "")
            out.write(f'\n    {{"path": {json.dumps(entry.path)}, "size": {entry.size}, '
                      f'"language": {json.dumps(entry.language)}, "tokens": {entry.token_count}, '
                      f'"content": "')
            for text in self.iter_content(result, entry):
                out.write(json.dumps(text)[1:-1])
            out.write('"}')
        out.write("\n  ]\n}\n")
