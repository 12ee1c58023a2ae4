"""Command-line interface for pmp."""
import logging
import sys

import click

from . import __version__
from .core.analyzer import ProjectAnalyzer
from .core.errors import PMPError
from .core.settings import VALID_FORMATS, resolve_config
from .utils.console import ConsoleManager


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    format_string = '[%(levelname)s] %(message)s'

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.command()
@click.argument('path', default='.', type=click.Path(file_okay=False))
@click.option('--include', '-i', multiple=True, help='Include only files matching these patterns (repeatable)')
@click.option('--exclude', '-e', multiple=True, help='Exclude files matching these patterns (repeatable)')
@click.option('--min-size', help='Minimum file size (e.g. 1KB, 500B)')
@click.option('--max-size', help='Maximum file size (e.g. 100MB)')
@click.option('--max-files', type=int, help='Maximum number of files, 0 for unlimited')
@click.option('--max-total-size', help='Maximum total size of all files, 0 for unlimited')
@click.option('--workers', '-w', type=int, help='Number of reader threads (default: CPU count)')
@click.option('--no-gitignore', is_flag=True, help='Ignore the project .gitignore')
@click.option('--format', '-f', 'output_format', type=click.Choice(VALID_FORMATS), help='Report format')
@click.option('--output-dir', '-o', help='Output directory, relative to the project (default: pmp_output)')
@click.option('--stdout', 'to_stdout', is_flag=True, help='Write the report to stdout instead of a file')
@click.option('--no-cache', is_flag=True, help='Do not use the binary classification cache')
@click.option('--no-tokens', is_flag=True, help='Disable token counting')
@click.option('--token-encoder', help='tiktoken encoding for exact token counts (e.g. cl100k_base)')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.version_option(version=__version__, prog_name='pmp')
def main(path: str, include, exclude, min_size, max_size, max_files, max_total_size,
         workers, no_gitignore: bool, output_format, output_dir, to_stdout: bool,
         no_cache: bool, no_tokens: bool, token_encoder, verbose: bool) -> None:
    """
    Collect the source files of a project into a single prompt file.

    PATH is the project directory (default: current directory).

    Examples:

        pmp .

        pmp ~/src/app -i "src/**/*.{go,py}" -e "**/*_test.go"

        pmp . --max-files 100 --format markdown --stdout
    """
    # Keep stdout clean for the report itself
    console = ConsoleManager(file=sys.stderr if to_stdout else None)

    setup_logging(verbose)

    try:
        config = resolve_config(
            path,
            include_patterns=list(include),
            exclude_patterns=list(exclude),
            min_size=min_size,
            max_size=max_size,
            max_files=max_files,
            max_total_size=max_total_size,
            workers=workers,
            no_gitignore=True if no_gitignore else None,
            output_format=output_format,
            output_dir=output_dir,
            use_cache=False if no_cache else None,
            enable_token_counting=False if no_tokens else None,
            token_encoder=token_encoder,
        )

        with console.create_progress() as progress:
            walk_task = progress.add_task("Scanning files", total=None)
            read_task = progress.add_task("Reading files", total=None, visible=False)

            def on_collected(collection):
                progress.update(walk_task, visible=False)
                progress.update(read_task, total=len(collection.candidates), visible=True)

            analyzer = ProjectAnalyzer(
                config,
                on_visit=lambda _: progress.advance(walk_task),
                on_collected=on_collected,
                on_result=lambda _: progress.advance(read_task),
            )
            result = analyzer.analyze(path)

        if to_stdout:
            output_path = None
            analyzer.write_report(result, sys.stdout)
        else:
            output_path = analyzer.write_report(result)

        console.print_summary(result, analyzer.streams.stats, output_path, show_warnings=verbose)

    except KeyboardInterrupt:
        console.print("\n[error]> PROCESS TERMINATED BY USER[/error]")
        sys.exit(1)

    except (PMPError, OSError) as e:
        console.print_error(str(e))
        if verbose:
            console.print_exception()
        sys.exit(1)


if __name__ == '__main__':
    main()
