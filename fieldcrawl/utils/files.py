"""Utility functions for file and directory management in fieldcrawl."""

from pathlib import Path

STATE_DIR = '.fieldcrawl'


def get_project_root() -> Path:
    """Find the project root by searching upwards from the Current Working Directory.

    Stops at the first directory containing a marker file.
    """
    current_path = Path.cwd()
    markers = {'.git', 'pyproject.toml', STATE_DIR, 'requirements.txt'}

    for parent in [current_path] + list(current_path.parents):
        if any((parent / marker).exists() for marker in markers):
            return parent

    # No markers found (e.g. running in /tmp), use the current directory
    return current_path


def get_state_path() -> Path:
    """Return the path to the .fieldcrawl directory."""
    return get_project_root() / STATE_DIR


def get_debug_path() -> Path:
    """Return the path to the debug HTML directory in .fieldcrawl."""
    return get_state_path() / 'debug_html'


def get_logs_path() -> Path:
    """Return the path to the logs directory in .fieldcrawl."""
    return get_state_path() / 'logs'


def get_output_path() -> Path:
    """Return the path to the crawl output directory in .fieldcrawl."""
    return get_state_path() / 'output'


def init_fieldcrawl() -> Path:
    """Create the .fieldcrawl directory structure and return its path."""
    state_dir = get_state_path()
    for directory in (state_dir, get_debug_path(), get_logs_path(), get_output_path()):
        directory.mkdir(parents=True, exist_ok=True)

    # Keep generated files out of source control
    gitignore = state_dir / '.gitignore'
    if not gitignore.exists():
        gitignore.write_text('# Automatically created by fieldcrawl\n*\n')

    return state_dir
