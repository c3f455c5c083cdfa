"""Shared rich console styling."""

from rich.console import Console
from rich.theme import Theme

CONSOLE_THEME = Theme(
    {
        'info': 'dim cyan',
        'warning': 'magenta',
        'danger': 'bold red',
        'success': 'bold green',
        'step': 'bold blue',
    }
)


def make_console(**kwargs) -> Console:
    """Create a console using the fieldcrawl theme."""
    return Console(theme=CONSOLE_THEME, **kwargs)
