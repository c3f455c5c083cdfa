"""Output formatting for crawl results."""

from fieldcrawl.outputs.json_output import format_records, format_result, save_records, save_result

__all__ = ['format_records', 'format_result', 'save_records', 'save_result']
