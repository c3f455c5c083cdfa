"""JSON output for crawl results."""

import json
import os
from datetime import datetime
from typing import Any

from fieldcrawl.models.results import CrawlResult


def format_records(source: str, records: list[Any]) -> dict:
    """Format content records as JSON with metadata.

    Args:
        source: Name of the content source
        records: Teasers or details, anything with a to_dict() method

    Returns:
        Dictionary with metadata and records, ready for JSON serialization.

    """
    return {
        'source': source,
        'crawled_at': datetime.now().isoformat(),
        'count': len(records),
        'records': [record.to_dict() for record in records],
    }


def format_result(result: CrawlResult) -> dict:
    """Format a whole crawl result, including failures and persistent events.

    Args:
        result: The result of crawling one source

    Returns:
        Dictionary ready for JSON serialization.

    """
    records = result.details or result.teasers
    data = format_records(result.source, records)
    data['failures'] = [failure.to_dict() for failure in result.failures]
    data['events'] = [event.to_dict() for event in result.events if event.persist]
    return data


def save_records(filepath: str, source: str, records: list[Any]):
    """Format and save content records as a JSON file.

    Handles directory creation and complete JSON formatting with metadata.

    Args:
        filepath: Path to save the file
        source: Name of the content source
        records: Teasers or details to save

    """
    _write(filepath, format_records(source, records))


def save_result(filepath: str, result: CrawlResult):
    """Format and save a crawl result as a JSON file.

    Args:
        filepath: Path to save the file
        result: The result of crawling one source

    """
    _write(filepath, format_result(result))


def _write(filepath: str, data: dict):
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
