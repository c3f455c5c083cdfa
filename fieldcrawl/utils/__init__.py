"""Utility components for fieldcrawl."""

from fieldcrawl.utils.files import get_project_root, init_fieldcrawl
from fieldcrawl.utils.logging import setup_local_logging

__all__ = ['get_project_root', 'init_fieldcrawl', 'setup_local_logging']
