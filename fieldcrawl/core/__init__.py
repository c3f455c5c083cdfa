"""Core crawl engine: sessions, resolution, formatting and crawlers."""
