"""
ghost_rejector package - Tracker Rule and CMP Signature Builder

Modules:
    rules: Declarative network rule model and fixed rules
    cleaner: Classify filter-list lines and extract blocked domains
    compiler: Parse filter lists and merge them with deduplication
    downloader: Fetch filter lists over HTTP or from disk
    sources: Filter list source registry
    signatures: Consent cookie signatures for known CMPs
    writer: JSON output
    pipeline: Main build pipeline
"""

__version__ = "1.0.0"
