"""news-mirror: incremental mirroring of remote publishing platforms."""

__version__ = "0.1.0"
