"""Reading, writing and JSON conversion of MT Framework XFS files."""

__version__ = "0.1.0"