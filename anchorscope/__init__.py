"""Hash-verified replacement of exact text anchors in files, with an on-disk buffer store."""

__version__ = "1.3.0"