"""Scheduled MySQL backup agent: dump, archive, upload to S3."""

__version__ = "1.0.0"
