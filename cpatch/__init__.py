"""cpatch - validate and publish code patches against published releases."""

__version__ = "0.3.0"
