"""Bundled data files: unit templates and the default theme."""
