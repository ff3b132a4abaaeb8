"""Reporting utilities for seqnet."""

from .metrics import CsvSink, JsonlSink

__all__ = ["CsvSink", "JsonlSink"]
