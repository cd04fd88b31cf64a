"""Batch assembly, cost metrics and reports."""
