"""Experiment log ingestion."""
