"""Plots of benchmark reports."""
