"""Signature, key and recovery primitives."""
