"""Verifier calldata, JSON-RPC client and address book."""
