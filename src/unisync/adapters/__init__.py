"""Adapters binding the sync engine to storage and registry sources."""
