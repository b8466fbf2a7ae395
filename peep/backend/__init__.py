"""Adapters for the hosted backend (rows, auth, realtime)."""
