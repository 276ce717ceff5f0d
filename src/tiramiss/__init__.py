"""Rebuild an integration branch from an upstream base plus an ordered list of topics."""
