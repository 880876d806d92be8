"""Adapters wiring the cache layer into application services."""
