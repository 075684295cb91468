"""
Core application engine for orchestrating the harvest.

This package contains the primary logic. The `HarvestManager` owns the worker
pool and aggregates outcomes, delegating each individual URL to the
`FetchProcessor`.
"""
