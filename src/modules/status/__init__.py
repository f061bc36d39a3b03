"""Upstream status: clients, per-integration caches, and the aggregator."""
