"""
HomeLab Bot Test Suite
======================

- tests/unit/ : service, cache, publisher and client tests (no network, no Discord)

Time is virtual (`VirtualScheduler`), storage is in memory unless a test is
about a storage backend, and upstream HTTP goes through `httpx.MockTransport`.
"""
