"""
Core infrastructure layer for the HomeLab bot.

Subsystems
----------
- config: static configuration and the service catalogue
- logging: structured, queue-backed logging
- scheduler: timer abstraction (asyncio and virtual-time implementations)
- storage: state repositories (JSON file and SQLAlchemy backends)
- http: shared httpx client construction for upstream integrations
- services: dependency container and error-response mapping

Nothing is re-exported here; import from the submodules directly.
"""
