"""
Feature modules for the HomeLab bot.

Each subpackage owns one feature: its services, its state and, where it has
commands, a `cog.py` with a `setup(bot)` entry point picked up by the cog
loader.

- admin: admin channel for invite prompts
- dashboard: dashboard settings, publisher and live board
- invite: invite request/approval workflow and Wizarr issuance
- presence: activity-line rotation
- status: upstream clients, per-integration caches and the aggregator
- shared: base service and domain exceptions
"""
