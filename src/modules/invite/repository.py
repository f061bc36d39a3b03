"""
Pending invite persistence.

The whole pending set is one document keyed by requester id, written back
after every mutation so the stored set always equals the in-memory set.
"""

from __future__ import annotations

from logging import Logger
from typing import Dict, Iterable

from src.core.storage.base import DocumentStore
from src.modules.invite.models import InviteRequest

PENDING_INVITES_DOCUMENT = "pending_invites"


class PendingInviteRepository:
    def __init__(self, store: DocumentStore, logger: Logger) -> None:
        self.store = store
        self.log = logger

    async def load(self) -> Dict[int, InviteRequest]:
        data = await self.store.load(PENDING_INVITES_DOCUMENT) or {}
        pending: Dict[int, InviteRequest] = {}
        for key, record in data.items():
            try:
                request = InviteRequest.from_record(record)
            except (KeyError, TypeError, ValueError) as e:
                # Skip one unreadable entry rather than losing the whole set
                self.log.warning(
                    "Skipping unreadable pending invite record",
                    extra={"record_key": key, "error": str(e), "error_type": type(e).__name__},
                )
                continue
            pending[request.requester_id] = request
        return pending

    async def save(self, requests: Iterable[InviteRequest]) -> None:
        await self.store.save(
            PENDING_INVITES_DOCUMENT,
            {str(r.requester_id): r.to_record() for r in requests},
        )
