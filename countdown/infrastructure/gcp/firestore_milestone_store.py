"""
Cloud Firestore implementation of the milestone store.

One document per milestone in a single collection; the document id is the
milestone id. Firestore's listener delivers snapshots on a client thread,
so they are handed to the event loop before reaching the subscription.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Optional

from countdown.core.config import get_settings
from countdown.core.exceptions import ConnectivityError, InfrastructureError, NotFoundError
from countdown.core.logger import setup_logger
from countdown.infrastructure.broadcast import QueueSubscription, SnapshotBroadcaster
from countdown.interfaces.milestone_store import (
    ErrorHandler,
    IMilestoneStore,
    ISubscription,
    SnapshotHandler,
)
from countdown.models.milestone import Milestone, MilestoneCreate, MilestoneUpdate
from countdown.services.normalizer import normalize
from countdown.services.timeline_service import sort_timeline

logger = setup_logger(__name__)

class FirestoreSubscription(ISubscription):
    """Pairs a Firestore watch with the queue that serializes its pushes."""

    def __init__(self, queue_subscription: QueueSubscription, watch: Any):
        self._queue_subscription = queue_subscription
        self._watch = watch

    @property
    def active(self) -> bool:
        return self._queue_subscription.active

    async def cancel(self) -> None:
        if self._watch is not None:
            watch, self._watch = self._watch, None
            await asyncio.to_thread(watch.unsubscribe)
        await self._queue_subscription.cancel()


class FirestoreMilestoneStore(IMilestoneStore):
    """Firestore implementation of milestone store."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        collection: Optional[str] = None,
        client: Any = None,
    ):
        settings = get_settings()
        self._project_id = project_id or settings.GOOGLE_CLOUD_PROJECT or None
        self._collection_name = collection or settings.FIRESTORE_COLLECTION
        self._timezone = settings.TIMEZONE
        self._client = client
        self._broadcaster = SnapshotBroadcaster()

    def _get_client(self):
        if self._client is None:
            try:
                from google.cloud import firestore
            except ImportError as e:
                raise InfrastructureError(
                    "google-cloud-firestore is not installed. "
                    "Install with: pip install google-cloud-firestore"
                ) from e
            self._client = firestore.Client(project=self._project_id)
        return self._client

    def _collection(self):
        return self._get_client().collection(self._collection_name)

    def _doc_to_model(self, snapshot) -> Milestone:
        # Missing or unparsable createdAt falls back to the document create time
        create_time = getattr(snapshot, "create_time", None)
        return normalize(
            {**(snapshot.to_dict() or {}), "id": snapshot.id},
            now=create_time if isinstance(create_time, datetime) else None,
        )

    def _docs_to_models(self, docs) -> list[Milestone]:
        """Timeline order, applied here so documents keyed by the legacy datetimeISO are kept."""
        return sort_timeline([self._doc_to_model(doc) for doc in docs], self._timezone)

    async def subscribe(self, on_change: SnapshotHandler, on_error: ErrorHandler) -> ISubscription:
        """Attach a Firestore listener; it delivers the current contents first."""
        loop = asyncio.get_running_loop()
        queue_subscription = await self._broadcaster.attach(on_change, on_error)

        def _on_snapshot(docs, _changes, _read_time) -> None:
            try:
                snapshot = self._docs_to_models(docs)
            except Exception as e:
                loop.call_soon_threadsafe(
                    queue_subscription.fail, ConnectivityError(f"Bad snapshot from Firestore: {e}")
                )
                return
            loop.call_soon_threadsafe(queue_subscription.push, snapshot)

        try:
            watch = await asyncio.to_thread(self._collection().on_snapshot, _on_snapshot)
        except Exception as e:
            await queue_subscription.cancel()
            raise ConnectivityError(f"Failed to subscribe to Firestore: {e}") from e
        return FirestoreSubscription(queue_subscription, watch)

    async def list(self) -> list[Milestone]:
        def _list() -> list[Milestone]:
            return self._docs_to_models(self._collection().stream())

        try:
            return await asyncio.to_thread(_list)
        except InfrastructureError:
            raise
        except Exception as e:
            raise ConnectivityError(f"Failed to list milestones: {e}") from e

    async def get(self, milestone_id: str) -> Optional[Milestone]:
        def _get() -> Optional[Milestone]:
            snapshot = self._collection().document(milestone_id).get()
            return self._doc_to_model(snapshot) if snapshot.exists else None

        try:
            return await asyncio.to_thread(_get)
        except InfrastructureError:
            raise
        except Exception as e:
            raise ConnectivityError(f"Failed to read milestone {milestone_id}: {e}") from e

    async def create(self, milestone: MilestoneCreate) -> Milestone:
        document = milestone.to_document()

        def _add() -> str:
            _, ref = self._collection().add(document)
            return ref.id

        try:
            new_id = await asyncio.to_thread(_add)
        except InfrastructureError:
            raise
        except Exception as e:
            raise ConnectivityError(f"Failed to create milestone: {e}") from e
        return normalize({**document, "id": new_id})

    async def update(self, milestone_id: str, update: MilestoneUpdate) -> Milestone:
        fields = update.to_document()

        def _update() -> Milestone:
            ref = self._collection().document(milestone_id)
            if not ref.get().exists:
                raise NotFoundError(f"Milestone {milestone_id} not found")
            if fields:
                ref.update(fields)
            return self._doc_to_model(ref.get())

        try:
            return await asyncio.to_thread(_update)
        except (NotFoundError, InfrastructureError):
            raise
        except Exception as e:
            raise ConnectivityError(f"Failed to update milestone {milestone_id}: {e}") from e

    async def delete(self, milestone_id: str) -> bool:
        def _delete() -> bool:
            ref = self._collection().document(milestone_id)
            if not ref.get().exists:
                return False
            ref.delete()
            return True

        try:
            return await asyncio.to_thread(_delete)
        except InfrastructureError:
            raise
        except Exception as e:
            raise ConnectivityError(f"Failed to delete milestone {milestone_id}: {e}") from e
