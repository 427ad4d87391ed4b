"""Wires store, blob storage and services for one tenant"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from marine_workorders.config import Settings, settings as default_settings
from marine_workorders.services.dashboard_service import DashboardService
from marine_workorders.services.guards import TransitionGuard
from marine_workorders.services.history_service import HistoryService
from marine_workorders.services.kanban_service import KanbanBoard
from marine_workorders.services.photo_service import PhotoService
from marine_workorders.services.reference_service import (
    ClientService,
    EquipmentService,
    VesselService,
)
from marine_workorders.services.repository import Clock
from marine_workorders.services.retry import RetryPolicy
from marine_workorders.services.transition_service import StatusTransitionEngine
from marine_workorders.services.work_order_service import WorkOrderService
from marine_workorders.services.work_order_views import WorkOrderRow, build_rows
from marine_workorders.models import utcnow
from marine_workorders.storage import BlobStorage, InMemoryBlobStorage, S3BlobStorage
from marine_workorders.store import InMemoryStore, RealtimeStore, TenantPaths
from marine_workorders.store.redis_store import RedisStore

logger = logging.getLogger(__name__)


def create_store(config: Settings) -> RealtimeStore:
    if config.store_backend == "redis":
        return RedisStore(config.redis_url, config.redis_key_prefix, config.redis_reconnect_max_wait)
    if config.store_backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown store backend: {config.store_backend}")


def create_storage(config: Settings) -> BlobStorage:
    if config.storage_backend == "s3":
        return S3BlobStorage(config.s3_bucket)
    if config.storage_backend == "memory":
        return InMemoryBlobStorage()
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


@dataclass
class ServiceContainer:
    store: RealtimeStore
    storage: BlobStorage
    paths: TenantPaths
    history: HistoryService
    work_orders: WorkOrderService
    engine: StatusTransitionEngine
    guard: TransitionGuard
    photos: PhotoService
    clients: ClientService
    vessels: VesselService
    equipment: EquipmentService
    board: KanbanBoard
    dashboard: DashboardService

    @classmethod
    def build(
        cls,
        store: RealtimeStore,
        storage: BlobStorage,
        tenant_id: Optional[str] = None,
        clock: Optional[Clock] = None,
        retry: Optional[RetryPolicy] = None,
        config: Optional[Settings] = None,
    ) -> "ServiceContainer":
        config = config or default_settings
        clock = clock or utcnow
        retry = retry or RetryPolicy(
            attempts=config.store_retry_attempts, max_wait=config.store_retry_max_wait
        )
        paths = TenantPaths(tenant_id or config.tenant_id)

        history = HistoryService(store, paths, retry=retry)
        work_orders = WorkOrderService(store, paths, history, clock=clock, retry=retry)
        engine = StatusTransitionEngine(work_orders, history, clock=clock, retry=retry)
        guard = TransitionGuard()
        clients = ClientService(store, paths, clock=clock)
        vessels = VesselService(store, paths, clock=clock)
        equipment = EquipmentService(store, paths, clock=clock)
        photos = PhotoService(
            work_orders,
            storage,
            clock=clock,
            retry=retry,
            max_bytes=config.photo_max_bytes,
            cache_control=config.photo_cache_control,
        )
        board = KanbanBoard(
            work_orders,
            engine,
            guard,
            clients=clients,
            vessels=vessels,
            equipment=equipment,
            default_note=config.board_default_note,
            pending_ttl=config.board_pending_move_ttl_seconds,
            clock=clock,
        )
        return cls(
            store=store,
            storage=storage,
            paths=paths,
            history=history,
            work_orders=work_orders,
            engine=engine,
            guard=guard,
            photos=photos,
            clients=clients,
            vessels=vessels,
            equipment=equipment,
            board=board,
            dashboard=DashboardService(clock=clock),
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "ServiceContainer":
        config = config or default_settings
        logger.info(
            f"Building services for tenant {config.tenant_id} "
            f"(store={config.store_backend}, storage={config.storage_backend})"
        )
        return cls.build(create_store(config), create_storage(config), config=config)

    async def rows(self) -> List[WorkOrderRow]:
        """All work orders joined with reference names"""
        return build_rows(
            await self.work_orders.list(),
            await self.clients.list(),
            await self.vessels.list(),
            await self.equipment.list(),
        )

    async def close(self) -> None:
        self.board.detach()
        await self.store.close()
