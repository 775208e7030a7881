"""
Kitchen display terminal

Ties the pieces together: the ticket cache, the HTTP client, the per-item
mutation queue, alerts and the real-time subscription.

Event handling:
    kot:new            alert in the background and refetch (other stations ignored)
    order:updated      drop the order's tickets when it is completed or cancelled
    payment:recorded   drop the order's tickets when it is fully paid
    item:status        apply the change from another terminal
    kot:reprinted      refetch
    orders:reassigned  refetch (captain names change)
    order:ready        nothing; tickets stay until the order is closed

Item taps flip the item at once and send the change in the background. While
requests for an item are in flight the display shows the last tap, refetches
included. When the last one settles the item shows what the server last
accepted, and any failure raises a notice.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Set

import structlog

from kitchen_os.core.config import get_settings
from kitchen_os.display import events
from kitchen_os.display.alerts import AlertPlayer, NullAlertPlayer
from kitchen_os.display.client import KdsClient
from kitchen_os.display.errors import RequestRejected, TransientError
from kitchen_os.display.mutations import MutationQueue
from kitchen_os.display.realtime import RealtimeSubscriber
from kitchen_os.display.state import (
    DisplayState, Action, reduce,
    TicketsLoaded, FetchFailed, ItemStatusSet, MutationStarted, MutationSettled, OrderRemoved,
    ConnectionChanged, NoticeRaised, NoticeDismissed,
)
from kitchen_os.models.order_item import ItemStatus
from kitchen_os.services import lifecycle

logger = structlog.get_logger(__name__)

REQUEST_ERRORS = (TransientError, RequestRejected)


class KitchenDisplay:

    def __init__(
        self,
        client: KdsClient,
        station: Optional[str] = None,
        alerts: Optional[AlertPlayer] = None,
        queue: Optional[MutationQueue] = None,
        refresh_interval: Optional[float] = None,
    ):
        settings = get_settings()
        self.client = client
        self.station = station or None
        self.alerts = alerts if alerts is not None else NullAlertPlayer()
        self.queue = queue if queue is not None else MutationQueue()
        self.refresh_interval = (
            settings.KDS_REFRESH_INTERVAL_SECONDS if refresh_interval is None else refresh_interval
        )
        self.state = DisplayState()
        self._alert_tasks: Set[asyncio.Task] = set()

    def dispatch(self, action: Action) -> DisplayState:
        self.state = reduce(self.state, action)
        return self.state

    # Reads

    async def refresh(self) -> DisplayState:
        """Refetch the active tickets; on failure the current tickets stay"""
        try:
            tickets = await self.client.list_active_tickets(self.station)
        except REQUEST_ERRORS as e:
            logger.warning(f"Ticket refresh failed, keeping {len(self.state.tickets)} tickets: {e}")
            return self.dispatch(FetchFailed(str(e)))
        return self.dispatch(TicketsLoaded(tuple(tickets), datetime.now(timezone.utc)))

    async def run_refresh_loop(self):
        while True:
            await asyncio.sleep(self.refresh_interval)
            await self.refresh()

    # Real-time events

    async def set_online(self, online: bool):
        self.dispatch(ConnectionChanged(online))
        if online:
            # Whatever happened while offline is only visible through a refetch
            await self.refresh()

    async def handle_event(self, event: events.KitchenEvent):
        if isinstance(event, events.KotNew):
            if self.station and event.kitchen_station and event.kitchen_station != self.station:
                logger.debug(f"Ignoring ticket {event.kot_id} for station {event.kitchen_station}")
                return
            self._play_alert(event.priority)
            await self.refresh()

        elif isinstance(event, events.OrderUpdated):
            if event.closes_order():
                self.dispatch(OrderRemoved(event.order_id))

        elif isinstance(event, events.PaymentRecorded):
            if event.is_fully_paid:
                self.dispatch(OrderRemoved(event.order_id))

        elif isinstance(event, events.ItemStatusUpdated):
            # Our own requests for the item are still settling; their outcome wins
            if event.item_id not in self.state.pending:
                self.dispatch(ItemStatusSet(event.item_id, ItemStatus(event.status)))

        elif isinstance(event, (events.KotReprinted, events.OrdersReassigned)):
            await self.refresh()

        elif isinstance(event, events.OrderReady):
            logger.debug(f"Order {event.order_id} is ready")

    def _play_alert(self, priority):
        # Tones play alongside the refetch so later events are not held up
        task = asyncio.ensure_future(self.alerts.play(priority))
        self._alert_tasks.add(task)
        task.add_done_callback(self._alert_finished)

    def _alert_finished(self, task: asyncio.Task):
        self._alert_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Alert failed: {task.exception()}")

    # Mutations

    def toggle_item(self, item_id: str) -> "asyncio.Task[bool]":
        """Flip an item between PREPARING and READY"""
        item = self.state.find_item(item_id)
        if item is None:
            raise KeyError(f"Item {item_id} is not on the display")

        target = lifecycle.toggle_target(item.status)
        return self._submit_status(item_id, target, item.item_name)

    def _submit_status(self, item_id: str, target: ItemStatus, name: str):
        self.dispatch(MutationStarted(item_id, target))
        return self.queue.submit(item_id, lambda: self._send_status(item_id, target, name))

    async def _send_status(self, item_id: str, target: ItemStatus, name: str) -> bool:
        try:
            await self.client.patch_item_status(item_id, target)
        except REQUEST_ERRORS as e:
            logger.warning(f"Item {item_id} could not move to {target.value}: {e}")
            self.dispatch(MutationSettled(item_id, target, succeeded=False))
            self.dispatch(NoticeRaised(f"Could not update {name}. Please try again."))
            return False
        self.dispatch(MutationSettled(item_id, target, succeeded=True))
        return True

    async def mark_all_ready(self, kot_id: str) -> int:
        """Mark every item of a ticket READY; returns the number of requests made

        The ticket stays on screen; it leaves only when its order is closed.
        """
        ticket = self.state.find_ticket(kot_id)
        if ticket is None:
            raise KeyError(f"Ticket {kot_id} is not on the display")

        try:
            order = await self.client.get_order(ticket.order_id)
        except REQUEST_ERRORS as e:
            logger.warning(f"Could not load order {ticket.order_id}: {e}")
            self.dispatch(NoticeRaised(f"Could not update {ticket.label}. Please try again."))
            return 0

        kitchen_items = {
            str(item["id"]): ItemStatus(item["status"])
            for item in order.get("items", [])
            if str(item.get("kot_id")) == ticket.id
            and item["status"] in (ItemStatus.PREPARING.value, ItemStatus.READY.value)
        }
        pending = lifecycle.mark_all_ready_plan(kitchen_items)
        if not pending:
            return 0

        names = {str(item["id"]): item["item_name"] for item in order.get("items", [])}
        tasks: List[asyncio.Task] = [
            self._submit_status(item_id, ItemStatus.READY, names.get(item_id, "item"))
            for item_id in pending
        ]
        await asyncio.gather(*tasks)
        return len(pending)

    def dismiss_notice(self):
        self.dispatch(NoticeDismissed())

    # Running

    def subscriber(self, token: str, branch_id: str, **kwargs) -> RealtimeSubscriber:
        return RealtimeSubscriber(
            token=token,
            branch_id=branch_id,
            station=self.station,
            on_event=self.handle_event,
            on_status=self.set_online,
            **kwargs,
        )

    async def run(self, subscriber: RealtimeSubscriber):
        """Initial fetch, then live updates and the periodic refresh"""
        await self.refresh()
        refresher = asyncio.create_task(self.run_refresh_loop())
        try:
            await subscriber.run()
        finally:
            refresher.cancel()
            for task in list(self._alert_tasks):
                task.cancel()
            await self.queue.drain()
