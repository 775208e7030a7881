"""
Shift handover flow on a terminal

    review  ->  select  ->  done
                  |
                  +--> review   (back)

The outgoing staff member reviews their open orders, picks a colleague and
confirms. Bad input (no recipient, themselves, someone not eligible) is
rejected before any request is made.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

import structlog

from kitchen_os.display.client import KdsClient
from kitchen_os.display.errors import HandoverInputError, RequestRejected, TransientError
from kitchen_os.models.staff import HANDOVER_ROLES

logger = structlog.get_logger(__name__)


class HandoverStep(str, Enum):
    REVIEW = "review"
    SELECT = "select"
    DONE = "done"


def eligible_recipients(staff: List[Dict[str, Any]], caller_id: str) -> List[Dict[str, Any]]:
    """Active captains, waiters, cashiers and managers other than the caller"""
    roles = {role.value for role in HANDOVER_ROLES}
    return [
        member for member in staff
        if member.get("is_active", True)
        and member.get("role") in roles
        and str(member["id"]) != str(caller_id)
    ]


class HandoverFlow:

    def __init__(self, client: KdsClient, staff_id: str):
        self.client = client
        self.staff_id = str(staff_id)
        self.step = HandoverStep.REVIEW
        self.orders: List[Dict[str, Any]] = []
        self.recipients: List[Dict[str, Any]] = []
        self.selected: Optional[str] = None
        self.result: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None

    async def load(self) -> bool:
        """Fetch the caller's open orders and the possible recipients

        On failure the previous lists stay and ``error`` says what to do.
        """
        try:
            orders = await self.client.my_open_orders()
            staff = await self.client.list_staff()
        except (TransientError, RequestRejected) as e:
            logger.warning(f"Could not load handover data: {e}")
            self.error = "Could not load your open orders. Please try again."
            return False

        self.orders = orders
        self.recipients = eligible_recipients(staff, self.staff_id)
        self.error = None
        return True

    def proceed(self):
        """review -> select"""
        if self.step != HandoverStep.REVIEW:
            raise HandoverInputError(f"Cannot choose a recipient from step {self.step.value}")
        self.step = HandoverStep.SELECT

    def back(self):
        """select -> review"""
        if self.step != HandoverStep.SELECT:
            raise HandoverInputError(f"Cannot go back from step {self.step.value}")
        self.step = HandoverStep.REVIEW
        self.error = None

    def choose(self, staff_id: str):
        staff_id = str(staff_id)
        if staff_id == self.staff_id:
            raise HandoverInputError("Cannot hand over orders to yourself")
        if not any(str(member["id"]) == staff_id for member in self.recipients):
            raise HandoverInputError("Selected staff member cannot take over orders")
        self.selected = staff_id

    def recipient_name(self) -> Optional[str]:
        for member in self.recipients:
            if str(member["id"]) == self.selected:
                return member.get("name")
        return None

    async def confirm(self) -> Optional[Dict[str, Any]]:
        """Send the handover; on failure stay on ``select`` so it can be retried"""
        if self.step != HandoverStep.SELECT:
            raise HandoverInputError(f"Cannot confirm from step {self.step.value}")
        if not self.selected:
            raise HandoverInputError("Select who takes over your orders")
        if self.selected == self.staff_id:
            raise HandoverInputError("Cannot hand over orders to yourself")

        try:
            self.result = await self.client.reassign(self.selected)
        except (TransientError, RequestRejected) as e:
            logger.warning(f"Handover to {self.selected} failed: {e}")
            self.error = getattr(e, "detail", None) or "Transfer failed. Please try again."
            return None

        self.error = None
        self.step = HandoverStep.DONE
        logger.info(self.result.get("message", "Handover complete"))
        return self.result

