"""
Alert tones for new tickets

VIP tickets sound three ascending tones, RUSH two and everything else one.
Audio is best effort: a terminal without a sound device keeps working.
"""

import asyncio
import sys
from typing import Awaitable, Callable, Dict, Optional, Protocol, Tuple

import structlog

from kitchen_os.models.order import OrderPriority

logger = structlog.get_logger(__name__)

# Frequencies in Hz, played in order
TONES: Dict[OrderPriority, Tuple[int, ...]] = {
    OrderPriority.VIP: (880, 1100, 1320),
    OrderPriority.RUSH: (660, 880),
    OrderPriority.NORMAL: (523,),
}

TONE_SECONDS = 0.3
TONE_GAP_SECONDS = 0.05

ToneSink = Callable[[int, float], Awaitable[None]]


def tones_for(priority) -> Tuple[int, ...]:
    try:
        return TONES[OrderPriority(priority)]
    except ValueError:
        return TONES[OrderPriority.NORMAL]


class AlertPlayer(Protocol):
    async def play(self, priority: OrderPriority) -> None:
        ...


async def terminal_bell(frequency: int, seconds: float) -> None:
    """Fallback sink: ring the terminal bell once per tone"""
    sys.stdout.write("\a")
    sys.stdout.flush()
    await asyncio.sleep(seconds)


class ToneAlertPlayer:
    """Plays the tone sequence for a priority through ``sink``"""

    def __init__(
        self,
        sink: Optional[ToneSink] = None,
        tone_seconds: float = TONE_SECONDS,
        gap_seconds: float = TONE_GAP_SECONDS,
    ):
        self._sink = sink or terminal_bell
        self._tone_seconds = tone_seconds
        self._gap_seconds = gap_seconds

    async def play(self, priority: OrderPriority) -> None:
        for frequency in tones_for(priority):
            try:
                await self._sink(frequency, self._tone_seconds)
            except Exception as e:
                # No sound device; the ticket still shows up
                logger.debug("Alert audio unavailable", error=str(e))
                return
            await asyncio.sleep(self._gap_seconds)


class NullAlertPlayer:
    """Silent player for headless terminals and tests"""

    async def play(self, priority: OrderPriority) -> None:
        return None
