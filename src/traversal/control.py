"""
Control Signal Channel.

Pause/resume and stop only flip flags in the stored state; the controller
picks them up at its checkpoints. Adapters (keyboard binding, CLI) talk to
this channel and never to the controller.
"""

from enum import Enum
from typing import Optional

from src.core.logging import get_logger
from src.traversal.state import StopReason, TraversalState
from src.traversal.store import TraversalStore

logger = get_logger(__name__)


class ControlCommand(str, Enum):
    PAUSE_OR_RESUME = "pause-or-resume"
    STOP = "stop"


class ControlSignalChannel:
    """
    Apply control commands to the stored traversal state.

    A command with no traversal in progress is a no-op and returns None.
    """

    def __init__(self, store: TraversalStore):
        self.store = store

    async def send(self, command: ControlCommand) -> Optional[TraversalState]:
        command = ControlCommand(command)
        if command is ControlCommand.PAUSE_OR_RESUME:
            return await self.pause_or_resume()
        return await self.stop()

    async def pause_or_resume(self) -> Optional[TraversalState]:
        state = await self.store.load()
        if state is None or not state.in_progress:
            logger.info("pause-or-resume ignored: no traversal in progress")
            return None
        state = state.with_pause(not state.is_paused)
        await self.store.save(state)
        logger.info(f"Traversal {'PAUSED' if state.is_paused else 'RESUMED'}")
        return state

    async def stop(self) -> Optional[TraversalState]:
        state = await self.store.load()
        if state is None or not state.in_progress:
            logger.info("stop ignored: no traversal in progress")
            return None
        state = state.stopped(StopReason.USER_STOP)
        await self.store.save(state)
        logger.info("Stop requested: traversal halts after the current item")
        return state
