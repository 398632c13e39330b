"""Notification collaborators called when appointments show up"""

import asyncio
import logging
from datetime import datetime
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Called once when a poll finds appointments after finding none"""

    async def notify(self, slots: Sequence[datetime]) -> None:
        ...


class NullNotifier:
    """Notifier that does nothing"""

    async def notify(self, slots: Sequence[datetime]) -> None:
        return None


class BeepNotifier:
    """Plays a sound by running the system ``beep`` command"""

    def __init__(self, command: str = "beep"):
        self.command = command

    async def notify(self, slots: Sequence[datetime]) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                self.command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Error playing beep sound: {e}")
            return

        try:
            return_code = await process.wait()
        except asyncio.CancelledError:
            process.kill()
            raise

        if return_code != 0:
            logger.warning(f"Beep command '{self.command}' exited with status {return_code}")
