"""FIFO command queue drained by remote agents via long-polling."""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field

from photobooth.domain.commands import Command


@dataclass
class CommandQueue:
    """Queue of pending remote-camera commands.

    Each command is handed to exactly one poller, oldest first. Nothing is
    redelivered if the agent crashes after taking a command.
    """

    max_wait_seconds: float = 20.0
    poll_interval_seconds: float = 0.2
    _commands: deque[Command] = field(default_factory=deque)

    def enqueue(self, command: Command) -> None:
        """Append a command to the back of the queue."""
        self._commands.append(command)

    def pending(self) -> int:
        """Return the number of undelivered commands."""
        return len(self._commands)

    async def poll(self, wait: bool = False) -> Command | None:
        """Pop the oldest command, optionally waiting for one to arrive."""
        if self._commands:
            return self._commands.popleft()
        if not wait:
            return None

        deadline = time.monotonic() + self.max_wait_seconds
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            await asyncio.sleep(min(self.poll_interval_seconds, remaining))
            if self._commands:
                return self._commands.popleft()
