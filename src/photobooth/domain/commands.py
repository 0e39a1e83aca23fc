"""Commands delivered to the remote camera agent."""

import enum
from dataclasses import dataclass
from datetime import datetime


class CommandType(str, enum.Enum):
    """Kinds of instruction a remote agent can receive."""

    TRIGGER = "trigger"
    SESSION_START = "session_start"
    SESSION_FINISH = "session_finish"


@dataclass(frozen=True)
class Command:
    """A queued instruction for the remote camera agent."""

    type: CommandType
    timestamp: datetime
    session_id: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Serialize for the command polling endpoint."""
        return {
            "command": self.type.value,
            "sessionId": self.session_id,
            "timestamp": int(self.timestamp.timestamp() * 1000),
        }
