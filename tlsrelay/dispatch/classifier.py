from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class CommandKind(Enum):
    OPEN = "open"
    STOP = "stop"
    CLOSE = "close"
    AUTO = "auto"                         # open, then close
    REPORT = "report"                     # force a status report
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class Classification:
    kind: CommandKind
    label: str


COMMAND_TABLE: Dict[int, Tuple[CommandKind, str]] = {
    1: (CommandKind.OPEN, "open"),
    2: (CommandKind.STOP, "stop"),
    3: (CommandKind.CLOSE, "close"),
    4: (CommandKind.AUTO, "auto"),
    5: (CommandKind.REPORT, "report"),
}


def classify(code: int) -> Classification:
    """Map a command code to its kind and label. Never fails.

    Codes outside the table are UNKNOWN and labelled with their decimal form,
    so they still reach the audit log.
    """
    entry = COMMAND_TABLE.get(code)
    if entry is None:
        return Classification(CommandKind.UNKNOWN, str(code))
    return Classification(*entry)
