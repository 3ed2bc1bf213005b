"""UI package holding the tabset commands, status text and Qt widgets."""

from .commands import TabsetCommands
from .models import TABSET_COMMANDS, CommandSpec, PickItem, UserPrompter
from .status import StatusIndicator

__all__ = [
    "TabsetCommands",
    "StatusIndicator",
    "PickItem",
    "CommandSpec",
    "UserPrompter",
    "TABSET_COMMANDS",
]
