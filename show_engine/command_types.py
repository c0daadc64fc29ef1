"""
Result type returned by the show session command boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

def to_wire(value: Any) -> Any:
    """Convert a command return value to plain JSON-compatible data."""
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    return value

@dataclass
class CommandResult:
    """Result of a dispatched command"""
    success: bool
    command: str
    value: Any = None
    error_message: Optional[str] = None
    execution_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {'ok': True, 'command': self.command, 'value': to_wire(self.value)}
        return {'ok': False, 'command': self.command, 'error': self.error_message}
