"""
Action history kept by the agent.

The agent records every function it executes so the planner can see what has
already been done. The application's own state accessor is never touched;
this history is the framework's side of the bookkeeping.
"""

import json
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from agent_shell.framework.functions import FunctionResult
from agent_shell.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ActionRecord:
    """
    One executed function.

    Attributes:
        worker_id: Worker the function belongs to.
        function_name: Name of the function that was called.
        args: Arguments chosen by the planner.
        result: Outcome of the execution.
        execution_time: How long the call took (seconds).
        task: Task that triggered the action, None for autonomous steps.
        reasoning: Planner's stated reason for the action.
        timestamp: When the action finished.
    """

    worker_id: str
    function_name: str
    args: Dict[str, Any]
    result: FunctionResult
    execution_time: float = 0.0
    task: Optional[str] = None
    reasoning: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "worker_id": self.worker_id,
            "function_name": self.function_name,
            "args": self.args,
            "status": self.result.status.value,
            "message": self.result.message,
            "execution_time": self.execution_time,
            "task": self.task,
            "reasoning": self.reasoning,
            "timestamp": self.timestamp.isoformat(),
        }

    def describe(self) -> str:
        """Single-line summary used in planner prompts and agent logs."""
        args = json.dumps(self.args, ensure_ascii=False, default=str)
        return (
            f"{self.worker_id}.{self.function_name}({args}) -> "
            f"{self.result.status.value}: {self.result.message}"
        )


class ActionHistory:
    """
    Ordered record of the most recent executed actions.

    Only the newest max_records actions are kept; older ones are dropped as
    new ones arrive. The summary counts every action ever recorded.

    Example:
        >>> history = ActionHistory(max_records=100)
        >>> history.add(record)
        >>> recent = history.get_records(limit=5)
        >>> print(history.get_summary()["total_actions"])
    """

    def __init__(self, max_records: Optional[int] = None):
        if max_records is not None and max_records < 1:
            raise ValueError("max_records must be at least 1")

        self.records: Deque[ActionRecord] = deque(maxlen=max_records)
        self.start_time = datetime.now()
        self._total = 0
        self._failed = 0

    @property
    def max_records(self) -> Optional[int]:
        return self.records.maxlen

    def add(self, record: ActionRecord) -> None:
        self.records.append(record)
        self._total += 1
        if not record.result.is_done:
            self._failed += 1

        logger.debug(
            "Recorded action",
            extra={
                "worker": record.worker_id,
                "function": record.function_name,
                "status": record.result.status.value,
                "total_actions": self._total,
            },
        )

    def get_records(self, limit: Optional[int] = None) -> List[ActionRecord]:
        """
        Get retained actions, oldest first.

        Args:
            limit: Optional limit on number of most recent records to return.
        """
        records = list(self.records)
        if limit is None:
            return records
        if limit <= 0:
            return []
        return records[-limit:]

    def get_summary(self) -> Dict[str, Any]:
        duration = datetime.now() - self.start_time

        return {
            "total_actions": self._total,
            "failed_actions": self._failed,
            "retained_actions": len(self.records),
            "duration_seconds": duration.total_seconds(),
            "start_time": self.start_time.isoformat(),
        }

    def clear(self) -> None:
        self.records.clear()
        self._total = 0
        self._failed = 0
        logger.info("Cleared action history")

    def export_to_json(self) -> str:
        """
        Export the retained actions and the summary to JSON.

        Example:
            >>> with open("actions.json", "w") as f:
            ...     f.write(agent.history.export_to_json())
        """
        data = {
            "actions": [record.to_dict() for record in self.records],
            "summary": self.get_summary(),
        }
        return json.dumps(data, indent=2, ensure_ascii=False, default=str)

    def __len__(self) -> int:
        return len(self.records)
