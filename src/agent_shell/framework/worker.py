"""
Workers group the functions an agent may call.

A worker owns an ordered set of functions under a stable identifier and an
environment accessor that supplies ambient context (capacity limits and the
like) to the planner. Tasks submitted to a worker are delegated to the agent
the worker is attached to.

Example:
    >>> async def get_environment():
    ...     return {"maxGreetings": 5}
    >>>
    >>> worker = GameWorker(
    ...     id="greeting_worker",
    ...     name="Greeting Worker",
    ...     description="A worker that sends greetings",
    ...     functions=[greet_function],
    ...     get_environment=get_environment,
    ... )
    >>> worker.get_function("greet")
"""

import inspect
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from agent_shell.framework.functions import GameFunction
from agent_shell.utils.logger import get_logger

if TYPE_CHECKING:
    from agent_shell.framework.agent import GameAgent
    from agent_shell.framework.history import ActionRecord

logger = get_logger(__name__)

EnvironmentAccessor = Callable[[], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]


class AgentNotInitializedError(RuntimeError):
    """Raised when a task or run is requested before the agent is ready."""


class GameWorker:
    """
    Named grouping of functions with an environment accessor.

    Function names are unique within one worker; different workers may reuse
    a name.
    """

    def __init__(
        self,
        id: str,
        name: str,
        description: str,
        functions: Sequence[GameFunction],
        get_environment: Optional[EnvironmentAccessor] = None,
    ):
        """
        Initialize the worker.

        Raises:
            ValueError: If the id is empty, no function is given, or two
                functions share a name.
            TypeError: If a function is not a GameFunction.
        """
        if not id or not id.strip():
            raise ValueError("Worker id cannot be empty")
        if not functions:
            raise ValueError(f"Worker '{id}' must have at least one function")

        self.id = id
        self.name = name
        self.description = description
        self._functions: Dict[str, GameFunction] = {}
        self._get_environment = get_environment
        self._agent: Optional["GameAgent"] = None

        for function in functions:
            self._register(function)

        logger.info(
            f"Initialized worker: {self.id}",
            extra={"worker": self.id, "functions": list(self._functions)},
        )

    def _register(self, function: GameFunction) -> None:
        if not isinstance(function, GameFunction):
            raise TypeError(
                f"Function must be a GameFunction, got {type(function).__name__}"
            )
        if function.name in self._functions:
            raise ValueError(
                f"Function '{function.name}' is already registered on worker '{self.id}'"
            )
        self._functions[function.name] = function

    @property
    def functions(self) -> Tuple[GameFunction, ...]:
        return tuple(self._functions.values())

    def get_function(self, name: str) -> Optional[GameFunction]:
        return self._functions.get(name)

    async def get_environment(self) -> Dict[str, Any]:
        """
        Compute a fresh environment snapshot.

        The accessor is called on every request; nothing is cached.
        """
        if self._get_environment is None:
            return {}

        environment = self._get_environment()
        if inspect.isawaitable(environment):
            environment = await environment
        return dict(environment or {})

    def attach(self, agent: "GameAgent") -> None:
        """Bind the worker to the agent that will run its tasks."""
        self._agent = agent

    async def run_task(self, task: str) -> List["ActionRecord"]:
        """
        Ask the owning agent to accomplish task with this worker's functions.

        Args:
            task: Free-text task description.

        Returns:
            The actions executed for the task, possibly none.

        Raises:
            AgentNotInitializedError: If the worker is not attached to an agent
                or the agent has not been initialized.
        """
        if self._agent is None:
            raise AgentNotInitializedError(
                f"Worker '{self.id}' is not attached to an agent"
            )
        return await self._agent.run_task(self.id, task)

    def get_schema(self) -> Dict[str, Any]:
        """Describe the worker and its functions for the planner."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "functions": [function.get_schema() for function in self.functions],
        }

    def __repr__(self) -> str:
        return f"<GameWorker(id='{self.id}', functions={list(self._functions)})>"
