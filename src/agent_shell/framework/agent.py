"""
Top-level agent that owns workers, a planner and the run loop.

The agent follows a simple cycle on every step:
1. Read the application state and every worker's environment
2. Ask the planner for a decision
3. Execute the chosen function and record the outcome
4. Report through the agent's logger sink

Example:
    >>> agent = GameAgent(
    ...     api_key,
    ...     name="Greeting Bot",
    ...     goal="Send friendly greetings",
    ...     description="A bot that sends friendly greetings to users",
    ...     get_agent_state=get_agent_state,
    ...     workers=[worker],
    ... )
    >>> agent.set_logger(create_agent_log_sink(agent.name))
    >>> await agent.init()
    >>> await agent.run(60, verbose=True)
"""

import asyncio
import inspect
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import SecretStr

from agent_shell.config import MissingCredentialError
from agent_shell.framework.functions import FunctionResult
from agent_shell.framework.history import ActionHistory, ActionRecord
from agent_shell.framework.planner import (
    BasePlanner,
    Decision,
    LLMPlanner,
    PlanningContext,
    WorkerView,
)
from agent_shell.framework.worker import AgentNotInitializedError, GameWorker
from agent_shell.llm.adapter import LLMConfig, UniversalLLMAdapter
from agent_shell.utils.logger import AgentLogger, get_logger

logger = get_logger(__name__)

StateAccessor = Callable[[], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]

__all__ = [
    "AgentConfig",
    "AgentInitializationError",
    "AgentNotInitializedError",
    "GameAgent",
]


class AgentInitializationError(RuntimeError):
    """Raised when init() cannot complete."""


@dataclass
class AgentConfig:
    """
    Configuration for agent behavior.

    Attributes:
        model: LLM model used by the default planner.
        temperature: Sampling temperature for the default planner.
        max_task_steps: Maximum functions executed for one run_task() call.
        history_window: Number of recent actions shown to the planner.
        max_history: Number of actions kept in memory, at least history_window.
        verify_credential_on_init: Whether init() checks the credential with
            the planner's backing service.
        verbose: Report state snapshots and decisions, not only actions.
    """

    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_task_steps: int = 3
    history_window: int = 10
    max_history: int = 100
    verify_credential_on_init: bool = True
    verbose: bool = False

    def __post_init__(self):
        if self.max_task_steps < 1:
            raise ValueError("max_task_steps must be at least 1")
        if self.history_window < 0:
            raise ValueError("history_window must be non-negative")
        if self.max_history < max(self.history_window, 1):
            raise ValueError("max_history must be at least history_window")


class GameAgent:
    """
    Autonomous agent choosing among its workers' functions.

    Construction fails fast on a missing credential. init() must be awaited
    once before run() or run_task().
    """

    def __init__(
        self,
        api_key: Optional[str],
        name: str,
        goal: str,
        description: str,
        workers: Sequence[GameWorker],
        get_agent_state: Optional[StateAccessor] = None,
        sink: Optional[AgentLogger] = None,
        planner: Optional[BasePlanner] = None,
        config: Optional[AgentConfig] = None,
    ):
        """
        Initialize the agent.

        Args:
            api_key: Credential, required and non-blank.
            name: Agent name shown in logs and prompts.
            goal: What the agent tries to achieve.
            description: Persona handed to the planner.
            workers: Ordered workers, ids must be unique.
            get_agent_state: Accessor for application state, read before
                every decision.
            sink: Optional logger callback for diagnostics; see set_logger().
            planner: Decision maker; defaults to an LLMPlanner keyed with api_key.
            config: Optional configuration (uses defaults if not provided).

        Raises:
            MissingCredentialError: If api_key is None or blank.
            ValueError: If no workers are given or worker ids repeat.
        """
        if api_key is None or not str(api_key).strip():
            raise MissingCredentialError("Agent credential (api_key) is required")
        if not workers:
            raise ValueError(f"Agent '{name}' needs at least one worker")

        self._api_key = SecretStr(str(api_key).strip())
        self.name = name
        self.goal = goal
        self.description = description
        self.config = config or AgentConfig()
        self.history = ActionHistory(max_records=self.config.max_history)

        self._get_agent_state = get_agent_state
        self._sink: Optional[AgentLogger] = sink
        self._verbose = self.config.verbose
        self._initialized = False

        self._workers: Dict[str, GameWorker] = {}
        for worker in workers:
            if worker.id in self._workers:
                raise ValueError(f"Duplicate worker id '{worker.id}'")
            self._workers[worker.id] = worker
            worker.attach(self)

        self.planner = planner or self._create_default_planner()

        logger.info(
            "Initialized GameAgent",
            extra={"agent": self.name, "workers": list(self._workers)},
        )

    def _create_default_planner(self) -> BasePlanner:
        llm = UniversalLLMAdapter(
            LLMConfig(
                model=self.config.model,
                api_key=self._api_key,
                temperature=self.config.temperature,
            )
        )
        return LLMPlanner(llm, verify_credentials=self.config.verify_credential_on_init)

    @property
    def workers(self) -> Tuple[GameWorker, ...]:
        return tuple(self._workers.values())

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def set_logger(self, sink: Optional[AgentLogger]) -> None:
        """
        Install the diagnostics sink, replacing any previous one.

        Args:
            sink: Callback receiving one message per call, or None to fall
                back to the module logger only.
        """
        self._sink = sink

    def log(self, message: str) -> None:
        """Send message to the installed sink (the logger handed to functions)."""
        logger.debug(message, extra={"agent": self.name})
        if self._sink is not None:
            self._sink(message)
        else:
            logger.info(message, extra={"agent": self.name})

    def get_worker_by_id(self, worker_id: str) -> GameWorker:
        """
        Look up a worker.

        Raises:
            KeyError: If no worker has this id.
        """
        try:
            return self._workers[worker_id]
        except KeyError:
            raise KeyError(f"Worker '{worker_id}' not found on agent '{self.name}'") from None

    async def init(self) -> None:
        """
        Perform one-time setup, including the credential check.

        Raises:
            AgentInitializationError: If the planner refuses the credential or
                setup fails otherwise.
        """
        if self._initialized:
            logger.warning(f"Agent '{self.name}' is already initialized")
            return

        try:
            await self.planner.authenticate()
        except Exception as e:
            raise AgentInitializationError(
                f"Failed to initialize agent '{self.name}': {e}"
            ) from e

        self._initialized = True
        logger.info("Agent initialized", extra={"agent": self.name})

    async def run(
        self,
        interval_seconds: float,
        verbose: bool = False,
        max_steps: Optional[int] = None,
    ) -> None:
        """
        Step autonomously every interval_seconds until cancelled.

        A failing step is reported and the loop moves on to the next tick.

        Args:
            interval_seconds: Pause between steps, must be positive.
            verbose: Also report state snapshots and decisions.
            max_steps: Stop after this many steps; None runs forever.

        Raises:
            AgentNotInitializedError: If init() has not completed.
            ValueError: If interval_seconds is not positive.
        """
        self._require_initialized()
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self._verbose = verbose
        logger.info(
            f"Agent '{self.name}' running every {interval_seconds}s",
            extra={"agent": self.name, "max_steps": max_steps},
        )

        steps = 0
        while max_steps is None or steps < max_steps:
            try:
                await self.step()
            except Exception as e:
                logger.error(
                    f"Agent step failed: {e}", extra={"agent": self.name}, exc_info=True
                )
                self.log(f"Step failed: {type(e).__name__}: {e}")

            steps += 1
            if max_steps is not None and steps >= max_steps:
                break
            await asyncio.sleep(interval_seconds)

    async def run_task(self, worker_id: str, task: str) -> List[ActionRecord]:
        """
        Work on task using only the given worker's functions.

        Steps until the planner is done or config.max_task_steps actions ran.

        Returns:
            The executed actions in order.

        Raises:
            AgentNotInitializedError: If init() has not completed.
            KeyError: If the worker does not exist.
        """
        self._require_initialized()
        self.get_worker_by_id(worker_id)

        records: List[ActionRecord] = []
        for _ in range(self.config.max_task_steps):
            record = await self.step(task=task, worker_id=worker_id)
            if record is None:
                break
            records.append(record)

        return records

    async def step(
        self, task: Optional[str] = None, worker_id: Optional[str] = None
    ) -> Optional[ActionRecord]:
        """
        Make one decision and execute it.

        Args:
            task: Task being worked on, None for autonomous steps.
            worker_id: Restrict the planner to this worker.

        Returns:
            The executed action, or None if the planner chose to do nothing.
        """
        self._require_initialized()

        if worker_id is not None:
            workers = [self.get_worker_by_id(worker_id)]
        else:
            workers = list(self._workers.values())

        state = await self._read_state()
        context = PlanningContext(
            agent_name=self.name,
            goal=self.goal,
            description=self.description,
            state=state,
            workers=[await self._view(worker) for worker in workers],
            history=self.history.get_records(limit=self.config.history_window),
            task=task,
        )

        if self._verbose:
            self.log(f"State: {json.dumps(state, ensure_ascii=False, default=str)}")

        decision = await self.planner.plan(context)

        if self._verbose:
            self.log(f"Decision: {decision}")

        if not decision.is_call:
            return None

        record = await self._execute(decision, workers, task)
        self.history.add(record)
        self.log(f"Action {record.describe()}")
        return record

    async def _execute(
        self,
        decision: Decision,
        workers: List[GameWorker],
        task: Optional[str],
    ) -> ActionRecord:
        start_time = time.time()
        available = {worker.id: worker for worker in workers}
        worker = available.get(decision.worker_id)

        if worker is None:
            result = FunctionResult.failed(
                f"Worker '{decision.worker_id}' is not available"
            )
        else:
            function = worker.get_function(decision.function_name)
            if function is None:
                result = FunctionResult.failed(
                    f"Function '{decision.function_name}' not found on worker '{worker.id}'"
                )
            else:
                result = await function.execute(decision.args, self.log)

        return ActionRecord(
            worker_id=decision.worker_id or "",
            function_name=decision.function_name or "",
            args=decision.args,
            result=result,
            execution_time=time.time() - start_time,
            task=task,
            reasoning=decision.reasoning,
        )

    async def _read_state(self) -> Dict[str, Any]:
        if self._get_agent_state is None:
            return {}

        state = self._get_agent_state()
        if inspect.isawaitable(state):
            state = await state
        return state or {}

    async def _view(self, worker: GameWorker) -> WorkerView:
        schema = worker.get_schema()
        return WorkerView(
            id=worker.id,
            name=worker.name,
            description=worker.description,
            environment=await worker.get_environment(),
            functions=schema["functions"],
        )

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise AgentNotInitializedError(
                f"Agent '{self.name}' must be initialized with init() first"
            )

    def reset(self) -> None:
        """Forget the recorded actions."""
        self.history.clear()
        logger.info("Agent history reset", extra={"agent": self.name})

    def __repr__(self) -> str:
        return f"<GameAgent(name='{self.name}', workers={list(self._workers)})>"
