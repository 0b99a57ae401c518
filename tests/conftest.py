"""
Pytest configuration and shared fixtures for the Agent Shell test suite.

Provides a scripted planner standing in for the LLM, a recording logger sink,
ready-made functions and workers, and settings with and without a credential.
"""

from typing import Any, Callable, Dict, List, Optional

import pytest

from agent_shell.config import Settings, get_settings
from agent_shell.framework.agent import AgentConfig, GameAgent
from agent_shell.framework.functions import Argument, FunctionResult, GameFunction
from agent_shell.framework.planner import BasePlanner, Decision, PlanningContext
from agent_shell.framework.worker import GameWorker


class ScriptedPlanner(BasePlanner):
    """
    Planner returning a fixed sequence of decisions.

    Once the script is exhausted every further call returns a done decision.
    Each PlanningContext received is kept in .contexts.
    """

    def __init__(self, decisions: Optional[List[Decision]] = None, fail_auth: bool = False):
        self.decisions = list(decisions or [])
        self.fail_auth = fail_auth
        self.contexts: List[PlanningContext] = []
        self.auth_calls = 0

    async def authenticate(self) -> None:
        self.auth_calls += 1
        if self.fail_auth:
            raise PermissionError("invalid credential")

    async def plan(self, context: PlanningContext) -> Decision:
        self.contexts.append(context)
        if not self.decisions:
            return Decision.done("script exhausted")
        decision = self.decisions.pop(0)
        if isinstance(decision, Exception):
            raise decision
        return decision


class RecordingSink:
    """Agent logger sink collecting messages."""

    def __init__(self):
        self.messages: List[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test load settings afresh."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def calls() -> List[Dict[str, Any]]:
    """Arguments received by the echo function, in call order."""
    return []


@pytest.fixture
def echo_function(calls) -> GameFunction:
    async def echo(args: Dict[str, Any], logger) -> FunctionResult:
        calls.append(args)
        logger(f"echo {args['message']}")
        return FunctionResult.done(f"Echoed {args['message']}")

    return GameFunction(
        name="echo",
        description="Echo a message",
        args=[Argument(name="message", type="string", description="Text to echo")],
        executable=echo,
    )


@pytest.fixture
def worker(echo_function) -> GameWorker:
    return GameWorker(
        id="echo_worker",
        name="Echo Worker",
        description="Echoes messages",
        functions=[echo_function],
        get_environment=lambda: {"capacity": 3},
    )


@pytest.fixture
def make_agent(worker, sink) -> Callable[..., GameAgent]:
    """Factory building an agent around the echo worker and a scripted planner."""

    def _make(
        decisions: Optional[List[Decision]] = None,
        planner: Optional[BasePlanner] = None,
        **config_kwargs: Any,
    ) -> GameAgent:
        return GameAgent(
            "test-api-key",
            name="Test Agent",
            goal="Echo things",
            description="An agent used in tests",
            workers=[worker],
            get_agent_state=lambda: {"count": 0},
            sink=sink,
            planner=planner or ScriptedPlanner(decisions),
            config=AgentConfig(**config_kwargs),
        )

    return _make


@pytest.fixture
def settings_with_key(monkeypatch) -> Settings:
    monkeypatch.setenv("GAME_API_KEY", "test-game-key")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    return Settings(_env_file=None)


@pytest.fixture
def settings_without_key(monkeypatch) -> Settings:
    monkeypatch.delenv("GAME_API_KEY", raising=False)
    return Settings(_env_file=None)
