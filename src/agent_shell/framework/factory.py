"""
Builder for assembling agents from settings and application callbacks.

Example:
    >>> from agent_shell.framework.factory import AgentBuilder
    >>>
    >>> agent = (
    ...     AgentBuilder()
    ...     .with_credential(api_key)
    ...     .with_identity(
    ...         name="Greeting Bot",
    ...         goal="Send friendly greetings",
    ...         description="A bot that sends friendly greetings to users",
    ...     )
    ...     .with_state(get_agent_state)
    ...     .with_workers(worker)
    ...     .with_settings(settings)
    ...     .build()
    ... )
"""

from typing import Any, List, Optional

from pydantic import SecretStr

from agent_shell.config import Settings
from agent_shell.framework.agent import AgentConfig, GameAgent, StateAccessor
from agent_shell.framework.planner import BasePlanner, LLMPlanner
from agent_shell.framework.worker import GameWorker
from agent_shell.llm.adapter import LLMConfig, UniversalLLMAdapter
from agent_shell.utils.logger import AgentLogger, create_agent_log_sink, get_logger

logger = get_logger(__name__)


class AgentBuilder:
    """
    Fluent builder for GameAgent.

    Nothing is constructed until build(), so a builder can be prepared
    before the credential has been checked.
    """

    def __init__(self):
        self._api_key: Optional[str] = None
        self._name: str = "Agent"
        self._goal: str = ""
        self._description: str = ""
        self._state: Optional[StateAccessor] = None
        self._workers: List[GameWorker] = []
        self._sink: Optional[AgentLogger] = None
        self._planner: Optional[BasePlanner] = None
        self._settings: Optional[Settings] = None
        self._config_kwargs: dict = {}

    def with_credential(self, api_key: str) -> "AgentBuilder":
        self._api_key = api_key
        return self

    def with_identity(self, name: str, goal: str, description: str) -> "AgentBuilder":
        """
        Set name, goal and persona.

        Example:
            >>> builder.with_identity("Chat Bot", "Reply to users", "A friendly assistant")
        """
        self._name = name
        self._goal = goal
        self._description = description
        return self

    def with_state(self, get_agent_state: StateAccessor) -> "AgentBuilder":
        self._state = get_agent_state
        return self

    def with_workers(self, *workers: GameWorker) -> "AgentBuilder":
        self._workers.extend(workers)
        return self

    def with_logger(self, sink: AgentLogger) -> "AgentBuilder":
        self._sink = sink
        return self

    def with_planner(self, planner: BasePlanner) -> "AgentBuilder":
        """Use a specific planner instead of the LLM planner built from settings."""
        self._planner = planner
        return self

    def with_settings(self, settings: Settings) -> "AgentBuilder":
        """Take model and step limits from settings."""
        self._settings = settings
        return self

    def with_config(self, **config_kwargs: Any) -> "AgentBuilder":
        """
        Override AgentConfig fields.

        Example:
            >>> builder.with_config(max_task_steps=1, verbose=True)
        """
        self._config_kwargs.update(config_kwargs)
        return self

    def build(self) -> GameAgent:
        """
        Build the configured agent.

        Raises:
            MissingCredentialError: If no credential was given.
            ValueError: If no workers were given.
        """
        config_kwargs: dict = {}
        if self._settings is not None:
            config_kwargs.update(
                model=self._settings.llm.model,
                temperature=self._settings.llm.temperature,
                max_task_steps=self._settings.driver.max_task_steps,
            )
        config_kwargs.update(self._config_kwargs)
        config = AgentConfig(**config_kwargs)

        planner = self._planner
        if planner is None and self._settings is not None and self._api_key:
            planner = create_llm_planner(self._settings, self._api_key, config)

        agent = GameAgent(
            self._api_key,
            name=self._name,
            goal=self._goal,
            description=self._description,
            workers=self._workers,
            get_agent_state=self._state,
            sink=self._sink,
            planner=planner,
            config=config,
        )

        logger.info(
            f"Built agent with {len(agent.workers)} workers",
            extra={"agent": agent.name, "model": config.model},
        )
        return agent


def create_llm_planner(
    settings: Settings, api_key: str, config: Optional[AgentConfig] = None
) -> LLMPlanner:
    """
    Create the LLM planner described by settings.

    Args:
        settings: Source of model, temperature, token and retry options.
        api_key: Credential passed to the model provider.
        config: Agent config deciding whether init() verifies the credential.
    """
    llm = UniversalLLMAdapter(
        LLMConfig(
            model=settings.llm.model,
            api_key=SecretStr(api_key),
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
            timeout=settings.llm.timeout,
            retry_attempts=settings.llm.retry_attempts,
        )
    )
    verify = config.verify_credential_on_init if config is not None else True
    return LLMPlanner(llm, verify_credentials=verify)


def create_agent(
    api_key: str,
    name: str,
    goal: str,
    description: str,
    workers: List[GameWorker],
    get_agent_state: Optional[StateAccessor] = None,
    settings: Optional[Settings] = None,
    **kwargs: Any,
) -> GameAgent:
    """
    Quick agent creation with sensible defaults.

    The agent reports through the banner sink of create_agent_log_sink().

    Args:
        api_key: Agent credential.
        name: Agent name.
        goal: What the agent tries to achieve.
        description: Persona handed to the planner.
        workers: Workers available to the agent.
        get_agent_state: Optional state accessor.
        settings: Optional settings for model and step limits.
        **kwargs: AgentConfig overrides.

    Example:
        >>> agent = create_agent(api_key, "Greeting Bot", "Send greetings", "A bot", [worker])
    """
    builder = (
        AgentBuilder()
        .with_credential(api_key)
        .with_identity(name, goal, description)
        .with_workers(*workers)
        .with_logger(create_agent_log_sink(name))
    )

    if get_agent_state is not None:
        builder.with_state(get_agent_state)

    if settings is not None:
        builder.with_settings(settings)

    if kwargs:
        builder.with_config(**kwargs)

    return builder.build()
