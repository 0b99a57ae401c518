"""
Callable actions an agent can choose to execute.

A GameFunction couples a name and description (read by the planner when it
selects actions) with a typed argument list and an asynchronous executable.
Executing a function never raises: validation errors and exceptions thrown by
the executable are converted into a FAILED FunctionResult.

Example:
    >>> from agent_shell.framework.functions import (
    ...     Argument, FunctionResult, GameFunction
    ... )
    >>>
    >>> async def greet(args, logger):
    ...     print(f"Greeting: {args['message']}")
    ...     return FunctionResult.done("Greeting sent successfully")
    >>>
    >>> greet_function = GameFunction(
    ...     name="greet",
    ...     description="Sends a greeting message",
    ...     args=[Argument(name="message", type="string", description="The greeting message")],
    ...     executable=greet,
    ... )
    >>> result = await greet_function.execute({"message": "Hello!"}, print)
    >>> print(result.status)  # FunctionResultStatus.DONE
"""

import inspect
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    create_model,
    field_validator,
)

from agent_shell.utils.logger import AgentLogger, get_logger

logger = get_logger(__name__)

_FUNCTION_NAME = re.compile(r"^[a-z][a-z0-9_]*$")
_ARGUMENT_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

ARGUMENT_TYPES: Dict[str, type] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
    "array": list,
    "object": dict,
}


class FunctionResultStatus(str, Enum):
    """Outcome tag of a function execution."""

    DONE = "done"
    FAILED = "failed"


@dataclass
class FunctionResult:
    """
    Result returned by a function execution.

    Attributes:
        status: DONE on success, FAILED otherwise.
        message: Human-readable description of the outcome.
        info: Additional metadata about the execution (timing, error type).
    """

    status: FunctionResultStatus
    message: str
    info: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def done(cls, message: str, **info: Any) -> "FunctionResult":
        return cls(FunctionResultStatus.DONE, message, dict(info))

    @classmethod
    def failed(cls, message: str, **info: Any) -> "FunctionResult":
        return cls(FunctionResultStatus.FAILED, message, dict(info))

    @property
    def is_done(self) -> bool:
        return self.status is FunctionResultStatus.DONE

    def __str__(self) -> str:
        return f"{self.status.value}: {self.message}"


class Argument(BaseModel):
    """
    One entry of a function's argument schema.

    Example:
        >>> Argument(name="message", type="string", description="The greeting message")
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "string"
    description: str = ""
    optional: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _ARGUMENT_NAME.match(v):
            raise ValueError(
                f"Invalid argument name '{v}'. "
                "Names must start with a letter and contain only letters, digits and underscores."
            )
        return v

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in ARGUMENT_TYPES:
            raise ValueError(
                f"Unsupported argument type '{v}'. "
                f"Must be one of: {', '.join(ARGUMENT_TYPES)}"
            )
        return v

    @property
    def python_type(self) -> type:
        return ARGUMENT_TYPES[self.type]


Executable = Callable[
    [Dict[str, Any], AgentLogger],
    Union[FunctionResult, Awaitable[FunctionResult]],
]


@dataclass(frozen=True)
class GameFunction:
    """
    A named, described operation the planner can select.

    Attributes:
        name: Identifier, unique within a worker (lowercase with underscores).
        description: What the function does, read by the planner.
        executable: Callable receiving (validated args, agent logger) and
                    returning a FunctionResult, usually a coroutine function.
        args: Ordered argument schema.
    """

    name: str
    description: str
    executable: Executable
    args: Tuple[Argument, ...] = ()
    _input_model: Type[BaseModel] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not _FUNCTION_NAME.match(self.name or ""):
            raise ValueError(
                f"Invalid function name '{self.name}'. "
                "Names must be lowercase with underscores only."
            )
        if not self.description:
            raise ValueError(f"Function '{self.name}' must define a description")
        if not callable(self.executable):
            raise TypeError(f"Function '{self.name}' executable must be callable")

        args = tuple(
            arg if isinstance(arg, Argument) else Argument(**arg) for arg in self.args
        )
        names = [arg.name for arg in args]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(
                f"Function '{self.name}' has duplicate arguments: {', '.join(duplicates)}"
            )

        object.__setattr__(self, "args", args)
        object.__setattr__(self, "_input_model", self._build_input_model(args))

    def _build_input_model(self, args: Tuple[Argument, ...]) -> Type[BaseModel]:
        fields: Dict[str, Any] = {}
        for arg in args:
            if arg.optional:
                fields[arg.name] = (
                    Optional[arg.python_type],
                    Field(default=None, description=arg.description),
                )
            else:
                fields[arg.name] = (arg.python_type, Field(description=arg.description))

        model_name = "".join(part.capitalize() for part in self.name.split("_")) + "Args"
        return create_model(
            model_name,
            __config__=ConfigDict(extra="forbid", strict=True),
            **fields,
        )

    def validate_args(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """
        Check args against the schema.

        Returns:
            The validated arguments, without optional arguments that were not given.

        Raises:
            ValidationError: On missing required arguments, unknown arguments
                or mismatched primitive types.
        """
        return self._input_model(**args).model_dump(exclude_unset=True)

    async def execute(
        self, args: Optional[Dict[str, Any]], agent_logger: AgentLogger
    ) -> FunctionResult:
        """
        Validate args and run the executable.

        Args:
            args: Raw arguments chosen by the planner.
            agent_logger: The agent's logger callback, handed to the executable.

        Returns:
            The executable's FunctionResult, or a FAILED result if validation
            fails, the executable raises, or it returns something else.
        """
        start_time = time.time()

        try:
            validated = self.validate_args(args or {})
        except ValidationError as e:
            error_msg = f"Input validation failed: {e}"
            logger.warning(
                f"Function validation error: {self.name}",
                extra={"function": self.name, "error": error_msg},
            )
            return FunctionResult.failed(error_msg, error_type="ValidationError")

        logger.debug(
            f"Executing function: {self.name}",
            extra={"function": self.name, "inputs": validated},
        )

        try:
            result = self.executable(validated, agent_logger)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(
                f"Function execution error: {self.name}",
                extra={"function": self.name, "error": str(e)},
                exc_info=True,
            )
            return create_function_error(e)

        if not isinstance(result, FunctionResult):
            return FunctionResult.failed(
                f"Function '{self.name}' returned {type(result).__name__} instead of FunctionResult"
            )

        execution_time = time.time() - start_time
        result.info["execution_time"] = execution_time

        logger.debug(
            f"Function execution completed: {self.name}",
            extra={
                "function": self.name,
                "status": result.status.value,
                "execution_time": execution_time,
            },
        )
        return result

    def get_schema(self) -> Dict[str, Any]:
        """Describe the function for the planner."""
        return {
            "name": self.name,
            "description": self.description,
            "args": [
                {
                    "name": arg.name,
                    "type": arg.type,
                    "description": arg.description,
                    "optional": arg.optional,
                }
                for arg in self.args
            ],
        }

    def __str__(self) -> str:
        return f"{self.name}: {self.description}"


def create_function_error(error: Exception) -> FunctionResult:
    """
    Create a FAILED FunctionResult from an exception.

    Example:
        >>> result = create_function_error(ValueError("Invalid input"))
        >>> print(result.message)  # "ValueError: Invalid input"
    """
    error_type = type(error).__name__
    return FunctionResult.failed(f"{error_type}: {error}", error_type=error_type)
