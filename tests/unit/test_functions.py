"""
Unit tests for GameFunction and FunctionResult.

Executing a function must always produce a FunctionResult: DONE when the
executable completes, FAILED on validation errors or exceptions.
"""

import pytest
from pydantic import ValidationError

from agent_shell.framework.functions import (
    Argument,
    FunctionResult,
    FunctionResultStatus,
    GameFunction,
    create_function_error,
)


def make_function(executable, args=None, name="act"):
    return GameFunction(
        name=name,
        description="Does something",
        args=args if args is not None else [Argument(name="message", type="string")],
        executable=executable,
    )


@pytest.mark.unit
class TestFunctionConstruction:
    """Test cases for function definition checks."""

    def test_args_are_stored_in_order_as_tuple(self):
        async def noop(args, logger):
            return FunctionResult.done("ok")

        fn = make_function(
            noop,
            args=[
                Argument(name="first", type="string"),
                {"name": "second", "type": "integer", "description": "A count"},
            ],
        )

        assert isinstance(fn.args, tuple)
        assert [arg.name for arg in fn.args] == ["first", "second"]
        assert fn.args[1].description == "A count"

    def test_function_is_immutable(self):
        async def noop(args, logger):
            return FunctionResult.done("ok")

        fn = make_function(noop)

        with pytest.raises(AttributeError):
            fn.name = "other"

    @pytest.mark.parametrize("name", ["", "Greet", "greet-now", "1greet"])
    def test_invalid_function_name_rejected(self, name):
        with pytest.raises(ValueError, match="Invalid function name"):
            make_function(lambda args, logger: None, name=name)

    def test_duplicate_argument_names_rejected(self):
        with pytest.raises(ValueError, match="duplicate arguments"):
            make_function(
                lambda args, logger: None,
                args=[Argument(name="a"), Argument(name="a")],
            )

    def test_unknown_argument_type_rejected(self):
        with pytest.raises(ValidationError, match="Unsupported argument type"):
            Argument(name="a", type="datetime")

    def test_missing_description_rejected(self):
        with pytest.raises(ValueError, match="description"):
            GameFunction(name="act", description="", executable=lambda a, l: None)

    def test_schema_lists_arguments(self):
        fn = make_function(
            lambda args, logger: None,
            args=[Argument(name="message", type="string", description="Text")],
        )

        schema = fn.get_schema()

        assert schema["name"] == "act"
        assert schema["args"] == [
            {"name": "message", "type": "string", "description": "Text", "optional": False}
        ]


@pytest.mark.unit
class TestFunctionExecution:
    """Test cases for execute()."""

    async def test_successful_execution_is_done(self):
        received = {}

        async def act(args, logger):
            received.update(args)
            return FunctionResult.done("sent")

        result = await make_function(act).execute({"message": "hi"}, print)

        assert result.status is FunctionResultStatus.DONE
        assert result.message == "sent"
        assert received == {"message": "hi"}
        assert "execution_time" in result.info

    async def test_executable_exception_becomes_failed(self):
        async def boom(args, logger):
            raise RuntimeError("printer on fire")

        result = await make_function(boom).execute({"message": "hi"}, print)

        assert result.status is FunctionResultStatus.FAILED
        assert result.message == "RuntimeError: printer on fire"
        assert result.info["error_type"] == "RuntimeError"

    async def test_failed_result_from_executable_is_kept(self):
        async def refuse(args, logger):
            return FunctionResult.failed("Failed to send greeting")

        result = await make_function(refuse).execute({"message": "hi"}, print)

        assert not result.is_done
        assert result.message == "Failed to send greeting"

    async def test_missing_required_argument_fails_validation(self):
        called = []

        async def act(args, logger):
            called.append(args)
            return FunctionResult.done("ok")

        result = await make_function(act).execute({}, print)

        assert result.status is FunctionResultStatus.FAILED
        assert result.message.startswith("Input validation failed")
        assert called == []

    async def test_wrong_primitive_type_fails_validation(self):
        async def act(args, logger):
            return FunctionResult.done("ok")

        result = await make_function(act).execute({"message": 42}, print)

        assert result.status is FunctionResultStatus.FAILED

    async def test_unknown_argument_fails_validation(self):
        async def act(args, logger):
            return FunctionResult.done("ok")

        result = await make_function(act).execute({"message": "hi", "extra": 1}, print)

        assert result.status is FunctionResultStatus.FAILED

    async def test_optional_argument_may_be_omitted(self):
        received = {}

        async def act(args, logger):
            received.update(args)
            return FunctionResult.done("ok")

        fn = make_function(
            act,
            args=[
                Argument(name="message", type="string"),
                Argument(name="times", type="integer", optional=True),
            ],
        )
        result = await fn.execute({"message": "hi"}, print)

        assert result.is_done
        assert received == {"message": "hi"}

    async def test_non_result_return_value_fails(self):
        async def sloppy(args, logger):
            return "done"

        result = await make_function(sloppy).execute({"message": "hi"}, print)

        assert result.status is FunctionResultStatus.FAILED
        assert "instead of FunctionResult" in result.message

    async def test_sync_executable_is_supported(self):
        def act(args, logger):
            return FunctionResult.done("sync ok")

        result = await make_function(act).execute({"message": "hi"}, print)

        assert result.is_done

    async def test_logger_is_passed_to_executable(self):
        messages = []

        async def act(args, logger):
            logger(f"sending {args['message']}")
            return FunctionResult.done("ok")

        await make_function(act).execute({"message": "hi"}, messages.append)

        assert messages == ["sending hi"]


@pytest.mark.unit
def test_create_function_error():
    result = create_function_error(ValueError("Invalid input"))

    assert result.status is FunctionResultStatus.FAILED
    assert result.message == "ValueError: Invalid input"
    assert str(result) == "failed: ValueError: Invalid input"
