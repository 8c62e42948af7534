"""Unit tests for LambdaInvoker."""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from app.core.errors import ConfigError, InvocationError
from app.services.lambda_client import LambdaInvoker


@pytest.mark.asyncio
class TestLambdaInvoker:

    async def test_invoke_sends_json_and_returns_payload(self, lambda_client, make_lambda_response):
        lambda_client.invoke.return_value = make_lambda_response(b'{"total": 13.75}')
        invoker = LambdaInvoker(lambda_client, "price-calculator")

        result = await invoker.invoke({"name": "notebook", "price": 12.5})

        assert result == {"total": 13.75}
        kwargs = lambda_client.invoke.call_args.kwargs
        assert kwargs["FunctionName"] == "price-calculator"
        assert kwargs["InvocationType"] == "RequestResponse"
        assert json.loads(kwargs["Payload"]) == {"name": "notebook", "price": 12.5}

    async def test_function_name_override(self, lambda_client, make_lambda_response):
        lambda_client.invoke.return_value = make_lambda_response(b'"ok"')
        invoker = LambdaInvoker(lambda_client, "default-fn")

        assert await invoker.invoke({}, function_name="other-fn") == "ok"
        assert lambda_client.invoke.call_args.kwargs["FunctionName"] == "other-fn"

    async def test_empty_payload_returns_none(self, lambda_client, make_lambda_response):
        lambda_client.invoke.return_value = make_lambda_response(b"")
        invoker = LambdaInvoker(lambda_client, "fn")

        assert await invoker.invoke({"name": "x", "price": 1}) is None

    async def test_function_error_raises_invocation_error(self, lambda_client, make_lambda_response):
        lambda_client.invoke.return_value = make_lambda_response(
            b'{"errorMessage": "price must be positive"}', function_error="Unhandled"
        )
        invoker = LambdaInvoker(lambda_client, "fn")

        with pytest.raises(InvocationError) as exc_info:
            await invoker.invoke({"name": "x", "price": -1})

        assert "price must be positive" in exc_info.value.detail

    async def test_client_error_raises_invocation_error(self, lambda_client):
        lambda_client.invoke.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "Function not found"}},
            "Invoke",
        )
        invoker = LambdaInvoker(lambda_client, "missing-fn")

        with pytest.raises(InvocationError) as exc_info:
            await invoker.invoke({"name": "x", "price": 1})

        assert "ResourceNotFoundException" in exc_info.value.detail

    async def test_network_error_raises_invocation_error(self, lambda_client):
        lambda_client.invoke.side_effect = EndpointConnectionError(endpoint_url="https://lambda")
        invoker = LambdaInvoker(lambda_client, "slow-fn")

        with pytest.raises(InvocationError):
            await invoker.invoke({"name": "x", "price": 1})

    async def test_invalid_json_raises_invocation_error(self, lambda_client, make_lambda_response):
        lambda_client.invoke.return_value = make_lambda_response(b"not json")
        invoker = LambdaInvoker(lambda_client, "fn")

        with pytest.raises(InvocationError):
            await invoker.invoke({"name": "x", "price": 1})

    async def test_missing_function_name_is_config_error(self, lambda_client):
        invoker = LambdaInvoker(lambda_client, None)

        with pytest.raises(ConfigError):
            await invoker.invoke({"name": "x", "price": 1})

        lambda_client.invoke.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [aiohttp.ClientPayloadError("Response payload is not completed"), asyncio.TimeoutError()],
    )
    async def test_payload_read_failure_raises_invocation_error(self, lambda_client, error):
        payload = Mock()
        payload.read = AsyncMock(side_effect=error)
        lambda_client.invoke.return_value = {"StatusCode": 200, "Payload": payload}
        invoker = LambdaInvoker(lambda_client, "fn")

        with pytest.raises(InvocationError) as exc_info:
            await invoker.invoke({"name": "x", "price": 1})

        assert exc_info.value.detail
