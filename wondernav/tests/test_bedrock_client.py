from functools import partial
from unittest import mock

import pytest
from botocore.exceptions import EndpointConnectionError, ReadTimeoutError
from botocore.stub import Stubber

from wondernav.errors import UpstreamError, UpstreamTimeoutError
from wondernav.models.bedrock_client import BedrockCompletionClient, create_bedrock_runtime

MODEL = "us.anthropic.claude-3-5-haiku-20241022-v1:0"


def _converse_response(content):
    return {
        "output": {"message": {"role": "assistant", "content": content}},
        "stopReason": "end_turn",
        "usage": {"inputTokens": 60, "outputTokens": 12, "totalTokens": 72},
        "metrics": {"latencyMs": 420},
    }


@pytest.fixture
def bedrock():
    client = create_bedrock_runtime("us-east-1", 25)
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _client(runtime, **kwargs):
    return BedrockCompletionClient(runtime, model_id=MODEL, system_prompt="Be a travel agent.", **kwargs)


def test_complete_sends_system_prompt_and_input(bedrock):
    runtime, stubber = bedrock
    stubber.add_response("converse", _converse_response([{"text": "Day 1: Fushimi Inari..."}]), {
        "modelId": MODEL,
        "messages": [{"role": "user", "content": [{"text": "3 days in Kyoto"}]}],
        "system": [{"text": "Be a travel agent."}],
        "inferenceConfig": {"maxTokens": 900, "temperature": 0.7},
    })

    assert _client(runtime).complete("3 days in Kyoto", timeout_s=25) == "Day 1: Fushimi Inari..."


def test_complete_joins_text_blocks(bedrock):
    runtime, stubber = bedrock
    stubber.add_response("converse", _converse_response([{"text": "Day 1: "}, {"text": "Gion"}]))

    assert _client(runtime).complete("3 days in Kyoto", timeout_s=25) == "Day 1: Gion"


def test_empty_output_is_upstream_error(bedrock):
    runtime, stubber = bedrock
    stubber.add_response("converse", _converse_response([]))

    with pytest.raises(UpstreamError, match="no text"):
        _client(runtime).complete("3 days in Kyoto", timeout_s=25)


def test_service_error_is_upstream_error(bedrock):
    runtime, stubber = bedrock
    stubber.add_client_error("converse", service_error_code="ThrottlingException", http_status_code=429)

    with pytest.raises(UpstreamError, match="ThrottlingException") as excinfo:
        _client(runtime).complete("3 days in Kyoto", timeout_s=25)
    assert not isinstance(excinfo.value, UpstreamTimeoutError)


def test_read_timeout_is_upstream_timeout():
    runtime = mock.Mock()
    runtime.converse.side_effect = ReadTimeoutError(endpoint_url="https://bedrock-runtime.us-east-1.amazonaws.com")

    with pytest.raises(UpstreamTimeoutError):
        _client(runtime).complete("3 days in Kyoto", timeout_s=25)


def test_connection_failure_is_upstream_error():
    runtime = mock.Mock()
    runtime.converse.side_effect = EndpointConnectionError(endpoint_url="https://bedrock-runtime.us-east-1.amazonaws.com")

    with pytest.raises(UpstreamError, match="unreachable"):
        _client(runtime).complete("3 days in Kyoto", timeout_s=25)


def test_malformed_response_is_upstream_error():
    runtime = mock.Mock()
    runtime.converse.return_value = {"output": {}}

    with pytest.raises(UpstreamError, match="malformed"):
        _client(runtime).complete("3 days in Kyoto", timeout_s=25)


def test_max_tokens_clamped_to_model_limit():
    assert _client(mock.Mock(), max_tokens=100000).max_tokens == 4096


def test_runtime_client_does_not_retry():
    runtime = create_bedrock_runtime("us-east-1", 12)
    assert runtime.meta.config.retries["total_max_attempts"] == 1
    assert runtime.meta.config.read_timeout == 12


class TestPerCallTimeout:
    @pytest.fixture
    def client(self):
        shared = create_bedrock_runtime("us-east-1", 25)
        return _client(shared, read_timeout=25,
                       runtime_factory=partial(create_bedrock_runtime, "us-east-1"))

    def test_short_budget_uses_shorter_read_timeout(self, client):
        runtime = client.runtime_for(2.4)
        assert runtime is not client.bedrock
        assert runtime.meta.config.read_timeout == 2
        assert runtime.meta.config.connect_timeout == 2

    def test_short_runtime_is_reused(self, client):
        assert client.runtime_for(3.2) is client.runtime_for(3.9)

    def test_sub_second_budget_gets_one_second(self, client):
        assert client.runtime_for(0.3).meta.config.read_timeout == 1

    def test_full_budget_uses_shared_client(self, client):
        assert client.runtime_for(25) is client.bedrock
        assert client.runtime_for(40) is client.bedrock

    def test_complete_calls_runtime_for_budget(self):
        shared, short = mock.Mock(), mock.Mock()
        short.converse.return_value = {"output": {"message": {"content": [{"text": "Day 1: Gion"}]}}}
        factory = mock.Mock(return_value=short)
        client = _client(shared, read_timeout=25, runtime_factory=factory)

        assert client.complete("3 days in Kyoto", timeout_s=4.5) == "Day 1: Gion"

        factory.assert_called_once_with(4)
        shared.converse.assert_not_called()
