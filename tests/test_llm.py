from types import SimpleNamespace
from unittest.mock import MagicMock

import openai
import pytest

from pitext_trek.api.config import LLMConfig
from pitext_trek.api.errors import ExternalServiceError
from pitext_trek.api.llm import OpenAITextGenerator


def reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def client():
    return MagicMock()


def test_complete_sends_both_prompts(client):
    client.chat.completions.create.return_value = reply('{"city": "Paris, France"}')
    generator = OpenAITextGenerator(LLMConfig(api_key="k", model="test-model"), client=client)

    text = generator.complete("system", "user", temperature=0.2, max_tokens=100)

    assert text == '{"city": "Paris, France"}'
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["max_tokens"] == 100
    assert [m["role"] for m in kwargs["messages"]] == ["system", "user"]


@pytest.mark.parametrize("response", [reply(""), reply(None), SimpleNamespace(choices=[])])
def test_empty_response_is_external_error(client, response):
    client.chat.completions.create.return_value = response
    generator = OpenAITextGenerator(LLMConfig(api_key="k"), client=client)

    with pytest.raises(ExternalServiceError, match="No response"):
        generator.complete("s", "u", 0.2, 100)


def test_sdk_errors_are_wrapped(client):
    client.chat.completions.create.side_effect = openai.OpenAIError("rate limited")
    generator = OpenAITextGenerator(LLMConfig(api_key="k"), client=client)

    with pytest.raises(ExternalServiceError, match="rate limited") as excinfo:
        generator.complete("s", "u", 0.2, 100)
    assert excinfo.value.status_code == 503
