import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from api_probe.config import DEFAULT_MODEL
from api_probe.llm import LlmClient


def _completion(content):
    mock_resp = MagicMock()
    mock_resp.choices = [MagicMock()]
    mock_resp.choices[0].message.content = content
    return mock_resp


class TestLlmClient:
    def test_default_model(self):
        client = LlmClient()
        assert client.model == DEFAULT_MODEL

    def test_custom_model(self):
        client = LlmClient(model="gpt-4o")
        assert client.model == "gpt-4o"

    @patch("api_probe.llm.acompletion", new_callable=AsyncMock)
    def test_call_returns_content(self, mock_acompletion):
        mock_acompletion.return_value = _completion("test response")

        client = LlmClient(model="gpt-4o")
        result = asyncio.run(client.call(system="You are helpful.", user="Hello"))
        assert result == "test response"
        mock_acompletion.assert_awaited_once()

    @patch("api_probe.llm.acompletion", new_callable=AsyncMock)
    def test_call_passes_model_and_messages(self, mock_acompletion):
        mock_acompletion.return_value = _completion("ok")

        client = LlmClient(model="claude-sonnet-4-20250514")
        asyncio.run(client.call(system="sys", user="usr"))

        call_kwargs = mock_acompletion.call_args[1]
        assert call_kwargs["model"] == "claude-sonnet-4-20250514"
        messages = call_kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "sys"}
        assert messages[1] == {"role": "user", "content": "usr"}

    @patch("api_probe.llm.acompletion", new_callable=AsyncMock)
    def test_none_content_becomes_empty_string(self, mock_acompletion):
        mock_acompletion.return_value = _completion(None)
        assert asyncio.run(LlmClient().call(system="s", user="u")) == ""
