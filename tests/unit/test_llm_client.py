"""Unit tests for incidentfusion.clients.llm_client.

Covers:
- extract_json_object: fences, surrounding prose, trailing text, edge cases
- LLMClient.call: backend dispatch, min_max_tokens floor, failure wrapping
- LLMClient.call_with_image: Anthropic image block, Ollama images list
- LLMClient.call_json: JSON enforcement and defensive parsing
- LLMClient.from_config
"""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import pytest

from incidentfusion.clients.llm_client import JSON_ONLY_SUFFIX, LLMClient, extract_json_object
from incidentfusion.exceptions import CollaboratorUnavailable


# ── extract_json_object ──────────────────────────────────────────────────────────

class TestExtractJsonObject:
    def test_clean_object(self):
        assert extract_json_object('{"score": 0.4, "summary": "ok"}') == {"score": 0.4, "summary": "ok"}

    def test_strips_json_fence(self):
        assert extract_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_strips_plain_fence(self):
        assert extract_json_object('```\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_leading_and_trailing_prose(self):
        """Text before the first '{' and after the object is ignored."""
        text = 'Sure! {"title": "Jam {on} 101", "n": 2} Hope that helps {not json}'
        assert extract_json_object(text) == {"title": "Jam {on} 101", "n": 2}

    def test_nested_object(self):
        assert extract_json_object('{"a": {"b": {"c": 1}}}') == {"a": {"b": {"c": 1}}}

    def test_empty_and_none(self):
        assert extract_json_object("") is None
        assert extract_json_object(None) is None

    def test_no_object(self):
        assert extract_json_object("The answer is 42.") is None

    def test_truncated_object(self):
        assert extract_json_object('{"title": "cut off') is None


# ── LLMClient.call ───────────────────────────────────────────────────────────────

class TestLLMClientCall:
    def test_ollama_dispatch(self):
        client = LLMClient(backend="ollama")
        with patch.object(client, "_call_ollama", return_value="hi") as mock_ollama:
            assert client.call("sys", "prompt", max_tokens=512, temperature=0.2) == "hi"
        mock_ollama.assert_called_once_with("sys", "prompt", 512, 0.2)

    def test_anthropic_dispatch(self):
        client = LLMClient(backend="Anthropic")
        with patch.object(client, "_call_anthropic", return_value="hello") as mock_anthropic:
            assert client.call("sys", "prompt") == "hello"
        assert mock_anthropic.called

    def test_max_tokens_floor(self):
        client = LLMClient(backend="ollama", min_max_tokens=256)
        with patch.object(client, "_call_ollama", return_value="") as mock_ollama:
            client.call("sys", "prompt", max_tokens=10)
        assert mock_ollama.call_args[0][2] == 256

    def test_backend_error_wrapped(self):
        client = LLMClient(backend="ollama")
        with patch.object(client, "_call_ollama", side_effect=ConnectionError("refused")):
            with pytest.raises(CollaboratorUnavailable):
                client.call("sys", "prompt")

    def test_import_error_not_wrapped(self):
        client = LLMClient(backend="anthropic")
        with patch.object(client, "_call_anthropic", side_effect=ImportError("no anthropic")):
            with pytest.raises(ImportError):
                client.call("sys", "prompt")

    def test_ollama_chat_payload(self):
        """_call_ollama sends system and user messages with generation options."""
        client = LLMClient(backend="ollama", ollama_model="gemma3:27b")
        fake = MagicMock()
        fake.chat.return_value = MagicMock(message=MagicMock(content="pong"))
        client._ollama_client = fake

        assert client.call("sys", "ping", max_tokens=300, temperature=0.0) == "pong"
        kwargs = fake.chat.call_args.kwargs
        assert kwargs["model"] == "gemma3:27b"
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["options"] == {"num_predict": 300, "temperature": 0.0}

    def test_anthropic_messages_payload(self):
        client = LLMClient(backend="anthropic", anthropic_model="claude-sonnet-4-6")
        fake = MagicMock()
        fake.messages.create.return_value = MagicMock(content=[MagicMock(text="pong")])
        client._anthropic_client = fake

        assert client.call("sys", "ping") == "pong"
        kwargs = fake.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "ping"}]

    def test_anthropic_empty_content(self):
        client = LLMClient(backend="anthropic")
        fake = MagicMock()
        fake.messages.create.return_value = MagicMock(content=[])
        client._anthropic_client = fake
        assert client.call("sys", "ping") == ""


# ── LLMClient.call_with_image ────────────────────────────────────────────────────

class TestLLMClientCallWithImage:
    def test_anthropic_image_block(self):
        client = LLMClient(backend="anthropic")
        with patch.object(client, "_call_anthropic", return_value="{}") as mock_anthropic:
            client.call_with_image("sys", "describe", b"\xff\xd8img", mime_type="image/jpeg")

        content = mock_anthropic.call_args[0][1]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["media_type"] == "image/jpeg"
        assert base64.b64decode(content[0]["source"]["data"]) == b"\xff\xd8img"
        assert content[1] == {"type": "text", "text": "describe"}

    def test_ollama_images_list(self):
        client = LLMClient(backend="ollama")
        with patch.object(client, "_call_ollama", return_value="{}") as mock_ollama:
            client.call_with_image("sys", "describe", b"png-bytes")
        assert mock_ollama.call_args[0][4] == [b"png-bytes"]

    def test_failure_wrapped(self):
        client = LLMClient(backend="ollama")
        with patch.object(client, "_call_ollama", side_effect=TimeoutError("slow")):
            with pytest.raises(CollaboratorUnavailable):
                client.call_with_image("sys", "describe", b"x")


# ── LLMClient.call_json ──────────────────────────────────────────────────────────

class TestLLMClientCallJson:
    def test_appends_json_suffix_and_parses(self):
        client = LLMClient(backend="ollama")
        with patch.object(client, "call", return_value='```json\n{"ok": true}\n```') as mock_call:
            assert client.call_json("sys ", "prompt") == {"ok": True}
        assert mock_call.call_args[0][0] == "sys" + JSON_ONLY_SUFFIX

    def test_parse_failure_returns_none(self):
        client = LLMClient(backend="ollama")
        with patch.object(client, "call", return_value="nope"):
            assert client.call_json("sys", "prompt") is None


class TestFromConfig:
    def test_from_config(self):
        from config.settings import PipelineConfig

        cfg = PipelineConfig(llm_backend="anthropic", anthropic_model="m-1", llm_min_max_tokens=300)
        client = LLMClient.from_config(cfg)
        assert client.backend == "anthropic"
        assert client.model_name == "m-1"
        assert client.min_max_tokens == 300
