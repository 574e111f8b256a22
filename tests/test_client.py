"""Tests for backend payload accessors and exception mapping."""

from __future__ import annotations

from types import SimpleNamespace
import unittest

import httpx
from ollama import ResponseError

from ollama_gui.client import create_client, extract_chunk_text, map_exception
from ollama_gui.exceptions import (
    OllamaConnectionError,
    OllamaModelNotFoundError,
    OllamaStreamingError,
    WorkerDisconnectedError,
)

HOST = "http://localhost:11434"


class ExtractChunkTextTests(unittest.TestCase):
    """Validate chunk text extraction across SDK shapes."""

    def test_dict_and_object_chunks(self) -> None:
        self.assertEqual(extract_chunk_text({"message": {"content": "Hi"}}), "Hi")
        chunk = SimpleNamespace(message=SimpleNamespace(content=" there"))
        self.assertEqual(extract_chunk_text(chunk), " there")

    def test_missing_or_non_text_content(self) -> None:
        self.assertEqual(extract_chunk_text({"message": {"content": None}}), "")
        self.assertEqual(extract_chunk_text({"done": True}), "")
        self.assertEqual(extract_chunk_text({"response": "raw"}), "raw")


class MapExceptionTests(unittest.TestCase):
    """Validate translation into the domain hierarchy."""

    def test_transport_errors_map_to_connection_error(self) -> None:
        self.assertIsInstance(
            map_exception(httpx.ConnectError("refused"), host=HOST), OllamaConnectionError
        )
        self.assertIsInstance(
            map_exception(ConnectionError("refused"), host=HOST), OllamaConnectionError
        )

    def test_missing_model_maps_to_model_not_found(self) -> None:
        mapped = map_exception(
            ResponseError("model 'ghost' not found", 404), host=HOST, model="ghost"
        )
        self.assertIsInstance(mapped, OllamaModelNotFoundError)
        self.assertIn("ghost", str(mapped))

    def test_other_failures_map_to_streaming_error(self) -> None:
        self.assertIsInstance(
            map_exception(ResponseError("overloaded", 503), host=HOST), OllamaStreamingError
        )
        self.assertIsInstance(map_exception(TimeoutError(), host=HOST), OllamaStreamingError)
        self.assertIsInstance(map_exception(RuntimeError("x"), host=HOST), OllamaStreamingError)

    def test_domain_errors_pass_through(self) -> None:
        original = WorkerDisconnectedError("gone")
        self.assertIs(map_exception(original, host=HOST), original)

    def test_create_client_targets_host(self) -> None:
        client = create_client(HOST, 5)
        self.assertTrue(hasattr(client, "chat"))
        self.assertTrue(hasattr(client, "list"))


if __name__ == "__main__":
    unittest.main()
