import unittest
from unittest.mock import patch, MagicMock
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from jetstream_matching.config import Settings
from jetstream_matching.exceptions import ConfigurationError, EmbeddingFailure
from jetstream_matching.services.embeddings import (
    COHERE_API_ENDPOINT,
    CohereProvider,
    EmbeddingClient,
    OpenAIProvider,
    calculate_similarity,
)


def _provider(name, vectors=None, error=None):
    provider = MagicMock()
    provider.name = name
    if error is not None:
        provider.embed.side_effect = error
    else:
        provider.embed.return_value = vectors
    return provider


class TestEmbeddingClient(unittest.TestCase):

    def test_fallback_not_used_when_primary_succeeds(self):
        for text in ("", "Flight from TEB to CDG"):
            primary = _provider("cohere", [[0.1, 0.2]])
            fallback = _provider("openai", [[0.9, 0.9]])
            client = EmbeddingClient(primary, fallback)

            vector, provider = client.encode_with_provider(text)

            self.assertEqual(vector, [0.1, 0.2])
            self.assertEqual(provider, "cohere")
            primary.embed.assert_called_once_with([text])
            fallback.embed.assert_not_called()

    def test_fallback_used_when_primary_raises(self):
        for text in ("", "Flight from TEB to CDG"):
            primary = _provider("cohere", error=RuntimeError("Cohere API error: 500"))
            fallback = _provider("openai", [[0.9, 0.9]])
            client = EmbeddingClient(primary, fallback)

            self.assertEqual(client.encode(text), [0.9, 0.9])
            fallback.embed.assert_called_once_with([text])

    def test_both_providers_failing_raises_embedding_failure(self):
        primary_error = RuntimeError("primary down")
        fallback_error = RuntimeError("fallback down")
        client = EmbeddingClient(
            _provider("cohere", error=primary_error),
            _provider("openai", error=fallback_error),
        )

        with self.assertRaises(EmbeddingFailure) as ctx:
            client.encode("text")

        self.assertEqual(ctx.exception.stage, "fallback")
        self.assertEqual(ctx.exception.provider, "openai")
        self.assertIs(ctx.exception.cause, primary_error)
        self.assertIs(ctx.exception.fallback_error, fallback_error)
        self.assertIn("primary down", str(ctx.exception))
        self.assertIn("fallback down", str(ctx.exception))

    def test_no_fallback_configured(self):
        client = EmbeddingClient(_provider("cohere", error=RuntimeError("boom")))

        with self.assertRaises(EmbeddingFailure) as ctx:
            client.encode("text")

        self.assertEqual(ctx.exception.stage, "primary")

    def test_batch_encode_empty_makes_no_call(self):
        primary = _provider("cohere", [[0.1]])
        fallback = _provider("openai", [[0.2]])
        client = EmbeddingClient(primary, fallback)

        self.assertEqual(client.batch_encode([]), [])
        primary.embed.assert_not_called()
        fallback.embed.assert_not_called()

    def test_batch_encode_single_primary_call(self):
        primary = _provider("cohere", [[0.1], [0.2], [0.3]])
        client = EmbeddingClient(primary)

        self.assertEqual(client.batch_encode(["a", "b", "c"]), [[0.1], [0.2], [0.3]])
        primary.embed.assert_called_once_with(["a", "b", "c"])

    def test_batch_encode_failure(self):
        fallback = _provider("openai", [[0.2]])
        client = EmbeddingClient(_provider("cohere", error=RuntimeError("boom")), fallback)

        with self.assertRaises(EmbeddingFailure) as ctx:
            client.batch_encode(["a"])

        self.assertEqual(ctx.exception.stage, "batch")
        fallback.embed.assert_not_called()

    def test_from_settings_without_openai_key_has_no_fallback(self):
        client = EmbeddingClient.from_settings(Settings(cohere_api_key="ck"))

        self.assertIsInstance(client.primary, CohereProvider)
        self.assertIsNone(client.fallback)


class TestProviders(unittest.TestCase):

    def test_cohere_requires_key(self):
        with self.assertRaises(ConfigurationError):
            CohereProvider(None)

    def test_cohere_posts_texts_and_model(self):
        session = MagicMock()
        session.post.return_value = MagicMock(status_code=200)
        session.post.return_value.json.return_value = {"embeddings": [[0.1, 0.2]]}
        provider = CohereProvider("ck", session=session)

        self.assertEqual(provider.embed(["hello"]), [[0.1, 0.2]])

        args, kwargs = session.post.call_args
        self.assertEqual(args[0], COHERE_API_ENDPOINT)
        self.assertEqual(kwargs["json"]["texts"], ["hello"])
        self.assertEqual(kwargs["json"]["model"], "embed-english-v3.0")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer ck")

    def test_cohere_http_error_raises(self):
        session = MagicMock()
        session.post.return_value = MagicMock(status_code=429, text="rate limited")
        provider = CohereProvider("ck", session=session)

        with self.assertRaises(RuntimeError):
            provider.embed(["hello"])

    def test_openai_requests_fixed_dimensions_and_orders_results(self):
        client = MagicMock()
        client.embeddings.create.return_value = MagicMock(
            data=[MagicMock(index=1, embedding=[0.2]), MagicMock(index=0, embedding=[0.1])]
        )
        provider = OpenAIProvider(client=client, dimensions=1024)

        self.assertEqual(provider.embed(["a", "b"]), [[0.1], [0.2]])
        kwargs = client.embeddings.create.call_args[1]
        self.assertEqual(kwargs["dimensions"], 1024)
        self.assertEqual(kwargs["model"], "text-embedding-3-large")

    @patch('jetstream_matching.services.embeddings.get_openai')
    def test_openai_uses_singleton_client_by_default(self, mock_get_openai):
        OpenAIProvider("sk-test")
        mock_get_openai.assert_called_once_with("sk-test")


class TestSimilarity(unittest.TestCase):

    def test_identical_vectors(self):
        self.assertAlmostEqual(calculate_similarity([1, 2, 3], [1, 2, 3]), 1.0)

    def test_orthogonal_vectors(self):
        self.assertAlmostEqual(calculate_similarity([1, 0], [0, 1]), 0.0)

    def test_zero_vector(self):
        self.assertEqual(calculate_similarity([0, 0], [1, 1]), 0.0)

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            calculate_similarity([1, 2], [1, 2, 3])


if __name__ == '__main__':
    unittest.main()
