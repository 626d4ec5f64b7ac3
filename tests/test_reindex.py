import unittest
from unittest.mock import patch, MagicMock
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from jetstream_matching.config import Settings
from jetstream_matching.exceptions import EmbeddingFailure
from jetstream_matching.models import EntityKind
from jetstream_matching.services.vector_store import PineconeVectorStore
from jetstream_matching.workflows import reindex
from fakes import FakePineconeIndex, make_flight


class TestReindexWorkflow(unittest.TestCase):

    def setUp(self):
        self.repository = MagicMock()
        self.embedder = MagicMock()
        self.embedder.batch_encode.side_effect = lambda texts: [[float(i + 1), 1.0] for i in range(len(texts))]
        self.index = FakePineconeIndex()
        self.vector_store = PineconeVectorStore(self.index)

    def _run(self, **kwargs):
        return reindex.run(
            settings=Settings(),
            repository=self.repository,
            embedder=self.embedder,
            vector_store=self.vector_store,
            **kwargs,
        )

    def test_batches_and_upserts(self):
        ids = ["f1", "f2", "f3", "f4", "f5"]
        self.repository.list_entity_ids.return_value = ids
        self.repository.get_entity.side_effect = lambda kind, fid: make_flight(fid)

        stats = self._run(kinds=[EntityKind.FLIGHT], batch_size=2)

        self.assertEqual(stats, {"found": 5, "missing": 0, "indexed": 5, "failed": 0})
        self.assertEqual(self.embedder.batch_encode.call_count, 3)
        self.assertEqual(sorted(self.index.namespaces["flights"]), [f"flight-{i}" for i in ids])

    def test_missing_entities_skipped(self):
        self.repository.list_entity_ids.return_value = ["f1", "gone"]
        self.repository.get_entity.side_effect = lambda kind, fid: make_flight(fid) if fid == "f1" else None

        stats = self._run(kinds=["flight"])

        self.assertEqual(stats["missing"], 1)
        self.assertEqual(stats["indexed"], 1)
        self.embedder.batch_encode.assert_called_once()
        self.assertEqual(len(self.embedder.batch_encode.call_args[0][0]), 1)

    def test_failed_batch_counted_and_run_continues(self):
        self.repository.list_entity_ids.return_value = ["f1", "f2", "f3"]
        self.repository.get_entity.side_effect = lambda kind, fid: make_flight(fid)
        outcomes = [EmbeddingFailure("boom", provider="cohere", stage="batch"), [[1.0, 0.0]]]

        def batch_encode(texts):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        self.embedder.batch_encode.side_effect = batch_encode

        stats = self._run(kinds=[EntityKind.FLIGHT], batch_size=2)

        self.assertEqual(stats["failed"], 2)
        self.assertEqual(stats["indexed"], 1)
        self.assertEqual(list(self.index.namespaces["flights"]), ["flight-f3"])

    def test_all_kinds_by_default(self):
        self.repository.list_entity_ids.return_value = []

        stats = self._run()

        self.assertEqual(stats["found"], 0)
        self.assertEqual(
            [c[0][0] for c in self.repository.list_entity_ids.call_args_list],
            list(EntityKind),
        )
        self.embedder.batch_encode.assert_not_called()

    def test_invalid_batch_size(self):
        with self.assertRaises(ValueError):
            self._run(batch_size=0)

    @patch('jetstream_matching.workflows.reindex.build_vector_store')
    @patch('jetstream_matching.workflows.reindex.EmbeddingClient')
    @patch('jetstream_matching.workflows.reindex.get_database')
    def test_collaborators_built_from_settings(self, mock_get_database, mock_client_cls, mock_build_store):
        mock_get_database.return_value.__getitem__.return_value.find.return_value = []
        settings = Settings(mongodb_uri="mongodb://db:27017", mongodb_database="jetstream_test")

        reindex.run(kinds=[EntityKind.CREW], settings=settings)

        mock_get_database.assert_called_once_with("jetstream_test", "mongodb://db:27017")
        mock_client_cls.from_settings.assert_called_once_with(settings)
        mock_build_store.assert_called_once_with(settings)


if __name__ == '__main__':
    unittest.main()
