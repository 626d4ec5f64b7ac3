import unittest
from unittest.mock import MagicMock
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from jetstream_matching.models import EntityKind, VectorMatch
from jetstream_matching.services.search import SemanticSearch
from fakes import make_crew, make_offer, make_profile


class TestSemanticSearch(unittest.TestCase):

    def setUp(self):
        self.repository = MagicMock()
        self.embedder = MagicMock()
        self.embedder.encode.return_value = [0.3, 0.4]
        self.vector_store = MagicMock()
        self.search = SemanticSearch(self.repository, self.embedder, self.vector_store)

    def test_similar_offers_hydrates_and_drops_missing(self):
        self.vector_store.query.return_value = [
            VectorMatch("offer-o1", 0.9, {}),
            VectorMatch("offer-o2", 0.8, {}),
        ]
        self.repository.get_entity.side_effect = lambda kind, oid: make_offer(oid) if oid == "o1" else None

        offers = self.search.similar_offers("NYC to LAX next week", limit=2)

        self.assertEqual([o.id for o in offers], ["o1"])
        self.vector_store.query.assert_called_once_with(
            [0.3, 0.4], 2, filter={"type": "jetshare_offer"}, namespace="offers"
        )
        log = self.repository.insert_search_log.call_args[0][0]
        self.assertEqual(log["object_type"], "jetshare_offer")
        self.assertEqual(log["results_count"], 1)

    def test_failing_lookup_skipped(self):
        self.vector_store.query.return_value = [
            VectorMatch("offer-bad", 0.95, {}),
            VectorMatch("offer-o1", 0.9, {}),
        ]

        def load(kind, oid):
            if oid == "bad":
                raise KeyError("flight_date")
            return make_offer(oid)

        self.repository.get_entity.side_effect = load

        with self.assertLogs("jetstream_matching.services.search", level="WARNING"):
            offers = self.search.similar_offers("NYC to LAX")

        self.assertEqual([o.id for o in offers], ["o1"])
        self.assertEqual(self.repository.insert_search_log.call_args[0][0]["results_count"], 1)

    def test_malformed_simulation_log_skipped(self):
        self.vector_store.query.return_value = [VectorMatch("simulation-s1", 0.8, {})]
        self.repository.get_entity.return_value = {"id": "s1"}

        with self.assertLogs("jetstream_matching.services.search", level="WARNING"):
            self.assertEqual(self.search.related_simulations("pulse runs"), [])

    def test_matching_crews(self):
        self.vector_store.query.return_value = [VectorMatch("crew-c1", 0.7, {})]
        self.repository.get_entity.return_value = make_crew()

        crews = self.search.matching_crews("French speaking captain")

        self.assertEqual([c.name for c in crews], ["Sam Pilot"])
        self.repository.get_entity.assert_called_once_with(EntityKind.CREW, "c1")

    def test_suggest_offers_uses_profile_text(self):
        self.repository.get_profile.return_value = make_profile()
        self.vector_store.query.return_value = []

        self.assertEqual(self.search.suggest_offers_for_user("user-a"), [])
        query_text = self.embedder.encode.call_args[0][0]
        self.assertTrue(query_text.startswith("User Ada Lovelace."))

    def test_suggest_offers_missing_profile(self):
        self.repository.get_profile.return_value = None

        self.assertEqual(self.search.suggest_offers_for_user("ghost"), [])
        self.embedder.encode.assert_not_called()

    def test_search_all_tolerates_failing_namespace(self):
        def query(vector, top_k, filter=None, namespace=""):
            if namespace == "crews":
                raise RuntimeError("namespace unavailable")
            return [VectorMatch(f"{namespace}-hit", 0.5, {})]

        self.vector_store.query.side_effect = query

        with self.assertLogs("jetstream_matching.services.search", level="ERROR"):
            results = self.search.search_all("long weekend in Paris")

        self.assertEqual(results[EntityKind.CREW], [])
        self.assertEqual(results[EntityKind.FLIGHT][0].id, "flights-hit")
        self.assertEqual(len(results), len(EntityKind))
        self.embedder.encode.assert_called_once_with("long weekend in Paris")


if __name__ == '__main__':
    unittest.main()
