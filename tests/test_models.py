import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from jetstream_matching.exceptions import InvalidStatusTransition
from jetstream_matching.models import EntityKind, Jet, OfferStatus, Preferences
from fakes import make_offer


class TestOfferTransitions(unittest.TestCase):

    def test_open_to_accepted_records_match(self):
        offer = make_offer()

        offer.transition(OfferStatus.ACCEPTED, matched_user_id="user-b")

        self.assertEqual(offer.status, OfferStatus.ACCEPTED)
        self.assertEqual(offer.matched_user_id, "user-b")

    def test_full_lifecycle(self):
        offer = make_offer()
        offer.transition("accepted", matched_user_id="user-b")
        offer.transition(OfferStatus.COMPLETED)

        self.assertEqual(offer.status, OfferStatus.COMPLETED)
        with self.assertRaises(InvalidStatusTransition):
            offer.transition(OfferStatus.CANCELLED)

    def test_accept_requires_other_user(self):
        offer = make_offer(user_id="user-a")

        with self.assertRaises(InvalidStatusTransition):
            offer.transition(OfferStatus.ACCEPTED)
        with self.assertRaises(InvalidStatusTransition):
            offer.transition(OfferStatus.ACCEPTED, matched_user_id="user-a")
        self.assertEqual(offer.status, OfferStatus.OPEN)

    def test_open_cannot_complete(self):
        with self.assertRaises(InvalidStatusTransition):
            make_offer().transition(OfferStatus.COMPLETED)

    def test_cancel_from_open_and_accepted(self):
        offer = make_offer()
        offer.transition(OfferStatus.CANCELLED)
        self.assertEqual(offer.status, OfferStatus.CANCELLED)

        accepted = make_offer(status=OfferStatus.ACCEPTED, matched_user_id="user-b")
        accepted.transition(OfferStatus.CANCELLED)
        self.assertEqual(accepted.status, OfferStatus.CANCELLED)


class TestEntityKind(unittest.TestCase):

    def test_record_ids(self):
        self.assertEqual(EntityKind.FLIGHT.record_id("123"), "flight-123")
        self.assertEqual(EntityKind.JETSHARE_OFFER.record_id("9"), "offer-9")
        self.assertEqual(EntityKind.USER.entity_id("user-abc"), "abc")
        self.assertEqual(EntityKind.CREW.entity_id("plain-id"), "plain-id")


class TestRowParsing(unittest.TestCase):

    def test_preferences_from_row(self):
        prefs = Preferences.from_row({"trip_types": "business", "budget_range": {"min": "1000"}})

        self.assertEqual(prefs.trip_types, ["business"])
        self.assertEqual(prefs.budget_min, 1000.0)
        self.assertIsNone(prefs.budget_max)
        self.assertEqual(Preferences.from_row(None).preferred_destinations, [])

    def test_jet_amenities_list_or_map(self):
        self.assertEqual(Jet.from_row({"amenities": ["wifi", ""]}).amenities, ["wifi"])
        self.assertEqual(Jet.from_row({"amenities": {"wifi": True, "bar": False}}).amenities, ["wifi"])


if __name__ == '__main__':
    unittest.main()
