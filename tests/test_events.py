"""Tests for hearth.services.events: listing, CRUD and RSVP capacity rules."""

import unittest
from datetime import UTC, datetime, timedelta

from hearth.core.errors import Conflict, NotFound, ValidationError
from hearth.models import Event, EventRsvp
from hearth.schemas.events import EventCreateRequest, EventUpdateRequest
from hearth.services import events as svc
from tests.support import DatabaseTestCase


class EventTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.make_user("Admin", role="admin")
        self.now = datetime.now(UTC)

    def make_event(self, title: str = "Meetup", days: int = 7, capacity: int = 0, **extra):
        body = EventCreateRequest(
            title=title,
            event_date=self.now + timedelta(days=days),
            capacity=capacity,
            **extra,
        )
        return svc.create_event(self.db, self.admin.id, body)

    def rsvp_count(self, event_id: int) -> int:
        return self.db.query(EventRsvp).filter(EventRsvp.event_id == event_id).count()


class TestRsvp(EventTestCase):
    def test_rsvp_records_attendance(self) -> None:
        event = self.make_event(capacity=5)
        user = self.make_user()
        svc.rsvp(self.db, event.id, user.id)
        status = svc.get_rsvp_status(self.db, event.id, user.id)
        self.assertTrue(status.rsvped)
        self.assertIsNotNone(status.rsvped_at)
        out = svc.get_event(self.db, event.id, user.id)
        self.assertEqual(out.attendee_count, 1)
        self.assertEqual(out.spots_remaining, 4)
        self.assertTrue(out.user_rsvped)

    def test_exactly_full_event_rejects_next(self) -> None:
        event = self.make_event(capacity=2)
        first, second, third = self.make_user(), self.make_user(), self.make_user()
        svc.rsvp(self.db, event.id, first.id)
        svc.rsvp(self.db, event.id, second.id)
        with self.assertRaises(ValidationError) as ctx:
            svc.rsvp(self.db, event.id, third.id)
        self.assertEqual(ctx.exception.message, "Event is at full capacity")
        self.assertEqual(self.rsvp_count(event.id), 2)
        self.assertEqual(svc.get_event(self.db, event.id, third.id).spots_remaining, 0)

    def test_unlimited_capacity(self) -> None:
        event = self.make_event(capacity=0)
        for _ in range(5):
            svc.rsvp(self.db, event.id, self.make_user().id)
        self.assertEqual(self.rsvp_count(event.id), 5)
        self.assertIsNone(svc.get_event(self.db, event.id, self.admin.id).spots_remaining)

    def test_duplicate_is_conflict(self) -> None:
        event = self.make_event()
        user = self.make_user()
        svc.rsvp(self.db, event.id, user.id)
        with self.assertRaises(Conflict):
            svc.rsvp(self.db, event.id, user.id)
        self.assertEqual(self.rsvp_count(event.id), 1)

    def test_duplicate_on_full_event_is_still_conflict(self) -> None:
        event = self.make_event(capacity=1)
        user = self.make_user()
        svc.rsvp(self.db, event.id, user.id)
        with self.assertRaises(Conflict):
            svc.rsvp(self.db, event.id, user.id)

    def test_past_event_rejected(self) -> None:
        event = self.make_event(days=-1)
        with self.assertRaises(ValidationError) as ctx:
            svc.rsvp(self.db, event.id, self.make_user().id)
        self.assertEqual(ctx.exception.message, "Cannot RSVP to past events")

    def test_cancelled_event_rejected(self) -> None:
        event = self.make_event(status="cancelled")
        with self.assertRaises(ValidationError):
            svc.rsvp(self.db, event.id, self.make_user().id)
        self.assertEqual(self.rsvp_count(event.id), 0)

    def test_missing_event(self) -> None:
        with self.assertRaises(NotFound):
            svc.rsvp(self.db, 404, self.admin.id)

    def test_cancel_frees_a_spot(self) -> None:
        event = self.make_event(capacity=1)
        first, second = self.make_user(), self.make_user()
        svc.rsvp(self.db, event.id, first.id)
        svc.cancel_rsvp(self.db, event.id, first.id)
        svc.rsvp(self.db, event.id, second.id)
        self.assertEqual(self.rsvp_count(event.id), 1)

    def test_cancel_without_rsvp_is_not_found(self) -> None:
        event = self.make_event()
        with self.assertRaises(NotFound):
            svc.cancel_rsvp(self.db, event.id, self.admin.id)

    def test_attendees_listed(self) -> None:
        event = self.make_event()
        user = self.make_user("Zed")
        svc.rsvp(self.db, event.id, user.id)
        attendees = svc.list_attendees(self.db, event.id)
        self.assertEqual([(a.id, a.full_name) for a in attendees], [(user.id, "Zed")])


class TestEventCrud(EventTestCase):
    def test_create_strips_and_defaults(self) -> None:
        event = self.make_event(title="  Picnic  ", location=" Park ")
        self.assertEqual(event.title, "Picnic")
        self.assertEqual(event.location, "Park")
        self.assertEqual(event.status, "active")
        self.assertEqual(event.created_by, self.admin.id)

    def test_blank_title_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.make_event(title="   ")

    def test_update_partial(self) -> None:
        event = self.make_event(capacity=3)
        updated = svc.update_event(self.db, event.id, EventUpdateRequest(capacity=10))
        self.assertEqual(updated.capacity, 10)
        self.assertEqual(updated.title, "Meetup")
        self.assertIsNotNone(updated.updated_at)

    def test_update_nothing_rejected(self) -> None:
        event = self.make_event()
        with self.assertRaises(ValidationError):
            svc.update_event(self.db, event.id, EventUpdateRequest())

    def test_delete_removes_rsvps(self) -> None:
        event_id = self.make_event().id
        svc.rsvp(self.db, event_id, self.make_user().id)
        svc.delete_event(self.db, event_id)
        self.db.expire_all()
        self.assertEqual(self.rsvp_count(event_id), 0)
        self.assertIsNone(self.db.get(Event, event_id))
        with self.assertRaises(NotFound):
            svc.get_event(self.db, event_id, self.admin.id)


class TestListEvents(EventTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.past = self.make_event("Old talk", days=-3)
        self.soon = self.make_event("Soon workshop", days=1, location="Library")
        self.later = self.make_event("Later party", days=30, status="cancelled")

    def titles(self, **kwargs) -> list[str]:
        events, _ = svc.list_events(self.db, self.admin.id, now=self.now, **kwargs)
        return [e.title for e in events]

    def test_default_sort_is_date_desc(self) -> None:
        self.assertEqual(self.titles(), ["Later party", "Soon workshop", "Old talk"])

    def test_status_filters(self) -> None:
        self.assertEqual(self.titles(status="upcoming", sort_order="asc"), ["Soon workshop", "Later party"])
        self.assertEqual(self.titles(status="past"), ["Old talk"])
        self.assertEqual(self.titles(status="cancelled"), ["Later party"])
        self.assertEqual(len(self.titles(status="active")), 2)

    def test_search_matches_location(self) -> None:
        self.assertEqual(self.titles(search="library"), ["Soon workshop"])

    def test_pagination(self) -> None:
        events, total = svc.list_events(self.db, self.admin.id, page=2, limit=2, now=self.now)
        self.assertEqual(total, 3)
        self.assertEqual(len(events), 1)
        self.assertEqual(svc.total_pages(total, 2), 2)

    def test_is_past_flag(self) -> None:
        events, _ = svc.list_events(self.db, self.admin.id, search="Old", now=self.now)
        self.assertTrue(events[0].is_past)


class TestAsUtc(unittest.TestCase):
    def test_naive_treated_as_utc(self) -> None:
        naive = datetime(2026, 1, 1, 12, 0)
        self.assertEqual(svc.as_utc(naive), datetime(2026, 1, 1, 12, 0, tzinfo=UTC))
        self.assertIsNone(svc.as_utc(None))


if __name__ == "__main__":
    unittest.main()
