"""Tests for hearth.services.analytics: dashboard analytics, engagement and activity feeds."""

import unittest
from datetime import UTC, datetime, timedelta

from hearth.core.errors import NotFound
from hearth.models import (
    Conversation,
    ConversationParticipant,
    Event,
    EventRsvp,
    Message,
    Resource,
)
from hearth.services import analytics
from tests.support import DatabaseTestCase


class TestEngagementFormula(unittest.TestCase):
    def test_weighted_components(self) -> None:
        score = analytics.engagement_score(
            events_attended=1,
            recent_events=1,
            resources_uploaded=1,
            recent_uploads=1,
            messages_sent=5,
            conversations_participated=1,
            recent_messages=5,
            profile=100,
        )
        # events 8.0 + resources 7.5 + messaging 2.4 + profile 10.0
        self.assertAlmostEqual(score, 27.9, places=2)

    def test_download_and_message_terms_are_capped(self) -> None:
        many = analytics.engagement_score(
            total_downloads=1000, messages_sent=1000, conversations_participated=50
        )
        self.assertAlmostEqual(many, 20 * 0.3 + (20 + 10) * 0.2, places=2)

    def test_total_is_capped_at_100(self) -> None:
        self.assertEqual(analytics.engagement_score(events_attended=20, recent_events=20), 100.0)

    def test_levels(self) -> None:
        self.assertEqual(analytics.engagement_level(80), "Highly Engaged")
        self.assertEqual(analytics.engagement_level(79.99), "Moderately Engaged")
        self.assertEqual(analytics.engagement_level(60), "Moderately Engaged")
        self.assertEqual(analytics.engagement_level(30), "Lightly Engaged")
        self.assertEqual(analytics.engagement_level(29.99), "Inactive")
        self.assertEqual(analytics.engagement_level(0), "Inactive")


class AnalyticsTestCase(DatabaseTestCase):
    """Alice is active and Bob only RSVPs. Pat is pending; the admin never counts as a member."""

    def setUp(self) -> None:
        super().setUp()
        self.now = datetime.now(UTC)
        self.admin = self.make_user("Admin", role="admin")
        self.alice = self.make_user("Alice", email="alice@example.com")
        self.alice.bio = "Gardener"
        self.alice.skills = "compost"
        self.bob = self.make_user("Bob", email="bob@example.com")
        self.pat = self.make_user("Pat", status="pending")

        self.upcoming = Event(
            title="Meetup", event_date=self.now + timedelta(days=5), location="Hall"
        )
        self.past = Event(title="Picnic", event_date=self.now - timedelta(days=3), location="Park")
        self.db.add_all([self.upcoming, self.past])
        self.db.flush()
        self.db.add_all(
            [
                EventRsvp(
                    event_id=self.upcoming.id,
                    user_id=self.alice.id,
                    created_at=self.now - timedelta(hours=3),
                ),
                EventRsvp(event_id=self.upcoming.id, user_id=self.bob.id),
                EventRsvp(event_id=self.past.id, user_id=self.bob.id),
            ]
        )
        self.handbook = Resource(
            title="Handbook",
            storage_key="a" * 32,
            original_name="handbook.pdf",
            size_bytes=10,
            download_count=10,
            uploaded_by=self.alice.id,
            uploaded_at=self.now - timedelta(hours=2),
        )
        self.team = Conversation(type="group", name="Team", created_by=self.alice.id)
        self.db.add_all([self.handbook, self.team])
        self.db.flush()
        self.db.add_all(
            [
                ConversationParticipant(conversation_id=self.team.id, user_id=self.alice.id),
                ConversationParticipant(conversation_id=self.team.id, user_id=self.bob.id),
            ]
        )
        for minutes in range(5):
            self.db.add(
                Message(
                    conversation_id=self.team.id,
                    sender_id=self.alice.id,
                    content=f"note {minutes}",
                    sent_at=self.now - timedelta(minutes=60 - minutes),
                )
            )
        self.db.commit()


class TestDashboardAnalytics(AnalyticsTestCase):
    def test_counts(self) -> None:
        out = analytics.analytics(self.db, now=self.now)
        self.assertEqual(
            [(s.status, s.count) for s in out.member_stats], [("pending", 1), ("approved", 2)]
        )
        self.assertEqual(out.event_stats.total_events, 2)
        self.assertEqual(out.event_stats.upcoming_events, 1)
        self.assertEqual(out.event_stats.past_events, 1)
        self.assertEqual(out.attendance_stats.total_rsvps, 3)
        self.assertEqual(out.attendance_stats.unique_attendees, 2)
        self.assertEqual(out.attendance_stats.events_with_rsvps, 2)

    def test_trends(self) -> None:
        out = analytics.analytics(self.db, now=self.now)
        self.assertEqual(sum(t.registrations for t in out.registration_trends), 3)
        self.assertEqual(sum(t.total_attendance for t in out.attendance_trends), 3)
        months = [t.month for t in out.attendance_trends]
        self.assertEqual(months, sorted(months))

    def test_active_members_ranked_by_total_activity(self) -> None:
        out = analytics.analytics(self.db, now=self.now)
        ranked = [
            (m.full_name, m.events_attended, m.resources_uploaded, m.messages_sent)
            for m in out.active_members
        ]
        self.assertEqual(ranked, [("Alice", 1, 1, 5), ("Bob", 2, 0, 0)])


class TestRecentActivity(AnalyticsTestCase):
    def test_feed_merges_sources(self) -> None:
        descriptions = {item.description for item in analytics.recent_activity(self.db, limit=50)}
        self.assertIn("Alice registered", descriptions)
        self.assertIn("Pat registered", descriptions)
        self.assertIn("Alice attended Meetup", descriptions)
        self.assertIn("Bob attended Picnic", descriptions)
        self.assertIn("Alice uploaded Handbook", descriptions)
        self.assertNotIn("Admin registered", descriptions)

    def test_feed_is_newest_first_and_limited(self) -> None:
        items = analytics.recent_activity(self.db, limit=2)
        self.assertEqual(len(items), 2)
        self.assertGreaterEqual(items[0].activity_date, items[1].activity_date)


class TestEngagementScores(AnalyticsTestCase):
    def test_scores_approved_members_only(self) -> None:
        out = analytics.engagement_scores(self.db, now=self.now)
        self.assertEqual([m.full_name for m in out.engagement_scores], ["Alice", "Bob"])

        alice = out.engagement_scores[0]
        self.assertEqual(alice.events_attended, 1)
        self.assertEqual(alice.recent_events, 1)
        self.assertEqual(alice.total_downloads, 10)
        self.assertEqual(alice.conversations_participated, 1)
        self.assertEqual(alice.recent_messages, 5)
        self.assertEqual(alice.profile_score, 100)
        # events 8.0 + resources 8.1 + messaging 2.4 + profile 10.0
        self.assertAlmostEqual(alice.engagement_score, 28.5, places=2)
        self.assertEqual(alice.engagement_level, "Inactive")

        bob = out.engagement_scores[1]
        self.assertEqual(bob.events_attended, 2)
        self.assertEqual(bob.recent_events, 2)

    def test_old_events_are_not_recent(self) -> None:
        old = Event(title="Archive", event_date=self.now - timedelta(days=90))
        self.db.add(old)
        self.db.flush()
        self.db.add(EventRsvp(event_id=old.id, user_id=self.alice.id))
        self.db.commit()
        alice = analytics.engagement_scores(self.db, now=self.now).engagement_scores[0]
        self.assertEqual(alice.events_attended, 2)
        self.assertEqual(alice.recent_events, 1)

    def test_statistics_cover_every_member_beyond_limit(self) -> None:
        out = analytics.engagement_scores(self.db, limit=1, now=self.now)
        self.assertEqual(len(out.engagement_scores), 1)
        stats = out.statistics
        self.assertEqual(stats.total_members, 2)
        self.assertAlmostEqual(stats.max_engagement, 28.5, places=2)
        # Bob: two recent events only
        self.assertAlmostEqual(stats.min_engagement, 16.0, places=2)
        self.assertAlmostEqual(stats.avg_engagement, 22.25, places=2)
        self.assertEqual(stats.inactive, 2)
        self.assertEqual(stats.highly_engaged, 0)

    def test_no_approved_members(self) -> None:
        for user in (self.alice, self.bob):
            user.status = "rejected"
        self.db.commit()
        out = analytics.engagement_scores(self.db, now=self.now)
        self.assertEqual(out.engagement_scores, [])
        self.assertIsNone(out.statistics.avg_engagement)
        self.assertEqual(out.statistics.total_members, 0)


class TestMemberReports(AnalyticsTestCase):
    def test_list_excludes_admins_and_counts_activity(self) -> None:
        members, total = analytics.list_members(self.db, sort_by="full_name", sort_order="asc")
        self.assertEqual(total, 3)
        self.assertEqual([m.full_name for m in members], ["Alice", "Bob", "Pat"])
        self.assertEqual((members[1].events_attended, members[1].resources_uploaded), (2, 0))
        self.assertEqual((members[0].events_attended, members[0].resources_uploaded), (1, 1))

    def test_list_filters_and_pages(self) -> None:
        members, total = analytics.list_members(self.db, status="pending")
        self.assertEqual((total, [m.full_name for m in members]), (1, ["Pat"]))

        members, total = analytics.list_members(self.db, search="BOB@")
        self.assertEqual([m.full_name for m in members], ["Bob"])

        members, total = analytics.list_members(
            self.db, page=2, limit=2, sort_by="full_name", sort_order="asc"
        )
        self.assertEqual(total, 3)
        self.assertEqual([m.full_name for m in members], ["Pat"])
        self.assertEqual(analytics.total_pages(total, 2), 2)

    def test_detail(self) -> None:
        detail = analytics.member_detail(self.db, self.bob.id)
        self.assertEqual(detail.member.id, self.bob.id)
        self.assertEqual([e.title for e in detail.events_attended], ["Meetup", "Picnic"])
        self.assertEqual(detail.resources_uploaded, [])
        self.assertEqual(detail.activity_summary.events_count, 2)

        detail = analytics.member_detail(self.db, self.alice.id)
        self.assertEqual(detail.messages_sent, 5)
        self.assertEqual([r.title for r in detail.resources_uploaded], ["Handbook"])

    def test_detail_of_admin_or_missing_is_not_found(self) -> None:
        with self.assertRaises(NotFound):
            analytics.member_detail(self.db, self.admin.id)
        with self.assertRaises(NotFound):
            analytics.member_detail(self.db, 4242)


class TestUserActivity(AnalyticsTestCase):
    def test_newest_first(self) -> None:
        items = analytics.user_activity(self.db, self.alice.id)
        self.assertEqual(len(items), 7)
        self.assertEqual(items[0].description, "Sent message in: Team")
        self.assertEqual(items[0].type, "message_sent")
        self.assertEqual(
            [(i.type, i.description) for i in items[-2:]],
            [
                ("resource_upload", "Uploaded resource: Handbook"),
                ("event_attendance", "Attended event: Meetup"),
            ],
        )

    def test_limit_keeps_newest(self) -> None:
        items = analytics.user_activity(self.db, self.alice.id, limit=2)
        self.assertEqual([i.type for i in items], ["message_sent", "message_sent"])

    def test_direct_conversation_has_generic_name(self) -> None:
        direct = Conversation(type="direct", created_by=self.bob.id)
        self.db.add(direct)
        self.db.flush()
        self.db.add(Message(conversation_id=direct.id, sender_id=self.bob.id, content="hey"))
        self.db.commit()
        descriptions = [i.description for i in analytics.user_activity(self.db, self.bob.id)]
        self.assertIn("Sent message in: conversation", descriptions)
        self.assertIn("Attended event: Picnic", descriptions)

    def test_other_users_activity_is_excluded(self) -> None:
        self.assertEqual(analytics.user_activity(self.db, self.pat.id), [])


if __name__ == "__main__":
    unittest.main()
