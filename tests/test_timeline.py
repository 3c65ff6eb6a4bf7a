from datetime import datetime, timedelta, timezone

from conftest import parse_ts

from countie.schemas import CountdownCreate
from countie.timeline import EMPTY_CAPTION, build_timeline

NOW = datetime(2025, 1, 6, tzinfo=timezone.utc)


def holiday(repo, name="Holiday", target=datetime(2025, 1, 11, tzinfo=timezone.utc)):
    return repo.create(
        CountdownCreate(
            name=name,
            target_date=target,
            counting_since=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
    )


class TestBuildTimeline:
    def test_entries_are_spaced_from_now(self, memory_repo):
        holiday(memory_repo)
        entries = build_timeline(memory_repo, NOW, entry_count=5, interval_minutes=60)
        assert [e["date"] for e in entries] == [NOW + timedelta(hours=i) for i in range(5)]
        assert entries[0]["caption"] == "5 days (50%)"
        assert entries[1]["caption"] == "4 days, 23 hours (50%)"

    def test_without_progress(self, memory_repo):
        holiday(memory_repo)
        entries = build_timeline(memory_repo, NOW, entry_count=1, show_progress=False)
        assert entries[0]["caption"] == "5 days"
        assert entries[0]["show_progress"] is False

    def test_pinned_countdown(self, memory_repo):
        holiday(memory_repo, name="Soon", target=datetime(2025, 1, 8, tzinfo=timezone.utc))
        pinned = holiday(memory_repo, name="Pinned")
        entries = build_timeline(memory_repo, NOW, entry_count=2, pinned_id=pinned["id"])
        assert all(e["countdown"]["name"] == "Pinned" for e in entries)

    def test_missing_pin_falls_back_to_next_upcoming(self, memory_repo):
        holiday(memory_repo, name="Soon", target=datetime(2025, 1, 8, tzinfo=timezone.utc))
        entries = build_timeline(memory_repo, NOW, entry_count=1, pinned_id=404)
        assert entries[0]["countdown"]["name"] == "Soon"

    def test_selection_follows_entry_date(self, memory_repo):
        holiday(memory_repo, name="First", target=NOW + timedelta(minutes=90))
        holiday(memory_repo, name="Second", target=NOW + timedelta(days=2))
        entries = build_timeline(memory_repo, NOW, entry_count=3, interval_minutes=60)
        assert [e["countdown"]["name"] for e in entries] == ["First", "First", "Second"]

    def test_empty(self, memory_repo):
        entries = build_timeline(memory_repo, NOW, entry_count=2)
        assert len(entries) == 2
        assert all(e["countdown"] is None for e in entries)
        assert all(e["caption"] == EMPTY_CAPTION for e in entries)


class TestTimelineEndpoint:
    def test_default_settings(self, client):
        client.post(
            "/api/v1/countdowns/",
            json={"name": "Holiday", "target_date": "2025-01-11", "counting_since": "2025-01-01"},
        )
        res = client.get("/api/v1/widget/timeline", params={"now": "2025-01-06T00:00:00Z"})
        assert res.status_code == 200
        entries = res.json()["entries"]
        assert len(entries) == 5
        assert parse_ts(entries[4]["date"]) == NOW + timedelta(hours=4)
        assert entries[0]["caption"] == "5 days (50%)"
        assert entries[0]["countdown"]["short_label"] == "5d"

    def test_settings_from_env(self, client, monkeypatch):
        monkeypatch.setenv("TIMELINE_ENTRY_COUNT", "3")
        monkeypatch.setenv("TIMELINE_INTERVAL_MINUTES", "15")
        res = client.get(
            "/api/v1/widget/timeline",
            params={"now": "2025-01-06T00:00:00Z", "show_progress": "false"},
        )
        entries = res.json()["entries"]
        assert len(entries) == 3
        assert parse_ts(entries[2]["date"]) == NOW + timedelta(minutes=30)
        assert entries[0]["caption"] == EMPTY_CAPTION
        assert entries[0]["show_progress"] is False
