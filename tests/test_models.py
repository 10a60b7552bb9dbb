"""
Tests for the AI database, player times and asset models.
"""

from r3e_toolbox.models import (
    Asset,
    Assets,
    Database,
    FitQuality,
    PlayerTimes,
    PlayerTrack,
    TrackRecord,
)


class TestTrackRecord:
    """Tests for TrackRecord."""

    def test_add_time_updates_bounds(self):
        track = TrackRecord()
        track.add_time(100, 95.0, 3)
        track.add_time(90, 100.0)

        assert track.min_ai == 90
        assert track.max_ai == 100
        assert track.samples_count == {100: 3, 90: 1}

    def test_duplicate_time_not_stored_twice(self):
        track = TrackRecord()
        assert track.add_time(100, 95.0) is True
        assert track.add_time(100, 95.0) is False
        assert track.ailevels[100] == [95.0]

    def test_different_times_at_same_level(self):
        track = TrackRecord()
        track.add_time(100, 95.0)
        track.add_time(100, 96.0)
        assert track.ailevels[100] == [95.0, 96.0]
        assert track.average(100) == 95.5

    def test_remove_level(self):
        track = TrackRecord()
        track.add_time(90, 100.0)
        track.add_time(100, 95.0)
        track.remove_level(100)

        assert 100 not in track.samples_count
        assert track.max_ai == 90

    def test_remove_last_level_clears_bounds(self):
        track = TrackRecord()
        track.add_time(90, 100.0)
        track.remove_level(90)
        assert track.min_ai is None
        assert track.max_ai is None

    def test_is_generated(self):
        track = TrackRecord()
        track.add_time(90, 100.0, 0)
        track.add_time(95, 98.0, 2)
        assert track.is_generated(90)
        assert not track.is_generated(95)
        assert not track.is_generated(120)

    def test_average_missing_level(self):
        assert TrackRecord().average(100) is None


class TestDatabase:
    """Tests for Database."""

    def test_ensure_and_get_track(self):
        db = Database()
        assert db.get_track("1", "10") is None

        track = db.ensure_track("1", "10")
        assert db.get_track("1", "10") is track
        assert db.ensure_track("1", "10") is track

    def test_copy_is_independent(self):
        db = Database()
        db.ensure_track("1", "10").add_time(100, 95.0)

        copied = db.copy()
        copied.get_track("1", "10").add_time(100, 96.0)

        assert db.get_track("1", "10").ailevels[100] == [95.0]

    def test_is_empty(self):
        db = Database()
        assert db.is_empty()
        db.ensure_track("1", "10")
        assert db.is_empty()
        db.get_track("1", "10").add_time(100, 95.0)
        assert not db.is_empty()


class TestPlayerTrack:
    """Tests for PlayerTrack."""

    def test_best_is_minimum(self):
        track = PlayerTrack()
        for lap_time in (95.2, 94.8, 96.1):
            track.add_time(lap_time)
        assert track.playertime == 94.8

    def test_duplicate_skipped(self):
        track = PlayerTrack()
        assert track.add_time(95.0) is True
        assert track.add_time(95.0) is False
        assert track.playertimes == [95.0]

    def test_delete(self):
        track = PlayerTrack()
        track.add_time(95.2)
        track.add_time(94.8)

        assert track.delete(1) is True
        assert track.playertimes == [95.2]
        assert track.playertime == 95.2

    def test_delete_out_of_range(self):
        track = PlayerTrack()
        track.add_time(95.2)
        assert track.delete(3) is False
        assert track.delete(-1) is False
        assert track.playertimes == [95.2]

    def test_delete_last_clears_best(self):
        track = PlayerTrack()
        track.add_time(95.2)
        track.delete(0)
        assert track.playertime is None

    def test_keep_best(self):
        track = PlayerTrack(playertimes=[95.2, 94.8, 96.1])
        track.keep_best()
        assert track.playertimes == [94.8]
        assert track.playertime == 94.8


class TestPlayerTimes:
    """Tests for PlayerTimes."""

    def test_copy_is_independent(self):
        times = PlayerTimes()
        times.ensure_track("1", "10").add_time(95.0)

        copied = times.copy()
        copied.get_track("1", "10").add_time(94.0)

        assert times.get_track("1", "10").playertimes == [95.0]


class TestFitQuality:
    """Tests for FitQuality."""

    def test_failed(self):
        assert FitQuality(tested=10, passed=7, reliable=False).failed == 3


class TestAssets:
    """Tests for Assets lookups."""

    def test_names_fall_back_to_id(self):
        assets = Assets(
            classes={"1": Asset("1", "GT3")},
            tracks={"10": Asset("10", "Spa - GP")},
        )
        assert assets.class_name("1") == "GT3"
        assert assets.class_name("99") == "99"
        assert assets.track_name("10") == "Spa - GP"
        assert assets.track_name("99") == "99"
        assert assets.num_classes == 1
        assert assets.num_tracks == 1
