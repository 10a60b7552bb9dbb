"""
Tests for AI database and player time modifications.
"""

import pytest

from config import Config
from r3e_toolbox.database_processor import process_database
from r3e_toolbox.models import Database, PlayerTimes, ProcessedDatabase
from r3e_toolbox.modifications import (
    ai_range,
    apply_generated_range,
    delete_all_but_min,
    delete_player_time,
    has_player_times_changed,
    remove_generated,
    reset_all,
)


def make_config(**overrides) -> Config:
    """Helper to create a config independent of the environment."""
    values = dict(
        min_ai=80,
        max_ai=120,
        fit_all=False,
        fit_degree=1,
        save_logs=False,
        echo_logs=False,
    )
    values.update(overrides)
    return Config(**values)


def make_database(samples: int = 3) -> Database:
    """Helper to create class 1 / track 10 with a linear lap time trend."""
    db = Database()
    track = db.ensure_track("1", "10")
    track.add_time(90, 100.0, samples)
    track.add_time(95, 97.5, samples)
    track.add_time(100, 95.0, samples)
    db.classes["1"].recompute_bounds()
    return db


def make_player_times(times=(95.2, 94.8, 96.1)) -> PlayerTimes:
    player_times = PlayerTimes()
    track = player_times.ensure_track("1", "10")
    for lap_time in times:
        track.add_time(lap_time)
    return player_times


class TestAiRange:
    """Tests for ai_range."""

    def test_centered_on_selection(self):
        assert ai_range(100, make_config()) == (98, 102)

    def test_spacing(self):
        assert ai_range(100, make_config(), spacing=5) == (90, 110)

    def test_spacing_from_config(self):
        assert ai_range(100, make_config(ai_spacing=2)) == (96, 104)

    def test_clamped_to_min(self):
        assert ai_range(80, make_config()) == (80, 84)

    def test_clamped_to_max(self):
        assert ai_range(119, make_config()) == (117, 120)

    def test_no_selection(self):
        assert ai_range(None, make_config()) == (80, 84)


class TestApplyGeneratedRange:
    """Tests for apply_generated_range."""

    def test_replaces_levels_with_predictions(self):
        db = make_database()
        processed = process_database(db, make_config())

        result = apply_generated_range(db, processed, "1", "10", 90, 100, spacing=5)

        track = result.get_track("1", "10")
        assert sorted(track.ailevels) == [90, 95, 100]
        assert track.ailevels[90] == [pytest.approx(100.0)]
        assert track.ailevels[95] == [pytest.approx(97.5)]
        assert track.ailevels[100] == [pytest.approx(95.0)]
        assert track.samples_count == {90: 0, 95: 0, 100: 0}
        assert track.min_ai == 90
        assert track.max_ai == 100

    def test_existing_levels_outside_range_removed(self):
        db = make_database()
        processed = process_database(db, make_config())

        result = apply_generated_range(db, processed, "1", "10", 104, 106)

        track = result.get_track("1", "10")
        assert sorted(track.ailevels) == [104, 105, 106]
        assert result.classes["1"].min_ai == 104

    def test_input_not_modified(self):
        db = make_database()
        before = db.copy()
        processed = process_database(db, make_config())

        apply_generated_range(db, processed, "1", "10", 90, 100, spacing=5)

        assert db == before

    def test_no_prediction_returns_same_database(self):
        db = make_database()
        result = apply_generated_range(db, ProcessedDatabase(), "1", "10", 90, 100)
        assert result is db

    def test_invalid_spacing(self):
        db = make_database()
        with pytest.raises(ValueError):
            apply_generated_range(db, ProcessedDatabase(), "1", "10", 90, 100, spacing=0)

    def test_generated_levels_can_be_removed(self):
        db = make_database()
        processed = process_database(db, make_config())
        applied = apply_generated_range(db, processed, "1", "10", 90, 100, spacing=5)

        cleaned, report = remove_generated(applied)

        assert report == {("1", "10"): 3}
        track = cleaned.get_track("1", "10")
        assert track.ailevels == {}
        assert track.min_ai is None


class TestRemoveGenerated:
    """Tests for remove_generated."""

    def test_keeps_sampled_levels(self):
        db = make_database()
        db.get_track("1", "10").add_time(110, 90.0, 0)

        cleaned, report = remove_generated(db)

        track = cleaned.get_track("1", "10")
        assert sorted(track.ailevels) == [90, 95, 100]
        assert track.max_ai == 100
        assert cleaned.classes["1"].max_ai == 100
        assert report == {("1", "10"): 1}

    def test_nothing_to_remove(self):
        db = make_database()
        cleaned, report = remove_generated(db)
        assert report == {}
        assert cleaned == db

    def test_input_not_modified(self):
        db = make_database(samples=0)
        before = db.copy()
        remove_generated(db)
        assert db == before


class TestResetAll:
    """Tests for reset_all."""

    def test_empty(self):
        assert reset_all().is_empty()


class TestPlayerTimeEdits:
    """Tests for player time deletion."""

    def test_delete_one(self):
        player_times = make_player_times()
        result = delete_player_time(player_times, "1", "10", 1)

        track = result.get_track("1", "10")
        assert track.playertimes == [95.2, 96.1]
        assert track.playertime == 95.2

    def test_delete_missing_entry(self):
        player_times = make_player_times()
        result = delete_player_time(player_times, "2", "10", 0)
        assert result == player_times
        assert result is not player_times

    def test_delete_all_but_min(self):
        player_times = make_player_times()
        result = delete_all_but_min(player_times, "1", "10")

        track = result.get_track("1", "10")
        assert track.playertimes == [94.8]
        assert track.playertime == 94.8

    def test_input_not_modified(self):
        player_times = make_player_times()
        delete_all_but_min(player_times, "1", "10")
        assert player_times.get_track("1", "10").playertimes == [95.2, 94.8, 96.1]


class TestHasPlayerTimesChanged:
    """Tests for has_player_times_changed."""

    def test_unchanged(self):
        assert not has_player_times_changed(make_player_times(), make_player_times())

    def test_deleted_time(self):
        original = make_player_times()
        current = delete_player_time(original, "1", "10", 0)
        assert has_player_times_changed(current, original)

    def test_changed_value(self):
        assert has_player_times_changed(make_player_times((95.0,)), make_player_times((96.0,)))

    def test_different_tracks(self):
        current = make_player_times()
        current.ensure_track("1", "11").add_time(80.0)
        assert has_player_times_changed(current, make_player_times())

    def test_different_classes(self):
        assert has_player_times_changed(PlayerTimes(), make_player_times())
