"""
Modifications to the AI database and player times.

Every operation works on a copy and returns it; the objects passed in are
never modified.
"""

from typing import Dict, Optional, Tuple

from config import Config
from .models import Database, PlayerTimes, ProcessedDatabase


def ai_range(
    selected_level: Optional[int],
    config: Config,
    spacing: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Compute the AI levels to write around a selected level.

    Args:
        selected_level: Level picked by the user, or None.
        config: Supplies min_ai, max_ai and ai_num_levels.
        spacing: Step between levels (defaults to config.ai_spacing).

    Returns:
        (ai_from, ai_to), both inclusive.
    """
    step = spacing if spacing is not None else config.ai_spacing
    if selected_level is not None:
        ai_from = max(config.min_ai, selected_level - (config.ai_num_levels // 2) * step)
    else:
        ai_from = config.min_ai
    ai_to = min(config.max_ai, ai_from + (config.ai_num_levels - 1) * step)
    return ai_from, ai_to


def apply_generated_range(
    database: Database,
    processed: ProcessedDatabase,
    class_id: str,
    track_id: str,
    ai_from: int,
    ai_to: int,
    spacing: int = 1,
) -> Database:
    """
    Replace a class/track's AI levels with predicted ones.

    Each written level is marked as generated (0 sampled races).

    Returns:
        A new database, or the same `database` object when there is no
        prediction for this class/track.

    Raises:
        ValueError: If spacing is below 1.
    """
    if spacing < 1:
        raise ValueError(f"spacing must be at least 1, got {spacing}")

    predicted = processed.get_track(class_id, track_id)
    if predicted is None:
        return database

    new_database = database.copy()
    track = new_database.ensure_track(class_id, track_id)

    # Replace, don't merge
    track.ailevels = {}
    track.samples_count = {}
    for level in range(ai_from, ai_to + 1, spacing):
        times = predicted.ailevels.get(level)
        if times:
            track.ailevels[level] = [times[0]]
            track.samples_count[level] = 0

    track.recompute_bounds()
    new_database.classes[class_id].recompute_bounds()
    return new_database


def remove_generated(database: Database) -> Tuple[Database, Dict[Tuple[str, str], int]]:
    """
    Remove every level produced by the predictor (0 sampled races).

    Returns:
        (new database, removed count per (class_id, track_id) with removals).
    """
    new_database = database.copy()
    report: Dict[Tuple[str, str], int] = {}

    for class_id, class_record in new_database.classes.items():
        for track_id, track in class_record.tracks.items():
            generated = [level for level in track.ailevels if track.is_generated(level)]
            for level in generated:
                del track.ailevels[level]
                del track.samples_count[level]
            if generated:
                report[(class_id, track_id)] = len(generated)
            track.recompute_bounds()
        class_record.recompute_bounds()

    return new_database, report


def reset_all() -> Database:
    """Return an empty database. Player times are kept by the caller."""
    return Database()


def delete_player_time(
    player_times: PlayerTimes,
    class_id: str,
    track_id: str,
    index: int,
) -> PlayerTimes:
    """
    Delete one player lap time by position.

    Returns:
        A new PlayerTimes; unchanged content if the entry doesn't exist.
    """
    new_times = player_times.copy()
    track = new_times.get_track(class_id, track_id)
    if track is not None:
        track.delete(index)
    return new_times


def delete_all_but_min(player_times: PlayerTimes, class_id: str, track_id: str) -> PlayerTimes:
    """Keep only the best player lap time for a class/track."""
    new_times = player_times.copy()
    track = new_times.get_track(class_id, track_id)
    if track is not None:
        track.keep_best()
    return new_times


def has_player_times_changed(current: PlayerTimes, original: PlayerTimes) -> bool:
    """
    Compare player times against a snapshot taken at load time.

    Returns:
        True if any class, track, list length or lap time differs.
    """
    if set(current.classes) != set(original.classes):
        return True

    for class_id, class_record in current.classes.items():
        original_class = original.classes[class_id]
        if set(class_record.tracks) != set(original_class.tracks):
            return True

        for track_id, track in class_record.tracks.items():
            original_track = original_class.tracks[track_id]
            if len(track.playertimes) != len(original_track.playertimes):
                return True
            for current_time, original_time in zip(track.playertimes, original_track.playertimes):
                if current_time != original_time:
                    return True

    return False
