"""
Data model for the AI adaptation database, player times and game assets.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


# =============================================================================
# AI DATABASE
# =============================================================================

@dataclass
class TrackRecord:
    """AI lap times for one class on one track layout."""
    # AI skill level -> lap times (seconds) observed or generated at that level
    ailevels: Dict[int, List[float]] = field(default_factory=dict)

    # AI skill level -> number of sampled races (0 = generated entry)
    samples_count: Dict[int, int] = field(default_factory=dict)

    min_ai: Optional[int] = None
    max_ai: Optional[int] = None

    def add_time(self, level: int, lap_time: float, samples: int = 1) -> bool:
        """
        Add a lap time at a skill level.

        Exact duplicates at the same level are not stored twice.

        Returns:
            True if the time was added.
        """
        times = self.ailevels.setdefault(level, [])
        self.samples_count[level] = samples
        added = lap_time not in times
        if added:
            times.append(lap_time)
        self.recompute_bounds()
        return added

    def remove_level(self, level: int) -> None:
        """Remove a skill level and its sample count."""
        self.ailevels.pop(level, None)
        self.samples_count.pop(level, None)
        self.recompute_bounds()

    def is_generated(self, level: int) -> bool:
        """Check if the entry at a level was produced by the predictor."""
        return self.samples_count.get(level) == 0

    def average(self, level: int) -> Optional[float]:
        """Average lap time at a level, or None if there is none."""
        times = self.ailevels.get(level)
        if not times:
            return None
        return sum(times) / len(times)

    def recompute_bounds(self) -> None:
        """Refresh min_ai/max_ai from the present levels."""
        if self.ailevels:
            self.min_ai = min(self.ailevels)
            self.max_ai = max(self.ailevels)
        else:
            self.min_ai = None
            self.max_ai = None


@dataclass
class ClassRecord:
    """AI lap times for one car class across tracks."""
    tracks: Dict[str, TrackRecord] = field(default_factory=dict)
    min_ai: Optional[int] = None
    max_ai: Optional[int] = None

    def recompute_bounds(self) -> None:
        """Refresh min_ai/max_ai from all tracks' levels."""
        levels = [level for track in self.tracks.values() for level in track.ailevels]
        if levels:
            self.min_ai = min(levels)
            self.max_ai = max(levels)
        else:
            self.min_ai = None
            self.max_ai = None


@dataclass
class Database:
    """AI database keyed by class ID then track (layout) ID."""
    classes: Dict[str, ClassRecord] = field(default_factory=dict)

    def get_track(self, class_id: str, track_id: str) -> Optional[TrackRecord]:
        class_record = self.classes.get(class_id)
        if class_record is None:
            return None
        return class_record.tracks.get(track_id)

    def ensure_track(self, class_id: str, track_id: str) -> TrackRecord:
        """Get a track record, creating the class and track if needed."""
        class_record = self.classes.setdefault(class_id, ClassRecord())
        return class_record.tracks.setdefault(track_id, TrackRecord())

    def copy(self) -> "Database":
        return copy.deepcopy(self)

    def is_empty(self) -> bool:
        return not any(
            track.ailevels
            for class_record in self.classes.values()
            for track in class_record.tracks.values()
        )


@dataclass
class FitQuality:
    """How well a fitted curve matched the observed lap times."""
    tested: int
    passed: int
    reliable: bool
    degree: int = 1

    @property
    def failed(self) -> int:
        return self.tested - self.passed


@dataclass
class ProcessedDatabase(Database):
    """Predicted lap times, dense over the configured AI range."""
    quality: Dict[Tuple[str, str], FitQuality] = field(default_factory=dict)

    def get_quality(self, class_id: str, track_id: str) -> Optional[FitQuality]:
        return self.quality.get((class_id, track_id))


# =============================================================================
# PLAYER TIMES
# =============================================================================

@dataclass
class PlayerTrack:
    """Player best lap times for one class on one track."""
    playertimes: List[float] = field(default_factory=list)
    playertime: Optional[float] = None  # Always min(playertimes)

    def refresh_best(self) -> None:
        """Re-derive the best time from the list."""
        best: Optional[float] = None
        for lap_time in self.playertimes:
            if best is None or lap_time < best:
                best = lap_time
        self.playertime = best

    def add_time(self, lap_time: float) -> bool:
        """Add a lap time unless it is already recorded. Returns True if added."""
        if lap_time in self.playertimes:
            return False
        self.playertimes.append(lap_time)
        self.refresh_best()
        return True

    def delete(self, index: int) -> bool:
        """Delete one lap time by position. Returns False if out of range."""
        if not 0 <= index < len(self.playertimes):
            return False
        del self.playertimes[index]
        self.refresh_best()
        return True

    def keep_best(self) -> None:
        """Drop every lap time except the best one."""
        self.refresh_best()
        self.playertimes = [self.playertime] if self.playertime is not None else []


@dataclass
class PlayerClass:
    tracks: Dict[str, PlayerTrack] = field(default_factory=dict)


@dataclass
class PlayerTimes:
    """Player best lap times keyed by class ID then track ID."""
    classes: Dict[str, PlayerClass] = field(default_factory=dict)

    def get_track(self, class_id: str, track_id: str) -> Optional[PlayerTrack]:
        class_record = self.classes.get(class_id)
        if class_record is None:
            return None
        return class_record.tracks.get(track_id)

    def ensure_track(self, class_id: str, track_id: str) -> PlayerTrack:
        class_record = self.classes.setdefault(class_id, PlayerClass())
        return class_record.tracks.setdefault(track_id, PlayerTrack())

    def copy(self) -> "PlayerTimes":
        return copy.deepcopy(self)


# =============================================================================
# GAME ASSETS
# =============================================================================

@dataclass
class Asset:
    """A class or track layout from the game data."""
    id: str
    name: str


@dataclass
class Assets:
    """Class and track lookups built from r3e-data.json."""
    classes: Dict[str, Asset] = field(default_factory=dict)
    classes_sorted: List[Asset] = field(default_factory=list)
    tracks: Dict[str, Asset] = field(default_factory=dict)
    tracks_sorted: List[Asset] = field(default_factory=list)

    @property
    def num_classes(self) -> int:
        return len(self.classes)

    @property
    def num_tracks(self) -> int:
        return len(self.tracks)

    def class_name(self, class_id: str) -> str:
        asset = self.classes.get(class_id)
        return asset.name if asset else class_id

    def track_name(self, track_id: str) -> str:
        asset = self.tracks.get(track_id)
        return asset.name if asset else track_id
