"""
Lap time prediction across AI skill levels.

Fits a curve through each track's sampled (AI level, lap time) points and
evaluates it at every level of the configured range.
"""

from typing import List, Optional, Tuple

from config import Config
from .fitting import FitResult, fit_curve
from .models import ClassRecord, Database, FitQuality, ProcessedDatabase, TrackRecord
from .time_utils import compute_time


def _collect_points(track: TrackRecord, fit_all: bool) -> Tuple[List[float], List[float]]:
    """Build fit points: every sample, or one mean per level."""
    x: List[float] = []
    y: List[float] = []
    for level in sorted(track.ailevels):
        times = track.ailevels[level]
        if fit_all:
            for lap_time in times:
                x.append(level)
                y.append(lap_time)
        else:
            num, avg, _ = compute_time(times)
            if num > 0:
                x.append(level)
                y.append(avg)
    return x, y


def _is_decreasing(curve: FitResult, low: int, high: int) -> bool:
    """Check lap time never increases with AI level over [low, high]."""
    last: Optional[float] = None
    for level in range(low, high + 1):
        value = curve(level)
        if last is not None and value > last:
            return False
        last = value
    return True


def _test_fit(curve: FitResult, track: TrackRecord, config: Config) -> FitQuality:
    """Count how many observed points the curve matches within tolerance."""
    _, min_time, _ = compute_time(track.ailevels.get(track.min_ai))
    threshold = min_time * config.test_max_time_pct

    tested = 0
    passed = 0
    for level in sorted(track.ailevels):
        prediction = curve(level)
        times = track.ailevels[level]
        if config.fit_all:
            # Points were individual samples, so test against the level mean
            num, avg, _ = compute_time(times)
            if num > 0:
                tested += 1
                if abs(prediction - avg) < threshold:
                    passed += 1
        else:
            for lap_time in times:
                tested += 1
                if abs(prediction - lap_time) < threshold:
                    passed += 1

    reliable = tested - passed <= max(1, tested * config.test_max_fails_pct)
    return FitQuality(tested=tested, passed=passed, reliable=reliable, degree=config.fit_degree)


def track_generator(track: TrackRecord, config: Config) -> Optional[Tuple[FitResult, FitQuality]]:
    """
    Fit a lap time curve for one track.

    Args:
        track: Observed AI levels for a class/track.
        config: Fitting configuration.

    Returns:
        (curve, quality), or None when there is too little data or the
        curve isn't monotonically decreasing over the observed levels.
    """
    if track.max_ai is None or track.min_ai is None:
        return None
    if track.max_ai - track.min_ai < config.test_min_ai_diffs:
        return None

    x, y = _collect_points(track, config.fit_all)
    if len(set(x)) < config.fit_degree + 1:
        return None

    curve = fit_curve(x, y, config.fit_degree)

    if not _is_decreasing(curve, track.min_ai, track.max_ai):
        return None

    return curve, _test_fit(curve, track, config)


def _predict_levels(curve: FitResult, track: TrackRecord, config: Config) -> List[int]:
    """
    Levels of the configured range the curve may be evaluated at.

    Inside the observed range every level is kept. Outside it the curve is
    followed outward only while it keeps lap times falling with AI level.
    """
    levels = list(range(max(config.min_ai, track.min_ai), min(config.max_ai, track.max_ai) + 1))

    last = curve(track.max_ai)
    for level in range(track.max_ai + 1, config.max_ai + 1):
        value = curve(level)
        if value > last:
            break
        last = value
        if level >= config.min_ai:
            levels.append(level)

    last = curve(track.min_ai)
    for level in range(track.min_ai - 1, config.min_ai - 1, -1):
        value = curve(level)
        if value < last:
            break
        last = value
        if level <= config.max_ai:
            levels.append(level)

    return sorted(levels)


def process_database(database: Database, config: Config) -> ProcessedDatabase:
    """
    Predict lap times for every class/track with enough data.

    Args:
        database: Observed AI database (not modified).
        config: Fitting configuration and output AI range.

    Returns:
        ProcessedDatabase with predicted times over [config.min_ai,
        config.max_ai], cut where the curve turns back up beyond the
        observed levels, and a FitQuality per track.
    """
    processed = ProcessedDatabase()

    for class_id, class_record in database.classes.items():
        for track_id, track in class_record.tracks.items():
            result = track_generator(track, config)
            if result is None:
                continue
            curve, quality = result

            predicted = TrackRecord()
            for level in _predict_levels(curve, track, config):
                lap_time = round(curve(level), 2)
                if lap_time > 0:
                    predicted.ailevels[level] = [lap_time]
            if not predicted.ailevels:
                continue
            predicted.recompute_bounds()

            class_out = processed.classes.setdefault(class_id, ClassRecord())
            class_out.tracks[track_id] = predicted
            class_out.recompute_bounds()
            processed.quality[(class_id, track_id)] = quality

    return processed
