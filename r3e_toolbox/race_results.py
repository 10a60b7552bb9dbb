"""
Parser for RaceRoom race result files.

Supports the dedicated server format (Server/Sessions) and the single
player format (header/event/drivers).
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

RACE_FILE_SUFFIXES = (
    "race.txt", "race.json",
    "race1.txt", "race1.json",
    "race2.txt", "race2.json",
)


@dataclass
class RaceSlot:
    """One driver's result in a race."""
    driver: str
    team: str
    vehicle: str
    finish_time: Optional[str] = None
    total_time: Optional[str] = None
    best_lap: Optional[str] = None
    qual_time: Optional[str] = None
    finish_status: Optional[str] = None


@dataclass
class ParsedRace:
    """A race with its track and results."""
    trackname: str
    trackid: int
    timestring: str
    slots: List[RaceSlot] = field(default_factory=list)
    ruleset: str = "default"
    filename: Optional[str] = None


@dataclass
class TrackInfo:
    layout_id: int
    name: str


def format_race_time(seconds: float) -> str:
    """Format seconds as H:M:SS.sss, or M:SS.sss below one hour."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60
    if hours > 0:
        return f"{hours}:{minutes}:{secs:.3f}"
    return f"{minutes}:{secs:.3f}"


def _ms_to_time(ms: Any) -> Optional[str]:
    """Convert milliseconds to a time string; None for missing or non-positive values."""
    if not isinstance(ms, (int, float)) or isinstance(ms, bool) or ms <= 0:
        return None
    return format_race_time(ms / 1000)


def _locale_string(timestamp: float) -> str:
    """Render a timestamp like "1/2/2024, 3:04:05 PM"."""
    dt = datetime.fromtimestamp(timestamp)
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{dt.month}/{dt.day}/{dt.year}, {hour}:{dt.minute:02d}:{dt.second:02d} {suffix}"


def build_track_lookup(game_data: Dict[str, Any]) -> Tuple[Dict[str, TrackInfo], Dict[int, TrackInfo]]:
    """
    Build track lookups by lowercase full name and by layout ID.

    Returns:
        (by_name, by_id)
    """
    by_name: Dict[str, TrackInfo] = {}
    by_id: Dict[int, TrackInfo] = {}

    for track in (game_data.get("tracks") or {}).values():
        for layout in track.get("layouts") or []:
            layout_name = layout.get("Name")
            name = f"{track.get('Name', '')} - {layout_name}" if layout_name else track.get("Name", "")
            info = TrackInfo(layout_id=int(layout["Id"]), name=name)
            by_name[name.lower()] = info
            by_id[info.layout_id] = info

    return by_name, by_id


def find_track(
    track_name: Optional[str],
    layout_name: Optional[str],
    layout_id: Optional[int],
    by_name: Dict[str, TrackInfo],
    by_id: Dict[int, TrackInfo],
) -> Optional[TrackInfo]:
    """Resolve a track by layout ID, else by "<Track> - <Layout>" name."""
    if layout_id:
        return by_id.get(int(layout_id))

    if track_name:
        full_name = f"{track_name} - {layout_name}" if layout_name else track_name
        return by_name.get(full_name.lower())

    return None


def _session(sessions: List[Dict[str, Any]], session_type: str) -> Optional[Dict[str, Any]]:
    for session in sessions:
        if session.get("Type") == session_type:
            return session
    return None


def _server_slots(session: Dict[str, Any]) -> List[RaceSlot]:
    slots = []
    for player in session.get("Players") or []:
        total_time = _ms_to_time(player.get("TotalTime"))
        slots.append(RaceSlot(
            driver=player.get("Username", ""),
            team=player.get("Team") or "",
            vehicle=player.get("CarName") or str(player.get("CarId") or ""),
            finish_time=total_time,
            total_time=total_time,
            best_lap=_ms_to_time(player.get("BestLapTime")),
            finish_status=player.get("FinishStatus"),
        ))
    return slots


def parse_server_result(
    data: Dict[str, Any],
    game_data: Dict[str, Any],
    ruleset: str = "default",
) -> Optional[List[ParsedRace]]:
    """
    Parse a dedicated server result.

    Returns:
        One race, or two when a Race2 session exists; None if the track
        or race session can't be found.
    """
    by_name, by_id = build_track_lookup(game_data)
    track_info = find_track(data.get("Track"), data.get("TrackLayout"), None, by_name, by_id)
    if track_info is None:
        print(f"[RESULTS] Track not found: {data.get('Track')} {data.get('TrackLayout') or ''}")
        return None

    raw_time = data.get("Time", 0)
    if isinstance(raw_time, str):
        # "/Date(1700000000000)/" style, milliseconds
        match = re.search(r"(\d+)", raw_time)
        timestamp = int(match.group(1)) // 1000 if match else 0
    else:
        timestamp = int(raw_time)

    sessions = data.get("Sessions") or []
    qualify = _session(sessions, "Qualify")
    race = _session(sessions, "Race")
    race2 = _session(sessions, "Race2")

    if race is None:
        print("[RESULTS] No race session found")
        return None

    slots = _server_slots(race)

    # Add qualifying times
    if qualify is not None:
        by_driver = {slot.driver: slot for slot in slots}
        for player in qualify.get("Players") or []:
            slot = by_driver.get(player.get("Username"))
            qual_time = _ms_to_time(player.get("QualifyingTime"))
            if slot is not None and qual_time:
                slot.qual_time = qual_time

    races = [ParsedRace(
        trackname=track_info.name,
        trackid=track_info.layout_id,
        timestring=_locale_string(timestamp),
        slots=slots,
        ruleset=ruleset,
    )]

    if race2 is not None:
        races.append(ParsedRace(
            trackname=track_info.name,
            trackid=track_info.layout_id,
            timestring=_locale_string(timestamp + 1),
            slots=_server_slots(race2),
            ruleset=ruleset,
        ))

    return races


def parse_single_player_result(
    data: Dict[str, Any],
    game_data: Dict[str, Any],
    ruleset: str = "default",
) -> Optional[ParsedRace]:
    """Parse a single player result; None if the track can't be found."""
    by_name, by_id = build_track_lookup(game_data)
    event = data.get("event") or {}
    track_info = find_track(event.get("track"), event.get("layout"), event.get("layoutId"), by_name, by_id)
    if track_info is None:
        print(f"[RESULTS] Track not found: {event}")
        return None

    slots = []
    for driver in data.get("drivers") or []:
        total_time = _ms_to_time(driver.get("raceTimeMs"))
        slots.append(RaceSlot(
            driver=driver.get("name", ""),
            team=driver.get("teamName") or "",
            vehicle=driver.get("carName") or str(driver.get("carId") or ""),
            finish_time=total_time,
            total_time=total_time,
            best_lap=_ms_to_time(driver.get("bestLapTimeMs")),
            qual_time=_ms_to_time(driver.get("qualTimeMs")),
            finish_status=driver.get("finishStatus"),
        ))

    return ParsedRace(
        trackname=track_info.name,
        trackid=track_info.layout_id,
        timestring=str((data.get("header") or {}).get("time", "")),
        slots=slots,
        ruleset=ruleset,
    )


def parse_result_text(
    text: str,
    filename: str,
    game_data: Dict[str, Any],
    ruleset: str = "default",
) -> Optional[List[ParsedRace]]:
    """
    Parse the content of a result file.

    Args:
        text: File content.
        filename: File name, used for the extension check and messages.
        game_data: Parsed r3e-data.json for track lookup.
        ruleset: Points system name stored on each race.

    Returns:
        Parsed races, or None for unsupported or malformed files.
    """
    if Path(filename).suffix.lower() not in (".json", ".txt"):
        print(f"[RESULTS] Skipping file with unsupported extension: {filename}")
        return None

    trimmed = text.strip()
    if not trimmed.startswith(("{", "[")):
        print(f"[RESULTS] File doesn't appear to be JSON: {filename}")
        return None

    try:
        data = json.loads(trimmed)
    except json.JSONDecodeError as e:
        print(f"[RESULTS] Failed to parse JSON in file: {filename} ({e})")
        return None

    if not isinstance(data, dict):
        print(f"[RESULTS] Unknown or unsupported result format in {filename}")
        return None

    if data.get("Server") or data.get("Sessions"):
        races = parse_server_result(data, game_data, ruleset)
    elif data.get("header") and data.get("drivers"):
        race = parse_single_player_result(data, game_data, ruleset)
        races = [race] if race else None
    else:
        print(f"[RESULTS] Unknown or unsupported result format in {filename}")
        return None

    if races:
        for race in races:
            race.filename = filename
    return races


def is_race_file(filename: str) -> bool:
    """Check if a file name is a race result (Race.txt, Race1.txt, Race2.txt)."""
    return Path(filename).name.lower().endswith(RACE_FILE_SUFFIXES)


def parse_result_files(
    files: Iterable[Tuple[str, str]],
    game_data: Dict[str, Any],
    ruleset: str = "default",
) -> List[ParsedRace]:
    """
    Parse race result files, ignoring qualifying and practice files.

    Args:
        files: (filename, text) pairs.
        game_data: Parsed r3e-data.json.
        ruleset: Points system name.

    Returns:
        All parsed races in input order.
    """
    all_races: List[ParsedRace] = []
    for filename, text in files:
        if not is_race_file(filename):
            continue
        races = parse_result_text(text, Path(filename).name, game_data, ruleset)
        if races:
            all_races.extend(races)
    return all_races
