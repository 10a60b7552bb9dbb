"""
Parser for RaceRoom's aiadaptation.xml.

The file pairs sibling elements by position: the i-th <layoutId> belongs to
the i-th <value>, the j-th <carClassId> to the j-th <sampledData>, and the
k-th <aiSkill> to the k-th <aiData>. A single entry is just one element, and
whole blocks may be missing, so every list-shaped field goes through
as_list() before it is indexed.
"""

import math
import xml.etree.ElementTree as ET
from typing import List, Optional

from .models import Database, PlayerTimes

ROOT_TAG = "AiAdaptation"


def as_list(parent: Optional[ET.Element], tag: str) -> List[ET.Element]:
    """Child elements named `tag` in document order; empty if parent is missing."""
    if parent is None:
        return []
    return parent.findall(tag)


def _text(element: Optional[ET.Element]) -> Optional[str]:
    if element is None or element.text is None:
        return None
    text = element.text.strip()
    return text or None


def _parse_float(element: Optional[ET.Element]) -> Optional[float]:
    """Parse a lap time; None for missing, non-numeric or non-positive values."""
    text = _text(element)
    if text is None:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _parse_int(element: Optional[ET.Element]) -> Optional[int]:
    text = _text(element)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _process_player_times(
    player_entries: ET.Element,
    player_times: PlayerTimes,
    class_id: str,
    track_id: str,
) -> bool:
    """Merge <playerBestLapTimes> into player times. Returns True if anything was added."""
    lap_times = [t for t in (_parse_float(e) for e in as_list(player_entries, "lapTime")) if t is not None]
    if not lap_times:
        return False

    track = player_times.ensure_track(class_id, track_id)
    added = False
    for lap_time in lap_times:
        if track.add_time(lap_time):
            added = True
    return added


def _process_ai_entries(
    ai_entries: ET.Element,
    database: Database,
    class_id: str,
    track_id: str,
) -> bool:
    """Merge <aiSkillVsLapTimes> into the database. Returns True if anything was added."""
    ai_skills = as_list(ai_entries, "aiSkill")
    ai_datas = as_list(ai_entries, "aiData")

    if len(ai_skills) != len(ai_datas):
        return False

    # Collect first so a class/track without valid entries isn't created
    entries = []
    for skill_elem, data_elem in zip(ai_skills, ai_datas):
        level = _parse_int(skill_elem)
        lap_time = _parse_float(data_elem.find("averagedLapTime"))
        if level is None or level < 0 or lap_time is None:
            continue

        samples = _parse_int(data_elem.find("numberOfSampledRaces"))
        if samples is None or samples < 0:
            samples = 1
        entries.append((level, lap_time, samples))

    if not entries:
        return False

    track = database.ensure_track(class_id, track_id)
    added = False
    for level, lap_time, samples in entries:
        if track.add_time(level, lap_time, samples):
            added = True

    database.classes[class_id].recompute_bounds()
    return added


def _process_class_entry(
    class_elem: ET.Element,
    sampled_data: ET.Element,
    track_id: str,
    database: Database,
    player_times: Optional[PlayerTimes],
) -> bool:
    class_id = _text(class_elem)
    if class_id is None:
        return False

    added = False

    player_entries = sampled_data.find("playerBestLapTimes")
    if player_times is not None and player_entries is not None:
        if _process_player_times(player_entries, player_times, class_id, track_id):
            added = True

    ai_entries = sampled_data.find("aiSkillVsLapTimes")
    if ai_entries is not None:
        if _process_ai_entries(ai_entries, database, class_id, track_id):
            added = True

    return added


def _process_track_entry(
    layout_elem: ET.Element,
    value_elem: ET.Element,
    database: Database,
    player_times: Optional[PlayerTimes],
) -> bool:
    track_id = _text(layout_elem)
    if track_id is None:
        return False

    class_ids = as_list(value_elem, "carClassId")
    sampled_datas = as_list(value_elem, "sampledData")

    if len(class_ids) != len(sampled_datas):
        return False

    added = False
    for class_elem, sampled_data in zip(class_ids, sampled_datas):
        if _process_class_entry(class_elem, sampled_data, track_id, database, player_times):
            added = True
    return added


def parse_adaptive(
    xml_text: str,
    database: Database,
    player_times: Optional[PlayerTimes] = None,
) -> bool:
    """
    Parse aiadaptation.xml and merge it into a database and player times.

    Merging is additive: new lap times are appended to existing levels,
    exact duplicates are skipped, so parsing the same file twice changes
    nothing the second time.

    Args:
        xml_text: Content of aiadaptation.xml.
        database: AI database to merge into (modified in place).
        player_times: Player times to merge into (modified in place), optional.

    Returns:
        True if any AI or player lap time was added.

    Raises:
        xml.etree.ElementTree.ParseError: If the text isn't well-formed XML.
    """
    root = ET.fromstring(xml_text)
    if root.tag != ROOT_TAG:
        return False

    track_list = root.find("aiAdaptationData")
    if track_list is None:
        return False

    layout_ids = as_list(track_list, "layoutId")
    values = as_list(track_list, "value")

    if len(layout_ids) != len(values):
        return False

    added = False
    for layout_elem, value_elem in zip(layout_ids, values):
        if _process_track_entry(layout_elem, value_elem, database, player_times):
            added = True
    return added
