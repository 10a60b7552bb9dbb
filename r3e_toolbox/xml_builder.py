"""
Builder for RaceRoom's aiadaptation.xml.

Writes the full track x class matrix from the game assets, so every known
combination appears even when it has no data.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .models import Asset, Assets, Database, PlayerTimes


@dataclass
class _Cell:
    """Data written for one track/class combination."""
    ailevels: Dict[int, List[float]] = field(default_factory=dict)
    samples_count: Dict[int, int] = field(default_factory=dict)
    player_times: List[float] = field(default_factory=list)


def format_number(value: float) -> str:
    """Four decimals with trailing zeros stripped: 1.2500 -> 1.25, 2.0000 -> 2."""
    return f"{value:.4f}".rstrip("0").rstrip(".")


def _numeric_key(asset: Asset) -> Tuple[int, int, str]:
    """Sort by numeric ID; non-numeric IDs go last."""
    try:
        return 0, int(asset.id), ""
    except ValueError:
        return 1, 0, asset.id


def _build_matrix(
    database: Database,
    player_times: PlayerTimes,
    assets: Assets,
) -> Dict[str, Dict[str, _Cell]]:
    matrix = {
        track_id: {class_id: _Cell() for class_id in assets.classes}
        for track_id in assets.tracks
    }

    # Entries for unknown classes or tracks are dropped
    for class_id, class_record in database.classes.items():
        for track_id, track in class_record.tracks.items():
            cell = matrix.get(track_id, {}).get(class_id)
            if cell is None:
                continue
            cell.ailevels = track.ailevels
            cell.samples_count = track.samples_count

    for class_id, class_record in player_times.classes.items():
        for track_id, track in class_record.tracks.items():
            cell = matrix.get(track_id, {}).get(class_id)
            if cell is None:
                continue
            if track.playertimes:
                cell.player_times = list(track.playertimes)
            elif track.playertime is not None:
                cell.player_times = [track.playertime]

    return matrix


def build_xml(database: Database, player_times: PlayerTimes, assets: Assets) -> str:
    """
    Serialize the AI database and player times to aiadaptation.xml.

    Args:
        database: AI database.
        player_times: Player best lap times.
        assets: Game assets; their classes and tracks define the matrix.

    Returns:
        XML text without declaration or trailing newline.
    """
    matrix = _build_matrix(database, player_times, assets)
    sorted_tracks = sorted(assets.tracks.values(), key=_numeric_key)
    sorted_classes = sorted(assets.classes.values(), key=_numeric_key)

    lines = [
        '<AiAdaptation ID="/aiadaptation">',
        '  <latestVersion type="uint32">0</latestVersion>',
        '  <aiAdaptationData>',
    ]

    for track_index, track in enumerate(sorted_tracks):
        lines.append(f'    <!-- Index:{track_index} -->')
        lines.append(f'    <layoutId type="int32">{track.id}</layoutId>')
        lines.append('    <value>')

        for class_index, car_class in enumerate(sorted_classes):
            cell = matrix[track.id][car_class.id]
            lines.append(f'      <!-- Index:{class_index} -->')
            lines.append(f'      <carClassId type="int32">{car_class.id}</carClassId>')
            lines.append('      <sampledData>')

            lines.append('        <playerBestLapTimes>')
            for time_index, lap_time in enumerate(cell.player_times):
                lines.append(f'          <!-- Index:{time_index} -->')
                lines.append(f'          <lapTime type="float32">{format_number(lap_time)}</lapTime>')
            lines.append('        </playerBestLapTimes>')

            lines.append('        <aiSkillVsLapTimes>')
            ai_index = 0
            for level in sorted(cell.ailevels):
                times = cell.ailevels[level]
                if not times:
                    continue
                average = sum(times) / len(times)
                samples = cell.samples_count.get(level, 1)
                lines.append(f'          <!-- Index:{ai_index} -->')
                lines.append(f'          <aiSkill type="uint32">{level}</aiSkill>')
                lines.append('          <aiData>')
                lines.append(f'            <averagedLapTime type="float32">{format_number(average)}</averagedLapTime>')
                lines.append(f'            <numberOfSampledRaces type="uint32">{samples}</numberOfSampledRaces>')
                lines.append('          </aiData>')
                ai_index += 1
            lines.append('        </aiSkillVsLapTimes>')

            lines.append('      </sampledData>')

        lines.append('    </value>')

    lines.append('  </aiAdaptationData>')
    lines.append('</AiAdaptation>')

    return "\n".join(lines)
