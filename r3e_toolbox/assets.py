"""
Class and track catalog built from RaceRoom's r3e-data.json.
"""

import json
from typing import Any, Dict

from .models import Asset, Assets


def parse_game_data(data: Dict[str, Any]) -> Assets:
    """
    Build class and track lookups from parsed game data.

    Each track can have multiple layouts; every layout becomes its own
    entry keyed by layout ID and named "<Track> - <Layout>".

    Args:
        data: Parsed r3e-data.json content.

    Returns:
        Assets with ID maps and name-sorted lists.
    """
    assets = Assets()

    for class_id, class_data in (data.get("classes") or {}).items():
        asset = Asset(id=str(class_id), name=class_data.get("Name", str(class_id)))
        assets.classes[asset.id] = asset
        assets.classes_sorted.append(asset)

    for track_data in (data.get("tracks") or {}).values():
        track_name = track_data.get("Name", "")
        for layout in track_data.get("layouts") or []:
            asset = Asset(
                id=str(layout["Id"]),
                name=f"{track_name} - {layout.get('Name', '')}",
            )
            assets.tracks[asset.id] = asset
            assets.tracks_sorted.append(asset)

    # Sort by name for display
    assets.classes_sorted.sort(key=lambda a: a.name.casefold())
    assets.tracks_sorted.sort(key=lambda a: a.name.casefold())

    return assets


def load_game_data(text: str) -> Assets:
    """
    Parse r3e-data.json text into Assets.

    Raises:
        json.JSONDecodeError: If the text isn't JSON.
        ValueError: If the JSON isn't an object.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Game data must be a JSON object")
    return parse_game_data(data)
