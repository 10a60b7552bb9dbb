"""
Championship standings from parsed races.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .race_results import ParsedRace, RaceSlot
from .time_utils import parse_time

POINTS_SYSTEMS: Dict[str, List[int]] = {
    "default": [25, 18, 15, 12, 10, 8, 6, 4, 2, 1],
    "dtm2023": [28, 25, 22, 19, 16, 13, 10, 8, 6, 4, 3, 2, 1],
}

NON_FINISH_STATUSES = ("DNF", "DNS")
TOP_TIMES_LIMIT = 20


@dataclass
class StandingsEntry:
    driver: str
    vehicle: str
    team: str
    points: int = 0
    positions: List[int] = field(default_factory=list)

    @property
    def wins(self) -> int:
        return sum(1 for p in self.positions if p == 1)

    @property
    def podiums(self) -> int:
        return sum(1 for p in self.positions if p <= 3)


@dataclass
class Standings:
    drivers: List[StandingsEntry]
    teams: Dict[str, int]
    vehicles: Dict[str, int]


@dataclass
class TimeEntry:
    driver: str
    time: str
    track: str
    vehicle: str


def time_to_seconds(text: Optional[str]) -> Optional[float]:
    """Parse H:M:S, M:S or plain seconds. None (or 0) means no time."""
    if not text:
        return None
    seconds = parse_time(text)
    if seconds is None:
        try:
            seconds = float(text)
        except ValueError:
            return None
    return seconds or None


def points_for(ruleset: str) -> List[int]:
    """Points table for a ruleset, falling back to the default one."""
    return POINTS_SYSTEMS.get(ruleset, POINTS_SYSTEMS["default"])


def _finish_order(race: ParsedRace) -> List[RaceSlot]:
    """Slots ordered by finish time; drivers without a time go last."""
    def key(slot: RaceSlot):
        seconds = time_to_seconds(slot.finish_time)
        return (seconds is None, seconds or 0.0)
    return sorted(race.slots, key=key)


def calculate_race_points(race: ParsedRace, points_system: Optional[Sequence[int]] = None) -> Dict[str, int]:
    """
    Points per driver for one race.

    Finishers are ranked by finish time; DNF/DNS and drivers without a
    time score zero.
    """
    table = list(points_system) if points_system is not None else POINTS_SYSTEMS["default"]
    points: Dict[str, int] = {}
    for index, slot in enumerate(_finish_order(race)):
        finished = slot.finish_time and slot.finish_status not in NON_FINISH_STATUSES
        points[slot.driver] = table[index] if finished and index < len(table) else 0
    return points


def build_standings(races: List[ParsedRace], points_system: Optional[Sequence[int]] = None) -> Standings:
    """
    Accumulate driver, team and vehicle points over races.

    Drivers are sorted by points, then wins, then podiums.
    """
    drivers: Dict[str, StandingsEntry] = {}
    teams: Dict[str, int] = {}
    vehicles: Dict[str, int] = {}

    for race in races:
        race_points = calculate_race_points(race, points_system)

        for index, slot in enumerate(_finish_order(race)):
            points = race_points.get(slot.driver, 0)

            entry = drivers.get(slot.driver)
            if entry is None:
                # Vehicle and team from the driver's first race
                entry = StandingsEntry(driver=slot.driver, vehicle=slot.vehicle, team=slot.team)
                drivers[slot.driver] = entry
            entry.points += points
            entry.positions.append(index + 1)

            if slot.team:
                teams[slot.team] = teams.get(slot.team, 0) + points
            if slot.vehicle:
                vehicles[slot.vehicle] = vehicles.get(slot.vehicle, 0) + points

    ordered = sorted(drivers.values(), key=lambda e: (-e.points, -e.wins, -e.podiums))
    return Standings(drivers=ordered, teams=teams, vehicles=vehicles)


def _best_times(races: List[ParsedRace], attribute: str) -> List[TimeEntry]:
    collected = []
    for race in races:
        for slot in race.slots:
            text = getattr(slot, attribute)
            seconds = time_to_seconds(text)
            if seconds:
                collected.append((seconds, TimeEntry(
                    driver=slot.driver,
                    time=text,
                    track=race.trackname,
                    vehicle=slot.vehicle,
                )))
    collected.sort(key=lambda item: item[0])
    return [entry for _, entry in collected[:TOP_TIMES_LIMIT]]


def get_best_lap_times(races: List[ParsedRace]) -> List[TimeEntry]:
    """Fastest 20 race laps across all races."""
    return _best_times(races, "best_lap")


def get_best_qualifying_times(races: List[ParsedRace]) -> List[TimeEntry]:
    """Fastest 20 qualifying laps across all races."""
    return _best_times(races, "qual_time")
