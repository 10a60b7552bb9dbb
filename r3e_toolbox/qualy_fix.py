"""
Copy qualifying best laps into a race result that lost them.

RaceRoom sometimes writes qualTimeMs = -1 into the race file; the
qualifying file of the same event still has each driver's best lap.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List


class QualyFixError(ValueError):
    """Raised when the qualifying and race files can't be matched."""


@dataclass
class QualyFixResult:
    race: Dict[str, Any]
    updated_count: int
    warnings: List[str] = field(default_factory=list)


def _is_valid_ms(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > -1


def fix_qualy_times(qual: Dict[str, Any], race: Dict[str, Any]) -> QualyFixResult:
    """
    Patch a race result's qualifying times from the qualifying result.

    Args:
        qual: Parsed qualifying result (single player format).
        race: Parsed race result of the same event (not modified).

    Returns:
        QualyFixResult with the patched copy of the race.

    Raises:
        QualyFixError: If the events differ or a lap/race time is invalid.
    """
    if qual.get("event") != race.get("event"):
        raise QualyFixError("EVENT: event attributes differ between qualification and race file.")

    for driver in qual.get("drivers") or []:
        if not _is_valid_ms(driver.get("bestLapTimeMs")):
            raise QualyFixError(
                f"Driver '{driver.get('name')}' has invalid bestLapTimeMs: {driver.get('bestLapTimeMs')}"
            )

    patched = copy.deepcopy(race)
    race_drivers = patched.get("drivers") or []
    for driver in race_drivers:
        if not _is_valid_ms(driver.get("raceTimeMs")):
            raise QualyFixError(
                f"Driver '{driver.get('name')}' has invalid raceTimeMs: {driver.get('raceTimeMs')}"
            )

    qual_times = {d.get("name"): d.get("bestLapTimeMs") for d in qual.get("drivers") or []}

    updated = 0
    warnings = []
    for driver in race_drivers:
        name = driver.get("name")
        if name not in qual_times:
            warnings.append(f"Driver '{name}' is not present in qualification file.")
            continue
        qual_time = qual_times[name]
        if driver.get("qualTimeMs") == -1 or driver.get("qualTimeMs") != qual_time:
            driver["qualTimeMs"] = qual_time
            updated += 1

    return QualyFixResult(race=patched, updated_count=updated, warnings=warnings)


def fixed_file_name(race_file_name: str) -> str:
    """Race.txt -> Race_fix.txt"""
    base = re.sub(r"\.(txt|json)$", "", race_file_name, flags=re.IGNORECASE)
    return f"{base}_fix.txt"
