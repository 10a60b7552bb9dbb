"""
AI management session and command line for the RaceRoom toolbox.

Ties together game assets, the aiadaptation.xml codec, prediction,
modifications and the processing log.
"""

import argparse
import asyncio
import json
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import Config, Settings
from .assets import load_game_data
from .database_processor import process_database
from .file_access import FileResult, read_text, write_text
from .models import Assets, Database, PlayerTimes, ProcessedDatabase
from .modifications import (
    ai_range,
    apply_generated_range,
    delete_all_but_min,
    delete_player_time,
    has_player_times_changed,
    remove_generated,
    reset_all,
)
from .processing_log import ProcessingLog
from .qualy_fix import QualyFixError, fix_qualy_times, fixed_file_name
from .race_results import parse_result_files
from .standings import build_standings, get_best_lap_times, points_for
from .time_utils import make_time, output_time
from .xml_builder import build_xml
from .xml_parser import parse_adaptive


class AIManager:
    """Owns the session state and applies user actions to it.

    Every action builds new state objects and swaps them in when done.
    """

    def __init__(self, config: Config, log: Optional[ProcessingLog] = None):
        self._config = config
        self._log = log or ProcessingLog(log_dir=str(config.log_dir), echo=config.echo_logs)

        self.game_data: Optional[Dict[str, Any]] = None
        self.assets: Optional[Assets] = None
        self.database: Database = Database()
        self.processed: ProcessedDatabase = ProcessedDatabase()
        self.player_times: PlayerTimes = PlayerTimes()
        self._original_player_times: PlayerTimes = PlayerTimes()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def log(self) -> ProcessingLog:
        return self._log

    def set_config(self, config: Config) -> None:
        """Use a new configuration snapshot and recompute predictions."""
        self._config = config
        self.refresh()

    def refresh(self) -> None:
        """Recompute predictions from the current database."""
        self.processed = process_database(self.database, self._config)

    # ============ LOADING ============

    def load_game_data_text(self, text: str) -> bool:
        """Build the asset catalog from r3e-data.json content."""
        try:
            assets = load_game_data(text)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            self._log.error(f"Failed to parse game data: {e}")
            return False

        self.game_data = json.loads(text)
        self.assets = assets
        self._log.success(f"Loaded {assets.num_classes} classes and {assets.num_tracks} track layouts")
        return True

    async def load_game_data(self, path: Optional[str] = None) -> bool:
        result = await read_text(path or self._config.r3e_data_path)
        if not result.success:
            self._log.error(result.error)
            return False
        return self.load_game_data_text(result.data)

    def merge_xml(self, xml_text: str, source: str = "aiadaptation.xml") -> bool:
        """
        Merge aiadaptation.xml content into the session.

        Returns:
            True if anything was added.
        """
        new_database = self.database.copy()
        new_player_times = self.player_times.copy()
        try:
            added = parse_adaptive(xml_text, new_database, new_player_times)
        except ET.ParseError as e:
            self._log.error(f"Error parsing XML file {source}: {e}")
            return False

        if not added:
            self._log.warning(f"No new data found in {source}")
            return False

        self.database = new_database
        self.player_times = new_player_times
        self._original_player_times = new_player_times.copy()
        self.refresh()
        self._log.success(f"Loaded AI adaptation data from {source}")
        return True

    async def load_xml(self, path: Optional[str] = None) -> bool:
        result = await read_text(path or self._config.aiadaptation_path)
        if not result.success:
            self._log.error(result.error)
            return False
        return self.merge_xml(result.data, source=result.path)

    # ============ AI MODIFICATIONS ============

    def _label(self, class_id: str, track_id: str) -> str:
        if self.assets is None:
            return f"{class_id} - {track_id}"
        return f"{self.assets.class_name(class_id)} - {self.assets.track_name(track_id)}"

    def apply_modification(
        self,
        class_id: str,
        track_id: str,
        ai_from: int,
        ai_to: int,
        spacing: Optional[int] = None,
    ) -> Database:
        """
        Replace a class/track's AI levels with predicted ones.

        Returns:
            The resulting database (unchanged if there is no prediction
            for any level in the range).
        """
        step = spacing if spacing is not None else self._config.ai_spacing
        self._log.clear()
        self._log.info(f"Applying modification for {self._label(class_id, track_id)}")
        self._log.info(f"AI Range: {ai_from} - {ai_to} (step: {step})")

        predicted = self.processed.get_track(class_id, track_id)
        if predicted is None:
            self._log.error("No processed data available for this class/track combination")
            return self.database
        self._log.success("Processed data found")

        wanted = range(ai_from, ai_to + 1, step)
        if not any(level in predicted.ailevels for level in wanted):
            self._log.error(f"No predicted AI levels between {ai_from} and {ai_to}")
            return self.database

        quality = self.processed.get_quality(class_id, track_id)
        if quality is not None and not quality.reliable:
            self._log.warning(
                f"Fit is unreliable: {quality.failed} of {quality.tested} samples outside tolerance"
            )

        new_database = apply_generated_range(
            self.database, self.processed, class_id, track_id, ai_from, ai_to, step,
        )
        track = new_database.get_track(class_id, track_id)
        self._log.success(f"Generated {len(track.ailevels)} AI level(s)")

        self.database = new_database
        self.refresh()
        self._log.success("Modification applied successfully")
        return new_database

    def apply_around(self, class_id: str, track_id: str, level: int, spacing: Optional[int] = None) -> Database:
        """Apply ai_num_levels levels centered on a selected level."""
        step = spacing if spacing is not None else self._config.ai_spacing
        ai_from, ai_to = ai_range(level, self._config, step)
        return self.apply_modification(class_id, track_id, ai_from, ai_to, step)

    def remove_generated(self) -> int:
        """Remove generated AI levels everywhere. Returns the number removed."""
        self._log.clear()
        self._log.info("Starting removal of generated AI levels...")

        new_database, report = remove_generated(self.database)
        for (class_id, track_id), removed in report.items():
            self._log.success(f"Removed {removed} generated levels from {self._label(class_id, track_id)}")

        self.database = new_database
        self.refresh()

        removed_count = sum(report.values())
        if removed_count == 0:
            self._log.warning("No generated AI levels found to remove")
        else:
            self._log.success(f"Successfully removed {removed_count} generated AI level(s)")
        return removed_count

    def reset_all(self) -> None:
        """Clear all AI data, keeping player times."""
        self._log.clear()
        self._log.info("Starting reset of all AI times...")
        self.database = reset_all()
        self.processed = ProcessedDatabase()
        self._log.success("All AI data cleared from database")

    # ============ PLAYER TIMES ============

    def delete_player_time(self, class_id: str, track_id: str, index: int) -> None:
        track = self.player_times.get_track(class_id, track_id)
        if track is None or not 0 <= index < len(track.playertimes):
            self._log.warning(f"No player time #{index} for {self._label(class_id, track_id)}")
            return
        removed = track.playertimes[index]
        self.player_times = delete_player_time(self.player_times, class_id, track_id, index)
        self._log.success(f"Deleted player time {make_time(removed)} from {self._label(class_id, track_id)}")

    def delete_all_but_min(self, class_id: str, track_id: str) -> None:
        if self.player_times.get_track(class_id, track_id) is None:
            self._log.warning(f"No player times for {self._label(class_id, track_id)}")
            return
        self.player_times = delete_all_but_min(self.player_times, class_id, track_id)
        best = self.player_times.get_track(class_id, track_id).playertime
        if best is not None:
            self._log.success(f"Kept best player time {make_time(best)} for {self._label(class_id, track_id)}")

    @property
    def player_times_modified(self) -> bool:
        return has_player_times_changed(self.player_times, self._original_player_times)

    def restore_player_times(self) -> None:
        """Go back to the player times as loaded."""
        self.player_times = self._original_player_times.copy()
        self._log.success("Restored original player times")

    # ============ EXPORT ============

    def build_xml(self) -> Optional[str]:
        if self.assets is None:
            self._log.error("Please load RaceRoom data before exporting XML")
            return None
        return build_xml(self.database, self.player_times, self.assets)

    async def export_xml(self, path: Optional[str] = None) -> Optional[FileResult]:
        xml_text = self.build_xml()
        if xml_text is None:
            return None

        result = await write_text(path or self._config.aiadaptation_path, xml_text)
        if result.success:
            self._log.success(f"Saved aiadaptation.xml to {result.path}")
        else:
            self._log.error(result.error)
        return result

    # ============ SUMMARY ============

    def summary_lines(self) -> List[str]:
        """Human readable overview of the AI database and predictions."""
        lines = []
        for class_id in sorted(self.database.classes, key=_id_key):
            class_record = self.database.classes[class_id]
            for track_id in sorted(class_record.tracks, key=_id_key):
                track = class_record.tracks[track_id]
                if not track.ailevels:
                    continue
                quality = self.processed.get_quality(class_id, track_id)
                if quality is None:
                    fit = "no fit"
                else:
                    fit = f"fit {quality.passed}/{quality.tested}" + ("" if quality.reliable else " (unreliable)")
                player = self.player_times.get_track(class_id, track_id)
                best = make_time(player.playertime) if player and player.playertime is not None else "-"
                slowest = output_time(track.average(track.min_ai))
                fastest = output_time(track.average(track.max_ai))
                lines.append(
                    f"{self._label(class_id, track_id)}: AI {track.min_ai}-{track.max_ai} "
                    f"({len(track.ailevels)} levels, {slowest}s-{fastest}s), player best {best}, {fit}"
                )
        return lines


def _id_key(value: str):
    return (0, int(value), "") if value.isdigit() else (1, 0, value)


# ============ COMMAND LINE ============

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RaceRoom AI adaptation and results toolbox")
    parser.add_argument("--game-data", type=str, help="Path to r3e-data.json")
    parser.add_argument("--xml", type=str, help="Path to aiadaptation.xml")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("info", help="Summarize AI data and fit quality")

    apply_cmd = sub.add_parser("apply", help="Write predicted AI levels around a level")
    apply_cmd.add_argument("--class", dest="class_id", required=True, help="Car class ID")
    apply_cmd.add_argument("--track", dest="track_id", required=True, help="Track layout ID")
    apply_cmd.add_argument("--level", type=int, required=True, help="Selected AI level")
    apply_cmd.add_argument("--spacing", type=int, choices=range(1, 6), metavar="1-5", help="Step between levels")
    apply_cmd.add_argument("--output", type=str, help="Output XML path")

    remove_cmd = sub.add_parser("remove-generated", help="Remove generated AI levels")
    remove_cmd.add_argument("--output", type=str, help="Output XML path")

    reset_cmd = sub.add_parser("reset", help="Clear all AI times, keep player times")
    reset_cmd.add_argument("--output", type=str, help="Output XML path")

    prune_cmd = sub.add_parser("prune-player", help="Delete player lap times")
    prune_cmd.add_argument("--class", dest="class_id", required=True, help="Car class ID")
    prune_cmd.add_argument("--track", dest="track_id", required=True, help="Track layout ID")
    group = prune_cmd.add_mutually_exclusive_group(required=True)
    group.add_argument("--index", type=int, help="Index of the lap time to delete")
    group.add_argument("--keep-best", action="store_true", help="Delete all but the best time")
    prune_cmd.add_argument("--output", type=str, help="Output XML path")

    qualy_cmd = sub.add_parser("fix-qualy", help="Copy qualifying times into a race result")
    qualy_cmd.add_argument("qualifying", type=str, help="Qualifying result file")
    qualy_cmd.add_argument("race", type=str, help="Race result file")
    qualy_cmd.add_argument("--output", type=str, help="Output file path")

    standings_cmd = sub.add_parser("standings", help="Build championship standings")
    standings_cmd.add_argument("files", nargs="+", help="Race result files")
    standings_cmd.add_argument("--ruleset", type=str, default="default", help="Points system")

    return parser


async def _run_ai_command(args: argparse.Namespace, manager: AIManager) -> int:
    if not await manager.load_game_data(args.game_data):
        return 1
    if not await manager.load_xml(args.xml) and args.command != "reset":
        return 1

    if args.command == "info":
        for line in manager.summary_lines():
            print(line)
        return 0

    before = manager.database
    if args.command == "apply":
        manager.apply_around(args.class_id, args.track_id, args.level)
        if manager.database is before:
            return 1
    elif args.command == "remove-generated":
        manager.remove_generated()
    elif args.command == "reset":
        manager.reset_all()
    elif args.command == "prune-player":
        if args.keep_best:
            manager.delete_all_but_min(args.class_id, args.track_id)
        else:
            manager.delete_player_time(args.class_id, args.track_id, args.index)
        if not manager.player_times_modified:
            return 1

    result = await manager.export_xml(args.output or args.xml)
    return 0 if result is not None and result.success else 1


async def _run_fix_qualy(args: argparse.Namespace, log: ProcessingLog) -> int:
    log.info(f"Reading qualification file: {args.qualifying}")
    log.info(f"Reading race file: {args.race}")
    qual_result, race_result = await asyncio.gather(read_text(args.qualifying), read_text(args.race))
    for result in (qual_result, race_result):
        if not result.success:
            log.error(result.error)
            return 1

    try:
        fix = fix_qualy_times(json.loads(qual_result.data), json.loads(race_result.data))
    except (json.JSONDecodeError, QualyFixError) as e:
        log.error(str(e))
        return 1

    for warning in fix.warnings:
        log.warning(warning)
    log.success(f"Updated {fix.updated_count} driver(s) in race file.")

    race_path = Path(args.race)
    output = args.output or str(race_path.with_name(fixed_file_name(race_path.name)))
    written = await write_text(output, json.dumps(fix.race, indent=2))
    if not written.success:
        log.error(written.error)
        return 1
    log.success(f"Saved fixed race file to {written.path}")
    return 0


async def _run_standings(args: argparse.Namespace, manager: AIManager) -> int:
    if not await manager.load_game_data(args.game_data):
        return 1

    reads = await asyncio.gather(*(read_text(path) for path in args.files))
    files = []
    for result in reads:
        if result.success:
            files.append((result.path, result.data))
        else:
            manager.log.warning(result.error)

    races = parse_result_files(files, manager.game_data, args.ruleset)
    if not races:
        manager.log.error("No race results found")
        return 1
    manager.log.success(f"Parsed {len(races)} race(s)")

    standings = build_standings(races, points_for(args.ruleset))
    print("\nDrivers")
    for pos, entry in enumerate(standings.drivers, start=1):
        print(f"{pos:>3}. {entry.driver:<30} {entry.vehicle:<30} {entry.points:>4}")
    if standings.teams:
        print("\nTeams")
        for team, points in sorted(standings.teams.items(), key=lambda item: -item[1]):
            print(f"     {team:<30} {points:>4}")
    best_laps = get_best_lap_times(races)
    if best_laps:
        print("\nBest laps")
        for entry in best_laps:
            print(f"     {entry.time:<12} {entry.driver:<30} {entry.track}")
    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    try:
        settings = Settings()
        if getattr(args, "spacing", None) is not None:
            settings.update(ai_spacing=args.spacing)
    except ValueError as e:
        print(f"[ERROR] Invalid configuration: {e}")
        return 1

    config = settings.snapshot()
    log = ProcessingLog(log_dir=str(config.log_dir), echo=config.echo_logs)
    manager = AIManager(config, log)

    try:
        if args.command == "fix-qualy":
            return await _run_fix_qualy(args, log)
        if args.command == "standings":
            return await _run_standings(args, manager)
        return await _run_ai_command(args, manager)
    except ValueError as e:
        log.error(str(e))
        return 1
    finally:
        if config.save_logs:
            path = log.save()
            if path:
                print(f"Log saved to: {path}")


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
