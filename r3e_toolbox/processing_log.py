"""
Processing log for user actions.
"""

import gzip
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

LEVELS = ("info", "success", "warning", "error")


class ProcessingLog:
    """Collects messages produced while processing files."""

    def __init__(self, log_dir: str = "./data/logs", echo: bool = True):
        self.log_dir = log_dir
        self.echo = echo
        self._entries: List[Dict[str, Any]] = []
        self._start_time: datetime = datetime.now()

    @property
    def entries(self) -> List[Dict[str, Any]]:
        return list(self._entries)

    def add(self, level: str, message: str) -> None:
        """
        Add a log entry.

        Args:
            level: One of "info", "success", "warning", "error".
            message: Text shown to the user.
        """
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")

        self._entries.append({
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "message": message,
        })
        if self.echo:
            print(f"[{level.upper()}] {message}")

    def info(self, message: str) -> None:
        self.add("info", message)

    def success(self, message: str) -> None:
        self.add("success", message)

    def warning(self, message: str) -> None:
        self.add("warning", message)

    def error(self, message: str) -> None:
        self.add("error", message)

    def clear(self) -> None:
        """Start a fresh log for a new action."""
        self._entries = []
        self._start_time = datetime.now()

    def has_errors(self) -> bool:
        return any(entry["level"] == "error" for entry in self._entries)

    def save(self) -> Optional[str]:
        """
        Save the entries to a gzipped JSON file.

        Returns:
            Path to the saved file, or None if there was nothing to save.
        """
        if not self._entries:
            return None

        Path(self.log_dir).mkdir(parents=True, exist_ok=True)

        # Filename from timestamp with microseconds for uniqueness
        filename = self._start_time.strftime("%Y-%m-%d_%H-%M-%S-%f") + ".json.gz"
        filepath = os.path.join(self.log_dir, filename)

        with gzip.open(filepath, "wt", encoding="utf-8") as f:
            json.dump({
                "start_time": self._start_time.isoformat(),
                "entries": self._entries,
            }, f, indent=2)

        return filepath
