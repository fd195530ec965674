"""
Report writers for playlist statistics and per-track features.

Strategy pattern: each writer renders one output format; new formats can
be added without touching the command line.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import IO, Union

from playlist_engine.core.models import MODE_MAJOR, SCORE_FIELDS, AudioFeatures, PlaylistStats

Report = Union[PlaylistStats, AudioFeatures]


class ReportWriter(ABC):
    """Abstract base class for report writers."""

    @abstractmethod
    def write(self, report: Report, output_path: Path, title: str = "") -> None:
        """Write a report to the specified path."""
        pass


class TextReportWriter(ReportWriter):
    """Writes reports as a human-readable text file."""

    def __init__(self, include_timestamp: bool = True):
        """
        Initialize text writer.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        self.logger = logging.getLogger("result_writer.text")

    def write(self, report: Report, output_path: Path, title: str = "") -> None:
        """
        Write a report to a text file.

        Args:
            report: Playlist stats or track features
            output_path: Path to output text file
            title: Playlist id or audio reference shown in the header
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("=" * 70 + "\n")
            heading = "PLAYLIST ANALYSIS" if isinstance(report, PlaylistStats) else "AUDIO FEATURES"
            f.write(f"{heading}{': ' + title if title else ''}\n")
            f.write("=" * 70 + "\n")

            if self.include_timestamp:
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n")

            if isinstance(report, PlaylistStats):
                self._write_stats(f, report)
            else:
                self._write_features(f, report)

            f.write("=" * 70 + "\n")
            f.write("END OF REPORT\n")

        self.logger.info(f"Report written to: {output_path}")

    def _write_stats(self, f: IO[str], stats: PlaylistStats) -> None:
        f.write(f"Summary: {stats.get_summary()}\n\n")
        f.write(f"Tracks: {stats.track_count}\n")
        f.write(f"Total Duration: {stats.total_duration:.0f}s\n")
        if stats.bpm_range:
            f.write(f"Average BPM: {stats.average_bpm:.1f}\n")
            f.write(f"BPM Range: {stats.bpm_range.min:.1f} - {stats.bpm_range.max:.1f}\n")
        else:
            f.write("BPM: no tempo data\n")
        f.write(f"Artist Diversity: {stats.artist_diversity:.2f}\n")

        for heading, distribution in (
            ("Keys", stats.key_distribution),
            ("Genres", stats.genre_distribution),
            ("Tempo", stats.tempo_distribution),
            ("Decades", stats.year_distribution),
        ):
            if distribution:
                f.write(f"\n{heading}:\n")
                for label, count in distribution.items():
                    f.write(f"  {label}: {count}\n")

        mood = stats.mood_profile
        f.write("\nMood Profile:\n")
        f.write(f"  Energy: {mood.energy:.2f}\n")
        f.write(f"  Danceability: {mood.danceability:.2f}\n")
        f.write(f"  Valence: {mood.valence:.2f}\n\n")

    def _write_features(self, f: IO[str], features: AudioFeatures) -> None:
        f.write(f"Tempo: {features.bpm:.1f} BPM ({features.sources.get('bpm', 'coarse')})\n")
        mode = 'major' if features.mode == MODE_MAJOR else 'minor'
        f.write(f"Key: {features.key} {mode} ({features.sources.get('key', 'coarse')})\n")
        for name in SCORE_FIELDS:
            f.write(f"{name.capitalize()}: {getattr(features, name):.2f}\n")
        if features.confidence:
            f.write("\nLocal Confidence:\n")
            for name, value in features.confidence.items():
                f.write(f"  {name}: {value:.2%}\n")
        f.write("\n")


class JSONReportWriter(ReportWriter):
    """Writes reports to a JSON file."""

    def __init__(self, indent: int = 2):
        """
        Initialize JSON writer.

        Args:
            indent: JSON indentation level
        """
        self.indent = indent
        self.logger = logging.getLogger("result_writer.json")

    def write(self, report: Report, output_path: Path, title: str = "") -> None:
        """
        Write a report to a JSON file.

        Args:
            report: Playlist stats or track features
            output_path: Path to output JSON file
            title: Playlist id or audio reference
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_data = {
            "generated": datetime.now().isoformat(),
            "subject": title,
            "report": report.to_dict(),
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=self.indent, default=str)

        self.logger.info(f"Report written to: {output_path}")


def create_result_writer(format: str = "text", **kwargs) -> ReportWriter:
    """
    Factory function to create appropriate report writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ReportWriter instance
    """
    writers = {
        "text": TextReportWriter,
        "txt": TextReportWriter,
        "json": JSONReportWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
