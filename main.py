"""
Playlist Analytics Engine - Main Entry Point

Example usage:
    python main.py audio path/to/track.wav
    python main.py playlist road-trip --store data/tracks.json
    python main.py filter road-trip --store data/tracks.json --bpm-min 100 --bpm-max 130
    python main.py diversify road-trip --store data/tracks.json --target 0.6
    python main.py recommend road-trip --store data/tracks.json
"""

import argparse
import json
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from playlist_engine.core.models import FilterCriteria, TrackRecord
from playlist_engine.playlists import JSONTrackStore, filter_tracks, optimize_artist_diversity
from playlist_engine.utils.config import load_config
from playlist_engine.utils.errors import InvalidInputError, PlaylistEngineError
from playlist_engine.utils.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=None, help="Path to configuration file")
    common.add_argument("--output", type=Path, default=None, help="Path to save the report")
    common.add_argument(
        "--format", choices=["json", "text"], default="json", help="Report format for --output"
    )
    common.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")

    parser = argparse.ArgumentParser(description="Analyze audio tracks and playlists")
    commands = parser.add_subparsers(dest="command", required=True)

    audio = commands.add_parser("audio", parents=[common], help="Analyze one audio file or URL")
    audio.add_argument("audio_ref", help="Path or http(s) URL of the audio")

    for name, help_text in (
        ("playlist", "Compute playlist statistics"),
        ("filter", "Filter a playlist's tracks"),
        ("diversify", "Reorder a playlist for artist diversity"),
        ("recommend", "Recommend tracks matching a playlist's tempo"),
    ):
        sub = commands.add_parser(name, parents=[common], help=help_text)
        sub.add_argument("playlist_id", help="Playlist identifier in the track store")
        sub.add_argument("--store", type=Path, required=True, help="Path to JSON track store")

        if name == "filter":
            sub.add_argument("--bpm-min", type=float)
            sub.add_argument("--bpm-max", type=float)
            sub.add_argument("--duration-min", type=float, help="Seconds")
            sub.add_argument("--duration-max", type=float, help="Seconds")
            sub.add_argument("--year-min", type=int)
            sub.add_argument("--year-max", type=int)
            sub.add_argument("--genre", action="append", dest="genres", help="Repeatable")
            sub.add_argument("--exclude-genre", action="append", dest="excluded_genres", help="Repeatable")
            sub.add_argument("--key", action="append", dest="keys", help="Repeatable")
            sub.add_argument("--artist-min", type=int, help="Min tracks per artist")
            sub.add_argument("--artist-max", type=int, help="Max tracks per artist")
        elif name == "diversify":
            sub.add_argument("--target", type=float, default=0.6, help="Unique-artist ratio in [0, 1]")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    # Load configuration
    config_path = str(args.config) if args.config else None
    config = load_config(config_path)

    # Setup logging
    configure_logging(config, verbose=args.verbose)

    try:
        if args.command == "audio":
            return _run_audio(args, config)
        if args.command in ("playlist", "recommend"):
            return _run_engine_playlist(args, config)
        return _run_track_command(args)
    except PlaylistEngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc()
        return 1


def _run_audio(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    from playlist_engine.core.engine import create_playlist_engine

    with create_playlist_engine(config) as engine:
        features = engine.analyze_audio(args.audio_ref)

    _emit(args, features.to_dict(), report=features, title=args.audio_ref)
    return 0


def _run_engine_playlist(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    from playlist_engine.core.engine import create_playlist_engine

    store = JSONTrackStore(args.store)
    with create_playlist_engine(config, track_store=store) as engine:
        if args.command == "playlist":
            stats = engine.analyze_playlist(args.playlist_id)
            _emit(args, stats.to_dict(), report=stats, title=args.playlist_id)
        else:
            tracks = engine.get_recommendations(args.playlist_id)
            _emit(args, _tracks_payload(tracks))
    return 0


def _run_track_command(args: argparse.Namespace) -> int:
    tracks = JSONTrackStore(args.store).get_tracks(args.playlist_id)
    if not tracks:
        raise InvalidInputError(f"Playlist {args.playlist_id} has no tracks", parameter="playlist_id")

    if args.command == "filter":
        result = filter_tracks(tracks, _criteria_from_args(args))
    else:
        result = optimize_artist_diversity(tracks, args.target)

    _emit(args, _tracks_payload(result))
    return 0


def _criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    """Build filter criteria; a range needs both ends given."""
    def _range(low: Optional[float], high: Optional[float], name: str) -> Optional[tuple]:
        if low is None and high is None:
            return None
        if low is None or high is None:
            raise InvalidInputError(f"--{name}-min and --{name}-max must be given together", parameter=name)
        return (low, high)

    try:
        return FilterCriteria(
            bpm_range=_range(args.bpm_min, args.bpm_max, "bpm"),
            duration_range=_range(args.duration_min, args.duration_max, "duration"),
            year_range=_range(args.year_min, args.year_max, "year"),
            genres=args.genres,
            excluded_genres=args.excluded_genres,
            keys=args.keys,
            artist_frequency=_range(args.artist_min, args.artist_max, "artist"),
        )
    except ValueError as e:
        raise InvalidInputError(str(e)) from e


def _tracks_payload(tracks: List[TrackRecord]) -> Dict[str, Any]:
    return {"count": len(tracks), "tracks": [track.to_dict() for track in tracks]}


def _emit(args: argparse.Namespace, payload: Dict[str, Any], report: Any = None, title: str = "") -> None:
    """Print the payload and save it when --output is given."""
    print(json.dumps(payload, indent=2, default=str))

    if not args.output:
        return
    if report is not None:
        from playlist_engine.core.result_writer import create_result_writer

        create_result_writer(args.format).write(report, args.output, title=title)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, default=str)
    print(f"Results saved to: {args.output}", file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
