#!/usr/bin/env python3
"""Daily cron script: schedules the game for a date from a track list.

Usage:
    python scripts/daily_cron.py --tracks tracks.txt            # schedule today
    python scripts/daily_cron.py --tracks tracks.txt --force    # replace an existing song
    python scripts/daily_cron.py --date 2026-01-01 --pending    # reserve a date with no song

Run this daily (e.g. via crontab or a scheduler):
    0 2 * * * /path/to/venv/bin/python /path/to/scripts/daily_cron.py --tracks /path/to/tracks.txt

The track file holds one Spotify track id (or spotify:track: URI) per line;
blank lines and lines starting with '#' are ignored. The track for a date is
picked deterministically: index = date.toordinal() % len(tracks).
"""

import argparse
import asyncio
from datetime import date
from pathlib import Path

from lyricle import database
from lyricle.errors import GameNotFoundError
from lyricle.service import GameService


def read_tracks(path: str) -> list[str]:
    lines = [
        line.strip()
        for line in Path(path).read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    if not lines:
        raise ValueError(f"Track file has no track ids: {path}")
    return lines


def pick_track(tracks: list[str], target_date: date) -> str:
    """Deterministically pick a track for the given date."""
    return tracks[target_date.toordinal() % len(tracks)]


async def schedule(target_date: date, tracks: list[str] | None, force: bool = False) -> None:
    await database.init_db()
    try:
        async with database.SessionLocal() as session:
            service = GameService(session)
            day = target_date.isoformat()

            try:
                existing = await service.get_by_date(day)
            except GameNotFoundError:
                existing = None

            if existing is not None and existing.song_id is not None and not force:
                print(f"[cron] Game for {day} already has a song. Use --force to replace it.")
                return

            if tracks is None:
                await service.create_pending(day)
                print(f"[cron] Reserved {day} (pending).")
                return

            track_id = pick_track(tracks, target_date)
            print(f"[cron] Scheduling track {track_id} for {day} …")
            game = await service.create_from_track(day, track_id)
            print(f"[cron] Saved → {game.date}: {game.song.title} by {game.song.artist}")
    finally:
        await database.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Schedule the daily lyrics game.")
    parser.add_argument(
        "--date",
        help="Target date in YYYY-MM-DD format (default: today)",
        default=None,
    )
    parser.add_argument("--tracks", help="File with one Spotify track id per line.")
    parser.add_argument(
        "--pending",
        action="store_true",
        help="Reserve the date without a song instead of scheduling a track.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace the song even if the date already has one.",
    )
    args = parser.parse_args()

    if not args.pending and not args.tracks:
        parser.error("--tracks is required unless --pending is given")

    target = date.fromisoformat(args.date) if args.date else date.today()
    tracks = None if args.pending else read_tracks(args.tracks)
    asyncio.run(schedule(target, tracks, force=args.force))


if __name__ == "__main__":
    main()
