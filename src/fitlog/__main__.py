"""
Command line entrypoint.

Usage:
    python -m fitlog ingest run1.fit run2.fit   # ingest local .fit files
    python -m fitlog list                       # print stored workouts
    python -m fitlog serve --port 8000          # start the API under uvicorn
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from fitlog.config import get_settings

logger = logging.getLogger(__name__)


def _ingest(paths: List[Path]) -> int:
    from fitlog.db.engine import get_engine
    from fitlog.db.store import WorkoutStore
    from fitlog.ingest.pipeline import IngestionService
    from fitlog.ingest.types import RawActivityFile

    service = IngestionService(WorkoutStore(get_engine()))
    failures = 0
    for path in paths:
        try:
            raw_file = RawActivityFile.from_path(path)
        except OSError as exc:
            logger.error("Cannot read %s: %s", path, exc)
            failures += 1
            continue

        result = service.ingest(raw_file)
        if result.ok:
            print(f"{path.name}: stored as workout {result.summary.id}")
        else:
            print(f"{path.name}: {result.error.message}", file=sys.stderr)
            failures += 1
    return 1 if failures else 0


def _list() -> int:
    from fitlog.db.engine import get_engine
    from fitlog.db.store import WorkoutStore

    for w in WorkoutStore(get_engine()).list_all():
        distance = f"{float(w.distance) / 1000:.2f} km" if w.distance is not None else "-"
        hr = f"{w.avg_heart_rate}/{w.max_heart_rate} bpm" if w.avg_heart_rate is not None else "-"
        print(
            f"{w.id:>5}  {w.uploaded_at:%Y-%m-%d %H:%M}  {w.sport:<12} "
            f"{w.duration // 60:>4} min  {distance:>10}  {hr:>12}  {w.filename}"
        )
    return 0


def _serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("fitlog.api.main:app", host=host, port=port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="fitlog", description="Workout log for Garmin .fit files")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest_cmd = sub.add_parser("ingest", help="ingest one or more .fit files")
    ingest_cmd.add_argument("paths", nargs="+", type=Path)

    sub.add_parser("list", help="list stored workouts")

    serve_cmd = sub.add_parser("serve", help="run the HTTP API")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command == "ingest":
        return _ingest(args.paths)
    if args.command == "list":
        return _list()
    return _serve(args.host, args.port)


if __name__ == "__main__":
    sys.exit(main())
