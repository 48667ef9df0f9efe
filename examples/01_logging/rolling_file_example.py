#!/usr/bin/env python3
"""
Rolling File Logging Example

Configures a root logger with a console stream and a rolling file stream,
logs from a small logger hierarchy and prints where the records went.

Running the Example:
    # From the project root
    python examples/01_logging/rolling_file_example.py

Expected Output:
    Colored console lines for each entry, followed by the path of the JSON
    log file and its contents.
"""

import pathlib
import sys
import tempfile

# Add the project root to the path
project_root = str(pathlib.Path(__file__).resolve().parents[2])
sys.path.append(project_root) if project_root not in sys.path else None

from logrelay.log import MasterLogger


def main() -> None:
    log_dir = tempfile.mkdtemp(prefix="logrelay-example-")

    root = MasterLogger("example")
    root.configure(
        {
            "level": "debug",
            "base_log": {"service": "example"},
            "streams": [
                {"name": "console", "tags": ["timeMs", "context"]},
                {"name": "rollingFile", "log_dir": log_dir, "max_size_mb": 1, "auto_archive": False},
            ],
        }
    )

    db = root.create_logger("db")
    db.debug({"msg": "connecting", "host": "localhost", "port": 5432})
    db.info("connected")
    root.create_logger("http").warn({"msg": "slow request", "ms": 1250, "path": "/api"})

    try:
        {}["missing"]
    except KeyError as e:
        db.error(e)

    path = root.rolling_file_stream.file
    root.end()

    print(f"\nrecords written to {path}:")
    with open(path, encoding="utf-8") as f:
        sys.stdout.write(f.read())


if __name__ == "__main__":
    main()
