"""Convert a tenhou.net/6 log into mjai events.

Usage:
    uv run python bin/convert_log.py log.json
    uv run python bin/convert_log.py log.json -o log.jsonl --hide-names
    cat log.json | uv run python bin/convert_log.py --format msgpack -o log.mpk
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from convlog.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
