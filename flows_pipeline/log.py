# flows_pipeline/log.py
#
# One-line progress output for the grant and profile fetches.
#
# Design decisions:
#   - The fetchers, the orchestrator and the background controller in
#     flows_api all call log(), so a single startup load reads as one
#     sequence: grants requested, rows kept, profiles resolved, view state.
#   - Lines carry minutes:seconds since import. The only long-running work is
#     the initial load, and that offset is what tells an operator whether the
#     grant endpoint or the profile lookup was slow.
#   - Plain stdout with an explicit flush, so lines written from the loader
#     thread show up under uvicorn without buffering. Each call is a single
#     write, so lines from the loader and request threads never interleave.
from __future__ import annotations

import sys
import time

_start = time.monotonic()


def log(message: str) -> None:
    """Write a timestamped log line to stdout."""
    elapsed = time.monotonic() - _start
    minutes, seconds = divmod(int(elapsed), 60)
    sys.stdout.write(f"[flows {minutes:02d}:{seconds:02d}] {message}\n")
    sys.stdout.flush()
