# ===================================================================
# HEADLESS RUNNER
# Analyses one feed per approach (or loads canned analyses) and prints
# the intersection state tick by tick.
# ===================================================================
import argparse
import json
import mimetypes
import os
import sys
import time

from approach import AnalysisFormatError, AnalysisResult, Direction
from event_log import EventLog
from traffic_system import IntersectionController
from vision import AnalysisServiceError, GeminiVisionService, prepare_upload


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the intersection controller without the web UI.")
    for direction in Direction:
        parser.add_argument(f"--{direction.value.lower()}", metavar="FILE",
                            help=f"Image or video of the {direction.value} approach")
    parser.add_argument("--results", metavar="FILE",
                        help="JSON file of analyses keyed by direction, used instead of the vision service")
    parser.add_argument("--ticks", type=int, default=30, help="Number of one-second ticks to run")
    parser.add_argument("--interval", type=float, default=0.0,
                        help="Real seconds to wait between ticks (0 runs as fast as possible)")
    return parser.parse_args(argv)


def load_results(path):
    """Reads {"North": {...analysis...}, ...} into {Direction: AnalysisResult}."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return {Direction.parse(name): AnalysisResult.from_dict(result) for name, result in data.items()}


def analyze_files(files, service):
    """Sends each approach's file to the vision service. Failed approaches are skipped."""
    results = {}
    for direction, path in files.items():
        mime_type = mimetypes.guess_type(path)[0] or 'application/octet-stream'
        print(f"Analyzing {direction.value} feed: {os.path.basename(path)}")
        try:
            with open(path, "rb") as f:
                _, image_bytes, image_type = prepare_upload(f.read(), mime_type)
            results[direction] = service.analyze(image_bytes, image_type)
        except (OSError, AnalysisServiceError) as e:
            print(f"  ❌ ERROR: Failed to analyze {direction.value}: {e}")
    return results


def format_state(tick, approaches):
    cells = [f"{a.direction.value[0]}:{a.phase.value[0]}{a.timer:>3}{'*' if a.mode.value != 'Normal' else ' '}"
             for a in approaches]
    return f"t={tick:>4}  " + "  ".join(cells)


def run(controller, ticks, interval=0.0):
    for tick in range(1, ticks + 1):
        print(format_state(tick, controller.tick()))
        if interval > 0:
            time.sleep(interval)


def main(argv=None):
    args = parse_args(argv)
    controller = IntersectionController(EventLog())

    if args.results:
        try:
            results = load_results(args.results)
        except (OSError, ValueError, AnalysisFormatError) as e:
            print(f"❌ ERROR: Could not load analyses from '{args.results}': {e}")
            return 1
    else:
        files = {d: getattr(args, d.value.lower()) for d in Direction if getattr(args, d.value.lower())}
        results = analyze_files(files, GeminiVisionService()) if files else {}

    for direction, result in results.items():
        controller.ingest_analysis(direction, result)

    run(controller, args.ticks, args.interval)
    return 0


if __name__ == "__main__":
    sys.exit(main())
