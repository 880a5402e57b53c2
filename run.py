import argparse
import json
import random
from pathlib import Path

from grade.assembler import GradeAssemblyEngine
from grade.fixed_content import DAYS
from grade.log import configure_logging
from grade.ranking import EngineState
from grade.rules import merge_config
from grade.store import CONFIG_KEY, SEQUENCE_KEY, JsonFileStore, MemoryStore
from grade.validator import validate_day


def load_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def load_catalog(path: Path) -> list[str]:
    """A JSON list of filenames, or a plain listing with one filename per line."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        raw = json.loads(text)
        files = raw.get("files", []) if isinstance(raw, dict) else raw
    else:
        files = text.splitlines()
    return [f.strip() for f in files if isinstance(f, str) and f.strip()]


def load_stations(path: Path) -> list:
    raw = load_json(path)
    if isinstance(raw, dict):
        raw = raw.get("stations", [])
    return raw


def main():
    parser = argparse.ArgumentParser(description="Assemble one broadcast day.")
    parser.add_argument("--catalog", required=True, help="Catalog listing (.json list or one file per line)")
    parser.add_argument("--stations", required=True, help="JSON list of station snapshots")
    parser.add_argument("--day", required=True, choices=DAYS, help="Day code, e.g. seg")
    parser.add_argument("--state", help="JSON store holding ranking, rotation and settings")
    parser.add_argument("--seed", type=int, help="Seed for reproducible picks")
    parser.add_argument("--output", help="Write the assembled slots as JSON to this path")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    configure_logging(args.log_level)

    store  = JsonFileStore(args.state) if args.state else MemoryStore()
    config = merge_config(store.get(CONFIG_KEY) or {})
    state  = EngineState.from_store(store, interval_minutes=config["artist_repetition_minutes"])
    engine = GradeAssemblyEngine(
        config=config,
        state=state,
        rotation=store.get(SEQUENCE_KEY),
        rng=random.Random(args.seed),
    )

    slots = engine.assemble_full_day(
        args.day,
        catalog_files=load_catalog(Path(args.catalog)),
        stations=load_stations(Path(args.stations)),
    )
    report = validate_day(slots, config)

    title = f"Grade: {args.day}"
    print(f"\n{title}")
    print("=" * len(title))
    for slot in slots:
        flag = " [fixed]" if slot.is_fixed else ""
        print(f"\n{slot.time}  {slot.program_id}{flag}")
        for item in slot.content:
            if item.fills_position:
                source = f"  ({item.source})" if item.source else ""
                mark   = "✓" if item.is_music else "✗"
                print(f"  {mark} {item.value}{source}")
            elif item.kind.value == "fixed":
                print(f"  * {item.value}")

    stats = report["stats"]
    print(f"\nMusic: {stats['music']}  Placeholders: {stats['placeholders']}  "
          f"Match rate: {stats['match_rate']}%  Artists: {stats['unique_artists']}")
    for violation in report["violations"][:10]:
        print(f"  - [{violation['severity']}] {violation['message']}")
    if len(report["violations"]) > 10:
        print(f"  - (+{len(report['violations']) - 10} more)")

    if args.output:
        Path(args.output).write_text(
            json.dumps([s.to_dict() for s in slots], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    print("\nDone.\n")


if __name__ == "__main__":
    main()
