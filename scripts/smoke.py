# scripts/smoke.py
"""
Smoke Test Script for the timelinemapper extraction cycle.

Usage
-----
1. Run the first app of the bundled registry:
    $ python scripts/smoke.py

2. Pick a registry and an app explicitly:
    $ python scripts/smoke.py --registry config/registry.yml --app quakes
"""

import argparse
import asyncio
import logging
import sys
import traceback
from pathlib import Path

from dotenv import load_dotenv

from timelinemapper.core.errors import TimelineError
from timelinemapper.core.registry import resolve_app_config
from timelinemapper.timeline.session import TimelineSession

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

DEFAULT_REGISTRY = Path(__file__).resolve().parents[1] / "config" / "registry.yml"


def main() -> None:
    """Resolve an app, run one extraction and walk the navigator end to end."""
    parser = argparse.ArgumentParser(description="Run the timelinemapper smoke test")
    parser.add_argument("--registry", "-r", type=Path, default=DEFAULT_REGISTRY)
    parser.add_argument("--app", "-a", type=str, default=None, help="App id in the registry")
    args = parser.parse_args()

    # 1. Resolve and extract
    try:
        config, config_path = resolve_app_config(args.registry, args.app)
        print(f"\n📂 App: {config.app.title} ({config_path})")
        session = TimelineSession.from_app_config(config, config_path)
        asyncio.run(session.reload())
    except TimelineError as exc:
        print(f"\n❌ Extraction failed ({exc.kind}): {exc}")
        traceback.print_exc()
        sys.exit(1)

    # 2. Inspect the events
    navigator = session.navigator
    print("\n" + "=" * 60)
    print(f"✅ {len(navigator)} events extracted")
    print("=" * 60)
    for i, event in enumerate(navigator.events):
        where = "no location"
        if event.lon_lat is not None:
            where = f"{event.lon_lat[0]:.3f}, {event.lon_lat[1]:.3f}"
        print(f"  {i}. [{event.formatted_date}] {event.title} ({where})")

    # 3. Walk the cursor and the filter
    steps = 0
    while navigator.next():
        steps += 1
    navigator.set_filter_mode(True)
    print(f"\n🧭 Stepped {steps} times; filter shows {len(navigator.visible_events)} events")
    print(f"🔎 Standing filter on the source: {session.source.definition_expression}")


if __name__ == "__main__":
    main()
