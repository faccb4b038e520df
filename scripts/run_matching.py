"""Run smart volunteer/attendee pairings for every event in a participation CSV.

Pseudocode:
1) Configure input CSV paths (edit USERS_CSV / PARTICIPATION_CSV as needed)
2) Load users and participation via engagement.ingest
3) Build cultural profiles (languages, interests, preferred locations)
4) Pair volunteers with attendees per event via engagement.matcher.pair_all_events
5) Save results to OUTPUT_CSV and print a brief summary

Notes:
- Pairing strategy and per-event limit come from EIGHTVENTS_PAIR_STRATEGY
  ("edge" keeps pairs one-to-one, "all" lists the best pairs overall) and
  EIGHTVENTS_PAIR_LIMIT.
"""

from __future__ import annotations

from pathlib import Path
import os
import sys
import pandas as pd

# Ensure project root (parent of scripts/) is on sys.path for package imports
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from engagement.feature_engineering import ProfileDirectory
from engagement.ingest import load_participation, load_users
from engagement.matcher import pair_all_events
from dotenv import load_dotenv


# Edit these paths to point at the exports you want to pair
USERS_CSV = Path("data/users.csv")
PARTICIPATION_CSV = Path("data/participation.csv")
OUTPUT_CSV = Path("data/event_pairings.csv")


def main() -> None:
    """Entry point to pair participants of every event in PARTICIPATION_CSV.

    Raises:
        FileNotFoundError: If an input CSV does not exist.
        KeyError: If required columns are missing.
    """
    load_dotenv()
    strategy = os.environ.get("EIGHTVENTS_PAIR_STRATEGY", "edge")
    limit = int(os.environ.get("EIGHTVENTS_PAIR_LIMIT", "20"))

    # 1) Load inputs
    print(f"[1/4] Loading users from {USERS_CSV} and participation from {PARTICIPATION_CSV}...")
    users_df: pd.DataFrame = load_users(USERS_CSV)
    participation_df: pd.DataFrame = load_participation(PARTICIPATION_CSV)
    print(f"       Loaded {len(users_df)} users and {len(participation_df)} participation rows.")

    # 2) Profiles
    print("[2/4] Building cultural profiles...")
    directory = ProfileDirectory.from_frames(users_df, participation_df)
    event_ids = sorted({h.event_id for p in directory for h in p.participation_history if h.event_id})
    print(f"       {len(directory)} profiles across {len(event_ids)} events.")

    # 3) Pairing
    print(f"[3/4] Pairing volunteers with attendees (strategy={strategy}, limit={limit})...")

    def progress(done: int, total: int, event_id: str, pairs: int) -> None:
        if total <= 0:
            return
        if (done % 5 == 0) or (done == total):
            pct = int(100 * done / total)
            print(f"   - [{done}/{total} | {pct}%] last: event {event_id} ({pairs} pairs)")

    pairs_df = pair_all_events(directory, event_ids, limit=limit, strategy=strategy, progress_fn=progress)

    # 4) Save results
    print(f"[4/4] Saving results to {OUTPUT_CSV}...")
    OUTPUT_CSV.parent.mkdir(parents=True, exist_ok=True)
    pairs_df.to_csv(OUTPUT_CSV, index=False)
    print(f"Done. Wrote {len(pairs_df)} pairs to {OUTPUT_CSV}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:
        print(f"Error: {exc}")
        sys.exit(1)
