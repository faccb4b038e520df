#!/usr/bin/env python3
"""Generate synthetic users, events and participation CSVs for demos."""

import argparse
import random
import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import List, Optional

import pandas as pd
import shortuuid
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from engagement.ledger import PointsLedger
from engagement.points_config import REQUEST_CATEGORIES, URGENCY_LEVELS, load_points_config
from engagement.store import JsonPointsStore
from synthetic_generation.synth_models import (
    SyntheticDataset,
    SyntheticEvent,
    SyntheticParticipation,
    SyntheticUser,
)


FIRST_NAMES = [
    "Amara", "Bilal", "Chen", "Dana", "Elif", "Farah", "Goran", "Hana", "Ines", "Jun",
    "Kofi", "Lucia", "Mateo", "Nadia", "Oskar", "Priya", "Quentin", "Rosa", "Sami", "Tomasz",
]
LAST_NAMES = [
    "Okafor", "Khan", "Wei", "Silva", "Yilmaz", "Haddad", "Novak", "Sato", "Moreau", "Park",
    "Mensah", "Rossi", "Garcia", "Ivanova", "Berg", "Patel", "Laurent", "Nguyen", "Costa", "Kowalski",
]
SECOND_LANGUAGES = [
    "Spanish", "Mandarin", "Cantonese", "Arabic", "Hindi", "Urdu", "French", "Portuguese", "Polish",
    "Russian", "Japanese", "Korean", "Vietnamese", "Tagalog", "Italian", "Greek", "German",
]
EVENT_THEMES = [
    "Community Food Drive",
    "Park Environment Cleanup",
    "Music in the Square",
    "Youth Sports Day",
    "Elderly Tea Afternoon",
    "Street Art Workshop",
    "Technology Help Desk",
    "Animals Shelter Open Day",
    "Health and Wellbeing Fair",
    "Culture Night Market",
]
LOCATIONS = ["Aston", "Digbeth", "Edgbaston", "Handsworth", "Selly Oak", "Moseley"]


def generate_id() -> str:
    return shortuuid.ShortUUID().random(length=8)


def generate_users(rng: random.Random, total: int, attendee_share: float = 0.4) -> List[SyntheticUser]:
    users: List[SyntheticUser] = []
    for _ in range(total):
        languages = ["English"] + rng.sample(SECOND_LANGUAGES, k=rng.choice([0, 1, 1, 2]))
        users.append(
            SyntheticUser(
                user_id=generate_id(),
                first_name=rng.choice(FIRST_NAMES),
                last_name=rng.choice(LAST_NAMES),
                user_type="attendee" if rng.random() < attendee_share else "volunteer",
                languages=languages,
            )
        )
    return users


def generate_events(rng: random.Random, total: int, start: date, span_days: int = 120) -> List[SyntheticEvent]:
    """Events spread from `span_days / 2` days before `start` to as many after."""
    events: List[SyntheticEvent] = []
    for i in range(total):
        when = start + timedelta(days=rng.randint(-span_days // 2, span_days // 2))
        events.append(
            SyntheticEvent(
                event_id=str(i + 1),
                event_name=EVENT_THEMES[i % len(EVENT_THEMES)],
                event_date=when.isoformat(),
                location=rng.choice(LOCATIONS),
                volunteers_needed=rng.randint(2, 12),
            )
        )
    return events


def generate_participation(
    rng: random.Random, users: List[SyntheticUser], events: List[SyntheticEvent], per_user: int = 3
) -> List[SyntheticParticipation]:
    rows: List[SyntheticParticipation] = []
    for user in users:
        for event in rng.sample(events, k=min(per_user, len(events))):
            rows.append(
                SyntheticParticipation(
                    user_id=user.user_id,
                    event_id=event.event_id,
                    event_name=event.event_name,
                    event_date=event.event_date,
                    location=event.location,
                    role=user.user_type,
                )
            )
    return rows


def generate_dataset(
    total_users: int, total_events: int, seed: Optional[int] = None, start: Optional[date] = None
) -> SyntheticDataset:
    rng = random.Random(seed)
    users = generate_users(rng, total_users)
    events = generate_events(rng, total_events, start or date.today())
    return SyntheticDataset(
        users=users,
        events=events,
        participation=generate_participation(rng, users, events),
    )


def seed_points(dataset: SyntheticDataset, points_file: Path, seed: Optional[int] = None) -> int:
    """Replay past participation (and some request interest) into a points file.

    Returns the number of activities recorded.
    """
    rng = random.Random(seed)
    events_by_id = {e.event_id: e for e in dataset.events}
    today = date.today()
    recorded = 0
    for row in sorted(dataset.participation, key=lambda r: r.event_date):
        when = date.fromisoformat(row.event_date)
        if when > today:
            continue
        stamp = datetime.combine(when, time(hour=12))
        ledger = PointsLedger(JsonPointsStore(points_file), load_points_config(), clock=lambda: stamp)
        ledger.add_event_points(row.user_id, row.event_id)
        recorded += 1
        if rng.random() < 0.3:
            event = events_by_id[row.event_id]
            ledger.record_interest(
                row.user_id,
                generate_id(),
                50,
                title=f"Help needed after {event.event_name}",
                category=rng.choice(REQUEST_CATEGORIES),
                urgency=rng.choice(URGENCY_LEVELS),
                location=event.location,
            )
            recorded += 1
    return recorded


def write_dataset(dataset: SyntheticDataset, out_dir: Path) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    outputs = [
        (out_dir / "users.csv", [u.to_row() for u in dataset.users]),
        (out_dir / "events.csv", [e.model_dump() for e in dataset.events]),
        (out_dir / "participation.csv", [p.model_dump() for p in dataset.participation]),
    ]
    for path, rows in outputs:
        pd.DataFrame(rows).to_csv(path, index=False)
    return [path for path, _ in outputs]


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Generate synthetic 8vents demo data.")
    parser.add_argument("--users", type=int, default=40, help="Number of synthetic users to generate")
    parser.add_argument("--events", type=int, default=10, help="Number of synthetic events to generate")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--out-dir", type=Path, default=Path("data"), help="Directory for the CSVs")
    parser.add_argument("--seed-points", type=Path, default=None, help="Also replay past participation into this points JSON file")
    return parser.parse_args()


def main() -> None:
    """Entry point for CLI execution."""
    load_dotenv()
    args = parse_args()

    print(f"Generating {args.users} users and {args.events} events...")
    dataset = generate_dataset(args.users, args.events, seed=args.seed)
    for path in write_dataset(dataset, args.out_dir):
        print(f"Saved {path}")

    if args.seed_points:
        recorded = seed_points(dataset, args.seed_points, seed=args.seed)
        print(f"Recorded {recorded} activities into {args.seed_points}")


if __name__ == "__main__":
    main()
