"""Enrich event pairings with user details and render Markdown.

This module reads a pairings CSV (output of `scripts/run_matching.py`) and the
users CSV used for pairing, joins human-readable fields for each side of the
pair, and produces:

- An enriched CSV with flattened user1/user2 details
- A Markdown report, grouped by event, suitable for organisers
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Any
import pandas as pd
import argparse
from datetime import datetime
import sys

# Ensure project root (parent of scripts/) is on sys.path for package imports
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from engagement.feature_engineering import infer_cultural_background, parse_languages
from engagement.ingest import get_alias_column, get_alias_series, load_csv, load_users
from engagement.matcher import PAIR_COLUMNS


def select_readable_fields(users_df: pd.DataFrame) -> pd.DataFrame:
    """Project a users table to id, name, type, languages and cultural background.

    Args:
        users_df: Users table as loaded by `engagement.ingest.load_users`.

    Returns:
        A projected DataFrame with standardized column names.
    """
    id_col = get_alias_column(users_df, "id")
    if id_col is None:
        raise ValueError("No suitable identifier column found in users CSV.")

    names = get_alias_series(users_df, "name", default=None)
    first = get_alias_series(users_df, "first_name", default=None)
    last = get_alias_series(users_df, "last_name", default=None)
    langs = get_alias_series(users_df, "languages", default=None).apply(parse_languages)

    def full_name(idx: Any) -> str:
        if pd.notna(names.at[idx]) and names.at[idx]:
            return str(names.at[idx])
        parts = [str(p) for p in (first.at[idx], last.at[idx]) if p is not None and pd.notna(p)]
        return " ".join(parts)

    return pd.DataFrame(
        {
            "user_id": users_df[id_col].astype(str),
            "name": [full_name(idx) for idx in users_df.index],
            "languages": langs.apply(", ".join),
            "cultural_background": langs.apply(lambda ls: ", ".join(infer_cultural_background(ls))),
        },
        index=users_df.index,
    )


def enrich_pairs(pairs_df: pd.DataFrame, people_df: pd.DataFrame) -> pd.DataFrame:
    """Join pairing rows with user1/user2 details.

    Args:
        pairs_df: DataFrame from `run_matching.py`.
        people_df: Projected users DataFrame from `select_readable_fields`.

    Returns:
        Enriched DataFrame with flattened user1_* and user2_* columns.
    """
    missing = set(PAIR_COLUMNS) - set(pairs_df.columns)
    if missing:
        raise KeyError(f"Pairings CSV missing required columns: {sorted(missing)}")

    base = pairs_df.copy()
    for col in ["event_id", "user1_id", "user2_id"]:
        base[col] = base[col].astype(str)

    # de-duplicate users to avoid many-to-many explosions
    right = people_df.drop_duplicates(subset=["user_id"], keep="first")
    details = ["languages", "cultural_background"]

    joined = base
    for side in ("user1", "user2"):
        side_df = right[["user_id"] + details].rename(
            columns={"user_id": f"{side}_id", **{c: f"{side}_{c}" for c in details}}
        )
        joined = joined.merge(side_df, how="left", on=f"{side}_id")

    final_cols: List[str] = [
        "event_id",
        "match_score",
        "user1_id", "user2_id",
        "user1_name", "user2_name",
        "user1_languages", "user2_languages",
        "user1_cultural_background", "user2_cultural_background",
        "reason",
    ]
    for c in final_cols:
        if c not in joined.columns:
            joined[c] = None
    return joined[final_cols]


def render_markdown(enriched_df: pd.DataFrame, out_path_md: Path) -> None:
    """Render a Markdown report from the enriched pairings, one section per event."""
    lines: List[str] = []
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    lines.append("# Event Pairings Report\n")
    lines.append(f"Generated: {ts}\n")
    lines.append(f"Total pairs: {len(enriched_df)}\n\n")

    def cell(v: Any) -> str:
        return "" if v is None or (not isinstance(v, str) and pd.isna(v)) else str(v)

    for event_id, group in enriched_df.groupby("event_id", sort=True):
        lines.append(f"## Event {event_id} ({len(group)} pairs)\n")
        group = group.sort_values("match_score", ascending=False)
        for i, (_, row) in enumerate(group.iterrows(), start=1):
            lines.append(f"### {i}. {cell(row['user1_name'])} ↔ {cell(row['user2_name'])}: {int(row['match_score'])}/100\n")
            lines.append(f"Volunteer: {cell(row['user1_languages'])} ({cell(row['user1_cultural_background']) or 'n/a'})\n")
            lines.append(f"Attendee: {cell(row['user2_languages'])} ({cell(row['user2_cultural_background']) or 'n/a'})\n")
            lines.append(f"> {cell(row['reason'])}\n")

    out_path_md.parent.mkdir(parents=True, exist_ok=True)
    out_path_md.write_text("\n".join(lines), encoding="utf-8")


def main() -> None:
    """CLI entrypoint: read CSVs, enrich pairings, write CSV and Markdown.

    Steps:
        1) Load pairings and users
        2) Project readable user fields
        3) Enrich and write CSV
        4) Render Markdown report
    """
    parser = argparse.ArgumentParser(description="Enrich event pairings with user details and render report")
    parser.add_argument("--pairs", type=Path, required=True, help="Path to pairings CSV (from run_matching.py)")
    parser.add_argument("--users", type=Path, required=True, help="Path to users CSV used for pairing")
    parser.add_argument("--out-dir", type=Path, default=Path("data_examples"), help="Output directory for enriched files")
    args = parser.parse_args()

    print(f"[1/4] Loading pairings: {args.pairs}")
    pairs_df = load_csv(args.pairs)

    print(f"[2/4] Loading users: {args.users}")
    people = select_readable_fields(load_users(args.users))

    print("[3/4] Enriching pairings…")
    enriched = enrich_pairs(pairs_df, people)

    args.out_dir.mkdir(parents=True, exist_ok=True)
    out_csv = args.out_dir / "pairings_enriched.csv"
    print(f"Writing enriched CSV: {out_csv}")
    enriched.to_csv(out_csv, index=False)

    out_md = args.out_dir / "pairings_report.md"
    print(f"[4/4] Rendering Markdown report: {out_md}")
    render_markdown(enriched, out_md)
    print("Done.")


if __name__ == "__main__":
    main()
