import pandas as pd

from scripts.enrich_matches import enrich_pairs, render_markdown, select_readable_fields


def test_enrich_pairs_and_report(tmp_path):
    users = pd.DataFrame(
        {
            "Volunteer_ID": [1, 2],
            "First_Name": ["Ana", "Bilal"],
            "Last_Name": ["Lopez", "Haddad"],
            "LanguagesSpoken": ["English, Spanish", "English, Arabic"],
        }
    )
    pairs = pd.DataFrame(
        [
            {
                "event_id": "e1",
                "user1_id": 1,
                "user1_name": "Ana Lopez",
                "user1_type": "volunteer",
                "user2_id": 2,
                "user2_name": "Bilal Haddad",
                "user2_type": "attendee",
                "match_score": 40,
                "reason": "Shared interest in food",
            }
        ]
    )
    people = select_readable_fields(users)
    assert people["name"].tolist() == ["Ana Lopez", "Bilal Haddad"]

    enriched = enrich_pairs(pairs, people)
    row = enriched.iloc[0]
    assert row["user1_languages"] == "English, Spanish"
    assert row["user2_cultural_background"] == "Middle Eastern"

    out = tmp_path / "report.md"
    render_markdown(enriched, out)
    text = out.read_text(encoding="utf-8")
    assert "## Event e1 (1 pairs)" in text
    assert "Ana Lopez ↔ Bilal Haddad: 40/100" in text
