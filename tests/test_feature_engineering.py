from datetime import date

import pandas as pd
import pytest

from engagement.data_models import CulturalProfile, UserPointsRecord
from engagement.errors import ProfileNotFoundError
from engagement.feature_engineering import (
    ProfileDirectory,
    community_diversity,
    extract_interests,
    extract_keywords,
    infer_cultural_background,
    parse_languages,
    profile_from_points_record,
)


def test_parse_languages_defaults_to_english():
    assert parse_languages("English, Spanish ,") == ["English", "Spanish"]
    assert parse_languages(None) == ["English"]
    assert parse_languages(float("nan")) == ["English"]
    assert parse_languages("") == ["English"]
    assert parse_languages(["Polish", " "]) == ["Polish"]


def test_infer_cultural_background_dedupes_groups():
    assert infer_cultural_background(["Spanish", "English", "Mandarin", "Cantonese"]) == [
        "Hispanic/Latino",
        "East Asian",
    ]


def test_extract_interests_and_keywords():
    assert extract_interests(["Food Drive", "Music Night", "Food Bank"]) == ["food", "music"]
    assert extract_keywords("The Big Food Festival at the Park") == ["food", "festival", "park"]


def test_profile_lists_are_deduplicated_case_insensitively():
    profile = CulturalProfile(user_id="1", languages=["English", "english", "Spanish"], interests=["Food", "food"])
    assert profile.languages == ["English", "Spanish"]
    assert profile.interests == ["Food"]


def test_directory_from_frames():
    users = pd.DataFrame(
        {
            "Volunteer_ID": [1, 2],
            "First_Name": ["Ana", "Bilal"],
            "Last_Name": ["Lopez", "Haddad"],
            "LanguagesSpoken": ["English, Spanish", None],
        }
    )
    participation = pd.DataFrame(
        {
            "user_id": [1, 1, 2],
            "event_id": ["e1", "e2", "e1"],
            "event_name": ["Food Drive", "Music Night", "Food Drive"],
            "event_date": ["2024-01-05", "2024-02-10", "2024-01-05"],
            "location": ["Aston", "Digbeth", "Aston"],
        }
    )
    directory = ProfileDirectory.from_frames(users, participation)
    assert len(directory) == 2
    assert "1" in directory

    ana = directory.get("1")
    assert ana.name == "Ana Lopez"
    assert ana.languages == ["English", "Spanish"]
    assert ana.cultural_background == ["Hispanic/Latino"]
    assert ana.location_preferences == ["Digbeth", "Aston"]
    assert set(ana.interests) == {"food", "music"}
    assert ana.participation_history[0].event_date == date(2024, 2, 10)

    bilal = directory.get("2")
    assert bilal.languages == ["English"]
    assert [p.user_id for p in directory.others("1")] == ["2"]

    with pytest.raises(ProfileNotFoundError):
        directory.get("3")


def test_directory_requires_an_id_column():
    with pytest.raises(ValueError):
        ProfileDirectory.from_frames(pd.DataFrame({"name": ["x"]}))


def test_profile_from_points_record():
    record = UserPointsRecord.new("u1", "Ana")
    record.category_preferences["food"] = 2
    record.location_preferences = ["Aston"]
    profile = profile_from_points_record(record, languages="English, French")
    assert profile.interests == ["food"]
    assert profile.location_preferences == ["Aston"]
    assert profile.cultural_background == ["Francophone"]


def test_community_diversity():
    report = community_diversity([["English", "Spanish"], ["English", "Arabic"], ["Mandarin"]])
    assert report["total_users"] == 3
    assert report["languages_represented"][0] == {"language": "English", "count": 2}
    assert len(report["cultural_groups"]) == 3
    assert report["diversity_score"] == 67
    assert any("cultural exchange" in tip for tip in report["bridging_opportunities"])
    assert any("underrepresented" in tip for tip in report["bridging_opportunities"])


def test_community_diversity_empty():
    report = community_diversity([])
    assert report["total_users"] == 0
    assert report["diversity_score"] == 0
    assert report["bridging_opportunities"] == []
