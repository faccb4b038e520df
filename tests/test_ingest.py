from datetime import date

import pandas as pd
import pytest

from engagement.ingest import clean_df, load_csv, load_events, load_participation, load_requests, load_users


def test_clean_df_trims_headers_and_cells():
    df = clean_df(pd.DataFrame({" Name ": ["  Ana \n Lopez ", "nan", ""]}))
    assert list(df.columns) == ["Name"]
    assert df["Name"].tolist() == ["Ana Lopez", None, None]


def test_load_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_csv(tmp_path / "missing.csv")


def test_load_users_requires_id(tmp_path):
    path = tmp_path / "users.csv"
    path.write_text("name,languages\nAna,English\n", encoding="utf-8")
    with pytest.raises(KeyError):
        load_users(path)

    path.write_text("Volunteer_ID,First_Name,LanguagesSpoken\n1,Ana,\"English, Spanish\"\n", encoding="utf-8")
    df = load_users(path)
    assert df.loc[0, "LanguagesSpoken"] == "English, Spanish"


def test_load_participation_requires_event_name(tmp_path):
    path = tmp_path / "participation.csv"
    path.write_text("user_id,event_id\n1,e1\n", encoding="utf-8")
    with pytest.raises(KeyError):
        load_participation(path)


def test_load_events_skips_incomplete_rows(tmp_path):
    path = tmp_path / "events.csv"
    path.write_text(
        "Events_ID,Name,Date,Location,NumOfVolunteersneeded\n"
        "1, Food Festival ,2030-02-01,Aston,5\n"
        "2,,2030-03-01,Digbeth,3\n"
        "3,Chess Club,,,\n",
        encoding="utf-8",
    )
    events = load_events(path)
    assert [e.event_id for e in events] == ["1", "3"]
    assert events[0].name == "Food Festival"
    assert events[0].event_date == date(2030, 2, 1)
    assert events[0].volunteers_needed == 5
    assert events[1].event_date is None
    assert events[1].location is None
    assert events[1].volunteers_needed == 0


def test_load_requests_normalizes_fields(tmp_path):
    path = tmp_path / "requests.csv"
    path.write_text(
        "requestId,Title,Category,Urgency,Location,pointsReward\n"
        "r1,Soup run,Food,HIGH,Aston,75\n"
        ",Orphan row,help,low,Digbeth,10\n"
        "r2,Spare chairs,,,,\n",
        encoding="utf-8",
    )
    requests = load_requests(path)
    assert [r.request_id for r in requests] == ["r1", "r2"]
    assert requests[0].category == "food"
    assert requests[0].urgency == "high"
    assert requests[0].points_reward == 75
    assert requests[1].category is None
    assert requests[1].location == ""
    assert requests[1].points_reward == 0
