import pandas as pd
import pytest

from stormstats.loader import LoadError, load_storm_data

from conftest import HEADER


def test_loads_required_columns(storm_csv):
    ds = load_storm_data(str(storm_csv))
    assert len(ds.events) == 6
    first = ds.events[0]
    assert first.event_type == "TORNADO"
    assert first.injuries == 15
    assert first.property_damage_magnitude == 25
    assert first.property_damage_unit == "K"
    assert first.crop_damage_unit == ""
    assert [e.event_id for e in ds.events] == list(range(6))
    assert ds.source_path == str(storm_csv)


def test_text_is_not_normalized_by_loader(storm_csv):
    ds = load_storm_data(str(storm_csv))
    assert ds.events[2].event_type == " hail "
    assert ds.events[5].property_damage_unit == "m"


def test_missing_counts(storm_csv):
    ds = load_storm_data(str(storm_csv))
    assert ds.missing["FATALITIES"] == 0
    assert ds.missing["PROPDMGEXP"] == 2
    assert ds.missing["CROPDMGEXP"] == 5


def test_compressed_csv(tmp_path, storm_csv):
    path = tmp_path / "storm.csv.bz2"
    pd.read_csv(storm_csv).to_csv(path, index=False, compression="bz2")
    assert len(load_storm_data(str(path)).events) == 6


def test_column_names_are_matched_loosely(tmp_path):
    path = tmp_path / "lower.csv"
    path.write_text("evtype,Fatalities,injuries,prop_dmg,PropDmgExp,cropdmg,CROPDMGEXP\nHAIL,0,1,2,K,0,\n")
    (e,) = load_storm_data(str(path)).events
    assert e.event_type == "HAIL"
    assert e.property_damage_usd == 2000


def test_numeric_unit_codes_read_as_text(tmp_path):
    path = tmp_path / "digits.csv"
    path.write_text(HEADER + "1,FLOOD,0,0,4,5,1,0\n")
    (e,) = load_storm_data(str(path)).events
    assert e.property_damage_unit == "5"
    assert e.crop_damage_unit == "0"


def test_missing_column_fails_fast(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("EVTYPE,FATALITIES,INJURIES,PROPDMG,PROPDMGEXP,CROPDMG\nHAIL,0,0,0,,0\n")
    with pytest.raises(LoadError, match="CROPDMGEXP"):
        load_storm_data(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(LoadError, match="not found"):
        load_storm_data(str(tmp_path / "nope.csv"))


def test_unparsable_file(tmp_path):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"definitely not a workbook")
    with pytest.raises(LoadError, match="Could not parse"):
        load_storm_data(str(path))


def test_numeric_na_fails_by_default(tmp_path):
    path = tmp_path / "na.csv"
    path.write_text(HEADER + "1,HAIL,,1,0,,0,\n1,WIND,0,x,0,,0,\n")
    with pytest.raises(LoadError, match="FATALITIES"):
        load_storm_data(str(path))


def test_numeric_na_as_zero(tmp_path):
    path = tmp_path / "na.csv"
    path.write_text(HEADER + "1,HAIL,,1,0,,0,\n1,WIND,0,x,0,,0,\n")
    ds = load_storm_data(str(path), na_policy="zero")
    assert [e.fatalities for e in ds.events] == [0, 0]
    assert [e.injuries for e in ds.events] == [1, 0]
    assert ds.missing["FATALITIES"] == 1
    assert ds.missing["INJURIES"] == 1


def test_negative_magnitude_rejected(tmp_path):
    path = tmp_path / "neg.csv"
    path.write_text(HEADER + "1,HAIL,0,0,-5,K,0,\n")
    with pytest.raises(LoadError, match="PROPDMG"):
        load_storm_data(str(path))


def test_unknown_na_policy(storm_csv):
    with pytest.raises(ValueError):
        load_storm_data(str(storm_csv), na_policy="drop")


def test_excel_input(tmp_path, storm_csv):
    path = tmp_path / "storm.xlsx"
    pd.read_csv(storm_csv).to_excel(path, index=False, engine="openpyxl")
    ds = load_storm_data(str(path))
    assert len(ds.events) == 6
    assert ds.events[4].property_damage_unit == "B"


def test_xls_suffix_is_not_sent_to_openpyxl(tmp_path, storm_csv):
    # only .xlsx is an Excel workbook here; other suffixes are read as text
    path = tmp_path / "storm.xls"
    path.write_text(storm_csv.read_text())
    assert len(load_storm_data(str(path)).events) == 6
