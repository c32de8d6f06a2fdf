import matplotlib

matplotlib.use("Agg")

import pytest

from stormstats.models import StormEvent

HEADER = "STATE__,EVTYPE,FATALITIES,INJURIES,PROPDMG,PROPDMGEXP,CROPDMG,CROPDMGEXP\n"


def make_event(event_type="HAIL", fatalities=0, injuries=0,
               propdmg=0, propdmgexp="", cropdmg=0, cropdmgexp="", event_id=0):
    return StormEvent(
        event_id=event_id,
        event_type=event_type,
        fatalities=float(fatalities),
        injuries=float(injuries),
        property_damage_magnitude=float(propdmg),
        property_damage_unit=propdmgexp,
        crop_damage_magnitude=float(cropdmg),
        crop_damage_unit=cropdmgexp,
    )


@pytest.fixture
def sample_events():
    return [
        make_event("HAIL", injuries=2, event_id=0),
        make_event(" hail ", fatalities=1, event_id=1),
        make_event("WIND", event_id=2),
        make_event("TORNADO", fatalities=5, injuries=40, propdmg=2.5, propdmgexp="M", event_id=3),
        make_event("tornado", propdmg=25, propdmgexp="k", cropdmg=1, cropdmgexp="B", event_id=4),
        make_event("FLOOD", propdmg=10, propdmgexp="?", event_id=5),
    ]


@pytest.fixture
def storm_csv(tmp_path):
    """Small CSV in the layout of the NOAA export (extra columns included)."""
    path = tmp_path / "storm.csv"
    path.write_text(
        HEADER
        + "1,TORNADO,0,15,25,K,0,\n"
        + "1,TSTM WIND,0,0,5,K,0,\n"
        + "1, hail ,1,0,0,,10,M\n"
        + "2,HAIL,0,2,0,,0,\n"
        + "2,Flood,2,0,1.5,B,0,\n"
        + "3,TORNADO,3,7,2,m,0,\n"
    )
    return path
