"""
Tests for the aiadaptation.xml builder.
"""

import xml.etree.ElementTree as ET

from r3e_toolbox.models import Asset, Assets, Database, PlayerTimes
from r3e_toolbox.xml_builder import build_xml, format_number
from r3e_toolbox.xml_parser import parse_adaptive


def make_assets(class_ids=("10", "2", "1"), track_ids=("11", "10")) -> Assets:
    """Helper to create assets with the given class and track IDs."""
    return Assets(
        classes={cid: Asset(cid, f"Class {cid}") for cid in class_ids},
        tracks={tid: Asset(tid, f"Track {tid}") for tid in track_ids},
    )


def make_database() -> Database:
    db = Database()
    track = db.ensure_track("1", "10")
    track.add_time(100, 10.12345, 2)
    track.add_time(100, 10.0, 2)
    track.add_time(90, 1.25, 0)
    return db


class TestFormatNumber:
    """Tests for format_number."""

    def test_trailing_zeros_stripped(self):
        assert format_number(1.25) == "1.25"
        assert format_number(2.0) == "2"
        assert format_number(95.1) == "95.1"

    def test_four_decimals(self):
        assert format_number(10.061725) == "10.0617"
        assert format_number(94.12345678) == "94.1235"


class TestBuildXml:
    """Tests for build_xml."""

    def test_header_and_footer(self):
        xml = build_xml(Database(), PlayerTimes(), make_assets())
        lines = xml.split("\n")
        assert lines[0] == '<AiAdaptation ID="/aiadaptation">'
        assert lines[1] == '  <latestVersion type="uint32">0</latestVersion>'
        assert lines[2] == "  <aiAdaptationData>"
        assert lines[-1] == "</AiAdaptation>"
        assert not xml.endswith("\n")

    def test_full_matrix(self):
        root = ET.fromstring(build_xml(Database(), PlayerTimes(), make_assets()))
        data = root.find("aiAdaptationData")

        assert len(data.findall("layoutId")) == 2
        values = data.findall("value")
        assert len(values) == 2
        for value in values:
            assert len(value.findall("carClassId")) == 3
            assert len(value.findall("sampledData")) == 3

    def test_numeric_ordering(self):
        root = ET.fromstring(build_xml(Database(), PlayerTimes(), make_assets()))
        data = root.find("aiAdaptationData")

        assert [e.text for e in data.findall("layoutId")] == ["10", "11"]
        first_value = data.find("value")
        assert [e.text for e in first_value.findall("carClassId")] == ["1", "2", "10"]

    def test_index_comments(self):
        xml = build_xml(Database(), PlayerTimes(), make_assets())
        assert '    <!-- Index:0 -->\n    <layoutId type="int32">10</layoutId>' in xml
        assert '      <!-- Index:2 -->\n      <carClassId type="int32">10</carClassId>' in xml

    def test_ai_levels_averaged(self):
        xml = build_xml(make_database(), PlayerTimes(), make_assets())

        assert '<aiSkill type="uint32">90</aiSkill>' in xml
        assert '<averagedLapTime type="float32">1.25</averagedLapTime>' in xml
        assert '<averagedLapTime type="float32">10.0617</averagedLapTime>' in xml
        # Level 90 is generated, level 100 sampled twice
        assert '<numberOfSampledRaces type="uint32">0</numberOfSampledRaces>' in xml
        assert '<numberOfSampledRaces type="uint32">2</numberOfSampledRaces>' in xml

    def test_levels_in_ascending_order(self):
        xml = build_xml(make_database(), PlayerTimes(), make_assets())
        assert xml.index("<aiSkill type=\"uint32\">90<") < xml.index("<aiSkill type=\"uint32\">100<")

    def test_missing_sample_count_written_as_one(self):
        db = Database()
        track = db.ensure_track("1", "10")
        track.ailevels[95] = [97.5]
        xml = build_xml(db, PlayerTimes(), make_assets())
        assert '<numberOfSampledRaces type="uint32">1</numberOfSampledRaces>' in xml

    def test_player_times(self):
        player_times = PlayerTimes()
        track = player_times.ensure_track("2", "11")
        track.add_time(95.2)
        track.add_time(94.8)

        xml = build_xml(Database(), player_times, make_assets())
        assert '<lapTime type="float32">95.2</lapTime>' in xml
        assert '<lapTime type="float32">94.8</lapTime>' in xml

    def test_best_player_time_used_without_list(self):
        player_times = PlayerTimes()
        player_times.ensure_track("1", "10").playertime = 93.5

        xml = build_xml(Database(), player_times, make_assets())
        assert '<lapTime type="float32">93.5</lapTime>' in xml

    def test_unknown_ids_dropped(self):
        db = Database()
        db.ensure_track("99", "10").add_time(100, 95.0)
        db.ensure_track("1", "999").add_time(100, 96.0)

        xml = build_xml(db, PlayerTimes(), make_assets())
        assert "<averagedLapTime" not in xml

    def test_indentation(self):
        xml = build_xml(make_database(), PlayerTimes(), make_assets())
        assert '\n            <averagedLapTime type="float32">' in xml
        assert "\n        <playerBestLapTimes>" in xml

    def test_parsed_back(self):
        player_times = PlayerTimes()
        player_times.ensure_track("1", "10").add_time(94.8)
        xml = build_xml(make_database(), player_times, make_assets())

        db = Database()
        times = PlayerTimes()
        assert parse_adaptive(xml, db, times) is True

        track = db.get_track("1", "10")
        assert track.ailevels == {90: [1.25], 100: [10.0617]}
        assert track.samples_count == {90: 0, 100: 2}
        assert times.get_track("1", "10").playertimes == [94.8]
        assert db.get_track("2", "10") is None

    def test_empty_matrix_parses_to_nothing(self):
        xml = build_xml(Database(), PlayerTimes(), make_assets())
        db = Database()
        assert parse_adaptive(xml, db, PlayerTimes()) is False
        assert db.is_empty()

    def test_one_filled_cell_five_empty(self):
        root = ET.fromstring(build_xml(make_database(), PlayerTimes(), make_assets(class_ids=("1", "2", "10"))))
        cells = root.findall("./aiAdaptationData/value/sampledData")

        assert len(cells) == 6
        empty = [c for c in cells if not c.findall("./aiSkillVsLapTimes/aiSkill")]
        assert len(empty) == 5
