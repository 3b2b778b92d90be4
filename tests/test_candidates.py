import json

import pytest

from route_crossings.candidates import (
    crossings_from_candidates,
    load_candidates,
    parse_candidates,
    parse_separated_results,
)
from route_crossings.crossing import CrossingType


def _way(way_id, tags=None, nodes=(1, 2)):
    return {
        "type": "way",
        "id": way_id,
        "tags": tags or {},
        "nodes": list(nodes),
        "geometry": [{"lat": 0.0, "lon": 0.0}, {"lat": 0.0, "lon": 0.001}],
    }


OVERPASS_RESPONSE = {
    "elements": [
        {"type": "count", "id": 0, "tags": {"total": "2"}},
        _way(1, {"bridge": "yes", "highway": "footway"}),
        _way(2, {"bridge": "viaduct", "name": "Big Viaduct"}),
        {"type": "count", "id": 0, "tags": {"total": "1"}},
        _way(3, {"tunnel": "yes"}),
    ]
}


class TestParseSeparatedResults:
    def test_count_elements_separate_bridges_and_tunnels(self):
        bridges, tunnels = parse_separated_results(OVERPASS_RESPONSE["elements"])
        assert [way["id"] for way in bridges] == [1, 2]
        assert [way["id"] for way in tunnels] == [3]

    def test_tags_classify_ways_without_counts(self):
        elements = [
            _way(1, {"bridge": "yes"}),
            _way(2, {"tunnel": "culvert"}),
            _way(3, {"bridge": "no", "highway": "residential"}),
        ]
        bridges, tunnels = parse_separated_results(elements)
        assert [way["id"] for way in bridges] == [1]
        assert [way["id"] for way in tunnels] == [2]

    def test_non_way_elements_are_ignored(self):
        elements = [{"type": "node", "id": 5, "lat": 0.0, "lon": 0.0}, _way(1, {"bridge": "yes"})]
        bridges, tunnels = parse_separated_results(elements)
        assert [way["id"] for way in bridges] == [1]
        assert tunnels == []


def test_parse_overpass_response():
    crossings = parse_candidates(OVERPASS_RESPONSE)

    assert [c.id for c in crossings] == [1, 2, 3]
    assert [c.index for c in crossings] == [0, 1, 2]
    assert [c.crossing_type for c in crossings] == [
        CrossingType.BRIDGE,
        CrossingType.BRIDGE,
        CrossingType.TUNNEL,
    ]
    assert crossings[0].node_ids == [1, 2]
    assert crossings[1].get_display_name() == "Big Viaduct"
    assert len(crossings[2].coords) == 2


def test_duplicate_ways_are_dropped():
    response = {
        "elements": [
            {"type": "count", "id": 0, "tags": {"total": "2"}},
            _way(1, {"bridge": "yes"}),
            _way(1, {"bridge": "yes"}),
        ]
    }
    assert [c.id for c in parse_candidates(response)] == [1]


def test_way_without_id_is_skipped():
    broken = _way(1, {"bridge": "yes"})
    del broken["id"]
    response = {"elements": [broken, _way(2, {"bridge": "yes"})]}
    crossings = parse_candidates(response)
    assert [c.id for c in crossings] == [2]
    assert crossings[0].index == 0


def test_candidate_records():
    candidates = [
        {
            "id": "a",
            "kind": "bridge",
            "points": [{"lat": 0.0, "lon": 0.0}, {"lat": 0.0, "lon": 0.001}],
            "nodeIds": [1, 2],
            "name": "Old Bridge",
        },
        {"id": "b", "kind": "tunnel", "points": [], "node_ids": [3]},
        {"id": "c", "kind": "ferry", "points": []},
        {"id": "a", "kind": "bridge", "points": []},
        {"kind": "bridge", "points": []},
    ]

    crossings = crossings_from_candidates(candidates)

    assert [c.id for c in crossings] == ["a", "b"]
    assert crossings[0].node_ids == [1, 2]
    assert crossings[0].get_display_name() == "Old Bridge"
    assert crossings[1].crossing_type == CrossingType.TUNNEL
    assert crossings[1].node_ids == [3]


@pytest.mark.parametrize("data", [{"foo": []}, "bridges", 42, None])
def test_unsupported_shapes_raise(data):
    with pytest.raises(ValueError):
        parse_candidates(data)


def test_load_candidates(tmp_path):
    path = tmp_path / "candidates.json"
    path.write_text(json.dumps(OVERPASS_RESPONSE), encoding="utf-8")
    crossings = load_candidates(str(path))
    assert len(crossings) == 3


def test_load_candidates_invalid_json(tmp_path):
    path = tmp_path / "candidates.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_candidates(str(path))


def test_load_candidates_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_candidates(str(tmp_path / "missing.json"))
