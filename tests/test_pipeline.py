import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from route_crossings import (
    CrossingType,
    CrossingsConfig,
    ExclusionReason,
    InvalidConfiguration,
    InvalidRoute,
    analyze,
    analyze_points,
    representatives,
)
from route_crossings.cli import verdicts


def test_perpendicular_crossing_is_outside_corridor(straight_route, make_crossing):
    crossing = make_crossing(1, [(500.0, -20.0), (500.0, 20.0)])
    analyze(straight_route, [crossing])
    assert crossing.exclusion_reason == ExclusionReason.OUTSIDE_CORRIDOR
    assert crossing.route_span is None


def test_split_bridge_is_one_compound(straight_route, make_crossing):
    later = make_crossing("b2", [(200.0, 1.0), (300.0, 1.0)], node_ids=[2, 3])
    earlier = make_crossing("b1", [(100.0, 1.0), (200.0, 1.0)], node_ids=[1, 2])
    tunnel = make_crossing(
        "t1", [(600.0, 1.0), (700.0, 1.0)], crossing_type=CrossingType.TUNNEL, node_ids=[2, 9]
    )
    crossings = [later, earlier, tunnel]

    analyze(straight_route, crossings)

    assert all(c.exclusion_reason == ExclusionReason.NONE for c in crossings)
    assert later.compound_group == earlier.compound_group == (1, 0)
    assert earlier.is_representative()
    assert tunnel.compound_group is None
    assert [c.id for c in representatives(crossings)] == ["b1", "t1"]


def test_overlapping_bridges_keep_the_nearest(straight_route, make_crossing):
    far = make_crossing("Y", [(50.0, 8.0), (100.0, 8.0), (150.0, 8.0)])
    near = make_crossing("X", [(0.0, 2.0), (50.0, 2.0), (100.0, 2.0)])
    analyze(straight_route, [far, near], CrossingsConfig(route_buffer=10.0))
    assert near.is_included()
    assert far.exclusion_reason == ExclusionReason.SUPERSEDED


def test_zero_bearing_tolerance_keeps_misaligned(straight_route, make_crossing):
    diagonal = make_crossing(1, [(249.0, -2.5), (251.0, 2.5)])

    analyze(straight_route, [diagonal], CrossingsConfig(bearing_tolerance=0.0))
    assert diagonal.exclusion_reason == ExclusionReason.NONE

    analyze(straight_route, [diagonal], CrossingsConfig(bearing_tolerance=20.0))
    assert diagonal.exclusion_reason == ExclusionReason.MISALIGNED


def test_analysis_is_idempotent(straight_route, make_crossing):
    crossings = [
        make_crossing("b2", [(200.0, 1.0), (300.0, 1.0)], node_ids=[2, 3]),
        make_crossing("b1", [(100.0, 1.0), (200.0, 1.0)], node_ids=[1, 2]),
        make_crossing("far", [(500.0, -20.0), (500.0, 20.0)]),
        make_crossing("diag", [(749.0, -2.5), (751.0, 2.5)]),
        make_crossing("dup", [(120.0, 2.5), (180.0, 2.5)]),
    ]

    analyze(straight_route, crossings)
    first = verdicts(crossings)
    analyze(straight_route, crossings)

    assert verdicts(crossings) == first


def test_stages_run_in_order(straight_route, make_crossing):
    events = []
    analyze(straight_route, [make_crossing(1, [(100.0, 1.0), (200.0, 1.0)])], on_event=events.append)

    summaries = [e.stage for e in events if e.action == "summary"]
    assert summaries == ["containment", "span", "compound", "alignment", "overlap"]
    span_events = [e for e in events if e.action == "span"]
    assert len(span_events) == 1
    assert span_events[0].crossing_id == 1


def test_no_overlap_summary_when_disabled(straight_route, make_crossing):
    events = []
    analyze(
        straight_route,
        [make_crossing(1, [(100.0, 1.0), (200.0, 1.0)])],
        CrossingsConfig(overlap_exclusion=False),
        events.append,
    )
    assert "overlap" not in {e.stage for e in events}


@pytest.mark.parametrize(
    "config",
    [
        CrossingsConfig(route_buffer=-1.0),
        CrossingsConfig(bearing_tolerance=-5.0),
        CrossingsConfig(route_buffer=float("nan")),
        CrossingsConfig(bearing_tolerance=float("inf")),
    ],
)
def test_invalid_configuration_is_rejected_before_processing(straight_route, make_crossing, config):
    crossing = make_crossing(1, [(100.0, 1.0), (200.0, 1.0)], index=7)
    crossing.exclusion_reason = ExclusionReason.MISALIGNED
    events = []

    with pytest.raises(InvalidConfiguration):
        analyze(straight_route, [crossing], config, events.append)

    assert events == []
    assert crossing.exclusion_reason == ExclusionReason.MISALIGNED
    assert crossing.index == 7


def test_crossings_are_reindexed(straight_route, make_crossing):
    crossings = [
        make_crossing(1, [(100.0, 1.0), (200.0, 1.0)], index=5),
        make_crossing(2, [(300.0, 1.0), (400.0, 1.0)], index=5),
    ]
    analyze(straight_route, crossings)
    assert [c.index for c in crossings] == [0, 1]


def _record(position):
    return {"lat": position.latitude, "lon": position.longitude}


def test_analyze_points(point_at):
    points = [_record(point_at(along)) for along in (0.0, 500.0, 1000.0)]
    candidates = [
        {
            "id": 10,
            "kind": "bridge",
            "points": [_record(point_at(100.0, 1.0)), _record(point_at(200.0, 1.0))],
        },
        {
            "id": 11,
            "kind": "tunnel",
            "points": [_record(point_at(500.0, -20.0)), _record(point_at(500.0, 20.0))],
        },
    ]

    crossings = analyze_points(points, candidates)

    assert [c.id for c in crossings] == [10, 11]
    assert crossings[0].is_included()
    assert crossings[0].route_span.start_distance == pytest.approx(100.0, abs=0.1)
    assert crossings[0].route_span.end_distance == pytest.approx(200.0, abs=0.1)
    assert crossings[1].crossing_type == CrossingType.TUNNEL
    assert crossings[1].exclusion_reason == ExclusionReason.OUTSIDE_CORRIDOR


def test_analyze_points_rejects_short_route(point_at):
    with pytest.raises(InvalidRoute):
        analyze_points([_record(point_at(0.0))], [])


def test_analyze_points_validates_configuration_first(point_at):
    with pytest.raises(InvalidConfiguration):
        analyze_points([_record(point_at(0.0))], [], CrossingsConfig(route_buffer=-1.0))


def test_representatives_sorted_by_start(straight_route, make_crossing):
    crossings = [
        make_crossing("c", [(700.0, 1.0), (800.0, 1.0)]),
        make_crossing("a", [(100.0, 1.0), (200.0, 1.0)]),
        make_crossing("far", [(500.0, -20.0), (500.0, 20.0)]),
        make_crossing("diag", [(449.0, -2.5), (451.0, 2.5)]),
    ]
    analyze(straight_route, crossings)

    assert [c.id for c in representatives(crossings)] == ["a", "diag", "c"]
    assert [c.id for c in representatives(crossings, included_only=True)] == ["a", "c"]


def test_representatives_ties_keep_input_order(straight_route, make_crossing):
    crossings = [
        make_crossing("first", [(100.0, 1.0), (200.0, 1.0)]),
        make_crossing("second", [(100.0, 1.0), (200.0, 1.0)]),
    ]
    analyze(straight_route, crossings, CrossingsConfig(overlap_exclusion=False))
    assert [c.id for c in representatives(crossings)] == ["first", "second"]


crossing_points = st.lists(
    st.tuples(
        st.floats(min_value=0.0, max_value=1000.0, allow_nan=False),
        st.floats(min_value=-10.0, max_value=10.0, allow_nan=False),
    ),
    min_size=0,
    max_size=4,
)


@settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(st.lists(crossing_points, max_size=6), st.lists(st.integers(0, 5), max_size=6))
def test_verdict_invariants(straight_route, make_crossing, shapes, nodes):
    crossings = [
        make_crossing(
            index,
            points,
            node_ids=[nodes[index]] if index < len(nodes) else [],
        )
        for index, points in enumerate(shapes)
    ]

    analyze(straight_route, crossings)

    for crossing in crossings:
        if crossing.is_included():
            assert crossing.route_span is not None
            assert crossing.route_span.start_distance <= crossing.route_span.end_distance
        if len(crossing.coords) < 2:
            assert crossing.exclusion_reason == ExclusionReason.OUTSIDE_CORRIDOR
        if all(abs(offset) > 4.0 for _, offset in shapes[crossing.index]):
            assert not crossing.is_included()
        if crossing.compound_group is not None:
            members = [crossings[i] for i in crossing.compound_group]
            assert sum(m.is_representative() for m in members) == 1
            assert crossing.index in crossing.compound_group
