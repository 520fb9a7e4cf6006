import pytest

from src.domain.catalog.similarity import (
    FALLBACK_REASON,
    build_candidate_pool,
    rank_candidates,
    reason_summary,
    recommend,
    score_candidate,
    seed_summary,
)
from src.models.dto import Candidate, TrackSnapshot
from tests.support.stubs import make_track


def _seed(**overrides):
    fields = dict(popularity=70, duration_ms=200000, release_date="2020-03-01", explicit=False)
    fields.update(overrides)
    return TrackSnapshot.from_spotify(make_track("seed", "Seed Song", **fields))


def _candidate_a():
    return make_track("a", "Close Cut", popularity=68, duration_ms=205000, release_date="2021-01-01")


def _candidate_b():
    return make_track("b", "Far Away", artist_id="ar2", artist_name="Other Artist", popularity=30,
                      duration_ms=260000, release_date="2015-01-01", explicit=True)


@pytest.mark.unit
def test_same_artist_outscores_related_artist_by_one_point():
    track = TrackSnapshot.from_spotify(make_track("x"))
    same = Candidate(track=track, is_same_artist=True, year_diff=0, popularity_diff=5, duration_diff_sec=3.0)
    related = same.model_copy(update={"is_same_artist": False, "is_related_artist": True})
    assert score_candidate(same) - score_candidate(related) == pytest.approx(1.0)


@pytest.mark.unit
def test_year_bonus_steps():
    track = TrackSnapshot.from_spotify(make_track("x"))
    assert score_candidate(Candidate(track=track, year_diff=1)) == pytest.approx(1.5)
    assert score_candidate(Candidate(track=track, year_diff=3)) == pytest.approx(1.0)
    assert score_candidate(Candidate(track=track, year_diff=4)) == pytest.approx(0.0)


@pytest.mark.unit
def test_duration_penalty_is_capped():
    track = TrackSnapshot.from_spotify(make_track("x"))
    assert score_candidate(Candidate(track=track, duration_diff_sec=600.0)) == pytest.approx(-3.0)
    assert score_candidate(Candidate(track=track, duration_diff_sec=30.0)) == pytest.approx(-1.0)


@pytest.mark.unit
def test_explicit_mismatch_needs_both_flags():
    seed = _seed(explicit=None)
    pool = build_candidate_pool(seed, [make_track("x", explicit=True)], [])
    assert pool["x"].explicit_mismatch is False

    seed = _seed(explicit=False)
    pool = build_candidate_pool(seed, [make_track("x", explicit=True)], [])
    assert pool["x"].explicit_mismatch is True


@pytest.mark.unit
def test_pool_excludes_seed_and_keeps_first_source():
    seed = _seed()
    shared = make_track("shared", artist_id="ar1")
    pool = build_candidate_pool(
        seed,
        [make_track("seed"), shared],
        [({"id": "ar2", "name": "Related One"}, [shared, make_track("r1", artist_id="ar2")])],
        seed_artist_name="Artist One",
    )

    assert list(pool) == ["shared", "r1"]
    assert pool["shared"].is_same_artist is True
    assert pool["shared"].source_artist_name == "Artist One"
    assert pool["r1"].is_related_artist is True
    assert pool["r1"].source_artist_name == "Related One"


@pytest.mark.unit
def test_failed_related_blocks_are_skipped():
    pool = build_candidate_pool(_seed(), [], [None, ({"name": "R"}, [make_track("r1")])])
    assert list(pool) == ["r1"]


@pytest.mark.unit
def test_end_to_end_ranking_and_reasons():
    seed = _seed()
    recs = recommend(seed, [_candidate_a()], [({"id": "ar2", "name": "Other Artist"}, [_candidate_b()])])

    assert [r.track_id for r in recs] == ["a", "b"]
    a, b = recs
    assert a.rank == 1 and b.rank == 2
    assert a.score == pytest.approx(4.2733, abs=1e-4)
    assert b.score == pytest.approx(-1.7, abs=1e-4)
    assert a.reason_summary == "same artist · similar era · similar popularity · similar length"
    assert b.reason_summary == "related artist"
    assert a.release_year == 2021
    assert b.source_artist_name == "Other Artist"


@pytest.mark.unit
def test_reason_falls_back_when_nothing_matches():
    track = TrackSnapshot.from_spotify(make_track("x"))
    assert reason_summary(Candidate(track=track)) == FALLBACK_REASON


@pytest.mark.unit
@pytest.mark.parametrize("pool_size, expected", [(0, 0), (2, 2), (5, 5), (8, 5)])
def test_result_size_is_bounded(pool_size, expected):
    tracks = [make_track(f"t{i}") for i in range(pool_size)]
    assert len(recommend(_seed(), tracks, [], limit=5)) == expected


@pytest.mark.unit
def test_equal_scores_keep_discovery_order():
    seed = _seed()
    forward = build_candidate_pool(seed, [make_track("c1"), make_track("c2")], [])
    backward = build_candidate_pool(seed, [make_track("c2"), make_track("c1")], [])

    assert [c.id for c in rank_candidates(forward.values())] == ["c1", "c2"]
    assert [c.id for c in rank_candidates(backward.values())] == ["c2", "c1"]


@pytest.mark.unit
def test_seed_summary_fields():
    summary = seed_summary(_seed()).to_json()
    assert summary["trackId"] == "seed"
    assert summary["durationFormatted"] == "3:20"
    assert summary["releaseYear"] == 2020
    assert summary["explicit"] is False
