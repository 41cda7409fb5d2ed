"""Tests for candidate scoring, ranking and match decisions."""

import pytest

from cliptimings.catalog import CatalogError, build_catalog
from cliptimings.config import MANUAL_POLICY, TIMELINE_POLICY, MatchPolicy, get_policy
from cliptimings.manual import parse_manual_timestamps
from cliptimings.matching import (
    decide,
    field_similarity,
    match_mention,
    match_mentions,
    passes_filter,
    rank_candidates,
    score_entry,
    search_catalog,
)
from cliptimings.models import (
    AutoMatched,
    Candidates,
    CatalogEntry,
    MatchCandidate,
    NoMatch,
    ParsedMention,
)


def mention(artist, title, start=0):
    return ParsedMention(artist=artist, title=title, start_seconds=start)


def candidate(title_sim, confidence, artist_sim=0.0, catalog_id="x"):
    return MatchCandidate(
        catalog_id=catalog_id, title="T", artist="A", confidence=confidence,
        title_similarity=title_sim, artist_similarity=artist_sim, reason="partial",
    )


class TestFieldSimilarity:

    def test_exact_tag_pins_to_one(self):
        assert field_similarity("난춘", "다른 제목", None, ("난춘(亂春)",)) == (1.0, True, False)

    def test_partial_tag_floor(self):
        score, exact, partial = field_similarity(
            "bamyanggaeng live", "밤양갱", None, ("bamyanggaeng",))
        assert score == 0.8
        assert not exact
        assert partial

    def test_alias_counts(self):
        assert field_similarity("IU", "아이유", "IU", ()) == (1.0, False, False)

    def test_best_of_value_alias_tags(self):
        score, _, _ = field_similarity("Hype Boy", "하입보이", "Hype Boy", ())
        assert score == 1.0

    def test_empty_query(self):
        assert field_similarity("", "좋은날", None, ("좋은날",)) == (0.0, False, False)

    def test_empty_value(self):
        assert field_similarity("좋은날", "", None, ()) == (0.0, False, False)


class TestScoreEntry:
    """Tests for the reason cascade and weighted confidence."""

    @pytest.fixture
    def good_day(self, catalog):
        return catalog[0]

    @pytest.mark.parametrize("title,artist,reason", [
        ("좋은날", "아이유", "title_artist_exact"),
        ("좋은날", "someone", "title_exact"),
        ("좋은날씨", "아이유", "title_similar_artist_match"),
        ("좋은날씨", "someone", "title_similar"),
        ("좋은밤", "아이유", "artist_exact"),
        ("좋은밤", "someone", "partial"),
    ])
    def test_reason_cascade(self, good_day, title, artist, reason):
        assert score_entry(title, artist, good_day, MANUAL_POLICY).reason == reason

    def test_tag_reasons(self, catalog):
        se_so_neon, newjeans = catalog[1], catalog[2]
        assert score_entry("난춘", "새소년", se_so_neon, MANUAL_POLICY).reason == "tag_title_exact"
        assert score_entry("Hype Boy", "뉴진스", newjeans, MANUAL_POLICY).reason == "tag_artist_exact"

        both = CatalogEntry(id="x", title="Alpha", artist="Beta", search_tags=("gamma",))
        assert score_entry("gamma", "gamma", both, MANUAL_POLICY).reason == "tag_exact"

    def test_tag_partial_reason(self):
        entry = CatalogEntry(id="x", title="Alpha", artist="Beta", search_tags=("gamma",))
        c = score_entry("zzz", "gamma live", entry, MANUAL_POLICY)
        assert c.artist_similarity == 0.8
        assert c.reason == "tag_partial"

    def test_confidence_uses_policy_weights(self, good_day):
        manual = score_entry("좋은밤", "아이유", good_day, MANUAL_POLICY)
        timeline = score_entry("좋은밤", "아이유", good_day, TIMELINE_POLICY)
        assert manual.title_similarity == pytest.approx(2 / 3)
        assert manual.artist_similarity == 1.0
        assert manual.confidence == pytest.approx(0.7 * 2 / 3 + 0.3)
        assert timeline.confidence == pytest.approx(0.6 * 2 / 3 + 0.4)

    def test_candidate_carries_catalog_fields(self, good_day):
        c = score_entry("좋은날", "아이유", good_day, MANUAL_POLICY)
        assert (c.catalog_id, c.title, c.artist) == ("s1", "좋은날", "아이유")


class TestPassesFilter:

    def test_title_floor(self):
        assert not passes_filter(candidate(0.59, 0.99, 1.0))

    def test_confidence(self):
        assert passes_filter(candidate(0.6, 0.7))
        assert not passes_filter(candidate(0.65, 0.69, 0.5))

    def test_strong_title(self):
        assert passes_filter(candidate(0.8, 0.5))

    def test_strong_artist(self):
        assert passes_filter(candidate(0.6, 0.6, 0.9))


class TestRanking:

    def test_title_before_confidence(self):
        catalog = build_catalog([
            {"id": "close", "title": "Lilacs", "artist": "IU"},
            {"id": "exact", "title": "Lilac", "artist": "Other"},
        ])
        ranked = rank_candidates(mention("IU", "Lilac"), catalog, MANUAL_POLICY)
        assert [c.catalog_id for c in ranked] == ["exact", "close"]
        assert ranked[0].confidence < ranked[1].confidence

    def test_confidence_breaks_title_ties(self):
        catalog = build_catalog([
            {"id": "other", "title": "Lilac", "artist": "Other"},
            {"id": "iu", "title": "Lilac", "artist": "IU"},
        ])
        ranked = rank_candidates(mention("IU", "Lilac"), catalog, MANUAL_POLICY)
        assert [c.catalog_id for c in ranked] == ["iu", "other"]

    def test_at_most_five(self):
        catalog = build_catalog(
            {"id": f"v{i}", "title": "Lilac", "artist": f"a{i}"} for i in range(7))
        ranked = rank_candidates(mention("zz", "Lilac"), catalog, MANUAL_POLICY)
        assert len(ranked) == 5
        assert isinstance(decide(ranked, MANUAL_POLICY), Candidates)

    def test_filtered_out(self, catalog):
        assert rank_candidates(mention("누군가", "모르는 노래"), catalog, MANUAL_POLICY) == []

    def test_raw_records_accepted(self):
        ranked = rank_candidates(mention("IU", "Lilac"),
                                 [{"id": "1", "title": "Lilac", "artist": "IU"}],
                                 TIMELINE_POLICY)
        assert [c.catalog_id for c in ranked] == ["1"]

    def test_broken_catalog_raises(self):
        with pytest.raises(CatalogError):
            rank_candidates(mention("IU", "Lilac"), [{"title": "no id"}], MANUAL_POLICY)


class TestDecide:

    def test_empty_is_no_match(self):
        assert isinstance(decide([], MANUAL_POLICY), NoMatch)

    def test_threshold_is_inclusive(self):
        decision = decide([candidate(1.0, 0.8)], TIMELINE_POLICY)
        assert isinstance(decision, AutoMatched)

    def test_below_threshold_keeps_all(self):
        ranked = [candidate(1.0, 0.9, catalog_id="a"), candidate(0.9, 0.8, catalog_id="b")]
        decision = decide(ranked, MANUAL_POLICY)
        assert isinstance(decision, Candidates)
        assert [c.catalog_id for c in decision.candidates] == ["a", "b"]


class TestMatchMention:
    """End-to-end decisions against the shared catalog."""

    def test_exact_match_auto(self, catalog):
        decision = match_mention(mention("아이유", "좋은날"), catalog, TIMELINE_POLICY)
        assert isinstance(decision, AutoMatched)
        assert decision.candidate.catalog_id == "s1"
        assert decision.candidate.confidence == 1.0

    def test_policies_disagree(self, catalog):
        m = mention("아이유님", "좋은날")
        assert isinstance(match_mention(m, catalog, TIMELINE_POLICY), AutoMatched)
        decision = match_mention(m, catalog, MANUAL_POLICY)
        assert isinstance(decision, Candidates)
        assert decision.candidates[0].catalog_id == "s1"

    def test_review_candidates(self, catalog):
        decision = match_mention(mention("아이유", "좋은밤"), catalog, MANUAL_POLICY)
        assert isinstance(decision, Candidates)
        assert [c.catalog_id for c in decision.candidates] == ["s1"]
        assert decision.candidates[0].reason == "artist_exact"

    def test_alias_and_tag_matches(self, catalog):
        assert match_mention(mention("IU", "Good Day"), catalog,
                             MANUAL_POLICY).candidate.catalog_id == "s1"
        assert match_mention(mention("SE SO NEON", "난춘(亂春)"), catalog,
                             MANUAL_POLICY).candidate.catalog_id == "s2"

    def test_empty_catalog(self):
        assert isinstance(match_mention(mention("아이유", "좋은날"), [], MANUAL_POLICY), NoMatch)


class TestSearchCatalog:

    def test_alias_query(self, catalog):
        decision = search_catalog("하입보이", catalog, MANUAL_POLICY)
        assert isinstance(decision, Candidates)
        assert decision.candidates[0].catalog_id == "s3"

    def test_never_auto_matches(self, catalog):
        title_only = MatchPolicy(name="title-only", title_weight=1.0,
                                 artist_weight=0.0, accept_threshold=0.5)
        decision = search_catalog("좋은날", catalog, title_only)
        assert isinstance(decision, Candidates)
        assert decision.candidates[0].confidence == 1.0

    def test_no_results(self, catalog):
        assert isinstance(search_catalog("", catalog, MANUAL_POLICY), NoMatch)
        assert isinstance(search_catalog("좋은날", [], MANUAL_POLICY), NoMatch)


class TestMatchMentions:

    TEXT = "0:10 아이유 - 좋은날\n2:00 새소년 - 난춘\n5:00 누군가 - 모르는 노래"

    def test_batch_keeps_order(self, catalog):
        mentions = parse_manual_timestamps(self.TEXT)
        results = match_mentions(mentions, catalog, MANUAL_POLICY, workers=2)
        assert [m for m, _ in results] == mentions
        assert [d.kind for _, d in results] == ["auto_matched", "auto_matched", "no_match"]
        assert results[1][1].candidate.catalog_id == "s2"

    def test_same_as_one_at_a_time(self, catalog):
        mentions = parse_manual_timestamps(self.TEXT)
        results = match_mentions(mentions, catalog, TIMELINE_POLICY)
        for m, decision in results:
            assert decision == match_mention(m, catalog, TIMELINE_POLICY)

    def test_empty(self, catalog):
        assert match_mentions([], catalog, MANUAL_POLICY) == []

    def test_catalog_validated_up_front(self):
        with pytest.raises(CatalogError):
            match_mentions([], [{"id": "x"}], MANUAL_POLICY)


class TestPolicies:

    def test_lookup(self):
        assert get_policy("manual") is MANUAL_POLICY
        assert get_policy("timeline") is TIMELINE_POLICY

    def test_unknown(self):
        with pytest.raises(ValueError, match="unknown match policy"):
            get_policy("strict")

    def test_weights_sum_to_one(self):
        for policy in (MANUAL_POLICY, TIMELINE_POLICY):
            assert policy.confidence(1.0, 1.0) == pytest.approx(1.0)
