"""Tests for the aggregation engine."""

import pytest

from src.aggregation.engine import (
    compute_all_idea_metrics,
    compute_idea_metrics,
    compute_idea_score,
    dedupe_links,
    idea_status_breakdown,
    insights,
    rank_ideas_by_score,
    rollup_arr,
    top_ideas_by_arr,
    triage_stats,
)
from src.matching.schemas import FeedbackIdeaLink, FeedbackItem, Idea


def _fb(fid: str, account: str | None = None, arr=None, potential=None, status="new", segment=None):
    return FeedbackItem(
        id=fid,
        description=f"feedback {fid}",
        account_name=account,
        account_arr=arr,
        potential_arr=potential,
        triage_status=status,
        account_segment=segment,
    )


def _link(fid: str, iid: str = "idea_1") -> FeedbackIdeaLink:
    return FeedbackIdeaLink(feedback_id=fid, idea_id=iid)


class TestComputeIdeaScore:
    def test_reference_example(self):
        assert compute_idea_score(3, 200000, 2) == 105

    def test_zero(self):
        assert compute_idea_score(0, 0, 0) == 0

    def test_rounds_half_away_from_zero(self):
        # 1*15 + 5000*0.0001 = 15.5
        assert compute_idea_score(1, 5000, 0) == 16
        # 2*15 + 25000*0.0001 = 32.5 (banker's rounding would give 32)
        assert compute_idea_score(2, 25000, 0) == 33

    def test_none_arr(self):
        assert compute_idea_score(1, None, 1) == 35


class TestRollupArr:
    def test_same_account_counts_max(self):
        rollup = rollup_arr([_fb("a", "Acme", 100), _fb("b", "Acme", 500)])

        assert rollup.total_arr == 500
        assert rollup.customer_count == 1
        assert rollup.accounts == {"Acme": 500}

    def test_order_independent(self):
        items = [_fb("a", "Acme", 500), _fb("b", "Acme", 100), _fb("c", "Globex", 50)]

        assert rollup_arr(items).total_arr == rollup_arr(list(reversed(items))).total_arr == 550

    def test_potential_follows_max_row(self):
        rollup = rollup_arr([_fb("a", "Acme", 100, potential=900), _fb("b", "Acme", 500, potential=10)])

        assert rollup.potential_arr == 10

    def test_unnamed_accounts_ignored(self):
        rollup = rollup_arr([_fb("a", None, 1000), _fb("b", "  ", 1000)])

        assert rollup.total_arr == 0
        assert rollup.customer_count == 0

    def test_missing_arr_counts_customer(self):
        rollup = rollup_arr([_fb("a", "Acme"), _fb("b", "Acme", "not a number")])

        assert rollup.total_arr == 0
        assert rollup.customer_count == 1


class TestIdeaMetrics:
    def test_metrics_from_links(self):
        feedback = {
            f.id: f
            for f in [
                _fb("a", "Acme", 100000, segment="enterprise"),
                _fb("b", "Acme", 80000, segment="enterprise"),
                _fb("c", "Globex", 100000, segment="mid-market"),
            ]
        }

        metrics = compute_idea_metrics("idea_1", [_link("a"), _link("b"), _link("c")], feedback)

        assert metrics.feedback_count == 3
        assert metrics.total_arr == 200000
        assert metrics.customer_count == 2
        assert metrics.score == 105
        assert metrics.segments == {"enterprise": 2, "mid-market": 1}

    def test_duplicate_and_dangling_links_ignored(self):
        feedback = {"a": _fb("a")}

        metrics = compute_idea_metrics(
            "idea_1", [_link("a"), _link("a"), _link("gone"), _link("a", "idea_2")], feedback,
        )

        assert metrics.feedback_count == 1
        assert metrics.score == 15

    def test_all_ideas(self):
        ideas = [Idea(id="idea_1", title="One"), Idea(id="idea_2", title="Two")]

        metrics = compute_all_idea_metrics(ideas, [_link("a")], [_fb("a", "Acme", 10)])

        assert metrics["idea_1"].customer_count == 1
        assert metrics["idea_2"].feedback_count == 0
        assert metrics["idea_2"].score == 0

    def test_dedupe_links(self):
        links = [_link("a"), _link("a"), _link("a", "idea_2")]
        assert [l.key for l in dedupe_links(links)] == [("a", "idea_1"), ("a", "idea_2")]


class TestTriageStats:
    def test_linked_counts_as_triaged(self):
        feedback = (
            [_fb(f"n{i}") for i in range(3)]
            + [_fb(f"t{i}", status="triaged") for i in range(4)]
            + [_fb(f"l{i}", status="linked") for i in range(3)]
        )

        stats = triage_stats(feedback)

        assert stats.total == 10
        assert stats.triaged == 7
        assert stats.percent_triaged == 70

    def test_archived_not_triaged(self):
        stats = triage_stats([_fb("a", status="archived"), _fb("b", status="triaged")])

        assert stats.archived == 1
        assert stats.percent_triaged == 50

    def test_rounding(self):
        feedback = [_fb("a", status="triaged"), _fb("b"), _fb("c")]
        assert triage_stats(feedback).percent_triaged == 33

    def test_empty(self):
        assert triage_stats([]).percent_triaged == 0


class TestRanking:
    @pytest.fixture
    def ideas(self):
        return [
            Idea(id="idea_small", title="Small"),
            Idea(id="idea_big", title="Big", status="planned"),
            Idea(id="idea_none", title="No ARR", status="shipped"),
        ]

    @pytest.fixture
    def metrics(self, ideas):
        feedback = [_fb("a", "Acme", 1000), _fb("b", "Globex", 900000), _fb("c"), _fb("d")]
        links = [_link("a", "idea_small"), _link("b", "idea_big"), _link("c", "idea_none"), _link("d", "idea_none")]
        return compute_all_idea_metrics(ideas, links, feedback)

    def test_rank_by_score(self, ideas, metrics):
        ranked = rank_ideas_by_score(ideas, metrics)

        assert [r.idea_id for r in ranked] == ["idea_big", "idea_small", "idea_none"]

    def test_top_by_arr_excludes_zero(self, ideas, metrics):
        top = top_ideas_by_arr(ideas, metrics)

        assert [r.idea_id for r in top] == ["idea_big", "idea_small"]
        assert top[0].status == "planned"

    def test_top_limit(self, ideas, metrics):
        assert len(top_ideas_by_arr(ideas, metrics, limit=1)) == 1

    def test_status_breakdown(self, ideas):
        breakdown = idea_status_breakdown(ideas)

        assert [(s.status, s.label, s.count) for s in breakdown] == [
            ("backlog", "Backlog", 1),
            ("planned", "Planned", 1),
            ("shipped", "Shipped", 1),
        ]


class TestInsights:
    def test_overview(self, sample_feedback, sample_ideas, sample_links):
        overview = insights(sample_feedback, sample_ideas, sample_links + sample_links[:1])

        assert overview.total_feedback == 5
        assert overview.percent_triaged == 20
        assert overview.total_ideas == 2
        assert overview.linked_account_arr == 170000
        assert overview.total_customers == 2
        assert [r.idea_id for r in overview.top_ideas] == ["idea_export"]
        assert overview.top_ideas[0].metrics.score == 2 * 15 + 17 + 2 * 20

    def test_to_dict(self, sample_feedback, sample_ideas, sample_links):
        data = insights(sample_feedback, sample_ideas, sample_links).to_dict()

        assert data["top_ideas"][0]["idea_id"] == "idea_export"
        assert data["top_ideas"][0]["title"] == "Data export"
        assert data["status_breakdown"] == [
            {"status": "backlog", "label": "Backlog", "count": 1},
            {"status": "planned", "label": "Planned", "count": 1},
        ]

    def test_empty(self):
        overview = insights([], [], [])

        assert overview.total_feedback == 0
        assert overview.top_ideas == []
