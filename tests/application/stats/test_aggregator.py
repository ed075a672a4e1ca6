import pytest

from repaso.application.stats.aggregator import StatsAggregator, aggregate, summarize_session
from repaso.domain.errors import InvalidGrade
from repaso.domain.stats.models import RecommendationPriority, UserStats


@pytest.fixture
def aggregator():
    return StatsAggregator()


def _stats(**overrides) -> UserStats:
    values = dict(
        total_cards=10,
        reviewed_cards=10,
        unreviewed_cards=0,
        total_reviews=30,
        average_ease=2.0,
        average_difficulty=3.0,
        difficulty_distribution={b: 0 for b in range(6)},
        due_cards=5,
        overdue_cards=0,
        new_cards=0,
        last_study_session=None,
    )
    values.update(overrides)
    return UserStats(**values)


def test_overdue_backlog_gets_high_priority_advice(aggregator, make_card, now):
    cards = [
        make_card(card_id=f"card_{i}", reviewed_days_ago=10, interval_days=1, review_count=2)
        for i in range(6)
    ]

    stats = aggregator.aggregate(cards, now)

    assert stats.overdue_cards == 6
    first = stats.recommendations[0]
    assert first.type == "overdue"
    assert first.priority is RecommendationPriority.HIGH
    assert first.message == "You have 6 overdue cards. Focus on catching up with reviews."
    assert [r.type for r in stats.recommendations].count("overdue") == 1


def test_five_overdue_is_not_a_backlog(aggregator):
    recs = aggregator.recommend(_stats(overdue_cards=5))
    assert recs == []


def test_new_card_backlog(aggregator):
    recs = aggregator.recommend(_stats(new_cards=21))
    assert [(r.type, r.priority) for r in recs] == [("new_cards", RecommendationPriority.MEDIUM)]
    assert recs[0].message == "You have 21 new cards. Consider reviewing them gradually."


def test_low_difficulty_praise(aggregator):
    recs = aggregator.recommend(_stats(average_difficulty=1.5))
    assert [(r.type, r.priority) for r in recs] == [("difficulty", RecommendationPriority.LOW)]


def test_maintenance_mode(aggregator):
    recs = aggregator.recommend(_stats(total_reviews=101, due_cards=2, new_cards=2))
    assert [r.type for r in recs] == ["maintenance"]


def test_maintenance_needs_light_load(aggregator):
    recs = aggregator.recommend(_stats(total_reviews=500, due_cards=3, new_cards=2))
    assert recs == []


def test_rules_reported_in_fixed_order(aggregator):
    recs = aggregator.recommend(
        _stats(overdue_cards=8, new_cards=25, average_difficulty=0.5, due_cards=8)
    )
    assert [r.type for r in recs] == ["overdue", "new_cards", "difficulty"]


def test_aggregate_counts(aggregator, make_card, now):
    cards = [
        make_card(card_id="new"),
        make_card(card_id="due", reviewed_days_ago=2, interval_days=1, review_count=3),
        make_card(
            card_id="late",
            reviewed_days_ago=10,
            interval_days=1,
            ease_factor=1.3,
            review_count=4,
        ),
        make_card(card_id="later", reviewed_days_ago=1, interval_days=6, review_count=5),
    ]

    stats = aggregator.aggregate(cards, now)

    assert stats.total_cards == 4
    assert stats.reviewed_cards == 3
    assert stats.unreviewed_cards == 1
    assert stats.total_reviews == 12
    assert stats.new_cards == 1
    assert stats.due_cards == 2
    assert stats.overdue_cards == 1
    assert stats.study_load == 3
    assert stats.average_ease == pytest.approx(2.2)
    assert stats.average_difficulty == pytest.approx(1.25)
    assert stats.difficulty_distribution == {0: 3, 1: 0, 2: 0, 3: 0, 4: 0, 5: 1}
    assert stats.last_study_session == cards[3].last_reviewed_at


def test_empty_collection(aggregator, now):
    stats = aggregator.aggregate([], now)

    assert stats.total_cards == 0
    assert stats.average_ease == 0.0
    assert stats.average_difficulty == 0.0
    assert stats.difficulty_distribution == {b: 0 for b in range(6)}
    assert stats.last_study_session is None
    assert [r.type for r in stats.recommendations] == ["difficulty"]


def test_module_level_aggregate(make_card, now):
    assert aggregate([make_card()], now).new_cards == 1


def test_summarize_session():
    summary = summarize_session([5, 4, 2, 0, 4], duration_seconds=300)

    assert summary.total_reviewed == 5
    assert summary.grade_breakdown == {0: 1, 2: 1, 4: 2, 5: 1}
    assert list(summary.grade_breakdown) == [0, 2, 4, 5]
    assert summary.average_grade == pytest.approx(3.0)
    assert summary.accuracy_rate == pytest.approx(0.6)
    assert summary.duration_seconds == 300


def test_summarize_empty_session():
    summary = summarize_session([])
    assert summary.total_reviewed == 0
    assert summary.grade_breakdown == {}
    assert summary.average_grade is None
    assert summary.accuracy_rate is None


def test_summarize_rejects_bad_grade():
    with pytest.raises(InvalidGrade):
        summarize_session([3, 7])


def test_summarize_rejects_negative_duration():
    with pytest.raises(ValueError, match="duration"):
        summarize_session([3], duration_seconds=-1)
