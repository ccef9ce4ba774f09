"""Tests for council_chat/council/ranking.py."""

from council_chat.council.models import Stage2Evaluation
from council_chat.council.ranking import calculate_aggregate_rankings, parse_ranking_from_text


def _evaluation(model, ranking):
    return Stage2Evaluation(
        model_id=model.id, display_name=model.display_name, evaluation="", parsed_ranking=ranking,
    )


def test_parse_final_ranking_block():
    text = "Response A is verbose.\n\nFINAL RANKING:\n1. Response B\n2. Response A"
    assert parse_ranking_from_text(text, 2) == ["Response B", "Response A"]


def test_parse_final_ranking_marker_is_case_insensitive():
    text = "Thoughts.\n\nfinal ranking:\n1. Response C\n2. Response A\n3. Response B"
    assert parse_ranking_from_text(text, 3) == ["Response C", "Response A", "Response B"]


def test_parse_final_ranking_stops_at_blank_line():
    text = "FINAL RANKING:\n1. Response A\n2. Response B\n\nNote: Response C was off topic."
    assert parse_ranking_from_text(text, 3) == ["Response A", "Response B"]


def test_parse_without_marker_dedupes_in_order_of_first_appearance():
    text = "...Response C is strong, Response A follows... Response C again."
    assert parse_ranking_from_text(text, 3) == ["Response C", "Response A"]


def test_parse_without_marker_truncates_to_council_size():
    text = "Response B, then Response A, then Response C."
    assert parse_ranking_from_text(text, 2) == ["Response B", "Response A"]


def test_parse_returns_empty_when_nothing_matches():
    assert parse_ranking_from_text("I could not decide.", 3) == []
    assert parse_ranking_from_text("", 3) == []


def test_fully_cross_ranked_pair_ties(council):
    alpha, beta = council[:2]
    label_to_model = {"Response A": "Alpha", "Response B": "Beta"}
    evaluations = [
        _evaluation(alpha, ["Response A", "Response B"]),
        _evaluation(beta, ["Response B", "Response A"]),
    ]
    rankings = calculate_aggregate_rankings(evaluations, label_to_model, [alpha, beta])
    assert [(r.model_id, r.average_rank, r.vote_count) for r in rankings] == [
        ("alpha", 1.5, 2),
        ("beta", 1.5, 2),
    ]


def test_never_ranked_model_gets_council_size(council):
    label_to_model = {"Response A": "Alpha", "Response B": "Beta", "Response C": "Gamma"}
    evaluations = [_evaluation(m, ["Response B", "Response A"]) for m in council]
    rankings = calculate_aggregate_rankings(evaluations, label_to_model, council)

    assert [r.model_id for r in rankings] == ["beta", "alpha", "gamma"]
    gamma = rankings[-1]
    assert gamma.average_rank == 3.0
    assert gamma.vote_count == 0


def test_unknown_labels_are_ignored(council):
    label_to_model = {"Response A": "Alpha", "Response B": "Beta", "Response C": "Gamma"}
    evaluations = [_evaluation(council[0], ["Response Z", "Response C"])]
    rankings = calculate_aggregate_rankings(evaluations, label_to_model, council)

    by_id = {r.model_id: r for r in rankings}
    assert by_id["gamma"].average_rank == 2.0
    assert by_id["gamma"].vote_count == 1
    assert by_id["alpha"].vote_count == 0


def test_every_council_model_has_an_entry_with_no_evaluations(council):
    rankings = calculate_aggregate_rankings([], {}, council)
    assert [r.model_id for r in rankings] == ["alpha", "beta", "gamma"]
    assert all(r.average_rank == 3.0 for r in rankings)
