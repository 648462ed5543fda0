import pytest
from services.order_builder import (
    OrderPosition,
    TradedPick,
    base_order,
    build_draft_order,
    round_order,
)
from utils.exceptions import ValidationError

class TestBaseOrder:
    def test_sorts_by_position(self):
        positions = [OrderPosition(30, 3), OrderPosition(10, 1), OrderPosition(20, 2)]
        assert base_order(positions) == [10, 20, 30]

    def test_positions_need_not_be_contiguous(self):
        assert base_order([OrderPosition(7, 10), OrderPosition(8, 5)]) == [8, 7]

    def test_empty_order_rejected(self):
        with pytest.raises(ValidationError):
            base_order([])

    def test_duplicate_team_rejected(self):
        with pytest.raises(ValidationError):
            base_order([OrderPosition(1, 1), OrderPosition(1, 2)])

    def test_duplicate_position_rejected(self):
        with pytest.raises(ValidationError):
            base_order([OrderPosition(1, 1), OrderPosition(2, 1)])

class TestRoundOrder:
    def test_snake_reverses_even_rounds(self):
        assert round_order([1, 2, 3], 1, True) == [1, 2, 3]
        assert round_order([1, 2, 3], 2, True) == [3, 2, 1]
        assert round_order([1, 2, 3], 3, True) == [1, 2, 3]

    def test_linear_never_reverses(self):
        assert round_order([1, 2, 3], 2, False) == [1, 2, 3]

class TestBuildDraftOrder:
    def test_snake_three_teams_two_rounds(self):
        slots = build_draft_order(["A", "B", "C"], 2, True)
        assert [s.team_id for s in slots] == ["A", "B", "C", "C", "B", "A"]
        assert [s.overall_pick_number for s in slots] == [1, 2, 3, 4, 5, 6]
        assert [s.round for s in slots] == [1, 1, 1, 2, 2, 2]
        assert [s.position_in_round for s in slots] == [1, 2, 3, 1, 2, 3]

    def test_linear_three_teams_two_rounds(self):
        slots = build_draft_order(["A", "B", "C"], 2, False)
        assert [s.team_id for s in slots] == ["A", "B", "C", "A", "B", "C"]

    def test_each_team_once_per_round(self):
        team_ids = [11, 12, 13, 14, 15]
        slots = build_draft_order(team_ids, 6, True)
        assert len(slots) == 30
        for round_number in range(1, 7):
            in_round = [s.team_id for s in slots if s.round == round_number]
            assert sorted(in_round) == team_ids

    def test_zero_rounds_or_no_teams_is_empty(self):
        assert build_draft_order([1, 2], 0, True) == []
        assert build_draft_order([], 3, True) == []

    def test_deterministic(self):
        trades = [TradedPick(2, 1, 3)]
        assert build_draft_order([1, 2, 3], 3, True, trades) == build_draft_order([1, 2, 3], 3, True, trades)

    def test_duplicate_team_rejected(self):
        with pytest.raises(ValidationError):
            build_draft_order([1, 2, 1], 2, True)

class TestTradedPicks:
    def test_traded_pick_keeps_slot_and_records_original_owner(self):
        slots = build_draft_order([1, 2, 3], 2, True, [TradedPick(round=2, original_team_id=3, team_id=1)])
        traded = slots[3]
        assert traded.round == 2
        assert traded.position_in_round == 1
        assert traded.team_id == 1
        assert traded.original_team_id == 3
        assert all(s.original_team_id is None for s in slots if s is not traded)

    def test_team_may_hold_two_picks_in_a_round(self):
        slots = build_draft_order([1, 2, 3], 1, False, [TradedPick(1, 2, 1)])
        assert [s.team_id for s in slots] == [1, 1, 3]

    def test_trade_back_to_same_team_is_noop(self):
        slots = build_draft_order([1, 2], 1, False, [TradedPick(1, 2, 2)])
        assert slots[1].original_team_id is None

    def test_round_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            build_draft_order([1, 2], 2, True, [TradedPick(3, 1, 2)])

    def test_unknown_original_team_rejected(self):
        with pytest.raises(ValidationError):
            build_draft_order([1, 2], 2, True, [TradedPick(1, 9, 2)])

    def test_same_pick_traded_twice_rejected(self):
        with pytest.raises(ValidationError):
            build_draft_order([1, 2, 3], 2, True, [TradedPick(1, 1, 2), TradedPick(1, 1, 3)])
