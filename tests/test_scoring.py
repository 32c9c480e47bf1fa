"""tests/test_scoring.py"""
import pytest

from src.models.draw import Draw, Tier
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.scoring_engine import ScoreBoard, classify, hit_count, score, summarize
from src.pipeline.selection import Selection, parse_numbers
from src.utils.exceptions import ValidationError
from tests.fakes import FakeStore, make_record


def _draw(concourse: int, numbers) -> Draw:
    return Draw.from_record(make_record(concourse, list(numbers)))


DRAW_100 = _draw(100, range(1, 16))


class TestTiers:
    @pytest.mark.parametrize("hits,tier", [
        (15, Tier.JACKPOT),
        (14, Tier.SECOND_TIER),
        (13, Tier.THIRD_TIER),
        (11, Tier.THIRD_TIER),
        (10, Tier.NO_TIER),
        (0, Tier.NO_TIER),
    ])
    def test_boundaries(self, hits, tier):
        assert classify(hits) is tier

    def test_shared_14_is_second_tier(self):
        selection = list(range(1, 15)) + [25]
        [result] = score(selection, [DRAW_100])
        assert result.hit_count == 14
        assert result.tier is Tier.SECOND_TIER

    def test_shared_11_is_third_tier(self):
        selection = list(range(1, 12)) + [21, 22, 23, 24]
        [result] = score(selection, [DRAW_100])
        assert result.hit_count == 11
        assert result.tier is Tier.THIRD_TIER

    def test_shared_10_is_no_tier(self):
        selection = list(range(1, 11)) + [20, 21, 22, 23, 24]
        [result] = score(selection, [DRAW_100])
        assert result.hit_count == 10
        assert result.tier is Tier.NO_TIER


class TestScore:
    def test_hit_count_ignores_order(self):
        draw = _draw(1, [15, 3, 1, 2, 14, 13, 12, 11, 10, 9, 8, 7, 6, 5, 4])
        assert hit_count(draw, [3, 1, 2]) == 3
        assert hit_count(draw, {2, 3, 1}) == 3

    def test_scenario_intersection_size(self):
        selection = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 14, 15, 24, 25]
        results = score(selection, (DRAW_100,))
        assert len(results) == 1
        assert results[0].draw is DRAW_100
        assert results[0].hit_count == len(set(selection) & set(range(1, 16)))
        assert results[0].tier is Tier.THIRD_TIER

    def test_empty_selection_scores_zero(self):
        results = score([], [DRAW_100, _draw(99, range(11, 26))])
        assert [r.hit_count for r in results] == [0, 0]
        assert all(r.tier is Tier.NO_TIER for r in results)

    def test_keeps_archive_order(self):
        draws = [_draw(3, range(1, 16)), _draw(2, range(11, 26)), _draw(1, range(6, 21))]
        results = score([1, 2, 3], draws)
        assert [r.draw.sequence_number for r in results] == [3, 2, 1]

    def test_nineteen_numbers_allowed(self):
        [result] = score(range(1, 20), [DRAW_100])
        assert result.hit_count == 15
        assert result.tier is Tier.JACKPOT

    @pytest.mark.parametrize("selection", [
        list(range(1, 21)),       # 20 numbers
        [0, 1, 2],
        [1, 26],
        [1, 1, 2],
        ["1", "2"],
    ])
    def test_malformed_selection_rejected(self, selection):
        with pytest.raises(ValidationError):
            score(selection, [DRAW_100])

    def test_summarize(self):
        draws = [_draw(3, range(1, 16)), _draw(2, range(2, 17)), _draw(1, range(11, 26))]
        summary = summarize(score(range(1, 16), draws))
        assert summary["draws"] == 3
        assert summary["hits"][15] == 1
        assert summary["hits"][14] == 1
        assert summary["prized"] == 2
        assert summary["tiers"][Tier.NO_TIER] == 1
        assert summary["best_hit_count"] == 15


class TestSelection:
    def test_toggle_adds_and_removes(self):
        sel = Selection()
        sel.toggle(5)
        sel.toggle(2)
        assert sel.numbers == (2, 5)
        sel.toggle(5)
        assert sel.numbers == (2,)

    def test_toggle_stops_at_19(self):
        sel = Selection(range(1, 20))
        assert sel.toggle(25) is False
        assert len(sel) == 19
        assert sel.toggle(1) is True
        assert 1 not in sel

    def test_toggle_out_of_range(self):
        with pytest.raises(ValidationError):
            Selection().toggle(26)

    def test_parse_numbers(self):
        assert parse_numbers("01 02 03, 25 - 30 02") == [1, 2, 3, 25]
        assert parse_numbers("nothing here") == []
        assert len(parse_numbers(" ".join(str(n) for n in range(1, 26)))) == 19

    def test_paste(self):
        sel = Selection([7])
        assert sel.paste("abc") is False
        assert sel.numbers == (7,)
        assert sel.paste("10 09 08") is True
        assert sel.numbers == (8, 9, 10)

    def test_replace_rejects_duplicates(self):
        with pytest.raises(ValidationError):
            Selection().replace([1, 1])

    def test_subscribers_notified_on_change(self):
        seen = []
        sel = Selection()
        sel.subscribe(seen.append)
        sel.toggle(3)
        sel.clear()
        sel.clear()
        assert seen == [(3,), ()]


class TestScoreBoard:
    def test_recomputes_on_selection_and_archive_changes(self):
        archive = DrawArchive(FakeStore())
        selection = Selection()
        board = ScoreBoard(selection, archive)
        assert board.results == []

        archive.merge_upsert([DRAW_100])
        assert [r.hit_count for r in board.results] == [0]

        selection.replace(range(1, 15))
        assert board.results[0].tier is Tier.SECOND_TIER

        archive.merge_upsert([_draw(101, range(1, 16))])
        assert [r.draw.sequence_number for r in board.results] == [101, 100]

    def test_close_stops_updates(self):
        selection = Selection()
        board = ScoreBoard(selection, DrawArchive(FakeStore([make_record(1)])))
        board.close()
        board.archive.load()
        selection.toggle(1)
        assert board.results == []
