import math
from typing import Optional

from core.catalog import VoiceCatalog
from core.history import HistoryStore
from core.leaderboard import Leaderboard, aggregate, display_win_rate
from core.models import ModelStats, PkRecord, SingleTextSingleVoiceRecord
from core.storage import JsonTable

A = ("OpenAI", "OpenAI:alloy")
B = ("Doubao", "Doubao:d1")
C = ("Minimaxi", "Minimaxi:v1")
D = ("fish", "fish:f1")

_counter = iter(range(1, 10_000))


def side(model: tuple[str, str]) -> dict:
    platform, voice = model
    return {"platform": platform, "voice": voice, "text": "hi", "url": f"https://x/{voice}.mp3"}


def pk(left, right, winner: Optional[int] = None) -> PkRecord:
    n = next(_counter)
    return PkRecord(
        id=f"pk-{n}",
        created_at=n,
        voices={"left": side(left), "right": side(right)},
        winner=winner,
    )


def by_id(stats: list[ModelStats]) -> dict[str, ModelStats]:
    return {s.model_id: s for s in stats}


def test_empty_input_gives_empty_table():
    assert aggregate([]) == []


def test_model_identity_joins_platform_and_voice_with_hyphen():
    [left, right] = aggregate([pk(A, B)])
    assert left.model_id == "OpenAI-OpenAI:alloy"
    assert (left.platform, left.voice) == A
    assert right.model_id == "Doubao-Doubao:d1"


def test_win_loss_draw_scenario():
    stats = aggregate([pk(A, B, 0), pk(B, A, 0), pk(A, C)])
    table = by_id(stats)
    a, b, c = table["OpenAI-OpenAI:alloy"], table["Doubao-Doubao:d1"], table["Minimaxi-Minimaxi:v1"]

    assert (a.pk_count, b.pk_count, c.pk_count) == (3, 2, 1)
    assert (a.total_score, b.total_score, c.total_score) == (1, 1, 0)
    assert math.isclose(a.win_rate, 100 / 3)
    assert b.win_rate == 50
    assert c.win_rate == 0
    # sorted purely by win rate
    assert [s.model_id for s in stats] == [b.model_id, a.model_id, c.model_id]


def test_right_winner_scores_right_side():
    table = by_id(aggregate([pk(A, B, 1)]))
    assert table["Doubao-Doubao:d1"].total_score == 1
    assert table["OpenAI-OpenAI:alloy"].total_score == 0
    assert table["OpenAI-OpenAI:alloy"].pk_count == 1


def test_draw_counts_appearances_only():
    stats = aggregate([pk(A, B)])
    assert [(s.pk_count, s.total_score, s.win_rate) for s in stats] == [(1, 0, 0.0), (1, 0, 0.0)]


def test_ties_keep_encounter_order():
    stats = aggregate([pk(A, B, 0), pk(C, D, 0)])
    assert [s.model_id for s in stats] == [
        "OpenAI-OpenAI:alloy",
        "Minimaxi-Minimaxi:v1",
        "Doubao-Doubao:d1",
        "fish-fish:f1",
    ]


def test_platform_case_is_not_normalized():
    stats = aggregate([pk(("Azure", "zh-CN-X"), B), pk(("azure", "zh-CN-X"), B)])
    assert {s.model_id for s in stats} >= {"Azure-zh-CN-X", "azure-zh-CN-X"}


def test_win_rate_stays_within_bounds():
    records = [pk(A, B, i % 2) for i in range(7)] + [pk(B, C, None), pk(C, A, 0)]
    for s in aggregate(records):
        assert s.pk_count > 0
        assert 0 <= s.win_rate <= 100


def test_non_pk_records_are_skipped():
    record = SingleTextSingleVoiceRecord(
        id="g1",
        created_at=1,
        voices={"voice": "OpenAI:alloy", "text": "t", "url": "u", "platform": "OpenAI"},
    )
    assert aggregate([record]) == []


def test_nan_win_rate_displays_as_zero():
    stats = ModelStats(model_id="x", platform="p", voice="v", win_rate=math.nan)
    assert display_win_rate(stats) == 0
    assert display_win_rate(ModelStats(model_id="x", platform="p", voice="v", win_rate=66.6)) == 67


def test_leaderboard_recomputes_on_history_changes(tmp_path):
    store = HistoryStore(JsonTable(tmp_path / "h.json"))
    board = Leaderboard(store)
    assert board.stats == []

    record_id = store.add(pk(A, B).model_dump(exclude={"id", "created_at"}))
    assert [s.total_score for s in board.stats] == [0, 0]

    store.update(record_id, {"winner": 1})
    assert board.stats[0].model_id == "Doubao-Doubao:d1"
    assert board.stats[0].win_rate == 100

    store.delete(record_id)
    assert board.stats == []

    board.close()
    store.add(pk(A, B).model_dump(exclude={"id", "created_at"}))
    assert board.stats == []


def test_rows_use_display_names_and_voice_labels(tmp_path):
    store = HistoryStore(JsonTable(tmp_path / "h.json"))
    board = Leaderboard(store)
    store.add(pk(C, ("OpenAI", "OpenAI:nova"), 0).model_dump(exclude={"id", "created_at"}))

    catalog = VoiceCatalog()
    catalog.build_from_provider_response(
        {
            "provider_list": [
                {
                    "provider": "minimaxi",
                    "req_params_info": {"voice_list": [{"voice": "v1", "name": "Voice One", "gender": "Male"}]},
                }
            ]
        }
    )
    rows = board.rows(catalog)
    assert [(r.rank, r.platform, r.voice, r.win_rate, r.total_score, r.pk_count) for r in rows] == [
        (1, "Minimax", "Voice One (Male)", 100, 1, 1),
        (2, "OpenAI", "nova", 0, 0, 1),
    ]
