import logging
import math
from typing import Dict, Iterable, List, Optional

from .catalog import VoiceCatalog
from .history import HistoryStore
from .labels import display_platform, voice_label
from .models import PK, HistoryRecord, LeaderboardRow, ModelStats

logger = logging.getLogger(__name__)


def aggregate(pk_records: Iterable[HistoryRecord]) -> List[ModelStats]:
    """
    Win/draw statistics per "<platform>-<voice>" from PK records.

    Each appearance counts towards pk_count; the winning side scores one
    point, a draw (winner None) scores nothing. Sorted by win rate, highest
    first; ties keep the order models were first seen in.
    """
    stats: Dict[str, ModelStats] = {}

    for record in pk_records:
        if record.type != PK:
            continue
        left, right = record.voices.left, record.voices.right
        sides = []
        for side in (left, right):
            # platform case is not normalized: "Azure" and "azure" stay separate models
            model_id = f"{side.platform}-{side.voice}"
            if model_id not in stats:
                stats[model_id] = ModelStats(model_id=model_id, platform=side.platform, voice=side.voice)
            stats[model_id].pk_count += 1
            sides.append(stats[model_id])

        if record.winner == 0:
            sides[0].total_score += 1
        elif record.winner == 1:
            sides[1].total_score += 1

    for entry in stats.values():
        entry.win_rate = entry.total_score / entry.pk_count * 100 if entry.pk_count else math.nan

    return sorted(stats.values(), key=lambda s: s.win_rate if not math.isnan(s.win_rate) else -1.0, reverse=True)


def display_win_rate(stats: ModelStats) -> int:
    if math.isnan(stats.win_rate):
        return 0
    return int(round(stats.win_rate))


class Leaderboard:
    """Keeps aggregate() output current by recomputing it on every history change."""

    def __init__(self, store: HistoryStore):
        self.store = store
        self.stats: List[ModelStats] = []
        self.recompute()
        self._unsubscribe = store.subscribe(self.recompute)

    def recompute(self):
        self.stats = aggregate(self.store.pk_records())
        logger.debug(f"Leaderboard recomputed: {len(self.stats)} models")

    def close(self):
        self._unsubscribe()

    def rows(self, catalog: Optional[VoiceCatalog] = None) -> List[LeaderboardRow]:
        groups = catalog.groups if catalog is not None else []
        return [
            LeaderboardRow(
                rank=i + 1,
                model_id=s.model_id,
                platform=display_platform(s.platform),
                voice=voice_label(groups, s.platform, s.voice),
                win_rate=display_win_rate(s),
                total_score=s.total_score,
                pk_count=s.pk_count,
            )
            for i, s in enumerate(self.stats)
        ]
