"""
RPI Engine — Research History
==============================
Transient, newest-first store of analysis sessions. Lives in Streamlit
session state; nothing is written to disk.
"""

import random
import string
import time
from datetime import datetime
from typing import Iterator, Optional

import numpy as np
import pandas as pd

from models import AnalysisResult, HistoryItem


_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_session_id(length: int = 9) -> str:
    """Random base-36 id, e.g. 'k3x9q0a1z'."""
    return "".join(random.choice(_ID_ALPHABET) for _ in range(length))


class ResearchHistory:
    """Bounded list of HistoryItem, newest first."""

    def __init__(self, max_items: int = 10):
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.max_items = max_items
        self._items: list[HistoryItem] = []

    def add(self, text: str, result: AnalysisResult, model: Optional[str] = None,
            timestamp: Optional[int] = None) -> HistoryItem:
        item = HistoryItem(
            id=new_session_id(),
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
            text=text,
            result=result,
            model=model,
        )
        self._items.insert(0, item)
        del self._items[self.max_items:]
        return item

    def get(self, item_id: str) -> Optional[HistoryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def clear(self) -> None:
        self._items.clear()

    @property
    def items(self) -> list[HistoryItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[HistoryItem]:
        return iter(list(self._items))

    def to_frame(self) -> pd.DataFrame:
        """One row per session for the repository table."""
        rows = []
        for item in self._items:
            r = item.result
            rows.append({
                "Session": item.id,
                "Time": datetime.fromtimestamp(item.timestamp / 1000).strftime("%H:%M:%S"),
                "RPI": r.rpi_score,
                "emo": r.metrics.emo,
                "spa": r.metrics.spa,
                "soc": r.metrics.soc,
                "alpha": r.weights.alpha,
                "beta": r.weights.beta,
                "gamma": r.weights.gamma,
                "Critical Period": r.critical_period,
                "Excerpt": item.text[:60],
            })
        columns = ["Session", "Time", "RPI", "emo", "spa", "soc",
                   "alpha", "beta", "gamma", "Critical Period", "Excerpt"]
        return pd.DataFrame(rows, columns=columns)

    def rpi_trend(self) -> Optional[float]:
        """Least-squares slope of RPI across sessions, oldest to newest."""
        if len(self._items) < 2:
            return None
        scores = [item.result.rpi_score for item in reversed(self._items)]
        slope, _ = np.polyfit(np.arange(len(scores)), np.array(scores, dtype=float), 1)
        return float(slope)
