# state.py
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import config
from analysis import AnalysisResult
from stations import Station


@dataclass
class AppState:
    """
    Everything the app mutates between reruns. Components read it and call
    the action methods below; nothing else writes to it.
    """
    selected: List[Station] = field(default_factory=list)
    thresholds: List[int] = field(default_factory=lambda: list(config.DEFAULT_THRESHOLDS))
    locating: bool = False
    locate_request: int = 0
    analyzing: bool = False
    analysis: Optional[AnalysisResult] = None
    analysis_key: Tuple[str, ...] = ()

    @classmethod
    def initial(cls, directory: Iterable[Station]) -> "AppState":
        first = next(iter(directory), None)
        return cls(selected=[first] if first is not None else [])

    # -- selection -------------------------------------------------------
    def selected_ids(self) -> Tuple[str, ...]:
        return tuple(s.id for s in self.selected)

    def is_selected(self, station_id: str) -> bool:
        return any(s.id == station_id for s in self.selected)

    def is_all_selected(self, directory: Iterable[Station]) -> bool:
        return set(self.selected_ids()) == {s.id for s in directory}

    def toggle(self, station: Station) -> None:
        if self.is_selected(station.id):
            self.selected = [s for s in self.selected if s.id != station.id]
        else:
            self.selected = [*self.selected, station]

    def select_all(self, directory: Iterable[Station]) -> None:
        seen = set()
        out = []
        for s in directory:
            if s.id not in seen:
                seen.add(s.id)
                out.append(s)
        self.selected = out

    def clear(self) -> None:
        self.selected = []

    def replace_selection(self, station: Station) -> None:
        self.selected = [station]

    # -- thresholds ------------------------------------------------------
    def set_threshold(self, index: int, value: int) -> None:
        if not 0 <= index < len(self.thresholds):
            raise IndexError(f"threshold index {index} out of range")
        if not config.THRESHOLD_MIN <= value <= config.THRESHOLD_MAX:
            raise ValueError(
                f"threshold must be between {config.THRESHOLD_MIN} and "
                f"{config.THRESHOLD_MAX} minutes, got {value}"
            )
        self.thresholds[index] = int(value)

    def max_minutes(self) -> int:
        return max(self.thresholds)

    # -- analysis --------------------------------------------------------
    def sync_analysis(self) -> None:
        """Drop a cached analysis once the selected ids change."""
        key = self.selected_ids()
        if key != self.analysis_key:
            self.analysis = None
            self.analysis_key = key
