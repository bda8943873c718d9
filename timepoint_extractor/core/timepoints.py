"""Timepoint model: an ordered list of labeled positions in one media file.

The store keeps two invariants after every mutating call returns:
 - timepoints are sorted ascending by ``time`` (stable for equal times)
 - ``label`` of the i-th timepoint is ``Point`` + its 1-based position, 4 digits

Indices are 0-based positions in that sorted order, as a list selection would
report them. An absent or out-of-range index is treated as "nothing selected":
the call returns False and leaves the store untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Iterator, List, Optional

from ..config import POINT_LABEL_FORMAT
from ..utils.timefmt import format_micros


@dataclass
class Timepoint:
    time: int  # microseconds from media start
    label: str = ""
    formatted: str = ""
    remark: str = ""

    def display(self) -> str:
        return f"[{self.formatted}] {self.label} {self.remark}".rstrip()


@dataclass
class TimepointStore:
    timepoints: List[Timepoint] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.reorder()

    def __len__(self) -> int:
        return len(self.timepoints)

    def __iter__(self) -> Iterator[Timepoint]:
        return iter(self.timepoints)

    def __getitem__(self, index: int) -> Timepoint:
        return self.timepoints[index]

    def get(self, index: Optional[int]) -> Optional[Timepoint]:
        if index is None or index < 0 or index >= len(self.timepoints):
            return None
        return self.timepoints[index]

    def add(self, time: int, remark: str = "") -> Timepoint:
        if time < 0:
            raise ValueError("timepoint time must be non-negative")
        tp = Timepoint(
            time=int(time), formatted=format_micros(time), remark=remark or ""
        )
        self.timepoints.append(tp)
        self.reorder()
        return tp

    def remove(self, index: Optional[int]) -> bool:
        if self.get(index) is None:
            return False
        self.timepoints.pop(index)
        self.reorder()
        return True

    def update_remark(self, index: Optional[int], remark: str) -> bool:
        tp = self.get(index)
        if tp is None:
            return False
        tp.remark = remark or ""
        return True

    def reorder(self) -> None:
        # list.sort is stable: equal times keep insertion order
        self.timepoints.sort(key=lambda tp: tp.time)
        for i, tp in enumerate(self.timepoints, start=1):
            tp.label = POINT_LABEL_FORMAT.format(i)

    def copy(self) -> "TimepointStore":
        return TimepointStore([Timepoint(**asdict(tp)) for tp in self.timepoints])

    def to_records(self) -> list[dict[str, Any]]:
        return [asdict(tp) for tp in self.timepoints]

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> "TimepointStore":
        timepoints = []
        for r in records:
            time = int(r["time"])
            timepoints.append(
                Timepoint(
                    time=time,
                    label=r.get("label", ""),
                    formatted=r.get("formatted") or format_micros(time),
                    remark=r.get("remark", ""),
                )
            )
        return cls(timepoints)

    def display_rows(self) -> list[str]:
        return [tp.display() for tp in self.timepoints]


__all__ = ["Timepoint", "TimepointStore"]
