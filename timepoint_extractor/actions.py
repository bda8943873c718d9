"""User actions on the timepoint list.

Each action is a plain function ``(store, selection, inputs) -> ActionResult``.
Actions never touch disk, the player or ffmpeg: they return a new store (or
the same one when nothing changed) plus an *effect* describing what the
controller has to do next (save, seek, launch an extraction).

``selection`` is the 0-based row of the selected timepoint, or None.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Union

from .core.timepoints import Timepoint, TimepointStore
from .services.commands import ExtractionMode, ExtractionParams

STATUS_ADDED = "TimePoint added."
STATUS_REMOVED = "TimePoint removed."
STATUS_UPDATED = "Remark updated."
STATUS_NOTHING_SELECTED = "Select a point first."
STATUS_EXTRACTING = {
    ExtractionMode.FRAMES: "Extracting frames...",
    ExtractionMode.LOSSLESS_CLIP: "Extracting movie...",
    ExtractionMode.ENCODED_CLIP: "Extracting encoded movie...",
}


class Action(enum.Enum):
    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"
    JUMP = "jump"
    EXTRACT_FRAMES = "extract-frames"
    EXTRACT_LOSSLESS = "extract-lossless"
    EXTRACT_ENCODED = "extract-encoded"


@dataclass(frozen=True)
class Save:
    pass


@dataclass(frozen=True)
class Seek:
    micros: int
    remark: str = ""


@dataclass(frozen=True)
class Extract:
    timepoint: Timepoint
    mode: ExtractionMode
    params: ExtractionParams


Effect = Union[Save, Seek, Extract, None]


@dataclass
class ActionInputs:
    position_micros: int = 0
    remark: str = ""
    params: ExtractionParams = field(default_factory=ExtractionParams)


@dataclass
class ActionResult:
    store: TimepointStore
    status: str
    effect: Effect = None
    ok: bool = True

    @property
    def nothing_selected(self) -> bool:
        return self.status == STATUS_NOTHING_SELECTED


ActionFn = Callable[[TimepointStore, Optional[int], ActionInputs], ActionResult]


def _nothing_selected(store: TimepointStore) -> ActionResult:
    return ActionResult(store=store, status=STATUS_NOTHING_SELECTED, ok=False)


def add(
    store: TimepointStore, selection: Optional[int], inputs: ActionInputs
) -> ActionResult:
    new = store.copy()
    new.add(inputs.position_micros, inputs.remark)
    return ActionResult(store=new, status=STATUS_ADDED, effect=Save())


def remove(
    store: TimepointStore, selection: Optional[int], inputs: ActionInputs
) -> ActionResult:
    new = store.copy()
    if not new.remove(selection):
        return _nothing_selected(store)
    return ActionResult(store=new, status=STATUS_REMOVED, effect=Save())


def update(
    store: TimepointStore, selection: Optional[int], inputs: ActionInputs
) -> ActionResult:
    new = store.copy()
    if not new.update_remark(selection, inputs.remark):
        return _nothing_selected(store)
    return ActionResult(store=new, status=STATUS_UPDATED, effect=Save())


def jump(
    store: TimepointStore, selection: Optional[int], inputs: ActionInputs
) -> ActionResult:
    tp = store.get(selection)
    if tp is None:
        return _nothing_selected(store)
    return ActionResult(
        store=store,
        status=f"Jumped to {tp.label} [{tp.formatted}].",
        effect=Seek(micros=tp.time, remark=tp.remark),
    )


def _extract(mode: ExtractionMode) -> ActionFn:
    def action(
        store: TimepointStore, selection: Optional[int], inputs: ActionInputs
    ) -> ActionResult:
        tp = store.get(selection)
        if tp is None:
            return _nothing_selected(store)
        return ActionResult(
            store=store,
            status=STATUS_EXTRACTING[mode],
            effect=Extract(timepoint=tp, mode=mode, params=inputs.params),
        )

    action.__name__ = f"extract_{mode.value}"
    return action


extract_frames = _extract(ExtractionMode.FRAMES)
extract_lossless = _extract(ExtractionMode.LOSSLESS_CLIP)
extract_encoded = _extract(ExtractionMode.ENCODED_CLIP)

ACTIONS: Dict[Action, ActionFn] = {
    Action.ADD: add,
    Action.REMOVE: remove,
    Action.UPDATE: update,
    Action.JUMP: jump,
    Action.EXTRACT_FRAMES: extract_frames,
    Action.EXTRACT_LOSSLESS: extract_lossless,
    Action.EXTRACT_ENCODED: extract_encoded,
}

EXTRACT_ACTIONS = frozenset(
    {Action.EXTRACT_FRAMES, Action.EXTRACT_LOSSLESS, Action.EXTRACT_ENCODED}
)


__all__ = [
    "ACTIONS",
    "EXTRACT_ACTIONS",
    "Action",
    "ActionInputs",
    "ActionResult",
    "Effect",
    "Extract",
    "Save",
    "Seek",
]
