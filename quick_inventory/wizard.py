"""Stepped data-entry wizard.

The wizard walks a fixed list of fields one prompt at a time and
accumulates the answers in a draft.  Submitting the last field finalizes
the draft into an :class:`InventoryRecord` and starts over at step zero,
so the wizard is always ready for the next item.

State transitions are pure functions over :class:`WizardState`; the
:class:`FieldWizard` class binds a state to a :class:`RecordStore` for
callers that keep the wizard in memory.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple, cast
import logging

from . import notifications
from .errors import NothingToSaveError
from .notifications import Notification
from .records import (
    COMPACT_FIELDS,
    EQUIPMENT_TYPE,
    FieldSet,
    FieldSpec,
    InventoryRecord,
    coerce_text,
    now_ms,
)
from .store import RecordStore


logger = logging.getLogger(__name__)

DEFAULT_MANUFACTURER = "Dell"
DEFAULT_EQUIPMENT_OPTIONS: Tuple[str, ...] = ("Notebook", "Mouse", "Teclado", "Fone", "Monitor")


@dataclass(frozen=True)
class WizardConfig:
    fields: FieldSet = COMPACT_FIELDS
    default_manufacturer: str = DEFAULT_MANUFACTURER
    equipment_options: Tuple[str, ...] = DEFAULT_EQUIPMENT_OPTIONS

    def empty_draft(self) -> Dict[str, str]:
        draft = {key: "" for key in self.fields.keys()}
        if "manufacturer" in draft:
            draft["manufacturer"] = self.default_manufacturer
        return draft


@dataclass(frozen=True)
class WizardState:
    step: int = 0
    draft: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "draft": dict(self.draft)}

    @classmethod
    def from_dict(cls, payload: Any, config: WizardConfig) -> "WizardState":
        """Rebuild a state saved with :meth:`to_dict`, falling back to a fresh one."""

        if not isinstance(payload, Mapping):
            return initial_state(config)
        try:
            step = int(payload.get("step", 0))
        except (TypeError, ValueError):
            step = 0
        stored_draft = payload.get("draft")
        draft = config.empty_draft()
        if isinstance(stored_draft, Mapping):
            for key in draft:
                if key in stored_draft:
                    draft[key] = coerce_text(stored_draft[key])
        return cls(step=max(step, 0) % len(config.fields), draft=draft)


class Transition(NamedTuple):
    state: WizardState
    record: Optional[InventoryRecord]


def initial_state(config: WizardConfig) -> WizardState:
    return WizardState(step=0, draft=config.empty_draft())


def active_field(config: WizardConfig, state: WizardState) -> FieldSpec:
    return config.fields[state.step % len(config.fields)]


def set_field(config: WizardConfig, state: WizardState, key: str, value: str) -> WizardState:
    """Edit one draft slot without moving the cursor."""

    config.fields.get(key)
    draft = dict(state.draft)
    draft[key] = value
    return replace(state, draft=draft)


def submit(
    config: WizardConfig,
    state: WizardState,
    value: str,
    *,
    now: Optional[int] = None,
) -> Transition:
    spec = active_field(config, state)
    draft = dict(state.draft)
    draft[spec.key] = value
    total = len(config.fields)
    if state.step % total == total - 1:
        created_at = now_ms() if now is None else now
        record = InventoryRecord.from_draft(draft, created_at)
        return Transition(initial_state(config), record)
    return Transition(WizardState(step=state.step + 1, draft=draft), None)


def back(state: WizardState) -> WizardState:
    if state.step <= 0:
        return state
    return replace(state, step=state.step - 1)


def quick_add(
    config: WizardConfig,
    state: WizardState,
    *,
    now: Optional[int] = None,
) -> Transition:
    """Finalize the draft as-is; rejects a draft with every field empty."""

    if not any(state.draft.get(key) for key in config.fields.keys()):
        raise NothingToSaveError(notifications.NOTHING_TO_SAVE)
    created_at = now_ms() if now is None else now
    record = InventoryRecord.from_draft(state.draft, created_at)
    return Transition(initial_state(config), record)


def prompt(config: WizardConfig, state: WizardState) -> Dict[str, Any]:
    """Describe the current prompt for a presentation layer."""

    spec = active_field(config, state)
    position = state.step % len(config.fields) + 1
    payload: Dict[str, Any] = {
        "step": state.step,
        "position": position,
        "total": len(config.fields),
        "title": f"Passo {position} de {len(config.fields)}: {spec.label}",
        "field": spec.key,
        "label": spec.label,
        "placeholder": spec.placeholder,
        "value": state.draft.get(spec.key, ""),
        "draft": dict(state.draft),
    }
    if spec is EQUIPMENT_TYPE:
        payload["options"] = list(config.equipment_options)
    return payload


class FieldWizard:
    """Wizard bound to a record store; finalized drafts are appended to it."""

    def __init__(
        self,
        store: RecordStore,
        config: Optional[WizardConfig] = None,
        *,
        state: Optional[WizardState] = None,
        on_notify: Optional[Callable[[Notification], None]] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.config = config or WizardConfig()
        self.state = state or initial_state(self.config)
        self._on_notify = on_notify
        self._clock = clock

    @property
    def step(self) -> int:
        return self.state.step

    @property
    def draft(self) -> Dict[str, str]:
        return dict(self.state.draft)

    @property
    def active_field(self) -> FieldSpec:
        return active_field(self.config, self.state)

    def prompt(self) -> Dict[str, Any]:
        return prompt(self.config, self.state)

    def set_field(self, key: str, value: str) -> None:
        self.state = set_field(self.config, self.state, key, value)

    def submit(self, value: str) -> Optional[InventoryRecord]:
        transition = submit(self.config, self.state, value, now=self._clock())
        self.state = transition.state
        if transition.record is not None:
            self._finalize(transition.record, notifications.ITEM_ADDED)
        return transition.record

    def back(self) -> None:
        self.state = back(self.state)

    def quick_add(self) -> InventoryRecord:
        transition = quick_add(self.config, self.state, now=self._clock())
        self.state = transition.state
        record = cast(InventoryRecord, transition.record)
        self._finalize(record, notifications.QUICK_ADD_SAVED)
        return record

    def _finalize(self, record: InventoryRecord, message: str) -> None:
        self.store.append(record)
        logger.debug("Wizard finalized record created_at=%d", record.created_at)
        if self._on_notify is not None:
            self._on_notify(notifications.success(message))


__all__ = [
    "DEFAULT_EQUIPMENT_OPTIONS",
    "DEFAULT_MANUFACTURER",
    "FieldWizard",
    "Transition",
    "WizardConfig",
    "WizardState",
    "active_field",
    "back",
    "initial_state",
    "prompt",
    "quick_add",
    "set_field",
    "submit",
]
