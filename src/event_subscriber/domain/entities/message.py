from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from event_subscriber.domain.value_objects.enums import EventKind


@dataclass(frozen=True, slots=True)
class RawMessage:
    id: str
    body: str
    receipt_handle: str
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # frozen, so bypass __setattr__ to swap in a read-only copy
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))


@dataclass(frozen=True, slots=True)
class ProcessingOutcome:
    message_id: str
    kind: EventKind
    acknowledged: bool = False
    error: str | None = None
