# flows_api/domain/flow/value_objects.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

# Reserved id of the synthetic root node. Grant ids come from the indexer and
# never use this shape; a grant that does is ignored by the builder.
FUNDING_SOURCE_ID = "___funding_source___"
FUNDING_SOURCE_NAME = "Funding Source"
RECIPIENT_PREFIX = "recipient_"


def recipient_node_id(address: str) -> str:
    """Node id of a recipient wallet. Case-preserving."""
    return f"{RECIPIENT_PREFIX}{address}"


class NodeKind(str, Enum):
    FUNDING_SOURCE = "funding_source"
    GRANT = "grant"
    RECIPIENT = "recipient"


@dataclass(frozen=True)
class FlowRate:
    """Monthly flow rate. Always finite: anything unreadable is 0.0."""

    value: float = 0.0

    def __post_init__(self) -> None:
        try:
            number = float(self.value)
        except (TypeError, ValueError):
            number = 0.0
        if not math.isfinite(number):
            number = 0.0
        object.__setattr__(self, "value", number)

    @classmethod
    def parse(cls, raw: str | float | int | None) -> FlowRate:
        """Parse a decimal string (or number) as sent by the grant endpoint."""
        if raw is None or isinstance(raw, bool):
            return cls(0.0)
        if isinstance(raw, str):
            try:
                return cls(float(raw.strip()))
            except ValueError:
                return cls(0.0)
        return cls(raw)

    @property
    def is_positive(self) -> bool:
        return self.value > 0

    @property
    def is_zero(self) -> bool:
        return self.value == 0


@dataclass(frozen=True)
class LinkTemplates:
    """URL templates opened when a node is clicked, one per node kind."""

    flow: str = "https://flows.wtf/flow/{id}"
    item: str = "https://flows.wtf/item/{id}"
    profile: str = "https://warpcast.com/{username}"

    def flow_url(self, grant_id: str) -> str:
        return self.flow.format(id=grant_id)

    def item_url(self, grant_id: str) -> str:
        return self.item.format(id=grant_id)

    def profile_url(self, username: str) -> str:
        return self.profile.format(username=username)
