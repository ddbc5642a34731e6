# flows_api/domain/flow/repository.py
from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .entities import GrantRecord, RecipientProfile


class FlowRepository(Protocol):
    def list_grants(self) -> list[GrantRecord]: ...

    def profiles_for(self, grants: Sequence[GrantRecord]) -> dict[str, RecipientProfile]: ...
