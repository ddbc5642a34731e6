# flows_api/infrastructure/repositories/http_flow_repo.py
#
# FlowRepository backed by the two HTTP sources in flows_pipeline.
#
# Design decisions:
#   - The pipeline speaks Polars DataFrames; the domain speaks frozen
#     dataclasses. This repo is the only place that converts between them.
#   - list_grants propagates FetchError / ParseError. profiles_for never
#     raises them (fetch_profiles already fails softly).
from __future__ import annotations

from collections.abc import Sequence

import httpx
import polars as pl

from flows_api.domain.flow.entities import GrantRecord, RecipientProfile
from flows_api.domain.flow.value_objects import FlowRate
from flows_pipeline.config import PipelineConfig
from flows_pipeline.main import fetch_grants, fetch_profiles


class HttpFlowRepo:
    def __init__(self, client: httpx.Client, config: PipelineConfig) -> None:
        self._client = client
        self._config = config

    def list_grants(self) -> list[GrantRecord]:
        df = fetch_grants(self._config, self._client)
        return [
            GrantRecord(
                id=row["id"],
                title=row["title"],
                monthly_incoming_flow_rate=FlowRate(row["monthly_incoming_flow_rate"]),
                monthly_outgoing_flow_rate=FlowRate(row["monthly_outgoing_flow_rate"]),
                recipient=row["recipient"],
                flow_id=row["flow_id"],
                is_flow=bool(row["is_flow"]),
                status=row["status"],
            )
            for row in df.iter_rows(named=True)
        ]

    def profiles_for(self, grants: Sequence[GrantRecord]) -> dict[str, RecipientProfile]:
        df = fetch_profiles(self._config, _grants_frame(grants), self._client)
        return {
            row["address"]: RecipientProfile(
                username=row["username"],
                display_name=row["display_name"],
                fid=row["fid"],
                pfp_url=row["pfp_url"],
            )
            for row in df.iter_rows(named=True)
        }


def _grants_frame(grants: Sequence[GrantRecord]) -> pl.DataFrame:
    """Minimal grants frame carrying what terminal_recipients() reads."""
    return pl.DataFrame(
        {
            "recipient": [g.recipient for g in grants],
            "monthly_outgoing_flow_rate": [g.monthly_outgoing_flow_rate.value for g in grants],
        },
        schema={"recipient": pl.Utf8, "monthly_outgoing_flow_rate": pl.Float64},
    )
