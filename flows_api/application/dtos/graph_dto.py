from typing import Literal

from pydantic import BaseModel


class NodeDTO(BaseModel):
    id: str
    name: str
    kind: str            # "funding_source" | "grant" | "recipient"
    title: str | None = None
    url: str | None = None
    is_flow: bool = False
    username: str | None = None   # recipient nodes with a profile only
    fid: int | None = None
    pfp_url: str | None = None


class LinkDTO(BaseModel):
    source: str
    target: str
    value: float


class GraphDTO(BaseModel):
    nodes: list[NodeDTO]
    links: list[LinkDTO]
    total_value: float = 0.0


class ViewStateDTO(BaseModel):
    status: Literal["loading", "error", "loaded"]
    message: str | None = None
    grant_count: int = 0
    profile_count: int = 0
