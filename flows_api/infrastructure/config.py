# flows_api/infrastructure/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from flows_api.domain.flow.value_objects import LinkTemplates

load_dotenv()

_DEFAULT_LINKS = LinkTemplates()


@dataclass(frozen=True)
class Settings:
    viewport_width: int
    viewport_height: int
    flow_url_template: str
    item_url_template: str
    profile_url_template: str
    cors_origins: tuple[str, ...]
    debug: bool

    @property
    def link_templates(self) -> LinkTemplates:
        return LinkTemplates(
            flow=self.flow_url_template,
            item=self.item_url_template,
            profile=self.profile_url_template,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    origins = os.environ.get("FLOWS_CORS_ORIGINS", "http://localhost:5173")
    return Settings(
        viewport_width=int(os.environ.get("FLOWS_VIEWPORT_WIDTH", "1280")),
        viewport_height=int(os.environ.get("FLOWS_VIEWPORT_HEIGHT", "800")),
        flow_url_template=os.environ.get("FLOWS_FLOW_URL", _DEFAULT_LINKS.flow),
        item_url_template=os.environ.get("FLOWS_ITEM_URL", _DEFAULT_LINKS.item),
        profile_url_template=os.environ.get("FLOWS_PROFILE_URL", _DEFAULT_LINKS.profile),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        debug=os.environ.get("API_DEBUG", "false").lower() == "true",
    )
