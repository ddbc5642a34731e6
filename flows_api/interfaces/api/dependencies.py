from flows_api.application.services.flow_controller import FlowController
from flows_api.application.services.graph_service import GraphService
from flows_api.infrastructure.config import get_settings
from flows_api.infrastructure.http_client import get_client
from flows_api.infrastructure.repositories.http_flow_repo import HttpFlowRepo
from flows_pipeline.config import load_config

_controller: FlowController | None = None


def get_controller() -> FlowController:
    global _controller  # noqa: PLW0603
    if _controller is None:
        repo = HttpFlowRepo(get_client(), load_config())
        _controller = FlowController(repo, links=get_settings().link_templates)
    return _controller


def set_controller(controller: FlowController | None) -> None:
    """Used by tests to inject a controller over a fake repository."""
    global _controller  # noqa: PLW0603
    _controller = controller


def get_graph_service() -> GraphService:
    return GraphService(controller=get_controller())
