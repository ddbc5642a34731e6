from fastapi import APIRouter, Depends, HTTPException

from flows_api.application.dtos.graph_dto import GraphDTO, ViewStateDTO
from flows_api.application.services.graph_service import GraphService
from flows_api.interfaces.api.dependencies import get_graph_service

router = APIRouter()


@router.get("/state", response_model=ViewStateDTO)
def get_state(
    service: GraphService = Depends(get_graph_service),  # noqa: B008
) -> ViewStateDTO:
    return service.current_state()


@router.get("/graph", response_model=GraphDTO)
def get_graph(
    service: GraphService = Depends(get_graph_service),  # noqa: B008
) -> GraphDTO:
    state = service.current_state()
    if state.status == "loading":
        raise HTTPException(status_code=503, detail=state.message)
    if state.status == "error":
        raise HTTPException(status_code=502, detail=f"Error: {state.message}")

    graph = service.current_graph()
    if graph is None:
        raise HTTPException(status_code=503, detail="Loading grant data...")
    return graph
