import logging
import traceback

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from cardmaker import config
from cardmaker.errors import PersistenceError, ValidationError, WorkflowBusyError
from cardmaker.models.schemas import (
    FieldUpdate,
    GenerateRequest,
    ItemUpdate,
    TagsUpdate,
    WorkflowSnapshot,
)
from cardmaker.services.anki_connect import AnkiConnect
from cardmaker.services.workflow import Workflow, build_workflows

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api")

anki = AnkiConnect()
workflows: dict[str, Workflow] = build_workflows(anki)


def _get_workflow(kind: str) -> Workflow:
    workflow = workflows.get(kind)
    if workflow is None:
        raise HTTPException(status_code=404, detail=f"Unknown workflow: {kind}")
    return workflow


async def _run(kind: str, action):
    """Run a workflow action, mapping rejections to HTTP errors."""
    workflow = _get_workflow(kind)
    try:
        result = action(workflow)
        if hasattr(result, "__await__"):
            result = await result
        return result
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except WorkflowBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"[{kind}] Workflow error: {traceback.format_exc()}")
        return JSONResponse(
            status_code=500,
            content={"detail": f"Server error: {type(e).__name__}: {str(e)}"},
        )


@router.get("/health")
async def health():
    """Report whether AnkiConnect is reachable and which model provider is used."""
    try:
        anki_version = await anki.version()
    except PersistenceError as e:
        logger.warning(f"AnkiConnect health check failed: {e}")
        anki_version = None
    return {"anki": anki_version, "provider": config.AI_PROVIDER}


@router.get("/workflows", response_model=list[WorkflowSnapshot])
async def list_workflows():
    return [workflow.snapshot() for workflow in workflows.values()]


@router.get("/workflows/{kind}", response_model=WorkflowSnapshot)
async def get_workflow(kind: str):
    return _get_workflow(kind).snapshot()


@router.post("/workflows/{kind}/generate", response_model=WorkflowSnapshot)
async def generate(kind: str, request: GenerateRequest):
    """Draft a card (or phrase pairs) for the term with the language model."""
    return await _run(kind, lambda w: w.generate(request.term))


@router.patch("/workflows/{kind}/card", response_model=WorkflowSnapshot)
async def update_card_field(kind: str, request: FieldUpdate):
    return await _run(kind, lambda w: w.update_field(request.field, request.value))


@router.put("/workflows/{kind}/card/tags", response_model=WorkflowSnapshot)
async def update_card_tags(kind: str, request: TagsUpdate):
    return await _run(kind, lambda w: w.set_tags(request.tags))


@router.post("/workflows/{kind}/items/{item_id}/toggle", response_model=WorkflowSnapshot)
async def toggle_item(kind: str, item_id: str):
    return await _run(kind, lambda w: w.toggle_item(item_id))


@router.patch("/workflows/{kind}/items/{item_id}", response_model=WorkflowSnapshot)
async def update_item(kind: str, item_id: str, request: ItemUpdate):
    return await _run(kind, lambda w: w.update_item(item_id, front=request.front, back=request.back))


@router.post("/workflows/{kind}/approve", response_model=WorkflowSnapshot)
async def approve(kind: str):
    """Add the approved draft to Anki, then sync."""
    return await _run(kind, lambda w: w.approve())


@router.post("/workflows/{kind}/reset", response_model=WorkflowSnapshot)
async def reset(kind: str):
    return await _run(kind, lambda w: w.reset())
