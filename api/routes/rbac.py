"""Routes serving RBAC-decorated MBean trees."""
from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.auth import require_api_key
from api.schemas import DecorateRequest, DecorateResponse
from core.jolokia import JolokiaError, JolokiaStatus
from core.rbac import RBACDecorator
from core.tree import ResourceNode
from core.tree_builder import fetch_tree

router = APIRouter(dependencies=[Depends(require_api_key)])

limiter = Limiter(key_func=get_remote_address)


def _decorator(request: Request) -> RBACDecorator:
    decorator = getattr(request.app.state, "decorator", None)
    if decorator is None:
        raise HTTPException(status_code=503, detail="Jolokia agent not configured")
    return decorator


@router.get("/tree", response_model=ResourceNode)
@limiter.limit("30/minute")
async def get_tree(request: Request):
    """Fetch the agent's MBean tree and return it with RBAC state applied."""
    decorator = _decorator(request)
    try:
        tree = await fetch_tree(decorator.jolokia, decorator.status)
    except JolokiaError as e:
        logger.error(f"Failed to fetch MBean tree: {e}")
        raise HTTPException(status_code=502, detail="Could not list MBeans from Jolokia")

    await decorator.process(tree)
    return tree


@router.post("/rbac/decorate", response_model=DecorateResponse)
@limiter.limit("30/minute")
async def decorate(request: Request, body: DecorateRequest):
    decorator = _decorator(request)
    if body.list_method is not None:
        decorator = RBACDecorator(
            decorator.jolokia, JolokiaStatus(body.list_method), decorator.locator
        )

    result = await decorator.process(body.tree)
    return DecorateResponse(tree=body.tree, result=result)
