from typing import Optional

from pydantic import BaseModel, Field

from core.jolokia import ListMethod
from core.schemas import DecorationResult
from core.tree import ResourceNode


class DecorateRequest(BaseModel):
    tree: ResourceNode
    list_method: Optional[ListMethod] = Field(
        None, description="Override the list method detected at startup"
    )


class DecorateResponse(BaseModel):
    tree: ResourceNode
    result: DecorationResult
