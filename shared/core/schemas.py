from pydantic import BaseModel
from typing import Generic, Optional, TypeVar, Union
from uuid import UUID

# Shared properties
T = TypeVar("T")


class TenantContext(BaseModel):
    """Who is acting, and on which tenant/property the data scope is pinned."""
    tenant_id: UUID
    property_id: UUID
    actor_id: Optional[UUID] = None
    name: Optional[str] = None
    exp: Optional[int] = None


class CommonQueryParams(BaseModel):
    search: Optional[str] = None
    skip: Optional[int] = 0
    limit: Optional[int] = 100


class Lookup(BaseModel):
    id: Union[str, UUID]  # accepts both UUID and str
    name: str

    model_config = {"from_attributes": True}


class JsonOutResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    status: str
    status_code: str
    message: str
