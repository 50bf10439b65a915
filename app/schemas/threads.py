from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict


class ThreadCreate(BaseModel):
    thread_id: Optional[str] = Field(None, min_length=1, max_length=64)
    name: Optional[str] = None
    is_public: bool = False
    metadata: Optional[Dict[str, Any]] = None


class ThreadUpdate(BaseModel):
    name: Optional[str] = None
    is_public: Optional[bool] = None


class ThreadOut(BaseModel):
    thread_id: str
    owner_id: str
    name: Optional[str] = None
    is_public: bool = False
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ThreadEnvelope(BaseModel):
    thread: ThreadOut


class ThreadListOut(BaseModel):
    threads: List[ThreadOut]


class ThreadAccess(BaseModel):
    thread_id: str
    is_owner: bool
    is_public: bool


class ThreadValidateOut(BaseModel):
    exists: bool
    thread: Optional[ThreadAccess] = None
