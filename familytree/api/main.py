"""FastAPI backend for the family tree."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from familytree.config import settings
from familytree.errors import NotFoundError, StoreError
from familytree.graph.family_tree import FamilyTree
from familytree.graph.operations import EditState
from familytree.models import Gender

logger = logging.getLogger(__name__)

app = FastAPI(title="Family Tree API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class PersonRequest(BaseModel):
    first_name: str
    last_name: str
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    parents: List[str] = []
    children: List[str] = []

    def fields(self) -> dict:
        return self.model_dump(exclude={"parents", "children"})


_tree: Optional[FamilyTree] = None


def get_tree() -> FamilyTree:
    """Shared FamilyTree on the configured databases."""
    global _tree
    if _tree is None:
        settings.database.ensure_dirs()
        _tree = FamilyTree()
    return _tree


def get_user_id(request: Request) -> str:
    """Current owner, as asserted by the identity provider in front of us."""
    user_id = request.headers.get(settings.api.user_header)
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing user id")
    return user_id


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"success": False, "error": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})


def _save_response(person, result) -> dict:
    return {
        "success": result.state == EditState.APPLIED,
        "person": person.model_dump(mode="json"),
        "relationships": result.to_dict(),
    }


@app.get("/api/dashboard")
def dashboard(user_id: str = Depends(get_user_id), tree: FamilyTree = Depends(get_tree)):
    views = tree.dashboard(user_id)
    return {"count": len(views), "persons": [v.model_dump(mode="json") for v in views]}


@app.get("/api/persons/search")
def search_persons(name: str, user_id: str = Depends(get_user_id), tree: FamilyTree = Depends(get_tree)):
    persons = tree.search(name, user_id)
    return {"count": len(persons), "persons": [p.model_dump(mode="json") for p in persons]}


@app.get("/api/persons/{person_id}")
def get_person(person_id: str, user_id: str = Depends(get_user_id), tree: FamilyTree = Depends(get_tree)):
    view = tree.person_view(person_id, user_id)
    data = view.model_dump(mode="json")
    data["parent_ids"] = [p.id for p in view.parents]
    data["child_ids"] = [c.id for c in view.children]
    return data


@app.get("/api/persons/{person_id}/candidates")
def get_candidates(person_id: str, user_id: str = Depends(get_user_id), tree: FamilyTree = Depends(get_tree)):
    candidates = tree.relationship_candidates(person_id, user_id)
    return {"count": len(candidates), "persons": [p.model_dump(mode="json") for p in candidates]}


@app.get("/api/persons/{person_id}/siblings")
def get_siblings(person_id: str, user_id: str = Depends(get_user_id), tree: FamilyTree = Depends(get_tree)):
    siblings = tree.siblings(person_id, user_id)
    return {"count": len(siblings), "persons": [p.model_dump(mode="json") for p in siblings]}


@app.get("/api/persons/{person_id}/lineage")
def get_lineage(
    person_id: str,
    ancestor_depth: int = Query(5, ge=0),
    descendant_depth: int = Query(5, ge=0),
    user_id: str = Depends(get_user_id),
    tree: FamilyTree = Depends(get_tree),
):
    return tree.lineage(person_id, user_id, ancestor_depth, descendant_depth).model_dump(mode="json")


@app.post("/api/persons")
def create_person(req: PersonRequest, user_id: str = Depends(get_user_id), tree: FamilyTree = Depends(get_tree)):
    person, result = tree.save_person(user_id, req.fields(), req.parents, req.children)
    return _save_response(person, result)


@app.put("/api/persons/{person_id}")
def update_person(
    person_id: str,
    req: PersonRequest,
    user_id: str = Depends(get_user_id),
    tree: FamilyTree = Depends(get_tree),
):
    person, result = tree.save_person(user_id, req.fields(), req.parents, req.children, person_id=person_id)
    return _save_response(person, result)


@app.delete("/api/persons/{person_id}")
def delete_person(person_id: str, user_id: str = Depends(get_user_id), tree: FamilyTree = Depends(get_tree)):
    removed = tree.delete_person(person_id, user_id)
    return {"success": True, "deleted": person_id, "relationships_removed": removed}
