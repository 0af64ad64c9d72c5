"""
Project API endpoints.

`/admin/...` paths are declared before the catch-all `/{slug}` route.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from auth import dependencies as auth_dependencies
from auth import service as auth_service

from . import schemas, service

router = APIRouter(prefix="/projects")


@router.get("")
async def list_projects(
    category: schemas.ProjectCategory | None = None,
    status: schemas.ProjectStatus | None = None,
    featured: bool | None = None,
    published: bool | None = None,
    year: int | None = None,
    tags: str | None = Query(default=None, max_length=500),
    technologies: str | None = Query(default=None, max_length=500),
    search: str | None = Query(default=None, max_length=200),
    sort: schemas.ProjectSort = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    return await service.list_projects(
        category=category,
        status=status,
        featured=featured,
        published=published,
        year=year,
        tags=tags,
        technologies=technologies,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
        is_admin=auth_service.is_admin(current_user),
    )


@router.get("/admin/stats")
async def project_stats(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return await service.stats()


@router.get("/admin/{project_id}")
async def get_project_admin(
    project_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return {"project": await service.get_project(project_id)}


@router.get("/{slug}")
async def get_project(slug: str) -> dict:
    return {"project": await service.get_published_project(slug)}


@router.post("", status_code=201)
async def create_project(
    payload: schemas.ProjectCreate,
    current_user: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    project = await service.create_project(payload, created_by=int(current_user["id"]))
    return {"message": "Project created successfully.", "project": project}


@router.put("/{project_id}")
async def update_project(
    project_id: int,
    payload: schemas.ProjectUpdate,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    project = await service.update_project(project_id, payload)
    return {"message": "Project updated successfully.", "project": project}


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    await service.delete_project(project_id)
    return {"ok": True, "message": "Project deleted successfully."}


@router.post("/{project_id}/images")
async def upload_project_images(
    project_id: int,
    files: list[UploadFile] = File(...),
    alt: str = Form(default="", max_length=300),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    project = await service.add_images(project_id, files, alt=alt)
    return {"message": "Images uploaded successfully.", "project": project}


@router.put("/{project_id}/images/{image_id}/primary")
async def set_primary_image(
    project_id: int,
    image_id: str,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    project = await service.set_primary_image(project_id, image_id)
    return {"message": "Primary image updated.", "project": project}


@router.delete("/{project_id}/images/{image_id}")
async def delete_project_image(
    project_id: int,
    image_id: str,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    project = await service.delete_image(project_id, image_id)
    return {"message": "Image deleted successfully.", "project": project}
