from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from nyumbatz.dependencies import Services, get_services, require_user
from nyumbatz.schemas import AuthSession, Property, PropertyCreate, PropertyType, PropertyUpdate
from nyumbatz.services.filters import build_filters
from nyumbatz.services.storage import ImageUpload

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.get("", response_model=list[Property])
async def search_properties(
    location: str | None = None,
    price_min: int | None = Query(default=None, ge=0),
    price_max: int | None = Query(default=None, ge=0),
    property_type: PropertyType | None = None,
    bedrooms: int | None = Query(default=None, ge=0),
    bathrooms: int | None = Query(default=None, ge=0),
    query: str | None = Query(default=None, alias="q"),
    limit: int | None = Query(default=None, ge=1, le=100),
    offset: int | None = Query(default=None, ge=0),
    services: Services = Depends(get_services),
):
    filters = build_filters(
        location=location, price_min=price_min, price_max=price_max,
        property_type=property_type, bedrooms=bedrooms, bathrooms=bathrooms,
        query=query, limit=limit, offset=offset,
    )
    return await services.properties.list_properties(filters)


@router.get("/mine", response_model=list[Property])
async def my_properties(
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    return await services.properties.list_by_owner(user.user_id, user.access_token)


@router.get("/{property_id}", response_model=Property)
async def get_property(property_id: str, services: Services = Depends(get_services)):
    prop = await services.properties.get_property(property_id)
    if prop is None:
        raise HTTPException(404, "Property not found")
    return prop


@router.post("/{property_id}/views", status_code=202)
async def record_view(property_id: str, services: Services = Depends(get_services)):
    recorded = await services.properties.increment_views(property_id)
    return {"recorded": recorded}


@router.post("", response_model=Property, status_code=201)
async def create_property(
    body: PropertyCreate,
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    return await services.properties.create_property(user.user_id, body, user.access_token)


@router.patch("/{property_id}", response_model=Property)
async def update_property(
    property_id: str,
    body: PropertyUpdate,
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    prop = await services.properties.update_property(user.user_id, property_id, body, user.access_token)
    if prop is None:
        raise HTTPException(404, "Property not found")
    return prop


@router.delete("/{property_id}", status_code=204)
async def delete_property(
    property_id: str,
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    if not await services.properties.delete_property(user.user_id, property_id, user.access_token):
        raise HTTPException(404, "Property not found")


@router.post("/{property_id}/images", response_model=Property)
async def upload_images(
    property_id: str,
    files: list[UploadFile] = File(...),
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    uploads = [
        ImageUpload(filename=f.filename or "image", content_type=f.content_type or "", data=await f.read())
        for f in files
    ]
    prop = await services.properties.attach_images(user.user_id, property_id, uploads, user.access_token)
    if prop is None:
        raise HTTPException(404, "Property not found")
    return prop
