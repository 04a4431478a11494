"""
Property listing routes.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import ValidationError

from propfinder.error_handling import UploadRejectedError
from propfinder.models import Listing, ListingCreate
from propfinder.filtering import ListingPredicate
from propfinder.services.images import watermark_or_keep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/properties", response_model=Listing, status_code=201)
async def create_property(
    request: Request,
    title: str = Form(...),
    description: str = Form(...),
    property_type: str = Form(...),
    bedrooms: int = Form(...),
    bathrooms: int = Form(...),
    price: float = Form(...),
    location: str = Form(...),
    area: float = Form(...),
    features: Optional[str] = Form(None),
    company_name: str = Form(...),
    agent_name: str = Form(...),
    agent_phone: str = Form(...),
    images: Optional[List[UploadFile]] = File(None),
):
    """
    Create a property listing.

    Each uploaded image is stored, watermarked with the company name and
    referenced by its public URL. An image whose watermark fails is kept as is.
    Features arrive as comma-separated text.
    """
    state = request.app.state
    uploads = [image for image in (images or []) if image.filename]

    try:
        listing_in = ListingCreate(
            title=title,
            description=description,
            property_type=property_type,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            price=price,
            location=location,
            area=area,
            features=ListingCreate.split_features(features),
            company_name=company_name,
            agent_name=agent_name,
            agent_phone=agent_phone,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))

    stored_images = []
    try:
        state.upload_handler.check_count(uploads)

        for upload in uploads:
            stored = await state.upload_handler.save(upload)
            stored_images.append(stored)
            await asyncio.to_thread(
                watermark_or_keep, state.watermarker, stored.path, company_name
            )

        image_urls = [stored.public_url for stored in stored_images]
        listing = await state.listing_store.create(listing_in, image_urls)
        logger.info(f"Created listing {listing.id} with {len(image_urls)} images")
        return listing

    except UploadRejectedError as e:
        _discard_all(state.upload_handler, stored_images)
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating property: {e}")
        _discard_all(state.upload_handler, stored_images)
        raise HTTPException(status_code=500, detail=str(e))


def _discard_all(upload_handler, stored_images):
    # Nothing references these files once the listing is not created
    for stored in stored_images:
        try:
            upload_handler.discard(stored)
        except OSError as e:
            logger.warning(f"Could not remove {stored.path}: {e}")


@router.get("/properties", response_model=List[Listing])
async def list_properties(request: Request):
    """List all properties, newest first."""
    try:
        return await request.app.state.listing_store.find(ListingPredicate.unconstrained())
    except Exception as e:
        logger.error(f"Failed to list properties: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/properties/{listing_id}", response_model=Listing)
async def get_property(listing_id: str, request: Request):
    """Get a single property by id."""
    try:
        listing = await request.app.state.listing_store.get(listing_id)
    except Exception as e:
        logger.error(f"Failed to fetch property {listing_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if not listing:
        raise HTTPException(status_code=404, detail="Property not found")
    return listing
