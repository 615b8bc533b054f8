from fastapi import APIRouter, Depends, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging
import math

from ..auth.utils import Tenant, get_current_tenant
from ..database.connection import get_db
from ..gis.exceptions import GISError
from ..gis.lifecycle import PropertyLifecycleService
from ..gis.models import (
    GISSearchCriteria, ScrapeRequest, SavePropertyRequest, SavedPropertyRequest,
    ScrapedProperty, SavedProperty
)
from ..gis.orchestrator import GISScrapeOrchestrator, get_scrape_orchestrator
from ..gis.permissions import GISPermissionChecker, get_permission_checker
from ..gis.scraper import get_property_scraper
from ..services.registry import DataServiceRegistry, get_data_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gis-scraper", tags=["gis-scraper"])

def get_lifecycle_service(
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    permissions: GISPermissionChecker = Depends(get_permission_checker)
) -> PropertyLifecycleService:
    return PropertyLifecycleService(db, tenant, permissions)

def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

def internal_error(action: str, error: Exception) -> JSONResponse:
    logger.error(f"Error in GIS scraper API ({action}): {error}")
    return error_response("Internal server error", 500)

async def gis_validation_error_handler(request: Request, exc: RequestValidationError):
    """Answer malformed GIS request bodies with 400 {error}; other routes keep the default 422"""
    if not request.url.path.startswith(router.prefix):
        return await request_validation_exception_handler(request, exc)

    fields = {str(error["loc"][-1]) for error in exc.errors() if error.get("loc")}
    if fields & {"min_acreage", "max_acreage"}:
        return error_response("min_acreage and max_acreage must be numbers")
    return error_response("Invalid request body")

@router.post("")
async def scrape_properties(
    body: Optional[ScrapeRequest] = None,
    lifecycle: PropertyLifecycleService = Depends(get_lifecycle_service),
    scraper=Depends(get_property_scraper),
    orchestrator: GISScrapeOrchestrator = Depends(get_scrape_orchestrator)
):
    """Scrape the county GIS by acreage and store the results as a search session"""
    body = body or ScrapeRequest()
    min_acreage, max_acreage = body.min_acreage, body.max_acreage

    if min_acreage is None or max_acreage is None:
        return error_response("min_acreage and max_acreage are required")

    if not (math.isfinite(min_acreage) and math.isfinite(max_acreage)):
        return error_response("min_acreage and max_acreage must be numbers")

    if min_acreage <= 0 or max_acreage <= 0:
        return error_response("Acreage values must be greater than 0")

    if min_acreage > max_acreage:
        return error_response("Minimum acreage cannot be greater than maximum acreage")

    criteria = GISSearchCriteria(min_acreage=min_acreage, max_acreage=max_acreage)
    try:
        return await orchestrator.run(lifecycle, scraper, criteria)
    except GISError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error("scrape", e)

@router.get("/properties")
async def get_properties(
    type: str = Query("scraped"),
    session_id: Optional[str] = Query(None),
    lifecycle: PropertyLifecycleService = Depends(get_lifecycle_service)
):
    """List the tenant's scraped (optionally one session) or saved properties"""
    try:
        if type == "saved":
            rows = lifecycle.get_saved_properties()
            properties = [SavedProperty.model_validate(row).model_dump(mode="json") for row in rows]
        else:
            type = "scraped"
            rows = lifecycle.get_scraped_properties(session_id)
            properties = [ScrapedProperty.model_validate(row).model_dump(mode="json") for row in rows]

        return {"success": True, "properties": properties, "type": type}
    except GISError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error("properties", e)

@router.post("/save-property")
async def save_property(
    body: Optional[SavePropertyRequest] = None,
    lifecycle: PropertyLifecycleService = Depends(get_lifecycle_service)
):
    if body is None or not body.scraped_property_id:
        return error_response("Scraped property ID is required")

    try:
        saved = lifecycle.save_property(body.scraped_property_id)
        return {
            "success": True,
            "savedProperty": SavedProperty.model_validate(saved).model_dump(mode="json"),
            "message": "Property successfully saved"
        }
    except GISError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error("save-property", e)

@router.delete("/delete-saved-property")
async def delete_saved_property(
    body: Optional[SavedPropertyRequest] = None,
    lifecycle: PropertyLifecycleService = Depends(get_lifecycle_service)
):
    if body is None or not body.saved_property_id:
        return error_response("Saved property ID is required")

    try:
        lifecycle.delete_saved_property(body.saved_property_id)
        return {"success": True, "message": "Property successfully deleted"}
    except GISError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error("delete-saved-property", e)

@router.post("/export-leads")
async def export_to_leads(
    body: Optional[SavedPropertyRequest] = None,
    lifecycle: PropertyLifecycleService = Depends(get_lifecycle_service),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    """Turn a saved property into a prospect customer"""
    if body is None or not body.saved_property_id:
        return error_response("Saved property ID is required")

    try:
        customer_id = lifecycle.export_saved_property_to_lead(body.saved_property_id)
    except GISError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error("export-leads", e)

    data_services.crm(lifecycle.tenant.organization_id).invalidate_customers()
    return {
        "success": True,
        "leadId": customer_id,
        "message": "Property successfully exported to leads"
    }

@router.post("/cleanup")
async def cleanup_scraped_properties(
    force: bool = Query(False),
    lifecycle: PropertyLifecycleService = Depends(get_lifecycle_service)
):
    """Delete expired unsaved search results, or all of them with force=true"""
    try:
        deleted_count = lifecycle.cleanup(force=force)
    except GISError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return internal_error("cleanup", e)

    if force:
        message = f"Force cleaned up {deleted_count} scraped properties"
    else:
        message = (
            f"Cleaned up {deleted_count} old scraped properties "
            f"(older than {lifecycle.config.RETENTION_DAYS} days)"
        )

    return {"success": True, "deleted_count": deleted_count, "message": message}
