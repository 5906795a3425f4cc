"""
Contact form and lead management routes.
Submitting the form is public; listing, exporting and closing leads require an admin token.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from app.database import get_db
from app.schemas import CloseLeadResponse, ContactMessageCreate, ContactMessageResponse
from app.services import contacts as contact_service
from app.utils.jwt_auth import verify_admin_token
from app.utils.lead_export import XLSX_MEDIA_TYPE, build_leads_workbook
from app.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/contact", response_model=ContactMessageResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["contact"])
async def submit_contact_message(
    request: Request,
    payload: ContactMessageCreate,
    db: AsyncSession = Depends(get_db)
):
    """Store a lead from the public contact form."""
    try:
        message = await contact_service.create_contact_message(db, payload)
        return ContactMessageResponse.model_validate(message)

    except Exception as e:
        logger.error(f"Error creating contact message: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to send message", "message": str(e)}
        )


@router.get("/contact", response_model=List[ContactMessageResponse])
async def list_contact_messages(
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    token: dict = Depends(verify_admin_token)
):
    """List leads, newest first, optionally filtered by name, email or message."""
    try:
        messages = await contact_service.list_contact_messages(db, search=search)
        logger.info(f"Retrieved {len(messages)} contact messages")
        return [ContactMessageResponse.model_validate(m) for m in messages]

    except Exception as e:
        logger.error(f"Error fetching contact messages: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch messages", "message": str(e)}
        )


@router.get("/contact/export")
async def export_contact_messages(
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    token: dict = Depends(verify_admin_token)
):
    """Download leads as an Excel workbook."""
    try:
        messages = await contact_service.list_contact_messages(db, search=search)
        content = build_leads_workbook(messages)
        logger.info(f"Exported {len(messages)} contact messages")
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": 'attachment; filename="leads.xlsx"'}
        )

    except Exception as e:
        logger.error(f"Error exporting contact messages: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to export leads", "message": str(e)}
        )


@router.delete("/contact", response_model=CloseLeadResponse)
async def close_lead(
    phone: str = Query(..., min_length=1, description="Phone number of the lead to close"),
    db: AsyncSession = Depends(get_db),
    token: dict = Depends(verify_admin_token)
):
    """Close (delete) every lead submitted with this phone number."""
    try:
        deleted = await contact_service.close_leads_by_phone(db, phone.strip())
        if deleted == 0:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Lead not found", "message": f"No lead with phone {phone}"}
            )
        return CloseLeadResponse(message="Lead closed", phone=phone, deleted_count=deleted)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error closing lead for phone {phone}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to close lead", "message": str(e)}
        )
