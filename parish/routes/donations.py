"""
Donation return routes used by the donation success and error views.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from parish.database import get_db
from parish.schemas import DonationContactInfo, DonationResponse
from parish.services.donations import (
    build_receipt,
    format_currency,
    get_donation_by_session,
    get_donation_contact_info,
    get_thanks_message,
    receipt_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/donations")


async def _require_donation(db: AsyncSession, session_id: str):
    try:
        donation = await get_donation_by_session(db, session_id)
    except Exception as e:
        logger.error(f"Error fetching donation details: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve donation", "detail": str(e)}
        )
    if donation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Donation not found", "detail": f"No donation for session {session_id}"}
        )
    return donation


@router.get("/contact-info", response_model=DonationContactInfo)
async def get_contact_info(db: AsyncSession = Depends(get_db)):
    """Contact channels shown when a donation was cancelled or failed."""
    return DonationContactInfo(**await get_donation_contact_info(db))


@router.get("/{session_id}", response_model=DonationResponse)
async def get_donation(session_id: str, db: AsyncSession = Depends(get_db)):
    """
    Donation details for the success view, looked up by checkout session id.

    Raises:
        HTTPException: 404 if the webhook has not stored the donation
    """
    donation = await _require_donation(db, session_id)
    thanks_message = await get_thanks_message(db)

    return DonationResponse(
        id=donation.id,
        amount=donation.amount,
        amount_display=format_currency(donation.amount, donation.currency),
        currency=donation.currency,
        donor_name=donation.donor_name,
        donation_purpose=donation.donation_purpose,
        message=donation.message,
        status=donation.status,
        created_at=donation.created_at,
        thanks_message=thanks_message,
    )


@router.get("/{session_id}/receipt", response_class=PlainTextResponse)
async def download_receipt(session_id: str, db: AsyncSession = Depends(get_db)):
    donation = await _require_donation(db, session_id)
    return PlainTextResponse(
        build_receipt(donation),
        headers={"Content-Disposition": f'attachment; filename="{receipt_filename(donation)}"'},
    )
