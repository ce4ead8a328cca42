"""API routes for the shipment lifecycle.

Draft CRUD, finalize, repeat and tracking. Every endpoint except the
public tracking lookup is scoped to the account named by X-Account-Id.
All endpoints use /api/v1/shipments prefix.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shipform.api.middleware.auth import get_current_account
from shipform.api.schemas import (
    DraftRequest,
    RateBreakdownResponse,
    ShipmentListResponse,
    ShipmentResponse,
    ShipmentStatsResponse,
    TrackingEventCreate,
    TrackingEventResponse,
    TrackingResponse,
)
from shipform.db.connection import get_db
from shipform.db.models import Account, Shipment, ShipmentStatus
from shipform.errors import NotFoundError
from shipform.services.shipment_service import (
    ShipmentService,
    rate_from_shipment,
    shipment_to_form,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipments", tags=["shipments"])


def _get_service(db: Session = Depends(get_db)) -> ShipmentService:
    """Dependency injector for ShipmentService."""
    return ShipmentService(db)


def shipment_response(shipment: Shipment) -> ShipmentResponse:
    """Build the API view of a shipment."""
    return ShipmentResponse(
        id=shipment.id,
        status=shipment.status,
        tracking_number=shipment.tracking_number,
        shipment_type=shipment.shipment_type,
        form_data=shipment_to_form(shipment),
        rate=RateBreakdownResponse(**rate_from_shipment(shipment)),
        estimated_delivery=shipment.estimated_delivery,
        created_at=shipment.created_at,
        updated_at=shipment.updated_at,
        finalized_at=shipment.finalized_at,
        events=[TrackingEventResponse.model_validate(e) for e in shipment.events],
    )


@router.get("", response_model=ShipmentListResponse)
def list_shipments(
    status: ShipmentStatus | None = None,
    shipment_type: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> ShipmentListResponse:
    """List the caller's shipments with filters, sorting and pagination."""
    shipments = service.list_shipments(
        account.id,
        status=status,
        shipment_type=shipment_type,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=offset,
    )
    total = service.count_shipments(account.id, status=status, shipment_type=shipment_type)
    return ShipmentListResponse(
        shipments=[shipment_response(s) for s in shipments],
        total=total,
    )


@router.get("/stats", response_model=ShipmentStatsResponse)
def get_stats(
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> ShipmentStatsResponse:
    """Per-status counts and total spend for the caller."""
    return ShipmentStatsResponse(**service.shipment_stats(account.id))


@router.get("/track/{tracking_number}", response_model=TrackingResponse)
def track_shipment(
    tracking_number: str,
    service: ShipmentService = Depends(_get_service),
) -> TrackingResponse:
    """Public tracking lookup by tracking number."""
    shipment = service.get_tracking(tracking_number)
    if shipment is None:
        raise NotFoundError("Tracking number", tracking_number)
    return TrackingResponse(
        tracking_number=tracking_number,
        status=shipment.status,
        shipment_type=shipment.shipment_type,
        sender_country=shipment.sender_country,
        receiver_country=shipment.receiver_country,
        estimated_delivery=shipment.estimated_delivery,
        events=[TrackingEventResponse.model_validate(e) for e in shipment.events],
    )


@router.post("/draft", response_model=ShipmentResponse, status_code=201)
def create_draft(
    data: DraftRequest,
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> ShipmentResponse:
    """Save a new draft. Incomplete forms are accepted."""
    shipment = service.create_draft(
        account.id,
        data.form_data.model_dump(),
        client_rates=data.client_rates.model_dump() if data.client_rates else None,
    )
    return shipment_response(shipment)


@router.get("/{shipment_id}", response_model=ShipmentResponse)
def get_shipment(
    shipment_id: str,
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> ShipmentResponse:
    """Get one of the caller's shipments."""
    shipment = service.get_shipment(shipment_id, account.id)
    if shipment is None:
        raise NotFoundError("Shipment", shipment_id)
    return shipment_response(shipment)


@router.put("/{shipment_id}", response_model=ShipmentResponse)
def update_draft(
    shipment_id: str,
    data: DraftRequest,
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> ShipmentResponse:
    """Update a draft. Finalized shipments yield 409."""
    shipment = service.update_draft(
        shipment_id,
        account.id,
        data.form_data.model_dump(exclude_unset=True),
        client_rates=data.client_rates.model_dump() if data.client_rates else None,
    )
    return shipment_response(shipment)


@router.delete("/{shipment_id}", status_code=204)
def delete_shipment(
    shipment_id: str,
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> None:
    """Delete (cancel) a shipment in any status."""
    service.delete_shipment(shipment_id, account.id)


@router.post("/{shipment_id}/finalize", response_model=ShipmentResponse)
def finalize_shipment(
    shipment_id: str,
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> ShipmentResponse:
    """Validate, re-price and lock a draft.

    Any price the client sent earlier is ignored; the stored fields are
    priced again. Validation failures return 400 with every field error.
    """
    return shipment_response(service.finalize(shipment_id, account.id))


@router.post("/{shipment_id}/repeat", response_model=ShipmentResponse, status_code=201)
def repeat_shipment(
    shipment_id: str,
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> ShipmentResponse:
    """Create a new draft from an existing shipment."""
    return shipment_response(service.repeat(shipment_id, account.id))


@router.post(
    "/{shipment_id}/events", response_model=TrackingEventResponse, status_code=201
)
def add_event(
    shipment_id: str,
    data: TrackingEventCreate,
    account: Account = Depends(get_current_account),
    service: ShipmentService = Depends(_get_service),
) -> TrackingEventResponse:
    """Append a tracking event to a finalized shipment."""
    event = service.add_tracking_event(
        shipment_id,
        data.status,
        data.location,
        data.description,
        account_id=account.id,
    )
    return TrackingEventResponse.model_validate(event)
