"""Shipment service implementing the draft/finalize lifecycle.

A shipment starts as a mutable draft that may be arbitrarily incomplete.
Finalizing it validates every business rule, recomputes the price from
the stored fields (never from client-supplied numbers) and flips the
status in one transaction. Finalized shipments are read-only except for
appended tracking events; "repeat" seeds a new draft from one.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any, Mapping

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from shipform.db.models import Shipment, ShipmentStatus, TrackingEvent, utc_now_iso
from shipform.errors import (
    AlreadyFinalizedError,
    InputError,
    InvalidStateTransition,
    NotFoundError,
    ServiceNotFoundError,
    ShipmentValidationFailed,
)
from shipform.services.form_data import (
    ADD_ON_FIELDS,
    FORM_FIELDS,
    NUMERIC_FIELDS,
    flag,
    merge_form,
    number_or_none,
    text,
)
from shipform.services.rate_calculator import (
    RateQuote,
    calculate_rate_from_form,
    from_cents,
    rates_match,
    to_cents,
)
from shipform.services.shipment_validator import validate_complete, validate_draft
from shipform.services.stage_rules import derive_shipment_type

logger = logging.getLogger(__name__)

# Valid state transitions for the shipment lifecycle
VALID_TRANSITIONS: dict[ShipmentStatus, list[ShipmentStatus]] = {
    ShipmentStatus.draft: [ShipmentStatus.finalized],
    ShipmentStatus.finalized: [],  # terminal
}

SORTABLE_COLUMNS: dict[str, Any] = {
    "created_at": Shipment.created_at,
    "updated_at": Shipment.updated_at,
    "total_price": Shipment.total_cost_cents,
    "status": Shipment.status,
    "receiver_country": Shipment.receiver_country,
}

TRACKING_PREFIX = "TR"
TRACKING_DIGITS = 9
_TRACKING_ATTEMPTS = 5

ORDER_PLACED_STATUS = "Order Placed"
ORDER_PLACED_LOCATION = "Online"
ORDER_PLACED_DESCRIPTION = "Shipment created and payment confirmed"


def shipment_to_form(shipment: Shipment) -> dict[str, Any]:
    """Read a shipment's stored fields back into flat form data."""
    form: dict[str, Any] = {}
    for name in FORM_FIELDS:
        value = getattr(shipment, name)
        if name in ADD_ON_FIELDS:
            form[name] = bool(value)
        elif value is None:
            form[name] = ""
        else:
            form[name] = value
    return form


def rate_from_shipment(shipment: Shipment) -> dict[str, float]:
    """Stored cost columns as a dollar breakdown."""
    return {
        "base_cost": from_cents(shipment.base_cost_cents),
        "signature_cost": from_cents(shipment.signature_cost_cents),
        "insurance_cost": from_cents(shipment.insurance_cost_cents),
        "packaging_cost": from_cents(shipment.packaging_cost_cents),
        "liquid_cost": from_cents(shipment.liquid_cost_cents),
        "total_price": from_cents(shipment.total_cost_cents),
    }


def generate_tracking_number() -> str:
    """Return "TR" followed by 9 random digits."""
    return f"{TRACKING_PREFIX}{secrets.randbelow(10**TRACKING_DIGITS):0{TRACKING_DIGITS}d}"


def _rate_columns(quote: RateQuote | None) -> dict[str, int]:
    b = quote.breakdown if quote is not None else None
    return {
        "base_cost_cents": to_cents(b.base_cost) if b else 0,
        "signature_cost_cents": to_cents(b.signature_cost) if b else 0,
        "insurance_cost_cents": to_cents(b.insurance_cost) if b else 0,
        "packaging_cost_cents": to_cents(b.packaging_cost) if b else 0,
        "liquid_cost_cents": to_cents(b.liquid_cost) if b else 0,
        "total_cost_cents": to_cents(b.total_price) if b else 0,
    }


class ShipmentService:
    """Service for shipment lifecycle management.

    Provides owner-scoped CRUD for drafts, the finalize transition, repeat,
    and tracking history. Every mutating method commits its own unit of
    work.

    Attributes:
        db: SQLAlchemy session for database operations.
    """

    def __init__(self, db: Session) -> None:
        """Initialize the shipment service with a database session.

        Args:
            db: SQLAlchemy session for database operations.
        """
        self.db = db

    # =========================================================================
    # Helpers
    # =========================================================================

    def _apply_form(self, shipment: Shipment, form_data: Mapping[str, Any]) -> None:
        """Copy form values onto the model, coercing types."""
        for name in FORM_FIELDS:
            if name == "shipment_type":
                continue
            value = form_data.get(name)
            if name in ADD_ON_FIELDS:
                setattr(shipment, name, flag(value))
            elif name in NUMERIC_FIELDS:
                setattr(shipment, name, number_or_none(value))
            else:
                setattr(shipment, name, text(value) or None)

        shipment_type = derive_shipment_type(form_data)
        shipment.shipment_type = shipment_type.value if shipment_type else None

    def _provisional_quote(self, form_data: Mapping[str, Any]) -> RateQuote | None:
        """Price a draft if it can be priced yet; drafts may be incomplete."""
        try:
            return calculate_rate_from_form(form_data)
        except (ServiceNotFoundError, InputError) as e:
            logger.debug("Draft not priceable yet: %s", e)
            return None

    def _apply_rates(
        self,
        shipment: Shipment,
        form_data: Mapping[str, Any],
        client_rates: Mapping[str, Any] | None,
    ) -> None:
        for column, cents in _rate_columns(self._provisional_quote(form_data)).items():
            setattr(shipment, column, cents)
        if client_rates:
            base = number_or_none(client_rates.get("base_cost"))
            total = number_or_none(client_rates.get("total_price"))
            shipment.client_base_cents = to_cents(base) if base is not None else None
            shipment.client_total_cents = to_cents(total) if total is not None else None
        else:
            shipment.client_base_cents = None
            shipment.client_total_cents = None

    def _require_shipment(self, shipment_id: str, account_id: str) -> Shipment:
        shipment = self.get_shipment(shipment_id, account_id)
        if shipment is None:
            raise NotFoundError("Shipment", shipment_id)
        return shipment

    def _check_draft_valid(self, form_data: Mapping[str, Any]) -> None:
        result = validate_draft(form_data)
        if not result.is_valid:
            raise InputError("Draft contains invalid values", field_errors=result.errors)

    def _unique_tracking_number(self) -> str:
        for _ in range(_TRACKING_ATTEMPTS):
            candidate = generate_tracking_number()
            taken = (
                self.db.query(Shipment.id)
                .filter(Shipment.tracking_number == candidate)
                .first()
            )
            if taken is None:
                return candidate
        raise RuntimeError("Could not allocate a unique tracking number")

    # =========================================================================
    # Draft CRUD
    # =========================================================================

    def create_draft(
        self,
        account_id: str,
        form_data: Mapping[str, Any],
        client_rates: Mapping[str, Any] | None = None,
    ) -> Shipment:
        """Save a new draft.

        Args:
            account_id: Owning account.
            form_data: Flat form data; may be incomplete.
            client_rates: Prices the client displayed. Recorded for
                comparison only, never stored as the shipment's price.

        Returns:
            The created Shipment in draft status.

        Raises:
            InputError: If a present numeric field is malformed or negative.
        """
        self._check_draft_valid(form_data)
        shipment = Shipment(
            account_id=account_id,
            status=ShipmentStatus.draft.value,
        )
        self._apply_form(shipment, form_data)
        self._apply_rates(shipment, form_data, client_rates)
        self.db.add(shipment)
        self.db.commit()
        self.db.refresh(shipment)
        logger.info("Created draft shipment %s for account %s", shipment.id, account_id)
        return shipment

    def get_shipment(self, shipment_id: str, account_id: str) -> Shipment | None:
        """Get a shipment owned by account_id.

        Returns:
            The Shipment, or None when absent or owned by another account.
        """
        return (
            self.db.query(Shipment)
            .filter(Shipment.id == shipment_id, Shipment.account_id == account_id)
            .first()
        )

    def update_draft(
        self,
        shipment_id: str,
        account_id: str,
        form_data: Mapping[str, Any],
        client_rates: Mapping[str, Any] | None = None,
    ) -> Shipment:
        """Overlay form changes onto a draft and re-price it.

        Raises:
            NotFoundError: If the shipment is absent or not owned by the account.
            AlreadyFinalizedError: If the shipment is no longer a draft.
            InputError: If a present numeric field is malformed or negative.
        """
        shipment = self._require_shipment(shipment_id, account_id)
        if shipment.status != ShipmentStatus.draft.value:
            raise AlreadyFinalizedError(shipment_id)

        merged = merge_form(shipment_to_form(shipment), dict(form_data))
        self._check_draft_valid(merged)
        self._apply_form(shipment, merged)
        self._apply_rates(shipment, merged, client_rates)
        self.db.commit()
        self.db.refresh(shipment)
        return shipment

    def _filtered_query(
        self,
        account_id: str,
        status: ShipmentStatus | None = None,
        shipment_type: str | None = None,
    ):
        query = self.db.query(Shipment).filter(Shipment.account_id == account_id)
        if status is not None:
            query = query.filter(Shipment.status == status.value)
        if shipment_type:
            query = query.filter(Shipment.shipment_type == shipment_type)
        return query

    def list_shipments(
        self,
        account_id: str,
        status: ShipmentStatus | None = None,
        shipment_type: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> list[Shipment]:
        """List an account's shipments with filtering, sorting and pagination.

        Args:
            account_id: Owning account.
            status: Filter by lifecycle status (optional).
            shipment_type: Filter by derived shipment type (optional).
            sort_by: One of SORTABLE_COLUMNS.
            sort_order: "asc" or "desc".
            limit: Maximum number of shipments to return (default 50).
            offset: Number of shipments to skip (default 0).

        Raises:
            InputError: If sort_by or sort_order is not recognised.
        """
        column = SORTABLE_COLUMNS.get(sort_by)
        if column is None:
            raise InputError(
                f"Cannot sort by '{sort_by}'",
                field_errors={"sort_by": f"Must be one of: {', '.join(SORTABLE_COLUMNS)}"},
            )
        if sort_order not in ("asc", "desc"):
            raise InputError(
                f"Invalid sort order '{sort_order}'",
                field_errors={"sort_order": "Must be 'asc' or 'desc'"},
            )

        query = self._filtered_query(account_id, status, shipment_type)
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc())
        return query.limit(limit).offset(offset).all()

    def count_shipments(
        self,
        account_id: str,
        status: ShipmentStatus | None = None,
        shipment_type: str | None = None,
    ) -> int:
        """Count an account's shipments matching the filters."""
        return self._filtered_query(account_id, status, shipment_type).count()

    def shipment_stats(self, account_id: str) -> dict[str, Any]:
        """Per-status counts and total finalized spend for an account."""
        rows = (
            self.db.query(
                Shipment.status,
                func.count(Shipment.id),
                func.coalesce(func.sum(Shipment.total_cost_cents), 0),
            )
            .filter(Shipment.account_id == account_id)
            .group_by(Shipment.status)
            .all()
        )
        counts = {s.value: 0 for s in ShipmentStatus}
        spent_cents = 0
        for status, count, total_cents in rows:
            counts[status] = count
            if status == ShipmentStatus.finalized.value:
                spent_cents = int(total_cents)
        return {
            "total": sum(counts.values()),
            "by_status": counts,
            "total_spent": from_cents(spent_cents),
        }

    def delete_shipment(self, shipment_id: str, account_id: str) -> None:
        """Delete a shipment in any status (cancellation).

        Raises:
            NotFoundError: If the shipment is absent or not owned by the account.
        """
        shipment = self._require_shipment(shipment_id, account_id)
        status = shipment.status
        self.db.delete(shipment)
        self.db.commit()
        logger.info("Deleted %s shipment %s", status, shipment_id)

    # =========================================================================
    # State Machine Operations
    # =========================================================================

    def can_transition(self, current: ShipmentStatus, target: ShipmentStatus) -> bool:
        """Check if a state transition is valid.

        Args:
            current: The current shipment status.
            target: The target shipment status.

        Returns:
            True if the transition is valid, False otherwise.
        """
        return target in VALID_TRANSITIONS.get(current, [])

    def finalize(self, shipment_id: str, account_id: str) -> Shipment:
        """Validate, re-price and lock a draft.

        The price is recomputed from the stored fields; any client-supplied
        price is discarded. The status flip is a conditional UPDATE on
        status='draft', so of two concurrent finalizes only one succeeds.

        Args:
            shipment_id: Shipment to finalize.
            account_id: Requesting account; must own the shipment.

        Returns:
            The finalized Shipment with tracking number and events.

        Raises:
            NotFoundError: If the shipment is absent or owned by another account.
            AlreadyFinalizedError: If the shipment is not a draft, including
                when a concurrent finalize won the race.
            ShipmentValidationFailed: If complete validation fails; carries
                every field error. The shipment stays a draft.
            ServiceNotFoundError: If the stored service id cannot be priced.
            WeightExceedsServiceError: If the weight exceeds the service limit.
        """
        shipment = self._require_shipment(shipment_id, account_id)
        current = ShipmentStatus(shipment.status)
        if not self.can_transition(current, ShipmentStatus.finalized):
            raise AlreadyFinalizedError(shipment_id)

        form_data = shipment_to_form(shipment)
        result = validate_complete(form_data)
        if not result.is_valid:
            logger.info(
                "Finalize rejected for shipment %s: %d validation error(s)",
                shipment_id,
                len(result.errors),
            )
            raise ShipmentValidationFailed(result.errors)

        try:
            quote = calculate_rate_from_form(form_data)
        except (ServiceNotFoundError, InputError) as e:
            logger.warning("Finalize could not price shipment %s: %s", shipment_id, e)
            raise

        client_priced = (
            shipment.client_base_cents is not None
            and shipment.client_total_cents is not None
        )
        if client_priced and not rates_match(
            from_cents(shipment.client_base_cents),
            from_cents(shipment.client_total_cents),
            quote,
        ):
            logger.warning(
                "Client price mismatch on shipment %s: client total %.2f, server total %.2f",
                shipment_id,
                from_cents(shipment.client_total_cents),
                quote.total_price,
            )

        now = datetime.now(UTC)
        estimated = (now.date() + timedelta(days=quote.service.delivery_days)).isoformat()
        values = {
            **_rate_columns(quote),
            "status": ShipmentStatus.finalized.value,
            "tracking_number": self._unique_tracking_number(),
            "shipment_type": quote.shipment_type.value,
            "estimated_delivery": estimated,
            "finalized_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        outcome = self.db.execute(
            update(Shipment)
            .where(
                Shipment.id == shipment_id,
                Shipment.account_id == account_id,
                Shipment.status == ShipmentStatus.draft.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if outcome.rowcount != 1:
            self.db.rollback()
            raise AlreadyFinalizedError(shipment_id)

        self.db.add(
            TrackingEvent(
                shipment_id=shipment_id,
                status=ORDER_PLACED_STATUS,
                location=ORDER_PLACED_LOCATION,
                description=ORDER_PLACED_DESCRIPTION,
                timestamp=now.isoformat(),
            )
        )
        self.db.commit()
        self.db.refresh(shipment)
        logger.info(
            "Finalized shipment %s as %s, total %.2f",
            shipment_id,
            shipment.tracking_number,
            quote.total_price,
        )
        return shipment

    def repeat(self, shipment_id: str, account_id: str) -> Shipment:
        """Create a new draft seeded from an existing shipment's fields.

        Raises:
            NotFoundError: If the source is absent or not owned by the account.
        """
        source = self._require_shipment(shipment_id, account_id)
        draft = self.create_draft(account_id, shipment_to_form(source))
        logger.info("Repeated shipment %s as draft %s", shipment_id, draft.id)
        return draft

    # =========================================================================
    # Tracking
    # =========================================================================

    def add_tracking_event(
        self,
        shipment_id: str,
        status: str,
        location: str,
        description: str | None = None,
        account_id: str | None = None,
    ) -> TrackingEvent:
        """Append a tracking event to a finalized shipment.

        Args:
            shipment_id: Target shipment.
            status: Event status label (e.g. "In Transit").
            location: Where the event happened.
            description: Optional free text.
            account_id: When given, the shipment must belong to this account.

        Raises:
            NotFoundError: If the shipment is absent (or not owned).
            InvalidStateTransition: If the shipment is still a draft.
        """
        query = self.db.query(Shipment).filter(Shipment.id == shipment_id)
        if account_id is not None:
            query = query.filter(Shipment.account_id == account_id)
        shipment = query.first()
        if shipment is None:
            raise NotFoundError("Shipment", shipment_id)
        if shipment.status != ShipmentStatus.finalized.value:
            raise InvalidStateTransition(
                shipment.status,
                status,
                message="Tracking events can only be added to finalized shipments",
            )

        event = TrackingEvent(
            shipment_id=shipment_id,
            status=status,
            location=location,
            description=description,
            timestamp=utc_now_iso(),
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def get_tracking(self, tracking_number: str) -> Shipment | None:
        """Look up a finalized shipment by tracking number."""
        return (
            self.db.query(Shipment)
            .filter(Shipment.tracking_number == tracking_number)
            .first()
        )
