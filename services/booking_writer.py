"""Turns a validated cart into persisted Booking rows.

Single and auto requests write one row. Split requests write one row per
non-empty category subset, manicure first, with the pedicure window starting
where the manicure window ends. Rows are committed one at a time; when a later
insert fails the earlier rows stay and the caller gets a BookingWriteError.

Payment events carry an idempotency key (checkout session id or setup intent
id). A key that already has rows is treated as processed, so re-driving a
partially written split only inserts what is missing.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.booking import Booking
from schemas.booking import BookingPayload
from services.technicians import MANICURE, PEDICURE, resolve_technician
from services.timeslots import TimeSlot, calculate_time_slot, format_time, services_price, to_minutes
from services.validation import BookingValidationError, check_payment_domain, ensure_valid_booking
from utils.audit import log_event

logger = logging.getLogger(__name__)

SEGMENT_SINGLE = "single"


class BookingWriteError(RuntimeError):
    def __init__(self, segment: str, message: str, written=None):
        self.segment = segment
        self.written = list(written or [])
        super().__init__(message)


@dataclass
class PaymentLinkage:
    stripe_session_id: Optional[str] = None
    stripe_setup_intent_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None


@dataclass
class SegmentPlan:
    segment: str
    services: list
    appointment_time: str
    slot: TimeSlot
    price_cents: int = 0
    employee: Optional[object] = None
    technicians: dict = field(default_factory=dict)


@dataclass
class WriteResult:
    bookings: list
    split: bool = False
    already_processed: bool = False
    inserted: list = field(default_factory=list)

    @property
    def created(self) -> list:
        return self.inserted


def partition_services(services):
    """(manicure subset, pedicure subset); uncategorised items stay with the manicure visit."""
    manicure, pedicure = [], []
    for service in services:
        if service.category_key == PEDICURE:
            pedicure.append(service)
        else:
            manicure.append(service)
    return manicure, pedicure


def _tech_ref(employee, requested=None):
    if employee:
        return {"id": employee.id, "name": employee.name}
    if requested:
        return {"id": None, "name": requested}
    return None


def _plan_single(payload: BookingPayload) -> SegmentPlan:
    intent = payload.technicians
    service_types = payload.service_types()

    if intent.type == "auto":
        employee = resolve_technician(None, service_types, "auto")
        technicians = {"type": "auto"}
        requested = None
    else:
        requested = intent.technician
        employee = resolve_technician(requested, service_types, "specific")
        technicians = {"type": "single"}

    ref = _tech_ref(employee, requested)
    if ref:
        technicians["technician"] = ref

    slot = calculate_time_slot(payload.appointment_time, payload.services)
    if not slot.total_duration:
        # catalog durations did not parse; keep the cart total
        fallback = payload.total_duration or 0
        slot = TimeSlot(slot.start_time, format_time(to_minutes(slot.start_time) + fallback), fallback)

    return SegmentPlan(
        segment=SEGMENT_SINGLE,
        services=list(payload.services),
        appointment_time=payload.appointment_time.strip(),
        slot=slot,
        employee=employee,
        technicians=technicians,
    )


def _plan_split(payload: BookingPayload) -> list:
    intent = payload.technicians
    manicure, pedicure = partition_services(payload.services)

    plans = []
    cursor = payload.appointment_time.strip()
    for segment, subset, requested in (
        (MANICURE, manicure, intent.manicure_technician),
        (PEDICURE, pedicure, intent.pedicure_technician),
    ):
        if not subset:
            continue
        if requested:
            employee = resolve_technician(requested, [segment], "specific")
        else:
            employee = resolve_technician(None, [segment], "auto")

        technicians = {"type": "split"}
        ref = _tech_ref(employee, requested)
        if ref:
            technicians[f"{segment}Technician"] = ref

        slot = calculate_time_slot(cursor, subset)
        plans.append(SegmentPlan(
            segment=segment,
            services=subset,
            appointment_time=cursor,
            slot=slot,
            employee=employee,
            technicians=technicians,
        ))
        cursor = slot.end_time
    return plans


def apportion_cents(total_cents: int, weights) -> list:
    """Split ``total_cents`` by catalog price; the last share takes the rounding remainder."""
    weights = [max(float(w or 0), 0.0) for w in weights]
    if not weights:
        return []
    weight_sum = sum(weights)
    if weight_sum <= 0:
        weights = [1.0] * len(weights)
        weight_sum = float(len(weights))
    shares = [int(total_cents * w // weight_sum) for w in weights[:-1]]
    shares.append(total_cents - sum(shares))
    return shares


def plan_bookings(payload: BookingPayload) -> list:
    """Plans for every row the cart becomes; the rows always add up to the cart total."""
    if payload.technicians.type == "split":
        plans = _plan_split(payload)
    else:
        plans = [_plan_single(payload)]

    total_cents = int(round((payload.total_price or 0) * 100))
    shares = apportion_cents(total_cents, [services_price(p.services) for p in plans])
    for plan, share in zip(plans, shares):
        plan.price_cents = share
    return plans


def _build(payload: BookingPayload, plan: SegmentPlan, *, payment_status, payment_method,
           linkage: PaymentLinkage, idempotency_key) -> Booking:
    return Booking(
        customer_first_name=payload.customer_first_name.strip(),
        customer_last_name=payload.customer_last_name.strip(),
        customer_email=payload.customer_email.strip(),
        appointment_date=date.fromisoformat(payload.appointment_date.strip()),
        appointment_time=plan.appointment_time,
        start_time=plan.slot.start_time,
        end_time=plan.slot.end_time,
        total_duration=plan.slot.total_duration,
        services=[s.model_dump(exclude_none=True) for s in plan.services],
        technicians=plan.technicians,
        employee_id=plan.employee.id if plan.employee else None,
        total_price_cents=plan.price_cents,
        payment_status=payment_status,
        payment_method=payment_method,
        appointment_status=payload.appointment_status or "pending",
        no_show_policy_accepted=bool(payload.no_show_policy_accepted),
        stripe_session_id=linkage.stripe_session_id,
        stripe_setup_intent_id=linkage.stripe_setup_intent_id,
        stripe_customer_id=linkage.stripe_customer_id,
        idempotency_key=idempotency_key,
        segment=plan.segment,
    )


def bookings_for_key(idempotency_key: str) -> list:
    if not idempotency_key:
        return []
    return (
        Booking.query
        .filter_by(idempotency_key=idempotency_key)
        .order_by(Booking.id.asc())
        .all()
    )


def write_bookings(data, *, payment_status: str = "pending", payment_method: str = "pay_on_site",
                   linkage: Optional[PaymentLinkage] = None, idempotency_key: Optional[str] = None) -> WriteResult:
    payload = ensure_valid_booking(data)

    domain_errors = check_payment_domain(payment_status, payment_method)
    if domain_errors:
        raise BookingValidationError(domain_errors)

    linkage = linkage or PaymentLinkage()
    if linkage.stripe_session_id and linkage.stripe_setup_intent_id:
        raise ValueError("A booking is linked to a checkout session or a stored card, not both")

    existing = {b.segment: b for b in bookings_for_key(idempotency_key)}
    plans = plan_bookings(payload)
    split = payload.technicians.type == "split"

    written, inserted = [], []
    replayed = 0
    for plan in plans:
        if plan.segment in existing:
            written.append(existing[plan.segment])
            replayed += 1
            continue

        booking = _build(
            payload, plan,
            payment_status=payment_status,
            payment_method=payment_method,
            linkage=linkage,
            idempotency_key=idempotency_key,
        )
        db.session.add(booking)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            duplicate = None
            if idempotency_key:
                duplicate = Booking.query.filter_by(idempotency_key=idempotency_key, segment=plan.segment).first()
            if duplicate:
                logger.info("Booking %s/%s already written by a concurrent request", idempotency_key, plan.segment)
                written.append(duplicate)
                replayed += 1
                continue
            logger.error("Insert of %s booking failed: %s", plan.segment, exc)
            raise BookingWriteError(plan.segment, f"Could not save the {plan.segment} booking", written) from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Insert of %s booking failed: %s", plan.segment, exc)
            raise BookingWriteError(plan.segment, f"Could not save the {plan.segment} booking", written) from exc

        if booking.employee_id is None:
            logger.warning("Booking %s saved without a technician (requested %s)", booking.id, payload.technicians.to_wire())
        logger.info(
            "Booking %s saved: segment=%s slot=%s-%s employee=%s",
            booking.id, plan.segment, booking.start_time, booking.end_time, booking.employee_id,
        )
        log_event(
            "BOOKING_CREATE",
            entity="booking",
            entity_id=booking.id,
            metadata={"segment": plan.segment, "employee_id": booking.employee_id, "idempotency_key": idempotency_key},
        )
        written.append(booking)
        inserted.append(booking)

    return WriteResult(
        bookings=written,
        split=split,
        already_processed=bool(plans) and replayed == len(plans),
        inserted=inserted,
    )
