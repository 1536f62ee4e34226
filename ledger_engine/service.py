"""
Entry points for the route layer.

Route handlers pass primitive inputs (plain amounts, ISO date strings,
frequency strings) or stored plan JSON; results are pydantic models whose
model_dump(mode="json") can be returned or persisted directly.
"""

import logging
from datetime import date
from typing import Any, Callable, Iterable, List, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ledger_engine.config import settings
from ledger_engine.domain import analytics, installments, ledger, recurrence
from ledger_engine.domain.exceptions import AlreadyPaidError, NotFoundError, ValidationError
from ledger_engine.domain.models import InstallmentPlan, InstallmentStatus, LedgerEntity, RecurrenceRule
from ledger_engine.infrastructure.cache import TTLCache, build_key
from ledger_engine.infrastructure.observability.logging import log_plan_event
from ledger_engine.infrastructure.observability.metrics import (
    installment_payment_counter,
    overdue_installment_counter,
    plan_created_counter,
)
from ledger_engine.schemas import (
    DelinquencySchema,
    LedgerSummarySchema,
    OccurrenceRequest,
    OccurrenceScheduleSchema,
    PlanEditRequest,
    PlanRequest,
    PlanSchema,
    PlanStatusSchema,
    ReceivablesSchema,
)
from ledger_engine.utils.date_utils import parse_iso_date
from ledger_engine.utils.money import format_currency, to_minor_units

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Shared by all aggregate endpoints in this process
aggregate_cache = TTLCache(name="aggregates")


def _parse(model: Type[M], **data: Any) -> M:
    """Validate primitive input, re-raising pydantic errors as ValidationError"""
    try:
        return model(**data)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise ValidationError(f"{field}: {error['msg']}", field=field) from e


def _as_plan(plan: InstallmentPlan | PlanSchema | Mapping[str, Any]) -> InstallmentPlan:
    if isinstance(plan, InstallmentPlan):
        return plan
    if isinstance(plan, PlanSchema):
        return plan.to_plan()
    try:
        return PlanSchema.model_validate(plan).to_plan()
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid installment plan: {e.errors()[0]['msg']}", field="plan") from e


def ledger_summary(entity: LedgerEntity) -> LedgerSummarySchema:
    """Recompute an entity's derived fields for display or persistence"""
    refreshed = ledger.recompute(entity)
    return LedgerSummarySchema(
        id=refreshed.id,
        kind=refreshed.kind,
        total_amount=refreshed.total_amount,
        amount_paid=refreshed.amount_paid,
        balance=refreshed.balance,
        payment_status=refreshed.payment_status,
        overpayment=ledger.overpayment(refreshed.total_amount, refreshed.amount_paid),
        formatted_total=format_currency(refreshed.total_amount),
        formatted_balance=format_currency(refreshed.balance),
    )


def create_installment_plan(
    total_amount: Any,
    total_installments: Any,
    frequency: Any,
    first_due_date: Any,
) -> PlanSchema:
    """
    Create an installment plan from request primitives.

    Flow:
    1. Validate inputs (amount in major units, ISO date, frequency string)
    2. Convert the amount to minor units
    3. Build the schedule
    4. Record metrics and log
    """
    request = _parse(
        PlanRequest,
        total_amount=total_amount,
        total_installments=total_installments,
        frequency=frequency,
        first_due_date=first_due_date,
    )
    plan = installments.create_plan(
        to_minor_units(request.total_amount, field="total_amount"),
        request.total_installments,
        request.frequency,
        request.first_due_date,
    )

    plan_created_counter.labels(frequency=plan.frequency.value).inc()
    log_plan_event(
        "Plan created",
        plan.frequency.value,
        plan.total_amount,
        plan.total_installments,
        first_due_date=plan.first_due_date.isoformat(),
    )
    return PlanSchema.model_validate(plan)


def create_entity_installment_plan(
    entity: LedgerEntity,
    total_installments: int,
    frequency: Any,
    first_due_date: Any,
) -> PlanSchema:
    """Plan the outstanding balance of an expense or material purchase"""
    plan = installments.create_plan_for_entity(entity, total_installments, frequency, first_due_date)

    plan_created_counter.labels(frequency=plan.frequency.value).inc()
    log_plan_event(
        "Plan created",
        plan.frequency.value,
        plan.total_amount,
        plan.total_installments,
        entity_id=entity.id,
        entity_kind=entity.kind.value,
    )
    return PlanSchema.model_validate(plan)


def edit_installment_plan(plan: InstallmentPlan | PlanSchema | Mapping[str, Any], **changes: Any) -> PlanSchema:
    """
    Regenerate a plan's schedule; rejected once a payment exists.

    Changes take the same primitives as create_installment_plan, so
    total_amount is in major units.
    """
    current = _as_plan(plan)
    request = _parse(PlanEditRequest, **changes)
    updated = installments.regenerate_plan(
        current,
        total_amount=(
            to_minor_units(request.total_amount, field="total_amount")
            if request.total_amount is not None
            else None
        ),
        total_installments=request.total_installments,
        frequency=request.frequency,
        first_due_date=request.first_due_date,
    )

    log_plan_event("Plan regenerated", updated.frequency.value, updated.total_amount, updated.total_installments)
    return PlanSchema.model_validate(updated)


def record_installment_payment(
    plan: InstallmentPlan | PlanSchema | Mapping[str, Any],
    installment_number: int,
    payment_ref: str,
) -> PlanSchema:
    """Mark an installment paid; NotFoundError/AlreadyPaidError propagate to the caller"""
    current = _as_plan(plan)
    try:
        updated = installments.record_payment(current, installment_number, payment_ref)
    except AlreadyPaidError as e:
        installment_payment_counter.labels(outcome="already_paid").inc()
        logger.warning(
            "Rejected duplicate installment payment",
            extra={"payment_ref": payment_ref, "installment_number": installment_number, "error": str(e)},
        )
        raise
    except NotFoundError as e:
        installment_payment_counter.labels(outcome="not_found").inc()
        logger.warning(
            "Installment payment for unknown installment",
            extra={"payment_ref": payment_ref, "installment_number": installment_number, "error": str(e)},
        )
        raise

    installment_payment_counter.labels(outcome="recorded").inc()
    log_plan_event(
        "Installment paid",
        updated.frequency.value,
        updated.total_amount,
        updated.total_installments,
        installment_number=installment_number,
        payment_ref=payment_ref,
        plan_closed=updated.is_closed,
    )
    return PlanSchema.model_validate(updated)


def plan_status(
    plan: InstallmentPlan | PlanSchema | Mapping[str, Any],
    as_of: date | str,
    reminder_days: int | None = None,
) -> PlanStatusSchema:
    """Evaluate overdue installments, next payment and reminder window as of a date"""
    as_of = parse_iso_date(as_of, "as_of")
    if reminder_days is None:
        reminder_days = settings.default_reminder_days

    current = _as_plan(plan)
    refreshed = installments.mark_overdue(current, as_of)

    newly_overdue = sum(
        1
        for before, after in zip(current.installments, refreshed.installments)
        if before.status != after.status
    )
    if newly_overdue:
        overdue_installment_counter.inc(newly_overdue)

    return PlanStatusSchema(
        plan=PlanSchema.model_validate(refreshed),
        next_payment_date=installments.next_payment_date(refreshed),
        within_reminder_window=installments.is_within_reminder_window(refreshed, as_of, reminder_days),
        outstanding_amount=installments.outstanding_amount(refreshed),
        overdue_count=sum(1 for inst in refreshed.installments if inst.status == InstallmentStatus.OVERDUE),
    )


def occurrence_schedule(
    frequency: Any,
    start_date: Any,
    end_date: Any = None,
    max_count: Any = None,
) -> OccurrenceScheduleSchema:
    """Occurrence dates and description for a recurring task or expense"""
    data = {"frequency": frequency, "start_date": start_date, "end_date": end_date}
    if max_count is not None:
        data["max_count"] = max_count
    request = _parse(OccurrenceRequest, **data)
    rule = request.to_rule()

    return OccurrenceScheduleSchema(
        description=recurrence.describe(rule),
        occurrences=list(recurrence.generate_occurrences(rule, request.max_count)),
    )


def pending_occurrences(
    rule: RecurrenceRule,
    window_start: date | str,
    window_end: date | str,
    existing: Iterable[date] = (),
) -> List[date]:
    """Occurrences the recurring-expense job still has to create in the window"""
    dates = recurrence.occurrences_between(
        rule,
        parse_iso_date(window_start, "window_start"),
        parse_iso_date(window_end, "window_end"),
        existing=existing,
        limit=settings.occurrence_generation_limit,
    )
    logger.info(
        "Recurring occurrences computed",
        extra={"frequency": getattr(rule.frequency, "value", None), "count": len(dates)},
    )
    return dates


def receivables_summary(
    load_entities: Callable[[], Iterable[LedgerEntity]],
    params: Mapping[str, Any] | None = None,
    cache: TTLCache | None = None,
) -> ReceivablesSchema:
    """
    Cached receivables aggregate.

    `params` are the filters the loader applies; they form the cache key,
    so loaders for different filters must be passed different params.
    """
    if cache is None:
        cache = aggregate_cache
    key = build_key("receivables", params)
    return cache.get_or_compute(
        key,
        settings.aggregate_cache_ttl_seconds,
        lambda: ReceivablesSchema.model_validate(analytics.summarize_receivables(load_entities())),
    )


def delinquency_summary(
    load_plans: Callable[[], Iterable[InstallmentPlan]],
    as_of: date | str,
    params: Mapping[str, Any] | None = None,
    cache: TTLCache | None = None,
) -> DelinquencySchema:
    """Cached installment delinquency aggregate as of a date"""
    if cache is None:
        cache = aggregate_cache
    as_of = parse_iso_date(as_of, "as_of")
    key = build_key("installment_delinquency", {**(params or {}), "as_of": as_of})
    return cache.get_or_compute(
        key,
        settings.aggregate_cache_ttl_seconds,
        lambda: DelinquencySchema.model_validate(analytics.installment_delinquency(load_plans(), as_of)),
    )


def invalidate_aggregates(cache: TTLCache | None = None) -> None:
    """Drop cached aggregates after orders, payments or installments change"""
    if cache is None:
        cache = aggregate_cache
    cache.invalidate_all()
