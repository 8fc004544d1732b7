"""
Rent ledger: what each tenant owes for a month.

The ledger view mixes two kinds of obligations:

  - ``Persisted``: a ``RentRecord`` row.
  - ``Projected``: a month whose due date has passed but that has no row yet.
    It is computed from the tenant's lease terms, is always ``overdue`` with
    nothing paid, and only becomes a row through ``RentLedger.materialize``
    when someone records a payment or issues a notice against it.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from ..errors import ConflictError, ConstraintViolation, InvalidTransitionError, NotFoundError, ValidationError
from ..models import RENT_STATUSES, RentRecord, Tenant, period_of
from ..utils.parsing import parse_amount, parse_date, parse_instant, parse_period

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def due_date_for(year, month, due_day):
    """Tenant's due date in ``year``/``month``; days past the month end clamp to its last day."""
    return date(year, month, 1) + relativedelta(day=max(int(due_day), 1))


def _has_elapsed(due, as_of):
    """True once ``as_of`` is past midnight of ``due`` (in ``as_of``'s timezone)."""
    return datetime.combine(due, time.min, tzinfo=as_of.tzinfo) < as_of


@dataclass(frozen=True)
class Persisted:
    record: RentRecord

    kind = "persisted"

    @property
    def tenant_id(self):
        return self.record.tenant_id

    @property
    def due_date(self):
        return self.record.due_date

    @property
    def period(self):
        return self.record.period

    @property
    def status(self):
        return self.record.status

    @property
    def amount_due(self):
        return self.record.amount_due

    @property
    def amount_paid(self):
        return self.record.amount_paid or ZERO

    @property
    def balance(self):
        return self.record.balance

    def to_view(self):
        view = self.record.serialize()
        view["kind"] = self.kind
        return view


@dataclass(frozen=True)
class Projected:
    tenant_id: int
    property_manager_id: int
    due_date: date
    amount_due: Decimal
    tenant: dict = field(default_factory=dict, compare=False)

    kind = "projected"
    status = "overdue"
    amount_paid = ZERO
    late_fees = ZERO

    @property
    def period(self):
        return period_of(self.due_date)

    @property
    def balance(self):
        return self.amount_due

    def to_view(self):
        return {
            "id": None,
            "kind": self.kind,
            "key": f"projected-{self.tenant_id}-{self.period}",
            "tenant_id": self.tenant_id,
            "property_manager_id": self.property_manager_id,
            "due_date": self.due_date.isoformat(),
            "period": self.period,
            "amount_due": float(self.amount_due),
            "amount_paid": 0.0,
            "late_fees": 0.0,
            "balance": float(self.amount_due),
            "status": self.status,
            "paid_date": None,
            "payment_method": None,
            "notes": None,
            "tenant": dict(self.tenant),
        }


class RentLedger:
    def __init__(self, repo, late_fee_amount=Decimal("50.00")):
        self.repo = repo
        self.late_fee_amount = late_fee_amount

    # ---- lookups -------------------------------------------------------

    def _tenant(self, tenant_id, manager_id=None):
        tenant = self.repo.get(Tenant, tenant_id)
        if manager_id is not None and tenant.property_manager_id != manager_id:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    def _record(self, record_id, manager_id=None):
        record = self.repo.get(RentRecord, record_id)
        if manager_id is not None and record.property_manager_id != manager_id:
            raise NotFoundError(f"RentRecord {record_id} not found")
        if record.tenant is None:
            raise NotFoundError(f"Tenant for rent record {record_id} no longer exists")
        return record

    def _record_for_period(self, tenant_id, period):
        return self.repo.first(RentRecord, tenant_id=tenant_id, period=period)

    def _projection(self, tenant, due):
        return Projected(
            tenant_id=tenant.id,
            property_manager_id=tenant.property_manager_id,
            due_date=due,
            amount_due=Decimal(str(tenant.rent_amount)),
            tenant=tenant.display_fields(),
        )

    # ---- views ---------------------------------------------------------

    def derive_current_period_view(self, manager_id, as_of):
        """
        Persisted records of the manager plus a projection for every tenant
        that has no record in ``as_of``'s month and whose due date has passed.

        Read-only. Ordered by due date, newest first.
        """
        as_of = parse_instant(as_of)
        current = period_of(as_of)

        records = self.repo.find(RentRecord, property_manager_id=manager_id)
        tenants = self.repo.find(Tenant, property_manager_id=manager_id)

        billed = {r.tenant_id for r in records if r.period == current}
        view = [Persisted(r) for r in records]

        for tenant in tenants:
            if tenant.id in billed:
                continue
            due = due_date_for(as_of.year, as_of.month, tenant.rent_due_date)
            if _has_elapsed(due, as_of):
                view.append(self._projection(tenant, due))

        view.sort(key=lambda o: (o.due_date, o.tenant_id), reverse=True)
        return view

    def project(self, manager_id, tenant_id, period, as_of=None):
        """
        Rebuild the projected obligation of one tenant for a "YYYY-MM" month.
        Only months whose due date has passed by ``as_of`` (default: now) are
        overdue; anything later raises ``ValidationError``.
        """
        year, month = parse_period(period)
        as_of = parse_instant(as_of) if as_of is not None else datetime.now()
        tenant = self._tenant(tenant_id, manager_id)
        due = due_date_for(year, month, tenant.rent_due_date)
        if not _has_elapsed(due, as_of):
            raise ValidationError(f"Rent for {period} is not due until {due.isoformat()}")
        return self._projection(tenant, due)

    def summarize(self, obligations, as_of):
        as_of = parse_instant(as_of)
        current = period_of(as_of)
        counts = dict.fromkeys(RENT_STATUSES, 0)
        collected = ZERO
        overdue_amount = ZERO

        for obligation in obligations:
            counts[obligation.status] = counts.get(obligation.status, 0) + 1
            if obligation.period == current:
                collected += obligation.amount_paid
            if obligation.status == "overdue":
                overdue_amount += obligation.balance

        return {
            "total": len(obligations),
            "counts": counts,
            "collected_this_month": float(collected),
            "overdue_amount": float(overdue_amount),
        }

    # ---- writes --------------------------------------------------------

    def materialize(self, obligation):
        """
        Return the persisted record behind ``obligation``, inserting it for a
        projection. Keyed on (tenant, month): an existing row for that month,
        including one inserted concurrently, is returned instead of a duplicate.
        """
        if isinstance(obligation, Persisted):
            return obligation.record

        existing = self._record_for_period(obligation.tenant_id, obligation.period)
        if existing is not None:
            return existing

        try:
            record = self.repo.insert(
                RentRecord,
                property_manager_id=obligation.property_manager_id,
                tenant_id=obligation.tenant_id,
                due_date=obligation.due_date,
                amount_due=obligation.amount_due,
                amount_paid=ZERO,
                late_fees=ZERO,
                status="overdue",
            )
        except ConstraintViolation:
            existing = self._record_for_period(obligation.tenant_id, obligation.period)
            if existing is None:
                raise
            return existing

        logger.info(
            "Materialized rent record %s for tenant %s (%s)",
            record.id, record.tenant_id, record.period,
        )
        return record

    def resolve(self, ref, manager_id=None):
        """Persisted record for a record id, ``Persisted`` or ``Projected``."""
        if isinstance(ref, Projected):
            self._tenant(ref.tenant_id, manager_id)
            return self.materialize(ref)
        if isinstance(ref, Persisted):
            ref = ref.record.id
        return self._record(ref, manager_id)

    def record_payment(self, ref, amount_paid, paid_date, method=None, notes=None, manager_id=None):
        amount = parse_amount(amount_paid, "amount_paid")
        paid_on = parse_date(paid_date, "paid_date")

        record = self.resolve(ref, manager_id)
        if record.is_paid:
            raise InvalidTransitionError(f"Rent record {record.id} is already paid")
        return self._apply_payment(record, amount, paid_on, method, notes)

    def _apply_payment(self, record, amount, paid_on, method, notes):
        total_paid = (record.amount_paid or ZERO) + amount
        status = "paid" if total_paid >= record.total_due else "partial"

        patch = {"amount_paid": total_paid, "status": status, "paid_date": paid_on}
        if method is not None:
            patch["payment_method"] = method
        if notes is not None:
            patch["notes"] = notes

        updated = self.repo.update(RentRecord, record.id, **patch)
        logger.info("Recorded payment of %s on rent record %s -> %s", amount, record.id, status)
        return updated

    def create_record_for_period(self, manager_id, tenant_id, due_date, amount_due=None,
                                 amount_paid=None, paid_date=None, method=None, notes=None):
        """
        Manual ledger entry. When the tenant already has a record for the
        month of ``due_date`` the payment is applied to it instead; a
        different ``amount_due`` for that month is a ``ConflictError``.

        Returns ``(record, created)``.
        """
        due = parse_date(due_date, "due_date")
        amount = parse_amount(amount_due, "amount_due") if amount_due is not None else None
        paid = parse_amount(amount_paid, "amount_paid", allow_zero=True) if amount_paid is not None else ZERO
        paid_on = None
        if paid > 0:
            if paid_date is None:
                raise ValidationError("paid_date is required when amount_paid is given")
            paid_on = parse_date(paid_date, "paid_date")

        tenant = self._tenant(tenant_id, manager_id)

        existing = self._record_for_period(tenant.id, period_of(due))
        if existing is not None:
            if amount is not None and amount != existing.amount_due:
                raise ConflictError(
                    f"Rent record {existing.id} for {existing.period} already bills {existing.amount_due}"
                )
            if paid > 0:
                if existing.is_paid:
                    raise InvalidTransitionError(f"Rent record {existing.id} is already paid")
                return self._apply_payment(existing, paid, paid_on, method, notes), False
            if notes is not None:
                return self.repo.update(RentRecord, existing.id, notes=notes), False
            return existing, False

        if amount is None:
            amount = Decimal(str(tenant.rent_amount))
        if paid >= amount:
            status = "paid"
        elif paid > 0:
            status = "partial"
        else:
            status = "pending"

        record = self.repo.insert(
            RentRecord,
            property_manager_id=tenant.property_manager_id,
            tenant_id=tenant.id,
            due_date=due,
            amount_due=amount,
            amount_paid=paid,
            late_fees=ZERO,
            status=status,
            paid_date=paid_on,
            payment_method=method,
            notes=notes,
        )
        logger.info("Created rent record %s for tenant %s (%s, %s)", record.id, tenant.id, record.period, status)
        return record, True

    def mark_overdue(self, manager_id, as_of):
        """Move pending records whose due date is before ``as_of`` to overdue."""
        as_of_day = parse_instant(as_of).date()
        stale = self.repo.find(
            RentRecord,
            RentRecord.due_date < as_of_day,
            property_manager_id=manager_id,
            status="pending",
        )
        updated = [self.repo.update(RentRecord, r.id, status="overdue") for r in stale]
        if updated:
            logger.info("Marked %d rent records overdue for manager %s", len(updated), manager_id)
        return updated

    def apply_late_fee(self, record_id, amount=None, manager_id=None):
        fee = parse_amount(amount if amount is not None else self.late_fee_amount, "late_fee")
        record = self._record(record_id, manager_id)
        if record.is_paid:
            raise InvalidTransitionError("Cannot apply late fee to paid rent record")
        return self.repo.update(RentRecord, record.id, late_fees=(record.late_fees or ZERO) + fee)
