"""
Pay-or-quit notices.

A notice is bound to one persisted rent record (projections are materialized
through the ledger first) and keeps the amount it was generated with even if
the record changes later. Status only moves forward:

    generated -> served -> resolved | expired
    generated ---------->  resolved | expired

Notices are never deleted.
"""
import logging
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from ..errors import ConflictError, InvalidTransitionError, NotFoundError, PersistenceError, ValidationError
from ..models import ACTIVE_NOTICE_STATUSES, DELIVERY_ACTIONS, NOTICE_STATUSES, LegalNotice, NoticeEvent, Tenant
from ..utils.parsing import parse_amount, parse_date, parse_instant
from .jurisdictions import get_jurisdiction
from .ledger import Projected

logger = logging.getLogger(__name__)

_DAY_WORDS = {
    3: "THREE", 5: "FIVE", 7: "SEVEN", 10: "TEN", 14: "FOURTEEN",
    15: "FIFTEEN", 30: "THIRTY", 60: "SIXTY", 90: "NINETY",
}


class NoticeEngine:
    def __init__(self, repo, ledger, default_jurisdiction="CA", allow_multiple_active_notices=True):
        self.repo = repo
        self.ledger = ledger
        self.default_jurisdiction = default_jurisdiction
        self.allow_multiple_active_notices = allow_multiple_active_notices

    def get_notice(self, notice_id, manager_id=None):
        notice = self.repo.get(LegalNotice, notice_id)
        if manager_id is not None and notice.property_manager_id != manager_id:
            raise NotFoundError(f"LegalNotice {notice_id} not found")
        return notice

    def _tenant(self, tenant_id, manager_id=None):
        tenant = self.repo.get(Tenant, tenant_id)
        if manager_id is not None and tenant.property_manager_id != manager_id:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    @staticmethod
    def _cure_period(days_to_pay, jurisdiction):
        if days_to_pay is None:
            return jurisdiction.cure_period_days
        if isinstance(days_to_pay, bool) or (isinstance(days_to_pay, float) and not days_to_pay.is_integer()):
            raise ValidationError("days_to_pay must be a whole number of days")
        try:
            days = int(days_to_pay)
        except (TypeError, ValueError):
            raise ValidationError("days_to_pay must be a whole number of days")
        if days <= 0:
            raise ValidationError("days_to_pay must be positive")
        return days

    def _audit(self, notice, action, occurred_on):
        # Best-effort trail; a failed audit insert never undoes the notice change
        try:
            self.repo.insert(NoticeEvent, notice_id=notice.id, action=action, occurred_on=occurred_on)
        except PersistenceError as e:
            logger.warning("Could not record %s event for notice %s: %s", action, notice.id, e.message)

    def _advance(self, notice, status, **extra):
        if not notice.is_active:
            raise InvalidTransitionError(f"Notice {notice.id} is already {notice.status}")
        updated = self.repo.update(LegalNotice, notice.id, status=status, **extra)
        logger.info("Notice %s moved to %s", notice.id, status)
        return updated

    def list_notices(self, manager_id, status=None):
        filters = {"property_manager_id": manager_id}
        if status:
            if status not in NOTICE_STATUSES:
                raise ValidationError(f"status must be one of: {', '.join(NOTICE_STATUSES)}")
            filters["status"] = status
        return self.repo.find(LegalNotice, order_by=LegalNotice.id.desc(), **filters)

    def generate_notice(self, manager_id, tenant_id, ref, amount_owed, days_to_pay=None,
                        jurisdiction=None, today=None):
        """
        Issue a pay-or-quit notice for ``ref`` (record id, ``Persisted`` or
        ``Projected``). ``amount_owed`` is stored as given and never
        recomputed from the record afterwards.
        """
        amount = parse_amount(amount_owed, "amount_owed")
        rules = get_jurisdiction(jurisdiction or self.default_jurisdiction)
        days = self._cure_period(days_to_pay, rules)
        generated_on = parse_date(today, "generated_date") if today is not None else date.today()

        tenant = self._tenant(tenant_id, manager_id)
        if isinstance(ref, Projected) and ref.tenant_id != tenant.id:
            raise ValidationError("Rent record does not belong to this tenant")

        record = self.ledger.resolve(ref, manager_id)
        if record.tenant_id != tenant.id:
            raise ValidationError("Rent record does not belong to this tenant")

        if not self.allow_multiple_active_notices:
            active = self.repo.find(
                LegalNotice,
                LegalNotice.status.in_(ACTIVE_NOTICE_STATUSES),
                rent_record_id=record.id,
            )
            if active:
                raise ConflictError(f"Rent record {record.id} already has an active notice ({active[0].id})")

        notice = self.repo.insert(
            LegalNotice,
            property_manager_id=tenant.property_manager_id,
            tenant_id=tenant.id,
            rent_record_id=record.id,
            notice_type="pay_or_quit",
            jurisdiction=rules.code,
            amount_owed=amount,
            days_to_pay=days,
            generated_date=generated_on,
            status="generated",
        )
        self._audit(notice, "generated", generated_on)
        logger.info(
            "Generated %s notice %s for tenant %s, record %s, amount %s",
            notice.notice_type, notice.id, tenant.id, record.id, amount,
        )
        return notice

    def record_delivery_action(self, notice_id, action, today=None, manager_id=None):
        """
        Log a delivery action. ``sent`` serves a generated notice; the other
        actions are audit-only. A missing notice is logged and ``None`` returned.
        """
        if action not in DELIVERY_ACTIONS:
            raise ValidationError(f"action must be one of: {', '.join(DELIVERY_ACTIONS)}")
        occurred_on = parse_date(today, "date") if today is not None else date.today()

        try:
            notice = self.get_notice(notice_id, manager_id)
        except NotFoundError:
            logger.warning("Delivery action %s for unknown notice %s ignored", action, notice_id)
            return None

        if action == "sent" and notice.status == "generated":
            notice = self._advance(notice, "served", served_date=occurred_on)

        self._audit(notice, action, occurred_on)
        return notice

    def resolve_notice(self, notice_id, manager_id=None):
        return self._advance(self.get_notice(notice_id, manager_id), "resolved")

    def resolve_notices_for_record(self, record):
        """Close the active notices of a record once it has been paid in full."""
        if not record.is_paid:
            return []
        active = self.repo.find(
            LegalNotice,
            LegalNotice.status.in_(ACTIVE_NOTICE_STATUSES),
            rent_record_id=record.id,
        )
        return [self._advance(n, "resolved") for n in active]

    def expire_notices(self, manager_id, as_of):
        """Expire active notices whose cure period ended before ``as_of``."""
        as_of_day = parse_instant(as_of).date()
        active = self.repo.find(
            LegalNotice,
            LegalNotice.status.in_(ACTIVE_NOTICE_STATUSES),
            property_manager_id=manager_id,
        )
        return [self._advance(n, "expired") for n in active if n.deadline < as_of_day]


def _notice_title(days):
    word = _DAY_WORDS.get(days)
    count = f"{word} ({days})" if word else str(days)
    return f"{count} DAY NOTICE TO PAY RENT OR QUIT"


def render_notice(notice, tenant, manager, rent_record):
    """
    Fill the pay-or-quit template. Pure: the same inputs always give the
    same text, so the result can be handed straight to a print surface.
    """
    rules = get_jurisdiction(notice.jurisdiction)
    deadline = notice.generated_date + relativedelta(days=notice.days_to_pay)
    amount = Decimal(str(notice.amount_owed)).quantize(Decimal("0.01"))

    premises = tenant.property_address
    if tenant.unit_number:
        premises = f"{premises}, Unit {tenant.unit_number}"

    lines = [
        _notice_title(notice.days_to_pay),
        f"({rules.citation})",
        "",
        f"TO: {tenant.name}",
        "AND ALL OTHER TENANTS, SUBTENANTS, AND OTHERS IN POSSESSION OF THE PREMISES LOCATED AT:",
        f"    {premises}",
        "",
        (
            f"PLEASE TAKE NOTICE that you are justly indebted to the undersigned in the sum of "
            f"${amount:,.2f} for rent of said premises for the rental period due "
            f"{rent_record.due_date.isoformat()}, now due and unpaid."
        ),
        "",
        (
            f"YOU ARE HEREBY REQUIRED to pay said rent in full within {notice.days_to_pay} days "
            f"after service on you of this notice, on or before {deadline.isoformat()}, or quit and "
            f"deliver up the possession of the above-described premises to the undersigned."
        ),
        "",
        "If you fail to do so:",
    ]
    for number, consequence in enumerate(rules.consequences, start=1):
        lines.append(f"  {number}. {consequence[0].upper()}{consequence[1:]}.")

    lines += [
        "",
        f"Date: {notice.generated_date.isoformat()}",
        "",
        "______________________________",
        "Landlord/Agent Signature",
        "",
        manager.name,
        "Property Manager",
    ]
    contact = " | ".join(value for value in (manager.email, manager.phone) if value)
    if contact:
        lines.append(contact)

    lines += [
        "",
        (
            "NOTICE: The lease or rental agreement under which you occupy these premises may contain "
            "additional provisions regarding nonpayment of rent, including but not limited to provisions "
            f"that may result in your eviction for nonpayment of rent in less than {notice.days_to_pay} days."
        ),
    ]
    return "\n".join(lines) + "\n"
