from rentdesk.extensions import db

from .property_manager import PropertyManager
from .tenant import Tenant
from .rent_record import RentRecord, RENT_STATUSES, period_of
from .legal_notice import (
    LegalNotice, NoticeEvent, NOTICE_STATUSES, ACTIVE_NOTICE_STATUSES, DELIVERY_ACTIONS,
)
