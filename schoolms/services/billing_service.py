from __future__ import annotations

import os
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from schoolms.domain.billing import (
    add_vat,
    current_month,
    generate_custom_id,
    get_object_size,
    last_month,
    next_billing_date,
)
from schoolms.domain.changes import generate_search_text
from schoolms.domain.models import Billing, now_utc
from schoolms.domain.pagination import PageQuery, PageResult, date_range_conditions, paginate
from schoolms.infra.db import get_engine
from schoolms.infra.logging import get_logger
from schoolms.infra.usage import USAGE_METERS

OWNER_ORGANISATION_ID = os.getenv("OWNER_ORGANISATION_ID", "")
UK_VAT_PERCENTAGE = float(os.getenv("UK_VAT_PERCENTAGE", "20"))
RENDER_BASE_COST = float(os.getenv("RENDER_BASE_COST", "0"))

METER_RATE_ENV = {
    "render_bandwidth": "RENDER_BANDWIDTH_RATE",
    "render_compute_seconds": "RENDER_COMPUTE_RATE",
    "database_storage_and_backup": "DATABASE_STORAGE_RATE",
    "database_operation": "DATABASE_OPERATION_RATE",
    "database_data_transfer": "DATABASE_DATA_TRANSFER_RATE",
    "cloud_storage_gb_stored": "CLOUD_STORAGE_GB_STORED_RATE",
    "cloud_storage_gb_downloaded": "CLOUD_STORAGE_GB_DOWNLOADED_RATE",
    "cloud_storage_upload_operation": "CLOUD_STORAGE_UPLOAD_OPERATION_RATE",
    "cloud_storage_download_operation": "CLOUD_STORAGE_DOWNLOAD_OPERATION_RATE",
}
CARRIED_OVER_METERS = ("database_storage_and_backup", "cloud_storage_gb_stored")
BILLING_FILTERS = frozenset({"billing_status", "payment_status", "billing_month"})

logger = get_logger(__name__)


class BillingError(Exception):
    pass


class NotFoundError(BillingError):
    pass


def meter_rates() -> dict[str, float]:
    return {meter: float(os.getenv(env_name, "0")) for meter, env_name in METER_RATE_ENV.items()}


class BillingService:
    def __init__(self, owner_organisation_id: str | None = None) -> None:
        self.owner_organisation_id = (
            OWNER_ORGANISATION_ID if owner_organisation_id is None else owner_organisation_id
        )

    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def _find_bill(self, session: Session, organisation_id: str, month: str) -> Billing | None:
        statement = (
            select(Billing)
            .where(Billing.organisation_id == organisation_id)
            .where(Billing.billing_month == month)
        )
        return session.exec(statement).first()

    def _new_bill(self, session: Session, organisation_id: str, now: datetime) -> Billing:
        previous = self._find_bill(session, organisation_id, last_month(now))
        bill = Billing(
            organisation_id=organisation_id,
            billing_id=generate_custom_id("BILL"),
            billing_month=current_month(now),
            billing_date=next_billing_date(now),
            render_base_cost=RENDER_BASE_COST,
        )
        if previous is not None:
            for meter in CARRIED_OVER_METERS:
                setattr(bill, meter, getattr(previous, meter))
        bill.search_text = generate_search_text([bill.billing_id, bill.billing_month, bill.billing_date])
        session.add(bill)
        session.flush()
        return bill

    def get_billing_doc(
        self,
        session: Session,
        organisation_id: str,
        now: datetime | None = None,
    ) -> tuple[Billing, int, bool]:
        """Current month's bill for the organisation, created on first use.

        Returns the bill, the database operations spent and whether it was created.
        """
        now = now or datetime.now()
        existing = self._find_bill(session, organisation_id, current_month(now))
        if existing is not None:
            return existing, 1, False
        # previous month lookup, insert and flush
        return self._new_bill(session, organisation_id, now), 4, True

    def _apply(self, bill: Billing, usage: dict[str, float]) -> None:
        for meter, value in usage.items():
            if meter not in USAGE_METERS:
                continue
            setattr(bill, meter, float(getattr(bill, meter) or 0.0) + float(value))
        bill.total_cost = self.total_cost(bill)
        bill.updated_at = now_utc()

    def total_cost(self, bill: Billing) -> float:
        rates = meter_rates()
        subtotal = bill.render_base_cost + sum(
            float(getattr(bill, meter) or 0.0) * rate for meter, rate in rates.items()
        )
        return round(add_vat(subtotal, UK_VAT_PERCENTAGE), 6)

    def bill_organisation(self, organisation_id: str, usage: dict[str, float], now: datetime | None = None) -> Billing:
        with self._session() as session:
            try:
                bill, operations, created = self.get_billing_doc(session, organisation_id, now)
                self._apply(bill, usage)
                session.add(bill)
                session.commit()
            except IntegrityError:
                # concurrent first request of the month created the bill
                session.rollback()
                bill, operations, created = self.get_billing_doc(session, organisation_id, now)
                self._apply(bill, usage)
                session.add(bill)
                session.commit()
            session.refresh(bill)

        size = get_object_size(bill.model_dump(mode="json"))
        self.self_bill(
            {
                "database_operation": 2 + operations,
                "database_storage_and_backup": size * 2 if created else 0.0,
                "database_data_transfer": size if created else 0.0,
            },
            now=now,
        )
        logger.debug("billing.recorded", organisation_id=organisation_id, meters=sorted(usage))
        return bill

    def self_bill(self, usage: dict[str, float], now: datetime | None = None) -> Billing | None:
        """Charge the platform owner for operations spent keeping other bills."""
        if not self.owner_organisation_id:
            return None
        with self._session() as session:
            bill, operations, created = self.get_billing_doc(session, self.owner_organisation_id, now)
            charged = dict(usage)
            charged["database_operation"] = charged.get("database_operation", 0.0) + operations + 2
            if created:
                size = get_object_size(bill.model_dump(mode="json"))
                charged["database_storage_and_backup"] = charged.get("database_storage_and_backup", 0.0) + size * 2
                charged["database_data_transfer"] = charged.get("database_data_transfer", 0.0) + size
            self._apply(bill, charged)
            session.add(bill)
            session.commit()
            session.refresh(bill)
            return bill

    def list_billings(self, organisation_id: str, query: PageQuery) -> PageResult:
        with self._session() as session:
            return paginate(
                session,
                Billing,
                organisation_id,
                query,
                allowed_filters=BILLING_FILTERS,
                extra_conditions=date_range_conditions(Billing, query.filters),
            )

    def get_current_bill(self, organisation_id: str, now: datetime | None = None) -> Billing:
        with self._session() as session:
            bill = self._find_bill(session, organisation_id, current_month(now))
            if bill is None:
                raise NotFoundError("No bill has been recorded for this month yet")
            return bill

