# customers/management/commands/reconcile_balances.py

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError

from accounting.services.exceptions import BalanceInconsistencyError
from customers.models import Customer
from customers.services.reconciliation import (
    check_balance,
    drift_tolerance,
    recalculate_from_ledger,
    summarize_customer_ledger,
)

ZERO = Decimal("0.00")


class Command(BaseCommand):
    help = "Compare every customer balance register with the ledger (optionally repair)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--customer",
            dest="customer_id",
            help="Only this customer id (UUID, optional)",
        )
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Rewrite every drifted register from the ledger (audited), "
            "including drift within tolerance.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit non-zero if any drift beyond tolerance was found. "
            "Applies with --repair too: the run still fails after repairing.",
        )

    def _customers(self, customer_id):
        qs = Customer.objects.order_by("created_at")
        if not customer_id:
            return qs

        try:
            pk = uuid.UUID(str(customer_id))
        except ValueError:
            raise CommandError(f"--customer must be a customer UUID, got {customer_id!r}")

        qs = qs.filter(pk=pk)
        if not qs.exists():
            raise CommandError(f"Customer {pk} does not exist")
        return qs

    def handle(self, *args, **options):
        repair = bool(options.get("repair"))
        strict = bool(options.get("strict"))

        qs = self._customers(options.get("customer_id"))

        self.stdout.write(self.style.MIGRATE_HEADING("Customer balance reconciliation"))
        self.stdout.write(f"Tolerance: {drift_tolerance()}  Mode: {'repair' if repair else 'check'}")

        checked = 0
        drifted = 0
        inconsistent = 0

        for customer_id in qs.values_list("id", flat=True):
            checked += 1
            try:
                summary = check_balance(customer_id)
            except BalanceInconsistencyError as exc:
                inconsistent += 1
                self.stderr.write(self.style.ERROR(f"[DRIFT] {exc}"))
                summary = summarize_customer_ledger(customer_id)
            else:
                if summary["drift"] != ZERO:
                    self.stdout.write(
                        self.style.WARNING(
                            f"[WITHIN TOLERANCE] {customer_id} drift {summary['drift']}"
                        )
                    )

            if summary["drift"] == ZERO:
                continue

            drifted += 1
            if repair:
                fixed = recalculate_from_ledger(customer_id, triggered_by="command:reconcile_balances")
                self.stdout.write(self.style.WARNING(f"  repaired {customer_id} -> {fixed}"))

        self.stdout.write("")
        self.stdout.write(f"Customers checked: {checked}")
        if drifted == 0:
            self.stdout.write(self.style.SUCCESS("[OK] All registers match the ledger"))
        else:
            self.stderr.write(self.style.ERROR(f"Registers drifted: {drifted}"))
            if inconsistent:
                self.stderr.write(self.style.ERROR(f"Beyond tolerance: {inconsistent}"))

        if strict and inconsistent:
            raise SystemExit(1)
