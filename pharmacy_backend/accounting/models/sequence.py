# accounting/models/sequence.py

"""
LEDGER SEQUENCE (SINGLE-WRITER HEAD)

Singleton row (pk=1). Every ledger append locks it with
select_for_update(), which serializes running-balance computation
across the whole business and issues the next TXN number.
"""

from __future__ import annotations

from django.db import models


class LedgerSequence(models.Model):
    SINGLETON_PK = 1

    last_number = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Ledger Sequence"

    def __str__(self):
        return f"ledger head #{self.last_number}"
