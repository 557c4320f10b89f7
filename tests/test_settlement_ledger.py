import pytest
from decimal import Decimal
from threading import Thread
from typing import List

from invoice_engine import SettlementLedger
from invoice_engine.models.invoice import SettlementState
from invoice_engine.utils.exceptions import (
    DuplicateApplicationError, NotFoundError, OverAllocationError, StaleRecomputeError, ValidationError,
)


def collection(event_id: str, invoice_id: str, amount, **extra):
    return {"id": event_id, "invoice_id": invoice_id, "gross_amount": amount,
            "currency": "ARS", "date": "2025-03-10", **extra}


def split_collection(event_id: str, allocations, **extra):
    gross = sum(Decimal(str(amount)) for _, amount in allocations)
    return {"id": event_id, "gross_amount": gross, "currency": "ARS", "date": "2025-03-10",
            "allocations": [{"invoice_id": i, "amount": a} for i, a in allocations], **extra}


def linked_note(event_id: str, kind: str, amount, invoice_id: str = "inv-1"):
    return {"id": event_id, "kind": kind, "issue_date": "2025-03-12", "total": amount,
            "currency": "ARS", "counterparty_id": "client-1", "linked_invoice_id": invoice_id}


class TestSettlementLedger:
    """Estado vigente de las facturas en memoria"""

    def test_apply_updates_stored_invoice(self, ledger):
        result = ledger.apply(collection("col-1", "inv-1", 600))

        assert ledger.get("inv-1").pending_amount == Decimal("400.00")
        assert ledger.state("inv-1") == SettlementState.PARTIALLY_SETTLED
        assert ledger.get("inv-1") == result.invoice
        assert ledger.history() == [result]
        assert ledger.history("inv-2") == []

    def test_events_accumulate(self, ledger):
        ledger.apply(collection("col-1", "inv-1", 600))
        ledger.apply(collection("col-2", "inv-1", 400))

        assert ledger.pending_amount("inv-1") == Decimal("0.00")
        assert ledger.state("inv-1") == SettlementState.SETTLED
        assert ledger.get("inv-1").version == 2

    def test_event_ids_unique_across_ledger(self, ledger):
        ledger.apply(collection("evt-1", "inv-1", 100))

        with pytest.raises(DuplicateApplicationError):
            ledger.apply(collection("evt-1", "inv-2", 100))

        assert ledger.pending_amount("inv-2") == Decimal("500.00")

    def test_failed_event_can_be_retried(self, ledger):
        with pytest.raises(OverAllocationError):
            ledger.apply(collection("col-1", "inv-2", 800))

        result = ledger.apply(collection("col-1", "inv-2", 500))

        assert result.state == SettlementState.SETTLED
        assert len(ledger.history()) == 1

    def test_expected_version(self, ledger):
        ledger.apply(collection("col-1", "inv-1", 100), expected_version=0)

        with pytest.raises(StaleRecomputeError) as exc_info:
            ledger.apply(collection("col-2", "inv-1", 100), expected_version=0)

        assert exc_info.value.details["actual_version"] == 1
        assert ledger.pending_amount("inv-1") == Decimal("900.00")

    def test_unknown_invoice(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.apply(collection("col-1", "inv-404", 100))
        with pytest.raises(NotFoundError):
            ledger.get("inv-404")

    def test_register_twice_rejected(self, ledger, invoice):
        with pytest.raises(ValidationError):
            ledger.register(invoice)

    def test_preapplied_event_ids_count_as_applied(self, make_invoice):
        ledger = SettlementLedger([make_invoice(applied_event_ids=["col-1"], pending_amount=400)])

        with pytest.raises(DuplicateApplicationError):
            ledger.apply(collection("col-1", "inv-1", 100))

    def test_credit_excess_recorded(self, ledger, credit_note_data):
        ledger.apply(collection("col-1", "inv-1", 600))
        ledger.apply(credit_note_data)

        discrepancies = ledger.discrepancies()
        assert len(discrepancies) == 1
        assert discrepancies[0].amount == Decimal("100.00")
        assert ledger.discrepancies("inv-2") == []

    def test_event_without_identity_rejected(self, ledger):
        record = {k: v for k, v in collection("col-1", "inv-1", 300).items() if k != "id"}

        with pytest.raises(ValidationError):
            ledger.apply(record)

        assert ledger.pending_amount("inv-1") == Decimal("1000.00")
        assert ledger.history() == []

    def test_unassociated_note_rejected(self, ledger, credit_note_data):
        with pytest.raises(ValidationError):
            ledger.apply({**credit_note_data, "linked_invoice_id": None})


class TestApplyCollection:
    """Un cobro repartido entre varias facturas"""

    def test_split_collection_settles_both(self, ledger):
        results = ledger.apply_collection(split_collection("col-1", [("inv-1", 1000), ("inv-2", 500)]))

        assert [r.invoice_id for r in results] == ["inv-1", "inv-2"]
        assert ledger.state("inv-1") == SettlementState.SETTLED
        assert ledger.state("inv-2") == SettlementState.SETTLED

    def test_all_or_nothing(self, ledger):
        with pytest.raises(OverAllocationError) as exc_info:
            ledger.apply_collection(split_collection("col-1", [("inv-1", 600), ("inv-2", 700)]))

        assert exc_info.value.details["invoice_id"] == "inv-2"
        assert ledger.pending_amount("inv-1") == Decimal("1000.00")
        assert ledger.pending_amount("inv-2") == Decimal("500.00")
        assert ledger.history() == []

    def test_split_collection_needs_apply_collection(self, ledger):
        with pytest.raises(ValidationError):
            ledger.apply(split_collection("col-1", [("inv-1", 100), ("inv-2", 100)]))

    def test_allocations_must_match_gross(self, ledger):
        data = split_collection("col-1", [("inv-1", 100), ("inv-2", 100)])
        data["gross_amount"] = 300

        with pytest.raises(ValidationError):
            ledger.apply_collection(data)


class TestLedgerConcurrency:
    """Aplicaciones concurrentes sobre las mismas facturas"""

    @staticmethod
    def _run(targets) -> List[Thread]:
        threads = [Thread(target=t) for t in targets]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        return threads

    def test_concurrent_collections_never_over_allocate(self, ledger):
        errors: List[Exception] = []
        applied: List[str] = []

        def worker(n: int):
            def run():
                try:
                    applied.append(ledger.apply(collection(f"col-{n}", "inv-1", 20)).event_id)
                except OverAllocationError as e:
                    errors.append(e)
            return run

        self._run([worker(n) for n in range(60)])

        assert len(applied) == 50
        assert len(errors) == 10
        assert ledger.pending_amount("inv-1") == Decimal("0.00")
        assert len(ledger.history("inv-1")) == 50

    def test_same_event_applied_once(self, ledger):
        errors: List[Exception] = []

        def run():
            try:
                ledger.apply(collection("col-1", "inv-1", 100))
            except DuplicateApplicationError as e:
                errors.append(e)

        self._run([run] * 20)

        assert len(errors) == 19
        assert ledger.pending_amount("inv-1") == Decimal("900.00")

    def test_opposite_allocation_order_does_not_deadlock(self, ledger):
        def worker(n: int):
            pairs = [("inv-1", 50), ("inv-2", 25)]
            if n % 2:
                pairs.reverse()
            return lambda: ledger.apply_collection(split_collection(f"col-{n}", pairs))

        threads = self._run([worker(n) for n in range(20)])

        assert not any(thread.is_alive() for thread in threads)
        assert ledger.pending_amount("inv-1") == Decimal("0.00")
        assert ledger.pending_amount("inv-2") == Decimal("0.00")


class TestMixedEventSequences:
    """Cobros y notas intercalados sobre la misma factura de 1000"""

    @pytest.mark.parametrize("events", [
        [("collection", 600), ("credit", 500)],
        [("debit", 200), ("collection", 700), ("credit", 300), ("collection", 200)],
        [("credit", 250), ("debit", 100), ("credit", 1000), ("debit", 50), ("collection", 50)],
        [("collection", 1000), ("debit", 300), ("credit", "120.50"), ("collection", "179.50")],
        [("credit", 1500), ("debit", 400), ("credit", 100), ("collection", 300)],
    ])
    def test_pending_stays_within_bounds(self, ledger, events):
        expected = Decimal("1000")
        collections = credits = debits = excess = Decimal("0")

        for n, (kind, amount) in enumerate(events):
            amount = Decimal(str(amount))
            if kind == "collection":
                ledger.apply(collection(f"evt-{n}", "inv-1", amount))
                collections += amount
                expected -= amount
            else:
                ledger.apply(linked_note(f"evt-{n}", kind, amount))
                if kind == "credit":
                    credits += amount
                    excess += max(amount - expected, Decimal("0"))
                    expected = max(expected - amount, Decimal("0"))
                else:
                    debits += amount
                    expected += amount

            invoice = ledger.get("inv-1")
            assert Decimal("0") <= invoice.pending_amount <= invoice.settleable_total
            assert invoice.pending_amount == expected

        invoice = ledger.get("inv-1")
        assert invoice.pending_amount == Decimal("1000") - collections - credits + debits + excess
        assert invoice.settleable_total == Decimal("1000") + debits
        assert sum(d.amount for d in ledger.discrepancies("inv-1")) == excess
        assert invoice.version == len(events)
