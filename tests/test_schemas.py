import pytest
from decimal import Decimal

from invoice_engine.models.invoice import Currency
from invoice_engine.models.note import NoteKind
from invoice_engine.models.payment import PaymentMethod, WithholdingType
from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.note import Note
from invoice_engine.schemas.payment import Collection
from invoice_engine.schemas.settlement import parse_event
from invoice_engine.schemas.tax_rate import Exempt, NotTaxed, Percentage, parse_tax_rate
from invoice_engine.utils.exceptions import ValidationError


class TestTaxRate:

    @pytest.mark.parametrize("raw,expected", [
        (21, Percentage(value=Decimal("21"))),
        ("10.5", Percentage(value=Decimal("10.5"))),
        (-1, Exempt()),
        ("-2", NotTaxed()),
        ("no_gravado", NotTaxed()),
        ({"kind": "exempt"}, Exempt()),
        ({"kind": "percentage", "value": 27}, Percentage(value=Decimal("27"))),
    ])
    def test_parse(self, raw, expected):
        assert parse_tax_rate(raw) == expected

    @pytest.mark.parametrize("raw", [7, -3, "abc", {"kind": "other"}])
    def test_unknown_codes_rejected(self, raw):
        with pytest.raises(ValueError):
            parse_tax_rate(raw)

    def test_codes_keep_sentinels_for_reporting(self):
        assert Exempt().code == Decimal("-1")
        assert NotTaxed().code == Decimal("-2")
        assert Exempt().effective_rate == Decimal("0")
        assert str(NotTaxed()) == "No Gravado"


class TestCollectionRecord:

    def test_plain_record(self, collection_data):
        collection = parse_record(Collection, collection_data)

        assert collection.gross_amount == Decimal("600")
        assert collection.collection_date.isoformat() == "2025-03-10"
        assert collection.method == PaymentMethod.TRANSFER
        assert collection.total_withholdings == Decimal("50")
        assert collection.net_amount == Decimal("550")

    def test_spanish_codes_and_flat_withholdings(self):
        collection = parse_record(Collection, {
            "id": "col-9", "invoice_id": "inv-1", "amount": "1000", "currency": "pes",
            "method": "cheque", "payment_date": "2025-03-10",
            "withholding_ganancias": 20, "withholding_iibb": 15,
        })

        assert collection.currency == Currency.ARS
        assert collection.method == PaymentMethod.CHECK
        assert [w.type for w in collection.withholdings] == [WithholdingType.GANANCIAS, WithholdingType.IIBB]
        assert collection.net_amount == Decimal("965")

    def test_no_double_counting(self, collection_data):
        collection = parse_record(Collection, {**collection_data, "withholding_iva": 50})

        assert collection.total_withholdings == Decimal("50")

    @pytest.mark.parametrize("field", ["id", "currency"])
    def test_identity_and_currency_required(self, collection_data, field):
        data = {k: v for k, v in collection_data.items() if k != field}

        with pytest.raises(ValidationError) as exc_info:
            parse_record(Collection, data)

        assert exc_info.value.details["field"] == field

    def test_prorated_net_cash_adds_up(self, collection_data):
        collection = parse_record(Collection, {
            **collection_data,
            "invoice_id": None,
            "gross_amount": 3,
            "withholdings": [{"type": "iva", "amount": 1}],
            "allocations": [{"invoice_id": f"inv-{n}", "amount": 1} for n in (1, 2, 3)],
        })

        shares = [collection.net_cash_for(f"inv-{n}") for n in (1, 2, 3)]

        assert shares == [Decimal("0.67"), Decimal("0.67"), Decimal("0.66")]
        assert sum(shares) == collection.net_amount
        assert collection.net_cash_for("inv-9") == Decimal("0")

    @pytest.mark.parametrize("overrides", [
        {"gross_amount": 0},
        {"withholdings": [{"type": "iva", "amount": 700}]},
        {"invoice_id": None},
        {"allocations": [{"invoice_id": "inv-2", "amount": 600}]},
        {"allocations": [{"invoice_id": "inv-1", "amount": 300}, {"invoice_id": "inv-1", "amount": 300}]},
        {"method": "bitcoin"},
    ])
    def test_invalid_collection(self, collection_data, overrides):
        with pytest.raises(ValidationError):
            parse_record(Collection, {**collection_data, **overrides})


class TestNoteRecord:

    def test_signed_amount(self, credit_note_data):
        credit = parse_record(Note, credit_note_data)
        debit = parse_record(Note, {**credit_note_data, "kind": "debit"})

        assert credit.signed_amount == Decimal("-500")
        assert debit.signed_amount == Decimal("500")
        assert credit.is_associated

    def test_kind_from_voucher_type(self, credit_note_data):
        data = {k: v for k, v in credit_note_data.items() if k != "kind"}

        assert parse_record(Note, data).kind == NoteKind.CREDIT

    def test_currency_required(self, credit_note_data):
        data = {k: v for k, v in credit_note_data.items() if k != "currency"}

        with pytest.raises(ValidationError):
            parse_record(Note, data)

    def test_unknown_voucher_type(self, credit_note_data):
        data = {k: v for k, v in credit_note_data.items() if k != "kind"}

        with pytest.raises(ValidationError):
            parse_record(Note, {**data, "type": "FCA"})


class TestParseEvent:

    def test_note_vs_collection(self, collection_data, credit_note_data):
        assert isinstance(parse_event(collection_data), Collection)
        assert isinstance(parse_event(credit_note_data), Note)

    def test_error_carries_field(self, collection_data):
        with pytest.raises(ValidationError) as exc_info:
            parse_event({**collection_data, "currency": "BRL"})

        assert exc_info.value.details["field"] == "currency"
