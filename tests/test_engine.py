import random
from decimal import Decimal

from garagebook.engine import (
    MonthBucket,
    Totals,
    compute_totals,
    expense_amount,
    format_currency,
    group_by_month,
    invoice_amount,
    merge_monthly_series,
    month_key,
    month_label,
    monthly_chart,
    revenue_expense_split,
)
from garagebook.models import Expense, Invoice


def test_totals_of_empty_ledger_are_zero():
    totals = compute_totals([], [])

    assert totals == Totals()
    assert totals.revenue == 0
    assert totals.paid_to_date == 0
    assert totals.outstanding_receivable == 0
    assert totals.total_expenses == 0
    assert totals.net_profit == 0


def test_single_invoice_total_and_balance():
    invoice = Invoice(
        id="a",
        date="2024-03-01",
        customer="Ahmad",
        service_cost=Decimal("100"),
        parts_cost=Decimal("50"),
        paid=Decimal("80"),
    )

    assert invoice.total == Decimal("150")
    assert invoice.balance == Decimal("70")

    totals = compute_totals([invoice], [])
    assert totals.revenue == Decimal("150")
    assert totals.paid_to_date == Decimal("80")
    assert totals.outstanding_receivable == Decimal("70")


def test_scenario_totals(scenario_invoices, scenario_expenses):
    totals = compute_totals(scenario_invoices, scenario_expenses)

    assert totals.revenue == Decimal("70")
    assert totals.paid_to_date == Decimal("50")
    assert totals.outstanding_receivable == Decimal("20")
    assert totals.total_expenses == Decimal("30")
    assert totals.net_profit == Decimal("40")


def test_net_profit_ignores_uncollected_revenue():
    unpaid = Invoice(id="a", date="2024-01-01", customer="x", service_cost=Decimal("100"))
    rent = Expense(id="e", date="2024-01-02", category="Rent", amount=Decimal("30"))

    totals = compute_totals([unpaid], [rent])

    assert totals.paid_to_date == 0
    assert totals.net_profit == Decimal("70")


def test_overpayment_gives_negative_receivable():
    invoice = Invoice(id="a", date="2024-01-01", customer="x", service_cost=Decimal("10"), paid=Decimal("25"))

    assert invoice.balance == Decimal("-15")
    assert compute_totals([invoice], []).outstanding_receivable == Decimal("-15")


def test_blank_amounts_count_as_zero():
    invoice = Invoice.from_dict({"id": "a", "date": "2024-01-01", "serviceCost": "", "partsCost": None, "paid": "abc"})
    expense = Expense.from_dict({"id": "e", "date": "2024-01-01", "category": "Parts", "amount": "  "})

    totals = compute_totals([invoice], [expense])

    assert totals == Totals()


def test_decimal_arithmetic_is_exact():
    invoices = [
        Invoice(id=str(i), date="2024-01-01", customer="x", service_cost=Decimal("0.1"), parts_cost=Decimal("0.2"))
        for i in range(3)
    ]

    assert compute_totals(invoices, []).revenue == Decimal("0.9")


def test_month_key_and_label():
    assert month_key("2024-01-15") == "2024-01"
    assert month_key("2024-12-31T23:00:00Z") == "2024-12"
    assert month_key("") == ""
    assert month_key("not a date") == ""
    assert month_label("2024-01") == "يناير 2024"
    assert month_label("2023-12") == "ديسمبر 2023"
    assert month_label("") == ""


def test_group_by_month_scenario(scenario_invoices):
    buckets = group_by_month(scenario_invoices, invoice_amount)

    assert [(bucket.key, bucket.value) for bucket in buckets] == [
        ("2024-01", Decimal("50")),
        ("2024-02", Decimal("20")),
    ]
    assert buckets[0].label == "يناير 2024"


def test_group_by_month_sums_within_bucket_and_sorts():
    expenses = [
        Expense(id="1", date="2024-03-05", category="Rent", amount=Decimal("10")),
        Expense(id="2", date="2023-11-30", category="Power", amount=Decimal("5")),
        Expense(id="3", date="2024-03-28", category="Rent", amount=Decimal("7.5")),
    ]

    buckets = group_by_month(expenses, expense_amount)

    assert [bucket.key for bucket in buckets] == ["2023-11", "2024-03"]
    assert buckets[1].value == Decimal("17.5")


def test_group_by_month_is_order_independent(scenario_invoices):
    invoices = scenario_invoices + [
        Invoice(id="x", date="2023-07-09", customer="x", service_cost=Decimal("12")),
        Invoice(id="y", date="2024-01-02", customer="y", parts_cost=Decimal("3")),
        Invoice(id="z", date="", customer="z", service_cost=Decimal("1")),
    ]
    expected = group_by_month(invoices, invoice_amount)

    rng = random.Random(7)
    for _ in range(5):
        shuffled = list(invoices)
        rng.shuffle(shuffled)
        assert group_by_month(shuffled, invoice_amount) == expected


def test_undated_records_fall_into_leading_empty_bucket():
    expenses = [
        Expense(id="1", date="2024-02-01", category="Rent", amount=Decimal("10")),
        Expense(id="2", date="", category="Tea", amount=Decimal("1")),
        Expense(id="3", date="yesterday", category="Tea", amount=Decimal("2")),
    ]

    buckets = group_by_month(expenses, expense_amount)

    assert buckets[0] == MonthBucket(key="", label="", value=Decimal("3"))
    assert buckets[1].key == "2024-02"


def test_merge_scenario(scenario_invoices, scenario_expenses):
    rows = merge_monthly_series(
        group_by_month(scenario_invoices, invoice_amount),
        group_by_month(scenario_expenses, expense_amount),
    )

    assert [(row.key, row.revenue, row.expense) for row in rows] == [
        ("2024-01", Decimal("50"), Decimal("30")),
        ("2024-02", Decimal("20"), Decimal("0")),
    ]
    assert rows == monthly_chart(scenario_invoices, scenario_expenses)


def test_merge_keeps_expense_only_months():
    revenue = [MonthBucket("2024-01", month_label("2024-01"), Decimal("50"))]
    spent = [MonthBucket("2024-03", month_label("2024-03"), Decimal("9"))]

    rows = merge_monthly_series(revenue, spent)

    assert [(row.key, row.revenue, row.expense) for row in rows] == [
        ("2024-01", Decimal("50"), Decimal("0")),
        ("2024-03", Decimal("0"), Decimal("9")),
    ]
    assert rows[1].label == "مارس 2024"


def test_merge_length_equals_key_union():
    rng = random.Random(3)
    months = [f"2024-{month:02d}" for month in range(1, 13)] + [""]
    for _ in range(20):
        left = sorted(rng.sample(months, rng.randint(0, 6)))
        right = sorted(rng.sample(months, rng.randint(0, 6)))
        rows = merge_monthly_series(
            [MonthBucket(key, month_label(key), Decimal("1")) for key in left],
            [MonthBucket(key, month_label(key), Decimal("2")) for key in right],
        )
        keys = [row.key for row in rows]
        assert len(rows) == len(set(left) | set(right))
        assert keys == sorted(set(keys))


def test_revenue_expense_split(scenario_invoices, scenario_expenses):
    totals = compute_totals(scenario_invoices, scenario_expenses)

    assert [value for _, value in revenue_expense_split(totals)] == [Decimal("70"), Decimal("30")]


def test_format_currency():
    assert format_currency(Decimal("1234.5")) == "JOD 1,234.500"
    assert format_currency("") == "JOD 0.000"
    assert format_currency(Decimal("-15")) == "JOD -15.000"


def test_totals_to_dict_uses_document_keys(scenario_invoices, scenario_expenses):
    data = compute_totals(scenario_invoices, scenario_expenses).to_dict()

    assert set(data) == {"revenue", "paidToDate", "outstandingReceivable", "totalExpenses", "netProfit"}
    assert Decimal(data["netProfit"]) == Decimal("40")


def test_format_currency_beyond_default_precision():
    assert format_currency(Decimal("1e30")) == "JOD 1,000,000,000,000,000,000,000,000,000,000.000"
    assert format_currency(Decimal("123456789012345678901234567.891")) == (
        "JOD 123,456,789,012,345,678,901,234,567.891"
    )


def test_absurd_amounts_are_read_as_zero():
    invoice = Invoice.from_dict(
        {"id": "x", "date": "2024-05-01", "customer": "Omar", "serviceCost": "9e999999", "partsCost": "9e999999"}
    )
    expense = Expense.from_dict({"id": "y", "date": "2024-05-02", "category": "Rent", "amount": "9e999999"})

    totals = compute_totals([invoice], [expense])
    rows = monthly_chart([invoice], [expense])

    assert totals == Totals()
    assert [(row.key, row.revenue, row.expense) for row in rows] == [("2024-05", Decimal("0"), Decimal("0"))]
