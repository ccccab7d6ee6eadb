import pytest

import ledger
from ledger import Balance, compute_ledger, sign_rule


def v(account_type, vt, gold=0, kwd=0, date="2025-01-01", **fields):
    return dict(account_type=account_type, vt=vt, gold=gold, kwd=kwd, date=date, **fields)


HISTORY = [
    v("Market", "INV", 10000, 2500, "2025-01-03", id=1),
    v("Casting", "INV", 7000, 0, "2025-01-05", id=2),
    v("Market", "REC", 4000, 1000, "2025-01-05", id=3, payment_method="cash"),
    v("Gold Fixing", "REC", 5000, 0, "2025-01-09", id=4),
    v("Casting", "REC", 6800, 350, "2025-01-12", id=5),
    v("Gold Fixing", "GFV", 3000, 57000, "2025-01-15", id=6, gold_rate=19000),
    v("Market", "REC", 2000, 0, "2025-01-20", id=7, gold_rate=20000, payment_method="cheque"),
    v("Market", "INV", 1500, 500, "2025-02-01", id=8),
]


def test_market_invoice_then_cash_receipt():
    led = compute_ledger([
        v("Market", "INV", gold=10000),
        v("Market", "REC", gold=4000, payment_method="cash"),
    ])
    assert [e.gold_balance for e in led.entries] == [10000, 6000]
    assert [e.locker_balance for e in led.entries] == [-10000, -6000]


def test_gold_fixing_counts_receipts_only():
    led = compute_ledger([v("Gold Fixing", "REC", gold=5000), v("Gold Fixing", "INV", gold=3000)])
    assert led.closing.gold == 5000
    assert led.entries[1].gold_debit == 0
    assert led.entries[1].gold_credit == 0


def test_fixing_amount_computed_from_rate():
    voucher = v("Market", "REC", gold=2000, gold_rate=20000)
    assert ledger.fixing_amount(voucher) == 40000


def test_fixing_amount_prefers_stored_value_and_degrades_to_zero():
    assert ledger.fixing_amount(v("Market", "REC", gold=2000, gold_rate=20000, fixing_amount=41000)) == 41000
    assert ledger.fixing_amount(v("Market", "REC", gold=2000)) == 0


@pytest.mark.parametrize("account_type", ledger.ACCOUNT_TYPES)
def test_gfv_never_moves_locker(account_type):
    led = compute_ledger([v(account_type, "GFV", gold=9000, kwd=100, gold_rate=11000)])
    assert led.entries[0].locker_change == 0
    assert led.closing.locker == 0


def test_market_cheque_receipt_adds_no_locker_gold():
    led = compute_ledger([v("Market", "REC", gold=8000, payment_method="cheque")])
    assert led.closing.locker == 0
    assert led.closing.gold == -8000


def test_workshop_locker_moves():
    led = compute_ledger([v("Faceting", "INV", gold=3000), v("Faceting", "REC", gold=2900)])
    assert [e.locker_change for e in led.entries] == [-3000, 2900]
    assert led.totals.locker_in == 2900
    assert led.totals.locker_out == 3000


def test_fold_splits_at_any_point():
    opening = Balance(1200, -300, 50)
    whole = compute_ledger(HISTORY, opening)
    for k in range(len(HISTORY) + 1):
        head = compute_ledger(HISTORY[:k], opening)
        tail = compute_ledger(HISTORY[k:], head.closing)
        assert tail.closing == whole.closing


def test_totals_net_to_balance_change():
    opening = Balance(500, 250, -75)
    led = compute_ledger(HISTORY, opening)
    t = led.totals
    assert t.gold_debit - t.gold_credit == led.closing.gold - opening.gold
    assert t.kwd_debit - t.kwd_credit == led.closing.kwd - opening.kwd
    assert t.locker_in - t.locker_out == led.closing.locker - opening.locker


def test_each_balance_is_previous_plus_delta():
    led = compute_ledger(HISTORY)
    prev = led.opening
    for e in led.entries:
        assert e.gold_balance == prev.gold + e.gold_debit - e.gold_credit
        assert e.kwd_balance == prev.kwd + e.kwd_debit - e.kwd_credit
        assert e.locker_balance == prev.locker + e.locker_change
        prev = ledger.balance_after(e)


@pytest.mark.parametrize("rule", [ledger.account_rule, ledger.open_balance_rule])
@pytest.mark.parametrize("start", [None, "2024-12-31", "2025-01-05", "2025-01-10", "2025-01-20", "2025-03-01"])
@pytest.mark.parametrize("end", [None, "2025-01-15"])
def test_slice_matches_requery(rule, start, end):
    before, within = ledger.split_period(HISTORY, start, end)
    requeried = ledger.range_ledger(before, within, rule)
    sliced = ledger.slice_ledger(HISTORY, start, end, rule)
    assert sliced.opening == requeried.opening
    assert sliced.closing == requeried.closing
    assert sliced.totals == requeried.totals
    assert sliced.entries == requeried.entries


def test_opening_is_zero_without_start_or_history():
    assert ledger.period_ledger(HISTORY, None, "2025-01-10").opening == ledger.ZERO
    assert ledger.period_ledger(HISTORY, "2024-01-01").opening == ledger.ZERO


def test_opening_from_history_before_start():
    led = ledger.period_ledger(HISTORY, "2025-01-09")
    # INV 10 + INV 7 - REC 4 on market/casting
    assert led.opening.gold == 13000
    assert led.entries[0].voucher_id == 4


def test_boundary_rows():
    led = ledger.period_ledger(HISTORY)
    kinds = lambda rows: [r.kind for r in rows if r.kind != "voucher"]
    assert kinds(ledger.with_boundaries(led)) == ["opening", "closing"]
    assert kinds(ledger.with_boundaries(led, "2025-01-01")) == ["opening"]
    assert kinds(ledger.with_boundaries(led, None, "2025-02-01")) == ["closing"]
    assert kinds(ledger.with_boundaries(led, "2025-01-01", "2025-02-01")) == ["opening", "closing"]


def test_boundary_rows_carry_balances_and_skip_totals():
    led = ledger.period_ledger(HISTORY, "2025-01-09", "2025-01-31")
    rows = ledger.with_boundaries(led, "2025-01-09", "2025-01-31", "Scope")
    assert rows[0].vt == "BAL"
    assert rows[0].gold_balance == led.opening.gold
    assert rows[-1].kwd_balance == led.closing.kwd
    assert rows[0].gold_debit == rows[0].gold_credit == 0
    assert ledger.sum_totals(rows) == led.totals


def test_sign_table():
    assert sign_rule("Market", "INV") == (1, 1, "kwd")
    assert sign_rule("Project", "REC") == (-1, -1, "kwd")
    assert sign_rule("Gold Fixing", "REC") == (1, 0, "kwd")
    assert sign_rule("Gold Fixing", "GFV") == (-1, -1, "kwd")
    assert sign_rule("Gold Fixing", "INV") == ledger.NO_CHANGE
    assert sign_rule("Casting", "GFV") == ledger.NO_CHANGE
    assert sign_rule("Market", "REC", fixing=True, scope="open") == (1, 1, "fixing")
    assert sign_rule("Market", "REC", fixing=False, scope="open") == ledger.NO_CHANGE
    assert sign_rule("Casting", "GFV", scope="open") == (-1, -1, "kwd")


def test_unknown_scope_rejected():
    with pytest.raises(ValueError):
        sign_rule("Market", "INV", scope="weekly")


def test_open_balance_ledger_rule():
    led = compute_ledger([
        v("Market", "REC", gold=2000, kwd=999, gold_rate=20000),
        v("Market", "INV", gold=5000, kwd=100),
        v("Gold Fixing", "GFV", gold=1500, kwd=30000, gold_rate=20000),
    ], rule=ledger.open_balance_rule)
    assert [e.gold_balance for e in led.entries] == [2000, 2000, 500]
    assert [e.kwd_balance for e in led.entries] == [40000, 40000, 10000]


def test_engine_keeps_input_order():
    out_of_order = [HISTORY[3], HISTORY[0]]
    led = compute_ledger(out_of_order)
    assert [e.voucher_id for e in led.entries] == [4, 1]


def test_missing_fields_count_as_zero():
    led = compute_ledger([{"account_type": "Market", "vt": "INV"}])
    assert led.closing == ledger.ZERO
    assert led.entries[0].description == "Transaction "


def test_describe():
    assert ledger.describe({"mvn": "MV-7"}) == "Voucher MV-7"
    assert ledger.describe({"mvn": "MV-7", "description": "rings"}) == "MV-7 - rings"
    assert ledger.describe({"quantity": 12, "description": "stones"}) == "12 - stones"
    assert ledger.describe({"id": 9}) == "Transaction 9"


def test_paginate():
    assert ledger.paginate(list(range(5)), 2) == [[0, 1], [2, 3], [4]]
    assert ledger.paginate([], 30) == [[]]
    with pytest.raises(ValueError):
        ledger.paginate([1], 0)


def test_opening_accepts_mapping_or_tuple():
    expected = compute_ledger(HISTORY, Balance(1200, -300, 50)).closing
    assert compute_ledger(HISTORY, {"gold": 1200, "kwd": -300, "locker": 50}).closing == expected
    assert compute_ledger(HISTORY, {"gold": 1200, "currency": -300, "locker": 50}).closing == expected
    assert compute_ledger(HISTORY, (1200, -300, 50)).closing == expected
    assert compute_ledger([], {"gold": 7}).opening == Balance(7, 0, 0)
