"""
Goldbook — Ledger Balance Engine.
Folds date-ordered vouchers into running gold / KWD / locker-gold balances.
Pure functions, no I/O. Amounts are integers: milligrams of gold, fils of KWD.
Vouchers are plain mappings (dicts) joined with their account's type.
"""
from collections import namedtuple

ACCOUNT_TYPES = ('Market', 'Casting', 'Faceting', 'Project', 'Gold Fixing')
WORKSHOP_TYPES = ('Casting', 'Faceting', 'Project')
VOUCHER_TYPES = ('INV', 'REC', 'GFV')

SignRule = namedtuple('SignRule', 'gold kwd amount_field')
Balance = namedtuple('Balance', 'gold kwd locker', defaults=(0, 0, 0))
Totals = namedtuple('Totals', 'gold_debit gold_credit kwd_debit kwd_credit locker_in locker_out',
                    defaults=(0, 0, 0, 0, 0, 0))
LedgerEntry = namedtuple('LedgerEntry', [
    'kind', 'date', 'voucher_id', 'vt', 'account_no', 'account_name', 'account_type',
    'description', 'gold_debit', 'gold_credit', 'gold_balance',
    'kwd_debit', 'kwd_credit', 'kwd_balance', 'locker_change', 'locker_balance'])
Ledger = namedtuple('Ledger', 'entries opening closing totals')

NO_CHANGE = SignRule(0, 0, 'kwd')
ZERO = Balance()

def as_balance(value):
    if not value:
        return ZERO
    if hasattr(value, 'keys'):
        return Balance(value.get('gold', 0), value.get('kwd', value.get('currency', 0)),
                       value.get('locker', 0))
    return Balance(*value)

# ─── Sign Table ───────────────────────────────────────────────────
_ACCOUNT_SCOPE = {
    ('Market', 'INV'): SignRule(1, 1, 'kwd'),
    ('Market', 'REC'): SignRule(-1, -1, 'kwd'),
    ('Gold Fixing', 'REC'): SignRule(1, 0, 'kwd'),
    ('Gold Fixing', 'GFV'): SignRule(-1, -1, 'kwd'),
}
for _t in WORKSHOP_TYPES:
    _ACCOUNT_SCOPE[(_t, 'INV')] = SignRule(1, 1, 'kwd')
    _ACCOUNT_SCOPE[(_t, 'REC')] = SignRule(-1, -1, 'kwd')


def sign_rule(account_type, voucher_type, fixing=False, scope='account'):
    """Which running balances a voucher moves, and in which direction.

    scope='account' is the per-account / per-type ledger; scope='open' is the
    gold-fixing open balance, where only fixed Market receipts and GFVs count.
    Combinations outside the table return NO_CHANGE.
    """
    if scope == 'open':
        if fixing and account_type == 'Market' and voucher_type == 'REC':
            return SignRule(1, 1, 'fixing')
        if voucher_type == 'GFV':
            return SignRule(-1, -1, 'kwd')
        return NO_CHANGE
    if scope != 'account':
        raise ValueError(f"Unknown ledger scope: {scope}")
    return _ACCOUNT_SCOPE.get((account_type, voucher_type), NO_CHANGE)


def is_gold_fixing(v):
    """A Market receipt with a gold rate is fixed into KWD."""
    return (v.get('account_type') == 'Market' and v.get('vt') == 'REC'
            and v.get('gold_rate') is not None)


def account_rule(v):
    return sign_rule(v.get('account_type'), v.get('vt'), is_gold_fixing(v), 'account')


def open_balance_rule(v):
    return sign_rule(v.get('account_type'), v.get('vt'), is_gold_fixing(v), 'open')


RULES = {'account': account_rule, 'open': open_balance_rule}


def multiply(milli, rate):
    """Thousandths times a per-unit rate in thousandths, rounded to thousandths."""
    if not milli or not rate:
        return 0
    return round(milli * rate / 1000)


def fixing_amount(v):
    stored = v.get('fixing_amount')
    if stored is not None:
        return stored
    return multiply(v.get('gold') or 0, v.get('gold_rate'))


def locker_change(v):
    """Gold moving in (+) or out (-) of the workshop locker. GFV never counts."""
    vt = v.get('vt')
    atype = v.get('account_type')
    gold = v.get('gold') or 0
    if vt == 'GFV':
        return 0
    if atype == 'Market':
        if vt == 'INV':
            return -gold
        if vt == 'REC':
            return 0 if v.get('payment_method') == 'cheque' else gold
    elif atype in WORKSHOP_TYPES:
        if vt == 'INV':
            return -gold
        if vt == 'REC':
            return gold
    elif atype == 'Gold Fixing':
        if vt == 'REC':
            return gold
    return 0


def describe(v):
    desc = v.get('description') or ''
    if v.get('quantity'):
        desc = f"{v['quantity']} - {desc}" if desc else str(v['quantity'])
    if v.get('mvn'):
        desc = f"{v['mvn']} - {desc}" if desc else f"Voucher {v['mvn']}"
    if not desc:
        desc = f"Transaction {v.get('id', '')}"
    return desc


# ─── Fold ─────────────────────────────────────────────────────────
def compute_ledger(vouchers, opening=None, rule=account_rule):
    """Running balances over vouchers in the order given.

    The caller sorts by date; the engine trusts the order. Returns
    Ledger(entries, opening, closing, totals) with one entry per voucher.
    opening may be a Balance, a (gold, kwd, locker) tuple or a mapping
    with gold, kwd (or currency) and locker keys.
    """
    opening = as_balance(opening)
    gold, kwd, locker = opening
    entries = []
    for v in vouchers:
        sr = rule(v)
        amount = fixing_amount(v) if sr.amount_field == 'fixing' else (v.get('kwd') or 0)
        d_gold = sr.gold * (v.get('gold') or 0)
        d_kwd = sr.kwd * amount
        d_locker = locker_change(v)
        gold += d_gold
        kwd += d_kwd
        locker += d_locker
        entries.append(LedgerEntry(
            'voucher', v.get('date') or '', v.get('id'), v.get('vt'),
            v.get('account_no'), v.get('account_name') or '', v.get('account_type') or '',
            describe(v),
            max(d_gold, 0), max(-d_gold, 0), gold,
            max(d_kwd, 0), max(-d_kwd, 0), kwd,
            d_locker, locker))
    return Ledger(entries, opening, Balance(gold, kwd, locker), sum_totals(entries))


def sum_totals(entries):
    """Period totals. Opening/closing boundary rows never count."""
    t = [0] * 6
    for e in entries:
        if e.kind != 'voucher':
            continue
        t[0] += e.gold_debit
        t[1] += e.gold_credit
        t[2] += e.kwd_debit
        t[3] += e.kwd_credit
        if e.locker_change > 0:
            t[4] += e.locker_change
        else:
            t[5] -= e.locker_change
    return Totals(*t)


def balance_after(entry):
    return Balance(entry.gold_balance, entry.kwd_balance, entry.locker_balance)


# ─── Periods ──────────────────────────────────────────────────────
def _day(d):
    return (d or '')[:10]


def in_period(date_str, start=None, end=None):
    d = _day(date_str)
    return (not start or d >= start) and (not end or d <= end)


def split_period(vouchers, start=None, end=None):
    """Partition into (before start, within [start, end]). Later vouchers are dropped."""
    before, within = [], []
    for v in vouchers:
        d = _day(v.get('date'))
        if start and d < start:
            before.append(v)
        elif in_period(d, start, end):
            within.append(v)
    return before, within


def range_ledger(before, within, rule=account_rule):
    """Opening from history before the period, then the period itself."""
    opening = compute_ledger(before, None, rule).closing if before else ZERO
    return compute_ledger(within, opening, rule)


def slice_ledger(vouchers, start=None, end=None, rule=account_rule):
    """Fold the full history once, then cut out [start, end].

    Opening is the balance after the last voucher strictly before start.
    """
    full = compute_ledger(vouchers, None, rule)
    opening = full.opening
    shown = []
    for e in full.entries:
        if start and _day(e.date) < start:
            opening = balance_after(e)
        elif in_period(e.date, start, end):
            shown.append(e)
    closing = balance_after(shown[-1]) if shown else opening
    return Ledger(shown, opening, closing, sum_totals(shown))


def period_ledger(vouchers, start=None, end=None, rule=account_rule):
    before, within = split_period(vouchers, start, end)
    return range_ledger(before, within, rule)


# ─── Boundary Rows ────────────────────────────────────────────────
def _boundary(kind, date_str, bal, label):
    desc = 'Opening Balance' if kind == 'opening' else 'Closing Balance'
    return LedgerEntry(kind, date_str, None, 'BAL', 0, label, '', desc,
                       0, 0, bal.gold, 0, 0, bal.kwd, 0, bal.locker)


def with_boundaries(ledger, start=None, end=None, label=''):
    """Entries framed by BAL rows.

    Opening row when a start is given (or no range at all), closing row when
    an end is given (or no range at all).
    """
    rows = []
    if start or not end:
        rows.append(_boundary('opening', start or '', ledger.opening, label))
    rows.extend(ledger.entries)
    if end or not start:
        rows.append(_boundary('closing', end or '', ledger.closing, label))
    return rows


def paginate(rows, per_page):
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    pages = [rows[i:i + per_page] for i in range(0, len(rows), per_page)]
    return pages or [[]]
