"""
Goldbook — Data Model & Database Layer.
Accounts are numbered per type. Vouchers carry gold (mg) and KWD (fils)
as integers; signs are never stored, the ledger engine assigns them.
"""
import sqlite3, os
from datetime import datetime, date
from contextlib import contextmanager

import ledger

class NotFound(LookupError):
    """An account or voucher id that does not exist."""

DB_PATH = None
def get_db_path(): return DB_PATH
def set_db_path(path):
    global DB_PATH
    DB_PATH = path

@contextmanager
def get_db():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

def init_db(path):
    set_db_path(path)
    with get_db() as db:
        db.executescript(SCHEMA)
    _ensure_columns()

def _ensure_columns():
    """Add columns that may be missing from older database files."""
    with get_db() as db:
        cols = {r[1] for r in db.execute("PRAGMA table_info(vouchers)").fetchall()}
        if 'cashed_date' not in cols:
            db.execute("ALTER TABLE vouchers ADD COLUMN cashed_date TEXT")

SCHEMA = """
CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT);

CREATE TABLE IF NOT EXISTS accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_no INTEGER NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL
        CHECK(type IN ('Market','Casting','Faceting','Project','Gold Fixing')),
    phone TEXT DEFAULT '',
    civil_id TEXT DEFAULT '',
    is_active INTEGER DEFAULT 1,
    created_at TEXT DEFAULT (datetime('now')),
    UNIQUE(type, account_no)
);

CREATE TABLE IF NOT EXISTS vouchers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    vt TEXT NOT NULL CHECK(vt IN ('INV','REC','GFV')),
    account_id INTEGER NOT NULL REFERENCES accounts(id),
    mvn TEXT,
    description TEXT,
    quantity INTEGER,
    gold INTEGER NOT NULL DEFAULT 0,
    kwd INTEGER NOT NULL DEFAULT 0,
    gold_rate INTEGER,
    fixing_amount INTEGER,
    payment_method TEXT DEFAULT 'cash' CHECK(payment_method IN ('cash','cheque')),
    bank_name TEXT,
    branch TEXT,
    cheque_no TEXT,
    cheque_date TEXT,
    cheque_amount INTEGER,
    cashed_date TEXT,
    created_at TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_vouchers_date ON vouchers(date);
CREATE INDEX IF NOT EXISTS idx_vouchers_acct ON vouchers(account_id);
"""

# ─── Meta ──────────────────────────────────────────────────────────
def get_meta(key, default=''):
    with get_db() as db:
        row = db.execute("SELECT value FROM meta WHERE key=?", (key,)).fetchone()
        return row['value'] if row else default

def set_meta(key, value):
    with get_db() as db:
        db.execute("INSERT OR REPLACE INTO meta(key,value) VALUES(?,?)", (key, value))

def create_books(path, company_name='My Workshop'):
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    init_db(path)
    set_meta('company_name', company_name)
    return path

# ─── Accounts ─────────────────────────────────────────────────────
def _check_type(account_type):
    if account_type not in ledger.ACCOUNT_TYPES:
        raise ValueError(f"Unknown account type '{account_type}'. "
                         f"Use one of: {', '.join(ledger.ACCOUNT_TYPES)}")

def get_account(account_id):
    with get_db() as db:
        return db.execute("SELECT * FROM accounts WHERE id=?", (account_id,)).fetchone()

def get_account_by_no(account_type, account_no):
    with get_db() as db:
        return db.execute("SELECT * FROM accounts WHERE type=? AND account_no=?",
            (account_type, account_no)).fetchone()

def get_accounts(account_type=None, active_only=False):
    with get_db() as db:
        sql = "SELECT * FROM accounts WHERE 1=1"
        params = []
        if account_type: sql += " AND type=?"; params.append(account_type)
        if active_only: sql += " AND is_active=1"
        sql += " ORDER BY type, account_no"
        return db.execute(sql, params).fetchall()

def add_account(name, account_type, phone='', civil_id=''):
    """Create an account. account_no is the next free number within its type."""
    name = (name or '').strip()
    if not name:
        raise ValueError("Name and type are required")
    _check_type(account_type)
    with get_db() as db:
        row = db.execute("SELECT MAX(account_no) as mx FROM accounts WHERE type=?",
            (account_type,)).fetchone()
        next_no = (row['mx'] or 0) + 1
        cur = db.execute(
            "INSERT INTO accounts(account_no, name, type, phone, civil_id) VALUES(?,?,?,?,?)",
            (next_no, name, account_type, phone or '', civil_id or ''))
        return cur.lastrowid

def search_accounts(query):
    with get_db() as db:
        q = f"%{query}%"
        return db.execute(
            "SELECT * FROM accounts WHERE name LIKE ? OR CAST(account_no AS TEXT) LIKE ? "
            "OR phone LIKE ? OR civil_id LIKE ? ORDER BY type, account_no",
            (q, q, q, q)).fetchall()

def update_account(account_id, name, phone=None, civil_id=None):
    """Only name, phone and CR / Civil ID are editable. Type and number are fixed."""
    name = (name or '').strip()
    if not name:
        raise ValueError("Name is required")
    with get_db() as db:
        if not db.execute("SELECT id FROM accounts WHERE id=?", (account_id,)).fetchone():
            raise NotFound(f"Account {account_id} not found")
        db.execute("UPDATE accounts SET name=? WHERE id=?", (name, account_id))
        if phone is not None:
            db.execute("UPDATE accounts SET phone=? WHERE id=?", (phone, account_id))
        if civil_id is not None:
            db.execute("UPDATE accounts SET civil_id=? WHERE id=?", (civil_id, account_id))

def set_account_active(account_id, active=True):
    with get_db() as db:
        cur = db.execute("UPDATE accounts SET is_active=? WHERE id=?",
            (1 if active else 0, account_id))
        if cur.rowcount == 0:
            raise NotFound(f"Account {account_id} not found")

def delete_account(account_id):
    """Delete an account. Refuses while vouchers still reference it."""
    with get_db() as db:
        if not db.execute("SELECT id FROM accounts WHERE id=?", (account_id,)).fetchone():
            raise NotFound(f"Account {account_id} not found")
        cnt = db.execute("SELECT COUNT(*) as cnt FROM vouchers WHERE account_id=?",
            (account_id,)).fetchone()['cnt']
        if cnt > 0:
            raise ValueError(f"Cannot delete: account has {cnt} voucher(s). Deactivate it instead.")
        db.execute("DELETE FROM accounts WHERE id=?", (account_id,))

# ─── Vouchers ─────────────────────────────────────────────────────
VOUCHER_COLUMNS = ('date', 'vt', 'account_id', 'mvn', 'description', 'quantity',
                   'gold', 'kwd', 'gold_rate', 'fixing_amount', 'payment_method',
                   'bank_name', 'branch', 'cheque_no', 'cheque_date', 'cheque_amount')

VOUCHER_SELECT = """
    SELECT v.*, a.account_no, a.name as account_name, a.type as account_type
    FROM vouchers v JOIN accounts a ON v.account_id = a.id"""

def allowed_voucher_types(account_type):
    if account_type == 'Gold Fixing':
        return ('INV', 'REC', 'GFV')
    return ('INV', 'REC')

def _text(data, key):
    val = data.get(key)
    if val is None:
        return ''
    return str(val).strip()

def _int_or_none(val):
    if val is None or val == '':
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid quantity '{val}'")

def parse_flag(val):
    """Checkbox-style flag: True/False, or '1', 'true', 'yes', 'on' (any case)."""
    if isinstance(val, str):
        return val.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(val)

def clean_voucher(account, data):
    """Validate voucher fields against the account and return DB columns.

    data holds amounts already in thousandths. Optional keys: fixing (bool,
    Market REC only), rate (Faceting / Casting REC pricing, not stored).
    """
    atype = account['type']
    date_str = normalize_date(_text(data, 'date'))
    vt = _text(data, 'vt').upper()
    if not date_str or not vt:
        raise ValueError("Missing required fields")
    if vt not in allowed_voucher_types(atype):
        raise ValueError(f"Voucher type {vt} is not allowed for {atype} accounts")

    mvn = _text(data, 'mvn')
    description = _text(data, 'description')
    if atype == 'Market' and not mvn:
        raise ValueError("MVN is required for Market accounts")
    if atype != 'Market' and not description:
        raise ValueError("Description is required for non-Market accounts")

    gold = data.get('gold') or 0
    kwd = data.get('kwd') or 0
    if gold < 0 or kwd < 0:
        raise ValueError("Gold and KWD must be entered as positive amounts")
    quantity = _int_or_none(data.get('quantity'))
    gold_rate = data.get('gold_rate')
    rate = data.get('rate')
    fixing_amt = data.get('fixing_amount')
    fixing = atype == 'Market' and vt == 'REC' and (parse_flag(data.get('fixing')) or bool(fixing_amt))

    if vt == 'GFV':
        if not gold_rate or gold_rate <= 0:
            raise ValueError("Gold Rate is required and must be greater than 0 for GFV vouchers")
        if not kwd:
            kwd = ledger.multiply(gold, gold_rate)
    elif fixing:
        if not gold_rate or gold_rate <= 0:
            raise ValueError("Gold Rate is required when Gold Fixing is enabled")
        if not fixing_amt:
            fixing_amt = ledger.multiply(gold, gold_rate)
    else:
        gold_rate = None
    if not fixing:
        fixing_amt = None

    if vt == 'REC' and rate is not None and not kwd:
        if rate < 0:
            raise ValueError("Rate must be non-negative")
        if atype == 'Faceting':
            if not quantity or quantity <= 0:
                raise ValueError("Quantity is required and must be greater than 0 for Faceting REC vouchers")
            kwd = quantity * rate
        elif atype == 'Casting':
            if gold <= 0:
                raise ValueError("Gold is required and must be greater than 0 for Casting REC vouchers")
            kwd = ledger.multiply(gold, rate)

    method = _text(data, 'payment_method').lower() or 'cash'
    if method not in ('cash', 'cheque'):
        raise ValueError(f"Unknown payment method '{method}'")
    cheque = {'bank_name': None, 'branch': None, 'cheque_no': None,
              'cheque_date': None, 'cheque_amount': None}
    if method == 'cheque':
        cheque_date = normalize_date(_text(data, 'cheque_date'))
        if not (_text(data, 'bank_name') and _text(data, 'branch')
                and _text(data, 'cheque_no') and cheque_date):
            raise ValueError("All cheque details are required when payment method is cheque")
        cheque.update(bank_name=_text(data, 'bank_name'), branch=_text(data, 'branch'),
                      cheque_no=_text(data, 'cheque_no'), cheque_date=cheque_date)
        amt = data.get('cheque_amount')
        cheque['cheque_amount'] = amt if amt else (fixing_amt or kwd)

    row = {
        'date': date_str, 'vt': vt, 'account_id': account['id'],
        'mvn': mvn if atype == 'Market' else None,
        'description': description if atype != 'Market' else None,
        'quantity': quantity, 'gold': gold, 'kwd': kwd,
        'gold_rate': gold_rate, 'fixing_amount': fixing_amt,
        'payment_method': method,
    }
    row.update(cheque)
    return row

def _account_for(db, account_id):
    acct = db.execute("SELECT * FROM accounts WHERE id=?", (account_id,)).fetchone()
    if not acct:
        raise ValueError("Account not found")
    return acct

def _insert_voucher(db, row):
    cols = ', '.join(VOUCHER_COLUMNS)
    marks = ','.join('?' * len(VOUCHER_COLUMNS))
    cur = db.execute(f"INSERT INTO vouchers({cols}) VALUES({marks})",
        [row[c] for c in VOUCHER_COLUMNS])
    return cur.lastrowid

def add_voucher(data):
    with get_db() as db:
        acct = _account_for(db, data.get('account_id'))
        return _insert_voucher(db, clean_voucher(acct, data))

def add_vouchers(batch):
    """Insert many vouchers in one transaction. Any invalid voucher aborts all."""
    if not isinstance(batch, (list, tuple)):
        raise ValueError("Expected a list of vouchers")
    ids = []
    with get_db() as db:
        for i, data in enumerate(batch, start=1):
            try:
                acct = _account_for(db, data.get('account_id'))
                ids.append(_insert_voucher(db, clean_voucher(acct, data)))
            except ValueError as e:
                raise ValueError(f"Voucher {i}: {e}")
    return ids

def update_voucher(voucher_id, data):
    with get_db() as db:
        if not db.execute("SELECT id FROM vouchers WHERE id=?", (voucher_id,)).fetchone():
            raise NotFound(f"Voucher {voucher_id} not found")
        acct = _account_for(db, data.get('account_id'))
        row = clean_voucher(acct, data)
        sets = ', '.join(f'{c}=?' for c in VOUCHER_COLUMNS)
        db.execute(f"UPDATE vouchers SET {sets}, "
            "cashed_date=CASE WHEN ?='cheque' THEN NULL ELSE cashed_date END WHERE id=?",
            [row[c] for c in VOUCHER_COLUMNS] + [row['payment_method'], voucher_id])

def delete_voucher(voucher_id):
    with get_db() as db:
        cur = db.execute("DELETE FROM vouchers WHERE id=?", (voucher_id,))
        if cur.rowcount == 0:
            raise NotFound(f"Voucher {voucher_id} not found")

def get_voucher(voucher_id):
    with get_db() as db:
        row = db.execute(VOUCHER_SELECT + " WHERE v.id=?", (voucher_id,)).fetchone()
        return dict(row) if row else None

def list_vouchers(account_id=None, account_type=None, query='', limit=None):
    """All vouchers, newest first."""
    sql = VOUCHER_SELECT + " WHERE 1=1"
    params = []
    if account_id: sql += " AND v.account_id=?"; params.append(account_id)
    if account_type: sql += " AND a.type=?"; params.append(account_type)
    if query:
        q = f"%{query}%"
        sql += " AND (v.mvn LIKE ? OR v.description LIKE ? OR a.name LIKE ? OR v.cheque_no LIKE ?)"
        params += [q, q, q, q]
    sql += " ORDER BY v.date DESC, v.id DESC"
    if limit: sql += " LIMIT ?"; params.append(limit)
    with get_db() as db:
        return [dict(r) for r in db.execute(sql, params).fetchall()]

# ─── Ledger Queries ───────────────────────────────────────────────
# Each scope is a WHERE fragment; history before the period is re-queried
# for the opening balance and the engine runs twice (ledger.range_ledger).
def _scoped_vouchers(where, params, date_from=None, date_to=None, before=None):
    sql = VOUCHER_SELECT + " WHERE " + where
    params = list(params)
    if before:
        sql += " AND v.date < ?"; params.append(before)
    else:
        if date_from: sql += " AND v.date >= ?"; params.append(date_from)
        if date_to: sql += " AND v.date <= ?"; params.append(date_to)
    sql += " ORDER BY v.date, v.id"
    with get_db() as db:
        return [dict(r) for r in db.execute(sql, params).fetchall()]

def _scoped_ledger(where, params, date_from, date_to, rule):
    before = _scoped_vouchers(where, params, before=date_from) if date_from else []
    within = _scoped_vouchers(where, params, date_from, date_to)
    return ledger.range_ledger(before, within, rule)

def scope_vouchers(scope, key=None):
    """Full ordered history of one ledger scope (no date filter)."""
    where, params = _scope_where(scope, key)
    return _scoped_vouchers(where, params)

def _scope_where(scope, key=None):
    if scope == 'account':
        return "v.account_id = ?", [key]
    if scope == 'type':
        return "a.type = ? AND a.is_active = 1", [key]
    if scope == 'locker':
        return "v.vt IN ('INV','REC')", []
    if scope == 'open':
        return ("((v.vt = 'REC' AND a.type = 'Market' AND v.gold_rate IS NOT NULL) "
                "OR v.vt = 'GFV')"), []
    raise ValueError(f"Unknown ledger scope: {scope}")

def account_ledger(account_id, date_from=None, date_to=None):
    where, params = _scope_where('account', account_id)
    return _scoped_ledger(where, params, date_from, date_to, ledger.account_rule)

def type_ledger(account_type, date_from=None, date_to=None):
    _check_type(account_type)
    where, params = _scope_where('type', account_type)
    return _scoped_ledger(where, params, date_from, date_to, ledger.account_rule)

def locker_ledger(date_from=None, date_to=None):
    where, params = _scope_where('locker')
    return _scoped_ledger(where, params, date_from, date_to, ledger.account_rule)

def open_balance_ledger(date_from=None, date_to=None):
    where, params = _scope_where('open')
    return _scoped_ledger(where, params, date_from, date_to, ledger.open_balance_rule)

# ─── Balances ─────────────────────────────────────────────────────
def account_balances(account_type):
    """Closing balance per active account of one type, plus type totals."""
    _check_type(account_type)
    vouchers = _scoped_vouchers(*_scope_where('type', account_type))
    by_account = {}
    for v in vouchers:
        by_account.setdefault(v['account_id'], []).append(v)
    rows, total_gold, total_kwd, total_txns = [], 0, 0, 0
    for acct in get_accounts(account_type, active_only=True):
        own = by_account.get(acct['id'], [])
        closing = ledger.compute_ledger(own).closing
        rows.append({'id': acct['id'], 'account_no': acct['account_no'], 'name': acct['name'],
            'type': acct['type'], 'phone': acct['phone'] or '', 'civil_id': acct['civil_id'] or '',
            'gold_balance': closing.gold, 'kwd_balance': closing.kwd,
            'transaction_count': len(own)})
        total_gold += closing.gold
        total_kwd += closing.kwd
        total_txns += len(own)
    return {'account_type': account_type, 'accounts': rows,
            'total_gold': total_gold, 'total_kwd': total_kwd,
            'total_accounts': len(rows), 'total_transactions': total_txns}

def type_summary():
    summaries = [account_balances(t) for t in ledger.ACCOUNT_TYPES]
    return {
        'types': summaries,
        'overall_gold': sum(s['total_gold'] for s in summaries),
        'overall_kwd': sum(s['total_kwd'] for s in summaries),
        'total_accounts': sum(s['total_accounts'] for s in summaries),
        'total_transactions': sum(s['total_transactions'] for s in summaries),
    }

# ─── Cheques ──────────────────────────────────────────────────────
CHEQUE_SORTS = {
    'cheque_date': (lambda c: c['cheque_date'] or c['date'], False),
    'cheque_date_desc': (lambda c: c['cheque_date'] or c['date'], True),
    'amount': (lambda c: c['cheque_amount'] or 0, False),
    'amount_desc': (lambda c: c['cheque_amount'] or 0, True),
    'bank': (lambda c: c['bank_name'] or '', False),
    'account': (lambda c: (c['account_type'], c['account_no']), False),
}

def _days_between(a, b):
    return (datetime.strptime(b[:10], '%Y-%m-%d') - datetime.strptime(a[:10], '%Y-%m-%d')).days

def cheque_status(cheque, today=None):
    """Cashed cheques report days-to-cash; outstanding ones report age and
    whether a day has passed since the cheque date."""
    today = today or date.today().isoformat()
    cheque_day = cheque['cheque_date'] or cheque['date']
    since = _days_between(cheque_day, today)
    if cheque['payment_method'] == 'cash' and cheque['cashed_date']:
        return {'status': 'cashed', 'days': _days_between(cheque_day, cheque['cashed_date']),
                'days_since': since, 'can_be_cashed': False}
    return {'status': 'outstanding', 'days': since, 'days_since': since,
            'can_be_cashed': since >= 1}

def get_cheques(status='all', bank='', search='', sort='cheque_date', today=None):
    with get_db() as db:
        rows = db.execute(VOUCHER_SELECT +
            " WHERE v.payment_method = 'cheque' OR (v.payment_method = 'cash' AND v.cheque_no IS NOT NULL)"
            " ORDER BY v.cheque_date, v.id").fetchall()
    s = (search or '').lower()
    result = []
    for r in rows:
        c = dict(r)
        c.update(cheque_status(c, today))
        if status not in ('all', '', None) and c['status'] != status:
            continue
        if bank and c['bank_name'] != bank:
            continue
        if s and not (s in (c['bank_name'] or '').lower() or s in (c['cheque_no'] or '').lower()
                      or s in c['account_name'].lower() or s in str(c['account_no'])):
            continue
        result.append(c)
    if sort not in CHEQUE_SORTS:
        raise ValueError(f"Unknown sort '{sort}'")
    key, reverse = CHEQUE_SORTS[sort]
    result.sort(key=key, reverse=reverse)
    return result

def cheque_banks():
    with get_db() as db:
        rows = db.execute("SELECT DISTINCT bank_name FROM vouchers "
            "WHERE bank_name IS NOT NULL AND bank_name != '' ORDER BY bank_name").fetchall()
        return [r['bank_name'] for r in rows]

def cash_cheque(voucher_id, cashed_date=None):
    """Mark a cheque as cashed. The receipt becomes cash, so it now counts in the locker."""
    cashed = normalize_date(cashed_date) if cashed_date else date.today().isoformat()
    if not cashed:
        raise ValueError(f"Bad cashed date '{cashed_date}'")
    with get_db() as db:
        row = db.execute("SELECT payment_method, cheque_no, cashed_date FROM vouchers WHERE id=?",
            (voucher_id,)).fetchone()
        if not row:
            raise NotFound(f"Voucher {voucher_id} not found")
        if row['payment_method'] != 'cheque':
            if row['cashed_date']:
                raise ValueError(f"Cheque already cashed on {row['cashed_date']}")
            raise ValueError("Voucher was not paid by cheque")
        db.execute("UPDATE vouchers SET payment_method='cash', cashed_date=? WHERE id=?",
            (cashed, voucher_id))
    return get_voucher(voucher_id)

# ─── Batch Import ─────────────────────────────────────────────────
IMPORT_HEADER = ['date', 'account_type', 'account_no', 'vt', 'mvn', 'description',
                 'gold', 'kwd', 'gold_rate', 'payment_method',
                 'bank_name', 'branch', 'cheque_no', 'cheque_date']
IMPORT_TEXT_FIELDS = ('date', 'vt', 'mvn', 'description', 'quantity', 'payment_method',
                      'bank_name', 'branch', 'cheque_no', 'cheque_date')
IMPORT_AMOUNT_FIELDS = ('gold', 'kwd', 'gold_rate', 'rate', 'fixing_amount', 'cheque_amount')

def read_rows(fileobj, filename):
    """Read a CSV or XLSX upload into a list of lists of strings."""
    import csv, io
    fname = filename.lower()
    if fname.endswith('.xlsx'):
        import openpyxl, zipfile
        from openpyxl.utils.exceptions import InvalidFileException
        try:
            wb = openpyxl.load_workbook(fileobj, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            raise ValueError(f"Cannot read {filename}: {e}")
        ws = wb.active
        rows = []
        for row in ws.iter_rows(values_only=True):
            cells = []
            for v in row:
                if v is None:
                    cells.append('')
                elif isinstance(v, (datetime, date)):
                    cells.append(v.strftime('%Y-%m-%d'))
                else:
                    cells.append(str(v))
            rows.append(cells)
        return rows
    raw = fileobj.read()
    if isinstance(raw, str):
        content = raw
    else:
        for enc in ['utf-8-sig', 'utf-8', 'latin-1', 'cp1252']:
            try:
                content = raw.decode(enc)
                break
            except UnicodeDecodeError:
                continue
        else:
            content = raw.decode('utf-8', errors='replace')
    return [row for row in csv.reader(io.StringIO(content))]

def import_voucher_rows(rows):
    """Post vouchers row by row. Columns follow IMPORT_HEADER; a header row is optional.

    Returns dict with: rows_processed, posted, skipped, errors (first 20).
    """
    if rows and rows[0] and rows[0][0].strip().lower() == 'date':
        header = [h.strip().lower() for h in rows[0]]
        rows = rows[1:]
    else:
        header = IMPORT_HEADER
    posted, skipped, errors = 0, 0, []
    for row_num, row in enumerate(rows, start=1):
        if not any(c.strip() for c in row):
            continue
        rec = {h: (row[i].strip() if i < len(row) else '') for i, h in enumerate(header)}
        try:
            acct = get_account_by_no(rec.get('account_type', ''), int(rec.get('account_no') or 0))
            if not acct:
                raise ValueError(f"Account {rec.get('account_type')} #{rec.get('account_no')} not found")
            data = {k: rec[k] for k in IMPORT_TEXT_FIELDS if rec.get(k)}
            data['account_id'] = acct['id']
            for k in IMPORT_AMOUNT_FIELDS:
                if rec.get(k):
                    data[k] = parse_amount(rec[k])
            data['gold'] = data.get('gold', 0)
            data['kwd'] = data.get('kwd', 0)
            data['fixing'] = parse_flag(rec.get('fixing', ''))
            if data.get('gold_rate') and acct['type'] == 'Market' and rec.get('vt', '').upper() == 'REC':
                data['fixing'] = True
            add_voucher(data)
            posted += 1
        except ValueError as e:
            errors.append({'row': row_num, 'reason': str(e)})
            skipped += 1
    result = {'rows_processed': len(rows), 'posted': posted, 'skipped': skipped}
    if errors:
        result['errors'] = errors[:20]
    return result

# ─── Formatting ───────────────────────────────────────────────────
def fmt_weight(milli):
    """Thousandths as a 3-decimal string: 1234567 -> '1,234.567'."""
    neg = milli < 0; m = abs(milli)
    s = f"{m // 1000:,}.{m % 1000:03d}"
    return f"-{s}" if neg else s

def fmt_balance(milli, unit=''):
    """Balances read Cr when >= 0, Db when negative."""
    suffix = 'Cr' if milli >= 0 else 'Db'
    s = fmt_weight(abs(milli))
    return f"{s} {unit} {suffix}" if unit else f"{s} {suffix}"

def parse_amount(s):
    """Parse '1,234.5', '(2)', '-2', '40' into thousandths. Blank is 0."""
    s = str(s).strip().replace(',', '')
    neg = False
    if s.startswith('(') and s.endswith(')'): neg = True; s = s[1:-1]
    if s.startswith('-'): neg = True; s = s[1:]
    s = s.strip()
    if not s: return 0
    if '.' in s:
        whole, frac = s.split('.', 1)
        if not (whole or '0').isdigit() or (frac and not frac.isdigit()):
            raise ValueError(f"Invalid amount '{s}'")
        frac = frac[:3].ljust(3, '0')
        milli = int(whole or '0') * 1000 + int(frac)
    else:
        if not s.isdigit():
            raise ValueError(f"Invalid amount '{s}'")
        milli = int(s) * 1000
    return -milli if neg else milli

def normalize_date(s):
    """Normalize a date string to YYYY-MM-DD."""
    s = (s or '').strip()
    if not s: return None
    if len(s) >= 10 and s[4] == '-' and s[7] == '-':
        try: return datetime.strptime(s[:10], '%Y-%m-%d').strftime('%Y-%m-%d')
        except ValueError: return None
    for fmt_str in ('%d/%m/%Y', '%Y/%m/%d', '%d-%m-%Y', '%b %d, %Y', '%d %b %Y',
                    '%B %d, %Y', '%d/%m/%y'):
        try: return datetime.strptime(s, fmt_str).strftime('%Y-%m-%d')
        except ValueError: continue
    return None
