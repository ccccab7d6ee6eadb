"""
Goldbook — Workshop gold & KWD ledgers over HTTP.
JSON API plus PDF / CSV statement downloads.
"""
import os
import json
import logging
from flask import Flask, request, jsonify
import ledger
import models
import statements

app = Flask(__name__)
app.secret_key = os.environ.get('GOLDBOOK_SECRET_KEY', 'goldbook-local-use-only')

# ─── Config: which books file is open ───────────────────────────────

def get_config_path():
    """Config file lives next to the program."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), 'goldbook.json')

def load_config():
    path = get_config_path()
    if os.path.exists(path):
        with open(path, 'r') as f:
            return json.load(f)
    return {'last_opened': ''}

def save_config(cfg):
    with open(get_config_path(), 'w') as f:
        json.dump(cfg, f, indent=2)

def remember_books(path):
    cfg = load_config()
    cfg['last_opened'] = path or ''
    save_config(cfg)

# ─── Request plumbing ───────────────────────────────────────────────

OPEN_PATHS = ('/api/books',)

@app.before_request
def require_books():
    if request.path.startswith(OPEN_PATHS):
        return None
    if not models.get_db_path():
        return jsonify({'ok': False, 'error': 'No books open'}), 409

@app.errorhandler(ValueError)
def handle_value_error(e):
    return jsonify({'ok': False, 'error': str(e)}), 400

@app.errorhandler(models.NotFound)
def handle_missing(e):
    return jsonify({'ok': False, 'error': str(e)}), 404

@app.errorhandler(404)
def handle_not_found(e):
    return jsonify({'ok': False, 'error': 'Not found'}), 404

@app.errorhandler(Exception)
def handle_unexpected(e):
    from werkzeug.exceptions import HTTPException
    if isinstance(e, HTTPException):
        return jsonify({'ok': False, 'error': e.description}), e.code
    app.logger.exception('Unhandled error on %s %s', request.method, request.path)
    return jsonify({'ok': False, 'error': 'Internal server error'}), 500

def _payload():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    return data

def _dates():
    """from / to query args, normalized. Bad dates are rejected."""
    out = []
    for key in ('from', 'to'):
        raw = request.args.get(key, '').strip()
        if not raw:
            out.append(None)
            continue
        d = models.normalize_date(raw)
        if not d:
            raise ValueError(f"Invalid {key} date '{raw}'. Use yyyy-mm-dd")
        out.append(d)
    return out

def _milli(data, key):
    val = data.get(key)
    if val is None or val == '':
        return None
    if isinstance(val, bool):
        raise ValueError(f"Invalid {key}")
    if isinstance(val, int):
        return val * 1000
    if isinstance(val, float):
        return round(val * 1000)
    return models.parse_amount(val)

def voucher_input(data):
    """JSON voucher (decimal gold / KWD / rates) -> model input in thousandths."""
    out = dict(data)
    for key in ('gold', 'kwd', 'gold_rate', 'rate', 'fixing_amount', 'cheque_amount'):
        out[key] = _milli(data, key)
    out['gold'] = out['gold'] or 0
    out['kwd'] = out['kwd'] or 0
    out['fixing'] = models.parse_flag(data.get('fixing'))
    return out

def entry_json(e):
    return e._asdict()

def ledger_json(led, start=None, end=None, label=''):
    return {
        'ok': True,
        'from': start, 'to': end,
        'entries': [entry_json(e) for e in ledger.with_boundaries(led, start, end, label)],
        'opening': led.opening._asdict(),
        'closing': led.closing._asdict(),
        'totals': led.totals._asdict(),
    }

def download(body, filename, fmt):
    resp = app.make_response(body)
    if fmt == 'csv':
        resp.headers['Content-Type'] = 'text/csv'
        resp.headers['Content-Disposition'] = f'attachment; filename={filename}.csv'
    else:
        resp.headers['Content-Type'] = 'application/pdf'
        resp.headers['Content-Disposition'] = f'inline; filename={filename}.pdf'
    return resp

def _report_fmt():
    fmt = request.args.get('fmt', 'pdf')
    if fmt not in ('pdf', 'csv'):
        raise ValueError(f"Unknown format '{fmt}'. Use pdf or csv")
    return fmt

def _company():
    return models.get_meta('company_name', 'My Workshop')

# ─── Books ──────────────────────────────────────────────────────────

@app.route('/api/books')
def api_books():
    path = models.get_db_path()
    if not path:
        return jsonify({'ok': True, 'path': '', 'company_name': ''})
    return jsonify({'ok': True, 'path': path, 'company_name': _company()})

@app.route('/api/books/open', methods=['POST'])
def api_books_open():
    path = (_payload().get('path') or '').strip()
    if not path or not os.path.exists(path):
        return jsonify({'ok': False, 'error': 'File not found.'}), 404
    models.init_db(path)
    remember_books(path)
    app.logger.info('Opened books %s', path)
    return jsonify({'ok': True, 'path': path, 'company_name': _company()})

@app.route('/api/books/new', methods=['POST'])
def api_books_new():
    data = _payload()
    path = (data.get('path') or '').strip()
    name = (data.get('company_name') or '').strip() or 'My Workshop'
    if not path:
        return jsonify({'ok': False, 'error': 'Path is required'}), 400
    if os.path.exists(path):
        return jsonify({'ok': False, 'error': f'{path} already exists'}), 400
    models.create_books(path, name)
    remember_books(path)
    app.logger.info('Created books %s for %s', path, name)
    return jsonify({'ok': True, 'path': path, 'company_name': name}), 201

@app.route('/api/books/close', methods=['POST'])
def api_books_close():
    models.set_db_path(None)
    remember_books('')
    return jsonify({'ok': True})

# ─── Accounts ───────────────────────────────────────────────────────

def account_json(a):
    return dict(a)

@app.route('/api/accounts', methods=['GET', 'POST'])
def api_accounts():
    if request.method == 'POST':
        data = _payload()
        aid = models.add_account(data.get('name'), data.get('type'),
                                 data.get('phone', ''), data.get('civil_id', ''))
        return jsonify({'ok': True, 'account': account_json(models.get_account(aid))}), 201
    q = request.args.get('q', '').strip()
    if q:
        rows = models.search_accounts(q)
    else:
        rows = models.get_accounts(request.args.get('type') or None,
                                   active_only=request.args.get('active') == '1')
    return jsonify({'ok': True, 'accounts': [account_json(a) for a in rows]})

@app.route('/api/accounts/<int:account_id>', methods=['GET', 'PUT', 'DELETE'])
def api_account(account_id):
    if request.method == 'DELETE':
        models.delete_account(account_id)
        return jsonify({'ok': True})
    if request.method == 'PUT':
        data = _payload()
        models.update_account(account_id, data.get('name'), data.get('phone'), data.get('civil_id'))
    acct = models.get_account(account_id)
    if not acct:
        raise models.NotFound(f"Account {account_id} not found")
    return jsonify({'ok': True, 'account': account_json(acct)})

@app.route('/api/accounts/<int:account_id>/active', methods=['POST'])
def api_account_active(account_id):
    active = _payload().get('active', True)
    if isinstance(active, str):
        active = active.lower() in ('1', 'true', 'yes', 'on')
    models.set_account_active(account_id, bool(active))
    return jsonify({'ok': True, 'account': account_json(models.get_account(account_id))})

# ─── Vouchers ───────────────────────────────────────────────────────

@app.route('/api/vouchers', methods=['GET', 'POST'])
def api_vouchers():
    if request.method == 'POST':
        vid = models.add_voucher(voucher_input(_payload()))
        return jsonify({'ok': True, 'voucher': models.get_voucher(vid)}), 201
    rows = models.list_vouchers(
        account_id=request.args.get('account_id', type=int),
        account_type=request.args.get('type') or None,
        query=request.args.get('q', '').strip(),
        limit=request.args.get('limit', type=int))
    return jsonify({'ok': True, 'vouchers': rows})

@app.route('/api/vouchers/batch', methods=['POST'])
def api_vouchers_batch():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        data = data.get('vouchers')
    if not isinstance(data, list) or not data:
        raise ValueError("Expected a non-empty list of vouchers")
    ids = models.add_vouchers([voucher_input(v) for v in data])
    return jsonify({'ok': True, 'count': len(ids),
                    'vouchers': [models.get_voucher(i) for i in ids]}), 201

@app.route('/api/vouchers/import', methods=['POST'])
def api_vouchers_import():
    f = request.files.get('file')
    if not f or not f.filename:
        raise ValueError("No file uploaded")
    if not f.filename.lower().endswith(('.csv', '.xlsx')):
        raise ValueError("Upload a .csv or .xlsx file")
    rows = models.read_rows(f.stream, f.filename)
    result = models.import_voucher_rows(rows)
    app.logger.info('Imported %s: %d posted, %d skipped',
                    f.filename, result['posted'], result['skipped'])
    return jsonify(dict(result, ok=True))

@app.route('/api/vouchers/<int:voucher_id>', methods=['GET', 'PUT', 'DELETE'])
def api_voucher(voucher_id):
    if request.method == 'DELETE':
        models.delete_voucher(voucher_id)
        return jsonify({'ok': True})
    if request.method == 'PUT':
        models.update_voucher(voucher_id, voucher_input(_payload()))
    v = models.get_voucher(voucher_id)
    if not v:
        raise models.NotFound(f"Voucher {voucher_id} not found")
    return jsonify({'ok': True, 'voucher': v})

# ─── Ledgers ────────────────────────────────────────────────────────

def _account_or_404(account_id):
    acct = models.get_account(account_id)
    if not acct:
        raise models.NotFound(f"Account {account_id} not found")
    return acct

def _type_or_404(account_type):
    if account_type not in ledger.ACCOUNT_TYPES:
        raise models.NotFound(f"Unknown account type '{account_type}'")
    return account_type

@app.route('/api/ledger/account/<int:account_id>')
def api_account_ledger(account_id):
    acct = _account_or_404(account_id)
    start, end = _dates()
    led = models.account_ledger(account_id, start, end)
    return jsonify(dict(ledger_json(led, start, end, acct['name']), account=account_json(acct)))

@app.route('/api/ledger/type/<account_type>')
def api_type_ledger(account_type):
    _type_or_404(account_type)
    start, end = _dates()
    led = models.type_ledger(account_type, start, end)
    return jsonify(dict(ledger_json(led, start, end, account_type), account_type=account_type))

@app.route('/api/ledger/locker')
def api_locker_ledger():
    start, end = _dates()
    return jsonify(ledger_json(models.locker_ledger(start, end), start, end, 'Locker'))

@app.route('/api/ledger/open-balance')
def api_open_balance():
    start, end = _dates()
    return jsonify(ledger_json(models.open_balance_ledger(start, end), start, end, 'Open Balance'))

# ─── Balances ───────────────────────────────────────────────────────

@app.route('/api/balances/<account_type>')
def api_balances(account_type):
    _type_or_404(account_type)
    return jsonify(dict(models.account_balances(account_type), ok=True))

@app.route('/api/summary')
def api_summary():
    return jsonify(dict(models.type_summary(), ok=True))

# ─── Cheques ────────────────────────────────────────────────────────

@app.route('/api/cheques')
def api_cheques():
    cheques = models.get_cheques(
        status=request.args.get('status', 'all'),
        bank=request.args.get('bank', ''),
        search=request.args.get('q', ''),
        sort=request.args.get('sort', 'cheque_date'))
    outstanding = [c for c in cheques if c['status'] == 'outstanding']
    return jsonify({'ok': True, 'cheques': cheques, 'banks': models.cheque_banks(),
                    'outstanding_count': len(outstanding),
                    'outstanding_amount': sum(c['cheque_amount'] or 0 for c in outstanding)})

@app.route('/api/cheques/<int:voucher_id>/cash', methods=['PUT', 'POST'])
def api_cash_cheque(voucher_id):
    v = models.cash_cheque(voucher_id, _payload().get('cashed_date'))
    app.logger.info('Cheque on voucher %d cashed %s', voucher_id, v['cashed_date'])
    return jsonify({'ok': True, 'voucher': v})

# ─── Statements (PDF / CSV) ─────────────────────────────────────────

def _pdf(build, *args):
    try:
        return build(*args)
    except Exception:
        app.logger.exception('PDF generation failed')
        raise

@app.route('/reports/account/<int:account_id>')
def report_account(account_id):
    acct = _account_or_404(account_id)
    start, end = _dates()
    fmt = _report_fmt()
    led = models.account_ledger(account_id, start, end)
    name = f"{acct['type']}_{acct['account_no']}_statement".replace(' ', '_')
    if fmt == 'csv':
        return download(statements.ledger_csv(led, start, end, acct['name']), name, fmt)
    return download(_pdf(statements.account_statement_pdf, _company(), acct, led, start, end), name, fmt)

@app.route('/reports/type/<account_type>')
def report_type(account_type):
    _type_or_404(account_type)
    start, end = _dates()
    fmt = _report_fmt()
    led = models.type_ledger(account_type, start, end)
    name = f"{account_type}_ledger".replace(' ', '_')
    if fmt == 'csv':
        return download(statements.ledger_csv(led, start, end, account_type, with_account=True), name, fmt)
    return download(_pdf(statements.type_ledger_pdf, _company(), account_type, led, start, end), name, fmt)

@app.route('/reports/locker')
def report_locker():
    start, end = _dates()
    fmt = _report_fmt()
    led = models.locker_ledger(start, end)
    if fmt == 'csv':
        return download(statements.ledger_csv(led, start, end, 'Locker', locker=True), 'locker_gold', fmt)
    return download(_pdf(statements.locker_ledger_pdf, _company(), led, start, end), 'locker_gold', fmt)

@app.route('/reports/open-balance')
def report_open_balance():
    start, end = _dates()
    fmt = _report_fmt()
    led = models.open_balance_ledger(start, end)
    if fmt == 'csv':
        return download(statements.ledger_csv(led, start, end, 'Open Balance', with_account=True),
                        'open_balance', fmt)
    return download(_pdf(statements.open_balance_pdf, _company(), led, start, end), 'open_balance', fmt)

@app.route('/reports/balances/<account_type>')
def report_balances(account_type):
    _type_or_404(account_type)
    fmt = _report_fmt()
    bal = models.account_balances(account_type)
    name = f"{account_type}_balances".replace(' ', '_')
    if fmt == 'csv':
        return download(statements.balances_csv(bal), name, fmt)
    return download(_pdf(statements.balances_pdf, _company(), bal), name, fmt)

@app.route('/reports/summary')
def report_summary():
    fmt = _report_fmt()
    summary = models.type_summary()
    if fmt == 'csv':
        return download(statements.balances_csv(summary), 'type_summary', fmt)
    return download(_pdf(statements.type_summary_pdf, _company(), summary), 'type_summary', fmt)

# ─── Entry Point ────────────────────────────────────────────────────

def main():
    import webbrowser
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    cfg = load_config()
    last = os.environ.get('GOLDBOOK_DB') or cfg.get('last_opened', '')
    if last and os.path.exists(last):
        models.init_db(last)
        company = _company()
        print(f"\n  Goldbook — {company}")
        print(f"  File: {last}")
    else:
        print(f"\n  Goldbook")
        print(f"  No books open. POST /api/books/new or /api/books/open.")

    port = int(os.environ.get('GOLDBOOK_PORT', '5000'))
    print(f"  Open http://localhost:{port}/api/summary in your browser\n")
    webbrowser.open(f'http://localhost:{port}/api/summary')
    app.run(debug=False, port=port)

if __name__ == '__main__':
    main()
