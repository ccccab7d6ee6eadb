#!/usr/bin/env python3
"""
Goldbook CLI — Command line interface for workshop gold & KWD ledgers.
Calls models.py directly.

Usage:
    python cli.py                              # interactive mode
    python cli.py /path/to/books.db            # open specific books
    python cli.py /path/to/books.db summary    # one-shot: run command and exit
"""
import cmd
import sys
import os
import shlex

import ledger
import models
import statements

# ─── Formatting helpers ──────────────────────────────────────────

def fmt(milli):
    """Thousandths as 3 decimals. Zero prints as a dash."""
    if milli == 0:
        return '—'
    return models.fmt_weight(milli)

def bal(milli):
    return models.fmt_balance(milli)

def table(headers, rows, alignments=None):
    """Print a formatted text table. alignments: 'l' left, 'r' right per column."""
    if not rows:
        print("  (no data)")
        return

    ncols = len(headers)
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < ncols:
                widths[i] = max(widths[i], len(str(cell)))

    if not alignments:
        alignments = 'l' * ncols

    hdr = ''
    for i, h in enumerate(headers):
        hdr += str(h).rjust(widths[i]) if alignments[i] == 'r' else str(h).ljust(widths[i])
        if i < ncols - 1:
            hdr += '  '
    print(f"  {hdr}")
    print(f"  {'─' * len(hdr)}")

    for row in rows:
        line = ''
        for i in range(ncols):
            cell = str(row[i]) if i < len(row) else ''
            line += cell.rjust(widths[i]) if alignments[i] == 'r' else cell.ljust(widths[i])
            if i < ncols - 1:
                line += '  '
        print(f"  {line}")

TYPE_ALIASES = {t.lower().replace(' ', ''): t for t in ledger.ACCOUNT_TYPES}
TYPE_ALIASES['gf'] = 'Gold Fixing'
TYPE_ALIASES['fixing'] = 'Gold Fixing'

def resolve_type(s):
    t = TYPE_ALIASES.get((s or '').lower().replace(' ', '').replace('_', ''))
    if not t:
        print(f"  Unknown account type: '{s}'")
        print(f"  Types: {', '.join(ledger.ACCOUNT_TYPES)} (gf = Gold Fixing)")
    return t

def resolve_account(ref):
    """Resolve an account by id, by <type>:<number> (market:3), or by unique name match."""
    if not ref or not ref.strip():
        print("  No account specified.")
        print("  Use 'accounts' to list all accounts.")
        return None
    ref = ref.strip()
    if ref.isdigit():
        acct = models.get_account(int(ref))
        if acct:
            return acct
    if ':' in ref:
        type_part, _, no_part = ref.rpartition(':')
        atype = resolve_type(type_part)
        if not atype:
            return None
        if not no_part.isdigit():
            print(f"  Invalid account number: '{no_part}'")
            return None
        acct = models.get_account_by_no(atype, int(no_part))
        if not acct:
            print(f"  Account not found: {atype} #{no_part}")
        return acct
    results = models.search_accounts(ref)
    if len(results) == 1:
        return results[0]
    if len(results) > 1:
        print(f"  Ambiguous account '{ref}'. Matches:")
        for r in results[:10]:
            print(f"    {r['type']}:{r['account_no']:<5} {r['name']}")
        print("  Use <type>:<number>, e.g. market:3")
        return None
    print(f"  Account not found: '{ref}'")
    return None

def _split_args(s):
    """Split command arguments, respecting quoted strings."""
    try:
        return shlex.split(s)
    except ValueError:
        return s.split()

def _dates(parts):
    """Up to two trailing dates. Returns (from, to) or None after printing an error."""
    out = []
    for p in parts[:2]:
        d = models.normalize_date(p)
        if not d:
            print(f"  Invalid date: '{p}'")
            print("  Use YYYY-MM-DD format, e.g. 2025-01-01")
            return None
        out.append(d)
    while len(out) < 2:
        out.append(None)
    return out

def entry_rows(entries, with_account=False):
    rows = []
    for e in entries:
        row = [e.date, e.vt]
        if with_account:
            row.append(f'{e.account_type}:{e.account_no} {e.account_name}'[:24] if e.kind == 'voucher' else '')
        row += [e.description[:32], fmt(e.gold_debit), fmt(e.gold_credit), bal(e.gold_balance),
                fmt(e.kwd_debit), fmt(e.kwd_credit), bal(e.kwd_balance)]
        rows.append(row)
    return rows

# ─── CLI Shell ───────────────────────────────────────────────────

class GoldbookCLI(cmd.Cmd):
    intro = None  # We print our own banner
    prompt = 'Goldbook> '

    def __init__(self):
        super().__init__()
        self.db_path = None

    def set_books(self, path):
        """Open a books.db file."""
        if not os.path.exists(path):
            print(f"  File not found: {path}")
            return False
        models.init_db(path)
        self.db_path = path
        name = models.get_meta('company_name', os.path.basename(os.path.dirname(path)))
        self.prompt = f'Goldbook/{name}> '
        print(f"  Opened: {name} ({path})")
        return True

    def _require_books(self):
        if not self.db_path:
            print("  No books open. Use: open <path/to/books.db>")
            print("  Or create new books: new <folder> [\"Company Name\"]")
            return False
        return True

    # ─── help ────────────────────────────────────────────────────

    def do_help(self, arg):
        """Show available commands."""
        if arg:
            super().do_help(arg)
            return
        print("""
  Goldbook CLI — Commands
  ═══════════════════════
  Gold in grams, KWD in dinars, both to 3 decimals.
  Accounts: <id>, <type>:<number> (market:3, gf:1) or a unique name.

  BOOKS
    open <path>                     Open a books.db file
    new <folder> ["Company Name"]   Create new books
    close                           Close current books
    info                            Company info and counts

  ACCOUNTS
    accounts [type]                 List accounts
    addaccount <type> "<name>" [phone] [civil_id]
    editaccount <account> "<name>" [phone] [civil_id]
    delaccount <account>            Delete (only without vouchers)

  VOUCHERS
    vouchers [account] [--q text]   List vouchers, newest first
    post <date> <account> <INV|REC|GFV> <gold> [kwd] "<mvn or description>"
         [--rate R] [--fix] [--qty N] [--cheque BANK BRANCH NO DATE]
      Example: post 2025-03-01 market:1 REC 20 0 "MV-104" --fix --rate 19.5
    show <voucher_id>               Voucher details
    delete <voucher_id>             Delete a voucher
    importvouchers <file.csv|xlsx>  Import vouchers

  LEDGERS
    ledger <account> [from] [to]    Account ledger
    typeledger <type> [from] [to]   All active accounts of a type
    locker [from] [to]              Locker gold
    openbal [from] [to]             Gold fixing open balance
    balances <type>                 Closing balances per account
    summary                         Totals for every type

  CHEQUES
    cheques [outstanding|cashed|all] [bank]
    cash <voucher_id> [date]        Mark a cheque cashed

  EXPORT
    pdf <account|type|locker|openbal|balances|summary> [target] [from] [to] [--out file]
      Example: pdf account market:1 2025-01-01 2025-03-31 --out m1.pdf

    help                            This help
    quit                            Exit
""")

    # ─── open / close ────────────────────────────────────────────

    def do_open(self, arg):
        """Open a books.db file. Usage: open <path/to/books.db>"""
        arg = arg.strip().strip('"').strip("'")
        if not arg:
            print("  Usage: open <path/to/books.db>")
            return
        path = os.path.expanduser(arg)
        if os.path.isdir(path):
            path = os.path.join(path, 'books.db')
        self.set_books(path)

    def do_new(self, arg):
        """Create new books. Usage: new <folder> ["Company Name"]"""
        parts = _split_args(arg)
        if not parts:
            print("  Usage: new <folder> [\"Company Name\"]")
            return
        folder = os.path.abspath(os.path.expanduser(parts[0]))
        company_name = parts[1] if len(parts) > 1 else \
            os.path.basename(folder).replace('_', ' ').replace('-', ' ').title()
        db_path = os.path.join(folder, 'books.db')
        if os.path.exists(db_path):
            print(f"  Books already exist: {db_path}")
            print(f"  Use 'open {folder}' to open them.")
            return
        try:
            models.create_books(db_path, company_name)
        except OSError as e:
            print(f"  Cannot create books in {folder}: {e}")
            return
        print(f"  ✓ Created new books: {company_name}")
        print(f"    Database:   {db_path}")
        self.set_books(db_path)

    def do_close(self, arg):
        """Close the current books."""
        models.set_db_path(None)
        self.db_path = None
        self.prompt = 'Goldbook> '
        print("  Books closed.")

    def do_info(self, arg):
        """Show company info and counts."""
        if not self._require_books():
            return
        accts = models.get_accounts()
        active = [a for a in accts if a['is_active']]
        with models.get_db() as db:
            voucher_count = db.execute("SELECT COUNT(*) FROM vouchers").fetchone()[0]
        cheques = models.get_cheques(status='outstanding')
        print(f"  Company:      {models.get_meta('company_name', '(unnamed)')}")
        print(f"  File:         {self.db_path}")
        print(f"  Accounts:     {len(active)} active, {len(accts) - len(active)} inactive")
        print(f"  Vouchers:     {voucher_count:,}")
        print(f"  Cheques out:  {len(cheques)}")

    # ─── accounts ────────────────────────────────────────────────

    def do_accounts(self, arg):
        """List accounts. Usage: accounts [type]"""
        if not self._require_books():
            return
        atype = None
        if arg.strip():
            atype = resolve_type(arg.strip())
            if not atype:
                return
        rows = [(a['id'], a['type'], a['account_no'], a['name'], a['phone'] or '',
                 a['civil_id'] or '', '' if a['is_active'] else 'inactive')
                for a in models.get_accounts(atype)]
        table(['ID', 'Type', 'No', 'Name', 'Phone', 'CR / Civil ID', ''], rows, 'rlrllll')

    def do_addaccount(self, arg):
        """Add an account. Usage: addaccount <type> "<name>" [phone] [civil_id]"""
        if not self._require_books():
            return
        parts = _split_args(arg)
        if len(parts) < 2:
            print('  Usage: addaccount <type> "<name>" [phone] [civil_id]')
            print('  Example: addaccount market "Al Noor Jewellers" 99887766')
            return
        atype = resolve_type(parts[0])
        if not atype:
            return
        try:
            aid = models.add_account(parts[1], atype,
                                     parts[2] if len(parts) > 2 else '',
                                     parts[3] if len(parts) > 3 else '')
        except ValueError as e:
            print(f"  Error: {e}")
            return
        acct = models.get_account(aid)
        print(f"  ✓ Added {acct['type']} #{acct['account_no']}: {acct['name']} (id {aid})")

    def do_editaccount(self, arg):
        """Edit an account. Usage: editaccount <account> "<name>" [phone] [civil_id]"""
        if not self._require_books():
            return
        parts = _split_args(arg)
        if len(parts) < 2:
            print('  Usage: editaccount <account> "<name>" [phone] [civil_id]')
            return
        acct = resolve_account(parts[0])
        if not acct:
            return
        try:
            models.update_account(acct['id'], parts[1],
                                  parts[2] if len(parts) > 2 else None,
                                  parts[3] if len(parts) > 3 else None)
        except ValueError as e:
            print(f"  Error: {e}")
            return
        print(f"  ✓ Updated {acct['type']} #{acct['account_no']}: {parts[1]}")

    def do_delaccount(self, arg):
        """Delete an account with no vouchers. Usage: delaccount <account>"""
        if not self._require_books():
            return
        acct = resolve_account(arg)
        if not acct:
            return
        try:
            models.delete_account(acct['id'])
        except ValueError as e:
            print(f"  Error: {e}")
            return
        print(f"  ✓ Deleted {acct['type']} #{acct['account_no']}: {acct['name']}")

    # ─── vouchers ────────────────────────────────────────────────

    def do_vouchers(self, arg):
        """List vouchers. Usage: vouchers [account] [--q text]"""
        if not self._require_books():
            return
        parts = _split_args(arg)
        query = ''
        if '--q' in parts:
            i = parts.index('--q')
            query = parts[i + 1] if i + 1 < len(parts) else ''
            parts = parts[:i] + parts[i + 2:]
        account_id = None
        if parts:
            acct = resolve_account(parts[0])
            if not acct:
                return
            account_id = acct['id']
        rows = [(v['id'], v['date'], v['vt'], f"{v['account_type']}:{v['account_no']}",
                 ledger.describe(v)[:32], fmt(v['gold']), fmt(v['kwd']),
                 v['payment_method'])
                for v in models.list_vouchers(account_id=account_id, query=query, limit=200)]
        table(['ID', 'Date', 'VT', 'Account', 'Description', 'Gold', 'KWD', 'Paid'], rows, 'rllllrrl')

    def do_post(self, arg):
        """Post a voucher.
        Usage: post <date> <account> <INV|REC|GFV> <gold> [kwd] "<mvn or description>"
               [--rate R] [--fix] [--qty N] [--cheque BANK BRANCH NO DATE]
        """
        if not self._require_books():
            return
        parts = _split_args(arg)
        opts = {}
        plain = []
        i = 0
        while i < len(parts):
            p = parts[i]
            if p == '--fix':
                opts['fixing'] = True; i += 1
            elif p in ('--rate', '--qty') and i + 1 < len(parts):
                opts[p[2:]] = parts[i + 1]; i += 2
            elif p == '--cheque' and i + 4 < len(parts):
                opts['cheque'] = parts[i + 1:i + 5]; i += 5
            else:
                plain.append(p); i += 1
        if len(plain) < 5:
            print('  Usage: post <date> <account> <INV|REC|GFV> <gold> [kwd] "<mvn or description>"')
            print('  Example: post 2025-03-01 casting:1 INV 12.5 0 "Rings batch 7"')
            return
        acct = resolve_account(plain[1])
        if not acct:
            return
        text = plain[-1]
        try:
            data = {
                'date': plain[0], 'account_id': acct['id'], 'vt': plain[2],
                'gold': models.parse_amount(plain[3]),
                'kwd': models.parse_amount(plain[4]) if len(plain) > 5 else 0,
                'quantity': opts.get('qty'),
                'fixing': opts.get('fixing', False),
            }
            if acct['type'] == 'Market':
                data['mvn'] = text
            else:
                data['description'] = text
            if 'rate' in opts:
                rate = models.parse_amount(opts['rate'])
                if data['vt'].upper() == 'GFV' or data['fixing']:
                    data['gold_rate'] = rate
                else:
                    data['rate'] = rate
            if 'cheque' in opts:
                bank, branch, no, cdate = opts['cheque']
                data.update(payment_method='cheque', bank_name=bank, branch=branch,
                            cheque_no=no, cheque_date=cdate)
            vid = models.add_voucher(data)
        except ValueError as e:
            print(f"  Error: {e}")
            return
        v = models.get_voucher(vid)
        print(f"  ✓ Posted #{vid}: {v['date']} {v['vt']} {acct['type']} #{acct['account_no']} "
              f"| gold {fmt(v['gold'])} | KWD {fmt(v['kwd'])}")
        if v['fixing_amount']:
            print(f"    Fixing amount: {fmt(v['fixing_amount'])}")

    def do_show(self, arg):
        """Show voucher details. Usage: show <voucher_id>"""
        if not self._require_books():
            return
        if not arg.strip().isdigit():
            print("  Usage: show <voucher_id>")
            return
        v = models.get_voucher(int(arg.strip()))
        if not v:
            print(f"  Voucher #{arg.strip()} not found.")
            return
        print(f"  Voucher #{v['id']}  {v['date']}  {v['vt']}")
        print(f"  Account:     {v['account_type']} #{v['account_no']} {v['account_name']}")
        print(f"  Description: {ledger.describe(v)}")
        print(f"  Gold:        {fmt(v['gold'])}")
        print(f"  KWD:         {fmt(v['kwd'])}")
        if v['gold_rate'] is not None:
            print(f"  Gold rate:   {fmt(v['gold_rate'])}")
        if v['fixing_amount'] is not None:
            print(f"  Fixing:      {fmt(v['fixing_amount'])}")
        print(f"  Payment:     {v['payment_method']}")
        if v['cheque_no']:
            print(f"  Cheque:      {v['bank_name']} / {v['branch']} #{v['cheque_no']} "
                  f"dated {v['cheque_date']} for {fmt(v['cheque_amount'] or 0)}")
            if v['cashed_date']:
                print(f"  Cashed:      {v['cashed_date']}")

    def do_delete(self, arg):
        """Delete a voucher. Usage: delete <voucher_id>"""
        if not self._require_books():
            return
        if not arg.strip().isdigit():
            print("  Usage: delete <voucher_id>")
            return
        vid = int(arg.strip())
        v = models.get_voucher(vid)
        if not v:
            print(f"  Voucher #{vid} not found.")
            return
        models.delete_voucher(vid)
        print(f"  ✓ Deleted #{vid}: {v['date']} {v['vt']} {ledger.describe(v)}")

    def do_importvouchers(self, arg):
        """Import vouchers from CSV or XLSX. Usage: importvouchers <file>"""
        if not self._require_books():
            return
        path = os.path.expanduser(arg.strip().strip('"').strip("'"))
        if not path or not os.path.exists(path):
            print(f"  File not found: {path}")
            print(f"  Columns: {', '.join(models.IMPORT_HEADER)}")
            return
        try:
            with open(path, 'rb') as f:
                rows = models.read_rows(f, path)
        except (ValueError, OSError) as e:
            print(f"  Error: {e}")
            return
        result = models.import_voucher_rows(rows)
        print(f"  ✓ Rows: {result['rows_processed']}  Posted: {result['posted']}  "
              f"Skipped: {result['skipped']}")
        for err in result.get('errors', []):
            print(f"    Row {err['row']}: {err['reason']}")

    # ─── ledgers ─────────────────────────────────────────────────

    def _show_ledger(self, title, led, start, end, label, with_account=False):
        print(f"\n  {title}")
        if start or end:
            print(f"  Period: {start or 'start'} to {end or 'end'}")
        print()
        entries = ledger.with_boundaries(led, start, end, label)
        headers = ['Date', 'VT'] + (['Account'] if with_account else []) + \
                  ['Description', 'Gold Dr', 'Gold Cr', 'Gold Bal', 'KWD Dr', 'KWD Cr', 'KWD Bal']
        table(headers, entry_rows(entries, with_account),
              'll' + ('l' if with_account else '') + 'lrrrrrr')
        t = led.totals
        print(f"\n  Totals: gold {fmt(t.gold_debit)} Dr / {fmt(t.gold_credit)} Cr"
              f"  |  KWD {fmt(t.kwd_debit)} Dr / {fmt(t.kwd_credit)} Cr")
        print(f"  Closing: gold {bal(led.closing.gold)}  |  KWD {bal(led.closing.kwd)}"
              f"  |  {len(led.entries)} vouchers")

    def do_ledger(self, arg):
        """Show account ledger. Usage: ledger <account> [from] [to]"""
        if not self._require_books():
            return
        parts = _split_args(arg)
        if not parts:
            print("  Usage: ledger <account> [from_date] [to_date]")
            return
        acct = resolve_account(parts[0])
        dates = _dates(parts[1:])
        if not acct or not dates:
            return
        led = models.account_ledger(acct['id'], *dates)
        self._show_ledger(f"Ledger: {acct['type']} #{acct['account_no']} — {acct['name']}",
                          led, dates[0], dates[1], acct['name'])

    def do_typeledger(self, arg):
        """Show ledger for every active account of a type. Usage: typeledger <type> [from] [to]"""
        if not self._require_books():
            return
        parts = _split_args(arg)
        if not parts:
            print("  Usage: typeledger <type> [from_date] [to_date]")
            return
        atype = resolve_type(parts[0])
        dates = _dates(parts[1:])
        if not atype or not dates:
            return
        led = models.type_ledger(atype, *dates)
        self._show_ledger(f"{atype} Ledger", led, dates[0], dates[1], atype, with_account=True)

    def do_locker(self, arg):
        """Show locker gold. Usage: locker [from] [to]"""
        if not self._require_books():
            return
        dates = _dates(_split_args(arg))
        if not dates:
            return
        start, end = dates
        led = models.locker_ledger(start, end)
        print("\n  Locker Gold")
        if start or end:
            print(f"  Period: {start or 'start'} to {end or 'end'}")
        print()
        rows = [(e.date, e.vt,
                 f'{e.account_type}:{e.account_no} {e.account_name}'[:24] if e.kind == 'voucher' else '',
                 e.description[:32], fmt(max(e.locker_change, 0)), fmt(max(-e.locker_change, 0)),
                 bal(e.locker_balance))
                for e in ledger.with_boundaries(led, start, end, 'Locker')]
        table(['Date', 'VT', 'Account', 'Description', 'In', 'Out', 'Locker'], rows, 'llllrrr')
        print(f"\n  In: {fmt(led.totals.locker_in)}  Out: {fmt(led.totals.locker_out)}"
              f"  |  Locker gold: {bal(led.closing.locker)}")

    def do_openbal(self, arg):
        """Show the gold fixing open balance. Usage: openbal [from] [to]"""
        if not self._require_books():
            return
        dates = _dates(_split_args(arg))
        if not dates:
            return
        led = models.open_balance_ledger(*dates)
        self._show_ledger("Gold Fixing Open Balance", led, dates[0], dates[1],
                          'Open Balance', with_account=True)

    def do_balances(self, arg):
        """Closing balances per account. Usage: balances <type>"""
        if not self._require_books():
            return
        atype = resolve_type(arg.strip()) if arg.strip() else None
        if not atype:
            if not arg.strip():
                print("  Usage: balances <type>")
            return
        b = models.account_balances(atype)
        rows = [(a['account_no'], a['name'], bal(a['gold_balance']), bal(a['kwd_balance']),
                 a['transaction_count']) for a in b['accounts']]
        print(f"\n  {atype} Balances\n")
        table(['No', 'Name', 'Gold', 'KWD', 'Vouchers'], rows, 'rlrrr')
        print(f"\n  Total: gold {bal(b['total_gold'])}  |  KWD {bal(b['total_kwd'])}"
              f"  |  {b['total_accounts']} accounts, {b['total_transactions']} vouchers")

    def do_summary(self, arg):
        """Totals for every account type."""
        if not self._require_books():
            return
        s = models.type_summary()
        rows = [(t['account_type'], t['total_accounts'], bal(t['total_gold']),
                 bal(t['total_kwd']), t['total_transactions']) for t in s['types']]
        rows.append(('All', s['total_accounts'], bal(s['overall_gold']),
                     bal(s['overall_kwd']), s['total_transactions']))
        table(['Type', 'Accounts', 'Gold', 'KWD', 'Vouchers'], rows, 'lrrrr')

    # ─── cheques ─────────────────────────────────────────────────

    def do_cheques(self, arg):
        """List cheques. Usage: cheques [outstanding|cashed|all] [bank]"""
        if not self._require_books():
            return
        parts = _split_args(arg)
        status = parts[0].lower() if parts else 'all'
        if status not in ('outstanding', 'cashed', 'all'):
            print(f"  Unknown status: '{status}'")
            print("  Usage: cheques [outstanding|cashed|all] [bank]")
            return
        bank = parts[1] if len(parts) > 1 else ''
        rows = []
        for c in models.get_cheques(status=status, bank=bank):
            if c['status'] == 'cashed':
                state = f"cashed {c['cashed_date']} ({c['days']}d)"
            else:
                state = f"{c['days']}d" + (' ready' if c['can_be_cashed'] else '')
            rows.append((c['id'], c['cheque_date'], c['bank_name'], c['cheque_no'],
                         f"{c['account_type']}:{c['account_no']} {c['account_name']}"[:24],
                         fmt(c['cheque_amount'] or 0), state))
        table(['ID', 'Cheque Date', 'Bank', 'No', 'Account', 'Amount', 'Status'], rows, 'rllllrl')

    def do_cash(self, arg):
        """Mark a cheque cashed. Usage: cash <voucher_id> [date]"""
        if not self._require_books():
            return
        parts = _split_args(arg)
        if not parts or not parts[0].isdigit():
            print("  Usage: cash <voucher_id> [date]")
            return
        try:
            v = models.cash_cheque(int(parts[0]), parts[1] if len(parts) > 1 else None)
        except (ValueError, models.NotFound) as e:
            print(f"  Error: {e}")
            return
        print(f"  ✓ Cheque {v['cheque_no']} ({v['bank_name']}) cashed on {v['cashed_date']}")

    # ─── export ──────────────────────────────────────────────────

    def do_pdf(self, arg):
        """Write a PDF report.
        Usage: pdf <account|type|locker|openbal|balances|summary> [target] [from] [to] [--out file]
        """
        if not self._require_books():
            return
        parts = _split_args(arg)
        out = None
        if '--out' in parts:
            i = parts.index('--out')
            out = parts[i + 1] if i + 1 < len(parts) else None
            parts = parts[:i] + parts[i + 2:]
        if not parts:
            print("  Usage: pdf <account|type|locker|openbal|balances|summary> [target] [from] [to] [--out file]")
            return
        kind, rest = parts[0].lower(), parts[1:]
        company = models.get_meta('company_name', 'My Workshop')
        if kind == 'account':
            acct = resolve_account(rest[0]) if rest else None
            dates = _dates(rest[1:])
            if not acct or not dates:
                return
            body = statements.account_statement_pdf(
                company, acct, models.account_ledger(acct['id'], *dates), *dates)
            name = f"{acct['type']}_{acct['account_no']}_statement"
        elif kind in ('type', 'balances'):
            atype = resolve_type(rest[0]) if rest else None
            if not atype:
                return
            if kind == 'type':
                dates = _dates(rest[1:])
                if not dates:
                    return
                body = statements.type_ledger_pdf(company, atype, models.type_ledger(atype, *dates), *dates)
                name = f"{atype}_ledger"
            else:
                body = statements.balances_pdf(company, models.account_balances(atype))
                name = f"{atype}_balances"
        elif kind in ('locker', 'openbal'):
            dates = _dates(rest)
            if not dates:
                return
            if kind == 'locker':
                body = statements.locker_ledger_pdf(company, models.locker_ledger(*dates), *dates)
                name = 'locker_gold'
            else:
                body = statements.open_balance_pdf(company, models.open_balance_ledger(*dates), *dates)
                name = 'open_balance'
        elif kind == 'summary':
            body = statements.type_summary_pdf(company, models.type_summary())
            name = 'type_summary'
        else:
            print(f"  Unknown report: '{kind}'")
            return
        out = out or name.replace(' ', '_') + '.pdf'
        with open(out, 'wb') as f:
            f.write(body)
        print(f"  ✓ Wrote {out} ({len(body):,} bytes)")

    # ─── quit ────────────────────────────────────────────────────

    def do_quit(self, arg):
        """Exit Goldbook CLI."""
        print("  Bye.")
        return True

    do_exit = do_quit
    do_EOF = do_quit  # Ctrl+D

    def default(self, line):
        cmd_word = line.split()[0] if line.split() else line
        print(f"  Unknown command: '{cmd_word}'")
        print("  Type 'help' for available commands.")

    def emptyline(self):
        pass


# ─── Main ────────────────────────────────────────────────────────

def main(argv=None):
    cli = GoldbookCLI()
    args = sys.argv[1:] if argv is None else argv

    if not args:
        print("\n  Goldbook CLI")
        print("  Type 'help' for commands, 'open <path>' to load books.\n")
        cli.cmdloop()
        return

    db_path = os.path.expanduser(args[0])
    if os.path.isdir(db_path):
        db_path = os.path.join(db_path, 'books.db')

    if not cli.set_books(db_path):
        sys.exit(1)

    if len(args) > 1:
        # One-shot mode: run command and exit
        cli.onecmd(' '.join(shlex.quote(a) for a in args[1:]))
    else:
        print("  Type 'help' for commands.\n")
        cli.cmdloop()


if __name__ == '__main__':
    main()
