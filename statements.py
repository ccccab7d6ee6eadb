"""
Goldbook — Statements.
Ledger and balance reports as monospaced landscape PDFs (reportlab) and CSV.
Builders return bytes (PDF) or str (CSV); the web layer wraps them in responses.
"""
import csv, io, os
from collections import namedtuple
from datetime import datetime

import ledger
import models

Column = namedtuple('Column', 'label x width align')

ROWS_PER_PAGE = 32
FONT_SIZE = 7

# (reg_name, regular_path, bold_path), checked in order; Courier is the fallback
FONT_CANDIDATES = [
    # Linux
    ('LiberationMono', '/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf',
                       '/usr/share/fonts/truetype/liberation/LiberationMono-Bold.ttf'),
    ('DejaVuMono',     '/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf',
                       '/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf'),
    # Windows
    ('Consolas',       'C:/Windows/Fonts/consola.ttf',
                       'C:/Windows/Fonts/consolab.ttf'),
    ('CourierNew',     'C:/Windows/Fonts/cour.ttf',
                       'C:/Windows/Fonts/courbd.ttf'),
    # macOS
    ('Menlo',          '/System/Library/Fonts/Menlo.ttc',
                       '/System/Library/Fonts/Menlo.ttc'),
]

def find_fonts():
    """Register the first monospaced TTF found. Returns (regular, bold) names."""
    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFont, TTFError
    for name, regular, bold in FONT_CANDIDATES:
        if not (os.path.exists(regular) and os.path.exists(bold)):
            continue
        try:
            try: pdfmetrics.getFont(name)
            except KeyError:
                pdfmetrics.registerFont(TTFont(name, regular))
                pdfmetrics.registerFont(TTFont(name + '-Bold', bold))
            return name, name + '-Bold'
        except (OSError, TTFError):
            continue
    return 'Courier', 'Courier-Bold'

def short_date(d):
    """Format date as dd-Mon-yy"""
    if not d: return ''
    try:
        return datetime.strptime(d[:10], '%Y-%m-%d').strftime('%d-%b-%y')
    except ValueError:
        return d[:10]

def period_label(start=None, end=None):
    return f"{short_date(start) or 'Start'} to {short_date(end) or 'Current'}"

def _amount(milli):
    return models.fmt_weight(milli) if milli else ''

def _plain(milli):
    neg = milli < 0; m = abs(milli)
    s = f"{m // 1000}.{m % 1000:03d}"
    return f"-{s}" if neg else s

# ─── Generic Paginated PDF ────────────────────────────────────────
def ledger_pdf(company, title, period, columns, rows, footer=None,
               rows_per_page=ROWS_PER_PAGE):
    """Draw a table over fixed-size landscape A4 pages.

    rows are (cells, bold) pairs. The page header and column header repeat
    on every page; footer rows (totals, closing) print on the last page only.
    """
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.pdfgen import canvas

    font, font_b = find_fonts()
    pagesize = landscape(A4)
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=pagesize)
    c.setTitle(f'{company} - {title}')
    pw, ph = pagesize
    margin = 36
    right_edge = pw - margin
    fs = FONT_SIZE
    line_h = fs + 4
    pages = ledger.paginate(rows, rows_per_page)
    y = ph - margin

    def header(page_num):
        nonlocal y
        c.setFont(font_b, 10)
        c.drawString(margin, ph - margin, f'{company} - {title}')
        c.setFont(font, 7)
        if period:
            c.drawString(margin, ph - margin - 11, period)
        c.drawRightString(right_edge, ph - margin, f'Page {page_num} of {len(pages)}')
        y = ph - margin - 28

    def draw_cell(col, text):
        text = str(text or '')[:max(int(col.width / (fs * 0.6)), 1)]
        if col.align == 'r':
            c.drawRightString(margin + col.x + col.width, y, text)
        else:
            c.drawString(margin + col.x, y, text)

    def col_header():
        nonlocal y
        c.setFont(font_b, fs)
        for col in columns:
            draw_cell(col, col.label)
        y -= 3
        c.setLineWidth(0.4)
        c.line(margin, y, right_edge, y)
        y -= line_h

    def draw_row(cells, bold=False):
        nonlocal y
        c.setFont(font_b if bold else font, fs)
        for col, text in zip(columns, cells):
            draw_cell(col, text)
        y -= line_h

    for page_num, page in enumerate(pages, start=1):
        if page_num > 1:
            c.showPage()
        header(page_num)
        col_header()
        for cells, bold in page:
            draw_row(cells, bold)
        if page_num == len(pages) and footer:
            c.setLineWidth(0.3)
            c.line(margin, y + line_h - 3, right_edge, y + line_h - 3)
            for cells in footer:
                draw_row(cells, bold=True)
    c.save()
    return buf.getvalue()

# ─── Ledger Reports ───────────────────────────────────────────────
AMOUNT_COLUMNS = [
    Column('Gold Dr', 320, 65, 'r'), Column('Gold Cr', 390, 65, 'r'),
    Column('Gold Balance', 460, 85, 'r'),
    Column('KWD Dr', 550, 65, 'r'), Column('KWD Cr', 620, 65, 'r'),
    Column('KWD Balance', 690, 80, 'r'),
]
STATEMENT_COLUMNS = [
    Column('Date', 0, 50, 'l'), Column('VT', 55, 25, 'l'),
    Column('Description', 85, 230, 'l'),
] + AMOUNT_COLUMNS
MULTI_ACCOUNT_COLUMNS = [
    Column('Date', 0, 50, 'l'), Column('VT', 55, 25, 'l'),
    Column('Account', 85, 90, 'l'), Column('Description', 180, 135, 'l'),
] + AMOUNT_COLUMNS
LOCKER_COLUMNS = [
    Column('Date', 0, 50, 'l'), Column('VT', 55, 25, 'l'),
    Column('Type', 85, 70, 'l'), Column('Account', 160, 110, 'l'),
    Column('Description', 275, 250, 'l'),
    Column('In', 530, 70, 'r'), Column('Out', 605, 70, 'r'),
    Column('Locker Gold', 680, 90, 'r'),
]

def _account_label(e):
    if e.kind != 'voucher':
        return e.account_name
    return f'{e.account_no} {e.account_name}'

def entry_cells(e, with_account=False):
    cells = [short_date(e.date), e.vt]
    if with_account:
        cells.append(_account_label(e))
    cells += [e.description,
              _amount(e.gold_debit), _amount(e.gold_credit), models.fmt_balance(e.gold_balance),
              _amount(e.kwd_debit), _amount(e.kwd_credit), models.fmt_balance(e.kwd_balance)]
    return cells

def locker_cells(e):
    return [short_date(e.date), e.vt, e.account_type, _account_label(e), e.description,
            _amount(max(e.locker_change, 0)), _amount(max(-e.locker_change, 0)),
            models.fmt_balance(e.locker_balance)]

def _split_boundaries(led, start, end, label, cells):
    """Body rows (opening + vouchers) and closing rows, each already rendered."""
    body, closing = [], []
    for e in ledger.with_boundaries(led, start, end, label):
        if e.kind == 'closing':
            closing.append(cells(e))
        else:
            body.append((cells(e), e.kind != 'voucher'))
    return body, closing

def _ledger_report(company, title, led, start, end, with_account, label):
    columns = MULTI_ACCOUNT_COLUMNS if with_account else STATEMENT_COLUMNS
    cells = lambda e: entry_cells(e, with_account)
    body, closing = _split_boundaries(led, start, end, label, cells)
    t = led.totals
    pad = ['', '', ''] if with_account else ['', '']
    totals = pad + ['Totals', _amount(t.gold_debit), _amount(t.gold_credit), '',
                    _amount(t.kwd_debit), _amount(t.kwd_credit), '']
    return ledger_pdf(company, title, period_label(start, end), columns, body, [totals] + closing)

def account_statement_pdf(company, account, led, start=None, end=None):
    title = f"Statement - {account['type']} #{account['account_no']} {account['name']}"
    return _ledger_report(company, title, led, start, end, False, account['name'])

def type_ledger_pdf(company, account_type, led, start=None, end=None):
    return _ledger_report(company, f'{account_type} Ledger', led, start, end, True, account_type)

def open_balance_pdf(company, led, start=None, end=None):
    return _ledger_report(company, 'Gold Fixing Open Balance', led, start, end, True, 'Open Balance')

def locker_ledger_pdf(company, led, start=None, end=None):
    body, closing = _split_boundaries(led, start, end, 'Locker', locker_cells)
    t = led.totals
    totals = ['', '', '', '', 'Totals', _amount(t.locker_in), _amount(t.locker_out), '']
    return ledger_pdf(company, 'Locker Gold', period_label(start, end), LOCKER_COLUMNS,
                      body, [totals] + closing)

# ─── Balance Reports ──────────────────────────────────────────────
BALANCE_COLUMNS = [
    Column('No.', 0, 40, 'l'), Column('Name', 45, 200, 'l'),
    Column('Phone', 250, 90, 'l'), Column('CR / Civil ID', 345, 100, 'l'),
    Column('Gold', 450, 110, 'r'), Column('KWD', 565, 110, 'r'),
    Column('Vouchers', 680, 90, 'r'),
]
SUMMARY_COLUMNS = [
    Column('Type', 0, 80, 'l'), Column('No.', 85, 40, 'l'),
    Column('Name', 130, 240, 'l'),
    Column('Gold', 380, 120, 'r'), Column('KWD', 505, 120, 'r'),
    Column('Vouchers', 630, 140, 'r'),
]

def balances_pdf(company, balances):
    rows = [([a['account_no'], a['name'], a['phone'], a['civil_id'],
              models.fmt_balance(a['gold_balance']), models.fmt_balance(a['kwd_balance']),
              a['transaction_count']], False) for a in balances['accounts']]
    footer = [['', f"Totals ({balances['total_accounts']} accounts)", '', '',
               models.fmt_balance(balances['total_gold']), models.fmt_balance(balances['total_kwd']),
               balances['total_transactions']]]
    return ledger_pdf(company, f"{balances['account_type']} Balances",
                      f"As of {short_date(datetime.now().strftime('%Y-%m-%d'))}",
                      BALANCE_COLUMNS, rows, footer)

def type_summary_pdf(company, summary):
    rows = []
    for s in summary['types']:
        for a in s['accounts']:
            rows.append(([s['account_type'], a['account_no'], a['name'],
                          models.fmt_balance(a['gold_balance']), models.fmt_balance(a['kwd_balance']),
                          a['transaction_count']], False))
        rows.append(([s['account_type'], '', 'Subtotal',
                      models.fmt_balance(s['total_gold']), models.fmt_balance(s['total_kwd']),
                      s['total_transactions']], True))
    footer = [['All', '', f"Totals ({summary['total_accounts']} accounts)",
               models.fmt_balance(summary['overall_gold']), models.fmt_balance(summary['overall_kwd']),
               summary['total_transactions']]]
    return ledger_pdf(company, 'Account Type Summary',
                      f"As of {short_date(datetime.now().strftime('%Y-%m-%d'))}",
                      SUMMARY_COLUMNS, rows, footer)

# ─── CSV ──────────────────────────────────────────────────────────
def ledger_csv(led, start=None, end=None, label='', with_account=False, locker=False):
    output = io.StringIO()
    w = csv.writer(output)
    if locker:
        w.writerow(['Date', 'VT', 'Account Type', 'Account No', 'Account', 'Description',
                    'Locker Change', 'Locker Balance'])
    else:
        head = ['Date', 'VT']
        if with_account:
            head += ['Account No', 'Account']
        w.writerow(head + ['Description', 'Gold Debit', 'Gold Credit', 'Gold Balance',
                           'KWD Debit', 'KWD Credit', 'KWD Balance'])
    for e in ledger.with_boundaries(led, start, end, label):
        if locker:
            w.writerow([e.date, e.vt, e.account_type, e.account_no or '', e.account_name,
                        e.description, _plain(e.locker_change), _plain(e.locker_balance)])
            continue
        row = [e.date, e.vt]
        if with_account:
            row += [e.account_no or '', e.account_name]
        w.writerow(row + [e.description, _plain(e.gold_debit), _plain(e.gold_credit),
                          _plain(e.gold_balance), _plain(e.kwd_debit), _plain(e.kwd_credit),
                          _plain(e.kwd_balance)])
    return output.getvalue()

def balances_csv(balances):
    output = io.StringIO()
    w = csv.writer(output)
    w.writerow(['Type', 'Account No', 'Name', 'Phone', 'CR / Civil ID',
                'Gold Balance', 'KWD Balance', 'Vouchers'])
    groups = balances['types'] if 'types' in balances else [balances]
    for s in groups:
        for a in s['accounts']:
            w.writerow([s['account_type'], a['account_no'], a['name'], a['phone'], a['civil_id'],
                        _plain(a['gold_balance']), _plain(a['kwd_balance']), a['transaction_count']])
        w.writerow([s['account_type'], '', 'TOTAL', '', '', _plain(s['total_gold']),
                    _plain(s['total_kwd']), s['total_transactions']])
    return output.getvalue()
