import pytest

import cli
import models


@pytest.fixture
def shell(books, capsys):
    sh = cli.GoldbookCLI()
    sh.set_books(books)
    capsys.readouterr()
    return sh


def run(shell, capsys, line):
    shell.onecmd(line)
    return capsys.readouterr().out


def test_requires_books(capsys):
    models.set_db_path(None)
    out = run(cli.GoldbookCLI(), capsys, "accounts")
    assert "No books open" in out


def test_add_and_list_accounts(shell, capsys):
    assert "✓ Added Market #1: Al Noor" in run(shell, capsys, 'addaccount market "Al Noor" 99887766')
    assert "✓ Added Gold Fixing #1" in run(shell, capsys, 'addaccount gf "Fixing Desk"')
    out = run(shell, capsys, "accounts")
    assert "Al Noor" in out and "Fixing Desk" in out
    assert "Unknown account type" in run(shell, capsys, 'addaccount retail "Shop"')


def test_edit_and_delete_account(shell, capsys):
    run(shell, capsys, 'addaccount casting "Room"')
    assert "✓ Updated Casting #1: Big Room" in run(shell, capsys, 'editaccount casting:1 "Big Room"')
    assert "✓ Deleted Casting #1" in run(shell, capsys, "delaccount casting:1")
    assert "Account not found" in run(shell, capsys, "delaccount casting:1")


def test_post_and_ledger(shell, capsys):
    run(shell, capsys, 'addaccount market "Al Noor"')
    out = run(shell, capsys, 'post 2025-01-02 market:1 INV 10 2.5 "MV-1"')
    assert "✓ Posted #1" in out
    out = run(shell, capsys, 'post 2025-01-05 market:1 REC 2 0 "MV-2" --fix --rate 20')
    assert "Fixing amount: 40.000" in out
    out = run(shell, capsys, "ledger market:1")
    assert "Opening Balance" in out
    assert "8.000 Cr" in out
    out = run(shell, capsys, "openbal")
    assert "40.000 Cr" in out
    assert "Error: MVN is required" in run(shell, capsys, 'post 2025-01-02 market:1 INV 1 ""')


def test_ledger_rejects_bad_dates(shell, capsys):
    run(shell, capsys, 'addaccount casting "Room"')
    assert "Invalid date" in run(shell, capsys, "ledger casting:1 someday")


def test_cheque_commands(shell, capsys):
    run(shell, capsys, 'addaccount market "Al Noor"')
    run(shell, capsys, 'post 2025-01-02 market:1 REC 3 1 "MV-5" --cheque NBK Salmiya 44 2025-01-02')
    out = run(shell, capsys, "locker")
    assert "Locker gold: 0.000 Cr" in out
    assert "NBK" in run(shell, capsys, "cheques outstanding")
    assert "✓ Cheque 44 (NBK) cashed on 2025-01-04" in run(shell, capsys, "cash 1 2025-01-04")
    assert "already cashed" in run(shell, capsys, "cash 1")
    assert "Locker gold: 3.000 Cr" in run(shell, capsys, "locker")


def test_balances_summary_and_show(shell, capsys):
    run(shell, capsys, 'addaccount project "Bridal Set"')
    run(shell, capsys, 'post 2025-01-02 project:1 INV 4 0 "Setting"')
    assert "Bridal Set" in run(shell, capsys, "balances project")
    assert "4.000 Cr" in run(shell, capsys, "summary")
    assert "Project #1 Bridal Set" in run(shell, capsys, "show 1")
    assert "✓ Deleted #1" in run(shell, capsys, "delete 1")


def test_import_and_pdf(shell, capsys, tmp_path):
    run(shell, capsys, 'addaccount casting "Room"')
    src = tmp_path / "v.csv"
    src.write_text("date,account_type,account_no,vt,description,gold\n"
                   "2025-01-02,Casting,1,INV,Rings,12.5\n")
    assert "Posted: 1" in run(shell, capsys, f"importvouchers {src}")
    out_file = tmp_path / "room.pdf"
    assert "✓ Wrote" in run(shell, capsys, f"pdf account casting:1 --out {out_file}")
    assert out_file.read_bytes().startswith(b"%PDF")
    assert "Unknown report" in run(shell, capsys, "pdf invoices")


def test_one_shot_main(books, capsys):
    models.add_account("Room", "Casting")
    cli.main([books, "accounts"])
    out = capsys.readouterr().out
    assert "Opened: Test Workshop" in out
    assert "Room" in out


def test_import_corrupt_workbook(shell, capsys, tmp_path):
    src = tmp_path / "bad.xlsx"
    src.write_bytes(b"\x00\x01 not a workbook")
    assert "Error: Cannot read" in run(shell, capsys, f"importvouchers {src}")
    run(shell, capsys, 'addaccount casting "Room"')
    assert "Room" in run(shell, capsys, "accounts")
