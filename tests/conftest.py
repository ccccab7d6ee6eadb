import pytest

import models


@pytest.fixture
def books(tmp_path):
    path = str(tmp_path / "books.db")
    models.create_books(path, "Test Workshop")
    yield path
    models.set_db_path(None)


@pytest.fixture
def accounts(books):
    """One account per type, keyed by type."""
    return {
        "Market": models.add_account("Al Noor Jewellers", "Market", "99887766", "CR-1001"),
        "Casting": models.add_account("Casting Room", "Casting"),
        "Faceting": models.add_account("Faceting Bench", "Faceting"),
        "Project": models.add_account("Bridal Set", "Project"),
        "Gold Fixing": models.add_account("Fixing Desk", "Gold Fixing"),
    }


def post(account_id, vt, date, gold=0, kwd=0, **fields):
    """Add a voucher with sensible text fields for the account's type."""
    acct = models.get_account(account_id)
    data = dict(account_id=account_id, vt=vt, date=date, gold=gold, kwd=kwd)
    if acct["type"] == "Market":
        data.setdefault("mvn", f"MV-{date}")
    else:
        data.setdefault("description", f"{vt} {date}")
    data.update(fields)
    return models.add_voucher(data)
