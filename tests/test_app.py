import io
import json

import pytest

import app as webapp
import models


@pytest.fixture
def client(books, monkeypatch, tmp_path):
    monkeypatch.setattr(webapp, "get_config_path", lambda: str(tmp_path / "goldbook.json"))
    webapp.app.config["TESTING"] = True
    return webapp.app.test_client()


def create_account(client, name, account_type):
    resp = client.post("/api/accounts", json={"name": name, "type": account_type})
    assert resp.status_code == 201
    return resp.get_json()["account"]


def test_requires_open_books(client):
    models.set_db_path(None)
    resp = client.get("/api/summary")
    assert resp.status_code == 409
    assert resp.get_json()["ok"] is False
    assert client.get("/api/books").get_json()["path"] == ""


def test_books_new_and_open(client, tmp_path):
    path = str(tmp_path / "second" / "books.db")
    resp = client.post("/api/books/new", json={"path": path, "company_name": "Second Shop"})
    assert resp.status_code == 201
    assert client.get("/api/books").get_json()["company_name"] == "Second Shop"
    cfg = json.loads((tmp_path / "goldbook.json").read_text())
    assert cfg["last_opened"] == path
    assert client.post("/api/books/new", json={"path": path}).status_code == 400
    assert client.post("/api/books/open", json={"path": str(tmp_path / "nope.db")}).status_code == 404


def test_account_crud(client):
    acct = create_account(client, "Al Noor", "Market")
    assert acct["account_no"] == 1
    resp = client.put(f"/api/accounts/{acct['id']}", json={"name": "Al Noor Gold", "phone": "555"})
    assert resp.get_json()["account"]["name"] == "Al Noor Gold"
    resp = client.post(f"/api/accounts/{acct['id']}/active", json={"active": False})
    assert resp.get_json()["account"]["is_active"] == 0
    listed = client.get("/api/accounts?type=Market&active=1").get_json()["accounts"]
    assert listed == []
    assert client.delete(f"/api/accounts/{acct['id']}").get_json()["ok"] is True
    assert client.get(f"/api/accounts/{acct['id']}").status_code == 404


def test_account_validation_error(client):
    resp = client.post("/api/accounts", json={"name": "", "type": "Market"})
    assert resp.status_code == 400
    assert "required" in resp.get_json()["error"]


def test_voucher_amounts_are_decimal_in_json(client):
    acct = create_account(client, "Al Noor", "Market")
    resp = client.post("/api/vouchers", json={
        "account_id": acct["id"], "date": "2025-01-02", "vt": "REC", "mvn": "MV-1",
        "gold": 20, "fixing": True, "gold_rate": "19.5"})
    assert resp.status_code == 201
    v = resp.get_json()["voucher"]
    assert v["gold"] == 20000
    assert v["fixing_amount"] == 390000


def test_voucher_not_found_and_invalid(client):
    acct = create_account(client, "Casting Room", "Casting")
    assert client.get("/api/vouchers/999").status_code == 404
    resp = client.post("/api/vouchers", json={"account_id": acct["id"], "date": "2025-01-02",
                                              "vt": "GFV", "description": "x", "gold": 1})
    assert resp.status_code == 400
    assert "not allowed" in resp.get_json()["error"]


def test_batch_rolls_back(client):
    acct = create_account(client, "Casting Room", "Casting")
    good = {"account_id": acct["id"], "date": "2025-01-02", "vt": "INV",
            "description": "ok", "gold": 1}
    resp = client.post("/api/vouchers/batch", json=[good, dict(good, description="")])
    assert resp.status_code == 400
    assert client.get("/api/vouchers").get_json()["vouchers"] == []
    resp = client.post("/api/vouchers/batch", json={"vouchers": [good, good]})
    assert resp.status_code == 201
    assert resp.get_json()["count"] == 2


def test_account_ledger_endpoint(client):
    acct = create_account(client, "Casting Room", "Casting")
    for day, vt, gold in [("2025-01-02", "INV", 10), ("2025-01-05", "REC", 4), ("2025-01-09", "INV", 1)]:
        client.post("/api/vouchers", json={"account_id": acct["id"], "date": day, "vt": vt,
                                           "description": "work", "gold": gold})
    data = client.get(f"/api/ledger/account/{acct['id']}?from=2025-01-04&to=2025-01-31").get_json()
    assert data["opening"]["gold"] == 10000
    assert data["closing"]["gold"] == 7000
    kinds = [e["kind"] for e in data["entries"]]
    assert kinds == ["opening", "voucher", "voucher", "closing"]
    assert data["totals"]["gold_credit"] == 4000
    assert client.get(f"/api/ledger/account/{acct['id']}?from=someday").status_code == 400
    assert client.get("/api/ledger/account/999").status_code == 404


def test_type_locker_and_open_balance_endpoints(client):
    market = create_account(client, "Al Noor", "Market")
    fixing = create_account(client, "Desk", "Gold Fixing")
    client.post("/api/vouchers", json={"account_id": market["id"], "date": "2025-01-02", "vt": "INV",
                                       "mvn": "MV-1", "gold": 5})
    client.post("/api/vouchers", json={"account_id": fixing["id"], "date": "2025-01-03", "vt": "GFV",
                                       "description": "fix", "gold": 1, "gold_rate": 20})
    assert client.get("/api/ledger/type/Market").get_json()["closing"]["gold"] == 5000
    assert client.get("/api/ledger/type/Retail").status_code == 404
    assert client.get("/api/ledger/locker").get_json()["closing"]["locker"] == -5000
    assert client.get("/api/ledger/open-balance").get_json()["closing"]["kwd"] == -20000


def test_balances_and_summary(client):
    acct = create_account(client, "Al Noor", "Market")
    client.post("/api/vouchers", json={"account_id": acct["id"], "date": "2025-01-02", "vt": "INV",
                                       "mvn": "MV-1", "gold": 5, "kwd": 1.25})
    b = client.get("/api/balances/Market").get_json()
    assert b["accounts"][0]["kwd_balance"] == 1250
    s = client.get("/api/summary").get_json()
    assert s["overall_gold"] == 5000


def test_cheque_flow(client):
    acct = create_account(client, "Al Noor", "Market")
    resp = client.post("/api/vouchers", json={
        "account_id": acct["id"], "date": "2025-01-02", "vt": "REC", "mvn": "MV-2", "gold": 3,
        "kwd": 1, "payment_method": "cheque", "bank_name": "NBK", "branch": "Salmiya",
        "cheque_no": "44", "cheque_date": "2025-01-02"})
    vid = resp.get_json()["voucher"]["id"]
    data = client.get("/api/cheques?status=outstanding").get_json()
    assert data["outstanding_count"] == 1
    assert data["banks"] == ["NBK"]
    resp = client.put(f"/api/cheques/{vid}/cash", json={"cashed_date": "2025-01-05"})
    assert resp.get_json()["voucher"]["cashed_date"] == "2025-01-05"
    assert client.put(f"/api/cheques/{vid}/cash").status_code == 400
    assert client.get("/api/ledger/locker").get_json()["closing"]["locker"] == 3000


def test_voucher_import_upload(client):
    create_account(client, "Casting Room", "Casting")
    body = b"2025-01-02,Casting,1,INV,,Rings,12.5,0\n"
    resp = client.post("/api/vouchers/import", data={"file": (io.BytesIO(body), "v.csv")},
                       content_type="multipart/form-data")
    assert resp.get_json()["posted"] == 1
    resp = client.post("/api/vouchers/import", data={"file": (io.BytesIO(body), "v.txt")},
                       content_type="multipart/form-data")
    assert resp.status_code == 400


@pytest.mark.parametrize("path, has_amount", [
    ("/reports/account/1", True), ("/reports/type/Casting", True), ("/reports/locker", True),
    ("/reports/open-balance", False), ("/reports/balances/Casting", True), ("/reports/summary", True)])
def test_reports(client, path, has_amount):
    acct = create_account(client, "Casting Room", "Casting")
    assert acct["id"] == 1
    client.post("/api/vouchers", json={"account_id": 1, "date": "2025-01-02", "vt": "INV",
                                       "description": "Rings", "gold": 12.5})
    pdf = client.get(path)
    assert pdf.status_code == 200
    assert pdf.headers["Content-Type"] == "application/pdf"
    assert pdf.data.startswith(b"%PDF")
    csv_resp = client.get(path + "?fmt=csv")
    assert csv_resp.headers["Content-Type"].startswith("text/csv")
    assert (b"12.500" in csv_resp.data) == has_amount
    assert client.get(path + "?fmt=doc").status_code == 400


def test_internal_key_error_is_500(client, monkeypatch):
    def broken():
        raise KeyError("types")
    monkeypatch.setattr(models, "type_summary", broken)
    resp = client.get("/api/summary")
    assert resp.status_code == 500
    assert resp.get_json()["ok"] is False


def test_voucher_import_corrupt_xlsx(client):
    resp = client.post("/api/vouchers/import", data={"file": (io.BytesIO(b"garbage"), "v.xlsx")},
                       content_type="multipart/form-data")
    assert resp.status_code == 400
    assert "Cannot read" in resp.get_json()["error"]
