import io

from conftest import register


def add_tx(client, headers, **overrides):
    body = {
        "date": "2024-01-15",
        "desc": "Dinner",
        "amount": -300,
        "category": "Dinner",
        "paidBy": "Me",
        "splitAmong": ["Me"],
    }
    body.update(overrides)
    return client.post("/transactions", json=body, headers=headers)


# ---------------- Transactions ----------------
def test_create_and_list_transactions(client, headers):
    resp = add_tx(client, headers, splitAmong=["Me", "Alice", "Alice"])
    assert resp.status_code == 201
    tx = resp.get_json()
    assert tx["id"] == 1
    assert tx["amount"] == -300
    assert tx["splitAmong"] == ["Me", "Alice"]
    assert tx["splitType"] == "equal"
    assert "customSplits" not in tx

    add_tx(client, headers, date="2024-02-01", desc="Later")
    listed = client.get("/transactions", headers=headers).get_json()
    assert [t["desc"] for t in listed] == ["Later", "Dinner"]


def test_ids_are_never_reused(client, headers):
    add_tx(client, headers)
    add_tx(client, headers)
    assert client.delete("/transactions?id=1", headers=headers).status_code == 200

    third = add_tx(client, headers).get_json()
    assert third["id"] == 3
    assert [t["id"] for t in client.get("/transactions", headers=headers).get_json()] == [3, 2]


def test_delete_by_path_and_missing(client, headers):
    add_tx(client, headers)
    assert client.delete("/transactions/1", headers=headers).status_code == 200
    assert client.delete("/transactions/1", headers=headers).status_code == 404
    assert client.delete("/transactions?id=abc", headers=headers).status_code == 400


def test_transactions_are_scoped_per_user(client, headers):
    add_tx(client, headers)
    other = register(client, email="other@example.com")

    assert client.get("/transactions", headers=other).get_json() == []
    assert client.delete("/transactions/1", headers=other).status_code == 404
    assert add_tx(client, other).get_json()["id"] == 1


def test_transaction_validation(client, headers):
    cases = [
        {"splitAmong": []},
        {"amount": "abc"},
        {"amount": 0},
        {"amount": "Rs. 500"},
        {"amount": "12abc34"},
        {"amount": "5$00"},
        {"amount": True},
        {"date": "31st of never"},
        {"splitType": "weird"},
        {"splitType": "custom"},
        {"splitType": "custom", "customSplits": {"Bob": 10}},
        {"splitType": "custom", "customSplits": {"Me": -5}},
    ]
    for overrides in cases:
        resp = add_tx(client, headers, **overrides)
        assert resp.status_code == 400, overrides
        assert resp.get_json()["error"]

    assert client.get("/transactions", headers=headers).get_json() == []


def test_amount_accepts_currency_symbol_and_commas(client, headers):
    assert add_tx(client, headers, amount="₹1,200.50").get_json()["amount"] == 1200.5
    assert add_tx(client, headers, amount="-$ 300").get_json()["amount"] == -300
    assert add_tx(client, headers, amount=" -45 ").get_json()["amount"] == -45


def test_custom_split_is_stored(client, headers):
    resp = add_tx(client, headers, splitAmong=["Me", "Alice"], splitType="custom",
                  customSplits={"Me": 100, "Alice": 200})
    assert resp.status_code == 201
    assert resp.get_json()["customSplits"] == {"Me": 100, "Alice": 200}


def test_missing_category_is_suggested_from_desc(client, headers):
    tx = add_tx(client, headers, category="", desc="monthly rent").get_json()
    assert tx["category"] == "Rent"

    typed = add_tx(client, headers, category="groceries").get_json()
    assert typed["category"] == "Groceries"

    free_text = add_tx(client, headers, category="Pets").get_json()
    assert free_text["category"] == "Pets"


def test_bulk_csv_upload(client, headers):
    csv_bytes = (
        "date,desc,amount,category,paidBy,splitAmong\n"
        "2024-03-01,Groceries run,-600,,Me,Me;Alice\n"
        "not-a-date,Broken,-10,,Me,Me\n"
        "2024-03-02,Cab,-200,Public Transport,Alice,Me;Alice\n"
    ).encode()

    resp = client.post(
        "/transactions/bulk",
        data={"file": (io.BytesIO(csv_bytes), "tx.csv")},
        content_type="multipart/form-data",
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["inserted"] == 2
    assert [e["row"] for e in body["errors"]] == [2]

    listed = client.get("/transactions", headers=headers).get_json()
    assert {t["category"] for t in listed} == {"Groceries", "Public Transport"}
    assert listed[0]["splitAmong"] == ["Me", "Alice"]


def test_bulk_upload_requires_file(client, headers):
    assert client.post("/transactions/bulk", headers=headers).status_code == 400


def test_method_not_allowed_is_json(client, headers):
    resp = client.patch("/transactions", headers=headers)
    assert resp.status_code == 405
    assert "error" in resp.get_json()


# ---------------- Friends ----------------
def test_friends_crud(client, headers):
    assert client.get("/friends", headers=headers).get_json() == []

    assert client.post("/friends", json={"name": "Alice"}, headers=headers).status_code == 201
    assert client.post("/friends", json={"name": "Bob"}, headers=headers).status_code == 201
    assert client.post("/friends", json={"name": "Alice"}, headers=headers).status_code == 400
    assert client.post("/friends", json={"name": "Me"}, headers=headers).status_code == 400
    assert client.post("/friends", json={"name": "  "}, headers=headers).status_code == 400

    assert client.get("/friends", headers=headers).get_json() == ["Alice", "Bob"]

    assert client.delete("/friends?name=Alice", headers=headers).status_code == 200
    assert client.delete("/friends?name=Alice", headers=headers).status_code == 404
    assert client.get("/friends", headers=headers).get_json() == ["Bob"]


# ---------------- Salary ----------------
def test_salary_lifecycle(client, headers):
    assert client.get("/salary", headers=headers).get_json() == {
        "amount": 0.0, "receivedDate": None, "previousBalance": 0.0
    }

    resp = client.post("/salary", json={"amount": 30000, "receivedDate": "2024-01-01", "previousBalance": 1000},
                       headers=headers)
    assert resp.status_code == 200
    assert client.get("/salary", headers=headers).get_json() == {
        "amount": 30000.0, "receivedDate": "2024-01-01", "previousBalance": 1000.0
    }

    client.put("/salary", json={"amount": 35000, "receivedDate": "2024-02-01"}, headers=headers)
    assert client.get("/salary", headers=headers).get_json()["amount"] == 35000.0

    assert client.delete("/salary", headers=headers).status_code == 200
    assert client.get("/salary", headers=headers).get_json()["amount"] == 0.0


def test_salary_validation(client, headers):
    assert client.post("/salary", json={"amount": -1}, headers=headers).status_code == 400
    assert client.post("/salary", json={"amount": "lots"}, headers=headers).status_code == 400
    assert client.post("/salary", json={"amount": 10, "receivedDate": "soon"}, headers=headers).status_code == 400


# ---------------- Categories ----------------
def test_categories_crud(client, headers):
    categories = client.get("/categories", headers=headers).get_json()
    assert "Rent" in categories and "Settle" in categories

    assert client.post("/categories", json={"name": "Pets"}, headers=headers).status_code == 201
    assert client.post("/categories", json={"name": "pets"}, headers=headers).status_code == 400
    assert client.delete("/categories?name=Rent", headers=headers).status_code == 200
    assert client.delete("/categories?name=Nope", headers=headers).status_code == 404

    categories = client.get("/categories", headers=headers).get_json()
    assert "Pets" in categories
    assert "Rent" not in categories


def test_category_suggestion(client, headers):
    resp = client.post("/categories/suggest", json={"desc": "Swiggy biryani"}, headers=headers)
    assert resp.get_json()["category"] == "Dinner"
    assert client.post("/categories/suggest", json={}, headers=headers).status_code == 400
