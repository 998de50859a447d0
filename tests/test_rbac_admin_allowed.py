from tests.conftest import login_session

def test_admin_gets_200_on_admin_endpoint(client):
    login_session(client, user_id=3, role="admin")
    res = client.get("/admin/security-events")
    assert res.status_code == 200

def test_librarian_may_write_catalog_and_loans(client):
    login_session(client, user_id=4, role="bibliotecario")
    res = client.post("/books/", json={"title": "1984", "author": "George Orwell", "total_quantity": 1})
    assert res.status_code == 201
    book_id = res.get_json()["id"]
    res = client.post("/loans/", json={"book_id": book_id, "student_name": "Ana", "student_class": "9A", "loan_days": 7})
    assert res.status_code == 201
