from tests.conftest import login_session, make_book


def test_dashboard_stats_endpoint(client):
    login_session(client, user_id=2, role="bibliotecario")
    book_id = make_book(total=4)
    make_book(total=2, title="1984", author="George Orwell")

    client.post("/loans/", json={"book_id": book_id, "student_name": "Ana", "student_class": "9A", "loan_days": 7})

    r = client.get("/dashboard/stats")
    assert r.status_code == 200
    data = r.get_json()
    assert data["total_copies"] == 6
    assert data["available_copies"] == 5
    assert data["borrowed_copies"] == 1
    assert data["overdue_loans"] == 0


def test_dashboard_requires_login(client):
    assert client.get("/dashboard/stats").status_code == 401
