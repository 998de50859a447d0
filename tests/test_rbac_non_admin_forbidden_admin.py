from tests.conftest import login_session, make_book

def test_non_admin_gets_403_on_admin_endpoint(client):
    login_session(client, user_id=2, role="user")  # no admin
    res = client.get("/admin/security-events")
    assert res.status_code == 403

def test_plain_user_cannot_delete_or_edit_books(client):
    login_session(client, user_id=2, role="user")
    book_id = make_book(total=1)
    assert client.delete(f"/books/{book_id}").status_code == 403
    assert client.patch(f"/books/{book_id}", json={"total_quantity": 3}).status_code == 403
