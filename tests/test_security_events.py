from biblioteca.extensions import db
from biblioteca.models import SecurityEvent
from biblioteca.security import rate_limit
from tests.conftest import login_session


def test_denials_are_recorded_when_enabled(client, app):
    app.config["SECURITY_EVENTS_ENABLED"] = True

    assert client.get("/books/").status_code == 401
    login_session(client, user_id=2, role="user")
    assert client.delete("/books/1").status_code == 403

    db.session.expire_all()
    events = SecurityEvent.query.order_by(SecurityEvent.id).all()
    assert [e.event_type for e in events] == ["deny_unauthorized", "deny_forbidden"]
    assert events[1].user_id == 2
    assert events[1].blueprint == "books"
    assert events[1].method == "DELETE"

    login_session(client, user_id=3, role="admin")
    r = client.get("/admin/security-events?event_type=deny_forbidden")
    assert r.status_code == 200
    assert r.get_json()["total"] == 1


def test_nothing_recorded_when_disabled(client):
    assert client.get("/books/").status_code == 401
    assert SecurityEvent.query.count() == 0


def test_login_rate_limited(client, app):
    app.config["RATE_LIMIT_ENABLED"] = True
    limit, _ = rate_limit.limits_for("auth.login")

    for _ in range(limit):
        r = client.post("/auth/login", json={"email": "x@test.local", "password": "whatever"})
        assert r.status_code == 401

    r = client.post("/auth/login", json={"email": "x@test.local", "password": "whatever"})
    assert r.status_code == 429
    assert r.get_json()["error"] == "too_many_requests"


def test_sliding_window():
    rate_limit.reset()
    assert rate_limit.hit("k", limit=2, window_sec=10, now=100.0)
    assert rate_limit.hit("k", limit=2, window_sec=10, now=101.0)
    assert not rate_limit.hit("k", limit=2, window_sec=10, now=105.0)
    assert rate_limit.hit("k", limit=2, window_sec=10, now=111.0)
    rate_limit.reset()


def test_forwarded_for_does_not_reset_login_limit(client, app):
    app.config["RATE_LIMIT_ENABLED"] = True
    limit, _ = rate_limit.limits_for("auth.login")

    codes = [
        client.post(
            "/auth/login",
            json={"email": "x@test.local", "password": "whatever"},
            headers={"X-Forwarded-For": f"10.0.0.{n}"},
        ).status_code
        for n in range(limit + 5)
    ]
    assert codes[:limit] == [401] * limit
    assert set(codes[limit:]) == {429}


def test_trusted_proxy_limits_per_forwarded_client():
    from biblioteca import create_app
    from tests.conftest import TEST_CONFIG

    proxied = create_app(config_overrides=dict(TEST_CONFIG, RATE_LIMIT_ENABLED=True, TRUSTED_PROXY_COUNT=1))
    limit, _ = rate_limit.limits_for("auth.login")
    rate_limit.reset()

    with proxied.app_context():
        db.create_all()
        c = proxied.test_client()

        def login(ip):
            return c.post(
                "/auth/login",
                json={"email": "x@test.local", "password": "whatever"},
                headers={"X-Forwarded-For": ip},
            ).status_code

        # detrás del proxy cada cliente tiene su propio cupo
        assert [login(f"203.0.113.{n}") for n in range(limit + 1)] == [401] * (limit + 1)
        assert [login("198.51.100.9") for _ in range(limit + 1)][-1] == 429

        db.session.remove()
        db.drop_all()
    rate_limit.reset()


def test_expired_keys_are_dropped():
    rate_limit.reset()
    for n in range(5):
        assert rate_limit.hit(f"10.0.0.{n}:auth.login", limit=2, window_sec=10, now=100.0)

    assert rate_limit.sweep(window_sec=10, now=105.0) == 5
    assert rate_limit.sweep(window_sec=10, now=200.0) == 0
    rate_limit.reset()


def test_buckets_swept_when_threshold_reached(monkeypatch):
    rate_limit.reset()
    monkeypatch.setattr(rate_limit, "SWEEP_THRESHOLD", 3)

    for n in range(3):
        rate_limit.hit(f"old{n}", limit=5, window_sec=10, now=100.0)
    rate_limit.hit("new", limit=5, window_sec=10, now=200.0)

    assert list(rate_limit._BUCKETS) == ["new"]
    rate_limit.reset()


def test_security_event_listing_shape(client, app):
    app.config["SECURITY_EVENTS_ENABLED"] = True
    assert client.get("/dashboard/stats").status_code == 401

    login_session(client, user_id=3, role="admin")
    r = client.get("/admin/security-events")
    item = r.get_json()["items"][0]
    assert item["event_type"] == SecurityEvent.Types.UNAUTHORIZED
    assert item["endpoint"] == "dashboard.stats"
    assert item["ip"] == "127.0.0.1"
    assert item["created_at"]

    assert client.get("/admin/security-events?event_type=nope").status_code == 400
