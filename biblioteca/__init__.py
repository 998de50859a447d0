import logging

from flask import Flask, jsonify, request, abort, session
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import get_config
from .extensions import db, migrate
from .models.security_event import SecurityEvent
from .security.security_events import client_ip, record_security_event
from .services.errors import LedgerError


def create_app(config_overrides: dict | None = None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(get_config())

    # ✅ Apply overrides BEFORE db.init_app so SQLAlchemy uses test DB
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(level=logging.INFO)
    app.logger.info("Biblioteca - init app")

    # X-Forwarded-For solo detrás de proxies declarados
    proxies = int(app.config.get("TRUSTED_PROXY_COUNT", 0) or 0)
    if proxies > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxies, x_proto=proxies)

    db.init_app(app)

    # load models so Alembic detects tables / metadata exists
    from . import models  # noqa: F401

    migrate.init_app(app, db)

    from .blueprints.auth.routes import bp as auth_bp
    from .blueprints.books.routes import bp as books_bp
    from .blueprints.loans.routes import bp as loans_bp
    from .blueprints.dashboard.routes import bp as dashboard_bp
    from .blueprints.admin.routes import bp as admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(books_bp)
    app.register_blueprint(loans_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(admin_bp)

    from .cli import register_cli
    register_cli(app)

    from .security.access import decide, is_public_endpoint, undeclared_endpoints

    # sin permiso en la tabla = solo admin; avisar al arrancar
    for endpoint in undeclared_endpoints(app):
        app.logger.warning("RBAC: endpoint sin permiso declarado (solo admin): %s", endpoint)

    # -----------------------------
    # Error handlers (JSON)
    # -----------------------------
    @app.errorhandler(LedgerError)
    def err_ledger(e: LedgerError):
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(400)
    def err_400(e):
        return jsonify(error="bad_request", description=getattr(e, "description", None)), 400

    @app.errorhandler(401)
    def err_401(e):
        return jsonify(error="unauthorized"), 401

    @app.errorhandler(403)
    def err_403(e):
        return jsonify(error="forbidden"), 403

    @app.errorhandler(404)
    def err_404(e):
        return jsonify(error="not_found"), 404

    @app.errorhandler(405)
    def err_405(e):
        return jsonify(error="method_not_allowed"), 405

    @app.errorhandler(429)
    def err_429(e):
        return jsonify(error="too_many_requests"), 429

    # -----------------------------
    # RBAC / Enforcement global + rate limit (auth)
    # -----------------------------
    @app.before_request
    def enforce_global_access_min():
        # 0) endpoint None suele ser 404 / rutas no resueltas
        if request.endpoint is None:
            return

        # 1) permitir preflight CORS
        if request.method == "OPTIONS":
            return

        # 2) rate limit SOLO para auth.*
        #    OJO: auth.* es público, por eso va ANTES del return de is_public_endpoint
        if app.config.get("RATE_LIMIT_ENABLED", True) and request.endpoint.startswith("auth."):
            from .security.rate_limit import hit, limits_for

            # remote_addr: con TRUSTED_PROXY_COUNT ProxyFix ya aplicó X-Forwarded-For
            ip = client_ip(request)

            limit, window_sec = limits_for(request.endpoint)

            key = f"{ip}:{request.endpoint}"
            if not hit(key, limit=limit, window_sec=window_sec):
                app.logger.info(
                    "RATE LIMIT 429: ip=%s endpoint=%s limit=%s window=%s",
                    ip, request.endpoint, limit, window_sec
                )
                record_security_event(
                    event_type=SecurityEvent.Types.RATE_LIMITED,
                    status_code=429,
                    req=request,
                    user=None,
                    details=f"limit={limit} window={window_sec} key={key}",
                )
                abort(429)

        # 3) públicos: auth.* (pese a rate limit), health/index/routes/static
        if is_public_endpoint(request.endpoint):
            return

        # 4) a partir de aquí: requiere login
        user_id = session.get("user_id")
        if not user_id:
            app.logger.info(
                "RBAC DENY 401: no session user_id | endpoint=%s method=%s path=%s",
                request.endpoint, request.method, request.path,
            )
            record_security_event(
                event_type=SecurityEvent.Types.UNAUTHORIZED,
                status_code=401,
                req=request,
                user=None,
                details="missing session user_id",
            )
            abort(401)

        # 5) cargar usuario
        from .blueprints.auth.decorators import current_user
        user = current_user()

        # 6) usuario borrado o desactivado
        if user is None or not user.is_active:
            app.logger.info(
                "RBAC DENY 403: inactive user_id=%s role=%s | endpoint=%s method=%s path=%s",
                user_id, getattr(user, "role", None),
                request.endpoint, request.method, request.path,
            )
            record_security_event(
                event_type=SecurityEvent.Types.INACTIVE,
                status_code=403,
                req=request,
                user=user,
                details="user missing or inactive",
            )
            abort(403)

        # 7) permiso del endpoint según el rol
        decision = decide(user, request.endpoint)
        if not decision.allowed:
            app.logger.info(
                "RBAC DENY 403: %s user_id=%s role=%s perm=%s | endpoint=%s method=%s path=%s",
                decision.reason, user_id, user.role, decision.permission,
                request.endpoint, request.method, request.path,
            )
            record_security_event(
                event_type=SecurityEvent.Types.FORBIDDEN,
                status_code=403,
                req=request,
                user=user,
                details=f"perm={decision.permission} reason={decision.reason}",
            )
            abort(403)

    @app.get("/health")
    def health():
        return jsonify(status="ok")

    @app.get("/")
    def index():
        return "Biblioteca Escolar ✅"

    @app.get("/routes")
    def routes():
        return jsonify(sorted([str(r) for r in app.url_map.iter_rules()]))

    return app
