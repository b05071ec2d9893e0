from flask import Flask, jsonify
from lms.config import Config
from lms.extensions import db, migrate, jwt, mail


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # models must be imported before create_all / migrations see the metadata
    from lms.models import user, book, borrow, notification_log  # noqa: F401

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    from lms.controllers.borrow_controller import borrow_bp
    from lms.controllers.account_controller import account_bp
    from lms.controllers.notification_controller import notif_bp
    app.register_blueprint(borrow_bp, url_prefix="/borrow")
    app.register_blueprint(account_bp, url_prefix="/accounts")
    app.register_blueprint(notif_bp, url_prefix="/notifications")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    # daily overdue scan
    if app.config.get("SCHEDULER_ENABLED"):
        from lms.tasks.scheduler import start_scheduler
        start_scheduler(app)

    return app
