from flask import Flask


def register_blueprints(app: Flask) -> None:
    from ricky_api.web.views import views_bp

    app.register_blueprint(views_bp)
