import os

# Production by default when served by gunicorn/uwsgi
os.environ.setdefault("APP_ENV", "production")

from ltcfund import create_app  # noqa: E402

app = create_app()
