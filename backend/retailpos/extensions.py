# Overview: Flask extension instances shared by the app factory, models and services.

"""
`db` owns the scoped session every unit of work commits through
(services/concurrency.py); `migrate` wires Alembic to the same metadata so
`flask db upgrade` applies backend/migrations/versions.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
