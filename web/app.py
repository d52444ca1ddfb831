#!/usr/bin/env python3
"""
Flask application for browsing discovered blunders.
"""

import os
from pathlib import Path
from flask import Flask
from dotenv import load_dotenv

# Load environment variables from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / '.env')

# Import db from separate module to avoid circular imports
from web.database import db

DEFAULT_DATABASE_NAME = 'chess_tactics'


def database_url_from_env() -> str:
    """
    Build the database URL from the environment.

    DATABASE_URL wins if set. Otherwise a MySQL URL is assembled from
    SQLUSER, SQLPASS, SQLIP, SQLPORT and SQLDB (default 'chess_tactics').
    Returns '' if neither is configured.
    """
    db_url = os.getenv('DATABASE_URL', '')
    if db_url:
        # Convert postgresql:// to postgresql+psycopg:// for psycopg3 compatibility
        if db_url.startswith('postgresql://'):
            db_url = db_url.replace('postgresql://', 'postgresql+psycopg://', 1)
        return db_url

    host = os.getenv('SQLIP')
    if not host:
        return ''
    user = os.getenv('SQLUSER', '')
    password = os.getenv('SQLPASS', '')
    port = os.getenv('SQLPORT', '3306')
    name = os.getenv('SQLDB', DEFAULT_DATABASE_NAME)
    credentials = f"{user}:{password}@" if user else ''
    return f"mysql+pymysql://{credentials}{host}:{port}/{name}"


def create_app(database_url: str = None):
    """Application factory."""
    app = Flask(__name__)

    # Configuration
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url or database_url_from_env()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-key-change-in-production')

    # Initialize extensions
    db.init_app(app)

    # Register routes (import here to avoid circular imports)
    with app.app_context():
        from web import routes
        routes.register_routes(app)

        # Create the positions table on first run. Idempotent.
        from web import models  # noqa: F401
        db.create_all()

    return app


if __name__ == '__main__':
    app = create_app()
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port)
