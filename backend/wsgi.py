# backend/wsgi.py
from nexus import create_app

app = create_app()
