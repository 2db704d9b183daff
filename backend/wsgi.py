"""WSGI entry point for running under an external server."""

from impostor.server import create_app

app, socketio = create_app()
