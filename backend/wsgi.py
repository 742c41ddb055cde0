# Overview: WSGI entry point; set FLASK_APP=wsgi.py to use the flask CLI.

from fixtrack import create_app

app = create_app()
