"""WSGI entry point: ``gunicorn wsgi:app`` or ``python wsgi.py`` for local runs."""
import os

from shopmock import create_app

app = create_app(os.getenv('SHOPMOCK_CONFIG', 'config.Config'))

if __name__ == "__main__":
    app.run(host=os.getenv('HOST', '127.0.0.1'), port=int(os.getenv('PORT', 3000)), threaded=True)
