"""School inventory service; the ASGI application is ``app.main:app``."""
