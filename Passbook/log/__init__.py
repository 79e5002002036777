"""
Logging subsystem: handlers and views for application logging.

Modules:

- :mod:`Passbook.log.log` – Log handler integrating with Python logging.
- :mod:`Passbook.log.view` – Qt dialog for browsing and filtering in-memory logs.
"""
