"""
Core package for Passbook: server clients and the application flow.

This package includes:

- :mod:`Passbook.core.session` – Persisted session token and cached user.
- :mod:`Passbook.core.api` – HTTP request machinery and the PIN-protected passbook endpoints.
- :mod:`Passbook.core.family` – Client of the family allowance backend.
- :mod:`Passbook.core.pagination` – Cursor pagination helpers.
- :mod:`Passbook.core.forms` – Validation of form input.
- :mod:`Passbook.core.state` – In-memory state of both application variants.
- :mod:`Passbook.core.worker` – Background execution of blocking requests.
- :mod:`Passbook.core.auth` – PIN keypad controller.
- :mod:`Passbook.core.controller` – Application flow of the passbook.
- :mod:`Passbook.core.dashboard` – Application flow of the family dashboard.
"""
