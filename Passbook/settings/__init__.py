"""
Settings package: configuration API and localization helpers.

This package provides:

- :mod:`Passbook.settings.lib` – Core settings management and schema validation.
- :mod:`Passbook.settings.locale` – Babel-based currency, month and date formatting.
"""
