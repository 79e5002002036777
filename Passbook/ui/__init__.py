"""
UI package: application actions, main application setup, theming, and widgets.

This package provides:

- :mod:`Passbook.ui.actions` – Application-wide Qt signals and utility slots.
- :mod:`Passbook.ui.app` – QApplication subclass and setup functions for high-DPI.
- :mod:`Passbook.ui.ui` – Styling constants for sizes and colors, the stylesheet and toasts.
- :mod:`Passbook.ui.pinpad` – PIN display, keypad and the setup/login screens.
- :mod:`Passbook.ui.dialogs` – Modal forms for expenses, months, funds and PIN changes.
- :mod:`Passbook.ui.main` – Main window of the PIN-protected passbook.
- :mod:`Passbook.ui.family` – Main window of the family allowance dashboard.
"""
