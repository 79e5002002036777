"""
Passbook: desktop client for a family allowance and personal passbook server.

This package provides:

- :mod:`Passbook.core` – API clients, session storage, form validation and the application controllers.
- :mod:`Passbook.data` – Spending analytics (:mod:`Passbook.data.analytics`) and Qt table models.
- :mod:`Passbook.ui` – PySide6 windows for the PIN-protected passbook and the family dashboard.
- :mod:`Passbook.settings` – Settings management with schema validation, and locale formatting.
- :mod:`Passbook.log` – In-app logging with a log viewer.

Use :func:`Passbook.exec_` to launch the application. The ``server.variant``
setting selects the window: ``pin`` for the passbook, ``family`` for the dashboard.
"""

import sys

from PySide6 import QtCore

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('Passbook requires Python 3.11 or higher.')

__version__ = '0.1.0'
__license__ = 'GPL-3.0'
__description__ = 'Passbook: desktop client for tracking allowances, savings and expenses.'

from .log import log

log.setup_logging()


def exec_() -> None:
    """Launch the Passbook GUI application and enter its event loop.

    Initializes the QApplication, shows the window of the configured server
    variant, and starts the Qt event loop.
    """
    from .ui import app
    from .ui.actions import signals

    application = app.Application(sys.argv)
    application.show_window()

    # Ask components to load their data
    QtCore.QTimer.singleShot(100, signals.initializationRequested)

    sys.exit(application.exec())


if __name__ == '__main__':
    exec_()
