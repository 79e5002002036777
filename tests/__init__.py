"""Test-suite of Passbook.

Qt runs headless and ``QStandardPaths`` is switched to test mode before any
Passbook module is imported, so the settings library never touches the user's
real config directory.
"""
import os

from PySide6 import QtCore

os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')
os.environ.pop('PASSBOOK_API_URL', None)
QtCore.QStandardPaths.setTestModeEnabled(True)
