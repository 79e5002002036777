"""Background execution of blocking requests.

Controllers run every request through an *executor*: a callable taking the
blocking function and two callbacks, ``on_result(result)`` and
``on_error(exception)``. :func:`run_direct` calls the function in place and is
used when no event loop is running. :class:`AsyncExecutor` runs it on a
:class:`AsyncWorker` thread and calls back on the thread that owns the executor.
"""

import logging
from typing import Any, Callable, Dict, Tuple

from PySide6 import QtCore

from ..status import status

ResultCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]
Executor = Callable[[Callable[[], Any], ResultCallback, ErrorCallback], None]


def run_direct(func: Callable[[], Any], on_result: ResultCallback, on_error: ErrorCallback) -> None:
    """Run ``func`` synchronously.

    Status exceptions are handed to ``on_error``. Anything else propagates.
    """
    try:
        result = func()
    except status.BaseStatusException as ex:
        on_error(ex)
        return
    on_result(result)


class AsyncWorker(QtCore.QThread):
    """
    Worker thread running a single blocking function.

    Signals:
        resultReady (object): Emitted with the function's result on success.
        errorOccurred (object): Emitted with the exception on failure.
    """
    resultReady = QtCore.Signal(object)
    errorOccurred = QtCore.Signal(object)

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.func = func
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        try:
            result = self.func(*self.args, **self.kwargs)
        except status.BaseStatusException as ex:
            self.errorOccurred.emit(ex)
            return
        except Exception as ex:
            logging.exception(f'Unexpected error in background request: {ex}')
            self.errorOccurred.emit(ex)
            return
        self.resultReady.emit(result)


class AsyncExecutor(QtCore.QObject):
    """Runs functions on worker threads and calls back on the owner's thread.

    Signals:
        busyChanged (bool): Emitted when the first request starts and when the last one ends.
    """
    busyChanged = QtCore.Signal(bool)

    def __init__(self, parent: QtCore.QObject = None) -> None:
        super().__init__(parent=parent)
        self._workers: Dict[AsyncWorker, Tuple[ResultCallback, ErrorCallback]] = {}

    @property
    def busy(self) -> bool:
        return bool(self._workers)

    def __call__(self, func: Callable[[], Any], on_result: ResultCallback, on_error: ErrorCallback) -> None:
        worker = AsyncWorker(func)
        was_busy = self.busy
        self._workers[worker] = (on_result, on_error)

        worker.resultReady.connect(self._on_result)
        worker.errorOccurred.connect(self._on_error)
        worker.finished.connect(self._on_finished)
        worker.start()

        if not was_busy:
            self.busyChanged.emit(True)

    @QtCore.Slot(object)
    def _on_result(self, result: Any) -> None:
        callbacks = self._workers.get(self.sender())
        if callbacks:
            callbacks[0](result)

    @QtCore.Slot(object)
    def _on_error(self, ex: Exception) -> None:
        callbacks = self._workers.get(self.sender())
        if callbacks:
            callbacks[1](ex)

    @QtCore.Slot()
    def _on_finished(self) -> None:
        worker = self.sender()
        self._workers.pop(worker, None)
        worker.deleteLater()

        if not self.busy:
            self.busyChanged.emit(False)

    def wait(self, msecs: int = 5000) -> None:
        """Block until every running worker has finished."""
        for worker in list(self._workers):
            worker.wait(msecs)


def error_message(ex: Exception) -> str:
    """Returns the text to display for an exception."""
    return getattr(ex, 'message', None) or str(ex) or ex.__class__.__name__
