# Nombre de archivo: realtime.py
# Ubicación de archivo: core/realtime.py
# Descripción: Canales de notificación de cambios por tabla y re-fetch con debounce

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Awaitable, Callable, DefaultDict, List

from core.store import EventoCambio

logger = logging.getLogger(__name__)

Callback = Callable[[EventoCambio], None]


@dataclass
class _Suscripcion:
    notifier: "ChangeNotifier"
    tabla: str
    callback: Callback
    activa: bool = True

    def cancel(self) -> None:
        if self.activa:
            self.notifier._remove(self.tabla, self.callback)
            self.activa = False


class ChangeNotifier:
    """Publica un evento genérico a los suscriptores de cada tabla."""

    def __init__(self) -> None:
        self._callbacks: DefaultDict[str, List[Callback]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, tabla: str, callback: Callback) -> _Suscripcion:
        with self._lock:
            self._callbacks[tabla].append(callback)
        logger.debug("action=realtime_subscribe tabla=%s", tabla)
        return _Suscripcion(self, tabla, callback)

    def _remove(self, tabla: str, callback: Callback) -> None:
        with self._lock:
            try:
                self._callbacks[tabla].remove(callback)
            except ValueError:
                pass

    def publish(self, evento: EventoCambio) -> int:
        with self._lock:
            destinos = list(self._callbacks.get(evento.tabla, ()))
        for callback in destinos:
            try:
                callback(evento)
            except Exception as exc:  # noqa: BLE001 - un suscriptor roto no corta al resto
                logger.warning(
                    "action=realtime_publish stage=callback_error tabla=%s error=%s",
                    evento.tabla,
                    exc,
                )
        return len(destinos)

    def suscriptores(self, tabla: str) -> int:
        with self._lock:
            return len(self._callbacks.get(tabla, ()))


class DebouncedRefetch:
    """Coalesce ráfagas de `trigger()` en una única ejecución de `action`.

    Cada `trigger()` reinicia la espera; la acción corre `delay` segundos después
    del último aviso. Una ejecución en curso no se cancela: su resultado queda
    superado por la siguiente (last-write-wins).
    """

    def __init__(self, action: Callable[[], Awaitable[None]], delay: float = 0.2) -> None:
        self._action = action
        self._delay = delay
        self._pending: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self.ejecuciones = 0

    def trigger(self) -> None:
        loop = asyncio.get_running_loop()
        if self._pending is not None:
            self._pending.cancel()
        self._pending = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._pending = None
        self.ejecuciones += 1
        task = asyncio.get_running_loop().create_task(self._action())
        self._tasks.add(task)
        task.add_done_callback(self._done)

    def _done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("action=realtime_refetch stage=error error=%s", task.exception())

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        for task in list(self._tasks):
            task.cancel()


__all__ = ["ChangeNotifier", "DebouncedRefetch"]
