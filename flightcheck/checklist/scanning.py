"""
Camera scan loop: poll frames until a student QR code is seen.

Why:
    The camera is an exclusive device. Whatever ends the scan (a hit, the user
    pressing stop, the page going away, or an error), the stream must be
    released exactly once. The loop therefore owns the camera through an async
    context manager and has a single exit path.

The decoding itself is the platform's job: `detector(frame)` returns the raw
strings it found (the browser's BarcodeDetector in `static/js/scan.js` plays
the same role on the client). This module only wires frames → detector →
`extract_student_id`.
"""
from __future__ import annotations

from typing import Any, AsyncContextManager, Awaitable, Callable, Iterable, Optional, Protocol, Union
import asyncio
import inspect
import logging

from .qr import extract_student_id


logger = logging.getLogger("flightcheck.checklist.scan")


class FrameSource(Protocol):
    async def read(self) -> Any:
        ...


Detector = Callable[[Any], Union[Iterable[str], Awaitable[Iterable[str]]]]


class ScanLoop:
    def __init__(
        self,
        camera: Callable[[], AsyncContextManager[FrameSource]],
        detector: Detector,
        *,
        interval: float = 0.1,
    ) -> None:
        self._camera = camera
        self._detector = detector
        self._interval = interval
        self._stopped = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        """Ask the loop to end; `run()` then returns None."""
        self._stopped.set()

    async def _detect(self, frame: Any) -> list[str]:
        result = self._detector(frame)
        if inspect.isawaitable(result):
            result = await result
        return [str(v) for v in (result or [])]

    async def run(self) -> Optional[str]:
        """Return the first student id read from the camera, or None if stopped.

        Cancellation propagates; the camera context is exited on every path.
        """
        async with self._camera() as source:
            while not self._stopped.is_set():
                frame = await source.read()
                try:
                    raw_values = await self._detect(frame)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    # A frame the detector chokes on is skipped, not fatal.
                    logger.debug("Detector failed on frame: %s", exc.__class__.__name__)
                    raw_values = []
                for raw in raw_values:
                    student_id = extract_student_id(raw)
                    if student_id:
                        self._stopped.set()
                        return student_id
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
        return None
