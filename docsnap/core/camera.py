"""Camera live source using Qt Multimedia.

Frames arrive on a QVideoSink; the source keeps only the latest one and
converts it to an RGBA array when it is read. Must be used from the GUI
thread.
"""

from typing import Optional

import numpy as np
from PySide6.QtMultimedia import (
    QCamera,
    QCameraDevice,
    QCameraFormat,
    QMediaCaptureSession,
    QMediaDevices,
    QVideoFrame,
    QVideoSink,
)

from .codec import qimage_to_rgba
from .constants import CAMERA_PREFERRED_SIZE
from .logging import get_logger
from .source import LightControl, LiveSource, SourceError


def pick_camera_device() -> Optional[QCameraDevice]:
    """Prefer a back-facing camera, fall back to the default input."""
    devices = QMediaDevices.videoInputs()
    for device in devices:
        if device.position() == QCameraDevice.Position.BackFace:
            return device

    default = QMediaDevices.defaultVideoInput()
    if default.isNull():
        return devices[0] if devices else None
    return default


def pick_camera_format(
    device: QCameraDevice,
    preferred: tuple[int, int] = CAMERA_PREFERRED_SIZE,
) -> Optional[QCameraFormat]:
    """Format whose resolution is closest to the preferred size."""
    formats = device.videoFormats()
    if not formats:
        return None

    want_w, want_h = preferred

    def distance(fmt: QCameraFormat) -> int:
        size = fmt.resolution()
        return abs(size.width() - want_w) + abs(size.height() - want_h)

    return min(formats, key=distance)


class CameraTorch(LightControl):
    """Torch of a QCamera."""

    def __init__(self, camera: QCamera) -> None:
        self._camera = camera

    def is_supported(self) -> bool:
        return self._camera.isTorchModeSupported(QCamera.TorchMode.TorchOn)

    @property
    def enabled(self) -> bool:
        return self._camera.torchMode() == QCamera.TorchMode.TorchOn

    def set_enabled(self, enabled: bool) -> None:
        mode = QCamera.TorchMode.TorchOn if enabled else QCamera.TorchMode.TorchOff
        self._camera.setTorchMode(mode)


class CameraSource(LiveSource):
    """Live camera feed."""

    def __init__(self, device: Optional[QCameraDevice] = None) -> None:
        self._device = device
        self._camera: Optional[QCamera] = None
        self._session: Optional[QMediaCaptureSession] = None
        self._sink: Optional[QVideoSink] = None
        self._torch: Optional[CameraTorch] = None
        self._pending: Optional[QVideoFrame] = None
        self._latest: Optional[np.ndarray] = None
        self._logger = get_logger()

    def open(self) -> None:
        """Start the camera.

        Raises:
            SourceError: If no camera exists or it fails to start
        """
        device = self._device or pick_camera_device()
        if device is None or device.isNull():
            raise SourceError("No camera available")

        camera = QCamera(device)
        fmt = pick_camera_format(device)
        if fmt is not None:
            camera.setCameraFormat(fmt)

        session = QMediaCaptureSession()
        session.setCamera(camera)
        sink = QVideoSink()
        session.setVideoSink(sink)
        sink.videoFrameChanged.connect(self._on_frame)
        camera.errorOccurred.connect(self._on_error)

        camera.start()
        if camera.error() != QCamera.Error.NoError:
            raise SourceError(f"Camera failed to start: {camera.errorString()}")

        self._camera = camera
        self._session = session
        self._sink = sink
        self._torch = CameraTorch(camera)
        self._logger.info(f"Camera opened: {device.description()}")

    def close(self) -> None:
        """Stop the camera and drop the last frame."""
        if self._sink is not None:
            self._sink.videoFrameChanged.disconnect(self._on_frame)
        if self._camera is not None:
            self._camera.stop()

        self._camera = None
        self._session = None
        self._sink = None
        self._torch = None
        self._pending = None
        self._latest = None

    @property
    def torch(self) -> Optional[LightControl]:
        return self._torch

    def frame(self) -> Optional[np.ndarray]:
        """Most recent decoded frame, None before the first one."""
        if self._pending is not None:
            image = self._pending.toImage()
            self._pending = None
            if not image.isNull():
                self._latest = qimage_to_rgba(image)
        return self._latest

    def _on_frame(self, frame: QVideoFrame) -> None:
        # Converted in frame(), only the newest one is kept
        self._pending = frame

    def _on_error(self, error: QCamera.Error, message: str) -> None:
        self._logger.error(f"Camera error: {message}")
