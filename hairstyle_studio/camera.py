#!/usr/bin/env python3
"""
カメラ制御モジュール
OpenCV でデバイスのビデオストリームを開き、プレビューと静止画キャプチャを行う。

状態遷移:
    closed → requesting → ready → closed
    requesting → error
ストリームは CameraStream が保持し、どの経路で状態を抜けても必ず解放する。
"""

from __future__ import annotations
import logging
import os
import threading
import time
from enum import Enum
from typing import Callable, Optional

import cv2
import numpy as np

from .capture import CaptureSource, SelectedImage, select_image
from .config import CAMERA_HEIGHT, CAMERA_INDEX, CAMERA_WIDTH, JPEG_QUALITY
from .errors import (
    CameraError,
    CameraNotFoundError,
    CameraNotReadyError,
    CameraPermissionError,
    CameraUnsupportedError,
)

logger = logging.getLogger(__name__)


class CameraState(str, Enum):
    CLOSED = "closed"
    REQUESTING = "requesting"
    READY = "ready"
    ERROR = "error"


def open_video_device(index: int, width: int = CAMERA_WIDTH, height: int = CAMERA_HEIGHT):
    """
    ビデオデバイスを開く（失敗理由ごとに別の例外を送出）

    Args:
        index: デバイス番号（0 = 内蔵/正面カメラ）
        width: 希望する幅
        height: 希望する高さ

    Returns:
        開いた cv2.VideoCapture
    """
    if not cv2.videoio_registry.getCameraBackends():
        raise CameraUnsupportedError()

    device_path = f"/dev/video{index}"
    if os.path.exists(device_path) and not os.access(device_path, os.R_OK):
        raise CameraPermissionError()

    try:
        cap = cv2.VideoCapture(index)
    except cv2.error as e:
        raise CameraError(f"Camera error: {e}") from e

    if not cap.isOpened():
        cap.release()
        raise CameraNotFoundError()

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    return cap


class CameraStream:
    """デバイスハンドルの所有者。release() は何度呼んでもよい"""

    def __init__(self, capture):
        self._capture = capture

    @property
    def released(self) -> bool:
        return self._capture is None

    def read(self) -> np.ndarray:
        if self._capture is None:
            raise CameraNotReadyError()
        ret, frame = self._capture.read()
        if not ret or frame is None:
            raise CameraError("Camera error: could not read a frame from the device")
        return frame

    def release(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self) -> "CameraStream":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


def encode_jpeg(frame: np.ndarray, quality: int = JPEG_QUALITY) -> bytes:
    ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise CameraError("Camera error: could not encode frame")
    return buf.tobytes()


class CameraController:
    """カメラの状態機械"""

    def __init__(self,
                 index: int = CAMERA_INDEX,
                 device_opener: Callable[..., object] = open_video_device,
                 width: int = CAMERA_WIDTH,
                 height: int = CAMERA_HEIGHT):
        self.index = index
        self.width = width
        self.height = height
        self._device_opener = device_opener
        self._stream: Optional[CameraStream] = None
        self._lock = threading.RLock()
        self.state = CameraState.CLOSED
        self.error: Optional[str] = None

    @property
    def has_stream(self) -> bool:
        return self._stream is not None and not self._stream.released

    def _transition(self, new_state: CameraState):
        logger.info(f"Camera {self.index}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _release(self):
        if self._stream is not None:
            self._stream.release()
            self._stream = None

    def open(self) -> CameraState:
        """
        ストリームを要求し、最初のフレームが取れたら ready にする

        Raises:
            CameraPermissionError / CameraNotFoundError / CameraUnsupportedError / CameraError
        """
        with self._lock:
            if self.state == CameraState.READY:
                return self.state

            self.error = None
            self._transition(CameraState.REQUESTING)
            try:
                self._stream = CameraStream(self._device_opener(self.index, self.width, self.height))
                self._stream.read()
            except CameraError as e:
                self._fail(e)
                raise
            except PermissionError as e:
                err = CameraPermissionError()
                self._fail(err)
                raise err from e
            except Exception as e:
                err = CameraError(f"Camera error: {e}")
                self._fail(err)
                raise err from e

            self._transition(CameraState.READY)
            return self.state

    def _fail(self, err: CameraError):
        self._release()
        self.error = err.message
        logger.error(f"Camera {self.index} failed: {err.message}")
        self._transition(CameraState.ERROR)

    def preview_jpeg(self) -> bytes:
        """
        ライブプレビュー用に現在のフレームを JPEG で返す。
        読み取りに失敗したらストリームを解放して closed に戻る。
        """
        with self._lock:
            if self.state != CameraState.READY:
                raise CameraNotReadyError()
            try:
                return encode_jpeg(self._stream.read())
            except CameraError as e:
                logger.error(f"Camera {self.index} preview failed: {e.message}")
                self.close()
                raise

    def capture(self) -> SelectedImage:
        """
        現在のフレームをネイティブ解像度のまま JPEG 化して SelectedImage を返す。
        成否にかかわらずカメラは closed に戻る。
        """
        with self._lock:
            if self.state != CameraState.READY:
                raise CameraNotReadyError()
            try:
                frame = self._stream.read()
                data = encode_jpeg(frame)
                filename = f"camera-capture-{int(time.time() * 1000)}.jpg"
                h, w = frame.shape[:2]
                logger.info(f"Captured {w}x{h} frame as {filename}")
                return select_image(data, "image/jpeg", filename, CaptureSource.CAMERA)
            finally:
                self.close()

    def close(self) -> CameraState:
        """キャンセル・キャプチャ後・終了時に呼ぶ"""
        with self._lock:
            self._release()
            if self.state != CameraState.CLOSED:
                self._transition(CameraState.CLOSED)
            self.error = None
            return self.state

    def __enter__(self) -> "CameraController":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
