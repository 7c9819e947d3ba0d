import io

import numpy as np
import pytest
from PIL import Image

from hairstyle_studio.auth import AuthSession
from hairstyle_studio.backends import ImageTransformBackend
from hairstyle_studio.camera import CameraController
from hairstyle_studio.capture import CaptureSource, SelectedImage
from hairstyle_studio.errors import AuthExchangeError

TINY_PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgo="


def make_png_bytes(size=(8, 8), color=(200, 120, 80)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeBackend(ImageTransformBackend):
    name = "fake"

    def __init__(self, result=TINY_PNG_DATA_URI, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def transform(self, image, prompt, access_token=None):
        self.calls.append({"image": image, "prompt": prompt, "access_token": access_token})
        if self.error is not None:
            raise self.error
        return self.result


class FakeCapture:
    """cv2.VideoCapture の代用"""

    def __init__(self, frame=None, readable=True):
        self.frame = frame if frame is not None else np.full((480, 640, 3), 127, dtype=np.uint8)
        self.readable = readable
        self.released = False

    def isOpened(self):
        return True

    def read(self):
        if not self.readable or self.released:
            return False, None
        return True, self.frame

    def release(self):
        self.released = True


class FakeDevice:
    """device_opener の代用。開いたキャプチャを記録する"""

    def __init__(self, error=None, readable=True, frame=None):
        self.error = error
        self.readable = readable
        self.frame = frame
        self.opened = []

    def __call__(self, index, width, height):
        if self.error is not None:
            raise self.error
        cap = FakeCapture(frame=self.frame, readable=self.readable)
        self.opened.append(cap)
        return cap


class FakeAuthClient:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def exchange_code_for_session(self, code, code_verifier=None):
        self.calls.append((code, code_verifier))
        if self.error:
            raise AuthExchangeError(self.error)
        return AuthSession(access_token="access-123", refresh_token="refresh-456", user_id="user-1")


@pytest.fixture
def png_bytes():
    return make_png_bytes()


@pytest.fixture
def selected_image(png_bytes):
    return SelectedImage(data=png_bytes, mime_type="image/png", filename="me.png", source=CaptureSource.FILE)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_device():
    return FakeDevice()


@pytest.fixture
def camera(fake_device):
    return CameraController(index=0, device_opener=fake_device)


@pytest.fixture
def auth_client():
    return FakeAuthClient()


@pytest.fixture
def flask_app(monkeypatch, fake_backend, camera, auth_client):
    from webapp.app import app
    from webapp.state_store import StateStore

    monkeypatch.setitem(app.config, "TESTING", True)
    monkeypatch.setitem(app.extensions, "image_backend", fake_backend)
    monkeypatch.setitem(app.extensions, "camera", camera)
    monkeypatch.setitem(app.extensions, "state_store", StateStore())
    monkeypatch.setitem(app.extensions, "auth_client", auth_client)
    return app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()
