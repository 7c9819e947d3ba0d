import json

import pytest
import requests
import responses

from hairstyle_studio import backends
from hairstyle_studio.backends import (
    GeminiRestBackend,
    GeminiSdkBackend,
    RelayFunctionBackend,
    build_backend,
)
from hairstyle_studio.config import Settings
from hairstyle_studio.errors import MissingApiKeyError, NoImageReturnedError, TransportError

API_BASE = "https://gemini.test/v1beta"
MODEL = "gemini-image"
GEMINI_URL = f"{API_BASE}/models/{MODEL}:generateContent"
SUPABASE_URL = "https://abc.supabase.co"
RELAY_URL = f"{SUPABASE_URL}/functions/v1/gemini-function"


def _gemini_ok(part_key="inlineData", mime_key="mimeType"):
    return {"candidates": [{"content": {"parts": [
        {"text": "done"},
        {part_key: {mime_key: "image/png", "data": "QUJD"}},
    ]}}]}


@pytest.fixture
def direct():
    return GeminiRestBackend("secret-key", MODEL, API_BASE)


@pytest.fixture
def relay():
    return RelayFunctionBackend(SUPABASE_URL, "anon-key", "gemini-function")


# --- direct ---

@responses.activate
def test_direct_request_shape(direct, selected_image):
    responses.add(responses.POST, GEMINI_URL, json=_gemini_ok())
    assert direct.transform(selected_image, "PROMPT") == "data:image/png;base64,QUJD"

    request = responses.calls[0].request
    assert request.headers["x-goog-api-key"] == "secret-key"
    body = json.loads(request.body)
    assert body == {
        "contents": [{"role": "user", "parts": [
            {"inline_data": {"mime_type": "image/png", "data": selected_image.to_base64()}},
            {"text": "PROMPT"},
        ]}],
        "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
    }


@responses.activate
def test_direct_accepts_snake_case(direct, selected_image):
    responses.add(responses.POST, GEMINI_URL, json=_gemini_ok("inline_data", "mime_type"))
    assert direct.transform(selected_image, "p") == "data:image/png;base64,QUJD"


@responses.activate
def test_direct_non_2xx_uses_error_message(direct, selected_image):
    responses.add(responses.POST, GEMINI_URL, status=429, json={"error": {"code": 429, "message": "Quota exceeded"}})
    with pytest.raises(TransportError) as exc:
        direct.transform(selected_image, "p")
    assert exc.value.message == "Quota exceeded"
    assert exc.value.status == 429


@responses.activate
def test_direct_non_2xx_without_body(direct, selected_image):
    responses.add(responses.POST, GEMINI_URL, status=500, body="upstream down")
    with pytest.raises(TransportError) as exc:
        direct.transform(selected_image, "p")
    assert exc.value.message == "API request failed with status 500"


@responses.activate
def test_direct_connection_error(direct, selected_image):
    responses.add(responses.POST, GEMINI_URL, body=requests.exceptions.ConnectionError("down"))
    with pytest.raises(TransportError):
        direct.transform(selected_image, "p")


@responses.activate
def test_direct_without_image_part(direct, selected_image):
    responses.add(responses.POST, GEMINI_URL, json={"candidates": [{"content": {"parts": [{"text": "no"}]}}]})
    with pytest.raises(NoImageReturnedError):
        direct.transform(selected_image, "p")


@responses.activate
def test_direct_without_key_fails_fast(selected_image):
    backend = GeminiRestBackend(None, MODEL, API_BASE)
    with pytest.raises(MissingApiKeyError):
        backend.transform(selected_image, "p")
    assert len(responses.calls) == 0


# --- relay ---

@responses.activate
def test_relay_request_body_and_image(relay, selected_image):
    responses.add(responses.POST, RELAY_URL, json={"image": "data:image/png;base64,QUJD"})
    assert relay.transform(selected_image, "PROMPT", access_token="user-token") == "data:image/png;base64,QUJD"

    request = responses.calls[0].request
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer user-token"
    assert json.loads(request.body) == {
        "base64Image": selected_image.to_base64(),
        "mimeType": "image/png",
        "prompt": "PROMPT",
    }


@responses.activate
def test_relay_envelope(relay, selected_image):
    responses.add(responses.POST, RELAY_URL, json={"data": {"image": "data:image/jpeg;base64,QUJD"}, "error": None})
    assert relay.transform(selected_image, "p") == "data:image/jpeg;base64,QUJD"
    assert responses.calls[0].request.headers["Authorization"] == "Bearer anon-key"


@responses.activate
def test_relay_bare_base64_gets_prefix(relay, selected_image):
    responses.add(responses.POST, RELAY_URL, json={"image": "QUJD"})
    assert relay.transform(selected_image, "p") == "data:image/png;base64,QUJD"


@responses.activate
def test_relay_error_object(relay, selected_image):
    responses.add(responses.POST, RELAY_URL, json={"data": None, "error": {"message": "Relay exploded"}})
    with pytest.raises(TransportError) as exc:
        relay.transform(selected_image, "p")
    assert exc.value.message == "Relay exploded"


@responses.activate
def test_relay_non_2xx(relay, selected_image):
    responses.add(responses.POST, RELAY_URL, status=500, json={"error": "Gemini API failed"})
    with pytest.raises(TransportError) as exc:
        relay.transform(selected_image, "p")
    assert exc.value.message == "Gemini API failed"


@responses.activate
def test_relay_non_2xx_without_message(relay, selected_image):
    responses.add(responses.POST, RELAY_URL, status=503, body="")
    with pytest.raises(TransportError) as exc:
        relay.transform(selected_image, "p")
    assert exc.value.message == "Error calling Supabase Edge Function"


@responses.activate
def test_relay_without_image(relay, selected_image):
    responses.add(responses.POST, RELAY_URL, json={"error": "Model returned only text"})
    with pytest.raises(NoImageReturnedError) as exc:
        relay.transform(selected_image, "p")
    assert exc.value.message == "Model returned only text"


def test_relay_not_configured(selected_image):
    with pytest.raises(TransportError):
        RelayFunctionBackend(None, None, "gemini-function").transform(selected_image, "p")


# --- sdk ---

class _FakeSdkResponse:
    def __init__(self, data):
        self._data = data

    def to_dict(self):
        return self._data


class _FakeModel:
    def __init__(self, name):
        self.name = name
        self.calls = []

    def generate_content(self, contents, generation_config=None):
        self.calls.append((contents, generation_config))
        return _FakeSdkResponse(_gemini_ok("inline_data", "mime_type"))


def test_sdk_backend(monkeypatch, selected_image):
    configured = {}
    models = []

    def fake_model(name):
        models.append(_FakeModel(name))
        return models[-1]

    monkeypatch.setattr(backends.genai, "configure", lambda **kw: configured.update(kw))
    monkeypatch.setattr(backends.genai, "GenerativeModel", fake_model)

    backend = GeminiSdkBackend("sdk-key", MODEL)
    assert backend.transform(selected_image, "PROMPT") == "data:image/png;base64,QUJD"
    assert configured == {"api_key": "sdk-key"}
    contents, config = models[0].calls[0]
    assert contents[1] == "PROMPT"
    assert config == {"response_modalities": ["TEXT", "IMAGE"]}


def test_sdk_backend_without_key(selected_image):
    with pytest.raises(MissingApiKeyError):
        GeminiSdkBackend(None, MODEL).transform(selected_image, "p")


# --- factory ---

@pytest.mark.parametrize("kind, cls", [
    ("direct", GeminiRestBackend),
    ("relay", RelayFunctionBackend),
    ("sdk", GeminiSdkBackend),
])
def test_build_backend(kind, cls):
    assert isinstance(build_backend(Settings(image_backend=kind)), cls)


def test_build_backend_unknown():
    with pytest.raises(ValueError):
        build_backend(Settings(image_backend="carrier-pigeon"))
