import json

from hairstyle_studio import view_state as vs
from hairstyle_studio.camera import CameraState
from hairstyle_studio.capture import CaptureSource, SelectedImage


def _image(name="a.png"):
    return SelectedImage(data=b"\x89PNG", mime_type="image/png", filename=name, source=CaptureSource.FILE)


def test_initial_state():
    state = vs.ViewState()
    assert state.image is None
    assert state.selection.as_tuple() == ("default", "default", "default")
    assert not state.loading


def test_image_selected_resets_output_and_error():
    state = vs.ViewState(error="old", output_image="data:image/png;base64,AA")
    state = vs.image_selected(state, _image())
    assert state.image.filename == "a.png"
    assert state.error == ""
    assert state.output_image is None


def test_image_rejected_keeps_previous_image():
    state = vs.image_selected(vs.ViewState(), _image("keep.png"))
    state = vs.image_rejected(state, "Please select a valid image file")
    assert state.image.filename == "keep.png"
    assert state.error == "Please select a valid image file"


def test_image_cleared():
    state = vs.image_selected(vs.ViewState(), _image())
    state = vs.submit_succeeded(state, "data:image/png;base64,AA")
    state = vs.image_cleared(state)
    assert state.image is None and state.output_image is None and state.error == ""


def test_style_changed_only_touches_given_axis():
    state = vs.style_changed(vs.ViewState(), haircolor="black, dark and natural")
    assert state.selection.haircolor == "black, dark and natural"
    assert state.selection.hairstyle == "default"


def test_submit_transitions():
    state = vs.submit_started(vs.ViewState(error="x"))
    assert state.loading and state.error == ""
    ok = vs.submit_succeeded(state, "data:image/png;base64,AA")
    assert not ok.loading and ok.output_image
    failed = vs.submit_failed(state, "No image returned by Gemini API")
    assert not failed.loading and failed.output_image is None


def test_camera_transitions():
    state = vs.camera_failed(vs.ViewState(), "No camera found on your device.")
    assert state.camera_state == CameraState.ERROR
    state = vs.camera_changed(state, CameraState.READY)
    assert state.error == ""


def test_reducers_do_not_mutate():
    original = vs.ViewState()
    vs.image_selected(original, _image())
    assert original.image is None


def test_to_dict_is_json_serializable():
    state = vs.image_selected(vs.ViewState(), _image())
    data = json.loads(json.dumps(state.to_dict()))
    assert data["has_image"] is True
    assert data["preview_image"].startswith("data:image/png;base64,")
    assert data["image_source"] == "file"
    assert data["camera_state"] == "closed"


def test_camera_synced_keeps_error_message():
    state = vs.error_raised(vs.camera_changed(vs.ViewState(), CameraState.READY), "Camera is not ready.")
    synced = vs.camera_synced(state, CameraState.CLOSED)
    assert synced.camera_state == CameraState.CLOSED
    assert synced.error == "Camera is not ready."
