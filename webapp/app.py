import atexit
import io
import logging

from flask import Flask, render_template, request, jsonify, send_file, session
from werkzeug.exceptions import RequestEntityTooLarge

from hairstyle_studio.backends import build_backend
from hairstyle_studio.camera import CameraController, CameraState
from hairstyle_studio.capture import parse_source, select_upload
from hairstyle_studio.config import load_settings
from hairstyle_studio.errors import CameraError, HairstyleStudioError
from hairstyle_studio.styles import AXES, catalog_as_dict, validate_style
from hairstyle_studio.submission import SubmissionPipeline, decode_data_uri, download_filename, loading
from hairstyle_studio import view_state as vs

from webapp.auth_routes import auth_bp
from webapp.state_store import StateStore

settings = load_settings()

app = Flask(__name__)
app.config['SECRET_KEY'] = settings.secret_key
app.config['MAX_CONTENT_LENGTH'] = settings.max_content_length

app.extensions['settings'] = settings
app.extensions['image_backend'] = build_backend(settings)
app.extensions['camera'] = CameraController(index=settings.camera_index)
app.extensions['state_store'] = StateStore()

app.register_blueprint(auth_bp)


@atexit.register
def _release_camera():
    # 終了時にデバイスを必ず解放
    app.extensions['camera'].close()


def _store() -> StateStore:
    return app.extensions['state_store']


def _camera() -> CameraController:
    return app.extensions['camera']


def _session_id() -> str:
    if 'sid' not in session:
        session['sid'] = StateStore.new_session_id()
    return session['sid']


def _state_response(state, status=200):
    return jsonify({'status': 'success', 'state': state.to_dict()}), status


@app.errorhandler(HairstyleStudioError)
def handle_studio_error(e):
    """
    All domain errors end up here: record the message in the view state
    and answer with the error's HTTP status.
    """
    sid = _session_id()
    if isinstance(e, CameraError) and _camera().state == CameraState.ERROR:
        state = _store().update(sid, vs.camera_failed, e.message)
    else:
        if isinstance(e, CameraError):
            _store().update(sid, vs.camera_synced, _camera().state)
        state = _store().update(sid, vs.error_raised, e.message)
    app.logger.warning(f"{type(e).__name__}: {e.message}")
    return jsonify({'error': e.message, 'state': state.to_dict()}), e.status_code


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
    message = f"Image file too large ( > {limit_mb}MB )"
    state = _store().update(_session_id(), vs.error_raised, message)
    return jsonify({'error': message, 'state': state.to_dict()}), 413


@app.route('/')
def index():
    return render_template('index.html', catalog=catalog_as_dict())


@app.route('/api/styles')
def get_styles():
    return jsonify(catalog_as_dict())


@app.route('/api/state')
def get_state():
    # カメラは全セッションで共有（キオスク端末）。実際の状態を反映する
    return _state_response(_store().update(_session_id(), vs.camera_synced, _camera().state))


@app.route('/upload', methods=['POST'])
def upload_image():
    """
    File picker and drag-and-drop both post here (form field `source`).
    A rejected file leaves the previously selected image in place.
    """
    source = parse_source(request.form.get('source'))
    image = select_upload(request.files.get('image'), source)
    app.logger.info(f"Selected {image.filename} ({image.mime_type}, {image.size} bytes) from {source.value}")
    return _state_response(_store().update(_session_id(), vs.image_selected, image))


@app.route('/clear', methods=['POST'])
def clear_image():
    return _state_response(_store().update(_session_id(), vs.image_cleared))


@app.route('/styles', methods=['POST'])
def change_styles():
    data = request.get_json(silent=True) or {}
    changes = {}
    for axis in AXES:
        if axis in data:
            changes[axis] = validate_style(axis, str(data[axis]))
    return _state_response(_store().update(_session_id(), vs.style_changed, **changes))


@app.route('/submit', methods=['POST'])
def submit():
    """
    Send the selected photo and the composed prompt to the image backend.
    The loading flag is cleared whatever the outcome.
    """
    sid = _session_id()
    store = _store()
    pipeline = SubmissionPipeline(app.extensions['image_backend'])
    auth_session = session.get('auth') or {}

    with loading(lambda: store.get(sid), lambda s: store.set(sid, s), lock=store.lock):
        state = store.get(sid)
        try:
            output_image = pipeline.submit(state.image, state.selection,
                                           access_token=auth_session.get('access_token'))
        except HairstyleStudioError as e:
            app.logger.error(f"Submission failed: {e.message}")
            failed = store.update(sid, vs.submit_failed, e.message)
            return jsonify({'error': e.message, 'state': failed.to_dict()}), e.status_code
        store.update(sid, vs.submit_succeeded, output_image)

    return _state_response(store.get(sid))


@app.route('/download')
def download_output():
    """
    Download the generated image
    """
    state = _store().get(_session_id())
    if not state.output_image:
        return jsonify({'error': 'No generated image to download'}), 404
    try:
        mime_type, data = decode_data_uri(state.output_image)
    except ValueError as e:
        app.logger.error(f"Invalid output image: {e}")
        return jsonify({'error': 'Generated image is not valid'}), 500
    return send_file(
        io.BytesIO(data),
        mimetype=mime_type,
        as_attachment=True,
        download_name=download_filename(state.selection.hairstyle),
    )


@app.route('/camera/open', methods=['POST'])
def camera_open():
    camera_state = _camera().open()
    return _state_response(_store().update(_session_id(), vs.camera_changed, camera_state))


@app.route('/camera/preview.jpg')
def camera_preview():
    frame = _camera().preview_jpeg()
    return send_file(io.BytesIO(frame), mimetype='image/jpeg', max_age=0)


@app.route('/camera/capture', methods=['POST'])
def camera_capture():
    sid = _session_id()
    image = _camera().capture()
    _store().update(sid, vs.image_selected, image)
    return _state_response(_store().update(sid, vs.camera_changed, _camera().state))


@app.route('/camera/close', methods=['POST'])
def camera_close():
    camera_state = _camera().close()
    return _state_response(_store().update(_session_id(), vs.camera_changed, camera_state))


if __name__ == '__main__':
    # Development server
    logging.basicConfig(level=logging.DEBUG)

    print("=" * 50)
    print("✂️  Hairstyle Studio")
    print(f"Image backend: {app.extensions['image_backend'].name}")
    print("Server running at http://127.0.0.1:8081")
    print("=" * 50)

    app.run(debug=True, port=8081)
