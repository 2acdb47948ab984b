# frontend/streamlit_app.py
import streamlit as st

from liveness_check import config
from liveness_check.capture import CaptureSession, SnapshotStream, open_camera
from liveness_check.image_source import decode
from liveness_check.lifecycle import LivenessSession
from liveness_check.presentation import FLAG_LABELS, render

config.configure_logging()

st.set_page_config(layout="wide", page_title="Liveness Check")

BROWSER_CAMERA = config.CAMERA_SOURCE != "device"


def _camera_key():
    return f"camera_{st.session_state.get('camera_widget', 0)}"


def _drop_camera_widget():
    # a fresh key unmounts the camera widget and the browser stops the camera
    st.session_state.camera_widget = st.session_state.get("camera_widget", 0) + 1


def _browser_stream():
    key = _camera_key()
    return SnapshotStream(snapshot=lambda: st.session_state.get(key), on_release=_drop_camera_widget)


def _camera_ready():
    st.toast("Camera ready, take a photo below")


# --- one LivenessSession (and camera handle) per browser session ---
if "liveness_session" not in st.session_state:
    st.session_state.liveness_session = LivenessSession(
        capture_factory=lambda: CaptureSession(
            stream_factory=_browser_stream if BROWSER_CAMERA else open_camera,
            on_active=_camera_ready,
        )
    )
session: LivenessSession = st.session_state.liveness_session
gen = session.generation


def _on_upload(key):
    uploaded = st.session_state.get(key)
    if uploaded is None:
        return
    if not session.select_file(uploaded):
        st.session_state.upload_error = "Could not read the selected file."
    else:
        st.session_state.upload_error = None


def _on_capture(key=None):
    # clearing the photo in the browser widget is not a capture
    if key is not None and st.session_state.get(key) is None:
        return
    session.capture_from_camera(config.CAPTURE_WIDTH, config.CAPTURE_HEIGHT)


st.title("Liveness Check")

missing = config.missing_api_settings()
if missing:
    st.warning("Liveness API not configured: " + ", ".join(missing))

col_conditions, col_image, col_response = st.columns(3)

with col_conditions:
    st.markdown("### Conditions")
    for name, (label, help_text) in FLAG_LABELS.items():
        # keys follow the session generation so a reset brings every toggle back to True
        value = st.toggle(label, value=getattr(session.config, name), help=help_text, key=f"{name}_{gen}")
        session.set_flag(name, value)

with col_image:
    st.markdown("### Upload Image")
    upload_key = f"upload_{gen}"
    st.file_uploader(
        "Upload image",
        type=["jpg", "jpeg", "png", "webp", "bmp"],
        key=upload_key,
        on_change=_on_upload,
        args=(upload_key,),
    )
    if st.session_state.get("upload_error"):
        st.error(st.session_state.upload_error)

    st.write("Or use your webcam:")
    camera = session.camera
    if camera.active and BROWSER_CAMERA:
        camera_key = _camera_key()
        st.camera_input("Take a photo", key=camera_key, on_change=_on_capture, args=(camera_key,))
        st.button("Cancel", on_click=session.close_camera)
    elif camera.active:
        frame = camera.preview()
        if frame is not None:
            st.image(frame, caption="Live preview")
        else:
            st.info("Waiting for camera frames...")
        cap_col, cancel_col = st.columns(2)
        cap_col.button("Capture", on_click=_on_capture)
        cancel_col.button("Cancel", on_click=session.close_camera)
    else:
        st.button("Activate webcam", on_click=session.activate_camera, key=f"activate_{gen}")
        if camera.last_error is not None:
            st.warning(f"Webcam: {camera.last_error}")

    if session.state.image:
        _, image_bytes = decode(session.state.image)
        st.image(image_bytes, caption="Selected image")

with col_response:
    st.markdown("### API Response")
    view = render(session.state)

    if st.button(view.button_label, disabled=view.button_disabled):
        with st.spinner("Loading..."):
            session.submit()
        st.rerun()

    if view.error:
        st.error(view.error)

    if view.show_raw:
        st.markdown(f"## {view.headline}")
        st.code(view.raw_json, language="json")

    if view.show_reset:
        st.button("Reset", on_click=session.reset, type="primary")
