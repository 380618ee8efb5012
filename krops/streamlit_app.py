import asyncio
import base64
import hashlib
import html
from datetime import date
from typing import Optional

import streamlit as st
import streamlit.components.v1 as components

from krops.agent.core import DiagnosisResult
from krops.audio import Announcer, AudioFeedback, FeedbackCue, Utterance
from krops.cache import ReportCache
from krops.capture import CapturedImage
from krops.config import Settings, get_settings
from krops.errors import (
    AnnouncementError,
    ConfigurationError,
    DiagnosisFailedError,
    InvalidImageError,
    MissingImageError,
    OfflineError,
    PipelineBusyError,
    SpeechUnavailableError,
    TranscriptionError,
)
from krops.export import PdfReport, export_report
from krops.factory import build_pipeline
from krops.languages import DEFAULT_LANGUAGE, Language
from krops.log import configure_logging
from krops.voice import VoiceTranscriber

REPORT_ANCHOR = "audit-report"
SCROLL_DELAY_MS = 300


# --- 1. SHARED SERVICES (Cached) ---
@st.cache_resource
def load_settings() -> Settings:
    settings = get_settings()
    configure_logging(settings.log_level)
    return settings


def play_in_browser(url: str, volume: float, loop: bool) -> None:
    loop_attr = "loop" if loop else ""
    components.html(
        f'<audio autoplay {loop_attr} src="{html.escape(url)}"></audio>'
        f"<script>document.querySelector('audio').volume = {volume};</script>",
        height=0,
    )


@st.cache_resource
def load_feedback() -> AudioFeedback:
    """Sound effects, one instance for the whole process."""
    return AudioFeedback(play_in_browser)


@st.cache_resource
def load_report_cache() -> ReportCache:
    settings = load_settings()
    return ReportCache(settings.cache_path, capacity=settings.cache_size)


# --- 2. SESSION STATE ---
def init_session() -> None:
    defaults = {
        "language": DEFAULT_LANGUAGE,
        "result": None,
        "description": "",
        "scroll_to_report": False,
        "last_clip": None,
        "ambient": False,
        "last_upload": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value
    if "announcer" not in st.session_state:
        st.session_state.announcer = Announcer()
    if "pipeline" not in st.session_state:
        st.session_state.pipeline = build_pipeline(load_settings(), load_report_cache(), feedback=load_feedback())
    if "transcriber" not in st.session_state:
        st.session_state.transcriber = VoiceTranscriber()


# --- 3. UI HELPERS ---
def speak(utterance: Utterance) -> None:
    audio = base64.b64encode(utterance.audio).decode("ascii")
    components.html(
        f'<audio id="krops-voice" autoplay src="data:audio/mp3;base64,{audio}"></audio>'
        f"<script>document.getElementById('krops-voice').playbackRate = {utterance.rate};</script>",
        height=0,
    )


def scroll_to_report() -> None:
    components.html(
        "<script>setTimeout(function () {"
        f" var el = window.parent.document.getElementById('{REPORT_ANCHOR}');"
        " if (el) { el.scrollIntoView({behavior: 'smooth'}); }"
        f"}}, {SCROLL_DELAY_MS});</script>",
        height=0,
    )


def set_description(text: str) -> None:
    st.session_state.description = text


def voice_input(transcriber: VoiceTranscriber, language: Language) -> None:
    if hasattr(st, "audio_input"):
        clip = st.audio_input("🎙️ Speak your problem")
        if clip is None:
            return
        raw = clip.getvalue()
        digest = hashlib.sha1(raw).hexdigest()
        if digest == st.session_state.last_clip:
            return
        st.session_state.last_clip = digest
        try:
            if transcriber.transcribe_clip(raw, language, set_description) is None:
                st.warning("🔇 Could not understand audio. Please speak clearly.")
        except TranscriptionError as e:
            st.warning(str(e))
        return

    if st.button("🎙️ Speak your problem"):
        status = st.empty()

        def show_listening(on: bool) -> None:
            if on:
                status.info("🎙️ Listening...")
            else:
                status.empty()

        transcriber.on_listening = show_listening
        try:
            heard = transcriber.listen(language, set_description)
            if heard is None:
                st.warning("🔇 Could not understand audio. Please speak clearly.")
        except SpeechUnavailableError as e:
            st.error(str(e))
        except TranscriptionError as e:
            st.warning(str(e))


@st.cache_data(max_entries=8)
def build_pdf(report_json: str, font_path: Optional[str], day: str) -> PdfReport:
    """Built once per report and day rather than on every rerun."""
    result = DiagnosisResult.model_validate_json(report_json)
    return export_report(result, today=date.fromisoformat(day), font_path=font_path)


def render_report(result: DiagnosisResult, language: Language, feedback: AudioFeedback) -> None:
    st.markdown(f'<div id="{REPORT_ANCHOR}"></div>', unsafe_allow_html=True)
    st.subheader("📝 Certified Agronomic Analysis")

    k1, k2 = st.columns(2)
    k1.metric("Crop", result.crop)
    k2.metric("Pathology", result.disease)
    if result.is_healthy:
        st.success("🌱 No disease detected.")

    c1, c2 = st.columns([1, 2])
    with c1:
        if result.medicine_image:
            st.image(result.medicine_image, caption=result.medicine_name, width=220)
        else:
            st.info(f"🧪 Generating visual for **{result.medicine_name}**...")
    with c2:
        st.markdown(f"**💊 Medicine:** {result.medicine_name}")
        st.markdown(f"**Prescription:** {result.prescription}")
        st.markdown(f"**Dosage:** {result.dosage}")
        st.markdown(f"**Timing / Coverage:** {result.timing}")
        st.warning(f"🧤 **Safety:** {result.safety}")

    announcer: Announcer = st.session_state.announcer
    b1, b2 = st.columns(2)
    with b1:
        label = "🔊 Speaking..." if announcer.is_speaking() else "🔊 Listen"
        if st.button(label):
            try:
                speak(announcer.announce(result, language))
            except AnnouncementError as e:
                st.warning(f"Voice output not available: {e}")
    with b2:
        report = build_pdf(result.model_dump_json(by_alias=True), load_settings().pdf_font, date.today().isoformat())
        if st.download_button("📄 Download PDF", data=report.content, file_name=report.filename, mime="application/pdf"):
            feedback.play(FeedbackCue.CLICK)


def diagnose(image, language: Language) -> None:
    pipeline = st.session_state.pipeline
    st.session_state.result = None
    try:
        with st.spinner("Analyzing crop... consulting the Cloud Agronomist"):
            result = asyncio.run(pipeline.run(image, st.session_state.description, language))
    except OfflineError as e:
        st.error(str(e))
    except (MissingImageError, PipelineBusyError) as e:
        st.info(str(e))
    except DiagnosisFailedError as e:
        st.error(str(e))
    else:
        st.session_state.result = result
        st.session_state.scroll_to_report = True


# --- 4. STREAMLIT UI ---
def main():
    st.set_page_config(page_title="KROPS AI", page_icon="🌾", layout="wide")
    st.title("🌾 KROPS AI")
    st.caption("Vernacular Agriculture 4.0")

    try:
        init_session()
    except ConfigurationError as e:
        st.error(str(e))
        st.stop()

    feedback = load_feedback()
    cache = load_report_cache()
    transcriber = st.session_state.transcriber
    pipeline = st.session_state.pipeline

    with st.sidebar:
        language = st.selectbox(
            "Language",
            options=list(Language),
            format_func=lambda lang: lang.display,
            key="language",
        )
        feedback.set_ambient(st.toggle("🍃 Nature ambience", key="ambient"))

        st.divider()
        st.subheader("🗂️ Recent reports")
        reports = cache.load()
        if not reports:
            st.caption("No reports yet.")
        for i, report in enumerate(reports):
            if st.button(f"{report.crop}: {report.disease}", key=f"recent-{i}"):
                feedback.play(FeedbackCue.RUSTLE)
                st.session_state.result = report

    feedback.render_ambient()

    uploaded_file = st.file_uploader("📸 Upload crop photo", type=["jpg", "jpeg", "png", "webp"])
    image = None
    if uploaded_file:
        if uploaded_file.file_id != st.session_state.last_upload:
            st.session_state.last_upload = uploaded_file.file_id
            feedback.play(FeedbackCue.FOCUS)
        try:
            image = CapturedImage.from_bytes(uploaded_file.getvalue())
        except InvalidImageError as e:
            st.error(str(e))
        else:
            st.image(uploaded_file, caption="Field scan", width=320)

    voice_input(transcriber, language)
    st.text_area("Describe the symptoms (optional)", key="description", height=100)

    if st.button("🔬 Analyze", type="primary", disabled=image is None or pipeline.busy):
        diagnose(image, language)

    result = st.session_state.result
    if result is not None:
        st.divider()
        render_report(result, language, feedback)
        if st.session_state.scroll_to_report:
            st.session_state.scroll_to_report = False
            scroll_to_report()


if __name__ == "__main__":
    main()
