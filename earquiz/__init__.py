import atexit
import logging
import os
import threading

from flask import Flask, current_app, jsonify, render_template, request

from . import settings
from .engine.session import QuizSession
from .errors import NoInput, QuizError
from .models.quiz import InputAsset
from .models.specs import MAX_PLAY_SECONDS
from .services.ffmpeg import FFmpegEngine, ffmpeg_version
from .utils import fs

logger = logging.getLogger(__name__)


def get_quiz(app=None) -> QuizSession:
    return (app or current_app).extensions["quiz"]


def quiz_error(e: QuizError):
    return jsonify(e.to_dict()), e.status


def create_app(quiz: QuizSession | None = None):
    """Create and configure the Flask application.

    ``templates`` lives at the repository root next to the package, so the
    template folder is pointed there explicitly.  One :class:`QuizSession`
    serves the whole process; tests pass their own.
    """

    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    template_dir = os.path.join(root_dir, "templates")

    app = Flask(__name__, template_folder=template_dir)
    app.config["WORK_DIR"] = str(fs.resolve_work_dir())
    app.config["MAX_CONTENT_LENGTH"] = settings.MAX_FILE_MB * 1024 * 1024
    app.config["FFMPEG_BIN"] = settings.FFMPEG_BIN
    app.config["DEBUG"] = settings.DEBUG
    logging.getLogger("earquiz").setLevel(settings.LOG_LEVEL)

    if quiz is None:
        engine = FFmpegEngine(os.path.join(app.config["WORK_DIR"], "engine"), binary=settings.FFMPEG_BIN)
        quiz = QuizSession(engine)
        atexit.register(quiz.teardown)
    app.extensions["quiz"] = quiz

    app.register_error_handler(QuizError, quiz_error)

    @app.get("/")
    def index():
        return render_template("index.html", max_play_seconds=MAX_PLAY_SECONDS)

    @app.get("/healthz")
    def healthz():
        return jsonify({
            "status": "ok",
            "ffmpeg": ffmpeg_version(app.config["FFMPEG_BIN"]) is not None,
            "ready": get_quiz().engine.ready,
        })

    @app.post("/engine/load")
    def load_engine():
        q = get_quiz()
        q.load_engine()
        return jsonify({"ok": True, "feedback": q.feedback.to_dict()})

    @app.post("/convert")
    def convert():
        q = get_quiz()
        f = request.files.get("audio")
        if not f or not f.filename:
            raise NoInput("No audio file provided (form field must be 'audio').")
        if not fs.allowed_file(f.filename, f.mimetype):
            return jsonify({"ok": False, "error": "unsupported_type", "message": "Choose an audio file."}), 415

        asset = InputAsset(
            name=os.path.basename(f.filename),
            data=f.read(),
            mime_type=f.mimetype or "",
        )
        q.begin_conversion(asset)

        def worker():
            try:
                q.run_conversion(asset)
            except QuizError:
                pass  # recorded in progress and feedback
            except Exception:
                logger.exception("conversion crashed")

        threading.Thread(target=worker, daemon=True).start()
        return jsonify({"ok": True, "progress_url": "/progress"})

    @app.get("/progress")
    def progress():
        resp = jsonify(get_quiz().progress)
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        return resp

    @app.get("/tracks")
    def tracks():
        q = get_quiz()
        return jsonify({
            "tracks": q.public_tracks(),
            "feedback": q.feedback.to_dict() if q.feedback else None,
            "converting": q.converting,
        })

    @app.post("/answers")
    def answers():
        q = get_quiz()
        data = request.get_json(silent=True) or {}
        picks = data.get("answers") if isinstance(data, dict) else None
        if not isinstance(picks, dict):
            return jsonify({"ok": False, "error": "bad_answer", "message": "Answers must map track numbers to qualities."}), 400
        for slot, value in picks.items():
            track = q.track_at(int(slot)) if str(slot).isdigit() else None
            if track is None:
                return jsonify({"ok": False, "error": "unknown_slot", "message": f"No track {slot}."}), 404
            try:
                q.set_answer(track.id, value)
            except ValueError:
                return jsonify({"ok": False, "error": "bad_answer", "message": f"Unknown quality: {value}"}), 400
        return jsonify({"ok": True, "tracks": q.public_tracks()})

    @app.post("/check")
    def check():
        report = get_quiz().check_answers()
        return jsonify({"ok": True, "report": report.to_dict()})

    @app.post("/reset")
    def reset():
        get_quiz().reset()
        return jsonify({"ok": True})

    from .routes.playback import bp as playback_bp
    app.register_blueprint(playback_bp)

    return app


__all__ = ["create_app", "get_quiz"]
