from flask import Blueprint, abort, jsonify, request

from .. import get_quiz

bp = Blueprint("playback", __name__)


def _track(slot: int):
    track = get_quiz().track_at(slot)
    if track is None:
        abort(404)
    return track


def _state():
    q = get_quiz()
    sounding = q.controller.sounding
    slot = next((i for i, t in enumerate(q.tracks, start=1) if t.id == sounding), None)
    return {
        "ok": True,
        "playing": slot,
        "elapsed": round(q.controller.elapsed(), 3),
        "cap": q.controller.cap_seconds,
    }


@bp.post("/play/<int:slot>")
def play(slot):
    get_quiz().play(_track(slot).id)
    return jsonify(_state())


@bp.post("/stop/<int:slot>")
def stop(slot):
    get_quiz().stop(_track(slot).id)
    return jsonify(_state())


@bp.post("/toggle/<int:slot>")
def toggle(slot):
    get_quiz().toggle(_track(slot).id)
    return jsonify(_state())


@bp.post("/seek")
def seek():
    data = request.get_json(silent=True) or {}
    try:
        offset = float(data.get("offset", 0))
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "bad_offset", "message": "offset must be a number"}), 400
    get_quiz().seek_by(offset)
    return jsonify(_state())


@bp.get("/playback")
def state():
    return jsonify(_state())
