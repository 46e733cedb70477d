"""Web API routes for VidTrim."""

import json
import logging
import queue
import shutil
import subprocess
import threading
import uuid
from dataclasses import asdict
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    current_app,
    jsonify,
    request,
    send_file,
)
from werkzeug.utils import secure_filename

from vidtrim.engine import probe, process
from vidtrim.ffutil import FFmpegNotFoundError, check_ffmpeg
from vidtrim.manifest import PROFILES, EngineConfig, Manifest, TrimConfig
from vidtrim.timecode import trim_bounds

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# Segments have no MIME type of their own; they are fragmented MP4.
SEGMENT_MIMETYPE = "video/mp4"

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _upload_name(raw: str) -> str:
    """Filesystem-safe name for an upload, falling back to input<ext>.

    secure_filename drops non-ASCII characters, which can leave nothing or
    eat the stem and keep the extension as the whole name.
    """
    name = secure_filename(raw)
    suffix = Path(raw).suffix
    if name and Path(name).suffix == suffix:
        return name
    ext = secure_filename(suffix)
    return f"input.{ext}" if ext else "input.mp4"


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400
    filename = _upload_name(f.filename)

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    input_path = job_dir / filename
    f.save(input_path)

    ffmpeg_bin = current_app.config["FFMPEG_BIN"]
    try:
        check_ffmpeg(ffmpeg_bin)
        description = probe(input_path, job_dir, ffmpeg_bin=ffmpeg_bin)
    except FFmpegNotFoundError as e:
        shutil.rmtree(job_dir, ignore_errors=True)
        return jsonify({"error": str(e)}), 503
    except RuntimeError as e:
        logger.warning("Probe failed for job %s: %s", job_id, e)
        shutil.rmtree(job_dir, ignore_errors=True)
        return jsonify({"error": str(e)}), 422

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": filename,
        "info": asdict(description),
        "max_seconds": trim_bounds(description),
        "status": "uploaded",
    }

    return jsonify({
        "job_id": job_id,
        "filename": filename,
        "info": _jobs[job_id]["info"],
        "max_seconds": _jobs[job_id]["max_seconds"],
    })


@bp.route("/api/jobs/<job_id>/process", methods=["POST"])
def start_process(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] not in ("uploaded", "done", "error"):
        return jsonify({"error": f"Job is already {job['status']}"}), 409

    config = request.get_json(silent=True) or {}
    profile = config.get("profile", "gif")
    if profile not in PROFILES:
        return jsonify({"error": f"Unknown profile {profile!r}"}), 400

    trim = TrimConfig(start=config.get("start", 0), duration=config.get("duration", 10))
    try:
        trim.validate()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    manifest = Manifest(
        input=job["input_path"],
        output_dir=job["dir"],
        profile=profile,
        trim=trim,
        engine=EngineConfig(ffmpeg_bin=current_app.config["FFMPEG_BIN"]),
    )

    progress_queue: queue.Queue = queue.Queue()
    job["progress_queue"] = progress_queue
    job["status"] = "processing"
    job["error"] = None
    job["result"] = None

    def run():
        try:
            def on_progress(stage: str, frac: float):
                progress_queue.put({"stage": stage, "progress": round(frac, 3)})

            result = process(manifest, on_progress=on_progress)
            job["result"] = {
                "profile": profile,
                "artifacts": result.artifacts.to_list(),
                "primary": manifest.to_profile().output_name,
            }
            job["primary_mimetype"] = manifest.to_profile().mimetype
            job["status"] = "done"
        except subprocess.CalledProcessError as e:
            job["status"] = "error"
            stderr = e.stderr if isinstance(e.stderr, str) else (e.stderr or b"").decode(errors="replace")
            job["error"] = f"ffmpeg failed: {stderr[-500:]}" if stderr else str(e)
        except Exception as e:
            logger.exception("Job %s failed", job_id)
            job["status"] = "error"
            job["error"] = str(e)
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    q = job.get("progress_queue")

    if q is None:
        return jsonify({"error": "No processing in progress"}), 409

    def generate():
        while True:
            try:
                msg = q.get(timeout=120)
            except queue.Empty:
                yield "data: {\"error\": \"timeout\"}\n\n"
                break
            if msg is None:
                if job["status"] == "error":
                    data = json.dumps({"error": job["error"]})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 1.0,
                        "result": job.get("result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/artifacts/<path:name>")
def download_artifact(job_id: str, name: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    result = job["result"]
    if name not in result["artifacts"]:
        return jsonify({"error": "Artifact not found"}), 404

    mimetype = job["primary_mimetype"] if name == result["primary"] else SEGMENT_MIMETYPE
    return send_file(job["dir"] / name, mimetype=mimetype, as_attachment=True)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    resp = {
        "status": job["status"],
        "filename": job.get("filename"),
        "info": job.get("info"),
        "max_seconds": job.get("max_seconds"),
    }
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)
