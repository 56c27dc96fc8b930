"""Job API routes for quietcut.

A job is created by an upload, processed on a background thread and observed
through the progress stream (Server-Sent Events) or the status endpoint.
"""

import json
import logging
import queue
import subprocess
import threading
import uuid
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    jsonify,
    request,
    send_file,
)

from quietcut.engine import EngineResult, process
from quietcut.manifest import Manifest, config_from_dict
from quietcut.models import Outcome, ProgressEvent
from quietcut.report import build_report

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}

# Job states from which a new run may start
RESTARTABLE = ("uploaded", "done", "error", "cancelled")


def _job_or_404(job_id: str) -> dict:
    job = _jobs.get(job_id)
    if job is None:
        abort(404, description="Job not found")
    return job


def _result_dict(result: EngineResult) -> dict:
    return {
        "outcome": result.outcome.value,
        "message": result.message,
        "output_path": str(result.output_path) if result.output_path else None,
        "duration_original": result.duration_original,
        "duration_final": result.duration_final,
        "segments_removed": result.segments_removed,
    }


def _status_for(outcome: Outcome) -> str:
    # A fully silent input is a finished job with nothing to download
    if outcome in (Outcome.OK, Outcome.DEGENERATE_TIMELINE):
        return "done"
    if outcome == Outcome.CANCELLED:
        return "cancelled"
    return "error"


def _run_job(job_id: str, job: dict, manifest: Manifest) -> None:
    """Worker thread body; always ends the progress stream with a sentinel."""
    progress_queue: queue.Queue = job["progress_queue"]

    def on_progress(event: ProgressEvent) -> None:
        progress_queue.put(event.to_dict())

    try:
        result = process(manifest, on_progress=on_progress, is_cancelled=job["cancel_event"].is_set)
        if result.analysis is not None:
            job["timeline"] = build_report(result.analysis, result.composition)
        job["result"] = _result_dict(result)
        status = _status_for(result.outcome)
        if status == "error":
            job["error"] = result.message
        job["status"] = status
        logger.info("Job %s finished: %s", job_id, result.outcome.value)
    except subprocess.CalledProcessError as e:
        job["status"] = "error"
        stderr = e.stderr if isinstance(e.stderr, str) else (e.stderr or b"").decode(errors="replace")
        job["error"] = f"ffmpeg failed: {stderr[-500:]}" if stderr else str(e)
        logger.error("Job %s failed: %s", job_id, job["error"])
    except Exception as e:
        job["status"] = "error"
        job["error"] = str(e)
        logger.exception("Job %s failed", job_id)
    finally:
        progress_queue.put(None)  # sentinel


def _event_stream(job: dict, timeout: float):
    q = job["progress_queue"]
    while True:
        try:
            msg = q.get(timeout=timeout)
        except queue.Empty:
            yield "data: {\"error\": \"timeout\"}\n\n"
            return
        if msg is None:
            break
        yield f"data: {json.dumps(msg)}\n\n"

    if job["status"] == "error":
        final = {"error": job["error"]}
    else:
        final = {"phase": "complete", "percent": 100.0, "result": job.get("result")}
    yield f"data: {json.dumps(final)}\n\n"


@bp.route("/api/upload", methods=["POST"])
def upload():
    f = request.files.get("file")
    if f is None:
        return jsonify({"error": "No file provided"}), 400
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    input_path = job_dir / f"input{Path(f.filename).suffix or '.mp4'}"
    f.save(input_path)
    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": f.filename,
        "status": "uploaded",
    }
    logger.info("Job %s: uploaded %s", job_id, f.filename)
    return jsonify({"job_id": job_id, "filename": f.filename})


@bp.route("/api/jobs/<job_id>/process", methods=["POST"])
def start_process(job_id: str):
    job = _job_or_404(job_id)
    if job["status"] not in RESTARTABLE:
        return jsonify({"error": f"Job is already {job['status']}"}), 409

    body = request.get_json(silent=True) or {}
    try:
        config = config_from_dict(body.get("silence_cut", {}))
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    problems = config.validate()
    if problems:
        return jsonify({"error": "Invalid configuration", "problems": problems}), 400

    input_path = job["input_path"]
    manifest = Manifest(
        input=input_path,
        output=job["dir"] / f"output{input_path.suffix}",
        silence_cut=config,
    )
    job.update(
        progress_queue=queue.Queue(),
        cancel_event=threading.Event(),
        status="processing",
        error=None,
        result=None,
        timeline=None,
    )
    threading.Thread(target=_run_job, args=(job_id, job, manifest), daemon=True).start()
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/cancel", methods=["POST"])
def cancel_process(job_id: str):
    job = _job_or_404(job_id)
    if job["status"] != "processing":
        return jsonify({"error": f"Job is {job['status']}"}), 409

    job["cancel_event"].set()
    return jsonify({"status": "cancelling"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    job = _job_or_404(job_id)
    if job.get("progress_queue") is None:
        return jsonify({"error": "No processing in progress"}), 409

    timeout = current_app.config["PROGRESS_TIMEOUT"]
    return Response(_event_stream(job, timeout), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/timeline")
def job_timeline(job_id: str):
    timeline = _job_or_404(job_id).get("timeline")
    if timeline is None:
        return jsonify({"error": "No analysis available"}), 409
    return jsonify(timeline)


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    job = _job_or_404(job_id)
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    output_path = job["result"]["output_path"]
    if output_path is None:
        return jsonify({"error": "Nothing was exported", "outcome": job["result"]["outcome"]}), 409
    return send_file(Path(output_path), as_attachment=False)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job = _job_or_404(job_id)
    resp = {"status": job["status"], "filename": job.get("filename")}
    if job["status"] in ("done", "cancelled"):
        resp["result"] = job.get("result")
    elif job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)
