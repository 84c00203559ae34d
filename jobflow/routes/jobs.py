"""
Jobs Routes Blueprint - job CRUD and status pipeline
"""

import logging

from flask import Blueprint, g, jsonify, request

from jobflow.auth import require_auth
from jobflow.models import Job, JobStatus, can_transition
from jobflow.scoring import calculate_job_stats, detection_activity

from .helpers import BadRequest, get_store, json_body, require_fields

logger = logging.getLogger(__name__)

jobs_bp = Blueprint("jobs", __name__)


@jobs_bp.route("/api/jobs", methods=["GET"])
@require_auth
def list_jobs():
    """
    List the caller's jobs, newest first, with dashboard stats.

    Route: GET /api/jobs

    Returns:
        JSON: {jobs: [...], stats: {...}, activity: [{date, count}]}
    """
    jobs = get_store().list_jobs(g.user_id)
    return jsonify(
        {
            "jobs": [job.to_dict() for job in jobs],
            "stats": calculate_job_stats(jobs),
            "activity": detection_activity(jobs),
        }
    )


@jobs_bp.route("/api/jobs", methods=["POST"])
@require_auth
def save_job():
    """
    Insert or update a job by id.

    Route: POST /api/jobs

    Request Body (JSON):
        A full Job record (camelCase keys); ``id`` is required

    Returns:
        JSON: {job: {...}} - the persisted record
    """
    data = json_body()
    try:
        job = Job.from_dict(data)
    except ValueError as e:
        raise BadRequest("Invalid Job payload", str(e))

    saved = get_store().upsert_job(g.user_id, job)
    logger.info(f"Saved job {saved.id} ({saved.status.value})")
    return jsonify({"job": saved.to_dict()})


@jobs_bp.route("/api/jobs", methods=["DELETE"])
@require_auth
def delete_job():
    """
    Delete one of the caller's jobs. Succeeds when the job is already gone.

    Route: DELETE /api/jobs?id=<id>
    """
    job_id = (request.args.get("id") or "").strip()
    if not job_id:
        raise BadRequest("Missing job id")

    deleted = get_store().delete_job(g.user_id, job_id)
    return jsonify({"success": True, "deleted": deleted})


@jobs_bp.route("/api/jobs/<job_id>/status", methods=["PATCH"])
@require_auth
def update_status(job_id):
    """
    Move a job along the status pipeline.

    Route: PATCH /api/jobs/{job_id}/status

    Request Body (JSON):
        status: detected|saved|applied_manual|applied_auto|interview|offer|rejected

    Raises:
        400: Unknown status
        404: Job not found
        409: Transition not allowed from the current status
    """
    data = json_body()
    require_fields(data, "status")
    try:
        target = JobStatus.parse(data.get("status"))
    except ValueError:
        raise BadRequest(f"Unknown job status: {data.get('status')!r}")

    store = get_store()
    job = store.get_job(g.user_id, job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    if not can_transition(job.status, target):
        return (
            jsonify(
                {
                    "error": f"Cannot move job from {job.status.value} to {target.value}",
                    "status": job.status.value,
                }
            ),
            409,
        )

    updated = store.update_status(g.user_id, job_id, target)
    if updated is None:
        return jsonify({"error": "Job not found"}), 404

    logger.info(f"Job {job_id}: {job.status.value} -> {target.value}")
    return jsonify({"job": updated.to_dict()})
