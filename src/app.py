import asyncio
import logging
import os

from quart import Quart, request, jsonify

from analysis import AnalysisState, analyze_video
from config import configure_logging
from llm_providers import get_llm_provider
from video_details import VideoDetailsError, YouTubeApiKeyMissing, get_video_details
from video_ids import resolve_video_id

configure_logging()
logger = logging.getLogger(__name__)

app = Quart(__name__)

# Status code for every terminal analysis state except DONE
OUTCOME_STATUS_CODES = {
    AnalysisState.INPUT_INVALID: 400,
    AnalysisState.NO_TRANSCRIPT: 400,
    AnalysisState.PROVIDER_ERROR: 502,
    AnalysisState.PARSE_FAILURE: 500,
}


def get_provider():
    """The configured LLM provider, created on first use."""
    provider = app.config.get("LLM_PROVIDER")
    if provider is None:
        provider = app.config["LLM_PROVIDER"] = get_llm_provider()
    return provider


@app.after_serving
async def close_provider():
    provider = app.config.get("LLM_PROVIDER")
    if provider is not None and hasattr(provider, "close"):
        await provider.close()


@app.route("/")
async def hello():
    return "Hello World - YouTube Analysis API"


@app.route("/health")
async def health():
    return jsonify({"status": "healthy"})


@app.route("/api/youtube/analyze", methods=["POST"])
async def analyze():
    try:
        data = await request.get_json(silent=True)
        if not data or not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400

        # Bad input is answered locally, before any provider is configured
        video_id = resolve_video_id(data.get("videoId"))
        if video_id is None:
            return jsonify({"error": "Invalid YouTube URL or video ID"}), 400

        outcome = await analyze_video(video_id, get_provider())
        if outcome.ok:
            return jsonify(outcome.result.to_json())

        return jsonify({"error": outcome.error}), OUTCOME_STATUS_CODES[outcome.status]

    except Exception as e:
        logger.exception(f"Unexpected error in /api/youtube/analyze: {str(e)}")
        return jsonify({"error": "Failed to parse analysis results"}), 500


@app.route("/api/youtube/video/<reference>")
async def video_info(reference):
    video_id = resolve_video_id(reference)
    if video_id is None:
        return jsonify({"error": "Invalid YouTube URL or video ID"}), 400

    try:
        loop = asyncio.get_running_loop()
        details = await loop.run_in_executor(None, get_video_details, video_id)
    except YouTubeApiKeyMissing as e:
        logger.warning(str(e))
        return jsonify({"error": "Video metadata is not configured"}), 503
    except VideoDetailsError:
        return jsonify({"error": "Failed to fetch video information"}), 502

    if details is None:
        return jsonify({"error": f"No video found for ID: {video_id}"}), 404
    return jsonify(details.model_dump(by_alias=True))


if __name__ == "__main__":
    logger.info("Starting Quart app...")
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "5000")))
