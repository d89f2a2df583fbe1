"""Distress Service HTTP handler.

Exposes the cached classifier to the feedback forms and to bulk
re-analysis jobs. Feedback text is never logged, only its hash.
"""
import asyncio
import logging
import os
from typing import Optional

from flask import Flask, jsonify, request

from schoolpulse.shared.models import DistressAnalysis, Language
from schoolpulse.shared.utils import fingerprint_text
from .analysis_cache import AnalysisCache
from .classifier import DistressClassifier
from .config import DistressConfig
from .debounce import OptimizedAnalyzer

logger = logging.getLogger(__name__)

app = Flask(__name__)

config = DistressConfig.from_env()
classifier = DistressClassifier(config=config)
analyzer = OptimizedAnalyzer(
    cache=AnalysisCache(classifier=classifier, ttl_seconds=config.cache_ttl_seconds),
    config=config,
)

MAX_BATCH_SIZE = int(os.getenv("SCHOOLPULSE_MAX_BATCH_SIZE", "200"))


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "distress-service",
        "lexicon_version": config.lexicon_version,
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - verifies classifier is initialized."""
    if analyzer is None:
        return jsonify({"status": "not_ready", "reason": "analyzer_not_initialized"}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/analyze", methods=["POST"])
def analyze_text():
    """Analyze one feedback text.

    Request Body:
        {"text": "Student feedback text"}

    Response:
        {
            "analyzed": true | false,
            "analysis": {...} | null,
            "lexicon_version": "2026.10.01"
        }

    Text shorter than the minimum length is not analyzed and returns
    "analyzed": false with a null analysis.
    """
    data = request.get_json(silent=True)
    if not data:
        logger.warning("ANALYZE_REQUEST_INVALID", extra={"reason": "empty_body"})
        return jsonify({"error": "Request body required"}), 400

    text = data.get("text")
    if not isinstance(text, str):
        logger.warning("ANALYZE_REQUEST_INVALID", extra={"reason": "missing_text"})
        return jsonify({"error": "Missing required field: text"}), 400

    logger.info(
        "ANALYZE_REQUESTED",
        extra={"text_hash": fingerprint_text(text), "text_length": len(text)}
    )

    analysis = analyzer.analyze(text)
    return jsonify(_analysis_response(analysis)), 200


@app.route("/analyze/batch", methods=["POST"])
def analyze_batch():
    """Analyze many texts in sequential chunks.

    Request Body:
        {"texts": ["...", "..."]}

    Response:
        {"results": [{...}, ...], "submitted": 2, "analyzed": 1}
    """
    data = request.get_json(silent=True)
    texts = data.get("texts") if data else None
    if not isinstance(texts, list) or not all(isinstance(t, str) for t in texts):
        logger.warning("BATCH_REQUEST_INVALID", extra={"reason": "texts_not_string_list"})
        return jsonify({"error": "Field 'texts' must be a list of strings"}), 400
    if len(texts) > MAX_BATCH_SIZE:
        return jsonify({"error": f"Batch size exceeds {MAX_BATCH_SIZE}"}), 413

    results = asyncio.run(analyzer.batch_analyze(texts))
    return jsonify({
        "results": [analysis.to_dict() for analysis in results],
        "submitted": len(texts),
        "analyzed": len(results),
    }), 200


@app.route("/cache/stats", methods=["GET"])
def cache_stats():
    return jsonify(analyzer.cache.stats().to_dict()), 200


@app.route("/cache/clear", methods=["POST"])
def cache_clear():
    analyzer.cache.clear()
    return jsonify({"status": "cleared"}), 200


@app.route("/resources/<language>", methods=["GET"])
def crisis_resources(language: str):
    """Crisis hotlines and websites for a language code (en, lt)."""
    try:
        lang = Language(language.lower())
    except ValueError:
        return jsonify({"error": f"Unsupported language: {language}"}), 404
    return jsonify({
        "language": lang.value,
        "resources": classifier.crisis_resources(lang),
    }), 200


def _analysis_response(analysis: Optional[DistressAnalysis]) -> dict:
    return {
        "analyzed": analysis is not None,
        "analysis": analysis.to_dict() if analysis else None,
        "lexicon_version": config.lexicon_version,
    }


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    port = int(os.getenv("PORT", "8010"))
    app.run(host="0.0.0.0", port=port, debug=False)
