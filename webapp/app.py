"""
Flask Application Factory

Creates and configures the Flask application instance exposing the HTTP
triggers. Every trigger acknowledges immediately; the inspection and the
notifications run in the background.
"""

from datetime import datetime

from flask import Flask, current_app, jsonify, send_from_directory

from config import settings


def get_orchestrator():
    return current_app.extensions["orchestrator"]


def create_app(orchestrator=None, files_dir=None):
    """
    Create and configure the Flask application.

    Args:
        orchestrator (Orchestrator, optional): Built from settings when omitted
        files_dir (Path, optional): Artifact store served under /files
    """
    app = Flask(__name__)

    if orchestrator is None:
        from monitoring.orchestrator import build_orchestrator
        orchestrator = build_orchestrator()

    app.extensions["orchestrator"] = orchestrator
    app.config["FILES_DIR"] = str(files_dir or settings.FILES_DIR)

    @app.route('/api/check', defaults={'url_id': None})
    @app.route('/api/check/<url_id>')
    def check(url_id):
        """Inspect a page and notify subscribers on change."""
        return jsonify(get_orchestrator().request_check(url_id))

    @app.route('/api/details', defaults={'url_id': None})
    @app.route('/api/details/<url_id>')
    def details(url_id):
        """Inspect a page and send the full report to the details chat."""
        return jsonify(get_orchestrator().request_details(url_id))

    @app.route('/api/issubscribed')
    def is_subscribed():
        """Send the status message to every subscriber."""
        return jsonify(get_orchestrator().request_status_ping())

    @app.route('/files/<path:filename>')
    def files(filename):
        """Latest screenshot and HTML snapshot."""
        return send_from_directory(app.config["FILES_DIR"], filename)

    @app.route('/admin/monitoring/status')
    def monitoring_status():
        """Health check endpoint for monitoring service."""
        return {
            'status': 'ok',
            'subscribers': get_orchestrator().registry.count(),
            'timestamp': datetime.now().isoformat()
        }

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'message': 'Not found'}), 404

    return app
