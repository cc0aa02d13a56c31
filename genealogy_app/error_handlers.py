"""
Shared error handlers for Flask application and blueprints
"""

from flask import jsonify, request

from genealogy_app.services.exceptions import ParseError, ServiceError, ValidationError
from genealogy_app.shared.logging_config import get_project_logger


logger = get_project_logger(__name__)


def register_error_handlers(app_or_blueprint):
    """Register error handlers for Flask app or blueprint"""

    @app_or_blueprint.errorhandler(ValidationError)
    def validation_error(error):
        """Handle rejected input, including unsupported file formats"""
        logger.warning(f"Validation error: {request.url} - {str(error)}")
        return jsonify({'success': False, 'error': str(error)}), 400

    @app_or_blueprint.errorhandler(ParseError)
    def parse_error(error):
        """Handle files that are recognized but cannot be read"""
        logger.warning(f"Parse error: {request.url} - {str(error)}")
        return jsonify({'success': False, 'error': str(error)}), 422

    @app_or_blueprint.errorhandler(ServiceError)
    def service_error(error):
        """Handle service failures"""
        logger.error(f"Service error: {request.url} - {str(error)}")
        return jsonify({'success': False, 'error': str(error)}), 500

    @app_or_blueprint.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors"""
        logger.warning(f"404 error: {request.url}")
        return jsonify({'success': False, 'error': 'Resource not found'}), 404

    @app_or_blueprint.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors"""
        logger.warning(f"405 error: {request.method} {request.url}")
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app_or_blueprint.errorhandler(413)
    def request_too_large_error(error):
        """Handle uploads above MAX_CONTENT_LENGTH"""
        logger.warning(f"413 error: {request.url}")
        return jsonify({'success': False, 'error': 'Uploaded file is too large'}), 413

    @app_or_blueprint.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors"""
        logger.error(f"500 error: {request.url} - {str(error)}")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500
