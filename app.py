#!/usr/bin/env python3
"""
Genealogy import - Flask application exposing the import pipeline over HTTP
"""

import os

from flask import Flask

from genealogy_app.blueprints.api_genealogy import api_genealogy
from genealogy_app.error_handlers import register_error_handlers
from genealogy_app.shared.logging_config import set_project_log_level


class Config:
    """Configuration class for Flask app read from optional environment variables"""

    def __init__(self):
        self.secret_key = os.environ.get('SECRET_KEY', 'dev-secret-key')
        self.max_upload_mb = int(os.environ.get('MAX_UPLOAD_MB', '50'))
        self.log_level = os.environ.get('LOG_LEVEL', 'INFO')

    @property
    def max_content_length(self) -> int:
        """Upload limit in bytes"""
        return self.max_upload_mb * 1024 * 1024


def create_app(config=None):
    """Application factory"""
    app = Flask(__name__)

    # Initialize configuration
    if config is None:
        config = Config()

    app.config['SECRET_KEY'] = config.secret_key
    app.config['MAX_CONTENT_LENGTH'] = config.max_content_length
    set_project_log_level(config.log_level)

    # Register blueprints
    app.register_blueprint(api_genealogy)

    # Register error handlers
    register_error_handlers(app)

    return app

def main_cli():
    """Development server entry point"""
    app = create_app()

    print("Genealogy Import API")
    print("=" * 50)
    print("Endpoints under /api/genealogy: detect, preview, import, options")
    print()
    print("Access the API at: http://localhost:5000")
    print()

    app.run(debug=True, host='0.0.0.0', port=5000)

if __name__ == '__main__':
    main_cli()
