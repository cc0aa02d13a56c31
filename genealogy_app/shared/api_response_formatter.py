"""
API response formatting utilities for consistent API responses across blueprints
"""

from typing import Any

from flask import jsonify


class APIResponseFormatter:
    """Utility class for formatting consistent API responses"""

    @staticmethod
    def success(data: Any = None, message: str = "", status_code: int = 200) -> tuple:
        """Format a successful API response"""
        response = {
            'success': True,
            'message': message
        }

        if data is not None:
            if isinstance(data, dict):
                response.update(data)
            else:
                response['data'] = data

        return jsonify(response), status_code
