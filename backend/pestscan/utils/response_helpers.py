# backend/pestscan/utils/response_helpers.py
"""
Response Helper Functions

Standardized success/error envelopes for API responses.
"""

from typing import Any, Dict, List, Optional, Union


class ResponseFormatter:
    """
    Helper class for creating standardized API responses.
    """

    @staticmethod
    def success(
        message: str, data: Optional[Union[Dict[str, Any], List]] = None, **kwargs
    ) -> Dict[str, Any]:
        """
        Create a standardized success response.

        Args:
            message: Success message
            data: Optional data payload
            **kwargs: Additional fields to include

        Returns:
            Standardized success response
        """
        response = {"success": True, "message": message}

        if data is not None:
            response["data"] = data

        response.update(kwargs)

        return response

    @staticmethod
    def error(
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """
        Create a standardized error response.

        Args:
            message: Error message
            error_code: Optional error code for client handling
            details: Optional additional error details
            **kwargs: Additional fields to include

        Returns:
            Standardized error response
        """
        response = {"success": False, "message": message}

        if error_code:
            response["error_code"] = error_code

        if details:
            response["details"] = details

        response.update(kwargs)

        return response
