"""Structured logging utilities with security-aware data sanitization"""

import logging
import json
from typing import Any, Dict
from datetime import datetime, timezone


class StructuredLogger:
    """Structured logger with automatic sensitive data filtering"""

    SENSITIVE_KEYS = {
        'token', 'password', 'secret', 'authorization', 'auth',
        'email', 'user_agent', 'cookie'
    }

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _sanitize_data(self, data: Any) -> Any:
        """Recursively sanitize sensitive data from logging payload"""
        if isinstance(data, dict):
            sanitized = {}
            for key, value in data.items():
                key_lower = str(key).lower().replace('-', '_')
                if any(sensitive in key_lower for sensitive in self.SENSITIVE_KEYS):
                    # Replace with masked value but preserve length info
                    if isinstance(value, str):
                        sanitized[key] = f"[MASKED:{len(value)}]"
                    else:
                        sanitized[key] = "[MASKED]"
                else:
                    sanitized[key] = self._sanitize_data(value)
            return sanitized
        elif isinstance(data, (list, tuple)):
            return [self._sanitize_data(item) for item in data]
        elif isinstance(data, datetime):
            return data.isoformat()
        else:
            return data

    def _create_log_entry(self, level: str, message: str, **kwargs) -> Dict[str, Any]:
        """Create structured log entry"""
        entry = {
            'timestamp': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
            'level': level,
            'message': message,
        }

        # Add sanitized context data
        if kwargs:
            entry['context'] = self._sanitize_data(kwargs)

        return entry

    def _log(self, level: int, message: str, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        entry = self._create_log_entry(logging.getLevelName(level), message, **kwargs)
        self.logger.log(level, json.dumps(entry, default=str))

    def info(self, message: str, **kwargs):
        """Log info level with structured data"""
        self._log(logging.INFO, message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug level with structured data"""
        self._log(logging.DEBUG, message, **kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance"""
    return StructuredLogger(logging.getLogger(name))
