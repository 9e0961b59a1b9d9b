"""
Custom exceptions for eAPI transport, command and inventory failures.
Provides structured error handling with user-friendly messages.
"""
from typing import Optional


class SwitchConnectionError(Exception):
    """Base class for all errors raised while talking to a switch."""
    http_status = 500

    def __init__(self, message: str, error_type: str, suggestion: str = None, switch_ip: str = None):
        super().__init__(message)
        self.error_type = error_type
        self.suggestion = suggestion or ""
        self.switch_ip = switch_ip

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON responses."""
        return {
            'error': str(self),
            'error_type': self.error_type,
            'suggestion': self.suggestion,
            'switch_ip': self.switch_ip
        }


class InvalidCredentialsError(SwitchConnectionError):
    """eAPI rejected the basic auth credentials."""
    http_status = 401

    def __init__(self, switch_ip: str, username: str, details: str = None):
        message = f"Invalid credentials for user '{username}' on switch {switch_ip}"
        if details:
            message += f": {details}"
        suggestion = (
            "Check the username and password stored for this switch. "
            "The account needs privilege 15 to run configuration commands."
        )
        super().__init__(message, 'invalid_credentials', suggestion, switch_ip)
        self.username = username


class PermissionDeniedError(SwitchConnectionError):
    """User authenticated but is not authorized for eAPI."""
    http_status = 401

    def __init__(self, switch_ip: str, username: str, details: str = None):
        message = f"User '{username}' is not authorized for eAPI on switch {switch_ip}"
        if details:
            message += f": {details}"
        suggestion = "Grant the user privilege 15 or an authorization role allowing eAPI."
        super().__init__(message, 'permission_denied', suggestion, switch_ip)
        self.username = username


class ConnectionTimeoutError(SwitchConnectionError):
    """Cannot reach the switch's eAPI endpoint."""
    http_status = 503

    def __init__(self, switch_ip: str, timeout_details: str = None):
        message = f"Cannot reach switch {switch_ip}"
        if timeout_details:
            message += f": {timeout_details}"
        suggestion = (
            "Check that the management IP is correct, the switch is reachable, "
            "and nothing blocks the eAPI port."
        )
        super().__init__(message, 'connection_timeout', suggestion, switch_ip)


class APIUnavailableError(SwitchConnectionError):
    """eAPI answered but /command-api is not served."""
    http_status = 503

    def __init__(self, switch_ip: str, api_details: str = None):
        message = f"eAPI unavailable on switch {switch_ip}"
        if api_details:
            message += f": {api_details}"
        suggestion = (
            "Enable eAPI on the switch: 'management api http-commands' "
            "followed by 'no shutdown'."
        )
        super().__init__(message, 'api_unavailable', suggestion, switch_ip)


class CommandError(SwitchConnectionError):
    """The switch returned a JSON-RPC error for a command batch."""
    http_status = 502

    def __init__(self, switch_ip: str, message: str, code: Optional[int] = None,
                 failed_command: Optional[str] = None):
        text = f"eAPI Error: {message}"
        if failed_command:
            text += f" (command: '{failed_command}')"
        suggestion = "The switch rejected a command. Check the values for typos or conflicts."
        super().__init__(text, 'command_error', suggestion, switch_ip)
        self.code = code
        self.failed_command = failed_command


class MalformedResponseError(SwitchConnectionError):
    """The eAPI reply was not the JSON-RPC shape we expect."""
    http_status = 502

    def __init__(self, switch_ip: str, details: str = None):
        message = f"Malformed eAPI response from switch {switch_ip}"
        if details:
            message += f": {details}"
        super().__init__(message, 'malformed_response', None, switch_ip)


class UnknownSwitchError(SwitchConnectionError):
    """Unexpected HTTP status from the switch."""
    http_status = 502

    def __init__(self, switch_ip: str, status_code: int = None, response_text: str = None):
        message = f"Unexpected error from switch {switch_ip}"
        if status_code:
            message += f" (HTTP {status_code})"
        if response_text:
            message += f": {response_text}"
        suggestion = "Check the switch logs and try again."
        super().__init__(message, 'unknown_error', suggestion, switch_ip)
        self.status_code = status_code
        self.response_text = response_text


class SwitchNotFoundError(Exception):
    """The requested switch id is not in the inventory."""

    def __init__(self, switch_id: str):
        super().__init__(f"Switch with ID {switch_id} not found")
        self.switch_id = switch_id
