"""
errors.py
Exception types shared by the linking, relocation and HTTP layers.
Each carries the error code reported to HTTP callers.
"""


class BridgeError(Exception):
    code = "internal_error"
    status = 500


class MissingFieldsError(BridgeError):
    """A required request field is absent or empty."""
    code = "missing_fields"
    status = 400


class MissingMovesError(BridgeError):
    """A dispatch request carried no moves list, or an empty one."""
    code = "missing_moves"
    status = 400


class GatewayError(BridgeError):
    """A Discord call failed, timed out, or was refused."""
    code = "move_failed"
    status = 500


class DispatchFailedError(BridgeError):
    """The guild handle could not be obtained for a batch dispatch."""
    code = "dispatch_failed"
    status = 500
