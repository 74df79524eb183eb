# error taxonomy shared by the gateways, orchestrator and session machines


class CalmMindError(Exception):
    """base class for application errors"""


class AuthError(CalmMindError):
    """no authenticated identity is available for the operation"""


class GatewayError(CalmMindError):
    """the ai gateway failed or returned unusable content"""


class StorageError(CalmMindError):
    """the persistence gateway could not complete a read or write"""


class DeviceError(CalmMindError):
    """microphone or speech engine unavailable"""
