"""Error taxonomy shared by the store, decoder and endpoints."""

from __future__ import annotations

from enum import Enum


class ErrorClass(str, Enum):
    """Classification a transport layer maps to a status code."""

    BAD_REQUEST = "bad_request"
    SERVER_MISCONFIGURATION = "server_misconfiguration"
    INTERNAL = "internal"


class AssistantError(Exception):
    """Base class for every failure the pipeline reports."""

    error_class = ErrorClass.INTERNAL


class ClientInputError(AssistantError):
    """A required request field is missing or malformed."""

    error_class = ErrorClass.BAD_REQUEST


class ConfigurationError(AssistantError):
    """Backend credentials or connection settings are missing."""

    error_class = ErrorClass.SERVER_MISCONFIGURATION


class StoreUnavailable(AssistantError):
    """A history read failed at the storage layer."""


class InvalidAIResponseFormat(AssistantError):
    """The model's text could not be parsed."""


class InvalidResponseStructure(AssistantError):
    """The model's text parsed but lacks the mandatory fields."""


class BackendCallFailure(AssistantError):
    """The generative backend call itself raised."""
