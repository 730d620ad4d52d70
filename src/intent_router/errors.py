"""Failure taxonomy for the routing engine."""

from __future__ import annotations


class RouterError(Exception):
    """Base class for every routing failure."""


class InvalidRequest(RouterError):
    """The request carries neither text nor media, or has no user id."""


class OracleUnavailable(RouterError):
    """The classification call could not be completed."""


class DecisionUnparseable(RouterError):
    """The oracle output contains no extractable decision object."""


class UnknownWorker(RouterError):
    """A decision names a worker outside the closed capability set."""


class MediaRequired(RouterError):
    """A media-dependent worker was selected without any media URL."""


class HandlerUnavailable(RouterError):
    """A capability handler could not be initialized."""


class HandlerFailure(RouterError):
    """A capability handler failed while serving a request."""


class MediaFetchError(HandlerFailure):
    """Media referenced by a request could not be downloaded."""
