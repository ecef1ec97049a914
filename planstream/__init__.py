from planstream.client import Client, valid_string_id
from planstream.errors import (
    ConfigError,
    InvalidIdentifier,
    MissingLogLocation,
    NotFoundError,
    ParseError,
    PlanStreamError,
    StreamCanceled,
    TransportError,
)
from planstream.logreader import LogReader
from planstream.models import Plan, PlanResourceChanges, PlanStatus, ResourceChange
from planstream.oracle import CompletionOracle
from planstream.plans import Plans, from_profile

__version__ = "0.1.0"

__all__ = [
    "Client",
    "CompletionOracle",
    "ConfigError",
    "InvalidIdentifier",
    "LogReader",
    "MissingLogLocation",
    "NotFoundError",
    "ParseError",
    "Plan",
    "PlanResourceChanges",
    "PlanStatus",
    "PlanStreamError",
    "Plans",
    "ResourceChange",
    "StreamCanceled",
    "TransportError",
    "from_profile",
    "valid_string_id",
]
