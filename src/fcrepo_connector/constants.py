"""Repository paths, media types, header names and Prefer vocabulary."""

from types import MappingProxyType
from typing import Mapping

# Transaction REST sub-protocol, relative to the repository base URL
TRANSACTION = "/fcr:tx"
COMMIT = "/fcr:tx/fcr:commit"
ROLLBACK = "/fcr:tx/fcr:rollback"

FIXITY = "/fcr:fixity"

DEFAULT_CONTENT_TYPE = "application/rdf+xml"
SPARQL_UPDATE = "application/sparql-update"
WILDCARD_ACCEPT = "*/*"

ACCEPT = "Accept"
CONTENT_TYPE = "Content-Type"
LINK = "Link"
LOCATION = "Location"
PREFER = "Prefer"

DESCRIBED_BY = "describedby"

LDP = "http://www.w3.org/ns/ldp#"
REPOSITORY = "http://fedora.info/definitions/v4/repository#"
FEDORA_API = "http://fedora.info/definitions/fcrepo#"
OA = "http://www.w3.org/ns/oa#"

PREFER_PROPERTIES: Mapping[str, str] = MappingProxyType(
    {
        "PreferContainment": LDP + "PreferContainment",
        "PreferMembership": LDP + "PreferMembership",
        "PreferMinimalContainer": LDP + "PreferMinimalContainer",
        "ServerManaged": REPOSITORY + "ServerManaged",
        "EmbedResources": OA + "PreferContainedDescriptions",
        "InboundReferences": FEDORA_API + "InboundReferences",
    }
)

__all__ = [
    "TRANSACTION",
    "COMMIT",
    "ROLLBACK",
    "FIXITY",
    "DEFAULT_CONTENT_TYPE",
    "SPARQL_UPDATE",
    "WILDCARD_ACCEPT",
    "ACCEPT",
    "CONTENT_TYPE",
    "LINK",
    "LOCATION",
    "PREFER",
    "DESCRIBED_BY",
    "LDP",
    "REPOSITORY",
    "FEDORA_API",
    "OA",
    "PREFER_PROPERTIES",
]
