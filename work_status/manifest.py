"""Representation of a ManifestWork and the status records it carries.

A ManifestWork is applied by a work agent on a managed cluster. The agent
reports progress back through the status: a flat list of conditions about the
work as a whole, and a list of manifest conditions with one entry per
sub-resource identified by its ordinal position and resource name.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
import logging
from pathlib import Path
from typing import Any, ClassVar

import aiofiles
import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue

from .exceptions import InputException

__all__ = [
    "read_manifest_work",
    "write_manifest_work",
    "ConditionStatus",
    "StatusCondition",
    "ManifestResourceMeta",
    "ManifestCondition",
    "ManifestResourceStatus",
    "ManifestWorkStatus",
    "ManifestWork",
    "NamedResource",
]

_LOGGER = logging.getLogger(__name__)


# Match a prefix of apiVersion to ensure we have the right type of object.
# We don't check specific versions for forward compatibility on upgrade.
WORK_DOMAIN = "work.open-cluster-management.io"
WORK_API_VERSION = f"{WORK_DOMAIN}/v1"
MANIFEST_WORK_KIND = "ManifestWork"

TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_time(value: datetime | None) -> str | None:
    """Format a timestamp as RFC 3339 in UTC with second precision."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIME_FORMAT)


def parse_time(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp.

    YAML loaders may already have resolved the value to a datetime.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        result = value
    else:
        try:
            result = datetime.fromisoformat(str(value))
        except ValueError as err:
            raise InputException(f"Invalid timestamp '{value}': {err}") from err
    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all status record objects."""

    @classmethod
    def parse_yaml(cls, content: str) -> "BaseManifest":
        """Parse a serialized record."""
        return cls.from_dict(yaml.safe_load(content))

    def yaml(self) -> str:
        """Return a YAML string representation of the record."""
        return yaml.dump(self.to_dict(), sort_keys=False)

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


class ConditionStatus(StrEnum):
    """Value of a condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass
class StatusCondition(BaseManifest):
    """A named status fact with reason, message and transition time."""

    type: str
    """The type of the condition, unique within a list."""

    status: ConditionStatus
    """The status of the condition."""

    reason: str = ""
    """A brief machine-readable explanation for the status."""

    message: str = ""
    """A human-readable message indicating details about the status."""

    last_transition_time: datetime | None = field(
        metadata=field_options(
            alias="lastTransitionTime",
            serialize=format_time,
            deserialize=parse_time,
        ),
        default=None,
    )
    """The last time the status changed, or None when unset."""


@dataclass
class ManifestResourceMeta(BaseManifest):
    """Identity of one sub-resource of a ManifestWork."""

    ordinal: int
    """Position of the manifest in the ManifestWork spec."""

    resource: str
    """The resource name of the kind, e.g. deployments."""

    group: str | None = None
    version: str | None = None
    kind: str | None = None
    name: str | None = None
    namespace: str | None = None


@dataclass
class ManifestCondition(BaseManifest):
    """The conditions of a single sub-resource of a ManifestWork."""

    resource_meta: ManifestResourceMeta = field(
        metadata=field_options(alias="resourceMeta")
    )
    """The sub-resource these conditions describe."""

    conditions: list[StatusCondition] = field(default_factory=list)
    """Conditions of the sub-resource."""


@dataclass
class ManifestResourceStatus(BaseManifest):
    """Status of the sub-resources of a ManifestWork."""

    manifests: list[ManifestCondition] = field(default_factory=list)


@dataclass
class ManifestWorkStatus(BaseManifest):
    """The status of a ManifestWork."""

    conditions: list[StatusCondition] = field(default_factory=list)
    """Conditions about the work as a whole."""

    resource_status: ManifestResourceStatus = field(
        metadata=field_options(alias="resourceStatus"),
        default_factory=ManifestResourceStatus,
    )
    """Conditions about each sub-resource of the work."""


@dataclass
class ManifestWork:
    """A ManifestWork with the metadata needed for optimistic concurrency."""

    kind: ClassVar[str] = MANIFEST_WORK_KIND
    """The kind of the object."""

    name: str
    """The name of the object."""

    namespace: str
    """The namespace of the object, which is the managed cluster name."""

    resource_version: str | None = None
    """Opaque version assigned by the store on every write."""

    spec: dict[str, Any] | None = None
    """The raw spec of the object."""

    status: ManifestWorkStatus = field(default_factory=ManifestWorkStatus)
    """The status reported by the work agent."""

    @property
    def resource_id(self) -> NamedResource:
        """Return the identifier of this object."""
        return NamedResource(self.kind, self.namespace, self.name)

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ManifestWork":
        """Parse a ManifestWork from a raw kubernetes object."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid object, expected a mapping: {doc}")
        if not (api_version := doc.get("apiVersion")):
            raise InputException(f"Invalid object missing apiVersion: {doc}")
        if not isinstance(api_version, str) or not api_version.startswith(WORK_DOMAIN):
            raise InputException(f"Invalid object expected '{WORK_DOMAIN}': {doc}")
        if doc.get("kind") != MANIFEST_WORK_KIND:
            raise InputException(
                f"Invalid object expected kind {MANIFEST_WORK_KIND}: {doc}"
            )
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid object missing metadata: {doc}")
        if not isinstance(metadata, dict):
            raise InputException(f"Invalid object metadata is not a mapping: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid object missing metadata.name: {doc}")
        if not (namespace := metadata.get("namespace")):
            raise InputException(f"Invalid object missing metadata.namespace: {doc}")
        resource_version = metadata.get("resourceVersion")
        status_doc = doc.get("status") or {}
        if not isinstance(status_doc, dict):
            raise InputException(f"Invalid object status is not a mapping: {doc}")
        try:
            status = ManifestWorkStatus.from_dict(status_doc)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(
                f"Invalid {MANIFEST_WORK_KIND} {namespace}/{name} status: {err}"
            ) from err
        return cls(
            name=name,
            namespace=namespace,
            resource_version=(
                str(resource_version) if resource_version is not None else None
            ),
            spec=copy.deepcopy(doc.get("spec")),
            status=status,
        )

    def to_doc(self) -> dict[str, Any]:
        """Return the object as a raw kubernetes object."""
        metadata: dict[str, Any] = {"name": self.name, "namespace": self.namespace}
        if self.resource_version is not None:
            metadata["resourceVersion"] = self.resource_version
        doc: dict[str, Any] = {
            "apiVersion": WORK_API_VERSION,
            "kind": self.kind,
            "metadata": metadata,
        }
        if self.spec is not None:
            doc["spec"] = copy.deepcopy(self.spec)
        doc["status"] = self.status.to_dict()
        return doc

    @classmethod
    def parse_yaml(cls, content: str) -> "ManifestWork":
        """Parse a serialized ManifestWork."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise InputException(f"Invalid YAML document: {err}") from err
        return cls.parse_doc(doc)

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return yaml.dump(self.to_doc(), sort_keys=False)


async def read_manifest_work(path: Path) -> ManifestWork:
    """Return the contents of a serialized ManifestWork file."""
    async with aiofiles.open(str(path)) as work_file:
        content = await work_file.read()
    if not content:
        raise InputException(f"Empty ManifestWork file {path}")
    return ManifestWork.parse_yaml(content)


async def write_manifest_work(path: Path, work: ManifestWork) -> None:
    """Write the specified ManifestWork to disk."""
    content = work.yaml()
    _LOGGER.debug("Writing %s to %s", work.resource_id, path)
    async with aiofiles.open(str(path), mode="w") as work_file:
        await work_file.write(content)
