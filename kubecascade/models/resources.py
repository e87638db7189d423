"""Resource identity and the typed views the engine reads from raw candidates.

Candidates arrive as loosely-typed dicts straight from the cluster API. Rather
than probing unknown shapes at every call site, each raw object is projected
once into a small tagged union:

    PodLike            -- Pods and pod-template-bearing workloads
    ServiceAccountLike -- ServiceAccounts (secret / pull-secret refs)
    IngressLike        -- Ingresses (backend services, TLS secrets)
    ServiceLike        -- Services (label selector)
    OpaqueResource     -- any kind the engine does not model
    OwnedLike          -- any resource carrying ownerReferences

Projection never raises: fields with the wrong type are treated as absent.
Both the Kubernetes envelope (``kind``/``metadata``) and the dashboard
envelope (``typeMeta``/``objectMeta``) are accepted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

# Canonical kind map, shared by the CLI, REST layer and rule registry.
KIND_ALIASES: dict[str, str] = {
    "pod": "Pod",
    "pods": "Pod",
    "po": "Pod",
    "deployment": "Deployment",
    "deployments": "Deployment",
    "deploy": "Deployment",
    "statefulset": "StatefulSet",
    "statefulsets": "StatefulSet",
    "sts": "StatefulSet",
    "daemonset": "DaemonSet",
    "daemonsets": "DaemonSet",
    "ds": "DaemonSet",
    "replicaset": "ReplicaSet",
    "replicasets": "ReplicaSet",
    "rs": "ReplicaSet",
    "replicationcontroller": "ReplicationController",
    "replicationcontrollers": "ReplicationController",
    "rc": "ReplicationController",
    "job": "Job",
    "jobs": "Job",
    "cronjob": "CronJob",
    "cronjobs": "CronJob",
    "cj": "CronJob",
    "service": "Service",
    "services": "Service",
    "svc": "Service",
    "ingress": "Ingress",
    "ingresses": "Ingress",
    "ing": "Ingress",
    "configmap": "ConfigMap",
    "configmaps": "ConfigMap",
    "cm": "ConfigMap",
    "secret": "Secret",
    "secrets": "Secret",
    "serviceaccount": "ServiceAccount",
    "serviceaccounts": "ServiceAccount",
    "sa": "ServiceAccount",
    "persistentvolumeclaim": "PersistentVolumeClaim",
    "persistentvolumeclaims": "PersistentVolumeClaim",
    "pvc": "PersistentVolumeClaim",
    "persistentvolume": "PersistentVolume",
    "persistentvolumes": "PersistentVolume",
    "pv": "PersistentVolume",
    "namespace": "Namespace",
    "namespaces": "Namespace",
    "ns": "Namespace",
    "node": "Node",
    "nodes": "Node",
}

# Kinds whose objects are not namespaced.
CLUSTER_SCOPED_KINDS: frozenset[str] = frozenset({"Namespace", "Node", "PersistentVolume"})

# Workload kinds that embed a pod template.
TEMPLATE_KINDS: frozenset[str] = frozenset(
    {"Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "ReplicationController", "Job", "CronJob"}
)

_UNKNOWN_NAME = "unknown"


def normalize_kind(kind: str) -> str:
    """Map a kind tag or kubectl alias to its canonical CamelCase kind.

    Unknown tags are returned stripped but otherwise unchanged so that the
    engine can still compare them case-insensitively.
    """
    raw = (kind or "").strip()
    return KIND_ALIASES.get(raw.lower(), raw)


@dataclass(frozen=True)
class ResourceIdentity:
    """Addresses a resource within a cluster scope. Namespace is "" when cluster-scoped."""

    kind: str
    name: str
    namespace: str = ""

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.kind.lower(), self.namespace, self.name)

    def same_as(self, other: ResourceIdentity) -> bool:
        return self.key == other.key

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class OwnerReference:
    """A well-formed entry from metadata.ownerReferences."""

    kind: str
    name: str
    uid: str | None = None
    controller: bool = False


@dataclass(frozen=True)
class PodLike:
    """A Pod, or a workload whose pod template references other resources."""

    identity: ResourceIdentity
    from_template: bool = False
    labels: Mapping[str, str] = field(default_factory=dict)
    config_map_volumes: frozenset[str] = frozenset()
    secret_volumes: frozenset[str] = frozenset()
    claim_volumes: frozenset[str] = frozenset()
    config_map_env: frozenset[str] = frozenset()
    secret_env: frozenset[str] = frozenset()
    claim_templates: frozenset[str] = frozenset()

    def uses_config_map(self, name: str) -> bool:
        return name in self.config_map_volumes or name in self.config_map_env

    def uses_secret(self, name: str) -> bool:
        return name in self.secret_volumes or name in self.secret_env

    def uses_claim(self, name: str) -> bool:
        return name in self.claim_volumes


@dataclass(frozen=True)
class ServiceAccountLike:
    identity: ResourceIdentity
    secret_names: frozenset[str] = frozenset()


@dataclass(frozen=True)
class IngressLike:
    identity: ResourceIdentity
    backend_services: tuple[str, ...] = ()
    tls_secrets: tuple[str, ...] = ()


@dataclass(frozen=True)
class ServiceLike:
    identity: ResourceIdentity
    selector: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class OpaqueResource:
    identity: ResourceIdentity


@dataclass(frozen=True)
class OwnedLike:
    identity: ResourceIdentity
    uid: str | None = None
    owner_references: tuple[OwnerReference, ...] = ()


CandidateShape = PodLike | ServiceAccountLike | IngressLike | ServiceLike | OpaqueResource


# ---------------------------------------------------------------------------
# Tolerant field access
# ---------------------------------------------------------------------------


def _map(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _dig(obj: Any, *path: str) -> Any:
    """Walk nested mappings, returning None as soon as a hop is missing."""
    current = obj
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _names(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v for v in values if v)


def _metadata(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    meta = raw.get("metadata")
    if isinstance(meta, Mapping):
        return meta
    return _map(raw.get("objectMeta"))


def _raw_kind(raw: Mapping[str, Any]) -> str:
    kind = _str(raw.get("kind"))
    if not kind:
        kind = _str(_dig(raw, "typeMeta", "kind"))
    return normalize_kind(kind) if kind else ""


def identity_of(raw: Any, default_kind: str = "") -> ResourceIdentity | None:
    """Return the identity of a raw resource, or None when it has no kind."""
    if not isinstance(raw, Mapping):
        return None
    kind = _raw_kind(raw) or normalize_kind(default_kind)
    if not kind:
        return None
    meta = _metadata(raw)
    return ResourceIdentity(
        kind=kind,
        name=_str(meta.get("name")) or _UNKNOWN_NAME,
        namespace=_str(meta.get("namespace")),
    )


# ---------------------------------------------------------------------------
# Pod spec extraction
# ---------------------------------------------------------------------------


def _pod_spec_of(raw: Mapping[str, Any], kind: str) -> tuple[Mapping[str, Any], Mapping[str, Any]]:
    """Return (pod spec, pod metadata) for a Pod or a template-bearing workload."""
    if kind == "Pod":
        return _map(raw.get("spec")), _metadata(raw)
    if kind == "CronJob":
        template = _dig(raw, "spec", "jobTemplate", "spec", "template")
    else:
        template = _dig(raw, "spec", "template")
    template = _map(template)
    return _map(template.get("spec")), _map(template.get("metadata"))


def _containers(spec: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    found = _list(spec.get("initContainers")) + _list(spec.get("containers"))
    return [c for c in found if isinstance(c, Mapping)]


def _volume_refs(spec: Mapping[str, Any]) -> tuple[set[str], set[str], set[str]]:
    config_maps: set[str] = set()
    secrets: set[str] = set()
    claims: set[str] = set()
    for volume in _list(spec.get("volumes")):
        if not isinstance(volume, Mapping):
            continue
        config_maps.add(_str(_dig(volume, "configMap", "name")))
        secrets.add(_str(_dig(volume, "secret", "secretName")))
        claims.add(_str(_dig(volume, "persistentVolumeClaim", "claimName")))
        for source in _list(_dig(volume, "projected", "sources")):
            config_maps.add(_str(_dig(source, "configMap", "name")))
            secrets.add(_str(_dig(source, "secret", "name")))
    return config_maps, secrets, claims


def _env_refs(spec: Mapping[str, Any]) -> tuple[set[str], set[str]]:
    config_maps: set[str] = set()
    secrets: set[str] = set()
    for container in _containers(spec):
        for source in _list(container.get("envFrom")):
            config_maps.add(_str(_dig(source, "configMapRef", "name")))
            secrets.add(_str(_dig(source, "secretRef", "name")))
        for var in _list(container.get("env")):
            config_maps.add(_str(_dig(var, "valueFrom", "configMapKeyRef", "name")))
            secrets.add(_str(_dig(var, "valueFrom", "secretKeyRef", "name")))
    return config_maps, secrets


def _ref_names(entries: Any) -> list[str]:
    return [_str(_dig(entry, "name")) for entry in _list(entries)]


def _as_pod_like(raw: Mapping[str, Any], identity: ResourceIdentity) -> PodLike:
    spec, pod_meta = _pod_spec_of(raw, identity.kind)
    cm_volumes, secret_volumes, claim_volumes = _volume_refs(spec)
    cm_env, secret_env = _env_refs(spec)
    claim_templates: list[str] = []
    if identity.kind == "StatefulSet":
        for template in _list(_dig(raw, "spec", "volumeClaimTemplates")):
            claim_templates.append(_str(_dig(template, "metadata", "name")))
    pod_labels = _map(pod_meta.get("labels"))
    return PodLike(
        identity=identity,
        from_template=identity.kind != "Pod",
        labels={k: v for k, v in pod_labels.items() if isinstance(k, str) and isinstance(v, str)},
        config_map_volumes=_names(cm_volumes),
        secret_volumes=_names(secret_volumes),
        claim_volumes=_names(claim_volumes),
        config_map_env=_names(cm_env),
        secret_env=_names(secret_env),
        claim_templates=_names(claim_templates),
    )


def _as_ingress_like(raw: Mapping[str, Any], identity: ResourceIdentity) -> IngressLike:
    spec = _map(raw.get("spec"))
    services: list[str] = []
    default_backend = _str(_dig(spec, "defaultBackend", "service", "name"))
    if default_backend:
        services.append(default_backend)
    for rule in _list(spec.get("rules")):
        for path in _list(_dig(rule, "http", "paths")):
            name = _str(_dig(path, "backend", "service", "name"))
            if name:
                services.append(name)
    tls = [_str(_dig(entry, "secretName")) for entry in _list(spec.get("tls"))]
    return IngressLike(
        identity=identity,
        backend_services=tuple(services),
        tls_secrets=tuple(name for name in tls if name),
    )


def as_shape(raw: Any, default_kind: str = "") -> CandidateShape | None:
    """Project a raw resource into the tagged union; None when it has no identity."""
    identity = identity_of(raw, default_kind)
    if identity is None:
        return None
    if identity.kind == "Pod" or identity.kind in TEMPLATE_KINDS:
        return _as_pod_like(raw, identity)
    if identity.kind == "ServiceAccount":
        names = _ref_names(raw.get("secrets")) + _ref_names(raw.get("imagePullSecrets"))
        return ServiceAccountLike(identity=identity, secret_names=_names(names))
    if identity.kind == "Ingress":
        return _as_ingress_like(raw, identity)
    if identity.kind == "Service":
        selector = _map(_dig(raw, "spec", "selector"))
        return ServiceLike(
            identity=identity,
            selector={k: v for k, v in selector.items() if isinstance(k, str) and isinstance(v, str)},
        )
    return OpaqueResource(identity=identity)


def as_owned(raw: Any) -> OwnedLike | None:
    """Project a raw resource's ownerReferences; None when none are well-formed."""
    identity = identity_of(raw)
    if identity is None:
        return None
    refs: list[OwnerReference] = []
    for entry in _list(_metadata(raw).get("ownerReferences")):
        if not isinstance(entry, Mapping):
            continue
        kind = _str(entry.get("kind"))
        name = _str(entry.get("name"))
        if not kind or not name:
            continue
        refs.append(
            OwnerReference(
                kind=kind,
                name=name,
                uid=_str(entry.get("uid")) or None,
                controller=entry.get("controller") is True,
            )
        )
    if not refs:
        return None
    uid = _str(_metadata(raw).get("uid")) or None
    return OwnedLike(identity=identity, uid=uid, owner_references=tuple(refs))


def pvc_binding(raw: Any) -> tuple[bool, str]:
    """Return (is_bound, volume_name) for a PersistentVolumeClaim object."""
    phase = _str(_dig(raw, "status", "phase"))
    return phase == "Bound", _str(_dig(raw, "spec", "volumeName"))


def secret_type(raw: Any) -> str:
    return _str(_dig(raw, "type"))
