"""Tests for classify_dependencies and the per-kind dependency rules."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from kubecascade.models.findings import RelationKind, Severity
from kubecascade.models.resources import PodLike, ResourceIdentity
from kubecascade.rules import RULES, classify_dependencies
from kubecascade.rules.pvc import _claimed_by_template

# ---------------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------------


def _meta(name: str, namespace: str | None = "default", labels: dict | None = None) -> dict:
    meta: dict = {"name": name}
    if namespace is not None:
        meta["namespace"] = namespace
    if labels:
        meta["labels"] = labels
    return meta


def _make_configmap(name: str = "app-config", namespace: str = "default") -> dict:
    return {"kind": "ConfigMap", "metadata": _meta(name, namespace), "data": {"k": "v"}}


def _make_secret(name: str = "db-creds", secret_type: str = "Opaque") -> dict:
    return {"kind": "Secret", "metadata": _meta(name), "type": secret_type}


def _make_pvc(name: str = "data-pvc", phase: str = "Bound", volume_name: str | None = "pv-001") -> dict:
    spec = {"volumeName": volume_name} if volume_name else {}
    return {"kind": "PersistentVolumeClaim", "metadata": _meta(name), "spec": spec, "status": {"phase": phase}}


def _make_pod(
    name: str = "nginx-pod",
    namespace: str = "default",
    volumes: list | None = None,
    containers: list | None = None,
    labels: dict | None = None,
) -> dict:
    return {
        "kind": "Pod",
        "metadata": _meta(name, namespace, labels),
        "spec": {"volumes": volumes or [], "containers": containers or [{"name": "main"}]},
    }


def _make_deployment(name: str = "api", volumes: list | None = None, containers: list | None = None) -> dict:
    return {
        "kind": "Deployment",
        "metadata": _meta(name),
        "spec": {"template": {"spec": {"volumes": volumes or [], "containers": containers or []}}},
    }


def _make_ingress(name: str = "web", services: list[str] | None = None, tls: list[str] | None = None) -> dict:
    paths = [{"backend": {"service": {"name": svc, "port": {"number": 80}}}} for svc in services or []]
    return {
        "kind": "Ingress",
        "metadata": _meta(name),
        "spec": {
            "rules": [{"host": "example.com", "http": {"paths": paths}}],
            "tls": [{"secretName": s} for s in tls or []],
        },
    }


# ---------------------------------------------------------------------------
# ConfigMap
# ---------------------------------------------------------------------------


class TestConfigMapDependencies:
    def test_pod_volume_is_error_mount(self) -> None:
        """A Pod volume mount is an error-level mount."""
        pod = _make_pod(volumes=[{"name": "cfg", "configMap": {"name": "app-config"}}])
        findings = classify_dependencies("ConfigMap", _make_configmap(), [pod])

        assert len(findings) == 1
        finding = findings[0]
        assert finding.relation_kind == RelationKind.MOUNT
        assert finding.related_kind == "Pod"
        assert finding.related_name == "nginx-pod"
        assert finding.related_namespace == "default"
        assert finding.severity == Severity.ERROR
        assert finding.description == "Pod will lose access to configuration data"

    def test_deployment_env_from_is_error_reference(self) -> None:
        """A Deployment envFrom is an error-level reference."""
        deploy = _make_deployment(containers=[{"envFrom": [{"configMapRef": {"name": "app-config"}}]}])
        findings = classify_dependencies("configmap", _make_configmap(), [deploy])

        assert [(f.relation_kind, f.related_kind, f.severity) for f in findings] == [
            (RelationKind.REFERENCE, "Deployment", Severity.ERROR)
        ]
        assert findings[0].description == "Deployment pods will fail to start without this ConfigMap"

    def test_key_ref_counts_as_use(self) -> None:
        """A single configMapKeyRef counts as a use."""
        pod = _make_pod(
            containers=[{"env": [{"name": "A", "valueFrom": {"configMapKeyRef": {"name": "app-config", "key": "a"}}}]}]
        )
        assert len(classify_dependencies("cm", _make_configmap(), [pod])) == 1

    def test_unrelated_pod_contributes_nothing(self) -> None:
        """A Pod using other ConfigMaps contributes nothing."""
        pod = _make_pod(volumes=[{"name": "cfg", "configMap": {"name": "other"}}])
        assert classify_dependencies("ConfigMap", _make_configmap(), [pod]) == []

    def test_other_namespace_is_ignored(self) -> None:
        """Consumers in another namespace are ignored."""
        pod = _make_pod(namespace="staging", volumes=[{"configMap": {"name": "app-config"}}])
        assert classify_dependencies("ConfigMap", _make_configmap(), [pod]) == []

    def test_mounts_sort_before_references(self) -> None:
        """Mount findings are listed before references."""
        deploy = _make_deployment(volumes=[{"configMap": {"name": "app-config"}}])
        pod = _make_pod(volumes=[{"configMap": {"name": "app-config"}}])
        findings = classify_dependencies("ConfigMap", _make_configmap(), [deploy, pod])
        assert [f.relation_kind for f in findings] == [RelationKind.MOUNT, RelationKind.REFERENCE]


# ---------------------------------------------------------------------------
# Secret
# ---------------------------------------------------------------------------


class TestSecretDependencies:
    def test_pod_secret_volume(self) -> None:
        """A Pod secret volume is a mount."""
        pod = _make_pod(volumes=[{"secret": {"secretName": "db-creds"}}])
        findings = classify_dependencies("Secret", _make_secret(), [pod])
        assert findings[0].relation_kind == RelationKind.MOUNT
        assert findings[0].description == "Pod will lose access to secret data"

    def test_service_account_reference(self) -> None:
        """A ServiceAccount listing the Secret is a reference."""
        sa = {"kind": "ServiceAccount", "metadata": _meta("builder"), "imagePullSecrets": [{"name": "db-creds"}]}
        findings = classify_dependencies("Secret", _make_secret(), [sa])
        assert [(f.related_kind, f.severity) for f in findings] == [("ServiceAccount", Severity.ERROR)]

    def test_tls_secret_used_by_ingress(self) -> None:
        """A TLS Secret named in an Ingress is a reference."""
        ingress = _make_ingress(tls=["web-tls"])
        findings = classify_dependencies("Secret", _make_secret("web-tls", "kubernetes.io/tls"), [ingress])
        assert [(f.related_kind, f.description) for f in findings] == [
            ("Ingress", "Ingress will lose TLS certificate")
        ]

    def test_opaque_secret_is_not_checked_against_ingress(self) -> None:
        """Non-TLS Secrets are not matched against Ingress TLS."""
        ingress = _make_ingress(tls=["web-tls"])
        assert classify_dependencies("Secret", _make_secret("web-tls"), [ingress]) == []


# ---------------------------------------------------------------------------
# PersistentVolumeClaim
# ---------------------------------------------------------------------------


class TestPvcDependencies:
    def test_bound_claim_reports_volume_warning(self) -> None:
        """A bound claim warns about its PersistentVolume."""
        pod = _make_pod(volumes=[{"persistentVolumeClaim": {"claimName": "data-pvc"}}])
        findings = classify_dependencies("PersistentVolumeClaim", _make_pvc(), [pod])

        assert [(f.related_kind, f.severity) for f in findings] == [
            ("Pod", Severity.ERROR),
            ("PersistentVolume", Severity.WARNING),
        ]
        volume = findings[1]
        assert volume.related_name == "pv-001"
        assert volume.related_namespace is None
        assert volume.relation_kind == RelationKind.REFERENCE

    def test_bound_without_volume_name_is_unknown(self) -> None:
        """A bound claim without a volume name reports "unknown"."""
        findings = classify_dependencies("pvc", _make_pvc(volume_name=None), [])
        assert [f.related_name for f in findings] == ["unknown"]

    def test_pending_claim_has_no_volume_finding(self) -> None:
        """A pending claim has no volume finding."""
        assert classify_dependencies("pvc", _make_pvc(phase="Pending"), []) == []

    def test_statefulset_claim_template(self) -> None:
        """Claims stamped from a StatefulSet template are references."""
        sts = {
            "kind": "StatefulSet",
            "metadata": _meta("db"),
            "spec": {"template": {"spec": {}}, "volumeClaimTemplates": [{"metadata": {"name": "data"}}]},
        }
        findings = classify_dependencies("pvc", _make_pvc("data-db-0", phase="Pending"), [sts])
        assert [(f.related_kind, f.relation_kind, f.description) for f in findings] == [
            ("StatefulSet", RelationKind.REFERENCE, "StatefulSet pods will lose persistent storage")
        ]

    def test_claimed_by_template_requires_ordinal(self) -> None:
        """Template claims need a numeric ordinal suffix."""
        sts = PodLike(identity=ResourceIdentity("StatefulSet", "db", "default"), claim_templates=frozenset({"data"}))
        assert _claimed_by_template("data", sts)
        assert _claimed_by_template("data-db-12", sts)
        assert not _claimed_by_template("data-db-x", sts)
        assert not _claimed_by_template("data-other-0", sts)


# ---------------------------------------------------------------------------
# Service and Ingress
# ---------------------------------------------------------------------------


class TestServiceDependencies:
    def _service(self, selector: dict | None = None) -> dict:
        return {"kind": "Service", "metadata": _meta("frontend"), "spec": {"selector": selector or {}}}

    def test_ingress_backend_is_warning(self) -> None:
        """An Ingress routing to the Service is a warning."""
        findings = classify_dependencies("svc", self._service(), [_make_ingress(services=["frontend"])])
        assert [(f.related_kind, f.severity) for f in findings] == [("Ingress", Severity.WARNING)]

    def test_selected_pods_are_counted(self) -> None:
        """Pods matched by the selector are reported as one count."""
        pods = [
            _make_pod("web-1", labels={"app": "web", "tier": "fe"}),
            _make_pod("web-2", labels={"app": "web"}),
            _make_pod("db-1", labels={"app": "db"}),
        ]
        findings = classify_dependencies("Service", self._service({"app": "web"}), pods)
        assert len(findings) == 1
        assert findings[0].relation_kind == RelationKind.SELECTOR
        assert findings[0].related_name == "2 pod(s)"
        assert findings[0].severity == Severity.INFO

    def test_empty_selector_selects_nothing(self) -> None:
        """An empty selector selects no Pods."""
        pods = [_make_pod("web-1", labels={"app": "web"})]
        assert classify_dependencies("Service", self._service(), pods) == []

    def test_warnings_sort_before_info(self) -> None:
        """Warnings are listed before informational findings."""
        candidates = [_make_pod("web-1", labels={"app": "web"}), _make_ingress(services=["frontend"])]
        findings = classify_dependencies("Service", self._service({"app": "web"}), candidates)
        assert [f.severity for f in findings] == [Severity.WARNING, Severity.INFO]


class TestIngressDependencies:
    def test_backends_and_tls_from_target_spec(self) -> None:
        """Ingress findings come from the target's own spec."""
        ingress = _make_ingress(services=["frontend", "frontend", "api"], tls=["web-tls"])
        findings = classify_dependencies("Ingress", ingress, None)
        assert [(f.related_kind, f.related_name) for f in findings] == [
            ("Service", "frontend"),
            ("Service", "api"),
            ("Secret", "web-tls"),
        ]
        assert all(f.severity == Severity.INFO for f in findings)


# ---------------------------------------------------------------------------
# Generic behaviour
# ---------------------------------------------------------------------------


class TestClassifierGeneral:
    def test_registry_covers_modelled_kinds(self) -> None:
        """Every modelled target kind has a rule."""
        assert set(RULES) == {"ConfigMap", "Secret", "PersistentVolumeClaim", "Service", "Ingress"}

    def test_unknown_kind_yields_nothing(self) -> None:
        """Unknown target kinds yield no findings."""
        pod = _make_pod(volumes=[{"configMap": {"name": "app-config"}}])
        assert classify_dependencies("Widget", _make_configmap(), [pod]) == []

    def test_zero_candidates(self) -> None:
        """No candidates means no findings."""
        assert classify_dependencies("ConfigMap", _make_configmap(), []) == []
        assert classify_dependencies("ConfigMap", _make_configmap(), None) == []

    def test_pod_without_volumes_contributes_nothing(self) -> None:
        """A Pod without volumes or env contributes nothing."""
        pod = {"kind": "Pod", "metadata": _meta("bare")}
        assert classify_dependencies("ConfigMap", _make_configmap(), [pod]) == []

    def test_target_itself_is_ignored(self) -> None:
        """The target is never its own dependency."""
        ingress = _make_ingress(name="web", tls=["web"])
        target = _make_secret("web", "kubernetes.io/tls")
        candidates = [dict(target), ingress]
        findings = classify_dependencies("Secret", target, candidates)
        assert [f.related_kind for f in findings] == ["Ingress"]

    def test_non_mapping_target(self) -> None:
        """A non-mapping target yields no findings."""
        assert classify_dependencies("ConfigMap", "app-config", [_make_pod()]) == []

    def test_idempotent(self) -> None:
        """Classifying the same snapshot twice gives the same findings."""
        candidates = [
            _make_pod(volumes=[{"configMap": {"name": "app-config"}}]),
            _make_deployment(containers=[{"envFrom": [{"configMapRef": {"name": "app-config"}}]}]),
        ]
        first = classify_dependencies("ConfigMap", _make_configmap(), candidates)
        second = classify_dependencies("ConfigMap", _make_configmap(), candidates)
        assert first == second


_json = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=10),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=10), children, max_size=4),
    max_leaves=20,
)

_candidate = st.fixed_dictionaries(
    {
        "kind": st.sampled_from(["Pod", "Deployment", "StatefulSet", "ServiceAccount", "Ingress", "CronJob"]),
        "metadata": _json,
        "spec": _json,
    }
)


class TestClassifierFuzz:
    @given(kind=st.sampled_from(sorted(RULES)), target=_json, candidates=st.lists(_candidate | _json, max_size=6))
    @settings(max_examples=200)
    def test_arbitrary_input_never_raises(self, kind: str, target: object, candidates: list) -> None:
        """Arbitrary JSON candidates never raise."""
        findings = classify_dependencies(kind, target, candidates)
        assert isinstance(findings, list)
