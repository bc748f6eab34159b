"""
Unit tests for k8s_extension/values.py
"""

from k8s_extension.values import (
    Missing,
    Unstructured,
    nested_bool,
    nested_field,
    nested_list,
    nested_str,
)

OBJ = {
    "apiVersion": "v1",
    "kind": "Pod",
    "metadata": {"name": "web", "namespace": "", "uid": "abc-123", "resourceVersion": "42"},
    "spec": {"hostNetwork": True, "containers": [{"name": "app"}]},
}


def test_nested_field_found():
    assert nested_field(OBJ, "metadata", "name") == "web"


def test_nested_field_absent():
    assert nested_field(OBJ, "metadata", "labels") is Missing.ABSENT


def test_nested_field_through_non_mapping():
    assert nested_field(OBJ, "kind", "x") is Missing.WRONG_TYPE


def test_empty_string_is_not_absent():
    assert nested_str(OBJ, "metadata", "namespace") == ""


def test_wrong_type_is_reported():
    assert nested_str(OBJ, "spec", "containers") is Missing.WRONG_TYPE
    assert nested_bool(OBJ, "metadata", "name") is Missing.WRONG_TYPE


def test_typed_lookups():
    assert nested_bool(OBJ, "spec", "hostNetwork") is True
    assert nested_list(OBJ, "spec", "containers") == [{"name": "app"}]


def test_missing_is_falsy():
    assert not Missing.ABSENT
    assert not Missing.WRONG_TYPE


def test_unstructured_accessors():
    obj = Unstructured(OBJ)
    assert obj.api_version == "v1"
    assert obj.kind == "Pod"
    assert obj.name == "web"
    assert obj.namespace == ""
    assert obj.uid == "abc-123"
    assert obj.resource_version == "42"
    assert obj.conditions() is Missing.ABSENT
