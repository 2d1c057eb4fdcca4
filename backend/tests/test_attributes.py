"""Tests for attribute path lookup."""

import pytest

from services.attributes import lookup_attribute, resolve_attribute_path, split_path
from services.errors import AttributeNotFound


TREE = {
    "crowbar_wall": {"ipmi": {"address": "10.0.1.5"}},
    "block_device": {"disks": ["sda", "sdb"]},
    "kernel": {"modules": {}},
    "empty": None,
}


def test_split_path_string_and_sequence():
    assert split_path("crowbar_wall/ipmi/address") == ["crowbar_wall", "ipmi", "address"]
    assert split_path("/crowbar_wall//ipmi/") == ["crowbar_wall", "ipmi"]
    assert split_path(["block_device", 1]) == ["block_device", "1"]
    assert split_path("") == []


def test_resolve_nested_value():
    assert resolve_attribute_path(TREE, "crowbar_wall/ipmi/address") == "10.0.1.5"
    assert resolve_attribute_path(TREE, ["crowbar_wall", "ipmi"]) == {"address": "10.0.1.5"}


def test_resolve_list_index():
    assert resolve_attribute_path(TREE, "block_device/disks/1") == "sdb"


def test_empty_path_returns_whole_tree():
    assert resolve_attribute_path(TREE, "") is TREE


def test_empty_mapping_is_a_value():
    assert resolve_attribute_path(TREE, "kernel/modules") == {}


def test_missing_segment_reports_resolved_prefix():
    with pytest.raises(AttributeNotFound) as exc_info:
        resolve_attribute_path(TREE, "crowbar_wall/bmc/address")

    err = exc_info.value
    assert err.path == ["crowbar_wall", "bmc", "address"]
    assert err.resolved == ["crowbar_wall"]
    assert err.to_dict() == {
        "error": "attribute_not_found",
        "message": "Unknown attribute crowbar_wall/bmc/address",
        "resolved": "crowbar_wall",
    }


def test_missing_first_segment_resolves_nothing():
    with pytest.raises(AttributeNotFound) as exc_info:
        resolve_attribute_path(TREE, "nope")
    assert exc_info.value.resolved == []


@pytest.mark.parametrize("path", [
    "empty",
    "block_device/disks/7",
    "block_device/disks/first",
    "block_device/disks/\N{SUPERSCRIPT TWO}",
    "block_device/disks/\N{ARABIC-INDIC DIGIT THREE}",
    "crowbar_wall/ipmi/address/more",
])
def test_unresolvable_paths(path):
    with pytest.raises(AttributeNotFound):
        resolve_attribute_path(TREE, path)


def test_lookup_attribute_default():
    assert lookup_attribute(TREE, "crowbar_wall/ipmi/address") == "10.0.1.5"
    assert lookup_attribute(TREE, "crowbar_wall/nothing") is None
    assert lookup_attribute(TREE, "crowbar_wall/nothing", default="n/a") == "n/a"
