"""Tests for key-value slots."""

from steadythere.storage.file import FileSlot
from steadythere.storage.memory import InMemorySlot


def test_memory_slot_ignores_empty_seed_values():
    slot = InMemorySlot({"steady_current_org": None, "steady_access_token": "tok"})
    assert slot.get("steady_current_org") is None
    assert slot.get("steady_access_token") == "tok"


def test_memory_slot_set_and_delete():
    slot = InMemorySlot()
    slot.set("k", "v")
    assert slot.snapshot() == {"k": "v"}
    slot.delete("k")
    slot.delete("k")  # deleting a missing key is a no-op
    assert slot.get("k") is None


def test_file_slot_survives_new_instance(tmp_path):
    path = tmp_path / "state" / "client.json"
    FileSlot(path).set("steady_current_org", "org-2")

    reopened = FileSlot(path)
    assert reopened.get("steady_current_org") == "org-2"


def test_file_slot_delete(tmp_path):
    slot = FileSlot(tmp_path / "client.json")
    slot.set("a", "1")
    slot.set("b", "2")
    slot.delete("a")
    assert slot.get("a") is None
    assert slot.get("b") == "2"


def test_file_slot_missing_file_reads_empty(tmp_path):
    assert FileSlot(tmp_path / "nope.json").get("anything") is None


def test_file_slot_corrupt_file_reads_empty(tmp_path):
    path = tmp_path / "client.json"
    path.write_text("{not json", encoding="utf-8")
    slot = FileSlot(path)
    assert slot.get("steady_current_org") is None
    slot.set("steady_current_org", "org-1")
    assert slot.get("steady_current_org") == "org-1"


def test_file_slot_undecodable_file_reads_empty(tmp_path):
    path = tmp_path / "client.json"
    path.write_bytes(b"\xff\xfe{bad")
    slot = FileSlot(path)
    assert slot.get("steady_access_token") is None
    slot.set("steady_access_token", "tok")
    assert slot.get("steady_access_token") == "tok"


def test_file_slot_path_that_is_a_directory_reads_empty(tmp_path):
    assert FileSlot(tmp_path).get("steady_current_org") is None
