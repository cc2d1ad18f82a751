"""
Binary model file tests.
"""

from __future__ import annotations

import struct
from typing import Dict, Tuple

import pytest

from wordchain import CorruptModelFileError, MissingModelFileError, SymbolKind, Trainer
from wordchain.codec import encode_graph, load_graph, save_graph


def _snapshot(trainer: Trainer) -> Dict[str, Tuple[int, SymbolKind, object, Dict[str, int]]]:
    return {
        node.text: (
            node.weight,
            node.symbol_kind,
            node.wrapper_closer,
            {text: edge.weight for text, edge in node.outgoing.items()},
        )
        for node in trainer.graph
    }


def _text(value: str) -> bytes:
    encoded = value.encode("utf-16-le")
    return struct.pack("<I", len(encoded)) + encoded


def _bare_trainer() -> Trainer:
    return Trainer.from_symbols(".", [], [], [], [], [], [])


def test_round_trip_preserves_the_graph(tmp_path):
    original = Trainer(seed=4)
    original.ingest_many(
        [
            "He said (hello) to her, then left.",
            "She wrote \"goodbye\" on the wall & walked away!",
            "The cat sat on the mat. The cat sat again.",
        ]
    )
    path = tmp_path / "model.bin"
    original.save(path, backup_path=tmp_path / "backup.bin")

    restored = Trainer()
    assert restored.load(path) is True
    assert _snapshot(restored) == _snapshot(original)
    for node in restored.graph:
        for text, edge in node.outgoing.items():
            target = restored.graph.target(edge)
            assert target.text == text
            assert edge.symbol_kind is target.symbol_kind


def test_loaded_nodes_get_fresh_identifiers(tmp_path):
    original = Trainer()
    original.ingest("fresh ids")
    path = save_graph(original, tmp_path / "model.bin", backup_path=tmp_path / "backup.bin")
    restored = Trainer()
    load_graph(restored, path)
    original_ids = {node.node_id for node in original.graph}
    restored_ids = {node.node_id for node in restored.graph}
    assert original_ids.isdisjoint(restored_ids)
    assert restored.graph.lookup("fresh").default_terminator is restored.default_terminator


def test_restored_model_generates_the_same_sentence(tmp_path):
    original = Trainer()
    original.ingest("The quick brown fox jumps over the fence.")
    path = tmp_path / "model.bin"
    original.save(path, backup_path=tmp_path / "backup.bin")
    restored = Trainer(seed=9)
    restored.load(path)
    rendered = restored.create_builder(1, 25).render()
    assert rendered is not None
    assert rendered.lower().endswith("fence.")


def test_header_layout_lists_symbols():
    trainer = Trainer.from_symbols(".", ["."], [], [], [], ["@"], [("(", ")")])
    expected = (
        struct.pack("<6Q", 1, 0, 0, 0, 1, 2)
        + _text(".")
        + _text("@")
        + _text("(")
        + _text(")")
        + struct.pack("<Q", 0)
    )
    assert encode_graph(trainer) == expected


def test_node_record_layout():
    trainer = _bare_trainer()
    trainer.ingest("hi hi")
    node = trainer.graph.lookup("hi")
    expected = (
        struct.pack("<6Q", 0, 0, 0, 0, 0, 0)
        + struct.pack("<Q", 1)
        + struct.pack("<iiB", 2, 0, 0)
        + struct.pack("<Q", node.node_id)
        + _text("hi")
        + struct.pack("<Q", 1)
        + struct.pack("<Qi", node.node_id, 1)
    )
    assert encode_graph(trainer) == expected


def test_wrapper_closer_is_written():
    trainer = Trainer.from_symbols(".", [], [], [], [], [], [("<", ">")])
    trainer.ingest("<")
    node = trainer.graph.lookup("<")
    payload = encode_graph(trainer)
    record = struct.pack("<iiB", 1, SymbolKind.WRAPPER.code, 1) + _text(">")
    record += struct.pack("<Q", node.node_id) + _text("<") + struct.pack("<Q", 0)
    assert payload.endswith(record)


def test_save_keeps_a_backup_of_the_previous_file(tmp_path):
    trainer = Trainer()
    trainer.ingest("First version.")
    path = tmp_path / "model.bin"
    backup = tmp_path / "backup.bin"
    trainer.save(path, backup_path=backup)
    first = path.read_bytes()
    assert not backup.exists()

    trainer.ingest("Second version.")
    trainer.save(path, backup_path=backup)
    assert backup.read_bytes() == first
    assert path.read_bytes() != first


def test_save_uses_the_default_backup_name_in_the_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    trainer = Trainer()
    trainer.ingest("Hello.")
    trainer.save("model.bin")
    trainer.save("model.bin")
    assert (tmp_path / "wordchain.backup.bin").is_file()


def test_missing_file_is_a_silent_no_op(tmp_path):
    trainer = Trainer()
    assert trainer.load(tmp_path / "absent.bin") is False
    assert len(trainer.graph) == 0


def test_missing_file_can_be_treated_as_an_error(tmp_path):
    trainer = Trainer()
    with pytest.raises(MissingModelFileError) as excinfo:
        trainer.load(tmp_path / "absent.bin", missing_ok=False)
    assert isinstance(excinfo.value, FileNotFoundError)


def test_load_replaces_entries_with_the_same_text(tmp_path):
    source = Trainer()
    source.ingest("hello hello hello world")
    path = tmp_path / "model.bin"
    source.save(path, backup_path=tmp_path / "backup.bin")

    target = Trainer()
    target.ingest("hello there")
    target.load(path)
    assert target.graph.lookup("hello").weight == 3
    assert set(target.graph.lookup("hello").outgoing) == {"hello", "world"}
    assert "there" in target.graph


def test_truncated_file_is_reported_as_corrupt(tmp_path):
    trainer = Trainer()
    trainer.ingest("Some words to save.")
    path = tmp_path / "model.bin"
    trainer.save(path, backup_path=tmp_path / "backup.bin")
    path.write_bytes(path.read_bytes()[:-3])
    with pytest.raises(CorruptModelFileError):
        Trainer().load(path)


def test_unknown_symbol_kind_is_reported_as_corrupt(tmp_path):
    payload = (
        struct.pack("<6Q", 0, 0, 0, 0, 0, 0)
        + struct.pack("<Q", 1)
        + struct.pack("<iiB", 1, 42, 0)
        + struct.pack("<Q", 7)
        + _text("odd")
        + struct.pack("<Q", 0)
    )
    path = tmp_path / "model.bin"
    path.write_bytes(payload)
    with pytest.raises(CorruptModelFileError):
        Trainer().load(path)


def test_dangling_target_is_reported_as_corrupt(tmp_path):
    payload = (
        struct.pack("<6Q", 0, 0, 0, 0, 0, 0)
        + struct.pack("<Q", 1)
        + struct.pack("<iiB", 1, 0, 0)
        + struct.pack("<Q", 7)
        + _text("lonely")
        + struct.pack("<Q", 1)
        + struct.pack("<Qi", 99, 1)
    )
    path = tmp_path / "model.bin"
    path.write_bytes(payload)
    with pytest.raises(CorruptModelFileError) as excinfo:
        Trainer().load(path)
    assert "unknown node 99" in str(excinfo.value)


def test_stored_symbol_lists_do_not_change_classification(tmp_path):
    source = Trainer.from_symbols("!", ["!"], [], [], [], [], [])
    source.ingest("wow!")
    path = tmp_path / "model.bin"
    source.save(path, backup_path=tmp_path / "backup.bin")

    target = Trainer()
    target.load(path)
    assert target.configuration.end_symbols == [".", "?", "!"]
    target.ingest("wow.")
    assert target.graph.lookup(".").symbol_kind is SymbolKind.END
