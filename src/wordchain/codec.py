"""
Binary model file format.

All integers are little-endian and all text is UTF-16LE prefixed by its byte length::

    u64 x 6      symbol list sizes (end, end separator, spacing, separator, combinator, wrapper)
    per symbol   u32 byte length, text
    u64          node count
    per node     i32 weight, i32 symbol kind, u8 has closer, [u32 byte length, closer text],
                 u64 node id, u32 byte length, text, u64 edge count,
                 per edge: u64 target node id, i32 edge weight

Node identifiers in a file only link records together. Loading assigns fresh identifiers.
"""

from __future__ import annotations

import shutil
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union

from .constants import BACKUP_FILENAME, TEXT_ENCODING
from .errors import CorruptModelFileError, MissingModelFileError
from .graph import Node, next_node_id
from .models import SymbolKind

if TYPE_CHECKING:
    from .trainer import Trainer

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")


class _BinaryWriter:
    def __init__(self) -> None:
        self._buffer = bytearray()

    def u8(self, value: int) -> None:
        self._buffer += _U8.pack(value)

    def u32(self, value: int) -> None:
        self._buffer += _U32.pack(value)

    def i32(self, value: int) -> None:
        self._buffer += _I32.pack(value)

    def u64(self, value: int) -> None:
        self._buffer += _U64.pack(value)

    def text(self, value: str) -> None:
        encoded = value.encode(TEXT_ENCODING)
        self.u32(len(encoded))
        self._buffer += encoded

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class _BinaryReader:
    def __init__(self, data: bytes, *, path: Path) -> None:
        self._data = data
        self._offset = 0
        self._path = path

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def corrupt(self, reason: str) -> CorruptModelFileError:
        return CorruptModelFileError(path=self._path, reason=f"{reason} at byte {self._offset}")

    def _take(self, size: int) -> bytes:
        if size > self.remaining:
            raise self.corrupt(f"unexpected end of file reading {size} bytes")
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def _unpack(self, layout: struct.Struct) -> int:
        return int(layout.unpack(self._take(layout.size))[0])

    def u8(self) -> int:
        return self._unpack(_U8)

    def u32(self) -> int:
        return self._unpack(_U32)

    def i32(self) -> int:
        return self._unpack(_I32)

    def u64(self) -> int:
        return self._unpack(_U64)

    def text(self) -> str:
        size = self.u32()
        raw = self._take(size)
        try:
            return raw.decode(TEXT_ENCODING)
        except UnicodeDecodeError as exc:
            raise self.corrupt("invalid UTF-16 text") from exc


@dataclass
class _NodeRecord:
    weight: int
    symbol_kind: SymbolKind
    wrapper_closer: Optional[str]
    text: str
    targets: List[Tuple[int, int]] = field(default_factory=list)


def _symbol_lists(trainer: "Trainer") -> List[List[str]]:
    configuration = trainer.configuration
    return [
        list(configuration.end_symbols),
        list(configuration.end_separator_symbols),
        list(configuration.spacing_symbols),
        list(configuration.separator_symbols),
        list(configuration.combinator_symbols),
        configuration.wrapper_symbols(),
    ]


def encode_graph(trainer: "Trainer") -> bytes:
    """
    Serialize a trainer's symbol lists and vocabulary.

    :param trainer: Trainer to serialize.
    :type trainer: Trainer
    :return: Encoded model bytes.
    :rtype: bytes
    """
    writer = _BinaryWriter()
    symbol_lists = _symbol_lists(trainer)
    for symbols in symbol_lists:
        writer.u64(len(symbols))
    for symbols in symbol_lists:
        for symbol in symbols:
            writer.text(symbol)

    graph = trainer.graph
    nodes = graph.nodes()
    writer.u64(len(nodes))
    for node in nodes:
        writer.i32(node.weight)
        writer.i32(node.symbol_kind.code)
        if node.wrapper_closer is not None:
            writer.u8(1)
            writer.text(node.wrapper_closer)
        else:
            writer.u8(0)
        writer.u64(node.node_id)
        writer.text(node.text)
        edges = []
        for target_text, edge in node.outgoing.items():
            target = graph.lookup(target_text)
            if target is not None:
                edges.append((target.node_id, edge.weight))
        writer.u64(len(edges))
        for target_id, weight in edges:
            writer.u64(target_id)
            writer.i32(weight)
    return writer.getvalue()


def save_graph(
    trainer: "Trainer",
    path: Union[str, Path],
    *,
    backup_path: Union[str, Path] = BACKUP_FILENAME,
) -> Path:
    """
    Write a trainer's graph to a model file.

    An existing file is copied to ``backup_path`` and removed before the new file is written.
    The write is not atomic.

    :param trainer: Trainer to save.
    :type trainer: Trainer
    :param path: Destination path.
    :type path: str or Path
    :param backup_path: Backup location for an existing file.
    :type backup_path: str or Path
    :return: Written path.
    :rtype: Path
    """
    target = Path(path)
    payload = encode_graph(trainer)
    if target.exists():
        shutil.copyfile(target, Path(backup_path))
        target.unlink()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(payload)
    return target


def _read_records(reader: _BinaryReader) -> Dict[int, _NodeRecord]:
    list_sizes = [reader.u64() for _ in range(6)]
    for size in list_sizes:
        for _ in range(size):
            reader.text()

    records: Dict[int, _NodeRecord] = {}
    node_count = reader.u64()
    for _ in range(node_count):
        weight = reader.i32()
        kind_code = reader.i32()
        has_closer = reader.u8()
        if has_closer not in (0, 1):
            raise reader.corrupt(f"invalid closer flag {has_closer}")
        wrapper_closer = reader.text() if has_closer else None
        node_id = reader.u64()
        text = reader.text()
        try:
            symbol_kind = SymbolKind.from_code(kind_code)
        except ValueError as exc:
            raise reader.corrupt(str(exc)) from exc
        if node_id in records:
            raise reader.corrupt(f"duplicate node id {node_id}")
        record = _NodeRecord(
            weight=weight,
            symbol_kind=symbol_kind,
            wrapper_closer=wrapper_closer,
            text=text,
        )
        edge_count = reader.u64()
        for _ in range(edge_count):
            record.targets.append((reader.u64(), reader.i32()))
        records[node_id] = record
    if reader.remaining:
        raise reader.corrupt(f"{reader.remaining} trailing bytes")
    return records


def load_graph(
    trainer: "Trainer", path: Union[str, Path], *, missing_ok: bool = True
) -> bool:
    """
    Read a model file into a trainer's graph.

    The symbol lists stored in the file are read but ignored; the trainer's own configuration
    keeps deciding how future input is classified. Loaded nodes replace vocabulary entries with
    the same text.

    :param trainer: Trainer to load into.
    :type trainer: Trainer
    :param path: Model file path.
    :type path: str or Path
    :param missing_ok: Return False instead of raising when the file does not exist.
    :type missing_ok: bool
    :return: True when a file was loaded.
    :rtype: bool
    :raises MissingModelFileError: If the file is missing and ``missing_ok`` is False.
    :raises CorruptModelFileError: If the file cannot be decoded.
    """
    source = Path(path)
    if not source.is_file():
        if missing_ok:
            return False
        raise MissingModelFileError(path=source)

    reader = _BinaryReader(source.read_bytes(), path=source)
    records = _read_records(reader)

    nodes: Dict[int, Node] = {
        stored_id: Node(
            node_id=next_node_id(),
            text=record.text,
            symbol_kind=record.symbol_kind,
            weight=record.weight,
            wrapper_closer=record.wrapper_closer,
            default_terminator=trainer.default_terminator,
        )
        for stored_id, record in records.items()
    }
    for stored_id, record in records.items():
        node = nodes[stored_id]
        for target_id, weight in record.targets:
            target = nodes.get(target_id)
            if target is None:
                raise CorruptModelFileError(
                    path=source, reason=f"node {stored_id} links to unknown node {target_id}"
                )
            node.outgoing[target.text] = trainer.edge_to(target, weight)
    for node in nodes.values():
        trainer.graph.insert(node)
    return True
