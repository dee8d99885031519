"""Streaming CSV splitting: chunk reading, line reassembly, segment emission."""

from .emitter import EmitterState, SegmentEmitter, normalize_rows_per_file
from .pipeline import deadline_check, process_stream, split_file
from .reader import BytesInputStream, ChunkReader, FileInputStream, InputStream
from .reassembler import LineReassembler
from .sinks import DirectorySegmentWriter, part_filename, write_manifest

__all__ = [
    "BytesInputStream",
    "ChunkReader",
    "DirectorySegmentWriter",
    "EmitterState",
    "FileInputStream",
    "InputStream",
    "LineReassembler",
    "SegmentEmitter",
    "deadline_check",
    "normalize_rows_per_file",
    "part_filename",
    "process_stream",
    "split_file",
    "write_manifest",
]
