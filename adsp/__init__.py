"""Decoder for adaptor data streams exchanged between document sources and their consumers."""

from adsp.commands import Command, Operation
from adsp.documents import DocId, ListerDirective, Metadata, MetadataBuilder, RetrieverResult
from adsp.errors import (
    AdaptorDataError,
    EncodingError,
    FormatError,
    HeaderError,
    RepositoryUnavailableError,
    SequenceError,
)
from adsp.reader import AdaptorDataReader, read_lister, read_retriever
from adsp.response import Response, send_retriever_result
from adsp.writer import AdaptorDataWriter

__version__ = "0.1.0"

__all__ = [
    "AdaptorDataError",
    "AdaptorDataReader",
    "AdaptorDataWriter",
    "Command",
    "DocId",
    "EncodingError",
    "FormatError",
    "HeaderError",
    "ListerDirective",
    "Metadata",
    "MetadataBuilder",
    "Operation",
    "RepositoryUnavailableError",
    "Response",
    "RetrieverResult",
    "SequenceError",
    "read_lister",
    "read_retriever",
    "send_retriever_result",
]
