"""
Response dispatch - hands a RetrieverResult to whatever answers the request.

The response sink is owned by the caller (an HTTP handler, a test double,
...). This module only decides which of its operations to call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import BinaryIO, Protocol

from adsp.documents import RetrieverResult

logger = logging.getLogger(__name__)


class Response(Protocol):
    """Operations needed to answer a document request.

    respond_not_modified(), respond_not_found() and get_output_stream() end
    the response; anything set before them may be ignored.
    """

    def respond_not_modified(self) -> None: ...

    def respond_not_found(self) -> None: ...

    def get_output_stream(self) -> BinaryIO: ...

    def set_content_type(self, content_type: str) -> None: ...

    def set_metadata(self, metadata: Mapping[str, str]) -> None: ...

    def set_acl(self, acl: object) -> None: ...


def send_retriever_result(result: RetrieverResult, response: Response) -> None:
    """
    Answer a request from a retriever's result.

    not-found wins over up-to-date, which wins over content. A result with
    none of them is sent as an empty document.
    """
    if result.not_found:
        if result.content:
            logger.warning("Document %s is not-found but carried content; content ignored", result.doc_id)
        response.respond_not_found()
        return

    if result.up_to_date:
        response.respond_not_modified()
        return

    if result.metadata:
        response.set_metadata(result.metadata)
    if result.mime_type is not None:
        response.set_content_type(result.mime_type)
    response.get_output_stream().write(result.content or b"")
