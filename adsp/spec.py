"""
Adaptor Data Stream Format v1
=============================

Layout:
    GSA Adaptor Data Version 1 [<delimiter>]   <- Header (version + delimiter, once per stream)
    id=<document id><delimiter>                <- Commands, one per delimiter-terminated line
    last-modified=<value><delimiter>
    crawl-immediately<delimiter>
    id-list<delimiter>                         <- Starts a list of bare document ids
    <document id><delimiter>
    <document id><delimiter>
    <delimiter>                                <- Two consecutive delimiters close the list
    content<delimiter>                         <- Everything after this is raw binary
    <bytes ...>                                <- ... up to end of stream

Design Decisions:
    - The delimiter is chosen by the writer, so it can be picked to never
      collide with ids, metadata or other text (a NUL byte is the safest)
    - Commands with data use "keyword=value", flag commands are a bare keyword
    - All text is UTF-8; only the content payload may be arbitrary bytes
    - Document content may contain the delimiter; nothing after "content" is scanned
    - Unknown keywords are skipped so newer writers work with older readers
"""

# Header line
HEADER_PREFIX = "GSA Adaptor Data Version"
HEADER_OPEN = "["
HEADER_CLOSE = "]"

# Characters reserved for header/body syntax, never allowed in a delimiter
RESERVED_DELIMITER_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "0123456789"
    ":/-_ =+[]"
)

# Text encoding for everything but the content payload
ENCODING = "utf-8"

# Keywords handled by the tokenizer/decoder rather than mapped to an operation
ID_LIST = "id-list"
REPOSITORY_UNAVAILABLE = "repository-unavailable"

# Separator between a keyword and its argument
ARGUMENT_SEPARATOR = "="

# Format version written by AdaptorDataWriter
FORMAT_VERSION = 1

# Lister commands (apply to the most recent document id)
LISTER_COMMANDS = {
    "id": "Document identifier, starts a new directive",
    "last-modified": "Last time the document or its metadata changed",
    "crawl-immediately": "Raise the crawl priority of the document",
    "crawl-once": "Crawl the document one time, never re-crawl",
    "lock": "Keep the document in the index unless explicitly removed",
    "delete": "Remove the document from the index",
}

# Retriever commands (describe the single requested document)
RETRIEVER_COMMANDS = {
    "id": "Document identifier, exactly once and first",
    "up-to-date": "Document unchanged since it was last crawled",
    "not-found": "Document does not exist in the repository",
    "mime-type": "Content type of the document",
    "meta-name": "Metadata name, must be followed by meta-value",
    "meta-value": "Metadata value for the preceding meta-name",
    "content": "Binary document content up to end of stream",
}
