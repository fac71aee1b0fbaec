"""Language server for code snippet tags in documentation sources.

The server itself (`.server`) needs the `lsp` extra (pygls, lsprotocol).
"""
