"""Row pipeline: file schemas, conversion, interactive resolution and CLI."""
