"""Personal memory assistant: retrieval, context assembly and streamed chat."""

__version__ = "0.1.0"
