# Adapters Package
from .markdown_source import MarkdownItemSource
from .memory_store import InMemoryCardStore
from .yaml_store import YamlCardStore

__all__ = ["InMemoryCardStore", "MarkdownItemSource", "YamlCardStore"]
